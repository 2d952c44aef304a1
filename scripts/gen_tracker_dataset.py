#!/usr/bin/env python3
"""Synthetic Tracker workbook generator for performance testing.

The generated sheet looks like a real Tracker export:
- Row 1: header row with the Tracker column labels
- Row 2+: data rows with the usual mess (mixed date formats, serial numbers,
  "2016-17" year ranges, "₹1,200" amounts, "Multiple" / "NA" quantities)

Usage:
  %(prog)s tracker.xlsx --rows 20000
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

TRACKER_COLUMNS = [
    "Sr.No",
    "Year",
    "Month",
    "Date",
    "Cause",
    "Project",
    "Sub Project",
    "Institute",
    "Department",
    "Type of Institution",
    "Quantity",
    "No. of Beneficiaries",
    "Remarks",
    "Amount",
    "Comments by Pankti",
    "On account / Kind",
]

CAUSES = ["health", "EDUCATION", "  Women   Empowerment ", "Environment"]
PROJECTS = ["infant goodie bag", "Health Kit", "goodie  bag", "SNACKS", "Refreshment"]
SUB_PROJECTS = ["Infant Goodie Bag", "health kit", "Goodie Bag", "snacks"]
INSTITUTES = ["Civil Hospital", "city  school no. 4", "ANGANWADI CENTRE", "Old Age Home"]
MONTHS = ["january", "FEBRUARY", "March ", "april", "May", "june"]
QUANTITIES = ["12", "Multiple", "NA", "1,200", "40", "n/a"]


def _date_cell(rng: np.random.Generator, day: pd.Timestamp) -> object:
    """Render one date the way sheet editors actually type them."""
    style = rng.integers(0, 6)
    if style == 0:
        return day.to_pydatetime()
    if style == 1:
        return (day - pd.Timestamp("1899-12-30")).days  # serial number
    if style == 2:
        return day.strftime("%d/%m/%Y")
    if style == 3:
        return day.strftime("%Y-%m-%d")
    if style == 4:
        return day.strftime("%d %B %Y")
    return "to be confirmed"


def generate_tracker_data(rows: int, seed: int = 42) -> pd.DataFrame:
    """Generate ``rows`` Tracker rows (reproducible for a given seed)."""
    rng = np.random.default_rng(seed)
    days = pd.date_range("2016-04-01", "2024-03-31", freq="D")

    data: dict[str, list[object]] = {name: [] for name in TRACKER_COLUMNS}
    for i in range(rows):
        day = days[rng.integers(0, len(days))]
        start = day.year if day.month >= 4 else day.year - 1
        data["Sr.No"].append(i + 1)
        data["Year"].append(f"{start}-{str(start + 1)[2:]}" if rng.random() < 0.8 else str(start))
        data["Month"].append(rng.choice(MONTHS))
        data["Date"].append(_date_cell(rng, day))
        data["Cause"].append(rng.choice(CAUSES))
        data["Project"].append(rng.choice(PROJECTS))
        data["Sub Project"].append(rng.choice(SUB_PROJECTS))
        data["Institute"].append(rng.choice(INSTITUTES))
        data["Department"].append("Paediatrics" if rng.random() < 0.5 else None)
        data["Type of Institution"].append(rng.choice(["Hospital", "school", "NGO"]))
        data["Quantity"].append(rng.choice(QUANTITIES))
        data["No. of Beneficiaries"].append(int(rng.integers(1, 500)))
        data["Remarks"].append(None if rng.random() < 0.7 else "distributed  on site")
        data["Amount"].append(f"₹{int(rng.integers(100, 100_000)):,}" if rng.random() < 0.5 else float(rng.integers(100, 100_000)))
        data["Comments by Pankti"].append(None)
        data["On account / Kind"].append(rng.choice(["Kind", "On account"]))
    return pd.DataFrame(data, columns=TRACKER_COLUMNS)


def create_tracker_workbook(output_path: Path, rows: int, sheet_name: str = "Tracker", seed: int = 42) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_tracker_data(rows, seed)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    print(f"Created Tracker workbook: {output_path} ({rows:,} rows, sheet '{sheet_name}')")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic Tracker workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=20_000, help="Data rows (default: 20,000)")
    parser.add_argument("--sheet", default="Tracker", help="Sheet name (default: Tracker)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    create_tracker_workbook(args.output, args.rows, args.sheet, args.seed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
