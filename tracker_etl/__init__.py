"""Tracker ETL: spreadsheet program records -> normalized PostgreSQL table."""

__version__ = "0.1.0"
