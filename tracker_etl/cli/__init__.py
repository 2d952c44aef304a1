"""Command line interface (``python -m tracker_etl.cli``)."""
