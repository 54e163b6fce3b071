"""Reporting and operations API for a pest-control service company."""
