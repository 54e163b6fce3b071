"""Report manifest services."""

from .manifest import list_export_files, list_runs, resolve_export_file

__all__ = ["list_runs", "list_export_files", "resolve_export_file"]
