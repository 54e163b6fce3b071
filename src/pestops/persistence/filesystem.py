"""File-based persistence for generated report runs."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from ..config import settings

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


class FileStorage:
    """Stores each report run in its own timestamped directory under ``<root>/outputs``."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "report") -> Path:
        timestamp = datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
        path = self.output_root / f"{prefix}_{timestamp}"
        suffix = 1
        while path.exists():
            suffix += 1
            path = self.output_root / f"{prefix}_{timestamp}_{suffix}"
        path.mkdir(parents=True)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent, default=str)

    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    def save_run(
        self,
        run_type: str,
        summary: Mapping[str, Any],
        attachments: Mapping[str, str] | None = None,
    ) -> Path:
        """Write ``summary.json`` plus text attachments (e.g. CSV) into a new run directory."""

        run_dir = self.make_run_directory(prefix=run_type)
        payload = {"run_type": run_type, "created_at": datetime.now(timezone.utc).isoformat(), **summary}
        self.write_json(run_dir / "summary.json", payload)
        for file_name, content in (attachments or {}).items():
            self.write_text(run_dir / file_name, content)
        return run_dir
