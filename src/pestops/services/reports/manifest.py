"""Report/export manifest helpers."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...config import settings
from ...persistence.filesystem import TIMESTAMP_FORMAT


def _output_root() -> Path:
    return (settings.data_root / "outputs").resolve()


def list_runs(
    *,
    run_type: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    output_root = _output_root()
    if not output_root.exists():
        return []

    normalized_search = _normalize(search) if search else None
    normalized_run_type = _normalize(run_type) if run_type else None

    runs: List[dict] = []
    for run_dir in _run_directories(output_root):
        run_info = _build_run_summary(run_dir)
        if normalized_run_type and _normalize(run_info.get("run_type")) != normalized_run_type:
            continue
        if normalized_search and not _matches_search(
            normalized_search,
            run_info.get("id"),
            run_info.get("author"),
            run_info.get("run_label"),
            run_info.get("operator_id"),
        ):
            continue

        runs.append(run_info)
        if limit and len(runs) >= limit:
            break
    return runs


def list_export_files(
    *,
    run_type: Optional[str] = None,
    file_type: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    output_root = _output_root()
    if not output_root.exists():
        return []

    normalized_run_type = _normalize(run_type) if run_type else None
    normalized_file_type = _normalize(file_type) if file_type else None
    normalized_search = _normalize(search) if search else None

    exports: List[dict] = []
    for run_dir in _run_directories(output_root):
        run_summary = _build_run_summary(run_dir)
        if normalized_run_type and _normalize(run_summary.get("run_type")) != normalized_run_type:
            continue

        for file_path in sorted(run_dir.glob("*")):
            if not file_path.is_file():
                continue
            export_info = _build_file_record(file_path, run_dir, run_summary)
            if normalized_file_type and _normalize(export_info.get("file_type")) != normalized_file_type:
                continue
            if normalized_search and not _matches_search(
                normalized_search,
                export_info.get("file_name"),
                export_info.get("description"),
                export_info.get("author"),
                export_info.get("run_label"),
            ):
                continue
            exports.append(export_info)
            if limit and len(exports) >= limit:
                return exports
    return exports


def resolve_export_file(run_id: str, filename: str) -> Path:
    output_root = _output_root()
    candidate = (output_root / run_id / filename).resolve()
    if output_root not in candidate.parents or not candidate.is_file():
        raise FileNotFoundError(filename)
    return candidate


def _run_directories(output_root: Path) -> List[Path]:
    return sorted((p for p in output_root.iterdir() if p.is_dir()), key=_sort_key, reverse=True)


def _build_run_summary(run_dir: Path) -> dict:
    summary_data = _load_summary(run_dir / "summary.json") or {}
    metadata = summary_data.get("metadata") if isinstance(summary_data.get("metadata"), dict) else {}
    window = metadata.get("window") if isinstance(metadata.get("window"), dict) else {}

    return {
        "id": run_dir.name,
        "run_type": summary_data.get("run_type") or run_dir.name.split("_")[0],
        "created_at": _created_at(run_dir, summary_data),
        "status": _coerce_status(metadata),
        "author": metadata.get("author"),
        "run_label": metadata.get("run_label"),
        "operator_id": metadata.get("operator_id"),
        "window_start": window.get("start"),
        "window_end": window.get("end"),
        "row_count": len(summary_data.get("rows") or []),
    }


def _build_file_record(file_path: Path, run_dir: Path, run_summary: dict) -> dict:
    file_suffix = file_path.suffix[1:].upper() if file_path.suffix else ""
    run_id = run_dir.name

    return {
        "id": f"{run_id}:{file_path.name}",
        "run_id": run_id,
        "run_type": run_summary.get("run_type"),
        "file_name": file_path.name,
        "file_type": file_suffix or "FILE",
        "size_bytes": file_path.stat().st_size,
        "created_at": run_summary.get("created_at"),
        "author": run_summary.get("author"),
        "run_label": run_summary.get("run_label"),
        "description": _describe_file(file_path.name, run_summary),
        "download_path": f"{settings.api_prefix}/reports/exports/{run_id}/{file_path.name}",
    }


def _load_summary(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _created_at(run_dir: Path, summary_data: Dict[str, Any]) -> Optional[datetime]:
    value = summary_data.get("created_at")
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return _timestamp_from_name(run_dir.name)


def _timestamp_from_name(name: str) -> Optional[datetime]:
    # Collision suffixes ("_2") follow the timestamp.
    for part in reversed(name.split("_")):
        try:
            return datetime.strptime(part, TIMESTAMP_FORMAT)
        except ValueError:
            continue
    return None


def _coerce_status(metadata: Any) -> str:
    if isinstance(metadata, dict):
        status = metadata.get("status")
        if isinstance(status, str) and status.strip():
            return status
    return "complete"


def _describe_file(filename: str, run_summary: dict) -> str:
    lower = filename.lower()
    if lower == "summary.json":
        if run_summary.get("run_type") == "performance":
            return "Operator performance summary"
        return "Run summary"
    if lower == "performance.csv":
        return "Per-operator performance table"
    if lower.endswith(".csv"):
        return "CSV export"
    if lower.endswith(".json"):
        return "JSON export"
    return "Export file"


def _sort_key(path: Path) -> float:
    timestamp = _timestamp_from_name(path.name)
    if timestamp:
        return timestamp.timestamp()
    return path.stat().st_mtime


def _normalize(value: Optional[str]) -> str:
    return value.lower().strip() if isinstance(value, str) else ""


def _matches_search(search: str, *values: Optional[str]) -> bool:
    for value in values:
        if isinstance(value, str) and search in value.lower():
            return True
    return False
