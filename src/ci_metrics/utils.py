"""
Utility functions for the CI workflow metrics shipper.

Includes timestamp parsing for warehouse exports and export-file discovery.
"""

import json
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

# BigQuery renders TIMESTAMP columns as "2025-01-24 14:04:35.000000 UTC"
_BQ_UTC_SUFFIX = re.compile(r"\s*(UTC|Z)$")


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(dt: Union[str, datetime]) -> datetime:
    """Parse an ISO 8601 or BigQuery timestamp; naive values are taken as UTC."""
    if isinstance(dt, str):
        text = dt.strip()
        if _BQ_UTC_SUFFIX.search(text):
            text = _BQ_UTC_SUFFIX.sub("+00:00", text)
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_seconds(dt: Union[str, datetime]) -> int:
    return math.floor(parse_datetime(dt).timestamp())


def find_export_files(data_dir: Union[str, Path]) -> List[Path]:
    """All ``*.json`` files directly under ``data_dir``, sorted by name."""
    root = Path(data_dir)
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.is_file() and p.suffix == ".json")


def load_export(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load one export file; it must hold a JSON array of objects."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of workflow records")
    return [row for row in data if isinstance(row, dict)]
