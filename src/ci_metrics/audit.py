"""
Human-readable audit files for every processed sub-batch.

One file per call, named from the current UTC timestamp, so operators can see
exactly what was (or in a dry run, would have been) sent.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Sequence

from loguru import logger

from .models import MetricPoint
from .utils import utc_now

SERIES_ENDPOINT = "/api/v2/series"


class AuditLogWriter:
    def __init__(self, log_dir: str | os.PathLike = "log", *, dry_run: bool = False):
        self._dir = Path(log_dir)
        self._dry_run = dry_run

    @property
    def log_dir(self) -> Path:
        return self._dir

    def write(self, points: Sequence[MetricPoint]) -> Path:
        """Write one audit file for ``points`` and return its path."""
        self._dir.mkdir(parents=True, exist_ok=True)
        content = "\n".join(self.render(points))
        path = self._create(content)
        logger.info(f"Log written to: {path}")
        return path

    def render(self, points: Sequence[MetricPoint]) -> List[str]:
        lines = ["=== Metric Submission Details ==="]
        if self._dry_run:
            lines.append("DRY RUN - No actual API call will be made")

        for p in points:
            lines.append(f"\nMetric: {p.metric}")
            lines.append(f"Type: {p.type.name.lower()} ({int(p.type)})")
            lines.append(f"Unit: {p.unit}")
            lines.append(f"\nTimestamp: {p.timestamp} ({p.observed_at.isoformat()})")
            lines.append(f"Value: {p.value} {p.unit}")
            lines.append("\nTags:")
            lines.extend(f"  {tag}" for tag in p.tags)

        lines.append(f"\nEndpoint: {SERIES_ENDPOINT}")
        lines.append("=" * 30)
        return lines

    def _create(self, content: str) -> Path:
        stamp = utc_now().isoformat(timespec="microseconds")
        stem = stamp.replace(":", "-").replace(".", "-").replace("+", "_")
        attempt = 0
        while True:
            name = f"{stem}.log" if attempt == 0 else f"{stem}-{attempt}.log"
            path = self._dir / name
            try:
                # exclusive create: two writers in the same microsecond must not clobber
                with open(path, "x", encoding="utf-8") as f:
                    f.write(content)
                return path
            except FileExistsError:
                attempt += 1
