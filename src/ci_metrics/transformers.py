"""
Warehouse record → Datadog gauge transformation.

Rejected records are dropped from both the points and identifiers lists, so
the two stay index-aligned for the coordinator.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from .models import MetricIntakeType, MetricPoint, WorkflowRecord
from .utils import to_epoch_seconds

METRIC_NAME = "ci.workflow.duration"
METRIC_UNIT = "minutes"
ENV_TAG = "env:ci"

TRACKED_BRANCHES = {"master", "staging", "uat"}
ACCEPTED_STATUSES = {"success", "failure"}
REQUIRED_FIELDS = ("minutes", "created_at", "workflow_name", "status", "project_slug", "workflow_id")


def branch_category(branch: Optional[str]) -> str:
    if branch is None:
        return "null"
    if branch in TRACKED_BRANCHES:
        return branch
    return "feature"


def format_tags(record: WorkflowRecord) -> Tuple[str, ...]:
    return (
        ENV_TAG,
        f"project_slug:{record.project_slug}",
        f"branch:{branch_category(record.branch)}",
        f"workflow:{record.workflow_name}",
        f"status:{record.status}",
    )


def _reject(raw: Mapping[str, Any], reason: str) -> None:
    logger.debug(f"Skipping workflow {raw.get('workflow_id')!r}: {reason}")
    return None


def transform_record(raw: Mapping[str, Any]) -> Optional[Tuple[MetricPoint, str]]:
    """One warehouse row → (point, workflow_id), or None when rejected."""
    try:
        record = WorkflowRecord.model_validate(dict(raw))
    except ValidationError as e:
        return _reject(raw, f"invalid record ({e.error_count()} error(s))")

    missing = [name for name in REQUIRED_FIELDS if not getattr(record, name)]
    if missing:
        return _reject(raw, f"missing {', '.join(missing)}")

    if record.status not in ACCEPTED_STATUSES:
        return _reject(raw, f"status {record.status!r} not tracked")

    try:
        value = float(record.minutes)
    except ValueError:
        return _reject(raw, f"minutes {record.minutes!r} is not a number")
    if not math.isfinite(value):
        return _reject(raw, f"minutes {record.minutes!r} is not finite")

    try:
        timestamp = to_epoch_seconds(record.created_at)
    except ValueError:
        return _reject(raw, f"created_at {record.created_at!r} is not a timestamp")

    point = MetricPoint(
        metric=METRIC_NAME,
        type=MetricIntakeType.GAUGE,
        value=value,
        timestamp=timestamp,
        unit=METRIC_UNIT,
        tags=format_tags(record),
    )
    return point, record.workflow_id


def transform_records(
    rows: Iterable[Mapping[str, Any]],
) -> Tuple[List[MetricPoint], List[str]]:
    """Transform a batch of rows into index-aligned points and identifiers."""
    points: List[MetricPoint] = []
    workflow_ids: List[str] = []
    total = 0
    for row in rows:
        total += 1
        result = transform_record(row)
        if result is None:
            continue
        point, workflow_id = result
        points.append(point)
        workflow_ids.append(workflow_id)

    if total != len(points):
        logger.info(f"Transformed {len(points)} of {total} record(s); {total - len(points)} skipped")
    return points, workflow_ids
