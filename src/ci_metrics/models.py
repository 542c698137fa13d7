"""
Pydantic data models for the CI workflow metrics shipper.

WorkflowRecord mirrors one row of the warehouse export; MetricPoint is one
gauge measurement in the shape the Datadog v2 series intake expects.
"""

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


class MetricIntakeType(IntEnum):
    """Datadog v2 metric intake types."""

    UNSPECIFIED = 0
    COUNT = 1
    RATE = 2
    GAUGE = 3


class MetricPoint(BaseModel):
    """One measurement bound for the metrics intake."""

    model_config = ConfigDict(frozen=True)

    metric: str
    value: float
    timestamp: int  # POSIX seconds
    unit: str = "minutes"
    type: MetricIntakeType = MetricIntakeType.GAUGE
    tags: Tuple[str, ...] = ()

    @field_validator("metric")
    @classmethod
    def _non_empty_metric(cls, v):
        if not v:
            raise ValueError("Metric name must not be empty")
        return v

    @property
    def observed_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    def to_series(self) -> Dict[str, Any]:
        """Datadog v2 series entry carrying this single point."""
        return {
            "metric": self.metric,
            "type": int(self.type),
            "points": [{"timestamp": self.timestamp, "value": self.value}],
            "unit": self.unit,
            "tags": list(self.tags),
        }


class WorkflowRecord(BaseModel):
    """Workflow run row exported from the warehouse.

    Every column is nullable in the export; completeness is checked by the
    transformer, not here.
    """

    minutes: Optional[str] = None
    created_at: Optional[str] = None
    branch: Optional[str] = None
    workflow_name: Optional[str] = None
    status: Optional[str] = None
    project_slug: Optional[str] = None
    workflow_id: Optional[str] = None

    @field_validator("minutes", mode="before")
    @classmethod
    def _stringify_minutes(cls, v):
        # Some exports emit minutes as a JSON number.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return repr(v) if isinstance(v, float) else str(v)
        return v
