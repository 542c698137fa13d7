"""
Pytest configuration and fixtures for the CI workflow metrics shipper.

Provides cross-platform event loop configuration, sample metric points and a
recording fake of the metrics transport.
"""

import asyncio
import sys
from typing import Sequence

import pytest

from ci_metrics.config import get_settings
from ci_metrics.models import MetricPoint

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


STANDARD_TAGS = (
    "env:ci",
    "project_slug:gh/acme/rails-app",
    "branch:master",
    "workflow:build_test_deploy",
    "status:success",
)


class RecordingTransport:
    """Transport double that records every batch and can be told to fail."""

    def __init__(self, fail_with: BaseException | None = None, fail_on_call: int | None = None):
        self.batches: list[list[MetricPoint]] = []
        self._fail_with = fail_with
        self._fail_on_call = fail_on_call

    @property
    def calls(self) -> int:
        return len(self.batches)

    async def submit_batch(self, points: Sequence[MetricPoint]):
        await asyncio.sleep(0)  # simulate I/O
        self.batches.append(list(points))
        if self._fail_with is not None and (
            self._fail_on_call is None or self._fail_on_call == len(self.batches)
        ):
            raise self._fail_with
        return {"errors": []}


def make_point(value: float, timestamp: int = 1706054675) -> MetricPoint:
    return MetricPoint(
        metric="ci.workflow.duration",
        value=value,
        timestamp=timestamp,
        unit="minutes",
        tags=STANDARD_TAGS,
    )


@pytest.fixture
def point_factory():
    return make_point


@pytest.fixture
def points():
    """Three points with distinct values and timestamps."""
    return [make_point(15.5, 1706054675), make_point(16.5, 1706054676), make_point(17.5, 1706054677)]


@pytest.fixture
def transport_factory():
    """Build RecordingTransport instances, optionally failing."""
    return RecordingTransport


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "log"


@pytest.fixture
def clean_settings(monkeypatch, tmp_path):
    """Fresh Settings pointed at tmp_path, isolated from any local .env."""
    monkeypatch.chdir(tmp_path)
    for key in ("DD_API_KEY", "DRY_RUN", "BATCH_SIZE", "APP_ENV", "DATA_DIR", "CACHE_DIR", "LOG_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "log"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
