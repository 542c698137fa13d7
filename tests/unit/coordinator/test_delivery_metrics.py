"""
Unit tests for delivery metrics recording.
"""

import pytest
from prometheus_client import REGISTRY

from ci_metrics.coordinator import DeliveryCoordinator, SubmitOptions
from ci_metrics.errors import TransportFailure


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_success_and_skip_counters(transport, points, cache_dir, log_dir):
    """Successful windows and skipped points are counted per mode."""
    before_ok = sample("ci_metrics_batches_total", mode="live", outcome="success")
    before_skip = sample("ci_metrics_points_skipped_total", mode="live")
    coord = DeliveryCoordinator(
        transport, SubmitOptions(batch_size=2), cache_dir=cache_dir, log_dir=log_dir, testing=True
    )

    await coord.submit(points, ["wf-1", "wf-2", "wf-3"])
    await coord.submit(points, ["wf-1", "wf-2", "wf-3"])

    assert sample("ci_metrics_batches_total", mode="live", outcome="success") - before_ok == 2
    assert sample("ci_metrics_points_skipped_total", mode="live") - before_skip == 3


@pytest.mark.asyncio
async def test_failure_counter(transport_factory, points, cache_dir, log_dir):
    before = sample("ci_metrics_batches_total", mode="live", outcome="failure")
    coord = DeliveryCoordinator(
        transport_factory(fail_with=TransportFailure("nope")),
        cache_dir=cache_dir,
        log_dir=log_dir,
        testing=True,
    )

    with pytest.raises(TransportFailure):
        await coord.submit(points, ["wf-1", "wf-2", "wf-3"])

    assert sample("ci_metrics_batches_total", mode="live", outcome="failure") - before == 1


@pytest.mark.asyncio
async def test_dry_run_counter_and_no_latency(points, cache_dir, log_dir):
    before = sample("ci_metrics_batches_total", mode="dry_run", outcome="dry_run")
    before_latency = sample("ci_metrics_transport_latency_seconds_count")
    coord = DeliveryCoordinator(
        None, SubmitOptions(dry_run=True), cache_dir=cache_dir, log_dir=log_dir, testing=True
    )

    await coord.submit(points, ["wf-1", "wf-2", "wf-3"])

    assert sample("ci_metrics_batches_total", mode="dry_run", outcome="dry_run") - before == 1
    assert sample("ci_metrics_transport_latency_seconds_count") == before_latency
