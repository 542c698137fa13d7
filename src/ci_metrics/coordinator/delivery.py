"""
Batching & delivery coordinator.

Pairs metric points with their workflow identifiers, drops pairs already in
the ledger, and drives the remaining pairs through the transport one window
at a time. Identifiers are recorded only after the transport confirms the
window; the first failure aborts the call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from time import perf_counter
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from ..audit import AuditLogWriter
from ..errors import PairingMismatch, map_transport_error
from ..metrics import BATCHES_TOTAL, POINTS_SKIPPED_TOTAL, TRANSPORT_LATENCY
from ..models import MetricPoint
from ..transport import MetricsTransport
from .ledger import DeliveryLedger, ledger_namespace

Pair = Tuple[MetricPoint, str]


@dataclass(frozen=True)
class SubmitOptions:
    """Operator-facing delivery options."""

    dry_run: bool = False
    batch_size: int = 10

    def __post_init__(self):
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")

    @property
    def mode(self) -> str:
        return "dry_run" if self.dry_run else "live"


@dataclass(frozen=True)
class SubmitSummary:
    """What one submit call did."""

    windows: int = 0
    batches_sent: int = 0
    points_sent: int = 0
    points_skipped: int = 0
    dry_run: bool = False


def pair_up(points: Sequence[MetricPoint], workflow_ids: Sequence[str]) -> List[Pair]:
    if len(points) != len(workflow_ids):
        raise PairingMismatch(len(points), len(workflow_ids))
    return list(zip(points, workflow_ids))


def windows(pairs: Sequence[Pair], size: int) -> List[List[Pair]]:
    return [list(pairs[i : i + size]) for i in range(0, len(pairs), size)]


class DeliveryCoordinator:
    """
    Deduplicating batch submitter.

    Usage:
        async with DatadogTransport(api_key=...) as transport:
            coord = DeliveryCoordinator(transport, SubmitOptions(batch_size=10))
            summary = await coord.submit(points, workflow_ids)

    Calls to submit() must not overlap; the coordinator holds no queue or lock.
    """

    def __init__(
        self,
        transport: Optional[MetricsTransport],
        options: Optional[SubmitOptions] = None,
        *,
        cache_dir: str | os.PathLike = "cache",
        log_dir: str | os.PathLike = "log",
        testing: bool = False,
        ledger: Optional[DeliveryLedger] = None,
        audit: Optional[AuditLogWriter] = None,
    ):
        self._opts = options or SubmitOptions()
        if transport is None and not self._opts.dry_run:
            raise ValueError("A transport is required outside dry-run mode")

        expected = ledger_namespace(self._opts.dry_run, testing)
        if ledger is None:
            ledger = DeliveryLedger(expected, cache_dir)
        elif ledger.namespace is not expected:
            raise ValueError(
                f"Ledger namespace {ledger.namespace.value!r} does not match "
                f"mode {self._opts.mode!r} (expected {expected.value!r})"
            )

        self._transport = transport
        self._ledger = ledger
        self._audit = audit or AuditLogWriter(log_dir, dry_run=self._opts.dry_run)

    @property
    def options(self) -> SubmitOptions:
        return self._opts

    @property
    def ledger(self) -> DeliveryLedger:
        return self._ledger

    async def submit(
        self, points: Sequence[MetricPoint], workflow_ids: Sequence[str]
    ) -> SubmitSummary:
        """Deliver every not-yet-delivered point, window by window."""
        pairs = pair_up(points, workflow_ids)
        mode = self._opts.mode

        n_windows = 0
        sent_batches = 0
        sent_points = 0
        skipped = 0

        for window in windows(pairs, self._opts.batch_size):
            n_windows += 1
            batch = self._undelivered(window)
            skipped += len(window) - len(batch)
            if not batch:
                logger.debug(f"Window {n_windows}: all {len(window)} workflow(s) already delivered")
                continue

            batch_points = [p for p, _ in batch]
            batch_ids = [wid for _, wid in batch]
            self._audit.write(batch_points)

            if self._opts.dry_run:
                logger.info(f"Would have processed workflows: {batch_ids}")
                self._ledger.mark_delivered(batch_ids)
                BATCHES_TOTAL.labels(mode=mode, outcome="dry_run").inc()
            else:
                await self._deliver(batch_points)
                self._ledger.mark_delivered(batch_ids)
                BATCHES_TOTAL.labels(mode=mode, outcome="success").inc()

            sent_batches += 1
            sent_points += len(batch)

        if skipped:
            POINTS_SKIPPED_TOTAL.labels(mode=mode).inc(skipped)

        if not sent_batches:
            logger.info("All workflows have already been processed, skipping")
        elif self._opts.dry_run:
            logger.info(f"Dry run complete - {sent_points} metric(s) logged to file")
        else:
            logger.success(f"Submitted {sent_points} metric(s) in {sent_batches} batch(es)")

        return SubmitSummary(
            windows=n_windows,
            batches_sent=sent_batches,
            points_sent=sent_points,
            points_skipped=skipped,
            dry_run=self._opts.dry_run,
        )

    # --------------------------- internals

    def _undelivered(self, window: Sequence[Pair]) -> List[Pair]:
        """Pairs whose id is not in the ledger; repeated ids keep their first pair."""
        todo = set(self._ledger.filter_undelivered([wid for _, wid in window]))
        batch: List[Pair] = []
        for point, wid in window:
            if wid in todo:
                todo.discard(wid)
                batch.append((point, wid))
        return batch

    async def _deliver(self, batch_points: List[MetricPoint]) -> None:
        t0 = perf_counter()
        try:
            ack = await self._transport.submit_batch(batch_points)
        except Exception as e:
            BATCHES_TOTAL.labels(mode="live", outcome="failure").inc()
            err = map_transport_error(e)
            logger.error(f"Error submitting metrics: {type(err).__name__}: {err}")
            if err is e:
                raise
            raise err from e
        finally:
            TRANSPORT_LATENCY.observe(perf_counter() - t0)
        logger.debug(f"Metrics submitted successfully: {ack}")
