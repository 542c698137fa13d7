"""
File-backed delivery ledger.

Records which workflow identifiers have been confirmed delivered, one JSON
file per namespace so dry runs, live runs and test runs never see each
other's entries.

Reads fail open: an unreadable ledger is treated as empty (logged as a
warning) so a damaged file causes redundant delivery rather than silent loss.
Writes fail closed: any error raises LedgerIOFailure.
"""

from __future__ import annotations

import json
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Sequence

from loguru import logger

from ..errors import LedgerIOFailure


class LedgerNamespace(str, Enum):
    """Ledger partitions, one per (mode, context) pair."""

    LIVE = "sent-workflows"
    DRY_RUN = "sent-workflows-dry-run"
    LIVE_TEST = "sent-workflows-test"
    DRY_RUN_TEST = "sent-workflows-dry-run-test"


def ledger_namespace(dry_run: bool, testing: bool = False) -> LedgerNamespace:
    if dry_run:
        return LedgerNamespace.DRY_RUN_TEST if testing else LedgerNamespace.DRY_RUN
    return LedgerNamespace.LIVE_TEST if testing else LedgerNamespace.LIVE


class DeliveryLedger:
    """
    Durable set of delivered workflow identifiers.

    Usage:
        ledger = DeliveryLedger.for_mode(dry_run=False, cache_dir="cache")
        todo = ledger.filter_undelivered(["wf-1", "wf-2"])
        ...
        ledger.mark_delivered(todo)
    """

    def __init__(self, namespace: LedgerNamespace, cache_dir: str | os.PathLike = "cache"):
        self._namespace = LedgerNamespace(namespace)
        self._dir = Path(cache_dir)
        self._path = self._dir / f"{self._namespace.value}.json"
        self._ensure_exists()

    @classmethod
    def for_mode(
        cls, *, dry_run: bool, testing: bool = False, cache_dir: str | os.PathLike = "cache"
    ) -> "DeliveryLedger":
        return cls(ledger_namespace(dry_run, testing), cache_dir)

    @property
    def namespace(self) -> LedgerNamespace:
        return self._namespace

    @property
    def path(self) -> Path:
        return self._path

    # --------------------------- public API

    def contains(self, workflow_id: str) -> bool:
        """True iff the identifier was previously confirmed delivered."""
        return workflow_id in self._read_or_empty()

    def filter_undelivered(self, workflow_ids: Sequence[str]) -> List[str]:
        """Identifiers not yet delivered, in input order. Reads storage once."""
        if not workflow_ids:
            return []
        sent = self._read_or_empty()
        return [wid for wid in workflow_ids if wid not in sent]

    def delivered(self) -> frozenset[str]:
        return frozenset(self._read_or_empty())

    def mark_delivered(self, workflow_ids: Iterable[str]) -> None:
        """Idempotently add identifiers and persist before returning."""
        new_ids = list(workflow_ids)
        if not new_ids:
            return

        current = self._load()
        seen = set(current)
        added = 0
        for wid in new_ids:
            if wid not in seen:
                seen.add(wid)
                current.append(wid)
                added += 1

        if not added:
            logger.debug(f"Ledger {self._namespace.value}: all {len(new_ids)} id(s) already present")
            return

        self._write(current)
        logger.debug(f"Ledger {self._namespace.value}: recorded {added} id(s), total {len(current)}")

    # --------------------------- internals

    def _ensure_exists(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                self._write([])
        except OSError as e:
            raise LedgerIOFailure(f"Cannot initialise ledger {self._path}: {e}") from e

    def _load(self) -> List[str]:
        if not self._path.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LedgerIOFailure(f"Cannot read ledger {self._path}: {e}") from e

        sent = data.get("sent") if isinstance(data, dict) else None
        if not isinstance(sent, list) or not all(isinstance(x, str) for x in sent):
            raise LedgerIOFailure(f"Malformed ledger {self._path}: expected {{'sent': [str, ...]}}")
        return sent

    def _read_or_empty(self) -> set[str]:
        try:
            return set(self._load())
        except LedgerIOFailure as e:
            logger.warning(f"{e}; treating all workflows as not yet delivered")
            return set()

    def _write(self, sent: List[str]) -> None:
        """Atomic replace: temp file in the same directory, fsync, rename."""
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._dir,
                prefix=f".{self._namespace.value}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump({"sent": sent}, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            raise LedgerIOFailure(f"Cannot write ledger {self._path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
