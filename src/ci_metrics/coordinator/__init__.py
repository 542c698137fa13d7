"""Delivery coordinator

Deduplicating submission core:
- DeliveryLedger (file-backed, namespaced by mode)
- DeliveryCoordinator (pair → window → filter → submit → record)
- SubmitOptions / SubmitSummary
"""

from .ledger import DeliveryLedger, LedgerNamespace, ledger_namespace
from .delivery import DeliveryCoordinator, SubmitOptions, SubmitSummary, pair_up, windows

__all__ = [
    # ledger
    "DeliveryLedger",
    "LedgerNamespace",
    "ledger_namespace",
    # coordination
    "DeliveryCoordinator",
    "SubmitOptions",
    "SubmitSummary",
    "pair_up",
    "windows",
]
