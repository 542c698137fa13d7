from .registry import BATCHES_TOTAL, POINTS_SKIPPED_TOTAL, TRANSPORT_LATENCY

__all__ = [
    "BATCHES_TOTAL",
    "POINTS_SKIPPED_TOTAL",
    "TRANSPORT_LATENCY",
]
