"""
Prometheus metrics for the submission pipeline.
Simply import this module at app startup to expose them on the global REGISTRY.
"""

from prometheus_client import Counter, Histogram


# --- Delivery Metrics ---

BATCHES_TOTAL = Counter(
    "ci_metrics_batches_total",
    "Delivery sub-batches processed",
    ["mode", "outcome"],
)

POINTS_SKIPPED_TOTAL = Counter(
    "ci_metrics_points_skipped_total",
    "Metric points skipped because their workflow was already delivered",
    ["mode"],
)

TRANSPORT_LATENCY = Histogram(
    "ci_metrics_transport_latency_seconds",
    "Metrics intake submission latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)
