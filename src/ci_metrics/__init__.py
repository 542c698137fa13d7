"""
CI Workflow Metrics Shipper

Turns warehouse exports of CI workflow runs into Datadog gauge series and
submits each workflow run at most once per confirmed delivery, with a
rehearsal (dry-run) mode that makes no network calls.

Usage:
    from ci_metrics import DatadogTransport, DeliveryCoordinator, SubmitOptions, transform_records

    points, workflow_ids = transform_records(rows)
    async with DatadogTransport(api_key="...") as transport:
        coord = DeliveryCoordinator(transport, SubmitOptions(batch_size=10))
        await coord.submit(points, workflow_ids)
"""

from .audit import AuditLogWriter
from .coordinator import (
    DeliveryCoordinator,
    DeliveryLedger,
    LedgerNamespace,
    SubmitOptions,
    SubmitSummary,
    ledger_namespace,
)
from .errors import (
    CiMetricsError,
    LedgerIOFailure,
    PairingMismatch,
    TransportFailure,
    UnknownTransportFailure,
)
from .models import MetricIntakeType, MetricPoint, WorkflowRecord
from .transformers import transform_record, transform_records
from .transport import DatadogTransport, MetricsTransport

__version__ = "1.0.0"
__all__ = [
    "AuditLogWriter",
    "DeliveryCoordinator",
    "DeliveryLedger",
    "LedgerNamespace",
    "SubmitOptions",
    "SubmitSummary",
    "ledger_namespace",
    "CiMetricsError",
    "LedgerIOFailure",
    "PairingMismatch",
    "TransportFailure",
    "UnknownTransportFailure",
    "MetricIntakeType",
    "MetricPoint",
    "WorkflowRecord",
    "transform_record",
    "transform_records",
    "DatadogTransport",
    "MetricsTransport",
]
