"""
Custom exceptions for the CI workflow metrics shipper.

Provides structured error kinds so callers can tell a pairing bug from a
rejected submission from a broken ledger.
"""


class CiMetricsError(Exception):
    """Base error for the metrics shipper."""

    pass


class PairingMismatch(CiMetricsError):
    """Metric points and workflow identifiers are not the same length."""

    def __init__(self, points: int, identifiers: int):
        self.points = points
        self.identifiers = identifiers
        super().__init__(f"Mismatch between series ({points}) and workflow IDs ({identifiers})")


class TransportFailure(CiMetricsError):
    """The metrics intake rejected the batch or the request failed."""

    pass


class UnknownTransportFailure(CiMetricsError):
    """The transport raised something that is not a recognised failure."""

    MESSAGE = "Unknown error submitting metrics"

    def __init__(self, message: str = MESSAGE):
        super().__init__(message)


class LedgerIOFailure(CiMetricsError):
    """Delivery ledger storage could not be read or written."""

    pass


def map_transport_error(e: BaseException) -> CiMetricsError:
    import httpx

    if isinstance(e, TransportFailure):
        return e
    if isinstance(e, (httpx.HTTPError, OSError, TimeoutError)):
        return TransportFailure(str(e) or type(e).__name__)
    return UnknownTransportFailure()
