"""
Datadog metrics intake transport.

Posts batches of gauge series to the v2 ``/api/v2/series`` endpoint using an
``httpx.AsyncClient``. Any failure surfaces as TransportFailure.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

import httpx
from loguru import logger

from .audit import SERIES_ENDPOINT
from .errors import TransportFailure
from .models import MetricPoint


class MetricsTransport(Protocol):
    """Anything that can deliver one batch of metric points.

    Implementations return an acknowledgment on success and raise on failure,
    preferably TransportFailure.
    """

    async def submit_batch(self, points: Sequence[MetricPoint]) -> Any: ...


class DatadogTransport:
    """
    Async Datadog v2 series submitter.

    Usage:
        async with DatadogTransport(api_key=settings.DD_API_KEY) as transport:
            await transport.submit_batch(points)
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        site: str = "datadoghq.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("DD_API_KEY environment variable is required")
        self._api_key = api_key
        self._url = f"https://api.{site}{SERIES_ENDPOINT}"
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> "DatadogTransport":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
            logger.debug(f"Datadog transport started: {self._url}")

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("Datadog transport stopped")

    async def submit_batch(self, points: Sequence[MetricPoint]) -> Any:
        """POST one batch; returns the decoded acknowledgment body."""
        await self.start()
        body = {"series": [p.to_series() for p in points]}
        headers = {
            "DD-API-KEY": self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = await self._client.post(self._url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"{e.response.status_code}: {e.response.text.strip()}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e

        ack = self._decode_ack(response)
        errors = ack.get("errors") if isinstance(ack, dict) else None
        if errors:
            raise TransportFailure("; ".join(str(err) for err in errors))

        logger.debug(f"Datadog accepted {len(points)} series (status={response.status_code})")
        return ack

    @staticmethod
    def _decode_ack(response: httpx.Response) -> Any:
        """2xx body as JSON; an undecodable body is kept as an opaque acknowledgment."""
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Non-JSON acknowledgment (status={response.status_code}): {response.text!r}")
            return {"raw": response.text}
