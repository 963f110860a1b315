"""HTTP forwarding to the upstream ERPNext host."""

import json
import time

import httpx
from fastapi import Response

from core.exceptions import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError
from core.protocols import RequestLogger
from core.request_types import PreparedForward

PROXY_ERROR = "Proxy error occurred"


def proxy_error_response(details: str) -> Response:
    """Build the 500 JSON payload returned for any forwarding failure."""
    return Response(
        content=json.dumps({"error": PROXY_ERROR, "details": details}),
        status_code=500,
        media_type="application/json",
    )


class UpstreamClient:
    """Replay prepared requests against the upstream and relay the answer."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    async def forward(self, prepared: PreparedForward, logger: RequestLogger) -> Response:
        """Forward a request; any upstream status is relayed unchanged."""
        started = time.perf_counter()
        try:
            response = await self._send(prepared)
        except UpstreamError as e:
            logger.log_error(e.target or prepared.target, 500, str(e))
            return proxy_error_response(str(e))

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log_response(
            prepared.method,
            prepared.target,
            prepared.url,
            response.status_code,
            elapsed_ms,
        )
        if response.status_code >= 400:
            logger.log_error(prepared.target, response.status_code, response.text)

        return Response(
            content=response.content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type", "application/json"),
        )

    async def _send(self, prepared: PreparedForward) -> httpx.Response:
        """Execute the request, mapping transport failures to proxy errors."""
        try:
            return await self._client.request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=prepared.body,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"Upstream timeout after {self._timeout:g}s: {prepared.url}",
                target=prepared.target,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(
                f"Upstream connection error: {_describe(e)}",
                target=prepared.target,
            ) from e
        except httpx.InvalidURL as e:
            raise UpstreamConnectionError(
                f"Invalid upstream URL: {e}",
                target=prepared.target,
            ) from e


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__
