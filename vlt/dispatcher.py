"""Sends outbound requests to the target host and reports one result line each."""

import logging
import time

import httpx

from vlt.models import DispatchResult, OutboundRequest
from vlt.stats import ReplayStats

results_logger = logging.getLogger("vlt.results")

# No body is ever replayed, so the source request's body framing is not sent.
BODY_FRAMING_HEADERS = frozenset({"content-length", "transfer-encoding"})


def elapsed_ms(start: float, end: float) -> int:
    """Whole milliseconds between two clock readings, never less than 1."""
    # Clocks in some VMs can report zero or even negative intervals.
    return max(int((end - start) * 1000), 1)


def wire_headers(headers) -> list[tuple[str, str]]:
    """Headers to send: everything except Content-Length and Transfer-Encoding."""
    return [(k, v) for k, v in headers if k.lower() not in BODY_FRAMING_HEADERS]


def build_client(timeout: float = 5.0, verify_tls: bool = True) -> httpx.AsyncClient:
    """Shared client for all dispatch tasks. Redirects are never followed."""
    return httpx.AsyncClient(
        timeout=timeout,
        verify=verify_tls,
        follow_redirects=False,
        limits=httpx.Limits(max_connections=None),
    )


class Dispatcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        stats: ReplayStats | None = None,
        clock=time.monotonic,
    ):
        self._client = client
        self._stats = stats
        self._clock = clock

    async def dispatch(self, outbound: OutboundRequest) -> DispatchResult:
        """Send *outbound* once. Transport failures are reported, never raised."""
        status_code = None
        error = None
        start = self._clock()
        try:
            # A bare Request keeps the client from adding its own default headers.
            request = httpx.Request(
                outbound.method, outbound.url, headers=wire_headers(outbound.headers)
            )
            # Only the status line and headers matter, the body is never read.
            response = await self._client.send(
                request, stream=True, follow_redirects=False
            )
            end = self._clock()
            status_code = response.status_code
            await response.aclose()
        except Exception as e:
            # h11 protocol errors can escape httpx unwrapped; every failure
            # still ends up as this request's result line.
            end = self._clock()
            error = str(e) or type(e).__name__

        result = DispatchResult(
            method=outbound.method,
            display_url=outbound.display_url,
            elapsed_ms=elapsed_ms(start, end),
            status_code=status_code,
            error=error,
        )
        results_logger.info(
            "[%dms] [%s] %s %s",
            result.elapsed_ms,
            status_code if result.ok else error,
            result.method,
            result.display_url,
        )
        if self._stats is not None:
            self._stats.record(result)
        return result
