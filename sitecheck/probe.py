"""
HTTP(S) probe via httpx (one streamed GET, redirects not followed, body never read).
The whole request is bounded by asyncio.wait_for, not just each socket operation.
2xx/3xx status line -> UP; any other status -> DOWN; transport errors -> DOWN with a reason.
No status at all -> UNKNOWN (the monitor collapses it to DOWN).
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from sitecheck.state import State

logger = logging.getLogger("sitecheck.probe")

USER_AGENT = "check-websites/1.0"


@dataclass
class ProbeResult:
    status: State
    status_code: Optional[int]  # None if no response
    reason: str  # "OK", "HTTP <code>", "TIMEOUT", "UNREACHABLE", "ERROR:<name>"
    latency_ms: Optional[float] = None


def classify_status_code(status_code: Optional[int]) -> State:
    if status_code is None:
        return State.UNKNOWN
    if 200 <= status_code < 400:
        return State.UP
    return State.DOWN


def _interpret(status_code: Optional[int], elapsed_ms: float) -> ProbeResult:
    status = classify_status_code(status_code)
    if status is State.UP:
        reason = "OK"
    elif status_code is None:
        reason = "NO RESPONSE"
    else:
        reason = f"HTTP {status_code}"
    return ProbeResult(status=status, status_code=status_code, reason=reason, latency_ms=round(elapsed_ms, 1))


class HttpProber:
    """Shared async client; probe() never raises for network failures."""

    def __init__(
        self,
        timeout: float = 10,
        verify_tls: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=verify_tls,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    async def probe(self, url: str) -> ProbeResult:
        start = time.perf_counter()
        try:
            status_code = await asyncio.wait_for(self._status(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return ProbeResult(status=State.DOWN, status_code=None, reason="TIMEOUT")
        except httpx.ConnectError as e:
            logger.debug("%s: %s", url, e)
            return ProbeResult(status=State.DOWN, status_code=None, reason="UNREACHABLE")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("%s: %s", url, e)
            return ProbeResult(status=State.DOWN, status_code=None, reason=f"ERROR:{type(e).__name__}")
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return _interpret(status_code, elapsed_ms)

    async def _status(self, url: str) -> int:
        async with self._client.stream("GET", url) as resp:
            return resp.status_code

    async def aclose(self) -> None:
        await self._client.aclose()
