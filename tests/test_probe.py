"""Unit tests for HTTP probe classification (sitecheck.probe); httpx.MockTransport, no network."""
import asyncio
import time

import httpx
import pytest
from sitecheck.probe import HttpProber, _interpret, classify_status_code
from sitecheck.state import State


@pytest.mark.parametrize("code", [200, 204, 299, 301, 302, 304, 399])
def test_classify_up(code):
    assert classify_status_code(code) == State.UP


@pytest.mark.parametrize("code", [100, 199, 400, 404, 500, 503])
def test_classify_down(code):
    assert classify_status_code(code) == State.DOWN


def test_classify_no_status_is_unknown():
    assert classify_status_code(None) == State.UNKNOWN


def test_interpret_ok():
    r = _interpret(200, 12.34)
    assert r.status == State.UP
    assert r.reason == "OK"
    assert r.latency_ms == 12.3


def test_interpret_http_error():
    r = _interpret(503, 5.0)
    assert r.status == State.DOWN
    assert r.reason == "HTTP 503"
    assert r.status_code == 503


def _prober(handler):
    return HttpProber(timeout=1, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_probe_success():
    prober = _prober(lambda request: httpx.Response(200))
    result = await prober.probe("https://example.com")
    await prober.aclose()
    assert result.status == State.UP
    assert result.status_code == 200
    assert result.latency_ms is not None


@pytest.mark.asyncio
async def test_probe_redirect_not_followed_counts_up():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(301, headers={"Location": "https://example.com/elsewhere"})

    prober = _prober(handler)
    result = await prober.probe("https://example.com")
    await prober.aclose()
    assert result.status == State.UP
    assert seen == ["https://example.com"]


@pytest.mark.asyncio
async def test_probe_server_error():
    prober = _prober(lambda request: httpx.Response(500))
    result = await prober.probe("https://example.com")
    await prober.aclose()
    assert result.status == State.DOWN
    assert result.reason == "HTTP 500"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc, reason",
    [
        (httpx.ConnectTimeout("timed out"), "TIMEOUT"),
        (httpx.ReadTimeout("timed out"), "TIMEOUT"),
        (httpx.ConnectError("refused"), "UNREACHABLE"),
        (httpx.RemoteProtocolError("garbage"), "ERROR:RemoteProtocolError"),
    ],
)
async def test_probe_transport_errors_are_down(exc, reason):
    def handler(request):
        raise exc

    prober = _prober(handler)
    result = await prober.probe("https://example.com")
    await prober.aclose()
    assert result.status == State.DOWN
    assert result.status_code is None
    assert result.reason == reason



@pytest.mark.asyncio
async def test_stalled_server_times_out_within_bound():
    async def handler(request):
        await asyncio.sleep(30)
        return httpx.Response(200)

    prober = HttpProber(timeout=0.2, transport=httpx.MockTransport(handler))
    start = time.perf_counter()
    result = await prober.probe("https://example.com")
    elapsed = time.perf_counter() - start
    await prober.aclose()
    assert result.status == State.DOWN
    assert result.reason == "TIMEOUT"
    assert elapsed < 2


@pytest.mark.asyncio
async def test_endless_body_is_not_downloaded():
    async def endless():
        while True:
            yield b"x"
            await asyncio.sleep(0.5)

    prober = _prober(lambda request: httpx.Response(200, content=endless()))
    start = time.perf_counter()
    result = await prober.probe("https://example.com")
    elapsed = time.perf_counter() - start
    await prober.aclose()
    assert result.status == State.UP
    assert result.status_code == 200
    assert elapsed < 1
