import pytest
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from agriconnect import middleware
from agriconnect.middleware import RateLimitMiddleware


async def _app(scope, receive, send):
    pass


def _request(ip):
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "client": (ip, 5000)})


async def _ok(request):
    return PlainTextResponse("ok")


def test_prune_forgets_idle_clients():
    limiter = RateLimitMiddleware(_app, rate_limit=5)
    limiter.requests["10.0.0.1"] = [10.0]
    limiter.requests["10.0.0.2"] = [10.0, 95.0]
    limiter.requests["10.0.0.3"] = []

    limiter.prune(now=100.0)

    assert dict(limiter.requests) == {"10.0.0.2": [10.0, 95.0]}


@pytest.mark.asyncio
async def test_dispatch_limits_per_ip_and_drops_idle_ips(monkeypatch):
    limiter = RateLimitMiddleware(_app, rate_limit=2)
    now = [1000.0]
    monkeypatch.setattr(middleware.time, "time", lambda: now[0])

    for _ in range(2):
        assert (await limiter.dispatch(_request("10.0.0.1"), _ok)).status_code == 200
    assert (await limiter.dispatch(_request("10.0.0.1"), _ok)).status_code == 429

    now[0] += 120
    assert (await limiter.dispatch(_request("10.0.0.2"), _ok)).status_code == 200
    assert "10.0.0.1" not in limiter.requests
