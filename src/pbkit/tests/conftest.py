"""Shared fakes: manual clock, recording sleep, and an httpx-mocked client."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import orjson
import pytest

from pbkit.cache import ApiCache
from pbkit.client import ProductBoardClient
from pbkit.config import PBSettings
from pbkit.logging import configure_logging
from pbkit.ratelimit import RateLimiter

BASE_URL = "https://api.productboard.com"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that records delays and advances a FakeClock instead of waiting."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.advance(delay)


class Recorder:
    """Wraps a request handler and keeps every request it saw."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def page(items: list[dict[str, Any]], next_cursor: str | None = None) -> dict[str, Any]:
    """Build a list response body with an optional next-page link."""
    links = {"next": f"{BASE_URL}/features?pageCursor={next_cursor}"} if next_cursor else {}
    return {"data": items, "links": links}


def make_client(
    handler: Handler,
    *,
    clock: FakeClock | None = None,
    rate_limit: int = 100,
    **settings: Any,
) -> tuple[ProductBoardClient, Recorder, RecordingSleep]:
    clock = clock or FakeClock()
    sleep = RecordingSleep(clock)
    recorder = Recorder(handler)
    config = PBSettings(api_token="test-token", _env_file=None, **settings)  # type: ignore[call-arg]
    http = httpx.AsyncClient(base_url=config.api_base_url, transport=httpx.MockTransport(recorder))
    client = ProductBoardClient(
        config,
        cache=ApiCache(default_ttl=config.cache_ttl_seconds, clock=clock),
        rate_limiter=RateLimiter.per_minute(rate_limit, clock=clock, sleep=sleep),
        http_client=http,
        sleep=sleep,
    )
    return client, recorder, sleep


# Workspace used by the tool and host tests
TOOL_NAMES = [
    "pb_feature_create", "pb_feature_list", "pb_feature_get", "pb_feature_update",
    "pb_feature_delete", "pb_feature_search",
    "pb_product_list", "pb_product_get", "pb_product_hierarchy",
    "pb_note_create", "pb_note_list", "pb_note_attach",
    "pb_search", "pb_user_list", "pb_user_current",
]


def api(request: httpx.Request) -> httpx.Response:
    path, method = request.url.path, request.method
    if method == "POST" and path == "/features":
        body = orjson.loads(request.content)["data"]
        return httpx.Response(201, json={"data": {"id": "f9", **body, "links": {"html": "https://pb/f9"}}})
    match path:
        case "/features":
            return httpx.Response(200, json=page([
                {"id": "f1", "name": "Dark mode", "status": "new",
                 "description": "<p>Support <b>dark</b> themes</p>", "owner": {"email": "a@x.io"}},
            ]))
        case "/features/f1":
            return httpx.Response(200, json={"data": {"id": "f1", "name": "Dark mode", "createdAt": "2024-01-01"}})
        case "/products/p1":
            return httpx.Response(200, json={"data": {"id": "p1", "name": "Web"}})
        case "/components":
            return httpx.Response(200, json=page([
                {"id": "c1", "name": "Themes", "parent": {"product": {"id": "p1"}}},
            ]))
        case "/users":
            return httpx.Response(200, json=page([{"id": "u1", "email": "a@x.io", "name": "Ann"}]))
    return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture(autouse=True)
def quiet_logs() -> None:
    configure_logging(format="none")
