"""Tests for ProductBoardClient: dispatch, retry, pagination, caching, search."""

import httpx
import orjson
import pytest

from pbkit.client import FeatureInput, ListFeaturesParams, NoteInput, next_cursor
from pbkit.errors import ApiError, ErrorKind
from pbkit.retry import NO_RETRY, RetryPolicy

from conftest import BASE_URL, make_client, page


def ok(body: object = None, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=body if body is not None else {"data": {}})


def fail(status: int, message: str = "boom", **headers: str) -> httpx.Response:
    return httpx.Response(status, json={"message": message}, headers=headers)


def sequence(*responses: httpx.Response):
    """Handler returning the given responses in order (the last one repeats)."""
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        r = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(r.status_code, headers=r.headers, content=r.content)

    return handler


FEATURES = [
    {"id": "f1", "name": "Dark mode", "description": "<p>Theme support</p>", "status": "new"},
    {"id": "f2", "name": "Export CSV", "description": "Download data in a DARK corner"},
    {"id": "f3", "name": "SSO login", "description": None},
]


# ─────────────────────────────────────────────────────────────────────────────
# Request dispatch
# ─────────────────────────────────────────────────────────────────────────────


class TestRequest:
    @pytest.mark.asyncio
    async def test_sends_auth_and_version_headers(self) -> None:
        client, rec, _ = make_client(lambda r: ok({"data": {"id": "f1"}}))
        await client.request("GET", "/features/f1")

        headers = rec.requests[0].headers
        assert headers["authorization"] == "Bearer test-token"
        assert headers["x-version"] == "1"
        assert headers["content-type"] == "application/json"
        assert str(rec.requests[0].url) == f"{BASE_URL}/features/f1"

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self) -> None:
        client, _, _ = make_client(lambda r: httpx.Response(204))
        assert await client.request("DELETE", "/features/f1") is None

    @pytest.mark.asyncio
    async def test_retries_server_errors_with_backoff(self) -> None:
        client, rec, sleep = make_client(sequence(fail(500), fail(502), ok({"data": {"id": "f1"}})))

        result = await client.request("GET", "/features/f1")

        assert result == {"data": {"id": "f1"}}
        assert len(rec.requests) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        client, rec, sleep = make_client(sequence(fail(503, "unavailable")))

        with pytest.raises(ApiError) as exc_info:
            await client.request("GET", "/features")

        assert exc_info.value.kind is ErrorKind.SERVER
        assert exc_info.value.message == "unavailable"
        assert len(rec.requests) == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self) -> None:
        client, rec, sleep = make_client(sequence(fail(404, "Feature not found")))

        with pytest.raises(ApiError) as exc_info:
            await client.get_feature("missing")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.status_code == 404
        assert len(rec.requests) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limit_waits_retry_after(self) -> None:
        client, rec, sleep = make_client(sequence(fail(429, **{"Retry-After": "7"}), ok()))
        await client.request("GET", "/features")
        assert sleep.delays == [7.0]
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return ok()

        client, _, sleep = make_client(handler)
        await client.request("GET", "/features")
        assert calls == 2
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_timeout_classified_as_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client, _, _ = make_client(handler)
        client.retry_policy = NO_RETRY
        with pytest.raises(ApiError) as exc_info:
            await client.request("GET", "/features")
        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert exc_info.value.status_code == 0

    @pytest.mark.asyncio
    async def test_other_request_errors_classified_as_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        client, _, _ = make_client(handler)
        client.retry_policy = NO_RETRY
        with pytest.raises(ApiError) as exc_info:
            await client.request("GET", "/features")
        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert "redirects" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_on_retry_hook_sees_each_retry(self) -> None:
        seen: list[tuple[int, ErrorKind, float]] = []
        client, _, _ = make_client(sequence(fail(500), fail(503), ok()))
        client.retry_policy = RetryPolicy(on_retry=lambda attempt, e, delay: seen.append((attempt, e.kind, delay)))
        await client.request("GET", "/features")
        assert seen == [(0, ErrorKind.SERVER, 1.0), (1, ErrorKind.SERVER, 2.0)]

    @pytest.mark.asyncio
    async def test_max_retries_from_settings(self) -> None:
        client, rec, _ = make_client(sequence(fail(500)), max_retries=1)
        with pytest.raises(ApiError):
            await client.request("GET", "/features")
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        client, _, _ = make_client(lambda r: httpx.Response(400, text="Bad things"))
        with pytest.raises(ApiError) as exc_info:
            await client.request("POST", "/features", json={})
        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert exc_info.value.message == "Bad things"

    @pytest.mark.asyncio
    async def test_every_attempt_takes_a_token(self) -> None:
        client, rec, sleep = make_client(sequence(fail(500), ok()), rate_limit=1)
        await client.request("GET", "/features")
        # second attempt waits out the backoff, then the rest of the minute
        assert sleep.delays == [1.0, 59.0]
        assert len(rec.requests) == 2


# ─────────────────────────────────────────────────────────────────────────────
# Pagination
# ─────────────────────────────────────────────────────────────────────────────


def paged_handler(pages: dict[str | None, dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        return ok(pages[request.url.params.get("pageCursor")])
    return handler


THREE_PAGES = {
    None: page([{"id": "1"}, {"id": "2"}], "c2"),
    "c2": page([{"id": "3"}, {"id": "4"}], "c3"),
    "c3": page([{"id": "5"}, {"id": "6"}]),
}


class TestPaginate:
    @pytest.mark.asyncio
    async def test_follows_cursors_in_order(self) -> None:
        client, rec, _ = make_client(paged_handler(THREE_PAGES))

        items = await client.paginate("/features")

        assert [i["id"] for i in items] == ["1", "2", "3", "4", "5", "6"]
        assert len(rec.requests) == 3
        assert [r.url.params.get("pageCursor") for r in rec.requests] == [None, "c2", "c3"]
        assert rec.requests[0].url.params["limit"] == "100"

    @pytest.mark.asyncio
    async def test_max_items_stops_early(self) -> None:
        client, rec, _ = make_client(paged_handler(THREE_PAGES))

        items = await client.paginate("/features", max_items=3)

        assert [i["id"] for i in items] == ["1", "2", "3"]
        assert len(rec.requests) == 2
        assert rec.requests[0].url.params["limit"] == "3"

    @pytest.mark.asyncio
    async def test_passes_filters_through(self) -> None:
        client, rec, _ = make_client(paged_handler(THREE_PAGES))
        await client.list_features(ListFeaturesParams(product_id="p1", status="new", limit=2))

        params = rec.requests[0].url.params
        assert params["product.id"] == "p1"
        assert params["status"] == "new"
        assert len(rec.requests) == 1

    def test_next_cursor(self) -> None:
        assert next_cursor(f"{BASE_URL}/notes?pageLimit=100&pageCursor=abc%3D") == "abc="
        assert next_cursor(f"{BASE_URL}/notes") is None
        assert next_cursor(None) is None


# ─────────────────────────────────────────────────────────────────────────────
# Caching & invalidation
# ─────────────────────────────────────────────────────────────────────────────


class FakeWorkspace:
    """Minimal in-memory features endpoint."""

    def __init__(self) -> None:
        self.features = {f["id"]: dict(f) for f in FEATURES}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == "/features":
            return ok(page(list(self.features.values())))
        if path.startswith("/features/"):
            fid = path.rsplit("/", 1)[1]
            if fid not in self.features:
                return fail(404, "Feature not found")
            if request.method == "PATCH":
                self.features[fid].update(orjson.loads(request.content)["data"])
            if request.method == "DELETE":
                del self.features[fid]
                return httpx.Response(204)
            return ok({"data": self.features[fid]})
        if request.method == "POST" and path == "/features":
            data = {"id": f"f{len(self.features) + 10}", **orjson.loads(request.content)["data"]}
            self.features[data["id"]] = data
            return ok({"data": data}, status=201)
        return fail(404)


class TestCaching:
    @pytest.mark.asyncio
    async def test_identical_reads_hit_cache(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        await client.get_feature("f1")
        await client.get_feature("f1")
        await client.list_features()
        await client.list_features()
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_cache_expires_after_ttl(self) -> None:
        client, rec, sleep = make_client(FakeWorkspace(), cache_ttl_seconds=30)
        await client.get_feature("f1")
        sleep.clock.advance(31)
        await client.get_feature("f1")
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_create_invalidates_lists(self) -> None:
        client, _, _ = make_client(FakeWorkspace())
        assert len(await client.list_features()) == 3

        created = await client.create_feature(FeatureInput(name="Dark sidebar"))

        listed = await client.list_features()
        assert created.id in [f.id for f in listed]
        assert created.id in [f.id for f in await client.search_features("dark")]

    @pytest.mark.asyncio
    async def test_update_refetches_cached_reads(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        assert {f.id: f.status for f in await client.list_features()}["f1"] == "new"
        assert (await client.get_feature("f1")).status == "new"

        await client.update_feature("f1", FeatureInput(status="shipped"))
        sent = len(rec.requests)

        assert {f.id: f.status for f in await client.list_features()}["f1"] == "shipped"
        assert (await client.get_feature("f1")).status == "shipped"
        assert len(rec.requests) == sent + 2

    @pytest.mark.asyncio
    async def test_update_refetches_feature_search(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        assert [f.id for f in await client.search_features("dark")] == ["f1", "f2"]

        await client.update_feature("f2", FeatureInput(description="Download data as a file"))
        sent = len(rec.requests)

        assert [f.id for f in await client.search_features("dark")] == ["f1"]
        assert len(rec.requests) == sent + 1

    @pytest.mark.asyncio
    async def test_delete_refetches_cached_reads(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        assert "f3" in [f.id for f in await client.list_features()]
        await client.get_feature("f3")

        await client.delete_feature("f3")
        sent = len(rec.requests)

        assert [f.id for f in await client.list_features()] == ["f1", "f2"]
        assert len(rec.requests) == sent + 1
        with pytest.raises(ApiError) as exc_info:
            await client.get_feature("f3")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_create_requires_name(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        with pytest.raises(ValueError):
            await client.create_feature(FeatureInput(description="nameless"))
        assert rec.requests == []

    @pytest.mark.asyncio
    async def test_create_sends_data_envelope(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        await client.create_feature(FeatureInput(name="New", status="candidate"))
        assert orjson.loads(rec.requests[-1].content) == {"data": {"name": "New", "status": "candidate"}}

    @pytest.mark.asyncio
    async def test_clear_cache(self) -> None:
        client, rec, _ = make_client(FakeWorkspace())
        await client.get_feature("f1")
        client.clear_cache()
        await client.get_feature("f1")
        assert len(rec.requests) == 2
        assert client.cache_stats()["size"] == 1


# ─────────────────────────────────────────────────────────────────────────────
# Search
# ─────────────────────────────────────────────────────────────────────────────


def workspace_handler(request: httpx.Request) -> httpx.Response:
    match request.url.path:
        case "/features":
            return ok(page(FEATURES))
        case "/products":
            return ok(page([{"id": "p1", "name": "Dark Web App"}, {"id": "p2", "name": "Mobile"}]))
        case "/components":
            return ok(page([{"id": "c1", "name": "Themes", "description": "dark and light"}]))
        case "/notes":
            return ok(page([
                {"id": "n1", "title": "Feedback", "content": "Please add dark mode " + "x" * 300},
                {"id": "n2", "title": "Other", "content": "unrelated"},
            ]))
    return fail(404)


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_features_case_insensitive(self) -> None:
        client, _, _ = make_client(workspace_handler)
        found = await client.search_features("dark")
        assert [f.id for f in found] == ["f1", "f2"]

    @pytest.mark.asyncio
    async def test_search_features_respects_limit(self) -> None:
        client, _, _ = make_client(workspace_handler)
        assert [f.id for f in await client.search_features("DARK", limit=1)] == ["f1"]

    @pytest.mark.asyncio
    async def test_global_search_orders_by_type(self) -> None:
        client, _, _ = make_client(workspace_handler)
        results = await client.search("dark")
        assert [(r.type, r.id) for r in results] == [
            ("feature", "f1"), ("feature", "f2"), ("product", "p1"), ("component", "c1"), ("note", "n1"),
        ]
        assert len(results[-1].content or "") == 200

    @pytest.mark.asyncio
    async def test_global_search_single_type(self) -> None:
        client, rec, _ = make_client(workspace_handler)
        results = await client.search("dark", type="product")
        assert [r.id for r in results] == ["p1"]
        assert rec.paths() == ["/products"]

    @pytest.mark.asyncio
    async def test_global_search_limit(self) -> None:
        client, _, _ = make_client(workspace_handler)
        assert len(await client.search("dark", limit=2)) == 2


# ─────────────────────────────────────────────────────────────────────────────
# Hierarchy, notes, users
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_product_hierarchy_fetches_both_lists() -> None:
    client, rec, _ = make_client(workspace_handler)
    hierarchy = await client.get_product_hierarchy()
    assert [p.id for p in hierarchy.products] == ["p1", "p2"]
    assert [c.id for c in hierarchy.components] == ["c1"]
    assert sorted(rec.paths()) == ["/components", "/products"]


@pytest.mark.asyncio
async def test_attach_note_posts_connection() -> None:
    client, rec, _ = make_client(lambda r: httpx.Response(201))
    await client.attach_note_to_feature("n1", "f1")
    request = rec.requests[0]
    assert (request.method, request.url.path) == ("POST", "/notes/n1/connections")
    assert orjson.loads(request.content) == {"data": {"feature": {"id": "f1"}}}


@pytest.mark.asyncio
async def test_attach_note_refetches_note() -> None:
    connected: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            connected.append({"id": "f1"})
            return httpx.Response(201)
        return ok({"data": {"id": "n1", "content": "a", "features": list(connected)}})

    client, rec, _ = make_client(handler)
    assert (await client.get_note("n1")).features == []
    await client.get_note("n1")

    await client.attach_note_to_feature("n1", "f1")

    assert [f.id for f in (await client.get_note("n1")).features] == ["f1"]
    assert [r.method for r in rec.requests] == ["GET", "POST", "GET"]

@pytest.mark.asyncio
async def test_create_note_invalidates_note_lists() -> None:
    notes = [{"id": "n1", "content": "a"}]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            notes.append({"id": "n2", **orjson.loads(request.content)["data"]})
            return ok({"data": notes[-1]}, status=201)
        return ok(page(notes))

    client, _, _ = make_client(handler)
    assert len(await client.list_notes()) == 1
    await client.create_note(NoteInput(content="b", display_url="https://x"))
    assert len(await client.list_notes()) == 2
    assert notes[-1]["displayUrl"] == "https://x"


class TestToken:
    @pytest.mark.asyncio
    async def test_validate_token_true(self) -> None:
        client, rec, _ = make_client(lambda r: ok(page([])))
        assert await client.validate_token() is True
        assert rec.requests[0].url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_validate_token_false_on_401(self) -> None:
        client, _, _ = make_client(lambda r: fail(401, "Unauthorized"))
        assert await client.validate_token() is False

    @pytest.mark.asyncio
    async def test_check_token_raises_and_is_not_cached(self) -> None:
        client, rec, _ = make_client(lambda r: fail(401, "Unauthorized"))
        for _ in range(2):
            with pytest.raises(ApiError):
                await client.check_token()
        assert len(rec.requests) == 2


@pytest.mark.asyncio
async def test_context_manager_closes_owned_client() -> None:
    from pbkit.client import ProductBoardClient
    from pbkit.config import PBSettings

    async with ProductBoardClient(PBSettings(api_token="t", _env_file=None)) as client:  # type: ignore[call-arg]
        assert client.rate_limiter_stats()["max_tokens"] == 100
    assert client._http.is_closed
