"""ProductBoard REST API client.

Every outbound call takes a rate-limit token, is sent over a shared httpx
client with bearer auth, and on failure is classified through the error
taxonomy and retried when transient. Reads are cached per method and
parameters; writes invalidate every cached family they could make stale.

Example:
    >>> from pbkit import PBSettings, ProductBoardClient
    >>> async with ProductBoardClient(PBSettings(api_token="pb-xxx")) as client:
    ...     features = await client.list_features(ListFeaturesParams(status="new", limit=20))
    ...     hits = await client.search_features("dark mode")
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar
from urllib.parse import parse_qs, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from ..cache import ApiCache
from ..config import PBSettings
from ..errors import ApiError, ErrorKind, parse_api_error, transport_error
from ..logging import get_logger
from ..ratelimit import RateLimiter
from ..retry import RetryPolicy
from .models import (
    Component,
    Feature,
    FeatureInput,
    ListFeaturesParams,
    ListNotesParams,
    Note,
    NoteInput,
    Product,
    ProductHierarchy,
    SearchResult,
    SearchType,
    User,
)

log = get_logger("pbkit.client")

M = TypeVar("M", bound=BaseModel)

MAX_PAGE_SIZE = 100
FEATURE_SEARCH_SCAN = 500
SEARCH_SCAN = 100
HIERARCHY_SCAN = 500
NOTE_SNIPPET_LENGTH = 200

# Cache key namespaces (one per read method)
FEATURE_LIST = "pb_feature_list"
FEATURE_GET = "pb_feature_get"
FEATURE_SEARCH = "pb_feature_search"
PRODUCT_LIST = "pb_product_list"
PRODUCT_GET = "pb_product_get"
COMPONENT_LIST = "pb_component_list"
PRODUCT_HIERARCHY = "pb_product_hierarchy"
NOTE_LIST = "pb_note_list"
NOTE_GET = "pb_note_get"
USER_LIST = "pb_user_list"
GLOBAL_SEARCH = "pb_search"


def next_cursor(next_link: str | None) -> str | None:
    """Extract the pageCursor query value from a `links.next` URL."""
    if not next_link:
        return None
    values = parse_qs(urlsplit(next_link).query).get("pageCursor")
    return values[0] if values and values[0] else None


def _matches(query: str, *fields: str | None) -> bool:
    return any(query in f.lower() for f in fields if f)


class ProductBoardClient:
    """Async client for the ProductBoard public API.

    Owns one cache and one rate limiter (built from settings unless injected);
    every tool sharing this client shares both.

    Args:
        settings: Token, base URL, TTL, rate limit and timeout configuration
        cache: Response cache override
        rate_limiter: Limiter override
        retry_policy: Retry policy override (default: 3 retries)
        http_client: Pre-built httpx client (not closed by `aclose`)
        sleep: Async sleep used for retry backoff
    """

    def __init__(
        self,
        settings: PBSettings,
        *,
        cache: ApiCache | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.base_url = settings.api_base_url
        self.cache = cache or ApiCache(
            default_ttl=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        self.rate_limiter = rate_limiter or RateLimiter.per_minute(settings.rate_limit_per_minute)
        self.retry_policy = retry_policy or RetryPolicy(max_retries=settings.max_retries)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=settings.request_timeout)
        self._sleep = sleep
        self._headers = {
            "Authorization": f"Bearer {settings.api_token.get_secret_value()}",
            "Content-Type": "application/json",
            "X-Version": "1",
        }

    async def __aenter__(self) -> ProductBoardClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ─────────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        url: str,
        params: Mapping[str, Any] | None,
        json: Any,
    ) -> Any:
        """Issue one HTTP call. Raises a classified ApiError on any failure."""
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers,
                timeout=self.settings.request_timeout,
            )
        except httpx.RequestError as e:  # includes timeouts and redirect loops
            raise transport_error(e) from e

        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            raise parse_api_error(response.status_code, body, response.headers.get("retry-after"))

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                ErrorKind.UNKNOWN, response.status_code, f"Invalid JSON in response: {e}",
            ) from e

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request with rate limiting and bounded retries.

        Non-retryable errors propagate on first occurrence; retryable ones are
        retried up to `retry_policy.max_retries` times, after which the last
        error propagates.
        """
        attempt = 0
        while True:
            await self.rate_limiter.acquire()
            try:
                return await self._send(method, url, params, json)
            except ApiError as e:
                if not self.retry_policy.should_retry(e, attempt):
                    raise
                delay = self.retry_policy.get_delay(e, attempt)
                log.warning(
                    "retrying request",
                    method=method, url=url, kind=e.kind.value, status=e.status_code,
                    attempt=attempt + 1, max_retries=self.retry_policy.max_retries, delay=delay,
                )
                if self.retry_policy.on_retry:
                    self.retry_policy.on_retry(attempt, e, delay)
                await self._sleep(delay)
                attempt += 1

    async def paginate(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        max_items: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch a cursor-paginated list, page by page in order.

        Stops when no next cursor is returned, or once `max_items` results are
        accumulated (the result is then truncated to exactly `max_items` and no
        further page is requested).
        """
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        page_size = min(max_items or MAX_PAGE_SIZE, MAX_PAGE_SIZE)

        while True:
            query: dict[str, Any] = {**(params or {}), "limit": page_size}
            if cursor:
                query["pageCursor"] = cursor
            page = await self.request("GET", endpoint, params=query) or {}
            results.extend(page.get("data") or [])

            if max_items and len(results) >= max_items:
                return results[:max_items]

            cursor = next_cursor((page.get("links") or {}).get("next"))
            if cursor is None:
                return results

    @staticmethod
    def _validate(data: Any, model: type[M]) -> M:
        """Build a record from response data. Malformed records raise an `unknown` ApiError."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiError(
                ErrorKind.UNKNOWN, 0, f"Unexpected {model.__name__} record in response: {e}",
            ) from e

    @classmethod
    def _unwrap(cls, result: Any, model: type[M]) -> M:
        """Validate the `data` envelope of a single-record response."""
        return cls._validate((result or {}).get("data") or {}, model)

    async def _get_one(self, url: str, model: type[M]) -> M:
        return self._unwrap(await self.request("GET", url), model)

    async def _list(
        self,
        endpoint: str,
        model: type[M],
        params: Mapping[str, Any] | None = None,
        max_items: int | None = None,
    ) -> list[M]:
        return [self._validate(item, model) for item in await self.paginate(endpoint, params, max_items)]

    def _invalidate(self, *prefixes: str) -> None:
        for prefix in prefixes:
            removed = self.cache.invalidate_pattern(f"{prefix}:")
            if removed:
                log.debug("cache invalidated", prefix=prefix, removed=removed)

    def _forget(self, name: str, **params: object) -> None:
        self.cache.delete(ApiCache.make_key(name, params))

    # ─────────────────────────────────────────────────────────────────
    # Features
    # ─────────────────────────────────────────────────────────────────

    async def create_feature(self, params: FeatureInput) -> Feature:
        if not params.name:
            raise ValueError("Feature name is required")
        result = await self.request("POST", "/features", json={"data": params.to_wire()})
        self._invalidate(FEATURE_LIST, FEATURE_SEARCH, GLOBAL_SEARCH)
        return self._unwrap(result, Feature)

    async def list_features(self, params: ListFeaturesParams | None = None) -> list[Feature]:
        params = params or ListFeaturesParams()
        return await self.cache.wrap(
            ApiCache.make_key(FEATURE_LIST, params),
            lambda: self._list("/features", Feature, params.to_query(), params.limit),
        )

    async def get_feature(self, feature_id: str) -> Feature:
        return await self.cache.wrap(
            ApiCache.make_key(FEATURE_GET, {"id": feature_id}),
            lambda: self._get_one(f"/features/{feature_id}", Feature),
        )

    async def update_feature(self, feature_id: str, params: FeatureInput) -> Feature:
        result = await self.request("PATCH", f"/features/{feature_id}", json={"data": params.to_wire()})
        self._forget(FEATURE_GET, id=feature_id)
        self._invalidate(FEATURE_LIST, FEATURE_SEARCH, GLOBAL_SEARCH)
        return self._unwrap(result, Feature)

    async def delete_feature(self, feature_id: str) -> None:
        await self.request("DELETE", f"/features/{feature_id}")
        self._forget(FEATURE_GET, id=feature_id)
        self._invalidate(FEATURE_LIST, FEATURE_SEARCH, GLOBAL_SEARCH)

    async def search_features(self, query: str, limit: int = 50) -> list[Feature]:
        """Case-insensitive substring match over name and description.

        The API has no feature search, so this scans the first 500 features
        in list order; results are not relevance ranked.
        """
        async def compute() -> list[Feature]:
            needle = query.lower()
            features = await self.list_features(ListFeaturesParams(limit=FEATURE_SEARCH_SCAN))
            return [f for f in features if _matches(needle, f.name, f.description)][:limit]

        return await self.cache.wrap(ApiCache.make_key(FEATURE_SEARCH, {"query": query, "limit": limit}), compute)

    # ─────────────────────────────────────────────────────────────────
    # Products & components
    # ─────────────────────────────────────────────────────────────────

    async def list_products(self, limit: int | None = None) -> list[Product]:
        return await self.cache.wrap(
            ApiCache.make_key(PRODUCT_LIST, {"limit": limit}),
            lambda: self._list("/products", Product, max_items=limit),
        )

    async def get_product(self, product_id: str) -> Product:
        return await self.cache.wrap(
            ApiCache.make_key(PRODUCT_GET, {"id": product_id}),
            lambda: self._get_one(f"/products/{product_id}", Product),
        )

    async def list_components(self, product_id: str | None = None, limit: int | None = None) -> list[Component]:
        query = {"product.id": product_id} if product_id else {}
        return await self.cache.wrap(
            ApiCache.make_key(COMPONENT_LIST, {"product_id": product_id, "limit": limit}),
            lambda: self._list("/components", Component, query, limit),
        )

    async def get_product_hierarchy(self) -> ProductHierarchy:
        """Products and components, fetched concurrently and returned unmerged."""
        async def compute() -> ProductHierarchy:
            products, components = await asyncio.gather(
                self.list_products(limit=HIERARCHY_SCAN),
                self.list_components(limit=HIERARCHY_SCAN),
            )
            return ProductHierarchy(products=products, components=components)

        return await self.cache.wrap(ApiCache.make_key(PRODUCT_HIERARCHY), compute)

    # ─────────────────────────────────────────────────────────────────
    # Notes
    # ─────────────────────────────────────────────────────────────────

    async def create_note(self, params: NoteInput) -> Note:
        result = await self.request("POST", "/notes", json={"data": params.to_wire()})
        self._invalidate(NOTE_LIST, GLOBAL_SEARCH)
        return self._unwrap(result, Note)

    async def list_notes(self, params: ListNotesParams | None = None) -> list[Note]:
        params = params or ListNotesParams()
        return await self.cache.wrap(
            ApiCache.make_key(NOTE_LIST, params),
            lambda: self._list("/notes", Note, params.to_query(), params.limit),
        )

    async def get_note(self, note_id: str) -> Note:
        return await self.cache.wrap(
            ApiCache.make_key(NOTE_GET, {"id": note_id}),
            lambda: self._get_one(f"/notes/{note_id}", Note),
        )

    async def attach_note_to_feature(self, note_id: str, feature_id: str) -> None:
        await self.request(
            "POST",
            f"/notes/{note_id}/connections",
            json={"data": {"feature": {"id": feature_id}}},
        )
        self._forget(NOTE_GET, id=note_id)
        self._forget(FEATURE_GET, id=feature_id)
        self._invalidate(NOTE_LIST)

    # ─────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────

    async def list_users(self, limit: int | None = None) -> list[User]:
        return await self.cache.wrap(
            ApiCache.make_key(USER_LIST, {"limit": limit}),
            lambda: self._list("/users", User, max_items=limit),
        )

    async def check_token(self) -> None:
        """Make a minimal authenticated call; raises ApiError if the token is rejected.

        The public API exposes no current-user endpoint, so access is checked
        with a one-item user list. Never cached.
        """
        await self.request("GET", "/users", params={"limit": 1})

    async def validate_token(self) -> bool:
        """Whether the token is accepted. Logs instead of raising on API errors."""
        try:
            await self.check_token()
        except ApiError as e:
            log.warning("token validation failed", kind=e.kind.value, status=e.status_code, error=e.message)
            return False
        log.info("token validated")
        return True

    # ─────────────────────────────────────────────────────────────────
    # Global search
    # ─────────────────────────────────────────────────────────────────

    async def search(self, query: str, type: SearchType | None = None, limit: int = 50) -> list[SearchResult]:  # noqa: A002
        """Client-side search across features, products, components and notes.

        Each type branch scans a bounded list (features 500, others 100) and
        substring-matches names and descriptions (title and content for
        notes). Results keep type order then list order, truncated to `limit`.
        """
        async def compute() -> list[SearchResult]:
            needle = query.lower()
            results: list[SearchResult] = []

            if type in (None, "feature"):
                results += [
                    SearchResult(type="feature", id=f.id, name=f.name, description=f.description, links=f.links)
                    for f in await self.search_features(needle, limit)
                ]
            if type in (None, "product"):
                products = await self.list_products(limit=SEARCH_SCAN)
                results += [
                    SearchResult(type="product", id=p.id, name=p.name, description=p.description, links=p.links)
                    for p in products if _matches(needle, p.name, p.description)
                ][:limit]
            if type in (None, "component"):
                components = await self.list_components(limit=SEARCH_SCAN)
                results += [
                    SearchResult(type="component", id=c.id, name=c.name, description=c.description, links=c.links)
                    for c in components if _matches(needle, c.name, c.description)
                ][:limit]
            if type in (None, "note"):
                notes = await self.list_notes(ListNotesParams(limit=SEARCH_SCAN))
                results += [
                    SearchResult(
                        type="note", id=n.id, title=n.title,
                        content=n.content[:NOTE_SNIPPET_LENGTH] if n.content else None, links=n.links,
                    )
                    for n in notes if _matches(needle, n.title, n.content)
                ][:limit]

            return results[:limit]

        return await self.cache.wrap(
            ApiCache.make_key(GLOBAL_SEARCH, {"query": query, "type": type, "limit": limit}),
            compute,
        )

    # ─────────────────────────────────────────────────────────────────
    # Utilities
    # ─────────────────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> dict[str, object]:
        return self.cache.stats()

    def rate_limiter_stats(self) -> dict[str, float]:
        return self.rate_limiter.stats()
