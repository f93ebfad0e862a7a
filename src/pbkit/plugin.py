"""Agent-host registration entry point.

A host calls `register(api)` with its plugin API object. The plugin builds
one ProductBoardClient from the host config, registers all tools against it
and, when an event loop is running, validates the token in the background.

Example:
    >>> from pbkit.plugin import register
    >>> client = register(host_api)  # host_api.config = {"apiToken": "pb-xxx"}
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .client import ProductBoardClient
from .config import PBSettings
from .logging import get_logger
from .registry import ToolRegistry

log = get_logger("pbkit.plugin")

# Host config key -> settings field
CONFIG_KEYS: dict[str, str] = {
    "apiToken": "api_token",
    "apiBaseUrl": "api_base_url",
    "cacheTtlSeconds": "cache_ttl_seconds",
    "cacheMaxEntries": "cache_max_entries",
    "rateLimitPerMinute": "rate_limit_per_minute",
    "requestTimeout": "request_timeout",
    "maxRetries": "max_retries",
}

_background: set[asyncio.Task[bool]] = set()


@runtime_checkable
class PluginAPI(Protocol):
    """What a host must provide: its config mapping and a tool registration hook."""

    config: Mapping[str, Any]

    def register_tool(self, definition: dict[str, Any]) -> None: ...


def settings_from_config(config: Mapping[str, Any]) -> PBSettings:
    """Build settings from host config (camelCase or snake_case keys).

    The token must come from the config. Other absent keys fall back to
    PRODUCTBOARD_* environment variables and then defaults.

    Raises:
        ValueError: If no API token is configured
    """
    values = {CONFIG_KEYS.get(k, k): v for k, v in config.items() if v is not None}
    values = {k: v for k, v in values.items() if k in PBSettings.model_fields}
    if not str(values.get("api_token") or "").strip():
        log.error("ProductBoard API token is required")
        raise ValueError("ProductBoard API token is required. Set it in plugin configuration.")
    return PBSettings(**values)


def register(api: PluginAPI) -> ProductBoardClient:
    """Register every ProductBoard tool with the host. Returns the shared client."""
    settings = settings_from_config(api.config)
    log.info("initializing ProductBoard plugin", base_url=settings.api_base_url)

    client = ProductBoardClient(settings)
    _schedule_token_validation(client)

    registry = ToolRegistry.for_client(client)
    for definition in registry.definitions():
        api.register_tool(definition)
        log.debug("registered tool", tool=definition["name"])

    log.info("ProductBoard plugin initialized", tools=len(registry))
    return client


def _schedule_token_validation(client: ProductBoardClient) -> None:
    """Validate the token without blocking registration. Any failure only logs a warning."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        log.debug("no running event loop, skipping token validation")
        return
    task = loop.create_task(client.validate_token())
    _background.add(task)
    task.add_done_callback(_validation_done)


def _validation_done(task: asyncio.Task[bool]) -> None:
    _background.discard(task)
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        log.warning("token validation failed", error=str(exc), error_type=type(exc).__name__)
