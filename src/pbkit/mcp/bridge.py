"""Bridge between pbkit tools and MCP tool primitives.

Converts tools to plain async handlers with an introspectable signature so
any MCP server implementation can register them.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from ..core import BaseTool
    from ..registry import ToolRegistry

Handler = Callable[..., Awaitable[str]]


def tool_to_handler(tool: BaseTool[BaseModel]) -> Handler:
    """Convert a tool to an MCP-compatible handler function.

    The handler accepts keyword arguments matching the tool's params_schema,
    validates them via Pydantic and returns the tool's string result.
    """
    async def handler(**kwargs: object) -> str:
        return await tool.acall(**kwargs)

    handler.__name__ = tool.metadata.name
    handler.__doc__ = tool.metadata.description
    handler.__signature__ = _signature(tool.params_schema)  # type: ignore[attr-defined]
    return handler


def _signature(schema: type[BaseModel]) -> inspect.Signature:
    """Keyword-only signature mirroring the schema fields."""
    params = [
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=inspect.Parameter.empty if info.is_required() else info.default,
            annotation=info.annotation or str,
        )
        for name, info in schema.model_fields.items()
    ]
    return inspect.Signature(params, return_annotation=str)


def get_tool_schema(tool: BaseTool[BaseModel]) -> dict[str, Any]:
    """JSON schema of the tool's params for MCP registration."""
    schema = tool.json_schema()
    schema.pop("$defs", None)
    return schema


def get_tool_properties(tool: BaseTool[BaseModel]) -> dict[str, dict[str, Any]]:
    """Cleaned property definitions (no pydantic titles)."""
    return {
        name: {k: v for k, v in prop.items() if k != "title"}
        for name, prop in tool.json_schema().get("properties", {}).items()
    }


def get_required_params(tool: BaseTool[BaseModel]) -> list[str]:
    return list(tool.json_schema().get("required", []))


def registry_to_handlers(registry: ToolRegistry, *, enabled_only: bool = True) -> dict[str, Handler]:
    """Map tool names to handlers for every (enabled) tool in the registry."""
    return {
        tool.metadata.name: tool_to_handler(tool)
        for tool in registry
        if not enabled_only or tool.metadata.enabled
    }
