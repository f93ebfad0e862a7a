"""MCP server exposing the ProductBoard tools.

Example:
    >>> from pbkit.mcp import serve_mcp
    >>> serve_mcp()  # stdio, settings from PRODUCTBOARD_* env vars

Requires: pip install pbkit[mcp]
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any, Literal

from ..errors import ErrorKind, ToolError
from ..logging import configure_logging, get_logger

if TYPE_CHECKING:
    from ..config import PBSettings
    from ..registry import ToolRegistry

Transport = Literal["stdio", "sse", "streamable-http"]

log = get_logger("pbkit.mcp")


class ToolServer:
    """Transport-independent tool listing and invocation over a registry."""

    __slots__ = ("_name", "_registry")

    def __init__(self, name: str, registry: ToolRegistry) -> None:
        self._name = name
        self._registry = registry

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def list_tools(self) -> list[dict[str, Any]]:
        """List all enabled tools with schemas."""
        from .bridge import get_required_params, get_tool_properties

        return [
            {
                "name": tool.metadata.name,
                "description": tool.metadata.description,
                "category": tool.metadata.category,
                "parameters": {
                    "type": "object",
                    "properties": get_tool_properties(tool),
                    "required": get_required_params(tool),
                },
            }
            for tool in self._registry
            if tool.metadata.enabled
        ]

    async def invoke(self, tool_name: str, params: dict[str, object]) -> str:
        """Invoke a tool by name. Returns a rendered error string on failure instead of raising."""
        tool = self._registry.get(tool_name)
        if tool is None:
            return ToolError.create(
                tool_name, f"Tool '{tool_name}' not found", ErrorKind.NOT_FOUND, recoverable=False,
            ).render()
        return await tool.acall(**params)


class MCPServer(ToolServer):
    """FastMCP-backed server for MCP clients.

    Example:
        >>> server = MCPServer("productboard", registry)
        >>> server.run(transport="sse", port=8080)
    """

    __slots__ = ("_mcp",)

    def __init__(self, name: str, registry: ToolRegistry) -> None:
        super().__init__(name, registry)
        self._mcp = self._create_server()

    def _create_server(self) -> Any:
        try:
            from fastmcp import FastMCP
        except ImportError as e:
            raise ImportError(
                "MCP integration requires fastmcp. "
                "Install with: pip install pbkit[mcp]"
            ) from e

        from .bridge import registry_to_handlers

        mcp = FastMCP(self._name)
        for name, handler in registry_to_handlers(self._registry).items():
            mcp.tool(name=name, description=handler.__doc__)(handler)
        return mcp

    def run(self, transport: Transport = "stdio", *, host: str = "127.0.0.1", port: int = 8080) -> None:
        """Start the server (blocking)."""
        log.info("starting MCP server", server=self._name, transport=transport, tools=len(self._registry))
        if transport == "stdio":
            self._mcp.run()
        else:
            self._mcp.run(transport=transport, host=host, port=port)

    @property
    def fastmcp(self) -> Any:
        return self._mcp


def serve_mcp(
    settings: PBSettings | None = None,
    *,
    name: str = "productboard",
    transport: Transport = "stdio",
    host: str = "127.0.0.1",
    port: int = 8080,
) -> None:
    """Build a client and registry from settings and serve all tools over MCP."""
    from ..client import ProductBoardClient
    from ..config import get_settings
    from ..registry import ToolRegistry

    settings = settings or get_settings()
    # stdout carries the stdio protocol, so logs go to stderr
    configure_logging(settings.logging.format, settings.logging.level, output=sys.stderr)
    client = ProductBoardClient(settings)
    MCPServer(name, ToolRegistry.for_client(client)).run(transport, host=host, port=port)
