"""MCP integration: tool bridge and FastMCP server (optional `mcp` extra)."""

from .bridge import get_required_params, get_tool_properties, get_tool_schema, registry_to_handlers, tool_to_handler
from .server import MCPServer, ToolServer, serve_mcp

__all__ = [
    "tool_to_handler", "get_tool_schema", "get_tool_properties", "get_required_params", "registry_to_handlers",
    "ToolServer", "MCPServer", "serve_mcp",
]
