"""pbkit - ProductBoard tools for AI agents.

An async ProductBoard API client with response caching, token-bucket rate
limiting and retry on transient failures, exposed as 15 agent tools.

Quick Start:
    >>> from pbkit import PBSettings, ProductBoardClient, create_tools
    >>> client = ProductBoardClient(PBSettings(api_token="pb-xxx"))
    >>> tools = {t.metadata.name: t for t in create_tools(client)}
    >>> print(await tools["pb_feature_search"].acall(query="dark mode"))

Hosts:
    >>> from pbkit.plugin import register      # agent-host plugin seam
    >>> from pbkit.mcp import serve_mcp        # MCP server (pip install pbkit[mcp])
"""

from .cache import ApiCache
from .client import ProductBoardClient
from .config import PBSettings, get_settings
from .core import BaseTool, ToolMetadata, ToolParams
from .errors import ApiError, ErrorKind, ToolError
from .logging import configure_logging, get_logger
from .ratelimit import RateLimiter
from .registry import ToolRegistry
from .retry import DEFAULT_RETRY, RetryPolicy
from .tools import create_tools

__version__ = "0.1.0"

__all__ = [
    "ProductBoardClient", "PBSettings", "get_settings",
    "ApiCache", "RateLimiter", "RetryPolicy", "DEFAULT_RETRY",
    "ApiError", "ErrorKind", "ToolError",
    "BaseTool", "ToolMetadata", "ToolParams", "ToolRegistry", "create_tools",
    "configure_logging", "get_logger",
    "__version__",
]
