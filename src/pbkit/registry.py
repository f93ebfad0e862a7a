"""Central registry for tool discovery and management.

The registry provides:
- Tool registration and lookup by name
- Tool definitions for agent hosts
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from .core import BaseTool

if TYPE_CHECKING:
    from .client import ProductBoardClient


class ToolRegistry:
    """Registry of tool instances keyed by name.

    Example:
        >>> registry = ToolRegistry.for_client(client)
        >>> registry.get("pb_feature_list")
        <ListFeaturesTool pb_feature_list>
        >>> len(registry)
        15
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool[BaseModel]] = {}

    @classmethod
    def for_client(cls, client: ProductBoardClient) -> ToolRegistry:
        """Registry holding every ProductBoard tool bound to `client`."""
        from .tools import create_tools

        registry = cls()
        registry.register_all(*create_tools(client))
        return registry

    def register(self, tool: BaseTool[BaseModel]) -> None:
        """Register a tool instance with validation."""
        name = tool.metadata.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered.")
        self._tools[name] = tool

    def register_all(self, *tools: BaseTool[BaseModel]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> BaseTool[BaseModel] | None:
        return self._tools.get(name)

    def __getitem__(self, name: str) -> BaseTool[BaseModel]:
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool[BaseModel]]:
        return iter(self._tools.values())

    def categories(self) -> set[str]:
        return {t.metadata.category for t in self._tools.values()}

    def definitions(self, *, enabled_only: bool = True) -> list[dict[str, Any]]:
        """Host-facing tool definitions: name, description, parameters, execute."""
        return [
            {
                "name": tool.metadata.name,
                "description": tool.metadata.description,
                "parameters": tool.json_schema(),
                "execute": tool.acall,
            }
            for tool in self._tools.values()
            if not enabled_only or tool.metadata.enabled
        ]
