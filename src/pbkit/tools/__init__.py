"""The ProductBoard tool set.

Example:
    >>> tools = create_tools(client)
    >>> [t.metadata.name for t in tools][:3]
    ['pb_feature_create', 'pb_feature_list', 'pb_feature_get']
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .features import (
    FEATURE_TOOLS,
    CreateFeatureTool,
    DeleteFeatureTool,
    GetFeatureTool,
    ListFeaturesTool,
    SearchFeaturesTool,
    UpdateFeatureTool,
)
from .notes import NOTE_TOOLS, AttachNoteTool, CreateNoteTool, ListNotesTool
from .products import PRODUCT_TOOLS, GetProductTool, ListProductsTool, ProductHierarchyTool, build_hierarchy
from .search import SEARCH_TOOLS, CurrentUserTool, ListUsersTool, SearchTool

if TYPE_CHECKING:
    from ..client import ProductBoardClient
    from ..core import BaseTool

ALL_TOOLS = FEATURE_TOOLS + PRODUCT_TOOLS + NOTE_TOOLS + SEARCH_TOOLS


def create_tools(client: ProductBoardClient) -> list[BaseTool[Any]]:
    """Instantiate every tool against one shared client (and so one cache and limiter)."""
    return [cls(client) for cls in ALL_TOOLS]


__all__ = [
    "create_tools", "ALL_TOOLS", "build_hierarchy",
    "CreateFeatureTool", "ListFeaturesTool", "GetFeatureTool", "UpdateFeatureTool",
    "DeleteFeatureTool", "SearchFeaturesTool",
    "ListProductsTool", "GetProductTool", "ProductHierarchyTool",
    "CreateNoteTool", "ListNotesTool", "AttachNoteTool",
    "SearchTool", "ListUsersTool", "CurrentUserTool",
]
