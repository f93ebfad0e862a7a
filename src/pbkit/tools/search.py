"""Workspace search and user tools."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ..client import SearchType
from ..core import BaseTool, EmptyParams, ToolMetadata, ToolParams, compact

# SearchResult.type -> group key in the tool output
GROUPS: dict[str, str] = {
    "feature": "features",
    "product": "products",
    "component": "components",
    "note": "notes",
}


class SearchParams(ToolParams):
    query: str = Field(..., min_length=1, description="Search query text")
    type: SearchType | None = Field(default=None, description="Limit search to one entity type")
    limit: int = Field(default=25, ge=1, le=500, description="Maximum results to return")


class ListUsersParams(ToolParams):
    limit: int = Field(default=100, ge=1, le=500, description="Maximum number of users to return")


class SearchTool(BaseTool[SearchParams]):
    metadata = ToolMetadata(
        name="pb_search",
        description=(
            "Search across features, products, components and notes by text. "
            "Results are grouped by type."
        ),
        category="search",
    )
    params_schema = SearchParams

    async def _execute(self, params: SearchParams) -> dict[str, Any]:
        results = await self.client.search(params.query, params.type, params.limit)
        grouped: dict[str, list[dict[str, Any]]] = {key: [] for key in GROUPS.values()}
        for r in results:
            grouped[GROUPS[r.type]].append(compact({
                "id": r.id,
                "name": r.name or r.title,
                "description": r.description or r.content,
                "url": r.links.html if r.links else None,
            }))
        return {"totalCount": len(results), "query": params.query, "results": grouped}


class ListUsersTool(BaseTool[ListUsersParams]):
    metadata = ToolMetadata(
        name="pb_user_list",
        description="List members of the ProductBoard workspace.",
        category="users",
    )
    params_schema = ListUsersParams

    async def _execute(self, params: ListUsersParams) -> dict[str, Any]:
        users = await self.client.list_users(limit=params.limit)
        return {
            "count": len(users),
            "users": [compact({"id": u.id, "email": u.email, "name": u.name}) for u in users],
        }


class CurrentUserTool(BaseTool[EmptyParams]):
    metadata = ToolMetadata(
        name="pb_user_current",
        description="Check that the configured API token is valid and has access to ProductBoard.",
        category="users",
    )
    params_schema = EmptyParams

    async def _execute(self, params: EmptyParams) -> dict[str, Any]:
        await self.client.check_token()
        return {
            "authenticated": True,
            "message": "API token is valid and has access to ProductBoard",
            "note": "ProductBoard API does not provide current user details. Use pb_user_list to see workspace members.",
        }


SEARCH_TOOLS: tuple[type[BaseTool[Any]], ...] = (SearchTool, ListUsersTool, CurrentUserTool)
