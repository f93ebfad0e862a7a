"""Feature management tools: create, list, get, update, delete, search."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ..client import Feature, FeatureInput, FeatureStatus, ListFeaturesParams, Owner, Parent, Ref, Timeframe
from ..core import BaseTool, ToolMetadata, ToolParams, compact
from ..text import clean_text


class FeatureIdParams(ToolParams):
    id: str = Field(..., min_length=1, description="Feature ID")


class FeatureFieldsParams(ToolParams):
    description: str | None = Field(default=None, description="Detailed description of the feature (supports HTML)")
    status: FeatureStatus | None = Field(default=None, description="Feature status")
    product_id: str | None = Field(default=None, description="ID of the parent product")
    component_id: str | None = Field(default=None, description="ID of the parent component")
    owner_email: str | None = Field(default=None, description="Email of the feature owner")
    start_date: str | None = Field(default=None, description="Planned start date (ISO 8601)")
    end_date: str | None = Field(default=None, description="Planned end date (ISO 8601)")


class CreateFeatureParams(FeatureFieldsParams):
    name: str = Field(..., min_length=1, description="Name of the feature")
    parent_feature_id: str | None = Field(default=None, description="ID of the parent feature (for sub-features)")


class UpdateFeatureParams(FeatureFieldsParams):
    id: str = Field(..., min_length=1, description="Feature ID to update")
    name: str | None = Field(default=None, description="New name for the feature")


class ListFeaturesToolParams(ToolParams):
    product_id: str | None = Field(default=None, description="Filter by product ID")
    component_id: str | None = Field(default=None, description="Filter by component ID")
    status: FeatureStatus | None = Field(default=None, description="Filter by status")
    owner_id: str | None = Field(default=None, description="Filter by owner ID")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of features to return")


class SearchFeaturesParams(ToolParams):
    query: str = Field(..., min_length=1, description="Search query (matches name and description)")
    limit: int = Field(default=20, ge=1, le=500, description="Maximum results to return")


def build_feature_input(params: CreateFeatureParams | UpdateFeatureParams) -> FeatureInput:
    """Translate flat tool parameters into the nested write body."""
    parent_feature_id = getattr(params, "parent_feature_id", None)
    parent = None
    if params.product_id or params.component_id or parent_feature_id:
        parent = Parent(
            product=Ref(id=params.product_id) if params.product_id else None,
            component=Ref(id=params.component_id) if params.component_id else None,
            feature=Ref(id=parent_feature_id) if parent_feature_id else None,
        )
    timeframe = None
    if params.start_date or params.end_date:
        timeframe = Timeframe(start_date=params.start_date, end_date=params.end_date)
    return FeatureInput(
        name=params.name,
        description=params.description,
        status=params.status,
        parent=parent,
        owner=Owner(email=params.owner_email) if params.owner_email else None,
        timeframe=timeframe,
    )


def feature_ref(feature: Feature) -> dict[str, Any]:
    return compact({
        "id": feature.id,
        "name": feature.name,
        "status": feature.status,
        "url": feature.links.html if feature.links else None,
    })


def feature_summary(feature: Feature) -> dict[str, Any]:
    return compact({
        "id": feature.id,
        "name": feature.name,
        "status": feature.status,
        "description": clean_text(feature.description),
        "owner": feature.owner.email if feature.owner else None,
        "url": feature.links.html if feature.links else None,
    })


class CreateFeatureTool(BaseTool[CreateFeatureParams]):
    metadata = ToolMetadata(
        name="pb_feature_create",
        description=(
            "Create a new feature in ProductBoard. Features represent product functionality, "
            "user stories, or items in your product backlog."
        ),
        category="features",
    )
    params_schema = CreateFeatureParams

    async def _execute(self, params: CreateFeatureParams) -> dict[str, Any]:
        feature = await self.client.create_feature(build_feature_input(params))
        return {"success": True, "feature": feature_ref(feature)}


class ListFeaturesTool(BaseTool[ListFeaturesToolParams]):
    metadata = ToolMetadata(
        name="pb_feature_list",
        description="List features in ProductBoard with optional filters by product, component, status or owner.",
        category="features",
    )
    params_schema = ListFeaturesToolParams

    async def _execute(self, params: ListFeaturesToolParams) -> dict[str, Any]:
        features = await self.client.list_features(ListFeaturesParams(**params.model_dump()))
        return {"count": len(features), "features": [feature_summary(f) for f in features]}


class GetFeatureTool(BaseTool[FeatureIdParams]):
    metadata = ToolMetadata(
        name="pb_feature_get",
        description="Get detailed information about a specific feature by ID.",
        category="features",
    )
    params_schema = FeatureIdParams

    async def _execute(self, params: FeatureIdParams) -> dict[str, Any]:
        f = await self.client.get_feature(params.id)
        return compact({
            "id": f.id,
            "name": f.name,
            "description": f.description,
            "status": f.status,
            "owner": f.owner.email if f.owner else None,
            "parent": f.parent.to_wire() if f.parent else None,
            "timeframe": f.timeframe.to_wire() if f.timeframe else None,
            "createdAt": f.created_at,
            "updatedAt": f.updated_at,
            "url": f.links.html if f.links else None,
        })


class UpdateFeatureTool(BaseTool[UpdateFeatureParams]):
    metadata = ToolMetadata(
        name="pb_feature_update",
        description="Update an existing feature in ProductBoard. Only provided fields are changed.",
        category="features",
    )
    params_schema = UpdateFeatureParams

    async def _execute(self, params: UpdateFeatureParams) -> dict[str, Any]:
        feature = await self.client.update_feature(params.id, build_feature_input(params))
        return {"success": True, "feature": feature_ref(feature)}


class DeleteFeatureTool(BaseTool[FeatureIdParams]):
    metadata = ToolMetadata(
        name="pb_feature_delete",
        description="Archive/delete a feature from ProductBoard. The action can be undone in ProductBoard.",
        category="features",
    )
    params_schema = FeatureIdParams

    async def _execute(self, params: FeatureIdParams) -> dict[str, Any]:
        await self.client.delete_feature(params.id)
        return {"success": True, "message": f"Feature {params.id} has been archived"}


class SearchFeaturesTool(BaseTool[SearchFeaturesParams]):
    metadata = ToolMetadata(
        name="pb_feature_search",
        description=(
            "Search features by name or description (case-insensitive substring match "
            "over the first 500 features)."
        ),
        category="features",
    )
    params_schema = SearchFeaturesParams

    async def _execute(self, params: SearchFeaturesParams) -> dict[str, Any]:
        features = await self.client.search_features(params.query, params.limit)
        return {"count": len(features), "features": [feature_summary(f) for f in features]}


FEATURE_TOOLS: tuple[type[BaseTool[Any]], ...] = (
    CreateFeatureTool,
    ListFeaturesTool,
    GetFeatureTool,
    UpdateFeatureTool,
    DeleteFeatureTool,
    SearchFeaturesTool,
)
