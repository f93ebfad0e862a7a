"""ProductBoard domain models and request parameter types.

Field names are snake_case with camelCase aliases matching the wire format.
Records keep unknown fields (`extra="allow"`) and type loosely the fields
ProductBoard has shipped in more than one shape (status as a string or an
object, nullable names and content).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FeatureStatus = Literal["new", "in-progress", "shipped", "archived", "postponed", "candidate"]
SearchType = Literal["feature", "note", "product", "component"]

FEATURE_STATUSES: tuple[str, ...] = ("new", "in-progress", "shipped", "archived", "postponed", "candidate")


class WireModel(BaseModel):
    """Base for records read from the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using API field names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ParamsModel(BaseModel):
    """Base for typed request parameters (strict: typos are errors)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ─────────────────────────────────────────────────────────────────────────────
# Shared value objects
# ─────────────────────────────────────────────────────────────────────────────


class Links(WireModel):
    self_url: str | None = Field(default=None, alias="self")
    html: str | None = None


class Ref(WireModel):
    id: str


class Parent(WireModel):
    """Parent reference: at most one of feature / product / component is usually set."""
    feature: Ref | None = None
    product: Ref | None = None
    component: Ref | None = None


class Owner(WireModel):
    email: str | None = None


class Timeframe(WireModel):
    start_date: str | None = None
    end_date: str | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Entities
# ─────────────────────────────────────────────────────────────────────────────


class Feature(WireModel):
    id: str
    name: str | None = None
    description: str | None = None
    status: str | dict[str, Any] | None = None
    parent: Parent | None = None
    owner: Owner | None = None
    timeframe: Timeframe | None = None
    created_at: str | None = None
    updated_at: str | None = None
    links: Links | None = None


class Product(WireModel):
    id: str
    name: str | None = None
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    links: Links | None = None


class Component(WireModel):
    id: str
    name: str | None = None
    description: str | None = None
    parent: Parent | None = None
    created_at: str | None = None
    updated_at: str | None = None
    links: Links | None = None

    @property
    def parent_product_id(self) -> str | None:
        return self.parent.product.id if self.parent and self.parent.product else None

    @property
    def parent_component_id(self) -> str | None:
        return self.parent.component.id if self.parent and self.parent.component else None


class NoteSource(WireModel):
    origin: str | None = None
    record_id: str | None = Field(default=None, alias="record_id")


class NoteUser(WireModel):
    email: str | None = None
    name: str | None = None


class NoteCompany(WireModel):
    id: str | None = None
    name: str | None = None


class Note(WireModel):
    id: str
    title: str | None = None
    content: str | None = None
    display_url: str | None = None
    source: NoteSource | None = None
    user: NoteUser | None = None
    company: NoteCompany | None = None
    tags: list[Any] = Field(default_factory=list)
    features: list[Ref] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    links: Links | None = None


class User(WireModel):
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None
    created_at: str | None = None


class SearchResult(WireModel):
    type: SearchType
    id: str
    name: str | None = None
    title: str | None = None
    description: str | None = None
    content: str | None = None
    links: Links | None = None


class ProductHierarchy(WireModel):
    """Products and components as fetched; tree assembly is left to callers."""
    products: list[Product] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Request parameters
# ─────────────────────────────────────────────────────────────────────────────


class FeatureInput(ParamsModel):
    """Body for feature create (name required) and update (all optional)."""
    name: str | None = None
    description: str | None = None
    status: FeatureStatus | None = None
    parent: Parent | None = None
    owner: Owner | None = None
    timeframe: Timeframe | None = None


class ListFeaturesParams(ParamsModel):
    product_id: str | None = None
    component_id: str | None = None
    status: FeatureStatus | None = None
    owner_id: str | None = None
    limit: int | None = Field(default=None, ge=1)

    def to_query(self) -> dict[str, str]:
        query: dict[str, str] = {}
        if self.product_id:
            query["product.id"] = self.product_id
        if self.component_id:
            query["component.id"] = self.component_id
        if self.status:
            query["status"] = self.status
        if self.owner_id:
            query["owner.id"] = self.owner_id
        return query


class NoteInput(ParamsModel):
    content: str
    title: str | None = None
    display_url: str | None = None
    source: NoteSource | None = None
    user: NoteUser | None = None
    company: NoteCompany | None = None
    tags: list[str] | None = None


class ListNotesParams(ParamsModel):
    created_from: str | None = None
    created_to: str | None = None
    limit: int | None = Field(default=None, ge=1)

    def to_query(self) -> dict[str, str]:
        query: dict[str, str] = {}
        if self.created_from:
            query["createdFrom"] = self.created_from
        if self.created_to:
            query["createdTo"] = self.created_to
        return query
