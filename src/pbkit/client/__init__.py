"""ProductBoard API client and domain models."""

from .client import MAX_PAGE_SIZE, ProductBoardClient, next_cursor
from .models import (
    FEATURE_STATUSES,
    Component,
    Feature,
    FeatureInput,
    FeatureStatus,
    Links,
    ListFeaturesParams,
    ListNotesParams,
    Note,
    NoteCompany,
    NoteInput,
    NoteSource,
    NoteUser,
    Owner,
    Parent,
    Product,
    ProductHierarchy,
    Ref,
    SearchResult,
    SearchType,
    Timeframe,
    User,
)

__all__ = [
    "ProductBoardClient", "next_cursor", "MAX_PAGE_SIZE",
    "Feature", "FeatureInput", "FeatureStatus", "FEATURE_STATUSES", "ListFeaturesParams",
    "Product", "Component", "ProductHierarchy",
    "Note", "NoteInput", "NoteSource", "NoteUser", "NoteCompany", "ListNotesParams",
    "User", "SearchResult", "SearchType",
    "Links", "Ref", "Parent", "Owner", "Timeframe",
]
