"""Core tool abstractions: BaseTool, ToolMetadata, and parameter types.

Every ProductBoard tool subclasses BaseTool with a typed parameter schema and
implements a single async `_execute` returning JSON-serializable data. The
base class serializes results and turns failures into rendered ToolErrors,
so callers always receive a string.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import ApiError, ErrorKind, ToolError
from ..logging import get_logger

if TYPE_CHECKING:
    from ..client import ProductBoardClient

log = get_logger("pbkit.tools")


class ToolMetadata(BaseModel):
    """Metadata describing a tool for discovery and LLM tool selection.

    Attributes:
        name: Unique identifier (snake_case, e.g., "pb_feature_list")
        description: What the tool does (shown to LLM for selection)
        category: Grouping category ("features", "products", "notes", "search")
        enabled: Whether tool is currently active
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    description: str = Field(..., min_length=10)
    category: str = Field(default="general")
    enabled: bool = Field(default=True)


class ToolParams(BaseModel):
    """Base for tool parameter schemas.

    Fields are snake_case in Python and camelCase in the published JSON
    schema; either spelling is accepted on input. Unknown parameters are
    rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class EmptyParams(ToolParams):
    """Parameter schema for tools with no inputs."""


TParams = TypeVar("TParams", bound=BaseModel)


class BaseTool(ABC, Generic[TParams]):
    """Abstract base class for ProductBoard tools.

    Subclasses must:
    - Define `metadata` class variable with ToolMetadata
    - Define `params_schema` class variable with the Pydantic model type
    - Implement `async _execute(params)` returning JSON-serializable data

    Example:
        >>> class GetParams(ToolParams):
        ...     id: str = Field(..., description="Feature ID")
        ...
        >>> class GetFeature(BaseTool[GetParams]):
        ...     metadata = ToolMetadata(name="pb_feature_get", description="Get a feature by ID")
        ...     params_schema = GetParams
        ...
        ...     async def _execute(self, params: GetParams) -> dict[str, object]:
        ...         feature = await self.client.get_feature(params.id)
        ...         return {"id": feature.id, "name": feature.name}
    """

    metadata: ClassVar[ToolMetadata]
    params_schema: ClassVar[type[BaseModel]] = EmptyParams

    __slots__ = ("client",)

    def __init__(self, client: ProductBoardClient) -> None:
        self.client = client

    @abstractmethod
    async def _execute(self, params: TParams) -> Any:
        """Perform the tool's work. Raise ApiError/ValueError on failure."""
        ...

    # ─────────────────────────────────────────────────────────────────
    # Error Handling
    # ─────────────────────────────────────────────────────────────────

    def _error(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        *,
        recoverable: bool = False,
    ) -> str:
        """Create a standardized error response string."""
        return ToolError.create(self.metadata.name, message, kind, recoverable=recoverable).render()

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def serialize(data: Any) -> str:
        """Render tool output as indented JSON (strings pass through)."""
        if isinstance(data, str):
            return data
        return orjson.dumps(data, option=orjson.OPT_INDENT_2, default=_default).decode()

    async def arun(self, params: TParams) -> str:
        """Execute with validated params and return a string result.

        API failures and invalid inputs are returned as rendered ToolErrors.
        """
        name = self.metadata.name
        try:
            result = await self._execute(params)
        except ApiError as e:
            log.warning("tool failed", tool=name, kind=e.kind.value, status=e.status_code, error=e.message)
            return ToolError.from_api_error(name, e).render()
        except ValueError as e:
            return self._error(str(e), ErrorKind.VALIDATION)
        return self.serialize(result)

    async def acall(self, **kwargs: object) -> str:
        """Validate raw keyword parameters and execute."""
        try:
            params = self.params_schema.model_validate(kwargs)
        except ValidationError as e:
            return self._error(f"Invalid parameters: {e}", ErrorKind.VALIDATION)
        return await self.arun(params)  # type: ignore[arg-type]

    def json_schema(self) -> dict[str, Any]:
        """Parameter JSON schema (camelCase property names)."""
        schema = self.params_schema.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.metadata.name}>"


def compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None values from a result mapping."""
    return {k: v for k, v in data.items() if v is not None}


def _default(obj: object) -> object:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")
