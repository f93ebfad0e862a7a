"""Tool base classes and parameter types."""

from .base import BaseTool, EmptyParams, ToolMetadata, ToolParams, TParams, compact

__all__ = ["BaseTool", "ToolMetadata", "ToolParams", "EmptyParams", "TParams", "compact"]
