"""Product and component tools: list, get (with components), hierarchy."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ..client import Component, ProductHierarchy
from ..core import BaseTool, EmptyParams, ToolMetadata, ToolParams, compact

SNIPPET = 200


class ListProductsParams(ToolParams):
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of products to return")


class GetProductParams(ToolParams):
    id: str = Field(..., min_length=1, description="Product ID")
    include_components: bool = Field(default=True, description="Include the components under this product")


def _snippet(text: str | None) -> str | None:
    return text[:SNIPPET] if text else None


def build_hierarchy(hierarchy: ProductHierarchy) -> list[dict[str, Any]]:
    """Assemble products -> components -> subcomponents from parent references.

    Components attach to their parent product, or to their parent component
    at any depth. Components whose parent is not in the fetched set are left
    out of the tree.
    """
    nodes: dict[str, dict[str, Any]] = {
        c.id: compact({"id": c.id, "name": c.name, "description": _snippet(c.description)}) | {"subcomponents": []}
        for c in hierarchy.components
    }
    products: dict[str, dict[str, Any]] = {
        p.id: compact({"id": p.id, "name": p.name, "description": _snippet(p.description)}) | {"components": []}
        for p in hierarchy.products
    }
    for component in hierarchy.components:
        node = nodes[component.id]
        if (product_id := component.parent_product_id) is not None:
            if product_id in products:
                products[product_id]["components"].append(node)
        elif (parent_id := component.parent_component_id) is not None:
            if parent_id in nodes and parent_id != component.id:
                nodes[parent_id]["subcomponents"].append(node)
    return list(products.values())


def component_summary(component: Component) -> dict[str, Any]:
    return compact({"id": component.id, "name": component.name, "description": _snippet(component.description)})


class ListProductsTool(BaseTool[ListProductsParams]):
    metadata = ToolMetadata(
        name="pb_product_list",
        description="List all products in the ProductBoard workspace. Products are top-level containers for features.",
        category="products",
    )
    params_schema = ListProductsParams

    async def _execute(self, params: ListProductsParams) -> dict[str, Any]:
        products = await self.client.list_products(limit=params.limit)
        return {
            "count": len(products),
            "products": [
                compact({
                    "id": p.id,
                    "name": p.name,
                    "description": _snippet(p.description),
                    "createdAt": p.created_at,
                    "url": p.links.html if p.links else None,
                })
                for p in products
            ],
        }


class GetProductTool(BaseTool[GetProductParams]):
    metadata = ToolMetadata(
        name="pb_product_get",
        description="Get detailed information about a specific product by ID, including its components.",
        category="products",
    )
    params_schema = GetProductParams

    async def _execute(self, params: GetProductParams) -> dict[str, Any]:
        product = await self.client.get_product(params.id)
        result = compact({
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "createdAt": product.created_at,
            "updatedAt": product.updated_at,
            "url": product.links.html if product.links else None,
        })
        if params.include_components:
            components = await self.client.list_components(product_id=product.id, limit=100)
            result["components"] = [component_summary(c) for c in components]
            result["componentCount"] = len(components)
        return result


class ProductHierarchyTool(BaseTool[EmptyParams]):
    metadata = ToolMetadata(
        name="pb_product_hierarchy",
        description=(
            "Get the complete product hierarchy: all products with their components and subcomponents. "
            "Useful for understanding the workspace structure."
        ),
        category="products",
    )
    params_schema = EmptyParams

    async def _execute(self, params: EmptyParams) -> dict[str, Any]:
        hierarchy = await self.client.get_product_hierarchy()
        return {
            "productCount": len(hierarchy.products),
            "componentCount": len(hierarchy.components),
            "hierarchy": build_hierarchy(hierarchy),
        }


PRODUCT_TOOLS: tuple[type[BaseTool[Any]], ...] = (ListProductsTool, GetProductTool, ProductHierarchyTool)
