"""Product search tool server backed by the upstream catalog."""

from typing import Any, Dict

from pydantic import Field

from ..registry import (
    LogicalServer, ResourceMap, Tool, ToolContext, ToolDescriptor, ToolRegistry, ToolResult
)
from ..text_formatting import format_product_line, format_product_list
from ..widgets import PRODUCT_GRID_URI, PRODUCT_GRID_WIDGET
from .common import ToolArguments

SERVER_NAME = "target-product-search"
SERVER_VERSION = "1.0.0"


class SearchArguments(ToolArguments):
    query: str = Field(min_length=1, description="What the customer is looking for")
    limit: int = Field(default=5, ge=1, le=20, description="Maximum number of results")


class ProductArguments(ToolArguments):
    product_id: str = Field(alias="productId", min_length=1,
                            description="Product ID returned by search-products")


async def search_products(arguments: SearchArguments, context: ToolContext) -> ToolResult:
    products = await context.catalog.search(arguments.query, arguments.limit)
    return ToolResult(
        structured={
            "query": arguments.query,
            "count": len(products),
            "products": products,
        },
        text=format_product_list(arguments.query, products),
    )


async def get_product(arguments: ProductArguments, context: ToolContext) -> ToolResult:
    product = await context.catalog.get(arguments.product_id)
    if product is None:
        structured: Dict[str, Any] = {
            "productId": arguments.product_id,
            "found": False,
            "message": "No product with this ID. Use search-products to find one.",
        }
        return ToolResult(structured=structured)

    return ToolResult(
        structured={"found": True, "product": product},
        text=format_product_line(product),
    )


TOOLS = [
    Tool(
        ToolDescriptor(
            name="search-products",
            title="Search Target products",
            description="Search the Target catalog and show matching products.",
            arguments=SearchArguments,
            invoking="Searching Target",
            invoked="Found products",
            widget_uri=PRODUCT_GRID_URI,
        ),
        search_products,
    ),
    Tool(
        ToolDescriptor(
            name="get-product",
            title="Get product details",
            description="Get details for one product by the productId from search-products.",
            arguments=ProductArguments,
            invoking="Loading product",
            invoked="Product loaded",
        ),
        get_product,
    ),
]


def build_server() -> LogicalServer:
    return LogicalServer(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        tools=ToolRegistry(TOOLS),
        resources=ResourceMap([PRODUCT_GRID_WIDGET]),
    )
