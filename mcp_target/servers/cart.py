"""Cart and checkout tool server.

All clients share the single demo cart. In single-item mode adding a
product replaces whatever was in the cart.
"""

import secrets
from typing import Optional

from pydantic import Field

from ..cart_store import CartItem
from ..errors import ToolError
from ..registry import (
    LogicalServer, ResourceMap, Tool, ToolContext, ToolDescriptor, ToolRegistry, ToolResult
)
from ..text_formatting import format_cart_summary, format_order
from ..widgets import CART_WIDGET, CART_WIDGET_URI
from .common import EmptyArguments, SessionArguments, ToolArguments, require_authenticated

SERVER_NAME = "target-cart-checkout"
SERVER_VERSION = "1.0.0"


class AddToCartArguments(ToolArguments):
    product_id: Optional[str] = Field(default=None, alias="productId",
                                      description="Product ID from search-products")
    title: Optional[str] = Field(default=None, description="Product title")
    price: Optional[float] = Field(default=None, ge=0, description="Unit price in USD")
    image: Optional[str] = Field(default=None, description="Product image URL")
    quantity: int = Field(default=1, ge=1, le=99, description="Number of units")


def cart_view(context: ToolContext) -> ToolResult:
    items = [item.to_dict() for item in context.carts.get()]
    subtotal = context.carts.subtotal()
    return ToolResult(
        structured={"items": items, "itemCount": len(items), "subtotal": subtotal},
        text=format_cart_summary(items, subtotal),
    )


async def add_to_cart(arguments: AddToCartArguments, context: ToolContext) -> ToolResult:
    title, price, image = arguments.title, arguments.price, arguments.image

    if (title is None or price is None) and arguments.product_id:
        product = await context.catalog.get(arguments.product_id)
        if product is None:
            raise ToolError(
                f"Product {arguments.product_id} was not found. Use search-products to find one."
            )
        title = title or product["title"]
        price = product["price"] if price is None else price
        image = image or product.get("image")

    if title is None or price is None:
        raise ToolError("Provide a productId from search-products, or a title and price.")

    replaced = len(context.carts.get()) if context.carts.single_item else 0
    context.carts.add(CartItem(
        title=title,
        price=price,
        quantity=arguments.quantity,
        product_id=arguments.product_id,
        image=image,
    ))

    result = cart_view(context)
    result.structured["replaced"] = replaced
    return result


async def view_cart(arguments: EmptyArguments, context: ToolContext) -> ToolResult:
    return cart_view(context)


async def checkout(arguments: SessionArguments, context: ToolContext) -> ToolResult:
    session = require_authenticated(context, arguments.session_id, "check out")

    items = [item.to_dict() for item in context.carts.get()]
    if not items:
        raise ToolError("The cart is empty. Call add-to-cart first.")

    order = {
        "orderId": "ORD-" + secrets.token_hex(4).upper(),
        "status": "confirmed",
        "customer": {
            "name": session.identity.get("name"),
            "email": session.identity.get("email"),
        },
        "items": items,
        "total": context.carts.subtotal(),
    }
    context.carts.clear()
    return ToolResult(structured=order, text=format_order(order))


async def reset_demo(arguments: EmptyArguments, context: ToolContext) -> dict:
    removed = context.carts.clear()
    return {"success": True, "removed": removed, "message": "Demo cart has been reset."}


TOOLS = [
    Tool(
        ToolDescriptor(
            name="add-to-cart",
            title="Add to cart",
            description=(
                "Add a product to the cart. Pass the productId from search-products, "
                "or a title and price. The demo cart holds one item; adding replaces it."
            ),
            arguments=AddToCartArguments,
            invoking="Adding to cart",
            invoked="Added to cart",
            widget_uri=CART_WIDGET_URI,
        ),
        add_to_cart,
    ),
    Tool(
        ToolDescriptor(
            name="view-cart",
            title="View cart",
            description="Show the items in the cart and the subtotal.",
            arguments=EmptyArguments,
            invoking="Loading cart",
            invoked="Cart loaded",
            widget_uri=CART_WIDGET_URI,
        ),
        view_cart,
    ),
    Tool(
        ToolDescriptor(
            name="checkout",
            title="Check out",
            description=(
                "Place an order for the cart content. Requires an authenticated "
                "sessionId (create-session, then authenticate-user)."
            ),
            arguments=SessionArguments,
            invoking="Placing order",
            invoked="Order placed",
        ),
        checkout,
    ),
    Tool(
        ToolDescriptor(
            name="reset-demo",
            title="Reset demo cart",
            description="Empty the shared demo cart.",
            arguments=EmptyArguments,
        ),
        reset_demo,
    ),
]


def build_server() -> LogicalServer:
    return LogicalServer(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        tools=ToolRegistry(TOOLS),
        resources=ResourceMap([CART_WIDGET]),
    )
