"""Text formatting utilities for human-readable MCP tool responses.

Tool results carry structured content for widgets and a plain-text rendering
for agents that only read text. This module builds the text side.
"""

from typing import Any, Dict, List, Optional


def format_header(title: str, level: int = 1) -> str:
    """Format a section header.

    Args:
        title: The header title
        level: Header level (1-3)

    Returns:
        Formatted header string
    """
    if level == 1:
        underline = "=" * len(title)
        return f"{title}\n{underline}\n"
    elif level == 2:
        underline = "-" * len(title)
        return f"{title}\n{underline}\n"
    else:
        return f"### {title}\n"


def format_price(amount: Optional[float]) -> str:
    """Format a dollar amount, e.g. ``$1,249.50``."""
    if amount is None:
        return "N/A"
    return f"${amount:,.2f}"


def format_bullet_list(items: List[str], bullet: str = "•") -> str:
    """Format a list of items as bullets.

    Args:
        items: List of items to format
        bullet: Bullet character to use

    Returns:
        Formatted bullet list string
    """
    if not items:
        return ""

    return "\n".join(f"{bullet} {item}" for item in items)


def format_product_line(product: Dict[str, Any]) -> str:
    """Format one product as ``Title - $price (id)``."""
    line = f"{product.get('title', 'Unknown product')} - {format_price(product.get('price'))}"
    if product.get('productId'):
        line += f" ({product['productId']})"
    if product.get('rating') is not None:
        line += f" ★ {product['rating']}"
    return line


def format_product_list(query: str, products: List[Dict[str, Any]]) -> str:
    """Format product search results."""
    response = format_header(f"Results for \"{query}\"")
    if not products:
        return response + "No products matched this search. Try a broader query.\n"
    response += f"{len(products)} product(s) found:\n"
    response += format_bullet_list([format_product_line(p) for p in products]) + "\n"
    return response


def format_cart_summary(items: List[Dict[str, Any]], subtotal: float) -> str:
    """Format the cart content and subtotal."""
    response = format_header("Your Cart", level=2)
    if not items:
        return response + "Your cart is empty.\n"
    lines = [
        f"{item['quantity']} x {item['title']} - {format_price(item['lineTotal'])}"
        for item in items
    ]
    response += format_bullet_list(lines) + "\n"
    response += f"Subtotal: {format_price(subtotal)}\n"
    return response


def format_profile(identity: Dict[str, Any]) -> str:
    """Format a customer profile as a key/value block."""
    response = format_header("Target Customer Profile", level=2)
    fields = [
        ("Name", identity.get("name")),
        ("Email", identity.get("email")),
        ("Phone", identity.get("phone")),
        ("Rewards", identity.get("rewardsMember")),
        ("Member since", identity.get("memberSince")),
        ("Account status", identity.get("accountStatus")),
    ]
    for label, value in fields:
        if value:
            response += f"{label}: {value}\n"
    return response


def format_order(order: Dict[str, Any]) -> str:
    """Format a checkout confirmation."""
    response = format_header(f"Order {order['orderId']} confirmed")
    response += f"Placed for {order['customer']['name']} ({order['customer']['email']})\n\n"
    response += format_cart_summary(order["items"], order["total"])
    return response
