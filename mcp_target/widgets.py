"""UI widget markup served as MCP resources.

Clients that support output templates render a tool's structured result
inside the widget named by the tool's ``openai/outputTemplate`` metadata.
"""

from .registry import ResourceDescriptor

AUTH_WIDGET_URI = "ui://widget/target-auth.html"
PRODUCT_GRID_URI = "ui://widget/product-grid.html"
CART_WIDGET_URI = "ui://widget/cart.html"
CIRCLE_CARD_URI = "ui://widget/circle-card.html"

_WIDGET_TEMPLATE = """<div id="{root_id}" class="target-widget"></div>
<style>
  .target-widget {{ font-family: 'Helvetica Neue', Helvetica, Arial, sans-serif; color: #333; }}
  .target-widget h2 {{ color: #cc0000; margin: 0 0 8px; }}
</style>
<script type="module">
  const root = document.getElementById("{root_id}");
  const data = (window.openai && window.openai.toolOutput) || {{}};
  {render}
</script>
"""


def _widget(uri: str, name: str, description: str, root_id: str, render: str) -> ResourceDescriptor:
    return ResourceDescriptor(
        uri=uri,
        name=name,
        description=description,
        text=_WIDGET_TEMPLATE.format(root_id=root_id, render=render),
    )


AUTH_WIDGET = _widget(
    AUTH_WIDGET_URI,
    "Target sign-in",
    "Target-branded sign-in form bound to an authentication session",
    "target-auth-root",
    'root.innerHTML = data.authenticated\n'
    '    ? `<h2>Welcome back, ${data.name}</h2>`\n'
    '    : `<h2>Sign in to Target</h2><iframe src="${data.componentUrl || ""}"></iframe>`;',
)

PRODUCT_GRID_WIDGET = _widget(
    PRODUCT_GRID_URI,
    "Product results",
    "Grid of product search results",
    "product-grid-root",
    'root.innerHTML = (data.products || [])\n'
    '    .map(p => `<div><img src="${p.image}" width="96"><p>${p.title}</p><b>$${p.price}</b></div>`)\n'
    '    .join("");',
)

CART_WIDGET = _widget(
    CART_WIDGET_URI,
    "Cart",
    "Current cart content and subtotal",
    "cart-root",
    'root.innerHTML = `<h2>Your cart</h2>` + (data.items || [])\n'
    '    .map(i => `<p>${i.quantity} x ${i.title} - $${i.lineTotal}</p>`).join("")\n'
    '    + `<b>Subtotal: $${data.subtotal || 0}</b>`;',
)

CIRCLE_CARD_WIDGET = _widget(
    CIRCLE_CARD_URI,
    "Target Circle card",
    "Circle membership status and offers",
    "circle-card-root",
    'root.innerHTML = `<h2>Target Circle</h2><p>${data.tier || "Guest"}</p>`;',
)
