"""Upstream product data sources for the search and cart servers.

The product search API is an external collaborator. ``DemoCatalog`` serves
the bundled fixtures; ``HttpProductCatalog`` calls a real search endpoint and
reports any failure as ``UpstreamError`` so the agent can explain it.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .demo_data import DEMO_PRODUCTS
from .errors import UpstreamError


class ProductCatalog:
    """Interface of a product data source."""

    async def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class DemoCatalog(ProductCatalog):
    """Product catalog backed by the bundled demo fixtures."""

    def __init__(self, products: Optional[List[Dict[str, Any]]] = None):
        self.products = list(DEMO_PRODUCTS if products is None else products)

    async def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        terms = [term for term in query.lower().split() if term]
        matches = []
        for product in self.products:
            haystack = f"{product['title']} {product.get('category', '')}".lower()
            if all(term in haystack for term in terms):
                matches.append(dict(product))
        return matches[:limit]

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        for product in self.products:
            if product["productId"] == product_id:
                return dict(product)
        return None


def _normalize_product(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise UpstreamError("Product search returned an unexpected product record")
    try:
        return {
            "productId": str(raw.get("productId") or raw.get("tcin") or raw["id"]),
            "title": str(raw["title"]),
            "price": float(raw["price"]),
            "category": raw.get("category"),
            "image": raw.get("image"),
            "rating": raw.get("rating"),
        }
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"Product search returned an unexpected product record: {e}")


class HttpProductCatalog(ProductCatalog):
    """Product catalog that queries an HTTP search service.

    The service is expected to answer ``GET /search?q=&limit=`` with
    ``{"products": [...]}`` and ``GET /products/<id>`` with a product object.
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.logger = logging.getLogger(__name__)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                 transport=self.transport, follow_redirects=True)

    async def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        try:
            async with self._client() as client:
                response = await client.get("/search", params={"q": query, "limit": limit})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            self.logger.error(f"Product search failed for {query!r}: {e}")
            raise UpstreamError(f"Product search is unavailable right now: {e}")
        except ValueError as e:
            raise UpstreamError(f"Product search returned invalid JSON: {e}")

        products = payload.get("products") if isinstance(payload, dict) else None
        if not isinstance(products, list):
            raise UpstreamError("Product search returned an unexpected response")
        return [_normalize_product(p) for p in products[:limit]]

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with self._client() as client:
                response = await client.get(f"/products/{product_id}")
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            self.logger.error(f"Product lookup failed for {product_id}: {e}")
            raise UpstreamError(f"Product lookup is unavailable right now: {e}")
        except ValueError as e:
            raise UpstreamError(f"Product lookup returned invalid JSON: {e}")

        if not isinstance(payload, dict):
            raise UpstreamError("Product lookup returned an unexpected response")
        return _normalize_product(payload)


def build_catalog(product_search_url: str = "") -> ProductCatalog:
    """Return the HTTP catalog when a search URL is configured, else the demo one."""
    if product_search_url:
        return HttpProductCatalog(product_search_url)
    return DemoCatalog()
