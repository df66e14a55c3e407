"""Fourthwall Storefront API client (collections, products, carts)."""

import logging
from typing import Any

import httpx

from core.errors import json_body, network_error, raise_for_upstream

logger = logging.getLogger(__name__)

STOREFRONT_BASE = "https://storefront-api.fourthwall.com/v1"

API_NAME = "Fourthwall"


class FourthwallAPIClient:
    """Storefront API wrapper.

    Catalog reads are classified into the error taxonomy. Cart calls return
    the raw response so the router can relay status and body unchanged; only
    rate limiting and transport failures are raised from them.
    """

    def __init__(
        self,
        storefront_token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.storefront_token = storefront_token
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            return await self._http.request(
                method,
                f"{STOREFRONT_BASE}/{path}",
                params={**(params or {}), "storefront_token": self.storefront_token},
                json=json,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Fourthwall {method} /{path} failed: {type(e).__name__}")
            raise network_error(e, API_NAME) from e

    async def _get_json(
        self, path: str, *, params: dict[str, Any] | None = None, resource: str
    ) -> dict[str, Any]:
        response = await self._request("GET", path, params=params)
        raise_for_upstream(response, API_NAME, resource)
        return json_body(response, API_NAME)

    async def _relayed(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        response = await self._request(method, path, json=json)
        if response.status_code == 429:
            raise_for_upstream(response, API_NAME)
        if not response.is_success:
            logger.info(f"Fourthwall {method} /{path} returned {response.status_code}")
        return response

    # ============================================
    # Catalog
    # ============================================

    async def list_collection_products(
        self, collection: str, page: int = 0, size: int | None = None
    ) -> dict[str, Any]:
        """One page of a collection: ``{"results": [...], "paging": {...}}``."""
        params: dict[str, Any] = {"page": page}
        if size is not None:
            params["size"] = size
        return await self._get_json(
            f"collections/{collection}/products",
            params=params,
            resource="Collection",
        )

    async def get_product(self, slug: str) -> dict[str, Any]:
        return await self._get_json(f"products/{slug}", resource="Product")

    # ============================================
    # Carts
    # ============================================

    async def create_cart(self, items: list[dict[str, Any]]) -> httpx.Response:
        return await self._relayed("POST", "carts", json={"items": items})

    async def add_to_cart(self, cart_id: str, items: list[dict[str, Any]]) -> httpx.Response:
        return await self._relayed("POST", f"carts/{cart_id}/add", json={"items": items})

    async def get_cart(self, cart_id: str) -> httpx.Response:
        return await self._relayed("GET", f"carts/{cart_id}")
