"""Merch storefront: Fourthwall catalog normalization, cart relays and checkout links."""

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

from fastapi.responses import JSONResponse

from core.config import Settings
from core.errors import ConfigurationError, NotFound, json_body, raise_for_upstream
from models import (
    CartItem,
    CheckoutLink,
    MerchCollection,
    MerchListing,
    Money,
    Paging,
    Product,
    ProductImage,
    ProductVariant,
    VariantStock,
)

from . import assembler
from .formatting import escape_text
from .fourthwall_api import API_NAME, FourthwallAPIClient

logger = logging.getLogger(__name__)

AVAILABLE_STATE = "Available"
PUBLIC_ACCESS = "Public"


def _image(raw: dict[str, Any]) -> ProductImage:
    return ProductImage(
        id=str(raw.get("id", "")),
        url=raw.get("url", ""),
        width=raw.get("width"),
        height=raw.get("height"),
    )


def _money(raw: dict[str, Any] | None) -> Money | None:
    if not raw:
        return None
    return Money(value=float(raw.get("value") or 0), currency=raw.get("currency", ""))


class MerchService:
    """Read side of the storefront plus a write-through relay for carts."""

    def __init__(self, settings: Settings, fourthwall_api: FourthwallAPIClient) -> None:
        self._settings = settings
        self._fourthwall = fourthwall_api

    def _require_token(self) -> None:
        self._settings.require("fourthwall_storefront_token")

    # ============================================
    # Catalog
    # ============================================

    async def list_products(
        self, collection: str | None = None, page: int = 0, size: int | None = None
    ) -> MerchListing:
        """One page of a collection's products, with Fourthwall's paging metadata."""
        self._require_token()
        slug = collection or self._settings.fourthwall_default_collection
        payload = assembler.require(
            await assembler.attempt(
                self._fourthwall.list_collection_products(slug, page=page, size=size)
            ),
            "collectionProducts",
        )
        products = [self._to_product(p) for p in payload.get("results") or []]
        raw_paging = payload.get("paging")
        paging = self._to_paging(raw_paging) if raw_paging else None
        logger.debug(f"Collection '{slug}' page {page}: {len(products)} products")
        return MerchListing(products=products, paging=paging)

    async def list_collections(self) -> list[MerchCollection]:
        """Every configured collection, fetched concurrently.

        A collection that fails to load is returned with no products; only
        rate limiting fails the whole request.
        """
        self._require_token()
        configured = list(self._settings.fourthwall_collections.items())
        results = await asyncio.gather(
            *(self._fourthwall.list_collection_products(slug) for slug, _ in configured),
            return_exceptions=True,
        )

        collections = []
        for (slug, name), result in zip(configured, results):
            payload = assembler.settle(result, {}, f"collection:{slug}")
            collections.append(
                MerchCollection(
                    id=slug,
                    name=name,
                    products=[self._to_product(p) for p in payload.get("results") or []],
                )
            )
        return collections

    async def get_product(self, slug: str) -> Product:
        """A single public product. Hidden or archived products are reported as missing."""
        self._require_token()
        raw = await self._fourthwall.get_product(slug)
        access = (raw.get("access") or {}).get("type", PUBLIC_ACCESS)
        if access != PUBLIC_ACCESS:
            logger.info(f"Product '{slug}' is not public (access={access})")
            raise NotFound("Product not found")
        return self._to_product(raw)

    # ============================================
    # Carts
    # ============================================

    async def create_cart(self, items: list[CartItem]) -> JSONResponse:
        self._require_token()
        response = await self._fourthwall.create_cart(self._cart_items(items))
        return assembler.relay(response)

    async def add_items(self, cart_id: str, items: list[CartItem]) -> JSONResponse:
        self._require_token()
        response = await self._fourthwall.add_to_cart(cart_id, self._cart_items(items))
        return assembler.relay(response)

    async def get_cart(self, cart_id: str) -> JSONResponse:
        self._require_token()
        return assembler.relay(await self._fourthwall.get_cart(cart_id))

    async def checkout_url(self, cart_id: str) -> CheckoutLink:
        """Build the hosted-checkout link for a cart.

        Uses the configured checkout domain; without one, falls back to the
        ``checkoutUrl`` Fourthwall reports on the cart itself.
        """
        domain = self._settings.fourthwall_checkout_domain
        if domain:
            query = urlencode({"cartCurrency": self._settings.fourthwall_currency, "cartId": cart_id})
            return CheckoutLink(cart_id=cart_id, checkout_url=f"https://{domain}/checkout/?{query}")

        self._require_token()
        response = await self._fourthwall.get_cart(cart_id)
        raise_for_upstream(response, API_NAME, "Cart")
        checkout_url = json_body(response, API_NAME).get("checkoutUrl")
        if not checkout_url:
            raise ConfigurationError("FOURTHWALL_CHECKOUT_DOMAIN is not configured")
        return CheckoutLink(cart_id=cart_id, checkout_url=checkout_url)

    @staticmethod
    def _cart_items(items: list[CartItem]) -> list[dict[str, Any]]:
        return [item.model_dump(by_alias=True) for item in items]

    # ============================================
    # Normalization
    # ============================================

    @staticmethod
    def _to_paging(raw: dict[str, Any]) -> Paging:
        return Paging(
            page_number=raw.get("pageNumber", 0),
            page_size=raw.get("pageSize", 0),
            elements_size=raw.get("elementsSize"),
            total_pages=raw.get("totalPages"),
            has_next_page=bool(raw.get("hasNextPage", False)),
        )

    @classmethod
    def _to_product(cls, raw: dict[str, Any]) -> Product:
        state = (raw.get("state") or {}).get("type")
        variants = [cls._to_variant(v) for v in raw.get("variants") or []]
        available = state in (None, AVAILABLE_STATE) and (
            not variants or any(v.available for v in variants)
        )
        return Product(
            id=str(raw.get("id", "")),
            name=escape_text(raw.get("name")),
            slug=raw.get("slug", ""),
            description=escape_text(raw.get("description")),
            images=[_image(i) for i in raw.get("images") or []],
            variants=variants,
            state=state,
            available=available,
        )

    @staticmethod
    def _to_variant(raw: dict[str, Any]) -> ProductVariant:
        attributes = raw.get("attributes") or {}
        raw_stock = raw.get("stock") or {}
        stock = VariantStock(
            type=raw_stock.get("type", "Unlimited"),
            in_stock=raw_stock.get("inStock"),
        )
        unit_price = _money(raw.get("unitPrice")) or Money(value=0.0, currency="")
        return ProductVariant(
            id=str(raw.get("id", "")),
            name=escape_text(raw.get("name")),
            sku=raw.get("sku"),
            unit_price=unit_price,
            compare_at_price=_money(raw.get("compareAtPrice")),
            stock=stock,
            attributes=escape_text(attributes.get("description")),
            color=escape_text((attributes.get("color") or {}).get("name")) or None,
            size=escape_text((attributes.get("size") or {}).get("name")) or None,
            images=[_image(i) for i in raw.get("images") or []],
            available=stock.available,
        )
