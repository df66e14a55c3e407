"""
Tests for the Fourthwall storefront normalization, cart relays and checkout links.
"""
import json

import httpx
import pytest

from core.errors import ConfigurationError, NotFound, RateLimited, UpstreamDataError
from models import CartItem

PRODUCTS_PATH = "/v1/collections/leafy-longplays/products"
LIEFX_PATH = "/v1/collections/liefx/products"
CARTS_PATH = "/v1/carts"


def _product(slug="leafy-tee", access="Public", state="Available", stock=None):
    return {
        "id": f"prod-{slug}",
        "name": "Leafy <Tee>",
        "slug": slug,
        "description": "<p>Soft & comfy</p>",
        "images": [{"id": "img1", "url": "https://cdn.fourthwall.com/tee.png", "width": 800, "height": 800}],
        "state": {"type": state},
        "access": {"type": access},
        "variants": [
            {
                "id": "var-1",
                "name": "Leafy Tee - Black / L",
                "sku": "LT-BL-L",
                "unitPrice": {"value": 25.0, "currency": "USD"},
                "compareAtPrice": {"value": 30.0, "currency": "USD"},
                "attributes": {
                    "description": "Black / L",
                    "color": {"name": "Black", "swatch": "#000"},
                    "size": {"name": "L"},
                },
                "stock": stock or {"type": "Unlimited"},
                "images": [],
            }
        ],
    }


@pytest.fixture
def storefront(upstream):
    upstream.add(
        PRODUCTS_PATH,
        json={
            "results": [_product()],
            "paging": {
                "pageNumber": 0,
                "pageSize": 1,
                "elementsSize": 3,
                "totalPages": 3,
                "hasNextPage": True,
            },
        },
    )
    upstream.add(LIEFX_PATH, json={"results": [_product("liefx-hoodie")]})
    return upstream


class TestCatalog:

    @pytest.mark.asyncio
    async def test_list_products_with_paging(self, merch_service, storefront):
        listing = await merch_service.list_products(page=0, size=1)

        [product] = listing.products
        assert product.name == "Leafy &lt;Tee&gt;"
        assert product.description == "&lt;p&gt;Soft &amp; comfy&lt;/p&gt;"
        assert product.available is True
        assert listing.paging.total_pages == 3
        assert listing.paging.has_next_page is True

        request = storefront.requests[-1]
        assert request.url.params["storefront_token"] == "fw-token"
        assert request.url.params["page"] == "0"
        assert request.url.params["size"] == "1"

    @pytest.mark.asyncio
    async def test_variant_normalization(self, merch_service, storefront):
        listing = await merch_service.list_products()
        variant = listing.products[0].variants[0]
        assert variant.unit_price.value == 25.0
        assert variant.compare_at_price.value == 30.0
        assert variant.attributes == "Black / L"
        assert variant.color == "Black"
        assert variant.size == "L"
        assert variant.stock.type == "Unlimited"
        assert variant.available is True

    @pytest.mark.asyncio
    async def test_sold_out_limited_stock(self, merch_service, upstream):
        upstream.add(
            PRODUCTS_PATH,
            json={"results": [_product(stock={"type": "Limited", "inStock": 0})]},
        )
        product = (await merch_service.list_products()).products[0]
        assert product.variants[0].stock.in_stock == 0
        assert product.variants[0].available is False
        assert product.available is False

    @pytest.mark.asyncio
    async def test_unknown_collection_fails(self, merch_service, upstream):
        upstream.add("/v1/collections/nope/products", status=404, json={"message": "nope"})
        with pytest.raises(NotFound):
            await merch_service.list_products("nope")

    @pytest.mark.asyncio
    async def test_collections_fetched_with_partial_failure(self, merch_service, storefront):
        storefront.add(LIEFX_PATH, status=500, json={"message": "boom"})

        collections = await merch_service.list_collections()

        assert [(c.id, c.name) for c in collections] == [
            ("leafy-longplays", "Longplays"),
            ("liefx", "Liefx"),
        ]
        assert len(collections[0].products) == 1
        assert collections[1].products == []

    @pytest.mark.asyncio
    async def test_collections_rate_limit_surfaces(self, merch_service, storefront):
        storefront.add(LIEFX_PATH, status=429, headers={"Retry-After": "5"})
        with pytest.raises(RateLimited):
            await merch_service.list_collections()

    @pytest.mark.asyncio
    async def test_get_public_product(self, merch_service, upstream):
        upstream.add("/v1/products/leafy-tee", json=_product())
        product = await merch_service.get_product("leafy-tee")
        assert product.slug == "leafy-tee"
        assert product.images[0].width == 800

    @pytest.mark.asyncio
    async def test_hidden_product_is_not_found(self, merch_service, upstream):
        upstream.add("/v1/products/secret", json=_product("secret", access="Hidden"))
        with pytest.raises(NotFound):
            await merch_service.get_product("secret")

    @pytest.mark.asyncio
    async def test_non_json_product_is_data_error(self, merch_service, upstream):
        upstream.add_handler(
            "/v1/products/tee", lambda request: httpx.Response(200, text="<html>oops</html>")
        )
        with pytest.raises(UpstreamDataError, match="Malformed Fourthwall response"):
            await merch_service.get_product("tee")

    @pytest.mark.asyncio
    async def test_missing_storefront_token(self, merch_service, upstream, settings):
        settings.fourthwall_storefront_token = ""
        with pytest.raises(ConfigurationError):
            await merch_service.list_products()
        assert sum(upstream.calls.values()) == 0


class TestCarts:

    @pytest.mark.asyncio
    async def test_create_cart_relays_body_and_status(self, merch_service, upstream):
        upstream.add(CARTS_PATH, status=201, json={"id": "cart-1", "items": []})

        response = await merch_service.create_cart([CartItem(variant_id="var-1", quantity=2)])

        assert response.status_code == 201
        assert json.loads(response.body) == {"id": "cart-1", "items": []}
        sent = json.loads(upstream.requests[-1].content)
        assert sent == {"items": [{"variantId": "var-1", "quantity": 2}]}

    @pytest.mark.asyncio
    async def test_upstream_error_is_relayed(self, merch_service, upstream):
        upstream.add(
            "/v1/carts/cart-1/add", status=400, json={"message": "Variant out of stock"}
        )
        response = await merch_service.add_items("cart-1", [CartItem(variant_id="var-1")])
        assert response.status_code == 400
        assert json.loads(response.body) == {"message": "Variant out of stock"}

    @pytest.mark.asyncio
    async def test_non_json_body_is_wrapped(self, merch_service, upstream):
        upstream.add_handler(
            "/v1/carts/cart-1",
            lambda request: httpx.Response(502, text="Bad Gateway"),
        )
        response = await merch_service.get_cart("cart-1")
        assert response.status_code == 502
        assert json.loads(response.body) == {"message": "Bad Gateway"}

    @pytest.mark.asyncio
    async def test_cart_rate_limit_raises(self, merch_service, upstream):
        upstream.add(CARTS_PATH, status=429)
        with pytest.raises(RateLimited):
            await merch_service.create_cart([CartItem(variant_id="var-1")])


class TestCheckout:

    @pytest.mark.asyncio
    async def test_checkout_url_from_domain(self, merch_service, upstream):
        link = await merch_service.checkout_url("cart-1")
        assert link.checkout_url == (
            "https://shop.example.com/checkout/?cartCurrency=USD&cartId=cart-1"
        )
        assert sum(upstream.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_checkout_url_falls_back_to_cart(self, merch_service, upstream, settings):
        settings.fourthwall_checkout_domain = ""
        upstream.add(
            "/v1/carts/cart-1",
            json={"id": "cart-1", "checkoutUrl": "https://leafy.fourthwall.com/checkout/cart-1"},
        )
        link = await merch_service.checkout_url("cart-1")
        assert link.checkout_url == "https://leafy.fourthwall.com/checkout/cart-1"

    @pytest.mark.asyncio
    async def test_checkout_without_domain_or_cart_url(self, merch_service, upstream, settings):
        settings.fourthwall_checkout_domain = ""
        upstream.add("/v1/carts/cart-1", json={"id": "cart-1"})
        with pytest.raises(ConfigurationError):
            await merch_service.checkout_url("cart-1")

    @pytest.mark.asyncio
    async def test_checkout_for_broken_cart(self, merch_service, upstream, settings):
        settings.fourthwall_checkout_domain = ""
        upstream.add("/v1/carts/cart-1", status=500, json={"message": "boom"})
        with pytest.raises(UpstreamDataError):
            await merch_service.checkout_url("cart-1")

    @pytest.mark.asyncio
    async def test_checkout_for_non_json_cart(self, merch_service, upstream, settings):
        settings.fourthwall_checkout_domain = ""
        upstream.add_handler(
            "/v1/carts/cart-1", lambda request: httpx.Response(200, text="not json")
        )
        with pytest.raises(UpstreamDataError):
            await merch_service.checkout_url("cart-1")
