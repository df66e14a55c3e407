"""Fourthwall storefront view-models."""

from __future__ import annotations

from pydantic import Field

from .base import ViewModel


class Money(ViewModel):
    value: float
    currency: str


class ProductImage(ViewModel):
    id: str
    url: str
    width: int | None = None
    height: int | None = None


class VariantStock(ViewModel):
    """``Unlimited`` stock, or ``Limited`` with a remaining count."""

    type: str = "Unlimited"
    in_stock: int | None = None

    @property
    def available(self) -> bool:
        if self.type == "Limited":
            return (self.in_stock or 0) > 0
        return True


class ProductVariant(ViewModel):
    id: str
    name: str
    sku: str | None = None
    unit_price: Money
    compare_at_price: Money | None = None
    stock: VariantStock = Field(default_factory=VariantStock)
    attributes: str = ""
    color: str | None = None
    size: str | None = None
    images: list[ProductImage] = Field(default_factory=list)
    available: bool = True


class Product(ViewModel):
    id: str
    name: str
    slug: str
    description: str = ""
    images: list[ProductImage] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    state: str | None = None
    available: bool = True


class Paging(ViewModel):
    page_number: int = 0
    page_size: int = 0
    elements_size: int | None = None
    total_pages: int | None = None
    has_next_page: bool = False


class MerchListing(ViewModel):
    products: list[Product] = Field(default_factory=list)
    paging: Paging | None = None


class MerchCollection(ViewModel):
    id: str
    name: str
    products: list[Product] = Field(default_factory=list)


class MerchCollections(ViewModel):
    collections: list[MerchCollection] = Field(default_factory=list)


class CartItem(ViewModel):
    variant_id: str
    quantity: int = Field(default=1, ge=1)


class CartItemsRequest(ViewModel):
    items: list[CartItem] = Field(default_factory=list)


class CheckoutLink(ViewModel):
    cart_id: str
    checkout_url: str
