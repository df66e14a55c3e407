"""Merch storefront routes (catalog, carts, checkout)"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from core.dependencies import get_merch_service
from models import CartItemsRequest, CheckoutLink, MerchCollections, MerchListing, Product
from services import MerchService

router = APIRouter(prefix="/api/merch", tags=["merch"])


# ============================================
# Catalog
# ============================================


@router.get("", response_model=MerchListing, response_model_exclude_none=True)
async def list_products(
    collection: str | None = None,
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1, le=100),
    merch_service: MerchService = Depends(get_merch_service),
) -> MerchListing:
    """One page of a collection (the default collection when none is given)"""
    return await merch_service.list_products(collection, page=page, size=size)


@router.get("/collections", response_model=MerchCollections)
async def list_collections(
    merch_service: MerchService = Depends(get_merch_service),
) -> MerchCollections:
    return MerchCollections(collections=await merch_service.list_collections())


@router.get("/products/{slug}", response_model=Product)
async def get_product(
    slug: str,
    merch_service: MerchService = Depends(get_merch_service),
) -> Product:
    return await merch_service.get_product(slug)


# ============================================
# Carts
# ============================================


@router.post("/carts")
async def create_cart(
    body: CartItemsRequest,
    merch_service: MerchService = Depends(get_merch_service),
) -> JSONResponse:
    """Create a cart; Fourthwall's response is relayed as-is"""
    return await merch_service.create_cart(body.items)


@router.get("/carts/{cart_id}")
async def get_cart(
    cart_id: str,
    merch_service: MerchService = Depends(get_merch_service),
) -> JSONResponse:
    return await merch_service.get_cart(cart_id)


@router.post("/carts/{cart_id}/add")
async def add_to_cart(
    cart_id: str,
    body: CartItemsRequest,
    merch_service: MerchService = Depends(get_merch_service),
) -> JSONResponse:
    return await merch_service.add_items(cart_id, body.items)


@router.get("/carts/{cart_id}/checkout", response_model=CheckoutLink)
async def get_checkout_link(
    cart_id: str,
    merch_service: MerchService = Depends(get_merch_service),
) -> CheckoutLink:
    return await merch_service.checkout_url(cart_id)
