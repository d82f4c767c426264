from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from app.api.cart.schemas.schema_cart import AddItemRequest, CartItem, CartOut, UpdateQuantityRequest
from app.api.cart.schemas.schema_cart_calculation import (
    CalculationContext,
    CartCalculationOut,
    DeliveryEstimate,
)
from app.api.cart.services.service_cart_calculation import format_breakdown
from app.api.catalog.contracts.catalog_contract import ICatalogContract
from app.api.catalog.contracts.dependencies import get_catalog_contract
from app.api.catalog.schemas.schema_customization import ProductCustomization
from app.api.catalog.services.service_price_resolver import (
    build_default_customization,
    set_special_instructions,
    validate_selections,
)
from app.config.settings import SMALL_ORDER_THRESHOLD
from app.core.session_registry import StorefrontSession, get_storefront_session
from app.utils.logger import logger

router = APIRouter(prefix="/api/cart/client", tags=["Client - Cart"])


def _get_item_or_404(session: StorefrontSession, item_id: str) -> CartItem:
    item = session.ledger.get_item(item_id)
    if not item:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Cart item not found")
    return item


def _calculation_out(session: StorefrontSession) -> CartCalculationOut:
    result = session.calculation.result
    return CartCalculationOut(
        calculation=result,
        breakdown=format_breakdown(result) if result else None,
        has_small_order_fee=session.calculation.has_small_order_fee,
        small_order_threshold=SMALL_ORDER_THRESHOLD,
    )


@router.get("", response_model=CartOut, status_code=status.HTTP_200_OK)
def read_cart(session: StorefrontSession = Depends(get_storefront_session)):
    return session.ledger.snapshot()


@router.post("/items", response_model=CartItem, status_code=status.HTTP_201_CREATED)
def add_item(
    payload: AddItemRequest = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
    catalog: ICatalogContract = Depends(get_catalog_contract),
):
    """
    Adds a product to the cart.

    For a customizable product without `selections` the default selections
    are used. Invalid selections answer 422 with the error of each option.
    """
    product = catalog.get_product(payload.product_id)
    if not product or not product.available:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")

    customization = None
    options = []
    if product.has_customization:
        options = catalog.list_options(product.id)
        if payload.selections is None:
            customization = build_default_customization(product.id, options)
            if payload.special_instructions:
                customization = set_special_instructions(customization, payload.special_instructions)
        else:
            customization = ProductCustomization(
                product_id=product.id,
                selections=payload.selections,
                special_instructions=payload.special_instructions,
            )
        errors = validate_selections(customization, options)
        if errors:
            raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    item = session.ledger.add_item(product, payload.quantity, customization, options)
    logger.info(f"[Cart] {session.session_id}: added {product.id} x{payload.quantity}")
    return item


@router.patch("/items/{item_id}", response_model=CartItem, status_code=status.HTTP_200_OK)
def update_item_quantity(
    item_id: str = Path(...),
    payload: UpdateQuantityRequest = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    """Quantities below 1 leave the line untouched; use decrement or delete to drop it."""
    _get_item_or_404(session, item_id)
    return session.ledger.update_quantity(item_id, payload.quantity)


@router.post("/items/{item_id}/decrement", response_model=CartOut, status_code=status.HTTP_200_OK)
def decrement_item(
    item_id: str = Path(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    _get_item_or_404(session, item_id)
    session.ledger.decrement(item_id)
    return session.ledger.snapshot()


@router.delete("/items/{item_id}", response_model=CartOut, status_code=status.HTTP_200_OK)
def remove_item(
    item_id: str = Path(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    if not session.ledger.remove_item(item_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Cart item not found")
    return session.ledger.snapshot()


@router.delete("", response_model=CartOut, status_code=status.HTTP_200_OK)
def clear_cart(session: StorefrontSession = Depends(get_storefront_session)):
    session.ledger.clear()
    session.calculation.result = None
    return session.ledger.snapshot()


@router.post("/calculate", response_model=CartCalculationOut, status_code=status.HTTP_200_OK)
async def calculate_cart(
    context: Optional[CalculationContext] = Body(None),
    session: StorefrontSession = Depends(get_storefront_session),
):
    """
    Price breakdown of the current cart. An empty cart answers with
    `calculation: null`.
    """
    await session.calculation.calculate(session.ledger.subtotal, context)
    return _calculation_out(session)


@router.post("/recalculate", response_model=CartCalculationOut, status_code=status.HTTP_200_OK)
async def recalculate_cart(session: StorefrontSession = Depends(get_storefront_session)):
    await session.calculation.recalculate(session.ledger.subtotal)
    return _calculation_out(session)


@router.get("/delivery-estimate", response_model=DeliveryEstimate, status_code=status.HTTP_200_OK)
async def delivery_estimate(
    address_id: int = Query(...),
    restaurant_id: Optional[str] = Query(None),
    session: StorefrontSession = Depends(get_storefront_session),
):
    return await session.calculation.estimate_delivery(address_id, restaurant_id)
