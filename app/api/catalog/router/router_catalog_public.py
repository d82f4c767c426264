from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from app.api.catalog.contracts.catalog_contract import ICatalogContract, ProductDTO
from app.api.catalog.contracts.dependencies import get_catalog_contract
from app.api.catalog.schemas.schema_customization import (
    PriceQuoteRequest,
    PriceQuoteResponse,
    ProductCustomization,
    ProductOptionsOut,
)
from app.api.catalog.services.service_price_resolver import (
    build_default_customization,
    resolve_unit_price,
    validate_selections,
)
from app.utils.logger import logger

router = APIRouter(prefix="/api/catalog/public", tags=["Public - Catalog"])


def _get_product_or_404(catalog: ICatalogContract, product_id: str) -> ProductDTO:
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    return product


@router.get("/products", response_model=List[ProductDTO], status_code=status.HTTP_200_OK)
def list_products(
    category: Optional[str] = Query(None),
    catalog: ICatalogContract = Depends(get_catalog_contract),
):
    return catalog.list_products(category=category)


@router.get("/products/{product_id}/options", response_model=ProductOptionsOut, status_code=status.HTTP_200_OK)
def get_product_options(
    product_id: str = Path(...),
    catalog: ICatalogContract = Depends(get_catalog_contract),
):
    """
    Customization options of a product plus the selections pre-filled when
    the product is opened.
    """
    product = _get_product_or_404(catalog, product_id)
    options = catalog.list_options(product_id)
    return ProductOptionsOut(
        product=product,
        options=options,
        default_customization=build_default_customization(product_id, options),
    )


@router.post("/products/{product_id}/price", response_model=PriceQuoteResponse, status_code=status.HTTP_200_OK)
def quote_price(
    product_id: str = Path(...),
    payload: PriceQuoteRequest = Body(...),
    catalog: ICatalogContract = Depends(get_catalog_contract),
):
    product = _get_product_or_404(catalog, product_id)
    options = catalog.list_options(product_id)
    customization = ProductCustomization(
        product_id=product_id,
        selections=payload.selections,
        special_instructions=payload.special_instructions,
    )
    errors = validate_selections(customization, options)
    unit_price = resolve_unit_price(product.base_price, customization, options)
    logger.debug("[Catalog] Quote %s -> %s", product_id, unit_price)
    return PriceQuoteResponse(
        product_id=product_id,
        base_price=product.base_price,
        unit_price=unit_price,
        valid=not errors,
        errors=errors,
    )
