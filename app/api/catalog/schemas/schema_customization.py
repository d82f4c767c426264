from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.api.catalog.contracts.catalog_contract import CustomizationOptionDTO, ProductDTO

SelectionValue = Union[str, List[str]]


class ProductCustomization(BaseModel):
    """
    Selections made for one product.

    `selections` maps an option id to a choice id (variant) or a list of
    choice ids (modifier). Which of the two applies is decided by the option
    definition, never by the shape of the value.
    """
    product_id: str
    selections: Dict[str, SelectionValue] = Field(default_factory=dict)
    special_instructions: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ProductOptionsOut(BaseModel):
    product: ProductDTO
    options: List[CustomizationOptionDTO]
    default_customization: ProductCustomization


class PriceQuoteRequest(BaseModel):
    selections: Dict[str, SelectionValue] = Field(default_factory=dict)
    special_instructions: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class PriceQuoteResponse(BaseModel):
    product_id: str
    base_price: Decimal
    unit_price: Decimal
    valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
