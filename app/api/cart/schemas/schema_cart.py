from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.catalog.schemas.schema_customization import ProductCustomization, SelectionValue


class CartItem(BaseModel):
    """
    Line of the cart. `price` already includes customization adjustments and
    `total_price` is always `price * quantity`.
    """
    id: str
    product_id: str
    name: str
    price: Decimal
    quantity: int = Field(ge=1)
    customization: Optional[ProductCustomization] = None
    total_price: Decimal

    model_config = ConfigDict(frozen=True)


class CartOut(BaseModel):
    items: List[CartItem]
    total_item_count: int
    subtotal: Decimal


class AddItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    selections: Optional[Dict[str, SelectionValue]] = None
    special_instructions: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class UpdateQuantityRequest(BaseModel):
    quantity: int
