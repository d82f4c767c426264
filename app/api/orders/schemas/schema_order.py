from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.cart.schemas.schema_cart import CartItem
from app.api.cart.schemas.schema_cart_calculation import CartCalculationResult
from app.api.orders.models.model_order import OrderStatus


class CustomerDetails(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    delivery_instructions: Optional[str] = None


class DeliveryAddress(BaseModel):
    """Address picked before checkout. Treated as opaque by the core."""
    lat: float
    lng: float
    address: str
    city: Optional[str] = None
    pincode: Optional[str] = None
    phone: Optional[str] = None


class RestaurantInfo(BaseModel):
    id: str
    name: str


class OrderSnapshot(BaseModel):
    """Everything needed to persist an order, assembled at the payment step."""
    items: List[CartItem] = Field(min_length=1)
    customer_details: CustomerDetails
    delivery_address: DeliveryAddress
    pricing: CartCalculationResult
    restaurant: Optional[RestaurantInfo] = None
    estimated_delivery_time: str
    account_id: Optional[int] = None


class OrderOut(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    account_id: Optional[int] = None
    items: List[CartItem]
    customer_details: CustomerDetails
    delivery_address: DeliveryAddress
    pricing: CartCalculationResult
    restaurant: Optional[RestaurantInfo] = None
    estimated_delivery_time: str
    tracking: Dict[str, datetime] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderStatusEvent(BaseModel):
    """Status change pushed by the restaurant/courier side."""
    order_id: int
    status: OrderStatus
