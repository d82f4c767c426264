from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.utils.money import to_money


class TaxBreakdown(BaseModel):
    amount: Decimal
    rate: Decimal
    state_tax: Decimal
    local_tax: Decimal


class DeliveryFeeBreakdown(BaseModel):
    amount: Decimal
    base_fee: Decimal
    distance_fee: Decimal
    service_fee: Decimal


class Fees(BaseModel):
    platform_fee: Decimal
    small_order_fee: Optional[Decimal] = None


class CartCalculationResult(BaseModel):
    """
    Price breakdown of a cart. Produced either by the pricing API or by the
    local fallback formula; both paths yield this same shape.
    """
    subtotal: Decimal
    tax: TaxBreakdown
    delivery_fee: DeliveryFeeBreakdown
    fees: Fees
    total: Decimal
    estimated_delivery_time: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CartCalculationResult":
        """Builds the result from the `data` object of a pricing API response."""
        tax = data["tax"]
        breakdown = tax.get("breakdown") or {}
        delivery = data["deliveryFee"]
        fees = data.get("fees") or {}

        small_order_fee = fees.get("smallOrderFee")

        return cls(
            subtotal=to_money(data["subtotal"]),
            tax=TaxBreakdown(
                amount=to_money(tax["amount"]),
                rate=Decimal(str(tax.get("rate", 0))),
                state_tax=to_money(breakdown.get("stateTax")),
                local_tax=to_money(breakdown.get("localTax")),
            ),
            delivery_fee=DeliveryFeeBreakdown(
                amount=to_money(delivery["amount"]),
                base_fee=to_money(delivery.get("baseFee")),
                distance_fee=to_money(delivery.get("distanceFee")),
                service_fee=to_money(delivery.get("serviceFee")),
            ),
            fees=Fees(
                platform_fee=to_money(fees.get("platformFee")),
                small_order_fee=to_money(small_order_fee) if small_order_fee else None,
            ),
            total=to_money(data["total"]),
            estimated_delivery_time=data.get("estimatedDeliveryTime") or "25-35 min",
        )


class Coordinates(BaseModel):
    lat: float
    lng: float


class CalculationAddress(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    coordinates: Optional[Coordinates] = None

    def to_api(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
        }
        if self.coordinates:
            payload["coordinates"] = self.coordinates.model_dump()
        return payload


class CalculationContext(BaseModel):
    """Optional data sent along with the subtotal to the pricing API."""
    delivery_address: Optional[CalculationAddress] = None
    restaurant_id: Optional[str] = None
    address_id: Optional[int] = None


class BreakdownLine(BaseModel):
    label: str
    amount: Decimal
    formatted: str
    breakdown: List["BreakdownLine"] = Field(default_factory=list)


class FormattedBreakdown(BaseModel):
    subtotal: BreakdownLine
    tax: BreakdownLine
    delivery_fee: BreakdownLine
    fees: BreakdownLine
    total: BreakdownLine
    estimated_delivery_time: str


class DeliveryEstimate(BaseModel):
    delivery_fee: Decimal
    estimated_time: str
    available: bool


class CartCalculationOut(BaseModel):
    calculation: Optional[CartCalculationResult] = None
    breakdown: Optional[FormattedBreakdown] = None
    has_small_order_fee: bool = False
    small_order_threshold: Decimal
