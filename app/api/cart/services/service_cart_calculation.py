from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple

from app.api.cart.schemas.schema_cart_calculation import (
    BreakdownLine,
    CalculationContext,
    CartCalculationResult,
    DeliveryEstimate,
    DeliveryFeeBreakdown,
    Fees,
    FormattedBreakdown,
    TaxBreakdown,
)
from app.config.settings import SMALL_ORDER_THRESHOLD
from app.core.exceptions import PricingUnavailableError
from app.integrations.pricing.client import PricingApiClient
from app.utils.logger import logger
from app.utils.money import format_money, to_money
from app.utils.prometheus_metrics import pricing_fallback_total

STATE_TAX_RATE = Decimal("0.08")
LOCAL_TAX_RATE = Decimal("0.05")
BASE_DELIVERY_FEE = Decimal("2.99")
DISTANCE_FEE = Decimal("1.50")
SERVICE_FEE = Decimal("1.99")
PLATFORM_FEE = Decimal("1.49")
SMALL_ORDER_FEE = Decimal("2.99")
DEFAULT_DELIVERY_TIME = "25-35 min"

# what a payload of the wrong shape raises while being parsed (InvalidOperation is an ArithmeticError)
_MALFORMED_PAYLOAD = (KeyError, TypeError, ValueError, AttributeError, ArithmeticError)


def fallback_calculation(subtotal: Decimal) -> CartCalculationResult:
    """
    Local formula used whenever the pricing API cannot answer.

    Each component is rounded to cents before being summed, so the displayed
    lines always add up to the displayed total.
    """
    subtotal = to_money(subtotal)
    state_tax = to_money(subtotal * STATE_TAX_RATE)
    local_tax = to_money(subtotal * LOCAL_TAX_RATE)
    tax_amount = state_tax + local_tax

    delivery_amount = BASE_DELIVERY_FEE + DISTANCE_FEE + SERVICE_FEE
    small_order_fee = SMALL_ORDER_FEE if subtotal < SMALL_ORDER_THRESHOLD else None

    total = subtotal + tax_amount + delivery_amount + PLATFORM_FEE + (small_order_fee or Decimal("0"))

    return CartCalculationResult(
        subtotal=subtotal,
        tax=TaxBreakdown(
            amount=tax_amount,
            rate=(STATE_TAX_RATE + LOCAL_TAX_RATE) * 100,
            state_tax=state_tax,
            local_tax=local_tax,
        ),
        delivery_fee=DeliveryFeeBreakdown(
            amount=delivery_amount,
            base_fee=BASE_DELIVERY_FEE,
            distance_fee=DISTANCE_FEE,
            service_fee=SERVICE_FEE,
        ),
        fees=Fees(platform_fee=PLATFORM_FEE, small_order_fee=small_order_fee),
        total=to_money(total),
        estimated_delivery_time=DEFAULT_DELIVERY_TIME,
    )


def format_breakdown(result: CartCalculationResult) -> FormattedBreakdown:
    """Labelled lines for the cart summary."""

    def line(label: str, amount: Decimal, breakdown=None) -> BreakdownLine:
        return BreakdownLine(label=label, amount=amount, formatted=format_money(amount), breakdown=breakdown or [])

    fee_lines = [line("Platform Fee", result.fees.platform_fee)]
    if result.fees.small_order_fee:
        fee_lines.append(line("Small Order Fee", result.fees.small_order_fee))
    fees_amount = result.fees.platform_fee + (result.fees.small_order_fee or Decimal("0"))

    return FormattedBreakdown(
        subtotal=line("Subtotal", result.subtotal),
        tax=line(
            f"Tax ({result.tax.rate:.1f}%)",
            result.tax.amount,
            [line("State Tax", result.tax.state_tax), line("Local Tax", result.tax.local_tax)],
        ),
        delivery_fee=line(
            "Delivery Fee",
            result.delivery_fee.amount,
            [
                line("Base Fee", result.delivery_fee.base_fee),
                line("Distance Fee", result.delivery_fee.distance_fee),
                line("Service Fee", result.delivery_fee.service_fee),
            ],
        ),
        fees=line("Fees & Charges", fees_amount, fee_lines),
        total=line("Total", result.total),
        estimated_delivery_time=result.estimated_delivery_time,
    )


class CartCalculationService:
    """
    Prices a cart subtotal through the pricing API, falling back to the local
    formula. Keeps the latest result; an answer to a superseded request is
    handed back to its caller but does not replace `result`.
    """

    def __init__(self, client: PricingApiClient | None = None):
        self.client = client or PricingApiClient()
        self.result: Optional[CartCalculationResult] = None
        self._sequence = 0
        self._last_request: Optional[Tuple[Decimal, Optional[CalculationContext]]] = None

    async def calculate(
        self,
        subtotal: Decimal,
        context: CalculationContext | None = None,
    ) -> Optional[CartCalculationResult]:
        subtotal = to_money(subtotal)
        self._last_request = (subtotal, context)
        self._sequence += 1
        sequence = self._sequence

        if subtotal <= 0:
            self.result = None
            return None

        try:
            data = await self.client.calculate_cart(
                subtotal=subtotal,
                delivery_address=context.delivery_address.to_api() if context and context.delivery_address else None,
                restaurant_id=context.restaurant_id if context else None,
                address_id=context.address_id if context else None,
            )
            result = CartCalculationResult.from_api(data)
        except PricingUnavailableError as e:
            logger.warning("[Pricing] Cart calculation API failed, using static calculation: %s", e)
            pricing_fallback_total.inc()
            result = fallback_calculation(subtotal)
        except _MALFORMED_PAYLOAD as e:
            logger.warning("[Pricing] Unexpected cart calculation payload, using static calculation: %s", e)
            pricing_fallback_total.inc()
            result = fallback_calculation(subtotal)

        if sequence == self._sequence:
            self.result = result
        else:
            logger.debug("[Pricing] Discarding stale calculation #%s (latest #%s)", sequence, self._sequence)
        return result

    async def recalculate(self, subtotal: Decimal | None = None) -> Optional[CartCalculationResult]:
        """Re-prices with the context of the last request; `subtotal` is the cart as it is now."""
        if self._last_request is None:
            return None if subtotal is None else await self.calculate(subtotal)
        last_subtotal, context = self._last_request
        return await self.calculate(last_subtotal if subtotal is None else subtotal, context)

    @property
    def has_small_order_fee(self) -> bool:
        return bool(self.result and self.result.fees.small_order_fee)

    async def estimate_delivery(self, address_id: int, restaurant_id: str | None = None) -> DeliveryEstimate:
        try:
            data = await self.client.delivery_estimate(address_id=address_id, restaurant_id=restaurant_id)
            return DeliveryEstimate(
                delivery_fee=to_money(data["deliveryFee"]),
                estimated_time=data.get("estimatedTime") or DEFAULT_DELIVERY_TIME,
                available=bool(data.get("available", True)),
            )
        except (PricingUnavailableError, *_MALFORMED_PAYLOAD) as e:
            logger.warning("[Pricing] Delivery estimate API failed, using static values: %s", e)
            return DeliveryEstimate(
                delivery_fee=BASE_DELIVERY_FEE + DISTANCE_FEE + SERVICE_FEE,
                estimated_time=DEFAULT_DELIVERY_TIME,
                available=True,
            )
