"""
Checkout flow of a storefront session.

address -> details -> phone -> otp -> payment -> success

Every action returns True/False and leaves a user-facing message in
`state.error` / `state.field_errors` instead of raising. Async actions set
`loading` while they run; a second action started meanwhile is ignored, and
an answer that arrives after `reset()`/`close()` is dropped.
"""
from __future__ import annotations

import asyncio
from contextlib import AbstractContextManager
from typing import Callable, Optional

from app.api.accounts.schemas.schema_account import AccountOut
from app.api.accounts.services.service_account_resolver import AccountResolver
from app.api.cart.schemas.schema_cart_calculation import CalculationContext
from app.api.cart.services.service_cart_calculation import CartCalculationService
from app.api.cart.services.service_cart_ledger import CartLedger
from app.api.checkout.schemas.schema_checkout import CheckoutState, CheckoutStep, STEP_ORDER
from app.api.checkout.services.validators import (
    validate_customer_details,
    validate_otp_code,
    validate_phone,
)
from app.api.orders.schemas.schema_order import DeliveryAddress, OrderSnapshot, RestaurantInfo
from app.api.orders.services.service_order import OrderService, order_service_scope
from app.config import settings
from app.core.exceptions import OtpProviderUnavailableError, OtpRejectedError
from app.utils.logger import logger
from app.utils.phone import normalize_phone
from app.utils.prometheus_metrics import otp_fallback_total

ADDRESS_CHANGE_UNAVAILABLE = "Changing the delivery address during checkout is currently unavailable."
ADDRESS_REQUIRED = "No delivery address found. Please go back and select a delivery location."
DETAILS_LOCKED = "Go back to the details step to edit your details."
EMPTY_CART = "Your cart is empty."
ORDER_FAILED = "We couldn't place your order. Please try again."
PHONE_NOT_VERIFIED = "Please verify your phone number before placing the order."
UNEXPECTED_ERROR = "Something went wrong. Please try again."


def fallback_notice() -> str:
    return f'OTP service is temporarily unavailable. For testing, use "{settings.OTP_FALLBACK_CODE}" as OTP.'


def invalid_fallback_code() -> str:
    return f'Invalid test OTP. Use "{settings.OTP_FALLBACK_CODE}" for testing.'


class CheckoutStateMachine:

    def __init__(
        self,
        ledger: CartLedger,
        calculation: CartCalculationService,
        resolver: AccountResolver,
        order_scope: Callable[[], AbstractContextManager[OrderService]] = order_service_scope,
        close_delay: float | None = None,
    ):
        self.ledger = ledger
        self.calculation = calculation
        self.resolver = resolver
        self.order_scope = order_scope
        self.close_delay = close_delay
        self.state = CheckoutState()
        self.close_task: Optional[asyncio.Task] = None
        self._attempt = 0
        self._verified_phone: Optional[str] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Starts a fresh attempt; answers still in flight for the old one are dropped."""
        self._attempt += 1
        self._verified_phone = None
        self.state = CheckoutState()

    def close(self) -> None:
        if self.close_task and not self.close_task.done():
            self.close_task.cancel()
        self.close_task = None
        self.reset()

    def _begin(self) -> Optional[int]:
        if self.state.loading:
            logger.debug("[Checkout] Action ignored, another one is still running")
            return None
        self.state.loading = True
        self.state.error = None
        self.state.field_errors = {}
        return self._attempt

    def _is_current(self, attempt: int) -> bool:
        if attempt != self._attempt:
            logger.debug("[Checkout] Dropping answer of superseded attempt %s", attempt)
            return False
        return True

    def _finish(self, attempt: int) -> None:
        if attempt == self._attempt:
            self.state.loading = False

    # ------------------------------------------------------------------
    # Address
    # ------------------------------------------------------------------
    def confirm_address(
        self,
        address: DeliveryAddress | None,
        restaurant: RestaurantInfo | None = None,
    ) -> bool:
        if self.state.current_step != CheckoutStep.ADDRESS or self.state.loading:
            return False
        if address is None:
            self.state.error = ADDRESS_REQUIRED
            return False
        self.state.delivery_address = address
        if restaurant is not None:
            self.state.restaurant = restaurant
        self.state.error = None
        self.state.current_step = CheckoutStep.DETAILS
        return True

    def request_address_change(self) -> bool:
        self.state.error = ADDRESS_CHANGE_UNAVAILABLE
        return False

    # ------------------------------------------------------------------
    # Customer details
    # ------------------------------------------------------------------
    def update_customer_details(self, **fields) -> bool:
        """Editable on the details and phone steps only, and not while an action runs."""
        if self.state.loading or self.state.current_step not in (CheckoutStep.DETAILS, CheckoutStep.PHONE):
            self.state.error = DETAILS_LOCKED
            return False
        current = self.state.customer_details
        updated = current.model_copy(update={k: v for k, v in fields.items() if v is not None})

        # a different phone invalidates any code sent or verified for the old one
        if normalize_phone(updated.phone) != normalize_phone(current.phone):
            self.state.otp = ""
            self.state.otp_sent = False
            self.state.using_fallback = False
            self.state.is_new_account = None
            self.state.account = None
            self.state.super_token = None
            self._verified_phone = None

        self.state.customer_details = updated
        for field in fields:
            self.state.field_errors.pop(field, None)
        return True

    def submit_details(self) -> bool:
        if self.state.current_step != CheckoutStep.DETAILS or self.state.loading:
            return False
        errors = validate_customer_details(self.state.customer_details)
        self.state.field_errors = errors
        if errors:
            return False
        self.state.error = None
        self.state.current_step = CheckoutStep.PHONE
        return True

    # ------------------------------------------------------------------
    # OTP
    # ------------------------------------------------------------------
    def _enter_fallback(self, stage: str) -> None:
        otp_fallback_total.labels(stage=stage).inc()
        self.state.using_fallback = True
        self.state.otp_sent = True
        self.state.error = fallback_notice()

    async def send_otp(self) -> bool:
        """Sends (or re-sends, from the otp step) the verification code."""
        if self.state.current_step not in (CheckoutStep.PHONE, CheckoutStep.OTP):
            return False
        details = self.state.customer_details
        phone_error = validate_phone(details.phone)
        if phone_error:
            self.state.field_errors = {"phone": phone_error}
            return False

        attempt = self._begin()
        if attempt is None:
            return False
        try:
            resolution = self.resolver.lookup(details.phone, details.name, details.email)
            try:
                await self.resolver.dispatch_otp(resolution.phone)
            except OtpProviderUnavailableError as e:
                if not self._is_current(attempt):
                    return False
                logger.warning("[Checkout] OTP provider unavailable, switching to fallback: %s", e)
                self.state.is_new_account = resolution.is_new_account
                self._enter_fallback("send")
                self.state.current_step = CheckoutStep.OTP
                return True

            if not self._is_current(attempt):
                return False
            self.state.is_new_account = resolution.is_new_account
            self.state.otp_sent = True
            self.state.using_fallback = False
            self.state.current_step = CheckoutStep.OTP
            return True
        except OtpRejectedError as e:
            if self._is_current(attempt):
                self.state.error = e.message
            return False
        except Exception as e:
            logger.error("[Checkout] Unexpected error sending OTP: %s", e, exc_info=True)
            if self._is_current(attempt):
                self.state.error = UNEXPECTED_ERROR
            return False
        finally:
            self._finish(attempt)

    def set_otp(self, code: str) -> None:
        self.state.otp = (code or "").strip()
        self.state.field_errors.pop("otp", None)

    def _accept_fallback_code(self) -> bool:
        if self.state.otp == settings.OTP_FALLBACK_CODE:
            return True
        self.state.error = invalid_fallback_code()
        return False

    async def verify_otp(self) -> bool:
        if self.state.current_step != CheckoutStep.OTP:
            return False
        code_error = validate_otp_code(self.state.otp)
        if code_error:
            self.state.field_errors = {"otp": code_error}
            return False

        attempt = self._begin()
        if attempt is None:
            return False
        phone = normalize_phone(self.state.customer_details.phone)
        try:
            if self.state.using_fallback:
                verified = self._accept_fallback_code()
            else:
                try:
                    await self.resolver.verify_otp(phone, self.state.otp)
                    verified = True
                except OtpProviderUnavailableError as e:
                    if not self._is_current(attempt):
                        return False
                    logger.warning("[Checkout] OTP provider unavailable during verify: %s", e)
                    self._enter_fallback("verify")
                    verified = self._accept_fallback_code()

            if not self._is_current(attempt) or not verified:
                return False

            account = self.resolver.complete_verification(phone)
            self._verified_phone = phone
            self.state.account = AccountOut.model_validate(account)
            # the token is only handed out for a code the provider verified
            self.state.super_token = None if self.state.using_fallback else account.super_token
            self.state.error = None
            self.state.current_step = CheckoutStep.PAYMENT
            logger.info("[Checkout] Phone %s verified (account %s)", phone, account.id)
            return True
        except OtpRejectedError as e:
            if self._is_current(attempt):
                self.state.error = e.message or "Invalid OTP. Please try again."
            return False
        except Exception as e:
            logger.error("[Checkout] Unexpected error verifying OTP: %s", e, exc_info=True)
            if self._is_current(attempt):
                self.state.error = UNEXPECTED_ERROR
            return False
        finally:
            self._finish(attempt)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------
    async def place_order(self) -> bool:
        if self.state.current_step != CheckoutStep.PAYMENT:
            return False
        if self.ledger.is_empty():
            self.state.error = EMPTY_CART
            return False
        if self.state.delivery_address is None:
            self.state.error = ADDRESS_REQUIRED
            return False
        phone = normalize_phone(self.state.customer_details.phone)
        if self.state.account is None or self._verified_phone != phone:
            self.state.error = PHONE_NOT_VERIFIED
            return False

        attempt = self._begin()
        if attempt is None:
            return False
        try:
            pricing = self.calculation.result
            if pricing is None or pricing.subtotal != self.ledger.subtotal:
                context = CalculationContext(
                    restaurant_id=self.state.restaurant.id if self.state.restaurant else None,
                )
                pricing = await self.calculation.calculate(self.ledger.subtotal, context)
            if not self._is_current(attempt):
                return False
            if pricing is None:
                self.state.error = EMPTY_CART
                return False

            snapshot = OrderSnapshot(
                items=self.ledger.items,
                customer_details=self.state.customer_details.model_copy(update={"phone": phone}),
                delivery_address=self.state.delivery_address,
                pricing=pricing,
                restaurant=self.state.restaurant,
                estimated_delivery_time=pricing.estimated_delivery_time,
                account_id=self.state.account.id,
            )
            with self.order_scope() as orders:
                order = orders.create_order(snapshot)
        except Exception as e:
            logger.error("[Checkout] Order placement failed: %s", e, exc_info=True)
            if self._is_current(attempt):
                self.state.error = ORDER_FAILED
            return False
        finally:
            self._finish(attempt)

        if not self._is_current(attempt):
            return False
        self.state.order = order
        self.state.current_step = CheckoutStep.SUCCESS
        self._schedule_close(attempt)
        return True

    def _schedule_close(self, attempt: int) -> None:
        delay = self.close_delay if self.close_delay is not None else settings.CHECKOUT_SUCCESS_CLOSE_DELAY_SECONDS
        self.close_task = asyncio.get_running_loop().create_task(self._close_after(delay, attempt))

    async def _close_after(self, delay: float, attempt: int) -> None:
        await asyncio.sleep(delay)
        if attempt != self._attempt:
            return
        logger.info("[Checkout] Closing finished checkout, clearing cart")
        self.ledger.clear()
        self.calculation.result = None
        self.reset()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def _can_enter(self, target: CheckoutStep) -> bool:
        """Precondition for moving forward into `target`."""
        if target == CheckoutStep.DETAILS:
            return self.state.delivery_address is not None
        if target == CheckoutStep.PHONE:
            return not validate_customer_details(self.state.customer_details)
        if target == CheckoutStep.OTP:
            return self.state.otp_sent
        if target == CheckoutStep.PAYMENT:
            return self._verified_phone is not None and self.state.account is not None
        # success is only reached through place_order
        return False

    def go_to_step(self, target: CheckoutStep) -> bool:
        current = self.state.current_step
        if current == CheckoutStep.SUCCESS or self.state.loading:
            return False

        current_index = STEP_ORDER.index(current)
        target_index = STEP_ORDER.index(target)

        if target_index <= current_index:
            self.state.current_step = target
            self.state.error = None
            self.state.field_errors = {}
            return True
        if target_index == current_index + 1 and self._can_enter(target):
            self.state.current_step = target
            self.state.error = None
            return True

        logger.debug("[Checkout] Rejected step change %s -> %s", current.value, target.value)
        return False
