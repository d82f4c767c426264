import asyncio
import json
from decimal import Decimal

import httpx

from app.api.accounts.services.service_account_resolver import AccountResolver
from app.api.cart.services.service_cart_calculation import CartCalculationService
from app.api.cart.services.service_cart_ledger import CartLedger
from app.api.catalog.contracts.catalog_contract import ProductDTO
from app.api.checkout.schemas.schema_checkout import CheckoutStep
from app.api.checkout.services.service_checkout import (
    ADDRESS_CHANGE_UNAVAILABLE,
    DETAILS_LOCKED,
    EMPTY_CART,
    PHONE_NOT_VERIFIED,
    CheckoutStateMachine,
)
from app.api.orders.schemas.schema_order import DeliveryAddress
from app.integrations.otp.client import OtpApiClient
from app.integrations.pricing.client import PricingApiClient

SOUP = ProductDTO(id="p2", name="French Onion Soup", base_price=Decimal("8.99"), has_customization=False)
ADDRESS = DeliveryAddress(lat=43.6487, lng=-79.3817, address="100 King St W", city="Toronto", pincode="M5X 1A9")


def _ok(request):
    return httpx.Response(200, json={"success": True})


def _pricing_down(request):
    raise httpx.ConnectError("down", request=request)


def _machine(otp_transport, with_item=True) -> CheckoutStateMachine:
    ledger = CartLedger()
    if with_item:
        ledger.add_item(SOUP, 1)
    calculation = CartCalculationService(
        PricingApiClient(base_url="http://pricing.test/api", transport=httpx.MockTransport(_pricing_down))
    )
    resolver = AccountResolver(OtpApiClient(base_url="http://otp.test/api", transport=otp_transport))
    return CheckoutStateMachine(ledger, calculation, resolver, close_delay=0)


def _to_phone_step(machine: CheckoutStateMachine, phone="+15551234567") -> None:
    assert machine.confirm_address(ADDRESS)
    machine.update_customer_details(name="Ana Lima", email="ana@example.com", phone=phone)
    assert machine.submit_details()
    assert machine.state.current_step == CheckoutStep.PHONE


def _to_payment_step(machine: CheckoutStateMachine) -> None:
    _to_phone_step(machine)

    async def scenario():
        assert await machine.send_otp()
        machine.set_otp("123456")
        assert await machine.verify_otp()

    asyncio.run(scenario())
    assert machine.state.current_step == CheckoutStep.PAYMENT


def test_address_step_requires_an_address():
    machine = _machine(httpx.MockTransport(_ok))
    assert machine.confirm_address(None) is False
    assert machine.state.current_step == CheckoutStep.ADDRESS
    assert machine.state.error

    assert machine.confirm_address(ADDRESS) is True
    assert machine.state.current_step == CheckoutStep.DETAILS
    assert machine.state.error is None


def test_address_change_is_unavailable():
    machine = _machine(httpx.MockTransport(_ok))
    machine.confirm_address(ADDRESS)
    assert machine.request_address_change() is False
    assert machine.state.error == ADDRESS_CHANGE_UNAVAILABLE
    assert machine.state.delivery_address == ADDRESS


def test_invalid_details_keep_the_step():
    machine = _machine(httpx.MockTransport(_ok))
    machine.confirm_address(ADDRESS)
    machine.update_customer_details(name="A", email="not-an-email", phone="555-1234")

    assert machine.submit_details() is False
    assert machine.state.current_step == CheckoutStep.DETAILS
    assert set(machine.state.field_errors) == {"name", "email", "phone"}

    machine.update_customer_details(name="Ana 2")
    machine.submit_details()
    assert machine.state.field_errors["name"] == "Name can only contain letters and spaces"


def test_step_skipping_is_rejected_and_back_navigation_allowed():
    machine = _machine(httpx.MockTransport(_ok))
    machine.confirm_address(ADDRESS)

    assert machine.go_to_step(CheckoutStep.PAYMENT) is False
    assert machine.state.current_step == CheckoutStep.DETAILS

    machine.state.error = "stale message"
    assert machine.go_to_step(CheckoutStep.ADDRESS) is True
    assert machine.state.current_step == CheckoutStep.ADDRESS
    assert machine.state.error is None

    assert machine.go_to_step(CheckoutStep.DETAILS) is True


def test_unreachable_provider_switches_to_fallback(down_transport):
    machine = _machine(down_transport)
    _to_phone_step(machine)

    async def scenario():
        assert await machine.send_otp() is True
        assert machine.state.using_fallback is True
        assert machine.state.otp_sent is True
        assert machine.state.current_step == CheckoutStep.OTP
        assert "123456" in machine.state.error
        assert machine.state.is_new_account is True

        machine.set_otp("654321")
        assert await machine.verify_otp() is False
        assert machine.state.error == 'Invalid test OTP. Use "123456" for testing.'
        assert machine.state.current_step == CheckoutStep.OTP

        machine.set_otp("123456")
        assert await machine.verify_otp() is True

    asyncio.run(scenario())
    assert machine.state.current_step == CheckoutStep.PAYMENT
    assert machine.state.account.phone == "+15551234567"
    assert machine.state.account.name == "Ana Lima"
    assert machine.state.super_token is None
    assert "super_token" not in machine.state.model_dump()["account"]


def test_provider_rejection_keeps_the_phone_step():
    rejecting = httpx.MockTransport(lambda request: httpx.Response(429, json={"message": "Too many attempts"}))
    machine = _machine(rejecting)
    _to_phone_step(machine)

    assert asyncio.run(machine.send_otp()) is False
    assert machine.state.current_step == CheckoutStep.PHONE
    assert machine.state.error == "Too many attempts"
    assert machine.state.loading is False


def test_verification_through_the_provider(recording_transport):
    def handler(request):
        if request.url.path.endswith("/verify-checkout-otp/"):
            if json.loads(request.content)["otp"] != "246810":
                return httpx.Response(400, json={"message": "Invalid OTP. Please try again."})
        return httpx.Response(200, json={"success": True})

    transport = recording_transport(handler)
    machine = _machine(transport)
    _to_phone_step(machine)

    async def scenario():
        assert await machine.send_otp()
        assert machine.state.using_fallback is False

        machine.set_otp("12ab")
        assert await machine.verify_otp() is False
        assert "otp" in machine.state.field_errors
        assert len(transport.requests) == 1

        machine.set_otp("111111")
        assert await machine.verify_otp() is False
        assert machine.state.error == "Invalid OTP. Please try again."

        machine.set_otp("246810")
        return await machine.verify_otp()

    assert asyncio.run(scenario()) is True
    assert machine.state.current_step == CheckoutStep.PAYMENT
    assert machine.state.super_token
    assert machine.state.account.phone == "+15551234567"


def test_provider_lost_during_verify_applies_fallback_rule():
    def handler(request):
        if request.url.path.endswith("/verify-checkout-otp/"):
            raise httpx.ConnectError("down", request=request)
        return httpx.Response(200, json={"success": True})

    machine = _machine(httpx.MockTransport(handler))
    _to_phone_step(machine)

    async def scenario():
        await machine.send_otp()
        machine.set_otp("123456")
        return await machine.verify_otp()

    assert asyncio.run(scenario()) is True
    assert machine.state.using_fallback is True
    assert machine.state.super_token is None


def test_changing_the_phone_invalidates_verification(down_transport):
    machine = _machine(down_transport)
    _to_payment_step(machine)

    machine.go_to_step(CheckoutStep.DETAILS)
    machine.update_customer_details(phone="+15559876543")
    assert machine.state.otp_sent is False
    assert machine.state.account is None

    assert machine.submit_details()
    assert machine.go_to_step(CheckoutStep.OTP) is False


def test_details_are_locked_at_payment(down_transport):
    machine = _machine(down_transport)
    _to_payment_step(machine)

    assert machine.update_customer_details(phone="+15559876543") is False
    assert machine.state.error == DETAILS_LOCKED
    assert machine.state.customer_details.phone == "+15551234567"
    assert machine.state.account is not None

    async def scenario():
        assert await machine.place_order() is True
        order = machine.state.order
        await machine.close_task
        return order

    order = asyncio.run(scenario())
    assert order.customer_details.phone == "+15551234567"


def test_details_are_locked_while_an_action_runs():
    machine = _machine(httpx.MockTransport(_ok))
    machine.confirm_address(ADDRESS)
    machine.state.loading = True

    assert machine.update_customer_details(name="Ana Lima") is False
    assert machine.state.customer_details.name != "Ana Lima"


def test_place_order_requires_the_verified_phone(down_transport):
    machine = _machine(down_transport)
    _to_payment_step(machine)
    machine.state.customer_details = machine.state.customer_details.model_copy(update={"phone": "+15559876543"})

    assert asyncio.run(machine.place_order()) is False
    assert machine.state.error == PHONE_NOT_VERIFIED
    assert machine.state.current_step == CheckoutStep.PAYMENT
    assert machine.state.order is None


def test_place_order_succeeds_and_auto_closes(down_transport):
    machine = _machine(down_transport)
    _to_payment_step(machine)

    async def scenario():
        assert await machine.place_order() is True
        order = machine.state.order
        assert machine.state.current_step == CheckoutStep.SUCCESS
        assert machine.go_to_step(CheckoutStep.ADDRESS) is False
        await machine.close_task
        return order

    order = asyncio.run(scenario())
    assert order.order_number.startswith("ME") and len(order.order_number) == 11
    assert order.status.value == "pending"
    assert "order_placed" in order.tracking
    assert order.pricing.total == Decimal("21.12")
    assert order.account_id is not None
    assert [i.product_id for i in order.items] == ["p2"]

    assert machine.ledger.is_empty()
    assert machine.state.current_step == CheckoutStep.ADDRESS
    assert machine.state.order is None


def test_place_order_with_empty_cart_is_an_error(down_transport):
    machine = _machine(down_transport)
    _to_payment_step(machine)
    machine.ledger.clear()

    assert asyncio.run(machine.place_order()) is False
    assert machine.state.error == EMPTY_CART
    assert machine.state.current_step == CheckoutStep.PAYMENT


def test_place_order_failure_keeps_payment_step(down_transport):
    class BrokenOrders:
        def __enter__(self):
            raise RuntimeError("database is gone")

        def __exit__(self, *exc):
            return False

    machine = _machine(down_transport)
    _to_payment_step(machine)
    machine.order_scope = BrokenOrders

    assert asyncio.run(machine.place_order()) is False
    assert machine.state.current_step == CheckoutStep.PAYMENT
    assert machine.state.error
    assert machine.state.loading is False


def test_busy_machine_ignores_actions_and_drops_answers_after_reset():
    async def scenario():
        release = asyncio.Event()

        async def handler(request):
            await release.wait()
            return httpx.Response(200, json={"success": True})

        machine = _machine(httpx.MockTransport(handler))
        _to_phone_step(machine)

        pending = asyncio.create_task(machine.send_otp())
        await asyncio.sleep(0)
        assert machine.state.loading is True
        assert await machine.send_otp() is False

        machine.reset()
        release.set()
        assert await pending is False
        return machine

    machine = asyncio.run(scenario())
    assert machine.state.current_step == CheckoutStep.ADDRESS
    assert machine.state.otp_sent is False
    assert machine.state.loading is False
