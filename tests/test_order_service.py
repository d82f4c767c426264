import re
from decimal import Decimal

import pytest

from app.api.accounts.repositories.repo_account import AccountRepository
from app.api.cart.services.service_cart_calculation import fallback_calculation
from app.api.cart.services.service_cart_ledger import CartLedger
from app.api.catalog.contracts.catalog_contract import ProductDTO
from app.api.orders.models.model_order import OrderStatus
from app.api.orders.schemas.schema_order import CustomerDetails, DeliveryAddress, OrderSnapshot
from app.api.orders.services.service_order import (
    OrderService,
    can_transition,
    generate_order_number,
    order_service_scope,
)
from app.core.exceptions import InvalidStatusTransitionError, OrderNotFoundError
from app.database.db_connection import open_session

SOUP = ProductDTO(id="p2", name="French Onion Soup", base_price=Decimal("8.99"), has_customization=False)


@pytest.fixture
def db():
    session = open_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def account_id(db):
    return AccountRepository(db).create(phone="+15551234567", name="Ana Lima").id


def _snapshot(account_id=None) -> OrderSnapshot:
    ledger = CartLedger()
    ledger.add_item(SOUP, 2)
    pricing = fallback_calculation(ledger.subtotal)
    return OrderSnapshot(
        items=ledger.items,
        customer_details=CustomerDetails(name="Ana Lima", email="ana@example.com", phone="+15551234567"),
        delivery_address=DeliveryAddress(lat=43.6487, lng=-79.3817, address="100 King St W"),
        pricing=pricing,
        estimated_delivery_time=pricing.estimated_delivery_time,
        account_id=account_id,
    )


def test_order_number_format():
    assert re.fullmatch(r"ME\d{9}", generate_order_number())


def test_create_order_stores_the_snapshot(db, account_id):
    order = OrderService(db).create_order(_snapshot(account_id))

    assert re.fullmatch(r"ME\d{9}", order.order_number)
    assert order.status == OrderStatus.PENDING
    assert list(order.tracking) == ["order_placed"]
    assert order.items[0].quantity == 2
    assert order.items[0].total_price == Decimal("17.98")
    assert order.pricing.subtotal == Decimal("17.98")
    assert order.pricing.total == Decimal("28.29")
    assert order.account_id == account_id


def test_snapshot_needs_at_least_one_item():
    data = _snapshot().model_dump()
    data["items"] = []
    with pytest.raises(ValueError):
        OrderSnapshot(**data)


def test_status_moves_forward_only(db):
    service = OrderService(db)
    order = service.create_order(_snapshot())

    confirmed = service.update_status(order.id, OrderStatus.CONFIRMED)
    assert confirmed.status == OrderStatus.CONFIRMED
    assert set(confirmed.tracking) == {"order_placed", "confirmed"}

    # skipping ahead is allowed, going back is not
    ready = service.update_status(order.id, OrderStatus.READY)
    assert ready.status == OrderStatus.READY
    with pytest.raises(InvalidStatusTransitionError):
        service.update_status(order.id, OrderStatus.PREPARING)

    same = service.update_status(order.id, OrderStatus.READY)
    assert same.tracking == ready.tracking


def test_final_statuses_are_immutable(db):
    service = OrderService(db)
    order = service.create_order(_snapshot())

    cancelled = service.update_status(order.id, OrderStatus.CANCELLED)
    assert "cancelled" in cancelled.tracking
    with pytest.raises(InvalidStatusTransitionError):
        service.update_status(order.id, OrderStatus.CONFIRMED)

    assert can_transition(OrderStatus.DELIVERED, OrderStatus.CANCELLED) is False
    assert can_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED) is True


def test_listing_by_account(db, account_id):
    service = OrderService(db)
    first = service.create_order(_snapshot(account_id))
    second = service.create_order(_snapshot(account_id))
    service.create_order(_snapshot())
    service.update_status(first.id, OrderStatus.DELIVERED)

    assert [o.id for o in service.list_orders(account_id)] == [second.id, first.id]
    assert [o.id for o in service.list_pending_orders(account_id)] == [second.id]


def test_unknown_order(db):
    service = OrderService(db)
    with pytest.raises(OrderNotFoundError):
        service.get_order(424242)
    with pytest.raises(OrderNotFoundError):
        service.update_status(424242, OrderStatus.CONFIRMED)


def test_service_scope_uses_its_own_session():
    with order_service_scope() as orders:
        created = orders.create_order(_snapshot())

    with order_service_scope() as orders:
        assert orders.get_order(created.id).order_number == created.order_number
