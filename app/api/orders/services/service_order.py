from __future__ import annotations

import random
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List

from sqlalchemy.orm import Session

from app.api.orders.models.model_order import OrderModel, OrderStatus
from app.api.orders.repositories.repo_order import OrderRepository
from app.api.orders.schemas.schema_order import OrderOut, OrderSnapshot
from app.core.exceptions import InvalidStatusTransitionError, OrderNotFoundError
from app.database.db_connection import SessionLocal
from app.utils.database_utils import now_trimmed
from app.utils.logger import logger
from app.utils.prometheus_metrics import orders_created_total

STATUS_CHAIN = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]
FINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# tracking key written when an order enters each status
TRACKING_KEYS = {
    OrderStatus.PENDING: "order_placed",
    OrderStatus.CONFIRMED: "confirmed",
    OrderStatus.PREPARING: "preparing",
    OrderStatus.READY: "ready",
    OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery",
    OrderStatus.DELIVERED: "delivered",
    OrderStatus.CANCELLED: "cancelled",
}

_ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number() -> str:
    """"ME" + last 6 digits of the millisecond clock + 3 random digits."""
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"ME{timestamp}{random.randint(0, 999):03d}"


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current in FINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return STATUS_CHAIN.index(target) > STATUS_CHAIN.index(current)


def _now_iso() -> str:
    return now_trimmed().isoformat()


def order_to_out(order: OrderModel) -> OrderOut:
    return OrderOut(
        id=order.id,
        order_number=order.order_number,
        status=OrderStatus(order.status),
        account_id=order.account_id,
        items=order.items,
        customer_details=order.customer_details,
        delivery_address=order.delivery_address,
        pricing=order.pricing,
        restaurant=order.restaurant_info,
        estimated_delivery_time=order.estimated_delivery_time,
        tracking=order.tracking or {},
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


class OrderService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository(db)

    def create_order(self, snapshot: OrderSnapshot) -> OrderOut:
        order_number = generate_order_number()
        for _ in range(_ORDER_NUMBER_ATTEMPTS - 1):
            if not self.repo.exists_number(order_number):
                break
            order_number = generate_order_number()

        data = snapshot.model_dump(mode="json")
        order = self.repo.create(
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            account_id=snapshot.account_id,
            items=data["items"],
            customer_details=data["customer_details"],
            delivery_address=data["delivery_address"],
            pricing=data["pricing"],
            restaurant_info=data["restaurant"],
            estimated_delivery_time=snapshot.estimated_delivery_time,
            tracking={TRACKING_KEYS[OrderStatus.PENDING]: _now_iso()},
        )
        orders_created_total.inc()
        logger.info(f"[Orders] Order {order.order_number} created (account={order.account_id})")
        return order_to_out(order)

    def get_order(self, order_id: int) -> OrderOut:
        order = self.repo.get_by_id(order_id)
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found")
        return order_to_out(order)

    def list_orders(self, account_id: int) -> List[OrderOut]:
        return [order_to_out(o) for o in self.repo.list_by_account(account_id)]

    def list_pending_orders(self, account_id: int) -> List[OrderOut]:
        """Orders still in progress (neither delivered nor cancelled)."""
        return [order_to_out(o) for o in self.repo.list_by_account(account_id, only_open=True)]

    def update_status(self, order_id: int, status: OrderStatus) -> OrderOut:
        order = self.repo.get_by_id(order_id)
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found")

        current = OrderStatus(order.status)
        if current == status:
            return order_to_out(order)
        if not can_transition(current, status):
            raise InvalidStatusTransitionError(
                f"Order {order.order_number} cannot go from '{current.value}' to '{status.value}'"
            )

        # JSON column: assign a new dict so the change is tracked
        tracking = dict(order.tracking or {})
        tracking[TRACKING_KEYS[status]] = _now_iso()
        order = self.repo.update(order, status=status.value, tracking=tracking)
        logger.info(f"[Orders] Order {order.order_number}: {current.value} -> {status.value}")
        return order_to_out(order)


@contextmanager
def order_service_scope(session_factory: Callable[[], Session] = SessionLocal) -> Iterator[OrderService]:
    """OrderService bound to its own session, for callers living outside a request."""
    db = session_factory()
    try:
        yield OrderService(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
