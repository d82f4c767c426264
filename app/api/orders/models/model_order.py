import enum

from pydantic import ConfigDict
from sqlalchemy import JSON, Column, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.api.accounts.models.model_account import AccountModel
from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class OrderStatus(str, enum.Enum):
    """Order lifecycle.

    pending -> confirmed -> preparing -> ready -> out_for_delivery -> delivered
    Any non-final status can also go to cancelled.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


OrderStatusEnum = SAEnum(
    *[s.value for s in OrderStatus],
    name="order_status_enum",
    native_enum=False,
)


class OrderModel(Base):
    """
    Order placed at checkout. Items, customer, address and pricing are
    snapshots taken when the order was placed; only status and tracking
    change afterwards.
    """
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_account_status", "account_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(20), nullable=False, unique=True)
    status = Column(OrderStatusEnum, nullable=False, default=OrderStatus.PENDING.value)

    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    items = Column(JSON, nullable=False)
    customer_details = Column(JSON, nullable=False)
    delivery_address = Column(JSON, nullable=False)
    pricing = Column(JSON, nullable=False)
    restaurant_info = Column(JSON, nullable=True)
    estimated_delivery_time = Column(String(40), nullable=False)
    # status -> ISO timestamp of when the order reached it
    tracking = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=now_trimmed, nullable=False)
    updated_at = Column(DateTime, default=now_trimmed, onupdate=now_trimmed, nullable=False)

    account = relationship(AccountModel)

    model_config = ConfigDict(from_attributes=True)
