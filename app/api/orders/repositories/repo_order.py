from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.orders.models.model_order import OrderModel, OrderStatus

FINAL_STATUSES = (OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value)


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, order_id: int) -> Optional[OrderModel]:
        return self.db.query(OrderModel).filter(OrderModel.id == order_id).first()

    def exists_number(self, order_number: str) -> bool:
        return self.db.query(OrderModel.id).filter_by(order_number=order_number).first() is not None

    def list_by_account(self, account_id: int, only_open: bool = False) -> List[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.account_id == account_id)
        if only_open:
            stmt = stmt.where(OrderModel.status.not_in(FINAL_STATUSES))
        # newest first; id breaks ties between orders placed in the same second
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def create(self, **data) -> OrderModel:
        obj = OrderModel(**data)
        self.db.add(obj)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(obj)
        return obj

    def update(self, db_obj: OrderModel, **data) -> OrderModel:
        for k, v in data.items():
            setattr(db_obj, k, v)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj
