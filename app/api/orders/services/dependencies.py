from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.orders.services.service_order import OrderService
from app.database.db_connection import get_db


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)
