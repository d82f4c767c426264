from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status

from app.api.orders.schemas.schema_order import OrderOut, OrderStatusEvent
from app.api.orders.services.dependencies import get_order_service
from app.api.orders.services.service_order import OrderService
from app.config import settings
from app.utils.logger import logger

router = APIRouter(prefix="/api/orders/webhook", tags=["Webhook - Orders"])


def verify_webhook_secret(x_webhook_secret: Optional[str] = Header(None, alias="X-Webhook-Secret")) -> None:
    if settings.ORDER_WEBHOOK_SECRET and x_webhook_secret != settings.ORDER_WEBHOOK_SECRET:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid webhook secret")


@router.post(
    "/status",
    response_model=OrderOut,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_webhook_secret)],
)
def receive_status_event(
    event: OrderStatusEvent = Body(...),
    svc: OrderService = Depends(get_order_service),
):
    """
    Intake for status changes reported by the restaurant/courier side.

    Moving backwards in the chain or touching a delivered/cancelled order
    answers 409; an unknown order answers 404.
    """
    logger.info(f"[Orders] Status event order={event.order_id} status={event.status.value}")
    return svc.update_status(event.order_id, event.status)
