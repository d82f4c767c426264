from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from app.api.accounts.contracts.account_contract import AccountIdentityDTO
from app.api.accounts.contracts.dependencies import get_account_by_super_token
from app.api.orders.schemas.schema_order import OrderOut
from app.api.orders.services.dependencies import get_order_service
from app.api.orders.services.service_order import OrderService
from app.utils.logger import logger

router = APIRouter(prefix="/api/orders/client", tags=["Client - Orders"])


@router.get("/", response_model=List[OrderOut], status_code=status.HTTP_200_OK)
def list_my_orders(
    account: AccountIdentityDTO = Depends(get_account_by_super_token),
    svc: OrderService = Depends(get_order_service),
):
    logger.info(f"[Orders] List for account {account.id}")
    return svc.list_orders(account.id)


@router.get("/pending", response_model=List[OrderOut], status_code=status.HTTP_200_OK)
def list_my_pending_orders(
    account: AccountIdentityDTO = Depends(get_account_by_super_token),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_pending_orders(account.id)


@router.get("/{order_id}", response_model=OrderOut, status_code=status.HTTP_200_OK)
def get_my_order(
    order_id: int = Path(..., description="Order id"),
    account: AccountIdentityDTO = Depends(get_account_by_super_token),
    svc: OrderService = Depends(get_order_service),
):
    order = svc.get_order(order_id)
    if order.account_id != account.id:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Order does not belong to this customer")
    return order
