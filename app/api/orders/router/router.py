from fastapi import APIRouter

from app.api.orders.router.router_orders_client import router as router_orders_client
from app.api.orders.router.router_orders_webhook import router as router_orders_webhook

api_orders = APIRouter(tags=["API - Orders"])

api_orders.include_router(router_orders_client)
api_orders.include_router(router_orders_webhook)
