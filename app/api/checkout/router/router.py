from fastapi import APIRouter

from app.api.checkout.router.router_checkout_client import router as router_checkout_client

api_checkout = APIRouter(tags=["API - Checkout"])

api_checkout.include_router(router_checkout_client)
