from fastapi import APIRouter

from app.api.cart.router.router_cart_client import router as router_cart_client

api_cart = APIRouter(tags=["API - Cart"])

api_cart.include_router(router_cart_client)
