from fastapi import APIRouter

from app.api.accounts.router.router_accounts_client import router as router_accounts_client

api_accounts = APIRouter(tags=["API - Accounts"])

api_accounts.include_router(router_accounts_client)
