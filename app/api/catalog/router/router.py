from fastapi import APIRouter

from app.api.catalog.router.router_catalog_public import router as router_catalog_public

api_catalog = APIRouter(tags=["API - Catalog"])

api_catalog.include_router(router_catalog_public)
