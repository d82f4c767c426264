import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.core.exception_handlers import (
    validation_exception_handler,
    http_exception_handler,
    storefront_exception_handler,
    general_exception_handler
)
from app.core.exceptions import StorefrontError
from app.core.session_registry import SessionRegistry
from app.utils.logger import logger
from app.config.settings import CORS_ORIGINS, CORS_ALLOW_ALL, BASE_URL as SETTINGS_BASE_URL, ENABLE_DOCS

# ───────────────────────────
# Import the routers (and with them every model) before the app starts,
# so all tables are registered in SQLAlchemy's metadata
# ───────────────────────────
from app.api.catalog.router.router import api_catalog
from app.api.cart.router.router import api_cart
from app.api.checkout.router.router import api_checkout
from app.api.accounts.router.router import api_accounts
from app.api.orders.router.router import api_orders
from app.api.monitoring.router import router as monitoring_router

BASE_URL = SETTINGS_BASE_URL or os.getenv("BASE_URL", "http://localhost:8000")

# ──────────────────────────
# FastAPI instance
# ──────────────────────────
app = FastAPI(
    title="Storefront API",
    version="1.0.0",
    description="Cart, pricing, checkout and orders of the delivery storefront",
    docs_url=("/swagger" if ENABLE_DOCS else None),
    redoc_url=("/redoc" if ENABLE_DOCS else None),
    openapi_url=("/openapi.json" if ENABLE_DOCS else None),
    servers=[{"url": BASE_URL, "description": "Environment base URL"}],
    redirect_slashes=False  # avoids 307 redirects when the URL has no trailing slash
)

# ───────────────────────────
# Global exception handlers
# ───────────────────────────
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StorefrontError, storefront_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# ───────────────────────────
# Middlewares
# ───────────────────────────
# Middlewares run in REVERSE order of registration (last added runs first)
# ───────────────────────────

from app.utils.prometheus_metrics import PrometheusMiddleware
app.add_middleware(PrometheusMiddleware)

# CORS (added last, runs first)
# - CORS_ALLOW_ALL=true => allow_origins=["*"], allow_credentials=False
# - otherwise => allow_origins=CORS_ORIGINS (falls back to ["*"]), credentials only with explicit origins
if CORS_ALLOW_ALL:
    allowed_origins = ["*"]
    allow_credentials = False
else:
    allowed_origins = CORS_ORIGINS or ["*"]
    allow_credentials = bool(CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Cart + checkout of each browser session (X-Session-Id)
app.state.session_registry = SessionRegistry()


# ───────────────────────────
# Startup
# ───────────────────────────
@app.on_event("startup")
async def startup():
    from app.database.init_db import initialize_database

    logger.info("Starting API and database...")
    initialize_database()
    logger.info("API started.")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Shutting down API.")


# ───────────────────────────
# Routes
# ───────────────────────────
@app.get("/")
async def root():
    return {"status": "ok", "message": "API is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


app.include_router(monitoring_router)
app.include_router(api_catalog)
app.include_router(api_cart)
app.include_router(api_checkout)
app.include_router(api_accounts)
app.include_router(api_orders)
