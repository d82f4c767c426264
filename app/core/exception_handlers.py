from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    InvalidStatusTransitionError,
    OrderNotFoundError,
    StorefrontError,
)
from app.utils.logger import logger


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("[Validation] %s %s | %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error("[HTTP] %s %s | %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("[HTTP] %s %s | %s %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def storefront_exception_handler(request: Request, exc: StorefrontError):
    if isinstance(exc, OrderNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidStatusTransitionError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.info("[Storefront] %s %s | %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


async def general_exception_handler(request: Request, exc: Exception):
    logger.error("[Unhandled] %s %s | %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
