"""
Error Handler Utility for the HTTP API

Provides centralized error handling with:
- Automatic exception to HTTP status mapping
- Consistent error response body
- Logging for debugging

Usage:
    from utils.error_handler import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

Services only raise StorefrontException subclasses, routers never build
error responses themselves.
"""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from exceptions import (
    StorefrontException,
    ProductNotFoundException,
    VariantNotFoundException,
    ColorNotFoundException,
    InsufficientStockException,
    StockConflictException,
    SelectionRequiredException,
    CartNotFoundException,
    CartItemNotFoundException,
    OrderNotFoundException,
    OrderValidationException,
    InvalidOrderStateException,
    OrderOwnershipException,
    PaymentVerificationFailedException,
    GatewayException,
)

# Map exception types to HTTP status codes
error_mapping: dict[type[StorefrontException], int] = {
    # Not found
    ProductNotFoundException: 404,
    VariantNotFoundException: 404,
    ColorNotFoundException: 404,
    CartNotFoundException: 404,
    CartItemNotFoundException: 404,
    OrderNotFoundException: 404,

    # Stock
    InsufficientStockException: 400,
    StockConflictException: 400,
    SelectionRequiredException: 400,

    # Order validation
    OrderValidationException: 400,
    InvalidOrderStateException: 400,
    OrderOwnershipException: 401,

    # Payment
    PaymentVerificationFailedException: 400,
    GatewayException: 500,
}


def get_status_code(exception: StorefrontException) -> int:
    """
    Resolve the HTTP status of a service exception.

    Subclasses of a mapped type inherit its status, unmapped types are 500.
    """
    for exception_type in type(exception).__mro__:
        status_code = error_mapping.get(exception_type)
        if status_code is not None:
            return status_code
    logging.error(f"Unmapped exception type: {type(exception).__name__}")
    return 500


def build_error_body(exception: StorefrontException) -> dict:
    return exception.to_response_body()


async def handle_service_error(request: Request, exception: StorefrontException) -> JSONResponse:
    status_code = get_status_code(exception)
    if status_code >= 500:
        logging.error(f"❌ {request.method} {request.url.path} failed: {exception!r}")
    else:
        logging.warning(f"Service error handled: {type(exception).__name__} - {exception}")
    return JSONResponse(status_code=status_code, content=build_error_body(exception))


async def handle_http_error(request: Request, exception: StarletteHTTPException) -> JSONResponse:
    """Auth failures (401/403) and unknown routes, in the same body as service errors."""
    logging.warning(f"HTTP {exception.status_code} on {request.method} {request.url.path}: {exception.detail}")
    body = {
        "success": False,
        "error": HTTPStatus(exception.status_code).phrase.replace(" ", ""),
        "message": str(exception.detail),
        "details": {},
    }
    return JSONResponse(status_code=exception.status_code, content=body, headers=exception.headers)


async def handle_validation_error(request: Request, exception: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exception.errors()
    ]
    logging.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
    body = {
        "success": False,
        "error": "RequestValidationError",
        "message": "Request validation failed",
        "details": {"errors": jsonable_encoder(errors)},
    }
    return JSONResponse(status_code=422, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontException, handle_service_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
