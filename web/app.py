import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import config
from db import create_db_and_tables
from services.payment_gateway import PaymentGatewayClient
from utils.config_validator import validate_or_exit
from utils.error_handler import register_exception_handlers
from web.admin_router import admin_router
from web.cart_router import cart_router
from web.order_router import order_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    app.state.gateway_client = PaymentGatewayClient()
    logging.info(f"[Startup] Storefront API ready (environment={config.RUNTIME_ENVIRONMENT.value})")

    yield

    # Shutdown
    await app.state.gateway_client.close()
    logging.info("[Shutdown] Payment gateway client closed")


def create_app() -> FastAPI:
    validate_or_exit(config)
    app = FastAPI(title="Storefront API", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(admin_router)
    return app
