import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mall.configuration.settings import Configuration
from fastapi.exceptions import RequestValidationError
from mall.core.exceptions.app_exception import AppHttpException, app_http_exception_handler, validation_exception_handler
from mall.database import init_db
from mall.functions.scheduler.scheduler import start_scheduler

from mall.auth.auth import AuthRouter
from mall.routes.address.address import ShippingAddressRouter
from mall.routes.order.order import OrderRouter
from mall.routes.payment.payment import PaymentRouter

configuration = Configuration()

logging.info(f"SYSTEM >>> Environment loaded: {configuration.environment}")

def create_app():
    """
    Creates and configures the FastAPI application, including middlewares and routes.
    """
    app = FastAPI(title="Mall API")

    logging.info("SYSTEM >>> Initializing the database...")
    init_db()

    if configuration.scheduler_enabled:
        app.state.scheduler = start_scheduler()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=configuration.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppHttpException, app_http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(AuthRouter())
    app.include_router(OrderRouter())
    app.include_router(PaymentRouter())
    app.include_router(ShippingAddressRouter())

    return app
