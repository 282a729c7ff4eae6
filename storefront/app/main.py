#!/usr/bin/env python3
"""
Main FastAPI application for the storefront backend.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..data.database import build_engine, build_session_factory, create_tables
from ..services.notifier import EmailNotifier
from ..services.otp import OtpGenerator
from ..services.payments import PaymentGateway, RazorpayGateway
from ..utils.clock import utcnow
from ..utils.logger import get_logger, set_level
from ..utils.mailer import MailTransport, NullTransport, ResendTransport
from ..utils.security import PasswordHasher, TokenService
from .config import Config
from .errors import StorefrontError
from .generate import CompletionClient
from .routers import (addresses, admin, cart, chatbot, orders, password, payments, products,
                      reviews, users, wishlist)

logger = get_logger(__name__)


def _default_transport(config) -> MailTransport:
    if config.RESEND_API_KEY:
        return ResendTransport(config.RESEND_API_KEY, config.MAIL_FROM)
    return NullTransport()


def _install_error_handlers(app: FastAPI, config):
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        body = exc.to_dict()
        if exc.detail is not None and not config.is_production():
            body["debug"] = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
        fields = [f for f in fields if f]
        message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
        return JSONResponse(status_code=400, content={"message": message, "code": "InvalidRequest"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"message": "Internal server error", "code": "InternalError"}
        if not config.is_production():
            body["debug"] = repr(exc)
        return JSONResponse(status_code=500, content=body)


def create_app(config=Config, *, engine=None, mail_transport: Optional[MailTransport] = None,
               completion_client=None, payment_gateway: Optional[PaymentGateway] = None,
               clock=None) -> FastAPI:
    """Build the application with every collaborator constructed explicitly.

    Anything passed in replaces the default built from ``config``; tests use
    this to inject an in-memory database, fake transports and a fixed clock.
    """
    set_level(config.LOG_LEVEL)
    config.validate()
    clock = clock or utcnow

    app = FastAPI(
        title="Storefront API",
        description="E-commerce backend with order lifecycle, delivery OTP and a support chatbot",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = engine or build_engine(config.DATABASE_URL)
    create_tables(engine)

    state = app.state
    state.config = config
    state.clock = clock
    state.session_factory = build_session_factory(engine)
    state.notifier = EmailNotifier(mail_transport or _default_transport(config))
    state.hasher = PasswordHasher(rounds=config.BCRYPT_ROUNDS)
    state.tokens = TokenService(config.JWT_SECRET, expires_days=config.JWT_EXPIRES_DAYS,
                                reset_minutes=config.RESET_TOKEN_MINUTES)
    state.delivery_otp = OtpGenerator(ttl_minutes=config.DELIVERY_OTP_TTL_MINUTES, clock=clock)
    state.reset_otp = OtpGenerator(ttl_minutes=config.RESET_OTP_TTL_MINUTES, clock=clock)
    state.completion_client = completion_client or CompletionClient.from_config(config)
    state.payment_gateway = payment_gateway or RazorpayGateway(
        config.RAZORPAY_KEY_ID, config.RAZORPAY_KEY_SECRET, currency=config.PAYMENT_CURRENCY)

    _install_error_handlers(app, config)

    # admin first: /api/users/activity must win over /api/users/{user_id}
    for module in (admin, users, password, products, cart, orders, wishlist, reviews, addresses,
                   payments, chatbot):
        app.include_router(module.router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    config.debug_print()
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.app.main:create_app", factory=True, host="0.0.0.0", port=Config.PORT)
