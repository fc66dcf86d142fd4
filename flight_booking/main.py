import logging

from fastapi import FastAPI

from flight_booking.api.errors import register_exception_handlers
from flight_booking.api.routes import auth, bookings, flights, health, payments
from flight_booking.application.auth_service import AuthService
from flight_booking.application.booking_service import BookingService
from flight_booking.application.payment_service import PaymentService
from flight_booking.config import Settings, configure_logging
from flight_booking.infrastructure.db import models  # noqa: F401  registers tables
from flight_booking.infrastructure.db.session import (
    Base,
    build_engine,
    build_session_factory,
    wait_for_db,
)
from flight_booking.infrastructure.security import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Builds the API with its own engine and pool.
    Run with: uvicorn flight_booking.main:create_app --factory
    """
    if settings is None:
        settings = Settings.from_env()

    configure_logging(settings.log_level)

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    tokens = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )

    app = FastAPI(title="Flight Booking Engine")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.auth_service = AuthService(session_factory, tokens)
    app.state.booking_service = BookingService(session_factory)
    app.state.payment_service = PaymentService(session_factory)

    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(flights.router)
    app.include_router(bookings.router)
    app.include_router(payments.router)

    @app.on_event("startup")
    def on_startup() -> None:
        wait_for_db(
            engine,
            max_retries=settings.db_connect_max_retries,
            retry_delay_seconds=settings.db_connect_retry_delay,
        )
        Base.metadata.create_all(bind=engine)

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        engine.dispose()
        logger.info("Database pool disposed.")

    return app
