"""
Storefront checkout backend.

Run with: uvicorn main:create_app --factory
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from services.checkout_service.router import router as checkout_router
from services.order_service.router import router as order_router
from services.webhook_service.router import router as webhook_router
from shared.config.container import AppContainer
from shared.config.database import build_engine, build_session_factory, create_tables
from shared.config.settings import Settings
from shared.errors import register_exception_handlers
from shared.observability import setup_observability
from shared.payments.mercadopago import MercadoPagoGateway, PaymentGateway


def build_container(settings: Settings, payment_gateway: PaymentGateway | None = None) -> AppContainer:
    engine = build_engine(settings.database_url, echo=settings.db_echo)
    if payment_gateway is None:
        payment_gateway = MercadoPagoGateway(
            access_token=settings.mercado_pago_access_token,
            base_url=settings.mercado_pago_api_url,
            timeout=settings.payment_timeout_seconds,
        )
    return AppContainer(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        payment_gateway=payment_gateway,
    )


def create_app(settings: Settings | None = None, payment_gateway: PaymentGateway | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    container = build_container(settings, payment_gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.db_create_tables:
            await create_tables(container.engine)
        yield
        await container.payment_gateway.aclose()
        await container.engine.dispose()

    app = FastAPI(title="Storefront Checkout", version="1.0.0", lifespan=lifespan)
    app.state.container = container

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, settings)
    settings.log_summary()

    register_exception_handlers(app)

    @app.get("/health", include_in_schema=False)
    async def health_check():
        return {"service": settings.service_name, "status": "running"}

    app.include_router(checkout_router)
    app.include_router(webhook_router)
    app.include_router(order_router)
    return app
