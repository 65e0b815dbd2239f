from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from shared.config.settings import Settings
from shared.payments.mercadopago import PaymentGateway


@dataclass(frozen=True)
class AppContainer:
    """Process-wide clients, built once in create_app() and read-only afterwards."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    payment_gateway: PaymentGateway


def get_container(request: Request) -> AppContainer:
    return request.app.state.container
