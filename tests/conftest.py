"""Pytest fixtures for the storefront checkout tests."""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from main import create_app
from services.order_service.models import Order
from shared.config.database import create_tables
from shared.config.settings import Settings
from shared.errors import PaymentProviderError
from shared.payments.mercadopago import PaymentDetails, PreferenceResult


class FakePaymentGateway:
    """In-memory stand-in for the Mercado Pago client."""

    def __init__(self):
        self.preference_bodies = []
        self.payments = {}
        self.get_calls = []
        self.create_error = None
        self.get_error = None
        self.closed = False

    async def create_preference(self, body: dict) -> PreferenceResult:
        if self.create_error:
            raise self.create_error
        self.preference_bodies.append(body)
        n = len(self.preference_bodies)
        return PreferenceResult(
            id=f"pref-{n}",
            init_point=f"https://www.mercadopago.example/checkout/{n}",
            sandbox_init_point=f"https://sandbox.mercadopago.example/checkout/{n}",
        )

    async def get_payment(self, payment_id: str) -> PaymentDetails:
        self.get_calls.append(payment_id)
        if self.get_error:
            raise self.get_error
        if payment_id not in self.payments:
            raise PaymentProviderError("Payment provider API error: not found", details="not found")
        return self.payments[payment_id]

    def add_payment(self, payment_id: str, status: str, external_reference=None, preference_id=None):
        self.payments[payment_id] = PaymentDetails(
            id=payment_id,
            status=status,
            external_reference=external_reference,
            preference_id=preference_id,
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        mercado_pago_access_token="TEST-0000-token-12345",
        app_base_url="https://shop.example/",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        db_create_tables=False,
        metrics_enabled=False,
    )


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest_asyncio.fixture
async def app(settings, gateway):
    app = create_app(settings, payment_gateway=gateway)
    await create_tables(app.state.container.engine)
    yield app
    await app.state.container.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def stored_orders(app):
    """Return a coroutine function that reads every order (with items) in a fresh session."""

    async def _fetch():
        async with app.state.container.session_factory() as session:
            result = await session.execute(select(Order).order_by(Order.order_code))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture
def customer_info():
    return {
        "email": "ana.souza@example.com",
        "name": "Ana Maria Souza",
        "phone": "(11) 98765-4321",
        "address": {
            "street": "Rua das Flores",
            "number": 123,
            "complement": "Apto 4",
            "neighborhood": "Centro",
            "city": "São Paulo",
            "state": "SP",
            "cep": "01234-567",
        },
    }


@pytest.fixture
def shirt_cart():
    return [
        {
            "id": "p1",
            "name": "Shirt",
            "price": "49.9",
            "quantity": 2,
            "selected_size": "M",
            "product_code": "SHIRT-001",
        }
    ]


@pytest.fixture
def place_order(client, gateway, customer_info, shirt_cart):
    """Submit a checkout and return the new order's id."""

    async def _place(cart=None, customer=None):
        response = await client.post(
            "/create_preference",
            json={"cartItems": cart or shirt_cart, "customerInfo": customer or customer_info},
        )
        assert response.status_code == 200, response.text
        return gateway.preference_bodies[-1]["external_reference"]

    return _place
