"""
Mercado Pago REST client used by checkout (create preference) and the
webhook reconciler (fetch payment by id).

One AsyncClient is built at startup and shared by every request; all calls
are bounded by the configured timeout (10s by default).
"""
from typing import Protocol

import httpx
import structlog
from pydantic import BaseModel, ValidationError as SchemaError, field_validator

from shared.errors import PaymentProviderError

logger = structlog.get_logger(__name__)


class PreferenceResult(BaseModel):
    id: str
    init_point: str | None = None
    sandbox_init_point: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value)


class PaymentDetails(BaseModel):
    id: str
    status: str | None = None
    external_reference: str | None = None
    preference_id: str | None = None

    @field_validator("id", "external_reference", "preference_id", mode="before")
    @classmethod
    def _stringify(cls, value):
        if value is None or value == "":
            return None
        return str(value)


class PaymentGateway(Protocol):
    async def create_preference(self, body: dict) -> PreferenceResult: ...

    async def get_payment(self, payment_id: str) -> PaymentDetails: ...

    async def aclose(self) -> None: ...


def _provider_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        causes = payload.get("cause") or []
        if causes and isinstance(causes, list) and isinstance(causes[0], dict):
            description = causes[0].get("description")
            if description:
                return str(description)
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


class MercadoPagoGateway:
    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise PaymentProviderError("Payment provider request timed out.", details=str(e)) from e
        except httpx.HTTPError as e:
            raise PaymentProviderError("Could not reach the payment provider.", details=str(e)) from e

        if resp.is_error:
            message = _provider_message(resp)
            raise PaymentProviderError(f"Payment provider API error: {message}", details=message)
        try:
            return resp.json()
        except ValueError as e:
            raise PaymentProviderError("Payment provider returned a non-JSON response.", details=str(e)) from e

    async def create_preference(self, body: dict) -> PreferenceResult:
        data = await self._request("POST", "/checkout/preferences", json=body)
        try:
            preference = PreferenceResult.model_validate(data)
        except SchemaError as e:
            raise PaymentProviderError("Unexpected preference payload from payment provider.", details=str(e)) from e
        logger.info("mercadopago.preference_created", preference_id=preference.id)
        return preference

    async def get_payment(self, payment_id: str) -> PaymentDetails:
        data = await self._request("GET", f"/v1/payments/{payment_id}")
        try:
            return PaymentDetails.model_validate(data)
        except SchemaError as e:
            raise PaymentProviderError("Unexpected payment payload from payment provider.", details=str(e)) from e

    async def aclose(self) -> None:
        await self._client.aclose()
