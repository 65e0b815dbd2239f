"""
Payment provider webhook reconciliation.

Notifications are at-least-once, unauthenticated and may arrive out of order,
so the payload is only used to locate a resource id; the payment status is
always re-fetched from the provider. Anything that cannot be applied right
now but may succeed on a retry answers 200 so the provider keeps retrying;
only malformed or unassociable notifications (400) and persistence failures
(500) report an error.
"""
import structlog
from fastapi import status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import PAYMENT_APPROVED
from services.order_service.repository import OrderRepository
from shared.errors import DatabaseError, DataInconsistencyError, PaymentProviderError, ValidationError
from shared.observability import storefront_order_status_total, storefront_webhook_total
from shared.payments.mercadopago import PaymentGateway

from .schemas import Notification, WebhookOutcome

logger = structlog.get_logger(__name__)

PAYMENT = "payment"
MERCHANT_ORDER = "merchant_order"


def map_payment_status(provider_status: str | None) -> str:
    if provider_status == "approved":
        return PAYMENT_APPROVED
    return f"payment_{provider_status or 'unknown'}"


class WebhookService:
    def __init__(self, payment_gateway: PaymentGateway):
        self.payment_gateway = payment_gateway

    async def handle(self, db: AsyncSession, notification: Notification | None) -> WebhookOutcome:
        if notification is None:
            storefront_webhook_total.labels(type="unknown", outcome="malformed").inc()
            raise ValidationError(
                "Missing identifiable resource type or ID.",
                details="expected ?topic=&id= or a JSON body with type and data.id",
            )

        log = logger.bind(type=notification.type, resource_id=notification.resource_id, source=notification.source)
        log.info("webhook.received")

        if notification.type == PAYMENT:
            try:
                result = await self._handle_payment(db, notification.resource_id, log)
            except (ValidationError, DataInconsistencyError, DatabaseError) as e:
                storefront_webhook_total.labels(type=PAYMENT, outcome=type(e).__name__).inc()
                raise
        elif notification.type == MERCHANT_ORDER:
            log.info("webhook.merchant_order_ignored")
            result = WebhookOutcome(status.HTTP_200_OK, "Merchant order notification received.", "ignored")
        else:
            log.info("webhook.type_ignored")
            result = WebhookOutcome(
                status.HTTP_200_OK, f"Notification type {notification.type} received.", "ignored"
            )

        storefront_webhook_total.labels(type=notification.type, outcome=result.outcome).inc()
        return result

    async def _handle_payment(self, db: AsyncSession, payment_id: str, log) -> WebhookOutcome:
        # Fetch-then-trust: the provider record, not the notification, is the source of truth
        try:
            payment = await self.payment_gateway.get_payment(payment_id)
        except PaymentProviderError as e:
            log.warning("webhook.payment_fetch_failed", error=e.message, details=e.details)
            return WebhookOutcome(
                status.HTTP_200_OK,
                "Could not fetch payment details from the provider; awaiting retry.",
                "fetch_failed",
            )

        order_id = payment.external_reference
        if not order_id:
            log.error("webhook.missing_external_reference", provider_status=payment.status)
            raise ValidationError(
                "Missing external_reference in the provider payment record.",
                details=f"payment {payment_id} cannot be associated with an order",
            )

        log = log.bind(order_id=order_id, provider_status=payment.status)
        new_status = map_payment_status(payment.status)

        try:
            order = await OrderRepository.get_order(db, order_id)
            if order is None:
                raise DataInconsistencyError(
                    "Order referenced by the payment was not found.",
                    details=f"payment {payment_id} references unknown order {order_id}",
                )

            if order.mp_payment_id == payment_id and order.mp_status == payment.status:
                log.info("webhook.already_processed")
                return WebhookOutcome(status.HTTP_200_OK, "Webhook already processed.", "duplicate")

            values = {
                "mp_payment_id": payment_id,
                "mp_status": payment.status,
                "status": new_status,
            }
            if payment.preference_id:
                values["mp_preference_id"] = payment.preference_id

            updated = await OrderRepository.apply_payment_update(db, order_id, values)
        except IntegrityError:
            await db.rollback()
            log.warning("webhook.duplicate_payment_id")
            return WebhookOutcome(status.HTTP_200_OK, "Webhook already processed.", "duplicate")
        except SQLAlchemyError as e:
            await db.rollback()
            log.error("webhook.order_update_failed", error=str(e))
            raise DatabaseError("Failed to update the order from the webhook.", details=str(e)) from e

        if updated is None:
            raise DataInconsistencyError(
                "Order referenced by the payment was not found.",
                details=f"payment {payment_id} references unknown order {order_id}",
            )

        storefront_order_status_total.labels(status=new_status).inc()
        log.info("webhook.order_updated", status=new_status)
        return WebhookOutcome(status.HTTP_200_OK, "Payment webhook processed and order updated.", "updated")
