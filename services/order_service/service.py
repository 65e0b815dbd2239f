import re
import unicodedata

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import DatabaseError, NotFoundError, ValidationError
from shared.observability import storefront_order_status_total

from .models import Order
from .repository import OrderRepository

logger = structlog.get_logger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)


def normalize_search_text(value) -> str:
    """Lowercase, strip accents and punctuation so 'São-Paulo' matches 'sao paulo'."""
    if value is None or value == "":
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    without_accents = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _PUNCTUATION.sub("", without_accents)


def searchable_text(order: Order) -> str:
    fields = [
        order.customer_name,
        order.customer_phone,
        order.shipping_address,
        order.shipping_number,
        order.shipping_complement,
        order.shipping_neighborhood,
        order.shipping_city,
        order.shipping_state,
        order.shipping_zip_code,
        order.order_code,
    ]
    for item in order.order_items:
        fields.extend([item.product_name, item.product_code])
    return " ".join(normalize_search_text(field) for field in fields)


class OrderService:
    @staticmethod
    async def list_orders(db: AsyncSession):
        try:
            return await OrderRepository.list_orders(db)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to fetch orders.", details=str(e)) from e

    @staticmethod
    async def list_delivered_orders(db: AsyncSession, query: str | None = None):
        try:
            orders = await OrderRepository.list_delivered_orders(db)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to fetch delivered orders.", details=str(e)) from e

        if not query:
            return orders

        needle = normalize_search_text(query)
        return [order for order in orders if needle in searchable_text(order)]

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str | None, new_status: str | None):
        if not order_id or not new_status:
            raise ValidationError("Order id and new status are required.")

        try:
            order = await OrderRepository.update_status(db, order_id, new_status)
        except SQLAlchemyError as e:
            await db.rollback()
            raise DatabaseError("Failed to update the order status in the database.", details=str(e)) from e

        if not order:
            raise NotFoundError("Order not found.", details=f"No order with id {order_id}")

        storefront_order_status_total.labels(status=new_status).inc()
        logger.info("order.status_updated", order_id=order_id, status=new_status)
        return order
