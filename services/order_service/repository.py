from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DELIVERED, Order, OrderItem


class OrderRepository:
    @staticmethod
    async def create_order_with_items(db: AsyncSession, order: Order, items: list[OrderItem]):
        """Insert the order and its line items in one local transaction."""
        order.order_items = items
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def set_preference_id(db: AsyncSession, order_id: str, preference_id: str) -> int:
        result = await db.execute(
            update(Order).where(Order.id == order_id).values(mp_preference_id=preference_id)
        )
        await db.commit()
        return result.rowcount

    @staticmethod
    async def apply_payment_update(db: AsyncSession, order_id: str, values: dict) -> Order | None:
        result = await db.execute(update(Order).where(Order.id == order_id).values(**values))
        if result.rowcount == 0:
            await db.rollback()
            return None
        await db.commit()
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        result = await db.execute(
            select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def list_orders(db: AsyncSession, status: str | None = None):
        stmt = select(Order).order_by(Order.created_at.desc(), Order.order_code.desc())
        if status:
            stmt = stmt.where(Order.status == status)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def list_delivered_orders(db: AsyncSession):
        return await OrderRepository.list_orders(db, status=DELIVERED)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str, new_status: str):
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            return None

        order.status = new_status

        await db.commit()
        await db.refresh(order)
        return order
