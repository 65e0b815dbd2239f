from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db

from .schemas import OrderListResponse, OrderResponse, StatusUpdate, StatusUpdateResponse
from .service import OrderService

router = APIRouter(prefix="/api", tags=["Orders"])


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(db: AsyncSession = Depends(get_db)):
    orders = await OrderService.list_orders(db)
    return {"orders": orders}


@router.post("/orders/update-status", response_model=StatusUpdateResponse)
async def update_order_status(payload: StatusUpdate, db: AsyncSession = Depends(get_db)):
    order = await OrderService.update_status(db, payload.orderId, payload.newStatus)
    return {
        "success": True,
        "message": f"Order {payload.orderId} status updated to {payload.newStatus}.",
        "order": order,
    }


@router.get("/delivered-orders", response_model=list[OrderResponse])
async def list_delivered_orders(
    q: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_delivered_orders(db, q)
