from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class OrderItemResponse(BaseModel):
    id: int
    product_id: str
    product_code: Optional[str]
    product_name: str
    selected_size: Optional[str]
    selected_color: Optional[str]
    quantity: int
    unit_price: float
    image_url: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: str
    order_code: str
    customer_code: Optional[str]
    total_amount: float
    total_quantity: int
    status: str
    payer_email: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    shipping_number: Optional[str]
    shipping_complement: Optional[str]
    shipping_neighborhood: Optional[str]
    shipping_city: Optional[str]
    shipping_state: Optional[str]
    shipping_zip_code: Optional[str]
    mp_preference_id: Optional[str]
    mp_payment_id: Optional[str]
    mp_status: Optional[str]
    created_at: datetime
    updated_at: datetime
    order_items: List[OrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]


class StatusUpdate(BaseModel):
    orderId: Optional[str] = None
    newStatus: Optional[str] = None


class StatusUpdateResponse(BaseModel):
    success: bool
    message: str
    order: OrderResponse
