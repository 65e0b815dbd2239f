import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from shared.config.database import Base

PENDING_PAYMENT = "pending_mp"
PAYMENT_APPROVED = "payment_approved"
DELIVERED = "delivered"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_code = Column(String(32), nullable=False, index=True)
    customer_code = Column(String(16), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)  # calculated at creation
    total_quantity = Column(Integer, nullable=False)
    status = Column(String(64), nullable=False, default=PENDING_PAYMENT)  # pending_mp, payment_<status>, delivered

    payer_email = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)

    shipping_address = Column(String, nullable=False)
    shipping_number = Column(String, nullable=True)
    shipping_complement = Column(String, nullable=True)
    shipping_neighborhood = Column(String, nullable=True)
    shipping_city = Column(String, nullable=True)
    shipping_state = Column(String, nullable=True)
    shipping_zip_code = Column(String, nullable=True)

    # Payment provider linkage; mp_payment_id is the webhook idempotency anchor
    mp_preference_id = Column(String, nullable=True)
    mp_payment_id = Column(String, nullable=True, unique=True)
    mp_status = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    order_items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String, nullable=False)
    product_code = Column(String, nullable=True)
    product_name = Column(String, nullable=False)
    selected_size = Column(String, nullable=True)
    selected_color = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    image_url = Column(String, nullable=True)

    order = relationship("Order", back_populates="order_items")
