"""
Checkout orchestration: cart + customer info -> persisted order -> payment
preference -> redirect URL.

Steps run in order and stop at the first failure; nothing is retried and
nothing is compensated. The partial states that can be left behind:

* preference creation fails -> the order and its items stay in ``pending_mp``
  and will never receive a webhook;
* attaching the preference id fails -> logged only, the checkout still
  succeeds because the webhook joins on the order id.

Order and items are written in a single local transaction, so a failed item
insert does not leave an order row without items.
"""
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.codes import generate_customer_code, generate_order_code
from services.order_service.models import PENDING_PAYMENT, Order, OrderItem
from services.order_service.repository import OrderRepository
from shared.config.settings import Settings
from shared.errors import DatabaseError, PaymentProviderError, StorefrontError, ValidationError
from shared.observability import storefront_checkout_duration_seconds, storefront_checkout_total
from shared.payments.mercadopago import PaymentGateway

from .schemas import CartItem, CustomerInfo, PreferenceRequest

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
# Column bounds: Integer quantities, Numeric(12, 2) amounts
MAX_QUANTITY = 2**31 - 1
MAX_AMOUNT_CENTS = 10**12 - 1
_NON_DIGITS = re.compile(r"\D")


def price_to_cents(value) -> int | None:
    """Parse a client price into integer cents (two-decimal rounding), or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    try:
        return int(amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        # more digits than the decimal context can hold
        return None


def parse_quantity(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


@dataclass
class CheckoutLine:
    product_id: str
    product_name: str
    title: str
    quantity: int
    unit_price_cents: int
    picture_url: str
    product_code: str | None = None
    selected_size: str | None = None
    selected_color: str | None = None

    @property
    def unit_price(self) -> Decimal:
        return cents_to_decimal(self.unit_price_cents)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass
class CheckoutResult:
    order_id: str
    order_code: str
    redirect_url: str


def build_title(item: CartItem) -> str:
    title = item.name
    if item.selected_size:
        title += f" (Tam: {item.selected_size})"
    if item.selected_color:
        title += f" (Cor: {item.selected_color})"
    return title


def first_picture(image_url, placeholder: str) -> str:
    if isinstance(image_url, list):
        return str(image_url[0]) if image_url else placeholder
    return str(image_url) if image_url else placeholder


def validate_customer(customer: CustomerInfo | None) -> CustomerInfo:
    if (
        customer is None
        or not (customer.email or "").strip()
        or not (customer.name or "").strip()
        or not (customer.phone or "").strip()
        or customer.address is None
        or not (customer.address.street or "").strip()
    ):
        raise ValidationError(
            "Customer information (email, name, address, phone) is required.",
            details="customerInfo must include email, name, phone and address.street",
        )
    return customer


def build_lines(cart_items: list[CartItem], placeholder: str) -> list[CheckoutLine]:
    lines = []
    for index, item in enumerate(cart_items):
        unit_price_cents = price_to_cents(item.price)
        quantity = parse_quantity(item.quantity)
        if unit_price_cents is None or quantity is None or unit_price_cents <= 0 or quantity <= 0:
            logger.warning(
                "checkout.invalid_item",
                index=index,
                product_id=item.id,
                price=item.price,
                quantity=item.quantity,
            )
            raise ValidationError(
                "All items must have a quantity and price greater than zero.",
                details=f"cartItems[{index}] (product {item.id}) has price={item.price!r}, quantity={item.quantity!r}",
            )
        if quantity > MAX_QUANTITY or unit_price_cents * quantity > MAX_AMOUNT_CENTS:
            logger.warning("checkout.item_out_of_range", index=index, product_id=item.id)
            raise ValidationError(
                "Item quantity or price is too large.",
                details=f"cartItems[{index}] (product {item.id}) exceeds the maximum quantity or amount",
            )
        lines.append(
            CheckoutLine(
                product_id=str(item.id),
                product_name=item.name,
                title=build_title(item),
                quantity=quantity,
                unit_price_cents=unit_price_cents,
                picture_url=first_picture(item.image_url, placeholder),
                product_code=item.product_code,
                selected_size=item.selected_size or None,
                selected_color=item.selected_color or None,
            )
        )

    total_quantity = sum(line.quantity for line in lines)
    total_cents = sum(line.line_total_cents for line in lines)
    if total_quantity > MAX_QUANTITY or total_cents > MAX_AMOUNT_CENTS:
        raise ValidationError(
            "Order total is too large.",
            details=f"total_quantity={total_quantity}, total_cents={total_cents}",
        )
    return lines


def build_order(lines: list[CheckoutLine], customer: CustomerInfo) -> Order:
    address = customer.address
    total_cents = sum(line.line_total_cents for line in lines)
    return Order(
        order_code=generate_order_code(),
        customer_code=generate_customer_code(customer.name, customer.email),
        total_amount=cents_to_decimal(total_cents),
        total_quantity=sum(line.quantity for line in lines),
        status=PENDING_PAYMENT,
        payer_email=customer.email,
        customer_name=customer.name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        shipping_address=address.street,
        shipping_number=address.number or None,
        shipping_complement=address.complement or None,
        shipping_neighborhood=address.neighborhood or None,
        shipping_city=address.city or None,
        shipping_state=address.state or None,
        shipping_zip_code=digits_only(address.cep) or None,
    )


def build_order_items(lines: list[CheckoutLine]) -> list[OrderItem]:
    return [
        OrderItem(
            product_id=line.product_id,
            product_code=line.product_code,
            product_name=line.product_name,
            selected_size=line.selected_size,
            selected_color=line.selected_color,
            quantity=line.quantity,
            unit_price=line.unit_price,
            image_url=line.picture_url,
        )
        for line in lines
    ]


def build_preference_body(order_id: str, lines: list[CheckoutLine], customer: CustomerInfo, settings: Settings) -> dict:
    first_name, _, surname = customer.name.strip().partition(" ")
    address = customer.address
    phone = digits_only(customer.phone) or customer.phone

    payer_address = {
        "zip_code": digits_only(address.cep),
        "street_name": address.street,
        "street_number": address.number,
        "neighborhood": address.neighborhood,
        "city": address.city,
        "state": address.state,
    }

    return {
        "items": [
            {
                "id": line.product_id,
                "title": line.title,
                "quantity": line.quantity,
                "unit_price": float(line.unit_price),
                "picture_url": line.picture_url,
            }
            for line in lines
        ],
        "payer": {
            "email": customer.email,
            "name": first_name,
            "surname": surname.strip(),
            "address": {key: value for key, value in payer_address.items() if value},
            "phone": {"area_code": phone[:2], "number": phone[2:]},
        },
        "back_urls": {
            "success": settings.success_url,
            "failure": settings.failure_url,
            "pending": settings.pending_url,
        },
        "notification_url": settings.notification_url,
        "auto_return": "approved",
        # The webhook joins payments back to orders through this id, never the order code
        "external_reference": str(order_id),
    }


class CheckoutService:
    def __init__(self, settings: Settings, payment_gateway: PaymentGateway):
        self.settings = settings
        self.payment_gateway = payment_gateway

    async def create_preference(self, db: AsyncSession, request: PreferenceRequest) -> CheckoutResult:
        with storefront_checkout_duration_seconds.time():
            try:
                result = await self._checkout(db, request)
            except StorefrontError as e:
                storefront_checkout_total.labels(outcome=_outcome_label(e)).inc()
                raise
        storefront_checkout_total.labels(outcome="success").inc()
        return result

    async def _checkout(self, db: AsyncSession, request: PreferenceRequest) -> CheckoutResult:
        # 1. Input validation, before any side effect
        if not request.cartItems:
            raise ValidationError(
                "No valid items to process the payment. Check the submitted data.",
                details="cartItems must be a non-empty list",
            )
        customer = validate_customer(request.customerInfo)
        lines = build_lines(request.cartItems, self.settings.placeholder_image_url)

        # 2-3. Totals and codes
        order = build_order(lines, customer)
        log = logger.bind(order_code=order.order_code, customer_code=order.customer_code)
        log.info(
            "checkout.started",
            items=len(lines),
            total_quantity=order.total_quantity,
            total_amount=str(order.total_amount),
        )

        # 4-5. Order + items
        try:
            order = await OrderRepository.create_order_with_items(db, order, build_order_items(lines))
        except SQLAlchemyError as e:
            await db.rollback()
            log.error("checkout.order_persist_failed", error=str(e))
            raise DatabaseError("Failed to create the order in the database.", details=str(e)) from e

        order_id = order.id
        log = log.bind(order_id=order_id)
        log.info("checkout.order_created", order_items=len(lines))

        # 6. Payment preference; order stays pending_mp if this fails
        body = build_preference_body(order_id, lines, customer, self.settings)
        try:
            preference = await self.payment_gateway.create_preference(body)
        except PaymentProviderError as e:
            log.error("checkout.preference_failed", error=e.message, details=e.details)
            raise

        # 7. Attach preference id, best effort
        try:
            await OrderRepository.set_preference_id(db, order_id, preference.id)
        except SQLAlchemyError as e:
            await db.rollback()
            log.warning("checkout.preference_id_not_saved", preference_id=preference.id, error=str(e))

        # 8. Redirect target
        redirect_url = self._redirect_url(preference)
        log.info("checkout.completed", preference_id=preference.id, redirect_url=redirect_url)
        return CheckoutResult(order_id=order_id, order_code=order.order_code, redirect_url=redirect_url)

    def _redirect_url(self, preference) -> str:
        if self.settings.is_production:
            url = preference.init_point or preference.sandbox_init_point
        else:
            url = preference.sandbox_init_point or preference.init_point
        if not url:
            raise PaymentProviderError(
                "Payment provider did not return a checkout URL.",
                details=f"preference {preference.id} has no init_point",
            )
        return url


def _outcome_label(error: StorefrontError) -> str:
    if isinstance(error, ValidationError):
        return "invalid"
    if isinstance(error, DatabaseError):
        return "db_error"
    if isinstance(error, PaymentProviderError):
        return "provider_error"
    return "error"
