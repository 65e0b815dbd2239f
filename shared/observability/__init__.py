from .setup import setup_observability, configure_logging
from .metrics import (
    storefront_checkout_total,
    storefront_checkout_duration_seconds,
    storefront_webhook_total,
    storefront_order_status_total,
)
