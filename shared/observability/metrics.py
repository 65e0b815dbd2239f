from prometheus_client import Counter, Histogram

# Business Metrics
storefront_checkout_total = Counter(
    "storefront_checkout_total",
    "Total checkout submissions processed",
    ["outcome"]  # Labels: 'success', 'invalid', 'db_error', 'provider_error'
)

storefront_checkout_duration_seconds = Histogram(
    "storefront_checkout_duration_seconds",
    "Checkout duration in seconds"
)

storefront_webhook_total = Counter(
    "storefront_webhook_total",
    "Total payment provider notifications received",
    ["type", "outcome"]  # Labels: outcome='updated', 'ignored', 'duplicate', 'fetch_failed', ...
)

storefront_order_status_total = Counter(
    "storefront_order_status_total",
    "Order status transitions applied",
    ["status"]  # Labels: 'payment_approved', 'payment_rejected', 'delivered', ...
)
