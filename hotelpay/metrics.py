from prometheus_client import Counter, Histogram

# Gateway metrics
GATEWAY_REQUESTS = Counter("hotelpay_gateway_requests_total", "Calls made to the payment gateway", ["operation", "result"])
GATEWAY_LATENCY = Histogram("hotelpay_gateway_latency_seconds", "Latency of payment gateway calls", ["operation"])
ORDERS_CREATED = Counter("hotelpay_orders_created_total", "Gateway orders created for bookings")

# Webhook metrics
WEBHOOKS = Counter("hotelpay_webhooks_total", "Webhook deliveries by outcome", ["outcome"])
PAYMENT_CONFLICTS = Counter("hotelpay_payment_conflicts_total", "Notifications for a second payment id on a settled booking")

# Notification metrics
NOTIF_COUNTER_SENT = Counter("hotelpay_notifications_sent_total", "Total notifications sent", ["channel", "provider"])
NOTIF_COUNTER_FAILED = Counter("hotelpay_notifications_failed_total", "Total notification failures", ["channel", "provider"])
