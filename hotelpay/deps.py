from functools import lru_cache

from hotelpay.config import GatewayConfig, settings
from hotelpay.db.session import async_session
from hotelpay.services.booking_store import BookingStore
from hotelpay.services.notification_service import NotificationService
from hotelpay.services.order_lifecycle import OrderCoordinator
from hotelpay.services.payment_gateway import RazorpayClient
from hotelpay.services.webhook_reconciler import WebhookReconciler


@lru_cache()
def get_gateway_config() -> GatewayConfig:
    return settings.gateway_config()


def get_booking_store() -> BookingStore:
    return BookingStore(async_session)


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_gateway() -> RazorpayClient:
    return RazorpayClient(get_gateway_config())


def get_order_coordinator() -> OrderCoordinator:
    config = get_gateway_config()
    return OrderCoordinator(RazorpayClient(config), default_currency=config.default_currency)


def get_reconciler() -> WebhookReconciler:
    return WebhookReconciler(
        store=get_booking_store(),
        notifier=get_notification_service(),
        webhook_secret=get_gateway_config().webhook_secret,
        fallback_email_domain=settings.FALLBACK_EMAIL_DOMAIN,
    )
