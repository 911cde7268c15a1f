import hashlib
import hmac
import json
import os
from datetime import date
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from hotelpay.config import GatewayConfig
from hotelpay.db.base import Base
from hotelpay.models.models import Booking, Hotel
from hotelpay.services.booking_store import BookingStore
from hotelpay.services.notification_providers import NotificationProvider
from hotelpay.services.notification_service import NotificationService
from hotelpay.services.order_lifecycle import OrderCoordinator
from hotelpay.services.payment_gateway import RazorpayClient
from hotelpay.services.webhook_reconciler import WebhookReconciler

WEBHOOK_SECRET = "whsec_test_secret"


class FakeRazorpay:
    """Minimal stand-in for the Razorpay REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.fail_orders = False
        self.payments = {
            "pay_123": {"id": "pay_123", "entity": "payment", "status": "captured", "order_id": "order_test_1", "amount": 150000, "currency": "INR"},
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append({"method": request.method, "path": request.url.path, "json": body, "headers": request.headers})
        path = request.url.path

        if request.method == "POST" and path == "/v1/orders":
            if self.fail_orders:
                return _error(400, "The amount must be atleast INR 1.00")
            return httpx.Response(200, json={
                "id": "order_test_1",
                "entity": "order",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
                "notes": body["notes"],
            })
        if request.method == "GET" and path.startswith("/v1/orders/"):
            order_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"id": order_id, "entity": "order", "amount": 150000, "currency": "INR", "status": "paid"})
        if request.method == "GET" and path.startswith("/v1/payments/"):
            payment = self.payments.get(path.rsplit("/", 1)[-1])
            if payment is None:
                return _error(400, "The id provided does not exist")
            return httpx.Response(200, json=payment)
        if request.method == "POST" and path.endswith("/refund"):
            payment_id = path.split("/")[-2]
            if payment_id not in self.payments:
                return _error(400, "The id provided does not exist")
            return httpx.Response(200, json={"id": "rfnd_1", "entity": "refund", "payment_id": payment_id, "amount": body["amount"], "status": "processed"})
        return _error(404, "The requested URL was not found on the server.")

    def last(self):
        return self.requests[-1]


def _error(status_code: int, description: str) -> httpx.Response:
    return httpx.Response(status_code, json={"error": {"code": "BAD_REQUEST_ERROR", "description": description}})


class RecordingProvider(NotificationProvider):
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_email(self, to, subject, body, meta=None):
        if self.fail:
            raise ConnectionError("smtp relay unavailable")
        self.sent.append({"to": to, "subject": subject, "body": body, "meta": meta})
        return {"status": "sent", "provider": "recording"}


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def notification_body(payment_id="pay_123", status="captured", booking_id="1", order_id="order_test_1", event="payment.captured") -> bytes:
    notes = {} if booking_id is None else {"bookingId": booking_id}
    payload = {
        "entity": "event",
        "account_id": "acc_test",
        "event": event,
        "contains": ["payment", "order"],
        "payload": {
            "payment": {"entity": {"id": payment_id, "entity": "payment", "status": status, "order_id": order_id}},
            "order": {"entity": {"id": order_id, "entity": "order", "notes": notes}},
        },
    }
    return json.dumps(payload, separators=(",", ":")).encode()


@pytest.fixture
def signer():
    return sign


@pytest.fixture
def make_notification():
    return notification_body


@pytest.fixture
def razorpay():
    return FakeRazorpay()


@pytest.fixture
def gateway_config():
    return GatewayConfig(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        webhook_secret=WEBHOOK_SECRET,
        base_url="https://api.razorpay.test/v1",
    )


@pytest.fixture
def gateway(gateway_config, razorpay):
    return RazorpayClient(gateway_config, transport=httpx.MockTransport(razorpay.handle))


@pytest.fixture
def coordinator(gateway, gateway_config):
    return OrderCoordinator(gateway, default_currency=gateway_config.default_currency)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hotelpay.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return BookingStore(session_factory)


@pytest_asyncio.fixture
async def booking(session_factory):
    async with session_factory() as db:
        async with db.begin():
            hotel = Hotel(name="Lakeview Residency", city="Udaipur")
            db.add(hotel)
            await db.flush()
            bk = Booking(
                reference="BN-1001",
                hotel_id=hotel.id,
                guest_name="Asha Rao",
                guest_contact="9876543210",
                check_in_date=date(2026, 11, 2),
                check_out_date=date(2026, 11, 5),
                total_amount=Decimal("1500.00"),
                payment_status="pending",
            )
            db.add(bk)
        return bk


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def notifier(provider):
    return NotificationService(provider)


@pytest.fixture
def reconciler(store, notifier):
    return WebhookReconciler(store, notifier, WEBHOOK_SECRET, fallback_email_domain="guests.test")


@pytest_asyncio.fixture
async def client(store, notifier, gateway, coordinator, reconciler):
    from hotelpay import deps
    from hotelpay.main import app

    app.dependency_overrides[deps.get_booking_store] = lambda: store
    app.dependency_overrides[deps.get_notification_service] = lambda: notifier
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_order_coordinator] = lambda: coordinator
    app.dependency_overrides[deps.get_reconciler] = lambda: reconciler
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
