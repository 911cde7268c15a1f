import hmac
import hashlib
import logging
import time
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, Optional, Union

import httpx

from hotelpay.config import GatewayConfig
from hotelpay.exceptions import GatewayRequestError
from hotelpay.metrics import GATEWAY_LATENCY, GATEWAY_REQUESTS
from hotelpay.schemas.payment import PaymentDetails, PaymentOrder, RefundResult

logger = logging.getLogger(__name__)


def to_minor_units(amount: Union[int, float, str, Decimal]) -> int:
    """Convert a major-unit amount (rupees) to the gateway's minor unit (paise)."""
    try:
        minor = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if not minor.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if minor <= 0:
        raise ValueError(f"Amount must be positive, got {amount!r}")
    return int(minor)


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    """Check an X-Razorpay-Signature value against HMAC-SHA256(secret, raw_body).

    The body must be the exact bytes received; never re-serialise before calling.
    Returns False on any malformed input instead of raising.
    """
    if not secret or not signature or not isinstance(signature, str):
        return False
    try:
        if isinstance(raw_body, str):
            raw_body = raw_body.encode("utf-8")
        computed = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(computed.encode("ascii"), signature.encode("utf-8"))
    except (TypeError, ValueError):
        return False


class RazorpayClient:
    provider_name: str = "razorpay"

    def __init__(self, config: GatewayConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        # tests pass an httpx.MockTransport here
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            auth=(self.config.key_id, self.config.key_secret),
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def _request(self, operation: str, method: str, path: str, fallback: str, json: Optional[Dict] = None) -> Dict[str, Any]:
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            GATEWAY_REQUESTS.labels(operation=operation, result="transport_error").inc()
            logger.error("Razorpay %s transport error: %s", operation, exc)
            raise GatewayRequestError(f"{fallback}: {exc}", operation=operation) from exc
        finally:
            GATEWAY_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            description = _error_description(data) or fallback
            GATEWAY_REQUESTS.labels(operation=operation, result="rejected").inc()
            logger.error("Razorpay %s failed status=%s description=%s", operation, response.status_code, description)
            raise GatewayRequestError(description, status_code=response.status_code, operation=operation)

        GATEWAY_REQUESTS.labels(operation=operation, result="ok").inc()
        return data

    async def create_order(self, amount: int, currency: str, receipt: str, notes: Optional[Dict[str, Any]] = None) -> PaymentOrder:
        # amount is already in minor units here; conversion is the caller's job
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError(f"Order amount must be a positive integer in minor units, got {amount!r}")
        body = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
            "payment_capture": 1,
        }
        data = await self._request("create_order", "POST", "/orders", "Failed to create Razorpay order", json=body)
        return PaymentOrder.model_validate(data)

    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        data = await self._request("fetch_payment", "GET", f"/payments/{payment_id}", "Payment verification failed")
        return PaymentDetails.model_validate(data)

    async def fetch_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("fetch_order", "GET", f"/orders/{order_id}", "Failed to fetch order details")

    async def refund(self, payment_id: str, amount: Union[int, float, Decimal]) -> RefundResult:
        body = {"amount": to_minor_units(amount)}
        data = await self._request("refund", "POST", f"/payments/{payment_id}/refund", "Refund failed", json=body)
        return RefundResult.model_validate(data)


def _error_description(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            return err.get("description")
    return None
