import logging
import random
import string
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from hotelpay.metrics import ORDERS_CREATED
from hotelpay.services.payment_gateway import RazorpayClient, to_minor_units

logger = logging.getLogger(__name__)


@dataclass
class CreatedOrder:
    order_id: str
    amount_minor_units: int
    currency: str
    receipt: str


def generate_receipt() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"ORDER_{int(time.time() * 1000)}_{suffix}"


class OrderCoordinator:
    """Creates gateway orders for bookings.

    Nothing is stored locally: the booking id travels in the order notes and
    comes back to us inside the webhook.
    """

    def __init__(self, gateway: RazorpayClient, default_currency: str = "INR"):
        self.gateway = gateway
        self.default_currency = default_currency

    async def create_payment_order(
        self,
        booking_id: Optional[Union[int, str]],
        amount_major_units: Union[int, float, Decimal],
        currency: Optional[str] = None,
        customer_phone: Optional[str] = None,
        receipt: Optional[str] = None,
    ) -> CreatedOrder:
        amount = to_minor_units(amount_major_units)
        notes = {}
        if booking_id is not None:
            notes["bookingId"] = str(booking_id)
        if customer_phone:
            notes["customerPhone"] = customer_phone
        receipt = receipt or generate_receipt()

        # GatewayRequestError propagates untouched; no retry here
        order = await self.gateway.create_order(
            amount=amount,
            currency=currency or self.default_currency,
            receipt=receipt,
            notes=notes,
        )
        ORDERS_CREATED.inc()
        logger.info("Created gateway order %s for booking %s amount=%s", order.id, booking_id, order.amount)
        return CreatedOrder(order_id=order.id, amount_minor_units=order.amount, currency=order.currency, receipt=receipt)
