"""Reconciles Razorpay payment notifications with booking payment state.

Notifications are delivered at least once. The pair (payment id, mapped
status) is the unit of idempotence: a redelivery finds the booking already
settled under the same payment id and becomes a no-op, so the confirmation
email goes out once per genuine transition into ``completed``.
"""
import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from hotelpay.exceptions import ConflictingPayment, SideEffectFailure, Unauthenticated, Unresolvable
from hotelpay.metrics import PAYMENT_CONFLICTS, WEBHOOKS
from hotelpay.models.models import Booking, PaymentStatus, SETTLED_STATUSES
from hotelpay.schemas.payment import PaymentNotification
from hotelpay.services.booking_store import BookingStore
from hotelpay.services.notification_service import NotificationService, build_confirmation
from hotelpay.services.payment_gateway import verify_signature

logger = logging.getLogger(__name__)

CAPTURED = "captured"

# bookings.id is a 32-bit Integer column
MAX_BOOKING_ID = 2**31 - 1


class Outcome(str, enum.Enum):
    APPLIED = "applied"
    REPLAYED = "replayed"
    STALE = "stale"
    CONFLICT = "conflict"
    UNRESOLVABLE = "unresolvable"


@dataclass
class ConfirmationResult:
    sent: bool
    error: Optional[str] = None


@dataclass
class ReconcileResult:
    outcome: Outcome
    booking_id: Optional[int] = None
    payment_id: Optional[str] = None
    booking_status: Optional[str] = None
    confirmation: Optional[ConfirmationResult] = None


def map_gateway_status(status: Optional[str]) -> PaymentStatus:
    """Only a captured payment completes a booking; every other status fails it."""
    if (status or "").strip().lower() == CAPTURED:
        return PaymentStatus.COMPLETED
    return PaymentStatus.FAILED


def parse_notification(raw_body: bytes) -> PaymentNotification:
    try:
        data = json.loads(raw_body)
    except ValueError as exc:
        raise Unresolvable(f"body is not JSON: {exc}")
    if not isinstance(data, dict):
        raise Unresolvable("body is not a JSON object")
    try:
        return PaymentNotification.model_validate(data)
    except ValidationError as exc:
        raise Unresolvable(f"unexpected payload shape: {exc.error_count()} errors")


class WebhookReconciler:
    def __init__(self, store: BookingStore, notifier: NotificationService, webhook_secret: str, fallback_email_domain: str = "bookneoapp.com"):
        self.store = store
        self.notifier = notifier
        self.webhook_secret = webhook_secret
        self.fallback_email_domain = fallback_email_domain

    async def handle(self, raw_body: bytes, signature: Optional[str]) -> ReconcileResult:
        if not verify_signature(raw_body, signature, self.webhook_secret):
            WEBHOOKS.labels(outcome="rejected").inc()
            logger.warning("Rejected webhook with invalid signature")
            raise Unauthenticated("Invalid signature")

        notification = None
        try:
            notification = parse_notification(raw_body)
            result = await self._reconcile(notification)
        except Unresolvable as exc:
            payment_id = notification.payment.id if notification else None
            logger.info("Acknowledging uncorrelated webhook payment=%s: %s", payment_id, exc)
            result = ReconcileResult(outcome=Outcome.UNRESOLVABLE, payment_id=payment_id)
        except ConflictingPayment as exc:
            await self._report_conflict(exc, notification)
            result = ReconcileResult(
                outcome=Outcome.CONFLICT,
                booking_id=exc.booking_id,
                payment_id=exc.incoming_payment_id,
                booking_status=exc.current_status,
            )

        WEBHOOKS.labels(outcome=result.outcome.value).inc()
        return result

    async def _reconcile(self, notification: PaymentNotification) -> ReconcileResult:
        payment = notification.payment
        if not payment.id:
            raise Unresolvable("notification carries no payment id")
        raw_booking_id = notification.booking_id
        if not raw_booking_id:
            raise Unresolvable(f"order {notification.payload.order.entity.id} has no bookingId note")
        try:
            booking_id = int(raw_booking_id)
        except ValueError:
            raise Unresolvable(f"bookingId {raw_booking_id!r} is not a booking id")
        if not 0 < booking_id <= MAX_BOOKING_ID:
            raise Unresolvable(f"bookingId {raw_booking_id!r} is out of range")

        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise Unresolvable(f"booking {booking_id} not found")

        target = map_gateway_status(payment.status)
        logger.info(
            "Webhook event=%s payment=%s status=%s booking=%s current=%s",
            notification.event, payment.id, payment.status, booking_id, booking.payment_status,
        )
        return await self._apply(booking, payment.id, target)

    async def _apply(self, booking: Booking, payment_id: str, target: PaymentStatus, retry: bool = True) -> ReconcileResult:
        if booking.payment_status in SETTLED_STATUSES:
            if booking.transaction_id != payment_id:
                raise ConflictingPayment(booking.id, booking.transaction_id, payment_id, current_status=booking.payment_status)
            # same payment again: a redelivery, or a late non-capture status we must not apply
            outcome = Outcome.REPLAYED if target == PaymentStatus.COMPLETED else Outcome.STALE
            if outcome == Outcome.STALE:
                logger.warning("Ignoring %s for settled booking %s payment=%s", target.value, booking.id, payment_id)
            return ReconcileResult(outcome=outcome, booking_id=booking.id, payment_id=payment_id, booking_status=booking.payment_status)

        if target == PaymentStatus.FAILED and booking.payment_status == PaymentStatus.FAILED.value:
            return ReconcileResult(outcome=Outcome.REPLAYED, booking_id=booking.id, payment_id=payment_id, booking_status=booking.payment_status)

        transaction_id = payment_id if target == PaymentStatus.COMPLETED else None
        changed = await self.store.transition_payment(booking.id, target, transaction_id=transaction_id)
        if not changed:
            # a concurrent delivery settled the booking between our read and write
            current = await self.store.get_booking(booking.id)
            if current is None:
                raise Unresolvable(f"booking {booking.id} disappeared")
            if retry and current.payment_status in SETTLED_STATUSES:
                return await self._apply(current, payment_id, target, retry=False)
            raise RuntimeError(f"booking {booking.id} changed concurrently")

        logger.info("Booking %s payment %s -> %s via %s", booking.id, booking.payment_status, target.value, payment_id)
        result = ReconcileResult(outcome=Outcome.APPLIED, booking_id=booking.id, payment_id=payment_id, booking_status=target.value)
        if target == PaymentStatus.COMPLETED:
            result.confirmation = await self._send_confirmation(booking)
        return result

    async def _send_confirmation(self, booking: Booking) -> ConfirmationResult:
        # runs after the transition is committed; failures are reported, never raised
        try:
            hotel = await self.store.get_hotel(booking.hotel_id)
            if hotel is None:
                raise SideEffectFailure(f"hotel {booking.hotel_id} not found")
            await self.notifier.send_booking_confirmation(build_confirmation(booking, hotel, self.fallback_email_domain))
        except Exception as exc:
            failure = exc if isinstance(exc, SideEffectFailure) else SideEffectFailure(str(exc))
            logger.error("Confirmation for booking %s not sent: %s", booking.id, failure)
            return ConfirmationResult(sent=False, error=str(failure))
        return ConfirmationResult(sent=True)

    async def _report_conflict(self, exc: ConflictingPayment, notification: PaymentNotification):
        PAYMENT_CONFLICTS.inc()
        logger.error(
            "Payment conflict on booking %s: settled by %s, notification for %s",
            exc.booking_id, exc.existing_transaction_id, exc.incoming_payment_id,
        )
        await self.store.record_audit(
            action="payment_conflict",
            object_type="booking",
            object_id=str(exc.booking_id),
            detail={
                "existing_transaction_id": exc.existing_transaction_id,
                "incoming_payment_id": exc.incoming_payment_id,
                "incoming_status": notification.payment.status,
                "order_id": notification.payload.order.entity.id,
                "event": notification.event,
            },
        )
