import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from typing import Optional

from hotelpay.deps import get_booking_store, get_gateway, get_order_coordinator, get_reconciler
from hotelpay.schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentDetails,
    RefundRequest,
    RefundResult,
    WebhookAck,
)
from hotelpay.services.booking_store import BookingStore
from hotelpay.services.order_lifecycle import OrderCoordinator
from hotelpay.services.payment_gateway import RazorpayClient
from hotelpay.services.webhook_reconciler import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def payments_root():
    return {"module": "payments", "status": "ok"}


@router.post("/orders", response_model=CreateOrderResponse)
async def create_order(
    req: CreateOrderRequest,
    coordinator: OrderCoordinator = Depends(get_order_coordinator),
    store: BookingStore = Depends(get_booking_store),
):
    """Create a Razorpay order for a booking; amount is given in major units."""
    try:
        order = await coordinator.create_payment_order(
            booking_id=req.notes.booking_id,
            amount_major_units=req.amount,
            currency=req.currency,
            customer_phone=req.notes.customer_phone,
            receipt=req.receipt,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    booking_id = _as_booking_id(req.notes.booking_id)
    if booking_id is not None:
        # convenience link only; the order notes stay the source of truth
        await store.update_booking(booking_id, gateway_order_id=order.order_id)
    return CreateOrderResponse(id=order.order_id, amount=order.amount_minor_units)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, gateway: RazorpayClient = Depends(get_gateway)):
    return await gateway.fetch_order(order_id)


@router.get("/{payment_id}", response_model=PaymentDetails)
async def get_payment(payment_id: str, gateway: RazorpayClient = Depends(get_gateway)):
    return await gateway.fetch_payment(payment_id)


@router.post("/{payment_id}/refund", response_model=RefundResult)
async def refund_payment(
    payment_id: str,
    req: RefundRequest,
    gateway: RazorpayClient = Depends(get_gateway),
    store: BookingStore = Depends(get_booking_store),
):
    try:
        refund = await gateway.refund(payment_id, req.amount)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    booking = await store.mark_refunded(payment_id)
    if booking is not None:
        logger.info("Booking %s refunded via %s refund=%s", booking.id, payment_id, refund.id)
    return refund


@router.post("/webhook/razorpay", response_model=WebhookAck)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None, alias="X-Razorpay-Signature"),
    reconciler: WebhookReconciler = Depends(get_reconciler),
):
    # verify against the raw bytes; parsing first would break the signature
    body = await request.body()
    result = await reconciler.handle(body, x_razorpay_signature)
    return WebhookAck(status="success", outcome=result.outcome.value)


def _as_booking_id(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None
