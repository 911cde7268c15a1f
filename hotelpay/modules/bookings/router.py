from fastapi import APIRouter, Depends, HTTPException, status

from hotelpay.config import settings
from hotelpay.deps import get_booking_store, get_notification_service
from hotelpay.schemas.booking import BookingResponse, PaymentStatusPatch, SendConfirmationRequest
from hotelpay.services.booking_store import BookingStore
from hotelpay.services.notification_service import NotificationService, build_confirmation

router = APIRouter()


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: int, store: BookingStore = Depends(get_booking_store)):
    booking = await store.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.patch("/{booking_id}/payment", response_model=BookingResponse)
async def patch_booking_payment(booking_id: int, req: PaymentStatusPatch, store: BookingStore = Depends(get_booking_store)):
    """Manual payment status override, e.g. after an offline reconciliation."""
    booking = await store.update_booking(
        booking_id,
        payment_status=req.payment_status,
        transaction_id=req.transaction_id,
        gateway_order_id=req.gateway_order_id,
    )
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.post("/{booking_id}/send-confirmation")
async def send_confirmation(
    booking_id: int,
    req: SendConfirmationRequest,
    store: BookingStore = Depends(get_booking_store),
    notifier: NotificationService = Depends(get_notification_service),
):
    booking = await store.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    hotel = await store.get_hotel(booking.hotel_id)
    if not hotel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hotel not found")
    try:
        await notifier.send_booking_confirmation(build_confirmation(booking, hotel, settings.FALLBACK_EMAIL_DOMAIN, email=req.email))
    except Exception:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send confirmation email")
    return {"message": "Confirmation email sent successfully"}
