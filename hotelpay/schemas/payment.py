from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderNotes(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    booking_id: Optional[str] = Field(None, alias="bookingId")
    customer_phone: Optional[str] = Field(None, alias="customerPhone")

    @field_validator("booking_id", "customer_phone", mode="before")
    @classmethod
    def _stringify(cls, value):
        # notes are echoed back verbatim, so numeric ids can arrive as ints
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CreateOrderRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount in major currency units")
    currency: Optional[str] = None
    receipt: Optional[str] = None
    notes: OrderNotes = Field(default_factory=OrderNotes)


class CreateOrderResponse(BaseModel):
    id: str
    amount: int


class PaymentOrder(BaseModel):
    """Order record as returned by the gateway; amount is in minor units."""

    model_config = ConfigDict(extra="allow")

    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None
    notes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("notes", mode="before")
    @classmethod
    def _empty_notes(cls, value):
        return value if isinstance(value, dict) else {}


class PaymentDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None


class RefundRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount to refund in major currency units")


class RefundResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    payment_id: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None


# Webhook payload. Every level may be missing; the reconciler decides what a gap means.


class PaymentEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    status: Optional[str] = None
    order_id: Optional[str] = None


class OrderEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    notes: Optional[OrderNotes] = None

    @field_validator("notes", mode="before")
    @classmethod
    def _empty_notes(cls, value):
        # Razorpay serialises empty notes as []
        if not isinstance(value, dict):
            return None
        return value


class PaymentWrapper(BaseModel):
    entity: PaymentEntity = Field(default_factory=PaymentEntity)


class OrderWrapper(BaseModel):
    entity: OrderEntity = Field(default_factory=OrderEntity)


class NotificationPayload(BaseModel):
    payment: PaymentWrapper = Field(default_factory=PaymentWrapper)
    order: OrderWrapper = Field(default_factory=OrderWrapper)


class PaymentNotification(BaseModel):
    model_config = ConfigDict(extra="allow")

    entity: Optional[str] = None
    event: Optional[str] = None
    payload: NotificationPayload = Field(default_factory=NotificationPayload)

    @property
    def payment(self) -> PaymentEntity:
        return self.payload.payment.entity

    @property
    def booking_id(self) -> Optional[str]:
        notes = self.payload.order.entity.notes
        return notes.booking_id if notes else None


class WebhookAck(BaseModel):
    status: str = "success"
    outcome: Optional[str] = None
