from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hotelpay.models.models import PaymentStatus


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference: str
    hotel_id: int
    guest_name: str
    check_in_date: date
    check_out_date: date
    total_amount: Decimal
    payment_status: str
    transaction_id: Optional[str] = None
    gateway_order_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class PaymentStatusPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_status: Optional[PaymentStatus] = Field(None, alias="paymentStatus")
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    gateway_order_id: Optional[str] = Field(None, alias="gatewayOrderId")


class SendConfirmationRequest(BaseModel):
    email: str
