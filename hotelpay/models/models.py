import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    JSON,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from hotelpay.db.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# once a booking reaches one of these, webhooks can no longer change it
SETTLED_STATUSES = (PaymentStatus.COMPLETED.value, PaymentStatus.REFUNDED.value)


class Hotel(Base):
    __tablename__ = "hotels"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    city = Column(String(128), nullable=True)
    contact_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bookings = relationship("Booking", back_populates="hotel")


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True)
    # guest-facing reference printed on confirmations
    reference = Column(String(64), nullable=False, unique=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_name = Column(String(255), nullable=False)
    guest_contact = Column(String(32), nullable=False)
    guest_email = Column(String(255), nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_status = Column(String(32), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    transaction_id = Column(String(64), nullable=True, index=True)
    gateway_order_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    hotel = relationship("Hotel", back_populates="bookings")


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True)
    action = Column(String(255), nullable=False)
    object_type = Column(String(128), nullable=True)
    object_id = Column(String(128), nullable=True)
    detail = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
