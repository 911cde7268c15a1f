from .models import *

__all__ = [
    "Base",
    "PaymentStatus",
    "SETTLED_STATUSES",
    "Hotel",
    "Booking",
    "AuditLog",
]
