from typing import Optional


class PaymentError(Exception):
    pass


class GatewayRequestError(PaymentError):
    """The gateway rejected a call or could not be reached."""

    def __init__(self, description: str, status_code: Optional[int] = None, operation: Optional[str] = None):
        self.description = description
        self.status_code = status_code
        self.operation = operation
        super().__init__(description)


class Unauthenticated(PaymentError):
    """Webhook signature did not match the shared secret."""


class Unresolvable(PaymentError):
    """Notification cannot be tied to a known booking."""


class ConflictingPayment(PaymentError):
    def __init__(self, booking_id: int, existing_transaction_id: Optional[str], incoming_payment_id: Optional[str], current_status: Optional[str] = None):
        self.booking_id = booking_id
        self.current_status = current_status
        self.existing_transaction_id = existing_transaction_id
        self.incoming_payment_id = incoming_payment_id
        super().__init__(
            f"booking {booking_id} already settled by {existing_transaction_id}, got {incoming_payment_id}"
        )


class SideEffectFailure(PaymentError):
    """Post-commit confirmation could not be delivered."""
