import logging
from typing import Optional

from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelpay.models.models import Booking, Hotel, PaymentStatus, SETTLED_STATUSES
from hotelpay.services.audit import log_audit

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("payment_status", "transaction_id", "gateway_order_id")


class BookingStore:
    """Booking persistence used by the payment flow.

    Every write is a single UPDATE statement so a patch lands on one booking
    all-or-nothing.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        async with self._session_factory() as db:
            return await db.get(Booking, booking_id)

    async def get_hotel(self, hotel_id: int) -> Optional[Hotel]:
        async with self._session_factory() as db:
            return await db.get(Hotel, hotel_id)

    async def find_by_transaction(self, transaction_id: str) -> Optional[Booking]:
        async with self._session_factory() as db:
            res = await db.execute(sa_select(Booking).where(Booking.transaction_id == transaction_id))
            return res.scalars().first()

    async def update_booking(self, booking_id: int, **patch) -> Optional[Booking]:
        values = {k: _plain(v) for k, v in patch.items() if v is not None}
        unknown = set(values) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot patch booking fields: {sorted(unknown)}")
        async with self._session_factory() as db:
            async with db.begin():
                if values:
                    res = await db.execute(sa_update(Booking).where(Booking.id == booking_id).values(**values))
                    if res.rowcount == 0:
                        return None
            return await db.get(Booking, booking_id, populate_existing=True)

    async def transition_payment(self, booking_id: int, status: PaymentStatus, transaction_id: Optional[str] = None) -> bool:
        """Compare-and-set the payment status of a booking that is not yet settled.

        Returns False when the row is missing or already completed/refunded, in
        which case nothing was written.
        """
        values = {"payment_status": _plain(status)}
        if transaction_id is not None:
            values["transaction_id"] = transaction_id
        stmt = (
            sa_update(Booking)
            .where(Booking.id == booking_id)
            .where(Booking.payment_status.notin_(SETTLED_STATUSES))
            .values(**values)
        )
        async with self._session_factory() as db:
            async with db.begin():
                res = await db.execute(stmt)
        return res.rowcount == 1

    async def mark_refunded(self, transaction_id: str) -> Optional[Booking]:
        stmt = (
            sa_update(Booking)
            .where(Booking.transaction_id == transaction_id)
            .where(Booking.payment_status == PaymentStatus.COMPLETED.value)
            .values(payment_status=PaymentStatus.REFUNDED.value)
        )
        async with self._session_factory() as db:
            async with db.begin():
                res = await db.execute(stmt)
            if res.rowcount == 0:
                return None
        return await self.find_by_transaction(transaction_id)

    async def record_audit(self, action: str, object_type: str = None, object_id: str = None, detail: dict = None):
        async with self._session_factory() as db:
            async with db.begin():
                await log_audit(db, action=action, object_type=object_type, object_id=object_id, detail=detail)


def _plain(value):
    return value.value if isinstance(value, PaymentStatus) else value
