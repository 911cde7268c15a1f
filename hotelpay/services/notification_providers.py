from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class NotificationProvider(ABC):
    """Delivers rendered guest emails such as booking confirmations.

    Implementations raise on delivery failure; NotificationService counts the
    failure and lets the caller decide whether it matters.
    """

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        raise NotImplementedError()


class LogProvider(NotificationProvider):
    """Writes guest emails to the log instead of a mail relay. Default outside production."""

    name = "log"

    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        booking_ref = (meta or {}).get("booking_id")
        logger.info("Guest email for booking %s to %s: %s", booking_ref, to, subject)
        logger.debug("Guest email body: %s", body)
        return {"status": "logged", "provider": self.name, "booking_id": booking_ref}
