from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from pathlib import Path
from typing import Dict, Optional
from pydantic import BaseModel
from hotelpay.services.notification_providers import LogProvider, NotificationProvider
from hotelpay.metrics import NOTIF_COUNTER_SENT, NOTIF_COUNTER_FAILED
import logging

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "notifications" / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


class BookingConfirmation(BaseModel):
    guest_email: str
    guest_name: str
    booking_id: str
    hotel_name: str
    check_in_date: str
    check_out_date: str
    total_amount: str


class NotificationService:
    def __init__(self, provider: Optional[NotificationProvider] = None):
        self.provider = provider or LogProvider()

    def render(self, template_name: str, locale: str = "en", context: Dict = None) -> str:
        ctx = context or {}
        # try locale-specific template, fallback to en
        for tpl in (f"{locale}/{template_name}", f"en/{template_name}"):
            try:
                return _env.get_template(tpl).render(**ctx)
            except TemplateNotFound:
                continue
        raise RuntimeError("Template not found: %s" % template_name)

    async def send_email(self, to: str, subject: str, template_name: str, context: Dict = None, locale: str = "en", meta: Dict = None):
        body = self.render(template_name, locale=locale, context=context)
        provider_name = type(self.provider).__name__
        try:
            res = await self.provider.send_email(to=to, subject=subject, body=body, meta=meta)
        except Exception:
            NOTIF_COUNTER_FAILED.labels(channel="email", provider=provider_name).inc()
            logger.exception("Email send failed")
            raise
        NOTIF_COUNTER_SENT.labels(channel="email", provider=provider_name).inc()
        return res

    async def send_booking_confirmation(self, confirmation: BookingConfirmation, locale: str = "en"):
        return await self.send_email(
            to=confirmation.guest_email,
            subject=f"Booking confirmed - {confirmation.booking_id}",
            template_name="booking_confirmation.txt",
            context=confirmation.model_dump(),
            locale=locale,
            meta={"booking_id": confirmation.booking_id},
        )


def build_confirmation(booking, hotel, fallback_email_domain: str, email: Optional[str] = None) -> BookingConfirmation:
    guest_email = email or booking.guest_email or f"{booking.guest_contact}@{fallback_email_domain}"
    return BookingConfirmation(
        guest_email=guest_email,
        guest_name=booking.guest_name,
        booking_id=booking.reference,
        hotel_name=hotel.name,
        check_in_date=booking.check_in_date.isoformat(),
        check_out_date=booking.check_out_date.isoformat(),
        total_amount=str(booking.total_amount),
    )
