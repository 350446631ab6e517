import pytest

from app.config.settings import settings
from app.services.email.email_service import (
    BOOKING_CONFIRMATION,
    REMINDER_1_HOUR,
    EmailService,
)

TEMPLATE_DATA = {
    "customer_name": "Sam Rivera",
    "service_name": "Classic Cut",
    "service_date_time": "Wednesday, July 16, 2025 at 11:00 AM",
    "duration_minutes": 30,
    "provider_name": "Alex",
    "business_name": "Fade Factory",
    "location_name": "Downtown",
    "location_address": "12 Grand St, New York, NY",
    "shop_url": "https://fade-factory.myshopify.com",
    "notes": None,
}


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(settings, "EMAIL_ENABLED", True)
    monkeypatch.setattr(
        EmailService, "send_email",
        staticmethod(lambda to, subject, html, plain=None: sent.append((to, subject, html, plain)) or True),
    )
    return sent


def test_confirmation_template_is_rendered_and_sent(outbox):
    result = EmailService.send_template_email("sam@fadefactory.com", BOOKING_CONFIRMATION, TEMPLATE_DATA)

    assert result.success
    to, subject, html, plain = outbox[0]
    assert to == "sam@fadefactory.com"
    assert subject == "Booking Confirmed - Fade Factory"
    assert "Classic Cut" in html
    assert "Wednesday, July 16, 2025 at 11:00 AM" in plain


def test_reminder_template(outbox):
    result = EmailService.send_template_email("sam@fadefactory.com", REMINDER_1_HOUR, TEMPLATE_DATA)
    assert result.success
    assert outbox[0][1] == "Reminder: your appointment in one hour - Fade Factory"


def test_unknown_template_fails_without_sending(outbox):
    result = EmailService.send_template_email("sam@fadefactory.com", "birthday_coupon", TEMPLATE_DATA)
    assert not result.success
    assert outbox == []


def test_disabled_email_is_not_sent(outbox, monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_ENABLED", False)
    result = EmailService.send_template_email("sam@fadefactory.com", BOOKING_CONFIRMATION, TEMPLATE_DATA)
    assert not result.success
    assert outbox == []


def test_smtp_failure_is_returned_not_raised(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_ENABLED", True)

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(EmailService, "send_email", staticmethod(refuse))
    result = EmailService.send_template_email("sam@fadefactory.com", BOOKING_CONFIRMATION, TEMPLATE_DATA)

    assert not result.success
    assert "smtp down" in result.error


def test_customer_text_is_escaped_in_html(outbox):
    data = dict(
        TEMPLATE_DATA,
        customer_name='<a href="http://evil.example">Click to verify your card</a>',
        notes="<script>x()</script>",
    )
    result = EmailService.send_template_email("sam@fadefactory.com", BOOKING_CONFIRMATION, data)

    assert result.success
    html = outbox[0][2]
    assert "&lt;a href=&quot;http://evil.example&quot;&gt;" in html
    assert "&lt;script&gt;x()&lt;/script&gt;" in html
    assert "<a href=" not in html
    assert "<script>" not in html


def test_reminder_escapes_location_details(outbox):
    data = dict(TEMPLATE_DATA, location_name="Downtown <b>VIP</b>")
    EmailService.send_template_email("sam@fadefactory.com", REMINDER_1_HOUR, data)

    html = outbox[0][2]
    assert "Downtown &lt;b&gt;VIP&lt;/b&gt;" in html
    assert '<a href="https://fade-factory.myshopify.com">' in html
