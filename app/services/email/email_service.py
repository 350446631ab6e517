# ===== app/services/email/email_service.py =====
import smtplib
from html import escape
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, Optional
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = "booking_confirmation"
REMINDER_24_HOUR = "reminder_24_hour"
REMINDER_1_HOUR = "reminder_1_hour"


@dataclass
class EmailResult:
    success: bool
    error: Optional[str] = None


def _details_table(data: Dict[str, Any]) -> str:
    rows = [
        ("Service", data.get("service_name")),
        ("Date & Time", data.get("service_date_time")),
        ("Duration", f"{data['duration_minutes']} minutes" if data.get("duration_minutes") else None),
        ("With", data.get("provider_name")),
        ("Location", data.get("location_name")),
        ("Address", data.get("location_address")),
    ]
    cells = "".join(
        f'<tr><td style="padding: 8px 0; color: #666; font-weight: bold;">{label}:</td>'
        f'<td style="padding: 8px 0; color: #333;">{escape(str(value))}</td></tr>'
        for label, value in rows if value
    )
    return f'<table style="width: 100%; border-collapse: collapse;">{cells}</table>'


def _render_confirmation(data: Dict[str, Any]):
    business = data.get("business_name", "Business")
    subject = f"Booking Confirmed - {business}"
    safe_business = escape(business)
    html = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="font-size: 24px;">Your booking is confirmed</h1>
        <p>Hi {escape(data.get("customer_name") or "there")},</p>
        <p>Your appointment with <strong>{safe_business}</strong> has been booked.</p>
        {_details_table(data)}
        {f'<p><strong>Notes:</strong> {escape(data["notes"])}</p>' if data.get("notes") else ''}
        <p style="font-size: 12px; color: #999;">This is an automated confirmation. Please don't reply to this email.</p>
    </body>
    </html>
    """
    plain = (
        f"Your booking with {business} is confirmed.\n"
        f"Service: {data.get('service_name')}\n"
        f"Date & Time: {data.get('service_date_time')}\n"
        f"Location: {data.get('location_name')}\n"
    )
    return subject, html, plain


def _render_reminder(data: Dict[str, Any], lead: str):
    business = data.get("business_name", "Business")
    subject = f"Reminder: your appointment {lead} - {business}"
    safe_business = escape(business)
    html = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="font-size: 24px;">Appointment reminder</h1>
        <p>This is a friendly reminder about your appointment with <strong>{safe_business}</strong> {lead}.</p>
        {_details_table(data)}
        {f'<p><a href="{escape(data["shop_url"])}">{escape(data["shop_url"])}</a></p>' if data.get("shop_url") else ''}
        <p style="font-size: 12px; color: #999;">This is an automated reminder. Please don't reply to this email.</p>
    </body>
    </html>
    """
    plain = (
        f"Reminder: your appointment with {business} {lead}.\n"
        f"Service: {data.get('service_name')}\n"
        f"Date & Time: {data.get('service_date_time')}\n"
    )
    return subject, html, plain


_TEMPLATES = {
    BOOKING_CONFIRMATION: _render_confirmation,
    REMINDER_24_HOUR: lambda data: _render_reminder(data, "tomorrow"),
    REMINDER_1_HOUR: lambda data: _render_reminder(data, "in one hour"),
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)

        Returns:
            bool: True if email sent successfully
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg['To'] = to_email

        if plain_text:
            msg.attach(MIMEText(plain_text, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        server = EmailService._get_smtp_connection()
        try:
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
        finally:
            server.quit()

        logger.info(f"Email sent successfully to {to_email}")
        return True

    @staticmethod
    def send_template_email(recipient: str, template_id: str, template_data: Dict[str, Any]) -> EmailResult:
        """
        Render one of the booking templates and send it.

        Never raises: delivery problems come back as EmailResult(success=False).
        """
        renderer = _TEMPLATES.get(template_id)
        if renderer is None:
            return EmailResult(success=False, error=f"Unknown email template: {template_id}")
        if not settings.EMAIL_ENABLED:
            logger.info(f"Email disabled, skipping {template_id} to {recipient}")
            return EmailResult(success=False, error="Email delivery disabled")

        subject, html_content, plain_text = renderer(template_data)
        try:
            EmailService.send_email(recipient, subject, html_content, plain_text)
        except Exception as e:
            logger.error(f"Failed to send {template_id} email to {recipient}: {e}")
            return EmailResult(success=False, error=str(e))
        return EmailResult(success=True)
