"""SMTP email client wrapper."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from usersvc.config import settings

logger = logging.getLogger(__name__)


def send_email(
    to_addresses: list[str],
    subject: str,
    body_html: str,
    body_text: str | None = None,
) -> bool:
    """Send an email via SMTP. Returns True on success, False on failure."""
    if not settings.SMTP_HOST or not settings.SMTP_USER:
        logger.warning("SMTP not configured. Skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_USER}>"
        msg["To"] = ", ".join(to_addresses)
        if body_text:
            msg.attach(MIMEText(body_text, "plain"))
        msg.attach(MIMEText(body_html, "html"))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.SMTP_USER, to_addresses, msg.as_string())
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email to %s", to_addresses)
        return False


def render_reset_email(reset_key: str, expiry_minutes: int) -> tuple[str, str]:
    """Render the (html, text) bodies of a password reset email."""
    safe_key = html.escape(reset_key)
    body_html = f"""
    <html>
    <body style="font-family: Arial, sans-serif; padding: 20px;">
        <h2>Password Reset</h2>
        <p>A password reset was requested for your {html.escape(settings.APP_NAME)} account.</p>
        <p>Use this key to reset your password:</p>
        <p style="font-family: monospace; background: #f1f5f9; padding: 12px;">{safe_key}</p>
        <p>This key expires in {expiry_minutes} minutes.</p>
        <p style="color: #94a3b8; font-size: 12px;">
            If you did not request this reset, please ignore this email.
        </p>
    </body>
    </html>
    """
    body_text = f"Password reset key: {reset_key}\nExpires in {expiry_minutes} minutes."
    return body_html, body_text
