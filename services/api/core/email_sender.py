# services/api/core/email_sender.py
from __future__ import annotations
import aiosmtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
import logging

logger = logging.getLogger(__name__)


async def send_email(
    *,
    to_email: str,
    subject: str,
    body_html: str,
    smtp_host: str,
    smtp_port: int,
    smtp_user: str,
    smtp_password: str,
    from_email: str,
    from_name: str,
    body_text: Optional[str] = None,
) -> bool:
    """
    Send a single HTML email (with optional plain-text part) over STARTTLS.
    Returns True on success, False on failure.
    """
    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{from_name} <{from_email}>"
        msg["To"] = to_email
        msg["Subject"] = subject

        if body_text:
            msg.attach(MIMEText(body_text, "plain"))
        msg.attach(MIMEText(body_html, "html"))

        await aiosmtplib.send(
            msg,
            hostname=smtp_host,
            port=smtp_port,
            username=smtp_user or None,
            password=smtp_password or None,
            start_tls=True,
            recipients=[to_email],
        )

        logger.info(f"✓ Email sent to {to_email}")
        return True

    except Exception as e:
        logger.error(f"✗ Email send failed to {to_email}: {e}")
        return False
