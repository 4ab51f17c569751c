"""Email notifier using SMTP environment variables.

Environment variables (read at send-time):
- SMTP_HOST (required)
- SMTP_PORT (optional; default 587)
- SMTP_USER (optional)
- SMTP_PASS (optional)
- SMTP_STARTTLS (optional; default "true")
- SMTP_FROM (required)
- SMTP_TO (required; comma-separated list)
"""

from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from typing import List


logger = logging.getLogger(__name__)


def _get_bool(env_value: str | None, default: bool) -> bool:
    if env_value is None:
        return default
    return env_value.strip().lower() in {"1", "true", "yes", "on"}


def _recipients() -> List[str]:
    raw = os.getenv("SMTP_TO") or ""
    return [addr.strip() for addr in raw.split(",") if addr.strip()]


def send_email(subject: str, body: str) -> bool:
    """Send a plaintext email. Returns False when not configured or delivery fails."""
    host = os.getenv("SMTP_HOST")
    from_addr = os.getenv("SMTP_FROM")
    to_addrs = _recipients()

    if not host or not from_addr or not to_addrs:
        logger.warning("SMTP not configured; skipping email | subject=%s", subject)
        return False

    port = int(os.getenv("SMTP_PORT", "587"))
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASS")
    use_starttls = _get_bool(os.getenv("SMTP_STARTTLS"), True)

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = ", ".join(to_addrs)
    msg.set_content(body)

    try:
        with smtplib.SMTP(host=host, port=port, timeout=15) as smtp:
            if use_starttls:
                smtp.starttls()
            if user:
                smtp.login(user, password or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Email delivery failed | host=%s port=%s", host, port)
        return False

    logger.info("Email sent | subject=%s recipients=%s", subject, len(to_addrs))
    return True
