"""Compose and send the PHP version status email."""

from __future__ import annotations

import logging
import socket
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from php_notifier.core import notifier
from php_notifier.domain.enums import PhpSupportStatus, WarningType
from php_notifier.schemas import NotifyResult, PhpStatus
from php_notifier.services.php_version import current_status
from php_notifier.services.settings import SettingsService


logger = logging.getLogger(__name__)

_SUBJECT_PREFIX = {
    WarningType.NOTICE.value: "[PHP Notifier]",
    WarningType.WARNING.value: "[PHP Notifier Warning]",
    WarningType.ERROR.value: "[PHP Notifier Error]",
}


def build_status_email(status: PhpStatus, warning_type: str = WarningType.NOTICE.value) -> tuple[str, str]:
    """Return (subject, body) for a PHP status report."""
    prefix = _SUBJECT_PREFIX.get(warning_type, _SUBJECT_PREFIX[WarningType.NOTICE.value])
    host = socket.gethostname()
    version = status.version or "unknown"
    subject = f"{prefix} PHP {version} on {host}: {status.status.value.replace('_', ' ')}"

    lines = [
        f"Host: {host}",
        f"PHP version: {version}",
        f"Status: {status.status.value}",
    ]
    if status.active_support_until is not None:
        lines.append(f"Active support until: {status.active_support_until.isoformat()}")
    if status.security_support_until is not None:
        lines.append(f"Security support until: {status.security_support_until.isoformat()}")
    lines.append("")
    lines.append(status.message)
    if status.status in (PhpSupportStatus.SECURITY, PhpSupportStatus.END_OF_LIFE):
        lines.append("See https://www.php.net/supported-versions.php for upgrade guidance.")
    return subject, "\n".join(lines) + "\n"


def send_notification_email(db: Session, *, force: bool = False, today: Optional[date] = None) -> NotifyResult:
    """Send the status email if email notification is enabled (or `force`)."""
    record = SettingsService(db).record()
    if not record.send_email and not force:
        logger.info("Notification email disabled; skipping")
        return NotifyResult(sent=False, reason="email disabled")

    status = current_status(today=today)
    subject, body = build_status_email(status, record.warning_type)
    sent = notifier.send_email(subject, body)
    return NotifyResult(
        sent=sent,
        reason=None if sent else "delivery failed or SMTP not configured",
        status=status,
    )
