"""Notifier settings model (singleton pattern)."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from php_notifier.core.db import Base
from php_notifier.domain.enums import EmailFrequency, WarningType
from .common import _utcnow


SETTINGS_ID = 1


class Settings(Base):
    """Singleton settings row holding the notification configuration.

    This table should contain exactly one row with id=1.
    """

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ID)
    warning_type = Column(String(20), nullable=False, default=WarningType.NOTICE.value)
    send_email = Column(Boolean, nullable=False, default=False)
    email_frequency = Column(String(20), nullable=False, default=EmailFrequency.NEVER.value)
    # Anchor of the email job interval; None while the frequency is never
    email_scheduled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<Settings(id={self.id}, send_email={self.send_email}, "
            f"email_frequency='{self.email_frequency}')>"
        )
