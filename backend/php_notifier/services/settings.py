"""Settings persistence and notification-job reconciliation.

A settings-form submission goes through `SettingsReconciler.reconcile`, which
normalizes the untrusted input into a `SettingsRecord` and keeps the single
recurring email job in step with the record's `email_frequency`.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from php_notifier.domain.enums import EmailFrequency
from php_notifier.models import Settings as SettingsModel
from php_notifier.models.common import _utcnow
from php_notifier.models.settings import SETTINGS_ID
from php_notifier.schemas import SettingsForm, SettingsRecord


logger = logging.getLogger(__name__)

EMAIL_JOB_NAME = "notifier_email_job"

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")
_WHITESPACE_RE = re.compile(r"\s+")


class JobScheduler(Protocol):
    """Scheduler collaborator used by the reconciler."""

    def clear_scheduled_job(self, name: str) -> None:
        ...

    def schedule_recurring_job(self, name: str, start_time: datetime, frequency: EmailFrequency) -> None:
        ...


def _as_mapping(raw: Union[Mapping[str, Any], SettingsForm]) -> Mapping[str, Any]:
    if isinstance(raw, SettingsForm):
        return raw.model_dump(exclude_none=True)
    return raw


def sanitize_text_field(value: str) -> str:
    """Strip markup, percent-encoded octets and surplus whitespace from form text."""
    cleaned = _TAG_RE.sub("", value)
    cleaned = _OCTET_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    return cleaned.strip()


class SettingsReconciler:
    """Normalize settings-form input and reconcile the email job registration."""

    def __init__(self, scheduler: JobScheduler, clock: Callable[[], datetime] = _utcnow) -> None:
        self.scheduler = scheduler
        self.clock = clock

    @staticmethod
    def normalize(previous: SettingsRecord, raw: Mapping[str, Any]) -> SettingsRecord:
        """Build the new record from form input without touching the scheduler.

        `warning_type` is not editable through the form and is carried over.
        """
        send_email = raw.get("send_email")
        frequency = raw.get("email_frequency")
        if isinstance(frequency, str):
            frequency = sanitize_text_field(frequency)

        return SettingsRecord(
            warning_type=previous.warning_type,
            send_email=bool(send_email),
            email_frequency=EmailFrequency.coerce(frequency) if frequency is not None else EmailFrequency.NEVER,
        )

    def reconcile(
        self,
        previous: SettingsRecord,
        raw: Union[Mapping[str, Any], SettingsForm],
    ) -> SettingsRecord:
        """Return the normalized record, rescheduling the email job if its cadence changed."""
        raw = _as_mapping(raw)
        record = self.normalize(previous, raw)

        if previous.email_frequency == record.email_frequency:
            return record

        logger.info(
            "email_frequency_changed | previous=%s current=%s",
            previous.email_frequency.value,
            record.email_frequency.value,
        )
        self.scheduler.clear_scheduled_job(EMAIL_JOB_NAME)

        if record.email_frequency is EmailFrequency.NEVER:
            return record

        self.scheduler.schedule_recurring_job(EMAIL_JOB_NAME, self.clock(), record.email_frequency)
        return record


class SettingsService:
    """Load and update the singleton settings row."""

    def __init__(
        self,
        db: Session,
        scheduler: Optional[JobScheduler] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.db = db
        self.scheduler = scheduler
        self.clock = clock

    def get(self) -> SettingsModel:
        """Get the singleton settings row, creating it with defaults if needed."""
        settings = self.db.get(SettingsModel, SETTINGS_ID)
        if settings is None:
            settings = SettingsModel(id=SETTINGS_ID)
            self.db.add(settings)
            self.db.commit()
            self.db.refresh(settings)
            logger.info("Created default settings row")
        return settings

    def record(self) -> SettingsRecord:
        return SettingsRecord.model_validate(self.get())

    def update(self, form: Union[Mapping[str, Any], SettingsForm]) -> SettingsModel:
        """Persist a form submission, then reconcile the email job against it.

        The scheduler is only touched once the new record is committed, so a
        failed write leaves both the row and the job as they were.
        """
        if self.scheduler is None:
            raise RuntimeError("SettingsService.update requires a scheduler")

        raw = _as_mapping(form)
        settings = self.get()
        previous = SettingsRecord.model_validate(settings)
        record = SettingsReconciler.normalize(previous, raw)
        now = self.clock()

        settings.warning_type = record.warning_type
        settings.send_email = record.send_email
        settings.email_frequency = record.email_frequency.value
        if record.email_frequency != previous.email_frequency:
            settings.email_scheduled_at = None if record.email_frequency is EmailFrequency.NEVER else now
        self.db.add(settings)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Settings update failed; email job left unchanged")
            raise
        self.db.refresh(settings)

        SettingsReconciler(self.scheduler, clock=lambda: now).reconcile(previous, raw)
        return settings

    def scheduled_at(self) -> Optional[datetime]:
        """Stored start of the email job interval, as an aware UTC datetime."""
        value = self.get().email_scheduled_at
        if value is not None and value.tzinfo is None:
            # SQLite drops the offset; values are written in UTC
            value = value.replace(tzinfo=timezone.utc)
        return value

    def mark_scheduled(self, start_time: datetime) -> None:
        settings = self.get()
        settings.email_scheduled_at = start_time
        self.db.add(settings)
        self.db.commit()
