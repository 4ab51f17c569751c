"""APScheduler configuration and the notification email job.

Responsibilities:
- Provide a singleton `AsyncIOScheduler` instance
- Adapt it to the `JobScheduler` interface the settings reconciler drives
- Restore the email job from the persisted settings on startup
- Run the email job on each tick
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from php_notifier.core.db import new_session
from php_notifier.domain.enums import EmailFrequency
from php_notifier.services.settings import EMAIL_JOB_NAME, SettingsService


logger = logging.getLogger(__name__)

# Monthly follows the 30-day month most cron hosts use
FREQUENCY_INTERVALS: dict[EmailFrequency, timedelta] = {
    EmailFrequency.DAILY: timedelta(days=1),
    EmailFrequency.WEEKLY: timedelta(weeks=1),
    EmailFrequency.MONTHLY: timedelta(days=30),
}

_scheduler: Optional[AsyncIOScheduler] = None

# Avoid reserved LogRecord attribute collisions in `extra`
_RESERVED_LOG_KEYS = frozenset(
    {
        "name", "msg", "message", "asctime", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info", "lineno",
        "funcName", "created", "msecs", "relativeCreated", "thread",
        "threadName", "processName", "process", "args",
    }
)


def _log_event(event_name: str, **fields: object) -> None:
    """Emit an 'event | k=v ...' log line with the fields also carried in `extra`."""
    if not fields:
        logger.info("%s", event_name, extra={"event": event_name})
        return

    keys = sorted(fields.keys())
    msg = "%s | " + " ".join(f"{k}=%s" for k in keys)
    safe_extra: dict[str, object] = {"event": event_name}
    for k, v in fields.items():
        safe_extra[k if k not in _RESERVED_LOG_KEYS else f"field_{k}"] = v
    logger.info(msg, event_name, *(fields[k] for k in keys), extra=safe_extra)


def get_scheduler() -> AsyncIOScheduler:
    """Get the global scheduler instance."""
    global _scheduler
    if _scheduler is None:
        tz = os.getenv("SCHEDULER_TIMEZONE", "UTC")
        _scheduler = AsyncIOScheduler(
            timezone=tz,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
            },
        )
        _log_event("scheduler_created", timezone=tz, coalesce=True, max_instances=1)
    return _scheduler


class ApschedulerJobScheduler:
    """`JobScheduler` backed by APScheduler.

    Jobs are keyed by name and registered with `replace_existing=True`, so
    scheduling the same name twice never yields two jobs.
    """

    def __init__(self, scheduler: Any = None) -> None:
        self.scheduler = scheduler if scheduler is not None else get_scheduler()

    def clear_scheduled_job(self, name: str) -> None:
        try:
            self.scheduler.remove_job(name)
        except JobLookupError:
            _log_event("job_clear_noop", job=name)
            return
        _log_event("job_cleared", job=name)

    def schedule_recurring_job(self, name: str, start_time: datetime, frequency: EmailFrequency) -> None:
        """Register the job with its first run at `start_time`."""
        self._add_interval_job(name, start_time, frequency, next_run_time=start_time)

    def restore_recurring_job(self, name: str, start_time: datetime, frequency: EmailFrequency) -> None:
        """Re-register a job anchored at an earlier `start_time`.

        The next run falls on the first interval boundary after now, so a
        restart does not shift the cadence.
        """
        self._add_interval_job(name, start_time, frequency)

    def _add_interval_job(self, name: str, start_time: datetime, frequency: EmailFrequency, **kwargs: Any) -> None:
        frequency = EmailFrequency.coerce(frequency)
        interval = FREQUENCY_INTERVALS.get(frequency)
        if interval is None:
            _log_event("job_not_scheduled", job=name, frequency=frequency.value)
            return

        self.scheduler.add_job(
            func=scheduled_email_tick,
            trigger=IntervalTrigger(days=interval.days, start_date=start_time),
            id=name,
            name=f"PHP notifier email ({frequency.value})",
            replace_existing=True,
            max_instances=1,
            **kwargs,
        )
        _log_event(
            "job_scheduled",
            job=name,
            frequency=frequency.value,
            start_time=start_time.isoformat(),
            immediate="next_run_time" in kwargs,
        )


def get_job_scheduler() -> ApschedulerJobScheduler:
    """FastAPI dependency returning the scheduler the reconciler should drive."""
    return ApschedulerJobScheduler(get_scheduler())


def schedule_jobs_on_startup(scheduler: Any, db: Session) -> None:
    """Re-register the email job from the persisted settings.

    The in-memory job store starts empty on each boot, so the stored
    frequency and interval anchor are the source of truth.
    """
    # In tests, a dummy scheduler may be provided without `add_job`.
    if not hasattr(scheduler, "add_job"):
        return

    svc = SettingsService(db)
    record = svc.record()
    scheduled_at = svc.scheduled_at()
    _log_event(
        "scheduler_load_jobs",
        email_frequency=record.email_frequency.value,
        send_email=record.send_email,
        scheduled_at=scheduled_at,
    )
    if record.email_frequency is EmailFrequency.NEVER:
        return

    adapter = ApschedulerJobScheduler(scheduler)
    if scheduled_at is None:
        # Rows written before the anchor was stored start fresh
        now = datetime.now(timezone.utc)
        adapter.schedule_recurring_job(EMAIL_JOB_NAME, now, record.email_frequency)
        svc.mark_scheduled(now)
        return

    adapter.restore_recurring_job(EMAIL_JOB_NAME, scheduled_at, record.email_frequency)


def scheduled_email_tick() -> None:
    """Entry point for APScheduler to send the notification email."""
    from php_notifier.services.notifications import send_notification_email

    _log_event("email_tick_start", job=EMAIL_JOB_NAME)
    db = new_session()
    try:
        result = send_notification_email(db)
    finally:
        db.close()
    _log_event(
        "email_tick_done",
        job=EMAIL_JOB_NAME,
        sent=result.sent,
        reason=result.reason,
        php_status=result.status.status.value if result.status else None,
    )
