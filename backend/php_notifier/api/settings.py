"""Settings API router for the notification configuration."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from php_notifier.core.db import get_session
from php_notifier.core.scheduler import ApschedulerJobScheduler, get_job_scheduler
from php_notifier.domain.enums import EmailFrequency
from php_notifier.models import Settings as SettingsModel
from php_notifier.schemas import FrequencyOption, Settings, SettingsForm, SettingsOptions
from php_notifier.services import SettingsService


router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)

FREQUENCY_LABELS = {
    EmailFrequency.NEVER: "Never",
    EmailFrequency.DAILY: "Daily",
    EmailFrequency.WEEKLY: "Weekly",
    EmailFrequency.MONTHLY: "Monthly",
}


@router.get("/", response_model=Settings)
def get_settings(db: Session = Depends(get_session)) -> SettingsModel:
    """Get the notification settings, creating defaults on first call."""
    return SettingsService(db).get()


@router.put("/", response_model=Settings)
def update_settings(
    payload: SettingsForm,
    db: Session = Depends(get_session),
    scheduler: ApschedulerJobScheduler = Depends(get_job_scheduler),
) -> SettingsModel:
    """Apply a settings-form submission.

    Input is normalized rather than rejected: a missing checkbox disables
    email and an unknown frequency becomes `never`.
    """
    settings = SettingsService(db, scheduler).update(payload)
    logger.info(
        "Settings updated | send_email=%s email_frequency=%s",
        settings.send_email,
        settings.email_frequency,
    )
    return settings


@router.get("/options", response_model=SettingsOptions)
def settings_options(db: Session = Depends(get_session)) -> SettingsOptions:
    """Values needed to render the settings form controls."""
    record = SettingsService(db).record()
    return SettingsOptions(
        send_email=record.send_email,
        email_frequency=record.email_frequency,
        frequency_options=[
            FrequencyOption(value=value, label=label) for value, label in FREQUENCY_LABELS.items()
        ],
    )
