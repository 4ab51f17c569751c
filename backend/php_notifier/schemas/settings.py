"""Schemas for the notifier settings record and the settings form."""

from __future__ import annotations

from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from php_notifier.domain.enums import EmailFrequency, WarningType


class SettingsRecord(BaseModel):
    """The persisted notification configuration."""

    warning_type: str = Field(default=WarningType.NOTICE.value, description="Kind of admin warning shown for the PHP version")
    send_email: bool = Field(default=False, description="Whether notification email is enabled")
    email_frequency: EmailFrequency = Field(
        default=EmailFrequency.NEVER, description="Cadence of the notification email job"
    )

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("email_frequency", mode="before")
    @classmethod
    def _coerce_frequency(cls, value: object) -> EmailFrequency:
        return EmailFrequency.coerce(value)


class SettingsForm(BaseModel):
    """Raw settings-form submission. Every field is optional and untrusted."""

    send_email: Optional[str] = Field(None, description="Checkbox value; any non-empty value enables email")
    email_frequency: Optional[str] = Field(None, description="One of never, daily, weekly, monthly")

    @field_validator("send_email", "email_frequency", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> Optional[str]:
        # JSON clients may send booleans or numbers where an HTML form sends strings
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "1" if value else ""
        return str(value)


class Settings(SettingsRecord):
    """Schema for Settings responses."""

    id: int = Field(..., description="Settings ID (always 1)")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class FrequencyOption(BaseModel):
    value: EmailFrequency
    label: str


class SettingsOptions(BaseModel):
    """Everything a settings page needs to render its checkbox and select."""

    send_email: bool
    email_frequency: EmailFrequency
    frequency_options: List[FrequencyOption] = Field(default_factory=list)
