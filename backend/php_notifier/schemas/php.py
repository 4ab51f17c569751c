"""Schemas for PHP version status reporting."""

from __future__ import annotations

from typing import Optional
from datetime import date

from pydantic import BaseModel, Field

from php_notifier.domain.enums import PhpSupportStatus


class PhpStatus(BaseModel):
    version: Optional[str] = Field(None, description="Detected PHP version, if any")
    branch: Optional[str] = Field(None, description="major.minor release branch")
    status: PhpSupportStatus = Field(..., description="Support status of the branch")
    active_support_until: Optional[date] = None
    security_support_until: Optional[date] = None
    message: str = Field(..., description="Human-readable summary")


class NotifyResult(BaseModel):
    sent: bool
    reason: Optional[str] = None
    status: Optional[PhpStatus] = None
