from __future__ import annotations

from enum import Enum


class EmailFrequency(str, Enum):
    NEVER = "never"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def coerce(cls, value: object) -> "EmailFrequency":
        """Map any value onto a known frequency; unknown values become NEVER."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.NEVER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NEVER


class WarningType(str, Enum):
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"


class PhpSupportStatus(str, Enum):
    SUPPORTED = "supported"
    SECURITY = "security"
    END_OF_LIFE = "end_of_life"
    UNKNOWN = "unknown"
