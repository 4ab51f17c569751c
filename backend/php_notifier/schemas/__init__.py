"""Pydantic schemas package.

Public re-exports keep import paths stable.
"""

from .settings import (
    SettingsRecord,
    SettingsForm,
    Settings,
    FrequencyOption,
    SettingsOptions,
)  # noqa: F401
from .php import (
    PhpStatus,
    NotifyResult,
)  # noqa: F401
