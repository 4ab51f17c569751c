"""Service layer.

Exposes:
- SettingsService
- SettingsReconciler
"""

from .settings import SettingsService, SettingsReconciler, EMAIL_JOB_NAME

__all__ = [
    "SettingsService",
    "SettingsReconciler",
    "EMAIL_JOB_NAME",
]
