"""SQLAlchemy models package.

from php_notifier.models import Settings
"""

from .settings import Settings  # noqa: F401
