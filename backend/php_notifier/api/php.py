"""PHP status API router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from php_notifier.core.db import get_session
from php_notifier.schemas import NotifyResult, PhpStatus
from php_notifier.services.notifications import send_notification_email
from php_notifier.services.php_version import current_status


router = APIRouter(prefix="/php", tags=["php"])


@router.get("/status", response_model=PhpStatus)
def php_status() -> PhpStatus:
    return current_status()


@router.post("/notify", response_model=NotifyResult)
def notify_now(db: Session = Depends(get_session)) -> NotifyResult:
    """Send the status email now, regardless of the `send_email` setting."""
    return send_notification_email(db, force=True)
