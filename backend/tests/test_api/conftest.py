from __future__ import annotations

from typing import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from php_notifier.main import app
from php_notifier.core.db import get_session
from php_notifier.core.scheduler import get_job_scheduler


class _DummyScheduler:
    def start(self) -> None:  # noqa: D401
        """No-op start."""
        return None

    def shutdown(self) -> None:  # noqa: D401
        """No-op shutdown."""
        return None


@pytest.fixture
def client(db_session: Session, job_scheduler, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with DB and scheduler overrides."""

    def override_get_session() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_job_scheduler] = lambda: job_scheduler

    # Avoid touching the real DB or scheduler during app startup in tests
    monkeypatch.setattr("php_notifier.main.init_db", lambda: None, raising=True)
    monkeypatch.setattr("php_notifier.main.bootstrap_db", lambda: None, raising=True)
    monkeypatch.setattr("php_notifier.main.new_session", lambda: MagicMock(), raising=True)
    monkeypatch.setattr("php_notifier.main.schedule_jobs_on_startup", lambda scheduler, db: None, raising=True)
    monkeypatch.setattr("php_notifier.main.get_scheduler", lambda: _DummyScheduler(), raising=True)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
