"""Root conftest for tests directory."""

from __future__ import annotations

from datetime import datetime
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from php_notifier.core.db import Base
from php_notifier.domain.enums import EmailFrequency


class RecordingScheduler:
    """In-memory `JobScheduler` that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.jobs: dict[str, EmailFrequency] = {}

    def clear_scheduled_job(self, name: str) -> None:
        self.calls.append(("clear", name))
        self.jobs.pop(name, None)

    def schedule_recurring_job(self, name: str, start_time: datetime, frequency: EmailFrequency) -> None:
        self.calls.append(("schedule", name, start_time, frequency))
        self.jobs[name] = frequency


@pytest.fixture()
def job_scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    """Provide a test DB session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    # Ensure models are imported
    import php_notifier.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
