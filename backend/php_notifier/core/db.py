"""Database configuration and session management.

The SQLite file lives in `PHP_NOTIFIER_DB_DIR` (default `/app/db`) and is
named `php_notifier.db`. If the directory is not usable at runtime, the
service logs an error and stops.
"""

from typing import Generator
from pathlib import Path
import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

DEFAULT_DB_FILENAME = "php_notifier.db"
DEFAULT_DB_DIR = "/app/db"

logger = logging.getLogger(__name__)


def _db_dir() -> Path:
    return Path(os.getenv("PHP_NOTIFIER_DB_DIR", DEFAULT_DB_DIR))


def _ensure_dir(path: Path) -> tuple[bool, str]:
    try:
        if not path.exists():
            logger.warning("DB dir does not exist: %s. Attempting to create it", path)
        path.mkdir(parents=True, exist_ok=True)
        if not os.access(path, os.W_OK):
            return False, "directory not writable"
        return True, ""
    except OSError as exc:
        return False, str(exc)


def _build_sqlite_url(db_dir: Path) -> str:
    db_file = db_dir / DEFAULT_DB_FILENAME
    logger.info("DB file path: %s", db_file)
    # `sqlite:///` + absolute path results in four slashes (sqlite:////...) which SQLAlchemy expects
    return f"sqlite:///{db_file.resolve()}"


def _resolve_sql_echo() -> bool | str:
    """Resolve SQL echo flag from `LOG_SQL_ECHO`.

    - unset or empty: False
    - "1", "true", "yes", "on": True (INFO-level statements)
    - "debug": "debug" (DEBUG-level with parameter values)
    """
    raw = os.getenv("LOG_SQL_ECHO", "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("debug", "2", "verbose"):
        return "debug"
    return False


_engine: Engine | None = None
SessionLocal: sessionmaker | None = None

Base = declarative_base()


def get_engine() -> Engine:
    """Create the SQLAlchemy engine lazily.

    Ensures the DB directory exists and is writable. If not, logs an error and exits.
    """
    global _engine, SessionLocal
    if _engine is not None:
        return _engine

    db_dir = _db_dir()
    ok, reason = _ensure_dir(db_dir)
    if not ok:
        logger.error("Database directory '%s' is not usable: %s", db_dir, reason)
        raise SystemExit(1)

    sqlite_url = _build_sqlite_url(db_dir)
    logger.info("SQLite URL: %s", sqlite_url)

    _engine = create_engine(
        sqlite_url,
        connect_args={"check_same_thread": False},  # Required for SQLite
        echo=_resolve_sql_echo(),
    )

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def new_session() -> Session:
    """Open a standalone session (for scheduler jobs running outside requests)."""
    if SessionLocal is None:
        get_engine()
        assert SessionLocal is not None
    return SessionLocal()


def get_session() -> Generator[Session, None, None]:
    """Get database session."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables. Never drops anything."""
    from php_notifier.models import Settings  # noqa: F401

    logger.info("init_db: creating tables if missing")
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("init_db: ensured tables exist")


def bootstrap_db() -> None:
    """Create the singleton settings row with defaults on first startup."""
    from php_notifier.services.settings import SettingsService

    db = new_session()
    try:
        settings = SettingsService(db).get()
        logger.info(
            "Settings loaded | send_email=%s email_frequency=%s",
            settings.send_email,
            settings.email_frequency,
        )
    finally:
        db.close()
