"""
Centralized SQLAlchemy/SQLModel engine and session factory.

Every store module goes through `get_engine()`. The database URL comes
from the BLOGCRAFT_DATABASE_URL environment variable or the `database.url`
entry of config/blogcraft_config(.local).json.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from src.db.errors import constraint_guard
from src.log import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None
_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DB_URL = "sqlite:///data/blogcraft.db"


def _resolve_db_url() -> str:
    """
    Resolve database URL with precedence:
    1. BLOGCRAFT_DATABASE_URL environment variable
    2. config/blogcraft_config(.local).json  database.url
    3. Fallback: sqlite:///data/blogcraft.db
    """
    env_url = os.environ.get("BLOGCRAFT_DATABASE_URL")
    if env_url:
        return env_url

    from config.settings import load_raw_config
    url = (load_raw_config().get("database") or {}).get("url")
    return url or DEFAULT_DB_URL


def _make_absolute_sqlite_url(url: str) -> str:
    """Relative sqlite:/// paths are anchored at the project root."""
    if not url.startswith("sqlite:///") or url == "sqlite:///:memory:":
        return url
    rel_path = url[len("sqlite:///"):]
    if os.path.isabs(rel_path):
        Path(rel_path).parent.mkdir(parents=True, exist_ok=True)
        return url
    abs_path = (_PROJECT_ROOT / rel_path).resolve()
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{abs_path}"


def get_engine() -> Engine:
    """Return the singleton SQLAlchemy engine, creating it on first call."""
    global _engine
    if _engine is not None:
        return _engine

    db_url = _make_absolute_sqlite_url(_resolve_db_url())
    is_sqlite = db_url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    _engine = create_engine(
        db_url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
    )

    if is_sqlite:
        @event.listens_for(_engine, "connect")
        def _set_sqlite_pragmas(dbapi_conn, _connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    logger.info("database engine ready: %s", db_url)
    return _engine


def reset_engine() -> None:
    """Dispose the current engine so the next get_engine() re-resolves the URL."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def init_db() -> None:
    """
    Create all tables (and the photo-cap trigger) that are not yet present.
    Safe to call on every startup.
    """
    from src.db import models as _models  # noqa: F401  register tables
    SQLModel.metadata.create_all(get_engine())


@contextmanager
def session_scope(session: Session | None = None) -> Iterator[Session]:
    """
    Unit of work for store functions.

    With an outer session the caller owns the transaction: the block only
    flushes into it. Without one a private session is opened and committed
    on exit. IntegrityError is re-raised as a ConstraintViolation either way.
    """
    with constraint_guard():
        if session is not None:
            yield session
            session.flush()
        else:
            with Session(get_engine()) as own:
                yield own
                own.commit()
