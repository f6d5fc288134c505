"""Engine and session factory for the citation library tables.

``DATABASE_URL`` selects the backend; a file-backed SQLite database in the
working directory is used when it is unset.  The in-memory SQLite URLs share
one connection so that every session sees the same tables.
"""

import os
from functools import lru_cache
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


DEFAULT_DATABASE_URL = "sqlite:///marginalia.db"
MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")

Base = declarative_base()


@lru_cache
def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": False, "future": True}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
        return options
    options["connect_args"] = {"check_same_thread": False}
    if url in MEMORY_SQLITE_URLS:
        options["poolclass"] = StaticPool
    return options


def build_engine(url: str) -> Engine:
    return create_engine(url, **_engine_options(url))


engine = build_engine(database_url())

SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)


def get_session() -> Iterator[Session]:
    """Request-scoped session: committed when the handler returns, rolled back on error."""

    with SessionLocal() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db() -> None:
    """Create the library tables if they do not exist yet."""

    from marginalia import models  # noqa: F401  registers the mapped classes on Base.metadata

    Base.metadata.create_all(bind=engine)
