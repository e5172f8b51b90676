"""
Database engine and session management (sync SQLAlchemy).

The engine and session factory are process-wide; each request gets its own
session through ``get_db``.
"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from referral_api.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str, ssl_required: bool = False, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # request handlers run in a threadpool
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = 30
    elif ssl_required:
        connect_args["sslmode"] = "require"

    return create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not url.startswith("sqlite"),
    )


engine = build_engine(
    settings.DATABASE_URL,
    ssl_required=settings.DATABASE_SSL_REQUIRED,
    echo=settings.DATABASE_ECHO,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """Create missing tables"""
    # models must be imported so their tables are registered on Base.metadata
    from referral_api.models import user  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database synced successfully")


def close_db(bind: Engine = engine) -> None:
    bind.dispose()
    logger.info("Database connections closed")
