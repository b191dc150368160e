"""Engine, session factory and schema helpers for the SQL repositories."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ricemill.infrastructure.persistence.models import Base


def make_engine(url: str, echo: bool = False) -> Engine:
    """Create the engine for *url*.

    In-memory SQLite gets a single shared connection so every session sees
    the same database; every other backend runs SERIALIZABLE.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        isolation_level="SERIALIZABLE",
    )


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; all stored times are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
