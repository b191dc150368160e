"""Composition root: wires the SQL implementations to the domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.engine import make_url

from ricemill.infrastructure.persistence.db import (
    create_schema,
    make_engine,
    make_session_factory,
)
from ricemill.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork
from ricemill.infrastructure.settings import get_settings


@lru_cache(maxsize=None)
def engine() -> Engine:
    settings = get_settings()
    url = make_url(settings.DATABASE_URL)
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    eng = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    create_schema(eng)
    return eng


def unit_of_work() -> SqlUnitOfWork:
    return SqlUnitOfWork(make_session_factory(engine()))


def default_actor() -> str:
    return get_settings().DEFAULT_ACTOR
