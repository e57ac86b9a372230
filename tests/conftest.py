from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from contractdesk.adapters.sqlalchemy import SqlAlchemyStore, SqlAlchemyUnitOfWork, start_mappers
from contractdesk.adapters.sqlalchemy.migrations import upgrade_head
from contractdesk.app import ContractDeskServices, build_services

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from contractdesk.domain.time_windows import Clock

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(sqlite_engine: Engine) -> SqlAlchemyStore:
    return SqlAlchemyStore.open(engine=sqlite_engine, migrate=False)


@pytest.fixture
def uow_factory(store: SqlAlchemyStore) -> Callable[[], SqlAlchemyUnitOfWork]:
    return store.unit_of_work


@pytest.fixture
def clock() -> Clock:
    return lambda: FIXED_NOW


@pytest.fixture
def services(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    clock: Clock,
) -> ContractDeskServices:
    return build_services(uow_factory, clock=clock)
