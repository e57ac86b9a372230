"""SQLAlchemy-backed unit of work and the store handle that hands them out."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Literal, NoReturn

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from contractdesk.adapters.sqlalchemy.mappings import start_mappers
from contractdesk.adapters.sqlalchemy.migrations import upgrade_head
from contractdesk.adapters.sqlalchemy.repositories import (
    SqlAlchemyAssignmentRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyContractTypeRepository,
    SqlAlchemyEntityRepository,
    SqlAlchemyOfferRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyWorkerRepository,
)
from contractdesk.config import get_database_config
from contractdesk.domain.errors import (
    ConflictError,
    ContractDeskError,
    DeadlineExceededError,
    StoreError,
    ValidationIssue,
)
from contractdesk.domain.ports.unit_of_work import ContractDeskRepositories

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate key")


class StartupError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


def translate_store_error(error: SQLAlchemyError) -> ContractDeskError:
    """Map a SQLAlchemy failure onto the error taxonomy of the services."""

    if isinstance(error, IntegrityError):
        detail = str(error.orig)
        code = (
            "unique_constraint"
            if any(marker in detail.lower() for marker in _UNIQUE_MARKERS)
            else "integrity"
        )
        return ConflictError(
            [ValidationIssue("store", f"the store rejected the write: {detail}", code, True)]
        )
    return StoreError(f"store failure: {error}")


class SqlAlchemyUnitOfWork:
    """One session, one transaction; optionally bounded by a deadline in seconds."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        timeout: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_factory = session_factory
        self.timeout = timeout
        self._monotonic = monotonic
        self._deadline: float | None = None
        self._session: Session | None = None
        self._repositories: ContractDeskRepositories | None = None

    def _build_repositories(self, session: Session) -> ContractDeskRepositories:
        return ContractDeskRepositories(
            entities=SqlAlchemyEntityRepository(session),
            contract_types=SqlAlchemyContractTypeRepository(session),
            contracts=SqlAlchemyContractRepository(session),
            offers=SqlAlchemyOfferRepository(session),
            workers=SqlAlchemyWorkerRepository(session),
            assignments=SqlAlchemyAssignmentRepository(session),
            users=SqlAlchemyUserRepository(session),
        )

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = self._build_repositories(self._session)
        if self.timeout is not None:
            self._deadline = self._monotonic() + self.timeout
            bind = self._session.get_bind()
            if bind.dialect.name == "postgresql":
                milliseconds = max(1, int(self.timeout * 1000))
                self._session.execute(text(f"SET LOCAL statement_timeout = {milliseconds}"))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        # work left open at exit (reads, abandoned writes) is bounded too
        expired = exc_type is None and session.in_transaction() and self._deadline_passed()
        try:
            if exc_type is not None or expired:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
            self._deadline = None
        if expired:
            self._raise_deadline_exceeded()
        if isinstance(exc_value, SQLAlchemyError):
            log.warning("Rolled back unit of work after store failure: %s", exc_value)
            raise translate_store_error(exc_value) from exc_value
        return False

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and self._monotonic() > self._deadline

    def _raise_deadline_exceeded(self) -> NoReturn:
        log.warning("Unit of work exceeded its %ss deadline; rolled back", self.timeout)
        raise DeadlineExceededError(f"unit of work exceeded its {self.timeout}s deadline")

    def check_deadline(self) -> None:
        """Roll back and raise once the deadline has passed."""

        if not self._deadline_passed():
            return
        self.rollback()
        self._raise_deadline_exceeded()

    def commit(self) -> None:
        self.check_deadline()
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail(exc)

    def rollback(self) -> None:
        self.session.rollback()

    def _fail(self, error: SQLAlchemyError) -> NoReturn:
        self.session.rollback()
        log.warning("Rolled back unit of work after store failure: %s", error)
        raise translate_store_error(error) from error

    @property
    def repositories(self) -> ContractDeskRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session


class SqlAlchemyStore:
    """Explicit handle on the relational store: engine, schema and sessions."""

    def __init__(self, engine: Engine, *, default_timeout: float | None = None) -> None:
        self.engine = engine
        self.default_timeout = default_timeout
        self.session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def open(
        cls,
        database_uri: str | None = None,
        *,
        engine: Engine | None = None,
        migrate: bool = True,
        default_timeout: float | None = None,
    ) -> SqlAlchemyStore:
        """Create the engine, configure mappers and bring the schema to head."""

        resolved_engine = engine or create_engine(
            database_uri or get_database_config().uri, future=True
        )
        start_mappers()
        if migrate:
            upgrade_head(engine=resolved_engine)
        log.info("Opened store on %s", resolved_engine.url.render_as_string(hide_password=True))
        return cls(resolved_engine, default_timeout=default_timeout)

    def unit_of_work(self, timeout: float | None = None) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(
            self.session_factory,
            timeout=timeout if timeout is not None else self.default_timeout,
        )

    def close(self) -> None:
        self.engine.dispose()
        log.info("Closed store")


if TYPE_CHECKING:
    from contractdesk.domain.ports import ContractDeskUnitOfWork, UnitOfWorkFactory

    _uow_check: ContractDeskUnitOfWork = SqlAlchemyUnitOfWork(sessionmaker())
    _factory_check: UnitOfWorkFactory = SqlAlchemyStore(create_engine("sqlite://")).unit_of_work


__all__ = [
    "SqlAlchemyStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "translate_store_error",
]
