"""SQLAlchemy engine state and the unit of work used while anonymising."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from anonymiser.config import get_database_config

from .records import SqlAlchemyRecordRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _sessions: scoped_session[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        if self._sessions is not None:
            self._sessions.remove()
        self._sessions = None
        self._engine = value

    @property
    def sessions(self) -> scoped_session[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call anonymiser.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a session."
            )
        if self._sessions is None:
            self._sessions = scoped_session(
                sessionmaker(bind=self._engine, expire_on_commit=False)
            )
        return self._sessions


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    metadata: MetaData | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine and session registry.

    ``metadata`` is optional; when given, its tables are created if missing.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    if metadata is not None:
        log.info("Creating missing tables")
        metadata.create_all(resolved_engine)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def current_session() -> Session:
    """Return the session of the current scope (thread)."""

    return _STATE.sessions()


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """Scope one anonymisation run to a session; roll back if the block raises."""

    def __init__(self) -> None:
        self.sessions: scoped_session[Session] = _STATE.sessions
        self._session: Session | None = None
        self._records: SqlAlchemyRecordRepository | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.sessions()
        self._records = SqlAlchemyRecordRepository(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.sessions.remove()
        self._session = None
        self._records = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def records(self) -> SqlAlchemyRecordRepository:
        if self._records is None:
            raise StartupError("Unit of work session not initialised")
        return self._records
