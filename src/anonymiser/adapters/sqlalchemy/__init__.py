"""SQLAlchemy adapter package for the anonymiser."""

from __future__ import annotations

from .records import SqlAlchemyRecord, SqlAlchemyRecordRepository, SqlAlchemyRecordType
from .selectors import column_selector
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    current_session,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyRecord",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRecordType",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "column_selector",
    "configured_engine",
    "current_session",
    "is_started",
    "shutdown",
    "startup",
]
