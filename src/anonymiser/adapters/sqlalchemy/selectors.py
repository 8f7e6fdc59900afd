"""Selector queries backed by the adapter's scoped session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from anonymiser.domain.errors import PolicyDefinitionError

from .records import SqlAlchemyRecord
from .unit_of_work import current_session

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session


def column_selector(
    mapped_class: type[Any],
    column: str,
    *,
    session_provider: Callable[[], Session] = current_session,
) -> Callable[[object], list[SqlAlchemyRecord]]:
    """Build a selector returning every ``mapped_class`` row whose ``column`` matches.

    The session is resolved when the selector runs, so policies can be defined before
    the adapter starts.
    """

    attribute = getattr(mapped_class, column, None)
    if attribute is None:
        raise PolicyDefinitionError(f"{mapped_class.__name__} has no attribute {column!r}")

    def query(subject_id: object) -> list[SqlAlchemyRecord]:
        session = session_provider()
        stmt = select(mapped_class).where(attribute == subject_id)
        return [SqlAlchemyRecord(instance, session) for instance in session.scalars(stmt).all()]

    return query
