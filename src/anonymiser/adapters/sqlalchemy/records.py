"""Expose SQLAlchemy-mapped instances through the record ports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.exc import NoInspectionAvailable

from anonymiser.domain.errors import PolicyDefinitionError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


@dataclass(frozen=True, slots=True)
class SqlAlchemyRecordType:
    """Record type backed by a mapped class; equal for the same class."""

    mapped_class: type[Any]

    def __post_init__(self) -> None:
        try:
            sa_inspect(self.mapped_class)
        except NoInspectionAvailable as exc:
            raise PolicyDefinitionError(
                f"{self.mapped_class.__name__} is not mapped by SQLAlchemy"
            ) from exc

    @property
    def name(self) -> str:
        return self.mapped_class.__name__

    def persisted_field_names(self) -> tuple[str, ...]:
        return tuple(attr.key for attr in sa_inspect(self.mapped_class).column_attrs)


@dataclass(slots=True)
class SqlAlchemyRecord:
    """One mapped instance bound to the session that persists it.

    ``save`` and ``delete`` flush immediately so database errors surface during
    ``apply``; committing is left to the unit of work.
    """

    instance: Any
    session: Session
    _record_type: SqlAlchemyRecordType | None = field(default=None, repr=False)

    @property
    def record_type(self) -> SqlAlchemyRecordType:
        if self._record_type is None:
            self._record_type = SqlAlchemyRecordType(type(self.instance))
        return self._record_type

    def get_field(self, name: str) -> object:
        return getattr(self.instance, name)

    def set_field(self, name: str, value: object) -> None:
        setattr(self.instance, name, value)

    def persisted_field_names(self) -> tuple[str, ...]:
        return self.record_type.persisted_field_names()

    def save(self) -> None:
        self.session.add(self.instance)
        self.session.flush()

    def delete(self) -> None:
        self.session.delete(self.instance)
        self.session.flush()


class SqlAlchemyRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def wrap(self, instance: object) -> SqlAlchemyRecord:
        return SqlAlchemyRecord(instance, self.session)

    def add(self, instance: object) -> SqlAlchemyRecord:
        self.session.add(instance)
        return self.wrap(instance)

    def where(self, mapped_class: type[Any], **criteria: object) -> list[SqlAlchemyRecord]:
        stmt = select(mapped_class).filter_by(**criteria)
        return [self.wrap(instance) for instance in self.session.scalars(stmt).all()]


if TYPE_CHECKING:
    from anonymiser.domain.ports import Record, RecordType

    _session_stub = cast("Session", object())
    _record_check: Record = SqlAlchemyRecord(object(), _session_stub)
    _record_type_check: RecordType = SqlAlchemyRecordType(object)
