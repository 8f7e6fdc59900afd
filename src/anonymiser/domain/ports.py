"""Ports consumed from the persistence and audit-log layers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableMapping


@runtime_checkable
class RecordType(Protocol):
    """A persisted entity type owning zero or more fields."""

    @property
    def name(self) -> str: ...

    def persisted_field_names(self) -> tuple[str, ...]: ...


@runtime_checkable
class Record(Protocol):
    """Capability surface of one persisted record instance."""

    @property
    def record_type(self) -> RecordType: ...

    def get_field(self, name: str) -> object: ...

    def set_field(self, name: str, value: object) -> None: ...

    def persisted_field_names(self) -> tuple[str, ...]: ...

    def save(self) -> None: ...

    def delete(self) -> None: ...


@runtime_checkable
class AuditEntry(Protocol):
    """One audit-trail row recorded for a record.

    ``changes`` maps field names to the audited value, or to an ``[old, new]`` pair when
    ``action`` is ``"update"``.
    """

    @property
    def action(self) -> str: ...

    @property
    def changes(self) -> MutableMapping[str, object]: ...

    def save(self) -> None: ...


class AuditTrail(Protocol):
    """Return the audit entries kept for a record."""

    def __call__(self, record: Record) -> Iterable[AuditEntry]: ...
