"""Structured outcome of applying a policy to one record."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .ports import Record


class ResultStatus(StrEnum):
    OVERWRITTEN = "overwritten"
    DESTROYED = "destroyed"
    SKIPPED = "skipped"
    FAILED = "failed"


_EMPTY_FIELDS: Mapping[str, object] = MappingProxyType({})


@dataclass(frozen=True, slots=True, kw_only=True)
class Result:
    """Outcome of one ``apply`` call.

    Use the factory class methods; they keep ``fields`` and ``error`` consistent with
    ``status``.
    """

    status: ResultStatus
    record: Record
    fields: Mapping[str, object] = field(default_factory=lambda: _EMPTY_FIELDS)
    error: BaseException | None = None
    audit_log_changes: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        if self.status is ResultStatus.FAILED and self.error is None:
            raise ValueError("failed result requires an error")
        if self.status is not ResultStatus.FAILED and self.error is not None:
            raise ValueError("only failed results carry an error")
        if self.status is not ResultStatus.OVERWRITTEN and self.fields:
            raise ValueError("only overwritten results carry fields")

    @classmethod
    def overwritten(
        cls,
        fields: Mapping[str, object],
        record: Record,
        audit_log_changes: Iterable[Iterable[str]] = (),
    ) -> Result:
        return cls(
            status=ResultStatus.OVERWRITTEN,
            record=record,
            fields=MappingProxyType(dict(fields)),
            audit_log_changes=tuple(tuple(entry) for entry in audit_log_changes),
        )

    @classmethod
    def destroyed(cls, record: Record) -> Result:
        return cls(status=ResultStatus.DESTROYED, record=record)

    @classmethod
    def skipped(cls, record: Record) -> Result:
        return cls(status=ResultStatus.SKIPPED, record=record)

    @classmethod
    def failed(cls, error: BaseException | None, record: Record) -> Result:
        if error is None:
            raise ValueError("failed result requires an error")
        return cls(status=ResultStatus.FAILED, record=record, error=error)

    @property
    def is_overwritten(self) -> bool:
        return self.status is ResultStatus.OVERWRITTEN

    @property
    def is_destroyed(self) -> bool:
        return self.status is ResultStatus.DESTROYED

    @property
    def is_skipped(self) -> bool:
        return self.status is ResultStatus.SKIPPED

    @property
    def is_failed(self) -> bool:
        return self.status is ResultStatus.FAILED
