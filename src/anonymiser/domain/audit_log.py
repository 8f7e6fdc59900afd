"""Anonymise the audit trail kept alongside a record.

Audit entries store copies of field values, so overwriting the record alone would leave
the personal data behind. The overwrite configured here runs as part of the record's
own overwrite and reports, per audit entry, which fields it rewrote.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .fields import StrategyTable
from .strategies import evaluate, is_no_op

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from anonymiser.config import AnonymiserConfig

    from .ports import AuditEntry, AuditTrail, Record, RecordType
    from .strategies import StrategyRegistry

UPDATE_ACTION: Final[str] = "update"
ANONYMISE_AFTER_FIELD: Final[str] = "anonymise_after"


class AuditLogOverwrite(StrategyTable):
    def __init__(
        self,
        record_type: RecordType,
        trail: AuditTrail,
        *,
        config: AnonymiserConfig,
        strategies: StrategyRegistry,
    ) -> None:
        super().__init__(record_type, config=config, strategies=strategies)
        self.trail = trail

    def _exempt_fields(self) -> frozenset[str]:
        exempt = {ANONYMISE_AFTER_FIELD}
        if self._config.marker_field:
            exempt.add(self._config.marker_field)
        return frozenset(exempt)

    def plan(self, record: Record) -> list[AuditRewrite]:
        """Compute the rewritten values of every audit entry without touching them."""

        return [
            AuditRewrite(entry, self._rewritten_values(entry, record))
            for entry in self.trail(record)
        ]

    def apply(self, record: Record) -> tuple[tuple[str, ...], ...]:
        """Rewrite and save every audit entry of ``record``; return touched fields."""

        return self.write(self.plan(record))

    @staticmethod
    def write(rewrites: Iterable[AuditRewrite]) -> tuple[tuple[str, ...], ...]:
        """Assign and save planned rewrites in order; return the fields touched per entry."""

        touched: list[tuple[str, ...]] = []
        for rewrite in rewrites:
            rewrite.entry.changes.update(rewrite.values)
            rewrite.entry.save()
            touched.append(tuple(rewrite.values))
        return tuple(touched)

    def _rewritten_values(self, entry: AuditEntry, record: Record) -> dict[str, object]:
        values: dict[str, object] = {}
        for name, strategy in self._fields.items():
            if name not in entry.changes or is_no_op(strategy):
                continue
            current = entry.changes[name]
            if entry.action == UPDATE_ACTION and isinstance(current, (list, tuple)):
                values[name] = [evaluate(strategy, record, value) for value in current]
            else:
                values[name] = evaluate(strategy, record, current)
        return values


@dataclass(frozen=True, slots=True)
class AuditRewrite:
    """Pending new values for one audit entry."""

    entry: AuditEntry
    values: Mapping[str, object]

