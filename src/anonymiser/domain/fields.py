"""Field-level policies: assign one strategy per field and apply them to records."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from types import MappingProxyType
from typing import TYPE_CHECKING

from .errors import DuplicateStrategyError, FieldValidationError, PolicyDefinitionError
from .result import Result
from .strategies import NO_OP, CurrentDatetime, OverwriteHex, RecordStrategy, evaluate, is_no_op

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from anonymiser.config import AnonymiserConfig

    from .audit_log import AuditLogOverwrite
    from .ports import Record, RecordType
    from .strategies import Strategy, StrategyRegistry

log = logging.getLogger(__name__)


def _flatten(fields: Iterable[object]) -> list[str]:
    flat: list[str] = []
    for item in fields:
        if isinstance(item, str):
            flat.append(item)
        elif isinstance(item, Iterable):
            flat.extend(_flatten(item))
        else:
            raise PolicyDefinitionError(f"Field names must be strings, got {item!r}")
    return flat


class StrategyTable(ABC):
    """Mapping of field name to strategy with the shared configuration surface.

    Subclasses decide which fields are exempt from the completeness check and how the
    table is applied.
    """

    def __init__(
        self,
        record_type: RecordType,
        *,
        config: AnonymiserConfig,
        strategies: StrategyRegistry,
    ) -> None:
        self.record_type = record_type
        self._config = config
        self._registry = strategies
        self._fields: dict[str, Strategy] = {}

    @property
    def anonymisable_fields(self) -> Mapping[str, Strategy]:
        return MappingProxyType(self._fields)

    def with_strategy(
        self,
        strategy: Strategy | str,
        *fields: str | Iterable[str],
        block: Callable[[Record, object], object] | None = None,
    ) -> None:
        """Assign ``strategy`` to one or more fields.

        With ``block`` the block becomes the strategy and ``strategy`` is read as the
        first field name::

            table.with_strategy(lambda previous: previous[::-1], "first_name")
            table.with_strategy(
                "last_name", block=lambda record, _: f"last-{record.get_field('id')}"
            )
        """

        if block is not None:
            names = _flatten([strategy, *fields])
            resolved: Strategy = RecordStrategy(block)
        else:
            names = _flatten(fields)
            resolved = strategy

        if resolved is None:
            raise PolicyDefinitionError("Block or strategy object required")
        if not names:
            raise PolicyDefinitionError("One or more fields required")

        self._guard_duplicates(names)
        for name in names:
            self._fields[name] = resolved

    def use(self, name: str, *fields: str | Iterable[str]) -> None:
        """Assign the registered strategy ``name`` to the given fields."""

        self.with_strategy(self._registry.lookup(name), *fields)

    def hex(self, *fields: str | Iterable[str], max_length: int = 36) -> None:
        self.with_strategy(OverwriteHex(max_length), *fields)

    def email(self, *fields: str | Iterable[str]) -> None:
        self.use("email", *fields)

    def phone_number(self, *fields: str | Iterable[str]) -> None:
        self.use("phone_number", *fields)

    def nilable(self, *fields: str | Iterable[str]) -> None:
        self.use("nilable", *fields)

    def current_datetime(self, *fields: str | Iterable[str]) -> None:
        self.use("current_datetime", *fields)

    def no_op(self, *fields: str | Iterable[str]) -> None:
        self.use("no_op", *fields)

    def ignore(self, *fields: str | Iterable[str]) -> None:
        """Leave the given fields untouched.

        Fields already covered by the global ignore list are rejected: ignoring them
        again is a configuration mistake.
        """

        names = _flatten(fields)
        already_ignored = [name for name in names if self._config.is_ignored(name)]
        if already_ignored:
            raise PolicyDefinitionError(
                f"Cannot ignore {already_ignored} (fields already ignored in AnonymiserConfig)"
            )
        self.with_strategy(NO_OP, names)

    def unhandled_fields(self) -> tuple[str, ...]:
        exempt = self._exempt_fields()
        return tuple(
            name
            for name in self.record_type.persisted_field_names()
            if name not in exempt
            and name not in self._fields
            and not self._config.is_ignored(name)
        )

    def validate(self) -> None:
        unhandled = self.unhandled_fields()
        if unhandled:
            raise FieldValidationError(unhandled)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except FieldValidationError:
            return False
        return True

    @abstractmethod
    def _exempt_fields(self) -> frozenset[str]: ...

    def _guard_duplicates(self, names: list[str]) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for name in names:
            if (name in self._fields or name in seen) and name not in duplicates:
                duplicates.append(name)
            seen.add(name)
        if duplicates:
            raise DuplicateStrategyError(duplicates)


class FieldStrategyBuilder(StrategyTable):
    """Overwrite strategy: every persisted field gets an explicit disposition.

    ``apply`` writes the configured values, stamps the marker field (``anonymised_at`` by
    default) when the record type has one, and saves the record. Audit entries are
    rewritten in memory first and only assigned and saved once the record has saved; an
    entry that fails to save after that is reported as a failed result, and undoing the
    record's save is left to the caller's transaction.
    """

    def _exempt_fields(self) -> frozenset[str]:
        marker = self._config.marker_field
        return frozenset({marker}) if marker else frozenset()

    def apply(self, record: Record, *, audit_log: AuditLogOverwrite | None = None) -> Result:
        if self._config.validate_before_apply:
            self.validate()
            if audit_log is not None:
                audit_log.validate()

        available = set(record.persisted_field_names())
        new_values: dict[str, object] = {}
        for name, strategy in self._effective_strategies():
            if name not in available or is_no_op(strategy):
                continue
            value = evaluate(strategy, record, record.get_field(name))
            record.set_field(name, value)
            new_values[name] = value

        try:
            rewrites = audit_log.plan(record) if audit_log is not None else []
            record.save()
            audit_changes = audit_log.write(rewrites) if audit_log is not None else ()
        except Exception as exc:  # noqa: BLE001
            log.exception("Failed to persist anonymised %s record", self.record_type.name)
            return Result.failed(exc, record)

        log.debug("Overwrote %s fields: %s", self.record_type.name, sorted(new_values))
        return Result.overwritten(new_values, record, audit_changes)

    def _effective_strategies(self) -> list[tuple[str, Strategy]]:
        marker = self._config.marker_field
        implicit: list[tuple[str, Strategy]] = []
        if (
            marker
            and marker not in self._fields
            and marker in self.record_type.persisted_field_names()
        ):
            if "current_datetime" in self._registry:
                implicit.append((marker, self._registry.lookup("current_datetime")))
            else:
                implicit.append((marker, CurrentDatetime(self._config.timezone)))
        return implicit + list(self._fields.items())
