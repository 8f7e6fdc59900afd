"""Per-record-type anonymisation policy."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from .audit_log import AuditLogOverwrite
from .destroy import SKIP, DestroyStrategy, UndefinedStrategy
from .errors import PolicyDefinitionError, SelectorNotFoundError
from .fields import FieldStrategyBuilder
from .selectors import SelectorRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from anonymiser.config import AnonymiserConfig

    from .ports import AuditTrail, Record, RecordType
    from .result import Result
    from .strategies import StrategyRegistry

log = logging.getLogger(__name__)

SkipPredicate: TypeAlias = "Callable[[Record], bool]"


class PolicyState(StrEnum):
    UNDEFINED = "undefined"
    FIELDS = "fields"
    DESTROY = "destroy"


class PolicyConfig:
    """Policy for one record type: either overwrite fields or destroy the record.

    The strategy is chosen once, during definition::

        policy = PolicyConfig(employee_type, config=config, strategies=strategies)
        policy.fields(lambda f: (f.hex("first_name"), f.nilable("last_name")))
        policy.skip_if(lambda record: record.get_field("exempt") is True)
        policy.apply(record)
    """

    def __init__(
        self,
        record_type: RecordType,
        *,
        config: AnonymiserConfig,
        strategies: StrategyRegistry,
        configure: Callable[[PolicyConfig], object] | None = None,
    ) -> None:
        self.record_type = record_type
        self._config = config
        self._strategies = strategies
        self._strategy: UndefinedStrategy | DestroyStrategy | FieldStrategyBuilder = (
            UndefinedStrategy()
        )
        self._skip_filter: SkipPredicate | None = None
        self._selectors: SelectorRegistry | None = None
        self._audit_log: AuditLogOverwrite | None = None
        if configure is not None:
            configure(self)

    @property
    def state(self) -> PolicyState:
        if isinstance(self._strategy, FieldStrategyBuilder):
            return PolicyState.FIELDS
        if isinstance(self._strategy, DestroyStrategy):
            return PolicyState.DESTROY
        return PolicyState.UNDEFINED

    @property
    def strategy(self) -> UndefinedStrategy | DestroyStrategy | FieldStrategyBuilder:
        return self._strategy

    @property
    def audit_log_overwrite(self) -> AuditLogOverwrite | None:
        return self._audit_log

    def destroy(self) -> DestroyStrategy:
        """Delete records instead of anonymising individual fields."""

        self._guard_undefined("destroy")
        strategy = DestroyStrategy()
        self._strategy = strategy
        return strategy

    def fields(
        self, configure: Callable[[FieldStrategyBuilder], object] | None = None
    ) -> FieldStrategyBuilder:
        """Configure per-field strategies; incompatible with ``destroy``."""

        self._guard_undefined("fields")
        builder = FieldStrategyBuilder(
            self.record_type, config=self._config, strategies=self._strategies
        )
        if configure is not None:
            configure(builder)
        self._strategy = builder
        return builder

    def skip_if(self, predicate: SkipPredicate) -> None:
        """Leave records untouched whenever ``predicate(record)`` is true."""

        if predicate is None:
            raise PolicyDefinitionError("Predicate required for skip_if")
        if self._skip_filter is not None:
            raise PolicyDefinitionError(
                f"skip_if already defined for {self.record_type.name}"
            )
        self._skip_filter = predicate

    def selectors(
        self, configure: Callable[[SelectorRegistry], object] | None = None
    ) -> SelectorRegistry:
        if self._selectors is not None:
            raise PolicyDefinitionError(
                f"selectors already defined for {self.record_type.name}"
            )
        registry = SelectorRegistry(self.record_type)
        if configure is not None:
            configure(registry)
        self._selectors = registry
        return registry

    def audit_log(
        self,
        trail: AuditTrail,
        configure: Callable[[AuditLogOverwrite], object] | None = None,
    ) -> AuditLogOverwrite:
        if self._audit_log is not None:
            raise PolicyDefinitionError(
                f"audit_log already defined for {self.record_type.name}"
            )
        overwrite = AuditLogOverwrite(
            self.record_type, trail, config=self._config, strategies=self._strategies
        )
        if configure is not None:
            configure(overwrite)
        self._audit_log = overwrite
        return overwrite

    def is_valid(self) -> bool:
        if not self._strategy.is_valid():
            return False
        return self._audit_log is None or self._audit_log.is_valid()

    def validate(self) -> None:
        self._strategy.validate()
        if self._audit_log is not None:
            self._audit_log.validate()

    def apply(self, record: Record) -> Result:
        if self._skip_filter is not None and self._skip_filter(record):
            log.debug("Skipping %s record: skip_if matched", self.record_type.name)
            return SKIP.apply(record)
        if isinstance(self._strategy, FieldStrategyBuilder):
            return self._strategy.apply(record, audit_log=self._audit_log)
        return self._strategy.apply(record)

    def select(self, subject: str, subject_id: object) -> list[Record]:
        if self._selectors is None:
            raise SelectorNotFoundError(subject, self.record_type.name)
        return self._selectors.select(subject, subject_id)

    def has_selector(self, subject: str) -> bool:
        return self._selectors is not None and subject in self._selectors

    def apply_for(self, subject: str, subject_id: object) -> list[Result]:
        """Apply the policy to every record the ``subject`` selector returns."""

        return [self.apply(record) for record in self.select(subject, subject_id)]

    def _guard_undefined(self, attempted: str) -> None:
        if not isinstance(self._strategy, UndefinedStrategy):
            raise PolicyDefinitionError(
                f"Cannot specify {attempted} when another strategy already defined"
            )
