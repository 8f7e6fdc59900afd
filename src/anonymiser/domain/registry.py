"""Top-level registry mapping record types to their policies."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, TypeAlias, overload

from anonymiser.config import AnonymiserConfig

from .destroy import UNDEFINED_STRATEGY_MESSAGE
from .errors import AnonymisationNotKnownError, NotAnonymisableError, PolicyDefinitionError
from .fields import FieldStrategyBuilder
from .policy import PolicyConfig, PolicyState
from .strategies import StrategyRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .ports import Record, RecordType
    from .result import Result

log = logging.getLogger(__name__)

PolicyConfigurer: TypeAlias = "Callable[[PolicyConfig], object]"


class PolicyRegistry:
    """Owns engine configuration, named strategies and one policy per record type.

    Policies are keyed by record-type identity, so two types never share field
    configuration even when defined with identical functions.
    """

    def __init__(
        self,
        config: AnonymiserConfig | None = None,
        *,
        strategies: StrategyRegistry | None = None,
    ) -> None:
        self.config = config or AnonymiserConfig()
        self.strategies = strategies or StrategyRegistry.default(self.config)
        self._policies: dict[RecordType, PolicyConfig] = {}

    @overload
    def define(self, record_type: RecordType) -> Callable[[PolicyConfigurer], PolicyConfig]: ...

    @overload
    def define(self, record_type: RecordType, configure: PolicyConfigurer) -> PolicyConfig: ...

    def define(
        self,
        record_type: RecordType,
        configure: PolicyConfigurer | None = None,
    ) -> PolicyConfig | Callable[[PolicyConfigurer], PolicyConfig]:
        """Define the policy of ``record_type``.

        Without ``configure`` this returns a decorator::

            @registry.define(employees)
            def _employees(policy: PolicyConfig) -> None:
                policy.destroy()
        """

        if configure is None:

            def decorator(func: PolicyConfigurer) -> PolicyConfig:
                return self.define(record_type, func)

            return decorator

        if record_type in self._policies:
            raise PolicyDefinitionError(
                f"Anonymisation policy already defined for {record_type.name}"
            )
        policy = PolicyConfig(
            record_type,
            config=self.config,
            strategies=self.strategies,
            configure=configure,
        )
        self._policies[record_type] = policy
        log.debug("Defined %s policy for %s", policy.state, record_type.name)
        return policy

    def policy_for(self, record_type: RecordType) -> PolicyConfig:
        try:
            return self._policies[record_type]
        except KeyError:
            raise NotAnonymisableError(record_type.name) from None

    def apply(self, record: Record) -> Result:
        return self.policy_for(record.record_type).apply(record)

    def anonymise_for(
        self, record_type: RecordType, subject: str, subject_id: object
    ) -> list[Result]:
        results = self.policy_for(record_type).apply_for(subject, subject_id)
        log.info(
            "Anonymised %s records of %s for %s=%s",
            len(results),
            record_type.name,
            subject,
            subject_id,
        )
        return results

    def anonymise_subject(self, subject: str, subject_id: object) -> list[Result]:
        """Apply every policy that has a selector for ``subject``, in definition order."""

        results: list[Result] = []
        for policy in self._policies.values():
            if policy.has_selector(subject):
                results.extend(policy.apply_for(subject, subject_id))
        statuses = Counter(result.status.value for result in results)
        log.info(
            "Anonymised subject %s=%s: %s",
            subject,
            subject_id,
            dict(sorted(statuses.items())) or "no matching records",
        )
        return results

    def invalid_policies(self) -> dict[str, tuple[str, ...]]:
        """Return unhandled fields (or the undefined-strategy message) per record type."""

        invalid: dict[str, tuple[str, ...]] = {}
        for record_type, policy in self._policies.items():
            if policy.is_valid():
                continue
            if policy.state is PolicyState.UNDEFINED:
                invalid[record_type.name] = (UNDEFINED_STRATEGY_MESSAGE,)
                continue
            unhandled: list[str] = []
            if isinstance(policy.strategy, FieldStrategyBuilder):
                unhandled.extend(policy.strategy.unhandled_fields())
            if policy.audit_log_overwrite is not None:
                unhandled.extend(
                    f"audit_log.{name}" for name in policy.audit_log_overwrite.unhandled_fields()
                )
            invalid[record_type.name] = tuple(unhandled)
        return invalid

    def is_anonymised(self, record: Record) -> bool:
        marker = self.config.marker_field
        if marker is None or marker not in record.persisted_field_names():
            raise AnonymisationNotKnownError(marker)
        return record.get_field(marker) is not None

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._policies

    def __iter__(self) -> Iterator[RecordType]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)
