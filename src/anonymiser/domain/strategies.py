"""Field-level strategies and the named strategy registry.

A strategy turns a field's previous value into its anonymised value. Three shapes are
accepted wherever a strategy is expected:

- a callable taking the previous value (functions, lambdas, the classes below);
- a :class:`RecordStrategy`, wrapping a callable that also receives the record so it
  can derive the new value from other fields;
- any other object, written verbatim as a constant.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Final, TypeAlias

from .errors import PolicyDefinitionError, UnknownStrategyError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import tzinfo

    from anonymiser.config import AnonymiserConfig

    from .ports import Record

log = logging.getLogger(__name__)

Strategy: TypeAlias = "object"

PROTECTED_STRATEGY_NAMES: Final[frozenset[str]] = frozenset(
    {
        "apply",
        "destroy",
        "hex",
        "ignore",
        "is_valid",
        "use",
        "valid",
        "validate",
        "with_strategy",
    }
)


@dataclass(frozen=True, slots=True)
class RecordStrategy:
    """Strategy evaluated with the record passed explicitly alongside the value."""

    func: Callable[[Record, object], object]

    def __call__(self, record: Record, previous: object) -> object:
        return self.func(record, previous)


@dataclass(frozen=True, slots=True)
class OverwriteHex:
    """Random lowercase hex string truncated to ``max_length`` characters."""

    max_length: int = 36

    def __post_init__(self) -> None:
        if self.max_length < 1:
            raise PolicyDefinitionError("max_length must be positive")

    def __call__(self, _previous: object) -> str:
        return secrets.token_hex(self.max_length // 2 + 1)[: self.max_length]


@dataclass(frozen=True, slots=True)
class AnonymisedEmail:
    template: str

    def __call__(self, _previous: object) -> str:
        return self.template.format(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class Constant:
    value: object

    def __call__(self, _previous: object) -> object:
        return self.value


@dataclass(frozen=True, slots=True)
class CurrentDatetime:
    timezone: tzinfo

    def __call__(self, _previous: object) -> datetime:
        return datetime.now(self.timezone)


@dataclass(frozen=True, slots=True)
class Nilable:
    def __call__(self, _previous: object) -> None:
        return None


@dataclass(frozen=True, slots=True)
class NoOp:
    """Leaves the value untouched; fields using it are never written."""

    def __call__(self, previous: object) -> object:
        return previous


NO_OP: Final[NoOp] = NoOp()


def evaluate(strategy: Strategy, record: Record, previous: object) -> object:
    """Compute the new value of a field under ``strategy``."""

    if isinstance(strategy, RecordStrategy):
        return strategy(record, previous)
    if callable(strategy):
        return strategy(previous)
    return strategy


def is_no_op(strategy: Strategy) -> bool:
    return isinstance(strategy, NoOp)


class StrategyRegistry:
    """Named, reusable strategies consulted by policy builders via ``use(name, ...)``.

    Registering an existing name replaces it, so host applications can override the
    defaults (for example a different ``email`` strategy).
    """

    def __init__(self, strategies: Mapping[str, Strategy] | None = None) -> None:
        self._strategies: dict[str, Strategy] = dict(strategies or {})

    @classmethod
    def default(cls, config: AnonymiserConfig) -> StrategyRegistry:
        registry = cls()
        registry.register("email", AnonymisedEmail(config.email_template))
        registry.register("phone_number", Constant(config.phone_number))
        registry.register("current_datetime", CurrentDatetime(config.timezone))
        registry.register("nilable", Nilable())
        registry.register("no_op", NO_OP)
        return registry

    def register(
        self,
        name: str,
        strategy: Strategy | None = None,
        *,
        block: Callable[[Record, object], object] | None = None,
    ) -> Strategy:
        if name in PROTECTED_STRATEGY_NAMES:
            raise PolicyDefinitionError(
                f"Cannot register strategy {name!r}: the name is reserved by policy builders"
            )
        if block is not None and strategy is not None:
            raise PolicyDefinitionError("Pass either a block or a strategy, not both")
        if block is not None:
            resolved: Strategy = RecordStrategy(block)
        elif strategy is not None:
            resolved = strategy
        else:
            raise PolicyDefinitionError(
                "Must pass either a block, constant value or strategy object"
            )

        if name in self._strategies:
            log.debug("Overriding registered strategy %r", name)
        self._strategies[name] = resolved
        return resolved

    def lookup(self, name: str) -> Strategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise UnknownStrategyError(name) from None

    def names(self) -> tuple[str, ...]:
        return tuple(self._strategies)

    def copy(self) -> StrategyRegistry:
        return StrategyRegistry(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __iter__(self) -> Iterator[str]:
        return iter(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)
