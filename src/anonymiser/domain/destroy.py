"""Record-level strategies that need no per-field configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .errors import PolicyDefinitionError
from .result import Result

if TYPE_CHECKING:
    from .ports import Record

log = logging.getLogger(__name__)

UNDEFINED_STRATEGY_MESSAGE: Final[str] = "Must specify either destroy or fields strategy"


class UndefinedStrategy:
    """Placeholder until a policy picks destroy or fields."""

    def is_valid(self) -> bool:
        return False

    def validate(self) -> None:
        raise PolicyDefinitionError(UNDEFINED_STRATEGY_MESSAGE)

    def apply(self, record: Record) -> Result:
        _ = record
        raise PolicyDefinitionError(UNDEFINED_STRATEGY_MESSAGE)


class DestroyStrategy:
    """Delete the whole record instead of anonymising individual fields."""

    def is_valid(self) -> bool:
        return True

    def validate(self) -> None:
        return None

    def apply(self, record: Record) -> Result:
        try:
            record.delete()
        except Exception as exc:  # noqa: BLE001
            log.exception("Failed to destroy %s record", record.record_type.name)
            return Result.failed(exc, record)
        log.debug("Destroyed %s record", record.record_type.name)
        return Result.destroyed(record)


class SkipStrategy:
    """Leave the record untouched; used when a skip predicate matches."""

    def apply(self, record: Record) -> Result:
        return Result.skipped(record)


SKIP: Final[SkipStrategy] = SkipStrategy()
