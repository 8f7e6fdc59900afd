"""Policy definition and application engine."""

from __future__ import annotations

from .audit_log import AuditLogOverwrite
from .destroy import DestroyStrategy, SkipStrategy, UndefinedStrategy
from .errors import (
    AnonymisationNotKnownError,
    AnonymiserError,
    DuplicateStrategyError,
    FieldValidationError,
    NotAnonymisableError,
    PolicyDefinitionError,
    SelectorNotFoundError,
    UnknownStrategyError,
)
from .fields import FieldStrategyBuilder, StrategyTable
from .policy import PolicyConfig, PolicyState
from .ports import AuditEntry, AuditTrail, Record, RecordType
from .registry import PolicyRegistry
from .result import Result, ResultStatus
from .selectors import SelectorRegistry
from .strategies import (
    AnonymisedEmail,
    Constant,
    CurrentDatetime,
    Nilable,
    NoOp,
    OverwriteHex,
    RecordStrategy,
    StrategyRegistry,
)

__all__ = [  # noqa: RUF022
    # registry and policies
    "PolicyRegistry",
    "PolicyConfig",
    "PolicyState",
    "FieldStrategyBuilder",
    "StrategyTable",
    "DestroyStrategy",
    "SkipStrategy",
    "UndefinedStrategy",
    "SelectorRegistry",
    "AuditLogOverwrite",
    # strategies
    "StrategyRegistry",
    "RecordStrategy",
    "OverwriteHex",
    "AnonymisedEmail",
    "Constant",
    "CurrentDatetime",
    "Nilable",
    "NoOp",
    # results
    "Result",
    "ResultStatus",
    # ports
    "Record",
    "RecordType",
    "AuditEntry",
    "AuditTrail",
    # errors
    "AnonymiserError",
    "PolicyDefinitionError",
    "DuplicateStrategyError",
    "UnknownStrategyError",
    "SelectorNotFoundError",
    "FieldValidationError",
    "NotAnonymisableError",
    "AnonymisationNotKnownError",
]
