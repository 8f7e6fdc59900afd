"""Error taxonomy for policy definition, validation and application."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def _format_fields(fields: tuple[str, ...]) -> str:
    return "[" + ", ".join(fields) + "]"


class AnonymiserError(Exception):
    """Base class for all anonymiser errors."""


class PolicyDefinitionError(AnonymiserError, ValueError):
    """Raised synchronously when a policy is defined incorrectly."""


class DuplicateStrategyError(PolicyDefinitionError):
    """Raised when more than one strategy is assigned to the same field."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(
            f"Duplicate anonymisation strategy for field(s) {_format_fields(self.fields)}"
        )


class UnknownStrategyError(PolicyDefinitionError):
    """Raised when looking up a strategy name that was never registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unrecognised strategy {name!r}")


class SelectorNotFoundError(PolicyDefinitionError):
    """Raised when no selector is registered for a subject."""

    def __init__(self, subject: str, record_type_name: str) -> None:
        self.subject = subject
        self.record_type_name = record_type_name
        super().__init__(
            f"Selector for {subject} not found. "
            f"Make sure you have one defined in {record_type_name}"
        )


class FieldValidationError(AnonymiserError):
    """Raised when persisted fields are left without an anonymisation strategy.

    Carries the offending field names in ``fields``.
    """

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(
            f"Invalid anonymisation strategy for field(s) {_format_fields(self.fields)}"
        )


class NotAnonymisableError(AnonymiserError):
    """Raised when a record type has no policy defined."""

    def __init__(self, record_type_name: str) -> None:
        self.record_type_name = record_type_name
        super().__init__(
            f"Record type {record_type_name} has no anonymisation policy. "
            "Define one with PolicyRegistry.define()."
        )


class AnonymisationNotKnownError(AnonymiserError):
    """Raised when asking whether a record without a marker field was anonymised."""

    def __init__(self, marker_field: str | None) -> None:
        self.marker_field = marker_field
        if marker_field is None:
            message = "Cannot determine if a record has been anonymised without a marker field."
        else:
            message = (
                "Cannot determine if a record has been anonymised "
                f"without a `{marker_field}` field."
            )
        super().__init__(message)
