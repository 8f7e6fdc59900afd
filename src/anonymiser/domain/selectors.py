"""Subject selectors: find the records related to an external subject identifier."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias, overload

from .errors import PolicyDefinitionError, SelectorNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .ports import Record, RecordType

SelectorQuery: TypeAlias = "Callable[[object], Iterable[Record]]"


class SelectorRegistry:
    def __init__(self, record_type: RecordType) -> None:
        self.record_type = record_type
        self._selectors: dict[str, SelectorQuery] = {}

    @overload
    def for_subject(self, subject: str) -> Callable[[SelectorQuery], SelectorQuery]: ...

    @overload
    def for_subject(self, subject: str, query: SelectorQuery) -> SelectorQuery: ...

    def for_subject(
        self, subject: str, query: SelectorQuery | None = None
    ) -> SelectorQuery | Callable[[SelectorQuery], SelectorQuery]:
        """Register ``query`` for ``subject``; without a query, act as a decorator."""

        if query is None:

            def decorator(func: SelectorQuery) -> SelectorQuery:
                return self.for_subject(subject, func)

            return decorator

        if not callable(query):
            raise PolicyDefinitionError(f"Selector for {subject} must be callable")
        self._selectors[subject] = query
        return query

    def select(self, subject: str, subject_id: object) -> list[Record]:
        query = self._selectors.get(subject)
        if query is None:
            raise SelectorNotFoundError(subject, self.record_type.name)
        return list(query(subject_id))

    def subjects(self) -> tuple[str, ...]:
        return tuple(self._selectors)

    def __contains__(self, subject: object) -> bool:
        return subject in self._selectors
