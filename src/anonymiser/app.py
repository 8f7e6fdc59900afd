"""Application orchestration entry points."""

from __future__ import annotations

import importlib
from collections import Counter
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from anonymiser.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from anonymiser.config import get_database_config
from anonymiser.domain.registry import PolicyRegistry

if TYPE_CHECKING:
    from anonymiser.domain.result import Result

UnitOfWorkFactory = Callable[[], SqlAlchemyUnitOfWork]


log = getLogger(__name__)


def load_registry(target: str) -> PolicyRegistry:
    """Import ``package.module:attribute`` and return the PolicyRegistry it names."""

    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got {target!r}")
    module = importlib.import_module(module_name)
    try:
        registry = getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"{module_name} has no attribute {attribute!r}") from exc
    if not isinstance(registry, PolicyRegistry):
        raise TypeError(f"{target} is not a PolicyRegistry")
    return registry


def check_policies(registry: PolicyRegistry) -> dict[str, tuple[str, ...]]:
    """Validate every defined policy and log the ones with unhandled fields."""

    invalid = registry.invalid_policies()
    for name, fields in invalid.items():
        log.warning("Policy for %s is incomplete: %s", name, ", ".join(fields))
    log.info("Checked %s policies, %s invalid", len(registry), len(invalid))
    return invalid


def anonymise_subject(
    registry: PolicyRegistry,
    subject: str,
    subject_id: object,
    *,
    database_uri: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Result]:
    """Anonymise every record selected for ``subject`` in a single transaction.

    A failed result leaves the session unusable for further writes, so the whole run is
    rolled back when any record fails.
    """

    if not is_started():
        startup(database_uri=get_database_config(uri=database_uri).uri)
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork

    with effective_uow() as uow:
        results = registry.anonymise_subject(subject, subject_id)
        if any(result.is_failed for result in results):
            log.error("Rolling back: %s records failed", sum(r.is_failed for r in results))
            uow.rollback()
        else:
            uow.commit()

    statuses = Counter(result.status.value for result in results)
    log.info("Finished anonymising %s=%s: %s", subject, subject_id, dict(statuses))
    return results
