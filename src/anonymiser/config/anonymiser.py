"""Engine configuration shared by every policy.

The engine never reads the environment itself. Host applications build the
`PolicyRegistry` that the CLI loads by name, and pass it either an explicit
`AnonymiserConfig` or `get_anonymiser_config()` to honour the `ANONYMISER_*` variables::

    registry = PolicyRegistry(get_anonymiser_config())
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, tzinfo
from typing import Final, TypeAlias

from .env import env_flag, env_list, optional_env_var
from .errors import ConfigurationError

DEFAULT_MARKER_FIELD: Final[str] = "anonymised_at"
DEFAULT_EMAIL_TEMPLATE: Final[str] = "{}@example.com"
DEFAULT_PHONE_NUMBER: Final[str] = "+1 617 555 1294"

IgnoreRule: TypeAlias = "str | re.Pattern[str] | Callable[[str], bool]"


def _rule_matches(rule: IgnoreRule, field: str) -> bool:
    if isinstance(rule, str):
        return rule == field
    if isinstance(rule, re.Pattern):
        return rule.search(field) is not None
    return bool(rule(field))


@dataclass(frozen=True, slots=True, kw_only=True)
class AnonymiserConfig:
    """Immutable settings handed to the policy registry at construction.

    ``ignores`` lists fields that are exempt from completeness checks for every record
    type. Rules are literal field names, compiled regular expressions (matched with
    ``search``) or predicates receiving the field name.
    """

    ignores: tuple[IgnoreRule, ...] = ()
    marker_field: str | None = DEFAULT_MARKER_FIELD
    email_template: str = DEFAULT_EMAIL_TEMPLATE
    phone_number: str = DEFAULT_PHONE_NUMBER
    timezone: tzinfo = UTC
    validate_before_apply: bool = True

    def __post_init__(self) -> None:
        if "{}" not in self.email_template:
            raise ConfigurationError(
                f"Email template must contain a '{{}}' placeholder: {self.email_template!r}"
            )

    def is_ignored(self, field: str) -> bool:
        return any(_rule_matches(rule, field) for rule in self.ignores)

    def with_ignores(self, *rules: IgnoreRule) -> AnonymiserConfig:
        """Return a copy whose global ignore list is replaced by ``rules``."""

        return replace(self, ignores=tuple(rules))


def get_anonymiser_config() -> AnonymiserConfig:
    """Build the engine configuration from ``ANONYMISER_*`` environment variables."""

    marker = optional_env_var("ANONYMISER_MARKER_FIELD")
    if marker is not None and marker.lower() == "none":
        marker_field: str | None = None
    else:
        marker_field = marker or DEFAULT_MARKER_FIELD

    return AnonymiserConfig(
        ignores=env_list("ANONYMISER_IGNORE_FIELDS"),
        marker_field=marker_field,
        email_template=optional_env_var("ANONYMISER_EMAIL_TEMPLATE") or DEFAULT_EMAIL_TEMPLATE,
        phone_number=optional_env_var("ANONYMISER_PHONE_NUMBER") or DEFAULT_PHONE_NUMBER,
        validate_before_apply=not env_flag("ANONYMISER_SKIP_VALIDATION"),
    )
