from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

import pytest

from anonymiser.config import AnonymiserConfig
from anonymiser.domain import (
    AnonymisedEmail,
    Constant,
    CurrentDatetime,
    OverwriteHex,
    PolicyDefinitionError,
    RecordStrategy,
    StrategyRegistry,
    UnknownStrategyError,
)
from anonymiser.domain.strategies import NO_OP, evaluate, is_no_op
from tests.helpers.records import make_employee


def test_overwrite_hex_respects_max_length() -> None:
    value = OverwriteHex(20)("William")

    assert re.fullmatch(r"[0-9a-f]{20}", value)


def test_overwrite_hex_defaults_to_36_characters() -> None:
    assert len(OverwriteHex()(None)) == 36


def test_overwrite_hex_rejects_non_positive_length() -> None:
    with pytest.raises(PolicyDefinitionError):
        OverwriteHex(0)


def test_anonymised_email_fills_template_with_uuid() -> None:
    value = AnonymisedEmail("{}@example.org")("someone@gmail.com")

    assert re.fullmatch(r"[0-9a-f\-]{36}@example\.org", value)


def test_current_datetime_uses_configured_timezone() -> None:
    value = CurrentDatetime(UTC)(None)

    assert value.tzinfo is UTC
    assert abs(datetime.now(UTC) - value) < timedelta(seconds=5)


def test_evaluate_handles_constants_callables_and_record_strategies() -> None:
    record = make_employee(id=7)

    assert evaluate("REDACTED", record, "Will") == "REDACTED"
    assert evaluate(None, record, "Will") is None
    assert evaluate(lambda previous: previous[::-1], record, "Will") == "lliW"
    assert evaluate(Constant({}), record, "Will") == {}
    strategy = RecordStrategy(lambda rec, _previous: f"last-{rec.get_field('id')}")
    assert evaluate(strategy, record, "Gates") == "last-7"


def test_no_op_returns_previous_value() -> None:
    assert NO_OP("unchanged") == "unchanged"
    assert is_no_op(NO_OP)
    assert not is_no_op(Constant(None))


def test_default_registry_contains_builtin_strategies() -> None:
    registry = StrategyRegistry.default(AnonymiserConfig(phone_number="+44 20 7946 0000"))

    assert set(registry.names()) == {
        "email",
        "phone_number",
        "current_datetime",
        "nilable",
        "no_op",
    }
    phone = registry.lookup("phone_number")
    assert evaluate(phone, make_employee(), "+1 555") == "+44 20 7946 0000"
    assert evaluate(registry.lookup("nilable"), make_employee(), "x") is None


def test_register_requires_strategy_or_block() -> None:
    registry = StrategyRegistry()

    with pytest.raises(PolicyDefinitionError, match="Must pass either"):
        registry.register("reverse")


def test_register_rejects_strategy_and_block_together() -> None:
    registry = StrategyRegistry()

    with pytest.raises(PolicyDefinitionError):
        registry.register("reverse", str.upper, block=lambda _record, value: value)


def test_register_block_creates_record_strategy() -> None:
    registry = StrategyRegistry()

    strategy = registry.register("prefixed", block=lambda record, _value: record.get_field("id"))

    assert isinstance(strategy, RecordStrategy)
    assert registry.lookup("prefixed") is strategy


def test_register_overrides_existing_name() -> None:
    registry = StrategyRegistry.default(AnonymiserConfig())
    replacement = Constant("nobody@example.net")

    registry.register("email", replacement)

    assert registry.lookup("email") is replacement


@pytest.mark.parametrize("name", ["destroy", "valid", "validate", "hex", "ignore", "use"])
def test_register_rejects_protected_names(name: str) -> None:
    registry = StrategyRegistry()

    with pytest.raises(PolicyDefinitionError, match="reserved"):
        registry.register(name, Constant(None))


def test_lookup_unknown_strategy_raises() -> None:
    registry = StrategyRegistry()

    with pytest.raises(UnknownStrategyError, match="'missing'"):
        registry.lookup("missing")


def test_copy_is_independent() -> None:
    registry = StrategyRegistry.default(AnonymiserConfig())
    copied = registry.copy()

    copied.register("reverse", lambda value: value[::-1])

    assert "reverse" in copied
    assert "reverse" not in registry
