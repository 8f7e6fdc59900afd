from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from anonymiser.config import AnonymiserConfig
from anonymiser.domain import (
    AnonymisationNotKnownError,
    NotAnonymisableError,
    PolicyConfig,
    PolicyDefinitionError,
    PolicyRegistry,
    ResultStatus,
    StrategyRegistry,
)
from tests.helpers.records import (
    EMPLOYEE_TYPE,
    FakeAuditTrail,
    FakeRecord,
    FakeRecordType,
    make_employee,
)

if TYPE_CHECKING:
    from anonymiser.domain import FieldStrategyBuilder

MANAGER_TYPE = FakeRecordType("Manager", ("id", "name", "user_id"))


def _employee_fields(fields: FieldStrategyBuilder) -> None:
    fields.hex("first_name")
    fields.nilable("last_name")
    fields.ignore("company_name")


def test_define_returns_policy_and_applies_by_record_type(registry: PolicyRegistry) -> None:
    policy = registry.define(EMPLOYEE_TYPE, lambda p: p.fields(_employee_fields))

    assert isinstance(policy, PolicyConfig)
    assert registry.policy_for(EMPLOYEE_TYPE) is policy
    assert EMPLOYEE_TYPE in registry
    assert list(registry) == [EMPLOYEE_TYPE]
    assert len(registry) == 1
    assert registry.apply(make_employee()).is_overwritten


def test_define_as_decorator(registry: PolicyRegistry) -> None:
    @registry.define(MANAGER_TYPE)
    def managers(policy: PolicyConfig) -> None:
        policy.destroy()

    assert isinstance(managers, PolicyConfig)
    record = FakeRecord(MANAGER_TYPE, {"id": 1, "name": "Satya"})
    assert registry.apply(record).is_destroyed


def test_redefinition_is_rejected(registry: PolicyRegistry) -> None:
    registry.define(EMPLOYEE_TYPE, lambda p: p.destroy())

    with pytest.raises(PolicyDefinitionError, match="already defined for Employee"):
        registry.define(EMPLOYEE_TYPE, lambda p: p.destroy())


def test_unknown_record_type_is_not_anonymisable(registry: PolicyRegistry) -> None:
    with pytest.raises(NotAnonymisableError, match="Manager"):
        registry.apply(FakeRecord(MANAGER_TYPE, {}))


def test_policies_do_not_share_field_configuration(registry: PolicyRegistry) -> None:
    other_type = FakeRecordType("Contractor", EMPLOYEE_TYPE.fields)
    registry.define(EMPLOYEE_TYPE, lambda p: p.fields(_employee_fields))
    registry.define(other_type, lambda p: p.fields(lambda f: f.hex("first_name")))

    employee_fields = registry.policy_for(EMPLOYEE_TYPE).strategy
    contractor_fields = registry.policy_for(other_type).strategy

    assert employee_fields is not contractor_fields
    assert set(contractor_fields.anonymisable_fields) == {"first_name"}  # type: ignore[union-attr]
    assert registry.policy_for(EMPLOYEE_TYPE).is_valid()
    assert not registry.policy_for(other_type).is_valid()


def test_registered_strategies_are_shared_by_policies() -> None:
    config = AnonymiserConfig(ignores=("id",))
    strategies = StrategyRegistry.default(config)
    strategies.register("reverse", lambda value: value[::-1])
    registry = PolicyRegistry(config, strategies=strategies)

    registry.define(
        EMPLOYEE_TYPE,
        lambda p: p.fields(
            lambda f: (
                f.use("reverse", "first_name", "last_name"),
                f.ignore("company_name"),
            )
        ),
    )
    result = registry.apply(make_employee())

    assert result.fields["first_name"] == "lliW"
    assert result.fields["last_name"] == "setaG"


def test_anonymise_for_uses_policy_selector(registry: PolicyRegistry) -> None:
    people = {7: [make_employee(id=1), make_employee(id=2)]}

    def configure(policy: PolicyConfig) -> None:
        policy.destroy()
        policy.selectors(
            lambda selectors: selectors.for_subject("user_id", lambda uid: people.get(uid, []))
        )

    registry.define(EMPLOYEE_TYPE, configure)

    results = registry.anonymise_for(EMPLOYEE_TYPE, "user_id", 7)

    assert [result.status for result in results] == [ResultStatus.DESTROYED] * 2
    assert registry.anonymise_for(EMPLOYEE_TYPE, "user_id", 8) == []


def test_anonymise_subject_runs_every_matching_policy(
    registry: PolicyRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    employee = make_employee(id=1)
    manager = FakeRecord(MANAGER_TYPE, {"id": 3, "name": "Satya", "user_id": 7})

    def employees(policy: PolicyConfig) -> None:
        policy.fields(_employee_fields)
        policy.selectors(lambda s: s.for_subject("user_id", lambda _uid: [employee]))

    def managers(policy: PolicyConfig) -> None:
        policy.destroy()
        policy.selectors(lambda s: s.for_subject("user_id", lambda _uid: [manager]))

    registry.define(EMPLOYEE_TYPE, employees)
    registry.define(MANAGER_TYPE, managers)
    registry.define(FakeRecordType("Invoice", ("id",)), lambda p: p.destroy())

    with caplog.at_level(logging.INFO, logger="anonymiser.domain.registry"):
        results = registry.anonymise_subject("user_id", 7)

    assert [result.record for result in results] == [employee, manager]
    assert [result.status for result in results] == [
        ResultStatus.OVERWRITTEN,
        ResultStatus.DESTROYED,
    ]
    assert "Anonymised subject user_id=7" in caplog.text


def test_invalid_policies_reports_unhandled_fields(registry: PolicyRegistry) -> None:
    registry.define(EMPLOYEE_TYPE, lambda p: p.fields(lambda f: f.hex("first_name")))
    registry.define(MANAGER_TYPE, lambda _p: None)
    registry.define(FakeRecordType("Invoice", ("id",)), lambda p: p.destroy())

    assert registry.invalid_policies() == {
        "Employee": ("last_name", "company_name"),
        "Manager": ("Must specify either destroy or fields strategy",),
    }


def test_invalid_policies_include_audit_log_fields(registry: PolicyRegistry) -> None:
    def configure(policy: PolicyConfig) -> None:
        policy.fields(_employee_fields)
        policy.audit_log(FakeAuditTrail(), lambda audit: audit.nilable("first_name"))

    registry.define(EMPLOYEE_TYPE, configure)

    assert registry.invalid_policies() == {
        "Employee": ("audit_log.last_name", "audit_log.company_name"),
    }


def test_is_anonymised_reads_marker_field(registry: PolicyRegistry) -> None:
    registry.define(EMPLOYEE_TYPE, lambda p: p.fields(_employee_fields))
    record = make_employee()

    assert not registry.is_anonymised(record)
    registry.apply(record)
    assert registry.is_anonymised(record)


def test_is_anonymised_requires_marker_field(registry: PolicyRegistry) -> None:
    with pytest.raises(AnonymisationNotKnownError, match="anonymised_at"):
        registry.is_anonymised(FakeRecord(MANAGER_TYPE, {}))

    unmarked = PolicyRegistry(AnonymiserConfig(marker_field=None))
    with pytest.raises(AnonymisationNotKnownError):
        unmarked.is_anonymised(make_employee())
