"""Unit tests for per-workload replica validation."""

from __future__ import annotations

import pytest

from topocheck.audit.types import (
    REASON_ALLOWLIST_ENTRY_UNNECESSARY,
    REASON_REPLICAS_UNDECLARED,
    REASON_WRONG_REPLICA_COUNT,
    Verdict,
    VerdictStatus,
    WorkloadKind,
    WorkloadRef,
)
from topocheck.audit.validator import validate_replicas


def _ref(replicas: int | None) -> WorkloadRef:
    return WorkloadRef(name="foo", namespace="openshift-foo", kind=WorkloadKind.DEPLOYMENT, declared_replicas=replicas)


def test_out_of_scope_workload_is_compliant_without_reading_replicas() -> None:
    verdict = validate_replicas(_ref(None), subject_to_rule=False, allowed_to_fail=False)
    assert verdict.status is VerdictStatus.COMPLIANT
    assert verdict.reason is None


def test_single_replica_is_compliant() -> None:
    verdict = validate_replicas(_ref(1), subject_to_rule=True, allowed_to_fail=False)
    assert verdict.status is VerdictStatus.COMPLIANT


@pytest.mark.parametrize("replicas", [0, 2, 3])
def test_other_replica_counts_are_violations(replicas: int) -> None:
    verdict = validate_replicas(_ref(replicas), subject_to_rule=True, allowed_to_fail=False)
    assert verdict.status is VerdictStatus.VIOLATION
    assert verdict.reason_code == REASON_WRONG_REPLICA_COUNT
    assert "foo in openshift-foo namespace has wrong number of replicas" in verdict.reason


def test_missing_replica_count_is_reported_as_distinct_violation() -> None:
    verdict = validate_replicas(_ref(None), subject_to_rule=True, allowed_to_fail=False)
    assert verdict.status is VerdictStatus.VIOLATION
    assert verdict.reason_code == REASON_REPLICAS_UNDECLARED


def test_missing_replica_count_is_a_violation_even_when_allow_listed() -> None:
    verdict = validate_replicas(_ref(None), subject_to_rule=True, allowed_to_fail=True)
    assert verdict.reason_code == REASON_REPLICAS_UNDECLARED


@pytest.mark.parametrize("replicas", [0, 2, 5])
def test_allow_listed_workload_never_fails(replicas: int) -> None:
    verdict = validate_replicas(_ref(replicas), subject_to_rule=True, allowed_to_fail=True)
    assert verdict.status is VerdictStatus.COMPLIANT


def test_allow_listed_workload_with_one_replica_warns() -> None:
    verdict = validate_replicas(_ref(1), subject_to_rule=True, allowed_to_fail=True)
    assert verdict.status is VerdictStatus.COMPLIANT_WITH_WARNING
    assert verdict.reason_code == REASON_ALLOWLIST_ENTRY_UNNECESSARY
    assert "consider taking it off the topology allow-list" in verdict.reason


def test_non_compliant_verdict_requires_reason() -> None:
    with pytest.raises(ValueError, match="requires a reason"):
        Verdict(workload=_ref(2), status=VerdictStatus.VIOLATION)
