"""Audit driver aggregation and determinism tests."""

from __future__ import annotations

import itertools

import pytest

from topocheck.audit.driver import AuditDriver, run_audit
from topocheck.audit.types import (
    REASON_REPLICAS_UNDECLARED,
    REASON_WRONG_REPLICA_COUNT,
    AuditStatus,
    TopologyMode,
    VerdictStatus,
    WorkloadKind,
    WorkloadRef,
)

SNO = TopologyMode.SINGLE_REPLICA
HA = TopologyMode.HIGHLY_AVAILABLE


def _deployment(namespace: str, name: str, replicas: int | None) -> WorkloadRef:
    return WorkloadRef(name=name, namespace=namespace, kind=WorkloadKind.DEPLOYMENT, declared_replicas=replicas)


def _statefulset(namespace: str, name: str, replicas: int | None) -> WorkloadRef:
    return WorkloadRef(name=name, namespace=namespace, kind=WorkloadKind.STATEFUL_SET, declared_replicas=replicas)


MIXED_INVENTORY = [
    _deployment("openshift-apiserver", "apiserver", 3),
    _deployment("openshift-monitoring", "thanos-querier", 1),
    _deployment("openshift-ingress", "router-default", 2),
    _statefulset("openshift-monitoring", "alertmanager-main", 2),
    _deployment("openshift-dns-operator", "dns-operator", None),
    _deployment("openshift-etcd-operator", "etcd-operator", 1),
]


def test_audit_skipped_when_no_dimension_is_single_replica() -> None:
    result = run_audit(MIXED_INVENTORY, HA, HA)
    assert result.status is AuditStatus.SKIPPED
    assert result.skipped
    assert result.verdicts == ()
    assert result.violations == ()


def test_thanos_querier_with_two_replicas_passes() -> None:
    inventory = [_deployment("openshift-monitoring", "thanos-querier", 2)]
    result = run_audit(inventory, SNO, SNO)
    assert result.status is AuditStatus.PASSED
    assert [v.status for v in result.verdicts] == [VerdictStatus.COMPLIANT]
    assert result.warnings == ()


def test_every_violation_is_reported() -> None:
    result = run_audit(MIXED_INVENTORY, SNO, SNO)
    assert result.status is AuditStatus.FAILED
    assert result.evaluated == len(MIXED_INVENTORY)
    assert [(v.workload.namespace, v.workload.name) for v in result.violations] == [
        ("openshift-apiserver", "apiserver"),
        ("openshift-dns-operator", "dns-operator"),
        ("openshift-ingress", "router-default"),
    ]
    codes = {v.workload.name: v.reason_code for v in result.violations}
    assert codes["dns-operator"] == REASON_REPLICAS_UNDECLARED
    assert codes["apiserver"] == REASON_WRONG_REPLICA_COUNT


def test_warnings_surface_without_failing_the_run() -> None:
    inventory = [
        _deployment("openshift-monitoring", "thanos-querier", 1),
        _deployment("openshift-etcd-operator", "etcd-operator", 1),
    ]
    result = run_audit(inventory, SNO, SNO)
    assert result.status is AuditStatus.PASSED
    assert [v.workload.name for v in result.warnings] == ["thanos-querier"]


def test_infrastructure_workload_exempt_when_infra_is_highly_available() -> None:
    inventory = [_deployment("openshift-ingress", "router-default", 2)]
    result = run_audit(inventory, SNO, HA)
    assert result.status is AuditStatus.PASSED
    assert result.verdicts[0].status is VerdictStatus.COMPLIANT


def test_control_plane_workload_exempt_when_only_infra_is_single_replica() -> None:
    inventory = [
        _deployment("openshift-apiserver", "apiserver", 3),
        _deployment("openshift-ingress", "router-default", 2),
    ]
    result = run_audit(inventory, HA, SNO)
    assert result.status is AuditStatus.FAILED
    assert [v.workload.name for v in result.violations] == ["router-default"]


def test_result_does_not_depend_on_inventory_order() -> None:
    baseline = run_audit(MIXED_INVENTORY, SNO, SNO)
    for permutation in itertools.islice(itertools.permutations(MIXED_INVENTORY), 0, None, 97):
        result = run_audit(list(permutation), SNO, SNO)
        assert result == baseline


def test_parallel_evaluation_matches_sequential() -> None:
    sequential = AuditDriver().run(MIXED_INVENTORY, SNO, SNO)
    parallel = AuditDriver(max_workers=4).run(list(reversed(MIXED_INVENTORY)), SNO, SNO)
    assert parallel == sequential


def test_empty_inventory_passes_in_single_replica_mode() -> None:
    result = run_audit([], SNO, HA)
    assert result.status is AuditStatus.PASSED
    assert result.evaluated == 0


def test_invalid_worker_count_rejected() -> None:
    with pytest.raises(ValueError, match="max_workers"):
        AuditDriver(max_workers=0)
