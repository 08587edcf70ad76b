"""Replica count validation for a single workload."""

from __future__ import annotations

from topocheck.audit.types import (
    REASON_ALLOWLIST_ENTRY_UNNECESSARY,
    REASON_REPLICAS_UNDECLARED,
    REASON_WRONG_REPLICA_COUNT,
    Verdict,
    VerdictStatus,
    WorkloadRef,
)

EXPECTED_REPLICAS = 1


def validate_replicas(ref: WorkloadRef, subject_to_rule: bool, allowed_to_fail: bool) -> Verdict:
    """
    Produce the verdict for one workload.

    Args:
        ref: Workload under audit
        subject_to_rule: Whether the single-replica rule governs this workload
        allowed_to_fail: Whether the workload is on the allow-list

    Returns:
        Compliant when out of scope or exactly one replica is declared.
        Violation when a non-allow-listed workload declares anything else, or
        when the replica count is missing altogether.
        CompliantWithWarning when an allow-listed workload already declares one
        replica, meaning its allow-list entry can be dropped.
    """
    if not subject_to_rule:
        return Verdict(workload=ref, status=VerdictStatus.COMPLIANT)

    if ref.declared_replicas is None:
        # Schema guarantees spec.replicas is defaulted; absence means broken tooling.
        return Verdict(
            workload=ref,
            status=VerdictStatus.VIOLATION,
            reason=f"{ref.name} in {ref.namespace} namespace does not declare a replica count",
            reason_code=REASON_REPLICAS_UNDECLARED,
        )

    replicas = ref.declared_replicas
    if not allowed_to_fail:
        if replicas != EXPECTED_REPLICAS:
            return Verdict(
                workload=ref,
                status=VerdictStatus.VIOLATION,
                reason=(
                    f"{ref.name} in {ref.namespace} namespace has wrong number of replicas: "
                    f"expected {EXPECTED_REPLICAS}, got {replicas}"
                ),
                reason_code=REASON_WRONG_REPLICA_COUNT,
            )
        return Verdict(workload=ref, status=VerdictStatus.COMPLIANT)

    if replicas == EXPECTED_REPLICAS:
        return Verdict(
            workload=ref,
            status=VerdictStatus.COMPLIANT_WITH_WARNING,
            reason=(
                f"{ref.name} in namespace {ref.namespace} has one replica, "
                "consider taking it off the topology allow-list"
            ),
            reason_code=REASON_ALLOWLIST_ENTRY_UNNECESSARY,
        )
    return Verdict(workload=ref, status=VerdictStatus.COMPLIANT)
