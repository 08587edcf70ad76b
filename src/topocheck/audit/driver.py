"""Audit driver: evaluate every workload and aggregate the verdicts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from topocheck.audit.classifier import Classifier
from topocheck.audit.expectation import is_audit_applicable, is_subject_to_single_replica_rule
from topocheck.audit.policy import TopologyPolicy, default_policy
from topocheck.audit.types import (
    AuditResult,
    AuditStatus,
    TopologyMode,
    Verdict,
    WorkloadRef,
)
from topocheck.audit.validator import validate_replicas

logger = logging.getLogger(__name__)


class AuditDriver:
    """Run the single-replica audit over an inventory snapshot."""

    def __init__(self, policy: TopologyPolicy | None = None, max_workers: int | None = None) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.classifier = Classifier(policy or default_policy())
        self.max_workers = max_workers

    def evaluate(
        self,
        ref: WorkloadRef,
        control_plane_topology: TopologyMode,
        infra_topology: TopologyMode,
    ) -> Verdict:
        """Classify, resolve, and validate one workload."""
        classification = self.classifier.classify(ref)
        subject = is_subject_to_single_replica_rule(classification, control_plane_topology, infra_topology)
        allowed_to_fail = self.classifier.is_allowed_to_fail(ref)
        verdict = validate_replicas(ref, subject, allowed_to_fail)
        logger.debug(
            "%s: classification=%s subject=%s allowed_to_fail=%s status=%s",
            ref,
            classification.value,
            subject,
            allowed_to_fail,
            verdict.status.value,
        )
        return verdict

    def run(
        self,
        inventory: Iterable[WorkloadRef],
        control_plane_topology: TopologyMode,
        infra_topology: TopologyMode,
    ) -> AuditResult:
        """Audit the inventory and return the aggregate result."""
        if not is_audit_applicable(control_plane_topology, infra_topology):
            logger.info(
                "Audit skipped: controlPlaneTopology=%s infrastructureTopology=%s",
                control_plane_topology.value,
                infra_topology.value,
            )
            return AuditResult(
                status=AuditStatus.SKIPPED,
                control_plane_topology=control_plane_topology,
                infra_topology=infra_topology,
                verdicts=(),
                violations=(),
                warnings=(),
            )

        workloads = list(inventory)
        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                verdicts = list(
                    pool.map(
                        lambda ref: self.evaluate(ref, control_plane_topology, infra_topology),
                        workloads,
                    )
                )
        else:
            verdicts = [self.evaluate(ref, control_plane_topology, infra_topology) for ref in workloads]

        ordered = tuple(sorted(verdicts, key=lambda v: v.workload.sort_key))
        violations = tuple(v for v in ordered if v.is_violation)
        warnings = tuple(v for v in ordered if v.is_warning)
        status = AuditStatus.FAILED if violations else AuditStatus.PASSED

        logger.info(
            "Audit %s: %d workloads, %d violations, %d warnings",
            status.value,
            len(ordered),
            len(violations),
            len(warnings),
        )
        return AuditResult(
            status=status,
            control_plane_topology=control_plane_topology,
            infra_topology=infra_topology,
            verdicts=ordered,
            violations=violations,
            warnings=warnings,
        )


def run_audit(
    inventory: Iterable[WorkloadRef],
    control_plane_topology: TopologyMode,
    infra_topology: TopologyMode,
    policy: TopologyPolicy | None = None,
    max_workers: int | None = None,
) -> AuditResult:
    """Convenience wrapper around AuditDriver.run."""
    driver = AuditDriver(policy, max_workers=max_workers)
    return driver.run(inventory, control_plane_topology, infra_topology)
