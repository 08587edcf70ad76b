"""Audit domain types for single-replica topology compliance."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

REASON_WRONG_REPLICA_COUNT = "WRONG_REPLICA_COUNT"
REASON_REPLICAS_UNDECLARED = "REPLICAS_UNDECLARED"
REASON_ALLOWLIST_ENTRY_UNNECESSARY = "ALLOWLIST_ENTRY_UNNECESSARY"


class TopologyMode(str, Enum):
    """Cluster topology modes as reported by Infrastructure status.

    Modes added by newer clusters are accepted as pseudo-members carrying the
    reported string; only SingleReplica has audit semantics.
    """

    SINGLE_REPLICA = "SingleReplica"
    HIGHLY_AVAILABLE = "HighlyAvailable"
    HIGHLY_AVAILABLE_ARBITER = "HighlyAvailableArbiter"
    DUAL_REPLICA = "DualReplica"
    EXTERNAL = "External"

    @classmethod
    def _missing_(cls, value: object) -> TopologyMode | None:
        if not isinstance(value, str) or not value:
            return None
        member = str.__new__(cls, value)
        member._name_ = value
        member._value_ = value
        return member


class WorkloadKind(str, Enum):
    """Scalable workload kinds covered by the audit."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"


class Classification(str, Enum):
    """Which topology dimension governs a workload."""

    INFRASTRUCTURE = "Infrastructure"
    CONTROL_PLANE = "ControlPlane"


class VerdictStatus(str, Enum):
    """Outcome category of a single workload check."""

    COMPLIANT = "compliant"
    VIOLATION = "violation"
    COMPLIANT_WITH_WARNING = "compliant_with_warning"


class AuditStatus(str, Enum):
    """Overall status of one audit run."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class WorkloadRef:
    """Identity and declared replica count of one platform workload."""

    name: str
    namespace: str
    kind: WorkloadKind
    declared_replicas: int | None

    @property
    def sort_key(self) -> tuple[str, str, str, int]:
        replicas = -1 if self.declared_replicas is None else self.declared_replicas
        return (self.namespace, self.kind.value, self.name, replicas)

    def __str__(self) -> str:
        return f"{self.kind.value} {self.namespace}/{self.name}"


@dataclass(frozen=True)
class Verdict:
    """Outcome of validating a single workload."""

    workload: WorkloadRef
    status: VerdictStatus
    reason: str | None = None
    reason_code: str | None = None

    def __post_init__(self) -> None:
        if self.status is not VerdictStatus.COMPLIANT and not self.reason:
            raise ValueError(f"{self.status.value} verdict requires a reason")

    @property
    def is_violation(self) -> bool:
        return self.status is VerdictStatus.VIOLATION

    @property
    def is_warning(self) -> bool:
        return self.status is VerdictStatus.COMPLIANT_WITH_WARNING


@dataclass(frozen=True)
class AuditResult:
    """Aggregate result of one audit run."""

    status: AuditStatus
    control_plane_topology: TopologyMode
    infra_topology: TopologyMode
    verdicts: tuple[Verdict, ...]
    violations: tuple[Verdict, ...]
    warnings: tuple[Verdict, ...]

    @property
    def evaluated(self) -> int:
        return len(self.verdicts)

    @property
    def passed(self) -> bool:
        return self.status is AuditStatus.PASSED

    @property
    def skipped(self) -> bool:
        return self.status is AuditStatus.SKIPPED
