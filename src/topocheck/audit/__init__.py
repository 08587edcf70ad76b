"""Single-replica topology compliance engine."""

from topocheck.audit.classifier import Classifier
from topocheck.audit.driver import AuditDriver, run_audit
from topocheck.audit.expectation import is_audit_applicable, is_subject_to_single_replica_rule
from topocheck.audit.policy import (
    PolicyError,
    TopologyPolicy,
    default_policy,
    load_policy,
    write_default_policy,
)
from topocheck.audit.reporting import (
    ReplicaComplianceError,
    audit_result_to_dict,
    raise_for_violations,
    render_audit_markdown,
    write_audit_artifacts,
)
from topocheck.audit.validator import validate_replicas

__all__ = [
    "AuditDriver",
    "Classifier",
    "PolicyError",
    "ReplicaComplianceError",
    "TopologyPolicy",
    "audit_result_to_dict",
    "default_policy",
    "is_audit_applicable",
    "is_subject_to_single_replica_rule",
    "load_policy",
    "raise_for_violations",
    "render_audit_markdown",
    "run_audit",
    "validate_replicas",
    "write_audit_artifacts",
    "write_default_policy",
]
