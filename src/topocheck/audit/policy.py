"""Load and validate the topology replica policy document."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

from topocheck.audit.types import WorkloadKind
from topocheck.schemas.validator import validate_data

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_NAMESPACE_PREFIX = "openshift-"

# Keep this literal deterministic and sorted in write path.
DEFAULT_POLICY_DOCUMENT: dict[str, Any] = {
    "namespace_prefix": DEFAULT_NAMESPACE_PREFIX,
    "infrastructure": {
        "deployments": {
            "openshift-ingress": ["router-default"],
        },
        # No known platform StatefulSets are considered infrastructure for now.
        "statefulsets": {},
    },
    # Workloads that still run two replicas in single-replica topologies because
    # their operator does not honour the topology API yet. Entries are removed
    # as operators catch up.
    "allowed_to_fail": {
        "openshift-authentication": ["oauth-openshift"],
        "openshift-console": ["console", "downloads"],
        "openshift-image-registry": ["image-registry"],
        "openshift-monitoring": [
            "prometheus-adapter",
            "thanos-querier",
            "alertmanager-main",
            "prometheus-k8s",
        ],
        "openshift-operator-lifecycle-manager": ["packageserver"],
    },
}

POLICY_REASON_MISSING = "POLICY_MISSING"
POLICY_REASON_PARSE_ERROR = "POLICY_PARSE_ERROR"
POLICY_REASON_SCHEMA_INVALID = "POLICY_SCHEMA_INVALID"

NamespaceNames = Mapping[str, frozenset[str]]


class PolicyError(ValueError):
    """Policy document validation error."""

    reason_code: str

    def __init__(self, message: str, reason_code: str = POLICY_REASON_SCHEMA_INVALID) -> None:
        super().__init__(message)
        self.reason_code = reason_code


@dataclass(frozen=True)
class ClassificationPolicy:
    """Infrastructure workload names per namespace, split by kind."""

    deployments: NamespaceNames = field(default_factory=dict)
    statefulsets: NamespaceNames = field(default_factory=dict)

    def names_for(self, namespace: str, kind: WorkloadKind) -> frozenset[str]:
        table = self.deployments if kind is WorkloadKind.DEPLOYMENT else self.statefulsets
        return table.get(namespace, frozenset())


@dataclass(frozen=True)
class AllowListPolicy:
    """Workload names per namespace allowed to deviate from one replica."""

    entries: NamespaceNames = field(default_factory=dict)

    def contains(self, namespace: str, name: str) -> bool:
        return name in self.entries.get(namespace, frozenset())


@dataclass(frozen=True)
class TopologyPolicy:
    """Complete static policy consumed by the classifier and audit driver."""

    classification: ClassificationPolicy
    allow_list: AllowListPolicy
    namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX


def policy_from_dict(raw: Any) -> TopologyPolicy:
    """Validate a policy document and normalize it into a TopologyPolicy."""
    if not isinstance(raw, dict):
        raise PolicyError(
            "policy parse error: expected mapping at top level",
            POLICY_REASON_PARSE_ERROR,
        )

    ok, errors = validate_data(raw, "policy", strict=False)
    if not ok:
        raise PolicyError("policy document is invalid:\n" + "\n".join(f"  - {e}" for e in errors))

    infrastructure = raw["infrastructure"]
    return TopologyPolicy(
        classification=ClassificationPolicy(
            deployments=_freeze_names(infrastructure.get("deployments", {})),
            statefulsets=_freeze_names(infrastructure.get("statefulsets", {})),
        ),
        allow_list=AllowListPolicy(entries=_freeze_names(raw["allowed_to_fail"])),
        namespace_prefix=str(raw.get("namespace_prefix", DEFAULT_NAMESPACE_PREFIX)),
    )


def policy_to_dict(policy: TopologyPolicy) -> dict[str, Any]:
    """Convert a policy back into its deterministic document form."""
    return {
        "namespace_prefix": policy.namespace_prefix,
        "infrastructure": {
            "deployments": _thaw_names(policy.classification.deployments),
            "statefulsets": _thaw_names(policy.classification.statefulsets),
        },
        "allowed_to_fail": _thaw_names(policy.allow_list.entries),
    }


def default_policy() -> TopologyPolicy:
    """Return the policy shipped with topocheck."""
    return policy_from_dict(DEFAULT_POLICY_DOCUMENT)


def load_policy(path: Path) -> TopologyPolicy:
    """Load, validate, and normalize a policy YAML file."""
    if not path.exists():
        raise PolicyError(
            f"Missing policy document at {path}. Run `topocheck policy init --path {path}` first.",
            POLICY_REASON_MISSING,
        )

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise PolicyError(f"policy parse error: {exc}", POLICY_REASON_PARSE_ERROR) from exc

    return policy_from_dict(raw)


def write_default_policy(path: Path, *, force: bool = False) -> Path:
    """Write the default policy YAML deterministically."""
    if path.exists() and not force:
        raise FileExistsError(f"Policy file already exists: {path}")

    path.parent.mkdir(parents=True, exist_ok=True)
    rendered = yaml.safe_dump(policy_to_dict(default_policy()), sort_keys=True)
    path.write_text(rendered, encoding="utf-8")
    return path


def _freeze_names(raw: dict[str, list[str]]) -> NamespaceNames:
    return MappingProxyType({namespace: frozenset(names) for namespace, names in sorted(raw.items())})


def _thaw_names(table: NamespaceNames) -> dict[str, list[str]]:
    return {namespace: sorted(names) for namespace, names in sorted(table.items())}
