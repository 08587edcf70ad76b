"""Point-in-time cluster snapshots: topology facts plus workload inventory."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

from topocheck.audit.policy import DEFAULT_NAMESPACE_PREFIX
from topocheck.audit.types import TopologyMode, WorkloadKind, WorkloadRef

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SNAPSHOT_REASON_MISSING = "SNAPSHOT_MISSING"
SNAPSHOT_REASON_PARSE_ERROR = "SNAPSHOT_PARSE_ERROR"
SNAPSHOT_REASON_INVALID = "SNAPSHOT_INVALID"
SNAPSHOT_REASON_KUBECTL_FAILED = "KUBECTL_FAILED"

SNAPSHOT_SECTIONS: tuple[str, ...] = ("infrastructure", "namespaces", "deployments", "statefulsets")


class SnapshotError(ValueError):
    """Cluster snapshot could not be read or normalized."""

    reason_code: str

    def __init__(self, message: str, reason_code: str = SNAPSHOT_REASON_INVALID) -> None:
        super().__init__(message)
        self.reason_code = reason_code


@dataclass(frozen=True)
class ClusterSnapshot:
    """Topology fact pair and in-scope workloads fetched once per run."""

    control_plane_topology: TopologyMode
    infra_topology: TopologyMode
    workloads: tuple[WorkloadRef, ...]


def parse_topology(value: Any, field_name: str) -> TopologyMode:
    """Any non-empty mode string is accepted; unrecognized ones are simply not SingleReplica."""
    if not isinstance(value, str) or not value:
        raise SnapshotError(f"{field_name} must be a non-empty topology mode string, got `{value}`")
    mode = TopologyMode(value)
    if mode not in list(TopologyMode):
        logger.warning("%s has unrecognized topology mode %r; treating it as not SingleReplica", field_name, value)
    return mode


def topologies_from_infrastructure(infrastructure: dict[str, Any]) -> tuple[TopologyMode, TopologyMode]:
    """Read (controlPlaneTopology, infrastructureTopology) from Infrastructure/cluster."""
    status = infrastructure.get("status")
    if not isinstance(status, dict):
        raise SnapshotError("infrastructure document has no `status` mapping")
    return (
        parse_topology(status.get("controlPlaneTopology"), "status.controlPlaneTopology"),
        parse_topology(status.get("infrastructureTopology"), "status.infrastructureTopology"),
    )


def platform_namespaces(namespaces: dict[str, Any], namespace_prefix: str) -> list[str]:
    """Namespace names carrying the platform ownership prefix."""
    names = [_metadata(item, "namespaces")["name"] for item in _items(namespaces, "namespaces")]
    return sorted(name for name in names if name.startswith(namespace_prefix))


def workloads_from_list(document: dict[str, Any], kind: WorkloadKind, namespaces: set[str]) -> list[WorkloadRef]:
    """Convert a Deployment/StatefulSet List into WorkloadRefs within the given namespaces."""
    section = "deployments" if kind is WorkloadKind.DEPLOYMENT else "statefulsets"
    refs: list[WorkloadRef] = []
    for item in _items(document, section):
        metadata = _metadata(item, section)
        namespace = metadata.get("namespace")
        if namespace not in namespaces:
            continue
        spec = item.get("spec") or {}
        replicas = spec.get("replicas")
        if replicas is not None and (isinstance(replicas, bool) or not isinstance(replicas, int) or replicas < 0):
            # Reported per workload as undeclared so the rest of the inventory is still audited.
            logger.warning(
                "%s: %s/%s has invalid spec.replicas %r; treating it as undeclared",
                section,
                namespace,
                metadata["name"],
                replicas,
            )
            replicas = None
        refs.append(
            WorkloadRef(
                name=metadata["name"],
                namespace=namespace,
                kind=kind,
                declared_replicas=replicas,
            )
        )
    return refs


def snapshot_from_documents(
    infrastructure: dict[str, Any],
    namespaces: dict[str, Any],
    deployments: dict[str, Any],
    statefulsets: dict[str, Any],
    namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX,
) -> ClusterSnapshot:
    """Build a snapshot from raw Kubernetes API documents."""
    control_plane_topology, infra_topology = topologies_from_infrastructure(infrastructure)
    in_scope = set(platform_namespaces(namespaces, namespace_prefix))
    workloads = workloads_from_list(deployments, WorkloadKind.DEPLOYMENT, in_scope)
    workloads += workloads_from_list(statefulsets, WorkloadKind.STATEFUL_SET, in_scope)
    logger.debug(
        "Snapshot: %d namespaces with prefix %r, %d workloads",
        len(in_scope),
        namespace_prefix,
        len(workloads),
    )
    return ClusterSnapshot(
        control_plane_topology=control_plane_topology,
        infra_topology=infra_topology,
        workloads=tuple(sorted(workloads, key=lambda ref: ref.sort_key)),
    )


def load_snapshot(path: Path, namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX) -> ClusterSnapshot:
    """Load a snapshot bundle (YAML or JSON) with infrastructure, namespaces, deployments, statefulsets."""
    if not path.exists():
        raise SnapshotError(f"Snapshot not found: {path}", SNAPSHOT_REASON_MISSING)

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SnapshotError(f"snapshot parse error: {exc}", SNAPSHOT_REASON_PARSE_ERROR) from exc

    if not isinstance(raw, dict):
        raise SnapshotError("snapshot parse error: expected mapping at top level", SNAPSHOT_REASON_PARSE_ERROR)

    missing = [section for section in SNAPSHOT_SECTIONS if not isinstance(raw.get(section), dict)]
    if missing:
        raise SnapshotError(f"snapshot missing required mapping(s): {', '.join(missing)}")

    return snapshot_from_documents(
        infrastructure=raw["infrastructure"],
        namespaces=raw["namespaces"],
        deployments=raw["deployments"],
        statefulsets=raw["statefulsets"],
        namespace_prefix=namespace_prefix,
    )


def snapshot_to_document(snapshot: ClusterSnapshot) -> dict[str, Any]:
    """Render a normalized snapshot bundle that load_snapshot reads back."""

    def _list(kind: WorkloadKind) -> dict[str, Any]:
        return {
            "items": [
                {
                    "metadata": {"name": ref.name, "namespace": ref.namespace},
                    "spec": {} if ref.declared_replicas is None else {"replicas": ref.declared_replicas},
                }
                for ref in snapshot.workloads
                if ref.kind is kind
            ]
        }

    namespaces = sorted({ref.namespace for ref in snapshot.workloads})
    return {
        "infrastructure": {
            "status": {
                "controlPlaneTopology": snapshot.control_plane_topology.value,
                "infrastructureTopology": snapshot.infra_topology.value,
            }
        },
        "namespaces": {"items": [{"metadata": {"name": name}} for name in namespaces]},
        "deployments": _list(WorkloadKind.DEPLOYMENT),
        "statefulsets": _list(WorkloadKind.STATEFUL_SET),
    }


def _items(document: dict[str, Any], section: str) -> list[dict[str, Any]]:
    items = document.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise SnapshotError(f"{section}.items must be a list")
    return items


def _metadata(item: Any, section: str) -> dict[str, Any]:
    metadata = item.get("metadata") if isinstance(item, dict) else None
    if not isinstance(metadata, dict) or not metadata.get("name"):
        raise SnapshotError(f"{section}: every item needs metadata.name")
    return metadata
