"""Resolve whether a workload falls under the single-replica rule."""

from __future__ import annotations

from topocheck.audit.types import Classification, TopologyMode


def is_subject_to_single_replica_rule(
    classification: Classification,
    control_plane_topology: TopologyMode,
    infra_topology: TopologyMode,
) -> bool:
    """Infrastructure workloads follow infra_topology; everything else follows the control plane."""
    if classification is Classification.INFRASTRUCTURE:
        relevant = infra_topology
    else:
        relevant = control_plane_topology
    return relevant is TopologyMode.SINGLE_REPLICA


def is_audit_applicable(control_plane_topology: TopologyMode, infra_topology: TopologyMode) -> bool:
    return TopologyMode.SINGLE_REPLICA in (control_plane_topology, infra_topology)
