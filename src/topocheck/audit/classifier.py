"""Classify platform workloads against the static topology policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from topocheck.audit.types import Classification

if TYPE_CHECKING:
    from topocheck.audit.policy import TopologyPolicy
    from topocheck.audit.types import WorkloadRef


class Classifier:
    """
    Decide which topology dimension governs a workload and whether it is
    allow-listed.

    The classification table is an allow-list of infrastructure workloads:
    anything not named in it is control plane.
    """

    def __init__(self, policy: TopologyPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> TopologyPolicy:
        return self._policy

    def classify(self, ref: WorkloadRef) -> Classification:
        """Return Infrastructure if (namespace, kind) lists the workload, else ControlPlane."""
        infrastructure_names = self._policy.classification.names_for(ref.namespace, ref.kind)
        if ref.name in infrastructure_names:
            return Classification.INFRASTRUCTURE
        return Classification.CONTROL_PLANE

    def is_allowed_to_fail(self, ref: WorkloadRef) -> bool:
        """Exact (namespace, name) match in the allow-list; kind is not part of the key."""
        return self._policy.allow_list.contains(ref.namespace, ref.name)
