"""Unit tests for single-replica rule resolution."""

from __future__ import annotations

import pytest

from topocheck.audit.expectation import is_audit_applicable, is_subject_to_single_replica_rule
from topocheck.audit.types import Classification, TopologyMode

SNO = TopologyMode.SINGLE_REPLICA
HA = TopologyMode.HIGHLY_AVAILABLE


@pytest.mark.parametrize(
    ("classification", "control_plane", "infra", "expected"),
    [
        (Classification.CONTROL_PLANE, SNO, SNO, True),
        (Classification.CONTROL_PLANE, SNO, HA, True),
        (Classification.CONTROL_PLANE, HA, SNO, False),
        (Classification.INFRASTRUCTURE, SNO, HA, False),
        (Classification.INFRASTRUCTURE, HA, SNO, True),
        (Classification.INFRASTRUCTURE, SNO, SNO, True),
    ],
)
def test_relevant_topology_follows_classification(classification, control_plane, infra, expected) -> None:
    assert is_subject_to_single_replica_rule(classification, control_plane, infra) is expected


def test_external_control_plane_is_not_single_replica() -> None:
    assert not is_subject_to_single_replica_rule(Classification.CONTROL_PLANE, TopologyMode.EXTERNAL, SNO)


def test_audit_applicable_when_either_dimension_is_single_replica() -> None:
    assert is_audit_applicable(SNO, HA)
    assert is_audit_applicable(HA, SNO)
    assert not is_audit_applicable(HA, HA)
    assert not is_audit_applicable(TopologyMode.EXTERNAL, HA)


@pytest.mark.parametrize(
    "mode",
    [TopologyMode.DUAL_REPLICA, TopologyMode.HIGHLY_AVAILABLE_ARBITER, TopologyMode("Quantum")],
)
def test_other_modes_are_not_single_replica(mode: TopologyMode) -> None:
    assert not is_subject_to_single_replica_rule(Classification.CONTROL_PLANE, mode, SNO)
    assert is_subject_to_single_replica_rule(Classification.INFRASTRUCTURE, mode, SNO)
    assert not is_audit_applicable(mode, mode)


def test_unrecognized_mode_keeps_reported_value() -> None:
    mode = TopologyMode("Quantum")
    assert mode.value == "Quantum"
    assert mode == "Quantum"
    assert mode not in list(TopologyMode)
