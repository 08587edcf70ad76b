"""Inventory and topology feeds for the audit engine."""

from topocheck.inventory.kubectl import collect_snapshot
from topocheck.inventory.snapshot import (
    ClusterSnapshot,
    SnapshotError,
    load_snapshot,
    snapshot_from_documents,
    snapshot_to_document,
)

__all__ = [
    "ClusterSnapshot",
    "SnapshotError",
    "collect_snapshot",
    "load_snapshot",
    "snapshot_from_documents",
    "snapshot_to_document",
]
