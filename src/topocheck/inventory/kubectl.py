"""Read-only snapshot collection from a live cluster through kubectl."""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from typing import Any

from topocheck.audit.policy import DEFAULT_NAMESPACE_PREFIX
from topocheck.inventory.snapshot import (
    SNAPSHOT_REASON_KUBECTL_FAILED,
    SNAPSHOT_REASON_PARSE_ERROR,
    ClusterSnapshot,
    SnapshotError,
    snapshot_from_documents,
)

logger = logging.getLogger(__name__)

KubectlRunner = Callable[[list[str]], subprocess.CompletedProcess]

# Each query is a plain `get`; nothing here mutates cluster state.
QUERIES: dict[str, list[str]] = {
    "infrastructure": ["get", "infrastructures.config.openshift.io", "cluster", "-o", "json"],
    "namespaces": ["get", "namespaces", "-o", "json"],
    "deployments": ["get", "deployments", "--all-namespaces", "-o", "json"],
    "statefulsets": ["get", "statefulsets", "--all-namespaces", "-o", "json"],
}


def run_kubectl(cmd: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


def fetch_document(kubectl: str, args: list[str], runner: KubectlRunner = run_kubectl) -> dict[str, Any]:
    """Run one kubectl query and parse its JSON output."""
    cmd = [kubectl, *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = runner(cmd)
    except FileNotFoundError as exc:
        raise SnapshotError(f"kubectl binary not found: {kubectl}", SNAPSHOT_REASON_KUBECTL_FAILED) from exc

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise SnapshotError(
            f"`{' '.join(cmd)}` failed with exit code {proc.returncode}: {stderr}",
            SNAPSHOT_REASON_KUBECTL_FAILED,
        )

    try:
        document = json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise SnapshotError(
            f"`{' '.join(cmd)}` returned invalid JSON: {exc}",
            SNAPSHOT_REASON_PARSE_ERROR,
        ) from exc
    if not isinstance(document, dict):
        raise SnapshotError(f"`{' '.join(cmd)}` returned a non-object document", SNAPSHOT_REASON_PARSE_ERROR)
    return document


def collect_documents(kubectl: str = "kubectl", runner: KubectlRunner = run_kubectl) -> dict[str, dict[str, Any]]:
    """Fetch the raw documents a snapshot is built from."""
    return {section: fetch_document(kubectl, args, runner) for section, args in QUERIES.items()}


def collect_snapshot(
    kubectl: str = "kubectl",
    namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX,
    runner: KubectlRunner = run_kubectl,
) -> ClusterSnapshot:
    """Collect a point-in-time snapshot from the current kubeconfig context."""
    documents = collect_documents(kubectl, runner)
    return snapshot_from_documents(namespace_prefix=namespace_prefix, **documents)
