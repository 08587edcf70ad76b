"""Audit result sink: aggregate errors, JSON payloads, and markdown reports."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from topocheck import __version__
from topocheck.artifacts.canonical_json import write_json
from topocheck.audit.types import AuditResult, AuditStatus, Verdict
from topocheck.schemas.validator import validate_data

if TYPE_CHECKING:
    from pathlib import Path

AUDIT_REPORT_JSON = "AUDIT_REPORT.json"
AUDIT_REPORT_MD = "AUDIT_REPORT.md"
TIMESTAMP_MODES: tuple[str, ...] = ("deterministic", "wallclock")
DETERMINISTIC_TIMESTAMP = "1970-01-01T00:00:00Z"


class ReplicaComplianceError(AssertionError):
    """Raised when an audit finds workloads with the wrong replica count."""

    def __init__(self, result: AuditResult) -> None:
        self.result = result
        lines = [f"{len(result.violations)} workload(s) violate the single-replica topology rule:"]
        lines.extend(f"  - {v.reason}" for v in result.violations)
        super().__init__("\n".join(lines))


def raise_for_violations(result: AuditResult) -> tuple[Verdict, ...]:
    """Fail with every violation listed; otherwise return advisory warnings."""
    if result.status is AuditStatus.FAILED:
        raise ReplicaComplianceError(result)
    return result.warnings


def verdict_to_dict(verdict: Verdict) -> dict[str, Any]:
    ref = verdict.workload
    return {
        "kind": ref.kind.value,
        "namespace": ref.namespace,
        "name": ref.name,
        "replicas": ref.declared_replicas,
        "status": verdict.status.value,
        "reason": verdict.reason,
        "reason_code": verdict.reason_code,
    }


def audit_result_to_dict(result: AuditResult, timestamp_mode: str = "deterministic") -> dict[str, Any]:
    """Convert an audit result to its deterministic JSON payload."""
    if timestamp_mode not in TIMESTAMP_MODES:
        raise ValueError(f"timestamp_mode must be one of {TIMESTAMP_MODES}, got `{timestamp_mode}`")
    generated_at = (
        DETERMINISTIC_TIMESTAMP if timestamp_mode == "deterministic"
        else datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    )
    return {
        "schema_version": "1.0",
        "tool_version": __version__,
        "generated_at": generated_at,
        "timestamp_mode": timestamp_mode,
        "status": result.status.value,
        "topology": {
            "control_plane": result.control_plane_topology.value,
            "infrastructure": result.infra_topology.value,
        },
        "counts": {
            "evaluated": result.evaluated,
            "violations": len(result.violations),
            "warnings": len(result.warnings),
        },
        "violations": [verdict_to_dict(v) for v in result.violations],
        "warnings": [verdict_to_dict(v) for v in result.warnings],
        "verdicts": [verdict_to_dict(v) for v in result.verdicts],
    }


def render_audit_markdown(result: AuditResult) -> str:
    """Render a human-readable audit report."""
    if result.status is AuditStatus.SKIPPED:
        status = "SKIPPED (no single-replica topology)"
    elif result.status is AuditStatus.PASSED:
        status = "PASS ✓"
    else:
        status = f"FAIL ✗ ({len(result.violations)} violations)"

    lines = [
        "# Single-Replica Topology Audit",
        "",
        f"**Status:** {status}",
        f"**Control plane topology:** {result.control_plane_topology.value}",
        f"**Infrastructure topology:** {result.infra_topology.value}",
        f"**Workloads evaluated:** {result.evaluated}",
        "",
        "## Violations",
        "",
    ]

    if result.violations:
        lines.extend(
            [
                "| kind | namespace | name | replicas | reason |",
                "| --- | --- | --- | --- | --- |",
            ]
        )
        for verdict in result.violations:
            ref = verdict.workload
            replicas = "unset" if ref.declared_replicas is None else str(ref.declared_replicas)
            lines.append(f"| {ref.kind.value} | {ref.namespace} | {ref.name} | {replicas} | {verdict.reason} |")
    else:
        lines.append("*(none)*")

    lines.extend(["", "## Advisories", ""])
    if result.warnings:
        lines.extend(f"- {verdict.reason}" for verdict in result.warnings)
    else:
        lines.append("*(none)*")

    return "\n".join(lines) + "\n"


def write_audit_artifacts(
    result: AuditResult,
    out_dir: Path,
    timestamp_mode: str = "deterministic",
) -> tuple[Path, Path]:
    """Write AUDIT_REPORT.json and AUDIT_REPORT.md.

    Raises:
        ValueError: If the JSON payload does not match the bundled report schema
    """
    payload = audit_result_to_dict(result, timestamp_mode)
    validate_data(payload, "audit_report", strict=True)

    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / AUDIT_REPORT_JSON
    md_path = out_dir / AUDIT_REPORT_MD
    write_json(json_path, payload)
    md_path.write_text(render_audit_markdown(result), encoding="utf-8")
    return json_path, md_path
