"""topocheck CLI - single-replica topology compliance audit."""

import json
import logging
import os
from pathlib import Path

import typer
import yaml  # type: ignore[import-untyped]
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from topocheck import __version__
from topocheck.artifacts.canonical_json import canonical_dumps
from topocheck.audit import (
    AuditDriver,
    Classifier,
    PolicyError,
    TopologyPolicy,
    audit_result_to_dict,
    default_policy,
    load_policy,
    write_audit_artifacts,
    write_default_policy,
)
from topocheck.audit.expectation import is_subject_to_single_replica_rule
from topocheck.audit.policy import policy_to_dict
from topocheck.audit.reporting import TIMESTAMP_MODES
from topocheck.audit.types import AuditStatus, TopologyMode, WorkloadKind, WorkloadRef
from topocheck.inventory import SnapshotError, collect_snapshot, load_snapshot, snapshot_to_document

POLICY_ENV = "TOPOCHECK_POLICY"
NAMESPACE_PREFIX_ENV = "TOPOCHECK_NAMESPACE_PREFIX"
DEFAULT_POLICY_PATH = Path(".topocheck/policy.yaml")

EXIT_ERROR = 1
EXIT_VIOLATIONS = 2

cli = typer.Typer(
    name="topocheck",
    help="topocheck - single-replica topology compliance audit",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

policy_app = typer.Typer(
    name="policy",
    help="Manage the classification and allow-list policy document",
    no_args_is_help=True,
)
cli.add_typer(policy_app, name="policy")


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@cli.callback()
def _cli_callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show topocheck version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log per-workload decisions to stderr.",
    ),
) -> None:
    """Configure logging for every invocation."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _resolve_policy(policy_path: Path | None) -> TopologyPolicy:
    """Explicit path wins, then $TOPOCHECK_POLICY, then the built-in policy."""
    if policy_path is None:
        env_path = os.environ.get(POLICY_ENV)
        if env_path:
            policy_path = Path(env_path)
    if policy_path is None:
        return default_policy()
    return load_policy(policy_path)


def _resolve_namespace_prefix(namespace_prefix: str | None, policy: TopologyPolicy) -> str:
    return namespace_prefix or os.environ.get(NAMESPACE_PREFIX_ENV) or policy.namespace_prefix


@cli.command()
def audit(
    snapshot: Path = typer.Option(
        ...,
        "--snapshot",
        help="Cluster snapshot bundle (YAML or JSON) written by `topocheck collect`",
    ),
    policy_path: Path | None = typer.Option(
        None,
        "--policy",
        help=f"Policy YAML (default ${POLICY_ENV}, else built-in policy)",
    ),
    namespace_prefix: str | None = typer.Option(
        None,
        "--namespace-prefix",
        help=f"Platform namespace prefix (default ${NAMESPACE_PREFIX_ENV}, else policy value)",
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        help="Directory for AUDIT_REPORT.json and AUDIT_REPORT.md",
    ),
    timestamp_mode: str = typer.Option(
        "deterministic",
        "--timestamp-mode",
        help="Timestamp mode: deterministic or wallclock",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        min=1,
        help="Evaluate workloads across N threads",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the JSON report to stdout instead of the summary",
    ),
) -> None:
    """Audit a cluster snapshot for single-replica compliance."""
    try:
        if timestamp_mode not in TIMESTAMP_MODES:
            raise ValueError(f"--timestamp-mode must be one of {TIMESTAMP_MODES}, got `{timestamp_mode}`")
        policy = _resolve_policy(policy_path)
        cluster = load_snapshot(snapshot, _resolve_namespace_prefix(namespace_prefix, policy))
        result = AuditDriver(policy, max_workers=workers).run(
            cluster.workloads,
            cluster.control_plane_topology,
            cluster.infra_topology,
        )
        written = write_audit_artifacts(result, out, timestamp_mode) if out is not None else None
    except (PolicyError, SnapshotError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(EXIT_ERROR) from exc

    if as_json:
        typer.echo(json.dumps(audit_result_to_dict(result, timestamp_mode), indent=2, sort_keys=True))
    else:
        console.print(
            f"[cyan]Topology:[/cyan] controlPlane={result.control_plane_topology.value} "
            f"infrastructure={result.infra_topology.value}"
        )
        if result.status is AuditStatus.SKIPPED:
            console.print("[yellow]SKIPPED: audit only applies to SingleReplica topologies[/yellow]")
        elif result.status is AuditStatus.PASSED:
            console.print(f"[green]✓ Audit passed ({result.evaluated} workloads)[/green]")
        else:
            console.print(f"[red]✗ Audit failed ({len(result.violations)} violations)[/red]")
            for verdict in result.violations:
                console.print(f"[red]  - {verdict.reason_code}: {verdict.reason}[/red]")
        for verdict in result.warnings:
            console.print(f"[yellow]  ! {verdict.reason}[/yellow]")
        if written is not None:
            console.print(f"[cyan]JSON:[/cyan] {written[0]}")
            console.print(f"[cyan]Markdown:[/cyan] {written[1]}")

    if result.status is AuditStatus.FAILED:
        raise typer.Exit(EXIT_VIOLATIONS)


@cli.command()
def collect(
    out: Path = typer.Option(
        ...,
        "--out",
        help="Where to write the snapshot bundle (.yaml or .json)",
    ),
    kubectl: str = typer.Option(
        "kubectl",
        "--kubectl",
        help="kubectl binary to run (uses the current kubeconfig context)",
    ),
    policy_path: Path | None = typer.Option(
        None,
        "--policy",
        help="Policy YAML providing the namespace prefix",
    ),
    namespace_prefix: str | None = typer.Option(
        None,
        "--namespace-prefix",
        help="Platform namespace prefix",
    ),
) -> None:
    """Collect a read-only cluster snapshot via kubectl."""
    try:
        policy = _resolve_policy(policy_path)
        cluster = collect_snapshot(kubectl, _resolve_namespace_prefix(namespace_prefix, policy))
    except (PolicyError, SnapshotError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(EXIT_ERROR) from exc

    document = snapshot_to_document(cluster)
    out.parent.mkdir(parents=True, exist_ok=True)
    if out.suffix == ".json":
        out.write_text(canonical_dumps(document), encoding="utf-8")
    else:
        out.write_text(yaml.safe_dump(document, sort_keys=True), encoding="utf-8")

    console.print(f"[green]✓ Snapshot written ({len(cluster.workloads)} workloads)[/green]")
    console.print(f"[cyan]Path:[/cyan] {out}")


@cli.command()
def classify(
    namespace: str = typer.Argument(..., help="Workload namespace"),
    name: str = typer.Argument(..., help="Workload name"),
    kind: WorkloadKind = typer.Option(
        WorkloadKind.DEPLOYMENT,
        "--kind",
        help="Workload kind",
    ),
    policy_path: Path | None = typer.Option(
        None,
        "--policy",
        help="Policy YAML (default built-in policy)",
    ),
) -> None:
    """Explain how the policy treats one workload."""
    try:
        policy = _resolve_policy(policy_path)
    except PolicyError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(EXIT_ERROR) from exc

    classifier = Classifier(policy)
    ref = WorkloadRef(name=name, namespace=namespace, kind=kind, declared_replicas=None)
    classification = classifier.classify(ref)

    table = Table(title=str(ref))
    table.add_column("control plane topology")
    table.add_column("infrastructure topology")
    table.add_column("subject to rule")
    for control_plane in (TopologyMode.SINGLE_REPLICA, TopologyMode.HIGHLY_AVAILABLE):
        for infra in (TopologyMode.SINGLE_REPLICA, TopologyMode.HIGHLY_AVAILABLE):
            subject = is_subject_to_single_replica_rule(classification, control_plane, infra)
            table.add_row(control_plane.value, infra.value, "yes" if subject else "no")

    typer.echo(f"classification: {classification.value}")
    typer.echo(f"allowed_to_fail: {str(classifier.is_allowed_to_fail(ref)).lower()}")
    console.print(table)


@policy_app.command(name="init")
def policy_init(
    path: Path = typer.Option(
        DEFAULT_POLICY_PATH,
        "--path",
        help="Where to write the policy YAML",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing policy file",
    ),
) -> None:
    """Write the built-in policy as an editable YAML document."""
    try:
        created = write_default_policy(path, force=force)
    except FileExistsError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        console.print("[yellow]Use --force to overwrite.[/yellow]")
        raise typer.Exit(EXIT_ERROR) from exc

    console.print("[green]✓ Policy initialized[/green]")
    console.print(f"[cyan]Path:[/cyan] {created}")


@policy_app.command(name="show")
def policy_show(
    path: Path | None = typer.Option(
        None,
        "--path",
        help="Policy YAML to validate and print (default built-in policy)",
    ),
) -> None:
    """Validate a policy document and print its normalized form."""
    try:
        policy = _resolve_policy(path)
    except PolicyError as exc:
        console.print(f"[bold red]Error:[/bold red] ({exc.reason_code}) {exc}")
        raise typer.Exit(EXIT_ERROR) from exc

    typer.echo(json.dumps(policy_to_dict(policy), indent=2, sort_keys=True))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
