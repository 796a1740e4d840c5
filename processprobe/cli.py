"""Command line interface for exploring process structures and test ledgers."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from processprobe import (
    CAPABILITIES,
    IntegrationExecutor,
    ProcessStructureError,
    ResourceTracker,
    build_scenarios,
    convert_process_structure,
    discover_paths,
    get_capability,
    get_client,
    load_config,
    load_process_structure,
    validate_process_structure,
)
from processprobe.cleanup import CleanupService, LoggingObserver
from processprobe.cli_utils.files import _read_document, _read_ledger, _write_ledger
from processprobe.errors import CapabilityError

app = typer.Typer(help="CLI for processprobe workflow testing")

# Command groups
paths_app = typer.Typer(help="Commands for discovering scenario paths")
workflow_app = typer.Typer(help="Commands for converting process structures")
capabilities_app = typer.Typer(help="Commands for inspecting integration capabilities")
ledger_app = typer.Typer(help="Commands for working with saved resource ledgers")

app.add_typer(paths_app, name="paths")
app.add_typer(workflow_app, name="workflow")
app.add_typer(capabilities_app, name="capabilities")
app.add_typer(ledger_app, name="ledger")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """processprobe CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_or_exit(path: Path):
    if not path.exists():
        typer.secho("Specified path does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        return load_process_structure(_read_document(path))
    except ProcessStructureError as exc:
        typer.secho("Invalid process structure:", fg=typer.colors.RED)
        for problem in exc.problems:
            typer.echo(f"  - {problem}")
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@paths_app.command("discover")
def paths_discover(
    path: Path,
    max_paths: Optional[int] = typer.Option(None, help="Stop after this many paths"),
    include_partial: bool = typer.Option(
        False, help="Also record paths that end in a cycle before reaching an exit"
    ),
) -> None:
    """
    List every distinct path through a process structure.

    Prints entry and exit points, then one line per path with its decisions.

    Example:
        processprobe paths discover process.json --max-paths 10
    """
    structure = _load_or_exit(path)
    config = load_config()
    result = discover_paths(
        structure,
        max_paths=max_paths or config.max_paths,
        include_partial_paths=include_partial,
    )
    typer.echo(f"Entry points: {', '.join(result.entry_points)}")
    typer.echo(f"Exit points: {', '.join(result.exit_points)}")
    typer.echo(f"Branches: {result.total_branches}")
    for index, scenario_path in enumerate(result.paths, start=1):
        decisions = ", ".join(f"{d.node_id}={d.condition}" for d in scenario_path.decisions)
        suffix = f"  [{decisions}]" if decisions else ""
        marker = " (partial)" if scenario_path.partial else ""
        typer.echo(f"{index}. {' -> '.join(scenario_path.step_ids)}{marker}{suffix}")
    for warning in result.warnings:
        typer.secho(f"warning: {warning}", fg=typer.colors.YELLOW)
    if result.truncated:
        typer.secho("Path list truncated", fg=typer.colors.YELLOW)


@paths_app.command("scenarios")
def paths_scenarios(path: Path) -> None:
    """Print the scenario catalogue (happy path, branches, failure modes)."""
    structure = _load_or_exit(path)
    scenarios = build_scenarios(structure, discover_paths(structure))
    if not scenarios:
        typer.echo("No scenarios found")
        return
    for scenario in sorted(scenarios, key=lambda s: -s.priority):
        typer.echo(f"{scenario.priority}\t{scenario.scenario_type}\t{scenario.name}")


@workflow_app.command("validate")
def workflow_validate(path: Path) -> None:
    """Check a process structure without converting it."""
    if not path.exists():
        typer.secho("Specified path does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    problems = validate_process_structure(_read_document(path))
    if problems:
        for problem in problems:
            typer.secho(problem, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho("Process structure is valid", fg=typer.colors.GREEN)


@workflow_app.command("convert")
def workflow_convert(
    path: Path,
    process_map_id: str = typer.Option(..., help="Identifier of the process map"),
    org_id: Optional[str] = typer.Option(None, help="Owning organisation"),
    output: Optional[Path] = typer.Option(None, help="Write the workflow JSON here"),
) -> None:
    """
    Convert a process structure into an executable workflow.

    Example:
        processprobe workflow convert process.json --process-map-id onboarding
    """
    structure = _load_or_exit(path)
    org = org_id or load_config().context.org_id
    if not org:
        typer.secho("An org id is required (--org-id or PROCESSPROBE_ORG_ID)", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    workflow = convert_process_structure(structure, process_map_id=process_map_id, org_id=org)
    rendered = workflow.model_dump_json(indent=2)
    if output:
        output.write_text(rendered, encoding="utf-8")
        typer.echo(f"Wrote {len(workflow.steps)} steps to {output}")
    else:
        typer.echo(rendered)


@capabilities_app.command("list")
def capabilities_list() -> None:
    """Show the CRUD support of every integration."""
    for capability in CAPABILITIES.values():
        flags = "".join(
            letter if supported else "-"
            for letter, supported in (
                ("C", capability.supports_create),
                ("R", capability.supports_read),
                ("U", capability.supports_update),
                ("D", capability.supports_delete),
            )
        )
        typer.echo(f"{capability.integration.value}\t{flags}\t{capability.display_name}")


@capabilities_app.command("show")
def capabilities_show(name: str) -> None:
    """Show the full capability record of one integration."""
    try:
        capability = get_capability(name)
    except CapabilityError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(capability.model_dump(mode="json"), indent=2))


def _ledger_or_exit(path: Path) -> ResourceTracker:
    if not path.exists():
        typer.secho("Specified ledger does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        return ResourceTracker.restore(_read_ledger(path))
    except ValueError as exc:
        typer.secho(f"Invalid ledger {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@ledger_app.command("instructions")
def ledger_instructions(path: Path) -> None:
    """Print manual cleanup instructions for a saved ledger."""
    tracker = _ledger_or_exit(path)
    lines = tracker.get_manual_cleanup_instructions()
    if not lines:
        typer.echo("Nothing needs manual cleanup")
        return
    for line in lines:
        typer.echo(line)


@ledger_app.command("cleanup")
def ledger_cleanup(
    path: Path,
    backend: Optional[str] = typer.Option(None, help="Remote backend (simulated or http)"),
) -> None:
    """
    Re-run the cleanup sweep for a saved ledger and save the updated statuses.

    Exits with code 1 when any resource could not be deleted.
    """
    tracker = _ledger_or_exit(path)
    config = load_config()

    async def _sweep():
        async with get_client(backend, config) as client:
            executor = IntegrationExecutor(client, tracker, config.context)
            service = CleanupService(tracker, executor, config.cleanup)
            service.add_observer(LoggingObserver())
            return await service.cleanup_all()

    result = asyncio.run(_sweep())
    _write_ledger(path, tracker.snapshot())
    typer.echo(
        f"Deleted {result.success_count}, failed {result.failed_count}, "
        f"skipped {result.skipped_count} of {result.total_resources}"
    )
    for line in result.manual_cleanup_instructions:
        typer.echo(line)
    if not result.success:
        raise typer.Exit(code=1)
