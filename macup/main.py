"""
macup — CLI entrypoint.

Usage:
    macup --help
    macup plan
    macup diff
    macup apply [SECTION...] --dry-run
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from macup import __version__
from macup.core.observability.logging_config import setup_logging

_STATUS_COLORS = {
    "succeeded": "green",
    "succeeded_with_skips": "green",
    "skipped": "white",
    "pending": "cyan",
    "failed": "red",
    "not_run": "yellow",
}


@click.group()
@click.version_option(version=__version__, prog_name="macup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to macup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """macup — provision this machine from macup.yml."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("MACUP_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("MACUP_LOG_FILE"),
        log_file_level=os.environ.get("MACUP_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.argument("sections", nargs=-1)
@click.option("--dry-run", is_flag=True, help="Show what would be installed, install nothing.")
@click.option(
    "--fail-fast/--no-fail-fast",
    default=None,
    help="Stop at the first failure (default: settings.fail_fast).",
)
@click.option(
    "--max-parallel",
    type=click.IntRange(min=1),
    default=None,
    help="Concurrent installs per section (default: settings.max_parallel).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def apply(
    ctx: click.Context,
    sections: tuple[str, ...],
    dry_run: bool,
    fail_fast: bool | None,
    max_parallel: int | None,
    as_json: bool,
) -> None:
    """Install everything declared that is not yet installed.

    Examples:

        macup apply

        macup apply brew casks --fail-fast

        macup apply --dry-run
    """
    from macup.core.models.task import OutcomeStatus
    from macup.core.use_cases.apply import run_apply

    result = run_apply(
        config_path=ctx.obj.get("config_path"),
        sections=list(sections) or None,
        dry_run=dry_run,
        fail_fast=fail_fast,
        max_parallel=max_parallel,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None
    quiet = ctx.obj.get("quiet", False)

    mode_label = "[dry-run] " if dry_run else ""
    if not quiet:
        click.secho(f"\n⚡ {mode_label}macup apply", fg="cyan", bold=True)
        click.echo()

    for section in report.sections:
        color = _STATUS_COLORS.get(section.status.value, "white")
        click.secho(f"   {section.section} ", fg=color, bold=True, nl=False)
        click.echo(f"[{section.backend}] {section.status.value}")

        if section.error:
            for line in section.error.split("\n")[:5]:
                click.echo(f"     │ {line}")

        pre = section.prerequisite
        if pre is not None:
            marker = "✗" if pre.failed else "✓" if pre.ok else "⊘"
            click.echo(f"     {marker} runtime {pre.task.item} via {pre.task.backend}")

        for outcome in section.outcomes:
            if outcome.status == OutcomeStatus.SUCCEEDED:
                timing = f" ({outcome.duration_ms}ms)" if outcome.duration_ms else ""
                click.secho(f"     ✓ {outcome.task.item}", fg="green", nl=False)
                click.echo(timing)
            elif outcome.failed and not outcome.required:
                click.secho(f"     ⚠ {outcome.task.item} (optional)", fg="yellow")
                for line in outcome.reason.split("\n")[:5]:
                    click.echo(f"       │ {line}")
            elif outcome.status == OutcomeStatus.FAILED:
                click.secho(f"     ✗ {outcome.task.item}", fg="red")
                for line in outcome.reason.split("\n")[:5]:
                    click.echo(f"       │ {line}")
            elif outcome.status == OutcomeStatus.SKIPPED:
                if ctx.obj.get("verbose"):
                    click.echo(f"     · {outcome.task.item} (already installed)")
            else:
                click.secho(f"     ⊘ {outcome.task.item} ", fg="yellow", nl=False)
                click.echo(f"({outcome.reason})")

    # Summary
    click.echo()
    status = report.status.value
    if report.dry_run:
        done = f"{sum(s.pending for s in report.sections)} would be installed"
    else:
        done = f"{report.count(OutcomeStatus.SUCCEEDED)} installed"
    warnings = f", {len(report.warnings())} warning(s)" if report.warnings() else ""
    click.secho(
        f"   Result: {status} — {done}, "
        f"{report.count(OutcomeStatus.SKIPPED)} already present, "
        f"{len(report.failures())} failure(s){warnings}",
        fg=_STATUS_COLORS.get(status, "white"),
        bold=True,
    )
    if report.halted:
        click.secho("   Halted early (fail_fast)", fg="yellow")
    click.echo()

    sys.exit(report.status.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def diff(ctx: click.Context, as_json: bool) -> None:
    """Show installed and missing items per section."""
    from macup.core.use_cases.diff import run_diff

    result = run_diff(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.error is None else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho("\n🔍 Diff", fg="cyan", bold=True)
    click.echo()

    for d in result.diffs:
        click.secho(f"   {d.section} ", bold=True, nl=False)
        click.echo(f"[{d.backend}]")
        if d.error:
            click.secho(f"     ❌ {d.error}", fg="red")
        for item in d.installed:
            click.secho(f"     ✓ {item}", fg="green")
        for item in d.missing:
            click.secho(f"     + {item}", fg="yellow")

    click.echo()
    if result.in_sync:
        click.secho("   ✅ Everything is installed", fg="green", bold=True)
    else:
        click.secho(f"   {result.missing_total} item(s) missing", fg="yellow", bold=True)
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show the order sections would run in."""
    from macup.core.use_cases.plan import run_plan

    result = run_plan(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.error is None else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.settings is not None
    click.secho("\n📋 Execution plan", fg="cyan", bold=True)
    click.echo(
        f"   fail_fast: {result.settings.fail_fast} | "
        f"max_parallel: {result.settings.max_parallel}"
    )
    click.echo()

    for index, section in enumerate(result.sections, start=1):
        deps = f"  ← {', '.join(section.depends_on)}" if section.depends_on else ""
        click.echo(f"   {index}. {section.name} [{section.backend}] {len(section.items)} item(s){deps}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def backends(as_json: bool) -> None:
    """Show which package managers are available."""
    from macup.adapters.registry import default_registry

    status = default_registry().backend_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    click.secho("\n🔌 Backends", fg="cyan", bold=True)
    click.echo()
    for name, info in status.items():
        if info["available"]:
            click.secho(f"   ✓ {name}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {name}", fg="red", nl=False)
        runtime = f"  ({info['runtime']})" if info["runtime"] else ""
        bootstrap = (
            f"  installable via {info['bootstrap']}"
            if info["bootstrap"] and not info["available"]
            else ""
        )
        click.echo(f"{runtime}{bootstrap}")
    click.echo()


if __name__ == "__main__":
    cli()
