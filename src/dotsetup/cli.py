"""dotsetup CLI - provision a workstation from a dotfiles checkout."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.logging import RichHandler
from rich.markup import escape

from dotsetup import __version__
from dotsetup.config import SetupConfig, load_config
from dotsetup.core.context import ExecutionContext
from dotsetup.core.errors import ConfigError, UnsupportedPlatformError
from dotsetup.core.lists import lint_lists
from dotsetup.core.logger import ConsoleLogger
from dotsetup.core.task import Task, TokenConsumer
from dotsetup.interactive import ConsoleInteraction
from dotsetup.orchestrator import SetupRunner
from dotsetup.tasks import default_tasks
from dotsetup.ui import console, render_banner, render_plan

cli = typer.Typer(
    name="dotsetup",
    help="dotsetup - check, select and apply workstation setup tasks",
    no_args_is_help=True,
)

ROOT_OPTION = typer.Option(None, "--root", help="Dotfiles checkout root (default: current directory).")
LISTS_OPTION = typer.Option(None, "--lists-dir", help="Directory holding apps.list and snap-apps.list.")
TASK_OPTION = typer.Option(None, "--task", "-t", help="Task id to run (repeatable); skips the task screen.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks.")


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
        help="Show dotsetup version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """Workstation provisioning: system packages, snaps, GNOME settings, dotfiles, GitHub clones."""
    _ = version


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


def _load_config_or_exit(root: Path | None, lists_dir: Path | None) -> SetupConfig:
    try:
        return load_config(root, lists_dir=lists_dir)
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(2) from exc


def _select_tasks_or_exit(task_ids: list[str] | None) -> list[Task]:
    tasks = default_tasks()
    if task_ids:
        known = {t.task_id for t in tasks}
        unknown = [t for t in task_ids if t not in known]
        if unknown:
            console.print(f"[bold red]Unknown task id(s):[/bold red] {', '.join(unknown)}")
            console.print("Try: dotsetup tasks")
            raise typer.Exit(2)
    return tasks


def _initialize_or_exit(
    config: SetupConfig,
    interaction: ConsoleInteraction,
    *,
    check_sudo: bool = True,
) -> ExecutionContext:
    logger = ConsoleLogger(console)
    try:
        context = ExecutionContext.initialize(
            config,
            logger=logger,
            confirm=interaction.confirm,
            check_sudo=check_sudo,
        )
    except UnsupportedPlatformError as exc:
        logger.error(f"Initialization failed: {exc}")
        raise typer.Exit(1) from exc
    logger.success("Context initialized successfully.")
    return context


@cli.command(name="run")
def run_cmd(
    root: Path | None = ROOT_OPTION,
    lists_dir: Path | None = LISTS_OPTION,
    task: list[str] | None = TASK_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept all pending items and skip confirmation."),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check, select, confirm and run setup tasks."""
    _configure_logging(verbose)
    render_banner()

    config = _load_config_or_exit(root, lists_dir)
    tasks = _select_tasks_or_exit(task)
    interaction = ConsoleInteraction(console, assume_yes=yes, preselected=task or None)
    context = _initialize_or_exit(config, interaction)

    outcome = SetupRunner(context, tasks, interaction).run()
    if outcome.status == "aborted":
        raise typer.Exit(0)
    if outcome.failed:
        raise typer.Exit(1)
    context.logger.success("All tasks completed.")


@cli.command(name="plan")
def plan_cmd(
    root: Path | None = ROOT_OPTION,
    lists_dir: Path | None = LISTS_OPTION,
    task: list[str] | None = TASK_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show what run would do, without changing anything.

    The GitHub task only plans when GITHUB_TOKEN is set.
    """
    _configure_logging(verbose)
    config = _load_config_or_exit(root, lists_dir)
    tasks = _select_tasks_or_exit(task)
    if task:
        tasks = [t for t in tasks if t.task_id in set(task)]
    interaction = ConsoleInteraction(console)
    context = _initialize_or_exit(config, interaction, check_sudo=False)

    runner = SetupRunner(context, tasks, interaction)
    for t in tasks:
        if config.github_token and isinstance(t, TokenConsumer):
            t.set_auth_token(config.github_token)
    report = runner.pre_check(tasks)
    if not report.has_pending:
        console.print("[bold green]Everything is up to date.[/bold green]")
    render_plan(report.categories, report.warnings, out=console)


@cli.command(name="lint")
def lint_cmd(
    root: Path | None = ROOT_OPTION,
    lists_dir: Path | None = LISTS_OPTION,
) -> None:
    """Check apps.list and snap-apps.list for duplicates and shared entries.

    Duplicates inside a list exit 1; names present in both lists are only
    reported.
    """
    config = _load_config_or_exit(root, lists_dir)
    report = lint_lists(config.apps_list, config.snap_list)

    for path in report.missing:
        console.print(f"[yellow]{escape(str(path))} not found.[/yellow]")
    for name, duplicates in report.duplicates.items():
        if duplicates:
            console.print(f"[bold red]Duplicate entries in {name}:[/bold red]")
            for entry in duplicates:
                console.print(f"  - {escape(entry)}")
        else:
            console.print(f"[green]No duplicates in {name}.[/green]")
    if report.overlaps:
        console.print("[bold yellow]Listed in both files:[/bold yellow]")
        for entry in report.overlaps:
            console.print(f"  - {escape(entry)}")

    if report.has_errors:
        raise typer.Exit(1)


@cli.command(name="tasks")
def tasks_cmd() -> None:
    """List available task ids."""
    for t in default_tasks():
        badge = f" [yellow]({t.badge})[/yellow]" if t.badge else ""
        console.print(f"[bold]{t.task_id}[/bold]  {t.name}{badge}")
        console.print(f"    [dim]{t.description}[/dim]")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
