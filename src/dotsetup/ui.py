from __future__ import annotations

import os
from collections.abc import Sequence
from itertools import cycle

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from dotsetup.core.types import SelectionCategory, TaskExecutionResult, TaskOption

console = Console()

NEON_LINES: list[str] = [
    "██████╗  ██████╗ ████████╗███████╗███████╗████████╗██╗   ██╗██████╗ ",
    "██╔══██╗██╔═══██╗╚══██╔══╝██╔════╝██╔════╝╚══██╔══╝██║   ██║██╔══██╗",
    "██║  ██║██║   ██║   ██║   ███████╗█████╗     ██║   ██║   ██║██████╔╝",
    "██║  ██║██║   ██║   ██║   ╚════██║██╔══╝     ██║   ██║   ██║██╔═══╝ ",
    "██████╔╝╚██████╔╝   ██║   ███████║███████╗   ██║   ╚██████╔╝██║     ",
    "╚═════╝  ╚═════╝    ╚═╝   ╚══════╝╚══════╝   ╚═╝    ╚═════╝ ╚═╝     ",
]

THEMES: dict[str, list[str]] = {
    "mintwave": [
        "bright_cyan",
        "cyan",
        "bright_blue",
        "blue",
        "bright_green",
        "green",
    ],
    "cyberpunk": [
        "bright_magenta",
        "magenta",
        "bright_cyan",
        "cyan",
        "bright_yellow",
        "yellow",
    ],
    "magma": [
        "bright_red",
        "red",
        "bright_yellow",
        "yellow",
        "bright_magenta",
        "magenta",
    ],
}

ICONS = {
    "done": "✔",
    "failed": "✖",
    "pending": "○",
    "selected": "●",
    "warning": "⚠",
}


def neon_enabled() -> bool:
    return os.getenv("DOTSETUP_NEON", "1") == "1"


def get_theme_name() -> str:
    return os.getenv("DOTSETUP_THEME", "mintwave")


def get_theme_palette(theme: str | None = None) -> list[str]:
    name = theme or get_theme_name()
    return THEMES.get(name, THEMES["mintwave"])


def render_banner(theme: str | None = None, *, out: Console | None = None) -> None:
    if not neon_enabled():
        return
    out = out or console

    colors = cycle(get_theme_palette(theme))
    for line in NEON_LINES:
        t = Text()
        for ch in line:
            t.append(ch, style=f"bold {next(colors)}")
        out.print(t)

    out.print()
    out.print(Text("WORKSTATION PROVISIONING", style="bold bright_white on magenta"))
    out.print(Text("CHECK. SELECT. CONFIRM. INSTALL.", style="bold bright_cyan on blue"))
    out.print(Text(f"Theme: {theme or get_theme_name()}  Toggle: DOTSETUP_NEON=0", style="dim"))
    out.print()


def render_task_options(options: Sequence[TaskOption], *, out: Console | None = None) -> None:
    out = out or console
    table = Table(title="Tasks to Run", show_lines=False, title_justify="left")
    table.add_column("#", justify="right", style="bright_cyan")
    table.add_column("", width=1)
    table.add_column("Task", style="bold")
    table.add_column("Description", style="dim")
    for index, option in enumerate(options, start=1):
        mark = ICONS["selected"] if option.selected_by_default else ICONS["pending"]
        label = escape(option.label)
        if option.badge:
            label = f"{label} [black on yellow] {escape(option.badge)} [/black on yellow]"
        table.add_row(str(index), mark, label, escape(option.description))
    out.print(table)


def render_plan(
    categories: Sequence[SelectionCategory],
    warnings: Sequence[str],
    *,
    out: Console | None = None,
) -> None:
    """Consolidated plan: numbered pending items per task, then warnings."""
    out = out or console
    if warnings:
        out.print(f"[bold yellow]{ICONS['warning']} Warnings[/bold yellow]")
        for warning in warnings:
            out.print(f"  [yellow]• {escape(warning)}[/yellow]")
        out.print()

    number = 1
    for category in categories:
        out.print(f"[bold magenta]▸ {escape(category.title)}[/bold magenta] ({len(category.items)})")
        for item in category.items:
            out.print(f"  [bright_cyan]{number:>3}[/bright_cyan] {escape(item)}")
            number += 1
        out.print()


def render_summary(results: Sequence[TaskExecutionResult], *, out: Console | None = None) -> None:
    out = out or console
    completed = sum(1 for r in results if r.ok)
    failed = len(results) - completed

    table = Table(title="Setup Summary", title_justify="left")
    table.add_column("Task", style="bold")
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for result in results:
        if result.ok:
            status = f"[green]{ICONS['done']} completed[/green]"
        else:
            status = f"[red]{ICONS['failed']} failed[/red]"
        table.add_row(escape(result.name), status, escape(result.error or ""))
    out.print(table)

    style = "bold green" if failed == 0 else "bold red"
    out.print(Text(f"{completed} completed, {failed} failed", style=style))
