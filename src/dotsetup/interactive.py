"""Interactive boundary between the runner and the terminal.

The runner only talks to :class:`Interaction`. :class:`ConsoleInteraction`
implements it with rich prompts, a spinner per executing task and a summary
table.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Confirm, Prompt

from dotsetup import ui
from dotsetup.core.types import (
    ExecutionStep,
    ItemSelectionResult,
    SelectionCategory,
    TaskExecutionResult,
    TaskOption,
    TaskSelectionResult,
    TokenPromptResult,
)

CANCEL_WORDS = frozenset({"q", "quit", "cancel"})
_RANGE_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


class Interaction(ABC):
    """Everything the runner needs from the user and the screen."""

    @abstractmethod
    def select_tasks(self, options: Sequence[TaskOption]) -> TaskSelectionResult: ...

    @abstractmethod
    def prompt_token(self) -> TokenPromptResult: ...

    @abstractmethod
    def select_items(
        self,
        categories: Sequence[SelectionCategory],
        warnings: Sequence[str],
    ) -> ItemSelectionResult: ...

    @abstractmethod
    def confirm(self, message: str) -> bool: ...

    @abstractmethod
    def run_steps(self, steps: Sequence[ExecutionStep]) -> list[TaskExecutionResult]:
        """Run steps strictly in order and return their results in the same order."""

    @abstractmethod
    def show_summary(self, results: Sequence[TaskExecutionResult]) -> None: ...


def parse_index_selection(text: str, count: int) -> set[int] | None:
    """Parse ``"1,3-5"`` style input into zero-based indexes.

    ``all`` selects everything, ``none`` nothing. Returns None when the input
    is malformed or out of range.
    """
    text = text.strip().lower()
    if text in ("", "all", "*"):
        return set(range(count))
    if text == "none":
        return set()
    chosen: set[int] = set()
    for part in re.split(r"[,\s]+", text):
        if not part:
            continue
        match = _RANGE_RE.match(part)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
        elif part.isdigit():
            start = end = int(part)
        else:
            return None
        if start < 1 or end > count or start > end:
            return None
        chosen.update(range(start - 1, end))
    return chosen


def resolve_task_tokens(text: str, options: Sequence[TaskOption]) -> list[str] | None:
    """Map user input (numbers, ranges or task ids) to task ids in option order."""
    ids = [o.id for o in options]
    text = text.strip()
    if not text:
        return [o.id for o in options if o.selected_by_default]
    wanted: set[str] = set()
    numeric: list[str] = []
    for part in re.split(r"[,\s]+", text):
        if not part:
            continue
        if part in ids:
            wanted.add(part)
        else:
            numeric.append(part)
    if numeric:
        indexes = parse_index_selection(",".join(numeric), len(ids))
        if indexes is None:
            return None
        wanted.update(ids[i] for i in indexes)
    return [task_id for task_id in ids if task_id in wanted]


class ConsoleInteraction(Interaction):
    """Prompt-based interaction on a rich console.

    ``preselected`` skips the task screen; ``assume_yes`` accepts every
    pending item and the final confirmation without asking.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        assume_yes: bool = False,
        preselected: Sequence[str] | None = None,
    ):
        self.console = console or ui.console
        self.assume_yes = assume_yes
        self.preselected = tuple(preselected) if preselected else None

    def select_tasks(self, options: Sequence[TaskOption]) -> TaskSelectionResult:
        if not options:
            return TaskSelectionResult(confirmed=False)
        if self.preselected is not None:
            wanted = set(self.preselected)
            return TaskSelectionResult(
                confirmed=True,
                selected_task_ids=tuple(o.id for o in options if o.id in wanted),
            )

        ui.render_task_options(options, out=self.console)
        while True:
            answer = Prompt.ask(
                "Tasks to run [dim](numbers or ids, Enter = marked, q = cancel)[/dim]",
                console=self.console,
                default="",
                show_default=False,
            )
            if answer.strip().lower() in CANCEL_WORDS:
                return TaskSelectionResult(confirmed=False)
            selected = resolve_task_tokens(answer, options)
            if selected is not None:
                return TaskSelectionResult(confirmed=True, selected_task_ids=tuple(selected))
            self.console.print("[red]Unrecognised selection, try again.[/red]")

    def prompt_token(self) -> TokenPromptResult:
        self.console.print("[bold]GitHub Token Input[/bold]")
        self.console.print("[dim]A personal access token with repo read access is enough. "
                           "It is used only for this session.[/dim]")
        token = Prompt.ask("Token (empty = skip)", console=self.console, password=True, default="", show_default=False)
        token = token.strip()
        if not token:
            return TokenPromptResult(confirmed=False)
        return TokenPromptResult(confirmed=True, token=token)

    def select_items(
        self,
        categories: Sequence[SelectionCategory],
        warnings: Sequence[str],
    ) -> ItemSelectionResult:
        shown = [c for c in categories if c.items]
        if not shown:
            return ItemSelectionResult(confirmed=False)

        flat = [(c.key, item) for c in shown for item in c.items]
        ui.render_plan(shown, warnings, out=self.console)
        if self.assume_yes:
            return ItemSelectionResult(confirmed=True, selected_by_category=_group(shown, flat, set(range(len(flat)))))

        while True:
            answer = Prompt.ask(
                "Items to install [dim](e.g. 1,3-5; Enter = all; none; q = cancel)[/dim]",
                console=self.console,
                default="",
                show_default=False,
            )
            if answer.strip().lower() in CANCEL_WORDS:
                return ItemSelectionResult(confirmed=False)
            indexes = parse_index_selection(answer, len(flat))
            if indexes is not None:
                return ItemSelectionResult(confirmed=True, selected_by_category=_group(shown, flat, indexes))
            self.console.print("[red]Unrecognised selection, try again.[/red]")

    def confirm(self, message: str) -> bool:
        if self.assume_yes:
            return True
        return Confirm.ask(message, console=self.console, default=False)

    def run_steps(self, steps: Sequence[ExecutionStep]) -> list[TaskExecutionResult]:
        results: list[TaskExecutionResult] = []
        if not ui.neon_enabled():
            for step in steps:
                self.console.print(f"Running: {step.name}")
                results.append(step.run())
            return results

        with Progress(
            SpinnerColumn(style="bright_magenta"),
            TextColumn("[bold bright_cyan]{task.description}[/bold bright_cyan]"),
            TimeElapsedColumn(),
            console=self.console,
            refresh_per_second=12,
        ) as progress:
            for step in steps:
                progress_id = progress.add_task(step.name, total=1)
                result = step.run()
                icon = ui.ICONS["done"] if result.ok else ui.ICONS["failed"]
                progress.update(progress_id, completed=1, description=f"{icon} {step.name}")
                results.append(result)
        return results

    def show_summary(self, results: Sequence[TaskExecutionResult]) -> None:
        ui.render_summary(results, out=self.console)


def _group(
    categories: Sequence[SelectionCategory],
    flat: Sequence[tuple[str, str]],
    indexes: set[int],
) -> dict[str, frozenset[str]]:
    grouped: dict[str, set[str]] = {c.key: set() for c in categories}
    for index in indexes:
        key, item = flat[index]
        grouped[key].add(item)
    return {key: frozenset(items) for key, items in grouped.items()}
