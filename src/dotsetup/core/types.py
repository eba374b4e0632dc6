"""Value types exchanged between tasks, the runner and the interactive layer."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Literal

ExecutionStatus = Literal["completed", "failed"]

# task id -> approved subset of that task's pending items
ItemSelection = Mapping[str, frozenset[str]]


@dataclass(frozen=True)
class TaskCheckResult:
    """Read-only report produced by a task's check phase."""

    up_to_date: tuple[str, ...] = ()
    to_install: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.up_to_date) & set(self.to_install)
        if overlap:
            raise ValueError(f"items reported both up to date and pending: {sorted(overlap)}")

    @property
    def has_pending(self) -> bool:
        return bool(self.to_install)


@dataclass(frozen=True)
class TaskExecutionResult:
    """Terminal status of one executed task."""

    task_id: str
    name: str
    status: ExecutionStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True)
class TaskOption:
    """One row of the task selection screen."""

    id: str
    label: str
    description: str = ""
    selected_by_default: bool = True
    badge: str | None = None


@dataclass(frozen=True)
class SelectionCategory:
    """Pending items of one task, offered for item-level selection."""

    key: str
    title: str
    items: tuple[str, ...]


@dataclass(frozen=True)
class TaskSelectionResult:
    confirmed: bool
    selected_task_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemSelectionResult:
    confirmed: bool
    selected_by_category: dict[str, frozenset[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenPromptResult:
    confirmed: bool
    token: str = ""


@dataclass(frozen=True)
class ExecutionStep:
    """A named unit handed to the animated runner.

    ``run`` never raises; it reports the outcome as a TaskExecutionResult.
    """

    task_id: str
    name: str
    run: Callable[[], TaskExecutionResult]
