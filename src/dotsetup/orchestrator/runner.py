"""Sequential setup pipeline.

    TaskSelect -> PreCheck -> PlanSelect (only with pending items) -> Confirm -> Execute -> Summary

Context initialisation happens before the runner is built. Every ``check``
and ``execute`` runs on the calling thread, one task at a time, in selection
order. The runner is the only place where task exceptions are turned into
recorded outcomes; errors never propagate from one task to another.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from dotsetup.core.context import ExecutionContext
from dotsetup.core.task import EmptyPlan, SelectablePlan, Task, TaskPlan, TokenConsumer
from dotsetup.core.types import (
    ExecutionStep,
    SelectionCategory,
    TaskCheckResult,
    TaskExecutionResult,
    TaskOption,
)
from dotsetup.interactive import Interaction

logger = logging.getLogger(__name__)

CONFIRM_MESSAGE = "Selected tasks will run with current selections. Continue?"


class PipelineState(str, Enum):
    """Pipeline stages, entered strictly in this order."""

    TASK_SELECT = "task_select"
    PRE_CHECK = "pre_check"
    PLAN_SELECT = "plan_select"
    CONFIRM = "confirm"
    EXECUTE = "execute"
    SUMMARY = "summary"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PlannedTask:
    """A selected task together with the plan its check produced."""

    task: Task
    plan: TaskPlan


@dataclass(frozen=True)
class RunOutcome:
    status: Literal["completed", "aborted"]
    reason: str | None = None
    results: tuple[TaskExecutionResult, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def failed(self) -> tuple[TaskExecutionResult, ...]:
        return tuple(r for r in self.results if not r.ok)


@dataclass
class PreCheckReport:
    """Aggregated output of the PreCheck stage."""

    planned: list[PlannedTask] = field(default_factory=list)
    categories: list[SelectionCategory] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_pending(self) -> bool:
        return any(c.items for c in self.categories)


def task_option(task: Task) -> TaskOption:
    return TaskOption(
        id=task.task_id,
        label=task.name,
        description=task.description,
        badge=task.badge,
    )


class SetupRunner:
    """Drive a fixed, caller-ordered list of tasks through the pipeline."""

    def __init__(self, context: ExecutionContext, tasks: Sequence[Task], interaction: Interaction):
        ids = [t.task_id for t in tasks]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate task ids: {ids}")
        self.context = context
        self.tasks = list(tasks)
        self.interaction = interaction
        self.state = PipelineState.TASK_SELECT
        self._warnings: list[str] = []

    def _enter(self, state: PipelineState) -> None:
        logger.debug("pipeline: %s -> %s", self.state.value, state.value)
        self.state = state

    def _abort(self, reason: str) -> RunOutcome:
        self.context.logger.warn(reason)
        self._enter(PipelineState.ABORTED)
        return RunOutcome(status="aborted", reason=reason, warnings=tuple(self._warnings))

    def run(self) -> RunOutcome:
        self._warnings = []
        self._enter(PipelineState.TASK_SELECT)
        selected = self.select_tasks()
        if selected is None:
            return self._abort("Aborted by user.")
        if not selected:
            return self._abort("No task selected. Exiting.")

        self._enter(PipelineState.PRE_CHECK)
        report = self.pre_check(selected)
        self._warnings.extend(report.warnings)

        if report.has_pending:
            self._enter(PipelineState.PLAN_SELECT)
            if not self.plan_select(report):
                return self._abort("Aborted by user.")
        elif report.warnings:
            self.context.logger.warn("Warnings detected:\n - " + "\n - ".join(report.warnings))

        self._enter(PipelineState.CONFIRM)
        if not self.context.ask(CONFIRM_MESSAGE):
            return self._abort("Aborted by user.")

        self._enter(PipelineState.EXECUTE)
        results = self.execute(report.planned)

        self._enter(PipelineState.SUMMARY)
        self.interaction.show_summary(results)
        self._log_results(results)
        self._enter(PipelineState.DONE)
        return RunOutcome(status="completed", results=tuple(results), warnings=tuple(self._warnings))

    def select_tasks(self) -> list[Task] | None:
        """Ask which tasks to run; None when the user cancelled."""
        selection = self.interaction.select_tasks([task_option(t) for t in self.tasks])
        if not selection.confirmed:
            return None
        wanted = set(selection.selected_task_ids)
        selected = [t for t in self.tasks if t.task_id in wanted]

        kept: list[Task] = []
        for task in selected:
            if isinstance(task, TokenConsumer) and not self._supply_token(task):
                warning = f"[{task.name}] Token input cancelled; task skipped."
                self._warnings.append(warning)
                self.context.logger.warn(warning)
                continue
            kept.append(task)
        return kept

    def _supply_token(self, task: TokenConsumer) -> bool:
        configured = self.context.config.github_token
        if configured:
            task.set_auth_token(configured)
            return True
        answer = self.interaction.prompt_token()
        if not answer.confirmed:
            return False
        task.set_auth_token(answer.token)
        return True

    def pre_check(self, tasks: Sequence[Task]) -> PreCheckReport:
        """Run every check sequentially; a failing check yields an empty plan."""
        log = self.context.logger
        log.log("--- Checking Prerequisites and System State ---")
        report = PreCheckReport()
        for task in tasks:
            try:
                plan = task.check(self.context)
            except Exception as exc:
                logger.debug("check failed for %s", task.task_id, exc_info=True)
                log.error(f"Pre-check failed for [{task.name}]: {exc}")
                plan = EmptyPlan(
                    TaskCheckResult(warnings=(f"Pre-check failed: {exc}",)),
                    message="Skipped: pre-check failed.",
                )
            report.planned.append(PlannedTask(task=task, plan=plan))

            result = plan.result
            if result.to_install:
                report.categories.append(
                    SelectionCategory(key=task.task_id, title=task.name, items=result.to_install)
                )
                log.warn(f"[{task.name}] To install ({len(result.to_install)}): {', '.join(result.to_install)}")
            for warning in result.warnings:
                report.warnings.append(f"[{task.name}] {warning}")
        return report

    def plan_select(self, report: PreCheckReport) -> bool:
        """Let the user narrow pending items; False when cancelled."""
        shown = [c for c in report.categories if c.items]
        selection = self.interaction.select_items(shown, report.warnings)
        if not selection.confirmed:
            return False

        shown_keys = {c.key for c in shown}
        total = 0
        for planned in report.planned:
            key = planned.task.task_id
            if key not in shown_keys or not isinstance(planned.plan, SelectablePlan):
                continue
            chosen = selection.selected_by_category.get(key, frozenset())
            planned.plan.apply_selection(chosen)
            total += len(planned.plan.pending)

        if total == 0:
            self.context.logger.warn("No installable item selected. Selected tasks will still run.")
        return True

    def execute(self, planned: Sequence[PlannedTask]) -> list[TaskExecutionResult]:
        quiet = self.context.quiet()
        steps = [
            ExecutionStep(task_id=p.task.task_id, name=p.task.name, run=_step_runner(p, quiet))
            for p in planned
        ]
        return self.interaction.run_steps(steps)

    def _log_results(self, results: Sequence[TaskExecutionResult]) -> None:
        log = self.context.logger
        for result in results:
            if result.ok:
                log.success(f"Task completed: {result.name}")
            else:
                detail = f" ({result.error})" if result.error else ""
                log.error(f"Task failed: {result.name}{detail}")


def _step_runner(planned: PlannedTask, context: ExecutionContext) -> Callable[[], TaskExecutionResult]:
    def run() -> TaskExecutionResult:
        task = planned.task
        try:
            planned.plan.execute(context)
        except Exception as exc:
            logger.debug("execute failed for %s", task.task_id, exc_info=True)
            return TaskExecutionResult(task_id=task.task_id, name=task.name, status="failed", error=str(exc))
        return TaskExecutionResult(task_id=task.task_id, name=task.name, status="completed")

    return run
