"""Task contract: check returns a plan, and only a plan can execute.

A task is built once per run. ``check`` inspects the host without changing
it and hands back a :class:`TaskPlan` holding both the report shown to the
user and the private state the apply phase needs. Plans that accept
item-level narrowing additionally derive from :class:`SelectablePlan`; the
runner discovers that capability with ``isinstance`` and never looks at the
concrete task class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Generic, TypeVar

from dotsetup.core.types import TaskCheckResult

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext

_Item = TypeVar("_Item")


class TaskPlan(ABC):
    """Result of a task's check phase and the handle for its apply phase."""

    def __init__(self, result: TaskCheckResult):
        self.result = result
        self._executed = False

    @property
    def executed(self) -> bool:
        return self._executed

    def execute(self, context: ExecutionContext) -> None:
        """Apply the plan once; later calls are no-ops."""
        if self._executed:
            context.logger.log("Plan already executed; nothing to do.")
            return
        self._executed = True
        self._apply(context)

    @abstractmethod
    def _apply(self, context: ExecutionContext) -> None:
        """Perform the side effects of the plan."""


class SelectablePlan(TaskPlan):
    """Capability: a plan whose pending items can be narrowed by the user."""

    @property
    @abstractmethod
    def pending(self) -> tuple[str, ...]:
        """Names of the items execute would still act on."""

    @abstractmethod
    def apply_selection(self, selected_ids: Iterable[str]) -> None:
        """Keep only pending items whose names are in ``selected_ids``."""


class ItemPlan(SelectablePlan, Generic[_Item]):
    """Selectable plan over an ordered list of pending items.

    Subclasses name each item via :meth:`item_key` and apply the retained
    items in :meth:`_apply_items`. Narrowing is an intersection with the
    current pending list, so applying the same selection twice is the same
    as applying it once.
    """

    nothing_to_do = "Nothing to do."

    def __init__(self, result: TaskCheckResult, items: Sequence[_Item]):
        super().__init__(result)
        self._items: list[_Item] = list(items)

    @staticmethod
    @abstractmethod
    def item_key(item: _Item) -> str: ...

    @property
    def items(self) -> tuple[_Item, ...]:
        return tuple(self._items)

    @property
    def pending(self) -> tuple[str, ...]:
        return tuple(self.item_key(item) for item in self._items)

    def apply_selection(self, selected_ids: Iterable[str]) -> None:
        selected = frozenset(selected_ids)
        self._items = [item for item in self._items if self.item_key(item) in selected]
        if not self._items:
            self._on_emptied()

    def _on_emptied(self) -> None:
        """Hook for plans carrying extra state that only matters with pending items."""

    def _apply(self, context: ExecutionContext) -> None:
        if not self._items:
            context.logger.log(self.nothing_to_do)
            return
        self._apply_items(context, list(self._items))

    @abstractmethod
    def _apply_items(self, context: ExecutionContext, items: list[_Item]) -> None: ...


class EmptyPlan(TaskPlan):
    """Plan with nothing to apply: missing prerequisites or a failed check."""

    def __init__(self, result: TaskCheckResult | None = None, *, message: str = "Nothing to do."):
        super().__init__(result or TaskCheckResult())
        self.message = message

    def _apply(self, context: ExecutionContext) -> None:
        context.logger.log(self.message)


class Task(ABC):
    """One independent provisioning concern."""

    task_id: str
    name: str
    description: str = ""
    badge: str | None = None

    @abstractmethod
    def check(self, context: ExecutionContext) -> TaskPlan:
        """Inspect the host read-only and return the plan for this run."""


class TokenConsumer(ABC):
    """Capability: a task that needs a bearer token before it can check."""

    @abstractmethod
    def set_auth_token(self, token: str) -> None: ...
