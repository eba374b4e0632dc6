"""Apply GNOME desktop settings through gsettings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotsetup.config import GnomeSetting
from dotsetup.core.errors import SettingsError
from dotsetup.core.task import EmptyPlan, ItemPlan, Task, TaskPlan
from dotsetup.core.types import TaskCheckResult

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext


def normalize_value(value: str) -> str:
    """gsettings prints strings quoted; compare without the quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return value


class GnomeSettingsPlan(ItemPlan[GnomeSetting]):
    nothing_to_do = "GNOME settings already applied."

    @staticmethod
    def item_key(item: GnomeSetting) -> str:
        return item.item_id

    def _apply_items(self, context: ExecutionContext, items: list[GnomeSetting]) -> None:
        failed: list[str] = []
        for setting in items:
            context.logger.log(f"Setting {setting.schema} {setting.key} to {setting.value!r}...")
            if not context.stream(["gsettings", "set", setting.schema, setting.key, setting.value]):
                context.logger.error(f"Failed to apply {setting.item_id}. Schema may be missing.")
                failed.append(setting.item_id)
        if failed:
            raise SettingsError(failed, total=len(items))
        context.logger.success("GNOME configuration applied.")


class GnomeSettingsTask(Task):
    task_id = "gnome-settings"
    name = "Configure Gnome Settings"
    description = "Applies predefined GNOME settings."

    def check(self, context: ExecutionContext) -> TaskPlan:
        if not context.has_tool("gsettings"):
            return EmptyPlan(TaskCheckResult(warnings=("gsettings not found. Skipping.",)))

        up_to_date: list[str] = []
        pending: list[GnomeSetting] = []
        warnings: list[str] = []
        seen: set[str] = set()
        for setting in context.config.gnome_settings:
            if setting.item_id in seen:
                continue
            seen.add(setting.item_id)
            current = context.run(["gsettings", "get", setting.schema, setting.key])
            if not current.ok:
                warnings.append(f"Cannot read {setting.item_id}; schema may be missing.")
                continue
            if normalize_value(current.stdout) == normalize_value(setting.value):
                up_to_date.append(setting.item_id)
            else:
                pending.append(setting)

        result = TaskCheckResult(
            up_to_date=tuple(up_to_date),
            to_install=tuple(s.item_id for s in pending),
            warnings=tuple(warnings),
        )
        return GnomeSettingsPlan(result, pending)
