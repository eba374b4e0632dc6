"""Install the system packages listed in apps.list."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotsetup.core.errors import PackageInstallError
from dotsetup.core.lists import find_duplicates, parse_list, partition_installed, read_list_file
from dotsetup.core.package_managers import parse_installed
from dotsetup.core.task import EmptyPlan, ItemPlan, Task, TaskPlan
from dotsetup.core.types import TaskCheckResult

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext


PRIVILEGE_WARNING = "Not running as root and sudo is unavailable; installs will likely fail."


def privilege_warnings(context: ExecutionContext, pending: bool) -> tuple[str, ...]:
    """Warn when installs are pending but sudo was checked and refused."""
    if pending and context.privileged is False:
        return (PRIVILEGE_WARNING,)
    return ()


class SystemPackagesPlan(ItemPlan[str]):
    """Pending package names, installed in one batch with per-package fallback."""

    nothing_to_do = "No system packages to install."

    @staticmethod
    def item_key(item: str) -> str:
        return item

    def _apply_items(self, context: ExecutionContext, items: list[str]) -> None:
        log = context.logger
        commands = context.commands

        log.log(f"Installing {len(items)} packages...")
        log.log("Updating package repositories...")
        if not context.stream(context.elevate(commands.refresh)):
            log.warn("Repository refresh reported a problem; continuing with install.")

        if context.stream(context.elevate(commands.install_argv(*items))):
            log.success("System packages installed.")
            return

        log.warn("Batch installation had issues. Retrying individually...")
        failed: list[str] = []
        for package in items:
            if not context.stream(context.elevate(commands.install_argv(package))):
                log.error(f"Failed to install package: {package}")
                failed.append(package)
        if failed:
            raise PackageInstallError(failed, total=len(items))
        log.success("System packages installed.")


class SystemPackagesTask(Task):
    task_id = "system-packages"
    name = "Install System Packages"
    description = "Installs system packages listed in apps.list."

    def check(self, context: ExecutionContext) -> TaskPlan:
        list_path = context.config.apps_list
        text = read_list_file(list_path)
        if text is None:
            return EmptyPlan(TaskCheckResult(warnings=(f"{list_path} not found.",)))

        requested = parse_list(text)
        if not requested:
            return EmptyPlan(message="Package list is empty.")

        warnings: list[str] = []
        duplicates = find_duplicates(requested)
        if duplicates:
            warnings.append(f"Duplicate entries in {list_path.name}: {', '.join(duplicates)}")

        installed = parse_installed(context.capture(context.commands.query_installed))
        up_to_date, to_install = partition_installed(requested, installed)
        warnings.extend(privilege_warnings(context, bool(to_install)))
        result = TaskCheckResult(
            up_to_date=tuple(up_to_date),
            to_install=tuple(to_install),
            warnings=tuple(warnings),
        )
        return SystemPackagesPlan(result, to_install)
