"""Install snap applications listed in snap-apps.list."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from dotsetup.core.errors import SnapInstallError
from dotsetup.core.lists import (
    SnapRequest,
    find_duplicates,
    find_overlaps,
    parse_list,
    parse_snap_list,
    read_list_file,
)
from dotsetup.core.task import EmptyPlan, ItemPlan, Task, TaskPlan
from dotsetup.core.types import TaskCheckResult
from dotsetup.tasks.system_packages import privilege_warnings

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext

SNAPD_PACKAGE = "snapd"
SNAPD_SOCKET = "snapd.socket"
SNAPD_MISSING_WARNING = "Snapd is missing. It will be installed first."


def parse_snap_names(output: str) -> set[str]:
    """Names from ``snap list`` output (first column, header skipped)."""
    names: set[str] = set()
    for line in output.splitlines()[1:]:
        parts = line.split()
        if parts:
            names.add(parts[0])
    return names


class SnapPackagesPlan(ItemPlan[SnapRequest]):
    """Pending snaps, each installed with its own flags."""

    nothing_to_do = "No snap action required."

    def __init__(self, result: TaskCheckResult, items: Sequence[SnapRequest], *, needs_snapd: bool):
        super().__init__(result, items)
        self.needs_snapd = needs_snapd

    @staticmethod
    def item_key(item: SnapRequest) -> str:
        return item.name

    def _on_emptied(self) -> None:
        self.needs_snapd = False

    def _apply_items(self, context: ExecutionContext, items: list[SnapRequest]) -> None:
        log = context.logger
        if self.needs_snapd:
            self._install_snapd(context)

        failed: list[str] = []
        for request in items:
            log.log(f"Installing Snap app: {' '.join([request.name, *request.flags])}")
            if not context.stream(context.elevate(["snap", "install", request.name, *request.flags])):
                log.error(f"Failed to install snap: {request.name}")
                failed.append(request.name)
        if failed:
            raise SnapInstallError(failed, total=len(items))
        log.success("Snap applications installed.")

    @staticmethod
    def _install_snapd(context: ExecutionContext) -> None:
        context.logger.log("Installing snapd...")
        if not context.stream(context.elevate(context.commands.install_argv(SNAPD_PACKAGE))):
            raise SnapInstallError([SNAPD_PACKAGE], total=1)
        if context.has_tool("systemctl"):
            if not context.stream(context.elevate(["systemctl", "enable", "--now", SNAPD_SOCKET])):
                context.logger.warn(f"Could not enable {SNAPD_SOCKET}.")


class SnapPackagesTask(Task):
    task_id = "snap-packages"
    name = "Install Snap Applications"
    description = "Installs applications listed in snap-apps.list."

    def check(self, context: ExecutionContext) -> TaskPlan:
        list_path = context.config.snap_list
        text = read_list_file(list_path)
        if text is None:
            return EmptyPlan(TaskCheckResult(warnings=(f"{list_path} not found.",)))

        parsed = parse_snap_list(text)
        requests = _dedupe(parsed)
        if not requests:
            return EmptyPlan(message="Snap list is empty.")

        warnings: list[str] = []
        duplicates = find_duplicates(r.name for r in parsed)
        if duplicates:
            warnings.append(f"Duplicate entries in {list_path.name}: {', '.join(duplicates)}")
        warnings.extend(_overlap_warnings(context, requests))

        needs_snapd = not context.has_tool("snap")
        if needs_snapd:
            installed: set[str] = set()
            warnings.append(SNAPD_MISSING_WARNING)
        else:
            installed = parse_snap_names(context.capture(["snap", "list"]))

        up_to_date = [r.name for r in requests if r.name in installed]
        pending = [r for r in requests if r.name not in installed]
        warnings.extend(privilege_warnings(context, bool(pending)))
        result = TaskCheckResult(
            up_to_date=tuple(up_to_date),
            to_install=tuple(r.name for r in pending),
            warnings=tuple(warnings),
        )
        return SnapPackagesPlan(result, pending, needs_snapd=needs_snapd and bool(pending))


def _overlap_warnings(context: ExecutionContext, requests: list[SnapRequest]) -> list[str]:
    apps_text = read_list_file(context.config.apps_list)
    if apps_text is None:
        return []
    shared = find_overlaps((r.name for r in requests), parse_list(apps_text))
    if not shared:
        return []
    return [f"Also listed in {context.config.apps_list.name}, installed twice: {', '.join(shared)}"]


def _dedupe(requests: list[SnapRequest]) -> list[SnapRequest]:
    seen: set[str] = set()
    unique: list[SnapRequest] = []
    for request in requests:
        if request.name not in seen:
            seen.add(request.name)
            unique.append(request)
    return unique
