"""Built-in provisioning tasks, in their default run order."""

from dotsetup.core.task import Task
from dotsetup.tasks.dotfiles import DotfilesTask
from dotsetup.tasks.github_repos import GitHubReposCloneTask
from dotsetup.tasks.gnome_settings import GnomeSettingsTask
from dotsetup.tasks.snap_packages import SnapPackagesTask
from dotsetup.tasks.system_packages import SystemPackagesTask

TASK_TYPES: tuple[type[Task], ...] = (
    SystemPackagesTask,
    DotfilesTask,
    SnapPackagesTask,
    GnomeSettingsTask,
    GitHubReposCloneTask,
)


def default_tasks() -> list[Task]:
    """Fresh task instances in default order."""
    return [task_type() for task_type in TASK_TYPES]


__all__ = [
    "DotfilesTask",
    "GitHubReposCloneTask",
    "GnomeSettingsTask",
    "SnapPackagesTask",
    "SystemPackagesTask",
    "TASK_TYPES",
    "default_tasks",
]
