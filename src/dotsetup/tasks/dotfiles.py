"""Symlink configured dotfiles into the home directory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dotsetup.core.errors import LinkError
from dotsetup.core.task import EmptyPlan, ItemPlan, Task, TaskPlan
from dotsetup.core.types import TaskCheckResult

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext

BACKUP_SUFFIX = ".dotsetup.bak"


@dataclass(frozen=True)
class LinkSpec:
    """Resolved link: ``target`` should be a symlink pointing at ``source``."""

    source: Path
    target: Path

    @property
    def item_id(self) -> str:
        return str(self.target)


def is_linked(spec: LinkSpec) -> bool:
    if not spec.target.is_symlink():
        return False
    return Path(os.path.realpath(spec.target)) == Path(os.path.realpath(spec.source))


def backup_path(target: Path) -> Path:
    return target.with_name(f"{target.name}{BACKUP_SUFFIX}")


def create_link(spec: LinkSpec) -> Path | None:
    """Create the symlink, moving an existing file aside; returns the backup path if any."""
    spec.target.parent.mkdir(parents=True, exist_ok=True)
    backup: Path | None = None
    if spec.target.is_symlink():
        spec.target.unlink()
    elif spec.target.exists():
        backup = backup_path(spec.target)
        os.replace(spec.target, backup)
    spec.target.symlink_to(spec.source)
    return backup


class DotfilesPlan(ItemPlan[LinkSpec]):
    nothing_to_do = "Dotfiles already linked."

    @staticmethod
    def item_key(item: LinkSpec) -> str:
        return item.item_id

    def _apply_items(self, context: ExecutionContext, items: list[LinkSpec]) -> None:
        failed: list[str] = []
        for spec in items:
            try:
                backup = create_link(spec)
            except OSError as exc:
                context.logger.error(f"Cannot link {spec.target}: {exc}")
                failed.append(spec.item_id)
                continue
            if backup is not None:
                context.logger.warn(f"Moved existing {spec.target} to {backup}")
            context.logger.log(f"Linked {spec.target} -> {spec.source}")
        if failed:
            raise LinkError(failed, total=len(items))
        context.logger.success("Dotfiles linked.")


class DotfilesTask(Task):
    task_id = "dotfiles"
    name = "Link Dotfiles"
    description = "Symlinks configured dotfiles into place."

    def check(self, context: ExecutionContext) -> TaskPlan:
        config = context.config
        if not config.dotfile_links:
            return EmptyPlan(TaskCheckResult(warnings=("No dotfile links configured.",)))

        up_to_date: list[str] = []
        pending: list[LinkSpec] = []
        warnings: list[str] = []
        seen: set[str] = set()
        for link in config.dotfile_links:
            spec = LinkSpec(
                source=(config.dotfiles_dir / link.source).absolute(),
                target=Path(link.target).expanduser().absolute(),
            )
            if spec.item_id in seen:
                continue
            seen.add(spec.item_id)
            if not spec.source.exists():
                warnings.append(f"Dotfile source missing: {spec.source}")
                continue
            if is_linked(spec):
                up_to_date.append(spec.item_id)
            else:
                pending.append(spec)

        result = TaskCheckResult(
            up_to_date=tuple(up_to_date),
            to_install=tuple(s.item_id for s in pending),
            warnings=tuple(warnings),
        )
        return DotfilesPlan(result, pending)
