"""Execution context: host facts and command primitives shared by every task."""

from __future__ import annotations

import dataclasses
import logging
import os
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from dotsetup.config import SetupConfig
from dotsetup.core.errors import UnsupportedPlatformError
from dotsetup.core.exec import CommandResult, CommandRunner
from dotsetup.core.logger import SetupLogger, SilentLogger
from dotsetup.core.package_managers import (
    DETECTION_ORDER,
    PackageManager,
    PackageManagerCommands,
    commands_for,
)

logger = logging.getLogger(__name__)

Which = Callable[[str], str | None]
Confirm = Callable[[str], bool]


def _decline(_message: str) -> bool:
    return False


@dataclass(frozen=True)
class ExecutionContext:
    """Read-only view of the host, built once by :meth:`initialize`."""

    package_manager: PackageManager
    is_root: bool
    # None when sudo was not checked
    privileged: bool | None
    root_dir: Path
    config: SetupConfig
    logger: SetupLogger
    runner: CommandRunner
    which: Which = shutil.which
    confirm: Confirm = _decline
    silent: bool = False

    @classmethod
    def initialize(
        cls,
        config: SetupConfig,
        *,
        logger: SetupLogger,
        runner: CommandRunner | None = None,
        which: Which = shutil.which,
        confirm: Confirm = _decline,
        euid: int | None = None,
        check_sudo: bool = True,
    ) -> ExecutionContext:
        """Detect privileges and the package manager.

        Without ``check_sudo`` a non-root process never runs ``sudo -v``,
        so read-only commands cannot trigger a password prompt.

        Raises UnsupportedPlatformError when none of the supported package
        managers is on PATH.
        """
        runner = runner or CommandRunner()
        is_root = (os.geteuid() if euid is None else euid) == 0
        privileged: bool | None = True if is_root else None
        if not is_root and check_sudo:
            privileged = runner.stream(["sudo", "-v"])
            if not privileged:
                logger.warn("Not running as root and sudo failed. Some tasks may fail.")

        manager = detect_package_manager(which)
        logger.success(f"Detected package manager: {manager.value}")
        return cls(
            package_manager=manager,
            is_root=is_root,
            privileged=privileged,
            root_dir=config.root_dir,
            config=config,
            logger=logger,
            runner=runner,
            which=which,
            confirm=confirm,
        )

    @property
    def commands(self) -> PackageManagerCommands:
        return commands_for(self.package_manager)

    def elevate(self, argv: Sequence[str]) -> list[str]:
        """Prefix ``argv`` with sudo unless already root."""
        return list(argv) if self.is_root else ["sudo", *argv]

    def has_tool(self, name: str) -> bool:
        return self.which(name) is not None

    def run(self, argv: Sequence[str]) -> CommandResult:
        """Run captured without raising; callers inspect the exit status."""
        return self.runner.run(argv)

    def capture(self, argv: Sequence[str]) -> str:
        return self.runner.capture(argv)

    def stream(self, argv: Sequence[str]) -> bool:
        return self.runner.stream(argv, silent=self.silent)

    def ask(self, message: str) -> bool:
        return self.confirm(message)

    def quiet(self) -> ExecutionContext:
        """Copy with a silent logger and captured command output."""
        return dataclasses.replace(self, logger=SilentLogger(), silent=True)


def detect_package_manager(which: Which = shutil.which) -> PackageManager:
    for manager in DETECTION_ORDER:
        path = which(manager.value)
        if path:
            logger.debug("package manager %s at %s", manager.value, path)
            return manager
    raise UnsupportedPlatformError(
        "No supported package manager found (looked for: "
        + ", ".join(m.value for m in DETECTION_ORDER)
        + ")."
    )
