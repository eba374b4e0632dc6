"""Process invocation primitives shared by every task."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Result envelope for subprocess execution."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Run external commands either captured or streamed to the terminal."""

    def run(self, argv: Sequence[str]) -> CommandResult:
        """Run command with captured output; a missing binary is exit status 127."""
        logger.debug("run: %s", " ".join(argv))
        try:
            completed = subprocess.run(list(argv), capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            return CommandResult(argv=tuple(argv), returncode=COMMAND_NOT_FOUND, stdout="", stderr=str(exc))
        return CommandResult(
            argv=tuple(argv),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def capture(self, argv: Sequence[str]) -> str:
        """Return stdout of the command, whatever its exit status."""
        return self.run(argv).stdout

    def stream(self, argv: Sequence[str], *, silent: bool = False) -> bool:
        """Run command attached to the terminal and report success.

        With ``silent`` the output is captured and discarded so that an
        animated progress display is not interleaved with tool output.
        """
        logger.debug("stream: %s", " ".join(argv))
        try:
            completed = subprocess.run(list(argv), capture_output=silent, check=False)
        except FileNotFoundError as exc:
            logger.warning("command not found: %s", exc)
            return False
        if completed.returncode != 0:
            logger.debug("exit %s: %s", completed.returncode, " ".join(argv))
        return completed.returncode == 0
