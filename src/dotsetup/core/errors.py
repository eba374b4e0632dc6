"""Exception hierarchy for dotsetup."""

from __future__ import annotations

from collections.abc import Sequence


class SetupError(RuntimeError):
    """Base class for every error dotsetup raises on purpose."""


class ConfigError(SetupError):
    """Raised when dotsetup.toml cannot be parsed or holds invalid values."""


class UnsupportedPlatformError(SetupError):
    """Raised when no supported package manager is found on the host."""


class GitHubApiError(SetupError):
    """Raised when the GitHub REST API answers with a non-2xx status or is unreachable."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TaskExecutionError(SetupError):
    """Raised by a plan when some of its items could not be applied."""

    noun = "items"
    verb = "failed"

    def __init__(self, failed: Sequence[str], *, total: int):
        self.failed = tuple(failed)
        self.total = total
        super().__init__(
            f"{len(self.failed)} of {total} {self.noun} {self.verb}: {', '.join(self.failed)}"
        )


class PackageInstallError(TaskExecutionError):
    noun = "packages"
    verb = "failed to install"


class SnapInstallError(TaskExecutionError):
    noun = "snaps"
    verb = "failed to install"


class CloneError(TaskExecutionError):
    noun = "repositories"
    verb = "failed to clone"


class SettingsError(TaskExecutionError):
    noun = "settings"
    verb = "could not be applied"


class LinkError(TaskExecutionError):
    noun = "links"
    verb = "could not be created"
