"""Pytest configuration and fixtures for dotsetup tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from dotsetup.config import SetupConfig
from dotsetup.core.context import ExecutionContext
from dotsetup.core.exec import CommandResult, CommandRunner
from dotsetup.core.logger import SetupLogger
from dotsetup.core.package_managers import PackageManager

DEFAULT_TOOLS = frozenset({"apt", "git", "snap", "gsettings", "systemctl"})


def pytest_sessionfinish(session, exitstatus):
    """Fail a --cov run that collected no coverage data."""
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))
    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'dotsetup' (the package) not 'src/dotsetup' (filesystem path).",
            returncode=1,
        )


class RecordingLogger(SetupLogger):
    """Keeps messages as (level, message) pairs."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def log(self, message: str) -> None:
        self.records.append(("log", message))

    def success(self, message: str) -> None:
        self.records.append(("success", message))

    def warn(self, message: str) -> None:
        self.records.append(("warn", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for lvl, m in self.records if level is None or lvl == level]


class FakeRunner(CommandRunner):
    """CommandRunner that records argv instead of spawning processes.

    Captured commands answer from ``on_run`` registrations (empty success
    otherwise); streamed commands answer from ``on_stream`` predicates
    (success otherwise).
    """

    def __init__(self) -> None:
        self.captured: list[tuple[str, ...]] = []
        self.streamed: list[tuple[str, ...]] = []
        self.silent_flags: list[bool] = []
        self._run_results: dict[tuple[str, ...], CommandResult] = {}
        self._stream_rules: list[tuple[Callable[[tuple[str, ...]], bool], bool]] = []

    def on_run(self, argv: Sequence[str], *, stdout: str = "", returncode: int = 0) -> None:
        key = tuple(argv)
        self._run_results[key] = CommandResult(argv=key, returncode=returncode, stdout=stdout, stderr="")

    def on_stream(self, match: Callable[[tuple[str, ...]], bool], ok: bool) -> None:
        self._stream_rules.append((match, ok))

    def run(self, argv) -> CommandResult:
        key = tuple(argv)
        self.captured.append(key)
        return self._run_results.get(key, CommandResult(argv=key, returncode=0, stdout="", stderr=""))

    def stream(self, argv, *, silent=False) -> bool:
        key = tuple(argv)
        self.streamed.append(key)
        self.silent_flags.append(silent)
        for match, ok in self._stream_rules:
            if match(key):
                return ok
        return True


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., SetupConfig]:
    def _make(**overrides) -> SetupConfig:
        values = {
            "root_dir": tmp_path,
            "lists_dir": tmp_path / "lists",
            "dotfiles_dir": tmp_path / "dotfiles",
            "clone_dir": tmp_path / "repos",
        }
        values.update(overrides)
        return SetupConfig(**values)

    return _make


@pytest.fixture
def make_context(
    make_config, fake_runner: FakeRunner, recording_logger: RecordingLogger
) -> Callable[..., ExecutionContext]:
    def _make(
        *,
        tools: frozenset[str] = DEFAULT_TOOLS,
        package_manager: PackageManager = PackageManager.APT,
        is_root: bool = False,
        privileged: bool | None = True,
        config: SetupConfig | None = None,
        confirm: Callable[[str], bool] = lambda message: True,
    ) -> ExecutionContext:
        return ExecutionContext(
            package_manager=package_manager,
            is_root=is_root,
            privileged=privileged,
            root_dir=(config or make_config()).root_dir,
            config=config or make_config(),
            logger=recording_logger,
            runner=fake_runner,
            which=lambda name: f"/usr/bin/{name}" if name in tools else None,
            confirm=confirm,
        )

    return _make


@pytest.fixture
def lists_dir(tmp_path: Path) -> Path:
    path = tmp_path / "lists"
    path.mkdir()
    return path
