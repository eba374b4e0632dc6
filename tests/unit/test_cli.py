"""Tests for the dotsetup CLI."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotsetup import __version__
from dotsetup.cli import cli
from dotsetup.core.context import ExecutionContext
from dotsetup.core.errors import UnsupportedPlatformError

runner = CliRunner()


def _use_context(monkeypatch, context: ExecutionContext) -> None:
    """Skip host detection but keep the confirm callback the CLI wires in."""
    monkeypatch.setattr(
        ExecutionContext, "initialize", lambda config, **kwargs: replace(context, confirm=kwargs["confirm"])
    )


@pytest.fixture(autouse=True)
def _plain_output(monkeypatch) -> None:
    monkeypatch.setenv("DOTSETUP_NEON", "0")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def test_version() -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_tasks_lists_ids() -> None:
    result = runner.invoke(cli, ["tasks"])
    assert result.exit_code == 0
    for task_id in ("system-packages", "dotfiles", "snap-packages", "gnome-settings", "github-repos"):
        assert task_id in result.output


def test_unknown_task_exits_2(tmp_path: Path) -> None:
    result = runner.invoke(cli, ["run", "--root", str(tmp_path), "--task", "bogus"])
    assert result.exit_code == 2
    assert "bogus" in result.output


def test_invalid_config_exits_2(tmp_path: Path) -> None:
    (tmp_path / "dotsetup.toml").write_text("[paths\n", encoding="utf-8")
    result = runner.invoke(cli, ["run", "--root", str(tmp_path)])
    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_unsupported_platform_exits_1(tmp_path: Path, monkeypatch) -> None:
    def fail(config, **kwargs):
        raise UnsupportedPlatformError("No supported package manager found")

    monkeypatch.setattr(ExecutionContext, "initialize", fail)
    result = runner.invoke(cli, ["run", "--root", str(tmp_path), "--task", "dotfiles"])
    assert result.exit_code == 1


def test_run_completes(tmp_path: Path, monkeypatch, make_context, recording_logger) -> None:
    context = make_context()
    _use_context(monkeypatch, context)

    result = runner.invoke(cli, ["run", "--root", str(tmp_path), "--task", "dotfiles", "--yes"])

    assert result.exit_code == 0
    assert "Link Dotfiles" in result.output
    assert "All tasks completed." in recording_logger.messages("success")


def test_run_with_failed_task_exits_1(tmp_path: Path, monkeypatch, make_context, fake_runner) -> None:
    fake_runner.on_stream(lambda argv: argv[:2] == ("gsettings", "set"), False)
    context = make_context()
    _use_context(monkeypatch, context)

    result = runner.invoke(cli, ["run", "--root", str(tmp_path), "--task", "gnome-settings", "--yes"])

    assert result.exit_code == 1
    assert fake_runner.streamed == [
        ("gsettings", "set", "org.gnome.shell.extensions.dash-to-dock", "click-action", "minimize")
    ]


def test_plan_changes_nothing(tmp_path: Path, monkeypatch, make_context, fake_runner) -> None:
    context = make_context()
    init_kwargs: dict = {}

    def initialize(config, **kwargs):
        init_kwargs.update(kwargs)
        return context

    monkeypatch.setattr(ExecutionContext, "initialize", initialize)

    result = runner.invoke(cli, ["plan", "--root", str(tmp_path), "--task", "gnome-settings"])

    assert result.exit_code == 0
    assert "org.gnome.shell.extensions.dash-to-dock click-action" in result.output
    assert fake_runner.streamed == []
    assert init_kwargs["check_sudo"] is False


def test_run_declined_confirmation_exits_0(tmp_path: Path, monkeypatch, make_context, fake_runner) -> None:
    context = make_context()
    _use_context(monkeypatch, context)
    monkeypatch.setattr("dotsetup.interactive.Prompt.ask", lambda *args, **kwargs: "")
    monkeypatch.setattr("dotsetup.interactive.Confirm.ask", lambda *args, **kwargs: False)

    result = runner.invoke(cli, ["run", "--root", str(tmp_path), "--task", "gnome-settings"])

    assert result.exit_code == 0
    assert fake_runner.streamed == []


def _write_lists(tmp_path: Path, apps: str, snaps: str) -> None:
    lists = tmp_path / "lists"
    lists.mkdir()
    (lists / "apps.list").write_text(apps, encoding="utf-8")
    (lists / "snap-apps.list").write_text(snaps, encoding="utf-8")


def test_lint_duplicates_exit_1(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("DOTSETUP_LISTS_DIR", raising=False)
    _write_lists(tmp_path, "git\ncode\ngit\n", "code --classic\nspotify\nspotify\n")

    result = runner.invoke(cli, ["lint", "--root", str(tmp_path)])

    assert result.exit_code == 1
    assert "Duplicate entries in apps.list" in result.output
    assert "Duplicate entries in snap-apps.list" in result.output
    assert "Listed in both files" in result.output


def test_lint_overlap_only_exits_0(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("DOTSETUP_LISTS_DIR", raising=False)
    _write_lists(tmp_path, "git\ncode\n", "code --classic\n")

    result = runner.invoke(cli, ["lint", "--root", str(tmp_path)])

    assert result.exit_code == 0
    assert "No duplicates in apps.list." in result.output
    assert "Listed in both files" in result.output
