"""Tests for the dotfiles task, against a real temporary filesystem."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotsetup.config import DotfileLink
from dotsetup.core.errors import LinkError
from dotsetup.tasks.dotfiles import DotfilesTask, backup_path


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    root = tmp_path / "dotfiles"
    (root / "bash").mkdir(parents=True)
    (root / "bash" / ".bashrc").write_text("export EDITOR=vim\n", encoding="utf-8")
    (root / "gitconfig").write_text("[user]\n", encoding="utf-8")
    return root


def _config(make_config, tmp_path: Path, *links: tuple[str, str]):
    return make_config(dotfile_links=tuple(DotfileLink(s, str(tmp_path / "home" / t)) for s, t in links))


def test_no_links_configured(make_context) -> None:
    plan = DotfilesTask().check(make_context())
    assert plan.result.warnings == ("No dotfile links configured.",)


def test_missing_source_is_a_warning(make_context, make_config, tmp_path: Path, dotfiles: Path) -> None:
    config = _config(make_config, tmp_path, ("nope/.vimrc", ".vimrc"))
    plan = DotfilesTask().check(make_context(config=config))
    assert plan.result.to_install == ()
    assert plan.result.warnings[0].startswith("Dotfile source missing:")


def test_links_and_backs_up_existing_file(make_context, make_config, tmp_path: Path, dotfiles: Path) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / ".bashrc").write_text("old\n", encoding="utf-8")
    config = _config(make_config, tmp_path, ("bash/.bashrc", ".bashrc"), ("gitconfig", ".config/git/config"))
    context = make_context(config=config)

    plan = DotfilesTask().check(context)
    assert plan.result.to_install == (str(home / ".bashrc"), str(home / ".config" / "git" / "config"))
    plan.execute(context)

    assert (home / ".bashrc").is_symlink()
    assert (home / ".bashrc").read_text(encoding="utf-8") == "export EDITOR=vim\n"
    assert backup_path(home / ".bashrc").read_text(encoding="utf-8") == "old\n"
    assert (home / ".config" / "git" / "config").resolve() == (dotfiles / "gitconfig").resolve()


def test_existing_link_is_up_to_date(make_context, make_config, tmp_path: Path, dotfiles: Path) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / ".gitconfig").symlink_to(dotfiles / "gitconfig")
    config = _config(make_config, tmp_path, ("gitconfig", ".gitconfig"))

    plan = DotfilesTask().check(make_context(config=config))
    assert plan.result.up_to_date == (str(home / ".gitconfig"),)
    assert plan.result.to_install == ()


def test_blocked_target_raises_link_error(make_context, make_config, tmp_path: Path, dotfiles: Path) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / "blocker").write_text("a file, not a directory\n", encoding="utf-8")
    config = _config(make_config, tmp_path, ("gitconfig", "blocker/.gitconfig"), ("bash/.bashrc", ".bashrc"))
    context = make_context(config=config)
    plan = DotfilesTask().check(context)

    with pytest.raises(LinkError) as excinfo:
        plan.execute(context)
    assert excinfo.value.failed == (str(home / "blocker" / ".gitconfig"),)
    assert (home / ".bashrc").is_symlink()
