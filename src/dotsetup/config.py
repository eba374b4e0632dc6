"""Configuration loader for dotsetup.

Values come from built-in defaults, then an optional ``dotsetup.toml`` in
the root directory, then environment variables:

    [paths]
    lists_dir = "lists"
    dotfiles_dir = "dotfiles"

    [github]
    clone_dir = "~/src"
    api_url = "https://api.github.com"

    [[gnome.settings]]
    schema = "org.gnome.shell.extensions.dash-to-dock"
    key = "click-action"
    value = "minimize"

    [dotfiles.links]
    "bash/.bashrc" = "~/.bashrc"
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotsetup.core.errors import ConfigError

CONFIG_FILENAME = "dotsetup.toml"
APPS_LIST_FILENAME = "apps.list"
SNAP_LIST_FILENAME = "snap-apps.list"

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_CLONE_SUBDIR = Path("Documents") / "git-repos"

ENV_CLONE_DIR = "GITHUB_CLONE_DIR"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_GITHUB_API = "DOTSETUP_GITHUB_API"
ENV_LISTS_DIR = "DOTSETUP_LISTS_DIR"
ENV_DOTFILES_DIR = "DOTSETUP_DOTFILES_DIR"


@dataclass(frozen=True)
class GnomeSetting:
    """Desired value for one gsettings key (value in gsettings syntax)."""

    schema: str
    key: str
    value: str

    @property
    def item_id(self) -> str:
        return f"{self.schema} {self.key}"


@dataclass(frozen=True)
class DotfileLink:
    """Symlink from ``target`` to ``source`` (source relative to the dotfiles dir)."""

    source: str
    target: str


DEFAULT_GNOME_SETTINGS: tuple[GnomeSetting, ...] = (
    GnomeSetting(
        schema="org.gnome.shell.extensions.dash-to-dock",
        key="click-action",
        value="minimize",
    ),
)


@dataclass(frozen=True)
class SetupConfig:
    """Resolved configuration for one dotsetup run."""

    root_dir: Path
    lists_dir: Path
    dotfiles_dir: Path
    clone_dir: Path | None = None
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_token: str | None = None
    gnome_settings: tuple[GnomeSetting, ...] = DEFAULT_GNOME_SETTINGS
    dotfile_links: tuple[DotfileLink, ...] = field(default_factory=tuple)

    @property
    def apps_list(self) -> Path:
        return self.lists_dir / APPS_LIST_FILENAME

    @property
    def snap_list(self) -> Path:
        return self.lists_dir / SNAP_LIST_FILENAME


def resolve_clone_dir(env: Mapping[str, str] | None = None, *, home: Path | None = None) -> Path:
    """Clone root: $GITHUB_CLONE_DIR when set, else <home>/Documents/git-repos."""
    env = os.environ if env is None else env
    override = env.get(ENV_CLONE_DIR, "").strip()
    if override:
        return Path(override).expanduser()
    return (home or Path.home()) / DEFAULT_CLONE_SUBDIR


def load_config(
    root_dir: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    lists_dir: Path | None = None,
) -> SetupConfig:
    """Load configuration for ``root_dir`` (cwd by default)."""
    env = os.environ if env is None else env
    root = (root_dir or Path.cwd()).expanduser().resolve()
    data = _load_toml(root / CONFIG_FILENAME)

    paths = _table(data, "paths")
    github = _table(data, "github")

    resolved_lists = lists_dir or _env_path(env, ENV_LISTS_DIR) or _rooted(root, paths.get("lists_dir"), "lists")
    dotfiles_dir = _env_path(env, ENV_DOTFILES_DIR) or _rooted(root, paths.get("dotfiles_dir"), "dotfiles")

    clone_dir: Path | None = None
    if env.get(ENV_CLONE_DIR, "").strip():
        clone_dir = resolve_clone_dir(env)
    elif github.get("clone_dir"):
        clone_dir = Path(str(github["clone_dir"])).expanduser()

    api_url = env.get(ENV_GITHUB_API) or str(github.get("api_url") or DEFAULT_GITHUB_API_URL)
    token = env.get(ENV_GITHUB_TOKEN, "").strip() or None

    return SetupConfig(
        root_dir=root,
        lists_dir=resolved_lists,
        dotfiles_dir=dotfiles_dir,
        clone_dir=clone_dir,
        github_api_url=api_url.rstrip("/"),
        github_token=token,
        gnome_settings=_gnome_settings(data),
        dotfile_links=_dotfile_links(data),
    )


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid {path}: {exc}") from exc


def _table(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _env_path(env: Mapping[str, str], name: str) -> Path | None:
    value = env.get(name, "").strip()
    return Path(value).expanduser() if value else None


def _rooted(root: Path, value: Any, default: str) -> Path:
    path = Path(str(value)).expanduser() if value else Path(default)
    return path if path.is_absolute() else root / path


def _gnome_settings(data: Mapping[str, Any]) -> tuple[GnomeSetting, ...]:
    gnome = _table(data, "gnome")
    if "settings" not in gnome:
        return DEFAULT_GNOME_SETTINGS
    raw = gnome["settings"]
    if not isinstance(raw, list):
        raise ConfigError("gnome.settings must be an array of tables")
    settings: list[GnomeSetting] = []
    for entry in raw:
        try:
            settings.append(GnomeSetting(schema=str(entry["schema"]), key=str(entry["key"]), value=str(entry["value"])))
        except (KeyError, TypeError) as exc:
            raise ConfigError(f"gnome.settings entries need schema, key and value: {entry!r}") from exc
    return tuple(settings)


def _dotfile_links(data: Mapping[str, Any]) -> tuple[DotfileLink, ...]:
    dotfiles = _table(data, "dotfiles")
    links = dotfiles.get("links", {})
    if not isinstance(links, Mapping):
        raise ConfigError("dotfiles.links must be a table of source = target")
    return tuple(DotfileLink(source=str(src), target=str(dst)) for src, dst in links.items())
