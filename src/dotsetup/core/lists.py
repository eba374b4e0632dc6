"""Parsing helpers for the newline-delimited package lists."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

CLASSIC_FLAG = "--classic"


@dataclass(frozen=True)
class SnapRequest:
    """One snap to install together with its per-app flags."""

    name: str
    flags: tuple[str, ...] = ()


def strip_comment(line: str) -> str:
    """Drop an inline ``#`` comment and surrounding whitespace."""
    head, _, _ = line.partition("#")
    return head.strip()


def parse_list(text: str) -> list[str]:
    """Return list entries, skipping blank lines and comments."""
    items: list[str] = []
    for raw in text.splitlines():
        entry = strip_comment(raw)
        if entry:
            items.append(entry)
    return items


def parse_snap_line(line: str) -> SnapRequest | None:
    """Parse ``name [--classic] [# comment]``; None for blank or comment lines."""
    entry = strip_comment(line)
    if not entry:
        return None
    tokens = entry.split()
    flags = tuple(t for t in tokens if t == CLASSIC_FLAG)
    names = [t for t in tokens if t != CLASSIC_FLAG]
    if not names:
        return None
    return SnapRequest(name=" ".join(names), flags=flags)


def parse_snap_list(text: str) -> list[SnapRequest]:
    requests: list[SnapRequest] = []
    for raw in text.splitlines():
        request = parse_snap_line(raw)
        if request is not None:
            requests.append(request)
    return requests


def read_list_file(path: Path) -> str | None:
    """Read a list file; None when it does not exist.

    Any other OSError (permissions, a directory in place of the file)
    propagates to the caller.
    """
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def partition_installed(requested: list[str], installed: set[str]) -> tuple[list[str], list[str]]:
    """Split requested names into (up_to_date, to_install), keeping order and dropping repeats."""
    up_to_date: list[str] = []
    to_install: list[str] = []
    seen: set[str] = set()
    for name in requested:
        if name in seen:
            continue
        seen.add(name)
        (up_to_date if name in installed else to_install).append(name)
    return up_to_date, to_install


def find_duplicates(names: Iterable[str]) -> list[str]:
    """Names listed more than once, in order of their first repeat."""
    seen: set[str] = set()
    repeated: list[str] = []
    for name in names:
        if name in seen and name not in repeated:
            repeated.append(name)
        seen.add(name)
    return repeated


def find_overlaps(first: Iterable[str], second: Iterable[str]) -> list[str]:
    """Names present in both lists, in ``first`` order."""
    others = set(second)
    overlaps: list[str] = []
    for name in first:
        if name in others and name not in overlaps:
            overlaps.append(name)
    return overlaps


@dataclass(frozen=True)
class ListLintReport:
    """Duplicates per list file and names shared by both lists."""

    duplicates: dict[str, tuple[str, ...]]
    overlaps: tuple[str, ...] = ()
    missing: tuple[Path, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(self.duplicates.values())


def lint_lists(apps_path: Path, snap_path: Path) -> ListLintReport:
    """Check both package lists; duplicates are errors, overlaps only warnings."""
    apps_text = read_list_file(apps_path)
    snap_text = read_list_file(snap_path)
    apps = parse_list(apps_text) if apps_text is not None else []
    snaps = [r.name for r in parse_snap_list(snap_text)] if snap_text is not None else []
    return ListLintReport(
        duplicates={
            apps_path.name: tuple(find_duplicates(apps)),
            snap_path.name: tuple(find_duplicates(snaps)),
        },
        overlaps=tuple(find_overlaps(apps, snaps)),
        missing=tuple(p for p, text in ((apps_path, apps_text), (snap_path, snap_text)) if text is None),
    )
