"""Command tables for the supported system package managers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PackageManager(str, Enum):
    """Closed set of package managers dotsetup knows how to drive."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"
    ZYPPER = "zypper"


# lookup order when detecting the host's package manager
DETECTION_ORDER: tuple[PackageManager, ...] = (
    PackageManager.APT,
    PackageManager.DNF,
    PackageManager.PACMAN,
    PackageManager.ZYPPER,
)


@dataclass(frozen=True)
class PackageManagerCommands:
    """argv templates for one package manager (without sudo)."""

    refresh: tuple[str, ...]
    query_installed: tuple[str, ...]
    install: tuple[str, ...]

    def install_argv(self, *packages: str) -> list[str]:
        return [*self.install, *packages]


_RPM_QUERY = ("rpm", "-qa", "--qf", "%{NAME}\\n")

COMMANDS: dict[PackageManager, PackageManagerCommands] = {
    PackageManager.APT: PackageManagerCommands(
        refresh=("apt", "update", "-y"),
        query_installed=("dpkg-query", "-f", "${Package}\\n", "-W"),
        install=("apt", "install", "-y"),
    ),
    PackageManager.DNF: PackageManagerCommands(
        refresh=("dnf", "makecache"),
        query_installed=_RPM_QUERY,
        install=("dnf", "install", "-y"),
    ),
    PackageManager.ZYPPER: PackageManagerCommands(
        refresh=("zypper", "--non-interactive", "refresh"),
        query_installed=_RPM_QUERY,
        install=("zypper", "install", "-y"),
    ),
    PackageManager.PACMAN: PackageManagerCommands(
        refresh=("pacman", "-Sy", "--noconfirm"),
        query_installed=("pacman", "-Qq"),
        install=("pacman", "-S", "--noconfirm"),
    ),
}


def commands_for(manager: PackageManager) -> PackageManagerCommands:
    return COMMANDS[manager]


def parse_installed(output: str) -> set[str]:
    """Installed package names from one-name-per-line query output."""
    return {line.strip() for line in output.splitlines() if line.strip()}
