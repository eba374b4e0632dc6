"""User-facing loggers injected into the execution context."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rich.console import Console
from rich.markup import escape


class SetupLogger(ABC):
    """Four-level console logger used by tasks and the runner."""

    @abstractmethod
    def log(self, message: str) -> None: ...

    @abstractmethod
    def success(self, message: str) -> None: ...

    @abstractmethod
    def warn(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str) -> None: ...


class ConsoleLogger(SetupLogger):
    """Logger printing through a rich console."""

    def __init__(self, console: Console | None = None, *, err_console: Console | None = None):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def log(self, message: str) -> None:
        self.console.print(escape(message))

    def success(self, message: str) -> None:
        self.console.print(f"[bold green]\\[SUCCESS][/bold green] {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[bold yellow]\\[WARNING][/bold yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]\\[ERROR][/bold red] {escape(message)}")


class SilentLogger(SetupLogger):
    """Discards everything; used while the animated progress view owns the terminal."""

    def log(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

