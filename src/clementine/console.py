from __future__ import annotations

import sys
from typing import Any

from rich.console import Console
from rich.markup import escape


def _eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


class Logger:
    """Styled status lines for the interactive flows."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console if console is not None else Console(highlight=False, emoji=False, soft_wrap=True)

    def _emit(self, prefix: str, message: str, style: str) -> None:
        self.console.print(f"{prefix} {escape(message)}", style=style)

    def intro(self, message: str) -> None:
        self.console.print(f"\n{escape(message)}\n", style="bold cyan")

    def step(self, message: str) -> None:
        self._emit("→", message, "dim")

    def info(self, message: str) -> None:
        self._emit("ℹ", message, "blue")

    def success(self, message: str) -> None:
        self._emit("✓", message, "green")

    def warn(self, message: str) -> None:
        self._emit("⚠", message, "yellow")

    def error(self, message: str) -> None:
        self._emit("✗", message, "red")

    def plain(self, message: str = "", **kwargs: Any) -> None:
        self.console.print(escape(message), **kwargs)

    def rule(self, width: int = 80) -> None:
        self.console.print("=" * width)


def echo_command(argv: list[str], *, cwd: object, resolved: list[str] | None = None) -> None:
    _eprint(f"+ ({cwd}) {' '.join(argv)}")
    if resolved is not None and resolved != argv:
        _eprint(f"  -> ({cwd}) {' '.join(resolved)}")


def echo_error(message: str) -> None:
    _eprint(f"  {message}")


logger = Logger()

__all__ = ["Logger", "echo_command", "echo_error", "logger"]
