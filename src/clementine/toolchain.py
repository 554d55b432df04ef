from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from clementine.console import echo_command, echo_error
from clementine.errors import ToolchainError
from clementine.settings import Settings


def _which(cmd: str) -> str | None:
    return shutil.which(cmd)


def _resolve_argv(argv: list[str]) -> list[str]:
    """Resolve argv[0] via PATH for cross-platform execution.

    On Windows, `npm` and `npx` are `.cmd` shims. `subprocess.run()` cannot execute `.cmd`/`.bat` files directly, so
    we invoke them via `cmd.exe /c`.
    """

    if not argv:
        raise ToolchainError("Internal error: empty argv")

    cmd = argv[0]
    if any(sep and sep in cmd for sep in ("/", "\\", os.path.sep, os.path.altsep)):
        return argv

    resolved = _which(cmd)
    if resolved is None:
        return argv

    if os.name == "nt":
        suffix = Path(resolved).suffix.lower()
        if suffix in {".cmd", ".bat"}:
            comspec = os.environ.get("ComSpec", "cmd.exe")
            return [comspec, "/d", "/c", resolved, *argv[1:]]

    return [resolved, *argv[1:]]


def _run(argv: list[str], *, cwd: Path) -> subprocess.CompletedProcess[str]:
    resolved_argv = _resolve_argv(argv)
    echo_command(argv, cwd=cwd, resolved=resolved_argv)
    try:
        return subprocess.run(resolved_argv, cwd=str(cwd), text=True, check=False)
    except FileNotFoundError as exc:
        raise ToolchainError(f"Command not found: {Path(argv[0]).name!r}") from exc
    except OSError as exc:
        raise ToolchainError(f"Failed to execute {argv[0]!r}: {exc}") from exc


class Toolchain(Protocol):
    """External processes the flows depend on. Each call reports success as a bool."""

    def create_project(self, parent: Path, name: str) -> bool: ...

    def create_queue(self, project_dir: Path, name: str) -> bool: ...

    def deploy(self, project_dir: Path) -> bool: ...


class SubprocessToolchain:
    """Runs the Cloudflare tooling (`npm create cloudflare`, `wrangler`) with inherited stdio."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _succeeds(self, argv: list[str], *, cwd: Path) -> bool:
        try:
            cp = _run(argv, cwd=cwd)
        except ToolchainError as e:
            echo_error(str(e))
            return False
        return cp.returncode == 0

    def create_project(self, parent: Path, name: str) -> bool:
        return self._succeeds(self.settings.render_scaffold_command(project_name=name), cwd=parent)

    def create_queue(self, project_dir: Path, name: str) -> bool:
        return self._succeeds(self.settings.render_queue_create_command(queue_name=name), cwd=project_dir)

    def deploy(self, project_dir: Path) -> bool:
        return self._succeeds(list(self.settings.deploy_command), cwd=project_dir)


__all__ = ["SubprocessToolchain", "Toolchain"]
