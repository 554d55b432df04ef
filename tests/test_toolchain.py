from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from clementine import toolchain as toolchain_mod
from clementine.errors import ToolchainError
from clementine.settings import Settings
from clementine.toolchain import SubprocessToolchain


def test_resolve_argv_uses_path_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(toolchain_mod, "_which", lambda cmd: f"/usr/bin/{cmd}")
    assert toolchain_mod._resolve_argv(["npx", "wrangler"]) == ["/usr/bin/npx", "wrangler"]


def test_resolve_argv_keeps_unknown_and_explicit_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(toolchain_mod, "_which", lambda cmd: None)
    assert toolchain_mod._resolve_argv(["npx", "wrangler"]) == ["npx", "wrangler"]
    assert toolchain_mod._resolve_argv(["./bin/npx"]) == ["./bin/npx"]
    with pytest.raises(ToolchainError):
        toolchain_mod._resolve_argv([])


def test_subprocess_toolchain_runs_configured_commands(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    seen: list[tuple[list[str], str]] = []
    returncodes = iter([0, 1, 0])

    def _fake_run(argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        seen.append((argv, str(kwargs["cwd"])))
        return subprocess.CompletedProcess(argv, next(returncodes))

    monkeypatch.setattr(toolchain_mod, "_which", lambda cmd: None)
    monkeypatch.setattr(toolchain_mod.subprocess, "run", _fake_run)

    tc = SubprocessToolchain(settings)
    assert tc.create_project(tmp_path, "my-app") is True
    assert tc.create_queue(tmp_path / "my-app", "demo-queue") is False
    assert tc.deploy(tmp_path / "my-app") is True

    assert seen[0][0][:4] == ["npm", "create", "cloudflare@latest", "my-app"]
    assert seen[0][1] == str(tmp_path)
    assert seen[1][0] == ["npx", "wrangler", "queues", "create", "demo-queue"]
    assert seen[2] == (["npx", "wrangler", "deploy"], str(tmp_path / "my-app"))
    assert f"+ ({tmp_path / 'my-app'}) npx wrangler deploy" in capsys.readouterr().err


def test_missing_executable_is_a_failure(monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path) -> None:
    def _missing(argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(toolchain_mod, "_which", lambda cmd: None)
    monkeypatch.setattr(toolchain_mod.subprocess, "run", _missing)
    assert SubprocessToolchain(settings).deploy(tmp_path) is False


def test_resolved_command_is_echoed(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(toolchain_mod, "_which", lambda cmd: f"/opt/node/bin/{cmd}")
    monkeypatch.setattr(
        toolchain_mod.subprocess, "run", lambda argv, **kwargs: subprocess.CompletedProcess(argv, 0)
    )

    assert SubprocessToolchain(settings).deploy(tmp_path) is True
    err = capsys.readouterr().err
    assert f"+ ({tmp_path}) npx wrangler deploy" in err
    assert f"  -> ({tmp_path}) /opt/node/bin/npx wrangler deploy" in err
