from __future__ import annotations

from pathlib import Path

import pytest

from clementine import jsonc
from clementine.cli import build_parser, main
from conftest import FakeToolchain, ScriptedPrompter, write


def _main(argv: list[str], tmp_path: Path, answers: list[object] | None = None, **kwargs: object) -> int:
    return main(
        argv,
        prompter=ScriptedPrompter(answers or []),
        toolchain=kwargs.pop("toolchain", FakeToolchain()),
        cwd=tmp_path,
        **kwargs,
    )


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "clementine-cli v0.1.0"


def test_help_lists_commands_and_options(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["-h"]) == 0
    out = capsys.readouterr().out
    assert "queues          Add Workers Queues to your project" in out
    for flag in ("-a, --add", "-n, --new", "-h, --help", "-v, --version"):
        assert flag in out


def test_parser_accepts_short_flags() -> None:
    args = build_parser().parse_args(["queues", "-a"])
    assert args.command == "queues"
    assert args.add is True
    assert args.new is False


def test_unknown_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main(["deploy"], tmp_path) == 1
    out = capsys.readouterr().out
    assert "Unknown command: deploy" in out
    assert 'Run "clementine --help" for usage' in out


@pytest.mark.parametrize(
    ("argv", "message"),
    [(["--bogus"], "unrecognized arguments: --bogus"), (["queues", "extra"], "unrecognized arguments: extra")],
)
def test_invalid_arguments_exit_1(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], argv: list[str], message: str
) -> None:
    assert _main(argv, tmp_path) == 1
    out = capsys.readouterr().out
    assert message in out
    assert 'Run "clementine --help" for usage' in out


@pytest.mark.parametrize("argv", [["--add", "--new"], ["queues", "-a", "-n"]])
def test_add_and_new_are_mutually_exclusive(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], argv: list[str]
) -> None:
    assert _main(argv, tmp_path) == 1
    assert "Cannot use both --add and --new flags" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["--add"], ["queues", "--add"]])
def test_add_requires_existing_project(tmp_path: Path, capsys: pytest.CaptureFixture[str], argv: list[str]) -> None:
    assert _main(argv, tmp_path) == 1
    assert "Not a Worker project. Use --new to create a new project." in capsys.readouterr().out


def test_interactive_selection_cancelled(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    prompter = ScriptedPrompter([None])
    assert main([], prompter=prompter, toolchain=FakeToolchain(), cwd=tmp_path) == 0
    out = capsys.readouterr().out
    assert "No Worker project detected" in out
    assert "Setup cancelled" in out
    assert prompter.asked == ["What would you like to create?"]


def test_interactive_new_project(tmp_path: Path) -> None:
    toolchain = FakeToolchain()
    answers = ["queues", "my-app", "demo-queue", "DEMO_QUEUE", False]
    assert _main([], tmp_path, answers, toolchain=toolchain) == 0
    assert toolchain.calls == [("create_project", tmp_path.resolve(), "my-app")]
    assert (tmp_path / "my-app" / "src" / "dashboard.html").is_file()


def test_bare_primitive_in_existing_project_is_a_no_op(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = write(tmp_path / "wrangler.jsonc", '{"name": "x"}')
    prompter = ScriptedPrompter(["worker-only"])
    assert main([], prompter=prompter, toolchain=FakeToolchain(), cwd=tmp_path) == 0
    out = capsys.readouterr().out
    assert "Detected existing Worker project" in out
    assert "Already in a Worker project. Nothing to do!" in out
    assert prompter.asked == ["What would you like to add?"]
    assert path.read_text(encoding="utf-8") == '{"name": "x"}'


def test_queues_command_detects_existing_project(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = write(tmp_path / "wrangler.jsonc", '{\n  "name": "x"\n}\n')
    assert _main(["queues"], tmp_path, ["demo-queue", "DEMO_QUEUE", False]) == 0
    assert "Detected existing Worker project" in capsys.readouterr().out
    doc = jsonc.loads(path.read_text(encoding="utf-8"))
    assert doc["queues"]["producers"] == [{"queue": "demo-queue", "binding": "DEMO_QUEUE"}]


def test_queues_command_new_project_scaffold_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    toolchain = FakeToolchain(create_ok=False)
    assert _main(["queues"], tmp_path, ["my-app", "demo-queue", "DEMO_QUEUE"], toolchain=toolchain) == 1
    out = capsys.readouterr().out
    assert "No Worker project detected. Creating new project..." in out
    assert "Failed to run create-cloudflare" in out
    assert "Make sure you have npm installed" in out


def test_forced_new_inside_existing_project(tmp_path: Path) -> None:
    write(tmp_path / "wrangler.jsonc", "{}")
    toolchain = FakeToolchain()
    answers = ["my-app", "demo-queue", "DEMO_QUEUE", False]
    assert _main(["queues", "--new"], tmp_path, answers, toolchain=toolchain) == 0
    assert (tmp_path / "my-app" / "src" / "event-store.ts").is_file()


def test_keyboard_interrupt_is_cancellation(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main([], tmp_path, [KeyboardInterrupt()]) == 0
    assert "Setup cancelled" in capsys.readouterr().out


def test_invalid_settings_exit_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    write(tmp_path / ".clementine.yaml", "bogus: 1\n")
    assert _main([], tmp_path) == 1
    assert "Unknown keys" in capsys.readouterr().out


def test_unexpected_errors_are_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main([], tmp_path, [RuntimeError("boom")]) == 1
    assert "An unexpected error occurred: RuntimeError: boom" in capsys.readouterr().out
