from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest

from clementine.console import Logger
from clementine.prompting import ConfirmQuestion, SelectQuestion, TextQuestion
from clementine.settings import Settings, load_settings

# Answer meaning "accept the question's default".
DEFAULT = object()


class ScriptedPrompter:
    """Replays canned answers in order; `None` is a cancellation."""

    def __init__(self, answers: Iterable[Any]) -> None:
        self.answers = list(answers)
        self.asked: list[str] = []

    def _next(self, question: Any) -> Any:
        self.asked.append(question.message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question.message}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def text(self, question: TextQuestion) -> str | None:
        answer = self._next(question)
        if answer is DEFAULT:
            return question.default
        if answer is not None and question.validate is not None:
            assert question.validate(answer) is None, f"invalid scripted answer {answer!r}"
        return answer

    def select(self, question: SelectQuestion) -> str | None:
        return self._next(question)

    def confirm(self, question: ConfirmQuestion) -> bool | None:
        answer = self._next(question)
        return question.default if answer is DEFAULT else answer


class FakeToolchain:
    """Records calls; `create_project` lays down a minimal scaffolded Worker."""

    def __init__(
        self,
        *,
        create_ok: bool = True,
        queue_ok: bool = True,
        deploy_ok: bool = True,
        config_name: str | None = "wrangler.jsonc",
        config_text: str = '{\n  "name": "demo",\n  "main": "src/index.ts"\n}\n',
    ) -> None:
        self.create_ok = create_ok
        self.queue_ok = queue_ok
        self.deploy_ok = deploy_ok
        self.config_name = config_name
        self.config_text = config_text
        self.calls: list[tuple[Any, ...]] = []

    def create_project(self, parent: Path, name: str) -> bool:
        self.calls.append(("create_project", parent, name))
        if not self.create_ok:
            return False
        project = parent / name
        (project / "src").mkdir(parents=True)
        (project / "src" / "index.ts").write_text("export default {};\n", encoding="utf-8")
        if self.config_name is not None:
            (project / self.config_name).write_text(self.config_text, encoding="utf-8")
        return True

    def create_queue(self, project_dir: Path, name: str) -> bool:
        self.calls.append(("create_queue", project_dir, name))
        return self.queue_ok

    def deploy(self, project_dir: Path) -> bool:
        self.calls.append(("deploy", project_dir))
        return self.deploy_ok


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_user_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLEMENTINE_CONFIG", raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return load_settings(tmp_path, environ={})


@pytest.fixture
def log() -> Logger:
    return Logger()
