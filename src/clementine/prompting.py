from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

_QUEUE_NAME_RE = re.compile(r"^[a-z0-9-]+$")
_PROJECT_NAME_RE = _QUEUE_NAME_RE
_BINDING_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

# A validator returns an error message, or None when the value is acceptable.
Validator = Callable[[str], str | None]


def validate_project_name(value: str) -> str | None:
    if _PROJECT_NAME_RE.match(value):
        return None
    return "Must be lowercase with hyphens (e.g., my-queue-worker)"


def validate_queue_name(value: str) -> str | None:
    if _QUEUE_NAME_RE.match(value):
        return None
    return "Must be lowercase with hyphens (e.g., demo-queue)"


def validate_binding_name(value: str) -> str | None:
    if _BINDING_NAME_RE.match(value):
        return None
    return "Must be uppercase with underscores (e.g., DEMO_QUEUE)"


@dataclass(frozen=True)
class TextQuestion:
    message: str
    default: str | None = None
    validate: Validator | None = None


@dataclass(frozen=True)
class Choice:
    value: str
    title: str
    description: str = ""


@dataclass(frozen=True)
class SelectQuestion:
    message: str
    choices: tuple[Choice, ...]


@dataclass(frozen=True)
class ConfirmQuestion:
    message: str
    default: bool = False


class Prompter(Protocol):
    """Interactive input. Every method returns `None` when the user cancels."""

    def text(self, question: TextQuestion) -> str | None: ...

    def select(self, question: SelectQuestion) -> str | None: ...

    def confirm(self, question: ConfirmQuestion) -> bool | None: ...


class RichPrompter:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console if console is not None else Console(highlight=False, emoji=False)

    def text(self, question: TextQuestion) -> str | None:
        while True:
            try:
                answer = Prompt.ask(
                    f"[cyan]?[/cyan] {escape(question.message)}",
                    console=self.console,
                    default=question.default if question.default is not None else "",
                    show_default=question.default is not None,
                )
            except (KeyboardInterrupt, EOFError):
                return None
            answer = answer.strip()
            if not answer:
                return None
            if question.validate is not None:
                error = question.validate(answer)
                if error is not None:
                    self.console.print(f"[red]✗ {escape(error)}[/red]")
                    continue
            return answer

    def select(self, question: SelectQuestion) -> str | None:
        if not question.choices:
            return None

        self.console.print(f"[cyan]?[/cyan] {escape(question.message)}")
        numbered: dict[str, Choice] = {}
        for idx, choice in enumerate(question.choices, start=1):
            label = escape(choice.title)
            if choice.description:
                label += f" [dim]- {escape(choice.description)}[/dim]"
            key = str(idx)
            numbered[key] = choice
            self.console.print(f"  {key}) {label}")

        try:
            picked = Prompt.ask(
                "Select",
                console=self.console,
                choices=list(numbered),
                default="1",
                show_choices=False,
            )
        except (KeyboardInterrupt, EOFError):
            return None
        return numbered[picked].value

    def confirm(self, question: ConfirmQuestion) -> bool | None:
        try:
            return Confirm.ask(
                f"[cyan]?[/cyan] {escape(question.message)}",
                console=self.console,
                default=question.default,
            )
        except (KeyboardInterrupt, EOFError):
            return None


__all__ = [
    "Choice",
    "ConfirmQuestion",
    "Prompter",
    "RichPrompter",
    "SelectQuestion",
    "TextQuestion",
    "Validator",
    "validate_binding_name",
    "validate_project_name",
    "validate_queue_name",
]
