"""
Lifecycle protocol shared by all primitives.

A primitive is one feature the CLI can scaffold or add (Queues, a bare Worker,
...). Required steps are abstract methods; optional steps are declared in a
`PrimitiveCapabilities` record, and the registry checks on `register()` that
every declared step is implemented and every implemented step is declared.
"""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import ClassVar

from clementine.console import Logger, logger as default_logger
from clementine.prompting import Prompter
from clementine.settings import Settings
from clementine.toolchain import Toolchain

_TEMPLATE_TOKEN_RE = re.compile(r"__([A-Z][A-Z0-9_]*)__")


class TemplateError(ValueError):
    pass


@dataclass(frozen=True)
class PrimitiveCapabilities:
    supports_new_project: bool = True
    supports_existing: bool = False
    patches_config: bool = False
    has_pre_deploy_steps: bool = False
    has_deployment_info: bool = False


@dataclass(frozen=True)
class DeploymentInfo:
    success_message: str | None = None
    next_steps: tuple[str, ...] = ()


class PrimitiveConfig:
    """Common surface of every primitive's answers. Flows only read `project_name`."""

    kind: ClassVar[str]
    project_name: str | None


class Primitive(abc.ABC):
    """
    One addable Cloudflare feature.

    `prompt_new` and `generate_files` are required. The other lifecycle steps are
    optional and capability-gated: a subclass overrides exactly the steps its
    `capabilities` declare (see `OPTIONAL_STEPS`), and the flows never call an
    undeclared one, so their default bodies only raise `NotImplementedError`.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    capabilities: ClassVar[PrimitiveCapabilities]

    def __init__(self, *, settings: Settings, log: Logger | None = None) -> None:
        self.settings = settings
        self.log = log or default_logger

    @abc.abstractmethod
    def prompt_new(self, prompter: Prompter) -> PrimitiveConfig | None:
        raise NotImplementedError

    def prompt_existing(self, prompter: Prompter) -> PrimitiveConfig | None:
        raise NotImplementedError

    def patch_config(self, config_path: Path, config: PrimitiveConfig) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def generate_files(self, target_dir: Path, config: PrimitiveConfig, *, into_existing: bool) -> None:
        raise NotImplementedError

    def pre_deploy_steps(self, project_dir: Path, config: PrimitiveConfig, *, toolchain: Toolchain) -> None:
        raise NotImplementedError

    def get_deployment_info(self, config: PrimitiveConfig) -> DeploymentInfo:
        raise NotImplementedError

    # Presentation hooks used by the flows. Empty by default.

    def integration_steps(self, config: PrimitiveConfig) -> list[str]:
        return []

    def deploy_later_commands(self, config: PrimitiveConfig) -> list[str]:
        return []

    def resource_reminder(self, config: PrimitiveConfig) -> str | None:
        return None


# Optional lifecycle steps and the capability flag that declares each of them.
OPTIONAL_STEPS: dict[str, str] = {
    "prompt_existing": "supports_existing",
    "patch_config": "patches_config",
    "pre_deploy_steps": "has_pre_deploy_steps",
    "get_deployment_info": "has_deployment_info",
}


def implements(primitive: Primitive, method_name: str) -> bool:
    return getattr(type(primitive), method_name) is not getattr(Primitive, method_name)


def _template_text(name: str) -> str:
    try:
        return resources.files("clementine.primitives").joinpath("templates", name).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TemplateError(f"Unknown template: {name}") from e


def render_template(name: str, tokens: dict[str, str] | None = None) -> str:
    """Load a packaged template and substitute `__TOKEN__` placeholders; unknown tokens are an error."""
    tokens = tokens or {}
    text = _template_text(name)
    missing = sorted({m.group(1) for m in _TEMPLATE_TOKEN_RE.finditer(text)} - set(tokens))
    if missing:
        raise TemplateError(f"Template {name} has no value for: {', '.join(missing)}")
    return _TEMPLATE_TOKEN_RE.sub(lambda m: tokens[m.group(1)], text)


def write_generated_file(path: Path, content: str, *, overwrite: bool, log: Logger) -> bool:
    """Write one generated artifact. Returns False (after a warning) when it exists and may not be replaced."""
    if path.exists() and not overwrite:
        log.warn(f"{path.name} already exists, skipping")
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


__all__ = [
    "DeploymentInfo",
    "OPTIONAL_STEPS",
    "Primitive",
    "PrimitiveCapabilities",
    "PrimitiveConfig",
    "TemplateError",
    "implements",
    "render_template",
    "write_generated_file",
]
