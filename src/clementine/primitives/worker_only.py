from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from clementine.primitives.base import DeploymentInfo, Primitive, PrimitiveCapabilities, PrimitiveConfig
from clementine.prompting import Prompter, TextQuestion, validate_project_name

DEFAULT_PROJECT_NAME = "my-worker"


def _validate_worker_name(value: str) -> str | None:
    if validate_project_name(value) is None:
        return None
    return "Must be lowercase with hyphens (e.g., my-worker)"


@dataclass(frozen=True)
class BareProjectConfig(PrimitiveConfig):
    project_name: str

    kind: ClassVar[str] = "worker-only"


class WorkerOnlyPrimitive(Primitive):
    id = "worker-only"
    name = "Worker only"
    description = "Basic Worker project (no primitives)"
    capabilities = PrimitiveCapabilities(
        supports_new_project=True,
        supports_existing=False,
        has_deployment_info=True,
    )

    def prompt_new(self, prompter: Prompter) -> BareProjectConfig | None:
        self.log.plain("\nCreating a basic Worker project (no primitives).\n")
        project_name = prompter.text(
            TextQuestion("Project name?", default=DEFAULT_PROJECT_NAME, validate=_validate_worker_name)
        )
        if project_name is None:
            return None
        return BareProjectConfig(project_name=project_name)

    def generate_files(self, target_dir: Path, config: PrimitiveConfig, *, into_existing: bool) -> None:
        # The scaffolder already produced everything a bare Worker needs.
        return None

    def get_deployment_info(self, config: PrimitiveConfig) -> DeploymentInfo:
        return DeploymentInfo(
            success_message="🎉 Your worker is live!",
            next_steps=(
                "Open your worker URL to see it in action",
                'Run "clementine" again to add primitives like Queues, KV, or D1',
            ),
        )


__all__ = ["BareProjectConfig", "WorkerOnlyPrimitive"]
