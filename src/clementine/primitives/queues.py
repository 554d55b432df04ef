from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from clementine.primitives.base import (
    DeploymentInfo,
    Primitive,
    PrimitiveCapabilities,
    PrimitiveConfig,
    render_template,
    write_generated_file,
)
from clementine.prompting import (
    Prompter,
    TextQuestion,
    validate_binding_name,
    validate_project_name,
    validate_queue_name,
)
from clementine.toolchain import Toolchain
from clementine.wrangler_config import patch_queue_config

DEFAULT_PROJECT_NAME = "my-queue-worker"
DEFAULT_QUEUE_NAME = "demo-queue"
DEFAULT_BINDING_NAME = "DEMO_QUEUE"

ENTRY_FILE = "index.ts"
EVENT_STORE_FILE = "event-store.ts"
DASHBOARD_FILE = "dashboard.html"
REFERENCE_FILE = "queue-handler.ts"


@dataclass(frozen=True)
class QueueFeatureConfig(PrimitiveConfig):
    queue_name: str
    binding_name: str
    project_name: str | None = None
    max_batch_size: int = 4
    max_batch_timeout: int = 3
    max_retries: int = 3

    kind: ClassVar[str] = "queues"


def _as_queue_config(config: PrimitiveConfig) -> QueueFeatureConfig:
    if not isinstance(config, QueueFeatureConfig):
        raise TypeError(f"Expected QueueFeatureConfig, got {type(config).__name__}")
    return config


class QueuesPrimitive(Primitive):
    id = "queues"
    name = "Queues"
    description = "Workers Queues with interactive dashboard"
    capabilities = PrimitiveCapabilities(
        supports_new_project=True,
        supports_existing=True,
        patches_config=True,
        has_pre_deploy_steps=True,
        has_deployment_info=True,
    )

    def _ask_queue(self, prompter: Prompter, *, project_name: str | None) -> QueueFeatureConfig | None:
        queue_name = prompter.text(
            TextQuestion("Queue name?", default=DEFAULT_QUEUE_NAME, validate=validate_queue_name)
        )
        if queue_name is None:
            return None
        binding_name = prompter.text(
            TextQuestion("Binding name?", default=DEFAULT_BINDING_NAME, validate=validate_binding_name)
        )
        if binding_name is None:
            return None
        defaults = self.settings.queue_defaults
        return QueueFeatureConfig(
            queue_name=queue_name,
            binding_name=binding_name,
            project_name=project_name,
            max_batch_size=defaults.max_batch_size,
            max_batch_timeout=defaults.max_batch_timeout,
            max_retries=defaults.max_retries,
        )

    def prompt_new(self, prompter: Prompter) -> QueueFeatureConfig | None:
        self.log.plain("\nNo Worker project detected. Let's create a new one with Queues!\n")
        project_name = prompter.text(
            TextQuestion("Project name?", default=DEFAULT_PROJECT_NAME, validate=validate_project_name)
        )
        if project_name is None:
            return None
        return self._ask_queue(prompter, project_name=project_name)

    def prompt_existing(self, prompter: Prompter) -> QueueFeatureConfig | None:
        self.log.plain("\nDetected a Cloudflare Worker project in this directory.\n")
        return self._ask_queue(prompter, project_name=None)

    def patch_config(self, config_path: Path, config: PrimitiveConfig) -> bool:
        cfg = _as_queue_config(config)
        return patch_queue_config(
            config_path,
            queue_name=cfg.queue_name,
            binding_name=cfg.binding_name,
            max_batch_size=cfg.max_batch_size,
            max_batch_timeout=cfg.max_batch_timeout,
            max_retries=cfg.max_retries,
            log=self.log,
        )

    def generate_files(self, target_dir: Path, config: PrimitiveConfig, *, into_existing: bool) -> None:
        cfg = _as_queue_config(config)
        src_dir = target_dir / "src"
        src_dir.mkdir(parents=True, exist_ok=True)
        tokens = {"BINDING_NAME": cfg.binding_name, "QUEUE_NAME": cfg.queue_name}
        worker_code = render_template("worker.ts.tmpl", tokens)

        written: list[str] = []
        if into_existing:
            # The project's own entry file is left alone; the full worker is written as a reference.
            if write_generated_file(src_dir / REFERENCE_FILE, worker_code, overwrite=True, log=self.log):
                written.append(REFERENCE_FILE)
        elif write_generated_file(src_dir / ENTRY_FILE, worker_code, overwrite=True, log=self.log):
            written.append(ENTRY_FILE)

        artifacts = (
            (EVENT_STORE_FILE, render_template("event-store.ts.tmpl")),
            (DASHBOARD_FILE, render_template("dashboard.html.tmpl")),
        )
        for filename, content in artifacts:
            if write_generated_file(src_dir / filename, content, overwrite=not into_existing, log=self.log):
                written.append(filename)

        if written:
            self.log.success(f"Created queue demo files ({', '.join(written)})")

    def pre_deploy_steps(self, project_dir: Path, config: PrimitiveConfig, *, toolchain: Toolchain) -> None:
        cfg = _as_queue_config(config)
        self.log.step(f"Creating queue: {cfg.queue_name}...")
        if toolchain.create_queue(project_dir, cfg.queue_name):
            self.log.success(f'Queue "{cfg.queue_name}" created')
            return
        self.log.warn("Queue creation failed (it might already exist)")
        self.log.info("Continuing with deployment...")

    def get_deployment_info(self, config: PrimitiveConfig) -> DeploymentInfo:
        return DeploymentInfo(
            success_message="🎉 Your queue worker is live!",
            next_steps=(
                f"Open {self.settings.dev_url} in your browser to view the live dashboard",
                'Click "Enqueue Message" to send messages to the queue',
                "Watch the real-time visualization of queue → consumer → events",
            ),
        )

    def integration_steps(self, config: PrimitiveConfig) -> list[str]:
        cfg = _as_queue_config(config)
        return [
            "1. Add to your Env interface:",
            f"   {cfg.binding_name}: Queue;",
            "   EVENT_STORE: DurableObjectNamespace;",
            "",
            "2. Add these imports at the top of your entry file:",
            '   import { EventStore } from "./event-store";',
            '   import dashboardHTML from "./dashboard.html";',
            "",
            "3. Export the EventStore class:",
            "   export { EventStore };",
            "",
            "4. Add dashboard route to your fetch handler:",
            '   if (request.method === "GET" && url.pathname === "/") {',
            "     return new Response(dashboardHTML, {",
            '       headers: { "Content-Type": "text/html" },',
            "     });",
            "   }",
            "",
            "5. Add queue consumer handler to your worker:",
            "   async queue(batch: MessageBatch, env: Env): Promise<void> {",
            f"     // See {REFERENCE_FILE} for full implementation",
            "   }",
            "",
            f"📄 Reference: Check src/{REFERENCE_FILE} for the complete implementation",
        ]

    def deploy_later_commands(self, config: PrimitiveConfig) -> list[str]:
        cfg = _as_queue_config(config)
        return [" ".join(self.settings.render_queue_create_command(queue_name=cfg.queue_name))]

    def resource_reminder(self, config: PrimitiveConfig) -> str | None:
        cfg = _as_queue_config(config)
        command = " ".join(self.settings.render_queue_create_command(queue_name=cfg.queue_name))
        return f"Remember to create the queue before deploying: {command}"


__all__ = ["QueueFeatureConfig", "QueuesPrimitive"]
