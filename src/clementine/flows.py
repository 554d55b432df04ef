"""
Primitive-agnostic orchestration.

`run_new_project_flow()` scaffolds a fresh Worker with one primitive pre-wired;
`run_existing_project_flow()` adds a primitive to the project in the working
directory. Both drive the primitive strictly through its lifecycle steps and
the capability flags it declares.

Return value is the process exit code for non-fatal outcomes (completion or
user cancellation). Fatal steps raise `FlowError`; nothing is rolled back.
"""

from __future__ import annotations

from pathlib import Path

from clementine.console import Logger, logger as default_logger
from clementine.detect import ProjectContext
from clementine.errors import FlowError
from clementine.primitives.base import DeploymentInfo, Primitive, PrimitiveConfig
from clementine.prompting import ConfirmQuestion, Prompter
from clementine.settings import Settings
from clementine.toolchain import Toolchain
from clementine.wrangler_config import find_config_file

DASHBOARD_URL = "https://dash.cloudflare.com"


def _deployment_info(primitive: Primitive, config: PrimitiveConfig) -> DeploymentInfo | None:
    if not primitive.capabilities.has_deployment_info:
        return None
    return primitive.get_deployment_info(config)


def _patch(primitive: Primitive, config_path: Path, config: PrimitiveConfig, *, log: Logger) -> None:
    if not primitive.capabilities.patches_config:
        return
    log.step(f"Adding {primitive.name} configuration...")
    if not primitive.patch_config(config_path, config):
        raise FlowError("Failed to patch wrangler config")


def _print_local_dev_instructions(
    primitive: Primitive,
    config: PrimitiveConfig,
    *,
    project_name: str,
    info: DeploymentInfo | None,
    settings: Settings,
    log: Logger,
) -> None:
    log.plain("\nFor local development:")
    log.plain(f"  cd {project_name}")
    log.plain("  npm run dev")

    if info is not None and info.next_steps:
        log.plain("\nTry the demo:")
        for idx, step in enumerate(info.next_steps, start=1):
            log.plain(f"  {idx}. {step}")

    log.plain("\nOr use curl:")
    log.plain(f'  curl -X POST {settings.dev_url} -d "Hello!"')

    log.plain("\nTo deploy later:")
    log.plain(f"  cd {project_name}")
    for command in primitive.deploy_later_commands(config):
        log.plain(f"  {command}")
    log.plain(f"  {' '.join(settings.deploy_command)}")


def run_new_project_flow(
    primitive: Primitive,
    *,
    context: ProjectContext,
    prompter: Prompter,
    toolchain: Toolchain,
    settings: Settings,
    log: Logger | None = None,
) -> int:
    log = log or default_logger
    if not primitive.capabilities.supports_new_project:
        raise FlowError(f"{primitive.name} cannot create a new project")

    config = primitive.prompt_new(prompter)
    if config is None:
        log.info("Setup cancelled")
        return 0

    project_name = config.project_name
    if not project_name:
        raise FlowError("Project name is required")

    project_dir = context.cwd / project_name
    if project_dir.exists():
        raise FlowError(f'Directory "{project_name}" already exists')

    log.step("Creating Worker project with create-cloudflare...")
    if not toolchain.create_project(context.cwd, project_name):
        raise FlowError(
            "Failed to run create-cloudflare",
            hint="Make sure you have npm installed and internet connection",
        )
    log.success("Base Worker project created")

    config_path = find_config_file(project_dir)
    if config_path is None:
        raise FlowError("Could not find wrangler config in the generated project")
    log.info(f"Detected {config_path.name} configuration")

    _patch(primitive, config_path, config, log=log)

    log.step(f"Generating {primitive.name} files...")
    primitive.generate_files(project_dir, config, into_existing=False)
    log.success(f"Created project: {project_name}")

    log.plain()
    should_deploy = prompter.confirm(ConfirmQuestion("Deploy to Cloudflare now?", default=False))
    info = _deployment_info(primitive, config)

    if should_deploy:
        log.plain()
        if primitive.capabilities.has_pre_deploy_steps:
            primitive.pre_deploy_steps(project_dir, config, toolchain=toolchain)

        log.step("Deploying to Cloudflare...")
        if toolchain.deploy(project_dir):
            log.success(f"Successfully deployed {project_name}!")
            if info is not None and info.success_message:
                log.plain(f"\n{info.success_message}")
            log.plain(f"View your deployment at: {DASHBOARD_URL}")
            return 0

        log.error("Deployment failed")
        log.info('If you are not logged in, run "npx wrangler login" to authenticate with Cloudflare')

    _print_local_dev_instructions(
        primitive,
        config,
        project_name=project_name,
        info=info,
        settings=settings,
        log=log,
    )
    return 0


def run_existing_project_flow(
    primitive: Primitive,
    *,
    context: ProjectContext,
    prompter: Prompter,
    toolchain: Toolchain,
    settings: Settings,
    log: Logger | None = None,
) -> int:
    log = log or default_logger
    if not primitive.capabilities.supports_existing:
        raise FlowError(f"{primitive.name} cannot be added to an existing project")

    config = primitive.prompt_existing(prompter)
    if config is None:
        log.info("Setup cancelled")
        return 0

    config_path = context.config_path
    if config_path is None:
        raise FlowError("Could not find wrangler.jsonc, wrangler.json or wrangler.toml in the project")

    _patch(primitive, config_path, config, log=log)

    log.step(f"Creating {primitive.name} files...")
    primitive.generate_files(context.cwd, config, into_existing=True)

    log.plain()
    log.rule()
    log.success(f"{primitive.name} configuration added!")
    log.rule()

    steps = primitive.integration_steps(config)
    if steps:
        entry_name = context.entry_file_path.name if context.entry_file_path is not None else "entry file"
        log.plain("\n📝 Manual steps required:\n")
        log.plain(f"Your existing {entry_name} was not modified. You need to integrate the generated code:\n")
        for line in steps:
            log.plain(line)

    if primitive.capabilities.has_pre_deploy_steps:
        log.plain()
        create = prompter.confirm(
            ConfirmQuestion(f"Create {primitive.name} resources in Cloudflare now?", default=False)
        )
        if create:
            log.plain()
            primitive.pre_deploy_steps(context.cwd, config, toolchain=toolchain)
        else:
            reminder = primitive.resource_reminder(config)
            if reminder:
                log.warn(reminder)

    info = _deployment_info(primitive, config)
    log.plain("\nNext steps:")
    log.plain("  npm run dev")
    if info is not None:
        for step in info.next_steps:
            log.plain(f"  {step}")

    log.plain("\nWhen ready to deploy:")
    log.plain(f"  {' '.join(settings.deploy_command)}")
    return 0


__all__ = ["DASHBOARD_URL", "run_existing_project_flow", "run_new_project_flow"]
