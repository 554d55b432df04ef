from __future__ import annotations

from dataclasses import dataclass

from clementine.console import Logger
from clementine.detect import ProjectContext
from clementine.errors import FlowError
from clementine.flows import run_existing_project_flow, run_new_project_flow
from clementine.primitives.base import Primitive
from clementine.primitives.registry import PrimitiveRegistry, Scope
from clementine.prompting import Choice, Prompter, SelectQuestion
from clementine.settings import Settings
from clementine.toolchain import Toolchain

QUEUES_PRIMITIVE_ID = "queues"


@dataclass(frozen=True)
class Runtime:
    """Collaborators for one CLI invocation."""

    registry: PrimitiveRegistry
    prompter: Prompter
    toolchain: Toolchain
    settings: Settings
    log: Logger


def _check_flags(*, force_new: bool, force_add: bool, context: ProjectContext) -> None:
    if force_new and force_add:
        raise FlowError("Cannot use both --add and --new flags")
    if force_add and not context.is_existing_project:
        raise FlowError("Not a Worker project. Use --new to create a new project.")


def _run_flow(runtime: Runtime, primitive: Primitive, *, scope: Scope, context: ProjectContext) -> int:
    flow = run_existing_project_flow if scope == "existing" else run_new_project_flow
    return flow(
        primitive,
        context=context,
        prompter=runtime.prompter,
        toolchain=runtime.toolchain,
        settings=runtime.settings,
        log=runtime.log,
    )


def _select_primitive(runtime: Runtime, *, scope: Scope) -> Primitive | None:
    candidates = runtime.registry.list_primitives(scope)
    if not candidates:
        return None
    message = "What would you like to add?" if scope == "existing" else "What would you like to create?"
    picked = runtime.prompter.select(
        SelectQuestion(
            message,
            tuple(Choice(value=p.id, title=p.name, description=p.description) for p in candidates),
        )
    )
    if picked is None:
        return None
    primitive = runtime.registry.get(picked)
    if primitive is None:
        raise FlowError(f"Unknown primitive: {picked}")
    return primitive


def run_init(runtime: Runtime, context: ProjectContext, *, force_new: bool = False, force_add: bool = False) -> int:
    """Interactive mode: pick a primitive, then add it here or scaffold a new project with it."""
    _check_flags(force_new=force_new, force_add=force_add, context=context)
    log = runtime.log

    if force_new:
        scope: Scope = "new"
    elif force_add:
        scope = "existing"
    elif context.is_existing_project:
        log.plain("\n✨ Detected existing Worker project\n")
        scope = "existing"
    else:
        log.plain("\n✨ No Worker project detected\n")
        scope = "new"

    primitive = _select_primitive(runtime, scope=scope)
    if primitive is None:
        log.info("Setup cancelled")
        return 0

    if scope == "existing" and not primitive.capabilities.supports_existing:
        log.warn("Already in a Worker project. Nothing to do!")
        return 0

    return _run_flow(runtime, primitive, scope=scope, context=context)


def run_queues(runtime: Runtime, context: ProjectContext, *, force_new: bool = False, force_add: bool = False) -> int:
    """Direct entry for the Queues primitive; picks new/existing from the project context unless forced."""
    _check_flags(force_new=force_new, force_add=force_add, context=context)
    primitive = runtime.registry.get(QUEUES_PRIMITIVE_ID)
    if primitive is None:
        raise FlowError("Queues primitive is not registered")

    if force_new:
        return _run_flow(runtime, primitive, scope="new", context=context)
    if force_add:
        return _run_flow(runtime, primitive, scope="existing", context=context)

    if context.is_existing_project:
        runtime.log.info("Detected existing Worker project")
        return _run_flow(runtime, primitive, scope="existing", context=context)
    runtime.log.info("No Worker project detected. Creating new project...")
    return _run_flow(runtime, primitive, scope="new", context=context)


__all__ = ["QUEUES_PRIMITIVE_ID", "Runtime", "run_init", "run_queues"]
