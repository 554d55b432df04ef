from __future__ import annotations

from clementine.console import Logger
from clementine.primitives.base import (
    DeploymentInfo,
    Primitive,
    PrimitiveCapabilities,
    PrimitiveConfig,
    TemplateError,
    render_template,
)
from clementine.primitives.queues import QueueFeatureConfig, QueuesPrimitive
from clementine.primitives.registry import PrimitiveRegistry
from clementine.primitives.worker_only import BareProjectConfig, WorkerOnlyPrimitive
from clementine.settings import Settings


def build_default_registry(*, settings: Settings, log: Logger | None = None) -> PrimitiveRegistry:
    """Registry with every built-in primitive, in menu order."""
    registry = PrimitiveRegistry()
    registry.register(QueuesPrimitive(settings=settings, log=log))
    registry.register(WorkerOnlyPrimitive(settings=settings, log=log))
    return registry


__all__ = [
    "BareProjectConfig",
    "DeploymentInfo",
    "Primitive",
    "PrimitiveCapabilities",
    "PrimitiveConfig",
    "PrimitiveRegistry",
    "QueueFeatureConfig",
    "QueuesPrimitive",
    "TemplateError",
    "WorkerOnlyPrimitive",
    "build_default_registry",
    "render_template",
]
