from __future__ import annotations

from collections.abc import Iterator
from typing import Literal

from clementine.errors import PrimitiveContractError
from clementine.primitives.base import OPTIONAL_STEPS, Primitive, implements

Scope = Literal["new", "existing"]


def check_contract(primitive: Primitive) -> None:
    """Raise `PrimitiveContractError` when capability flags and implemented steps disagree."""
    for attr in ("id", "name", "description", "capabilities"):
        if not getattr(primitive, attr, None):
            raise PrimitiveContractError(f"{type(primitive).__name__} is missing required attribute {attr!r}")

    caps = primitive.capabilities
    if not caps.supports_new_project and not caps.supports_existing:
        raise PrimitiveContractError(f"Primitive {primitive.id!r} supports neither new nor existing projects")

    for method_name, flag in OPTIONAL_STEPS.items():
        declared = bool(getattr(caps, flag))
        present = implements(primitive, method_name)
        if declared and not present:
            raise PrimitiveContractError(
                f"Primitive {primitive.id!r} declares {flag} but does not implement {method_name}()"
            )
        if present and not declared:
            raise PrimitiveContractError(
                f"Primitive {primitive.id!r} implements {method_name}() without declaring {flag}"
            )


class PrimitiveRegistry:
    def __init__(self) -> None:
        self._primitives: dict[str, Primitive] = {}

    def register(self, primitive: Primitive) -> None:
        # Re-registering an id replaces the earlier entry in place.
        check_contract(primitive)
        self._primitives[primitive.id] = primitive

    def get(self, primitive_id: str) -> Primitive | None:
        return self._primitives.get(primitive_id)

    def all(self) -> list[Primitive]:
        return list(self._primitives.values())

    def list_primitives(self, scope: Scope) -> list[Primitive]:
        if scope == "new":
            return [p for p in self._primitives.values() if p.capabilities.supports_new_project]
        if scope == "existing":
            return [p for p in self._primitives.values() if p.capabilities.supports_existing]
        raise ValueError(f"Unknown scope: {scope!r}")

    def __contains__(self, primitive_id: object) -> bool:
        return primitive_id in self._primitives

    def __iter__(self) -> Iterator[Primitive]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._primitives)


__all__ = ["PrimitiveRegistry", "Scope", "check_contract"]
