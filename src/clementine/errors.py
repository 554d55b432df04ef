from __future__ import annotations


class ClementineError(RuntimeError):
    pass


class FlowError(ClementineError):
    """A fatal step in a scaffolding flow. `hint` is shown after the error, when set."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ToolchainError(ClementineError):
    pass


class PrimitiveContractError(ClementineError):
    pass


__all__ = [
    "ClementineError",
    "FlowError",
    "PrimitiveContractError",
    "ToolchainError",
]
