"""Typed failures raised by the composition pipeline."""

from __future__ import annotations


class ComputationError(Exception):
    """Base class: the measurement data cannot produce a composition result."""


class PreconditionError(ComputationError):
    """A mandatory input is missing or invalid."""

    def __init__(self, field: str, reason: str = "missing") -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Insufficient measurement data for this visit: '{field}' is {reason}"
        )


class DegenerateComputationError(ComputationError):
    """An intermediate quantity left the numerically valid domain."""

    def __init__(self, quantity: str, value: float, detail: str = "") -> None:
        self.quantity = quantity
        self.value = value
        message = (
            f"Invalid measurement data for this visit: {quantity}={value!r}"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
