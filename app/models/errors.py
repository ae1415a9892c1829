"""
Error types raised by the circuit model.

Topology and load errors are recoverable at the call site. Evaluation
errors are fatal to the current step and stop the simulation loop.
"""

from typing import Optional


class CircuitError(Exception):
    """Base class for every error raised by the circuit model."""


class CircuitConnectionError(CircuitError):
    """A connection would violate the network topology rules."""


class ComponentError(CircuitError):
    """Unknown component type, or a component invariant broken mid-evaluation."""


class SaveError(CircuitError):
    """A persisted session record is malformed."""

    def __init__(self, message: str, missing_property: Optional[str] = None):
        if missing_property:
            message = f"{message} (expected '{missing_property}')"
        super().__init__(message)
        self.missing_property = missing_property


class NullReferenceError(CircuitError):
    """A required id did not resolve to an object in the session."""

    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"Expected '{name}', but got null")
        self.name = name
