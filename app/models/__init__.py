"""
Pure Python data models for Voltaic.

This package contains Qt-free classes for the electrical network: the
session arena, circuit scopes, wires and every component type.
All models use only Python standard library types (no PyQt6 dependencies).
"""

from .circuit import CircuitModel
from .component import (
    INFINITE_RESISTANCE,
    LOW_RESISTANCE,
    ZERO_RESISTANCE,
    ComponentData,
    Direction,
    reset_component_ids,
)
from .errors import (
    CircuitConnectionError,
    CircuitError,
    ComponentError,
    NullReferenceError,
    SaveError,
)
from .registry import COMPONENT_CLASSES, component_class, create_component, normalize_type_name
from .scope import CircuitScope
from .wire import MATERIAL_NAMES, MATERIALS, WireData

__all__ = [
    "CircuitModel",
    "CircuitScope",
    "ComponentData",
    "WireData",
    "Direction",
    "COMPONENT_CLASSES",
    "MATERIALS",
    "MATERIAL_NAMES",
    "ZERO_RESISTANCE",
    "LOW_RESISTANCE",
    "INFINITE_RESISTANCE",
    "component_class",
    "create_component",
    "normalize_type_name",
    "reset_component_ids",
    "CircuitError",
    "CircuitConnectionError",
    "ComponentError",
    "NullReferenceError",
    "SaveError",
]
