"""
WireData - Pure Python data model for circuit wires.

This module contains no Qt dependencies. A wire is a directed edge from
an input component to an output component. Waypoints are stored as
tuples (x, y); the electrical model only needs the scalar length.
"""

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .component import clamp
from .errors import NullReferenceError

if TYPE_CHECKING:
    from .circuit import CircuitModel
    from .component import ComponentData

# Resistivity (ohm metres) of each wire material. The index into this
# table is what session files store.
MATERIALS: dict[str, float] = {
    "bismuth": 1.3e-6,
    "brass": 0.75e-7,
    "cadmium": 6e-8,
    "carbon_steel": 1010,
    "cobalt": 5.6e-8,
    "constantan": 4.9e-7,
    "copper": 1.68e-8,
    "germanium": 0.46,
    "gold": 2.44e-8,
    "iron": 1e-7,
    "lead": 2.2e-7,
    "manganin": 4.2e-7,
    "nichrome": 1.1e-6,
    "nickel": 6.99e-8,
    "palladium": 1e-7,
    "platinum": 1.06e-7,
    "silicon": 640,
    "silver": 1.56e-8,
    "stainless_steel": 6.9e-7,
    "tantalum": 1.3e-7,
    "tin": 1.09e-7,
    "titanium": 4.2e-7,
    "tungsten": 5.6e-8,
    "zinc": 5.9e-8,
}
MATERIAL_NAMES: list[str] = list(MATERIALS)

DEFAULT_MATERIAL = MATERIAL_NAMES.index("copper")
DEFAULT_RADIUS = 1.5
MIN_RADIUS = 0.4
MAX_RADIUS = 15.0


def _is_point(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    )


def material_resistance(material: int, volume: float, scale: float = 1.0) -> float:
    """Resistance of a body of the given material and volume."""
    resistivity = MATERIALS[MATERIAL_NAMES[material]]
    if resistivity < 0:
        return resistivity / volume / scale if volume else 0.0
    return resistivity * volume * scale


@dataclass
class WireData:
    """
    Pure Python data class representing a directed wire between two components.

    Endpoints and the owning circuit scope are held as ids; the session
    (``model``) resolves them.
    """

    wire_id: int
    input_id: int
    output_id: int
    scope_id: int = 0

    # Routing data (canvas geometry, only used for length)
    path: list[tuple[float, float]] = field(default_factory=list)

    has_resistance: bool = False
    material: int = DEFAULT_MATERIAL
    radius: float = DEFAULT_RADIUS

    model: Optional["CircuitModel"] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.radius = clamp(self.radius, MIN_RADIUS, MAX_RADIUS)
        self.material = int(clamp(self.material, 0, len(MATERIAL_NAMES) - 1))

    # --- Endpoints ---

    def _lookup(self, component_id: int) -> "ComponentData":
        if self.model is None or component_id not in self.model.components:
            raise NullReferenceError(f"Wire.component[{component_id}]")
        return self.model.components[component_id]

    @property
    def input(self) -> "ComponentData":
        """Component this wire leaves from."""
        return self._lookup(self.input_id)

    @property
    def output(self) -> "ComponentData":
        """Component this wire feeds into."""
        return self._lookup(self.output_id)

    def connects_component(self, component_id: int) -> bool:
        """Check if this wire connects to the given component."""
        return self.input_id == component_id or self.output_id == component_id

    # --- Material ---

    @property
    def material_name(self) -> str:
        return MATERIAL_NAMES[self.material]

    @material_name.setter
    def material_name(self, name: str) -> None:
        if name not in MATERIALS:
            raise ValueError(f"Unknown wire material '{name}'")
        self.material = MATERIAL_NAMES.index(name)

    # --- Geometry and resistance ---

    @property
    def length(self) -> float:
        """Length of the wire in canvas units."""
        if len(self.path) < 2:
            (x1, y1), (x2, y2) = self.input.position, self.output.position
            return math.hypot(x2 - x1, y2 - y1)
        return sum(
            math.hypot(b[0] - a[0], b[1] - a[1])
            for a, b in zip(self.path, self.path[1:])
        )

    def volume(self, in_cm: bool = False) -> float:
        """Volume of the wire as a cylinder (pi r^2 h)."""
        h, r = self.length, self.radius
        if in_cm:
            ratio = self.model.pixels_per_unit if self.model is not None else 1.0
            h, r = h / ratio, r / ratio
        return math.pi * r * r * h

    @property
    def resistance(self) -> float:
        """Resistance from material, cross-section and length; 0 unless enabled."""
        if not self.has_resistance:
            return 0.0
        return material_resistance(self.material, self.volume(in_cm=True))

    # --- Serialization ---

    def to_dict(self, index: int) -> dict:
        """
        Serialize to a connection record.

        Args:
            index: Position of the output component in the saved component list.
        """
        return {
            "index": index,
            "path": [[x, y] for x, y in self.path],
            "hasResistance": self.has_resistance,
            "material": self.material,
            "radius": self.radius,
        }

    def apply_record(self, record: Optional[dict]) -> None:
        """Apply the optional fields of a connection record."""
        if not record:
            return
        path = record.get("path")
        if isinstance(path, list) and all(_is_point(p) for p in path):
            self.path = [(float(x), float(y)) for x, y in path]
        if isinstance(record.get("hasResistance"), bool):
            self.has_resistance = record["hasResistance"]
        if isinstance(record.get("material"), int) and not isinstance(record["material"], bool):
            self.material = int(clamp(record["material"], 0, len(MATERIAL_NAMES) - 1))
        if isinstance(record.get("radius"), (int, float)) and not isinstance(record["radius"], bool):
            self.radius = clamp(record["radius"], MIN_RADIUS, MAX_RADIUS)

    def __repr__(self) -> str:
        return f"WireData(#{self.wire_id}: {self.input_id} -> {self.output_id})"
