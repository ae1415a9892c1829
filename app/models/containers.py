"""
Containers whose resistance comes from a material and its dimensions.

Both share the wire materials table. A click toggles whether scrolling
changes the material or the length.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .component import DEFAULT_WIDTH, ComponentData, clamp, read_number
from .wire import DEFAULT_MATERIAL, DEFAULT_RADIUS, MATERIAL_NAMES, material_resistance


def _read_material(data: dict) -> Optional[int]:
    value = read_number(data, "material")
    if value is None:
        return None
    return int(clamp(value, 0, len(MATERIAL_NAMES) - 1))


def _wrap_material(material: int, steps: int) -> int:
    return (material + (1 if steps > 0 else -1)) % len(MATERIAL_NAMES)


@dataclass(eq=False)
class MaterialContainer(ComponentData):
    """
    Box of material. Its length is the component width; depth and height
    are both the default component width.
    """

    MIN_LENGTH = 10.0
    MAX_LENGTH = 150.0
    DEPTH = DEFAULT_WIDTH

    material: int = DEFAULT_MATERIAL
    change_material: bool = True

    @property
    def material_name(self) -> str:
        return MATERIAL_NAMES[self.material]

    @property
    def length(self) -> float:
        return self.width

    @length.setter
    def length(self, value: float) -> None:
        self.width = clamp(value, self.MIN_LENGTH, self.MAX_LENGTH)

    def volume(self, in_cm: bool = False) -> float:
        w, h = self.width, self.DEPTH
        if in_cm:
            ratio = self.model.pixels_per_unit if self.model is not None else 1.0
            w, h = w / ratio, h / ratio
        return w * h * h

    @property
    def resistance(self) -> float:
        return material_resistance(self.material, self.volume(in_cm=True))

    def toggle(self) -> bool:
        self.change_material = not self.change_material
        return self.change_material

    def nudge(self, steps: int) -> bool:
        if not steps:
            return False
        if self.change_material:
            self.material = _wrap_material(self.material, steps)
            return True
        before = self.length
        self.length = self.length + (1 if steps > 0 else -1)
        return self.length != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["material"] = self.material
        data["length"] = self.length
        return data

    def apply(self, data: dict) -> "MaterialContainer":
        super().apply(data)
        material = _read_material(data)
        if material is not None:
            self.material = material
        length = read_number(data, "length")
        if length is not None:
            self.length = length
        return self


@dataclass(eq=False)
class WireContainer(ComponentData):
    """
    Housing for a length of bare wire.

    Resistance is resistivity times the wire's cylindrical volume (pi r^2 h),
    scaled up so short lengths still register.
    """

    MIN_LENGTH = 1.0
    MAX_LENGTH = 100.0
    MIN_RADIUS = 1.0
    MAX_RADIUS = 10.0
    SCALE = 1e3

    width: float = 100.0
    material: int = DEFAULT_MATERIAL
    length: float = 10.0
    radius: float = DEFAULT_RADIUS * 2
    change_material: bool = False

    @property
    def material_name(self) -> str:
        return MATERIAL_NAMES[self.material]

    def set_length(self, value: float) -> float:
        self.length = clamp(value, self.MIN_LENGTH, self.MAX_LENGTH)
        return self.length

    def set_radius(self, value: float) -> float:
        self.radius = clamp(value, self.MIN_RADIUS, self.MAX_RADIUS)
        return self.radius

    def _ratio(self) -> float:
        return self.model.pixels_per_unit if self.model is not None else 1.0

    def radius_cm(self, cm: Optional[float] = None) -> float:
        """Radius in cm; given ``cm``, set it first (clamped in pixels)."""
        if cm is not None:
            self.set_radius(cm * self._ratio())
        return self.radius / self._ratio()

    def volume(self, in_cm: bool = False) -> float:
        h, r = self.length, self.radius
        if in_cm:
            ratio = self._ratio()
            h, r = h / ratio, r / ratio
        return math.pi * r * r * h

    @property
    def resistance(self) -> float:
        return material_resistance(self.material, self.volume(in_cm=True), self.SCALE)

    def toggle(self) -> bool:
        self.change_material = not self.change_material
        return self.change_material

    def nudge(self, steps: int) -> bool:
        if not steps:
            return False
        if self.change_material:
            self.material = _wrap_material(self.material, steps)
            return True
        before = self.length
        self.set_length(self.length + (1 if steps > 0 else -1))
        return self.length != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["material"] = self.material
        data["length"] = self.length
        data["r"] = self.radius
        return data

    def apply(self, data: dict) -> "WireContainer":
        super().apply(data)
        material = _read_material(data)
        if material is not None:
            self.material = material
        length = read_number(data, "length")
        if length is not None:
            self.set_length(length)
        radius = read_number(data, "r")
        if radius is not None:
            self.set_radius(radius)
        return self
