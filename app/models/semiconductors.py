"""
Diodes: one-way components with a reversible lock.

A diode that sees current against its direction locks: its resistance
jumps to the infinite sentinel and it breaks its circuit scope. It unlocks
again once the flow is consistent, repairing the scope if it was the cause.
"""

import logging
from dataclasses import dataclass, field

from .component import (
    INFINITE_RESISTANCE,
    LOW_RESISTANCE,
    Blowable,
    ComponentData,
    Direction,
    Luminous,
    clamp,
    read_number,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Diode(ComponentData):
    ohms: float = LOW_RESISTANCE
    blowable: Blowable = field(default_factory=lambda: Blowable(max_current=5.0))
    facing: Direction = Direction.RIGHT
    locked: bool = False

    @property
    def direction(self) -> Direction:
        return self.facing

    def _bad_flow(self) -> bool:
        if self.facing == Direction.RIGHT:
            return self.current < 0
        return self.current > 0

    def lock(self) -> bool:
        """Lock on reverse flow. Returns whether the diode locked just now."""
        if self.locked or not self._bad_flow():
            return False
        self.locked = True
        self.ohms = INFINITE_RESISTANCE
        scope = self.scope
        if not scope.is_broken():
            scope.break_circuit(self)
        logger.info("%s locked (current %g against %s)", self, self.current, self.facing.value)
        return True

    def unlock(self) -> bool:
        """Unlock if the flow is consistent with the direction."""
        if self._bad_flow():
            return False
        if self.locked:
            logger.info("%s unlocked", self)
        self.locked = False
        self.ohms = LOW_RESISTANCE
        scope = self.scope
        if scope.broken_by_me(self):
            scope.break_circuit(None)
        return True

    def is_on(self) -> bool:
        return not self.locked and super().is_on()

    def passable(self) -> bool:
        return not self.locked and super().passable()

    def flip(self) -> Direction:
        """Reverse the diode's direction, then try to unlock."""
        self.facing = Direction.LEFT if self.facing == Direction.RIGHT else Direction.RIGHT
        self.unlock()
        return self.facing

    def react(self, circuit_broken: bool) -> None:
        self.lock()

    def get_data(self) -> dict:
        data = super().get_data()
        data["direction"] = self.facing.value
        return data

    def apply(self, data: dict) -> "Diode":
        super().apply(data)
        if data.get("direction") in (Direction.RIGHT.value, Direction.LEFT.value):
            self.facing = Direction(data["direction"])
        return self


@dataclass(eq=False)
class LightEmittingDiode(Diode):
    MAX_HUE = 259

    luminous: Luminous = field(default_factory=lambda: Luminous(lumens_per_watt=90.0))
    hue: float = 0.0

    def set_hue(self, hue: float) -> None:
        self.hue = clamp(hue, 0, self.MAX_HUE)

    def nudge(self, steps: int) -> bool:
        before = self.hue
        hue = self.hue + (2 if steps > 0 else -2)
        if hue < 0:
            hue += 360
        elif hue >= 360:
            hue -= 360
        self.set_hue(hue)
        return self.hue != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["hue"] = self.hue
        return data

    def apply(self, data: dict) -> "LightEmittingDiode":
        super().apply(data)
        hue = read_number(data, "hue")
        if hue is not None:
            self.set_hue(hue)
        return self
