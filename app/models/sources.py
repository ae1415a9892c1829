"""
Power source components.

Every power source carries an ``Emitter`` trait with its signed voltage.
The first power source in the session becomes the head that evaluation
starts from.
"""

import logging
from dataclasses import dataclass, field

from .component import ComponentData, Emitter, clamp, read_number
from .errors import ComponentError

logger = logging.getLogger(__name__)

CELL_VOLTAGE = 1.5


@dataclass(eq=False)
class PowerSource(ComponentData):
    """Base power source: no internal resistance."""

    ohms: float = 0.0
    emitter: Emitter = field(default_factory=lambda: Emitter(voltage=0.0))


@dataclass(eq=False)
class Cell(PowerSource):
    emitter: Emitter = field(default_factory=lambda: Emitter(voltage=CELL_VOLTAGE))


@dataclass(eq=False)
class Battery(PowerSource):
    """A stack of 1..10 cells."""

    MIN_CELLS = 1
    MAX_CELLS = 10

    cells: int = 1
    cell_voltage: float = CELL_VOLTAGE
    emitter: Emitter = field(default_factory=lambda: Emitter(voltage=CELL_VOLTAGE))

    def set_cells(self, count: int) -> None:
        self.cells = int(clamp(count, self.MIN_CELLS, self.MAX_CELLS))
        sign = -1 if self.emitter.voltage < 0 else 1
        self.emitter.voltage = sign * abs(self.cell_voltage) * self.cells

    def nudge(self, steps: int) -> bool:
        before = self.cells
        self.set_cells(self.cells + (1 if steps > 0 else -1))
        return self.cells != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["cells"] = self.cells
        return data

    def apply(self, data: dict) -> "Battery":
        super().apply(data)
        cells = read_number(data, "cells")
        if cells is not None:
            self.cells = int(clamp(cells, self.MIN_CELLS, self.MAX_CELLS))
        if read_number(data, "voltage") is None:
            self.set_cells(self.cells)
        return self


@dataclass(eq=False)
class DCPowerSupply(Cell):
    """Adjustable supply; the voltage is limited to +-max_voltage."""

    delta: float = 0.1
    max_voltage: float = 230.0

    def limit_voltage(self, value: float) -> float:
        return clamp(value, -self.max_voltage, self.max_voltage)

    def sensitivity(self, value: float) -> float:
        """Set the per-step change of nudge."""
        self.delta = 0.1 if value <= 0 else clamp(value, 1e-3, 1e3)
        return self.delta

    def nudge(self, steps: int) -> bool:
        before = self.voltage
        self.voltage = before + (self.delta if steps > 0 else -self.delta)
        return self.voltage != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["delta"] = self.delta
        data["maxVoltage"] = self.max_voltage
        return data

    def apply(self, data: dict) -> "DCPowerSupply":
        max_voltage = read_number(data, "maxVoltage")
        if max_voltage is not None:
            self.max_voltage = abs(max_voltage)
        delta = read_number(data, "delta")
        if delta is not None:
            self.delta = delta
        super().apply(data)
        return self


@dataclass(eq=False)
class ACPowerSupply(DCPowerSupply):
    """
    Alternating supply: flips direction every ``frame`` ticks.

    Must sit in the top circuit scope; anywhere else is a fatal
    evaluation error.
    """

    frame: int = 8
    last_flip_frame: int = -1

    def set_frame(self, frames: float) -> int:
        self.frame = max(1, round(frames))
        return self.frame

    def hertz(self, fps: float) -> float:
        """Flip frequency at the given frame rate."""
        return fps / self.frame

    def react(self, circuit_broken: bool) -> None:
        if self.scope.depth != 0:
            raise ComponentError(f"{self.type_name} component must be in top-level circuit")
        tick = self._session().frame
        if tick != self.last_flip_frame and tick % self.frame == 0:
            self.last_flip_frame = tick
            logger.debug("%s flipping on frame %d", self, tick)
            self.flip()

    def get_data(self) -> dict:
        data = super().get_data()
        data["frame"] = self.frame
        return data

    def apply(self, data: dict) -> "ACPowerSupply":
        super().apply(data)
        frame = read_number(data, "frame")
        if frame is not None:
            self.set_frame(frame)
        return self
