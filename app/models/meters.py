"""
Measuring instruments.

Ammeters and lightmeters sit in series with negligible resistance; a
voltmeter has the infinite resistance sentinel and belongs in parallel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .component import INFINITE_RESISTANCE, LOW_RESISTANCE, ComponentData


@dataclass(eq=False)
class ScaledMeter(ComponentData, ABC):
    """Meter with a selectable display unit (index into ``UNITS``)."""

    UNITS = ()
    BASE_UNIT = 2

    ohms: float = LOW_RESISTANCE
    units: int = BASE_UNIT

    @property
    def unit(self) -> str:
        return self.UNITS[self.units][0]

    def change_units(self, step: int = 1) -> int:
        """Cycle through the units, wrapping at either end."""
        self.units = (self.units + step) % len(self.UNITS)
        return self.units

    def nudge(self, steps: int) -> bool:
        self.change_units(1 if steps > 0 else -1)
        return True

    @abstractmethod
    def measured(self) -> float:
        """Quantity being measured, in the base unit."""

    def reading(self) -> float:
        """Measured value in the selected unit."""
        return self.measured() * self.UNITS[self.units][1]

    def get_data(self) -> dict:
        data = super().get_data()
        data["units"] = self.units
        return data

    def apply(self, data: dict) -> "ScaledMeter":
        super().apply(data)
        units = data.get("units")
        if isinstance(units, int) and not isinstance(units, bool) and 0 <= units < len(self.UNITS):
            self.units = units
        return self


@dataclass(eq=False)
class Ammeter(ScaledMeter):
    UNITS = (("uA", 1e6), ("mA", 1e3), ("A", 1.0), ("kA", 1e-3))

    def measured(self) -> float:
        return self.current if self.is_on() else 0.0


@dataclass(eq=False)
class Lightmeter(ScaledMeter):
    UNITS = (("ulm", 1e6), ("mlm", 1e3), ("lm", 1.0), ("klm", 1e-3))

    def measured(self) -> float:
        return self.light_received


@dataclass(eq=False)
class Voltmeter(ComponentData):
    ohms: float = INFINITE_RESISTANCE

    def reading(self) -> float:
        return self.voltage if self.is_on() else 0.0


@dataclass(eq=False)
class Thermometer(ComponentData):
    """Reads the temperature it receives; blows above ``MAX``."""

    MIN = -20.0
    MAX = 100.0

    ohms: float = LOW_RESISTANCE

    def reading(self) -> float:
        return self.heat_received

    def fraction_full(self) -> float:
        return (self.heat_received - self.MIN) / (self.MAX - self.MIN)

    def react(self, circuit_broken: bool) -> None:
        if self._session().running and not circuit_broken and self.heat_received > self.MAX:
            self.blow(
                f"Component {self} blew as it exceeded {self.MAX:g}C "
                f"(was {self.heat_received:g}C)"
            )

