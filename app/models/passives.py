"""
Resistive loads: resistors, sensors and the components that turn current
into light, heat, motion or sound.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

from .component import (
    LOW_RESISTANCE,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    ZERO_RESISTANCE,
    Blowable,
    ComponentData,
    Luminous,
    clamp,
    map_number,
    read_number,
)

logger = logging.getLogger(__name__)

# Heater energy <-> temperature conversion factor
JOULES_TO_DEGREES = 0.00052656507646646


def joules_to_degrees(joules: float) -> float:
    return joules * JOULES_TO_DEGREES


def degrees_to_joules(degrees: float) -> float:
    return degrees / JOULES_TO_DEGREES


@dataclass(eq=False)
class Resistor(ComponentData):
    ohms: float = 1.0

    def get_data(self) -> dict:
        data = super().get_data()
        data["resistance"] = self.ohms
        return data

    def apply(self, data: dict) -> "Resistor":
        super().apply(data)
        value = read_number(data, "resistance")
        if value is not None:
            self.resistance = value
        return self


@dataclass(eq=False)
class VariableResistor(Resistor):
    MIN_RESISTANCE = 0.0
    MAX_RESISTANCE = 1e3

    def step_size(self) -> float:
        """Nudge step grows with the current value."""
        if self.ohms > 1e5:
            return 1e3
        if self.ohms > 1e4:
            return 100.0
        if self.ohms > 1e3:
            return 1.0
        return 0.1

    def nudge(self, steps: int) -> bool:
        before = self.ohms
        amount = self.step_size() if steps > 0 else -self.step_size()
        self.resistance = clamp(self.ohms + amount, self.MIN_RESISTANCE, self.MAX_RESISTANCE)
        self._session().request_light_update()
        return self.ohms != before


class ThermistorMode(str, Enum):
    NTC = "ntc"
    PTC = "ptc"


@dataclass(eq=False)
class Thermistor(Resistor):
    """
    Temperature-dependent resistor.

    PTC: resistance rises with received temperature. NTC: the reverse.
    """

    MIN_RESISTANCE = ZERO_RESISTANCE
    MAX_RESISTANCE = 2.0

    mode: ThermistorMode = ThermistorMode.NTC

    def toggle(self) -> ThermistorMode:
        self.mode = ThermistorMode.PTC if self.mode == ThermistorMode.NTC else ThermistorMode.NTC
        return self.mode

    def react(self, circuit_broken: bool) -> None:
        temperature = clamp(self.heat_received, MIN_TEMPERATURE, MAX_TEMPERATURE)
        low, high = self.MIN_RESISTANCE, self.MAX_RESISTANCE
        if self.mode == ThermistorMode.NTC:
            low, high = high, low
        self.ohms = map_number(temperature, MIN_TEMPERATURE, MAX_TEMPERATURE, low, high)

    def get_data(self) -> dict:
        data = super().get_data()
        data["mode"] = self.mode.value
        return data

    def apply(self, data: dict) -> "Thermistor":
        super().apply(data)
        if data.get("mode") in (ThermistorMode.NTC.value, ThermistorMode.PTC.value):
            self.mode = ThermistorMode(data["mode"])
        return self


@dataclass(eq=False)
class PhotoResistor(Resistor):
    """More light, less resistance."""

    MAX_LUMENS = 1000.0

    def react(self, circuit_broken: bool) -> None:
        lumens = clamp(self.light_received, 0, self.MAX_LUMENS)
        self.ohms = map_number(lumens, 0, self.MAX_LUMENS, 1, ZERO_RESISTANCE)


@dataclass(eq=False)
class Bulb(ComponentData):
    """Filament bulb. Blows on over-current or when its power exceeds its wattage."""

    ohms: float = 2.0
    luminous: Luminous = field(default_factory=lambda: Luminous(lumens_per_watt=15.0))
    blowable: Blowable = field(default_factory=lambda: Blowable(max_current=5.0))
    wattage: float = 10.0

    def set_wattage(self, watts: float) -> float:
        self.wattage = clamp(watts, 0, 1e6)
        return self.wattage

    def brightness(self) -> float:
        """Fraction of rated power being drawn."""
        if not self.is_on() or not self.wattage:
            return 0.0
        return abs(self.power()) / self.wattage

    def react(self, circuit_broken: bool) -> None:
        model = self._session()
        if model.running and not circuit_broken and abs(self.power()) > self.wattage:
            self.blow(
                f"Component {self} blew as its power input ({self.power()} W) "
                f"exceeded its limit of +-{self.wattage}W"
            )

    def get_data(self) -> dict:
        data = super().get_data()
        data["wattage"] = self.wattage
        return data

    def apply(self, data: dict) -> "Bulb":
        super().apply(data)
        wattage = read_number(data, "wattage")
        if wattage is not None:
            self.set_wattage(wattage)
        return self


@dataclass(eq=False)
class Fuse(ComponentData):
    ohms: float = LOW_RESISTANCE
    blowable: Blowable = field(default_factory=lambda: Blowable(max_current=10.0))

    def close_to_break(self) -> float:
        """|I| as a fraction of the rated current."""
        return abs(self.current / self.blowable.max_current)


@dataclass(eq=False)
class Heater(ComponentData):
    """
    Converts current into heat (H = I^2 R t).

    Energy accumulates while on, up to the maximum temperature, and drains
    while off.
    """

    ohms: float = 2.5
    efficiency: float = 3500.0
    max_temperature: float = MAX_TEMPERATURE
    joules: float = 0.0

    @property
    def max_joules(self) -> float:
        return degrees_to_joules(self.max_temperature)

    def degrees(self) -> float:
        return joules_to_degrees(self.joules)

    def set_degrees(self, degrees: float) -> None:
        self.joules = degrees_to_joules(clamp(degrees, 0, self.max_temperature + 1))

    def set_max_temperature(self, degrees: float) -> None:
        self.max_temperature = clamp(degrees, 0, MAX_TEMPERATURE + 1)

    def percent(self) -> float:
        return (self.degrees() / self.max_temperature) * 100 if self.max_temperature else 0.0

    def heat_output(self) -> float:
        return self.degrees()

    def react(self, circuit_broken: bool) -> None:
        changed = False
        if self.is_on():
            if self.joules < self.max_joules:
                self.joules = min(self.joules + self.get_heat() * self.efficiency, self.max_joules)
                changed = True
        elif self.joules > 0:
            self.joules = max(self.joules - self.efficiency / 2, 0.0)
            changed = True
        if changed:
            self._session().request_heat_update()

    def get_data(self) -> dict:
        data = super().get_data()
        data["efficiency"] = self.efficiency
        data["maxTemperature"] = self.max_temperature
        return data

    def apply(self, data: dict) -> "Heater":
        super().apply(data)
        efficiency = read_number(data, "efficiency")
        if efficiency is not None:
            self.efficiency = max(efficiency, 0.0)
        max_temperature = read_number(data, "maxTemperature")
        if max_temperature is not None:
            self.set_max_temperature(max_temperature)
        return self


@dataclass(eq=False)
class Motor(ComponentData):
    """Rotor angle (radians) advances by (I / max) * k per tick."""

    MIN_K = 0.1
    MAX_K = 5.0

    ohms: float = 4.0
    blowable: Blowable = field(default_factory=lambda: Blowable(max_current=5.0))
    k: float = 1.0
    rotation: float = 0.0

    def set_k(self, k: float) -> None:
        self.k = clamp(k, self.MIN_K, self.MAX_K)

    def delta(self) -> float:
        return (self.current / self.blowable.max_current) * self.k

    def react(self, circuit_broken: bool) -> None:
        self.rotation += self.delta()
        if self.rotation > 2 * math.pi:
            self.rotation = 0.0
        elif self.rotation < 0:
            self.rotation = 2 * math.pi

    def nudge(self, steps: int) -> bool:
        before = self.k
        self.set_k(self.k + (self.MIN_K if steps > 0 else -self.MIN_K))
        return self.k != before

    def get_data(self) -> dict:
        data = super().get_data()
        data["k"] = self.k
        return data

    def apply(self, data: dict) -> "Motor":
        super().apply(data)
        k = read_number(data, "k")
        if k is not None:
            self.set_k(k)
        return self


@dataclass(eq=False)
class Buzzer(ComponentData):
    MIN_FREQUENCY = 100.0
    MAX_FREQUENCY = 15000.0

    ohms: float = 3.0
    blowable: Blowable = field(default_factory=lambda: Blowable(max_current=5.0))
    frequency: float = 1000.0
    muted: bool = False

    def set_frequency(self, hz: float) -> None:
        self.frequency = clamp(hz, self.MIN_FREQUENCY, self.MAX_FREQUENCY)

    def volume(self) -> float:
        if not self.is_on():
            return 0.0
        return round(clamp(abs(self.current) / self.blowable.max_current, 0, 1), 3)

    def playing_volume(self) -> float:
        """Level the view should play the tone at; silent while muted."""
        return 0.0 if self.muted else self.volume()

    def get_data(self) -> dict:
        data = super().get_data()
        data["frequency"] = self.frequency
        data["muted"] = self.muted
        return data

    def apply(self, data: dict) -> "Buzzer":
        super().apply(data)
        frequency = read_number(data, "frequency")
        if frequency is not None:
            self.set_frequency(frequency)
        if isinstance(data.get("muted"), bool):
            self.muted = data["muted"]
        return self
