"""
Capacitor: charges from the head power source and discharges around its
own loop once the source is out of reach.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .component import INFINITE_RESISTANCE, ZERO_RESISTANCE, ComponentData, read_number

logger = logging.getLogger(__name__)


class CapacitorState(str, Enum):
    NULL = "null"
    CHARGING = "charging"
    DISCHARGING = "discharging"
    FULL = "full"


@dataclass(eq=False)
class Capacitor(ComponentData):
    """
    Stores charge up to a target voltage.

    Charging follows V = V_target (1 - e^(-t/T)) with T = RC, where R is
    the resistance of the path from the head. Time is counted in frames
    and converted to seconds at the session frame rate unless
    ``as_seconds`` is off. After 5T (99.3%) the capacitor counts as full.
    """

    FULL_PERCENT = 99.3

    capacitance: float = 2200.0  # microfarads
    target_voltage: float = 5.0
    stored_voltage: float = 0.0
    charge_time: int = 0
    as_seconds: bool = True

    @property
    def farads(self) -> float:
        return self.capacitance * 1e-6

    @property
    def max_charge(self) -> float:
        """Q = CV at the target voltage."""
        return self.farads * self.target_voltage

    @property
    def voltage(self) -> float:
        return self.stored_voltage

    @voltage.setter
    def voltage(self, value: float) -> None:
        self.stored_voltage = max(0.0, value)

    def set_capacitance(self, microfarads: float) -> float:
        if math.isfinite(microfarads):
            self.capacitance = abs(microfarads)
        return self.capacitance

    def set_target_voltage(self, volts: float) -> float:
        if math.isfinite(volts):
            self.target_voltage = abs(volts)
        return self.target_voltage

    # --- Paths ---

    def access_oneself(self) -> Optional[list[ComponentData]]:
        """Loop back to this capacitor, ignoring flow direction."""
        return self.trace(self, check_passable=True, directed=False)

    def access_power(self) -> Optional[list[ComponentData]]:
        """Path from the head to here, if the head can also be reached back."""
        head = self._session().head
        if head is None or self.trace(head, check_passable=True, directed=False) is None:
            return None
        return head.trace(self, check_passable=True, directed=True)

    def path_resistance(self) -> Optional[float]:
        """Resistance of the charging path, else the discharge loop; None without either."""
        path = self.access_power()
        if path is None:
            path = self.access_oneself()
        if path is None:
            return None
        return sum(component.resistance for component in path)

    def time_constant(self) -> Optional[float]:
        """T = RC, or None without a path."""
        r = self.path_resistance()
        return None if r is None else r * self.farads

    def charge_seconds(self) -> float:
        """Seconds to fully charge (5RC); -1 without a path."""
        r = self.path_resistance()
        return -1.0 if r is None else 5 * r * self.farads

    def voltage_after(self, t: float, charging: bool = True) -> float:
        t_constant = self.time_constant()
        if t_constant is None:
            return 0.0
        level = self.target_voltage if charging else self.stored_voltage
        if t_constant <= 0:
            return level if charging else 0.0
        v = level * (1 - math.exp(-t / t_constant))
        if math.isnan(v):
            return 0.0
        if math.isinf(v):
            return INFINITE_RESISTANCE
        return max(v, 0.0)

    # --- State ---

    def percentage(self, v: Optional[float] = None) -> float:
        if v is None:
            v = self.stored_voltage
        if not self.target_voltage:
            return 100.0
        return (v / self.target_voltage) * 100

    def is_full(self) -> bool:
        return self.percentage() >= self.FULL_PERCENT

    @property
    def state(self) -> CapacitorState:
        if self.access_power() is None:
            if self.stored_voltage <= 0:
                return CapacitorState.NULL
            if self.access_oneself() is not None:
                return CapacitorState.DISCHARGING
            return CapacitorState.NULL
        if self.is_full():
            return CapacitorState.FULL
        return CapacitorState.CHARGING

    def _elapsed(self) -> float:
        if self.as_seconds:
            return self._session().frames_to_seconds(self.charge_time)
        return float(self.charge_time)

    def react(self, circuit_broken: bool) -> None:
        state = self.state
        if state == CapacitorState.CHARGING:
            self.charge_time += 1
            self.stored_voltage = self.voltage_after(self._elapsed(), charging=True)
        elif state == CapacitorState.DISCHARGING:
            self.charge_time = max(0, self.charge_time - 1)
            self.stored_voltage = self.voltage_after(self._elapsed(), charging=False)
            loop = self.access_oneself() or []
            for component in loop:
                component.current = self.stored_voltage / (component.resistance or ZERO_RESISTANCE)
            self._session().request_light_update()
            logger.debug("%s discharging at %.4g V", self, self.stored_voltage)

    def get_data(self) -> dict:
        data = super().get_data()
        data["capacitance"] = self.capacitance
        data["target"] = self.target_voltage
        return data

    def apply(self, data: dict) -> "Capacitor":
        super().apply(data)
        capacitance = read_number(data, "capacitance")
        if capacitance is not None:
            self.set_capacitance(capacitance)
        target = read_number(data, "target")
        if target is not None:
            self.set_target_voltage(target)
        return self
