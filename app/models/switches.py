"""
Switches and connectors.

A switch breaks its circuit scope while open. Connectors fold parallel
branches into the series model: a splitter opens one child scope per
output and reports their parallel resistance; the connector that closes
the branches (a joiner) sits back in the parent scope and contributes
nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .component import ZERO_RESISTANCE, ComponentData
from .errors import CircuitConnectionError, ComponentError

logger = logging.getLogger(__name__)


class SwitchState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(eq=False)
class Switch(ComponentData):
    ohms: float = ZERO_RESISTANCE
    state: SwitchState = SwitchState.OPEN

    def open(self) -> None:
        self.state = SwitchState.OPEN

    def close(self) -> None:
        self.state = SwitchState.CLOSED

    def toggle(self) -> SwitchState:
        self.state = SwitchState.CLOSED if self.state == SwitchState.OPEN else SwitchState.OPEN
        self._session().request_light_update()
        return self.state

    def react(self, circuit_broken: bool) -> None:
        scope = self.scope
        if self.state == SwitchState.OPEN and not circuit_broken:
            scope.break_circuit(self)
        elif self.state == SwitchState.CLOSED and scope.broken_by_me(self):
            scope.break_circuit(None)

    def get_data(self) -> dict:
        data = super().get_data()
        data["state"] = self.state.value
        return data

    def apply(self, data: dict) -> "Switch":
        super().apply(data)
        if data.get("state") in (SwitchState.OPEN.value, SwitchState.CLOSED.value):
            self.state = SwitchState(data["state"])
        return self


@dataclass(eq=False)
class PushSwitch(Switch):
    """Changes state when the button is released."""

    def release(self) -> SwitchState:
        return self.toggle()


@dataclass(eq=False)
class TouchSwitch(Switch):
    """Closed only while touched."""

    def touch(self) -> None:
        self.close()
        self._session().request_light_update()

    def untouch(self) -> None:
        self.open()
        self._session().request_light_update()


def parallel_resistance(*resistances: float) -> float:
    """prod / sum of the non-zero resistances."""
    legs = [r for r in resistances if r != 0]
    if not legs:
        return 0.0
    product = 1.0
    for r in legs:
        product *= r
    return product / sum(legs)


@dataclass(eq=False)
class Connector(ComponentData):
    """
    Splitter or joiner.

    As a splitter (one input, two outputs) each output opens a child scope.
    Once a branch is connected back into it, the connector becomes a joiner
    (two inputs, one output) owned by the parent scope.
    """

    output_max: int = 2
    is_end: bool = False
    branch_one: Optional[int] = None
    branch_two: Optional[int] = None

    def is_connector(self) -> bool:
        return True

    def end(self) -> None:
        """Turn this connector into a joiner."""
        self.is_end = True
        self.input_max = 2
        self.output_max = 1

    def branch(self, number: int):
        """Child scope for output 1 or 2, if it exists."""
        scope_id = self.branch_one if number == 1 else self.branch_two
        if scope_id is None:
            return None
        return self._session().scopes.get(scope_id)

    def open_branch(self, target: ComponentData, record: Optional[dict] = None):
        """Connect the next free output into a new child scope."""
        number = len(self.output_ids) + 1
        if number > 2:
            raise CircuitConnectionError(f"{self} may only have 2 outputs")
        if self.branch(number) is not None:
            raise CircuitConnectionError(f"{self} branch {number} is already defined")

        model = self._session()
        child = model.new_scope(parent=self.scope)
        if number == 1:
            self.branch_one = child.scope_id
        else:
            self.branch_two = child.scope_id
        logger.debug("%s opened branch %d as scope %d", self, number, child.scope_id)
        return model.link(self, target, child, record)

    @property
    def resistance(self) -> float:
        if self.is_end:
            return 0.0
        one, two = self.branch(1), self.branch(2)
        if one is None or one.is_broken():
            return two.get_resistance() if two is not None else 0.0
        if two is None or two.is_broken():
            return one.get_resistance()
        return parallel_resistance(one.get_resistance(), two.get_resistance())

    @resistance.setter
    def resistance(self, value: float) -> None:
        self.ohms = ZERO_RESISTANCE if value <= 0 else value

    def react(self, circuit_broken: bool) -> None:
        if self.is_end:
            return
        one, two = self.branch(1), self.branch(2)
        if two is None or two.is_broken():
            if one is not None:
                one.set_current(self.scope.get_current())
        elif one is None or one.is_broken():
            two.set_current(self.scope.get_current())
        else:
            voltage = self.voltage
            one.set_current(voltage / (one.get_resistance() or ZERO_RESISTANCE))
            two.set_current(voltage / (two.get_resistance() or ZERO_RESISTANCE))


@dataclass(eq=False)
class TwoWaySwitch(Connector):
    """Connector that routes all of its current into one branch at a time."""

    active: int = 1
    original_active: int = 1

    def _inactive(self) -> int:
        return 2 if self.active == 1 else 1

    def toggle(self) -> int:
        self.active = self._inactive()
        model = self._session()
        model.request_light_update()
        model.request_heat_update()
        return self.active

    @property
    def resistance(self) -> float:
        if self.is_end:
            return 0.0
        if self.active not in (1, 2):
            raise ComponentError(f"{self} must be executing branch 1 or 2, got '{self.active}'")
        scope = self.branch(self.active)
        return scope.get_resistance() if scope is not None else 0.0

    @resistance.setter
    def resistance(self, value: float) -> None:
        self.ohms = ZERO_RESISTANCE if value <= 0 else value

    def skips_edge_to(self, component: ComponentData) -> bool:
        inactive = self.branch_two if self.active == 1 else self.branch_one
        return inactive is not None and component.scope_id == inactive

    def react(self, circuit_broken: bool) -> None:
        if self.is_end:
            return
        for number in (1, 2):
            scope = self.branch(number)
            if scope is not None and scope.broken_by_me(self):
                scope.break_circuit(None)
        active, inactive = self.branch(self.active), self.branch(self._inactive())
        if active is not None:
            active.set_current(self.current)
        if inactive is not None:
            inactive.break_circuit(self)

    def get_data(self) -> dict:
        data = super().get_data()
        data["active"] = self.active
        data["originalActive"] = self.original_active
        return data

    def apply(self, data: dict) -> "TwoWaySwitch":
        super().apply(data)
        if data.get("active") in (1, 2):
            self.active = data["active"]
            if data.get("originalActive") in (1, 2):
                self.original_active = data["originalActive"]
        return self
