"""
CircuitScope - a series scope of the network.

This module contains no Qt dependencies. The top scope (depth 0) holds the
main loop; every splitter output opens a child scope one level deeper.
Parallel topology is folded into series sums by the splitter, which
reports the parallel resistance of its child scopes.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .component import ZERO_RESISTANCE
from .errors import NullReferenceError

if TYPE_CHECKING:
    from .circuit import CircuitModel
    from .component import ComponentData
    from .wire import WireData

logger = logging.getLogger(__name__)


@dataclass
class CircuitScope:
    """
    A circuit scope: ordered component and wire membership, depth and
    broken state.

    The parent scope is a lookup id only. Current assigned to a scope is
    fanned out to every component it directly owns.
    """

    scope_id: int
    depth: int = 0
    parent_id: Optional[int] = None
    component_ids: list[int] = field(default_factory=list)
    wire_ids: list[int] = field(default_factory=list)
    broken: bool = False
    broken_by: Optional[int] = None
    last_current: float = 0.0

    model: Optional["CircuitModel"] = field(default=None, repr=False, compare=False)

    # --- Membership ---

    @property
    def parent(self) -> Optional["CircuitScope"]:
        if self.parent_id is None:
            return None
        if self.model is None or self.parent_id not in self.model.scopes:
            raise NullReferenceError(f"CircuitScope.parent[{self.parent_id}]")
        return self.model.scopes[self.parent_id]

    @property
    def components(self) -> list["ComponentData"]:
        return [self.model.components[cid] for cid in self.component_ids]

    @property
    def wires(self) -> list["WireData"]:
        return [self.model.wires[wid] for wid in self.wire_ids]

    def is_descendant_of(self, other: "CircuitScope") -> bool:
        """True if this scope is ``other`` or nested anywhere inside it."""
        scope: Optional[CircuitScope] = self
        while scope is not None:
            if scope.scope_id == other.scope_id:
                return True
            scope = scope.parent
        return False

    # --- Aggregates ---

    def get_resistance(self) -> float:
        """
        Series sum of owned component resistances plus the resistance of
        output wires that stay inside this scope.

        Near-zero resistances contribute nothing.
        """
        total = 0.0
        for component in self.components:
            r = component.resistance
            if r > ZERO_RESISTANCE:
                total += r
            for wire in component.outputs:
                if wire.output.scope_id == component.scope_id:
                    r = wire.resistance
                    if r > ZERO_RESISTANCE:
                        total += r
        return total

    def get_voltage(self) -> float:
        """
        Voltage across this scope.

        The top scope sums its power sources. A child scope takes the share
        of the top voltage proportional to its share of the top resistance.
        """
        if self.is_broken() or self.model is None:
            return 0.0
        if self.depth == 0:
            return sum(c.voltage for c in self.components if c.is_power_source())
        top = self.model.top
        top_resistance = top.get_resistance() or ZERO_RESISTANCE
        return (self.get_resistance() / top_resistance) * top.get_voltage()

    def get_current(self) -> float:
        """I = V / R, or 0 when broken."""
        if self.is_broken():
            return 0.0
        voltage = self.get_voltage()
        if voltage == 0:
            return 0.0
        return voltage / (self.get_resistance() or ZERO_RESISTANCE)

    def set_current(self, value: float) -> None:
        """Fan a current out to each owned component, zeroed where its own scope is broken."""
        self.last_current = value
        for component in self.components:
            component.current = 0.0 if component.scope.is_broken() else value

    resistance = property(get_resistance)
    voltage = property(get_voltage)
    current = property(get_current, set_current)

    def power(self) -> float:
        return self.get_voltage() * self.get_current()

    # --- Break state ---

    def is_broken(self) -> bool:
        """Broken if this scope or any ancestor is broken."""
        if self.broken:
            return True
        parent = self.parent
        return parent.is_broken() if parent is not None else False

    def break_circuit(self, component: Optional["ComponentData"]) -> bool:
        """
        Break this scope on behalf of ``component``, or repair it when
        ``component`` is None.

        A scope that is already broken keeps its original cause.

        Returns:
            Whether the scope is now broken.
        """
        if component is not None and not self.broken:
            self.broken = True
            self.broken_by = component.component_id
            self.set_current(0.0)
            logger.info("Circuit scope %d broken by %s", self.scope_id, component)
        elif component is None and self.broken:
            self.broken = False
            self.broken_by = None
            logger.info("Circuit scope %d repaired", self.scope_id)
        if self.model is not None:
            self.model.request_light_update()
        return self.broken

    def broken_by_me(self, component: "ComponentData") -> bool:
        return self.broken and self.broken_by == component.component_id

    def unlock_all_diodes(self) -> int:
        """
        Re-evaluate the session, then try to unlock every diode in this
        scope and the scopes nested inside it.

        Returns:
            Number of diodes visited.
        """
        from .semiconductors import Diode

        self.model.evaluate()
        count = 0
        for component in list(self.model.components.values()):
            if isinstance(component, Diode) and component.scope.is_descendant_of(self):
                component.unlock()
                count += 1
        return count
