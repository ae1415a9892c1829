"""
ComponentData - Pure Python base model for network components.

This module contains no Qt dependencies. All positions are represented as
tuples (x, y). A component is a node of the network graph: it knows its
own resistance, the current last assigned to it, its input/output wires
(by id) and the circuit scope that owns it. The connection, evaluation and
tracing protocols live here; concrete component types override the
``react`` hook and their own data.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .errors import CircuitConnectionError, ComponentError, NullReferenceError

if TYPE_CHECKING:
    from .circuit import CircuitModel
    from .scope import CircuitScope
    from .wire import WireData

logger = logging.getLogger(__name__)

# Sentinel resistances used instead of literal 0 / infinity
ZERO_RESISTANCE = 1e-10
LOW_RESISTANCE = 0.001
INFINITE_RESISTANCE = 7.5e15

# Currents beyond this always blow a blowable component
MAX_SAFE_INTEGER = 2**53 - 1

DEFAULT_WIDTH = 50.0

# Environment temperature range (degrees Celsius)
MIN_TEMPERATURE = -50.0
MAX_TEMPERATURE = 100.0


class Direction(str, Enum):
    """Direction of flow for power sources and diodes."""

    RIGHT = "right"
    LEFT = "left"


# Module-level counter for component ids. Ids are never reused.
_component_counter = 0


def reset_component_ids():
    """Reset the component id counter. Only safe with no live sessions."""
    global _component_counter
    _component_counter = 0


def next_component_id() -> int:
    global _component_counter
    _component_counter += 1
    return _component_counter


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high] (bounds may be given in either order)."""
    if high < low:
        low, high = high, low
    return max(low, min(high, value))


def map_number(n: float, start1: float, stop1: float, start2: float, stop2: float) -> float:
    """Linearly map n from [start1, stop1] onto [start2, stop2]."""
    return ((n - start1) / (stop1 - start1)) * (stop2 - start2) + start2


def read_number(data: dict, key: str) -> Optional[float]:
    """Return data[key] if it is a real number (not bool, not NaN)."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return value


# --- Capability traits ---


@dataclass
class Emitter:
    """Power source capability: the signed voltage emitted."""

    voltage: float


@dataclass
class Luminous:
    """Light emitting capability."""

    lumens_per_watt: float


@dataclass
class Blowable:
    """Failure capability: blows once |current| exceeds max_current."""

    max_current: float


@dataclass(eq=False)
class ComponentData:
    """
    Base class for every network component.

    Components compare by identity. Wire and scope references are ids into
    the owning session (``model``), which is attached when the component is
    added to a session.
    """

    component_id: int = field(default_factory=next_component_id)
    position: tuple[float, float] = (0.0, 0.0)
    angle: float = 0.0
    width: float = DEFAULT_WIDTH

    # Electrical state
    ohms: float = 0.0
    current: float = 0.0
    blown: bool = False
    blow_message: str = ""

    # Topology
    input_max: int = 1
    output_max: int = 1
    input_ids: list[int] = field(default_factory=list)
    output_ids: list[int] = field(default_factory=list)
    scope_id: int = 0

    # Optional capabilities
    emitter: Optional[Emitter] = None
    luminous: Optional[Luminous] = None
    blowable: Optional[Blowable] = None

    # Environment received (recomputed on request, one frame late)
    light_received: float = 0.0
    heat_received: float = 20.0

    model: Optional["CircuitModel"] = field(default=None, repr=False, compare=False)

    # --- Identity ---

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.type_name}#{self.component_id}"

    # --- Session lookups ---

    def _session(self) -> "CircuitModel":
        if self.model is None:
            raise NullReferenceError("Component.model", f"{self} is not part of a session")
        return self.model

    @property
    def scope(self) -> "CircuitScope":
        """Circuit scope that currently owns this component."""
        model = self._session()
        if self.scope_id not in model.scopes:
            raise NullReferenceError(f"Component.scope[{self.scope_id}]")
        return model.scopes[self.scope_id]

    @property
    def inputs(self) -> list["WireData"]:
        model = self._session()
        return [model.wires[wid] for wid in self.input_ids]

    @property
    def outputs(self) -> list["WireData"]:
        model = self._session()
        return [model.wires[wid] for wid in self.output_ids]

    # --- Electrical properties ---

    @property
    def resistance(self) -> float:
        return self.ohms

    @resistance.setter
    def resistance(self, value: float) -> None:
        self.ohms = ZERO_RESISTANCE if value <= 0 else value

    @property
    def voltage(self) -> float:
        """Emitted voltage for power sources, otherwise the drop I * R."""
        if self.emitter is not None:
            return self.emitter.voltage
        return self.current * self.resistance

    @voltage.setter
    def voltage(self, value: float) -> None:
        if self.emitter is None:
            raise ComponentError(f"{self} is not a power source")
        self.emitter.voltage = self.limit_voltage(value)

    def limit_voltage(self, value: float) -> float:
        """Hook for power sources that restrict their output."""
        return value

    @property
    def max_current(self) -> Optional[float]:
        return self.blowable.max_current if self.blowable is not None else None

    @max_current.setter
    def max_current(self, value: float) -> None:
        if self.blowable is None:
            raise ComponentError(f"{self} cannot be blown")
        self.blowable.max_current = 1.0 if value <= 0 else value

    @property
    def direction(self) -> Optional[Direction]:
        """Direction of a power source, None for everything else."""
        if self.emitter is None:
            return None
        return Direction.RIGHT if self.emitter.voltage >= 0 else Direction.LEFT

    # --- Capability predicates ---

    def is_power_source(self) -> bool:
        return self.emitter is not None

    def is_luminous(self) -> bool:
        return self.luminous is not None

    def is_blowable(self) -> bool:
        return self.blowable is not None

    def is_connector(self) -> bool:
        return False

    def is_on(self) -> bool:
        return self.current != 0 and not self.blown

    def is_blown(self) -> bool:
        if self.blowable is not None:
            magnitude = abs(self.current)
            return self.blown or magnitude > self.blowable.max_current or magnitude > MAX_SAFE_INTEGER
        return self.blown

    def passable(self) -> bool:
        """Can current pass through here (not blown, not the cause of its scope's break)?"""
        return not self.is_blown() and not self.scope.broken_by_me(self)

    def power(self) -> float:
        """W = V * I while on."""
        if not self.is_on():
            return 0.0
        return self.voltage * self.current

    def luminosity(self) -> float:
        """Lumens emitted: P * lumens per watt."""
        if self.luminous is None or not self.is_on():
            return 0.0
        return self.power() * self.luminous.lumens_per_watt

    def get_heat(self, t: float = 1.0) -> float:
        """Joule heating H = I^2 R t."""
        return self.current * self.current * self.resistance * t

    def heat_output(self) -> float:
        """Degrees Celsius this component radiates; only heaters radiate."""
        return 0.0

    # --- Failure ---

    def blow(self, message: Optional[str] = None) -> None:
        """Break the owning scope and latch this component as blown."""
        if message is None:
            if self.is_blown():
                message = (
                    f"Component {self} blew on {self.current}A, "
                    f"exceeding its limit of {self.max_current}A"
                )
            else:
                message = f"Component {self} was manually blown"

        self.scope.break_circuit(self)
        if not self.blown:
            self.blown = True
            self.blow_message = message
            self._session().request_light_update()
            logger.warning(message)

    def flip(self) -> Optional[Direction]:
        """Reverse a power source and give every diode a chance to unlock."""
        if self.emitter is None:
            return None
        self.emitter.voltage = -self.emitter.voltage
        self.scope.unlock_all_diodes()
        self._session().request_light_update()
        return self.direction

    def nudge(self, steps: int) -> bool:
        """
        Scroll-wheel adjustment of the component's main parameter.

        Positive steps increase it. Returns whether anything changed.
        """
        return False

    # --- Connection protocol ---

    def connect_to(self, target: "ComponentData", record: Optional[dict] = None) -> "WireData":
        """
        Connect this component's output to ``target``'s input.

        Args:
            target: Component to connect to.
            record: Optional connection record (path, material, ...).

        Returns:
            The new wire.

        Raises:
            CircuitConnectionError: If the connection breaks a topology rule.
        """
        if not isinstance(target, ComponentData):
            raise CircuitConnectionError("Cannot connect component to a non-component")
        if target is self:
            raise CircuitConnectionError(f"Cannot connect {self} to itself")
        for wire in self.outputs:
            if wire.output_id == target.component_id:
                raise CircuitConnectionError(f"{self} is already connected to {target}")

        model = self._session()
        scope = self.scope

        if self.is_connector() and not target.is_connector() and not self.is_end:
            return self.open_branch(target, record)
        if target.is_connector() and not self.is_connector() and scope.depth > 0:
            ancestor = model.find_scope_at_depth(scope.depth - 1)
            if ancestor is None:
                raise CircuitConnectionError(
                    f"Original circuit could not be found (depth: {scope.depth - 1})"
                )
            scope = ancestor
            target.end()
        elif len(self.output_ids) >= self.output_max or len(target.input_ids) >= target.input_max:
            raise CircuitConnectionError(
                f"Cannot connect {self} -> {target}: too many connections "
                f"({len(self.output_ids)}/{self.output_max} outputs, "
                f"{len(target.input_ids)}/{target.input_max} inputs)"
            )

        return model.link(self, target, scope, record)

    def remove(self) -> None:
        """Detach every wire, then drop this component from its scope and the session."""
        self._session().remove_component(self.component_id)

    # --- Evaluation protocol ---

    def evaluate(self) -> None:
        """
        Evaluate this component, then bubble forward along its outputs.

        Propagation stops at the head so the main loop is walked once.
        """
        model = self._session()
        circuit_broken = self.scope.is_broken()
        if not circuit_broken and self.is_blown():
            self.blow()

        self.react(circuit_broken)

        head = model.head
        for wire in self.outputs:
            destination = wire.output
            if destination is head:
                break
            destination.evaluate()

    def react(self, circuit_broken: bool) -> None:
        """Type-specific reaction during evaluation."""

    # --- Connectivity tracing ---

    def skips_edge_to(self, component: "ComponentData") -> bool:
        """Should a trace leaving this component ignore the edge to ``component``?"""
        return False

    def trace(
        self,
        target: "ComponentData",
        check_passable: bool = True,
        directed: bool = True,
        depth: int = 0,
        scanned_wires: Optional[list[int]] = None,
    ) -> Optional[list["ComponentData"]]:
        """
        Find the shortest path from here to ``target``.

        Args:
            target: Component to find.
            check_passable: Stop at components current cannot pass through.
            directed: Only follow outputs; otherwise inputs are walked
                backwards as well.

        Returns:
            Components visited between here and the target (this component
            excluded at the top level), or None if there is no path.
        """
        if depth != 0 and self is target:
            return []
        if check_passable and not self.passable():
            return None

        scanned = scanned_wires if scanned_wires is not None else []
        edges = [(wire, wire.output) for wire in self.outputs]
        if not directed:
            edges += [(wire, wire.input) for wire in self.inputs]

        shortest: Optional[list[ComponentData]] = None
        for wire, component in edges:
            if wire.wire_id in scanned or self.skips_edge_to(component):
                continue
            scanned.append(wire.wire_id)
            result = component.trace(target, check_passable, directed, depth + 1, list(scanned))
            if result is not None and (shortest is None or len(result) < len(shortest)):
                shortest = result

        if shortest is None:
            return None
        return shortest if depth == 0 else [self] + shortest

    def trace_forward(
        self, target: "ComponentData", depth: int = 0, visited: Optional[set[int]] = None
    ) -> Optional[list["ComponentData"]]:
        """First path found along outputs only."""
        if depth != 0 and self is target:
            return []
        if not self.passable():
            return None
        visited = visited if visited is not None else set()
        if self.component_id in visited:
            return None
        visited.add(self.component_id)

        for wire in self.outputs:
            result = wire.output.trace_forward(target, depth + 1, visited)
            if result is not None:
                return result if depth == 0 else [self] + result
        return None

    def trace_backward(
        self, target: "ComponentData", depth: int = 0, visited: Optional[set[int]] = None
    ) -> Optional[list["ComponentData"]]:
        """First path found along inputs only, starting with this component."""
        if depth != 0 and self is target:
            return [self]
        if not self.passable():
            return None
        visited = visited if visited is not None else set()
        if self.component_id in visited:
            return None
        visited.add(self.component_id)

        for wire in self.inputs:
            result = wire.input.trace_backward(target, depth + 1, visited)
            if result is not None:
                return [self] + result
        return None

    # --- Environment ---

    def distance_to(self, other: "ComponentData") -> float:
        return math.hypot(other.position[0] - self.position[0], other.position[1] - self.position[1])

    def light_receiving(self, update: bool = False) -> float:
        """
        Lumens reaching this component: ambient light plus a linear
        falloff from every luminous component within its radius.
        """
        if not update:
            return self.light_received
        model = self._session()
        total = model.ambient_light
        for other in model.components.values():
            if other is self or not other.is_luminous():
                continue
            lumens = other.luminosity()
            radius = lumens
            d = self.distance_to(other)
            if radius > 0 and d < radius:
                total += ((radius - d) / radius) * lumens
        self.light_received = total
        return total

    def heat_receiving(self, update: bool = False) -> float:
        """Warmest of the ambient temperature and every heater in range."""
        if not update:
            return self.heat_received
        model = self._session()
        background = model.ambient_temperature
        temperatures = [background]
        for other in model.components.values():
            if other is self:
                continue
            degrees = other.heat_output()
            radius = degrees * 5
            d = self.distance_to(other)
            if radius > 0 and d < radius:
                temperatures.append(background + ((radius - d) / radius) * degrees)
        self.heat_received = max(temperatures)
        return self.heat_received

    # --- Serialization ---

    def get_data(self) -> dict:
        """Type-specific settings for the session file."""
        data: dict = {}
        if self.angle:
            data["angle"] = self.angle
        if self.blowable is not None:
            data["maxCurrent"] = self.blowable.max_current
        if self.luminous is not None:
            data["lumensPerWatt"] = self.luminous.lumens_per_watt
        if self.emitter is not None:
            data["voltage"] = self.emitter.voltage
        return data

    def apply(self, data: dict) -> "ComponentData":
        """Apply type-specific settings; values of the wrong type are ignored."""
        angle = read_number(data, "angle")
        if angle is not None:
            self.angle = angle
        if self.blowable is not None:
            value = read_number(data, "maxCurrent")
            if value is not None:
                self.max_current = value
        if self.luminous is not None:
            value = read_number(data, "lumensPerWatt")
            if value is not None:
                self.luminous.lumens_per_watt = value
        if self.emitter is not None:
            value = read_number(data, "voltage")
            if value is not None:
                self.voltage = value
        return self

    def to_dict(self, connection: Optional[Callable[["WireData"], dict]] = None) -> dict:
        """
        Serialize to a component record.

        Args:
            connection: Serializer for each output wire; the session passes
                one that knows the saved position of every component.
        """
        record = {
            "type": self.type_name,
            "position": [self.position[0], self.position[1]],
            "connections": [connection(wire) for wire in self.outputs] if connection else [],
        }
        data = self.get_data()
        if data:
            record["data"] = data
        return record

    def __repr__(self) -> str:
        return (
            f"{self.type_name}(id={self.component_id}, R={self.resistance:g}, "
            f"I={self.current:g}, scope={self.scope_id})"
        )
