"""
CircuitModel - Central data store for a simulation session.

This module contains no Qt dependencies. It owns every component, wire
and circuit scope by id, the cached head power source, the ambient
environment and the frame counter, and runs one evaluation step per tick.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .component import MAX_TEMPERATURE, MIN_TEMPERATURE, ComponentData, clamp
from .errors import CircuitConnectionError, ComponentError, NullReferenceError, SaveError
from .registry import component_class
from .scope import CircuitScope
from .wire import WireData

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 900
DEFAULT_HEIGHT = 700
DEFAULT_PIXELS_PER_UNIT = 2.5
DEFAULT_AMBIENT_TEMPERATURE = 20.0
DEFAULT_AMBIENT_LIGHT = 0.0
DEFAULT_FPS = 20


@dataclass
class CircuitModel:
    """
    Central data store holding all session state.

    ``components`` keeps registry order: the first power source in it is
    the head that evaluation starts from, and saving rewrites it into flow
    order.
    """

    components: dict[int, ComponentData] = field(default_factory=dict)
    wires: dict[int, WireData] = field(default_factory=dict)
    scopes: dict[int, CircuitScope] = field(default_factory=dict)
    top_scope_id: int = 0

    # Session settings (persisted)
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    pixels_per_unit: float = DEFAULT_PIXELS_PER_UNIT
    ambient_temperature: float = DEFAULT_AMBIENT_TEMPERATURE
    ambient_light: float = DEFAULT_AMBIENT_LIGHT

    # Run state
    running: bool = False
    frame: int = 0
    fps: int = DEFAULT_FPS
    light_update_frame: Optional[int] = None
    heat_update_frame: Optional[int] = None

    _head_id: Optional[int] = field(default=None, repr=False)
    _head_valid: bool = field(default=False, repr=False)
    _next_wire_id: int = field(default=1, repr=False)
    _next_scope_id: int = field(default=1, repr=False)

    def __post_init__(self):
        if self.top_scope_id not in self.scopes:
            self.scopes[self.top_scope_id] = CircuitScope(scope_id=self.top_scope_id, model=self)

    # --- Lookups ---

    @property
    def top(self) -> CircuitScope:
        """The depth-0 circuit scope."""
        return self.scopes[self.top_scope_id]

    @property
    def head(self) -> Optional[ComponentData]:
        """First power source in registry order (cached until the graph changes)."""
        if not self._head_valid:
            self._head_id = next(
                (cid for cid, c in self.components.items() if c.is_power_source()), None
            )
            self._head_valid = True
        return self.components.get(self._head_id) if self._head_id is not None else None

    def invalidate_head(self) -> None:
        self._head_valid = False

    def is_empty(self) -> bool:
        return not self.components

    def frames_to_seconds(self, frames: float) -> float:
        """Simulated time covered by ``frames`` ticks at the current rate."""
        return frames / self.fps

    def get_component(self, component_id: int) -> ComponentData:
        if component_id not in self.components:
            raise NullReferenceError(f"CircuitModel.components[{component_id}]")
        return self.components[component_id]

    # --- Component operations ---

    def create_component(
        self, type_name: str, position: tuple[float, float] = (0.0, 0.0), data: Optional[dict] = None
    ) -> ComponentData:
        """
        Create a component by type name and add it to the top scope.

        Raises:
            ComponentError: If the type name is unknown.
        """
        cls = component_class(type_name)
        component = cls(position=(float(position[0]), float(position[1])))
        self.add_component(component)
        if data:
            component.apply(data)
        return component

    def add_component(self, component: ComponentData) -> ComponentData:
        """Register a detached component in the top scope."""
        component.model = self
        self.components[component.component_id] = component
        component.scope_id = self.top_scope_id
        self.top.component_ids.append(component.component_id)
        self.invalidate_head()
        return component

    def place_component(self, component: ComponentData, scope: CircuitScope) -> None:
        """Move a component into ``scope``, removing it from its previous one."""
        cid = component.component_id
        old = self.scopes.get(component.scope_id)
        if old is scope and cid in scope.component_ids:
            return
        if old is not None and cid in old.component_ids:
            old.component_ids.remove(cid)
        scope.component_ids.append(cid)
        component.scope_id = scope.scope_id

    def remove_component(self, component_id: int) -> list[int]:
        """
        Remove a component and every wire attached to it.

        Returns:
            Ids of the wires that were removed.
        """
        component = self.components.get(component_id)
        if component is None:
            return []

        removed = []
        for wire_id in list(component.input_ids) + list(component.output_ids):
            if self.remove_wire(wire_id) is not None:
                removed.append(wire_id)

        scope = self.scopes.get(component.scope_id)
        if scope is not None and component_id in scope.component_ids:
            scope.component_ids.remove(component_id)
        if scope is not None and scope.broken_by == component_id:
            scope.break_circuit(None)

        del self.components[component_id]
        component.model = None
        self.invalidate_head()
        self.request_light_update()
        self.request_heat_update()
        logger.debug("Removed %s (%d wires)", component, len(removed))
        return removed

    # --- Scope and wire operations ---

    def new_scope(self, parent: CircuitScope) -> CircuitScope:
        """Open a child scope one level below ``parent``."""
        scope = CircuitScope(
            scope_id=self._next_scope_id,
            depth=parent.depth + 1,
            parent_id=parent.scope_id,
            model=self,
        )
        self._next_scope_id += 1
        self.scopes[scope.scope_id] = scope
        logger.debug("Created circuit scope %d at depth %d", scope.scope_id, scope.depth)
        return scope

    def find_scope_at_depth(self, depth: int) -> Optional[CircuitScope]:
        """Scope of the most recently registered component at ``depth``."""
        for component in reversed(list(self.components.values())):
            scope = self.scopes.get(component.scope_id)
            if scope is not None and scope.depth == depth:
                return scope
        return None

    def link(
        self,
        source: ComponentData,
        target: ComponentData,
        scope: CircuitScope,
        record: Optional[dict] = None,
    ) -> WireData:
        """Create the wire source -> target inside ``scope``; no checks are made here."""
        wire = WireData(
            wire_id=self._next_wire_id,
            input_id=source.component_id,
            output_id=target.component_id,
            scope_id=scope.scope_id,
            model=self,
        )
        wire.apply_record(record)
        self._next_wire_id += 1

        self.wires[wire.wire_id] = wire
        source.output_ids.append(wire.wire_id)
        target.input_ids.append(wire.wire_id)
        scope.wire_ids.append(wire.wire_id)
        self.place_component(target, scope)
        self.invalidate_head()
        logger.debug("Connected %s -> %s in scope %d", source, target, scope.scope_id)
        return wire

    def remove_wire(self, wire_id: int) -> Optional[WireData]:
        """Remove a wire from both endpoints, its scope and the session."""
        wire = self.wires.pop(wire_id, None)
        if wire is None:
            return None
        source = self.components.get(wire.input_id)
        if source is not None and wire_id in source.output_ids:
            source.output_ids.remove(wire_id)
        target = self.components.get(wire.output_id)
        if target is not None and wire_id in target.input_ids:
            target.input_ids.remove(wire_id)
        scope = self.scopes.get(wire.scope_id)
        if scope is not None and wire_id in scope.wire_ids:
            scope.wire_ids.remove(wire_id)
        wire.model = None
        self.invalidate_head()
        return wire

    # --- Evaluation ---

    def evaluate(self) -> bool:
        """
        Run one evaluation step from the head.

        Returns:
            False if nothing was evaluated (stopped, empty, no power source
            or no closed loop), True otherwise.

        Raises:
            ComponentError: If a component hits a structural error.
        """
        self.apply_pending_updates()
        if not self.running or self.is_empty():
            return False
        head = self.head
        if head is None:
            return False
        if head.trace(head, check_passable=False, directed=False) is None:
            return False

        top = self.top
        top.current = top.get_current()
        head.evaluate()
        return True

    def start(self) -> None:
        self.running = True
        self.update_environment()
        logger.info("Simulation started (%d components)", len(self.components))

    def stop(self) -> None:
        """Stop running and zero every current."""
        self.running = False
        for scope in self.scopes.values():
            scope.last_current = 0.0
        for component in self.components.values():
            component.current = 0.0
        logger.info("Simulation stopped on frame %d", self.frame)

    # --- Environment ---

    def set_ambient_light(self, lumens: float) -> float:
        self.ambient_light = max(0.0, float(lumens))
        self.request_light_update()
        return self.ambient_light

    def set_ambient_temperature(self, degrees: float) -> float:
        self.ambient_temperature = clamp(float(degrees), MIN_TEMPERATURE, MAX_TEMPERATURE)
        self.request_heat_update()
        return self.ambient_temperature

    def request_light_update(self) -> None:
        """Recompute received light on the next frame."""
        if self.light_update_frame is None:
            self.light_update_frame = self.frame

    def request_heat_update(self) -> None:
        """Recompute received heat on the next frame."""
        if self.heat_update_frame is None:
            self.heat_update_frame = self.frame

    def apply_pending_updates(self) -> None:
        """Apply light/heat updates requested on an earlier frame."""
        if self.light_update_frame is not None and self.frame > self.light_update_frame:
            self.light_update_frame = None
            for component in self.components.values():
                component.light_receiving(update=True)
        if self.heat_update_frame is not None and self.frame > self.heat_update_frame:
            self.heat_update_frame = None
            for component in self.components.values():
                component.heat_receiving(update=True)

    def update_environment(self) -> None:
        """Recompute received light and heat now."""
        self.light_update_frame = None
        self.heat_update_frame = None
        for component in self.components.values():
            component.light_receiving(update=True)
            component.heat_receiving(update=True)

    # --- Ordering ---

    def order_components(self) -> list[ComponentData]:
        """
        Components in flow order: depth-first along outputs from the head,
        then every unreached component in registry order.
        """
        ordered: list[ComponentData] = []
        seen: set[int] = set()
        head = self.head
        if head is not None:
            stack = [head]
            while stack:
                component = stack.pop()
                if component.component_id in seen:
                    continue
                seen.add(component.component_id)
                ordered.append(component)
                # Reversed so the first output is visited first
                for wire in reversed(component.outputs):
                    if wire.output_id not in seen:
                        stack.append(wire.output)
        ordered.extend(c for cid, c in self.components.items() if cid not in seen)
        return ordered

    def reorder_components(self) -> None:
        self.components = {c.component_id: c for c in self.order_components()}

    # --- Circuit operations ---

    def clear(self) -> None:
        """Clear all session data. The component id counter is not reset."""
        for component in self.components.values():
            component.model = None
        self.components.clear()
        self.wires.clear()
        self.scopes.clear()
        self.top_scope_id = 0
        self.scopes[0] = CircuitScope(scope_id=0, model=self)
        self._next_wire_id = 1
        self._next_scope_id = 1
        self.running = False
        self.frame = 0
        self.light_update_frame = None
        self.heat_update_frame = None
        self.invalidate_head()

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize the session; the registry is reordered into flow order first."""
        self.reorder_components()
        index = {cid: i for i, cid in enumerate(self.components)}
        return {
            "width": self.width,
            "height": self.height,
            "pixelsPerUnit": self.pixels_per_unit,
            "ambientTemperature": self.ambient_temperature,
            "ambientLight": self.ambient_light,
            "components": [
                c.to_dict(lambda wire: wire.to_dict(index[wire.output_id]))
                for c in self.components.values()
            ],
        }

    def load(self, data: Optional[dict]) -> "CircuitModel":
        """
        Replace the session with ``data``. ``None`` yields an empty session.

        Every record is checked before anything is constructed, then every
        component is created and configured before any connection index is
        resolved.

        Raises:
            SaveError: If a record is malformed or a connection is invalid.
        """
        self.clear()
        if data is None:
            return self
        if not isinstance(data, dict):
            raise SaveError("Session data must be an object")

        records = data.get("components", [])
        if not isinstance(records, list):
            raise SaveError("Session components must be a list", "components")
        for position, record in enumerate(records):
            check_component_record(record, position, len(records))

        self.width = _number(data, "width", DEFAULT_WIDTH)
        self.height = _number(data, "height", DEFAULT_HEIGHT)
        self.pixels_per_unit = _number(data, "pixelsPerUnit", DEFAULT_PIXELS_PER_UNIT)
        self.ambient_temperature = clamp(
            _number(data, "ambientTemperature", DEFAULT_AMBIENT_TEMPERATURE),
            MIN_TEMPERATURE,
            MAX_TEMPERATURE,
        )
        self.ambient_light = max(0.0, _number(data, "ambientLight", DEFAULT_AMBIENT_LIGHT))

        created = []
        for record in records:
            try:
                component = self.create_component(record["type"], tuple(record["position"]))
            except ComponentError as exc:
                raise SaveError(str(exc), "type") from exc
            component.apply(record.get("data") or {})
            created.append(component)

        for component, record in zip(created, records):
            for connection in record.get("connections") or []:
                target = created[connection["index"]]
                try:
                    component.connect_to(target, connection)
                except CircuitConnectionError as exc:
                    raise SaveError(f"Invalid connection {component} -> {target}: {exc}") from exc

        self.update_environment()
        logger.info("Loaded session with %d components and %d wires", len(self.components), len(self.wires))
        return self

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CircuitModel":
        """Deserialize a session from a dictionary."""
        return cls().load(data)


def _number(data: dict, key: str, default: float) -> float:
    value = data.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return float(default)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_connection_record(connection: dict, where: str) -> None:
    """
    Check the optional wire fields of one connection record.

    Raises:
        SaveError: Naming the malformed property.
    """
    path = connection.get("path", [])
    if not isinstance(path, list) or not all(
        isinstance(point, (list, tuple)) and len(point) == 2 and all(_is_number(v) for v in point)
        for point in path
    ):
        raise SaveError(f"{where}.path must be a list of [x, y] points", "path")
    if "hasResistance" in connection and not isinstance(connection["hasResistance"], bool):
        raise SaveError(f"{where}.hasResistance must be true or false", "hasResistance")
    material = connection.get("material")
    if "material" in connection and (not isinstance(material, int) or isinstance(material, bool)):
        raise SaveError(f"{where}.material must be a material index", "material")
    if "radius" in connection and not _is_number(connection["radius"]):
        raise SaveError(f"{where}.radius must be a number", "radius")


def check_component_record(record, position: int, count: int) -> None:
    """
    Check the shape of one saved component record.

    Raises:
        SaveError: Naming the first missing or malformed property.
    """
    where = f"components[{position}]"
    if not isinstance(record, dict):
        raise SaveError(f"{where} must be an object")
    if not isinstance(record.get("type"), str):
        raise SaveError(f"{where} has no type", "type")
    point = record.get("position")
    if (
        not isinstance(point, (list, tuple))
        or len(point) != 2
        or not all(_is_number(v) for v in point)
    ):
        raise SaveError(f"{where} has no valid position", "position")
    if "data" in record and not isinstance(record["data"], dict):
        raise SaveError(f"{where}.data must be an object", "data")
    connections = record.get("connections", [])
    if not isinstance(connections, list):
        raise SaveError(f"{where}.connections must be a list", "connections")
    for n, connection in enumerate(connections):
        if not isinstance(connection, dict):
            raise SaveError(f"{where}.connections[{n}] must be an object")
        index = connection.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            raise SaveError(f"{where}.connections[{n}] has no index", "index")
        if not 0 <= index < count:
            raise SaveError(f"{where}.connections[{n}] index {index} is out of range", "index")
        check_connection_record(connection, f"{where}.connections[{n}]")
