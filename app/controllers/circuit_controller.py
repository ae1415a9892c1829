"""
CircuitController - Orchestrates component and wire operations.

This module contains no Qt dependencies. It manages the CircuitModel
and notifies views of changes through an observer pattern.
"""

import logging
from typing import Any, Callable, Optional

from models.circuit import CircuitModel
from models.component import ComponentData
from models.errors import ComponentError
from models.wire import WireData

from .simulation_controller import SimulationResult

logger = logging.getLogger(__name__)


class CircuitController:
    """
    Controller for the component graph of a session.

    Manages the CircuitModel and notifies registered observers when
    the model changes. Views register callbacks to stay in sync.

    Observer events:
        component_added (ComponentData) - A new component was added
        component_removed (int) - A component was removed (by ID)
        wire_added (WireData) - A new wire was added
        wire_removed (int) - A wire was removed (by ID)
        component_flipped (ComponentData) - A source or diode was reversed
        component_toggled (ComponentData) - A switch or mode was toggled
        component_nudged (ComponentData) - A parameter was scrolled
        component_blown (ComponentData) - A component blew
        circuit_cleared (None) - The entire session was cleared
        model_loaded (None) - Session loaded from file
        model_saved (None) - Session saved to file
        simulation_started (None) - The frame loop started
        simulation_stopped (None) - The frame loop stopped
        simulation_failed (SimulationResult) - A step raised a component error
        environment_changed (CircuitModel) - Ambient light or heat changed
    """

    def __init__(self, model: Optional[CircuitModel] = None):
        self.model = model if model is not None else CircuitModel()
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    # --- Component operations ---

    def add_component(
        self, component_type: str, position: tuple[float, float] = (0.0, 0.0), data: Optional[dict] = None
    ) -> ComponentData:
        """
        Create a component by type name and add it to the top scope.

        Raises:
            ComponentError: If the type name is unknown.
        """
        component = self.model.create_component(component_type, position, data)
        self._notify("component_added", component)
        return component

    def remove_component(self, component_id: int) -> None:
        """Remove a component and all connected wires."""
        if component_id not in self.model.components:
            return
        for wire_id in self.model.remove_component(component_id):
            self._notify("wire_removed", wire_id)
        self._notify("component_removed", component_id)

    def move_component(self, component_id: int, position: tuple[float, float]) -> None:
        """Move a component; light and heat are recomputed next frame."""
        component = self.model.components.get(component_id)
        if component is None:
            return
        component.position = (float(position[0]), float(position[1]))
        self.model.request_light_update()
        self.model.request_heat_update()

    # --- Wire operations ---

    def connect(self, source_id: int, target_id: int, record: Optional[dict] = None) -> WireData:
        """
        Connect one component's output to another's input.

        Raises:
            CircuitConnectionError: If the connection breaks a topology rule.
            NullReferenceError: If either id is unknown.
        """
        source = self.model.get_component(source_id)
        target = self.model.get_component(target_id)
        wire = source.connect_to(target, record)
        self._notify("wire_added", wire)
        return wire

    def remove_wire(self, wire_id: int) -> None:
        """Remove a wire by ID."""
        if self.model.remove_wire(wire_id) is not None:
            self._notify("wire_removed", wire_id)

    # --- Interaction ---

    def flip(self, component_id: int) -> None:
        """
        Reverse a power source or diode.

        Reversing a source re-evaluates the running session. A ComponentError
        raised there stops the loop the same way a failed step does.
        """
        component = self.model.components.get(component_id)
        if component is None:
            return
        try:
            direction = component.flip()
        except ComponentError as e:
            logger.error("Evaluation failed while flipping %s: %s", component, e)
            self._notify("component_flipped", component)
            self.model.stop()
            self._notify("simulation_stopped", None)
            self._notify(
                "simulation_failed", SimulationResult(success=False, frame=self.model.frame, error=str(e))
            )
            return
        if direction is not None:
            self._notify("component_flipped", component)

    def toggle(self, component_id: int) -> None:
        """Toggle a switch, two-way switch or thermistor mode."""
        component = self.model.components.get(component_id)
        toggle = getattr(component, "toggle", None)
        if toggle is None:
            return
        toggle()
        self._notify("component_toggled", component)

    def nudge(self, component_id: int, steps: int) -> bool:
        """Scroll adjustment of a component's main parameter."""
        component = self.model.components.get(component_id)
        if component is None or not component.nudge(steps):
            return False
        self._notify("component_nudged", component)
        return True

    def blow(self, component_id: int, message: Optional[str] = None) -> None:
        """Blow a component by hand."""
        component = self.model.components.get(component_id)
        if component is None:
            return
        component.blow(message)
        self._notify("component_blown", component)

    def set_environment(
        self, ambient_light: Optional[float] = None, ambient_temperature: Optional[float] = None
    ) -> None:
        """Change the ambient light and/or temperature."""
        if ambient_light is not None:
            self.model.set_ambient_light(ambient_light)
        if ambient_temperature is not None:
            self.model.set_ambient_temperature(ambient_temperature)
        self._notify("environment_changed", self.model)

    # --- Circuit operations ---

    def clear_circuit(self) -> None:
        """Clear the entire session."""
        self.model.clear()
        self._notify("circuit_cleared", None)
