"""Tests for CircuitController."""

import pytest
from controllers.circuit_controller import CircuitController
from models.circuit import CircuitModel
from models.errors import CircuitConnectionError, ComponentError


@pytest.fixture
def controller():
    return CircuitController()


@pytest.fixture
def events():
    """Fixture that returns a list and a callback that appends events to it."""
    recorded = []

    def callback(event, data):
        recorded.append((event, data))

    return recorded, callback


class TestObserverPattern:
    def test_add_observer(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.clear_circuit()
        assert recorded == [("circuit_cleared", None)]

    def test_remove_observer(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.remove_observer(callback)
        controller.clear_circuit()
        assert len(recorded) == 0

    def test_duplicate_observer_not_added(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.add_observer(callback)
        controller.clear_circuit()
        assert len(recorded) == 1

    def test_failing_observer_does_not_stop_others(self, controller, events):
        recorded, callback = events

        def broken(event, data):
            raise RuntimeError("view went away")

        controller.add_observer(broken)
        controller.add_observer(callback)
        controller.clear_circuit()
        assert len(recorded) == 1

    def test_uses_given_model(self):
        model = CircuitModel()
        assert CircuitController(model).model is model


class TestComponentOperations:
    def test_add_component(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        comp = controller.add_component("Resistor", (100.0, 200.0), {"resistance": 10})
        assert comp.position == (100.0, 200.0)
        assert comp.resistance == 10
        assert comp.scope is controller.model.top
        assert recorded[-1] == ("component_added", comp)

    def test_add_unknown_component(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        with pytest.raises(ComponentError):
            controller.add_component("Gizmo")
        assert recorded == []

    def test_remove_component_removes_connected_wires(self, controller, events):
        recorded, callback = events
        cell = controller.add_component("Cell")
        resistor = controller.add_component("Resistor")
        wire = controller.connect(cell.component_id, resistor.component_id)
        controller.add_observer(callback)

        controller.remove_component(resistor.component_id)

        assert recorded == [("wire_removed", wire.wire_id), ("component_removed", resistor.component_id)]

    def test_remove_unknown_component_is_silent(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.remove_component(42)
        assert recorded == []

    def test_move_component_schedules_environment_update(self, controller):
        comp = controller.add_component("Bulb")
        controller.move_component(comp.component_id, (5, 6))
        assert comp.position == (5.0, 6.0)
        assert controller.model.light_update_frame is not None


class TestWireOperations:
    def test_connect_notifies(self, controller, events):
        recorded, callback = events
        a = controller.add_component("Cell")
        b = controller.add_component("Resistor")
        controller.add_observer(callback)
        wire = controller.connect(a.component_id, b.component_id)
        assert recorded == [("wire_added", wire)]

    def test_invalid_connection_raises_without_event(self, controller, events):
        recorded, callback = events
        a = controller.add_component("Cell")
        controller.add_observer(callback)
        with pytest.raises(CircuitConnectionError):
            controller.connect(a.component_id, a.component_id)
        assert recorded == []

    def test_remove_wire(self, controller, events):
        recorded, callback = events
        a = controller.add_component("Cell")
        b = controller.add_component("Resistor")
        wire = controller.connect(a.component_id, b.component_id)
        controller.add_observer(callback)
        controller.remove_wire(wire.wire_id)
        controller.remove_wire(wire.wire_id)
        assert recorded == [("wire_removed", wire.wire_id)]


class TestInteraction:
    def test_flip_power_source(self, controller, events):
        recorded, callback = events
        cell = controller.add_component("Cell")
        controller.add_observer(callback)
        controller.flip(cell.component_id)
        assert cell.voltage == -1.5
        assert recorded == [("component_flipped", cell)]

    def test_flip_resistor_does_nothing(self, controller, events):
        recorded, callback = events
        resistor = controller.add_component("Resistor")
        controller.add_observer(callback)
        controller.flip(resistor.component_id)
        assert recorded == []

    def test_flip_that_fails_evaluation_stops_the_session(self, controller, events):
        recorded, callback = events
        model = controller.model
        cell = model.create_component("Cell")
        splitter = model.create_component("Connector")
        ac = model.create_component("ACPowerSupply")
        resistor = model.create_component("Resistor")
        joiner = model.create_component("Connector")
        cell.connect_to(splitter)
        splitter.connect_to(ac)
        splitter.connect_to(resistor)
        ac.connect_to(joiner)
        resistor.connect_to(joiner)
        joiner.connect_to(cell)
        model.start()
        controller.add_observer(callback)

        controller.flip(cell.component_id)

        assert not model.running
        assert [e for e, _ in recorded] == ["component_flipped", "simulation_stopped", "simulation_failed"]
        failed = recorded[-1][1]
        assert not failed.success
        assert "top-level circuit" in failed.error

    def test_toggle_switch(self, controller, events):
        recorded, callback = events
        switch = controller.add_component("Switch")
        controller.add_observer(callback)
        controller.toggle(switch.component_id)
        assert switch.state.value == "closed"
        assert recorded == [("component_toggled", switch)]

    def test_toggle_without_toggle(self, controller, events):
        recorded, callback = events
        resistor = controller.add_component("Resistor")
        controller.add_observer(callback)
        controller.toggle(resistor.component_id)
        assert recorded == []

    def test_nudge(self, controller, events):
        recorded, callback = events
        battery = controller.add_component("Battery")
        resistor = controller.add_component("Resistor")
        controller.add_observer(callback)
        assert controller.nudge(battery.component_id, 1)
        assert not controller.nudge(resistor.component_id, 1)
        assert recorded == [("component_nudged", battery)]

    def test_blow(self, controller, events):
        recorded, callback = events
        fuse = controller.add_component("Fuse")
        controller.add_observer(callback)
        controller.blow(fuse.component_id)
        assert fuse.blown
        assert fuse.blow_message.endswith("was manually blown")
        assert recorded == [("component_blown", fuse)]

    def test_set_environment(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.set_environment(ambient_light=50, ambient_temperature=500)
        assert controller.model.ambient_light == 50
        assert controller.model.ambient_temperature == 100
        assert recorded == [("environment_changed", controller.model)]


class TestClear:
    def test_clear_circuit(self, controller):
        controller.add_component("Cell")
        controller.clear_circuit()
        assert controller.model.is_empty()
