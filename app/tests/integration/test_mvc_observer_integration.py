"""Integration tests for the observer pattern and controller interactions.

Covers:
- Observer propagation (events fired for each mutation)
- Cross-controller coordination (shared model reference)
- File round-trip followed by a simulation run
"""

from unittest.mock import MagicMock, patch

import pytest
from controllers.circuit_controller import CircuitController
from controllers.file_controller import FileController
from controllers.simulation_controller import SimulationController
from models.circuit import CircuitModel

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class EventLog:
    """Simple observer that records (event, data) tuples."""

    def __init__(self):
        self.events = []

    def __call__(self, event, data):
        self.events.append((event, data))

    def count(self, event_name):
        return sum(1 for e, _ in self.events if e == event_name)

    def names(self):
        return [e for e, _ in self.events]


@pytest.fixture
def controllers():
    model = CircuitModel()
    circuit_ctrl = CircuitController(model)
    log = EventLog()
    circuit_ctrl.add_observer(log)
    sim_ctrl = SimulationController(model, circuit_ctrl)
    file_ctrl = FileController(model, circuit_ctrl)
    return model, circuit_ctrl, sim_ctrl, file_ctrl, log


def _build_switched_bulb(circuit_ctrl):
    cell = circuit_ctrl.add_component("Cell", (0, 0))
    switch = circuit_ctrl.add_component("Switch", (100, 0))
    bulb = circuit_ctrl.add_component("Bulb", (100, 100))
    circuit_ctrl.connect(cell.component_id, switch.component_id)
    circuit_ctrl.connect(switch.component_id, bulb.component_id)
    circuit_ctrl.connect(bulb.component_id, cell.component_id)
    return cell, switch, bulb


# ---------------------------------------------------------------------------
# Observer propagation
# ---------------------------------------------------------------------------


class TestObserverPropagation:
    def test_build_fires_events(self, controllers):
        model, circuit_ctrl, _, _, log = controllers
        _build_switched_bulb(circuit_ctrl)
        assert log.count("component_added") == 3
        assert log.count("wire_added") == 3

    def test_removal_fires_wire_then_component_events(self, controllers):
        model, circuit_ctrl, _, _, log = controllers
        cell, switch, bulb = _build_switched_bulb(circuit_ctrl)
        log.events.clear()
        circuit_ctrl.remove_component(switch.component_id)
        assert log.names() == ["wire_removed", "wire_removed", "component_removed"]
        assert len(model.wires) == 1


# ---------------------------------------------------------------------------
# Cross-controller coordination
# ---------------------------------------------------------------------------


class TestSharedModel:
    def test_switch_controls_the_bulb(self, controllers):
        model, circuit_ctrl, sim_ctrl, _, log = controllers
        cell, switch, bulb = _build_switched_bulb(circuit_ctrl)

        sim_ctrl.run(2)
        assert bulb.current == 0
        assert not bulb.is_on()

        circuit_ctrl.toggle(switch.component_id)
        sim_ctrl.run(2)
        assert bulb.current == pytest.approx(0.75)
        assert bulb.brightness() == pytest.approx(1.125 / 10)
        assert "component_toggled" in log.names()

    def test_flip_while_running(self, controllers):
        model, circuit_ctrl, sim_ctrl, _, _ = controllers
        cell, switch, bulb = _build_switched_bulb(circuit_ctrl)
        circuit_ctrl.toggle(switch.component_id)
        sim_ctrl.run(3)
        circuit_ctrl.flip(cell.component_id)
        sim_ctrl.step()
        assert bulb.current == pytest.approx(-0.75)


# ---------------------------------------------------------------------------
# File round-trip
# ---------------------------------------------------------------------------


class TestFileRoundTrip:
    @patch("controllers.file_controller.QSettings")
    def test_save_load_then_run(self, mock_qsettings, controllers, tmp_path):
        mock_qsettings.return_value = MagicMock(**{"value.return_value": []})
        model, circuit_ctrl, sim_ctrl, file_ctrl, log = controllers
        cell, switch, bulb = _build_switched_bulb(circuit_ctrl)
        circuit_ctrl.toggle(switch.component_id)

        filepath = tmp_path / "lamp.json"
        file_ctrl.save_circuit(filepath)
        circuit_ctrl.clear_circuit()
        file_ctrl.load_circuit(filepath)

        assert log.names()[-3:] == ["model_saved", "circuit_cleared", "model_loaded"]
        loaded_bulb = next(c for c in model.components.values() if c.type_name == "Bulb")
        sim_ctrl.run(2)
        assert loaded_bulb.current == pytest.approx(0.75)
