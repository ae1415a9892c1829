"""Tests for CircuitModel.evaluate() and the scope aggregates."""

import math

import pytest
from controllers.simulation_controller import SimulationController
from models.component import INFINITE_RESISTANCE, LOW_RESISTANCE, ZERO_RESISTANCE
from models.switches import SwitchState
from tests.conftest import build_loop


def _step(model, times=1):
    sim = SimulationController(model)
    sim.start()
    result = None
    for _ in range(times):
        result = sim.step()
    return result


class TestSeriesAggregates:
    def test_resistance_is_the_sum_of_members(self, model):
        cell = model.create_component("Cell")
        resistors = [model.create_component("Resistor", data={"resistance": r}) for r in (1, 2, 3)]
        build_loop(model, cell, *resistors)
        assert model.top.get_resistance() == pytest.approx(6.0)

    def test_near_zero_resistances_contribute_nothing(self, model):
        cell = model.create_component("Cell")
        switch = model.create_component("Switch")
        resistor = model.create_component("Resistor", data={"resistance": 4})
        build_loop(model, cell, switch, resistor)
        assert switch.resistance == ZERO_RESISTANCE
        assert model.top.get_resistance() == 4.0

    def test_top_voltage_sums_power_sources(self, model):
        a = model.create_component("Cell")
        b = model.create_component("Battery", data={"cells": 2})
        r = model.create_component("Resistor")
        build_loop(model, a, b, r)
        assert model.top.get_voltage() == pytest.approx(4.5)

    def test_ohms_law_closure(self, series_circuit):
        model, *_ = series_circuit
        top = model.top
        assert top.get_current() * top.get_resistance() == pytest.approx(top.get_voltage())

    def test_zero_total_resistance_gives_finite_current(self, model):
        cell = model.create_component("Cell")
        switch = model.create_component("Switch", data={"state": "closed"})
        build_loop(model, cell, switch)
        current = model.top.get_current()
        assert math.isfinite(current)
        assert current == pytest.approx(1.5 / ZERO_RESISTANCE)

    def test_component_voltage_is_current_times_resistance(self, series_circuit):
        model, supply, r1, r2, diode = series_circuit
        _step(model)
        assert r2.voltage == pytest.approx(r2.current * 3)
        assert supply.voltage == 6


class TestEndToEnd:
    def test_forward_diode_conducts(self, series_circuit):
        model, supply, r1, r2, diode = series_circuit
        result = _step(model)
        assert result.evaluated
        assert model.top.get_resistance() == pytest.approx(5.0, abs=1e-2)
        assert r1.current == pytest.approx(1.2, rel=1e-3)
        assert diode.current == pytest.approx(1.2, rel=1e-3)
        assert not model.top.is_broken()
        assert not diode.locked

    def test_reversed_source_locks_diode_and_breaks_circuit(self, series_circuit):
        model, supply, r1, r2, diode = series_circuit
        sim = SimulationController(model)
        sim.start()
        sim.step()

        supply.flip()
        sim.step()

        assert diode.locked
        assert diode.resistance == INFINITE_RESISTANCE
        assert model.top.is_broken()
        assert model.top.broken_by == diode.component_id
        assert all(c.current == 0 for c in model.components.values())

    def test_diode_round_trip(self, series_circuit):
        model, supply, r1, r2, diode = series_circuit
        sim = SimulationController(model)
        sim.start()
        sim.step()
        supply.flip()
        sim.step()
        assert model.top.is_broken()

        supply.flip()
        sim.step()

        assert not diode.locked
        assert diode.resistance == LOW_RESISTANCE
        assert not model.top.is_broken()
        assert r1.current == pytest.approx(1.2, rel=1e-3)

    def test_flipping_the_diode_instead_of_the_source(self, series_circuit):
        model, supply, r1, r2, diode = series_circuit
        sim = SimulationController(model)
        sim.start()
        diode.flip()
        sim.step()
        assert diode.locked
        assert model.top.is_broken()


class TestEvaluateGuards:
    def test_not_running_is_not_evaluated(self, series_circuit):
        model, *_ = series_circuit
        assert model.evaluate() is False

    def test_empty_session(self, model):
        model.start()
        assert model.evaluate() is False

    def test_no_power_source(self, model):
        a = model.create_component("Resistor")
        b = model.create_component("Resistor")
        a.connect_to(b)
        b.connect_to(a)
        model.start()
        assert model.evaluate() is False

    def test_open_loop(self, model):
        cell = model.create_component("Cell")
        cell.connect_to(model.create_component("Resistor"))
        model.start()
        assert model.evaluate() is False

    def test_head_is_first_power_source(self, model):
        model.create_component("Resistor")
        first = model.create_component("Cell")
        model.create_component("Battery")
        assert model.head is first

    def test_head_cache_follows_removal(self, model):
        first = model.create_component("Cell")
        second = model.create_component("Cell")
        assert model.head is first
        model.remove_component(first.component_id)
        assert model.head is second


class TestBreakState:
    def test_open_switch_breaks_until_closed(self, model):
        cell = model.create_component("Cell")
        resistor = model.create_component("Resistor")
        switch = model.create_component("Switch")
        build_loop(model, cell, resistor, switch)
        sim = SimulationController(model)
        sim.start()

        sim.step()
        assert model.top.is_broken()
        assert model.top.broken_by == switch.component_id
        assert resistor.current == 0

        assert switch.toggle() == SwitchState.CLOSED
        sim.step()
        assert not model.top.is_broken()
        sim.step()
        assert resistor.current == pytest.approx(1.5)

    def test_breaking_keeps_the_first_cause(self, model):
        a = model.create_component("Resistor")
        b = model.create_component("Resistor")
        top = model.top
        top.break_circuit(a)
        top.break_circuit(b)
        assert top.broken_by == a.component_id
        assert top.broken_by_me(a)
        assert not top.broken_by_me(b)

    def test_broken_parent_breaks_children(self, parallel_circuit):
        model, parts = parallel_circuit
        branch = parts["a"].scope
        assert not branch.is_broken()
        model.top.break_circuit(parts["cell"])
        assert branch.is_broken()
        assert branch.get_current() == 0

    def test_blown_fuse_breaks_its_scope(self, model):
        supply = model.create_component("DCPowerSupply", data={"voltage": 230})
        resistor = model.create_component("Resistor")
        fuse = model.create_component("Fuse")
        build_loop(model, supply, resistor, fuse)

        result = _step(model)

        assert fuse.blown
        assert "exceeding its limit" in fuse.blow_message
        assert result.blown == [fuse.component_id]
        assert model.top.broken_by == fuse.component_id
        assert not fuse.passable()

    def test_blown_stays_blown(self, model):
        supply = model.create_component("DCPowerSupply", data={"voltage": 230})
        fuse = model.create_component("Fuse")
        build_loop(model, supply, fuse)
        sim = SimulationController(model)
        sim.start()
        sim.step()
        supply.voltage = 1
        sim.step()
        assert fuse.blown
        assert fuse.is_blown()


class TestParallel:
    def test_splitter_reports_parallel_resistance(self, parallel_circuit):
        model, parts = parallel_circuit
        assert parts["a"].scope.get_resistance() == 2
        assert parts["b"].scope.get_resistance() == 3
        assert parts["splitter"].resistance == pytest.approx(1.2)
        assert parts["joiner"].resistance == 0
        assert model.top.get_resistance() == pytest.approx(1.2)

    def test_branch_currents(self, parallel_circuit):
        model, parts = parallel_circuit
        _step(model)
        assert parts["cell"].current == pytest.approx(1.25)
        assert parts["a"].current == pytest.approx(0.75)
        assert parts["b"].current == pytest.approx(0.5)
        assert parts["c"].current == pytest.approx(0.5)

    def test_child_voltage_divider(self, parallel_circuit):
        model, parts = parallel_circuit
        top = model.top
        branch = parts["b"].scope
        expected = (branch.get_resistance() / top.get_resistance()) * top.get_voltage()
        assert branch.get_voltage() == pytest.approx(expected)

    def test_broken_branch_routes_everything_through_the_other(self, parallel_circuit):
        model, parts = parallel_circuit
        parts["b"].scope.break_circuit(parts["b"])
        assert parts["splitter"].resistance == 2
        _step(model)
        assert parts["a"].current == pytest.approx(0.75)
        assert parts["b"].current == 0

    def test_branch_scopes_are_one_level_deeper(self, parallel_circuit):
        model, parts = parallel_circuit
        assert parts["a"].scope.depth == 1
        assert parts["a"].scope.parent is model.top
        assert parts["joiner"].scope is model.top
        assert parts["joiner"].is_end


class TestTwoWaySwitch:
    @pytest.fixture
    def routed(self, model):
        cell = model.create_component("Cell")
        switch = model.create_component("TwoWaySwitch")
        a = model.create_component("Resistor", data={"resistance": 2})
        b = model.create_component("Resistor", data={"resistance": 4})
        joiner = model.create_component("Connector")
        cell.connect_to(switch)
        switch.connect_to(a)
        switch.connect_to(b)
        a.connect_to(joiner)
        b.connect_to(joiner)
        joiner.connect_to(cell)
        return model, switch, a, b

    def test_active_branch_carries_the_current(self, routed):
        model, switch, a, b = routed
        assert switch.resistance == 2
        _step(model)
        assert a.current == pytest.approx(0.75)
        assert b.current == 0
        assert b.scope.broken_by_me(switch)

    def test_toggle_reroutes(self, routed):
        model, switch, a, b = routed
        sim = SimulationController(model)
        sim.start()
        sim.step()
        assert switch.toggle() == 2
        sim.step()
        assert switch.resistance == 4
        assert b.current == pytest.approx(0.375)
        assert a.current == 0
        assert not b.scope.is_broken()


class TestACSupply:
    def test_flips_every_frame_period(self, model):
        supply = model.create_component("ACPowerSupply", data={"voltage": 5, "frame": 2})
        resistor = model.create_component("Resistor", data={"resistance": 5})
        build_loop(model, supply, resistor)
        sim = SimulationController(model)
        sim.start()

        sim.step()
        assert supply.voltage == 5
        assert resistor.current == pytest.approx(1.0)

        sim.step()
        assert supply.voltage == -5
        assert resistor.current == pytest.approx(-1.0)

    def test_outside_top_scope_fails_the_step(self, model):
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

        result = _step(model)

        assert not result.success
        assert "top-level circuit" in result.error
        assert not model.running


class TestEnvironment:
    def test_light_update_is_applied_next_frame(self, model):
        cell = model.create_component("Cell", (0, 0))
        bulb = model.create_component("Bulb", (0, 0))
        meter = model.create_component("Lightmeter", (5, 0))
        build_loop(model, cell, bulb, meter)
        sim = SimulationController(model)
        sim.start()
        sim.step()

        model.set_ambient_light(100)
        assert meter.light_received == 0

        sim.step()
        lumens = bulb.luminosity()
        expected = 100 + ((lumens - 5) / lumens) * lumens
        assert lumens > 5
        assert meter.light_received == pytest.approx(expected)

    def test_heat_from_heater_in_range(self, model):
        heater = model.create_component("Heater", (0, 0))
        near = model.create_component("Thermometer", (100, 0))
        far = model.create_component("Thermometer", (500, 0))
        heater.set_degrees(40)
        assert near.heat_receiving(update=True) == pytest.approx(40.0)
        assert far.heat_receiving(update=True) == 20.0

    def test_ambient_temperature_is_clamped(self, model):
        assert model.set_ambient_temperature(500) == 100
        assert model.set_ambient_temperature(-80) == -50
        assert model.set_ambient_light(-3) == 0

    def test_hot_thermometer_blows_while_running(self, model):
        cell = model.create_component("Cell")
        thermometer = model.create_component("Thermometer")
        build_loop(model, cell, thermometer, model.create_component("Resistor"))
        sim = SimulationController(model)
        sim.start()
        thermometer.heat_received = 150
        result = sim.step()
        assert thermometer.blown
        assert result.blown == [thermometer.component_id]

    def test_heater_warms_while_on_and_requests_heat_update(self, model):
        cell = model.create_component("Cell")
        heater = model.create_component("Heater")
        build_loop(model, cell, heater)
        _step(model)
        assert heater.joules > 0
        assert model.heat_update_frame is not None
