"""
Shared test fixtures for the Voltaic test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, controllers, cli)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.circuit import CircuitModel
from models.component import reset_component_ids


@pytest.fixture(autouse=True)
def _reset_component_ids():
    """Reset the component id counter before each test."""
    reset_component_ids()


def build_loop(model, source, *loads):
    """Wire source -> loads... -> source and return the components."""
    chain = [source, *loads]
    for a, b in zip(chain, chain[1:]):
        a.connect_to(b)
    chain[-1].connect_to(source)
    return chain


@pytest.fixture
def model():
    return CircuitModel()


@pytest.fixture
def series_circuit(model):
    """
    6 V supply -- 2 ohm -- 3 ohm -- diode (forward) -- back to the supply.
    """
    supply = model.create_component("DCPowerSupply", (0, 0), {"voltage": 6})
    r1 = model.create_component("Resistor", (100, 0), {"resistance": 2})
    r2 = model.create_component("Resistor", (200, 0), {"resistance": 3})
    diode = model.create_component("Diode", (300, 0))
    build_loop(model, supply, r1, r2, diode)
    return model, supply, r1, r2, diode


@pytest.fixture
def parallel_circuit(model):
    """
    Cell -- splitter --+-- 2 ohm --------+-- joiner -- back to the cell
                       +-- 2 ohm -- 1 ohm +
    """
    cell = model.create_component("Cell", (0, 0))
    splitter = model.create_component("Connector", (100, 0))
    a = model.create_component("Resistor", (200, -50), {"resistance": 2})
    b = model.create_component("Resistor", (200, 50), {"resistance": 2})
    c = model.create_component("Resistor", (250, 50), {"resistance": 1})
    joiner = model.create_component("Connector", (300, 0))

    cell.connect_to(splitter)
    splitter.connect_to(a)
    splitter.connect_to(b)
    b.connect_to(c)
    a.connect_to(joiner)
    c.connect_to(joiner)
    joiner.connect_to(cell)
    return model, {"cell": cell, "splitter": splitter, "a": a, "b": b, "c": c, "joiner": joiner}
