"""
Component type registry.

Maps the type names stored in session files onto component classes.
Lookups are forgiving: case, spaces, underscores and hyphens are ignored,
and a few common aliases are accepted.
"""

from .capacitors import Capacitor
from .component import ComponentData
from .containers import MaterialContainer, WireContainer
from .errors import ComponentError
from .meters import Ammeter, Lightmeter, Thermometer, Voltmeter
from .passives import (
    Bulb,
    Buzzer,
    Fuse,
    Heater,
    Motor,
    PhotoResistor,
    Resistor,
    Thermistor,
    VariableResistor,
)
from .semiconductors import Diode, LightEmittingDiode
from .sources import ACPowerSupply, Battery, Cell, DCPowerSupply
from .switches import Connector, PushSwitch, Switch, TouchSwitch, TwoWaySwitch

COMPONENT_CLASSES: dict[str, type[ComponentData]] = {
    cls.__name__: cls
    for cls in (
        Cell,
        Battery,
        DCPowerSupply,
        ACPowerSupply,
        Resistor,
        VariableResistor,
        Thermistor,
        PhotoResistor,
        Bulb,
        Fuse,
        Heater,
        Motor,
        Buzzer,
        Capacitor,
        MaterialContainer,
        WireContainer,
        Diode,
        LightEmittingDiode,
        Switch,
        PushSwitch,
        TouchSwitch,
        Connector,
        TwoWaySwitch,
        Ammeter,
        Voltmeter,
        Lightmeter,
        Thermometer,
    )
}

_ALIASES = {
    "led": "lightemittingdiode",
    "ldr": "photoresistor",
    "lightdependentresistor": "photoresistor",
    "lightdependantresistor": "photoresistor",
}

_BY_KEY = {name.lower(): cls for name, cls in COMPONENT_CLASSES.items()}


def normalize_type_name(name: str) -> str:
    key = "".join(ch for ch in name if ch not in " _-").lower()
    return _ALIASES.get(key, key)


def component_class(name: str) -> type[ComponentData]:
    """
    Resolve a type name to its component class.

    Raises:
        ComponentError: If no component type has this name.
    """
    if not isinstance(name, str):
        raise ComponentError(f"Component type must be a string, got {name!r}")
    try:
        return _BY_KEY[normalize_type_name(name)]
    except KeyError:
        raise ComponentError(f"Unknown component type '{name}'") from None


def create_component(name: str, **kwargs) -> ComponentData:
    """Create a detached component of the named type."""
    return component_class(name)(**kwargs)
