"""
Controllers for Voltaic.

This package contains controller classes that orchestrate operations
between models and views using an observer pattern. Only the file
controller and frame clock touch Qt (QSettings and QTimer).
"""

from .circuit_controller import CircuitController
from .file_controller import FileController, validate_session_data
from .frame_clock import FrameClock
from .simulation_controller import SimulationController, SimulationResult

__all__ = [
    "CircuitController",
    "SimulationController",
    "SimulationResult",
    "FileController",
    "FrameClock",
    "validate_session_data",
]
