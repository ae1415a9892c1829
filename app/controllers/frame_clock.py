"""
FrameClock - Runs simulation steps on a Qt timer.

One timer is created per clock and reused across start/stop cycles.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QTimer

from .file_controller import DEFAULT_FPS, clamp_fps
from .simulation_controller import SimulationController

logger = logging.getLogger(__name__)


class FrameClock:
    """Calls ``SimulationController.step()`` once per frame while active."""

    def __init__(self, simulation_ctrl: SimulationController, fps: int = DEFAULT_FPS):
        self.simulation_ctrl = simulation_ctrl
        self.fps = clamp_fps(fps)
        self.simulation_ctrl.model.fps = self.fps
        self._timer = QTimer()
        self._timer.timeout.connect(self._tick)

    @property
    def interval_ms(self) -> int:
        return max(1, round(1000 / self.fps))

    def start(self, fps: Optional[int] = None) -> None:
        """Start the simulation loop and the timer."""
        if fps is not None:
            self.fps = clamp_fps(fps)
            self.simulation_ctrl.model.fps = self.fps
        self.simulation_ctrl.start()
        self._timer.start(self.interval_ms)
        logger.debug("Frame clock started at %d fps", self.fps)

    def stop(self) -> None:
        self._timer.stop()
        self.simulation_ctrl.stop()

    def set_fps(self, fps: int) -> int:
        """Change the rate; an active timer picks it up immediately."""
        self.fps = clamp_fps(fps)
        self.simulation_ctrl.model.fps = self.fps
        if self._timer.isActive():
            self._timer.setInterval(self.interval_ms)
        return self.fps

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _tick(self) -> None:
        result = self.simulation_ctrl.step()
        if not result.success:
            self._timer.stop()
