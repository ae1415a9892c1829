"""
SimulationController - Drives the frame-by-frame evaluation loop.

This module contains no Qt dependencies. Each step advances the frame
counter and evaluates the session once; the frame clock (or the CLI)
decides when steps happen.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models.circuit import CircuitModel
from models.errors import ComponentError

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Result of one or more evaluation steps."""

    success: bool
    frame: int = 0
    ticks: int = 0
    evaluated: bool = False
    blown: list[int] = field(default_factory=list)
    blow_messages: list[str] = field(default_factory=list)
    error: str = ""


class SimulationController:
    """
    Controller for the simulation loop.

    Starting and stopping the loop, and any blow or fatal component error
    raised during a step, are reported through the circuit controller's
    observers.
    """

    def __init__(self, model: Optional[CircuitModel] = None, circuit_ctrl=None):
        self.model = model if model is not None else CircuitModel()
        self.circuit_ctrl = circuit_ctrl

    @property
    def running(self) -> bool:
        return self.model.running

    def _notify(self, event: str, data) -> None:
        if self.circuit_ctrl:
            self.circuit_ctrl._notify(event, data)

    def start(self) -> None:
        if self.model.running:
            return
        self.model.start()
        self._notify("simulation_started", None)

    def stop(self) -> None:
        if not self.model.running:
            return
        self.model.stop()
        self._notify("simulation_stopped", None)

    def step(self) -> SimulationResult:
        """
        Advance one frame and evaluate the session.

        A ComponentError stops the loop; the failed result is returned and
        sent to observers as ``simulation_failed``.
        """
        if not self.model.running:
            return SimulationResult(success=False, frame=self.model.frame, error="Simulation is not running")

        already_blown = {cid for cid, c in self.model.components.items() if c.blown}
        self.model.frame += 1
        try:
            evaluated = self.model.evaluate()
        except ComponentError as e:
            logger.error("Evaluation failed on frame %d: %s", self.model.frame, e)
            result = SimulationResult(success=False, frame=self.model.frame, error=str(e))
            self.stop()
            self._notify("simulation_failed", result)
            return result

        result = SimulationResult(
            success=True, frame=self.model.frame, ticks=1 if evaluated else 0, evaluated=evaluated
        )
        for cid, component in self.model.components.items():
            if component.blown and cid not in already_blown:
                result.blown.append(cid)
                result.blow_messages.append(component.blow_message)
                self._notify("component_blown", component)
        return result

    def run(self, ticks: int) -> SimulationResult:
        """Start the loop if needed and run ``ticks`` steps, stopping at the first failure."""
        self.start()
        total = SimulationResult(success=True, frame=self.model.frame)
        for _ in range(max(0, ticks)):
            result = self.step()
            total.frame = result.frame
            total.blown.extend(result.blown)
            total.blow_messages.extend(result.blow_messages)
            if not result.success:
                total.success = False
                total.error = result.error
                break
            total.ticks += result.ticks
            total.evaluated = result.evaluated
        return total
