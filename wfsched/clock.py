"""
Simulation Clock Module

Logical simulation time driven by wall-clock frame deltas. The clock is the
only time source of a run; it never runs backward.
"""

import logging

from .config.constants import SimulationConfig

logger = logging.getLogger(__name__)


class SimulationClock:
    """Idle/Running clock accumulating scaled frame deltas."""

    def __init__(self, base_speed: float = SimulationConfig.DEFAULT_SIMULATION_SPEED,
                 fast_forward: bool = False):
        self.base_speed = max(0.0, float(base_speed))
        self.fast_forward = fast_forward
        self._time = 0.0
        self._running = False

    @property
    def time(self) -> float:
        return self._time

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def speed_multiplier(self) -> float:
        factor = SimulationConfig.FAST_FORWARD_MULTIPLIER if self.fast_forward else 1
        return self.base_speed * factor

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def reset(self) -> None:
        """Back to Idle at time zero. Speed settings are kept."""
        self._running = False
        self._time = 0.0

    def toggle_fast_forward(self) -> bool:
        self.fast_forward = not self.fast_forward
        return self.fast_forward

    def tick(self, wall_delta: float) -> float:
        """Advance by one frame of `wall_delta` wall-clock seconds.

        Ignored while Idle; negative deltas are dropped.

        Returns:
            The simulation time after the frame
        """
        if self._running and wall_delta > 0:
            self._time += wall_delta * self.speed_multiplier
        return self._time
