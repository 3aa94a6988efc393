"""
Unit tests for clock.py.
"""

import pytest

from wfsched.clock import SimulationClock


class TestSimulationClock:
    """Test cases for SimulationClock."""

    def test_initial_state(self):
        clock = SimulationClock()
        assert clock.time == 0.0
        assert not clock.is_running
        assert clock.speed_multiplier == 1.0

    def test_idle_clock_ignores_ticks(self):
        clock = SimulationClock()
        assert clock.tick(5.0) == 0.0

    def test_running_clock_accumulates(self):
        clock = SimulationClock(base_speed=2.0)
        clock.start()
        clock.tick(1.0)
        clock.tick(0.5)
        assert clock.time == pytest.approx(3.0)

    def test_negative_delta_is_ignored(self):
        clock = SimulationClock()
        clock.start()
        clock.tick(1.0)
        clock.tick(-4.0)
        assert clock.time == pytest.approx(1.0)

    def test_fast_forward(self):
        clock = SimulationClock()
        clock.start()
        assert clock.toggle_fast_forward() is True
        assert clock.tick(0.5) == pytest.approx(5.0)
        assert clock.toggle_fast_forward() is False
        assert clock.tick(0.5) == pytest.approx(5.5)

    def test_start_stop_idempotent(self):
        clock = SimulationClock()
        clock.start()
        clock.start()
        clock.tick(1.0)
        clock.stop()
        clock.stop()
        assert not clock.is_running
        assert clock.tick(1.0) == pytest.approx(1.0)

    def test_reset_keeps_speed_settings(self):
        clock = SimulationClock(base_speed=3.0, fast_forward=True)
        clock.start()
        clock.tick(1.0)
        clock.reset()

        assert clock.time == 0.0
        assert not clock.is_running
        assert clock.speed_multiplier == pytest.approx(30.0)
