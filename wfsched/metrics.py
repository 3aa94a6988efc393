"""
Cost and Progress Metrics Module

Per-minute VM billing and per-algorithm progress / deadline compliance.
"""

import math
from typing import Optional, Sequence

from .config.constants import SimulationConfig
from .models import Task, VM


class CostMeter:
    """Bills each VM per started minute, with a one-minute minimum."""

    def __init__(self, billing_period: float = SimulationConfig.BILLING_PERIOD_SECONDS):
        self.billing_period = billing_period

    def billed_minutes(self, vm: VM, time: float) -> int:
        usage = min(time - vm.start_time, time)
        return max(1, math.ceil(usage / self.billing_period))

    def vm_cost(self, vm: VM, time: float) -> float:
        return vm.cost_per_minute * self.billed_minutes(vm, time)

    def fleet_cost(self, vms: Sequence[VM], time: float) -> float:
        """Total cost of a fleet at `time`; an empty fleet costs nothing."""
        return sum(self.vm_cost(vm, time) for vm in vms)


class ProgressAggregator:
    """Percent-complete and latched deadline compliance."""

    @staticmethod
    def progress(tasks: Sequence[Task]) -> float:
        if not tasks:
            return 100.0
        completed = sum(1 for task in tasks if task.completed)
        if completed == len(tasks):
            return 100.0
        return 100.0 * completed / len(tasks)

    @staticmethod
    def all_completed(tasks: Sequence[Task]) -> bool:
        return all(task.completed for task in tasks)

    @staticmethod
    def deadline_status(current: Optional[bool], now: float, deadline: float,
                        completion_time: Optional[float]) -> Optional[bool]:
        """Next value of the tri-state deadline flag.

        None while the outcome is open. Latches False once the clock passes
        the deadline before completion, and latches the comparison of the
        completion time with the deadline at completion.
        """
        if current is not None:
            return current
        if completion_time is not None:
            return completion_time <= deadline
        if now > deadline:
            return False
        return None
