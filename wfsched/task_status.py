"""
Task Status Module

Dependency-gated completion state machine evaluated once per frame, the
failsafe force-completion and the time-based status queries used by
timeline displays.
"""

import logging
from dataclasses import replace
from typing import List, Sequence, Tuple

from .models import Task, VM

logger = logging.getLogger(__name__)

WAITING = 'waiting'
RUNNING = 'running'
COMPLETED = 'completed'


class TaskStatusResolver:
    """Resolves task completion and VM catch-up clocks for one frame."""

    def resolve(self, tasks: Sequence[Task], vms: Sequence[VM],
                now: float) -> Tuple[Tuple[Task, ...], Tuple[VM, ...]]:
        """Complete every elapsed task whose dependencies were done at frame start.

        Dependency lookups read the completion snapshot taken before the
        frame, so a chain of elapsed tasks advances one link per frame
        whatever the iteration order.

        Returns:
            Tuple of (tasks, vms) as new snapshots
        """
        completed_before = {task.id for task in tasks if task.completed}
        new_tasks = []
        for task in tasks:
            if not task.completed and self.is_ready(task, completed_before, now):
                task = replace(task, completed=True)
            new_tasks.append(task)
        new_tasks = tuple(new_tasks)
        return new_tasks, self.update_vm_clocks(new_tasks, vms, now)

    @staticmethod
    def is_ready(task: Task, completed: set, now: float) -> bool:
        if task.end_time is None or now < task.end_time:
            return False
        return all(dep in completed for dep in task.dependencies)

    @staticmethod
    def update_vm_clocks(tasks: Sequence[Task], vms: Sequence[VM],
                         now: float) -> Tuple[VM, ...]:
        """Move each VM's clock to its latest completed or elapsed task end, capped at `now`."""
        latest_end = {}
        for task in tasks:
            if task.assigned_vm is None or task.end_time is None:
                continue
            if task.completed or task.end_time <= now:
                latest_end[task.assigned_vm] = max(latest_end.get(task.assigned_vm, 0.0), task.end_time)

        new_vms = []
        for vm in vms:
            caught_up = max(vm.current_time, latest_end.get(vm.id, vm.current_time))
            new_vms.append(replace(vm, current_time=min(now, caught_up)))
        return tuple(new_vms)

    @staticmethod
    def force_complete(tasks: Sequence[Task]) -> Tuple[Task, ...]:
        """Mark every task completed regardless of time or dependencies."""
        return tuple(task if task.completed else replace(task, completed=True) for task in tasks)


def get_task_status(task: Task, now: float) -> str:
    """Timeline status of a task at a point in time.

    Only a resolved task counts as completed; one whose end time has passed
    while a dependency is still open stays running.
    """
    if task.completed:
        return COMPLETED
    if task.start_time is not None and now >= task.start_time:
        return RUNNING
    return WAITING


def get_running_tasks(tasks: Sequence[Task], now: float) -> List[Task]:
    return [task for task in tasks if get_task_status(task, now) == RUNNING]


def get_completed_tasks(tasks: Sequence[Task], now: float) -> List[Task]:
    return [task for task in tasks if get_task_status(task, now) == COMPLETED]


def get_waiting_tasks(tasks: Sequence[Task], now: float) -> List[Task]:
    return [task for task in tasks if get_task_status(task, now) == WAITING]
