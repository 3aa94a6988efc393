"""
Scheduling Algorithms Module

Contains the task-to-VM assignment policies of the compared heuristics:
- DSAWS (Deadline and Structure-Aware Workflow Scheduler)
- CGA (Coevolutionary Genetic Algorithm)
- Dyna (probabilistic scheduling system)

None of them runs the published optimization. Each is a fixed pseudo-heuristic
approximating how the real algorithm tends to place tasks, driven by task
rank, level, id and a seeded random source.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .config.constants import Algorithms, AlgorithmParams, WorkflowTypes
from .models import Task, VM

logger = logging.getLogger(__name__)

Placement = List[Tuple[str, int]]


class AssignmentPolicy(ABC):
    """Abstract base class for assignment policies."""

    algorithm: str = ""
    title: str = ""
    description: str = ""
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()

    # Task ids per VM slot for the reference workflow, from the DSAWS paper
    reference_assignment: Tuple[Tuple[str, ...], ...] = ()

    def __init__(self):
        self.name = self.algorithm

    def assign(self, tasks: Sequence[Task], vms: Sequence[VM], workflow_type: str,
               rng: np.random.Generator) -> Tuple[Tuple[Task, ...], Tuple[VM, ...]]:
        """Place tasks on VMs and fix their start/end times.

        Args:
            tasks: Generated tasks (runtime and dependencies are left untouched)
            vms: Provisioned fleet with empty task lists
            workflow_type: Resolved workflow key
            rng: Random source for randomized policies

        Returns:
            Tuple of (tasks, vms) as new snapshots
        """
        if not vms:
            logger.warning(f"{self.name}: empty fleet, {len(tasks)} tasks left unassigned")
            return tuple(tasks), tuple(vms)

        if workflow_type == WorkflowTypes.REFERENCE and self.reference_assignment:
            placement = self._reference_placement(tasks, len(vms), rng)
        else:
            placement = self.place(tasks, len(vms), rng)

        return self._commit(tasks, vms, placement, workflow_type)

    @abstractmethod
    def place(self, tasks: Sequence[Task], fleet_size: int,
              rng: np.random.Generator) -> Placement:
        """Decide the VM slot of every task.

        Returns:
            (task id, VM slot) pairs in dealing order
        """
        pass

    def _reference_placement(self, tasks: Sequence[Task], fleet_size: int,
                             rng: np.random.Generator) -> Placement:
        placement = []
        for slot, task_ids in enumerate(self.reference_assignment[:fleet_size]):
            placement.extend((task_id, slot) for task_id in task_ids)
        placed = {task_id for task_id, _ in placement}
        missing = [task for task in tasks if task.id not in placed]
        if missing:
            placement.extend(self.place(missing, fleet_size, rng))
        return placement

    def _commit(self, tasks: Sequence[Task], vms: Sequence[VM], placement: Placement,
                workflow_type: str) -> Tuple[Tuple[Task, ...], Tuple[VM, ...]]:
        vm_tasks: List[List[str]] = [[] for _ in vms]
        assigned: Dict[str, str] = {}
        for task_id, slot in placement:
            vm_tasks[slot].append(task_id)
            assigned[task_id] = vms[slot].id

        offset = AlgorithmParams.START_OFFSETS.get(self.algorithm, 5.0)
        new_tasks = []
        for task in tasks:
            if workflow_type == WorkflowTypes.REFERENCE and task.start_time is not None:
                start = task.start_time
            else:
                start = task.level * offset
            new_tasks.append(replace(
                task,
                assigned_vm=assigned.get(task.id),
                start_time=start,
                end_time=start + task.runtime,
            ))

        new_vms = tuple(replace(vm, task_ids=tuple(vm_tasks[slot])) for slot, vm in enumerate(vms))
        return tuple(new_tasks), new_vms


class StructureAwarePolicy(AssignmentPolicy):
    """DSAWS: rank-ordered, level-by-level placement."""

    algorithm = Algorithms.DSAWS
    title = "Deadline and Structure-Aware Workflow Scheduler (DSAWS)"
    description = ("A heuristic algorithm that analyzes workflow structure to determine the type "
                   "and number of VMs to deploy and when to provision/de-provision them.")
    strengths = (
        "Analyzes workflow structure to make informed scheduling decisions",
        "Considers VM provisioning/de-provisioning delays",
        "Minimizes data transfer by assigning related tasks to the same VM",
        "Uses leftover time in billing periods to avoid wasting resources",
    )
    weaknesses = (
        "Static scheduling approach may not adapt to unexpected runtime variations",
        "Requires detailed workflow structure analysis upfront",
    )
    reference_assignment = (
        ('t2', 't5', 't8'),
        ('t1', 't4', 't7'),
        ('t3', 't6', 't9'),
    )

    def place(self, tasks: Sequence[Task], fleet_size: int,
              rng: np.random.Generator) -> Placement:
        """Deal tasks level by level in descending rank order.

        One round-robin counter runs across all levels, so each level picks up
        on the VM after the one that took the previous level's last task.
        """
        by_level: Dict[int, List[Task]] = {}
        for task in tasks:
            by_level.setdefault(task.level, []).append(task)

        placement = []
        dealt = 0
        for level in sorted(by_level):
            for task in sorted(by_level[level], key=lambda t: (-t.rank, t.number)):
                placement.append((task.id, dealt % fleet_size))
                dealt += 1
        return placement


class UniformPolicy(AssignmentPolicy):
    """CGA: round-robin by task id, ignoring rank and level."""

    algorithm = Algorithms.CGA
    title = "Coevolutionary Genetic Algorithm (CGA)"
    description = ("A genetic algorithm that uses adaptive penalty function for strict constraints "
                   "and adjusts crossover and mutation probability to accelerate convergence.")
    strengths = (
        "Uses adaptive penalty function for handling constraints",
        "Adjusts crossover and mutation probabilities to accelerate convergence",
        "Generates initial population based on critical path",
    )
    weaknesses = (
        "Computationally intensive, especially for large workflows",
        "May struggle with strict deadline constraints",
        "Doesn't consider VM provisioning/de-provisioning delays",
        "Less effective at minimizing data transfer costs",
    )
    reference_assignment = (
        ('t1', 't5', 't8'),
        ('t2', 't4', 't7'),
        ('t3', 't6', 't9'),
    )

    def place(self, tasks: Sequence[Task], fleet_size: int,
              rng: np.random.Generator) -> Placement:
        ordered = sorted(tasks, key=lambda t: t.number)
        return [(task.id, i % fleet_size) for i, task in enumerate(ordered)]


class ProbabilisticPolicy(AssignmentPolicy):
    """Dyna: squared-uniform draw biased toward the first VMs."""

    algorithm = Algorithms.DYNA
    title = "Dyna"
    description = ("A probabilistic scheduling system that minimizes monetary cost while "
                   "satisfying probabilistic deadline guarantees.")
    strengths = (
        "Uses A*-based instance configuration for performance dynamics",
        "Handles cloud performance and price dynamics",
        "Offers probabilistic performance guarantees",
    )
    weaknesses = (
        "May over-provision resources to ensure deadline compliance",
        "Less effective at minimizing data transfer costs",
        "May struggle with workflows having extreme runtime variations",
    )
    reference_assignment = (
        ('t1', 't3', 't6', 't9'),
        ('t2', 't4', 't5', 't7', 't8'),
    )

    def place(self, tasks: Sequence[Task], fleet_size: int,
              rng: np.random.Generator) -> Placement:
        placement = []
        for task in sorted(tasks, key=lambda t: t.number):
            slot = int(rng.random() ** 2 * fleet_size)
            placement.append((task.id, min(slot, fleet_size - 1)))
        return placement


# Factory for creating schedulers
class SchedulerFactory:
    """Factory for creating assignment policies."""

    _schedulers = {
        Algorithms.DSAWS: StructureAwarePolicy,
        Algorithms.CGA: UniformPolicy,
        Algorithms.DYNA: ProbabilisticPolicy
    }

    @classmethod
    def create_scheduler(cls, algorithm: str) -> AssignmentPolicy:
        """Create the assignment policy of the specified algorithm."""
        if algorithm not in cls._schedulers:
            raise ValueError(f"Unknown algorithm: {algorithm}. Available: {list(cls._schedulers.keys())}")
        return cls._schedulers[algorithm]()

    @classmethod
    def get_available_algorithms(cls) -> List[str]:
        """Get list of available scheduling algorithms."""
        return list(cls._schedulers.keys())
