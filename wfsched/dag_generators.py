"""
Task Graph Generation Module

Contains task graph generators for the simulated workflows:
- Reference: the fixed 9-task example from the DSAWS paper
- Procedural: leveled DAGs shaped by a workflow profile

Every generator returns an ordered tuple of Tasks in level order. Dependencies
only point into the immediately preceding level, so the graph is acyclic by
construction.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

import networkx as nx
import numpy as np

from .config.constants import AlgorithmParams, SimulationConfig, WorkflowTypes
from .models import Task
from .workflow_catalog import WorkflowProfile, get_workflow_profile

logger = logging.getLogger(__name__)


class TaskGraphGenerator(ABC):
    """Abstract base class for task graph generators."""

    @abstractmethod
    def generate(self, workflow_type: str, num_tasks: int, algorithm: str,
                 rng: np.random.Generator) -> Tuple[Task, ...]:
        """Generate the task graph for one algorithm's run.

        Returns:
            Tuple of tasks ordered by level, then id
        """
        pass

    @abstractmethod
    def get_expected_counts(self, workflow_type: str, num_tasks: int) -> Tuple[int, int]:
        """Get expected task and level counts for validation.

        Returns:
            Tuple of (task_count, level_count)
        """
        pass


class ReferenceTaskGraph(TaskGraphGenerator):
    """
    Reference workflow from the DSAWS paper.

    Nine tasks on three levels, each level-2/3 task depending on exactly one
    task of the previous level. Runtimes, ranks and start/end times are the
    literal values of the worked example, so the requested task count and the
    algorithm are ignored.
    """

    # (runtime, dependencies, rank, level, start_time)
    REFERENCE_TASKS = (
        (5, (), 31, 1, 2),
        (4, (), 32, 1, 2),
        (6, (), 30, 1, 2),
        (8, ('t1',), 25, 2, 7),
        (9, ('t2',), 25, 2, 6),
        (5, ('t3',), 20, 2, 8),
        (10, ('t4',), 10, 3, 15),
        (14, ('t5',), 12, 3, 15),
        (14, ('t6',), 14, 3, 13),
    )

    def generate(self, workflow_type: str, num_tasks: int, algorithm: str,
                 rng: np.random.Generator) -> Tuple[Task, ...]:
        tasks = []
        for number, (runtime, deps, rank, level, start) in enumerate(self.REFERENCE_TASKS, start=1):
            tasks.append(Task(
                id=f"t{number}",
                name=f"Task {number}",
                runtime=float(runtime),
                dependencies=deps,
                rank=rank,
                level=level,
                start_time=float(start),
                end_time=float(start + runtime),
            ))
        return tuple(tasks)

    def get_expected_counts(self, workflow_type: str, num_tasks: int) -> Tuple[int, int]:
        return len(self.REFERENCE_TASKS), 3


class ProceduralTaskGraph(TaskGraphGenerator):
    """
    Procedural leveled DAG shaped by a workflow profile.

    Level count: min(profile levels, ceil(sqrt(n / 10)))
    Tasks per level: ceil(n / levels), last level truncated to n
    Runtime: mean runtime x level multiplier x variation x algorithm efficiency
    Rank: max_rank x (levels remaining / levels) x (runtime / mean runtime) x 0.8
    """

    def generate(self, workflow_type: str, num_tasks: int, algorithm: str,
                 rng: np.random.Generator) -> Tuple[Task, ...]:
        """Generate a leveled DAG for one algorithm."""
        profile = get_workflow_profile(workflow_type)
        num_tasks = max(1, int(num_tasks))
        levels = self.level_count(profile, num_tasks)
        tasks_per_level = math.ceil(num_tasks / levels)
        curve = self.level_curve(profile, levels)
        efficiency = AlgorithmParams.EFFICIENCY_FACTORS.get(algorithm, 1.0)
        low, high = profile.variation_band

        tasks = []
        level_members: Dict[int, List[int]] = {}
        task_number = 1

        for level in range(1, levels + 1):
            level_task_count = min(tasks_per_level, num_tasks - (task_number - 1))
            if level_task_count <= 0:
                break
            members = []
            for _ in range(level_task_count):
                dependencies = self._sample_dependencies(
                    task_number, level_members.get(level - 1, []), rng
                )
                variation = rng.uniform(low, high)
                runtime = max(
                    SimulationConfig.MIN_TASK_RUNTIME,
                    profile.mean_runtime * curve[level - 1] * variation * efficiency,
                )
                tasks.append(Task(
                    id=f"t{task_number}",
                    name=f"Task {task_number}",
                    runtime=float(runtime),
                    dependencies=dependencies,
                    rank=self.compute_rank(profile, level, levels, runtime),
                    level=level,
                ))
                members.append(task_number)
                task_number += 1
            level_members[level] = members

        logger.debug(f"Generated {len(tasks)} {workflow_type} tasks on {len(level_members)} levels for {algorithm}")
        return tuple(tasks)

    def get_expected_counts(self, workflow_type: str, num_tasks: int) -> Tuple[int, int]:
        num_tasks = max(1, int(num_tasks))
        levels = self.level_count(get_workflow_profile(workflow_type), num_tasks)
        tasks_per_level = math.ceil(num_tasks / levels)
        populated = math.ceil(num_tasks / tasks_per_level)
        return num_tasks, populated

    @staticmethod
    def level_count(profile: WorkflowProfile, num_tasks: int) -> int:
        """Number of levels generated for a task count."""
        estimate = math.ceil(math.sqrt(num_tasks / SimulationConfig.TASKS_PER_LEVEL_SCALE))
        return max(1, min(profile.level_count, estimate))

    @staticmethod
    def level_curve(profile: WorkflowProfile, levels: int) -> List[float]:
        """Resample the profile's normalized runtime curve onto `levels` levels."""
        multipliers = profile.level_multipliers()
        if levels == len(multipliers):
            return list(multipliers)
        if levels == 1:
            return [1.0]
        last = len(multipliers) - 1
        return [multipliers[round(i * last / (levels - 1))] for i in range(levels)]

    @staticmethod
    def compute_rank(profile: WorkflowProfile, level: int, levels: int, runtime: float) -> int:
        """Rank from normalized level depth and runtime ratio, floored to 1."""
        levels_remaining = levels - level + 1
        rank = round(profile.max_rank * (levels_remaining / levels)
                     * (runtime / profile.mean_runtime) * SimulationConfig.RANK_SCALE)
        return max(1, int(rank))

    def _sample_dependencies(self, task_number: int, prior_level: Sequence[int],
                             rng: np.random.Generator) -> Tuple[str, ...]:
        """Draw up to MAX_FAN_IN dependencies from the previous level.

        Candidates that do not precede the task are rejected and the draw is
        repeated; every non-root task ends up with at least one dependency.
        """
        if not prior_level:
            return ()
        draws = min(SimulationConfig.MAX_FAN_IN, len(prior_level))
        for _ in range(SimulationConfig.DEPENDENCY_SAMPLING_RETRIES):
            picks = rng.integers(0, len(prior_level), size=draws)
            candidates = sorted({prior_level[i] for i in picks if prior_level[i] < task_number})
            if candidates:
                return tuple(f"t{n}" for n in candidates)
        logger.debug(f"No valid dependency drawn for t{task_number}, linking to t{prior_level[0]}")
        return (f"t{prior_level[0]}",)


def build_task_graph(tasks: Sequence[Task]) -> nx.DiGraph:
    """Build a DiGraph with an edge dependency -> task for every dependency."""
    G = nx.DiGraph()
    for task in tasks:
        G.add_node(task.id, level=task.level, runtime=task.runtime, rank=task.rank,
                   assigned_vm=task.assigned_vm)
    for task in tasks:
        for dep in task.dependencies:
            G.add_edge(dep, task.id)
    return G


def validate_task_graph(tasks: Sequence[Task]) -> bool:
    """Check acyclicity, known dependencies and strictly increasing levels."""
    levels = {task.id: task.level for task in tasks}
    for task in tasks:
        for dep in task.dependencies:
            if dep not in levels:
                logger.warning(f"{task.id} depends on unknown task {dep}")
                return False
            if levels[dep] >= task.level:
                logger.warning(f"{task.id} (level {task.level}) depends on {dep} (level {levels[dep]})")
                return False
    return nx.is_directed_acyclic_graph(build_task_graph(tasks))


# Factory for creating task graph generators
class TaskGraphFactory:
    """Factory for creating task graph generators."""

    _generators = {
        'reference': ReferenceTaskGraph,
        'procedural': ProceduralTaskGraph
    }

    @classmethod
    def create_generator(cls, workflow_type: str) -> TaskGraphGenerator:
        """Create the generator matching a workflow type."""
        if workflow_type == WorkflowTypes.REFERENCE:
            return cls._generators['reference']()
        return cls._generators['procedural']()

    @classmethod
    def get_available_types(cls) -> List[str]:
        """Get list of available generator kinds."""
        return list(cls._generators.keys())
