"""
Simulation Engine Module

Owns one comparative run of the three heuristics:
- initialize_run builds task graphs, fleets and assignments per algorithm
- advance moves the clock by one frame and resolves task completion
- finalize turns completed algorithms into SimulationRun records

Each algorithm's collections live in an AlgorithmState and are replaced by
new snapshots every frame; nothing is shared between algorithms or runs.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .clock import SimulationClock
from .config.constants import (
    Algorithms, SimulationConfig, ValidationConfig, WorkflowTypes,
)
from .dag_generators import TaskGraphFactory
from .fleet import FleetProvisioner
from .metrics import CostMeter, ProgressAggregator
from .models import FrameUpdate, RunSetup, SimulationRun, Task, VM
from .recorder import ResultStore, RunRecorder
from .schedulers import SchedulerFactory
from .task_status import TaskStatusResolver
from .workflow_catalog import get_workflow_profile, resolve_workflow_type


@dataclass
class AlgorithmState:
    """Mutable per-algorithm slot holding the current snapshots and counters."""
    algorithm: str
    tasks: Tuple[Task, ...]
    vms: Tuple[VM, ...]
    visible: bool = True
    progress: float = 0.0
    cost: float = 0.0
    completion_time: Optional[float] = None
    deadline_met: Optional[bool] = None
    forced: bool = False

    @property
    def is_complete(self) -> bool:
        return self.completion_time is not None


class SimulationEngine:
    """Frame-driven comparison of DSAWS, CGA and Dyna on one workflow."""

    def __init__(self, seed: Optional[int] = None,
                 simulation_speed: float = SimulationConfig.DEFAULT_SIMULATION_SPEED,
                 fast_forward: bool = False,
                 visible_algorithms: Optional[Iterable[str]] = None,
                 result_store: Optional[ResultStore] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.clock = SimulationClock(max(ValidationConfig.MIN_SIMULATION_SPEED, simulation_speed),
                                     fast_forward)
        if visible_algorithms is None:
            visible_algorithms = Algorithms.all_algorithms()
        self.visible_algorithms = set(visible_algorithms)
        self.result_store = result_store if result_store is not None else ResultStore()

        self.provisioner = FleetProvisioner()
        self.resolver = TaskStatusResolver()
        self.cost_meter = CostMeter()
        self.progress_aggregator = ProgressAggregator()
        self.recorder = RunRecorder()
        self.logger = logging.getLogger(__name__)

        self.states: Dict[str, AlgorithmState] = {}
        self.workflow_type = WorkflowTypes.REFERENCE
        self.num_tasks = 0
        self.deadline_factor = SimulationConfig.DEFAULT_DEADLINE_FACTOR
        self.deadline = 0.0
        self._complete = False

    @property
    def simulation_time(self) -> float:
        return self.clock.time

    @property
    def is_running(self) -> bool:
        return self.clock.is_running

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def failsafe_time(self) -> float:
        return SimulationConfig.FAILSAFE_DEADLINE_MULTIPLIER * self.deadline

    def initialize_run(self, workflow_type: str, num_tasks: int,
                       deadline_factor: float) -> RunSetup:
        """Build fresh task and VM collections for every algorithm.

        Invalid input is clamped rather than rejected: unknown workflows use
        the reference workflow, task counts below one become one and
        non-positive deadline factors use the default.

        Args:
            workflow_type: Workflow catalog key
            num_tasks: Requested task count (ignored by the reference workflow)
            deadline_factor: Multiplier on the workflow's max rank

        Returns:
            RunSetup with the collections per algorithm and the deadline
        """
        workflow_type = resolve_workflow_type(workflow_type)
        num_tasks = max(ValidationConfig.MIN_TASKS, int(num_tasks))
        if deadline_factor <= ValidationConfig.MIN_DEADLINE_FACTOR:
            self.logger.warning(f"Deadline factor {deadline_factor} is not positive, "
                                f"using {SimulationConfig.DEFAULT_DEADLINE_FACTOR}")
            deadline_factor = SimulationConfig.DEFAULT_DEADLINE_FACTOR

        self.clock.reset()
        self.workflow_type = workflow_type
        self.num_tasks = num_tasks
        self.deadline_factor = deadline_factor
        self.deadline = get_workflow_profile(workflow_type).deadline(deadline_factor)
        self.result_store.current_workflow_type = workflow_type
        self._complete = False

        generator = TaskGraphFactory.create_generator(workflow_type)
        self.states = {}
        for algorithm in Algorithms.all_algorithms():
            tasks = generator.generate(workflow_type, num_tasks, algorithm, self.rng)
            vms = self.provisioner.provision(workflow_type, num_tasks, algorithm, self.rng)
            policy = SchedulerFactory.create_scheduler(algorithm)
            tasks, vms = policy.assign(tasks, vms, workflow_type, self.rng)
            self.states[algorithm] = AlgorithmState(
                algorithm=algorithm,
                tasks=tasks,
                vms=vms,
                visible=algorithm in self.visible_algorithms,
                progress=self.progress_aggregator.progress(tasks),
            )

        self.logger.info(f"Initialized {workflow_type} run: {num_tasks} tasks requested, "
                         f"deadline {self.deadline:.2f}s (factor {deadline_factor})")
        return RunSetup(
            tasks_by_algorithm={alg: state.tasks for alg, state in self.states.items()},
            vms_by_algorithm={alg: state.vms for alg, state in self.states.items()},
            deadline=self.deadline,
        )

    def start(self) -> None:
        if not self.states:
            raise RuntimeError("initialize_run must be called before start")
        if not self._complete:
            self.clock.start()

    def stop(self) -> None:
        self.clock.stop()

    def reset(self) -> RunSetup:
        """Rebuild the current run from scratch with the same configuration."""
        return self.initialize_run(self.workflow_type, self.num_tasks, self.deadline_factor)

    def toggle_fast_forward(self) -> bool:
        return self.clock.toggle_fast_forward()

    def set_visible(self, algorithm: str, visible: bool) -> None:
        """Show or hide an algorithm; hidden ones keep simulating but never gate completion."""
        if not Algorithms.validate_algorithm(algorithm):
            raise ValueError(f"Unknown algorithm: {algorithm}. Available: {Algorithms.all_algorithms()}")
        if visible:
            self.visible_algorithms.add(algorithm)
        else:
            self.visible_algorithms.discard(algorithm)
        if algorithm in self.states:
            self.states[algorithm].visible = visible

    def advance(self, elapsed_delta_seconds: float) -> FrameUpdate:
        """Advance the run by one frame of wall-clock time.

        Does nothing while the clock is stopped or once the run is complete.
        Past the failsafe ceiling every unfinished algorithm is force
        completed.
        """
        if not self.states:
            raise RuntimeError("initialize_run must be called before advance")
        if self._complete or not self.clock.is_running:
            return self._frame_update([])

        now = self.clock.tick(elapsed_delta_seconds)
        failsafe = now > self.failsafe_time
        newly_completed = []

        for algorithm in Algorithms.all_algorithms():
            state = self.states[algorithm]
            if state.is_complete:
                continue

            if failsafe:
                self.logger.warning(f"{algorithm}: failsafe at {now:.2f}s, forcing "
                                    f"{sum(1 for t in state.tasks if not t.completed)} tasks complete")
                state.tasks = self.resolver.force_complete(state.tasks)
                state.vms = self.resolver.update_vm_clocks(state.tasks, state.vms, now)
                state.forced = True
            else:
                state.tasks, state.vms = self.resolver.resolve(state.tasks, state.vms, now)

            state.progress = self.progress_aggregator.progress(state.tasks)
            state.cost = self.cost_meter.fleet_cost(state.vms, now)
            if self.progress_aggregator.all_completed(state.tasks):
                state.completion_time = now
                newly_completed.append(algorithm)
                self.logger.debug(f"{algorithm} completed at {now:.2f}s, cost {state.cost:.5f}")
            state.deadline_met = self.progress_aggregator.deadline_status(
                state.deadline_met, now, self.deadline, state.completion_time
            )

        if all(state.is_complete for state in self.states.values() if state.visible):
            self._complete = True
            self.clock.stop()
            self.logger.info(f"{self.workflow_type} run complete at {now:.2f}s")

        return self._frame_update(newly_completed)

    def finalize(self) -> List[SimulationRun]:
        """Record every visible, completed algorithm in the result store.

        Completed states are frozen, so repeated calls produce identical
        records that replace the previous ones.
        """
        runs = []
        for algorithm in Algorithms.all_algorithms():
            state = self.states.get(algorithm)
            if state is None or not state.visible or not state.is_complete:
                continue
            run = self.recorder.record(
                algorithm=algorithm,
                tasks=state.tasks,
                vms=state.vms,
                completion_time=state.completion_time,
                total_cost=state.cost,
                meets_deadline=bool(state.deadline_met),
                workflow_type=self.workflow_type,
                deadline_factor=self.deadline_factor,
                forced=state.forced,
            )
            self.result_store.add(run)
            runs.append(run)
        return runs

    def run_to_completion(self, frame_seconds: Optional[float] = None,
                          max_frames: Optional[int] = None) -> List[SimulationRun]:
        """Drive the current run headlessly until complete, then finalize.

        Args:
            frame_seconds: Wall-clock seconds per frame; by default sized so the
                deadline spans HEADLESS_FRAMES_PER_DEADLINE frames
            max_frames: Upper bound on frames; by default enough to pass the
                failsafe ceiling

        Returns:
            The finalized runs
        """
        if not self.states:
            raise RuntimeError("initialize_run must be called before run_to_completion")
        multiplier = self.clock.speed_multiplier
        if multiplier <= 0:
            raise ValueError("Simulation speed must be positive to run to completion")
        if frame_seconds is None:
            frame_seconds = self.deadline / (SimulationConfig.HEADLESS_FRAMES_PER_DEADLINE * multiplier)
        if frame_seconds <= 0:
            raise ValueError(f"frame_seconds must be positive, got {frame_seconds}")
        if max_frames is None:
            max_frames = math.ceil(self.failsafe_time / (frame_seconds * multiplier)) + 2

        self.start()
        frames = 0
        while not self._complete:
            if frames >= max_frames:
                self.stop()
                raise RuntimeError(f"Run did not complete within {max_frames} frames "
                                   f"(t={self.simulation_time:.2f}s)")
            self.advance(frame_seconds)
            frames += 1

        self.logger.debug(f"Headless run finished after {frames} frames")
        return self.finalize()

    def _frame_update(self, newly_completed: List[str]) -> FrameUpdate:
        return FrameUpdate(
            simulation_time=self.clock.time,
            progress_by_algorithm={alg: s.progress for alg, s in self.states.items()},
            cost_by_algorithm={alg: s.cost for alg, s in self.states.items()},
            deadline_met_by_algorithm={alg: s.deadline_met for alg, s in self.states.items()},
            is_complete=self._complete,
            newly_completed=newly_completed,
        )
