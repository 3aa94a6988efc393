"""
Data Model Module

Immutable snapshots of the entities that flow through a simulation run.
Updates never mutate in place: callers build a new instance with
`dataclasses.replace` and swap the owning tuple.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Task:
    """A workflow task placed on a VM."""
    id: str
    name: str
    runtime: float
    dependencies: Tuple[str, ...]
    rank: int
    level: int
    completed: bool = False
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    assigned_vm: Optional[str] = None

    @property
    def number(self) -> int:
        """Numeric part of the task id (``t12`` -> 12)."""
        return int(self.id.lstrip('t'))


@dataclass(frozen=True)
class VM:
    """A provisioned virtual machine for one algorithm's fleet."""
    id: str
    tier_name: str
    cost_per_minute: float
    speed: int
    algorithm: str
    task_ids: Tuple[str, ...] = ()
    start_time: float = 0.0
    current_time: float = 0.0


@dataclass(frozen=True)
class SimulationRun:
    """Finished run summary of one algorithm on one workflow."""
    algorithm: str
    completion_time: float
    total_cost: float
    meets_deadline: bool
    vm_count: int
    task_count: int
    vm_utilization: Tuple[Tuple[float, int], ...]
    workflow_type: str
    deadline_factor: float
    forced: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.algorithm, self.workflow_type)


@dataclass(frozen=True)
class RunSetup:
    """Result of initializing a run: fresh collections per algorithm."""
    tasks_by_algorithm: Dict[str, Tuple[Task, ...]]
    vms_by_algorithm: Dict[str, Tuple[VM, ...]]
    deadline: float


@dataclass(frozen=True)
class FrameUpdate:
    """State reported back to the driver after one advance step."""
    simulation_time: float
    progress_by_algorithm: Dict[str, float]
    cost_by_algorithm: Dict[str, float]
    deadline_met_by_algorithm: Dict[str, Optional[bool]]
    is_complete: bool
    newly_completed: List[str] = field(default_factory=list)
