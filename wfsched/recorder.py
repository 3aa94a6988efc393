"""
Run Recording Module

Packages finished algorithm runs into SimulationRun records and keeps the
latest record per (algorithm, workflow) for comparison displays.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .config.constants import SimulationConfig, WorkflowTypes
from .models import SimulationRun, Task, VM

logger = logging.getLogger(__name__)


class RunRecorder:
    """Builds immutable run records."""

    def __init__(self, num_samples: int = SimulationConfig.UTILIZATION_SAMPLES):
        self.num_samples = num_samples

    def record(self, algorithm: str, tasks: Sequence[Task], vms: Sequence[VM],
               completion_time: float, total_cost: float, meets_deadline: bool,
               workflow_type: str, deadline_factor: float, forced: bool = False) -> SimulationRun:
        return SimulationRun(
            algorithm=algorithm,
            completion_time=completion_time,
            total_cost=total_cost,
            meets_deadline=bool(meets_deadline),
            vm_count=len(vms),
            task_count=len(tasks),
            vm_utilization=self.utilization_samples(tasks, vms, completion_time),
            workflow_type=workflow_type,
            deadline_factor=deadline_factor,
            forced=forced,
        )

    def utilization_samples(self, tasks: Sequence[Task], vms: Sequence[VM],
                            completion_time: float) -> Tuple[Tuple[float, int], ...]:
        """Evenly spaced (time, active VM count) samples over [0, completion_time].

        A VM counts as active while its task span [first start, last end]
        covers the sample time; a non-empty fleet always reports at least one.
        """
        spans = self._vm_spans(tasks, vms)
        samples = []
        for t in np.linspace(0.0, completion_time, self.num_samples):
            active = sum(1 for start, end in spans.values() if start <= t <= end)
            if vms:
                active = max(1, active)
            samples.append((float(t), active))
        return tuple(samples)

    @staticmethod
    def _vm_spans(tasks: Sequence[Task], vms: Sequence[VM]) -> Dict[str, Tuple[float, float]]:
        fleet = {vm.id for vm in vms}
        spans: Dict[str, Tuple[float, float]] = {}
        for task in tasks:
            if task.assigned_vm not in fleet or task.start_time is None or task.end_time is None:
                continue
            start, end = spans.get(task.assigned_vm, (task.start_time, task.end_time))
            spans[task.assigned_vm] = (min(start, task.start_time), max(end, task.end_time))
        return spans


class ResultStore:
    """In-memory store of the latest run per (algorithm, workflow)."""

    def __init__(self):
        self._results: Dict[Tuple[str, str], SimulationRun] = {}
        self._current_workflow_type = WorkflowTypes.REFERENCE

    def add(self, run: SimulationRun) -> None:
        """Store a run, replacing any previous run for the same algorithm and workflow."""
        if run.key in self._results:
            del self._results[run.key]
        self._results[run.key] = run
        logger.info(f"Recorded {run.algorithm} on {run.workflow_type}: "
                    f"{run.completion_time:.2f}s, cost {run.total_cost:.5f}, "
                    f"deadline {'met' if run.meets_deadline else 'missed'}")

    def clear(self) -> None:
        self._results.clear()

    def get(self, algorithm: str, workflow_type: str) -> SimulationRun:
        return self._results[(algorithm, workflow_type)]

    def get_results_by_workflow(self, workflow_type: str) -> List[SimulationRun]:
        return [run for run in self._results.values() if run.workflow_type == workflow_type]

    @property
    def results(self) -> List[SimulationRun]:
        return list(self._results.values())

    @property
    def current_workflow_type(self) -> str:
        return self._current_workflow_type

    @current_workflow_type.setter
    def current_workflow_type(self, workflow_type: str) -> None:
        self._current_workflow_type = workflow_type

    def __len__(self) -> int:
        return len(self._results)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per stored run, without the utilization samples."""
        columns = ['algorithm', 'workflow_type', 'deadline_factor', 'completion_time',
                   'total_cost', 'meets_deadline', 'vm_count', 'task_count', 'forced']
        rows = []
        for run in self._results.values():
            row = asdict(run)
            row.pop('vm_utilization')
            rows.append(row)
        return pd.DataFrame(rows, columns=columns)

    def summary_statistics(self) -> Dict[str, Any]:
        """Generate summary statistics for stored runs."""
        df = self.to_dataframe()

        summary = {
            'total_runs': len(df),
            'by_algorithm': {},
            'by_workflow': {}
        }
        if df.empty:
            return summary

        # Statistics by algorithm
        for alg in df['algorithm'].unique():
            alg_data = df[df['algorithm'] == alg]
            summary['by_algorithm'][alg] = {
                'count': len(alg_data),
                'avg_completion_time': float(alg_data['completion_time'].mean()),
                'avg_cost': float(alg_data['total_cost'].mean()),
                'deadline_success_rate': float(alg_data['meets_deadline'].mean() * 100),
                'avg_vm_count': float(alg_data['vm_count'].mean())
            }

        # Statistics by workflow
        for workflow_type in df['workflow_type'].unique():
            wf_data = df[df['workflow_type'] == workflow_type]
            cheapest = wf_data.loc[wf_data['total_cost'].idxmin()]
            summary['by_workflow'][workflow_type] = {
                'count': len(wf_data),
                'cheapest_algorithm': str(cheapest['algorithm']),
                'fastest_algorithm': str(wf_data.loc[wf_data['completion_time'].idxmin()]['algorithm']),
                'algorithms_meeting_deadline': wf_data[wf_data['meets_deadline']]['algorithm'].tolist()
            }

        return summary
