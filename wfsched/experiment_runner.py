"""
Experiment Runner Module

Runs comparison sweeps over workflows, task counts and deadline factors with
the headless driver and collects the finished runs.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from .config.constants import Algorithms, SimulationConfig
from .engine import SimulationEngine

logger = logging.getLogger(__name__)


@dataclass
class ExperimentConfig:
    """Configuration for a single comparison sweep."""
    workflow_type: str
    num_tasks: List[int]
    deadline_factors: List[float]
    algorithms: List[str] = field(default_factory=Algorithms.all_algorithms)
    num_runs: int = 1
    simulation_speed: float = SimulationConfig.DEFAULT_SIMULATION_SPEED
    fast_forward: bool = True
    frame_seconds: Optional[float] = None
    max_frames: Optional[int] = None
    seed_base: int = 42


@dataclass
class ExperimentResult:
    """Result of one algorithm in one sweep run."""
    workflow_type: str
    num_tasks: int
    deadline_factor: float
    algorithm: str
    run_id: int
    seed: int
    completion_time: float
    total_cost: float
    meets_deadline: bool
    vm_count: int
    task_count: int
    forced: bool
    wall_time: float


class ExperimentRunner:
    """Runs comparison sweeps and collects results."""

    def __init__(self, results_dir: str = "results"):
        self.results_dir = results_dir

    def run_experiment(self, config: ExperimentConfig,
                       progress_callback: Optional[Callable[[int, int], None]] = None) -> List[ExperimentResult]:
        """
        Run a complete sweep based on configuration.

        Every combination gets its own engine seeded with
        ``seed_base + run_id``, so a combination is reproducible on its own.

        Args:
            config: Experiment configuration
            progress_callback: Optional callback for progress updates

        Returns:
            List of experiment results
        """
        results = []
        combinations = self._generate_param_combinations(config)
        total_runs = len(combinations) * config.num_runs
        current_run = 0

        for num_tasks, deadline_factor in combinations:
            for run_id in range(config.num_runs):
                current_run += 1
                if progress_callback:
                    progress_callback(current_run, total_runs)

                seed = config.seed_base + run_id
                engine = SimulationEngine(
                    seed=seed,
                    simulation_speed=config.simulation_speed,
                    fast_forward=config.fast_forward,
                    visible_algorithms=config.algorithms,
                )
                engine.initialize_run(config.workflow_type, num_tasks, deadline_factor)

                start_time = time.time()
                runs = engine.run_to_completion(config.frame_seconds, config.max_frames)
                wall_time = time.time() - start_time

                for run in runs:
                    results.append(ExperimentResult(
                        workflow_type=run.workflow_type,
                        num_tasks=num_tasks,
                        deadline_factor=run.deadline_factor,
                        algorithm=run.algorithm,
                        run_id=run_id,
                        seed=seed,
                        completion_time=run.completion_time,
                        total_cost=run.total_cost,
                        meets_deadline=run.meets_deadline,
                        vm_count=run.vm_count,
                        task_count=run.task_count,
                        forced=run.forced,
                        wall_time=wall_time,
                    ))

        logger.info(f"{config.workflow_type}: {len(results)} results from {total_runs} runs")
        return results

    def _generate_param_combinations(self, config: ExperimentConfig) -> List[Tuple[int, float]]:
        """Generate all (num_tasks, deadline_factor) combinations for the sweep."""
        combinations = []
        for num_tasks in config.num_tasks:
            for deadline_factor in config.deadline_factors:
                combinations.append((num_tasks, deadline_factor))
        return combinations

    def save_results(self, results: List[ExperimentResult],
                     experiment_name: str) -> str:
        """
        Save experiment results to files.

        Args:
            results: List of experiment results
            experiment_name: Name for the experiment

        Returns:
            Path to saved results file
        """
        os.makedirs(self.results_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        df = self.to_dataframe(results)
        csv_path = os.path.join(self.results_dir, f"{experiment_name}_{timestamp}.csv")
        df.to_csv(csv_path, index=False)

        metadata = {
            'experiment_name': experiment_name,
            'timestamp': timestamp,
            'total_results': len(results),
            'algorithms': df['algorithm'].unique().tolist() if not df.empty else [],
            'workflow_types': df['workflow_type'].unique().tolist() if not df.empty else [],
            'forced_runs': int(df['forced'].sum()) if not df.empty else 0,
        }

        metadata_path = os.path.join(self.results_dir, f"{experiment_name}_{timestamp}_metadata.json")
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        return csv_path

    @staticmethod
    def to_dataframe(results: List[ExperimentResult]) -> pd.DataFrame:
        columns = list(ExperimentResult.__dataclass_fields__.keys())
        return pd.DataFrame([asdict(r) for r in results], columns=columns)

    def generate_summary_statistics(self, results: List[ExperimentResult]) -> Dict[str, Any]:
        """Generate summary statistics for experiment results."""
        df = self.to_dataframe(results)

        summary = {
            'total_experiments': len(results),
            'by_algorithm': {},
            'by_deadline_factor': {},
        }
        if df.empty:
            return summary

        # Statistics by algorithm
        for alg in df['algorithm'].unique():
            alg_data = df[df['algorithm'] == alg]
            summary['by_algorithm'][alg] = {
                'count': len(alg_data),
                'avg_completion_time': float(alg_data['completion_time'].mean()),
                'std_completion_time': float(alg_data['completion_time'].std(ddof=0)),
                'avg_cost': float(alg_data['total_cost'].mean()),
                'deadline_success_rate': float(alg_data['meets_deadline'].mean() * 100),
                'forced_runs': int(alg_data['forced'].sum()),
            }

        # Deadline success per factor and algorithm
        grouped = df.groupby(['deadline_factor', 'algorithm'])['meets_deadline'].mean() * 100
        for (factor, alg), rate in grouped.items():
            summary['by_deadline_factor'].setdefault(float(factor), {})[alg] = float(rate)

        return summary
