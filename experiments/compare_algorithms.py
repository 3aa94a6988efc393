"""
Comparison sweep across workflows and deadline factors.

Runs the predefined experiments of config/experiment_configs.py with the
headless driver, prints per-algorithm summaries and optionally saves the
results and comparison plots.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import logging
import time
from datetime import datetime

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from wfsched.config.experiment_configs import (
    COMPLETE_EXPERIMENTS, DRIVER_CONFIGS, WORKFLOW_CONFIGS
)
from wfsched.engine import SimulationEngine
from wfsched.experiment_runner import ExperimentConfig, ExperimentRunner
from wfsched.recorder import ResultStore
from wfsched.visualization import ResultsVisualizer


def run_comparison(experiment_name: str, results_dir: str, save_plots: bool):
    """Run one predefined comparison experiment."""
    experiment = COMPLETE_EXPERIMENTS[experiment_name]

    print("=" * 80)
    print(f"WORKFLOW SCHEDULING COMPARISON: {experiment_name}")
    print("=" * 80)
    print(f"Description: {experiment['description']}")
    print(f"Start time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    runner = ExperimentRunner(results_dir=results_dir)
    all_results = []

    total_workflows = len(experiment['workflow_configs'])
    for index, workflow_name in enumerate(experiment['workflow_configs'], start=1):
        workflow_config = WORKFLOW_CONFIGS[workflow_name]
        print(f"\n[{index}/{total_workflows}] Running {workflow_name} experiments...")
        print(f"Description: {workflow_config['description']}")

        config = ExperimentConfig(
            workflow_type=workflow_config['workflow_type'],
            num_tasks=workflow_config['num_tasks'],
            deadline_factors=experiment['deadline_factors'],
            algorithms=experiment['algorithms'],
            num_runs=experiment['num_runs'],
            simulation_speed=DRIVER_CONFIGS['simulation_speed'],
            fast_forward=DRIVER_CONFIGS['fast_forward'],
            frame_seconds=DRIVER_CONFIGS['frame_seconds'],
            max_frames=DRIVER_CONFIGS['max_frames'],
            seed_base=DRIVER_CONFIGS['seed_base'],
        )

        def progress_callback(current, total):
            if current % 5 == 0 or current == total:
                print(f"  Progress: {current}/{total} ({100 * current / total:.1f}%)")

        start_time = time.time()
        results = runner.run_experiment(config, progress_callback)
        print(f"  Completed in {time.time() - start_time:.1f} seconds, {len(results)} results")

        summary = runner.generate_summary_statistics(results)
        for alg, stats in summary['by_algorithm'].items():
            print(f"    {alg}: avg completion {stats['avg_completion_time']:.2f}s, "
                  f"avg cost ${stats['avg_cost']:.4f}, "
                  f"deadlines met {stats['deadline_success_rate']:.0f}%, "
                  f"forced {stats['forced_runs']}")

        all_results.extend(results)

    print("\n" + "=" * 80)
    print("OVERALL SUMMARY")
    print("=" * 80)
    df = runner.to_dataframe(all_results)
    if not df.empty:
        table = df.groupby(['workflow_type', 'algorithm'])[
            ['completion_time', 'total_cost', 'meets_deadline']
        ].mean()
        print(table.to_string(float_format=lambda v: f"{v:.4f}"))

    results_file = runner.save_results(all_results, experiment_name)
    print(f"\nResults saved to: {results_file}")

    if save_plots and all_results:
        plot_path = os.path.join(results_dir, f"{experiment_name}_comparison.png")
        fig = ResultsVisualizer.plot_algorithm_comparison(df, save_path=plot_path)
        plt.close(fig)
        print(f"Comparison plot saved to: {plot_path}")

    print(f"\nEnd time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    return results_file


def run_single_pass(results_dir: str, save_plots: bool):
    """One run per workflow at its smallest size, kept in a single result store."""
    print("=" * 80)
    print("SINGLE PASS OVER ALL WORKFLOWS")
    print("=" * 80)

    store = ResultStore()
    for workflow_name, workflow_config in WORKFLOW_CONFIGS.items():
        engine = SimulationEngine(seed=DRIVER_CONFIGS['seed_base'],
                                  fast_forward=DRIVER_CONFIGS['fast_forward'],
                                  result_store=store)
        engine.initialize_run(workflow_config['workflow_type'], workflow_config['num_tasks'][0], 1.5)
        engine.run_to_completion(DRIVER_CONFIGS['frame_seconds'], DRIVER_CONFIGS['max_frames'])

    summary = store.summary_statistics()
    print(f"Total runs: {summary['total_runs']}")
    for workflow_type, stats in summary['by_workflow'].items():
        print(f"  {workflow_type}: fastest {stats['fastest_algorithm']}, "
              f"cheapest {stats['cheapest_algorithm']}, "
              f"met deadline {stats['algorithms_meeting_deadline']}")

    if save_plots:
        os.makedirs(results_dir, exist_ok=True)
        plot_path = os.path.join(results_dir, "single_pass_comparison.png")
        fig = ResultsVisualizer.plot_algorithm_comparison(store.to_dataframe(), save_path=plot_path)
        plt.close(fig)
        print(f"Comparison plot saved to: {plot_path}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Compare DSAWS, CGA and Dyna across workflows')
    parser.add_argument('--experiment', choices=list(COMPLETE_EXPERIMENTS.keys()) + ['single_pass'],
                        default='reference_check', help='Predefined experiment to run')
    parser.add_argument('--results-dir', default='./results',
                        help='Directory to save results')
    parser.add_argument('--plots', action='store_true',
                        help='Save comparison plots next to the results')
    parser.add_argument('--verbose', action='store_true', help='Log engine progress')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if args.experiment == 'single_pass':
        run_single_pass(args.results_dir, args.plots)
    else:
        run_comparison(args.experiment, args.results_dir, args.plots)
