"""
Visualization Module

Provides visualization capabilities for task graphs, VM timelines and
comparison results.
"""

import os
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.patches as patches
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import pandas as pd
import seaborn as sns

from .config.constants import Algorithms, PlotConfig
from .dag_generators import build_task_graph
from .models import SimulationRun, Task, VM
from .task_status import COMPLETED, RUNNING, WAITING, get_task_status

STATUS_COLORS = {
    WAITING: 'lightgray',
    RUNNING: 'gold',
    COMPLETED: 'mediumseagreen',
}


def _finish(fig: plt.Figure, save_path: Optional[str]) -> plt.Figure:
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=PlotConfig.DPI, bbox_inches='tight')
    else:
        plt.show()
    return fig


class DAGVisualizer:
    """Visualizes task graphs."""

    @staticmethod
    def visualize_task_graph(tasks: Sequence[Task], title: str = "Workflow Task Graph",
                             now: Optional[float] = None,
                             figsize: Tuple[int, int] = PlotConfig.DAG_PLOT_SIZE,
                             save_path: Optional[str] = None) -> plt.Figure:
        """
        Draw the task DAG with one column per level.

        Args:
            tasks: Tasks of one algorithm
            title: Title for the plot
            now: Optional simulation time; nodes are colored by their status at that time
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure instead of showing it
        """
        graph = build_task_graph(tasks)

        # Lay levels out left to right
        for task in tasks:
            graph.nodes[task.id]["layer"] = task.level
        pos = nx.multipartite_layout(graph, subset_key="layer")

        fig, ax = plt.subplots(figsize=figsize)

        if now is None:
            node_colors = ['lightblue'] * graph.number_of_nodes()
        else:
            by_id = {task.id: task for task in tasks}
            node_colors = [STATUS_COLORS[get_task_status(by_id[n], now)] for n in graph.nodes]

        nx.draw_networkx_nodes(graph, pos, node_color=node_colors, node_size=600,
                               edgecolors='black', ax=ax)
        nx.draw_networkx_edges(graph, pos, edge_color='gray', arrows=True, arrowsize=15, ax=ax)
        if len(tasks) <= 60:
            nx.draw_networkx_labels(graph, pos, font_size=9, font_weight='bold', ax=ax)

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.axis('off')

        if now is not None:
            handles = [patches.Patch(color=color, label=status.title())
                       for status, color in STATUS_COLORS.items()]
            ax.legend(handles=handles, loc='upper right')

        return _finish(fig, save_path)


class ScheduleVisualizer:
    """Visualizes task placement over time."""

    @staticmethod
    def plot_vm_timeline(tasks: Sequence[Task], vms: Sequence[VM],
                         deadline: Optional[float] = None, now: Optional[float] = None,
                         title: str = "VM Timeline",
                         figsize: Tuple[int, int] = PlotConfig.GANTT_PLOT_SIZE,
                         save_path: Optional[str] = None) -> plt.Figure:
        """
        Gantt chart of tasks per VM.

        Args:
            tasks: Assigned tasks of one algorithm
            vms: The algorithm's fleet
            deadline: Optional deadline drawn as a vertical line
            now: Optional simulation time; bars are colored by task status
            title: Chart title
            figsize: Figure size
            save_path: Optional path to save the figure instead of showing it
        """
        fig, ax = plt.subplots(figsize=figsize)

        rows = {vm.id: i for i, vm in enumerate(vms)}
        colors = plt.cm.Set3(np.linspace(0, 1, max(len(tasks), 1)))
        label_bars = len(tasks) <= 40

        for i, task in enumerate(tasks):
            if task.assigned_vm not in rows or task.start_time is None:
                continue
            row = rows[task.assigned_vm]
            color = colors[i] if now is None else STATUS_COLORS[get_task_status(task, now)]
            ax.barh(y=row, width=task.runtime, left=task.start_time, height=0.6,
                    color=color, edgecolor='black', linewidth=1)
            if label_bars:
                ax.text(task.start_time + task.runtime / 2, row, task.id,
                        ha='center', va='center', fontsize=9, fontweight='bold')

        ax.set_yticks(range(len(vms)))
        ax.set_yticklabels([f"{vm.id} ({vm.tier_name})" for vm in vms])
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('VMs', fontsize=12)
        ax.set_title(title, fontsize=14, fontweight='bold')

        if deadline is not None:
            ax.axvline(x=deadline, color=PlotConfig.DEADLINE_COLOR, linestyle='--', linewidth=2,
                       label=f'Deadline = {deadline:.1f} s')
            ax.legend(loc='upper right')
        if now is not None:
            ax.axvline(x=now, color='black', linestyle=':', linewidth=1)

        ax.grid(True, alpha=0.3)
        return _finish(fig, save_path)


class ResultsVisualizer:
    """Visualizes finished runs."""

    @staticmethod
    def plot_algorithm_comparison(results_df: pd.DataFrame,
                                  figsize: Tuple[int, int] = PlotConfig.COMPARISON_PLOT_SIZE,
                                  save_path: Optional[str] = None) -> plt.Figure:
        """
        Side-by-side completion time, cost and deadline success per workflow.

        Args:
            results_df: DataFrame from ResultStore.to_dataframe()
            figsize: Figure size
            save_path: Optional path to save the figure instead of showing it
        """
        fig, axes = plt.subplots(1, 3, figsize=figsize)
        present = set(results_df['algorithm'])
        order = [alg for alg in Algorithms.all_algorithms() if alg in present]
        palette = {alg: PlotConfig.ALGORITHM_COLORS[alg] for alg in order}

        df = results_df.copy()
        df['deadline_success'] = df['meets_deadline'].astype(float) * 100

        panels = [
            ('completion_time', 'Completion Time (s)'),
            ('total_cost', 'Total Cost ($)'),
            ('deadline_success', 'Deadlines Met (%)'),
        ]
        for ax, (metric, label) in zip(axes, panels):
            sns.barplot(data=df, x='workflow_type', y=metric, hue='algorithm',
                        hue_order=order, palette=palette, ax=ax)
            ax.set_title(label, fontsize=12, fontweight='bold')
            ax.set_xlabel('Workflow')
            ax.set_ylabel(label)
            ax.grid(True, alpha=0.3)

        return _finish(fig, save_path)

    @staticmethod
    def plot_vm_utilization(runs: List[SimulationRun],
                            figsize: Tuple[int, int] = PlotConfig.GANTT_PLOT_SIZE,
                            save_path: Optional[str] = None) -> plt.Figure:
        """
        Active VM count over time for each run.

        Args:
            runs: Finished runs, typically one workflow's results
            figsize: Figure size
            save_path: Optional path to save the figure instead of showing it
        """
        fig, ax = plt.subplots(figsize=figsize)

        for run in runs:
            times = [t for t, _ in run.vm_utilization]
            counts = [c for _, c in run.vm_utilization]
            ax.plot(times, counts,
                    marker=PlotConfig.ALGORITHM_MARKERS.get(run.algorithm, 'o'),
                    color=PlotConfig.ALGORITHM_COLORS.get(run.algorithm),
                    label=f"{run.algorithm} ({run.workflow_type})")

        ax.set_title('VM Utilization', fontsize=14, fontweight='bold')
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('Active VMs', fontsize=12)
        ax.grid(True, alpha=0.3)
        if runs:
            ax.legend()

        return _finish(fig, save_path)


def plot_run_overview(tasks_by_algorithm: Dict[str, Sequence[Task]],
                      vms_by_algorithm: Dict[str, Sequence[VM]], deadline: float,
                      output_dir: str, prefix: str = "run") -> List[str]:
    """Save one VM timeline per algorithm and return the written paths."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for algorithm, tasks in tasks_by_algorithm.items():
        path = os.path.join(output_dir, f"{prefix}_{algorithm.lower()}_timeline.{PlotConfig.FORMAT}")
        fig = ScheduleVisualizer.plot_vm_timeline(
            tasks, vms_by_algorithm[algorithm], deadline=deadline,
            title=f"{algorithm} VM Timeline", save_path=path
        )
        plt.close(fig)
        paths.append(path)
    return paths
