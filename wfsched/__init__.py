"""
Workflow scheduling comparison simulator.

Simulates the DSAWS, CGA and Dyna pseudo-heuristics side by side on a leveled
task DAG executed on per-algorithm VM fleets.
"""

from .engine import AlgorithmState, SimulationEngine
from .models import FrameUpdate, RunSetup, SimulationRun, Task, VM
from .recorder import ResultStore

__version__ = "0.1.0"

__all__ = [
    'AlgorithmState',
    'FrameUpdate',
    'ResultStore',
    'RunSetup',
    'SimulationEngine',
    'SimulationRun',
    'Task',
    'VM',
]
