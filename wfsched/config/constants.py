"""
Constants and Configuration Settings for the Workflow Scheduling Simulator

This module provides centralized configuration for consistent behavior across
all components of the simulator: algorithm names, workflow keys, simulation
tuning knobs, per-algorithm heuristic parameters and plotting defaults.
"""

from typing import Dict, Any


# Algorithm Constants
class Algorithms:
    """Standard algorithm names, in the order they are simulated each frame."""
    DSAWS = 'DSAWS'
    CGA = 'CGA'
    DYNA = 'Dyna'

    @classmethod
    def all_algorithms(cls) -> list:
        """Get all available algorithms in simulation order."""
        return [cls.DSAWS, cls.CGA, cls.DYNA]

    @classmethod
    def validate_algorithm(cls, algorithm: str) -> bool:
        """Validate if the given algorithm name is supported."""
        return algorithm in cls.all_algorithms()


# Workflow Type Constants
class WorkflowTypes:
    """Standard workflow keys for consistent usage across the simulator."""
    SAMPLE = 'sample'
    MONTAGE = 'montage'
    CYBERSHAKE = 'cybershake'
    LIGO = 'ligo'
    EPIGENOMICS = 'epigenomics'

    # The reference workflow from the DSAWS paper; every unknown key falls back to it
    REFERENCE = SAMPLE

    @classmethod
    def all_types(cls) -> list:
        """Get all available workflow types."""
        return [cls.SAMPLE, cls.MONTAGE, cls.CYBERSHAKE, cls.LIGO, cls.EPIGENOMICS]


# Simulation Configuration
class SimulationConfig:
    """Tuning constants for the time-stepped simulation model."""

    FAILSAFE_DEADLINE_MULTIPLIER = 1.5       # Force completion past 1.5x the deadline
    FAST_FORWARD_MULTIPLIER = 10             # Speed-up applied while fast-forwarding
    DEFAULT_SIMULATION_SPEED = 1.0           # Simulated seconds per wall-clock second
    DEFAULT_DEADLINE_FACTOR = 1.5
    DEFAULT_FRAME_SECONDS = 1.0 / 60         # One display refresh at 60 Hz
    HEADLESS_FRAMES_PER_DEADLINE = 400       # Default frame count per deadline for headless runs

    BILLING_PERIOD_SECONDS = 60              # VMs are billed per started minute
    UTILIZATION_SAMPLES = 10                 # (time, vm count) points per finished run

    MAX_FAN_IN = 3                           # Dependency candidates drawn per task
    DEPENDENCY_SAMPLING_RETRIES = 5
    TASKS_PER_LEVEL_SCALE = 10               # levels = ceil(sqrt(num_tasks / 10))
    RANK_SCALE = 0.8
    MIN_TASK_RUNTIME = 1.0                   # Seconds

    TIER_SCALE_TASKS = 10                    # max tier = floor(log2(num_tasks / 10))
    REFERENCE_TIER_INDEX = 1                 # n1-standard-2


# Per-algorithm heuristic parameters
class AlgorithmParams:
    """Fixed per-algorithm scalars approximating each heuristic's behaviour."""

    # Relative scheduling overhead applied to generated runtimes
    EFFICIENCY_FACTORS = {
        Algorithms.DSAWS: 1.0,
        Algorithms.CGA: 1.2,
        Algorithms.DYNA: 1.1,
    }

    # start_time = level * offset for procedural workflows
    START_OFFSETS = {
        Algorithms.DSAWS: 5.0,
        Algorithms.CGA: 6.0,
        Algorithms.DYNA: 5.5,
    }

    # Fleet size = max(minimum, ceil(num_tasks / tasks_per_vm))
    FLEET_TASKS_PER_VM = {
        Algorithms.DSAWS: 100,
        Algorithms.CGA: 80,                  # Less locality-aware, provisions more
        Algorithms.DYNA: 120,                # Consolidates onto fewer VMs
    }
    FLEET_MINIMUM = {
        Algorithms.DSAWS: 3,
        Algorithms.CGA: 3,
        Algorithms.DYNA: 2,
    }
    REFERENCE_FLEET_SIZES = {
        Algorithms.DSAWS: 3,
        Algorithms.CGA: 3,
        Algorithms.DYNA: 2,
    }

    VM_ID_PATTERNS = {
        Algorithms.DSAWS: 'vm{index}',
        Algorithms.CGA: 'cga-{index}',
        Algorithms.DYNA: 'dyna-{index}',
    }

    # Tier selection
    DSAWS_FAST_PERCENTILE = 0.2
    DSAWS_MEDIUM_PERCENTILE = 0.5
    DYNA_FAST_VM_PROBABILITY = 0.2


# Default simulation parameters
DEFAULT_SIMULATION_PARAMS = {
    'workflow_type': WorkflowTypes.SAMPLE,
    'num_tasks': 9,
    'deadline_factor': SimulationConfig.DEFAULT_DEADLINE_FACTOR,
    'simulation_speed': SimulationConfig.DEFAULT_SIMULATION_SPEED,
    'fast_forward': False,
    'seed': None,
}


# Visualization Constants
class PlotConfig:
    """Configuration for plots and visualizations."""

    # Plot dimensions
    DAG_PLOT_SIZE = (12, 8)
    GANTT_PLOT_SIZE = (12, 6)
    COMPARISON_PLOT_SIZE = (14, 5)

    # Colors
    ALGORITHM_COLORS = {
        Algorithms.DSAWS: '#2563eb',
        Algorithms.CGA: '#16a34a',
        Algorithms.DYNA: '#dc2626',
    }
    DEADLINE_COLOR = 'red'

    # Markers
    ALGORITHM_MARKERS = {
        Algorithms.DSAWS: 'o',
        Algorithms.CGA: 's',
        Algorithms.DYNA: '^',
    }

    # File settings
    DPI = 150
    FORMAT = 'png'


# Validation Constants
class ValidationConfig:
    """Configuration for input clamping."""

    MIN_TASKS = 1                            # Minimum number of tasks in a workflow

    MIN_DEADLINE_FACTOR = 0.0                # Factors at or below this use the default
    MIN_SIMULATION_SPEED = 0.0


def get_default_params() -> Dict[str, Any]:
    """Get a fresh copy of the default simulation parameters."""
    return dict(DEFAULT_SIMULATION_PARAMS)
