# Experiment Configuration for the Workflow Scheduling Simulator
#
# This file contains predefined comparison sweeps based on the evaluation
# setup of the DSAWS paper: every workflow is simulated under several
# deadline factors and the three heuristics are compared side by side.

# Workflow parameters based on the catalog
WORKFLOW_CONFIGS = {
    "sample": {
        "workflow_type": "sample",
        "num_tasks": [9],
        "description": "Reference 9-task workflow from the DSAWS paper"
    },
    "montage": {
        "workflow_type": "montage",
        "num_tasks": [50, 100, 200],
        "description": "Montage astronomy mosaics, many short tasks"
    },
    "cybershake": {
        "workflow_type": "cybershake",
        "num_tasks": [50, 100, 200],
        "description": "CyberShake seismic hazard analysis, wide middle levels"
    },
    "ligo": {
        "workflow_type": "ligo",
        "num_tasks": [50, 100, 200],
        "description": "LIGO Inspiral, CPU-intensive tasks with 3x runtime variation"
    },
    "epigenomics": {
        "workflow_type": "epigenomics",
        "num_tasks": [50, 100, 200],
        "description": "Epigenomics, extreme runtime variation concentrated in one level"
    }
}

# Driver configuration for headless runs
DRIVER_CONFIGS = {
    "frame_seconds": None,                # None sizes frames from the deadline
    "simulation_speed": 1.0,
    "fast_forward": True,
    "max_frames": 100000,
    "seed_base": 42
}

# Predefined complete experiment configurations
COMPLETE_EXPERIMENTS = {
    "reference_check": {
        "workflow_configs": ["sample"],
        "deadline_factors": [1.0, 1.5, 2.0],
        "algorithms": ["DSAWS", "CGA", "Dyna"],
        "num_runs": 1,
        "description": "Reference workflow under the paper's deadline factors"
    },
    "small_scale_test": {
        "workflow_configs": ["montage", "cybershake"],
        "deadline_factors": [1.5],
        "algorithms": ["DSAWS", "CGA", "Dyna"],
        "num_runs": 3,
        "description": "Small scale test for validation"
    },
    "all_workflows_comparison": {
        "workflow_configs": ["sample", "montage", "cybershake", "ligo", "epigenomics"],
        "deadline_factors": [1.0, 1.5, 2.0],
        "algorithms": ["DSAWS", "CGA", "Dyna"],
        "num_runs": 5,
        "description": "Comprehensive comparison across all workflow types"
    }
}
