"""
Shared fixtures for the simulator test suite.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from wfsched.config.constants import WorkflowTypes
from wfsched.engine import SimulationEngine
from wfsched.models import Task, VM


@pytest.fixture
def rng():
    """Seeded random source."""
    return np.random.default_rng(42)


@pytest.fixture
def reference_engine():
    """Engine initialized on the reference workflow with deadline factor 1.5."""
    engine = SimulationEngine(seed=42)
    engine.initialize_run(WorkflowTypes.REFERENCE, 9, 1.5)
    return engine


@pytest.fixture
def chain_tasks():
    """Three-task chain a -> b -> c, all elapsed by t=10."""
    return (
        Task(id='t1', name='Task 1', runtime=2.0, dependencies=(), rank=3, level=1,
             start_time=0.0, end_time=2.0, assigned_vm='vm1'),
        Task(id='t2', name='Task 2', runtime=3.0, dependencies=('t1',), rank=2, level=2,
             start_time=2.0, end_time=5.0, assigned_vm='vm1'),
        Task(id='t3', name='Task 3', runtime=1.0, dependencies=('t2',), rank=1, level=3,
             start_time=5.0, end_time=6.0, assigned_vm='vm2'),
    )


@pytest.fixture
def chain_vms():
    """Two n1-standard-2 VMs hosting the chain tasks."""
    return (
        VM(id='vm1', tier_name='n1-standard-2', cost_per_minute=0.0021, speed=2,
           algorithm='DSAWS', task_ids=('t1', 't2')),
        VM(id='vm2', tier_name='n1-standard-2', cost_per_minute=0.0021, speed=2,
           algorithm='DSAWS', task_ids=('t3',)),
    )
