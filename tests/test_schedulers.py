"""
Unit tests for schedulers.py.
"""

from collections import Counter

import numpy as np
import pytest

from wfsched.config.constants import Algorithms, WorkflowTypes
from wfsched.dag_generators import ProceduralTaskGraph, ReferenceTaskGraph
from wfsched.fleet import FleetProvisioner
from wfsched.schedulers import (
    ProbabilisticPolicy, SchedulerFactory, StructureAwarePolicy, UniformPolicy
)


def _reference_run(algorithm, rng):
    tasks = ReferenceTaskGraph().generate(WorkflowTypes.REFERENCE, 9, algorithm, rng)
    vms = FleetProvisioner().provision(WorkflowTypes.REFERENCE, 9, algorithm, rng)
    return SchedulerFactory.create_scheduler(algorithm).assign(tasks, vms, WorkflowTypes.REFERENCE, rng)


def _procedural_run(algorithm, workflow_type, num_tasks, seed=3):
    rng = np.random.default_rng(seed)
    tasks = ProceduralTaskGraph().generate(workflow_type, num_tasks, algorithm, rng)
    vms = FleetProvisioner().provision(workflow_type, num_tasks, algorithm, rng)
    return SchedulerFactory.create_scheduler(algorithm).assign(tasks, vms, workflow_type, rng)


class TestReferenceAssignments:
    """Literal placements of the worked example."""

    def test_dsaws(self, rng):
        tasks, vms = _reference_run(Algorithms.DSAWS, rng)

        assert [t.assigned_vm for t in tasks] == ['vm2', 'vm1', 'vm3', 'vm2', 'vm1', 'vm3', 'vm2', 'vm1', 'vm3']
        assert {vm.id: vm.task_ids for vm in vms} == {
            'vm1': ('t2', 't5', 't8'),
            'vm2': ('t1', 't4', 't7'),
            'vm3': ('t3', 't6', 't9'),
        }

    def test_cga(self, rng):
        _, vms = _reference_run(Algorithms.CGA, rng)
        assert {vm.id: vm.task_ids for vm in vms} == {
            'cga-1': ('t1', 't5', 't8'),
            'cga-2': ('t2', 't4', 't7'),
            'cga-3': ('t3', 't6', 't9'),
        }

    def test_dyna(self, rng):
        tasks, vms = _reference_run(Algorithms.DYNA, rng)
        assert {vm.id: vm.task_ids for vm in vms} == {
            'dyna-1': ('t1', 't3', 't6', 't9'),
            'dyna-2': ('t2', 't4', 't5', 't7', 't8'),
        }
        assert {t.id: t.assigned_vm for t in tasks}['t5'] == 'dyna-2'

    @pytest.mark.parametrize("algorithm", Algorithms.all_algorithms())
    def test_literal_times_are_kept(self, rng, algorithm):
        tasks, _ = _reference_run(algorithm, rng)
        assert [t.start_time for t in tasks] == [2, 2, 2, 7, 6, 8, 15, 15, 13]
        assert all(t.end_time == t.start_time + t.runtime for t in tasks)


class TestProceduralAssignments:
    """Placement rules on generated workflows."""

    @pytest.mark.parametrize("algorithm", Algorithms.all_algorithms())
    def test_every_task_placed_once(self, algorithm):
        """Each task is on exactly one VM and VM task lists agree with the tasks."""
        tasks, vms = _procedural_run(algorithm, WorkflowTypes.MONTAGE, 250)

        placed = [task_id for vm in vms for task_id in vm.task_ids]
        assert sorted(placed) == sorted(t.id for t in tasks)
        by_vm = {vm.id: set(vm.task_ids) for vm in vms}
        for task in tasks:
            assert task.id in by_vm[task.assigned_vm]

    @pytest.mark.parametrize("algorithm,offset", [
        (Algorithms.DSAWS, 5.0), (Algorithms.CGA, 6.0), (Algorithms.DYNA, 5.5),
    ])
    def test_start_times_follow_level_offset(self, algorithm, offset):
        tasks, _ = _procedural_run(algorithm, WorkflowTypes.LIGO, 90)
        for task in tasks:
            assert task.start_time == pytest.approx(task.level * offset)
            assert task.end_time == pytest.approx(task.start_time + task.runtime)

    def test_dsaws_deals_across_levels_in_rank_order(self):
        """One round-robin counter runs through the levels in rank order."""
        tasks, vms = _procedural_run(Algorithms.DSAWS, WorkflowTypes.CYBERSHAKE, 400)
        ids = [vm.id for vm in vms]
        dealt = sorted(tasks, key=lambda t: (t.level, -t.rank, t.number))
        assert [t.assigned_vm for t in dealt] == [ids[i % len(ids)] for i in range(len(dealt))]

    def test_dsaws_counter_does_not_restart_per_level(self):
        """The second level picks up where the first level stopped."""
        tasks, vms = _procedural_run(Algorithms.DSAWS, WorkflowTypes.CYBERSHAKE, 400)
        ids = [vm.id for vm in vms]
        first_level = [t for t in tasks if t.level == 1]
        second_level = sorted((t for t in tasks if t.level == 2), key=lambda t: (-t.rank, t.number))
        assert second_level[0].assigned_vm == ids[len(first_level) % len(ids)]

    def test_cga_round_robin(self):
        tasks, vms = _procedural_run(Algorithms.CGA, WorkflowTypes.MONTAGE, 40)
        ids = [vm.id for vm in vms]
        for i, task in enumerate(sorted(tasks, key=lambda t: t.number)):
            assert task.assigned_vm == ids[i % len(ids)]

    def test_dyna_favors_first_vm(self):
        """Squared draws concentrate tasks on the lowest VM slots."""
        policy = ProbabilisticPolicy()
        tasks = ProceduralTaskGraph().generate(WorkflowTypes.MONTAGE, 300, Algorithms.DYNA,
                                               np.random.default_rng(1))
        placement = policy.place(tasks, 3, np.random.default_rng(2))
        counts = Counter(slot for _, slot in placement)

        assert set(counts) <= {0, 1, 2}
        assert counts[0] > counts[1]
        assert counts[0] > counts[2]
        assert counts[0] > 120

    def test_empty_fleet_leaves_tasks_unassigned(self, rng):
        tasks = ProceduralTaskGraph().generate(WorkflowTypes.MONTAGE, 10, Algorithms.CGA, rng)
        new_tasks, new_vms = UniformPolicy().assign(tasks, (), WorkflowTypes.MONTAGE, rng)
        assert new_vms == ()
        assert all(t.assigned_vm is None for t in new_tasks)


class TestSchedulerFactory:
    """Test cases for SchedulerFactory."""

    def test_create_scheduler(self):
        assert isinstance(SchedulerFactory.create_scheduler(Algorithms.DSAWS), StructureAwarePolicy)
        assert isinstance(SchedulerFactory.create_scheduler(Algorithms.CGA), UniformPolicy)
        assert isinstance(SchedulerFactory.create_scheduler(Algorithms.DYNA), ProbabilisticPolicy)

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unknown algorithm: HEFT"):
            SchedulerFactory.create_scheduler('HEFT')

    def test_descriptions(self):
        for algorithm in SchedulerFactory.get_available_algorithms():
            policy = SchedulerFactory.create_scheduler(algorithm)
            assert policy.name == algorithm
            assert policy.description
            assert policy.strengths and policy.weaknesses
