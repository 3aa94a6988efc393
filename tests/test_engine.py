"""
Unit tests for engine.py.
Covers run setup, frame advancement, the failsafe and run recording.
"""

import logging
from dataclasses import replace

import pytest

from wfsched.config.constants import Algorithms, WorkflowTypes
from wfsched.engine import SimulationEngine
from wfsched.recorder import ResultStore


def _drive(engine, frame=0.25, limit=100000):
    """Advance frame by frame until complete, returning every update."""
    engine.start()
    updates = []
    for _ in range(limit):
        update = engine.advance(frame)
        updates.append(update)
        if update.is_complete:
            break
    return updates


class TestInitializeRun:
    """Test cases for run setup."""

    def test_reference_setup(self):
        """Golden check of the reference workflow."""
        setup = SimulationEngine(seed=1).initialize_run(WorkflowTypes.REFERENCE, 9, 1.5)
        tasks = setup.tasks_by_algorithm[Algorithms.DSAWS]

        assert setup.deadline == pytest.approx(48.0)
        assert [t.id for t in tasks] == [f"t{i}" for i in range(1, 10)]
        assert [t.runtime for t in tasks] == [5, 4, 6, 8, 9, 5, 10, 14, 14]
        assert [t.rank for t in tasks] == [31, 32, 30, 25, 25, 20, 10, 12, 14]
        assert [t.level for t in tasks] == [1, 1, 1, 2, 2, 2, 3, 3, 3]
        assert [t.assigned_vm for t in tasks] == ['vm2', 'vm1', 'vm3', 'vm2', 'vm1', 'vm3', 'vm2', 'vm1', 'vm3']
        assert [len(setup.vms_by_algorithm[alg]) for alg in Algorithms.all_algorithms()] == [3, 3, 2]

    def test_collections_are_independent(self, reference_engine):
        """Each algorithm owns its own task tuple."""
        tasks = {alg: state.tasks for alg, state in reference_engine.states.items()}
        assert tasks[Algorithms.CGA][0].assigned_vm == 'cga-1'
        assert tasks[Algorithms.DYNA][0].assigned_vm == 'dyna-1'
        assert tasks[Algorithms.DSAWS][0].assigned_vm == 'vm2'

    def test_unknown_workflow_uses_reference(self, caplog):
        engine = SimulationEngine(seed=1)
        with caplog.at_level(logging.WARNING):
            setup = engine.initialize_run('nonexistent', 100, 1.5)

        assert engine.workflow_type == WorkflowTypes.REFERENCE
        assert setup.deadline == pytest.approx(48.0)
        assert len(setup.tasks_by_algorithm[Algorithms.CGA]) == 9
        assert 'nonexistent' in caplog.text

    def test_input_clamping(self, caplog):
        """Non-positive task counts become one; non-positive factors use the default."""
        engine = SimulationEngine(seed=1)
        with caplog.at_level(logging.WARNING):
            setup = engine.initialize_run(WorkflowTypes.MONTAGE, 0, -2.0)

        assert all(len(tasks) == 1 for tasks in setup.tasks_by_algorithm.values())
        assert engine.deadline_factor == 1.5
        assert setup.deadline == pytest.approx(369 * 1.5)
        assert 'Deadline factor' in caplog.text

    def test_seeded_runs_are_reproducible(self):
        a = SimulationEngine(seed=123).initialize_run(WorkflowTypes.LIGO, 80, 1.5)
        b = SimulationEngine(seed=123).initialize_run(WorkflowTypes.LIGO, 80, 1.5)
        c = SimulationEngine(seed=124).initialize_run(WorkflowTypes.LIGO, 80, 1.5)

        assert a == b
        assert a.tasks_by_algorithm != c.tasks_by_algorithm

    def test_initialize_resets_state(self, reference_engine):
        _drive(reference_engine)
        assert reference_engine.is_complete

        reference_engine.initialize_run(WorkflowTypes.REFERENCE, 9, 1.5)
        assert reference_engine.simulation_time == 0.0
        assert not reference_engine.is_complete
        assert not reference_engine.is_running
        assert all(s.progress == 0.0 and s.cost == 0.0 for s in reference_engine.states.values())


class TestAdvance:
    """Test cases for frame advancement."""

    def test_advance_requires_initialized_run(self):
        with pytest.raises(RuntimeError):
            SimulationEngine().advance(0.1)

    def test_stopped_engine_does_not_advance(self, reference_engine):
        update = reference_engine.advance(10.0)
        assert update.simulation_time == 0.0
        assert not update.is_complete

    def test_progress_midway(self, reference_engine):
        """At t=10 the three level-1 tasks are done and nothing has finished."""
        reference_engine.start()
        for _ in range(40):
            update = reference_engine.advance(0.25)

        assert update.simulation_time == pytest.approx(10.0)
        assert update.progress_by_algorithm[Algorithms.DSAWS] == pytest.approx(100.0 / 3)
        assert update.deadline_met_by_algorithm[Algorithms.DSAWS] is None
        assert update.cost_by_algorithm[Algorithms.DSAWS] == pytest.approx(3 * 0.0021)
        assert update.cost_by_algorithm[Algorithms.DYNA] == pytest.approx(2 * 0.0021)

    def test_reference_run_completes_at_last_task_end(self, reference_engine):
        updates = _drive(reference_engine)
        final = updates[-1]

        assert final.is_complete
        assert final.simulation_time == pytest.approx(29.0)
        assert sorted(final.newly_completed) == sorted(Algorithms.all_algorithms())
        assert all(p == 100.0 for p in final.progress_by_algorithm.values())
        assert all(final.deadline_met_by_algorithm.values())
        assert not reference_engine.is_running

    def test_advance_after_completion_is_a_no_op(self, reference_engine):
        _drive(reference_engine)
        before = reference_engine.simulation_time
        update = reference_engine.advance(5.0)
        assert update.simulation_time == before
        assert update.is_complete
        assert update.newly_completed == []

    def test_fast_forward_scales_frames(self, reference_engine):
        reference_engine.toggle_fast_forward()
        reference_engine.start()
        update = reference_engine.advance(0.5)
        assert update.simulation_time == pytest.approx(5.0)

    def test_dependency_gating_holds_every_frame(self):
        """Completed tasks have elapsed and their dependencies were completed."""
        engine = SimulationEngine(seed=7)
        engine.initialize_run(WorkflowTypes.MONTAGE, 60, 3.0)
        engine.start()

        while not engine.is_complete:
            update = engine.advance(0.5)
            now = update.simulation_time
            for state in engine.states.values():
                if state.forced:
                    continue
                done = {t.id for t in state.tasks if t.completed}
                for task in state.tasks:
                    if task.completed:
                        assert task.end_time <= now
                        assert all(dep in done for dep in task.dependencies)

    def test_cost_and_vm_clocks_are_monotonic(self):
        engine = SimulationEngine(seed=11)
        engine.initialize_run(WorkflowTypes.CYBERSHAKE, 40, 1.5)
        engine.start()

        last_cost = {alg: 0.0 for alg in Algorithms.all_algorithms()}
        last_clock = {}
        while not engine.is_complete:
            update = engine.advance(1.0)
            for alg, state in engine.states.items():
                assert update.cost_by_algorithm[alg] >= last_cost[alg]
                last_cost[alg] = update.cost_by_algorithm[alg]
                assert 0.0 <= update.progress_by_algorithm[alg] <= 100.0
                for vm in state.vms:
                    assert vm.current_time <= update.simulation_time
                    assert vm.current_time >= last_clock.get(vm.id, 0.0)
                    last_clock[vm.id] = vm.current_time

    def test_cost_freezes_at_completion(self, reference_engine):
        """Finished algorithms stop accruing cost while hidden ones keep running."""
        reference_engine.set_visible(Algorithms.CGA, False)
        cga = reference_engine.states[Algorithms.CGA]
        cga.tasks = tuple(replace(t, dependencies=('t99',)) if t.id == 't9' else t for t in cga.tasks)

        _drive(reference_engine)
        assert reference_engine.is_complete
        assert reference_engine.simulation_time == pytest.approx(29.0)
        assert not cga.is_complete
        assert reference_engine.states[Algorithms.DSAWS].cost == pytest.approx(3 * 0.0021)


class TestFailsafe:
    """Test cases for forced completion."""

    def test_tight_deadline_forces_completion(self):
        """With deadline 16 the failsafe fires at the first frame past 24."""
        engine = SimulationEngine(seed=1)
        engine.initialize_run(WorkflowTypes.REFERENCE, 9, 0.5)
        updates = _drive(engine)

        assert updates[-1].is_complete
        assert updates[-1].simulation_time == pytest.approx(24.25)
        for state in engine.states.values():
            assert state.forced
            assert state.deadline_met is False
            assert all(t.completed for t in state.tasks)

    def test_deadline_miss_latches_before_completion(self):
        engine = SimulationEngine(seed=1)
        engine.initialize_run(WorkflowTypes.REFERENCE, 9, 0.5)
        engine.start()
        for _ in range(65):
            update = engine.advance(0.25)

        assert update.simulation_time == pytest.approx(16.25)
        assert not update.is_complete
        assert all(v is False for v in update.deadline_met_by_algorithm.values())

    def test_deadlock_is_forced_within_one_frame(self, reference_engine):
        """A task waiting on a task that never completes is closed by the failsafe."""
        dsaws = reference_engine.states[Algorithms.DSAWS]
        dsaws.tasks = tuple(replace(t, dependencies=('t99',)) if t.id == 't4' else t for t in dsaws.tasks)

        updates = _drive(reference_engine, frame=0.5)
        failsafe = reference_engine.failsafe_time

        assert failsafe == pytest.approx(72.0)
        assert failsafe < updates[-1].simulation_time <= failsafe + 0.5
        assert dsaws.forced
        assert not reference_engine.states[Algorithms.CGA].forced
        runs = {run.algorithm: run for run in reference_engine.finalize()}
        assert runs[Algorithms.DSAWS].forced
        assert not runs[Algorithms.DSAWS].meets_deadline
        assert runs[Algorithms.CGA].meets_deadline

    def test_deadline_equal_to_completion_is_met(self):
        engine = SimulationEngine(seed=1)
        engine.initialize_run(WorkflowTypes.REFERENCE, 9, 29.0 / 32.0)
        _drive(engine)
        assert all(state.deadline_met is True for state in engine.states.values())


class TestFinalize:
    """Test cases for run recording."""

    def test_finalize_records_visible_algorithms(self, reference_engine):
        _drive(reference_engine)
        runs = reference_engine.finalize()

        assert [run.algorithm for run in runs] == Algorithms.all_algorithms()
        assert len(reference_engine.result_store) == 3
        dyna = reference_engine.result_store.get(Algorithms.DYNA, WorkflowTypes.REFERENCE)
        assert dyna.completion_time == pytest.approx(29.0)
        assert dyna.total_cost == pytest.approx(2 * 0.0021)
        assert dyna.vm_count == 2
        assert len(dyna.vm_utilization) == 10

    def test_finalize_is_idempotent(self, reference_engine):
        _drive(reference_engine)
        first = reference_engine.finalize()
        second = reference_engine.finalize()

        assert first == second
        assert len(reference_engine.result_store) == 3

    def test_finalize_before_completion_records_nothing(self, reference_engine):
        assert reference_engine.finalize() == []

    def test_hidden_algorithms_are_not_recorded(self):
        engine = SimulationEngine(seed=1, visible_algorithms=[Algorithms.DSAWS])
        engine.initialize_run(WorkflowTypes.REFERENCE, 9, 1.5)
        runs = engine.run_to_completion(frame_seconds=0.25)

        assert [run.algorithm for run in runs] == [Algorithms.DSAWS]
        assert len(engine.result_store) == 1

    def test_shared_store_keeps_latest_per_workflow(self):
        store = ResultStore()
        for factor in (1.5, 0.5):
            engine = SimulationEngine(seed=1, result_store=store)
            engine.initialize_run(WorkflowTypes.REFERENCE, 9, factor)
            engine.run_to_completion(frame_seconds=0.25)

        assert len(store) == 3
        assert all(run.deadline_factor == 0.5 and run.forced for run in store.results)


class TestRunToCompletion:
    """Test cases for the headless driver."""

    def test_default_frames(self, reference_engine):
        runs = reference_engine.run_to_completion()
        frame = 48.0 / 400
        assert len(runs) == 3
        for run in runs:
            assert 29.0 <= run.completion_time < 29.0 + frame + 1e-9
            assert run.meets_deadline

    def test_procedural_run_finishes(self):
        engine = SimulationEngine(seed=5, fast_forward=True)
        engine.initialize_run(WorkflowTypes.EPIGENOMICS, 50, 1.0)
        runs = engine.run_to_completion()

        assert len(runs) == 3
        assert all(run.task_count == 50 for run in runs)
        assert all(run.completion_time <= engine.failsafe_time + engine.deadline / 400 for run in runs)

    def test_frame_limit(self, reference_engine):
        with pytest.raises(RuntimeError, match="did not complete"):
            reference_engine.run_to_completion(frame_seconds=0.25, max_frames=10)
        assert not reference_engine.is_running

    def test_zero_speed_is_rejected(self):
        engine = SimulationEngine(simulation_speed=0.0)
        engine.initialize_run(WorkflowTypes.REFERENCE, 9, 1.5)
        with pytest.raises(ValueError):
            engine.run_to_completion()

    def test_reset_rebuilds_run(self, reference_engine):
        reference_engine.run_to_completion(frame_seconds=0.25)
        setup = reference_engine.reset()

        assert setup.deadline == pytest.approx(48.0)
        assert not reference_engine.is_complete
        assert all(not t.completed for t in setup.tasks_by_algorithm[Algorithms.DSAWS])
