"""
Fleet Provisioning Module

Sizes and instantiates the VM fleet of each algorithm. Fleet size scales
sub-linearly with the task count and the tier chosen for each VM slot follows
the provisioning philosophy of the heuristic:
- DSAWS reserves the faster tiers for the first VMs, which open the
  rank-ordered dealing
- CGA samples tiers near-uniformly across the unlocked part of the catalog
- Dyna mostly picks low/mid tiers with an occasional faster VM
"""

import logging
import math
from typing import Callable, Dict, Tuple

import numpy as np

from .config.constants import Algorithms, AlgorithmParams, SimulationConfig, WorkflowTypes
from .models import VM
from .vm_catalog import VM_TIERS, VMTier, get_tier

logger = logging.getLogger(__name__)


def fleet_size(workflow_type: str, num_tasks: int, algorithm: str) -> int:
    """Number of VMs provisioned for an algorithm."""
    if algorithm not in AlgorithmParams.FLEET_TASKS_PER_VM:
        raise ValueError(f"Unknown algorithm: {algorithm}. Available: {Algorithms.all_algorithms()}")
    if workflow_type == WorkflowTypes.REFERENCE:
        return AlgorithmParams.REFERENCE_FLEET_SIZES[algorithm]
    return max(AlgorithmParams.FLEET_MINIMUM[algorithm],
               math.ceil(num_tasks / AlgorithmParams.FLEET_TASKS_PER_VM[algorithm]))


def max_tier_index(num_tasks: int) -> int:
    """Highest catalog index unlocked for a workflow size."""
    scaled = max(num_tasks, 1) / SimulationConfig.TIER_SCALE_TASKS
    return min(len(VM_TIERS) - 1, max(1, math.floor(math.log2(scaled))))


class FleetProvisioner:
    """Creates the VM fleet for one algorithm's run."""

    def __init__(self):
        self._selectors: Dict[str, Callable[[int, int, int, np.random.Generator], int]] = {
            Algorithms.DSAWS: self._structure_aware_tier,
            Algorithms.CGA: self._uniform_tier,
            Algorithms.DYNA: self._probabilistic_tier,
        }

    def provision(self, workflow_type: str, num_tasks: int, algorithm: str,
                  rng: np.random.Generator) -> Tuple[VM, ...]:
        """Provision the fleet of `algorithm` for a workflow.

        Args:
            workflow_type: Resolved workflow key
            num_tasks: Requested task count (already clamped to >= 1)
            algorithm: One of Algorithms.all_algorithms()
            rng: Random source for tier sampling

        Returns:
            Tuple of VMs with empty task lists, ids numbered from 1
        """
        size = fleet_size(workflow_type, num_tasks, algorithm)
        cap = max_tier_index(num_tasks)
        pattern = AlgorithmParams.VM_ID_PATTERNS[algorithm]

        vms = []
        for slot in range(size):
            tier = self.select_tier(workflow_type, algorithm, slot, size, cap, rng)
            vms.append(VM(
                id=pattern.format(index=slot + 1),
                tier_name=tier.name,
                cost_per_minute=tier.cost_per_minute,
                speed=tier.speed,
                algorithm=algorithm,
            ))

        logger.debug(f"{algorithm}: provisioned {size} VMs ({', '.join(vm.tier_name for vm in vms)})")
        return tuple(vms)

    def select_tier(self, workflow_type: str, algorithm: str, slot: int, size: int,
                    cap: int, rng: np.random.Generator) -> VMTier:
        """Pick the tier of one VM slot."""
        if workflow_type == WorkflowTypes.REFERENCE:
            return get_tier(SimulationConfig.REFERENCE_TIER_INDEX)
        if algorithm not in self._selectors:
            raise ValueError(f"Unknown algorithm: {algorithm}. Available: {list(self._selectors.keys())}")
        return get_tier(self._selectors[algorithm](slot, size, cap, rng))

    @staticmethod
    def _structure_aware_tier(slot: int, size: int, cap: int, rng: np.random.Generator) -> int:
        percentile = slot / size
        if percentile < AlgorithmParams.DSAWS_FAST_PERCENTILE:
            return min(cap, 3 + int(rng.integers(0, 2)))
        elif percentile < AlgorithmParams.DSAWS_MEDIUM_PERCENTILE:
            return min(cap, 2 + int(rng.integers(0, 2)))
        return min(cap, 1 + int(rng.integers(0, 2)))

    @staticmethod
    def _uniform_tier(slot: int, size: int, cap: int, rng: np.random.Generator) -> int:
        return min(cap, 1 + int(rng.integers(0, cap)))

    @staticmethod
    def _probabilistic_tier(slot: int, size: int, cap: int, rng: np.random.Generator) -> int:
        if rng.random() < AlgorithmParams.DYNA_FAST_VM_PROBABILITY:
            return min(cap, 2 + int(rng.integers(0, 2)))
        return min(cap, 1 + int(rng.integers(0, 2)))


def tier_histogram(vms: Tuple[VM, ...]) -> Dict[str, int]:
    """Count VMs per tier name."""
    counts: Dict[str, int] = {}
    for vm in vms:
        counts[vm.tier_name] = counts.get(vm.tier_name, 0) + 1
    return counts
