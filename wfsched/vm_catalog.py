"""
VM Catalog Module

Google Compute Engine n1-standard machine types used as VM tiers, ordered by
increasing speed (GCEU) with per-minute on-demand prices.
"""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class VMTier:
    """Immutable VM tier entry."""
    name: str
    speed: int  # GCEU
    cost_per_minute: float


VM_TIERS: Tuple[VMTier, ...] = (
    VMTier("n1-standard-1", 1, 0.00105),
    VMTier("n1-standard-2", 2, 0.0021),
    VMTier("n1-standard-4", 4, 0.0042),
    VMTier("n1-standard-8", 8, 0.0084),
    VMTier("n1-standard-16", 16, 0.0168),
    VMTier("n1-standard-32", 32, 0.0336),
    VMTier("n1-standard-64", 64, 0.0672),
)


def get_tier(index: int) -> VMTier:
    """Get a tier by catalog index, clamped to the catalog bounds."""
    return VM_TIERS[max(0, min(index, len(VM_TIERS) - 1))]


def get_tier_by_name(name: str) -> VMTier:
    """Look up a tier by machine type name."""
    for tier in VM_TIERS:
        if tier.name == name:
            return tier
    raise ValueError(f"Unknown VM tier: {name}. Available: {get_tier_names()}")


def get_tier_names() -> List[str]:
    """Get list of tier names in catalog order."""
    return [tier.name for tier in VM_TIERS]
