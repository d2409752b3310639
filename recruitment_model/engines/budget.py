# recruitment_model/engines/budget.py
"""Greedy allocation of a budget across acquisition channels by ROI per unit cost."""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from recruitment_model.errors import InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Channel:
    channel_id: str
    cost_per_unit: float  # cost per acquisition
    capacity: float  # maximum units the channel can deliver
    roi: float
    name: str = ""
    conversion_rate: float = 1.0

    @property
    def efficiency(self) -> float:
        return self.roi / self.cost_per_unit


@dataclass(frozen=True)
class BudgetAllocation:
    channel_id: str
    allocation: float
    expected_units: float


def optimize_budget_allocation(total_budget: float, channels: Sequence[Channel]) -> List[BudgetAllocation]:
    """
    Allocate total_budget greedily, most efficient channel first.

    Each channel receives min(remaining, capacity * cost_per_unit). Ties in
    efficiency keep their input order. Channels that would receive nothing
    are omitted.

    Raises:
        InvalidInput: If any channel has a non-positive cost_per_unit.
    """
    for channel in channels:
        if channel.cost_per_unit <= 0:
            raise InvalidInput(
                f"Channel {channel.channel_id!r} has non-positive cost_per_unit {channel.cost_per_unit}"
            )

    ranked = sorted(channels, key=lambda c: -c.efficiency)
    remaining = float(total_budget)
    allocations = []
    for channel in ranked:
        if remaining <= 0:
            break
        allocation = min(remaining, max(0.0, channel.capacity) * channel.cost_per_unit)
        if allocation > 0:
            allocations.append(
                BudgetAllocation(
                    channel_id=channel.channel_id,
                    allocation=allocation,
                    expected_units=allocation / channel.cost_per_unit,
                )
            )
            remaining -= allocation

    allocated = sum(a.allocation for a in allocations)
    logger.info(f"Allocated {allocated:.2f} of {total_budget:.2f} across {len(allocations)} channels")
    return allocations


__all__ = ["Channel", "BudgetAllocation", "optimize_budget_allocation"]
