"""
Tests for greedy budget allocation.
"""
import numpy as np
import pytest

from recruitment_model.engines.budget import Channel, optimize_budget_allocation
from recruitment_model.errors import InvalidInput

CHANNELS = [
    Channel("a", cost_per_unit=10.0, capacity=50, roi=2.0),
    Channel("b", cost_per_unit=20.0, capacity=100, roi=8.0),
    Channel("c", cost_per_unit=5.0, capacity=10, roi=1.0),
]


def test_most_efficient_channel_first():
    allocations = optimize_budget_allocation(1500, CHANNELS)
    assert [(a.channel_id, a.allocation) for a in allocations] == [("b", 1500.0)]
    assert allocations[0].expected_units == pytest.approx(75.0)


def test_ties_keep_input_order_and_capacity_caps():
    allocations = optimize_budget_allocation(3000, CHANNELS)
    assert [a.channel_id for a in allocations] == ["b", "a", "c"]
    assert [a.allocation for a in allocations] == pytest.approx([2000.0, 500.0, 50.0])


def test_zero_budget_allocates_nothing():
    assert optimize_budget_allocation(0, CHANNELS) == []


def test_zero_capacity_channel_is_omitted():
    channels = [Channel("x", 10.0, 0, 5.0), Channel("y", 10.0, 5, 1.0)]
    assert [a.channel_id for a in optimize_budget_allocation(100, channels)] == ["y"]


@pytest.mark.parametrize("cost", [0.0, -1.0])
def test_non_positive_cost_raises(cost):
    with pytest.raises(InvalidInput):
        optimize_budget_allocation(100, [Channel("bad", cost, 10, 1.0)])


def test_never_overspends():
    rng = np.random.default_rng(12)
    for _ in range(25):
        channels = [
            Channel(f"c{i}", float(rng.uniform(1, 50)), float(rng.integers(0, 100)), float(rng.uniform(0, 5)))
            for i in range(int(rng.integers(1, 8)))
        ]
        budget = float(rng.uniform(0, 5000))
        allocations = optimize_budget_allocation(budget, channels)
        assert sum(a.allocation for a in allocations) <= budget + 1e-9
        caps = {c.channel_id: c.capacity * c.cost_per_unit for c in channels}
        assert all(0 < a.allocation <= caps[a.channel_id] + 1e-9 for a in allocations)
