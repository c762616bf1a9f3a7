#!/usr/bin/env python3
"""
Weighted Sampling
=================
Cumulative-distribution tables for weighted random choice.

A table is built once from (outcome, weight) pairs; each draw scales a
uniform variate by the table total and binary-searches the running sums, so
a draw costs O(log k) over k outcomes. Outcome order is kept as given,
which makes draws stable under a fixed seed.
"""

import bisect
import math
import random
from itertools import accumulate
from typing import Any, Iterable, Optional


class WeightedTable:
    """Immutable cumulative distribution over a fixed set of outcomes."""

    __slots__ = ('outcomes', 'cumulative', 'total')

    def __init__(self, items: Iterable[tuple], temperature: float = 1.0):
        """
        Args:
            items: (outcome, weight) pairs; non-positive weights are dropped
            temperature: Weights are rescaled as ``w ** (1 / temperature)``
        """
        if temperature <= 0:
            raise ValueError(f"temperature must be positive, got {temperature!r}")
        pairs = [(outcome, float(weight)) for outcome, weight in items if weight > 0]
        if temperature != 1.0:
            pairs = [(outcome, math.pow(weight, 1.0 / temperature)) for outcome, weight in pairs]
        if not pairs:
            raise ValueError("Cannot build a weighted table without positive weights")
        self.outcomes = tuple(outcome for outcome, _ in pairs)
        self.cumulative = tuple(accumulate(weight for _, weight in pairs))
        self.total = self.cumulative[-1]

    def __len__(self) -> int:
        return len(self.outcomes)

    def draw(self, rng: random.Random) -> Any:
        """Draw one outcome."""
        r = rng.random() * self.total
        index = bisect.bisect_right(self.cumulative, r)
        # r can round up to total for tiny weights
        return self.outcomes[min(index, len(self.outcomes) - 1)]

    def probability(self, outcome) -> float:
        """Normalized probability of an outcome (0.0 if absent)."""
        try:
            index = self.outcomes.index(outcome)
        except ValueError:
            return 0.0
        previous = self.cumulative[index - 1] if index else 0.0
        return (self.cumulative[index] - previous) / self.total

    @classmethod
    def from_mapping(cls, mapping, temperature: float = 1.0,
                     exclude: Optional[set] = None) -> Optional['WeightedTable']:
        """
        Build a table from a probability mapping.

        Args:
            mapping: outcome -> weight
            temperature: See ``__init__``
            exclude: Outcomes to leave out

        Returns:
            The table, or None if no outcome with positive weight remains
        """
        items = [(k, w) for k, w in mapping.items() if not exclude or k not in exclude]
        if not any(w > 0 for _, w in items):
            return None
        return cls(items, temperature)


__all__ = ['WeightedTable']
