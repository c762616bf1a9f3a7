#!/usr/bin/env python3
"""
Fidelity Report
===============
Measures how closely generated output follows a profile's distributions.

Metrics are total variation distances (TVD), half the L1 distance between
two probability distributions: 0.0 for identical distributions, 1.0 for
disjoint ones.

- length_tvd:  output lengths (in units) vs. the profile length distribution
- unit_tvd:    output unit frequencies vs. the profile unit frequencies
- pattern_tvd: output symbolic patterns vs. the profile pattern distribution

Output is re-segmented with the profile segmenter, so for gram profiles a
short final chunk joined mid-value can shift unit boundaries.

Usage:
    report = fidelity_report(profile, generate(profile, 10_000, rng_seed=1))
    assert report.length_tvd < 0.02
"""

import math
import statistics
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from .patterns import pattern_of
from .profile import Profile
from .settings import get_setting


def empirical(counts: Counter) -> dict:
    """Normalize counts into a probability distribution."""
    total = sum(counts.values())
    if not total:
        return {}
    return {k: v / total for k, v in counts.items()}


def total_variation(p: dict, q: dict) -> float:
    """Total variation distance between two distributions."""
    keys = set(p) | set(q)
    return 0.5 * math.fsum(abs(p.get(k, 0.0) - q.get(k, 0.0)) for k in keys)


@dataclass
class FidelityReport:
    """Distances between generated output and a profile."""
    sample_size: int
    length_tvd: float
    unit_tvd: float
    pattern_tvd: float
    mean_length: float
    expected_mean_length: float
    distinct_values: int

    def passes(self, max_length_tvd: float = None) -> bool:
        """True if the length distance is within tolerance (default: from app.yaml)."""
        if max_length_tvd is None:
            max_length_tvd = get_setting("fidelity.max_length_tvd", 0.02)
        return self.length_tvd < max_length_tvd

    def to_dict(self) -> dict:
        return {
            'sample_size': self.sample_size,
            'length_tvd': self.length_tvd,
            'unit_tvd': self.unit_tvd,
            'pattern_tvd': self.pattern_tvd,
            'mean_length': self.mean_length,
            'expected_mean_length': self.expected_mean_length,
            'distinct_values': self.distinct_values,
        }


def fidelity_report(profile: Profile, values: Iterable[str]) -> FidelityReport:
    """
    Compare generated values against the profile they came from.

    Args:
        profile: Source profile
        values: Generated strings

    Returns:
        FidelityReport with TVD metrics
    """
    segmenter = profile.segmenter
    lengths = Counter()
    units = Counter()
    patterns = Counter()
    distinct = set()
    size = 0

    for value in values:
        size += 1
        distinct.add(value)
        split = segmenter.split(value)
        lengths[len(split)] += 1
        units.update(split)
        patterns[pattern_of(value)] += 1

    expected_mean = math.fsum(k * p for k, p in profile.length_distribution.items())
    return FidelityReport(
        sample_size=size,
        length_tvd=total_variation(empirical(lengths), dict(profile.length_distribution)),
        unit_tvd=total_variation(empirical(units), dict(profile.unit_frequencies)),
        pattern_tvd=total_variation(empirical(patterns), dict(profile.pattern_distribution)),
        mean_length=statistics.fmean(lengths.elements()) if size else 0.0,
        expected_mean_length=expected_mean,
        distinct_values=len(distinct),
    )


__all__ = [
    'FidelityReport',
    'empirical',
    'total_variation',
    'fidelity_report',
]
