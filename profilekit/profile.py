#!/usr/bin/env python3
"""
Profile
=======
The frozen statistical model learned from a sample corpus.

A Profile is created once (by the analyzer or the codec) and never mutated
afterwards: every table is exposed as a read-only mapping, so one instance can
be shared by any number of concurrent generators without locking.

Tables:
- length_distribution:  length (in units) -> probability
- position_table:       tuple indexed by position; unit -> probability
- transitions:          context tuple -> {unit or END -> probability}
- unit_frequencies:     unit -> probability (position-unaware)
- pattern_distribution: symbolic pattern -> probability
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import MalformedProfileError
from .patterns import rank
from .tokenizer import END, START, Segmenter, segmenter_from_dict


# Required for generation; the other tables are descriptive
REQUIRED_TABLES = ('length_distribution', 'transitions', 'unit_frequencies')


def _readonly(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Profile:
    """Immutable bundle of learned tables plus metadata."""
    order: int
    alphabet: tuple
    length_distribution: Mapping
    position_table: tuple
    transitions: Mapping
    unit_frequencies: Mapping
    pattern_distribution: Mapping = field(default_factory=dict)
    sample_count: int = 0
    skipped_count: int = 0
    smoothing: float = 0.0
    segmentation: Mapping = field(default_factory=lambda: {'mode': 'char'})
    created_at: Optional[str] = field(default=None, compare=False)
    metadata: Mapping = field(default_factory=dict)

    # Tables are mappings, so a Profile compares by value but is not hashable
    __hash__ = None

    def __post_init__(self):
        # Seal every table behind a read-only view
        sealed = {
            'alphabet': tuple(self.alphabet),
            'position_table': tuple(_readonly(row) for row in self.position_table),
            'transitions': MappingProxyType({
                tuple(context): _readonly(row) for context, row in self.transitions.items()
            }),
        }
        for name in ('length_distribution', 'unit_frequencies', 'pattern_distribution',
                     'segmentation', 'metadata'):
            sealed[name] = _readonly(getattr(self, name))
        for name, value in sealed.items():
            object.__setattr__(self, name, value)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def segmenter(self) -> Segmenter:
        return segmenter_from_dict(dict(self.segmentation))

    @property
    def start_context(self) -> tuple:
        return (START,) * self.order

    @property
    def max_length(self) -> int:
        return max(self.length_distribution) if self.length_distribution else 0

    def transition_row(self, context) -> Optional[Mapping]:
        """Outgoing probabilities for a context, or None if never observed."""
        return self.transitions.get(tuple(context))

    def length_ranks(self) -> list[tuple]:
        """Lengths ranked by probability with cumulative totals."""
        return rank(self.length_distribution)

    def pattern_ranks(self) -> list[tuple]:
        """Symbolic patterns ranked by probability with cumulative totals."""
        return rank(self.pattern_distribution)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def row_sum_violations(self, tolerance: float = 1e-9) -> list[str]:
        """
        Describe every probability table whose total is not 1.0.

        Returns:
            Human-readable descriptions; empty when all tables are normalized
        """
        problems = []

        def check(label, row, optional=False):
            if not row:
                if not optional:
                    problems.append(f"{label} is empty")
                return
            total = math.fsum(row.values())
            if abs(total - 1.0) > tolerance:
                problems.append(f"{label} sums to {total!r}")

        check('length_distribution', self.length_distribution)
        check('unit_frequencies', self.unit_frequencies)
        check('pattern_distribution', self.pattern_distribution, optional=True)
        for position, row in enumerate(self.position_table):
            check(f"position[{position}]", row)
        for context, row in self.transitions.items():
            check(f"transition{list(context)}", row)
        return problems

    def symbol_violations(self) -> list[str]:
        """
        Describe every table key that is not a symbol of the alphabet.

        Unit tables may only hold alphabet units; contexts may also hold
        START and transition rows may also hold END.
        """
        units = set(self.alphabet)
        problems = []

        def check(label, keys, allowed):
            stray = [key for key in keys if key not in allowed]
            if stray:
                problems.append(f"{label} has unknown symbols {stray[:3]!r}")

        check('unit_frequencies', self.unit_frequencies, units)
        for position, row in enumerate(self.position_table):
            check(f"position[{position}]", row, units)
        context_units = units | {START}
        row_units = units | {END}
        for context, row in self.transitions.items():
            check(f"context{list(context)}", context, context_units)
            check(f"transition{list(context)}", row, row_units)
        return problems

    def validate_for_generation(self):
        """
        Ensure the tables the generator depends on are present.

        Raises:
            MalformedProfileError: If a required table is missing or empty
        """
        if not isinstance(self.order, int) or self.order < 1:
            raise MalformedProfileError(f"Invalid model order: {self.order!r}")
        missing = [name for name in REQUIRED_TABLES if not getattr(self, name)]
        if missing:
            raise MalformedProfileError(f"Profile is missing required tables: {', '.join(missing)}")
        if any(length < 0 for length in self.length_distribution):
            raise MalformedProfileError("Length distribution contains negative lengths")
        for context in self.transitions:
            if len(context) != self.order:
                raise MalformedProfileError(
                    f"Context {list(context)} does not match model order {self.order}"
                )

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def summary(self, top: int = 5) -> dict:
        """Compact description used by the CLI and logs."""
        lengths = sorted(self.length_distribution)
        return {
            'name': self.metadata.get('name'),
            'order': self.order,
            'segmentation': dict(self.segmentation),
            'smoothing': self.smoothing,
            'sample_count': self.sample_count,
            'skipped_count': self.skipped_count,
            'alphabet_size': len(self.alphabet),
            'contexts': len(self.transitions),
            'min_length': lengths[0] if lengths else 0,
            'max_length': lengths[-1] if lengths else 0,
            'top_lengths': [(k, round(p, 4)) for k, p in
                            sorted(self.length_distribution.items(), key=lambda kv: -kv[1])[:top]],
            'top_patterns': [(k, round(p, 4)) for k, p in
                             sorted(self.pattern_distribution.items(), key=lambda kv: -kv[1])[:top]],
            'created_at': self.created_at,
        }


__all__ = [
    'Profile',
    'REQUIRED_TABLES',
]
