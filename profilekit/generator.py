#!/usr/bin/env python3
"""
Profile Generator
=================
Samples new values from a Profile.

Algorithm per value:
1. Draw a target length from the length distribution
2. Start from the context ``START * order``
3. Draw the next unit from the transition row for the current context and
   slide the context window forward, until the target length is reached
4. Join the units with the profile's segmenter

End markers:
    By default the drawn length is authoritative: an END drawn before the
    target length is rejected by drawing from the same row restricted to
    real units. With ``stop_at_end=True`` an END finishes the value early,
    so lengths follow the Markov chain instead of the length distribution.

Unseen contexts:
    A smoothed profile gives every context, observed or not, mass ``e`` for
    each symbol of ``alphabet + END``. An unobserved context therefore reads
    as a uniform row over those symbols, and smoothed profiles never fall
    back.

Fallback:
    Without smoothing, when the current context has no transition row (e.g.
    on a pruned profile), or its row offers nothing but END while more units
    are needed, the generator issues an UnseenContextWarning and draws from
    the position-unaware unit frequencies. The fallback uses the same seeded
    RNG, so output stays reproducible for a given seed.

Usage:
    values = generate(profile, 100, rng_seed=42)

    for value in stream(profile, rng_seed=7):
        if done(value):
            break
"""

import logging
import random
import warnings
from dataclasses import dataclass
from itertools import islice
from typing import Iterator, Optional

from .errors import UnseenContextWarning
from .profile import Profile
from .sampling import WeightedTable
from .settings import get_setting
from .tokenizer import END

logger = logging.getLogger(__name__)


# =============================================================================
# Requests
# =============================================================================

@dataclass(frozen=True)
class GenerationRequest:
    """Desired output and constraints for one generation call."""
    count: Optional[int] = None
    seed: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    temperature: Optional[float] = None
    stop_at_end: Optional[bool] = None

    def __post_init__(self):
        cfg = get_setting("generator", {}) or {}
        for name in ('count', 'temperature', 'stop_at_end'):
            if getattr(self, name) is None:
                object.__setattr__(self, name, cfg.get(name))
        missing = [n for n in ('count', 'temperature', 'stop_at_end') if getattr(self, n) is None]
        if missing:
            raise ValueError(f"generator settings missing in app.yaml: {', '.join(missing)}")

        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1:
            raise ValueError(f"count must be a positive integer, got {self.count!r}")
        if self.temperature <= 0:
            raise ValueError(f"temperature must be positive, got {self.temperature!r}")
        if (self.min_length is not None and self.max_length is not None
                and self.min_length > self.max_length):
            raise ValueError("min_length must not exceed max_length")


# =============================================================================
# Generator
# =============================================================================

class Generator:
    """
    Generates values from one Profile.

    Sampling tables are built once per generator; the generator holds no
    random state of its own, so one instance can serve concurrent calls.
    """

    def __init__(self, profile: Profile,
                 temperature: float = 1.0,
                 min_length: int = None,
                 max_length: int = None,
                 stop_at_end: bool = False):
        """
        Args:
            profile: Profile to sample from
            temperature: Row weights are rescaled as ``p ** (1 / temperature)``
            min_length: Only draw target lengths >= min_length
            max_length: Only draw target lengths <= max_length
            stop_at_end: Let an END marker finish a value before its target length

        Raises:
            MalformedProfileError: If the profile lacks required tables
            ValueError: If no learned length satisfies the length bounds
        """
        profile.validate_for_generation()
        self.profile = profile
        self.temperature = temperature
        self.stop_at_end = stop_at_end
        self.min_length = min_length
        self.max_length = max_length
        self._segmenter = profile.segmenter

        lengths = [
            (length, p) for length, p in sorted(profile.length_distribution.items())
            if (min_length is None or length >= min_length)
            and (max_length is None or length <= max_length)
        ]
        if not any(p > 0 for _, p in lengths):
            raise ValueError(
                f"No learned length within [{min_length}, {max_length}]; "
                f"profile lengths: {sorted(profile.length_distribution)}"
            )
        self._lengths = WeightedTable(lengths)

        self._rows = {}
        self._unit_rows = {}
        for context, row in profile.transitions.items():
            full = WeightedTable.from_mapping(row, temperature)
            if full is not None:
                self._rows[context] = full
            units_only = WeightedTable.from_mapping(row, temperature, exclude={END})
            if units_only is not None:
                self._unit_rows[context] = units_only
        self._fallback = WeightedTable.from_mapping(profile.unit_frequencies, temperature)

        # Unobserved context under smoothing: every symbol has count 0 + e
        self._unseen_row = None
        self._unseen_units = None
        if profile.smoothing > 0 and profile.alphabet:
            self._unseen_row = WeightedTable([(unit, 1.0) for unit in profile.alphabet + (END,)])
            self._unseen_units = WeightedTable([(unit, 1.0) for unit in profile.alphabet])

    @classmethod
    def for_request(cls, profile: Profile, request: GenerationRequest) -> 'Generator':
        return cls(profile,
                   temperature=request.temperature,
                   min_length=request.min_length,
                   max_length=request.max_length,
                   stop_at_end=request.stop_at_end)

    def _next_unit(self, context: tuple, rng: random.Random) -> str:
        if self.stop_at_end:
            table = self._rows.get(context)
        else:
            table = self._unit_rows.get(context)
        if table is None and context not in self.profile.transitions:
            table = self._unseen_row if self.stop_at_end else self._unseen_units
        if table is None:
            warnings.warn(
                f"No transitions for context {list(context)!r}; "
                f"falling back to global unit frequencies",
                UnseenContextWarning,
                stacklevel=3,
            )
            logger.debug(f"Fallback draw for unseen context {list(context)!r}")
            table = self._fallback
        return table.draw(rng)

    def generate_one(self, rng: random.Random) -> str:
        """Generate a single value using the given random state."""
        order = self.profile.order
        target = self._lengths.draw(rng)
        context = self.profile.start_context
        units = []
        while len(units) < target:
            unit = self._next_unit(context, rng)
            if unit == END:
                break
            units.append(unit)
            context = (context + (unit,))[-order:]
        return self._segmenter.join(units)

    def stream(self, rng_seed: int = None) -> Iterator[str]:
        """
        Unbounded lazy sequence of values.

        Re-seeding restarts the same sequence. Stop pulling to terminate;
        nothing needs to be released.
        """
        rng = random.Random(rng_seed)
        while True:
            yield self.generate_one(rng)

    def generate(self, count: int, rng_seed: int = None) -> list[str]:
        """Generate ``count`` values."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")
        return list(islice(self.stream(rng_seed), count))


# =============================================================================
# Functional API
# =============================================================================

def generate(profile: Profile, count: int, rng_seed: int = None, **options) -> list[str]:
    """
    Generate ``count`` values from a profile.

    Args:
        profile: Profile to sample from
        count: Number of values (positive integer)
        rng_seed: Seed for a reproducible sequence
        **options: temperature, min_length, max_length, stop_at_end

    Returns:
        List of generated strings
    """
    return Generator(profile, **options).generate(count, rng_seed)


def stream(profile: Profile, rng_seed: int = None, **options) -> Iterator[str]:
    """Unbounded lazy sequence of values from a profile."""
    return Generator(profile, **options).stream(rng_seed)


def run_request(profile: Profile, request: GenerationRequest) -> list[str]:
    """Fulfil a GenerationRequest."""
    return Generator.for_request(profile, request).generate(request.count, request.seed)


__all__ = [
    'GenerationRequest',
    'Generator',
    'generate',
    'stream',
    'run_request',
]
