#!/usr/bin/env python3
"""
Profile Analyzer
================
Learns a Profile from a sample corpus.

For every sample the analyzer:
1. Segments it into units (see ``profilekit.tokenizer``)
2. Counts the unit seen at each position
3. Counts every transition from the ``order`` preceding units (padded with
   START markers) to the next unit, including the final transition to END
4. Counts the sample length, its units and its symbolic pattern

Counts accumulate in a ProfileBuilder; ``freeze()`` normalizes them into the
probability tables of an immutable Profile.

Smoothing:
----------
With ``smoothing = e > 0`` every observed context row gets ``count + e`` for
each symbol of ``alphabet + END`` before normalization, so no seen context has
a hard zero for a valid unit. Unobserved contexts are not stored: their row is
all ``0 + e``, i.e. uniform, and the generator builds it on demand. With the
default ``e = 0`` unseen entries are simply absent.

Usage:
    profile = build(["ann", "amy", "ana"], order=1)
"""

import logging
import math
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from .errors import EmptyCorpusError, InvalidSampleError
from .patterns import pattern_of
from .profile import Profile
from .settings import get_setting
from .tokenizer import END, Segmenter, get_segmenter

logger = logging.getLogger(__name__)


def _normalize(counts: dict, smoothing: float = 0.0, support: Iterable = ()) -> dict:
    """
    Convert counts to probabilities in sorted key order.

    Args:
        counts: key -> count
        smoothing: Additive constant applied to every key in ``support``
        support: Keys that receive smoothing mass even with a zero count
    """
    if smoothing:
        keys = sorted(set(counts) | set(support), key=_sort_key)
        weights = {k: counts.get(k, 0) + smoothing for k in keys}
    else:
        keys = sorted((k for k, v in counts.items() if v > 0), key=_sort_key)
        weights = {k: counts[k] for k in keys}
    total = math.fsum(weights.values())
    return {k: weights[k] / total for k in keys}


def _sort_key(key):
    # END sorts after every unit so rows read unit-first
    if key == END:
        return (1, '')
    if isinstance(key, tuple):
        return (0, tuple(_sort_key(part) for part in key))
    return (0, key)


class ProfileBuilder:
    """Append-only count accumulator for one corpus."""

    def __init__(self, order: int, segmenter: Segmenter):
        self.order = order
        self.segmenter = segmenter
        self.positions: list[Counter] = []
        self.transitions: dict[tuple, Counter] = defaultdict(Counter)
        self.lengths: Counter = Counter()
        self.units: Counter = Counter()
        self.patterns: Counter = Counter()
        self.sample_count = 0
        self.skipped_count = 0
        self._frozen = False

    def add(self, sample) -> bool:
        """
        Record one sample.

        Invalid samples are skipped and counted rather than raised.

        Returns:
            True if the sample was recorded, False if it was skipped
        """
        if self._frozen:
            raise RuntimeError("ProfileBuilder is frozen")
        try:
            seg = self.segmenter.segment(sample)
        except InvalidSampleError as e:
            self.skipped_count += 1
            logger.warning(f"Skipping sample: {e}")
            return False

        for position, unit in enumerate(seg.units):
            if position == len(self.positions):
                self.positions.append(Counter())
            self.positions[position][unit] += 1

        padded = seg.padded(self.order)
        for i in range(len(padded) - self.order):
            context = padded[i:i + self.order]
            self.transitions[context][padded[i + self.order]] += 1

        self.lengths[len(seg)] += 1
        self.units.update(seg.units)
        self.patterns[pattern_of(seg.sample)] += 1
        self.sample_count += 1
        return True

    def extend(self, corpus: Iterable) -> 'ProfileBuilder':
        for sample in corpus:
            self.add(sample)
        return self

    @property
    def alphabet(self) -> tuple:
        return tuple(sorted(self.units))

    def freeze(self, smoothing: float = 0.0,
               created_at: Optional[str] = None,
               metadata: Optional[dict] = None) -> Profile:
        """
        Normalize the accumulated counts into an immutable Profile.

        Raises:
            EmptyCorpusError: If no sample was recorded
        """
        if self.sample_count == 0:
            raise EmptyCorpusError(self.skipped_count)

        alphabet = self.alphabet
        support = alphabet + (END,)
        transitions = {
            context: _normalize(self.transitions[context], smoothing, support)
            for context in sorted(self.transitions, key=_sort_key)
        }

        self._frozen = True
        return Profile(
            order=self.order,
            alphabet=alphabet,
            length_distribution=_normalize(self.lengths),
            position_table=tuple(_normalize(row) for row in self.positions),
            transitions=transitions,
            unit_frequencies=_normalize(self.units),
            pattern_distribution=_normalize(self.patterns),
            sample_count=self.sample_count,
            skipped_count=self.skipped_count,
            smoothing=float(smoothing),
            segmentation=self.segmenter.describe(),
            created_at=created_at or datetime.now(timezone.utc).isoformat(timespec='seconds'),
            metadata=dict(metadata or {}),
        )


class Analyzer:
    """Builds Profiles from sample corpora."""

    def __init__(self,
                 order: int = None,
                 smoothing: float = None,
                 segmenter: Segmenter = None):
        """
        Initialize analyzer. Unset options fall back to ``analyzer.*`` in app.yaml.

        Args:
            order: Markov context length (positive integer)
            smoothing: Additive constant for transition counts (>= 0)
            segmenter: Unit segmenter (default: from analyzer.segmentation)
        """
        cfg = get_setting("analyzer", {}) or {}
        if order is None:
            order = cfg.get("order")
        if smoothing is None:
            smoothing = cfg.get("smoothing")
        if segmenter is None:
            segmenter = get_segmenter(cfg.get("segmentation", "char"), cfg.get("gram_size"))
        if order is None or smoothing is None:
            raise ValueError("analyzer.order and analyzer.smoothing must be set in app.yaml")

        if isinstance(order, bool) or not isinstance(order, int) or order < 1:
            raise ValueError(f"order must be a positive integer, got {order!r}")
        if smoothing < 0 or not math.isfinite(smoothing):
            raise ValueError(f"smoothing must be a non-negative number, got {smoothing!r}")

        self.order = order
        self.smoothing = float(smoothing)
        self.segmenter = segmenter

    def count(self, corpus: Iterable) -> ProfileBuilder:
        """Accumulate raw counts without normalizing."""
        return ProfileBuilder(self.order, self.segmenter).extend(corpus)

    def build(self, corpus: Iterable,
              name: str = None,
              created_at: str = None,
              metadata: dict = None) -> Profile:
        """
        Analyze a corpus into a Profile.

        Args:
            corpus: Iterable of raw sample strings (consumed once, not retained)
            name: Optional profile name stored in metadata
            created_at: Creation timestamp (default: now, UTC). Pin it for
                byte-identical encodings; equality ignores it either way
            metadata: Extra metadata stored with the profile

        Raises:
            EmptyCorpusError: If the corpus yields no usable samples
        """
        builder = self.count(corpus)
        meta = dict(metadata or {})
        if name:
            meta['name'] = name
        profile = builder.freeze(self.smoothing, created_at=created_at, metadata=meta)

        if builder.skipped_count:
            logger.info(f"Skipped {builder.skipped_count} invalid samples")
        logger.debug(
            f"Built profile order={self.order} samples={profile.sample_count} "
            f"alphabet={len(profile.alphabet)} contexts={len(profile.transitions)}"
        )
        return profile


def build(corpus: Iterable,
          order: int = None,
          smoothing: float = None,
          segmenter: Segmenter = None,
          **kwargs) -> Profile:
    """
    Convenience wrapper: ``Analyzer(order, smoothing, segmenter).build(corpus)``.

    Builds are deterministic except for ``created_at``, which defaults to the
    current time. Pass ``created_at=`` when two builds must encode to the same
    bytes.
    """
    return Analyzer(order=order, smoothing=smoothing, segmenter=segmenter).build(corpus, **kwargs)


__all__ = [
    'Analyzer',
    'ProfileBuilder',
    'build',
]
