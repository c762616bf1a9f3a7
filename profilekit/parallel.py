#!/usr/bin/env python3
"""
Parallel Building & Generation
==============================
Thread-pool helpers for independent profile work.

Profiles are frozen, so any number of threads may sample from the same one.
Builds of different corpora share nothing and need no coordination.

Features:
- Build several named profiles concurrently
- Split a large generation into seeded batches; the output depends only on
  (seed, batch_size), never on the number of workers or scheduling

Usage:
    from profilekit.parallel import ParallelConfig, build_many, generate_parallel

    results = build_many({"first": first_names, "last": last_names})
    values = generate_parallel(results["first"].profile, 100_000, rng_seed=7)
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .analyzer import Analyzer
from .errors import ProfileKitError
from .generator import Generator
from .profile import Profile
from .settings import get_setting

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ParallelConfig:
    """Configuration for parallel work."""
    workers: Optional[int] = None       # Thread pool size
    batch_size: Optional[int] = None    # Values per generation batch

    def __post_init__(self):
        cfg = get_setting("parallel", {}) or {}
        if self.workers is None:
            self.workers = cfg.get("workers")
        if self.batch_size is None:
            self.batch_size = cfg.get("batch_size")

        missing = [
            name for name, value in (
                ("workers", self.workers),
                ("batch_size", self.batch_size),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"parallel settings missing in app.yaml: {', '.join(missing)}")
        if self.workers < 1 or self.batch_size < 1:
            raise ValueError("parallel.workers and parallel.batch_size must be positive")


# =============================================================================
# Building
# =============================================================================

@dataclass
class BuildResult:
    """Outcome of one profile build."""
    name: str
    profile: Optional[Profile] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.profile is not None


def build_many(corpora: Dict[str, Iterable],
               analyzer: Analyzer = None,
               config: ParallelConfig = None) -> Dict[str, BuildResult]:
    """
    Build one profile per named corpus in parallel.

    A corpus that fails to build (e.g. EmptyCorpusError) is reported in its
    BuildResult; the other builds are unaffected.

    Returns:
        Dict of name -> BuildResult, in input order
    """
    analyzer = analyzer or Analyzer()
    config = config or ParallelConfig()
    results = {name: BuildResult(name=name) for name in corpora}

    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        futures = {
            executor.submit(analyzer.build, corpus, name=name): name
            for name, corpus in corpora.items()
        }
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name].profile = future.result()
            except ProfileKitError as e:
                results[name].error = str(e)
                logger.warning(f"Profile build failed for {name}: {e}")

    return results


# =============================================================================
# Generation
# =============================================================================

def batch_seeds(rng_seed: Optional[int], batches: int) -> List[Optional[int]]:
    """Derive one seed per batch from a base seed (None stays unseeded)."""
    if rng_seed is None:
        return [None] * batches
    base = random.Random(rng_seed)
    return [base.getrandbits(64) for _ in range(batches)]


def generate_parallel(profile: Profile,
                      count: int,
                      rng_seed: int = None,
                      config: ParallelConfig = None,
                      **options) -> List[str]:
    """
    Generate ``count`` values using a thread pool.

    Args:
        profile: Profile to sample from
        count: Total number of values
        rng_seed: Base seed; batch seeds are derived from it
        config: Worker count and batch size
        **options: Passed to Generator (temperature, min_length, ...)

    Returns:
        Values in batch order
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")
    config = config or ParallelConfig()
    generator = Generator(profile, **options)

    sizes = [config.batch_size] * (count // config.batch_size)
    if count % config.batch_size:
        sizes.append(count % config.batch_size)
    seeds = batch_seeds(rng_seed, len(sizes))

    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        futures = [
            executor.submit(generator.generate, size, seed)
            for size, seed in zip(sizes, seeds)
        ]
        batches = [future.result() for future in futures]

    logger.debug(f"Generated {count} values in {len(sizes)} batches")
    return [value for batch in batches for value in batch]


__all__ = [
    'ParallelConfig',
    'BuildResult',
    'build_many',
    'batch_seeds',
    'generate_parallel',
]
