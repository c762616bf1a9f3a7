"""
Shared Test Fixtures
====================
Small corpora and prebuilt profiles used across the test suite.
"""

import sys
from pathlib import Path

import pytest

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from profilekit import Analyzer


FIXED_TIMESTAMP = "2024-01-01T00:00:00+00:00"

FIRST_NAMES = [
    "james", "mary", "robert", "patricia", "john", "jennifer", "michael",
    "linda", "david", "elizabeth", "william", "barbara", "richard", "susan",
    "joseph", "jessica", "thomas", "sarah", "charles", "karen", "daniel",
    "lisa", "matthew", "nancy", "anthony", "betty", "mark", "sandra",
    "donald", "margaret", "steven", "ashley", "paul", "kimberly", "andrew",
    "emily", "joshua", "donna", "kenneth", "michelle", "kevin", "carol",
    "brian", "amanda", "george", "melissa", "timothy", "deborah", "ronald",
    "stephanie", "edward", "rebecca", "jason", "sharon", "jeffrey", "laura",
    "ryan", "cynthia", "jacob", "amy", "gary", "kathleen", "nicholas", "angela",
    "eric", "shirley", "jonathan", "anna", "larry", "ruth", "justin", "brenda",
    "scott", "pamela", "brandon", "nicole", "benjamin", "katherine", "samuel",
    "samantha", "gregory", "christine", "alexander", "emma", "frank", "helen",
]


@pytest.fixture
def tiny_corpus():
    """Three-sample corpus with hand-checkable counts."""
    return ["ann", "amy", "ana"]


@pytest.fixture
def first_names():
    return list(FIRST_NAMES)


@pytest.fixture
def tiny_profile(tiny_corpus):
    """Order-1, unsmoothed profile of the tiny corpus."""
    return Analyzer(order=1, smoothing=0.0).build(tiny_corpus, created_at=FIXED_TIMESTAMP)


@pytest.fixture
def names_profile(first_names):
    """Order-2, unsmoothed profile of the first-names corpus."""
    return Analyzer(order=2, smoothing=0.0).build(
        first_names, name="first_names", created_at=FIXED_TIMESTAMP
    )


@pytest.fixture
def smoothed_profile(first_names):
    """Order-2 profile with additive smoothing."""
    return Analyzer(order=2, smoothing=0.5).build(first_names, created_at=FIXED_TIMESTAMP)
