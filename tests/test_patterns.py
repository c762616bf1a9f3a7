"""
Tests for Symbolic Patterns
===========================
Tests character classification, pattern extraction and cumulative ranking.
"""

import pytest
import sys
from pathlib import Path

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from profilekit import Analyzer
from profilekit.patterns import classify_char, pattern_of, rank


class TestPatternOf:
    """Tests for symbolic pattern extraction."""

    def test_mixed_symbols(self):
        """Case, digits, punctuation and other symbols each get a placeholder."""
        assert pattern_of("HELlo0?^@") == "CVCcv#pp~"

    def test_name_with_apostrophe(self):
        """Apostrophes are gaps; commas are punctuation; spaces are whitespace."""
        assert pattern_of("O'Brian, Henny") == "V~CcvvcpSCvccc"

    def test_accented_vowels(self):
        """Accented letters classify by their base letter."""
        assert pattern_of("Émile") == "Vcvcv"
        assert classify_char("ñ") == "c"

    def test_y_is_consonant(self):
        """Only a, e, i, o, u count as vowels."""
        assert pattern_of("Amy") == "Vcc"


class TestRank:
    """Tests for cumulative ranking."""

    def test_cumulative_order(self):
        """Entries are sorted by probability with running totals."""
        ranks = rank({"b": 0.25, "a": 0.5, "c": 0.25})
        assert [k for k, _ in ranks] == ["a", "b", "c"]
        assert [c for _, c in ranks] == pytest.approx([0.5, 0.75, 1.0])

    def test_empty(self):
        """An empty distribution has no ranks."""
        assert rank({}) == []


class TestProfileRanks:
    """Tests for ranked lengths and patterns on a built profile."""

    def test_length_ranks(self):
        """Most frequent length comes first; totals reach 1.0."""
        profile = Analyzer(order=1).build([
            "Smith, Johny", "O'Brian, Hen", "Dale, Danny", "O'Henry, Al",
            "Rickets, Ro", "Mr. Wilbers", "Po, Al",
        ])
        ranks = profile.length_ranks()
        assert [k for k, _ in ranks] == [11, 12, 6]
        assert [c for _, c in ranks] == pytest.approx([4 / 7, 6 / 7, 1.0])

    def test_pattern_ranks(self):
        """Repeated shapes rank above unique ones."""
        profile = Analyzer(order=1).build([
            "Smith, John", "O'Brian, Henny", "Dale, Danny", "Rickets, Ronnae",
            "Richard, Richie", "Roberts, Blake", "Conways, Sephen",
        ])
        ranks = profile.pattern_ranks()
        assert len(ranks) == 6
        assert ranks[0][0] == "CvccvccpSCvccvv"
        assert ranks[0][1] == pytest.approx(2 / 7)
        assert ranks[-1][1] == pytest.approx(1.0)
