"""
Tests for Profile
=================
Tests immutability, validation and summaries of the frozen Profile type.
"""

import dataclasses

import pytest
import sys
from pathlib import Path

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from profilekit import MalformedProfileError, Profile
from profilekit.tokenizer import START, END, CharSegmenter


def make_profile(**overrides):
    fields = dict(
        order=1,
        alphabet=("a", "b"),
        length_distribution={2: 1.0},
        position_table=({"a": 1.0}, {"b": 1.0}),
        transitions={
            (START,): {"a": 1.0},
            ("a",): {"b": 1.0},
            ("b",): {END: 1.0},
        },
        unit_frequencies={"a": 0.5, "b": 0.5},
    )
    fields.update(overrides)
    return Profile(**fields)


class TestImmutability:
    """Tests that a Profile cannot change after creation."""

    def test_fields_are_frozen(self, tiny_profile):
        """Attributes cannot be reassigned."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            tiny_profile.order = 3

    def test_tables_are_read_only(self, tiny_profile):
        """Tables reject item assignment."""
        with pytest.raises(TypeError):
            tiny_profile.length_distribution[4] = 0.5
        with pytest.raises(TypeError):
            tiny_profile.transitions[("q",)] = {"a": 1.0}
        with pytest.raises(TypeError):
            tiny_profile.transition_row(("a",))["n"] = 1.0
        with pytest.raises(TypeError):
            tiny_profile.position_table[0]["z"] = 1.0

    def test_source_dicts_are_copied(self):
        """Mutating the input dicts does not reach the profile."""
        lengths = {2: 1.0}
        profile = make_profile(length_distribution=lengths)
        lengths[3] = 0.5
        assert dict(profile.length_distribution) == {2: 1.0}

    def test_not_hashable(self, tiny_profile):
        """Profiles compare by value but cannot be hashed."""
        assert Profile.__hash__ is None
        with pytest.raises(TypeError):
            hash(tiny_profile)
        with pytest.raises(TypeError):
            {tiny_profile}


class TestLookups:
    """Tests for derived properties."""

    def test_segmenter_from_description(self):
        """Segmentation description rebuilds the segmenter."""
        assert isinstance(make_profile().segmenter, CharSegmenter)

    def test_max_length(self):
        """Longest learned length."""
        profile = make_profile(length_distribution={2: 0.5, 7: 0.5})
        assert profile.max_length == 7

    def test_start_context(self):
        """Start context is order start markers."""
        assert make_profile().start_context == (START,)


class TestValidation:
    """Tests for generation readiness checks."""

    def test_valid_profile(self):
        """A complete profile passes."""
        make_profile().validate_for_generation()

    @pytest.mark.parametrize("table", ["length_distribution", "transitions", "unit_frequencies"])
    def test_missing_required_table(self, table):
        """Empty required tables are rejected."""
        with pytest.raises(MalformedProfileError, match=table):
            make_profile(**{table: {}}).validate_for_generation()

    def test_context_order_mismatch(self):
        """Contexts must match the model order."""
        profile = make_profile(order=2)
        with pytest.raises(MalformedProfileError, match="order"):
            profile.validate_for_generation()

    def test_bad_order(self):
        """Order must be a positive integer."""
        with pytest.raises(MalformedProfileError):
            make_profile(order=0).validate_for_generation()

    def test_row_sum_violations(self):
        """Rows that do not sum to one are reported."""
        profile = make_profile(transitions={
            (START,): {"a": 0.7},
            ("a",): {"b": 1.0},
        })
        problems = profile.row_sum_violations()
        assert len(problems) == 1
        assert "transition" in problems[0]

    def test_empty_rows_reported(self):
        """Empty required rows are violations; an empty pattern table is not."""
        profile = make_profile(transitions={
            (START,): {"a": 1.0},
            ("a",): {},
            ("b",): {END: 1.0},
        })
        assert profile.row_sum_violations() == ["transition['a'] is empty"]
        assert make_profile(pattern_distribution={}).row_sum_violations() == []

    def test_symbol_violations(self):
        """Keys outside the alphabet and misplaced markers are reported."""
        assert make_profile().symbol_violations() == []
        profile = make_profile(
            unit_frequencies={"a": 0.5, "z": 0.5},
            position_table=({"a": 1.0}, {END: 1.0}),
            transitions={
                (START,): {START: 1.0},
                ("q",): {"b": 1.0},
                ("b",): {END: 1.0},
            },
        )
        problems = profile.symbol_violations()
        assert len(problems) == 4
        assert any(p.startswith("unit_frequencies") for p in problems)
        assert any(p.startswith("position[1]") for p in problems)
        assert any(p.startswith("transition[") for p in problems)
        assert any(p.startswith("context['q']") for p in problems)


class TestSummary:
    """Tests for profile summaries."""

    def test_summary_fields(self, names_profile):
        """Summary reports shape and top entries."""
        summary = names_profile.summary(top=3)
        assert summary["name"] == "first_names"
        assert summary["order"] == 2
        assert summary["sample_count"] == names_profile.sample_count
        assert summary["alphabet_size"] == len(names_profile.alphabet)
        assert len(summary["top_lengths"]) <= 3
        assert summary["min_length"] <= summary["max_length"]
