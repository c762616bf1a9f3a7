"""
Tests for Profile Generator
===========================
Tests seeded determinism, length fidelity, end-marker handling, fallback on
unseen contexts, streaming and generation constraints.
"""

import dataclasses
import threading
import warnings
from collections import Counter
from itertools import islice

import pytest
import sys
from pathlib import Path

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from profilekit import (
    Analyzer,
    GenerationRequest,
    Generator,
    MalformedProfileError,
    UnseenContextWarning,
    decode,
    encode,
    fidelity_report,
    generate,
    run_request,
    stream,
)
from profilekit.tokenizer import TokenSegmenter


class TestDeterminism:
    """Tests for reproducible output."""

    def test_same_seed_same_output(self, names_profile):
        """Identical seeds give identical sequences."""
        assert generate(names_profile, 50, rng_seed=7) == generate(names_profile, 50, rng_seed=7)

    def test_different_seeds_differ(self, names_profile):
        """Different seeds give different sequences."""
        assert generate(names_profile, 50, rng_seed=1) != generate(names_profile, 50, rng_seed=2)

    def test_decoded_profile_same_output(self, names_profile):
        """A profile read back from bytes generates the same values."""
        decoded = decode(encode(names_profile))
        assert generate(decoded, 30, rng_seed=3) == generate(names_profile, 30, rng_seed=3)

    def test_unseeded_generation(self, names_profile):
        """No seed still produces the requested count."""
        assert len(generate(names_profile, 5)) == 5


class TestTinyCorpus:
    """Tests on the three-sample corpus."""

    def test_values_follow_learned_paths(self, tiny_profile):
        """Length-3 walks can only produce the three learned shapes."""
        values = generate(tiny_profile, 200, rng_seed=42)
        assert set(values) <= {"ann", "ana", "amy"}
        assert len(set(values)) == 3

    def test_seed_42(self, tiny_profile):
        """A single seeded value is reproducible and valid."""
        first = generate(tiny_profile, 1, rng_seed=42)
        assert first == generate(tiny_profile, 1, rng_seed=42)
        assert first[0] in {"ann", "ana", "amy"}

    def test_stop_at_end(self, tiny_profile):
        """With stop_at_end, END may finish a value early."""
        values = generate(tiny_profile, 300, rng_seed=5, stop_at_end=True)
        lengths = Counter(len(v) for v in values)
        assert all(v.startswith("a") for v in values)
        assert max(lengths) <= 3
        assert lengths[1] > 0


class TestLengthFidelity:
    """Tests that output lengths follow the learned distribution."""

    def test_length_tvd(self, names_profile):
        """Length TVD stays under 0.02 for 10,000 values."""
        values = generate(names_profile, 10000, rng_seed=1)
        report = fidelity_report(names_profile, values)
        assert report.length_tvd < 0.02
        assert report.passes()

    def test_length_bounds(self, names_profile):
        """Only lengths within [min_length, max_length] are drawn."""
        values = generate(names_profile, 500, rng_seed=2, min_length=5, max_length=6)
        assert all(5 <= len(v) <= 6 for v in values)

    def test_impossible_bounds(self, names_profile):
        """Bounds excluding every learned length raise ValueError."""
        with pytest.raises(ValueError, match="No learned length"):
            Generator(names_profile, min_length=50)


class TestFallback:
    """Tests for unseen contexts."""

    def pruned(self, profile):
        start = profile.start_context
        return dataclasses.replace(profile, transitions={start: profile.transitions[start]})

    def test_unseen_context_warns_and_falls_back(self, names_profile):
        """Missing rows fall back to unit frequencies with a warning."""
        pruned = self.pruned(names_profile)
        with pytest.warns(UnseenContextWarning):
            values = generate(pruned, 200, rng_seed=5)
        assert len(values) == 200
        lengths = set(names_profile.length_distribution)
        assert all(len(v) in lengths for v in values)
        assert all(set(v) <= set(names_profile.alphabet) for v in values)

    def test_fallback_is_seeded(self, names_profile):
        """Fallback draws use the seeded RNG."""
        pruned = self.pruned(names_profile)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UnseenContextWarning)
            assert generate(pruned, 50, rng_seed=9) == generate(pruned, 50, rng_seed=9)

    @pytest.mark.parametrize("stop_at_end", [False, True])
    def test_smoothed_profile_never_falls_back(self, smoothed_profile, stop_at_end):
        """Smoothing covers contexts the corpus never produced."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnseenContextWarning)
            values = generate(smoothed_profile, 2000, rng_seed=1, stop_at_end=stop_at_end)
        assert len(values) == 2000
        assert all(set(v) <= set(smoothed_profile.alphabet) for v in values)

    def test_smoothed_unseen_context_is_uniform(self, smoothed_profile):
        """A missing context on a smoothed profile draws uniformly, without warning."""
        pruned = self.pruned(smoothed_profile)
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnseenContextWarning)
            values = generate(pruned, 300, rng_seed=2)
        assert len(values) == 300
        lengths = set(smoothed_profile.length_distribution)
        assert all(len(v) in lengths for v in values)

    def test_observed_paths_never_fall_back(self, names_profile):
        """Walks that may stop at END only reach observed contexts."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnseenContextWarning)
            values = generate(names_profile, 500, rng_seed=4, stop_at_end=True)
        assert len(values) == 500


class TestStreaming:
    """Tests for the lazy stream."""

    def test_stream_matches_generate(self, names_profile):
        """The stream prefix equals a batch with the same seed."""
        head = list(islice(stream(names_profile, rng_seed=3), 25))
        assert head == generate(names_profile, 25, rng_seed=3)

    def test_stream_restart(self, names_profile):
        """Re-seeding restarts the same sequence."""
        a = list(islice(stream(names_profile, rng_seed=8), 10))
        b = list(islice(stream(names_profile, rng_seed=8), 10))
        assert a == b

    def test_stream_early_stop(self, names_profile):
        """A consumer can stop at any time."""
        values = stream(names_profile, rng_seed=1)
        for i, _ in enumerate(values):
            if i == 3:
                break
        values.close()


class TestValidation:
    """Tests for invalid requests and profiles."""

    @pytest.mark.parametrize("count", [0, -3, 1.5, True])
    def test_invalid_count(self, names_profile, count):
        """Count must be a positive integer."""
        with pytest.raises(ValueError):
            generate(names_profile, count, rng_seed=1)

    def test_invalid_temperature(self, names_profile):
        """Temperature must be positive."""
        with pytest.raises(ValueError):
            Generator(names_profile, temperature=0)

    def test_malformed_profile(self, names_profile):
        """A profile without transitions cannot generate."""
        broken = dataclasses.replace(names_profile, transitions={})
        with pytest.raises(MalformedProfileError):
            generate(broken, 5, rng_seed=1)

    def test_temperature_changes_output(self, names_profile):
        """Temperature is applied and stays reproducible."""
        hot = generate(names_profile, 50, rng_seed=6, temperature=1.5)
        assert hot == generate(names_profile, 50, rng_seed=6, temperature=1.5)
        assert len(hot) == 50


class TestGenerationRequest:
    """Tests for request objects."""

    def test_defaults_from_config(self):
        """Unset fields come from app.yaml."""
        request = GenerationRequest()
        assert request.count == 10
        assert request.temperature == 1.0
        assert request.stop_at_end is False

    def test_run_request(self, names_profile):
        """A request is fulfilled with its seed and constraints."""
        request = GenerationRequest(count=20, seed=4, max_length=5)
        values = run_request(names_profile, request)
        assert len(values) == 20
        assert all(len(v) <= 5 for v in values)
        assert values == run_request(names_profile, request)

    def test_invalid_request(self):
        """Bad requests fail on construction."""
        with pytest.raises(ValueError):
            GenerationRequest(count=0)
        with pytest.raises(ValueError):
            GenerationRequest(min_length=5, max_length=2)


class TestSegmentations:
    """Tests for non-character profiles."""

    def test_token_profile(self):
        """Token profiles join units with a space."""
        corpus = ["John Smith", "Jane Smith", "John Doe", "Mary Ann Smith"]
        profile = Analyzer(order=1, segmenter=TokenSegmenter()).build(corpus)
        values = generate(profile, 50, rng_seed=2)
        for value in values:
            tokens = value.split(" ")
            assert len(tokens) in (2, 3)
            assert set(tokens) <= set(profile.alphabet)


class TestConcurrency:
    """Tests for sharing one generator across threads."""

    def test_shared_generator(self, names_profile):
        """Concurrent calls with fixed seeds match sequential calls."""
        generator = Generator(names_profile)
        expected = {seed: generator.generate(100, seed) for seed in range(8)}
        results = {}

        def work(seed):
            results[seed] = generator.generate(100, seed)

        threads = [threading.Thread(target=work, args=(seed,)) for seed in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == expected
