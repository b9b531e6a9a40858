"""Hypothesis-based property tests for alias table construction and sampling.

This module contains property-based tests using Hypothesis, including a
rule-based state machine that edits weights and rebuilds the table after
every edit, since tables are never updated in place.
"""

from collections import Counter
from random import Random
from typing import Any

import hypothesis.strategies as st
import numpy as np
import pytest
from hypothesis import example, given, note, settings
from hypothesis.stateful import (
    RuleBasedStateMachine,
    initialize,
    invariant,
    precondition,
    rule,
)

layouts = st.sampled_from(["flat", "packed"])
weight_lists = st.lists(
    st.floats(min_value=0.0, max_value=1e6), min_size=1, max_size=100
).filter(lambda ws: any(w > 0 for w in ws))

# -----------------------------------------------------------------------------
# Basic Property Tests
# -----------------------------------------------------------------------------


@given(st.lists(st.floats(min_value=0.01, max_value=1e6), min_size=1, max_size=100))
def test_construction_with_positive_weights(weights: list[float]) -> None:
    """Any list of positive weights should build a table of the same size."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights)
    assert len(table) == len(weights)


@given(weight_lists, layouts)
def test_probabilities_stay_in_unit_interval(weights: list[float], layout: str) -> None:
    """Every bucket probability lies in [0, 1]."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights, layout=layout)
    probabilities = table.probabilities()
    assert np.all(probabilities >= 0.0)
    assert np.all(probabilities <= 1.0)


@given(weight_lists, layouts)
def test_aliases_are_valid_indices(weights: list[float], layout: str) -> None:
    """Aliases of unresolved buckets point at other valid buckets."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights, layout=layout)
    for i, (p, a) in enumerate(zip(table.probabilities(), table.aliases())):
        assert 0 <= a < len(weights)
        if p < 1:
            assert a != i


@given(weight_lists)
def test_implied_distribution_reconstructs_weights(weights: list[float]) -> None:
    """The table encodes exactly the normalized weights."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights)
    expected = np.array(weights) / np.array(weights).sum()
    assert np.allclose(table.implied_distribution(), expected, rtol=1e-9, atol=1e-12)


@given(weight_lists)
def test_zero_weights_have_no_mass(weights: list[float]) -> None:
    """Outcomes with zero weight get no probability at all."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights)
    mass = table.implied_distribution()
    for w, m in zip(weights, mass):
        if w == 0:
            assert m == 0


@example([1.0], Random(0))
@example([0.0, 1.0], Random(1))
@example([1.0, 1.0, 0.0], Random(0))
@given(weight_lists, st.randoms(use_true_random=False))
def test_sample_never_returns_zero_weight(weights: list[float], rnd: Random) -> None:
    """A drawn index always has positive weight."""
    from vose_alias import build_from_weights

    table: Any = build_from_weights(weights)
    for _ in range(20):
        assert weights[table.sample(rnd)] > 0


@given(weight_lists, layouts)
def test_layouts_build_identical_tables(weights: list[float], layout: str) -> None:
    """Flat and packed storage hold the same table."""
    from vose_alias import build_from_weights

    flat: Any = build_from_weights(weights)
    other: Any = build_from_weights(weights, layout=layout)
    assert np.array_equal(flat.probabilities(), other.probabilities())
    assert np.array_equal(flat.aliases(), other.aliases())


@given(st.lists(st.floats(min_value=0.01, max_value=1e3), min_size=1, max_size=50))
def test_configuration_paths_agree(weights: list[float]) -> None:
    """Raw, pre-normalized and pre-scaled inputs encode the same distribution."""
    from vose_alias import build_from_weights

    array = np.array(weights)
    normalized = array / array.sum()
    scaled = normalized * len(weights)

    raw: Any = build_from_weights(array)
    from_normalized: Any = build_from_weights(normalized, pre_normalized=True)
    from_scaled: Any = build_from_weights(scaled, pre_scaled=True)

    expected = raw.implied_distribution()
    assert np.allclose(from_normalized.implied_distribution(), expected, atol=1e-12)
    assert np.allclose(from_scaled.implied_distribution(), expected, atol=1e-12)


@given(
    st.lists(st.floats(min_value=0.01, max_value=1e6), min_size=1, max_size=20),
    st.integers(min_value=0, max_value=19),
)
def test_index_type_limits_table_size(weights: list[float], max_value: int) -> None:
    """Validation accepts a table exactly when its last index fits."""
    from vose_alias import IndexRangeExceededError, IndexType, validate

    index_type = IndexType.of(np.uint8, max_value=max_value)
    if len(weights) - 1 <= max_value:
        assert len(validate(weights, index_type)) == len(weights)
    else:
        with pytest.raises(IndexRangeExceededError):
            validate(weights, index_type)


@given(st.lists(st.floats(min_value=0.01, max_value=1e6), min_size=1, max_size=50))
@settings(max_examples=50, deadline=None)
def test_sample_returns_valid_indices(weights: list[float]) -> None:
    """Sample should always return a valid index."""
    from vose_alias import NumpySource, build_from_weights

    table: Any = build_from_weights(weights, layout="packed")
    source = NumpySource(seed=0)
    for _ in range(100):
        idx = table.sample(source)
        assert 0 <= idx < len(weights)


# -----------------------------------------------------------------------------
# Rule-Based Stateful Testing
# -----------------------------------------------------------------------------


class AliasTableStateMachine(RuleBasedStateMachine):
    """Stateful test machine for rebuilding alias tables.

    Tables cannot be edited, so every weight change discards the table and
    builds a new one. Invariants are checked against the tracked weights
    after every step, and the final table gets a statistical check.
    """

    def __init__(self) -> None:
        super().__init__()
        self.table: Any = None
        self.weights: list[float] = []
        self.layout = "flat"
        self.source: Any = None
        self.sample_counts: Counter[int] = Counter()
        self.rebuilds = 0

    def rebuild(self) -> None:
        from vose_alias import build_from_weights

        if self.table is not None:
            self.table.close()
        self.table = build_from_weights(self.weights, layout=self.layout)
        self.rebuilds += 1

    @initialize(
        weights=st.lists(
            st.floats(min_value=0.1, max_value=100.0), min_size=2, max_size=20
        ),
        layout=layouts,
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    def init_table(self, weights: list[float], layout: str, seed: int) -> None:
        """Build the first table from random weights."""
        from vose_alias import NumpySource

        self.weights = list(weights)
        self.layout = layout
        self.source = NumpySource(seed=seed)
        self.rebuild()
        note(f"Initialized {layout} table with {len(weights)} weights")

    @rule(
        index=st.integers(min_value=0, max_value=100),
        new_weight=st.floats(min_value=0.1, max_value=100.0),
    )
    @precondition(lambda self: self.table is not None)
    def update_weight(self, index: int, new_weight: float) -> None:
        """Change one weight and rebuild."""
        index = index % len(self.weights)
        old_weight = self.weights[index]
        self.weights[index] = new_weight
        self.rebuild()
        note(f"Updated index {index}: {old_weight:.2f} -> {new_weight:.2f}")

    @rule(new_weight=st.floats(min_value=0.1, max_value=100.0))
    @precondition(lambda self: self.table is not None and len(self.weights) < 30)
    def append_weight(self, new_weight: float) -> None:
        """Add an outcome and rebuild."""
        self.weights.append(new_weight)
        self.rebuild()
        note(f"Appended weight {new_weight:.2f}")

    @rule(index=st.integers(min_value=0, max_value=100))
    @precondition(
        lambda self: self.table is not None
        and sum(1 for w in self.weights if w > 0) > 1
    )
    def zero_weight(self, index: int) -> None:
        """Set a weight to zero, keeping at least one positive weight."""
        index = index % len(self.weights)
        self.weights[index] = 0.0
        self.rebuild()
        note(f"Zeroed index {index}")

    @rule()
    @precondition(lambda self: self.table is not None)
    def make_one_dominant(self) -> None:
        """Make one element have much higher weight than all others."""
        dominant_idx = self.source.randrange(len(self.weights))
        total_others = sum(w for i, w in enumerate(self.weights) if i != dominant_idx)
        self.weights[dominant_idx] = max(total_others * 100, 1.0)
        self.rebuild()
        note(f"Made index {dominant_idx} dominant")

    @rule()
    @precondition(lambda self: self.table is not None)
    def equalize_weights(self) -> None:
        """Set all weights to be equal."""
        self.weights = [1.0] * len(self.weights)
        self.rebuild()
        note("Equalized all weights to 1.0")

    @rule(count=st.integers(min_value=1, max_value=100))
    @precondition(lambda self: self.table is not None)
    def take_samples(self, count: int) -> None:
        """Take multiple samples and record them."""
        for idx in self.table.sample_many(self.source, count):
            self.sample_counts[idx] += 1
            assert self.weights[idx] > 0, f"Sampled zero-weight index {idx}"

    # -------------------------------------------------------------------------
    # Invariants - checked after every operation
    # -------------------------------------------------------------------------

    @invariant()
    def length_matches(self) -> None:
        """Table length should always match our tracked weights."""
        if self.table is not None:
            assert len(self.table) == len(self.weights)

    @invariant()
    def probabilities_in_range(self) -> None:
        """Every bucket probability lies in [0, 1]."""
        if self.table is not None:
            probabilities = self.table.probabilities()
            assert np.all((probabilities >= 0.0) & (probabilities <= 1.0))

    @invariant()
    def table_matches_weights(self) -> None:
        """The current table encodes the current weights."""
        if self.table is not None:
            expected = np.array(self.weights) / sum(self.weights)
            actual = self.table.implied_distribution()
            assert np.allclose(actual, expected, rtol=1e-9, atol=1e-12), (
                f"Table drifted from weights: expected {expected}, got {actual}"
            )

    def teardown(self) -> None:
        """Run a statistical conformance check on the final table."""
        if self.table is None:
            return

        note(f"Rebuilt {self.rebuilds} times; final weights: {self.weights}")

        # Pearson's statistic is unreliable when an expected count is tiny.
        samples = 20_000
        smallest_expected = samples * min(w for w in self.weights if w > 0)
        if smallest_expected / sum(self.weights) < 5:
            note("Skipping chi-squared (expected count below 5)")
            self.table.close()
            return

        result = self.table.test_distribution(samples, self.source)
        note(f"Chi-squared test: chi2={result.chi_squared:.2f}, p={result.p_value:.4f}")
        self.table.close()

        assert result.passes(1e-6), (
            f"Statistical conformance failed: chi2={result.chi_squared:.2f}, "
            f"p_value={result.p_value:.6f}. "
            f"Final weights: {self.weights}"
        )


AliasTableStateMachine.TestCase.settings = settings(
    max_examples=25, stateful_step_count=20, deadline=None
)

# Create the test class that pytest will discover
TestAliasTableStateful = AliasTableStateMachine.TestCase


# -----------------------------------------------------------------------------
# Additional Sampling Property Tests
# -----------------------------------------------------------------------------


@given(st.data())
@settings(max_examples=20, deadline=None)
def test_dominant_weight_gets_most_samples(data: st.DataObject) -> None:
    """An element with vastly higher weight should get almost all samples."""
    from vose_alias import NumpySource, build_from_weights

    n = data.draw(st.integers(min_value=2, max_value=10))
    dominant_idx = data.draw(st.integers(min_value=0, max_value=n - 1))

    weights = [1.0] * n
    weights[dominant_idx] = 10000.0

    table: Any = build_from_weights(weights)
    counts = Counter(table.sample_many(NumpySource(seed=dominant_idx), 1000))

    dominant_fraction = counts[dominant_idx] / 1000
    assert dominant_fraction > 0.98, (
        f"Dominant element only got {dominant_fraction:.1%} of samples (expected >98%)"
    )


@given(st.lists(st.floats(min_value=1.0, max_value=10.0), min_size=2, max_size=10))
@settings(max_examples=30, deadline=None)
def test_all_elements_can_be_sampled(weights: list[float]) -> None:
    """With similar weights, all elements should eventually be sampled."""
    from vose_alias import NumpySource, build_from_weights

    table: Any = build_from_weights(weights)
    source = NumpySource(seed=len(weights))

    sampled: set[int] = set()
    for _ in range(1000):
        sampled.add(table.sample(source))
        if len(sampled) == len(weights):
            break

    assert len(sampled) == len(weights), (
        f"After 1000 samples, only {len(sampled)}/{len(weights)} elements "
        f"were sampled. Weights: {weights}"
    )


@given(
    st.lists(st.floats(min_value=1.0, max_value=10.0), min_size=3, max_size=10),
    layouts,
)
@settings(max_examples=10, deadline=None)
def test_chi_squared_passes_after_construction(
    weights: list[float], layout: str
) -> None:
    """Chi-squared test should pass for a freshly built table.

    Weights stay in [1.0, 10.0] so no expected count is tiny.
    """
    from vose_alias import NumpySource, build_from_weights

    table: Any = build_from_weights(weights, layout=layout)
    result = table.test_distribution(50000, NumpySource(seed=1))

    assert result.passes(1e-5), (
        f"Chi-squared test failed: chi2={result.chi_squared:.2f}, "
        f"p_value={result.p_value:.6f}, weights={weights}"
    )


@given(st.lists(st.floats(min_value=0.01, max_value=1e6), min_size=1, max_size=30))
@settings(deadline=None)
def test_rebuild_from_same_weights_is_deterministic(weights: list[float]) -> None:
    """Building twice from the same weights gives the same table."""
    from vose_alias import build_from_weights

    first: Any = build_from_weights(weights)
    second: Any = build_from_weights(list(weights))
    assert np.array_equal(first.probabilities(), second.probabilities())
    assert np.array_equal(first.aliases(), second.aliases())
