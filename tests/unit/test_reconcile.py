"""
Unit tests for coordinate reconciliation.

Tests slot assignment, tip/root alignment and jitter across a tree sample.
"""

from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from densitree.core.exceptions import InvalidConfigurationError
from densitree.core.phylogeny.fortify import fortify
from densitree.core.phylogeny.reconcile import make_rng, max_x, reconcile_coordinates


@pytest.fixture
def sample_tables(two_tree_sample) -> list[pl.DataFrame]:
    return [fortify(tree, tree_index=i) for i, tree in enumerate(two_tree_sample)]


def _tip_y(table: pl.DataFrame) -> dict[str, float]:
    tips = table.filter(pl.col("is_tip"))
    return dict(zip(tips.get_column("label").to_list(), tips.get_column("y").to_list()))


class TestVerticalSlots:
    """Tests for y reassignment under the consensus order."""

    def test_tips_follow_consensus_order(self, sample_tables):
        reconciled = reconcile_coordinates(sample_tables, ["c", "a", "b"])

        for table in reconciled:
            assert _tip_y(table) == {"c": 1.0, "a": 2.0, "b": 3.0}

    def test_internal_nodes_are_mean_of_children(self, sample_tables):
        reconciled = reconcile_coordinates(sample_tables, ["c", "a", "b"])
        first = reconciled[0]

        # ((a,b),c): the (a,b) clade sits between slots 2 and 3
        clade = first.filter(pl.col("node") == 5).get_column("y").item()
        assert clade == pytest.approx(2.5)

    def test_topology_untouched(self, sample_tables):
        reconciled = reconcile_coordinates(sample_tables, ["b", "a", "c"], jitter=0.3, rng=1)
        columns = ["node", "parent", "branch_length", "label", "is_tip"]

        for before, after in zip(sample_tables, reconciled):
            assert after.select(columns).equals(before.select(columns))

    def test_inputs_not_modified(self, sample_tables):
        snapshot = [table.clone() for table in sample_tables]
        reconcile_coordinates(sample_tables, ["c", "b", "a"], jitter=0.5, rng=3)

        for before, after in zip(snapshot, sample_tables):
            assert before.equals(after)


class TestHorizontalAlignment:
    """Tests for tip- and root-alignment."""

    def test_align_tips_equalizes_max_x(self, sample_tables):
        reconciled = reconcile_coordinates(sample_tables, ["a", "b", "c"], align_tips=True)

        extents = [max_x(table) for table in reconciled]
        assert extents == pytest.approx([2.5, 2.5])

    def test_align_tips_shifts_shorter_tree(self, sample_tables):
        """Tree 2 is 0.5 shorter, so its root moves to x=0.5."""
        reconciled = reconcile_coordinates(sample_tables, ["a", "b", "c"], align_tips=True)

        roots = [
            table.filter(pl.col("parent").is_null()).get_column("x").item()
            for table in reconciled
        ]
        assert roots == pytest.approx([0.0, 0.5])

    def test_align_root_keeps_x(self, sample_tables):
        reconciled = reconcile_coordinates(sample_tables, ["a", "b", "c"], align_tips=False)

        for before, after in zip(sample_tables, reconciled):
            assert after.get_column("x").to_list() == before.get_column("x").to_list()
            assert after.get_column("x").min() == before.get_column("x").min()


class TestJitter:
    """Tests for vertical tip jitter."""

    def test_zero_jitter_is_deterministic(self, sample_tables):
        first = reconcile_coordinates(sample_tables, ["b", "a", "c"])
        second = reconcile_coordinates(sample_tables, ["b", "a", "c"])

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a.get_column("y").to_numpy(), b.get_column("y").to_numpy())

    def test_seeded_jitter_is_reproducible(self, sample_tables):
        first = reconcile_coordinates(sample_tables, ["a", "b", "c"], jitter=0.2, rng=11)
        second = reconcile_coordinates(
            sample_tables, ["a", "b", "c"], jitter=0.2, rng=np.random.default_rng(11)
        )

        for a, b in zip(first, second):
            assert a.get_column("y").to_list() == b.get_column("y").to_list()

    def test_first_tree_never_jittered(self, sample_tables):
        plain = reconcile_coordinates(sample_tables, ["a", "b", "c"])
        jittered = reconcile_coordinates(sample_tables, ["a", "b", "c"], jitter=1.0, rng=5)

        assert jittered[0].get_column("y").to_list() == plain[0].get_column("y").to_list()
        assert jittered[1].get_column("y").to_list() != plain[1].get_column("y").to_list()

    def test_offsets_match_requested_sd(self, posterior_sample):
        """Tip offsets have sd close to jitter; internal rows never move."""
        base = fortify(posterior_sample[0])
        tables = [base] * 401
        order = ["a", "b", "c", "d", "e", "f"]
        jitter = 0.5

        plain = reconcile_coordinates(tables, order)
        jittered = reconcile_coordinates(tables, order, jitter=jitter, rng=2024)

        is_tip = base.get_column("is_tip").to_numpy()
        offsets = []
        for before, after in zip(plain[1:], jittered[1:]):
            delta = after.get_column("y").to_numpy() - before.get_column("y").to_numpy()
            np.testing.assert_array_equal(delta[~is_tip], 0.0)
            offsets.extend(delta[is_tip])

        assert np.std(offsets, ddof=1) == pytest.approx(jitter, rel=0.05)
        assert abs(np.mean(offsets)) < 0.05

    @pytest.mark.parametrize("jitter", [-0.1, float("nan"), float("inf")])
    def test_invalid_jitter_rejected(self, sample_tables, jitter):
        with pytest.raises(InvalidConfigurationError, match="jitter"):
            reconcile_coordinates(sample_tables, ["a", "b", "c"], jitter=jitter)


class TestHelpers:
    """Tests for reconciliation helpers."""

    def test_make_rng_passes_generator_through(self):
        generator = np.random.default_rng(0)
        assert make_rng(generator) is generator

    def test_make_rng_from_seed(self):
        assert make_rng(3).random() == np.random.default_rng(3).random()

    def test_max_x(self, fortified_table):
        assert max_x(fortify(fortified_table)) == 3.0
