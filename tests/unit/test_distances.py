"""
Unit tests for tip distance matrices.

Tests cophenetic matrix construction (including the unit-length fallback)
and alignment of matrices to a reference tip order.
"""

from __future__ import annotations

import numpy as np
import pytest

from densitree.core.exceptions import TipSetMismatchError
from densitree.core.phylogeny.distances import (
    align_to_reference,
    aligned_distance_matrices,
    cophenetic_matrix,
)
from densitree.core.phylogeny.fortify import fortify


class TestCopheneticMatrix:
    """Tests for cophenetic_matrix()."""

    def test_patristic_distances(self, fortified_table):
        """((a:1,b:2):1,c:3)."""
        matrix = cophenetic_matrix(fortified_table)

        assert list(matrix.index) == ["a", "b", "c"]
        assert list(matrix.columns) == ["a", "b", "c"]
        assert matrix.loc["a", "b"] == pytest.approx(3.0)
        assert matrix.loc["a", "c"] == pytest.approx(5.0)
        assert matrix.loc["b", "c"] == pytest.approx(6.0)

    def test_symmetric_with_zero_diagonal(self, five_tip_newick):
        values = cophenetic_matrix(fortify(five_tip_newick)).to_numpy()

        np.testing.assert_allclose(values, values.T)
        assert np.all(np.diag(values) == 0.0)
        assert np.all(values >= 0.0)

    def test_native_tip_order(self):
        matrix = cophenetic_matrix(fortify("((a:1,c:1):1,b:2);"))

        assert list(matrix.index) == ["a", "c", "b"]
        assert matrix.loc["a", "c"] == pytest.approx(2.0)
        assert matrix.loc["a", "b"] == pytest.approx(4.0)

    def test_unit_length_fallback(self, unit_length_newick):
        """Without branch lengths distances count edges."""
        matrix = cophenetic_matrix(fortify(unit_length_newick))

        assert matrix.loc["a", "b"] == 2.0
        assert matrix.loc["a", "c"] == 4.0

    def test_partial_lengths_are_ignored(self):
        """A single missing length switches the whole tree to unit lengths."""
        matrix = cophenetic_matrix(fortify("((a:5,b):1,c:0.5);"))

        assert matrix.loc["a", "b"] == 2.0
        assert matrix.loc["a", "c"] == 3.0

    def test_single_tip(self):
        matrix = cophenetic_matrix(fortify("(a:1);"))
        assert matrix.shape == (1, 1)
        assert matrix.iloc[0, 0] == 0.0


class TestAlignToReference:
    """Tests for align_to_reference()."""

    def test_permutes_rows_and_columns(self):
        matrix = cophenetic_matrix(fortify("((a:1,c:1):1,b:2);"))
        aligned = align_to_reference(matrix, ["a", "b", "c"], tree_index=1)

        assert list(aligned.index) == ["a", "b", "c"]
        np.testing.assert_allclose(
            aligned.to_numpy(),
            [[0.0, 4.0, 2.0], [4.0, 0.0, 4.0], [2.0, 4.0, 0.0]],
        )

    def test_mismatch_names_tree_and_tips(self):
        matrix = cophenetic_matrix(fortify("((a:1,b:1):1,d:2);"))

        with pytest.raises(TipSetMismatchError) as exc_info:
            align_to_reference(matrix, ["a", "b", "c"], tree_index=3)

        error = exc_info.value
        assert error.tree_index == 3
        assert error.missing == {"c"}
        assert error.extra == {"d"}

    def test_subset_is_a_mismatch(self):
        matrix = cophenetic_matrix(fortify("(a:1,b:1);"))
        with pytest.raises(TipSetMismatchError):
            align_to_reference(matrix, ["a", "b", "c"], tree_index=1)


class TestAlignedDistanceMatrices:
    """Tests for aligned_distance_matrices()."""

    def test_reference_is_first_tree(self, two_tree_sample):
        tables = [fortify(tree) for tree in two_tree_sample]
        reference, aligned = aligned_distance_matrices(tables)

        assert reference == ["a", "b", "c"]
        assert len(aligned) == 2
        np.testing.assert_allclose(
            aligned[0],
            [[0.0, 2.0, 5.0], [2.0, 0.0, 5.0], [5.0, 5.0, 0.0]],
        )
        np.testing.assert_allclose(aligned[1][0], [0.0, 4.0, 2.0])
