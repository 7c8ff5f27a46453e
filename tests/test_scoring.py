"""Tests for the angular distance and the global distance test score (pystrusim.scoring)."""

import numpy as np
import pytest

from pystrusim.exceptions import DimensionMismatchError, MissingDataError
from pystrusim.residue_data_dicts import calculate_distance_matrix
from pystrusim.scoring import (calculate_angular_distance,
                               calculate_global_distance_test_score)
from pystrusim.utils import get_upper_triangle_vector


def matrix_from_upper_triangle(upper_triangle_vector):
    """3x3 symmetric matrix whose upper triangle, read row by row, is the given vector."""
    matrix = np.zeros((3, 3))
    matrix[np.triu_indices(3, k=1)] = upper_triangle_vector
    return matrix + matrix.T


# ═══════════════════════════════════════════════════════════════════
# 1. Angular distance
# ═══════════════════════════════════════════════════════════════════

class TestAngularDistance:

    def test_upper_triangle_vector(self):
        matrix = np.arange(16, dtype=float).reshape(4, 4)
        np.testing.assert_array_equal(get_upper_triangle_vector(matrix), [1.0, 2.0, 3.0, 6.0, 7.0, 11.0])

    def test_identical_structures_have_zero_distance(self, identical_distance_model):
        assert calculate_angular_distance(identical_distance_model.alpha_distance_matrix, identical_distance_model.beta_distance_matrix) == 0.0

    def test_orthogonal_vectors(self):
        alpha = matrix_from_upper_triangle([1.0, 0.0, 0.0])
        beta = matrix_from_upper_triangle([0.0, 1.0, 0.0])
        assert calculate_angular_distance(alpha, beta) == pytest.approx(100.0)

    def test_45_degrees(self):
        alpha = matrix_from_upper_triangle([1.0, 0.0, 0.0])
        beta = matrix_from_upper_triangle([1.0, 1.0, 0.0])
        assert calculate_angular_distance(alpha, beta) == pytest.approx(50.0)

    def test_scaled_structure_has_zero_distance(self, random_coordinates):
        distance_matrix = calculate_distance_matrix(random_coordinates)
        assert calculate_angular_distance(distance_matrix, 2.5 * distance_matrix) == pytest.approx(0.0, abs=1e-4)

    def test_symmetry_and_range(self, perturbed_distance_model):
        alpha, beta = perturbed_distance_model.alpha_distance_matrix, perturbed_distance_model.beta_distance_matrix
        angular_distance = calculate_angular_distance(alpha, beta)
        assert angular_distance == pytest.approx(calculate_angular_distance(beta, alpha))
        assert 0.0 < angular_distance <= 100.0

    def test_lower_triangle_is_ignored(self):
        alpha = matrix_from_upper_triangle([1.0, 2.0, 3.0])
        alpha_with_garbage = alpha.copy()
        alpha_with_garbage[2, 0] = 50.0
        beta = matrix_from_upper_triangle([1.0, 2.5, 3.0])
        assert calculate_angular_distance(alpha_with_garbage, beta) == pytest.approx(calculate_angular_distance(alpha, beta))

    def test_single_residue_has_zero_distance(self):
        assert calculate_angular_distance(np.zeros((1, 1)), np.zeros((1, 1))) == 0.0

    def test_two_null_matrices_have_zero_distance(self):
        assert calculate_angular_distance(np.zeros((4, 4)), np.zeros((4, 4))) == 0.0

    def test_a_single_null_matrix_raises(self):
        with pytest.raises(ValueError):
            calculate_angular_distance(np.zeros((3, 3)), matrix_from_upper_triangle([1.0, 2.0, 3.0]))

    def test_missing_matrix_raises(self):
        with pytest.raises(MissingDataError):
            calculate_angular_distance(None, np.zeros((3, 3)))

    def test_different_dimensions_raise(self):
        with pytest.raises(DimensionMismatchError):
            calculate_angular_distance(np.zeros((3, 3)), np.zeros((4, 4)))


# ═══════════════════════════════════════════════════════════════════
# 2. Global distance test score
# ═══════════════════════════════════════════════════════════════════

class TestGlobalDistanceTestScore:

    def test_full_coverage(self):
        score_df = calculate_global_distance_test_score([tuple(range(10))] * 4, n_residues_in_reference=10)
        assert list(score_df.index) == ['region_1', 'region_2', 'region_3', 'region_4', 'average']
        assert list(score_df.columns) == ['n_residues', 'fraction_of_reference']
        assert score_df.loc['average', 'fraction_of_reference'] == pytest.approx(1.0)

    def test_reference_larger_than_the_aligned_residues(self):
        score_df = calculate_global_distance_test_score([tuple(range(10))] * 4, n_residues_in_reference=20)
        assert score_df.loc['average', 'fraction_of_reference'] == pytest.approx(0.5)

    def test_fractions_and_average(self):
        score_df = calculate_global_distance_test_score([(0, 1), (0, 1, 2, 3)], n_residues_in_reference=8)
        assert score_df.loc['region_1', 'fraction_of_reference'] == pytest.approx(0.25)
        assert score_df.loc['region_2', 'fraction_of_reference'] == pytest.approx(0.5)
        assert score_df.loc['average', 'n_residues'] == pytest.approx(3.0)
        assert score_df.loc['average', 'fraction_of_reference'] == pytest.approx(0.375)

    def test_no_regions_gives_nan_average(self):
        score_df = calculate_global_distance_test_score([], n_residues_in_reference=5)
        assert list(score_df.index) == ['average']
        assert np.isnan(score_df.loc['average', 'fraction_of_reference'])

    @pytest.mark.parametrize('n_residues_in_reference', [0, -3])
    def test_non_positive_reference_size_raises(self, n_residues_in_reference):
        with pytest.raises(ValueError):
            calculate_global_distance_test_score([(0,)], n_residues_in_reference=n_residues_in_reference)

    @pytest.mark.parametrize('n_residues_in_reference', [0, 5])
    def test_no_regions_scores_empty_whatever_the_reference_size(self, n_residues_in_reference):
        score_df = calculate_global_distance_test_score([], n_residues_in_reference=n_residues_in_reference)
        assert list(score_df.index) == ['average']
        assert score_df['n_residues'].isna().all()
        assert score_df['fraction_of_reference'].isna().all()
