"""Tests for the local and global similarity regions (pystrusim.region_engine)."""

import itertools

import numpy as np
import pytest

from pystrusim.distance_model import create_distance_model
from pystrusim.exceptions import InvalidThresholdSequenceError
from pystrusim.max_clique import (Branch_and_bound_max_clique_solver,
                                  Greedy_max_clique_solver,
                                  Networkx_max_clique_solver)
from pystrusim.region_engine import (check_thresholds_are_strictly_ascending,
                                     get_global_similarity_regions,
                                     get_local_similarity_regions, grow_region)
from pystrusim.scoring import calculate_global_distance_test_score


def is_clique_under_threshold(difference_matrix, region, threshold):
    return all(difference_matrix.data[i, j] < threshold for i, j in itertools.combinations(sorted(region), 2))


# ═══════════════════════════════════════════════════════════════════
# 1. Threshold validation
# ═══════════════════════════════════════════════════════════════════

class TestThresholdValidation:

    def test_strictly_ascending_thresholds_are_accepted(self):
        check_thresholds_are_strictly_ascending([1.0, 2.0, 4.0, 8.0])
        check_thresholds_are_strictly_ascending([0.5])

    @pytest.mark.parametrize('thresholds', [[2.0, 1.0], [1.0, 1.0], [], [1.0, 4.0, 2.0]])
    def test_invalid_thresholds_raise(self, thresholds):
        with pytest.raises(InvalidThresholdSequenceError):
            check_thresholds_are_strictly_ascending(thresholds)

    def test_global_regions_check_thresholds_before_anything_else(self, two_cluster_distance_model):
        with pytest.raises(InvalidThresholdSequenceError):
            get_global_similarity_regions(two_cluster_distance_model.difference_matrix, [2.0, 1.0])

    def test_invalid_thresholds_are_value_errors(self):
        with pytest.raises(ValueError):
            check_thresholds_are_strictly_ascending([])


# ═══════════════════════════════════════════════════════════════════
# 2. Local similarity
# ═══════════════════════════════════════════════════════════════════

class TestLocalSimilarity:

    def test_two_clusters_are_found(self, two_cluster_distance_model):
        local_regions = get_local_similarity_regions(two_cluster_distance_model.difference_matrix, threshold=2.0)
        assert local_regions.regions == [(3, 4, 5, 6), (0, 1, 2)]
        assert local_regions.thresholds == [2.0, 2.0]
        assert local_regions.is_exact

    def test_unconnected_residues_become_singletons(self, two_cluster_distance_model):
        local_regions = get_local_similarity_regions(two_cluster_distance_model.difference_matrix, threshold=1.0)
        assert local_regions.regions == [(0, 1, 2), (3,), (4,), (5,), (6,)]

    def test_threshold_zero_gives_one_singleton_per_residue(self, identical_distance_model):
        local_regions = get_local_similarity_regions(identical_distance_model.difference_matrix, threshold=0.0)
        assert local_regions.regions == [(residue_index,) for residue_index in range(10)]

    def test_identical_structures_give_a_single_region(self, identical_distance_model):
        local_regions = get_local_similarity_regions(identical_distance_model.difference_matrix, threshold=1.0)
        assert local_regions.regions == [tuple(range(10))]

    def test_regions_cover_every_residue_once(self, perturbed_distance_model):
        local_regions = get_local_similarity_regions(perturbed_distance_model.difference_matrix, threshold=1.0)
        covered_residues = sorted(residue_index for region in local_regions for residue_index in region)
        assert covered_residues == list(range(30))

    def test_regions_are_cliques(self, perturbed_distance_model):
        difference_matrix = perturbed_distance_model.difference_matrix
        for region in get_local_similarity_regions(difference_matrix, threshold=1.0):
            assert is_clique_under_threshold(difference_matrix, region, 1.0)

    def test_region_sizes_never_increase_with_an_exact_solver(self, perturbed_distance_model):
        region_sizes = get_local_similarity_regions(perturbed_distance_model.difference_matrix, threshold=1.0).region_sizes()
        assert region_sizes == sorted(region_sizes, reverse=True)

    def test_graph_statistics(self, two_cluster_distance_model):
        local_regions = get_local_similarity_regions(two_cluster_distance_model.difference_matrix, threshold=1.0)
        assert len(local_regions.graph_statistics) == 1
        graph_statistics = local_regions.graph_statistics[0]
        assert graph_statistics.threshold == 1.0
        assert graph_statistics.n_nodes == 7
        assert graph_statistics.n_edges == 3
        assert graph_statistics.runtime >= 0.0

    def test_solvers_agree_on_region_sizes(self, perturbed_distance_model):
        difference_matrix = perturbed_distance_model.difference_matrix
        branch_and_bound_regions = get_local_similarity_regions(difference_matrix, 1.0, Branch_and_bound_max_clique_solver())
        networkx_regions = get_local_similarity_regions(difference_matrix, 1.0, Networkx_max_clique_solver())
        assert branch_and_bound_regions.region_sizes() == networkx_regions.region_sizes()

    def test_empty_structures(self):
        distance_model = create_distance_model([], [], np.zeros((0, 0)), np.zeros((0, 0)))
        assert len(get_local_similarity_regions(distance_model.difference_matrix)) == 0


# ═══════════════════════════════════════════════════════════════════
# 3. Global similarity
# ═══════════════════════════════════════════════════════════════════

class TestGrowRegion:

    def test_first_step_uses_the_whole_graph(self, two_cluster_distance_model):
        clique_search_result, graph_statistics = grow_region(
            two_cluster_distance_model.difference_matrix, 2.0, None, Branch_and_bound_max_clique_solver()
        )
        assert clique_search_result.region == (3, 4, 5, 6)
        assert graph_statistics.n_nodes == 7

    def test_search_is_anchored_on_the_previous_region(self, two_cluster_distance_model):
        # At 2 Å the largest clique is (3, 4, 5, 6), but it is not in the neighborhood of the previous region
        clique_search_result, graph_statistics = grow_region(
            two_cluster_distance_model.difference_matrix, 2.0, (0, 1, 2), Branch_and_bound_max_clique_solver()
        )
        assert clique_search_result.region == (0, 1, 2)
        assert graph_statistics.n_nodes == 3

    def test_grow_region_is_pure(self, two_cluster_distance_model):
        difference_matrix = two_cluster_distance_model.difference_matrix
        solver = Branch_and_bound_max_clique_solver()
        first_result, _ = grow_region(difference_matrix, 11.0, (0, 1, 2), solver)
        second_result, _ = grow_region(difference_matrix, 11.0, (0, 1, 2), solver)
        assert first_result == second_result
        assert first_result.region == tuple(range(7))


class TestGlobalSimilarity:

    def test_identical_structures(self, identical_distance_model):
        global_regions = get_global_similarity_regions(identical_distance_model.difference_matrix)
        assert global_regions.regions == [tuple(range(10))] * 4
        assert global_regions.thresholds == [1.0, 2.0, 4.0, 8.0]
        score_df = calculate_global_distance_test_score(global_regions.regions, n_residues_in_reference=10)
        assert score_df.loc['average', 'fraction_of_reference'] == pytest.approx(1.0)

    def test_regions_grow_from_the_previous_region(self, two_cluster_distance_model):
        global_regions = get_global_similarity_regions(two_cluster_distance_model.difference_matrix, [1.0, 2.0, 11.0])
        assert global_regions.regions == [(0, 1, 2), (0, 1, 2), tuple(range(7))]
        assert global_regions.region_is_exact == [True, True, True]
        assert len(global_regions.graph_statistics) == 3

    def test_single_threshold_gives_the_maximum_clique(self, two_cluster_distance_model):
        global_regions = get_global_similarity_regions(two_cluster_distance_model.difference_matrix, [2.0])
        assert global_regions.regions == [(3, 4, 5, 6)]

    def test_region_sizes_never_decrease(self, perturbed_distance_model):
        difference_matrix = perturbed_distance_model.difference_matrix
        global_regions = get_global_similarity_regions(difference_matrix, [0.5, 1.0, 2.0, 4.0, 8.0])
        region_sizes = global_regions.region_sizes()
        assert region_sizes == sorted(region_sizes)
        for region, threshold in zip(global_regions.regions, global_regions.thresholds):
            assert is_clique_under_threshold(difference_matrix, region, threshold)

    def test_empty_structures_give_no_regions(self):
        distance_model = create_distance_model([], [], np.zeros((0, 0)), np.zeros((0, 0)))
        global_regions = get_global_similarity_regions(distance_model.difference_matrix)
        assert len(global_regions) == 0
        assert global_regions.is_exact

    def test_single_residue(self):
        distance_model = create_distance_model(['1'], ['1'], np.zeros((1, 1)), np.zeros((1, 1)))
        global_regions = get_global_similarity_regions(distance_model.difference_matrix, [1.0, 2.0])
        assert global_regions.regions == [(0,), (0,)]

    def test_greedy_solver_regions_are_cliques(self, perturbed_distance_model):
        difference_matrix = perturbed_distance_model.difference_matrix
        global_regions = get_global_similarity_regions(difference_matrix, max_clique_solver=Greedy_max_clique_solver())
        for region, threshold in zip(global_regions.regions, global_regions.thresholds):
            assert is_clique_under_threshold(difference_matrix, region, threshold)

    def test_progress_bar(self, identical_distance_model):
        global_regions = get_global_similarity_regions(identical_distance_model.difference_matrix, progress_bar=True)
        assert len(global_regions) == 4
