import time
from typing import Optional, Sequence, Tuple

import numpy as np

from pystrusim.constants import (DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS,
                                 DEFAULT_LOCAL_SIMILARITY_THRESHOLD)
from pystrusim.data_containers import (Clique_search_result, Region,
                                       Similarity_graph_statistics,
                                       Similarity_regions)
from pystrusim.exceptions import InvalidThresholdSequenceError
from pystrusim.max_clique import (Branch_and_bound_max_clique_solver,
                                  Max_clique_solver)
from pystrusim.similarity_graph import (build_similarity_graph,
                                        get_similarity_graph_statistics,
                                        restrict_graph_to_region_neighborhood)
from pystrusim.utils import get_tqdm_progress_bar


def check_thresholds_are_strictly_ascending(thresholds: Sequence[float]) -> None:
    if len(thresholds) == 0:
        raise InvalidThresholdSequenceError('At least one threshold is needed to compute the global similarity regions.')

    for previous_threshold, threshold in zip(thresholds, thresholds[1:]):
        if not threshold > previous_threshold:
            raise InvalidThresholdSequenceError(f'The thresholds must be strictly ascending, but {threshold} comes after {previous_threshold} in {list(thresholds)}.')

    return

def get_local_similarity_regions(
        difference_matrix: np.ma.MaskedArray, threshold: float = DEFAULT_LOCAL_SIMILARITY_THRESHOLD,
        max_clique_solver: Optional[Max_clique_solver] = None, progress_bar: bool = False
    ) -> Similarity_regions:
    """
    Clique cover of the similarity graph built over all the residues at the given threshold. Regions come in the order they were
    extracted, each one being a maximum clique of the graph remaining at that step.
    """
    max_clique_solver = max_clique_solver if max_clique_solver is not None else Branch_and_bound_max_clique_solver()

    start_time = time.perf_counter()
    graph = build_similarity_graph(difference_matrix, threshold, add_all_residues=True)
    clique_cover = max_clique_solver.get_clique_cover(graph, progress_bar=progress_bar)
    runtime = time.perf_counter() - start_time

    clique_cover.thresholds = [threshold] * len(clique_cover.regions)
    clique_cover.graph_statistics = [get_similarity_graph_statistics(graph, threshold, runtime)]

    return clique_cover

def grow_region(
        difference_matrix: np.ma.MaskedArray, threshold: float, previous_region: Optional[Region], max_clique_solver: Max_clique_solver
    ) -> Tuple[Clique_search_result, Similarity_graph_statistics]:
    """
    One step of the global similarity computation. Without a previous region, returns the maximum clique of the similarity graph of all the residues.
    Otherwise the similarity graph is first restricted to the neighborhood of the previous region, which anchors the search on the previously found
    region instead of finding an unrelated clique elsewhere in the structure.
    """
    start_time = time.perf_counter()
    graph = build_similarity_graph(difference_matrix, threshold, add_all_residues=True)
    if previous_region is not None:
        graph = restrict_graph_to_region_neighborhood(graph, previous_region)

    clique_search_result = max_clique_solver.find_max_clique(graph)
    runtime = time.perf_counter() - start_time

    return (clique_search_result, get_similarity_graph_statistics(graph, threshold, runtime))

def get_global_similarity_regions(
        difference_matrix: np.ma.MaskedArray, thresholds: Sequence[float] = DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS,
        max_clique_solver: Optional[Max_clique_solver] = None, progress_bar: bool = False
    ) -> Similarity_regions:
    """
    One region per threshold, thresholds must be strictly ascending. The region of each threshold is searched in the neighborhood of the region
    of the previous threshold (see grow_region). Structures without residues give an empty list of regions.
    """
    check_thresholds_are_strictly_ascending(thresholds)
    max_clique_solver = max_clique_solver if max_clique_solver is not None else Branch_and_bound_max_clique_solver()

    global_similarity_regions = Similarity_regions()
    if difference_matrix.shape[0] == 0:
        return global_similarity_regions

    tqdm_progress_bar = get_tqdm_progress_bar(total=len(thresholds), desc='Global similarity thresholds') if progress_bar else None
    previous_region: Optional[Region] = None
    for threshold in thresholds:
        clique_search_result, graph_statistics = grow_region(difference_matrix, threshold, previous_region, max_clique_solver)

        global_similarity_regions.regions.append(clique_search_result.region)
        global_similarity_regions.thresholds.append(threshold)
        global_similarity_regions.region_is_exact.append(clique_search_result.is_exact)
        global_similarity_regions.graph_statistics.append(graph_statistics)
        global_similarity_regions.is_exact = global_similarity_regions.is_exact and clique_search_result.is_exact

        previous_region = clique_search_result.region
        if tqdm_progress_bar is not None:
            tqdm_progress_bar.update()

    if tqdm_progress_bar is not None:
        tqdm_progress_bar.close()

    return global_similarity_regions
