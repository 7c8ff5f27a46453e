from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from pystrusim.coloring_scripts import (get_chimera_coloring_script,
                                        get_pymol_coloring_script,
                                        get_residue_IDs_in_region)
from pystrusim.constants import (DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS,
                                 DEFAULT_LOCAL_SIMILARITY_THRESHOLD)
from pystrusim.data_containers import Distance_model, Region, Similarity_regions
from pystrusim.exceptions import DimensionMismatchError, MissingDataError
from pystrusim.max_clique import (Branch_and_bound_max_clique_solver,
                                  Max_clique_solver)
from pystrusim.region_engine import (check_thresholds_are_strictly_ascending,
                                     get_global_similarity_regions,
                                     get_local_similarity_regions)
from pystrusim.scoring import (calculate_angular_distance,
                               calculate_global_distance_test_score)


class Structural_similarity():
    """
    Similarity metrics between two aligned structures: angular distance, local similarity (clique cover of the residues under one threshold)
    and global similarity (one growing region per threshold, scored as the average fraction of the reference structure they cover).

    n_residues_in_reference is the number of residues of the reference (alpha) structure, which can be larger than the number of aligned
    residues. It defaults to the number of aligned residues.
    """
    def __init__(
            self, distance_model: Distance_model, n_residues_in_reference: Optional[int] = None,
            max_clique_solver: Optional[Max_clique_solver] = None, progress_bar: bool = False
        ) -> None:
        if distance_model is None:
            raise MissingDataError('A distance model is needed to compare two structures.')
        if n_residues_in_reference is not None and n_residues_in_reference <= 0:
            raise ValueError(f'The reference structure must have at least 1 residue, but n_residues_in_reference was {n_residues_in_reference}.')

        self.distance_model = distance_model
        self.n_residues_in_reference = n_residues_in_reference if n_residues_in_reference is not None else distance_model.n_residues
        self.max_clique_solver = max_clique_solver if max_clique_solver is not None else Branch_and_bound_max_clique_solver()
        self.progress_bar = progress_bar

    @property
    def n_residues(self) -> int:
        return self.distance_model.n_residues

    def get_checked_difference_matrix(self, difference_matrix: Optional[np.ma.MaskedArray]) -> np.ma.MaskedArray:
        if difference_matrix is None:
            return self.distance_model.difference_matrix

        if difference_matrix.shape != (self.n_residues, self.n_residues):
            raise DimensionMismatchError(f'The difference matrix has shape {difference_matrix.shape}, but the compared structures have {self.n_residues} aligned residues.')
        return difference_matrix

    def angular_distance(self) -> float:
        return calculate_angular_distance(self.distance_model.alpha_distance_matrix, self.distance_model.beta_distance_matrix)

    def local_similarity_regions(self, threshold: float = DEFAULT_LOCAL_SIMILARITY_THRESHOLD, difference_matrix: Optional[np.ma.MaskedArray] = None) -> Similarity_regions:
        difference_matrix = self.get_checked_difference_matrix(difference_matrix)
        return get_local_similarity_regions(difference_matrix, threshold, self.max_clique_solver, self.progress_bar)

    def global_similarity_regions(
            self, thresholds: Sequence[float] = DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS, difference_matrix: Optional[np.ma.MaskedArray] = None
        ) -> Similarity_regions:
        check_thresholds_are_strictly_ascending(thresholds)
        difference_matrix = self.get_checked_difference_matrix(difference_matrix)
        return get_global_similarity_regions(difference_matrix, thresholds, self.max_clique_solver, self.progress_bar)

    def global_distance_test_score(self, regions: Sequence[Region]) -> pd.DataFrame:
        return calculate_global_distance_test_score(regions, self.n_residues_in_reference)

    def alpha_residue_IDs_in_region(self, region: Region) -> List[str]:
        return get_residue_IDs_in_region(region, self.distance_model.alpha_residue_IDs)

    def beta_residue_IDs_in_region(self, region: Region) -> List[str]:
        return get_residue_IDs_in_region(region, self.distance_model.beta_residue_IDs)

    def pymol_coloring_script(self, regions: Sequence[Region]) -> List[str]:
        return get_pymol_coloring_script(
            regions,
            self.distance_model.alpha_structure_ID, self.distance_model.beta_structure_ID,
            self.distance_model.alpha_residue_IDs, self.distance_model.beta_residue_IDs
        )

    def chimera_coloring_script(self, regions: Sequence[Region]) -> List[str]:
        return get_chimera_coloring_script(regions, self.distance_model.alpha_residue_IDs, self.distance_model.beta_residue_IDs)

    def regions_dataframe(self, similarity_regions: Similarity_regions, similarity_type: str) -> pd.DataFrame:
        """
        One row per region, with the residue IDs of both structures. similarity_type is written as is in the first column (e.g: 'local', 'global').
        """
        rows = []
        for region_number, region in enumerate(similarity_regions.regions, start=1):
            rows.append({
                'similarity_type':similarity_type,
                'region_number':region_number,
                'threshold':similarity_regions.thresholds[region_number-1] if region_number <= len(similarity_regions.thresholds) else np.nan,
                'n_residues':len(region),
                'fraction_of_reference':len(region) / self.n_residues_in_reference if self.n_residues_in_reference > 0 else np.nan,
                'alpha_residue_IDs':' '.join(self.alpha_residue_IDs_in_region(region)),
                'beta_residue_IDs':' '.join(self.beta_residue_IDs_in_region(region)),
                'is_exact':similarity_regions.region_is_exact[region_number-1] if region_number <= len(similarity_regions.region_is_exact) else similarity_regions.is_exact,
            })

        columns = ['similarity_type', 'region_number', 'threshold', 'n_residues', 'fraction_of_reference', 'alpha_residue_IDs', 'beta_residue_IDs', 'is_exact']
        return pd.DataFrame(rows, columns=columns)
