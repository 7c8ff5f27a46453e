from typing import Iterable, Optional, Sequence

import numpy as np
import numpy.typing as npt
import pandas as pd

from pystrusim.constants import (ANGULAR_DISTANCE_SCALE,
                                 MAX_ANGLE_BETWEEN_DISTANCE_VECTORS)
from pystrusim.data_containers import Region
from pystrusim.exceptions import DimensionMismatchError, MissingDataError
from pystrusim.utils import angle_between_two_vectors, get_upper_triangle_vector


def calculate_angular_distance(alpha_distance_matrix: Optional[npt.NDArray[np.float64]], beta_distance_matrix: Optional[npt.NDArray[np.float64]]) -> float:
    """
    Flattens the upper triangle of both distance matrices into vectors and returns the angle between them, rescaled from [0°, 90°] to [0, 100].
    0 means identical structures (up to a scaling factor). Structures with less than 2 residues, or two all-zero matrices, have an angular distance of 0.
    """
    if alpha_distance_matrix is None or beta_distance_matrix is None:
        raise MissingDataError('Can not calculate the angular distance, the alpha and/or beta distance matrix is not available.')
    if alpha_distance_matrix.shape != beta_distance_matrix.shape:
        raise DimensionMismatchError(f'The distance matrices have different dimensions: {alpha_distance_matrix.shape} and {beta_distance_matrix.shape}.')

    alpha_vector = get_upper_triangle_vector(alpha_distance_matrix)
    beta_vector = get_upper_triangle_vector(beta_distance_matrix)

    if np.array_equal(alpha_vector, beta_vector): # Also the case of empty vectors (less than 2 residues). arccos would give a rounding error instead of exactly 0
        return 0.0

    alpha_is_null, beta_is_null = not np.any(alpha_vector), not np.any(beta_vector)
    if alpha_is_null or beta_is_null:
        raise ValueError('The angular distance is undefined when only one of the distance matrices is null.')

    angle = float(angle_between_two_vectors(alpha_vector, beta_vector))
    return angle * ANGULAR_DISTANCE_SCALE / MAX_ANGLE_BETWEEN_DISTANCE_VECTORS

def calculate_global_distance_test_score(regions: Iterable[Region], n_residues_in_reference: int) -> pd.DataFrame:
    """
    For each region, its number of residues and the fraction of the reference structure's residues it represents. The last row, indexed 'average',
    holds the mean of both columns over all the regions. The reference residue count can be larger than the number of aligned residues, given
    residues without a match in the alignment are dropped from the distance matrices.
    Without any region (e.g: structures without residues) the table only holds the 'average' row, set to NaN, whatever the reference residue count.
    """
    region_sizes: Sequence[int] = [len(region) for region in regions]
    if len(region_sizes) > 0 and n_residues_in_reference <= 0:
        raise ValueError(f'The reference structure must have at least 1 residue, but n_residues_in_reference was {n_residues_in_reference}.')

    score_df = pd.DataFrame(
        data={
            'n_residues':pd.Series(region_sizes, dtype='float64'),
            'fraction_of_reference':pd.Series([region_size / n_residues_in_reference for region_size in region_sizes], dtype='float64'),
        }
    )
    score_df.index = pd.Index([f'region_{region_number}' for region_number in range(1, len(region_sizes)+1)], dtype=object)
    score_df.loc['average'] = [score_df['n_residues'].mean(), score_df['fraction_of_reference'].mean()]

    return score_df
