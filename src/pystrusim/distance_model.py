from typing import Optional, Sequence

import numpy as np
import numpy.typing as npt

from pystrusim.data_containers import Distance_model
from pystrusim.exceptions import DimensionMismatchError


def convert_to_read_only_distance_matrix(matrix: npt.ArrayLike, name: str) -> npt.NDArray[np.float64]:
    """
    Copies the matrix as a float64 array that can't be modified. Only the strict upper triangle has to contain valid distances.
    """
    distance_matrix = np.array(matrix, dtype=np.float64, copy=True)
    if distance_matrix.size == 0:
        distance_matrix = distance_matrix.reshape(0, 0) # Structure without any aligned residue
    if distance_matrix.ndim != 2 or distance_matrix.shape[0] != distance_matrix.shape[1]:
        raise DimensionMismatchError(f'The {name} distance matrix must be a square matrix, but its shape is {distance_matrix.shape}.')

    upper_triangle = distance_matrix[np.triu_indices(distance_matrix.shape[0], k=1)]
    if not np.all(np.isfinite(upper_triangle)):
        raise ValueError(f'The upper triangle of the {name} distance matrix contains missing (NaN) or infinite distances.')
    if np.any(upper_triangle < 0):
        raise ValueError(f'The {name} distance matrix contains negative distances.')

    distance_matrix.setflags(write=False)
    return distance_matrix

def calculate_difference_matrix(alpha_distance_matrix: npt.NDArray[np.float64], beta_distance_matrix: npt.NDArray[np.float64]) -> np.ma.MaskedArray:
    """
    Element-wise absolute difference of the two distance matrices. Only the strict upper triangle (i < j) is defined, every cell
    with i >= j is masked, which keeps undefined cells distinguishable from a genuine difference of 0.
    """
    if alpha_distance_matrix.shape != beta_distance_matrix.shape:
        raise DimensionMismatchError(f'The distance matrices have different dimensions: {alpha_distance_matrix.shape} and {beta_distance_matrix.shape}.')

    n_residues = alpha_distance_matrix.shape[0]
    upper_triangle_indices = np.triu_indices(n_residues, k=1)

    differences = np.zeros((n_residues, n_residues), dtype=np.float64)
    differences[upper_triangle_indices] = np.abs(alpha_distance_matrix[upper_triangle_indices] - beta_distance_matrix[upper_triangle_indices])
    undefined_cells_mask = ~np.triu(np.ones((n_residues, n_residues), dtype=bool), k=1)

    differences.setflags(write=False)
    undefined_cells_mask.setflags(write=False)
    return np.ma.masked_array(differences, mask=undefined_cells_mask, copy=False)

def create_distance_model(
        alpha_residue_IDs: Sequence[str], beta_residue_IDs: Sequence[str],
        alpha_distance_matrix: npt.ArrayLike, beta_distance_matrix: npt.ArrayLike,
        alpha_structure_ID: str = 'alpha', beta_structure_ID: str = 'beta'
    ) -> Distance_model:
    """
    Builds the distance model of two already aligned structures: residue i of the alpha structure corresponds to residue i of the beta structure.
    The sizes of the residue identifier sequences and of the matrices are checked explicitly, nothing is ever truncated or padded.
    """
    if len(alpha_residue_IDs) != len(beta_residue_IDs):
        raise DimensionMismatchError(f'The two structures have a different number of aligned residues: {len(alpha_residue_IDs)} and {len(beta_residue_IDs)}.')

    alpha_matrix = convert_to_read_only_distance_matrix(alpha_distance_matrix, name=alpha_structure_ID)
    beta_matrix = convert_to_read_only_distance_matrix(beta_distance_matrix, name=beta_structure_ID)
    if alpha_matrix.shape != beta_matrix.shape:
        raise DimensionMismatchError(f'The distance matrices have different dimensions: {alpha_matrix.shape} and {beta_matrix.shape}.')
    if alpha_matrix.shape[0] != len(alpha_residue_IDs):
        raise DimensionMismatchError(f'The distance matrices are {alpha_matrix.shape[0]}x{alpha_matrix.shape[0]} but there are {len(alpha_residue_IDs)} residue identifiers.')

    return Distance_model(
        alpha_residue_IDs=tuple(str(residue_ID) for residue_ID in alpha_residue_IDs),
        beta_residue_IDs=tuple(str(residue_ID) for residue_ID in beta_residue_IDs),
        alpha_distance_matrix=alpha_matrix,
        beta_distance_matrix=beta_matrix,
        difference_matrix=calculate_difference_matrix(alpha_matrix, beta_matrix),
        alpha_structure_ID=alpha_structure_ID,
        beta_structure_ID=beta_structure_ID
    )

def get_difference(difference_matrix: np.ma.MaskedArray, i: int, j: int) -> Optional[float]:
    """Returns None for the undefined cells (i >= j)."""
    if np.ma.getmaskarray(difference_matrix)[i, j]:
        return None
    return float(difference_matrix.data[i, j])
