from pathlib import Path
from typing import Union

import numba
import numpy as np
import numpy.typing as npt
from tqdm import tqdm


def get_structure_ID_from_file_path(file_path: Path) -> str:
    return file_path.name.split('.')[0] # Ex: 1A2Y.pdb.CADistanceMatrix.csv -> 1A2Y

def get_tqdm_progress_bar(total: int, desc: str) -> tqdm:
    return tqdm(total=total, desc=desc, position=0, leave=True, smoothing=0, bar_format='{l_bar}{bar} | {n_fmt}/{total_fmt} | Ellapsed={elapsed}; Remaining={remaining} |')


@numba.njit() # type: ignore
def vector_norm(v: npt.NDArray[np.float64]) -> Union[np.float64, float]:
    # numba's np.linalg.norm and np.dot need scipy's BLAS bindings
    return np.sqrt(np.sum(v**2)) # type: ignore

@numba.njit() # type: ignore
def angle_between_two_vectors(v1: npt.NDArray[np.float64], v2: npt.NDArray[np.float64]) -> Union[np.float64, float]:
    """
    Returns the angle between the two vectors in degrees (°). Both vectors must have a non zero norm.
    Largely taken from https://stackoverflow.com/questions/2827393/angles-between-two-n-dimensional-vectors-in-python
    """
    v1_u, v2_u = v1 / vector_norm(v1), v2 / vector_norm(v2)

    dot_product = np.sum(v1_u * v2_u)
    # Clip the value to between -1 and 1 (numba does not support np.clip)
    if dot_product > 1:
        dot_product = 1
    elif dot_product < -1:
        dot_product = -1

    return np.rad2deg(np.arccos(dot_product)) # type: ignore

def get_upper_triangle_vector(matrix: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Flattens the strict upper triangle (i < j) of a square matrix in row-major order, which gives a vector of length N(N-1)/2.
    """
    row_indices, column_indices = np.triu_indices(matrix.shape[0], k=1)
    return np.ascontiguousarray(matrix[row_indices, column_indices], dtype=np.float64)
