import csv
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from pystrusim.constants import DISTANCE_MATRIX_FLOAT_PRECISION
from pystrusim.data_containers import Distance_model
from pystrusim.distance_model import create_distance_model
from pystrusim.exceptions import DimensionMismatchError
from pystrusim.utils import get_structure_ID_from_file_path


def read_distance_matrix_file(file_path: Path) -> Tuple[List[str], npt.NDArray[np.float64]]:
    """
    Reads a distance matrix csv file: the first line contains the residue identifiers, followed by one line of distances per residue.
    Only the upper triangle (i < j) of each line is read, the returned matrix is symmetric with a zero diagonal.
    """
    with open(file_path, 'r', newline='') as file_handle:
        csv_reader = csv.reader(file_handle)
        try:
            header = next(csv_reader)
        except StopIteration:
            raise ValueError(f'The distance matrix file {str(file_path)} is empty.')

        residue_IDs = [residue_ID.strip() for residue_ID in header if residue_ID.strip() != '']
        rows = [row for row in csv_reader if len(row) > 0] # Skip blank lines, ex: trailing new line

    n_residues = len(residue_IDs)
    if len(rows) != n_residues:
        raise DimensionMismatchError(f'The distance matrix file {str(file_path)} has {n_residues} residue identifiers but {len(rows)} rows of distances.')

    distance_matrix = np.zeros((n_residues, n_residues), dtype=np.float64)
    for i, row in enumerate(rows):
        for j in range(i+1, n_residues):
            try:
                distance = float(row[j])
            except (IndexError, ValueError):
                raise ValueError(f'Missing or invalid distance between residues {residue_IDs[i]} and {residue_IDs[j]} (line {i+2}, column {j+1}) in {str(file_path)}.')

            distance_matrix[i, j] = distance
            distance_matrix[j, i] = distance

    return residue_IDs, distance_matrix

def write_distance_matrix_file(file_path: Path, residue_IDs: Sequence[str], distance_matrix: npt.NDArray[np.float64]) -> None:
    """
    ...
    """
    if distance_matrix.shape != (len(residue_IDs), len(residue_IDs)):
        raise DimensionMismatchError(f'The distance matrix has shape {distance_matrix.shape} but there are {len(residue_IDs)} residue identifiers.')

    with open(file_path, 'w', newline='') as file_handle:
        csv_writer = csv.writer(file_handle)
        csv_writer.writerow(residue_IDs)
        for row in distance_matrix:
            csv_writer.writerow([f'{distance:.{DISTANCE_MATRIX_FLOAT_PRECISION}f}' for distance in row])

    return

def load_distance_model_from_files(alpha_file_path: Path, beta_file_path: Path) -> Distance_model:
    """
    The structure IDs are taken from the file names (e.g: 1A2Y.pdb.CADistanceMatrix.csv -> 1A2Y), they are used by the coloring scripts.
    """
    alpha_residue_IDs, alpha_distance_matrix = read_distance_matrix_file(alpha_file_path)
    beta_residue_IDs, beta_distance_matrix = read_distance_matrix_file(beta_file_path)

    return create_distance_model(
        alpha_residue_IDs, beta_residue_IDs, alpha_distance_matrix, beta_distance_matrix,
        alpha_structure_ID=get_structure_ID_from_file_path(alpha_file_path),
        beta_structure_ID=get_structure_ID_from_file_path(beta_file_path)
    )
