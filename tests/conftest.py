"""Shared fixtures and helpers for the pyStruSim tests."""

from pathlib import Path
from typing import Iterable, List, Tuple

import numpy as np
import pytest

from pystrusim.distance_model import create_distance_model
from pystrusim.residue_data_dicts import calculate_distance_matrix


def residue_IDs(n_residues: int, start: int = 1) -> List[str]:
    return [str(residue_number) for residue_number in range(start, start + n_residues)]


def format_atom_line(record: str, serial: int, atom_name: str, resname: str, chain: str, resseq: int,
                     coordinates: Tuple[float, float, float], element: str) -> str:
    x, y, z = coordinates
    return (f'{record:<6s}{serial:5d} {atom_name:^4s} {resname:>3s} {chain}{resseq:4d}    '
            f'{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2s}')


def write_C_alpha_PDB_file(file_path: Path, residues: Iterable[Tuple[str, int, str, Tuple[float, float, float]]],
                           waters: Iterable[Tuple[str, int, Tuple[float, float, float]]] = ()) -> Path:
    """residues: (chain, residue number, residue name, CA coordinates). waters: (chain, residue number, O coordinates)."""
    lines = []
    serial = 1
    for chain, resseq, resname, coordinates in residues:
        lines.append(format_atom_line('ATOM', serial, 'CA', resname, chain, resseq, coordinates, 'C'))
        serial += 1
    for chain, resseq, coordinates in waters:
        lines.append(format_atom_line('HETATM', serial, 'O', 'HOH', chain, resseq, coordinates, 'O'))
        serial += 1
    lines.append('END')
    file_path.write_text('\n'.join(lines) + '\n')
    return file_path


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture
def random_coordinates():
    """30 points spread like the C alpha atoms of a small protein."""
    rng = np.random.default_rng(seed=7)
    return rng.uniform(low=0.0, high=20.0, size=(30, 3))


@pytest.fixture
def perturbed_distance_model(random_coordinates):
    """Two conformations: the second one has a displaced sub-domain (the last 10 points) plus some noise."""
    rng = np.random.default_rng(seed=11)
    beta_coordinates = random_coordinates + rng.normal(scale=0.3, size=random_coordinates.shape)
    beta_coordinates[20:] += np.array([3.0, -2.0, 1.5])
    return create_distance_model(
        residue_IDs(30), residue_IDs(30, start=101),
        calculate_distance_matrix(random_coordinates), calculate_distance_matrix(beta_coordinates),
        alpha_structure_ID='1ABC', beta_structure_ID='2XYZ'
    )


@pytest.fixture
def identical_distance_model():
    """Two identical structures of 10 residues."""
    rng = np.random.default_rng(seed=3)
    distance_matrix = calculate_distance_matrix(rng.uniform(low=0.0, high=15.0, size=(10, 3)))
    return create_distance_model(residue_IDs(10), residue_IDs(10), distance_matrix, distance_matrix)


@pytest.fixture
def two_cluster_distance_model():
    """
    Residues {0, 1, 2} differ by 0.5 Å between each other, residues {3, 4, 5, 6} by 1.5 Å, and residues of different clusters by 10 Å.
    The alpha distances are all 20 Å so the differences are easy to control.
    """
    n_residues = 7
    cluster_A, cluster_B = {0, 1, 2}, {3, 4, 5, 6}
    alpha_distance_matrix = np.full((n_residues, n_residues), 20.0)
    beta_distance_matrix = np.full((n_residues, n_residues), 20.0)
    for i in range(n_residues):
        alpha_distance_matrix[i, i] = beta_distance_matrix[i, i] = 0.0
        for j in range(i + 1, n_residues):
            if i in cluster_A and j in cluster_A:
                difference = 0.5
            elif i in cluster_B and j in cluster_B:
                difference = 1.5
            else:
                difference = 10.0
            beta_distance_matrix[i, j] = beta_distance_matrix[j, i] = 20.0 + difference

    return create_distance_model(residue_IDs(n_residues), residue_IDs(n_residues), alpha_distance_matrix, beta_distance_matrix)
