import gzip
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt
from Bio.Data.IUPACData import protein_letters_3to1_extended
protein_letters_3to1_extended = {res_3_letters.upper():res_1_letter for res_3_letters, res_1_letter in protein_letters_3to1_extended.items()} # By default biopython 3 letter codes are cammel case (ie: 'Gly), but they are all upper case (ie: 'GLY') in parsed PDB files
from Bio.PDB import MMCIFParser, PDBParser
from Bio.PDB.Chain import Chain
from Bio.PDB.Residue import Residue as Biopython_residue_type
from Bio.PDB.Structure import Structure

from pystrusim.data_containers import Distance_model
from pystrusim.distance_model import create_distance_model
from pystrusim.utils import get_structure_ID_from_file_path


def parse_PDB_with_biopython(PDB_file_path: Path) -> Structure:
    """
    Parses PDB (.pdb, .ent) and mmCIF (.cif) files, optionally gunziped (.gz).
    """
    suffixes = PDB_file_path.suffixes
    if len(suffixes) >= 2 and suffixes[-1] == '.gz':
        file_format_suffix = suffixes[-2]
    elif len(suffixes) >= 1 and suffixes[-1] in {'.bz2', '.zip', '.xz'}:
        raise ValueError(f"<{suffixes[-1]}> compressed PDB files are currently not supported, only gunziped (.gz) compressed PDB files are.")
    else:
        file_format_suffix = suffixes[-1] if suffixes else ''

    parser = MMCIFParser(QUIET=True) if file_format_suffix == '.cif' else PDBParser(QUIET=True)
    parsed_PDB_file: Structure
    if suffixes and suffixes[-1] == '.gz':
        with gzip.open(PDB_file_path, 'rt') as decompressed_PDB_file_handle:
            parsed_PDB_file = parser.get_structure(get_structure_ID_from_file_path(PDB_file_path), decompressed_PDB_file_handle) # The biopython parsers also accept open file handles
    else:
        parsed_PDB_file = parser.get_structure(get_structure_ID_from_file_path(PDB_file_path), PDB_file_path)

    return parsed_PDB_file

def get_residue_ID(biopython_residue_object: Biopython_residue_type) -> str:
    _, residue_number, insertion_code = biopython_residue_object.id
    return f'{residue_number}{insertion_code.strip()}' # Ex: 43, or 43A for a residue with an insertion code

def get_chain(parsed_PDB_file: Structure, chain_ID: Optional[str]) -> Chain:
    """
    Chain of the first model. When no chain_ID is given, the first chain is used.
    """
    first_model = next(parsed_PDB_file.get_models(), None)
    if first_model is None:
        raise ValueError(f'The structure {parsed_PDB_file.id} does not contain any model.')

    if chain_ID is None:
        chain = next(first_model.get_chains(), None)
        if chain is None:
            raise ValueError(f'The structure {parsed_PDB_file.id} does not contain any chain.')
        return chain

    if chain_ID not in first_model:
        raise ValueError(f"Could not find chain '{chain_ID}' in structure {parsed_PDB_file.id}.")
    return first_model[chain_ID]

def extract_C_alpha_coordinates(PDB_file_path: Path, chain_ID: Optional[str] = None) -> Dict[str, npt.NDArray[np.float64]]:
    """
    C alpha coordinates of the standard amino acids of a chain, keyed by residue ID and in the order of the chain.
    Residues without a C alpha atom (and hetero residues such as waters or ligands) are ignored.
    """
    chain = get_chain(parse_PDB_with_biopython(PDB_file_path), chain_ID)

    C_alpha_coordinates: Dict[str, npt.NDArray[np.float64]] = {}
    for biopython_residue_object in chain:
        hetero_flag = biopython_residue_object.id[0]
        if hetero_flag.strip() != '' or biopython_residue_object.resname not in protein_letters_3to1_extended:
            continue
        if 'CA' not in biopython_residue_object.child_dict:
            continue

        C_alpha_coordinates[get_residue_ID(biopython_residue_object)] = biopython_residue_object.child_dict['CA'].coord.astype(np.float64)

    return C_alpha_coordinates

def calculate_distance_matrix(coordinates: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """N x N matrix of the euclidean distances between N points."""
    if len(coordinates) == 0:
        return np.zeros((0, 0), dtype=np.float64)

    deltas = coordinates[:, np.newaxis, :] - coordinates[np.newaxis, :, :]
    return np.sqrt(np.sum(deltas**2, axis=-1)) # type: ignore

def calculate_C_alpha_distance_matrix(
        PDB_file_path: Path, chain_ID: Optional[str] = None, residue_IDs: Optional[Sequence[str]] = None
    ) -> Tuple[List[str], npt.NDArray[np.float64]]:
    """
    C alpha distance matrix of a chain. When residue_IDs is given, only those residues are used, in the given order (e.g: the residues that
    were matched by an alignment).
    """
    C_alpha_coordinates = extract_C_alpha_coordinates(PDB_file_path, chain_ID)

    selected_residue_IDs: List[str]
    if residue_IDs is None:
        selected_residue_IDs = list(C_alpha_coordinates.keys())
    else:
        selected_residue_IDs = list(residue_IDs)
        for residue_ID in selected_residue_IDs:
            if residue_ID not in C_alpha_coordinates:
                raise ValueError(f"Could not find residue '{residue_ID}' (or its C alpha atom) in PDB_file {str(PDB_file_path)}.")

    coordinates = np.array([C_alpha_coordinates[residue_ID] for residue_ID in selected_residue_IDs], dtype=np.float64).reshape(-1, 3)
    return selected_residue_IDs, calculate_distance_matrix(coordinates)

def get_common_residue_IDs(alpha_residue_IDs: Sequence[str], beta_residue_IDs: Sequence[str]) -> List[str]:
    """
    Residue IDs present in both structures, in the order of the alpha structure. Corresponds to matching the residues of two conformations
    of the same molecule through their numbering, this is not a sequence alignment.
    """
    beta_residue_IDs_set = set(beta_residue_IDs)
    return [residue_ID for residue_ID in alpha_residue_IDs if residue_ID in beta_residue_IDs_set]

def load_distance_model_from_PDB_files(
        alpha_PDB_file_path: Path, beta_PDB_file_path: Path, alpha_chain_ID: Optional[str] = None, beta_chain_ID: Optional[str] = None
    ) -> Tuple[Distance_model, int]:
    """
    Distance model of two conformations of the same molecule, whose residues are matched by their residue IDs. Also returns the
    number of residues of the alpha (i.e reference) structure, which is needed to score the regions.
    """
    alpha_C_alpha_coordinates = extract_C_alpha_coordinates(alpha_PDB_file_path, alpha_chain_ID)
    beta_C_alpha_coordinates = extract_C_alpha_coordinates(beta_PDB_file_path, beta_chain_ID)
    common_residue_IDs = get_common_residue_IDs(list(alpha_C_alpha_coordinates), list(beta_C_alpha_coordinates))

    alpha_coordinates = np.array([alpha_C_alpha_coordinates[residue_ID] for residue_ID in common_residue_IDs], dtype=np.float64).reshape(-1, 3)
    beta_coordinates = np.array([beta_C_alpha_coordinates[residue_ID] for residue_ID in common_residue_IDs], dtype=np.float64).reshape(-1, 3)

    distance_model = create_distance_model(
        common_residue_IDs, common_residue_IDs,
        calculate_distance_matrix(alpha_coordinates), calculate_distance_matrix(beta_coordinates),
        alpha_structure_ID=get_structure_ID_from_file_path(alpha_PDB_file_path),
        beta_structure_ID=get_structure_ID_from_file_path(beta_PDB_file_path)
    )
    return distance_model, len(alpha_C_alpha_coordinates)
