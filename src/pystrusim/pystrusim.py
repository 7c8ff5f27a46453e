from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import click
import pandas as pd

from pystrusim.constants import (DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS,
                                 DEFAULT_LOCAL_SIMILARITY_THRESHOLD,
                                 MAX_CLIQUE_SOLVER_NAMES)
from pystrusim.data_containers import Distance_model, Similarity_regions
from pystrusim.distance_matrix_files import (load_distance_model_from_files,
                                             write_distance_matrix_file)
from pystrusim.exceptions import InvalidThresholdSequenceError
from pystrusim.max_clique import get_max_clique_solver
from pystrusim.region_engine import check_thresholds_are_strictly_ascending
from pystrusim.residue_data_dicts import (calculate_C_alpha_distance_matrix,
                                          load_distance_model_from_PDB_files)
from pystrusim.structural_similarity import Structural_similarity
from pystrusim.utils import get_structure_ID_from_file_path


@click.group(help='pyStruSim: a tool to compare two 3D structures through their distance matrices (angular distance, local and global similarity regions).', context_settings={'max_content_width':2000})
def command_line_interface() -> None:
    pass


def check_global_thresholds_option(ctx: Any, param: Any, value: str) -> Tuple[float, ...]:
    try:
        thresholds = tuple(float(threshold) for threshold in value.split(',') if threshold.strip() != '') # Ex: '1,2,4,8' -> (1.0, 2.0, 4.0, 8.0)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a comma separated list of numbers (e.g: 1,2,4,8).")

    try:
        check_thresholds_are_strictly_ascending(thresholds)
    except InvalidThresholdSequenceError as exception:
        raise click.BadParameter(str(exception))

    return thresholds

def check_output_file_option(suffix: str) -> Callable[[Any, Any, Optional[Path]], Optional[Path]]:
    def check_suffix(ctx: Any, param: Any, value: Optional[Path]) -> Optional[Path]:
        if value is not None and value.suffix != suffix:
            raise click.BadParameter(f"The {param.name} option must be a file path ending in '{suffix}'")
        return value
    return check_suffix

def comparison_options(command: Callable[..., None]) -> Callable[..., None]:
    """Options shared by the compare and compare-structures commands."""
    options = [
        click.option('--local_threshold', type=click.FloatRange(min=0.0), default=DEFAULT_LOCAL_SIMILARITY_THRESHOLD, show_default=True,
                     help='Distance difference threshold (in Å) under which two residues are considered to be the same distance apart in both structures, used for the local similarity regions.'),
        click.option('--global_thresholds', default=','.join(str(threshold) for threshold in DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS), show_default=True, callback=check_global_thresholds_option,
                     help='Comma separated and strictly ascending distance difference thresholds (in Å) used for the global similarity regions, one region is computed per threshold.'),
        click.option('--solver', type=click.Choice(MAX_CLIQUE_SOLVER_NAMES), default='branch_and_bound', show_default=True,
                     help='Max clique algorithm. branch_and_bound and networkx are exact searches, greedy is a fast heuristic.'),
        click.option('--max_expanded_nodes', type=click.IntRange(min=1), default=None,
                     help='Maximum number of search nodes the branch_and_bound solver can expand per clique search (per root branch of the search when n_cores > 1). When reached, the best clique found so far is used and the results are flagged as inexact.'),
        click.option('--time_limit', type=click.FloatRange(min=0.0, min_open=True), default=None,
                     help='Maximum number of seconds the branch_and_bound solver can spend per clique search (per root branch of the search when n_cores > 1, so the total time can be larger). When reached, the best clique found so far is used and the results are flagged as inexact.'),
        click.option('--n_residues_in_reference', type=click.IntRange(min=1), default=None,
                     help='Number of residues of the reference (first) structure, used to calculate the fraction of the structure covered by each region. Defaults to the number of residues of the first structure.'),
        click.option('--results_output_path', type=click.Path(dir_okay=False, path_type=Path), default=None, callback=check_output_file_option('.csv'),
                     help='Full path of the csv file where the local and global similarity regions will be saved (e.g: /home/user/Downloads/regions.csv).'),
        click.option('--pymol_script', type=click.Path(dir_okay=False, path_type=Path), default=None, callback=check_output_file_option('.pml'),
                     help='Full path of a PyMOL script (.pml) that colors the global similarity regions.'),
        click.option('--chimera_script', type=click.Path(dir_okay=False, path_type=Path), default=None, callback=check_output_file_option('.cmd'),
                     help='Full path of a Chimera script (.cmd) that colors the global similarity regions.'),
        click.option('--progress_bar/--no_progress_bar', default=False, show_default=True,
                     help='Show progress bars during the clique searches.'),
        click.option('--n_cores', type=click.IntRange(min=1), default=1, show_default=True,
                     help='Number of cores used by the branch_and_bound solver.'),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def format_graph_statistics_table(similarity_regions: Similarity_regions) -> List[str]:
    lines = [f'{"Threshold":>10} | {"Num Vertices":>12} | {"Num Edges":>10} | {"Density":>10} | {"Runtime (s)":>11}']
    for graph_statistics in similarity_regions.graph_statistics:
        lines.append(
            f'{graph_statistics.threshold:8.2f} Å | {graph_statistics.n_nodes:12d} | {graph_statistics.n_edges:10d} | '
            f'{graph_statistics.density:10.2f} | {graph_statistics.runtime:11.3f}'
        )
    return lines

def run_comparison(
        distance_model: Distance_model, n_residues_in_reference: Optional[int], local_threshold: float, global_thresholds: Tuple[float, ...],
        solver: str, max_expanded_nodes: Optional[int], time_limit: Optional[float], n_cores: int, progress_bar: bool,
        results_output_path: Optional[Path], pymol_script: Optional[Path], chimera_script: Optional[Path]
    ) -> None:
    """
    Computes and prints the similarity metrics of the two structures, and writes the requested output files.
    """
    structural_similarity = Structural_similarity(
        distance_model,
        n_residues_in_reference=n_residues_in_reference,
        max_clique_solver=get_max_clique_solver(solver, max_n_expanded_nodes=max_expanded_nodes, time_limit=time_limit, n_cores=n_cores),
        progress_bar=progress_bar
    )

    print(f'Comparing {distance_model.alpha_structure_ID} and {distance_model.beta_structure_ID} over {distance_model.n_residues} aligned residues '
          f'({structural_similarity.n_residues_in_reference} residues in the reference structure).')
    print(f'Angular distance: {structural_similarity.angular_distance():.3f}')

    global_regions = structural_similarity.global_similarity_regions(global_thresholds)
    print('\nGlobal similarity regions:')
    print('\n'.join(format_graph_statistics_table(global_regions)))
    score_df = structural_similarity.global_distance_test_score(global_regions.regions)
    print(score_df.to_string(float_format=lambda value: f'{value:.3f}'))

    local_regions = structural_similarity.local_similarity_regions(local_threshold)
    print(f'\nLocal similarity regions under threshold {local_threshold:.2f} Å:')
    print('\n'.join(format_graph_statistics_table(local_regions)))
    print(f'{len(local_regions)} regions, sizes: {" ".join(str(region_size) for region_size in local_regions.region_sizes())}')

    if not (global_regions.is_exact and local_regions.is_exact):
        print('WARNING: the clique search budget was exhausted, some regions are best-effort and might not be maximum cliques.')

    if results_output_path is not None:
        regions_df = pd.concat(
            [structural_similarity.regions_dataframe(global_regions, 'global'), structural_similarity.regions_dataframe(local_regions, 'local')],
            ignore_index=True
        )
        regions_df.to_csv(results_output_path, index=False)

    if pymol_script is not None:
        pymol_script.write_text('\n'.join(structural_similarity.pymol_coloring_script(global_regions.regions)) + '\n')

    if chimera_script is not None:
        chimera_script.write_text('\n'.join(structural_similarity.chimera_coloring_script(global_regions.regions)) + '\n')

    return


@command_line_interface.command()
@click.argument('PDB_file', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path))
@click.option('--chain', type=str, default=None, help='Chain of the structure to use. Defaults to the first chain.')
@click.option('--output_path', type=click.Path(dir_okay=False, path_type=Path), default=None, callback=check_output_file_option('.csv'),
              help='Full path of the csv file where the distance matrix will be saved. Defaults to <PDB_ID>.CADistanceMatrix.csv in the current working directory.')
def distance_matrix(pdb_file: Path, chain: Optional[str], output_path: Optional[Path]) -> None:
    """
    Command to calculate the C alpha distance matrix of a structure and save it as a csv file. The first line of the file contains the residue IDs,
    followed by one line of comma separated distances (in Å) per residue.

    \b
    Arguments
    ---------
    PDB_FILE  Full path of the PDB or mmCIF file (optionally gunziped) of the structure (e.g: /home/user/Downloads/1A2Y.pdb).
    """
    if output_path is None:
        output_path = Path.cwd() / f'{get_structure_ID_from_file_path(pdb_file)}.CADistanceMatrix.csv'

    residue_IDs, C_alpha_distance_matrix = calculate_C_alpha_distance_matrix(pdb_file, chain_ID=chain)
    write_distance_matrix_file(output_path, residue_IDs, C_alpha_distance_matrix)
    print(f'Distance matrix of {len(residue_IDs)} residues saved to {str(output_path)}')

    return

@command_line_interface.command()
@click.argument('alpha_distance_matrix_file', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path))
@click.argument('beta_distance_matrix_file', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path))
@comparison_options
def compare(
        alpha_distance_matrix_file: Path, beta_distance_matrix_file: Path, local_threshold: float, global_thresholds: Tuple[float, ...],
        solver: str, max_expanded_nodes: Optional[int], time_limit: Optional[float], n_residues_in_reference: Optional[int],
        results_output_path: Optional[Path], pymol_script: Optional[Path], chimera_script: Optional[Path], progress_bar: bool, n_cores: int
    ) -> None:
    """
    Command to compare two structures from their distance matrix files, whose residues must already be aligned (i.e the i-th residue of the first file
    corresponds to the i-th residue of the second file).

    \b
    Arguments
    ---------
    ALPHA_DISTANCE_MATRIX_FILE  Full path of the distance matrix csv file of the reference structure. The structure ID is the file name up to the first dot (e.g: 1A2Y.CADistanceMatrix.csv -> 1A2Y).

    BETA_DISTANCE_MATRIX_FILE  Full path of the distance matrix csv file of the structure to compare against the reference.
    """
    distance_model = load_distance_model_from_files(alpha_distance_matrix_file, beta_distance_matrix_file)
    run_comparison(
        distance_model, n_residues_in_reference, local_threshold, global_thresholds, solver, max_expanded_nodes, time_limit,
        n_cores, progress_bar, results_output_path, pymol_script, chimera_script
    )
    return

@command_line_interface.command()
@click.argument('alpha_PDB_file', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path))
@click.argument('beta_PDB_file', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path))
@click.option('--alpha_chain', type=str, default=None, help='Chain of the reference structure to use. Defaults to the first chain.')
@click.option('--beta_chain', type=str, default=None, help='Chain of the compared structure to use. Defaults to the first chain.')
@comparison_options
def compare_structures(
        alpha_pdb_file: Path, beta_pdb_file: Path, alpha_chain: Optional[str], beta_chain: Optional[str], local_threshold: float,
        global_thresholds: Tuple[float, ...], solver: str, max_expanded_nodes: Optional[int], time_limit: Optional[float],
        n_residues_in_reference: Optional[int], results_output_path: Optional[Path], pymol_script: Optional[Path],
        chimera_script: Optional[Path], progress_bar: bool, n_cores: int
    ) -> None:
    """
    Command to compare two conformations of the same molecule from their PDB files. Residues are matched through their residue IDs (residue number
    and insertion code), residues present in only one of the structures are ignored.

    \b
    Arguments
    ---------
    ALPHA_PDB_FILE  Full path of the PDB or mmCIF file of the reference structure (e.g: /home/user/Downloads/1A2Y.pdb).

    BETA_PDB_FILE  Full path of the PDB or mmCIF file of the structure to compare against the reference.
    """
    distance_model, n_residues_in_alpha_structure = load_distance_model_from_PDB_files(alpha_pdb_file, beta_pdb_file, alpha_chain, beta_chain)
    if n_residues_in_reference is None:
        n_residues_in_reference = n_residues_in_alpha_structure

    run_comparison(
        distance_model, n_residues_in_reference, local_threshold, global_thresholds, solver, max_expanded_nodes, time_limit,
        n_cores, progress_bar, results_output_path, pymol_script, chimera_script
    )
    return

if __name__ == '__main__':
    command_line_interface(max_content_width=2000) # max_content_width=2000 allows help texts to span the entire width of the terminal
