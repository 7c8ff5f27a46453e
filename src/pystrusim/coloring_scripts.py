from typing import List, Sequence

from pystrusim.constants import (CHIMERA_BACKGROUND_COLOR,
                                 PYMOL_BACKGROUND_COLOR, REGION_COLOR_PALETTE)
from pystrusim.data_containers import Region


def get_residue_IDs_in_region(region: Region, residue_IDs: Sequence[str]) -> List[str]:
    """Translates the node indices of a region into the residue identifiers of one of the structures."""
    return [residue_IDs[node].strip() for node in region]

def join_residue_IDs(region: Region, residue_IDs: Sequence[str], delimiter: str) -> str:
    return delimiter.join(get_residue_IDs_in_region(region, residue_IDs))

def get_pymol_coloring_script(
        regions: Sequence[Region], alpha_structure_ID: str, beta_structure_ID: str,
        alpha_residue_IDs: Sequence[str], beta_residue_IDs: Sequence[str]
    ) -> List[str]:
    """
    PyMOL commands that select each region in both structures (clique1, clique2, ...) and color the first regions with the palette,
    the rest of the structures (including regions beyond the palette size) keep the background color.
    """
    pymol_script = ['hide everything', 'show cartoon']
    for region_number, region in enumerate(regions, start=1):
        pymol_script.append(
            f'select clique{region_number}, {alpha_structure_ID} and i. {join_residue_IDs(region, alpha_residue_IDs, "+")} '
            f'or {beta_structure_ID} and i. {join_residue_IDs(region, beta_residue_IDs, "+")}'
        )

    pymol_script.append(f'color {PYMOL_BACKGROUND_COLOR}')
    # Colored from the last region to the first so that the first regions end up on top
    n_colored_regions = min(len(regions), len(REGION_COLOR_PALETTE))
    for region_number in range(n_colored_regions, 0, -1):
        pymol_script.append(f'color {REGION_COLOR_PALETTE[region_number-1]}, clique{region_number}')

    return pymol_script

def get_chimera_coloring_script(regions: Sequence[Region], alpha_residue_IDs: Sequence[str], beta_residue_IDs: Sequence[str]) -> List[str]:
    """
    Chimera commands, the alpha structure being model #0 and the beta structure model #1. The background color comes first.
    """
    chimera_script = [f'color {CHIMERA_BACKGROUND_COLOR}']
    n_colored_regions = min(len(regions), len(REGION_COLOR_PALETTE))
    for region_index in range(n_colored_regions-1, -1, -1):
        color = REGION_COLOR_PALETTE[region_index]
        region = regions[region_index]
        chimera_script.append(
            f'color {color} #0:{join_residue_IDs(region, alpha_residue_IDs, ",")}; color {color} #1:{join_residue_IDs(region, beta_residue_IDs, ",")}'
        )

    return chimera_script
