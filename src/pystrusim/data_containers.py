from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

import numpy as np
import numpy.typing as npt
from typing_extensions import TypeAlias

Region: TypeAlias = Tuple[int, ...] # Sorted node indices of a clique, e.g: (0, 3, 4, 9)


@dataclass(frozen=True)
class Distance_model():
    """
    Aligned distance matrices of two structures, index i of the alpha structure corresponds to index i of the beta structure.
    The difference matrix is a masked array where every cell with i >= j is masked (i.e undefined), only the strict upper triangle is used.
    Use distance_model.create_distance_model() to build it, the arrays are made read-only there.
    """
    alpha_residue_IDs: Tuple[str, ...]
    beta_residue_IDs: Tuple[str, ...]
    alpha_distance_matrix: npt.NDArray[np.float64]
    beta_distance_matrix: npt.NDArray[np.float64]
    difference_matrix: np.ma.MaskedArray
    alpha_structure_ID: str = 'alpha'
    beta_structure_ID: str = 'beta'

    @property
    def n_residues(self) -> int:
        return len(self.alpha_residue_IDs)

@dataclass(frozen=True)
class Clique_search_result():
    """Clique returned by a max clique solver. is_exact is False when the search budget was exhausted (best-effort clique)."""
    region: Region
    is_exact: bool = True
    n_expanded_nodes: int = 0

    def __len__(self) -> int:
        return len(self.region)

@dataclass
class Similarity_graph_statistics():
    """Used to report the size of each similarity graph that was searched and how long the clique search took."""
    threshold: float
    n_nodes: int
    n_edges: int
    density: float
    runtime: float # Seconds

@dataclass
class Similarity_regions():
    """
    Ordered list of regions, either a clique cover of all the residues (local similarity) or one region per threshold (global similarity).
    """
    regions: List[Region] = field(default_factory=list)
    is_exact: bool = True # False as soon as one region is inexact
    thresholds: List[float] = field(default_factory=list) # Threshold of the graph each region was drawn from
    region_is_exact: List[bool] = field(default_factory=list) # False for the regions whose clique search ran out of budget
    graph_statistics: List[Similarity_graph_statistics] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self.regions)

    def __getitem__(self, index: int) -> Region:
        return self.regions[index]

    def region_sizes(self) -> List[int]:
        return [len(region) for region in self.regions]
