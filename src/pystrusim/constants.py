from typing import Tuple

DEFAULT_LOCAL_SIMILARITY_THRESHOLD: float = 1.0 # Å
DEFAULT_GLOBAL_SIMILARITY_THRESHOLDS: Tuple[float, ...] = (1.0, 2.0, 4.0, 8.0) # Å, must be strictly ascending

# The angle between two distance vectors (all values >= 0) lies in [0°, 90°], which is rescaled to [0, 100]
MAX_ANGLE_BETWEEN_DISTANCE_VECTORS: float = 90.0
ANGULAR_DISTANCE_SCALE: float = 100.0

DISTANCE_MATRIX_FLOAT_PRECISION: int = 3

# Region 1 gets the first color, region 2 the second, etc. Regions beyond the palette keep the background color.
REGION_COLOR_PALETTE: Tuple[str, ...] = ('green', 'cyan', 'yellow', 'orange')
PYMOL_BACKGROUND_COLOR: str = 'red'
CHIMERA_BACKGROUND_COLOR: str = '#d7191c'

MAX_CLIQUE_SOLVER_NAMES: Tuple[str, ...] = ('branch_and_bound', 'networkx', 'greedy')
