from typing import Iterable, Set

import networkx as nx
import numpy as np

from pystrusim.data_containers import Similarity_graph_statistics


def build_similarity_graph(difference_matrix: np.ma.MaskedArray, threshold: float, add_all_residues: bool = True) -> nx.Graph:
    """
    Builds the undirected similarity graph of the two structures: nodes are residue indices and an edge (i, j) is added when the distance
    between residues i and j differs by strictly less than the threshold between the two structures. Undefined (masked) cells never produce an edge.

    When add_all_residues is True (default), the N residues are added as nodes before any edge, so residues without any similar partner are still
    in the graph as isolated nodes and end up as singleton regions in a clique cover. When False, only residues with at least one edge are nodes.
    A threshold of 0 gives a graph without edges.
    """
    n_residues = difference_matrix.shape[0]
    defined_cells = ~np.ma.getmaskarray(difference_matrix)
    similar_cells = defined_cells & (np.ma.getdata(difference_matrix) < threshold)

    graph = nx.Graph()
    if add_all_residues:
        graph.add_nodes_from(range(n_residues))

    row_indices, column_indices = np.nonzero(similar_cells) # Row-major order, so the edges are always added in the same order
    graph.add_edges_from(zip(row_indices.tolist(), column_indices.tolist()))

    return graph

def get_region_neighborhood(graph: nx.Graph, region: Iterable[int]) -> Set[int]:
    """
    Closed neighborhood of the region: the region's own nodes plus every node adjacent to at least one of them.
    Region nodes that are not in the graph are ignored.
    """
    region_nodes = {node for node in region if node in graph}
    neighborhood = set(region_nodes)
    for node in region_nodes:
        neighborhood.update(graph.adj[node])

    return neighborhood

def restrict_graph_to_region_neighborhood(graph: nx.Graph, region: Iterable[int]) -> nx.Graph:
    """
    Derives a new graph, induced by the closed neighborhood of the region, from the given graph (which is left untouched).
    """
    neighborhood = get_region_neighborhood(graph, region)
    # Built node by node instead of graph.subgraph() so that nodes and edges keep the insertion order of the original graph
    ordered_nodes = [node for node in graph.nodes if node in neighborhood]
    restricted_graph = nx.Graph()
    restricted_graph.add_nodes_from(ordered_nodes)
    restricted_graph.add_edges_from(
        (node_1, node_2) for node_1, node_2 in graph.edges(ordered_nodes) if node_2 in neighborhood
    )

    return restricted_graph

def get_similarity_graph_statistics(graph: nx.Graph, threshold: float, runtime: float = 0.0) -> Similarity_graph_statistics:
    return Similarity_graph_statistics(
        threshold=threshold,
        n_nodes=graph.number_of_nodes(),
        n_edges=graph.number_of_edges(),
        density=nx.density(graph),
        runtime=runtime
    )
