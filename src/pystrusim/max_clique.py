import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import networkx as nx
from joblib import Parallel, delayed
from typing_extensions import TypeAlias

from pystrusim.data_containers import Clique_search_result, Region, Similarity_regions
from pystrusim.utils import get_tqdm_progress_bar

adjacency_type_alias: TypeAlias = Dict[int, Set[int]] # For mypy annotation
branch_result_type_alias: TypeAlias = Tuple[Region, bool, int] # (best clique of the branch, is_exact, number of expanded search nodes)


def get_adjacency_sets(graph: nx.Graph) -> adjacency_type_alias:
    return {node:set(graph.adj[node]) for node in graph.nodes}

def find_greedy_clique(adjacency: adjacency_type_alias) -> Region:
    """
    Goes through the nodes by decreasing degree (ties: lowest node index first) and adds every node adjacent to all the nodes already in the clique.
    """
    if not adjacency:
        return ()

    nodes_by_degree = sorted(adjacency, key=lambda node: (-len(adjacency[node]), node))
    clique: List[int] = []
    candidates = set(adjacency)
    for node in nodes_by_degree:
        if node not in candidates:
            continue

        clique.append(node)
        candidates &= adjacency[node] # Candidates stay adjacent to every node of the clique
        if not candidates:
            break

    return tuple(sorted(clique))

def get_degree_bound(degrees: List[int]) -> int:
    """
    Upper bound on the size of any clique among a set of candidates, given the number of neighbors each candidate has among the candidates:
    a clique of s nodes needs s candidates with at least s-1 neighbors each.
    """
    degree_bound = 0
    for rank, degree in enumerate(sorted(degrees, reverse=True), start=1):
        if degree < rank - 1:
            break
        degree_bound = rank

    return degree_bound

def greedy_coloring_exceeds(candidates: Tuple[int, ...], adjacency: adjacency_type_alias, max_n_colors: int) -> bool:
    """
    Greedily colors the candidates (adjacent nodes never share a color) and returns True as soon as more than max_n_colors colors are needed.
    The number of colors is an upper bound on the size of any clique among the candidates, so a False means no clique larger than max_n_colors exists.
    """
    color_classes: List[List[int]] = []
    for node in candidates:
        neighbors = adjacency[node]
        for color_class in color_classes:
            if neighbors.isdisjoint(color_class):
                color_class.append(node)
                break
        else:
            if len(color_classes) == max_n_colors:
                return True
            color_classes.append([node])

    return False


class Branch_and_bound_search():
    """
    Iterative depth first search of the cliques of a graph, expanding candidates in ascending node order. Only cliques strictly larger than the
    current best are recorded, so the retained clique is the first maximum clique in depth first order, which is the lexicographically smallest one.
    """
    def __init__(self, adjacency: adjacency_type_alias, initial_best_size: int, max_n_expanded_nodes: Optional[int], deadline: Optional[float]) -> None:
        self.adjacency = adjacency
        self.best_clique: Region = ()
        self.best_size = initial_best_size
        self.n_expanded_nodes = 0
        self.max_n_expanded_nodes = max_n_expanded_nodes
        self.deadline = deadline # time.monotonic() value
        self.budget_exhausted = False

    def is_budget_exhausted(self) -> bool:
        if self.max_n_expanded_nodes is not None and self.n_expanded_nodes >= self.max_n_expanded_nodes:
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return True
        return False

    def run(self, clique: Region, candidates: Tuple[int, ...]) -> None:
        # Each stack frame is [clique, candidates, position of the next candidate to branch on]. An explicit stack is used
        # instead of recursion given cliques of large structures can have more residues than Python's recursion limit.
        stack: List[List[Any]] = []
        self.expand(stack, clique, candidates)
        while stack:
            frame = stack[-1]
            frame_clique, frame_candidates, position = frame
            if position >= len(frame_candidates) or len(frame_clique) + len(frame_candidates) - position <= self.best_size:
                stack.pop()
                continue

            if self.is_budget_exhausted():
                self.budget_exhausted = True
                return

            frame[2] = position + 1
            node = frame_candidates[position]
            neighbors = self.adjacency[node]
            self.expand(
                stack,
                frame_clique + (node,),
                tuple(candidate for candidate in frame_candidates[position+1:] if candidate in neighbors)
            )

        return

    def expand(self, stack: List[List[Any]], clique: Region, candidates: Tuple[int, ...]) -> None:
        self.n_expanded_nodes += 1
        if len(clique) > self.best_size:
            self.best_size = len(clique)
            self.best_clique = clique

        if not candidates:
            return
        if len(clique) + len(candidates) <= self.best_size:
            return

        candidates_set = set(candidates)
        degrees = [len(self.adjacency[node] & candidates_set) for node in candidates]
        if min(degrees) == len(candidates) - 1:
            # The candidates are all adjacent to each other, so the whole subtree boils down to a single largest clique, which is also
            # the first one the depth first search would reach
            self.best_size = len(clique) + len(candidates)
            self.best_clique = clique + candidates
            return
        if len(clique) + get_degree_bound(degrees) <= self.best_size:
            return
        if not greedy_coloring_exceeds(candidates, self.adjacency, max_n_colors=self.best_size - len(clique)):
            return

        stack.append([clique, candidates, 0])
        return

def get_deadline(time_limit: Optional[float]) -> Optional[float]:
    return time.monotonic() + time_limit if time_limit is not None else None

def search_root_branch(
        root_node: int, adjacency: adjacency_type_alias, initial_best_size: int, max_n_expanded_nodes: Optional[int], time_limit: Optional[float]
    ) -> branch_result_type_alias:
    """
    Searches the cliques whose lowest node is root_node. Used to search the root branches independently from each other (i.e in parallel).
    """
    search = Branch_and_bound_search(adjacency, initial_best_size, max_n_expanded_nodes, get_deadline(time_limit))
    later_neighbors = tuple(sorted(node for node in adjacency[root_node] if node > root_node))
    search.run((root_node,), later_neighbors)

    return (search.best_clique, not search.budget_exhausted, search.n_expanded_nodes)


class Max_clique_solver(ABC):
    """
    Finds a maximum clique of a graph. Implementations must be deterministic for a given graph and document how they break ties
    between maximum cliques of equal size.
    """
    @abstractmethod
    def find_max_clique(self, graph: nx.Graph) -> Clique_search_result:
        """Returns one maximum clique of the graph, or an empty region if the graph has no nodes."""

    def get_clique_cover(self, graph: nx.Graph, progress_bar: bool = False) -> Similarity_regions:
        """
        Greedy clique cover: the maximum clique of the remaining graph is repeatedly recorded as the next region and its nodes removed,
        until no node remains. Each region is a maximum clique of the graph remaining at that step, which is a heuristic cover and not
        a partition with the minimum number of cliques. Nodes left without edges become singleton regions in ascending node order.
        The given graph is not modified.
        """
        remaining_graph: nx.Graph = graph.copy()
        clique_cover = Similarity_regions()
        tqdm_progress_bar = get_tqdm_progress_bar(total=graph.number_of_nodes(), desc='Clique cover') if progress_bar else None

        while remaining_graph.number_of_nodes() > 0:
            if remaining_graph.number_of_edges() == 0:
                singleton_regions: List[Region] = [(node,) for node in sorted(remaining_graph.nodes)]
                clique_cover.regions.extend(singleton_regions)
                clique_cover.region_is_exact.extend([True] * len(singleton_regions))
                remaining_graph.clear()
                if tqdm_progress_bar is not None:
                    tqdm_progress_bar.update(len(singleton_regions))
                break

            clique_search_result = self.find_max_clique(remaining_graph)
            if len(clique_search_result) == 0:
                raise RuntimeError(f'{type(self).__name__} returned an empty clique for a graph with {remaining_graph.number_of_nodes()} nodes.')

            clique_cover.regions.append(clique_search_result.region)
            clique_cover.region_is_exact.append(clique_search_result.is_exact)
            clique_cover.is_exact = clique_cover.is_exact and clique_search_result.is_exact
            remaining_graph.remove_nodes_from(clique_search_result.region) # Also removes the incident edges
            if tqdm_progress_bar is not None:
                tqdm_progress_bar.update(len(clique_search_result))

        if tqdm_progress_bar is not None:
            tqdm_progress_bar.close()

        return clique_cover


class Branch_and_bound_max_clique_solver(Max_clique_solver):
    """
    Exact branch and bound search, pruned with the number of remaining candidates and a greedy coloring bound, and initialized with a greedy clique.
    Tie policy: the lexicographically smallest (sorted) maximum clique is returned.

    The search can be given a budget: max_n_expanded_nodes bounds the number of search nodes and time_limit the wall-clock time in seconds.
    When the budget runs out the best clique found so far is returned, never smaller than the greedy clique, with is_exact set to False.
    With n_cores > 1 the root branches are searched in parallel with joblib and the budget applies to each root branch, the result of an
    exact search is identical to the sequential one.
    """
    def __init__(self, max_n_expanded_nodes: Optional[int] = None, time_limit: Optional[float] = None, n_cores: int = 1) -> None:
        if max_n_expanded_nodes is not None and max_n_expanded_nodes < 1:
            raise ValueError(f'max_n_expanded_nodes must be at least 1, but was {max_n_expanded_nodes}.')
        if time_limit is not None and time_limit <= 0:
            raise ValueError(f'time_limit must be strictly positive, but was {time_limit}.')
        if n_cores < 1:
            raise ValueError(f'n_cores must be at least 1, but was {n_cores}.')

        self.max_n_expanded_nodes = max_n_expanded_nodes
        self.time_limit = time_limit
        self.n_cores = n_cores

    def find_max_clique(self, graph: nx.Graph) -> Clique_search_result:
        adjacency = get_adjacency_sets(graph)
        if not adjacency:
            return Clique_search_result(region=())

        greedy_clique = find_greedy_clique(adjacency)
        initial_best_size = len(greedy_clique) - 1 # The search must still find the lexicographically smallest clique of the greedy clique's size

        if self.n_cores == 1:
            search = Branch_and_bound_search(adjacency, initial_best_size, self.max_n_expanded_nodes, get_deadline(self.time_limit))
            search.run((), tuple(sorted(adjacency)))
            best_clique, is_exact, n_expanded_nodes = search.best_clique, not search.budget_exhausted, search.n_expanded_nodes
        else:
            best_clique, is_exact, n_expanded_nodes = self.search_root_branches_in_parallel(adjacency, initial_best_size)

        if len(best_clique) < len(greedy_clique): # Only possible when the budget ran out
            best_clique = greedy_clique

        return Clique_search_result(region=best_clique, is_exact=is_exact, n_expanded_nodes=n_expanded_nodes)

    def search_root_branches_in_parallel(self, adjacency: adjacency_type_alias, initial_best_size: int) -> branch_result_type_alias:
        # Root branches that can't contain a clique larger than initial_best_size are not worth sending to a worker
        root_nodes = [
            node
            for node in sorted(adjacency)
            if 1 + sum(1 for neighbor in adjacency[node] if neighbor > node) > initial_best_size
        ]

        delayed_func: Callable[[int, adjacency_type_alias, int, Optional[int], Optional[float]], branch_result_type_alias] = delayed(search_root_branch)
        with Parallel(n_jobs=self.n_cores, return_as='generator') as parallel:
            results_generator: Iterator[branch_result_type_alias] = parallel(
                delayed_func(root_node, adjacency, initial_best_size, self.max_n_expanded_nodes, self.time_limit)
                for root_node in root_nodes
            )

            # Results come back in root node order, so keeping the first of the largest cliques gives the lexicographically smallest one
            best_clique: Region = ()
            is_exact = True
            n_expanded_nodes = 0
            for branch_clique, branch_is_exact, branch_n_expanded_nodes in results_generator:
                if len(branch_clique) > len(best_clique):
                    best_clique = branch_clique
                is_exact = is_exact and branch_is_exact
                n_expanded_nodes += branch_n_expanded_nodes

        return (best_clique, is_exact, n_expanded_nodes)


class Networkx_max_clique_solver(Max_clique_solver):
    """
    Exact and unbounded search with networkx's max_weight_clique, every node having a weight of 1.
    Ties follow networkx's search order, which is deterministic for a graph built in a fixed order.
    """
    def find_max_clique(self, graph: nx.Graph) -> Clique_search_result:
        if graph.number_of_nodes() == 0:
            return Clique_search_result(region=())

        clique, _ = nx.max_weight_clique(graph, weight=None)
        return Clique_search_result(region=tuple(sorted(clique)), is_exact=True)


class Greedy_max_clique_solver(Max_clique_solver):
    """
    Fast heuristic (see find_greedy_clique), ties are broken in favour of the lowest node index. The clique is reported as exact only when
    a greedy coloring of the whole graph proves that no larger clique exists.
    """
    def find_max_clique(self, graph: nx.Graph) -> Clique_search_result:
        adjacency = get_adjacency_sets(graph)
        if not adjacency:
            return Clique_search_result(region=())

        greedy_clique = find_greedy_clique(adjacency)
        is_exact = not greedy_coloring_exceeds(tuple(sorted(adjacency)), adjacency, max_n_colors=len(greedy_clique))

        return Clique_search_result(region=greedy_clique, is_exact=is_exact)


def get_max_clique_solver(solver_name: str, max_n_expanded_nodes: Optional[int] = None, time_limit: Optional[float] = None, n_cores: int = 1) -> Max_clique_solver:
    """
    ...
    """
    if solver_name == 'branch_and_bound':
        return Branch_and_bound_max_clique_solver(max_n_expanded_nodes=max_n_expanded_nodes, time_limit=time_limit, n_cores=n_cores)
    elif solver_name == 'networkx':
        return Networkx_max_clique_solver()
    elif solver_name == 'greedy':
        return Greedy_max_clique_solver()
    else:
        raise ValueError(f"'{solver_name}' is not a valid max clique solver, only 'branch_and_bound', 'networkx' and 'greedy' are.")
