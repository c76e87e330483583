"""
Moving Target D* planner.

This module implements the Moving Target D* (MT-D*) incremental search
algorithm. The planner keeps a search tree rooted at the agent between
queries. When the target moves, a key offset keeps the priority queue
ordered under the new heuristic; when the agent moves, only the part of
the tree that no longer hangs below the agent is thrown away. Both cases
reuse as much of the previous search as possible instead of planning
from scratch.

Reference: Sun, X., Yeoh, W., & Koenig, S. (2010). Moving Target D* Lite.
"""

import heapq
import itertools
import logging
import math
from typing import Dict, Hashable, List, Optional, Set, Tuple

from .graph import Edge, Graph
from .heuristics import HeuristicTable
from .solver import MovingTargetSearchSolver
from .utils import ExpandCounter, PathNotFoundError


logger = logging.getLogger(__name__)

INF = float('inf')
INF_KEY = (INF, INF)

# Marks a heap entry whose node has been removed or re-keyed
_REMOVED = object()


class MTDStarPlanner(MovingTargetSearchSolver):
    """
    Moving Target D* incremental path planner.

    Per-node search state (g, rhs, h, key, parent pointers) is owned by the
    planner and kept in dictionaries keyed by node; the graph and the
    heuristic table are only read.
    """

    def __init__(self, max_expansions: Optional[int] = None):
        """
        Initialize the planner.

        Args:
            max_expansions: Upper bound on expansions in a single relocation
                (None for unlimited)
        """
        self.max_expansions = max_expansions

        self.graph: Optional[Graph] = None
        self.heuristic: Optional[HeuristicTable] = None
        self.counter: Optional[ExpandCounter] = None

        # Current target and agent (search tree root)
        self.target: Optional[Hashable] = None
        self.agent: Optional[Hashable] = None

        # MT-D* state variables
        self.g: Dict[Hashable, float] = {}  # Cost from the agent
        self.rhs: Dict[Hashable, float] = {}  # One-step lookahead
        self.h: Dict[Hashable, float] = {}  # Heuristic to the current target
        self.keys: Dict[Hashable, Tuple[float, float]] = {}
        self.parent: Dict[Hashable, Optional[Hashable]] = {}
        self.edge_to_parent: Dict[Hashable, Optional[Edge]] = {}

        # Open list: heap of [key, count, node] entries with lazy deletion
        self.open_heap: List[list] = []
        self.open_entries: Dict[Hashable, list] = {}
        self._entry_count = itertools.count()

        # Nodes expanded so far in this session
        self.closed: Set[Hashable] = set()

        # Key offset (k_m in the paper)
        self.k: float = 0.0

    def initialize(self, graph: Graph, target: Hashable, agent: Hashable,
                   counter: Optional[ExpandCounter] = None,
                   heuristic: Optional[HeuristicTable] = None):
        """
        Start a new search session.

        Args:
            graph: Static graph to search on
            target: Initial target node
            agent: Initial agent node
            counter: Sink notified once per node expansion
            heuristic: Precomputed heuristic table (exact table if omitted)
        """
        for node in (target, agent):
            if node not in graph:
                raise ValueError(f"Node {node!r} is not in the graph")

        self.graph = graph
        self.heuristic = heuristic if heuristic is not None else HeuristicTable.from_graph(graph)
        self.counter = counter if counter is not None else ExpandCounter()
        self.target = target
        self.agent = agent

        self._initialize_nodes()
        self.rhs[agent] = 0.0
        self.k = 0.0

        self.open_heap = []
        self.open_entries = {}
        self.closed = set()

        self._set_heuristics()

        # Start node should be open for expanding
        self._insert(agent)

        logger.debug("MT-D* initialized: %d nodes, agent=%r, target=%r",
                     len(graph), agent, target)

    def _initialize_nodes(self):
        """Reset the search values of every node."""
        for node in self.graph.nodes:
            self.g[node] = INF
            self.rhs[node] = INF
            self.parent[node] = None
            self.edge_to_parent[node] = None
        self.keys.clear()

    def _set_heuristics(self):
        """Look up the heuristic of every node for the current target."""
        for node in self.graph.nodes:
            self.h[node] = self.heuristic.get(node, self.target)

    def _calculate_key(self, node: Hashable) -> Tuple[float, float]:
        """
        Calculate the priority key for a node.

        The first component is min(g, rhs) + h + k; the second one breaks
        ties in favour of nodes with smaller cost.

        Args:
            node: Node to evaluate

        Returns:
            Priority key (k1, k2)
        """
        min_val = min(self.g[node], self.rhs[node])
        return (min_val + self.h[node] + self.k, min_val)

    # -----------------------------
    # Open list
    # -----------------------------

    def _insert(self, node: Hashable):
        """Insert a node into the open list with a freshly calculated key."""
        key = self._calculate_key(node)
        self.keys[node] = key
        entry = [key, next(self._entry_count), node]
        self.open_entries[node] = entry
        heapq.heappush(self.open_heap, entry)

    def _remove(self, node: Hashable):
        """Remove a node from the open list if it is contained."""
        entry = self.open_entries.pop(node, None)
        if entry is not None:
            entry[-1] = _REMOVED

    def _top(self) -> Tuple[Tuple[float, float], Optional[Hashable]]:
        """Get the key and node at the top of the open list."""
        while self.open_heap:
            key, _, node = self.open_heap[0]
            if node is not _REMOVED:
                return key, node
            heapq.heappop(self.open_heap)
        return INF_KEY, None

    def _rekey_open_list(self):
        """Recalculate the key of every open node and rebuild the heap."""
        nodes = list(self.open_entries)
        self.open_heap = []
        self.open_entries = {}
        for node in nodes:
            self._insert(node)

    def in_open_list(self, node: Hashable) -> bool:
        return node in self.open_entries

    @property
    def open_list_size(self) -> int:
        return len(self.open_entries)

    # -----------------------------
    # Search
    # -----------------------------

    def _update_state(self, node: Hashable):
        """
        Keep a node in the open list exactly while it is inconsistent.

        Args:
            node: Node whose g or rhs value may have changed
        """
        if self.g[node] != self.rhs[node]:
            # Update key in priority queue -> remove -> add
            self._remove(node)
            self._insert(node)
        elif node in self.open_entries:
            self._remove(node)

    def _update_rhs_from_predecessors(self, node: Hashable):
        """Set rhs and parent pointers of a node from its best predecessor."""
        best = INF
        best_edge = None
        for edge in self.graph.predecessors(node):
            cost = self.g[edge.source] + edge.weight
            if cost < best:
                best = cost
                best_edge = edge

        self.rhs[node] = best
        if best_edge is None:
            self.parent[node] = None
            self.edge_to_parent[node] = None
        else:
            self.parent[node] = best_edge.source
            self.edge_to_parent[node] = best_edge

    def compute_cost_minimal_path(self) -> int:
        """
        Expand nodes until the target is consistent and no open node has a
        smaller key, which makes g(target) the cost of a cheapest path.

        Returns:
            Number of expansions performed

        Raises:
            PathNotFoundError: If the expansion limit is exceeded
        """
        expansions = 0

        while True:
            top_key, u = self._top()
            target = self.target
            target_consistent = self.g[target] == self.rhs[target]

            if u is None:
                break
            if not (top_key < self._calculate_key(target) or not target_consistent):
                break

            k_old = top_key
            k_new = self._calculate_key(u)

            if k_old < k_new:
                # Stale key: reinsert and let cheaper nodes go first
                self._remove(u)
                self._insert(u)
            elif self.g[u] > self.rhs[u]:
                expansions += 1
                if self.max_expansions is not None and expansions > self.max_expansions:
                    raise PathNotFoundError(
                        f"Expansion limit of {self.max_expansions} exceeded",
                        target=self.target, agent=self.agent)

                self.counter.count_node_expand()
                self.g[u] = self.rhs[u]
                self._remove(u)
                self.closed.add(u)

                for edge in self.graph.successors(u):
                    s = edge.target
                    if s != self.agent and self.rhs[s] > self.g[u] + edge.weight:
                        self.parent[s] = u
                        self.edge_to_parent[s] = edge
                        self.rhs[s] = self.g[u] + edge.weight
                        self._update_state(s)
            else:
                self.g[u] = INF
                self._update_state(u)

                for edge in self.graph.successors(u):
                    s = edge.target
                    if s != self.agent and self.parent[s] == u:
                        self._update_rhs_from_predecessors(s)
                    self._update_state(s)

        return expansions

    def _subtree_nodes(self, root: Hashable) -> Set[Hashable]:
        """
        Calculate the set of nodes in the search tree below a root.

        Args:
            root: Root of the subtree

        Returns:
            Root and all its descendants along parent pointers
        """
        subtree = {root}
        stack = [root]
        while stack:
            node = stack.pop()
            for edge in self.graph.successors(node):
                s = edge.target
                if s not in subtree and self.parent[s] == node:
                    subtree.add(s)
                    stack.append(s)
        return subtree

    def _optimized_deletion(self):
        """
        Adjust the search tree to a new agent position.

        Nodes of the old tree that do not hang below the new agent are
        reset and then re-seeded from whichever neighbours still carry a
        finite cost.
        """
        root = self.agent
        self.parent[root] = None
        self.edge_to_parent[root] = None

        subtree = self._subtree_nodes(root)
        deleted = (set(self.open_entries) | self.closed) - subtree

        for s in deleted:
            self.parent[s] = None
            self.edge_to_parent[s] = None
            self.rhs[s] = INF
            self.g[s] = INF
            self._remove(s)
            self.closed.discard(s)

        for s in deleted:
            self._update_rhs_from_predecessors(s)
            if self.rhs[s] < INF:
                self._insert(s)

        # g-values of the kept subtree are still measured from the old
        # agent; pinning the root lets them converge to the new costs
        self.rhs[root] = 0.0
        self._update_state(root)

        logger.debug("Optimized deletion: kept %d nodes, deleted %d nodes",
                     len(subtree), len(deleted))

    def relocate(self, target: Hashable, agent: Hashable) -> List[Edge]:
        """
        Move the target and/or the agent and return a cheapest path.

        Args:
            target: New target node
            agent: New agent node

        Returns:
            Edges from the agent to the target, in travel order

        Raises:
            PathNotFoundError: If the target is unreachable from the agent
        """
        if self.graph is None:
            raise RuntimeError("Planner must be initialized before relocating")
        for node in (target, agent):
            if node not in self.graph:
                raise ValueError(f"Node {node!r} is not in the graph")

        old_target = self.target
        old_agent = self.agent
        self.target = target
        self.agent = agent

        offset = self.heuristic.get(target, old_target)
        rekey = not math.isfinite(offset)
        if not rekey:
            self.k += offset

        self._set_heuristics()
        if rekey:
            # No finite offset keeps old keys below the new ones
            self._rekey_open_list()

        if agent != old_agent:
            self._optimized_deletion()

        expansions = self.compute_cost_minimal_path()

        if self.rhs[target] == INF:
            logger.debug("No path from %r to %r after %d expansions",
                         agent, target, expansions)
            raise PathNotFoundError(f"No path from {agent!r} to {target!r}",
                                    target=target, agent=agent)

        path = self._extract_path()
        logger.debug("Relocated to target=%r agent=%r: %d expansions, %d edges, "
                     "cost=%.3f, k=%.3f", target, agent, expansions, len(path),
                     self.rhs[target], self.k)
        return path

    def _extract_path(self) -> List[Edge]:
        """
        Extract the path by following parent pointers from the target.

        Returns:
            Edges from the agent to the target
        """
        path = []
        current = self.target

        for _ in range(len(self.graph)):
            edge = self.edge_to_parent[current]
            if edge is None:
                break
            path.append(edge)
            current = edge.source
        else:
            raise PathNotFoundError("Parent pointers do not lead back to the agent",
                                    target=self.target, agent=self.agent)

        if current != self.agent:
            raise PathNotFoundError("Parent pointers do not lead back to the agent",
                                    target=self.target, agent=self.agent)

        # Reverse the order to get the path from agent to target
        path.reverse()
        return path

    def path_cost(self) -> float:
        """Cost of the current path to the target (rhs of the target)."""
        return self.rhs[self.target]

    @property
    def expanded_nodes(self) -> Set[Hashable]:
        return set(self.closed)
