"""Walks, diffusion and cuts over hypergraph containers.

random_walk() and cut_weight() accept any of the three containers; they
only rely on ``as_subset()`` and ``outgoing()``, which every container
implements for its own subset type (frozenset of tokens, bitmask, or
matrix index). diffuse() works on subset vectors, which are defined over
sparse hypergraphs.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from hyperforge.engine.bits import BitHypergraph, positions
from hyperforge.engine.matrix import MatrixHypergraph
from hyperforge.engine.sparse import SparseHypergraph
from hyperforge.engine.vector import SubsetVector, propagate
from hyperforge.errors import WeightNormalizationError

logger = logging.getLogger("hyperforge.traversal")

AnyHypergraph = Union[SparseHypergraph, BitHypergraph, MatrixHypergraph]


@dataclass
class Walk:
    """Result of a random walk.

    Attributes:
        sites: Subsets visited, starting with the start subset
        edges: Edge taken at each step (edge id, or ``(row, col)`` for matrices)
        weight: Product of the weights of the edges taken
        terminated: True if the walk stopped early at a subset with no outgoing edges
    """

    sites: list[Any] = field(default_factory=list)
    edges: list[Any] = field(default_factory=list)
    weight: float = 1.0
    terminated: bool = False

    @property
    def start(self) -> Any:
        return self.sites[0]

    @property
    def end(self) -> Any:
        return self.sites[-1]

    def __len__(self) -> int:
        """Number of steps taken."""
        return len(self.edges)


def _choose(moves: list[tuple[Any, Any, float]], rng: random.Random) -> tuple[Any, Any, float]:
    total = sum(abs(w) for _, _, w in moves)
    if total == 0.0 or not math.isfinite(total):
        raise WeightNormalizationError(
            f"Cannot normalize {len(moves)} outgoing weights into probabilities (sum={total})"
        )
    threshold = rng.random() * total
    cumulative = 0.0
    for move in moves:
        cumulative += abs(move[2])
        if threshold < cumulative:
            return move
    # rounding can leave threshold at the very top of the range
    return moves[-1]


def random_walk(
    graph: AnyHypergraph,
    start: Any,
    steps: int,
    rng: random.Random | None = None,
) -> Walk:
    """Walk from ``start`` for at most ``steps`` steps.

    At each step one outgoing edge is picked with probability proportional
    to the absolute value of its weight, and the walker moves to that
    edge's target subset. Undirected, oriented and blob edges are taken in
    whichever direction ``graph.outgoing()`` offers.

    Args:
        graph: Sparse, bit or matrix hypergraph
        start: Node or subset in the graph's own identity scheme
        steps: Step budget
        rng: Random source (default: a fresh unseeded Random)

    Raises:
        ValueError: If steps is negative
        WeightNormalizationError: If the outgoing weights sum to zero or overflow
    """
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got: {steps}")
    rng = rng or random.Random()
    state = graph.as_subset(start)
    walk = Walk(sites=[state])
    for step in range(steps):
        moves = graph.outgoing(state)
        if not moves:
            walk.terminated = True
            logger.debug("Walk reached a terminal subset after %d of %d steps", step, steps)
            break
        edge, state, weight = _choose(moves, rng)
        walk.sites.append(state)
        walk.edges.append(getattr(edge, "id", edge))
        walk.weight *= weight
    return walk


def extend(graph: AnyHypergraph, walk: Walk) -> list[Walk]:
    """Every one-step extension of ``walk``, in ``graph.outgoing()`` order.

    Each extension appends one available move and multiplies in its
    weight. The input walk is left untouched; a walk ending on a subset
    with no outgoing edges has no extensions.

    Raises:
        ValueError: If the walk has no sites
    """
    if not walk.sites:
        raise ValueError("Cannot extend a walk with no sites")
    return [
        Walk(
            sites=[*walk.sites, target],
            edges=[*walk.edges, getattr(edge, "id", edge)],
            weight=walk.weight * weight,
        )
        for edge, target, weight in graph.outgoing(walk.end)
    ]


def diffuse(graph: SparseHypergraph, vector: SubsetVector, steps: int = 1) -> SubsetVector:
    """Apply every edge of ``graph`` to ``vector``, ``steps`` times.

    Raises:
        ValueError: If the vector belongs to another hypergraph, or steps < 0
    """
    if vector.graph is not graph:
        raise ValueError("Vector belongs to a different hypergraph universe")
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got: {steps}")
    result = vector.copy()
    for _ in range(steps):
        result = propagate(result)
        if result.is_zero():
            break
    return result


def cut_weight(graph: AnyHypergraph, selected: Any) -> float:
    """Total weight of the edges that cross the cut around ``selected``.

    An edge crosses the cut when the nodes it touches (input and output
    together) include nodes both inside and outside ``selected``.
    """
    if isinstance(graph, SparseHypergraph):
        inside = graph.as_subset(selected)
        crossing: Iterable[tuple[Any, float]] = (
            (edge.id, edge.weight)
            for edge_id in _touching(graph, inside)
            for edge in [graph.get_edge(edge_id)]
            if edge.nodes - inside
        )
    elif isinstance(graph, BitHypergraph):
        mask = graph.as_subset(selected)
        crossing = (
            (edge.id, edge.weight)
            for edge_id in _touching(graph, positions(mask))
            for edge in [graph.get_edge(edge_id)]
            if (edge.input | edge.output) & ~mask
        )
    elif isinstance(graph, MatrixHypergraph):
        mask = graph.as_subset(selected)
        crossing = (
            ((row, col), weight)
            for row, col, weight in graph.entries()
            if (row | col) & mask and (row | col) & ~mask
        )
    else:
        raise TypeError(f"Unsupported hypergraph type: {type(graph).__name__}")
    return math.fsum(weight for _, weight in crossing)


def _touching(graph: SparseHypergraph | BitHypergraph, nodes: Iterable[Any]) -> list[int]:
    edge_ids: set[int] = set()
    for node in nodes:
        edge_ids.update(graph.find_edges(node))
    return sorted(edge_ids)
