"""Erdos-Renyi style random hypergraphs.

Every candidate ``(input subset, output subset)`` pair is included
independently with probability ``p``. Randomness comes from an injectable
``random.Random`` so generated graphs are reproducible:

    rng = random.Random(42)
    hg = erdos_renyi(6, 0.1, max_subset_size=2, rng=rng)
"""

from __future__ import annotations

import itertools
import logging
import random
import uuid
from collections.abc import Callable, Iterator, Sequence
from typing import TypeVar
from uuid import UUID

from hyperforge.engine.bits import BitHypergraph, mask_of
from hyperforge.engine.edges import EdgeKind, coerce_kind
from hyperforge.engine.sparse import SparseHypergraph
from hyperforge.errors import ExhaustedError

logger = logging.getLogger("hyperforge.generation")

T = TypeVar("T")

WeightFn = Callable[[random.Random], float]


def _default_weight(rng: random.Random) -> float:
    # (0, 1]; never zero
    return 1.0 - rng.random()


def _check_probability(probability: float) -> float:
    if isinstance(probability, bool) or not isinstance(probability, (int, float)):
        raise TypeError(f"probability must be a number, got: {type(probability).__name__}")
    if not 0.0 <= probability <= 1.0:
        raise ValueError(f"probability must be in [0, 1], got: {probability}")
    return float(probability)


def _check_size(size: int, num_nodes: int, label: str) -> int:
    if size < 0:
        raise ValueError(f"{label} must be non-negative, got: {size}")
    if size > num_nodes:
        raise ExhaustedError(f"{label} {size} exceeds the number of nodes ({num_nodes})")
    return size


def _subsets(nodes: Sequence[T], sizes: range) -> Iterator[tuple[T, ...]]:
    for size in sizes:
        yield from itertools.combinations(nodes, size)


def _candidate_pairs(
    nodes: Sequence[T], max_subset_size: int, include_empty: bool
) -> Iterator[tuple[tuple[T, ...], tuple[T, ...]]]:
    sizes = range(0 if include_empty else 1, max_subset_size + 1)
    for source in _subsets(nodes, sizes):
        for target in _subsets(nodes, sizes):
            if source or target:
                yield source, target


def erdos_renyi(
    num_nodes: int,
    probability: float,
    max_subset_size: int = 2,
    include_empty: bool = False,
    rng: random.Random | None = None,
    weight_fn: WeightFn | None = None,
    kind: EdgeKind | str = EdgeKind.DIRECTED,
    id_generator: Callable[[], UUID | int] = uuid.uuid4,
) -> SparseHypergraph:
    """Random sparse hypergraph over ``num_nodes`` fresh nodes.

    Args:
        num_nodes: Number of nodes to create
        probability: Inclusion probability of each candidate pair
        max_subset_size: Largest input/output subset considered
        include_empty: Also consider the empty set as an input or output
        rng: Random source (default: a fresh unseeded Random)
        weight_fn: Draws a weight from ``rng``; must not return zero
        kind: Kind given to every generated edge
        id_generator: Node id generator for the new graph

    Raises:
        ValueError: If probability is outside [0, 1]
        ExhaustedError: If max_subset_size exceeds num_nodes
    """
    p = _check_probability(probability)
    _check_size(num_nodes, num_nodes, "num_nodes")
    _check_size(max_subset_size, num_nodes, "max_subset_size")
    rng = rng or random.Random()
    weight_fn = weight_fn or _default_weight
    edge_kind = coerce_kind(kind)

    graph = SparseHypergraph(id_generator=id_generator)
    nodes = graph.add_nodes(num_nodes)
    for source, target in _candidate_pairs(nodes, max_subset_size, include_empty):
        if rng.random() < p:
            graph.add_edge(source, target, weight_fn(rng), edge_kind)

    logger.info(
        "Generated Erdos-Renyi hypergraph: %d nodes, %d edges (p=%g, max_subset_size=%d)",
        num_nodes,
        graph.num_edges(),
        p,
        max_subset_size,
    )
    return graph


def erdos_renyi_by_dimension(
    num_nodes: int,
    dimensions: Sequence[tuple[int, int, float]],
    rng: random.Random | None = None,
    weight_fn: WeightFn | None = None,
    kind: EdgeKind | str = EdgeKind.UNDIRECTED,
    id_generator: Callable[[], UUID | int] = uuid.uuid4,
) -> SparseHypergraph:
    """Random sparse hypergraph with a probability per ``(input size, output size)``.

    ``dimensions`` lists ``(in_dim, out_dim, p)`` triples; every pair of an
    ``in_dim``-subset and an ``out_dim``-subset is included with probability
    ``p``. A size of zero stands for the empty set. With ``[(1, 1, p)]`` and
    undirected edges this is the classic G(n, p) random graph, with an edge
    per ordered pair.

    Raises:
        ValueError: If any probability is outside [0, 1]
        ExhaustedError: If any dimension exceeds num_nodes
    """
    _check_size(num_nodes, num_nodes, "num_nodes")
    plan = [
        (
            _check_size(in_dim, num_nodes, "in_dim"),
            _check_size(out_dim, num_nodes, "out_dim"),
            _check_probability(p),
        )
        for in_dim, out_dim, p in dimensions
    ]
    rng = rng or random.Random()
    weight_fn = weight_fn or _default_weight
    edge_kind = coerce_kind(kind)

    graph = SparseHypergraph(id_generator=id_generator)
    nodes = graph.add_nodes(num_nodes)
    for in_dim, out_dim, p in plan:
        for source in itertools.combinations(nodes, in_dim):
            for target in itertools.combinations(nodes, out_dim):
                if (source or target) and rng.random() < p:
                    graph.add_edge(source, target, weight_fn(rng), edge_kind)

    logger.info(
        "Generated Erdos-Renyi hypergraph by dimension: %d nodes, %d edges over %d dimensions",
        num_nodes,
        graph.num_edges(),
        len(plan),
    )
    return graph


def erdos_renyi_bits(
    num_nodes: int,
    probability: float,
    max_subset_size: int = 2,
    include_empty: bool = False,
    rng: random.Random | None = None,
    weight_fn: WeightFn | None = None,
    kind: EdgeKind | str = EdgeKind.DIRECTED,
) -> BitHypergraph:
    """Bit-packed counterpart of erdos_renyi(); node ``p`` is bit ``1 << p``.

    Candidate pairs are visited in the same order as erdos_renyi(), so the
    same seed produces the same edges under the position <-> node mapping.
    """
    p = _check_probability(probability)
    _check_size(num_nodes, num_nodes, "num_nodes")
    _check_size(max_subset_size, num_nodes, "max_subset_size")
    rng = rng or random.Random()
    weight_fn = weight_fn or _default_weight
    edge_kind = coerce_kind(kind)

    graph = BitHypergraph(num_nodes)
    for source, target in _candidate_pairs(range(num_nodes), max_subset_size, include_empty):
        if rng.random() < p:
            graph.add_edge(mask_of(source), mask_of(target), weight_fn(rng), edge_kind)

    logger.info(
        "Generated Erdos-Renyi bit hypergraph: %d nodes, %d edges (p=%g)",
        num_nodes,
        graph.num_edges(),
        p,
    )
    return graph
