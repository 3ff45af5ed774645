"""One-way exports between representations.

The containers share no runtime abstraction; these functions build a fresh
container of another representation from a snapshot of an existing one.
Node positions follow the index convention documented in
hyperforge.engine.matrix: position ``p`` is bit ``1 << p``.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from uuid import UUID

from hyperforge.engine.bits import BitHypergraph, mask_of, positions
from hyperforge.engine.matrix import MatrixHypergraph
from hyperforge.engine.sparse import SparseHypergraph
from hyperforge.errors import InvalidNodeError


def sparse_to_bits(
    graph: SparseHypergraph,
    order: Sequence[UUID] | None = None,
) -> tuple[BitHypergraph, list[UUID]]:
    """Export a sparse hypergraph to bitmasks.

    Args:
        graph: Source hypergraph
        order: Node for each bit position; defaults to the nodes sorted

    Returns:
        The bit hypergraph and the node order used (position -> node)

    Raises:
        InvalidNodeError: If order does not list every node exactly once
    """
    node_order = list(order) if order is not None else sorted(graph.nodes())
    if len(set(node_order)) != len(node_order) or set(node_order) != graph.nodes():
        raise InvalidNodeError("order must list every node of the hypergraph exactly once")
    position = {node: p for p, node in enumerate(node_order)}
    bits = BitHypergraph(len(node_order))
    for edge in graph.edges():
        bits.add_edge(
            mask_of(position[n] for n in edge.input),
            mask_of(position[n] for n in edge.output),
            edge.weight,
            edge.kind,
        )
    return bits, node_order


def bits_to_sparse(
    graph: BitHypergraph,
    id_generator: Callable[[], UUID | int] = uuid.uuid4,
) -> tuple[SparseHypergraph, list[UUID]]:
    """Export a bit hypergraph to node tokens; returns the graph and position -> token."""
    sparse = SparseHypergraph(id_generator=id_generator)
    tokens = sparse.add_nodes(graph.node_capacity)
    for edge in graph.edges():
        sparse.add_edge(
            [tokens[p] for p in positions(edge.input)],
            [tokens[p] for p in positions(edge.output)],
            edge.weight,
            edge.kind,
        )
    return sparse, tokens


def bits_to_matrix(graph: BitHypergraph) -> MatrixHypergraph:
    """Sum every edge's directed transitions into a weight matrix.

    Parallel edges collapse into one entry; entries summing to zero are dropped.
    """
    matrix = MatrixHypergraph(graph.node_capacity)
    for edge in graph.edges():
        matrix.add_edge(edge.input, edge.output, edge.weight, edge.kind)
    return matrix


def matrix_to_bits(graph: MatrixHypergraph) -> BitHypergraph:
    """One directed bit edge per live matrix entry."""
    bits = BitHypergraph(graph.node_capacity)
    for row, col, weight in graph.entries():
        bits.add_edge(row, col, weight)
    return bits
