"""Sparse hypergraph representation.

General-purpose storage for low-density hypergraphs. Nodes are opaque 128-bit
tokens (``uuid.UUID``) handed out by an injectable id generator; edges are
kept in a registry keyed by a container-local integer id that is never
reused.

Indexes are maintained incrementally on every mutation so that neighbor
queries, node-removal cascades and walker steps never scan the full edge
registry:

- input index:  node -> ids of edges with the node in their input
- output index: node -> ids of edges with the node in their output
- empty-side set: ids of edges whose input or output is the empty set
- pair index: (input, output) -> ids of edges with exactly that pair

Not thread-safe: a container is meant to be owned by one thread. Wrap it in
an external read-write lock if it must be shared.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any
from uuid import UUID

from hyperforge.engine.edges import (
    Direction,
    EdgeKind,
    EdgeView,
    check_weight,
    coerce_direction,
    coerce_kind,
    image,
    normalize_ends,
    transitions,
)
from hyperforge.errors import (
    IndexCorruptionError,
    InvalidNodeError,
    NotFoundError,
)

logger = logging.getLogger("hyperforge.sparse")

NodeSet = frozenset[UUID]


def _power_set(nodes: NodeSet) -> Iterator[NodeSet]:
    ordered = sorted(nodes)
    for size in range(len(ordered) + 1):
        for combo in itertools.combinations(ordered, size):
            yield frozenset(combo)


def _as_node_id(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            raise InvalidNodeError(f"Not a valid node id: {value!r}") from None
    raise TypeError(f"Node id must be a UUID or UUID string, got: {type(value).__name__}")


@dataclass(frozen=True)
class SparseEdge:
    """A weighted hyperedge between two sets of node tokens.

    Attributes:
        id: Container-local edge id
        input: Nodes the edge maps from
        output: Nodes the edge maps to
        weight: Non-zero signed weight
        kind: Traversal annotation (see hyperforge.engine.edges)
    """

    id: int
    input: NodeSet
    output: NodeSet
    weight: float
    kind: EdgeKind = EdgeKind.DIRECTED

    @property
    def nodes(self) -> NodeSet:
        """Every node the edge touches."""
        return self.input | self.output

    @property
    def triple(self) -> tuple[NodeSet, NodeSet, float]:
        return self.input, self.output, self.weight

    def matches_input(self, nodes: Iterable[UUID]) -> bool:
        return self.input == frozenset(nodes)

    def matches_output(self, nodes: Iterable[UUID]) -> bool:
        return self.output == frozenset(nodes)

    def transitions(self) -> Iterator[tuple[NodeSet, NodeSet, float]]:
        """Directed ``(source, target, weight)`` triples this edge stands for."""
        return transitions(self.kind, self.input, self.output, self.weight, _power_set)

    def image(self, state: NodeSet) -> tuple[NodeSet, float] | None:
        """Target subset and weight when traversed from ``state``, or None."""
        return image(
            self.kind, self.input, self.output, self.weight, state, frozenset.issubset
        )


class SparseHypergraph:
    """Hypergraph over opaque node tokens with incrementally indexed edges.

    Example:
        hg = SparseHypergraph()
        a, b, c = hg.add_nodes(3)
        e = hg.add_edge({a}, {b, c}, 1.0)
        [edge.id for edge in hg.neighbors_of(a)]  # -> [e]
    """

    def __init__(self, id_generator: Callable[[], UUID | int] = uuid.uuid4) -> None:
        self.id: UUID = uuid.uuid4()
        self._id_generator = id_generator
        self._nodes: set[UUID] = set()
        self._retired: set[UUID] = set()
        self._edges: dict[int, SparseEdge] = {}
        self._next_edge_id = 0
        self._input_index: dict[UUID, set[int]] = defaultdict(set)
        self._output_index: dict[UUID, set[int]] = defaultdict(set)
        self._empty_side: set[int] = set()
        self._pair_index: dict[tuple[NodeSet, NodeSet], set[int]] = defaultdict(set)

    def __repr__(self) -> str:
        return f"SparseHypergraph(nodes={len(self._nodes)}, edges={len(self._edges)})"

    # ========== Node Operations ==========

    def add_node(self) -> UUID:
        """Register a fresh node token and return it.

        Raises:
            RuntimeError: If the id generator repeats a live or removed id.
                128-bit exhaustion is not a recoverable condition.
        """
        raw = self._id_generator()
        node_id = raw if isinstance(raw, UUID) else UUID(int=raw)
        if node_id in self._nodes:
            raise RuntimeError(f"Id generator produced a duplicate node id: {node_id}")
        if node_id in self._retired:
            raise RuntimeError(f"Id generator produced a removed node id: {node_id}")
        self._nodes.add(node_id)
        return node_id

    def add_nodes(self, count: int) -> list[UUID]:
        """Register ``count`` fresh nodes."""
        return [self.add_node() for _ in range(count)]

    def remove_node(self, node: UUID | str) -> list[int]:
        """Remove a node and every edge referencing it.

        Returns:
            Ids of the edges removed by the cascade, sorted

        Raises:
            NotFoundError: If the node is not registered
        """
        node_id = self._require_node(node)
        edge_ids = sorted(
            self._input_index.get(node_id, set()) | self._output_index.get(node_id, set())
        )
        for edge_id in edge_ids:
            self._detach(self._edges[edge_id])
        self._nodes.discard(node_id)
        self._retired.add(node_id)
        if edge_ids:
            logger.debug("Removed node %s and %d incident edges", node_id, len(edge_ids))
        return edge_ids

    def has_node(self, node: UUID | str) -> bool:
        try:
            return _as_node_id(node) in self._nodes
        except (InvalidNodeError, TypeError):
            return False

    def nodes(self) -> set[UUID]:
        """Copy of the live node set."""
        return set(self._nodes)

    def num_nodes(self) -> int:
        return len(self._nodes)

    def as_subset(self, nodes: UUID | str | Iterable[UUID | str]) -> NodeSet:
        """Coerce a node or collection of nodes into a validated subset.

        Raises:
            InvalidNodeError: If any node is not registered
        """
        if isinstance(nodes, (UUID, str)):
            subset = frozenset({_as_node_id(nodes)})
        else:
            subset = frozenset(_as_node_id(n) for n in nodes)
        missing = subset - self._nodes
        if missing:
            raise InvalidNodeError(
                f"Nodes not registered in this hypergraph: {sorted(str(n) for n in missing)}"
            )
        return subset

    # ========== Edge Operations ==========

    def add_edge(
        self,
        input: Iterable[UUID | str],
        output: Iterable[UUID | str],
        weight: float,
        kind: EdgeKind | str = EdgeKind.DIRECTED,
    ) -> int:
        """Add a hyperedge and return its id.

        Parallel edges (same input and output) are allowed and kept distinct.

        Raises:
            ZeroWeightError: If weight is exactly zero
            InvalidNodeError: If any referenced node is not registered
        """
        edge_kind = coerce_kind(kind)
        value = check_weight(weight)
        in_nodes, out_nodes = normalize_ends(
            edge_kind, self.as_subset(input), self.as_subset(output)
        )
        edge = SparseEdge(self._next_edge_id, in_nodes, out_nodes, value, edge_kind)
        self._next_edge_id += 1
        self._attach(edge)
        return edge.id

    def get_edge(self, edge_id: int) -> SparseEdge:
        """Raises NotFoundError if the edge is absent."""
        edge = self._edges.get(edge_id)
        if edge is None:
            raise NotFoundError(f"Edge not found: {edge_id!r}")
        return edge

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edges

    def remove_edge(self, edge_id: int) -> SparseEdge:
        """Remove an edge and return it.

        Raises:
            NotFoundError: If the edge is absent
        """
        edge = self.get_edge(edge_id)
        self._detach(edge)
        return edge

    def update_weight(self, edge_id: int, weight: float) -> SparseEdge:
        """Replace an edge's weight in place. Zero is rejected; remove the edge instead."""
        edge = self.get_edge(edge_id)
        updated = replace(edge, weight=check_weight(weight))
        self._edges[edge_id] = updated
        return updated

    def add_input_node(self, edge_id: int, node: UUID | str) -> SparseEdge:
        """Add ``node`` to an edge's input and return the updated edge.

        The edge keeps its id, weight and kind. Loops and blobs are
        re-normalized, so the node lands wherever their shape puts it.

        Raises:
            NotFoundError: If the edge is absent
            InvalidNodeError: If the node is not registered
        """
        edge = self.get_edge(edge_id)
        return self._reshape(edge, edge.input | self.as_subset(node), edge.output)

    def add_output_node(self, edge_id: int, node: UUID | str) -> SparseEdge:
        """Add ``node`` to an edge's output. See add_input_node()."""
        edge = self.get_edge(edge_id)
        return self._reshape(edge, edge.input, edge.output | self.as_subset(node))

    def remove_input_node(self, edge_id: int, node: UUID | str) -> SparseEdge:
        """Drop ``node`` from an edge's input and return the updated edge.

        A loop loses the node on both sides.

        Raises:
            NotFoundError: If the edge is absent or the node is not in its input
        """
        edge = self.get_edge(edge_id)
        node_id = self._endpoint(edge, node, "input")
        return self._reshape(edge, edge.input - {node_id}, self._without(edge, node_id))

    def remove_output_node(self, edge_id: int, node: UUID | str) -> SparseEdge:
        """Drop ``node`` from an edge's output. See remove_input_node()."""
        edge = self.get_edge(edge_id)
        node_id = self._endpoint(edge, node, "output")
        return self._reshape(edge, self._without(edge, node_id, "input"), edge.output - {node_id})

    @staticmethod
    def _endpoint(edge: SparseEdge, node: UUID | str, side: str) -> UUID:
        node_id = _as_node_id(node)
        if node_id not in getattr(edge, side):
            raise NotFoundError(f"Node {node_id} is not in the {side} of edge {edge.id}")
        return node_id

    @staticmethod
    def _without(edge: SparseEdge, node_id: UUID, side: str = "output") -> NodeSet:
        ends: NodeSet = getattr(edge, side)
        return ends - {node_id} if edge.kind is EdgeKind.LOOP else ends

    def _reshape(self, edge: SparseEdge, input: NodeSet, output: NodeSet) -> SparseEdge:
        in_nodes, out_nodes = normalize_ends(edge.kind, input, output)
        updated = replace(edge, input=in_nodes, output=out_nodes)
        self._detach(edge)
        self._attach(updated)
        logger.debug("Reshaped edge %d", edge.id)
        return updated

    def edges(self) -> list[SparseEdge]:
        """All edges, in edge-id order."""
        return [self._edges[eid] for eid in sorted(self._edges)]

    def num_edges(self) -> int:
        return len(self._edges)

    def edge_rows(self) -> Iterator[tuple[list[str], list[str], float]]:
        """Flat ``(input, output, weight)`` rows for tabular export.

        Node tokens are rendered as sorted UUID strings.
        """
        for edge in self.edges():
            yield (
                sorted(str(n) for n in edge.input),
                sorted(str(n) for n in edge.output),
                edge.weight,
            )

    # ========== Queries ==========

    def neighbors_of(
        self,
        node: UUID | str,
        direction: Direction | str = Direction.AS_INPUT,
    ) -> EdgeView[SparseEdge]:
        """Edges in which ``node`` takes part on the given side.

        The returned view is lazy and restartable and always reflects the
        current index contents.

        Raises:
            NotFoundError: If the node is not registered
        """
        node_id = self._require_node(node)
        index = (
            self._input_index
            if coerce_direction(direction) is Direction.AS_INPUT
            else self._output_index
        )
        return EdgeView(self._edges, lambda: index.get(node_id, set()))

    def find_edges(self, containing: UUID | str) -> list[int]:
        """Ids of all edges with ``containing`` in their input or output, sorted."""
        node_id = self._require_node(containing)
        return sorted(
            self._input_index.get(node_id, set()) | self._output_index.get(node_id, set())
        )

    def edges_between(
        self,
        input: Iterable[UUID | str],
        output: Iterable[UUID | str],
    ) -> list[int]:
        """Ids of all edges stored with exactly this ``(input, output)`` pair."""
        key = (self.as_subset(input), self.as_subset(output))
        return sorted(self._pair_index.get(key, set()))

    def find_edge(
        self,
        input: Iterable[UUID | str],
        output: Iterable[UUID | str],
    ) -> int | None:
        """Lowest edge id with this exact pair, or None."""
        matches = self.edges_between(input, output)
        return matches[0] if matches else None

    def edges_from(self, subset: UUID | str | Iterable[UUID | str]) -> list[SparseEdge]:
        """Edges whose stored input is exactly ``subset``."""
        state = self.as_subset(subset)
        return [
            self._edges[eid] for eid in self._candidates(state) if self._edges[eid].input == state
        ]

    def outgoing(
        self, subset: UUID | str | Iterable[UUID | str]
    ) -> list[tuple[SparseEdge, NodeSet, float]]:
        """Every ``(edge, target, weight)`` a walker on ``subset`` can take.

        Derived kinds are honored: undirected and oriented edges can be
        taken backwards, blobs from any subset of the blob.
        """
        state = self.as_subset(subset)
        moves = []
        for edge_id in self._candidates(state):
            edge = self._edges[edge_id]
            landing = edge.image(state)
            if landing is not None:
                moves.append((edge, landing[0], landing[1]))
        return moves

    def _candidates(self, state: NodeSet) -> list[int]:
        """Edge ids that might be traversable from ``state``, sorted."""
        if not state:
            return sorted(self._empty_side)
        pivot = min(
            state,
            key=lambda n: len(self._input_index.get(n, ())) + len(self._output_index.get(n, ())),
        )
        return sorted(
            self._input_index.get(pivot, set()) | self._output_index.get(pivot, set())
        )

    # ========== Index Maintenance ==========

    def _require_node(self, node: UUID | str) -> UUID:
        node_id = _as_node_id(node)
        if node_id not in self._nodes:
            raise NotFoundError(f"Node not found: {node_id}")
        return node_id

    def _attach(self, edge: SparseEdge) -> None:
        self._edges[edge.id] = edge
        for node_id in edge.input:
            self._input_index[node_id].add(edge.id)
        for node_id in edge.output:
            self._output_index[node_id].add(edge.id)
        if not edge.input or not edge.output:
            self._empty_side.add(edge.id)
        self._pair_index[(edge.input, edge.output)].add(edge.id)

    def _detach(self, edge: SparseEdge) -> None:
        for index, side in ((self._input_index, edge.input), (self._output_index, edge.output)):
            for node_id in side:
                bucket = index.get(node_id)
                if bucket is None or edge.id not in bucket:
                    raise IndexCorruptionError(
                        f"Edge {edge.id} missing from the adjacency bucket of node {node_id}"
                    )
                bucket.discard(edge.id)
                # Clean up empty buckets to prevent memory leaks
                if not bucket:
                    del index[node_id]
        self._empty_side.discard(edge.id)
        pair_key = (edge.input, edge.output)
        self._pair_index[pair_key].discard(edge.id)
        if not self._pair_index[pair_key]:
            del self._pair_index[pair_key]
        del self._edges[edge.id]

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        """Node and edge counts, with edges broken down by kind."""
        by_kind: dict[str, int] = defaultdict(int)
        for edge in self._edges.values():
            by_kind[edge.kind.value] += 1
        return {
            "num_nodes": len(self._nodes),
            "num_edges": len(self._edges),
            "edges_by_kind": dict(by_kind),
        }

    def validate(self) -> dict[str, Any]:
        """Check that registries and indexes agree.

        Returns:
            Dict with 'valid' (bool) and 'errors' (list of descriptions)
        """
        errors: list[str] = []
        for edge_id, edge in self._edges.items():
            dangling = edge.nodes - self._nodes
            if dangling:
                errors.append(
                    f"Edge {edge_id} references removed nodes: {sorted(str(n) for n in dangling)}"
                )
            for node_id in edge.input:
                if edge_id not in self._input_index.get(node_id, set()):
                    errors.append(f"Edge {edge_id} missing from input index of {node_id}")
            for node_id in edge.output:
                if edge_id not in self._output_index.get(node_id, set()):
                    errors.append(f"Edge {edge_id} missing from output index of {node_id}")
            if (not edge.input or not edge.output) and edge_id not in self._empty_side:
                errors.append(f"Edge {edge_id} missing from empty-side index")
            if edge_id not in self._pair_index.get((edge.input, edge.output), set()):
                errors.append(f"Edge {edge_id} missing from pair index")

        for side, index in (("input", self._input_index), ("output", self._output_index)):
            for node_id, edge_ids in index.items():
                if node_id not in self._nodes:
                    errors.append(f"The {side} index contains removed node {node_id}")
                for edge_id in edge_ids:
                    edge = self._edges.get(edge_id)
                    if edge is None:
                        errors.append(
                            f"The {side} index of {node_id} references missing edge {edge_id}"
                        )
                    elif node_id not in getattr(edge, side):
                        errors.append(
                            f"The {side} index of {node_id} lists edge {edge_id} "
                            f"which does not contain it"
                        )
        for node_id in sorted(self._nodes & self._retired):
            errors.append(f"Node {node_id} is both live and removed")
        for edge_id in self._empty_side:
            if edge_id not in self._edges:
                errors.append(f"Empty-side index references missing edge {edge_id}")
        for pair_ids in self._pair_index.values():
            for edge_id in pair_ids:
                if edge_id not in self._edges:
                    errors.append(f"Pair index references missing edge {edge_id}")

        return {"valid": not errors, "errors": errors}

    def check_integrity(self) -> None:
        """Raise IndexCorruptionError if validate() finds any problem."""
        result = self.validate()
        if not result["valid"]:
            raise IndexCorruptionError("; ".join(result["errors"]))

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        """Export to a JSON-compatible dict."""
        return {
            "representation": "sparse",
            "id": str(self.id),
            "nodes": sorted(str(n) for n in self._nodes),
            "retired": sorted(str(n) for n in self._retired),
            "edges": [
                {
                    "id": edge.id,
                    "input": sorted(str(n) for n in edge.input),
                    "output": sorted(str(n) for n in edge.output),
                    "weight": edge.weight,
                    "kind": edge.kind.value,
                }
                for edge in self.edges()
            ],
            "next_edge_id": self._next_edge_id,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        id_generator: Callable[[], UUID | int] = uuid.uuid4,
    ) -> SparseHypergraph:
        """Import from a dict produced by to_dict(), keeping node and edge ids."""
        graph = cls(id_generator=id_generator)
        if data.get("id"):
            graph.id = UUID(str(data["id"]))
        graph._nodes = {_as_node_id(n) for n in data.get("nodes", [])}
        graph._retired = {_as_node_id(n) for n in data.get("retired") or []}
        for edge_data in data.get("edges", []):
            edge_id = int(edge_data["id"])
            if edge_id in graph._edges:
                raise ValueError(f"Duplicate edge id in serialized data: {edge_id}")
            kind = coerce_kind(edge_data.get("kind", EdgeKind.DIRECTED))
            in_nodes, out_nodes = normalize_ends(
                kind, graph.as_subset(edge_data["input"]), graph.as_subset(edge_data["output"])
            )
            graph._attach(
                SparseEdge(edge_id, in_nodes, out_nodes, check_weight(edge_data["weight"]), kind)
            )
        graph._next_edge_id = max(
            int(data.get("next_edge_id", 0)),
            max(graph._edges, default=-1) + 1,
        )
        return graph
