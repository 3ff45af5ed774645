"""Bit-packed hypergraph representation.

Dense storage for node universes of fixed size N known at construction. A
subset of nodes is an integer bitmask: bit ``p`` is set iff the node at
position ``p`` belongs to the subset. Node ``p`` *is* the singleton mask
``1 << p``, so every position in ``[0, N)`` is always present and there is
no add/remove node operation.

Union, intersection, complement and subset tests are single bitwise
operations on Python integers, which cost one machine operation per word of
the mask. Neighbor queries go through per-position buckets maintained on
every mutation, mirroring the node indexes of the sparse representation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any

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
from hyperforge.errors import IndexCorruptionError, NotFoundError, OutOfRangeError

logger = logging.getLogger("hyperforge.bits")


def cardinality(mask: int) -> int:
    """Number of nodes in the subset."""
    return mask.bit_count()


def positions(mask: int) -> list[int]:
    """Positions of the set bits, ascending."""
    result = []
    while mask:
        low = mask & -mask
        result.append(low.bit_length() - 1)
        mask ^= low
    return result


def mask_of(nodes: Iterable[int]) -> int:
    """Bitmask with the given positions set."""
    mask = 0
    for position in nodes:
        if position < 0:
            raise OutOfRangeError(f"Bit position must be non-negative, got: {position}")
        mask |= 1 << position
    return mask


def submasks(mask: int) -> Iterator[int]:
    """Every subset of ``mask``, from ``mask`` itself down to the empty mask."""
    sub = mask
    while True:
        yield sub
        if sub == 0:
            return
        sub = (sub - 1) & mask


def is_submask(inner: int, outer: int) -> bool:
    return inner & ~outer == 0


@dataclass(frozen=True)
class BitEdge:
    """A weighted hyperedge between two bitmasks over the same universe."""

    id: int
    input: int
    output: int
    weight: float
    kind: EdgeKind = EdgeKind.DIRECTED

    @property
    def triple(self) -> tuple[int, int, float]:
        return self.input, self.output, self.weight

    def transitions(self) -> Iterator[tuple[int, int, float]]:
        return transitions(self.kind, self.input, self.output, self.weight, submasks)

    def image(self, state: int) -> tuple[int, float] | None:
        return image(self.kind, self.input, self.output, self.weight, state, is_submask)


class BitHypergraph:
    """Hypergraph over a fixed universe of ``node_capacity`` bit positions.

    Example:
        hg = BitHypergraph(4)
        e = hg.add_edge(0b0011, 0b1100, 2.5)
        [edge.id for edge in hg.neighbors_of(0)]  # -> [e]
    """

    def __init__(self, node_capacity: int) -> None:
        if isinstance(node_capacity, bool) or not isinstance(node_capacity, int):
            raise TypeError(
                f"node_capacity must be an int, got: {type(node_capacity).__name__}"
            )
        if node_capacity < 0:
            raise ValueError(f"node_capacity must be non-negative, got: {node_capacity}")
        self.node_capacity = node_capacity
        self.universe = (1 << node_capacity) - 1
        self._edges: dict[int, BitEdge] = {}
        self._next_edge_id = 0
        self._input_buckets: list[set[int]] = [set() for _ in range(node_capacity)]
        self._output_buckets: list[set[int]] = [set() for _ in range(node_capacity)]
        self._empty_side: set[int] = set()
        self._pair_index: dict[tuple[int, int], set[int]] = defaultdict(set)

    def __repr__(self) -> str:
        return f"BitHypergraph(node_capacity={self.node_capacity}, edges={len(self._edges)})"

    # ========== Nodes & Masks ==========

    def nodes(self) -> list[int]:
        """All node positions; the universe is fixed at construction."""
        return list(range(self.node_capacity))

    def num_nodes(self) -> int:
        return self.node_capacity

    def node_mask(self, position: int) -> int:
        """Singleton mask for ``position``."""
        return 1 << self._check_position(position)

    def as_subset(self, subset: int | Iterable[int]) -> int:
        """Validate a mask, or build one from an iterable of positions.

        Raises:
            OutOfRangeError: If any bit at position >= node_capacity is set
        """
        if isinstance(subset, bool):
            raise TypeError("Subset mask must be an int, got: bool")
        if not isinstance(subset, int):
            subset = mask_of(self._check_position(p) for p in subset)
        if subset < 0:
            raise OutOfRangeError(f"Subset mask must be non-negative, got: {subset}")
        if subset & ~self.universe:
            raise OutOfRangeError(
                f"Mask {subset:#b} has bits beyond position {self.node_capacity - 1}"
            )
        return subset

    def union(self, a: int, b: int) -> int:
        return self.as_subset(a) | self.as_subset(b)

    def intersection(self, a: int, b: int) -> int:
        return self.as_subset(a) & self.as_subset(b)

    def difference(self, a: int, b: int) -> int:
        return self.as_subset(a) & ~self.as_subset(b)

    def complement(self, a: int) -> int:
        """Nodes of the universe not in ``a``."""
        return self.universe ^ self.as_subset(a)

    def is_subset(self, inner: int, outer: int) -> bool:
        return is_submask(self.as_subset(inner), self.as_subset(outer))

    # ========== Edge Operations ==========

    def add_edge(
        self,
        input_mask: int,
        output_mask: int,
        weight: float,
        kind: EdgeKind | str = EdgeKind.DIRECTED,
    ) -> int:
        """Add a hyperedge and return its id.

        The empty mask is a valid end and denotes the empty subset.

        Raises:
            ZeroWeightError: If weight is exactly zero
            OutOfRangeError: If either mask has a bit at position >= node_capacity
        """
        edge_kind = coerce_kind(kind)
        value = check_weight(weight)
        in_mask, out_mask = normalize_ends(
            edge_kind, self.as_subset(input_mask), self.as_subset(output_mask)
        )
        edge = BitEdge(self._next_edge_id, in_mask, out_mask, value, edge_kind)
        self._next_edge_id += 1
        self._attach(edge)
        return edge.id

    def get_edge(self, edge_id: int) -> BitEdge:
        edge = self._edges.get(edge_id)
        if edge is None:
            raise NotFoundError(f"Edge not found: {edge_id!r}")
        return edge

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edges

    def remove_edge(self, edge_id: int) -> BitEdge:
        """Remove an edge and return it. Raises NotFoundError if absent."""
        edge = self.get_edge(edge_id)
        self._detach(edge)
        return edge

    def update_weight(self, edge_id: int, weight: float) -> BitEdge:
        edge = self.get_edge(edge_id)
        updated = replace(edge, weight=check_weight(weight))
        self._edges[edge_id] = updated
        return updated

    def edges(self) -> list[BitEdge]:
        return [self._edges[eid] for eid in sorted(self._edges)]

    def num_edges(self) -> int:
        return len(self._edges)

    def edge_rows(self) -> Iterator[tuple[int, int, float]]:
        """Flat ``(input mask, output mask, weight)`` rows for tabular export."""
        for edge in self.edges():
            yield edge.input, edge.output, edge.weight

    # ========== Queries ==========

    def neighbors_of(
        self,
        position: int,
        direction: Direction | str = Direction.AS_INPUT,
    ) -> EdgeView[BitEdge]:
        """Edges whose input (or output) mask has bit ``position`` set.

        Raises:
            OutOfRangeError: If position is outside [0, node_capacity)
        """
        position = self._check_position(position)
        buckets = (
            self._input_buckets
            if coerce_direction(direction) is Direction.AS_INPUT
            else self._output_buckets
        )
        return EdgeView(self._edges, lambda: buckets[position])

    def find_edges(self, position: int) -> list[int]:
        """Ids of all edges with bit ``position`` in their input or output."""
        position = self._check_position(position)
        return sorted(self._input_buckets[position] | self._output_buckets[position])

    def edges_between(self, input_mask: int, output_mask: int) -> list[int]:
        key = (self.as_subset(input_mask), self.as_subset(output_mask))
        return sorted(self._pair_index.get(key, set()))

    def edges_from(self, subset: int | Iterable[int]) -> list[BitEdge]:
        """Edges whose stored input mask equals ``subset``."""
        state = self.as_subset(subset)
        return [
            self._edges[eid] for eid in self._candidates(state) if self._edges[eid].input == state
        ]

    def outgoing(self, subset: int | Iterable[int]) -> list[tuple[BitEdge, int, float]]:
        """Every ``(edge, target mask, weight)`` a walker on ``subset`` can take."""
        state = self.as_subset(subset)
        moves = []
        for edge_id in self._candidates(state):
            edge = self._edges[edge_id]
            landing = edge.image(state)
            if landing is not None:
                moves.append((edge, landing[0], landing[1]))
        return moves

    def _candidates(self, state: int) -> list[int]:
        if state == 0:
            return sorted(self._empty_side)
        pivot = min(
            positions(state),
            key=lambda p: len(self._input_buckets[p]) + len(self._output_buckets[p]),
        )
        return sorted(self._input_buckets[pivot] | self._output_buckets[pivot])

    # ========== Index Maintenance ==========

    def _check_position(self, position: int) -> int:
        if isinstance(position, bool) or not isinstance(position, int):
            raise TypeError(f"Bit position must be an int, got: {type(position).__name__}")
        if not 0 <= position < self.node_capacity:
            raise OutOfRangeError(
                f"Bit position must be in [0, {self.node_capacity}), got: {position}"
            )
        return position

    def _attach(self, edge: BitEdge) -> None:
        self._edges[edge.id] = edge
        for position in positions(edge.input):
            self._input_buckets[position].add(edge.id)
        for position in positions(edge.output):
            self._output_buckets[position].add(edge.id)
        if edge.input == 0 or edge.output == 0:
            self._empty_side.add(edge.id)
        self._pair_index[(edge.input, edge.output)].add(edge.id)

    def _detach(self, edge: BitEdge) -> None:
        for buckets, mask in (
            (self._input_buckets, edge.input),
            (self._output_buckets, edge.output),
        ):
            for position in positions(mask):
                if edge.id not in buckets[position]:
                    raise IndexCorruptionError(
                        f"Edge {edge.id} missing from the bucket of position {position}"
                    )
                buckets[position].discard(edge.id)
        self._empty_side.discard(edge.id)
        pair_key = (edge.input, edge.output)
        self._pair_index[pair_key].discard(edge.id)
        if not self._pair_index[pair_key]:
            del self._pair_index[pair_key]
        del self._edges[edge.id]

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        by_kind: dict[str, int] = defaultdict(int)
        for edge in self._edges.values():
            by_kind[edge.kind.value] += 1
        return {
            "num_nodes": self.node_capacity,
            "num_edges": len(self._edges),
            "edges_by_kind": dict(by_kind),
        }

    def validate(self) -> dict[str, Any]:
        """Check that the edge registry and the position buckets agree."""
        errors: list[str] = []
        for edge_id, edge in self._edges.items():
            for label, mask in (("input", edge.input), ("output", edge.output)):
                if mask & ~self.universe:
                    errors.append(f"Edge {edge_id} {label} mask exceeds the universe")
            for position in positions(edge.input & self.universe):
                if edge_id not in self._input_buckets[position]:
                    errors.append(f"Edge {edge_id} missing from input bucket {position}")
            for position in positions(edge.output & self.universe):
                if edge_id not in self._output_buckets[position]:
                    errors.append(f"Edge {edge_id} missing from output bucket {position}")
            if edge_id not in self._pair_index.get((edge.input, edge.output), set()):
                errors.append(f"Edge {edge_id} missing from pair index")
        for label, buckets in (("input", self._input_buckets), ("output", self._output_buckets)):
            for position, bucket in enumerate(buckets):
                for edge_id in bucket:
                    edge = self._edges.get(edge_id)
                    if edge is None:
                        errors.append(
                            f"The {label} bucket {position} references missing edge {edge_id}"
                        )
                    elif not getattr(edge, label) >> position & 1:
                        errors.append(
                            f"The {label} bucket {position} lists edge {edge_id} "
                            f"which does not contain it"
                        )
        for edge_id in self._empty_side:
            if edge_id not in self._edges:
                errors.append(f"Empty-side index references missing edge {edge_id}")
        return {"valid": not errors, "errors": errors}

    def check_integrity(self) -> None:
        result = self.validate()
        if not result["valid"]:
            raise IndexCorruptionError("; ".join(result["errors"]))

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        return {
            "representation": "bit",
            "node_capacity": self.node_capacity,
            "edges": [
                {
                    "id": edge.id,
                    "input": edge.input,
                    "output": edge.output,
                    "weight": edge.weight,
                    "kind": edge.kind.value,
                }
                for edge in self.edges()
            ],
            "next_edge_id": self._next_edge_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BitHypergraph:
        graph = cls(int(data["node_capacity"]))
        for edge_data in data.get("edges", []):
            edge_id = int(edge_data["id"])
            if edge_id in graph._edges:
                raise ValueError(f"Duplicate edge id in serialized data: {edge_id}")
            kind = coerce_kind(edge_data.get("kind", EdgeKind.DIRECTED))
            in_mask, out_mask = normalize_ends(
                kind,
                graph.as_subset(int(edge_data["input"])),
                graph.as_subset(int(edge_data["output"])),
            )
            weight = check_weight(edge_data["weight"])
            graph._attach(BitEdge(edge_id, in_mask, out_mask, weight, kind))
        graph._next_edge_id = max(
            int(data.get("next_edge_id", 0)),
            max(graph._edges, default=-1) + 1,
        )
        logger.debug("Loaded bit hypergraph with %d edges", len(graph._edges))
        return graph
