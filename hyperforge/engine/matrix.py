"""Matrix hypergraph representation.

The densest representation: a ``2**N x 2**N`` weight matrix whose rows and
columns are node subsets. Index convention, shared with the bit-packed
representation so the two translate directly:

    index = characteristic number of the subset
          = sum(1 << p for every node position p in the subset)

So index 0 is the empty set, ``1 << p`` is the single node at position
``p``, and ``2**N - 1`` is the full universe. All nodes are indices, not all
indices are nodes. Entry ``(row, col) -> w`` is the directed hyperedge from
subset ``row`` to subset ``col`` at weight ``w``.

Weights live in a ``scipy.sparse.dok_matrix``; a zero weight is absence and
is never stored. Row and column indexes of the live entries are maintained
alongside so row/column queries and node-removal cascades do not scan the
matrix.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import numpy as np
import scipy.sparse as sp

from hyperforge.engine.bits import is_submask, mask_of, positions, submasks
from hyperforge.engine.edges import (
    Direction,
    EdgeKind,
    check_weight,
    coerce_direction,
    coerce_kind,
    normalize_ends,
    transitions,
)
from hyperforge.errors import (
    IndexCorruptionError,
    InvalidNodeError,
    NotFoundError,
    OutOfRangeError,
)

logger = logging.getLogger("hyperforge.matrix")

# Keeps 2**N within a 32-bit signed index
MAX_MATRIX_CAPACITY = 30
MAX_DENSE_CAPACITY = 12

Entry = tuple[int, int, float]


class MatrixHypergraph:
    """Hypergraph stored as a subset-by-subset weight matrix.

    Args:
        node_capacity: Number of node positions N; the matrix is 2**N square
        num_nodes: Positions registered at construction (default: all N).
            Further nodes are handed out by add_node() until N is reached.
    """

    def __init__(self, node_capacity: int, num_nodes: int | None = None) -> None:
        if isinstance(node_capacity, bool) or not isinstance(node_capacity, int):
            raise TypeError(
                f"node_capacity must be an int, got: {type(node_capacity).__name__}"
            )
        if not 0 <= node_capacity <= MAX_MATRIX_CAPACITY:
            raise ValueError(
                f"node_capacity must be in [0, {MAX_MATRIX_CAPACITY}], got: {node_capacity}"
            )
        if num_nodes is None:
            num_nodes = node_capacity
        if not 0 <= num_nodes <= node_capacity:
            raise ValueError(f"num_nodes must be in [0, {node_capacity}], got: {num_nodes}")
        self.node_capacity = node_capacity
        self.dimension = 1 << node_capacity
        self._matrix = sp.dok_matrix((self.dimension, self.dimension), dtype=np.float64)
        self._rows: dict[int, set[int]] = defaultdict(set)
        self._cols: dict[int, set[int]] = defaultdict(set)
        self._live_mask = (1 << num_nodes) - 1
        self._next_position = num_nodes

    def __repr__(self) -> str:
        return f"MatrixHypergraph(node_capacity={self.node_capacity}, entries={self.nnz})"

    @property
    def nnz(self) -> int:
        """Number of live (non-zero) entries."""
        return sum(len(cols) for cols in self._rows.values())

    # ========== Node Operations ==========

    def add_node(self) -> int:
        """Register the next unused position and return its singleton index.

        Positions are handed out in order and never reused after removal.

        Raises:
            OutOfRangeError: If all node_capacity positions have been used
        """
        if self._next_position >= self.node_capacity:
            raise OutOfRangeError(
                f"Node capacity {self.node_capacity} exhausted; positions are never reused"
            )
        position = self._next_position
        self._next_position += 1
        self._live_mask |= 1 << position
        return 1 << position

    def remove_node(self, index: int) -> int:
        """Remove a node and clear every entry whose row or column contains it.

        Args:
            index: Singleton index ``1 << p`` of a live node

        Returns:
            Number of entries cleared

        Raises:
            NotFoundError: If index is not a live node
        """
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or index <= 0
            or index & (index - 1)
            or not index & self._live_mask
        ):
            raise NotFoundError(f"Node not found: {index!r}")
        doomed = [
            (row, col)
            for row in list(self._rows)
            for col in self._rows[row]
            if row & index or col & index
        ]
        for row, col in doomed:
            self._clear(row, col)
        self._live_mask &= ~index
        if doomed:
            logger.debug("Removed node %d and cleared %d entries", index, len(doomed))
        return len(doomed)

    def nodes(self) -> list[int]:
        """Singleton indices of the live nodes."""
        return [1 << p for p in positions(self._live_mask)]

    def has_node(self, index: int) -> bool:
        return index > 0 and index & (index - 1) == 0 and bool(index & self._live_mask)

    def num_nodes(self) -> int:
        return self._live_mask.bit_count()

    def as_subset(self, subset: int | Iterable[int]) -> int:
        """Validate an index (or build one from node positions).

        Raises:
            OutOfRangeError: If the index is outside [0, 2**node_capacity)
            InvalidNodeError: If the index contains a removed or unallocated node
        """
        if isinstance(subset, bool):
            raise TypeError("Matrix index must be an int, got: bool")
        if not isinstance(subset, int):
            subset = mask_of(subset)
        if not 0 <= subset < self.dimension:
            raise OutOfRangeError(f"Matrix index must be in [0, {self.dimension}), got: {subset}")
        if not is_submask(subset, self._live_mask):
            raise InvalidNodeError(
                f"Index {subset} refers to unregistered node positions: "
                f"{positions(subset & ~self._live_mask)}"
            )
        return subset

    # ========== Entries ==========

    def set_entry(self, row: int, col: int, weight: float) -> None:
        """Assign the weight from subset ``row`` to subset ``col``.

        A weight of zero clears the entry instead of storing it.
        """
        row = self.as_subset(row)
        col = self.as_subset(col)
        if isinstance(weight, (int, float)) and not isinstance(weight, bool) and weight == 0:
            if col in self._rows.get(row, ()):
                self._clear(row, col)
            return
        self._store(row, col, check_weight(weight))

    def get_entry(self, row: int, col: int) -> float:
        """Weight of ``(row, col)``, 0.0 when absent. Never raises."""
        if col in self._rows.get(row, ()):
            return float(self._matrix[row, col])
        return 0.0

    def has_entry(self, row: int, col: int) -> bool:
        return col in self._rows.get(row, ())

    def remove_entry(self, row: int, col: int) -> float:
        """Clear a live entry and return its weight.

        Raises:
            NotFoundError: If the entry is absent
        """
        if col not in self._rows.get(row, ()):
            raise NotFoundError(f"Entry not found: ({row!r}, {col!r})")
        weight = float(self._matrix[row, col])
        self._clear(row, col)
        return weight

    def add_edge(
        self,
        input: int | Iterable[int],
        output: int | Iterable[int],
        weight: float,
        kind: EdgeKind | str = EdgeKind.DIRECTED,
    ) -> list[tuple[int, int]]:
        """Accumulate a hyperedge into the matrix.

        Each directed transition of the edge is added to its entry; parallel
        edges therefore sum, and an entry whose sum reaches zero is cleared.

        Returns:
            The ``(row, col)`` entries touched, in transition order

        Raises:
            ZeroWeightError: If weight is exactly zero
        """
        edge_kind = coerce_kind(kind)
        value = check_weight(weight)
        in_index, out_index = normalize_ends(
            edge_kind, self.as_subset(input), self.as_subset(output)
        )
        # Totals are computed before any write so a failure leaves the matrix untouched
        totals: dict[tuple[int, int], float] = {}
        for row, col, w in transitions(edge_kind, in_index, out_index, value, submasks):
            key = (row, col)
            total = totals.get(key, self.get_entry(row, col)) + w
            if not math.isfinite(total):
                raise ValueError(f"Entry ({row}, {col}) would overflow to {total}")
            totals[key] = total
        for (row, col), total in totals.items():
            if total != 0.0:
                self._store(row, col, total)
            elif self.has_entry(row, col):
                self._clear(row, col)
        return list(totals)

    def entries(self) -> Iterator[Entry]:
        """Live ``(row, col, weight)`` entries in row-major order."""
        for row in sorted(self._rows):
            for col in sorted(self._rows[row]):
                yield row, col, float(self._matrix[row, col])

    def edge_rows(self) -> Iterator[Entry]:
        """Alias of entries() for tabular export."""
        return self.entries()

    def row(self, index: int) -> dict[int, float]:
        """Outgoing entries of subset ``index``: column -> weight."""
        return {col: float(self._matrix[index, col]) for col in sorted(self._rows.get(index, ()))}

    def column(self, index: int) -> dict[int, float]:
        """Incoming entries of subset ``index``: row -> weight."""
        return {row: float(self._matrix[row, index]) for row in sorted(self._cols.get(index, ()))}

    def neighbors_of(
        self,
        index: int,
        direction: Direction | str = Direction.AS_INPUT,
    ) -> list[Entry]:
        """Entries whose row (or column) subset contains every node of ``index``."""
        index = self.as_subset(index)
        if coerce_direction(direction) is Direction.AS_INPUT:
            return [
                (row, col, float(self._matrix[row, col]))
                for row in sorted(self._rows)
                if is_submask(index, row)
                for col in sorted(self._rows[row])
            ]
        return [
            (row, col, float(self._matrix[row, col]))
            for col in sorted(self._cols)
            if is_submask(index, col)
            for row in sorted(self._cols[col])
        ]

    def find_edges(self, containing: int) -> list[tuple[int, int]]:
        """``(row, col)`` keys of entries whose row or column contains ``containing``."""
        index = self.as_subset(containing)
        return sorted(
            (row, col)
            for row, cols in self._rows.items()
            for col in cols
            if is_submask(index, row) or is_submask(index, col)
        )

    def outgoing(self, subset: int | Iterable[int]) -> list[tuple[tuple[int, int], int, float]]:
        """Every ``((row, col), target, weight)`` move available from ``subset``."""
        row = self.as_subset(subset)
        return [((row, col), col, weight) for col, weight in self.row(row).items()]

    # ========== Linear Algebra ==========

    def matvec(self, vector: Mapping[int, float]) -> dict[int, float]:
        """Push a subset-indexed vector through the matrix.

        ``result[col] = sum(vector[row] * M[row, col])``, i.e. each entry
        carries the coefficient on its input subset to its output subset.
        Zero results are dropped.
        """
        coo = self._matrix.tocoo()
        if coo.nnz == 0 or not vector:
            return {}
        coefficients = np.fromiter(
            (vector.get(int(r), 0.0) for r in coo.row), dtype=np.float64, count=coo.nnz
        )
        contributions = coo.data * coefficients
        targets, inverse = np.unique(coo.col, return_inverse=True)
        sums = np.bincount(inverse.ravel(), weights=contributions, minlength=len(targets))
        return {int(t): float(s) for t, s in zip(targets, sums) if s != 0.0}

    def to_dense(self) -> np.ndarray:
        """Dense numpy copy of the matrix (small capacities only)."""
        if self.node_capacity > MAX_DENSE_CAPACITY:
            raise ValueError(
                f"Dense export is limited to node_capacity <= {MAX_DENSE_CAPACITY}, "
                f"got: {self.node_capacity}"
            )
        return self._matrix.toarray()

    def to_scipy(self) -> sp.csr_matrix:
        """CSR copy of the weight matrix."""
        return self._matrix.tocsr()

    # ========== Index Maintenance ==========

    def _store(self, row: int, col: int, weight: float) -> None:
        self._matrix[row, col] = weight
        self._rows[row].add(col)
        self._cols[col].add(row)

    def _clear(self, row: int, col: int) -> None:
        # dok drops the key when assigned zero
        self._matrix[row, col] = 0.0
        for index, key, other in ((self._rows, row, col), (self._cols, col, row)):
            bucket = index.get(key)
            if bucket is None or other not in bucket:
                raise IndexCorruptionError(f"Entry ({row}, {col}) missing from the adjacency index")
            bucket.discard(other)
            if not bucket:
                del index[key]

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        return {
            "num_nodes": self.num_nodes(),
            "node_capacity": self.node_capacity,
            "num_entries": self.nnz,
        }

    def validate(self) -> dict[str, Any]:
        """Check the row/column indexes against the stored matrix."""
        errors: list[str] = []
        stored = {(int(r), int(c)) for r, c in zip(*self._matrix.nonzero())}
        indexed_rows = {(row, col) for row, cols in self._rows.items() for col in cols}
        indexed_cols = {(row, col) for col, rows in self._cols.items() for row in rows}
        for row, col in sorted(stored - indexed_rows):
            errors.append(f"Entry ({row}, {col}) missing from the row index")
        for row, col in sorted(indexed_rows - stored):
            errors.append(f"Row index references missing entry ({row}, {col})")
        if indexed_rows != indexed_cols:
            errors.append("Row and column indexes disagree")
        for row, col in sorted(stored):
            if not is_submask(row | col, self._live_mask):
                errors.append(f"Entry ({row}, {col}) references removed nodes")
        return {"valid": not errors, "errors": errors}

    def check_integrity(self) -> None:
        result = self.validate()
        if not result["valid"]:
            raise IndexCorruptionError("; ".join(result["errors"]))

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        return {
            "representation": "matrix",
            "node_capacity": self.node_capacity,
            "nodes": positions(self._live_mask),
            "next_position": self._next_position,
            "entries": [[row, col, weight] for row, col, weight in self.entries()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatrixHypergraph:
        graph = cls(int(data["node_capacity"]), num_nodes=0)
        live = data.get("nodes")
        if live is None:
            live = range(graph.node_capacity)
        graph._live_mask = mask_of(int(p) for p in live)
        if graph._live_mask >= graph.dimension:
            raise OutOfRangeError(f"Node positions exceed capacity {graph.node_capacity}")
        graph._next_position = max(
            int(data.get("next_position", 0)), graph._live_mask.bit_length()
        )
        for row, col, weight in data.get("entries", []):
            graph._store(graph.as_subset(int(row)), graph.as_subset(int(col)), check_weight(weight))
        return graph
