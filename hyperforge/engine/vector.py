"""Vectors over the power set of a sparse hypergraph's nodes.

A SubsetVector is a sparse element of the ``2**|N|``-dimensional space whose
basis vectors are the subsets of the node universe, graded by subset
cardinality (grade 0 is the empty set, grade |N| the full node set).
Hyperedges act on it linearly: an edge from A to B at weight w sends the
coefficient on basis A, multiplied by w, to basis B.

A vector borrows the universe of exactly one SparseHypergraph. Arithmetic
between vectors of different hypergraphs raises ValueError.
"""

from __future__ import annotations

import math
import random
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from uuid import UUID

from hyperforge.engine.sparse import NodeSet, SparseEdge, SparseHypergraph


def _as_key(subset: UUID | Iterable[UUID]) -> NodeSet:
    if isinstance(subset, UUID):
        return frozenset({subset})
    return frozenset(subset)


class SubsetVector:
    """Sparse mapping from node subset to real coefficient.

    Missing subsets have coefficient zero, and zero coefficients are never
    stored.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        graph: SparseHypergraph,
        coefficients: Mapping[NodeSet, float] | None = None,
    ) -> None:
        self.graph = graph
        self._coefficients: dict[NodeSet, float] = {}
        for subset, value in (coefficients or {}).items():
            self.add_to(subset, value)

    # ========== Coefficients ==========

    def __getitem__(self, subset: UUID | Iterable[UUID]) -> float:
        return self._coefficients.get(_as_key(subset), 0.0)

    def __setitem__(self, subset: UUID | Iterable[UUID], value: float) -> None:
        """Raises ValueError for NaN or infinite coefficients."""
        key = self.graph.as_subset(subset)
        if not math.isfinite(value):
            raise ValueError(f"Coefficient must be finite, got: {value!r}")
        if value == 0:
            self._coefficients.pop(key, None)
        else:
            self._coefficients[key] = float(value)

    def add_to(self, subset: UUID | Iterable[UUID], value: float) -> None:
        """Add ``value`` to the coefficient on ``subset``."""
        self[subset] = self[subset] + value

    def items(self) -> list[tuple[NodeSet, float]]:
        """``(subset, coefficient)`` pairs, smallest subsets first."""
        return sorted(
            self._coefficients.items(),
            key=lambda item: (len(item[0]), sorted(str(n) for n in item[0])),
        )

    def support(self) -> set[NodeSet]:
        """Subsets with a non-zero coefficient."""
        return set(self._coefficients)

    def __iter__(self) -> Iterator[tuple[NodeSet, float]]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._coefficients)

    def __bool__(self) -> bool:
        return bool(self._coefficients)

    def is_zero(self) -> bool:
        return not self._coefficients

    def copy(self) -> SubsetVector:
        clone = SubsetVector(self.graph)
        clone._coefficients = dict(self._coefficients)
        return clone

    def __repr__(self) -> str:
        terms = ", ".join(f"{len(s)}-set: {c:g}" for s, c in self.items())
        return f"SubsetVector({{{terms}}})"

    # ========== Vector Space ==========

    def _check_universe(self, other: object) -> SubsetVector:
        if not isinstance(other, SubsetVector):
            raise TypeError(f"Expected a SubsetVector, got: {type(other).__name__}")
        if other.graph is not self.graph:
            raise ValueError("Vectors belong to different hypergraph universes")
        return other

    def __add__(self, other: SubsetVector) -> SubsetVector:
        other = self._check_universe(other)
        result = self.copy()
        for subset, value in other._coefficients.items():
            result._accumulate(subset, value)
        return result

    def __sub__(self, other: SubsetVector) -> SubsetVector:
        return self + (-other)

    def __neg__(self) -> SubsetVector:
        return self * -1.0

    def __mul__(self, scalar: float) -> SubsetVector:
        if isinstance(scalar, bool) or not isinstance(scalar, (int, float)):
            return NotImplemented
        if not math.isfinite(scalar):
            raise ValueError(f"Scalar must be finite, got: {scalar!r}")
        result = SubsetVector(self.graph)
        if scalar != 0:
            result._coefficients = {s: c * scalar for s, c in self._coefficients.items()}
        return result

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> SubsetVector:
        return self * (1.0 / scalar)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubsetVector):
            return NotImplemented
        return other.graph is self.graph and other._coefficients == self._coefficients

    def dot(self, other: SubsetVector) -> float:
        """Inner product with the subsets as an orthonormal basis."""
        other = self._check_universe(other)
        small, large = sorted((self._coefficients, other._coefficients), key=len)
        return sum(c * large.get(s, 0.0) for s, c in small.items())

    def norm(self) -> float:
        return math.sqrt(sum(c * c for c in self._coefficients.values()))

    def _accumulate(self, subset: NodeSet, value: float) -> None:
        total = self._coefficients.get(subset, 0.0) + value
        if total == 0.0:
            self._coefficients.pop(subset, None)
        else:
            self._coefficients[subset] = total

    # ========== Grading ==========

    def project(self, cardinality: int) -> SubsetVector:
        """Keep only the basis subsets of the given cardinality."""
        result = SubsetVector(self.graph)
        result._coefficients = {
            s: c for s, c in self._coefficients.items() if len(s) == cardinality
        }
        return result

    def grades(self) -> dict[int, SubsetVector]:
        """Split into one vector per subset cardinality."""
        result: dict[int, SubsetVector] = {}
        for subset, value in self._coefficients.items():
            grade = result.setdefault(len(subset), SubsetVector(self.graph))
            grade._coefficients[subset] = value
        return dict(sorted(result.items()))

    def cardinality_weights(self) -> dict[int, float]:
        """Share of total absolute mass at each cardinality."""
        mass: dict[int, float] = defaultdict(float)
        for subset, value in self._coefficients.items():
            mass[len(subset)] += abs(value)
        total = sum(mass.values())
        if total == 0.0:
            return {}
        return {k: v / total for k, v in sorted(mass.items())}

    def is_homogeneous(self) -> bool:
        """True if every basis subset has the same cardinality (vacuously for zero)."""
        return len({len(s) for s in self._coefficients}) <= 1


def zero_vector(graph: SparseHypergraph) -> SubsetVector:
    return SubsetVector(graph)


def basis_vector(
    graph: SparseHypergraph,
    subset: UUID | Iterable[UUID],
    coefficient: float = 1.0,
) -> SubsetVector:
    """Unit (or scaled) vector on a single subset.

    Raises:
        InvalidNodeError: If the subset contains unregistered nodes
    """
    vector = SubsetVector(graph)
    vector[subset] = coefficient
    return vector


def distance(x: SubsetVector, y: SubsetVector) -> float:
    """Euclidean distance between two vectors of the same universe."""
    return (x - y).norm()


def random_basis(graph: SparseHypergraph, rng: random.Random | None = None) -> SubsetVector:
    """Unit vector on a uniformly random subset of the graph's nodes."""
    rng = rng or random.Random()
    chosen = [n for n in sorted(graph.nodes()) if rng.random() < 0.5]
    return basis_vector(graph, chosen)


def apply(edges: Iterable[SparseEdge], vector: SubsetVector) -> SubsetVector:
    """Apply a set of hyperedges to a vector as a linear operator.

    Each edge contributes ``weight * vector[input]`` to the coefficient of
    its output, for every basis subset it can be traversed from (the exact
    input for directed edges; see SparseEdge.image for derived kinds).

    Raises:
        ValueError: If an edge is not part of the vector's hypergraph
    """
    graph = vector.graph
    edge_list = list(edges)
    for edge in edge_list:
        if not graph.has_edge(edge.id) or graph.get_edge(edge.id) != edge:
            raise ValueError(f"Edge {edge.id} does not belong to the vector's hypergraph")
    result = SubsetVector(graph)
    for subset, coefficient in vector._coefficients.items():
        for edge in edge_list:
            landing = edge.image(subset)
            if landing is not None:
                target, weight = landing
                result._accumulate(target, weight * coefficient)
    return result


def propagate(vector: SubsetVector) -> SubsetVector:
    """Apply every edge of the vector's hypergraph, using its adjacency index."""
    result = SubsetVector(vector.graph)
    for subset, coefficient in vector._coefficients.items():
        for _edge, target, weight in vector.graph.outgoing(subset):
            result._accumulate(target, weight * coefficient)
    return result
