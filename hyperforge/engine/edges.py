"""Edge kinds, derived-edge views and neighbor views shared by all containers.

Every container stores a hyperedge as ``(input, output, weight)`` plus an
``EdgeKind`` annotation. The non-directed kinds are never stored as extra
edges; they are expanded on demand by the pure functions in this module:

- DIRECTED:   input -> output at ``weight``
- UNDIRECTED: input -> output and output -> input, both at ``weight``
- ORIENTED:   input -> output at ``weight``, output -> input at ``-weight``
- LOOP:       input -> input at ``weight`` (input and output are equal)
- BLOB:       every subset S of the blob maps to ``blob - S`` at ``weight``

The functions are written against the operations frozensets and integer
bitmasks share (``==``, ``|``, and ``-`` for a sub-collection), with the
representation-specific pieces (subset test, subset enumeration) passed in.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from hyperforge.errors import IndexCorruptionError, ZeroWeightError

S = TypeVar("S")
E = TypeVar("E")


class EdgeKind(str, Enum):
    """How a stored hyperedge is traversed."""

    DIRECTED = "directed"
    UNDIRECTED = "undirected"
    ORIENTED = "oriented"
    LOOP = "loop"
    BLOB = "blob"


class Direction(str, Enum):
    """Which side of an edge a node participates on."""

    AS_INPUT = "input"
    AS_OUTPUT = "output"


def coerce_kind(kind: EdgeKind | str) -> EdgeKind:
    """Accept an EdgeKind or its string value."""
    try:
        return EdgeKind(kind)
    except ValueError:
        valid = ", ".join(repr(k.value) for k in EdgeKind)
        raise ValueError(f"Edge kind must be one of {valid}, got: {kind!r}") from None


def coerce_direction(direction: Direction | str) -> Direction:
    """Accept a Direction or its string value ("input" / "output")."""
    try:
        return Direction(direction)
    except ValueError:
        raise ValueError(
            f"direction must be 'input' or 'output', got: {direction!r}"
        ) from None


def check_weight(weight: Any) -> float:
    """Validate an edge weight and return it as a float.

    Raises:
        TypeError: If weight is not a real number
        ValueError: If weight is NaN or infinite
        ZeroWeightError: If weight is exactly zero
    """
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise TypeError(f"Edge weight must be a real number, got: {type(weight).__name__}")
    value = float(weight)
    if not math.isfinite(value):
        raise ValueError(f"Edge weight must be finite, got: {weight!r}")
    if value == 0.0:
        raise ZeroWeightError("Edge weight of exactly zero is not allowed (zero means no edge)")
    return value


def normalize_ends(kind: EdgeKind, input: S, output: S) -> tuple[S, S]:
    """Return the stored ``(input, output)`` for an edge of ``kind``.

    Loops keep the union on both sides; blobs keep the union as the input
    (the blob itself) and an empty output.
    """
    if kind is EdgeKind.LOOP:
        both = input | output  # type: ignore[operator]
        return both, both
    if kind is EdgeKind.BLOB:
        blob = input | output  # type: ignore[operator]
        return blob, blob - blob
    return input, output


def transitions(
    kind: EdgeKind,
    input: S,
    output: S,
    weight: float,
    subsets: Callable[[S], Iterable[S]],
) -> Iterator[tuple[S, S, float]]:
    """Expand a stored edge into its directed ``(source, target, weight)`` triples.

    ``subsets`` enumerates every subset of a blob; it is only called for
    BLOB edges, and the result is produced lazily since a blob over k nodes
    has 2**k transitions.
    Undirected and oriented self-edges stand for a single forward triple.
    """
    if kind is EdgeKind.DIRECTED:
        yield input, output, weight
    elif kind is EdgeKind.UNDIRECTED:
        yield input, output, weight
        if output != input:
            yield output, input, weight
    elif kind is EdgeKind.ORIENTED:
        yield input, output, weight
        if output != input:
            yield output, input, -weight
    elif kind is EdgeKind.LOOP:
        yield input, input, weight
    else:
        for part in subsets(input):
            yield part, input - part, weight  # type: ignore[operator]


def image(
    kind: EdgeKind,
    input: S,
    output: S,
    weight: float,
    state: S,
    is_subset: Callable[[S, S], bool],
) -> tuple[S, float] | None:
    """Where a walker standing on ``state`` lands when it takes this edge.

    Returns ``(target, weight)`` or None if the edge cannot be taken from
    ``state``. Undirected and oriented edges prefer the declared direction
    when input and output are both equal to ``state``.
    """
    if kind is EdgeKind.BLOB:
        if is_subset(state, input):
            return input - state, weight  # type: ignore[operator]
        return None
    if state == input:
        return (input if kind is EdgeKind.LOOP else output), weight
    if state == output:
        if kind is EdgeKind.UNDIRECTED:
            return input, weight
        if kind is EdgeKind.ORIENTED:
            return input, -weight
    return None


class EdgeView(Generic[E]):
    """A finite, restartable view over the edges in one adjacency bucket.

    Each iteration reads the bucket afresh, so the view always reflects the
    container's current state. Edges are yielded in edge-id order.
    """

    def __init__(self, registry: Mapping[int, E], bucket: Callable[[], set[int]]) -> None:
        self._registry = registry
        self._bucket = bucket

    def ids(self) -> list[int]:
        """Edge ids currently in the bucket, sorted."""
        return sorted(self._bucket())

    def __iter__(self) -> Iterator[E]:
        for edge_id in self.ids():
            edge = self._registry.get(edge_id)
            if edge is None:
                if edge_id in self._bucket():
                    raise IndexCorruptionError(
                        f"Adjacency index references edge {edge_id} missing from the registry"
                    )
                # removed by the caller mid-iteration
                continue
            yield edge

    def __len__(self) -> int:
        return len(self._bucket())

    def __contains__(self, edge: object) -> bool:
        edge_id = getattr(edge, "id", edge)
        return edge_id in self._bucket()

    def __repr__(self) -> str:
        return f"EdgeView({self.ids()!r})"
