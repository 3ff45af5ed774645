"""Shared fixtures for hyperforge tests."""

import itertools
import random
from uuid import UUID

import pytest

from hyperforge import BitHypergraph, MatrixHypergraph, SparseHypergraph


def counting_ids(start: int = 1):
    """Deterministic id generator: UUID(int=1), UUID(int=2), ..."""
    counter = itertools.count(start)
    return lambda: UUID(int=next(counter))


@pytest.fixture()
def sparse():
    """Empty sparse hypergraph with deterministic node ids."""
    return SparseHypergraph(id_generator=counting_ids())


@pytest.fixture()
def triangle():
    """Sparse hypergraph with nodes a, b, c.

    Edges (2):
        e0: {a} -> {b, c}  weight 1.0
        e1: {b, c} -> {a}  weight -1.0
    """
    hg = SparseHypergraph(id_generator=counting_ids())
    a, b, c = hg.add_nodes(3)
    hg.add_edge({a}, {b, c}, 1.0)
    hg.add_edge({b, c}, {a}, -1.0)
    return hg, (a, b, c)


@pytest.fixture()
def bits4():
    """Bit hypergraph over 4 positions with no edges."""
    return BitHypergraph(4)


@pytest.fixture()
def matrix3():
    """Matrix hypergraph over 3 positions (8 x 8), all nodes live."""
    return MatrixHypergraph(3)


@pytest.fixture()
def rng():
    return random.Random(42)


@pytest.fixture()
def id_factory():
    """Factory for deterministic id generators."""
    return counting_ids
