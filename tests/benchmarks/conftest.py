"""Benchmark fixtures for hypergraph performance tests."""

import random

import pytest

from hyperforge import BitHypergraph, SparseHypergraph


def generate_random_graph(
    num_nodes: int,
    num_edges: int,
    max_side: int = 3,
    seed: int = 42,
) -> SparseHypergraph:
    """Generate a random sparse hypergraph for benchmarking.

    Args:
        num_nodes: Number of nodes to create
        num_edges: Number of hyperedges to create
        max_side: Largest input or output subset
        seed: Random seed for reproducibility

    Returns:
        SparseHypergraph with random edges
    """
    rng = random.Random(seed)
    graph = SparseHypergraph()
    nodes = graph.add_nodes(num_nodes)

    for _ in range(num_edges):
        source = rng.sample(nodes, rng.randint(1, max_side))
        target = rng.sample(nodes, rng.randint(1, max_side))
        graph.add_edge(source, target, rng.uniform(0.1, 1.0))

    return graph


def generate_random_bits(num_nodes: int, num_edges: int, seed: int = 42) -> BitHypergraph:
    rng = random.Random(seed)
    graph = BitHypergraph(num_nodes)
    for _ in range(num_edges):
        source, target = rng.getrandbits(num_nodes), rng.getrandbits(num_nodes)
        graph.add_edge(source, target, rng.uniform(0.1, 1.0))
    return graph


@pytest.fixture
def graph_1k() -> SparseHypergraph:
    """1K nodes, 5K edges - small benchmark graph."""
    return generate_random_graph(num_nodes=1000, num_edges=5000, seed=42)


@pytest.fixture
def graph_10k() -> SparseHypergraph:
    """10K nodes, 50K edges - medium benchmark graph."""
    return generate_random_graph(num_nodes=10000, num_edges=50000, seed=42)


@pytest.fixture
def bits_64() -> BitHypergraph:
    """64 positions, 5K edges."""
    return generate_random_bits(num_nodes=64, num_edges=5000, seed=42)


@pytest.fixture
def graph_factory():
    """The random graph generator, for tests that size their own graphs."""
    return generate_random_graph
