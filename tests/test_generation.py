"""Tests for random hypergraph generation."""

import logging
import random
from math import comb

import pytest

from hyperforge import BitHypergraph, EdgeKind, SparseHypergraph
from hyperforge.algorithms import erdos_renyi, erdos_renyi_bits, erdos_renyi_by_dimension
from hyperforge.engine.convert import sparse_to_bits
from hyperforge.errors import ExhaustedError


def _pair_count(num_nodes, max_size, include_empty=False):
    subsets = sum(comb(num_nodes, k) for k in range(0 if include_empty else 1, max_size + 1))
    return subsets * subsets - (1 if include_empty else 0)


class TestErdosRenyi:
    """Tests for erdos_renyi()."""

    def test_probability_one_includes_every_pair(self):
        hg = erdos_renyi(4, 1.0, max_subset_size=2, rng=random.Random(0))
        assert hg.num_nodes() == 4
        assert hg.num_edges() == _pair_count(4, 2)

    def test_probability_zero_is_empty(self):
        hg = erdos_renyi(5, 0.0, rng=random.Random(0))
        assert hg.num_nodes() == 5
        assert hg.num_edges() == 0

    def test_include_empty(self):
        hg = erdos_renyi(3, 1.0, max_subset_size=1, include_empty=True, rng=random.Random(0))
        assert hg.num_edges() == _pair_count(3, 1, include_empty=True)
        assert any(not edge.input for edge in hg.edges())
        assert all(edge.input or edge.output for edge in hg.edges())

    def test_seed_is_reproducible(self, id_factory):
        first = erdos_renyi(5, 0.3, rng=random.Random(11), id_generator=id_factory())
        second = erdos_renyi(5, 0.3, rng=random.Random(11), id_generator=id_factory())
        assert [e.triple for e in first.edges()] == [e.triple for e in second.edges()]

    def test_weights_are_never_zero(self):
        hg = erdos_renyi(4, 0.5, rng=random.Random(1))
        assert all(0.0 < edge.weight <= 1.0 for edge in hg.edges())

    def test_custom_weights_and_kind(self):
        hg = erdos_renyi(
            3,
            1.0,
            max_subset_size=1,
            rng=random.Random(0),
            weight_fn=lambda rng: -2.0,
            kind="oriented",
        )
        assert {edge.weight for edge in hg.edges()} == {-2.0}
        assert {edge.kind for edge in hg.edges()} == {EdgeKind.ORIENTED}

    def test_subset_size_exceeding_nodes(self):
        with pytest.raises(ExhaustedError, match="exceeds the number of nodes"):
            erdos_renyi(3, 0.5, max_subset_size=4)

    @pytest.mark.parametrize("probability", [-0.1, 1.5])
    def test_invalid_probability(self, probability):
        with pytest.raises(ValueError, match="probability must be in"):
            erdos_renyi(3, probability)

    def test_logs_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="hyperforge.generation"):
            erdos_renyi(3, 1.0, max_subset_size=1, rng=random.Random(0))
        assert "Generated Erdos-Renyi hypergraph" in caplog.text

    def test_indexes_consistent(self):
        hg = erdos_renyi(5, 0.4, max_subset_size=3, include_empty=True, rng=random.Random(2))
        assert hg.validate()["valid"]


class TestErdosRenyiByDimension:
    """Tests for erdos_renyi_by_dimension()."""

    def test_graph_like_dimension(self):
        hg = erdos_renyi_by_dimension(4, [(1, 1, 1.0)], rng=random.Random(0))
        assert isinstance(hg, SparseHypergraph)
        assert hg.num_edges() == 16
        assert {edge.kind for edge in hg.edges()} == {EdgeKind.UNDIRECTED}

    def test_mixed_dimensions(self):
        hg = erdos_renyi_by_dimension(4, [(1, 2, 1.0), (0, 4, 1.0)], rng=random.Random(0))
        sizes = {(len(edge.input), len(edge.output)) for edge in hg.edges()}
        assert sizes == {(1, 2), (0, 4)}
        assert hg.num_edges() == 4 * 6 + 1

    def test_validates_whole_plan_first(self):
        with pytest.raises(ExhaustedError):
            erdos_renyi_by_dimension(3, [(1, 1, 0.5), (4, 1, 0.5)])
        with pytest.raises(ValueError, match="probability"):
            erdos_renyi_by_dimension(3, [(1, 1, 2.0)])


class TestErdosRenyiBits:
    """Tests for erdos_renyi_bits()."""

    def test_matches_sparse_generator(self, id_factory):
        sparse = erdos_renyi(5, 0.3, rng=random.Random(9), id_generator=id_factory())
        bits = erdos_renyi_bits(5, 0.3, rng=random.Random(9))
        exported, _ = sparse_to_bits(sparse)
        assert [e.triple for e in bits.edges()] == [e.triple for e in exported.edges()]

    def test_probability_one(self):
        bits = erdos_renyi_bits(3, 1.0, max_subset_size=3, rng=random.Random(0))
        assert bits.num_edges() == 7 * 7
        assert bits.validate()["valid"]


class TestRoundTripWithConversion:
    """Generated graphs survive export to bits."""

    def test_export(self, id_factory):
        hg = erdos_renyi(4, 0.5, rng=random.Random(4), id_generator=id_factory())
        bits, order = sparse_to_bits(hg)
        assert bits.num_edges() == hg.num_edges()
        assert len(order) == 4
