"""Tests for the sparse hypergraph representation."""

import copy
import random
from uuid import UUID

import pytest

from hyperforge import Direction, EdgeKind, SparseHypergraph
from hyperforge.errors import (
    IndexCorruptionError,
    InvalidNodeError,
    NotFoundError,
    ZeroWeightError,
)


class TestNodes:
    """Tests for node registration and removal."""

    def test_add_node_uses_generator(self, sparse):
        a = sparse.add_node()
        b = sparse.add_node()
        assert a == UUID(int=1)
        assert b == UUID(int=2)
        assert sparse.nodes() == {a, b}
        assert sparse.num_nodes() == 2

    def test_default_generator_gives_uuids(self):
        hg = SparseHypergraph()
        node = hg.add_node()
        assert isinstance(node, UUID)
        assert hg.has_node(node)

    def test_int_ids_are_wrapped(self):
        hg = SparseHypergraph(id_generator=lambda: 7)
        assert hg.add_node() == UUID(int=7)

    def test_duplicate_generated_id_is_fatal(self):
        hg = SparseHypergraph(id_generator=lambda: UUID(int=7))
        hg.add_node()
        with pytest.raises(RuntimeError, match="duplicate node id"):
            hg.add_node()
        assert hg.num_nodes() == 1

    def test_removed_id_is_never_reissued(self):
        ids = iter([UUID(int=1), UUID(int=1)])
        hg = SparseHypergraph(id_generator=lambda: next(ids))
        a = hg.add_node()
        hg.remove_node(a)
        with pytest.raises(RuntimeError, match="removed node id"):
            hg.add_node()
        assert hg.num_nodes() == 0

    def test_removed_ids_survive_round_trip(self, triangle):
        hg, (a, b, c) = triangle
        hg.remove_node(a)
        restored = SparseHypergraph.from_dict(hg.to_dict(), id_generator=lambda: a)
        with pytest.raises(RuntimeError, match="removed node id"):
            restored.add_node()
        assert restored.validate()["valid"]

    def test_has_node_accepts_strings(self, sparse):
        a = sparse.add_node()
        assert sparse.has_node(str(a))
        assert not sparse.has_node("not-a-uuid")
        assert not sparse.has_node(UUID(int=99))

    def test_remove_unknown_node_raises(self, sparse):
        with pytest.raises(NotFoundError, match="Node not found"):
            sparse.remove_node(UUID(int=99))

    def test_not_found_message_is_plain(self, sparse):
        with pytest.raises(KeyError) as excinfo:
            sparse.remove_node(UUID(int=99))
        assert str(excinfo.value).startswith("Node not found")

    def test_remove_node_cascades(self, triangle):
        hg, (a, b, c) = triangle
        extra = hg.add_edge({b}, {c}, 0.5)
        removed = hg.remove_node(a)
        assert removed == [0, 1]
        assert not hg.has_node(a)
        assert [e.id for e in hg.edges()] == [extra]
        for edge_id in removed:
            with pytest.raises(NotFoundError):
                hg.get_edge(edge_id)
        assert hg.validate()["valid"]

    def test_no_dangling_edges_after_removal(self, triangle):
        hg, (a, b, c) = triangle
        hg.remove_node(b)
        assert all(b not in edge.nodes for edge in hg.edges())
        assert hg.find_edges(c) == []

    def test_removed_node_cannot_be_used(self, triangle):
        hg, (a, b, c) = triangle
        hg.remove_node(c)
        with pytest.raises(InvalidNodeError, match="not registered"):
            hg.add_edge({a}, {c}, 1.0)
        with pytest.raises(NotFoundError):
            hg.neighbors_of(c)


class TestEdges:
    """Tests for edge creation, lookup and removal."""

    def test_add_and_get(self, sparse):
        a, b, c = sparse.add_nodes(3)
        edge_id = sparse.add_edge({a}, {b, c}, 2.5)
        edge = sparse.get_edge(edge_id)
        assert edge.input == frozenset({a})
        assert edge.output == frozenset({b, c})
        assert edge.weight == 2.5
        assert edge.kind is EdgeKind.DIRECTED
        assert edge.triple == (frozenset({a}), frozenset({b, c}), 2.5)

    def test_edge_ids_are_not_reused(self, sparse):
        a, b = sparse.add_nodes(2)
        first = sparse.add_edge({a}, {b}, 1.0)
        sparse.remove_edge(first)
        second = sparse.add_edge({a}, {b}, 1.0)
        assert second != first

    def test_empty_sides_allowed(self, sparse):
        a = sparse.add_node()
        source = sparse.add_edge(set(), {a}, 1.0)
        sink = sparse.add_edge({a}, [], -1.0)
        assert sparse.get_edge(source).input == frozenset()
        assert sparse.get_edge(sink).output == frozenset()
        assert sparse.num_edges() == 2

    def test_zero_weight_rejected(self, sparse):
        a, b = sparse.add_nodes(2)
        with pytest.raises(ZeroWeightError):
            sparse.add_edge({a}, {b}, 0)
        assert sparse.num_edges() == 0

    def test_invalid_node_rejected_without_mutation(self, sparse):
        a = sparse.add_node()
        with pytest.raises(InvalidNodeError):
            sparse.add_edge({a}, {UUID(int=99)}, 1.0)
        assert sparse.num_edges() == 0
        assert list(sparse.neighbors_of(a)) == []
        assert sparse.validate()["valid"]

    def test_malformed_node_ids(self, sparse):
        a = sparse.add_node()
        with pytest.raises(InvalidNodeError, match="Not a valid node id"):
            sparse.add_edge({a}, {"nope"}, 1.0)
        with pytest.raises(TypeError, match="Node id must be"):
            sparse.add_edge({a}, {42}, 1.0)

    def test_parallel_edges_are_distinct(self, sparse):
        a, b = sparse.add_nodes(2)
        first = sparse.add_edge({a}, {b}, 1.0)
        second = sparse.add_edge({a}, {b}, 3.0)
        assert first != second
        assert sparse.edges_between({a}, {b}) == [first, second]
        assert sparse.find_edge({a}, {b}) == first
        assert sparse.find_edge({b}, {a}) is None

    def test_remove_edge_twice(self, triangle):
        hg, _ = triangle
        removed = hg.remove_edge(0)
        assert removed.id == 0
        with pytest.raises(NotFoundError, match="Edge not found"):
            hg.remove_edge(0)
        assert hg.num_edges() == 1
        assert hg.has_edge(1)

    def test_update_weight(self, triangle):
        hg, _ = triangle
        updated = hg.update_weight(0, -4.0)
        assert updated.weight == -4.0
        assert hg.get_edge(0).weight == -4.0
        with pytest.raises(ZeroWeightError):
            hg.update_weight(0, 0.0)
        assert hg.get_edge(0).weight == -4.0

    def test_loop_kind_stores_union(self, sparse):
        a, b = sparse.add_nodes(2)
        edge = sparse.get_edge(sparse.add_edge({a}, {b}, 1.0, kind="loop"))
        assert edge.input == edge.output == frozenset({a, b})

    def test_blob_kind_stores_blob_as_input(self, sparse):
        a, b, c = sparse.add_nodes(3)
        edge = sparse.get_edge(sparse.add_edge({a}, {b, c}, 1.0, kind=EdgeKind.BLOB))
        assert edge.input == frozenset({a, b, c})
        assert edge.output == frozenset()
        assert len(list(edge.transitions())) == 8

    def test_edge_rows(self, triangle):
        hg, (a, b, c) = triangle
        rows = list(hg.edge_rows())
        assert rows[0] == ([str(a)], sorted([str(b), str(c)]), 1.0)
        assert rows[1][2] == -1.0


class TestEndpoints:
    """Tests for adding and removing nodes on an existing edge."""

    def test_add_input_and_output_nodes(self, triangle):
        hg, (a, b, c) = triangle
        edge = hg.add_input_node(0, b)
        assert edge.id == 0
        assert edge.input == frozenset({a, b})
        assert edge.weight == 1.0
        assert 0 in [e.id for e in hg.neighbors_of(b, "input")]
        assert hg.edges_between({a, b}, {b, c}) == [0]
        assert hg.edges_between({a}, {b, c}) == []

        hg.add_output_node(1, b)
        assert hg.get_edge(1).output == frozenset({a, b})
        assert 1 in [e.id for e in hg.neighbors_of(b, Direction.AS_OUTPUT)]
        assert hg.validate()["valid"]

    def test_remove_input_and_output_nodes(self, triangle):
        hg, (a, b, c) = triangle
        hg.remove_output_node(0, c)
        assert hg.get_edge(0).output == frozenset({b})
        assert 0 not in hg.find_edges(c)
        assert hg.find_edge({a}, {b}) == 0

        hg.remove_input_node(0, a)
        assert hg.get_edge(0).input == frozenset()
        assert [edge.id for edge, _, _ in hg.outgoing(set())] == [0]
        assert hg.validate()["valid"]

    def test_loop_loses_node_on_both_sides(self, sparse):
        a, b = sparse.add_nodes(2)
        edge_id = sparse.add_edge({a, b}, {a, b}, 1.0, "loop")
        edge = sparse.remove_output_node(edge_id, b)
        assert edge.input == edge.output == frozenset({a})
        assert sparse.find_edges(b) == []
        assert sparse.validate()["valid"]

    def test_blob_grows_through_either_side(self, sparse):
        a, b = sparse.add_nodes(2)
        edge_id = sparse.add_edge({a}, set(), 1.0, "blob")
        edge = sparse.add_output_node(edge_id, b)
        assert edge.input == frozenset({a, b})
        assert edge.output == frozenset()

    def test_unknown_edge_raises(self, triangle):
        hg, (a, b, c) = triangle
        with pytest.raises(NotFoundError, match="Edge not found"):
            hg.add_input_node(99, a)
        with pytest.raises(NotFoundError, match="Edge not found"):
            hg.remove_output_node(99, a)

    def test_unregistered_node_rejected_without_mutation(self, triangle):
        hg, (a, b, c) = triangle
        with pytest.raises(InvalidNodeError):
            hg.add_output_node(0, UUID(int=99))
        assert hg.get_edge(0).output == frozenset({b, c})
        assert hg.validate()["valid"]

    def test_removing_absent_endpoint_raises(self, triangle):
        hg, (a, b, c) = triangle
        with pytest.raises(NotFoundError, match="not in the input of edge 0"):
            hg.remove_input_node(0, b)
        with pytest.raises(NotFoundError, match="not in the output of edge 0"):
            hg.remove_output_node(0, a)
        assert hg.get_edge(0).triple == (frozenset({a}), frozenset({b, c}), 1.0)


class TestQueries:
    """Tests for neighbor and containment queries."""

    def test_neighbors_by_direction(self, triangle):
        hg, (a, b, c) = triangle
        assert [e.id for e in hg.neighbors_of(a, Direction.AS_INPUT)] == [0]
        assert [e.id for e in hg.neighbors_of(a, "output")] == [1]
        assert [e.id for e in hg.neighbors_of(b, "input")] == [1]

    def test_neighbors_view_is_restartable_and_live(self, triangle):
        hg, (a, b, c) = triangle
        view = hg.neighbors_of(a)
        assert [e.id for e in view] == [e.id for e in view] == [0]
        new_id = hg.add_edge({a}, {c}, 2.0)
        assert [e.id for e in view] == [0, new_id]
        assert len(view) == 2
        assert new_id in view
        assert hg.get_edge(new_id) in view

    def test_removal_during_iteration(self, triangle):
        hg, (a, b, c) = triangle
        hg.add_edge({a}, {c}, 2.0)
        seen = []
        for edge in hg.neighbors_of(a):
            seen.append(edge.id)
            if edge.id == 0:
                hg.remove_edge(2)
        assert seen == [0]

    def test_find_edges(self, triangle):
        hg, (a, b, c) = triangle
        assert hg.find_edges(a) == [0, 1]
        hg.add_edge({b}, {c}, 1.0)
        assert hg.find_edges(c) == [0, 1, 2]

    def test_edges_from(self, triangle):
        hg, (a, b, c) = triangle
        assert [e.id for e in hg.edges_from({b, c})] == [1]
        assert hg.edges_from({b}) == []

    def test_outgoing_follows_kinds(self, sparse):
        a, b, c = sparse.add_nodes(3)
        directed = sparse.add_edge({a}, {b}, 1.0)
        undirected = sparse.add_edge({c}, {a}, 2.0, "undirected")
        oriented = sparse.add_edge({b}, {a}, 3.0, "oriented")
        moves = {(edge.id, target, weight) for edge, target, weight in sparse.outgoing(a)}
        assert moves == {
            (directed, frozenset({b}), 1.0),
            (undirected, frozenset({c}), 2.0),
            (oriented, frozenset({b}), -3.0),
        }

    def test_outgoing_from_empty_set(self, sparse):
        a = sparse.add_node()
        edge_id = sparse.add_edge(set(), {a}, 1.0)
        moves = sparse.outgoing([])
        assert [(edge.id, target) for edge, target, _ in moves] == [(edge_id, frozenset({a}))]

    def test_outgoing_from_blob_part(self, sparse):
        a, b, c = sparse.add_nodes(3)
        sparse.add_edge({a, b}, {c}, 0.5, "blob")
        [(_, target, weight)] = sparse.outgoing({a})
        assert target == frozenset({b, c})
        assert weight == 0.5


class TestIntegrity:
    """Tests for index consistency."""

    def test_random_mutations_keep_indexes_consistent(self, sparse):
        rng = random.Random(7)
        nodes = sparse.add_nodes(6)
        live = []
        for _ in range(300):
            roll = rng.random()
            if roll < 0.6 or not live:
                source = rng.sample(nodes, rng.randint(0, 3))
                target = rng.sample(nodes, rng.randint(0, 3))
                kind = rng.choice(list(EdgeKind))
                live.append(sparse.add_edge(source, target, rng.uniform(0.1, 2.0), kind))
            elif roll < 0.9:
                sparse.remove_edge(live.pop(rng.randrange(len(live))))
            else:
                sparse.update_weight(rng.choice(live), -1.5)
            assert sparse.validate() == {"valid": True, "errors": []}
        assert sorted(live) == [e.id for e in sparse.edges()]

    def test_every_bucket_entry_is_registered(self, triangle):
        hg, _ = triangle
        for index in (hg._input_index, hg._output_index):
            for bucket in index.values():
                assert bucket <= set(hg._edges)

    def test_corrupted_index_detected(self, triangle):
        hg, (a, b, c) = triangle
        hg._input_index[a].add(99)
        result = hg.validate()
        assert not result["valid"]
        assert any("missing edge 99" in error for error in result["errors"])
        with pytest.raises(IndexCorruptionError):
            hg.check_integrity()
        with pytest.raises(IndexCorruptionError):
            list(hg.neighbors_of(a))


class TestStatsAndSerialization:
    """Tests for stats, dict export and copying."""

    def test_stats(self, triangle):
        hg, (a, b, c) = triangle
        hg.add_edge({a}, {b}, 1.0, "undirected")
        stats = hg.stats()
        assert stats["num_nodes"] == 3
        assert stats["num_edges"] == 3
        assert stats["edges_by_kind"] == {"directed": 2, "undirected": 1}

    def test_dict_round_trip(self, triangle):
        hg, (a, b, c) = triangle
        hg.add_edge({a}, {a}, 0.75, "loop")
        hg.remove_edge(0)
        restored = SparseHypergraph.from_dict(hg.to_dict())
        assert restored.id == hg.id
        assert restored.nodes() == hg.nodes()
        assert [e.triple for e in restored.edges()] == [e.triple for e in hg.edges()]
        assert [e.id for e in restored.edges()] == [1, 2]
        assert restored.add_edge({a}, {b}, 1.0) == 3
        assert restored.validate()["valid"]

    def test_from_dict_rejects_duplicate_edge_ids(self, triangle):
        hg, _ = triangle
        data = hg.to_dict()
        data["edges"].append(dict(data["edges"][0]))
        with pytest.raises(ValueError, match="Duplicate edge id"):
            SparseHypergraph.from_dict(data)

    def test_deepcopy_is_independent(self, triangle):
        hg, (a, b, c) = triangle
        clone = copy.deepcopy(hg)
        clone.remove_node(a)
        assert hg.num_edges() == 2
        assert clone.num_edges() == 0
        assert hg.validate()["valid"] and clone.validate()["valid"]
