import itertools

import pytest

from lastmile.algorithms.pathfinding import find_detour, path_length
from conftest import make_network


def _assert_connected_chain(path, start, end) -> None:
    current = start
    for edge in path:
        assert edge.touches(current)
        current = edge.other_end(current)
    assert current == end


def test_shortest_path_avoids_blocked_edges(grid) -> None:
    path = find_detour(grid, "J2", "J4")
    assert [e.id for e in path] == ["g1", "g2", "g3"]
    assert path_length(path) == pytest.approx(3.0)


def test_excluded_edges_are_not_used(triangle) -> None:
    path = find_detour(triangle, "A", "B", {"e2"})
    assert [e.id for e in path] == ["e1", "e3"]


def test_unreachable_returns_none(grid) -> None:
    assert find_detour(grid, "J1", "J9") is None
    # Excluding J2's only open road cuts it off
    assert find_detour(grid, "J1", "J2", {"g1"}) is None


def test_unknown_nodes_have_no_path(grid) -> None:
    assert find_detour(grid, "J1", "ghost") is None
    assert find_detour(grid, "ghost", "J1") is None


def test_same_start_and_end_is_an_empty_path(grid) -> None:
    assert find_detour(grid, "J3", "J3") == []


def test_every_path_is_legal_and_connected(grid) -> None:
    excluded = {"g2"}
    node_ids = [n.id for n in grid.nodes]
    for start, end in itertools.permutations(node_ids, 2):
        path = find_detour(grid, start, end, excluded)
        if path is None:
            continue
        for edge in path:
            assert edge.blocked is False
            assert edge.id not in excluded
        _assert_connected_chain(path, start, end)


def test_ties_go_to_the_node_listed_first() -> None:
    edges = [
        {"id": "sp", "a": "S", "b": "P", "lengthKm": 1.0},
        {"id": "sq", "a": "S", "b": "Q", "lengthKm": 1.0},
        {"id": "pt", "a": "P", "b": "T", "lengthKm": 1.0},
        {"id": "qt", "a": "Q", "b": "T", "lengthKm": 1.0},
    ]
    p_first = make_network(
        [("S", 0, 0, "depot"), ("P", 1, 0, "junction"), ("Q", 0, 1, "junction"), ("T", 1, 1, "address")],
        edges,
    )
    q_first = make_network(
        [("S", 0, 0, "depot"), ("Q", 0, 1, "junction"), ("P", 1, 0, "junction"), ("T", 1, 1, "address")],
        edges,
    )

    assert [e.id for e in find_detour(p_first, "S", "T")] == ["sp", "pt"]
    assert [e.id for e in find_detour(q_first, "S", "T")] == ["sq", "qt"]
    # Same inputs, same answer
    assert find_detour(p_first, "S", "T") == find_detour(p_first, "S", "T")
