import pytest

from lastmile.models.config import NetworkConfigError, load_network
from lastmile.models.road_network import (
    Node,
    build_adjacency,
    build_coincident_groups,
    build_node_index,
)
from conftest import make_network


def test_node_index_returns_none_for_unknown_ids(grid) -> None:
    index = build_node_index(grid.nodes)
    assert index["J1"].type == "junction"
    assert index.get("nope") is None
    assert grid.node("nope") is None


def test_adjacency_lists_every_edge_under_both_ends(grid) -> None:
    adjacency = build_adjacency(grid.edges)
    for edge in grid.edges:
        assert edge in adjacency[edge.a]
        assert edge in adjacency[edge.b]
    assert [e.id for e in adjacency["J1"]] == ["d1", "l1", "g1", "g2"]


def test_coincident_groups_are_equivalence_classes() -> None:
    nodes = [
        Node("D", 0, 0, "depot"),
        Node("A", 0, 0, "address"),
        Node("J", 0, 0, "junction"),
        Node("B", 5, 5, "address"),
    ]
    groups = build_coincident_groups(nodes)

    assert groups["D"] == ("D", "A", "J")
    assert groups["B"] == ("B",)
    for node_id, group in groups.items():
        assert node_id in group
        for other in group:
            assert groups[other] == group


def test_coincidence_requires_exact_coordinates() -> None:
    groups = build_coincident_groups([
        Node("D", 0.0, 0.0, "depot"),
        Node("A", 0.0, 1e-9, "address"),
    ])
    assert groups["D"] == ("D",)


def test_primary_node_prefers_junctions(grid) -> None:
    assert grid.primary_node(("D", "A1")) == "D"
    assert grid.primary_node(("A2", "J2")) == "J2"
    assert grid.group("unknown") == ("unknown",)


def test_direct_edge_uses_coincident_groups(grid) -> None:
    # A1 sits on the depot, so the depot's road to J1 counts for A1 too
    assert grid.direct_edge("A1", "J1").id == "d1"
    assert grid.direct_edge("J2", "J4") is None
    assert grid.direct_edge("J2", "J4", include_blocked=True).id == "g4"


def test_depot_and_addresses(grid) -> None:
    assert grid.depot_id == "D"
    assert grid.address_ids == ["A1", "A2", "A3"]


def test_visited_addresses_counts_coincident_nodes(grid) -> None:
    edges = [grid.edge("d1"), grid.edge("g1"), grid.edge("l2")]
    assert grid.visited_addresses(edges) == {"A1", "A2"}


def test_missing_length_is_computed_from_coordinates() -> None:
    network = make_network(
        [("D", 0, 0, "depot"), ("A", 300, 400, "address")],
        [{"id": "e", "a": "D", "b": "A"}],
        scale=100.0,
    )
    assert network.edge("e").length_km == pytest.approx(5.0)


@pytest.mark.parametrize(
    "nodes, edges, fragment",
    [
        (
            [{"id": "D", "x": 0, "y": 0, "type": "depot"}, {"id": "D", "x": 1, "y": 1, "type": "address"}],
            [],
            "duplicate node id",
        ),
        (
            [{"id": "D", "x": 0, "y": 0, "type": "depot"}, {"id": "E", "x": 1, "y": 1, "type": "depot"}],
            [],
            "exactly one depot",
        ),
        (
            [{"id": "A", "x": 0, "y": 0, "type": "address"}],
            [],
            "exactly one depot",
        ),
        (
            [{"id": "D", "x": 0, "y": 0, "type": "depot"}],
            [{"id": "e", "a": "D", "b": "ghost"}],
            "unknown node",
        ),
        (
            [{"id": "D", "x": 0, "y": 0, "type": "depot"}, {"id": "A", "x": 1, "y": 1, "type": "address"}],
            [{"id": "e", "a": "D", "b": "A", "lengthKm": -1.0}],
            "negative",
        ),
        (
            [{"id": "D", "x": 0, "y": 0, "type": "depot"}, {"id": "A", "x": 1, "y": 1, "type": "address"}],
            [{"id": "e", "a": "D", "b": "A"}, {"id": "e", "a": "A", "b": "D"}],
            "duplicate edge id",
        ),
    ],
)
def test_invalid_networks_are_rejected(nodes, edges, fragment) -> None:
    with pytest.raises(NetworkConfigError, match=fragment):
        load_network({"canvas": {"scalePxPerKm": 100}, "nodes": nodes, "edges": edges})


def test_load_network_from_json_text_and_file(tmp_path) -> None:
    text = (
        '{"canvas": {"width": 10, "height": 10, "scalePxPerKm": 10},'
        ' "nodes": [{"id": "D", "x": 0, "y": 0, "type": "depot"},'
        '           {"id": "A", "x": 30, "y": 40, "type": "address", "label": "K01"}],'
        ' "edges": [{"id": "e", "a": "D", "b": "A", "blocked": true}]}'
    )
    from_text = load_network(text)
    assert from_text.edge("e").blocked is True
    assert from_text.edge("e").length_km == pytest.approx(5.0)

    path = tmp_path / "network.json"
    path.write_text(text, encoding="utf-8")
    from_file = load_network(path)
    assert [n.id for n in from_file.nodes] == ["D", "A"]


def test_load_network_reports_unreadable_files(tmp_path) -> None:
    with pytest.raises(NetworkConfigError, match="Cannot read"):
        load_network(tmp_path / "missing.json")
