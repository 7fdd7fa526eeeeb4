import pytest

from lastmile.algorithms.detour import replace_blocked_edges
from lastmile.algorithms.manual_route import (
    build_manual_route,
    is_route_complete,
    reconstruct_after_undo,
    start_anchors,
    validate_edge_selection,
)


def _edges(network, *edge_ids):
    return [network.edge(edge_id) for edge_id in edge_ids]


def test_start_anchors_are_the_depot_position(grid) -> None:
    assert start_anchors(grid) == ("D", "A1")


@pytest.mark.parametrize("edge_id, anchor", [("d1", "D"), ("l1", "A1")])
def test_first_edge_leaves_from_any_depot_anchor(grid, edge_id, anchor) -> None:
    selection = validate_edge_selection(grid, grid.edge(edge_id), None, start_anchors(grid))
    assert selection.valid
    assert selection.anchor_id == anchor
    assert selection.new_end_node == "J1"


def test_first_edge_away_from_the_depot_is_rejected(grid) -> None:
    selection = validate_edge_selection(grid, grid.edge("g1"), None, start_anchors(grid))
    assert not selection.valid
    assert selection.anchor_id is None and selection.new_end_node is None
    assert "depot" in selection.message


def test_next_edge_continues_from_the_current_position(grid) -> None:
    anchors = start_anchors(grid)

    selection = validate_edge_selection(grid, grid.edge("g1"), "J1", anchors)
    assert (selection.anchor_id, selection.new_end_node) == ("J1", "J2")

    # Edges can be driven against their a -> b direction
    selection = validate_edge_selection(grid, grid.edge("l2"), "A2", anchors)
    assert (selection.anchor_id, selection.new_end_node) == ("A2", "J2")


def test_disconnected_edge_is_rejected(grid) -> None:
    selection = validate_edge_selection(grid, grid.edge("g3"), "J1", start_anchors(grid))
    assert not selection.valid
    assert "g3" in selection.message and "J1" in selection.message


def test_back_on_the_depot_position_any_anchor_may_continue(grid) -> None:
    # The vehicle stands on A1, which shares its position with the depot
    selection = validate_edge_selection(grid, grid.edge("d1"), "A1", start_anchors(grid))
    assert (selection.anchor_id, selection.new_end_node) == ("D", "J1")


def test_undo_to_an_empty_route() -> None:
    assert reconstruct_after_undo(None, [], ("D",)) == (set(), None)


def test_undo_replays_position_and_visits(grid) -> None:
    visited, current = reconstruct_after_undo(grid, _edges(grid, "d1", "g1", "l2"), start_anchors(grid))
    assert visited == {"A2"}
    assert current == "A2"

    visited, current = reconstruct_after_undo(grid, _edges(grid, "d1", "g1"), start_anchors(grid))
    assert visited == set()
    assert current == "J2"


def test_undo_arriving_on_the_depot_position(grid) -> None:
    # l1 ends on A1; the depot sits on the same spot and is picked as position
    visited, current = reconstruct_after_undo(grid, _edges(grid, "d1", "l1"), start_anchors(grid))
    assert visited == {"A1"}
    assert current == "D"


def test_route_completion(grid) -> None:
    everything = {"A1", "A2", "A3"}
    assert is_route_complete(everything, "D", "D", 3)
    assert is_route_complete(everything, None, "D", 3)
    assert not is_route_complete(everything, "J1", "D", 3)
    assert not is_route_complete({"A1", "A2"}, "D", "D", 3)


def test_full_hand_drawn_round_trip(grid) -> None:
    planned = _edges(grid, "d1", "g1", "l2", "l2", "g1", "g2", "g3", "l3", "l3", "g3", "g2", "l1")
    accepted, rejected = build_manual_route(grid, planned)
    assert accepted == planned
    assert rejected == []

    visited, current = reconstruct_after_undo(grid, accepted, start_anchors(grid))
    assert is_route_complete(visited, current, grid.depot_id, len(grid.address_ids))

    # Undoing the last edge leaves the vehicle out on the network
    visited, current = reconstruct_after_undo(grid, accepted[:-1], start_anchors(grid))
    assert current == "J1"
    assert not is_route_complete(visited, current, grid.depot_id, len(grid.address_ids))


def test_build_drops_edges_that_do_not_connect(grid) -> None:
    accepted, rejected = build_manual_route(grid, _edges(grid, "d1", "g3", "g1", "g4"))
    assert [e.id for e in accepted] == ["d1", "g1", "g4"]
    assert len(rejected) == 1 and not rejected[0].valid

    # The accepted walk crosses the construction zone and gets a detour
    route = replace_blocked_edges(accepted, grid)
    assert len(route.detours) == 1
    assert route.detours[0].original_edge.id == "g4"
