"""
manual_route.py
---------------

Rules for routes drawn edge by edge by a dispatcher.

- The first edge has to leave from the depot (or a node sharing its
  position).
- Every later edge has to continue from where the vehicle currently is.
  A vehicle standing on the depot position may also set off again from
  any depot anchor.
- Undo replays the remaining edges instead of patching state, so the
  visited addresses and the current position never drift.

The finished edge list is what DetourEngine.replace_blocked_edges takes.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from lastmile.models.road_network import Edge, RoadNetwork


@dataclass(frozen=True)
class EdgeSelection:
    valid: bool
    message: Optional[str] = None
    anchor_id: Optional[str] = None
    new_end_node: Optional[str] = None


def start_anchors(network: RoadNetwork) -> Tuple[str, ...]:
    # Every node on the depot position is a valid start.
    return network.group(network.depot_id)


def validate_edge_selection(network: RoadNetwork,
                            edge: Edge,
                            current_end: Optional[str],
                            start_anchor_ids: Sequence[str]) -> EdgeSelection:
    """
    Check whether `edge` may be appended to a hand-drawn route.

    current_end is None while the route is still empty. On success the
    selection names the node the edge is driven from (anchor_id) and the
    node the vehicle ends up at (new_end_node).
    """
    if current_end is None:
        if edge.a not in start_anchor_ids and edge.b not in start_anchor_ids:
            return EdgeSelection(False, "First edge must start at the depot.")
        anchor = edge.a if edge.a in start_anchor_ids else edge.b
        return EdgeSelection(True, anchor_id=anchor, new_end_node=edge.other_end(anchor))

    current_group = network.group(current_end)
    connects_to_current = edge.a in current_group or edge.b in current_group

    at_depot = any(node_id in start_anchor_ids for node_id in current_group)
    connects_to_depot = at_depot and (edge.a in start_anchor_ids or edge.b in start_anchor_ids)

    if not connects_to_current and not connects_to_depot:
        return EdgeSelection(
            False,
            f"Edge {edge.id} doesn't connect to position {current_end}. "
            f"Current neighbours: {', '.join(current_group)}",
        )

    if connects_to_current:
        anchor = edge.a if edge.a in current_group else edge.b
    else:
        anchor = edge.a if edge.a in start_anchor_ids else edge.b
    return EdgeSelection(True, anchor_id=anchor, new_end_node=edge.other_end(anchor))


def _addresses_in(network: RoadNetwork, group: Iterable[str]) -> Set[str]:
    found = set()
    for node_id in group:
        node = network.node(node_id)
        if node is not None and node.type == "address":
            found.add(node_id)
    return found


def reconstruct_after_undo(network: RoadNetwork,
                           edges: Sequence[Edge],
                           start_anchor_ids: Sequence[str]) -> Tuple[Set[str], Optional[str]]:
    """
    Rebuild (visited addresses, current node) from the edges left after an
    undo. The current node is the primary node of the arrival position, so
    a junction wins over an address stacked on top of it.
    """
    visited: Set[str] = set()
    current: Optional[str] = None

    for idx, edge in enumerate(edges):
        if idx == 0:
            anchor = edge.a if edge.a in start_anchor_ids else edge.b
        else:
            current_group = network.group(current)
            if edge.a in current_group or edge.b in current_group:
                anchor = edge.a if edge.a in current_group else edge.b
            else:
                anchor = edge.a if edge.a in start_anchor_ids else edge.b

        arrival = network.group(edge.other_end(anchor))
        visited |= _addresses_in(network, arrival)
        current = network.primary_node(arrival)

    return visited, current


def is_route_complete(visited: Set[str],
                      current: Optional[str],
                      depot_id: str,
                      total_addresses: int) -> bool:
    # An empty route has no position yet and counts as standing on the depot.
    at_depot = current is None or current == depot_id
    return len(visited) == total_addresses and at_depot


def build_manual_route(network: RoadNetwork,
                       edges: Sequence[Edge]) -> Tuple[List[Edge], List[EdgeSelection]]:
    # Append edges one at a time, keeping the accepted ones and the rejections.
    anchors = start_anchors(network)
    accepted: List[Edge] = []
    rejected: List[EdgeSelection] = []
    current: Optional[str] = None

    for edge in edges:
        selection = validate_edge_selection(network, edge, current, anchors)
        if not selection.valid:
            rejected.append(selection)
            continue
        accepted.append(edge)
        current = selection.new_end_node

    return accepted, rejected
