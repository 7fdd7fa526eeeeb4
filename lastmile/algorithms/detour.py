"""
detour.py
---------

Turns a planned edge sequence into the route the vehicle actually drives.

- Walks the planned edges from the depot, keeping track of where the
  vehicle currently is.
- Replaces every blocked edge (construction zone) with the shortest legal
  way around it and remembers each replacement as a DetourRecord.
- Repairs hand-drawn routes whose edges do not join up by inserting the
  shortest connecting path, or by dropping an edge that cannot be reached.

Nothing here raises on bad input; every repair is reported as a
RouteRepair so callers can tell a clean route from a patched one.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from lastmile.algorithms.pathfinding import find_detour, path_length
from lastmile.models.road_network import DetourRecord, Edge, RoadNetwork


logger = logging.getLogger(__name__)


REPAIR_BRIDGED = "bridged"
REPAIR_SKIPPED = "skipped"
REPAIR_UNRESOLVED_BLOCK = "unresolved_block"


@dataclass(frozen=True)
class RouteRepair:
    kind: str
    edge_id: str
    position: str
    inserted_edges: int = 0


@dataclass
class MaterializedRoute:
    edges: List[Edge] = field(default_factory=list)
    detours: List[DetourRecord] = field(default_factory=list)
    repairs: List[RouteRepair] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return any(r.kind != REPAIR_BRIDGED for r in self.repairs)

    @property
    def distance_km(self) -> float:
        return path_length(self.edges)


class DetourEngine:
    # Materializes planned routes on one road network.

    def __init__(self, network: RoadNetwork):
        self.network = network

    def _start_position(self, planned: Sequence[Edge]) -> str:
        depot_id = self.network.depot_id
        if planned:
            first = planned[0]
            depot_group = self.network.group(depot_id)
            if first.a not in depot_group and first.b not in depot_group:
                # Hand-drawn route that does not leave from the depot
                logger.info("Route starts from %s instead of depot %s", first.a, depot_id)
                return first.a
        return depot_id

    def _resolve_next(self, edge: Edge, current: str) -> Optional[str]:
        # End of edge opposite the current position, coincident nodes included.
        group = self.network.group(current)
        if edge.a in group:
            return edge.b
        if edge.b in group:
            return edge.a
        return None

    def _bridge(self, edge: Edge, current: str):
        # Shortest path from current to either end of a disconnected edge.
        #
        # Returns (path, near_end, far_end) or None.
        to_a = find_detour(self.network, current, edge.a)
        to_b = find_detour(self.network, current, edge.b)

        if to_a is not None and to_b is not None:
            if path_length(to_a) <= path_length(to_b):
                return to_a, edge.a, edge.b
            return to_b, edge.b, edge.a
        if to_a is not None:
            return to_a, edge.a, edge.b
        if to_b is not None:
            return to_b, edge.b, edge.a
        return None

    def replace_blocked_edges(self, planned_edges: Sequence[Edge]) -> MaterializedRoute:
        planned = list(planned_edges)
        result = MaterializedRoute()
        current = self._start_position(planned)

        logger.debug("Materializing %d edges (%d blocked) from %s",
                     len(planned), sum(1 for e in planned if e.blocked), current)

        for edge in planned:
            next_node = self._resolve_next(edge, current)

            if next_node is None:
                bridge = self._bridge(edge, current)
                if bridge is None:
                    logger.warning("Cannot reach edge %s from %s, dropping it", edge.id, current)
                    result.repairs.append(RouteRepair(REPAIR_SKIPPED, edge.id, current))
                    continue

                path, near_end, next_node = bridge
                logger.warning("Edge %s does not connect to %s, bridged with %d edges",
                               edge.id, current, len(path))
                result.edges.extend(replace(e, is_detour=False) for e in path)
                result.repairs.append(RouteRepair(REPAIR_BRIDGED, edge.id, current, len(path)))
                current = near_end

            if edge.blocked:
                detour = find_detour(self.network, current, next_node, {edge.id})
                if detour:
                    result.edges.extend(replace(e, is_detour=True) for e in detour)
                    result.detours.append(DetourRecord(
                        original_edge=edge,
                        detour_edges=tuple(detour),
                        start_node=current,
                        end_node=next_node,
                    ))
                else:
                    # Only possible if the open roads do not form a connected network
                    logger.warning("No detour around blocked edge %s (%s -> %s)",
                                   edge.id, current, next_node)
                    result.edges.append(replace(edge, is_detour=False))
                    result.repairs.append(
                        RouteRepair(REPAIR_UNRESOLVED_BLOCK, edge.id, current))
            else:
                result.edges.append(replace(edge, is_detour=False))

            current = next_node

        return result


# ----------------------------------------------------------------------
# Function API
# ----------------------------------------------------------------------
def replace_blocked_edges(planned_edges: Sequence[Edge], network: RoadNetwork) -> MaterializedRoute:
    return DetourEngine(network).replace_blocked_edges(planned_edges)
