# Application controller for the Last-Mile Route Planner.
#
# This version puts ALL behaviour inside the RoutePlannerApp class
# (except the tiny entrypoint), so the UI layer only ever talks to one
# object.
#
# Classes: RoutePlannerApp: holds the road network and runs the heuristics.
# A front end receives a RoutePlannerApp instance & uses its methods instead
# of calling the algorithm modules directly.

import logging
import sys
import time
from typing import Dict, List, Optional

from lastmile.algorithms.clarke_wright import ClarkeWrightSolver
from lastmile.algorithms.detour import DetourEngine, MaterializedRoute
from lastmile.algorithms.lin_kernighan import LinKernighanSearch
from lastmile.algorithms.manual_route import (
    build_manual_route,
    is_route_complete,
    reconstruct_after_undo,
    start_anchors,
)
from lastmile.algorithms.nearest_insertion import nearest_insertion
from lastmile.algorithms.network_distance import NetworkDistanceService
from lastmile.algorithms.route_builder import sequence_to_edges
from lastmile.algorithms.two_opt import tour_length, two_opt
from lastmile.models.config import load_network
from lastmile.models.road_network import RoadNetwork
from lastmile.settings import Settings, settings as default_settings
from lastmile.utils.cancellation import CancellationToken
from lastmile.utils.logging_utils import get_logger


logger = logging.getLogger("lastmile.app")


# construction heuristic, improvement heuristic
MODES = {
    "ni": ("nearest_insertion", None),
    "cw": ("clarke_wright", None),
    "ni_2opt": ("nearest_insertion", "two_opt"),
    "cw_2opt": ("clarke_wright", "two_opt"),
    "ni_lk": ("nearest_insertion", "lin_kernighan"),
    "cw_lk": ("clarke_wright", "lin_kernighan"),
}


class RoutePlannerApp:
    # High-level controller for the route planner.
    #
    # Responsibilities:
    # - Own the road network and ONE distance service, so the distance cache
    #   is shared by every heuristic run in the session.
    # - Provide a simple .run(mode) API for the front end.
    # - Turn a visiting order into the edges actually driven.

    def __init__(self,
                 network: Optional[RoadNetwork] = None,
                 settings: Optional[Settings] = None) -> None:
        self.settings = settings or default_settings
        self.network = network or self._build_default_network()
        self.distance = NetworkDistanceService(self.network)
        self.detour_engine = DetourEngine(self.network)

    # ------------------------------------------------------------------
    # 1. Network management
    # ------------------------------------------------------------------
    def _build_default_network(self) -> RoadNetwork:
        # A small demo district: a 3x3 junction grid, seven addresses and
        # one construction zone. The depot shares its position with A01.
        junctions = [
            ("J1", 200, 150), ("J2", 480, 150), ("J3", 760, 150),
            ("J4", 200, 320), ("J5", 480, 320), ("J6", 760, 320),
            ("J7", 200, 500), ("J8", 480, 500), ("J9", 760, 500),
        ]
        addresses = [
            ("A01", 480, 380, "J5"), ("A02", 260, 110, "J1"),
            ("A03", 800, 190, "J3"), ("A04", 150, 360, "J4"),
            ("A05", 720, 360, "J6"), ("A06", 240, 540, "J7"),
            ("A07", 520, 540, "J8"),
        ]
        grid = [
            ("J1", "J2"), ("J2", "J3"), ("J4", "J5"), ("J5", "J6"),
            ("J7", "J8"), ("J8", "J9"), ("J1", "J4"), ("J4", "J7"),
            ("J2", "J5"), ("J5", "J8"), ("J3", "J6"), ("J6", "J9"),
        ]

        nodes = [{"id": "D00", "x": 480, "y": 380, "type": "depot"}]
        nodes += [{"id": j, "x": x, "y": y, "type": "junction"} for j, x, y in junctions]
        nodes += [{"id": a, "x": x, "y": y, "type": "address"} for a, x, y, _ in addresses]

        edges = [{"id": "E00", "a": "D00", "b": "J5"}]
        edges += [
            {"id": f"E{i:02d}", "a": a, "b": b, "blocked": (a, b) == ("J5", "J6")}
            for i, (a, b) in enumerate(grid, start=1)
        ]
        edges += [
            {"id": f"L{a[1:]}", "a": a, "b": junction}
            for a, _, _, junction in addresses
        ]

        return load_network({
            "canvas": {"width": 960, "height": 640,
                       "scalePxPerKm": self.settings.default_scale_px_per_km},
            "nodes": nodes,
            "edges": edges,
        })

    def get_network(self) -> RoadNetwork:
        return self.network

    def update_network(self, network: RoadNetwork) -> None:
        # Cached distances belong to the old network
        self.network = network
        self.distance = NetworkDistanceService(network)
        self.detour_engine = DetourEngine(network)

    # ------------------------------------------------------------------
    # 2. Algorithm execution API (what the front end calls)
    # ------------------------------------------------------------------
    def run(self, mode: str, cancel_token: Optional[CancellationToken] = None) -> dict:
        # Public method to run one construction (+ improvement) pipeline.
        result = {
            "mode": mode,
            "sequence": None,
            "edges": None,
            "detours": None,
            "repairs": None,
            "distance": None,
            "exec_time": None,
            "error": None,
            "stats": {},
        }

        try:
            if mode not in MODES:
                raise ValueError(f"Unknown algorithm mode: {mode}")
            construction, improvement = MODES[mode]

            depot_id = self.network.depot_id
            addresses = self.network.address_ids
            stats: Dict[str, object] = {}

            t0 = time.perf_counter()
            if construction == "nearest_insertion":
                sequence = nearest_insertion(addresses, depot_id, self.distance)
            else:
                cw = ClarkeWrightSolver(self.distance)
                sequence = cw.solve(addresses, depot_id)
                stats.update(cw.get_stats())

            initial_length = tour_length(sequence, depot_id, self.distance)
            stats["initial_tour_km"] = initial_length

            if improvement == "two_opt":
                sequence = two_opt(sequence, self.distance, depot_id, cancel_token)
            elif improvement == "lin_kernighan":
                search = LinKernighanSearch(
                    self.distance,
                    candidate_k=self.settings.candidate_k,
                    max_iterations=self.settings.max_iterations,
                    epsilon=self.settings.gain_epsilon,
                )
                sequence = search.solve(sequence, depot_id, cancel_token)
                stats.update(search.get_stats())
            t1 = time.perf_counter()

            final_length = tour_length(sequence, depot_id, self.distance)
            if improvement is not None:
                # Percentage improvement over the construction heuristic
                if initial_length > 0:
                    stats["improvement_pct"] = (initial_length - final_length) / initial_length * 100.0
                else:
                    stats["improvement_pct"] = 0.0

            route = self.materialize(sequence)
            stats["tour_km"] = final_length
            stats["detour_count"] = len(route.detours)
            stats["visited_addresses"] = len(self.network.visited_addresses(route.edges))
            stats.update({f"cache_{k}": v for k, v in self.distance.get_cache_stats().items()})

            result["sequence"] = sequence
            result["edges"] = route.edges
            result["detours"] = route.detours
            result["repairs"] = route.repairs
            result["distance"] = route.distance_km
            result["exec_time"] = t1 - t0
            result["stats"] = stats

        except Exception as e:
            logger.exception("Route planning failed for mode %s", mode)
            result["error"] = str(e)

        return result

    def run_all(self) -> dict:
        # Run every pipeline on the current network, for comparison.
        return {mode: self.run(mode) for mode in MODES}

    # ------------------------------------------------------------------
    # 3. Route materialization
    # ------------------------------------------------------------------
    def materialize(self, sequence: List[str]) -> MaterializedRoute:
        # Visiting order -> planned edges -> driven edges with detours.
        build = sequence_to_edges(sequence, self.network)
        if build.unreachable:
            logger.warning("Unreachable stops: %s", ", ".join(build.unreachable))
        return self.detour_engine.replace_blocked_edges(build.edges)

    def materialize_manual(self, edge_ids: List[str]) -> dict:
        # Hand-drawn route: drop edges that don't continue the route, then
        # drive the rest with detours around construction zones.
        edges = []
        for edge_id in edge_ids:
            edge = self.network.edge(edge_id)
            if edge is None:
                raise ValueError(f"Unknown edge: {edge_id}")
            edges.append(edge)

        accepted, rejected = build_manual_route(self.network, edges)
        for selection in rejected:
            logger.warning("Rejected manual edge: %s", selection.message)

        visited, current = reconstruct_after_undo(
            self.network, accepted, start_anchors(self.network))
        route = self.detour_engine.replace_blocked_edges(accepted)
        return {
            "route": route,
            "rejected": rejected,
            "visited": visited,
            "complete": is_route_complete(visited, current, self.network.depot_id,
                                          len(self.network.address_ids)),
        }


# ----------------------------------------------------------------------
# 4. Entry point
# ----------------------------------------------------------------------
if __name__ == "__main__":
    get_logger()

    network = load_network(sys.argv[1]) if len(sys.argv) > 1 else None
    app_controller = RoutePlannerApp(network)

    for mode, outcome in app_controller.run_all().items():
        if outcome["error"]:
            logger.error("%s failed: %s", mode, outcome["error"])
            continue
        logger.info(
            "%s: %s",
            mode,
            " -> ".join(outcome["sequence"]),
            extra={
                "distance_km": round(outcome["distance"], 3),
                "detours": len(outcome["detours"]),
                "exec_time_s": outcome["exec_time"],
            },
        )
