"""
benchmark.py
------------

Performance benchmarking for the construction + improvement pipelines:

    - Nearest Insertion (NI)
    - Clarke-Wright Savings (CW)
    - NI + 2-opt
    - CW + variable-depth search (CW+LK)

Produces TWO graphs:
    1) execution_time.png     (time vs addresses)
    2) execution_distance.png (tour length vs addresses)
"""

import logging
import os
import time
from typing import Callable, Dict, List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from lastmile.algorithms.clarke_wright import clarke_wright_savings  # noqa: E402
from lastmile.algorithms.lin_kernighan import improve_tour  # noqa: E402
from lastmile.algorithms.nearest_insertion import nearest_insertion  # noqa: E402
from lastmile.algorithms.network_distance import NetworkDistanceService  # noqa: E402
from lastmile.algorithms.two_opt import tour_length, two_opt  # noqa: E402
from lastmile.models.road_network import RoadNetwork  # noqa: E402


logger = logging.getLogger(__name__)


Pipeline = Callable[[List[str], str, Callable[[str, str], float]], List[str]]

PIPELINES: Dict[str, Pipeline] = {
    "NI": lambda addrs, depot, d: nearest_insertion(addrs, depot, d),
    "CW": lambda addrs, depot, d: clarke_wright_savings(addrs, depot, d),
    "NI + 2-opt": lambda addrs, depot, d: two_opt(nearest_insertion(addrs, depot, d), d, depot),
    "CW + LK": lambda addrs, depot, d: improve_tour(clarke_wright_savings(addrs, depot, d), depot, d),
}


class AlgorithmBenchmark:
    """
    Encapsulates the logic for measuring and plotting pipeline performance.

    Attributes
    ----------
    network : RoadNetwork
        Network whose addresses are used for benchmarking.
    """

    def __init__(self, network: RoadNetwork) -> None:
        if not network.address_ids:
            raise ValueError("Need at least one address for benchmarking.")
        self.network = network

    # ------------------------------------------------------------------
    def measure(self) -> Dict[str, Dict[str, List[float]]]:
        """
        Time every pipeline for increasing problem sizes.

        For k = 1 .. len(addresses) the first k addresses are planned.
        The distance cache is warmed once beforehand, so the timings
        compare the heuristics rather than the pathfinding.

        Returns
        -------
        dict
            {"sizes": [...], "times": {name: [...]}, "distances": {name: [...]}}
        """
        depot_id = self.network.depot_id
        addresses = self.network.address_ids
        distance = NetworkDistanceService(self.network)

        everyone = [depot_id] + addresses
        for a in everyone:
            for b in everyone:
                distance(a, b)

        sizes: List[float] = []
        times: Dict[str, List[float]] = {name: [] for name in PIPELINES}
        distances: Dict[str, List[float]] = {name: [] for name in PIPELINES}

        for k in range(1, len(addresses) + 1):
            subset = addresses[:k]
            sizes.append(k)
            for name, pipeline in PIPELINES.items():
                t0 = time.perf_counter()
                tour = pipeline(subset, depot_id, distance)
                t1 = time.perf_counter()
                times[name].append(t1 - t0)
                distances[name].append(tour_length(tour, depot_id, distance))

        return {"sizes": sizes, "times": times, "distances": distances}

    def run(self, out_dir: str) -> Dict[str, str]:
        """
        Measure and save both graphs into out_dir.

        Returns
        -------
        dict
            {
                "time": "<absolute path to execution_time.png>",
                "distance": "<absolute path to execution_distance.png>"
            }
        """
        results = self.measure()
        sizes = results["sizes"]
        os.makedirs(out_dir, exist_ok=True)

        # === 1) TIME GRAPH ===========================================
        time_path = os.path.abspath(os.path.join(out_dir, "execution_time.png"))
        self._plot(sizes, results["times"], "Execution time (seconds)",
                   "Execution Time vs Addresses", time_path)

        # === 2) DISTANCE GRAPH ======================================
        dist_path = os.path.abspath(os.path.join(out_dir, "execution_distance.png"))
        self._plot(sizes, results["distances"], "Tour length (km)",
                   "Tour Length vs Addresses", dist_path)

        logger.info("Saved time graph to %s", time_path)
        logger.info("Saved distance graph to %s", dist_path)

        return {"time": time_path, "distance": dist_path}

    @staticmethod
    def _plot(sizes: List[float], series: Dict[str, List[float]],
              ylabel: str, title: str, path: str) -> None:
        plt.figure(figsize=(8, 5))

        for name, values in series.items():
            plt.plot(sizes, values, marker="o", label=name)

        plt.xticks(sizes)
        plt.xlabel("Problem size (number of addresses)")
        plt.ylabel(ylabel)
        plt.title(title)
        plt.grid(True)
        plt.legend()
        plt.tight_layout()

        plt.savefig(path)
        plt.close()


# ----------------------------------------------------------------------
# Helper function to preserve a simple API
# ----------------------------------------------------------------------
def benchmark_algorithms(network: RoadNetwork, out_dir: str) -> Dict[str, str]:
    bench = AlgorithmBenchmark(network)
    return bench.run(out_dir)
