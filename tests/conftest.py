import math
import random

import pytest

from lastmile.algorithms.network_distance import NetworkDistanceService
from lastmile.models.config import load_network


def make_network(nodes, edges, scale=100.0):
    return load_network({
        "canvas": {"width": 1000, "height": 1000, "scalePxPerKm": scale},
        "nodes": [{"id": i, "x": x, "y": y, "type": t} for i, x, y, t in nodes],
        "edges": edges,
    })


@pytest.fixture
def triangle():
    # Depot(0,0) - A(100,0) - B(100,100), with a long direct road B-Depot.
    return make_network(
        [("Depot", 0, 0, "depot"), ("A", 100, 0, "address"), ("B", 100, 100, "address")],
        [
            {"id": "e1", "a": "Depot", "b": "A", "lengthKm": 1.0},
            {"id": "e2", "a": "A", "b": "B", "lengthKm": 1.0},
            {"id": "e3", "a": "B", "b": "Depot", "lengthKm": 3.0},
        ],
    )


@pytest.fixture
def triangle_blocked():
    return make_network(
        [("Depot", 0, 0, "depot"), ("A", 100, 0, "address"), ("B", 100, 100, "address")],
        [
            {"id": "e1", "a": "Depot", "b": "A", "lengthKm": 1.0},
            {"id": "e2", "a": "A", "b": "B", "lengthKm": 1.0, "blocked": True},
            {"id": "e3", "a": "B", "b": "Depot", "lengthKm": 3.0},
        ],
    )


@pytest.fixture
def grid():
    # D and A1 share a position. J2-J4 is a construction zone.
    # J8-J9 is an island that nothing else can reach.
    #
    #   D/A1 --d1-- J1 --g1-- J2 --l2-- A2
    #     \          |         x (g4 blocked)
    #      l1        g2        |
    #       (to J1)  J3 --g3-- J4 --l3-- A3
    return make_network(
        [
            ("D", 0, 0, "depot"),
            ("A1", 0, 0, "address"),
            ("J1", 100, 0, "junction"),
            ("J2", 200, 0, "junction"),
            ("J3", 100, 100, "junction"),
            ("J4", 200, 100, "junction"),
            ("A2", 250, 0, "address"),
            ("A3", 250, 100, "address"),
            ("J8", 900, 900, "junction"),
            ("J9", 950, 900, "junction"),
        ],
        [
            {"id": "d1", "a": "D", "b": "J1", "lengthKm": 1.0},
            {"id": "l1", "a": "A1", "b": "J1", "lengthKm": 1.0},
            {"id": "g1", "a": "J1", "b": "J2", "lengthKm": 1.0},
            {"id": "g2", "a": "J1", "b": "J3", "lengthKm": 1.0},
            {"id": "g3", "a": "J3", "b": "J4", "lengthKm": 1.0},
            {"id": "g4", "a": "J2", "b": "J4", "lengthKm": 1.0, "blocked": True},
            {"id": "l2", "a": "A2", "b": "J2", "lengthKm": 0.5},
            {"id": "l3", "a": "A3", "b": "J4", "lengthKm": 0.5},
            {"id": "i1", "a": "J8", "b": "J9", "lengthKm": 0.5},
        ],
    )


@pytest.fixture
def grid_distance(grid):
    return NetworkDistanceService(grid)


def euclidean_instance(n, seed):
    # Random points in a 100x100 square; returns (depot, addresses, distance_fn).
    rng = random.Random(seed)
    points = {"depot": (50.0, 50.0)}
    for i in range(n):
        points[f"a{i:02d}"] = (rng.uniform(0, 100), rng.uniform(0, 100))

    def distance(a, b):
        (x1, y1), (x2, y2) = points[a], points[b]
        return math.hypot(x2 - x1, y2 - y1)

    addresses = [name for name in points if name != "depot"]
    return "depot", addresses, distance


@pytest.fixture
def square_points():
    # Depot and three addresses on the corners of a 10x10 square.
    points = {"D": (0, 0), "A": (0, 10), "B": (10, 10), "C": (10, 0)}

    def distance(a, b):
        (x1, y1), (x2, y2) = points[a], points[b]
        return math.hypot(x2 - x1, y2 - y1)

    return distance


@pytest.fixture
def line_distance():
    # Depot at 0, addresses on a number line.
    positions = {"D": 0, "A": 1, "B": 3, "C": 2}

    def distance(a, b):
        return abs(positions[a] - positions[b])

    return distance


@pytest.fixture
def random_instance():
    return euclidean_instance
