"""
geometry.py
-----------

Straight-line distance helpers for the canvas coordinate system.

Node coordinates are pixels; the network's scale turns them into km.
"""

import math
from typing import Tuple


def euclidean_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def pixel_distance_km(point_a: Tuple[float, float],
                      point_b: Tuple[float, float],
                      scale_px_per_km: float) -> float:
    """Straight-line distance between two canvas points, in km."""
    pixels = euclidean_distance(point_a[0], point_a[1], point_b[0], point_b[1])
    return pixels / scale_px_per_km
