"""
Geometry
========

Axis-aligned bounding box helpers shared by placement and collision.

Boxes are anything with ``x``, ``y``, ``width`` and ``height`` attributes,
where (x, y) is the top-left corner in playfield pixels (y grows downward).
"""

from __future__ import annotations

from typing import Protocol


class Box(Protocol):
    x: float
    y: float
    width: float
    height: float


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value between low and high bounds"""
    return lo if value < lo else hi if value > hi else value


def center_x(box: Box) -> float:
    return box.x + box.width * 0.5


def center_y(box: Box) -> float:
    return box.y + box.height * 0.5


def overlaps(a: Box, b: Box, margin: float = 10.0) -> bool:
    """
    Relaxed spacing test between two boxes.

    True when the centers are closer than the half-size sum plus ``margin``
    on both axes. The margin inflates the required separation uniformly,
    so it is used for spawn spacing rather than for hits.

    Args:
        a: First box.
        b: Second box.
        margin: Extra separation required on each axis.

    Returns:
        True if the boxes are too close.
    """
    dx = abs(center_x(a) - center_x(b))
    dy = abs(center_y(a) - center_y(b))
    min_dx = (a.width + b.width) * 0.5 + margin
    min_dy = (a.height + b.height) * 0.5 + margin
    return dx < min_dx and dy < min_dy


def intersects(a: Box, b: Box) -> bool:
    """Exact rectangle intersection (edges touching do not count)."""
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )
