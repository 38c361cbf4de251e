"""
Module: points
Description: Building point sets for the steppers.
             - random_points: seeded uniform points in the unit square
             - points_from_xy: raw (x, y) pairs -> Points with ids 0..n-1
             - points_by_id: the id -> Point mapping the point-set solvers hold

Randomness lives only here, behind an explicit seed; the steppers themselves
are deterministic for a fixed point set and a fixed sequence of steps.
"""

from typing import Dict, Iterable, List, Optional, Tuple, Union
import numpy as np

from .tree import Point

DEFAULT_COUNT = 25

PointLike = Union[Point, Tuple[float, float]]


def random_points(n: int = DEFAULT_COUNT, seed: Optional[int] = None,
                  low: float = 0.06, high: float = 0.94) -> List[Point]:
    """
    n uniform points in [low, high]^2 (y-up unit square), ids 0..n-1.
    The margin keeps points off the border of the unit square.
    """
    rng = np.random.default_rng(seed)
    xy = low + (high - low) * rng.random((n, 2))
    return [Point(i, float(x), float(y)) for i, (x, y) in enumerate(xy)]


def points_from_xy(pairs: Iterable[PointLike]) -> List[Point]:
    """
    Normalise input to Points.
    Points are kept as they are; bare (x, y) pairs get their input index as id.
    """
    out: List[Point] = []
    for i, p in enumerate(pairs):
        if isinstance(p, Point):
            out.append(p)
        else:
            x, y = p
            out.append(Point(i, float(x), float(y)))
    return out


def points_by_id(points: Iterable[Point]) -> Dict[int, Point]:
    """Map id -> Point. Two points sharing an id is a caller bug."""
    table: Dict[int, Point] = {}
    for p in points:
        if p.id in table:
            raise ValueError(f"duplicate point id {p.id}")
        table[p.id] = p
    return table
