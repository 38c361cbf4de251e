"""
Module: geometry
Description: Stateless numeric primitives shared by the closest-pair and
             Quickhull steppers.
             - squared distance (no sqrt until a value is displayed)
             - signed area / orientation of a directed line and a point
             - perpendicular distance with a zero-length-edge guard
             - partitioning point ids by a directed line

All functions take Point-like values with .x/.y attributes, or ids into a
points_by_id mapping. Nothing here keeps state.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import math

from .tree import Pair, Point


# Near-collinear points are treated as NOT left of a line, so collinear points
# never become extra hull vertices.
EPS = 1e-12


# ---------- Primitives ----------
def distance2(a: Point, b: Point) -> float:
    """Squared Euclidean distance between a and b."""
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def orientation(a: Point, b: Point, p: Point) -> float:
    """
    Twice the signed area of triangle a, b, p = cross((b-a), (p-a)).
    > 0  => p is left of the directed line a->b (counterclockwise turn)
    < 0  => p is right of it (clockwise)
    == 0 => collinear
    """
    return (b.x - a.x) * (p.y - a.y) - (b.y - a.y) * (p.x - a.x)


def is_left_of(a: Point, b: Point, p: Point, eps: float = EPS) -> bool:
    """Strict left test; points within eps of the line are not left."""
    return orientation(a, b, p) > eps


def perpendicular_distance(a: Point, b: Point, p: Point) -> float:
    """
    Distance from p to the infinite line through a and b.
    A zero-length edge uses denominator 1, so the result degrades to |cross|
    (which is 0 for coincident a and b) instead of dividing by zero.
    """
    cross = abs(orientation(a, b, p))
    denom = math.hypot(b.x - a.x, b.y - a.y) or 1.0
    return cross / denom


def edge_key(a_id: int, b_id: int) -> Tuple[int, int]:
    """Order-independent key for an undirected edge."""
    return (a_id, b_id) if a_id < b_id else (b_id, a_id)


# ---------- Quickhull helpers ----------
def leftmost_rightmost(points: Sequence[Point]) -> Tuple[int, int]:
    """
    Ids of the minimum-x and maximum-x points.
    Ties on x are broken by y, then by id, so a vertical point set still
    yields two distinct extremes (bottom and top).
    """
    lo = min(points, key=lambda p: (p.x, p.y, p.id))
    hi = max(points, key=lambda p: (p.x, p.y, -p.id))
    return lo.id, hi.id


def ids_left_of(points_by_id: Dict[int, Point], a_id: int, b_id: int,
                candidate_ids: Iterable[int]) -> List[int]:
    """Ids strictly left of the directed line a->b, endpoints excluded, input order kept."""
    a = points_by_id[a_id]
    b = points_by_id[b_id]
    out: List[int] = []
    for pid in candidate_ids:
        if pid == a_id or pid == b_id:
            continue
        if is_left_of(a, b, points_by_id[pid]):
            out.append(pid)
    return out


def farthest_from_line(points_by_id: Dict[int, Point], a_id: int, b_id: int,
                       ids: Iterable[int]) -> Tuple[Optional[int], float]:
    """
    The point of ids farthest from line a-b, and its distance.
    Equally distant points on one side lie on a line parallel to a-b; the one
    with the smallest projection onto a->b (nearest a) wins, so the pivot is
    an end of that run and never a point in its middle. Remaining ties keep
    input order. An empty input gives (None, -inf).
    """
    a = points_by_id[a_id]
    b = points_by_id[b_id]
    dx = b.x - a.x
    dy = b.y - a.y
    best_id: Optional[int] = None
    best_d = -math.inf
    best_proj = math.inf
    for pid in ids:
        p = points_by_id[pid]
        d = perpendicular_distance(a, b, p)
        proj = (p.x - a.x) * dx + (p.y - a.y) * dy
        if d > best_d or (d == best_d and proj < best_proj):
            best_id, best_d, best_proj = pid, d, proj
    return best_id, best_d


def split_outside_set(points_by_id: Dict[int, Point], a_id: int, p_id: int, b_id: int,
                      ids: Iterable[int]) -> Tuple[List[int], List[int], List[int]]:
    """
    Split the outside set of edge a-b around pivot p.
      s1        : left of a->p
      s2        : left of p->b (and not already in s1)
      discarded : neither, i.e. inside triangle a-p-b; never a hull vertex
    The pivot itself is in none of the three lists.
    """
    a = points_by_id[a_id]
    p = points_by_id[p_id]
    b = points_by_id[b_id]
    s1: List[int] = []
    s2: List[int] = []
    discarded: List[int] = []
    for qid in ids:
        if qid == p_id:
            continue
        q = points_by_id[qid]
        if is_left_of(a, p, q):
            s1.append(qid)
        elif is_left_of(p, b, q):
            s2.append(qid)
        else:
            discarded.append(qid)
    return s1, s2, discarded


# ---------- Closest-pair helpers ----------
def brute_force_closest(points_by_id: Dict[int, Point],
                        ids: Sequence[int]) -> Tuple[Optional[Pair], List[Pair]]:
    """
    All-pairs check. Returns (best, comparisons) where comparisons lists every
    pair in the order it was examined. The first strict minimum wins; fewer
    than two ids gives best=None.
    """
    best: Optional[Pair] = None
    comparisons: List[Pair] = []
    for i in range(len(ids)):
        for j in range(i + 1, len(ids)):
            d2 = distance2(points_by_id[ids[i]], points_by_id[ids[j]])
            pair = Pair(ids[i], ids[j], d2)
            comparisons.append(pair)
            if best is None or d2 < best.d2:
                best = pair
    return best, comparisons
