"""
Module: closest_pair
Description: Closest pair of points as an externally driven divide-and-conquer
             stepper.
             - Divide : split the first oversized leaf at its median x.
             - Conquer: brute-force a leaf of <= 3 points.
             - Combine: merge two solved children with the classic strip check
                        (each strip point vs. the next <= 7 points by y).

Every step takes a ClosestPairState and returns a new one; a step whose guard
(can_divide / can_conquer / can_combine) is false returns the input unchanged.
Once the root is DONE, global_best is the closest pair over all points.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import math

from .geometry import brute_force_closest, distance2
from .points import PointLike, points_by_id, points_from_xy
from .scheduler import dfs_order, first_match, last_match
from .tree import Pair, Point, StepAction, is_leaf, replace_node

logger = logging.getLogger(__name__)

# Leaves of at most this many points are solved by brute force.
BASE_CASE_SIZE = 3
# Each strip point is compared against at most this many successors in y-order.
STRIP_WINDOW = 7


class CPPhase(Enum):
    IDLE = "idle"
    DIVIDED = "divided"
    DONE = "done"


@dataclass(frozen=True)
class ClosestPairNode:
    """
    One subproblem. member_ids is the subproblem's point set; mid_x is the
    split line, set when the node is divided. best is set once phase is DONE.
    The strip_* / comparisons / last_compared fields are a trace of the work
    done, kept for display only.
    """
    id: int
    parent: Optional[int]
    member_ids: Tuple[int, ...]
    phase: CPPhase = CPPhase.IDLE
    left: Optional[int] = None
    right: Optional[int] = None
    mid_x: Optional[float] = None
    best: Optional[Pair] = None
    strip_ids: Tuple[int, ...] = ()
    strip_d2: float = math.inf
    comparisons: Tuple[Pair, ...] = ()
    last_compared: Optional[Pair] = None


@dataclass(frozen=True)
class ClosestPairState:
    points: Dict[int, Point]
    nodes: Tuple[ClosestPairNode, ...]
    active_node_id: Optional[int] = 0
    global_best: Optional[Pair] = None
    last_action: Optional[StepAction] = None

    @property
    def finished(self) -> bool:
        return self.nodes[0].phase is CPPhase.DONE


# ---------- Setup ----------
def make_initial_state(points: Iterable[PointLike] = ()) -> ClosestPairState:
    """
    A single IDLE root over every point.
    With fewer than two points there is nothing to compare: the root starts
    DONE with no best and every guard is false.
    """
    pts = points_from_xy(points)
    table = points_by_id(pts)
    root = ClosestPairNode(id=0, parent=None, member_ids=tuple(p.id for p in pts))
    if len(pts) < 2:
        root = replace(root, phase=CPPhase.DONE)
    return ClosestPairState(points=table, nodes=(root,))


def reset(state: ClosestPairState) -> ClosestPairState:
    """Start over on the same points, discarding the tree and results."""
    return make_initial_state(state.points.values())


def add_point(state: ClosestPairState, x: float, y: float) -> ClosestPairState:
    """Add a point (next free id) and reset to a single root over the new set."""
    new_id = max(state.points, default=-1) + 1
    return make_initial_state(list(state.points.values()) + [Point(new_id, float(x), float(y))])


def get_node(state: ClosestPairState, node_id: Optional[int] = None) -> ClosestPairNode:
    """The node with node_id, or the active node when node_id is None."""
    return state.nodes[state.active_node_id if node_id is None else node_id]


def distance(pair: Optional[Pair]) -> float:
    """Euclidean distance of a result pair (inf for no pair)."""
    return math.inf if pair is None else math.sqrt(pair.d2)


# ---------- Scheduling ----------
def find_next_divide_target(state: ClosestPairState) -> Optional[int]:
    """First leaf in DFS order that is still too big for the base case."""
    def dividable(n: ClosestPairNode) -> bool:
        return is_leaf(n) and n.phase is CPPhase.IDLE and len(n.member_ids) > BASE_CASE_SIZE
    return first_match(state.nodes, dfs_order(state.nodes), dividable)


def find_next_conquer_target(state: ClosestPairState) -> Optional[int]:
    """First unsolved leaf in DFS order small enough to brute-force."""
    def conquerable(n: ClosestPairNode) -> bool:
        return is_leaf(n) and n.phase is not CPPhase.DONE and len(n.member_ids) <= BASE_CASE_SIZE
    return first_match(state.nodes, dfs_order(state.nodes), conquerable)


def find_next_combine_target(state: ClosestPairState) -> Optional[int]:
    """Deepest-last divided node whose two children are both solved (bottom-up scan)."""
    nodes = state.nodes

    def combinable(n: ClosestPairNode) -> bool:
        return (n.phase is CPPhase.DIVIDED
                and nodes[n.left].phase is CPPhase.DONE
                and nodes[n.right].phase is CPPhase.DONE)
    return last_match(nodes, dfs_order(nodes), combinable)


def can_divide(state: ClosestPairState) -> bool:
    return find_next_divide_target(state) is not None


def can_conquer(state: ClosestPairState) -> bool:
    return find_next_conquer_target(state) is not None


def can_combine(state: ClosestPairState) -> bool:
    return find_next_combine_target(state) is not None


# ---------- Helpers ----------
def _better(a: Optional[Pair], b: Optional[Pair]) -> Optional[Pair]:
    """The closer of two optional pairs; a wins ties."""
    if a is None:
        return b
    if b is None:
        return a
    return a if a.d2 <= b.d2 else b


def _improve_global(current: Optional[Pair], candidate: Optional[Pair]) -> Optional[Pair]:
    """Only a strictly closer candidate replaces the global best."""
    if candidate is None:
        return current
    if current is None or candidate.d2 < current.d2:
        return candidate
    return current


def build_strip(points: Dict[int, Point], ids: Iterable[int], mid_x: float, d2: float) -> List[int]:
    """Ids strictly within sqrt(d2) of the line x = mid_x, sorted by y."""
    if not math.isfinite(d2):
        return []
    d = math.sqrt(d2)
    strip = [pid for pid in ids if abs(points[pid].x - mid_x) < d]
    strip.sort(key=lambda pid: points[pid].y)
    return strip


def strip_best(points: Dict[int, Point], strip: List[int],
               d2: float) -> Tuple[Optional[Pair], List[Pair]]:
    """
    Scan the y-sorted strip, comparing strip[i] with strip[i+1 .. i+STRIP_WINDOW].
    Returns (best, comparisons) where best is the closest pair strictly under
    d2, or None when the strip holds nothing closer.
    """
    best: Optional[Pair] = None
    best_d2 = d2
    comparisons: List[Pair] = []
    for i in range(len(strip)):
        for j in range(i + 1, min(i + 1 + STRIP_WINDOW, len(strip))):
            pair = Pair(strip[i], strip[j], distance2(points[strip[i]], points[strip[j]]))
            comparisons.append(pair)
            if pair.d2 < best_d2:
                best_d2 = pair.d2
                best = pair
    return best, comparisons


# ---------- Steps ----------
def step_divide(state: ClosestPairState) -> ClosestPairState:
    """Split the next oversized leaf at its median x into two IDLE children."""
    target = find_next_divide_target(state)
    if target is None:
        logger.debug("divide: nothing to divide")
        return state

    node = state.nodes[target]
    pts = state.points
    # stable sort: points sharing the median x keep their member order
    by_x = sorted(node.member_ids, key=lambda pid: pts[pid].x)
    mid = len(by_x) // 2
    mid_x = pts[by_x[mid]].x

    left_id = len(state.nodes)
    right_id = left_id + 1
    left = ClosestPairNode(id=left_id, parent=node.id, member_ids=tuple(by_x[:mid]))
    right = ClosestPairNode(id=right_id, parent=node.id, member_ids=tuple(by_x[mid:]))
    divided = replace(node, phase=CPPhase.DIVIDED, left=left_id, right=right_id, mid_x=mid_x)

    nodes = replace_node(replace_node(replace_node(state.nodes, divided), left), right)
    logger.debug("divide node %d at x=%g: %d | %d points",
                 node.id, mid_x, len(left.member_ids), len(right.member_ids))
    return replace(state, nodes=nodes, active_node_id=node.id,
                   last_action=StepAction("divide", node.id, (left_id, right_id)))


def step_conquer(state: ClosestPairState) -> ClosestPairState:
    """Brute-force the next small leaf and fold its result into global_best."""
    target = find_next_conquer_target(state)
    if target is None:
        logger.debug("conquer: no base case pending")
        return state

    node = state.nodes[target]
    best, comparisons = brute_force_closest(state.points, node.member_ids)
    solved = replace(node, phase=CPPhase.DONE, best=best,
                     comparisons=tuple(comparisons),
                     last_compared=comparisons[0] if comparisons else None)

    logger.debug("conquer node %d: %d comparisons, best %s", node.id, len(comparisons), best)
    return replace(state, nodes=replace_node(state.nodes, solved), active_node_id=node.id,
                   global_best=_improve_global(state.global_best, best),
                   last_action=StepAction("conquer", node.id, best))


def step_combine(state: ClosestPairState) -> ClosestPairState:
    """Merge the next pair of solved children through the strip around mid_x."""
    target = find_next_combine_target(state)
    if target is None:
        logger.debug("combine: no node has both children solved")
        return state

    node = state.nodes[target]
    pts = state.points
    best_lr = _better(state.nodes[node.left].best, state.nodes[node.right].best)
    d2 = best_lr.d2 if best_lr is not None else math.inf

    strip = build_strip(pts, node.member_ids, node.mid_x, d2)
    cross, comparisons = strip_best(pts, strip, d2)
    best = cross if cross is not None else best_lr

    solved = replace(node, phase=CPPhase.DONE, best=best,
                     strip_ids=tuple(strip), strip_d2=d2,
                     comparisons=tuple(comparisons),
                     last_compared=comparisons[0] if comparisons else None)

    logger.debug("combine node %d: strip of %d, %s", node.id, len(strip),
                 "crossing pair found" if cross is not None else "children's best kept")
    return replace(state, nodes=replace_node(state.nodes, solved), active_node_id=node.id,
                   global_best=_improve_global(state.global_best, best),
                   last_action=StepAction("combine", node.id, best))


if __name__ == "__main__":
    import numpy as np
    import matplotlib.pyplot as plt

    from dnc_stepper import closest_pair as solver
    from dnc_stepper.driver import run_to_completion
    from dnc_stepper.points import random_points

    # --- change n / seed to try different inputs ---
    pts = random_points(40, seed=42)
    final = run_to_completion(solver.make_initial_state(pts))

    xy = np.array([(p.x, p.y) for p in pts])
    plt.figure()
    plt.scatter(xy[:, 0], xy[:, 1], s=15, label="Points")
    for n in final.nodes:
        if n.mid_x is not None:
            plt.axvline(n.mid_x, color="0.8", linewidth=0.8)
    best = final.global_best
    if best is not None:
        a, b = final.points[best.a], final.points[best.b]
        plt.plot([a.x, b.x], [a.y, b.y], "r-", label=f"Closest pair (d = {distance(best):.4f})")
    plt.gca().set_aspect("equal", adjustable="box")
    plt.title(f"Closest pair, {len(final.nodes)} subproblems")
    plt.legend()
    plt.show()
