"""
Module: quickhull
Description: Convex hull by Quickhull as an externally driven stepper.
             - Divide : first the baseline split (min-x -> max-x) into the upper
                        and lower chains, afterwards pick the farthest point
                        (pivot) of one open subproblem.
             - Conquer: split the pivoted subproblem's outside set around the
                        pivot; points inside triangle A-P-B are discarded.
             - Combine: an open subproblem with an empty outside set is a hull
                        edge; record it and retire the subproblem.

The lower chain is always solved and combined before the upper chain starts,
and at most one subproblem is pivoted at any time. Coordinates are y-up.
"""

from collections import defaultdict
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging

from .geometry import edge_key, farthest_from_line, ids_left_of, leftmost_rightmost, split_outside_set
from .points import PointLike, points_by_id, points_from_xy
from .scheduler import dfs_order, first_match, last_match
from .tree import Point, StepAction, is_leaf, replace_node

logger = logging.getLogger(__name__)

UPPER = "upper"
LOWER = "lower"
# Chains are finished strictly in this order.
CHAIN_ORDER = (LOWER, UPPER)

Edge = Tuple[int, int]


class QHPhase(Enum):
    TODO = "todo"
    PIVOTED = "pivoted"
    DONE = "done"


@dataclass(frozen=True)
class QuickhullNode:
    """
    One subproblem: directed edge a->b plus its outside set (member_ids), the
    points left of a->b that may still be hull vertices. chain is None only
    for the root, which covers the whole point set until the baseline split.
    """
    id: int
    parent: Optional[int]
    a_id: int
    b_id: int
    member_ids: Tuple[int, ...]
    chain: Optional[str] = None
    phase: QHPhase = QHPhase.TODO
    left: Optional[int] = None
    right: Optional[int] = None
    pivot_id: Optional[int] = None
    pivot_dist: Optional[float] = None


@dataclass(frozen=True)
class QuickhullState:
    points: Dict[int, Point]
    nodes: Tuple[QuickhullNode, ...]
    frontier: Tuple[int, ...]
    active_node_id: Optional[int] = None
    hull_edges: Tuple[Edge, ...] = ()
    discarded: FrozenSet[int] = frozenset()
    baseline: Optional[Edge] = None
    last_action: Optional[StepAction] = None
    finished: bool = False


# ---------- Setup ----------
def make_initial_state(points: Iterable[PointLike] = ()) -> QuickhullState:
    """
    A single TODO root over the baseline edge min-x -> max-x.
    Fewer than two distinct points means there is no hull to build: the state
    starts finished, with no nodes and no edges.
    """
    pts = points_from_xy(points)
    table = points_by_id(pts)
    if len(pts) < 2:
        return QuickhullState(points=table, nodes=(), frontier=(), finished=True)

    lo, hi = leftmost_rightmost(pts)
    if lo == hi:
        # every point coincides
        return QuickhullState(points=table, nodes=(), frontier=(), finished=True)

    others = tuple(p.id for p in pts if p.id not in (lo, hi))
    root = QuickhullNode(id=0, parent=None, a_id=lo, b_id=hi, member_ids=others)
    return QuickhullState(points=table, nodes=(root,), frontier=(0,), active_node_id=0)


def reset(state: QuickhullState) -> QuickhullState:
    """Start over on the same points, discarding the tree and the hull."""
    return make_initial_state(state.points.values())


def add_point(state: QuickhullState, x: float, y: float) -> QuickhullState:
    """Add a point (next free id) and reset to a single root over the new set."""
    new_id = max(state.points, default=-1) + 1
    return make_initial_state(list(state.points.values()) + [Point(new_id, float(x), float(y))])


def get_node(state: QuickhullState, node_id: Optional[int] = None) -> Optional[QuickhullNode]:
    """The node with node_id, or the active node (None if there is none)."""
    node_id = state.active_node_id if node_id is None else node_id
    return None if node_id is None else state.nodes[node_id]


# ---------- Chain bookkeeping ----------
def _open_nodes(state: QuickhullState, chain: str) -> List[QuickhullNode]:
    return [state.nodes[i] for i in state.frontier if state.nodes[i].chain == chain]


def chain_has_work(state: QuickhullState, chain: str) -> bool:
    """True while some open subproblem of chain still has outside points or a pivot."""
    return any(n.member_ids or n.phase is QHPhase.PIVOTED for n in _open_nodes(state, chain))


def working_chain(state: QuickhullState) -> Optional[str]:
    """The first chain in CHAIN_ORDER that still has open subproblems."""
    if state.baseline is None:
        return None
    for chain in CHAIN_ORDER:
        if _open_nodes(state, chain):
            return chain
    return None


def _pivot_outstanding(state: QuickhullState) -> bool:
    return any(state.nodes[i].phase is QHPhase.PIVOTED for i in state.frontier)


# ---------- Scheduling ----------
def find_next_divide_target(state: QuickhullState) -> Optional[int]:
    """
    The root before the baseline split; afterwards the first open leaf (DFS
    order) of the working chain that still has outside points. Nothing while
    another subproblem is pivoted and waiting for conquer.
    """
    if state.finished:
        return None
    if state.baseline is None:
        return 0
    if _pivot_outstanding(state):
        return None
    chain = working_chain(state)
    if chain is None:
        return None

    def dividable(n: QuickhullNode) -> bool:
        return is_leaf(n) and n.chain == chain and n.phase is QHPhase.TODO and bool(n.member_ids)
    return first_match(state.nodes, dfs_order(state.nodes), dividable)


def find_next_conquer_target(state: QuickhullState) -> Optional[int]:
    """The active node, if it is pivoted and waiting for conquer."""
    node = get_node(state)
    if node is None or node.phase is not QHPhase.PIVOTED:
        return None
    return node.id


def find_next_combine_target(state: QuickhullState) -> Optional[int]:
    """
    Once the working chain has no divide/conquer work left, its open leaves
    with empty outside sets are combined one per step, scanning bottom-up.
    """
    chain = working_chain(state)
    if chain is None or chain_has_work(state, chain):
        return None

    def combinable(n: QuickhullNode) -> bool:
        return is_leaf(n) and n.chain == chain and n.phase is QHPhase.TODO and not n.member_ids
    return last_match(state.nodes, dfs_order(state.nodes), combinable)


def can_divide(state: QuickhullState) -> bool:
    return find_next_divide_target(state) is not None


def can_conquer(state: QuickhullState) -> bool:
    return find_next_conquer_target(state) is not None


def can_combine(state: QuickhullState) -> bool:
    return find_next_combine_target(state) is not None


# ---------- Steps ----------
def _baseline_split(state: QuickhullState) -> QuickhullState:
    root = state.nodes[0]
    lo, hi = root.a_id, root.b_id
    upper = ids_left_of(state.points, lo, hi, root.member_ids)
    lower = ids_left_of(state.points, hi, lo, root.member_ids)
    on_line = set(root.member_ids) - set(upper) - set(lower)

    up = QuickhullNode(id=1, parent=0, a_id=lo, b_id=hi, member_ids=tuple(upper), chain=UPPER)
    down = QuickhullNode(id=2, parent=0, a_id=hi, b_id=lo, member_ids=tuple(lower), chain=LOWER)
    split = replace(root, phase=QHPhase.DONE, left=up.id, right=down.id)

    logger.debug("baseline %d->%d: %d upper, %d lower, %d on the line",
                 lo, hi, len(upper), len(lower), len(on_line))
    return replace(state,
                   nodes=replace_node(replace_node(replace_node(state.nodes, split), up), down),
                   frontier=(up.id, down.id),
                   discarded=state.discarded | on_line,
                   baseline=(lo, hi),
                   active_node_id=root.id,
                   last_action=StepAction("divide", root.id, "baseline"))


def step_divide(state: QuickhullState) -> QuickhullState:
    """Baseline split on the first call, otherwise pivot the next open subproblem."""
    target = find_next_divide_target(state)
    if target is None:
        logger.debug("divide: refused (finished, pivot outstanding, or nothing left)")
        return state
    if state.baseline is None:
        return _baseline_split(state)

    node = state.nodes[target]
    pivot_id, pivot_dist = farthest_from_line(state.points, node.a_id, node.b_id, node.member_ids)
    pivoted = replace(node, phase=QHPhase.PIVOTED, pivot_id=pivot_id, pivot_dist=pivot_dist)

    logger.debug("divide node %d (%s chain): pivot %d at distance %g",
                 node.id, node.chain, pivot_id, pivot_dist)
    return replace(state, nodes=replace_node(state.nodes, pivoted), active_node_id=node.id,
                   last_action=StepAction("divide", node.id, pivot_id))


def step_conquer(state: QuickhullState) -> QuickhullState:
    """Replace the pivoted subproblem by (A, P, S1) and (P, B, S2)."""
    target = find_next_conquer_target(state)
    if target is None:
        logger.debug("conquer: no pivoted subproblem")
        return state

    node = state.nodes[target]
    a, p, b = node.a_id, node.pivot_id, node.b_id
    s1, s2, inside = split_outside_set(state.points, a, p, b, node.member_ids)

    left_id = len(state.nodes)
    right_id = left_id + 1
    left = QuickhullNode(id=left_id, parent=node.id, a_id=a, b_id=p,
                         member_ids=tuple(s1), chain=node.chain)
    right = QuickhullNode(id=right_id, parent=node.id, a_id=p, b_id=b,
                          member_ids=tuple(s2), chain=node.chain)
    solved = replace(node, phase=QHPhase.DONE, left=left_id, right=right_id)

    pos = state.frontier.index(node.id)
    frontier = state.frontier[:pos] + (left_id, right_id) + state.frontier[pos + 1:]

    logger.debug("conquer node %d: %d | %d outside, %d discarded",
                 node.id, len(s1), len(s2), len(inside))
    return replace(state,
                   nodes=replace_node(replace_node(replace_node(state.nodes, solved), left), right),
                   frontier=frontier,
                   discarded=state.discarded | frozenset(inside),
                   active_node_id=node.id,
                   last_action=StepAction("conquer", node.id, tuple(inside)))


def step_combine(state: QuickhullState) -> QuickhullState:
    """Record the next empty subproblem's edge on the hull and retire it."""
    target = find_next_combine_target(state)
    if target is None:
        logger.debug("combine: blocked or nothing to combine")
        return state

    node = state.nodes[target]
    edges = state.hull_edges
    key = edge_key(node.a_id, node.b_id)
    if key not in {edge_key(*e) for e in edges}:
        edges = edges + ((node.a_id, node.b_id),)

    frontier = tuple(i for i in state.frontier if i != node.id)
    finished = not frontier
    logger.debug("combine node %d (%s chain): edge %s, %d open", node.id, node.chain, key, len(frontier))
    return replace(state,
                   nodes=replace_node(state.nodes, replace(node, phase=QHPhase.DONE)),
                   frontier=frontier,
                   hull_edges=edges,
                   active_node_id=node.id,
                   finished=finished,
                   last_action=StepAction("combine", node.id, key))


# ---------- Results ----------
def hull_vertices(state: QuickhullState) -> List[int]:
    """Sorted ids of every vertex touched by a confirmed hull edge."""
    return sorted({v for e in state.hull_edges for v in e})


def hull_polygon(state: QuickhullState) -> Optional[List[int]]:
    """
    Walk the finished edge set into a counterclockwise vertex cycle starting
    at the smallest id. None until the run is finished (or with no edges).
    """
    if not state.finished or not state.hull_edges:
        return None
    adj: Dict[int, List[int]] = defaultdict(list)
    for a, b in state.hull_edges:
        adj[a].append(b)
        adj[b].append(a)

    start = min(adj)
    cycle = [start]
    prev, cur = None, start
    for _ in range(len(adj)):
        nxt = next((v for v in adj[cur] if v != prev), None)
        if nxt is None or nxt == start:
            break
        cycle.append(nxt)
        prev, cur = cur, nxt

    pts = state.points
    area2 = 0.0
    for u, v in zip(cycle, cycle[1:] + cycle[:1]):
        area2 += pts[u].x * pts[v].y - pts[v].x * pts[u].y
    if area2 < 0:
        cycle = [cycle[0]] + cycle[:0:-1]
    return cycle


if __name__ == "__main__":
    import numpy as np
    import matplotlib.pyplot as plt

    from dnc_stepper import quickhull as solver
    from dnc_stepper.driver import run_to_completion
    from dnc_stepper.points import random_points

    # --- change n / seed to try different inputs ---
    pts = random_points(30, seed=7)
    final = run_to_completion(solver.make_initial_state(pts))

    xy = np.array([(p.x, p.y) for p in pts])
    plt.figure()
    plt.scatter(xy[:, 0], xy[:, 1], s=15, label="Points")
    if final.discarded:
        inside = np.array([(final.points[i].x, final.points[i].y) for i in final.discarded])
        plt.scatter(inside[:, 0], inside[:, 1], s=15, c="0.7", label="Discarded")
    for a, b in final.hull_edges:
        pa, pb = final.points[a], final.points[b]
        plt.plot([pa.x, pb.x], [pa.y, pb.y], "-", color="tab:orange")
    plt.gca().set_aspect("equal", adjustable="box")
    plt.title(f"Quickhull (|V| = {len(hull_vertices(final))})")
    plt.legend()
    plt.show()
