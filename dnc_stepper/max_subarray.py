"""
Module: max_subarray
Description: Maximum contiguous subarray as an externally driven
             divide-and-conquer stepper.
             - Divide : split the first unsplit range [l, r] at mid = (l + r) // 2.
             - Conquer: a single element is its own total, prefix, suffix and best.
             - Combine: merge two solved halves from their summaries; the best
                        range is the left best, the right best, or the left
                        suffix joined to the right prefix (the crossing case).

Every step takes a MaxSubarrayState and returns a new one; a step whose guard
is false returns the input unchanged. Once the root is SOLVED its summary
holds the answer for the whole array. Ranges are inclusive index pairs.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Tuple
import logging
import re

import numpy as np

from .scheduler import dfs_order, first_match, last_match
from .tree import StepAction, replace_node

logger = logging.getLogger(__name__)

Range = Tuple[int, int]

# Value range of random_values, both ends included.
RANDOM_LOW = -5
RANDOM_HIGH = 5
DEFAULT_LENGTH = 8


class MSPhase(Enum):
    UNSPLIT = "unsplit"
    SPLIT = "split"
    SOLVED = "solved"


class Summary(NamedTuple):
    """What a solved range reports to its parent."""
    total: float
    prefix: float
    suffix: float
    best: float
    prefix_range: Range
    suffix_range: Range
    best_range: Range


class CombineDetail(NamedTuple):
    """Trace of one combine: the crossing candidate and which case won."""
    left: int
    right: int
    cross: float
    cross_left_range: Range
    cross_right_range: Range
    chosen: str


@dataclass(frozen=True)
class MaxSubarrayNode:
    id: int
    parent: Optional[int]
    l: int
    r: int
    phase: MSPhase = MSPhase.UNSPLIT
    mid: Optional[int] = None
    left: Optional[int] = None
    right: Optional[int] = None
    summary: Optional[Summary] = None


@dataclass(frozen=True)
class MaxSubarrayState:
    values: Tuple[float, ...]
    nodes: Tuple[MaxSubarrayNode, ...]
    active_node_id: Optional[int] = 0
    last_action: Optional[StepAction] = None

    @property
    def finished(self) -> bool:
        return not self.nodes or self.nodes[0].phase is MSPhase.SOLVED


# ---------- Setup ----------
def make_initial_state(values: Iterable[float] = ()) -> MaxSubarrayState:
    """
    A single UNSPLIT root over the whole array.
    An empty array has no subarray at all: no nodes, finished, every guard false.
    """
    vals = tuple(values)
    if not vals:
        return MaxSubarrayState(values=vals, nodes=(), active_node_id=None)
    root = MaxSubarrayNode(id=0, parent=None, l=0, r=len(vals) - 1)
    return MaxSubarrayState(values=vals, nodes=(root,))


def reset(state: MaxSubarrayState) -> MaxSubarrayState:
    """Start over on the same array."""
    return make_initial_state(state.values)


def parse_values(text: str) -> List[float]:
    """
    Numbers separated by commas and/or whitespace, e.g. "3, -1 4".
    Integral tokens stay int. Raises ValueError on a non-number or on fewer
    than two numbers.
    """
    tokens = [t for t in re.split(r"[\s,]+", text.strip()) if t]
    if len(tokens) < 2:
        raise ValueError("Please enter at least two numbers.")
    out: List[float] = []
    for t in tokens:
        try:
            out.append(int(t))
        except ValueError:
            try:
                out.append(float(t))
            except ValueError:
                raise ValueError(f"Only numbers are allowed (use spaces/commas): {t!r}") from None
    return out


def random_values(n: int = DEFAULT_LENGTH, seed: Optional[int] = None,
                  low: int = RANDOM_LOW, high: int = RANDOM_HIGH) -> List[int]:
    """n integers drawn uniformly from [low, high]."""
    rng = np.random.default_rng(seed)
    return [int(v) for v in rng.integers(low, high + 1, size=n)]


def get_node(state: MaxSubarrayState, node_id: Optional[int] = None) -> MaxSubarrayNode:
    """The node with node_id, or the active node when node_id is None."""
    return state.nodes[state.active_node_id if node_id is None else node_id]


def best_subarray(state: MaxSubarrayState) -> Optional[Tuple[float, Range]]:
    """(best sum, inclusive range) once the root is solved, else None."""
    if not state.nodes or state.nodes[0].summary is None:
        return None
    s = state.nodes[0].summary
    return s.best, s.best_range


# ---------- Scheduling ----------
def _is_single(n: MaxSubarrayNode) -> bool:
    return n.l == n.r


def find_next_divide_target(state: MaxSubarrayState) -> Optional[int]:
    """First unsplit range of two or more elements in DFS order."""
    def dividable(n: MaxSubarrayNode) -> bool:
        return n.phase is MSPhase.UNSPLIT and n.l < n.r
    return first_match(state.nodes, dfs_order(state.nodes), dividable)


def find_next_conquer_target(state: MaxSubarrayState) -> Optional[int]:
    """First unsolved single-element range in DFS order."""
    def conquerable(n: MaxSubarrayNode) -> bool:
        return _is_single(n) and n.phase is not MSPhase.SOLVED
    return first_match(state.nodes, dfs_order(state.nodes), conquerable)


def find_next_combine_target(state: MaxSubarrayState) -> Optional[int]:
    """Split node whose two halves are solved, scanning bottom-up."""
    nodes = state.nodes

    def combinable(n: MaxSubarrayNode) -> bool:
        return (n.phase is MSPhase.SPLIT
                and nodes[n.left].phase is MSPhase.SOLVED
                and nodes[n.right].phase is MSPhase.SOLVED)
    return last_match(nodes, dfs_order(nodes), combinable)


def can_divide(state: MaxSubarrayState) -> bool:
    return find_next_divide_target(state) is not None


def can_conquer(state: MaxSubarrayState) -> bool:
    return find_next_conquer_target(state) is not None


def can_combine(state: MaxSubarrayState) -> bool:
    return find_next_combine_target(state) is not None


# ---------- Helpers ----------
def leaf_summary(x: float, i: int) -> Summary:
    return Summary(x, x, x, x, (i, i), (i, i), (i, i))


def merge_summaries(a: Summary, b: Summary) -> Tuple[Summary, float, str]:
    """
    Summary of the concatenation of ranges a (left) and b (right).
    Returns (summary, crossing sum, chosen case). On equal sums the shorter
    prefix / suffix is kept, and the best prefers left, then right, then
    the crossing range.
    """
    total = a.total + b.total

    if a.prefix >= a.total + b.prefix:
        prefix, prefix_range = a.prefix, a.prefix_range
    else:
        prefix, prefix_range = a.total + b.prefix, (a.prefix_range[0], b.prefix_range[1])

    if b.suffix >= b.total + a.suffix:
        suffix, suffix_range = b.suffix, b.suffix_range
    else:
        suffix, suffix_range = b.total + a.suffix, (a.suffix_range[0], b.suffix_range[1])

    cross = a.suffix + b.prefix
    best, best_range, chosen = a.best, a.best_range, "left"
    if b.best > best:
        best, best_range, chosen = b.best, b.best_range, "right"
    if cross > best:
        best, best_range, chosen = cross, (a.suffix_range[0], b.prefix_range[1]), "cross"

    return Summary(total, prefix, suffix, best, prefix_range, suffix_range, best_range), cross, chosen


# ---------- Steps ----------
def step_divide(state: MaxSubarrayState) -> MaxSubarrayState:
    """Split the next unsplit range into [l, mid] and [mid + 1, r]."""
    target = find_next_divide_target(state)
    if target is None:
        logger.debug("divide: nothing to divide")
        return state

    node = state.nodes[target]
    mid = (node.l + node.r) // 2
    left_id = len(state.nodes)
    right_id = left_id + 1
    left = MaxSubarrayNode(id=left_id, parent=node.id, l=node.l, r=mid)
    right = MaxSubarrayNode(id=right_id, parent=node.id, l=mid + 1, r=node.r)
    split = replace(node, phase=MSPhase.SPLIT, mid=mid, left=left_id, right=right_id)

    nodes = replace_node(replace_node(replace_node(state.nodes, split), left), right)
    logger.debug("divide node %d [%d, %d] at %d", node.id, node.l, node.r, mid)
    return replace(state, nodes=nodes, active_node_id=node.id,
                   last_action=StepAction("divide", node.id, (mid, left_id, right_id)))


def step_conquer(state: MaxSubarrayState) -> MaxSubarrayState:
    """Solve the next single-element range."""
    target = find_next_conquer_target(state)
    if target is None:
        logger.debug("conquer: no single element pending")
        return state

    node = state.nodes[target]
    x = state.values[node.l]
    solved = replace(node, phase=MSPhase.SOLVED, summary=leaf_summary(x, node.l))
    logger.debug("conquer node %d: a[%d] = %s", node.id, node.l, x)
    return replace(state, nodes=replace_node(state.nodes, solved), active_node_id=node.id,
                   last_action=StepAction("conquer", node.id, x))


def step_combine(state: MaxSubarrayState) -> MaxSubarrayState:
    """Merge the next pair of solved halves."""
    target = find_next_combine_target(state)
    if target is None:
        logger.debug("combine: no node has both halves solved")
        return state

    node = state.nodes[target]
    a = state.nodes[node.left].summary
    b = state.nodes[node.right].summary
    summary, cross, chosen = merge_summaries(a, b)
    solved = replace(node, phase=MSPhase.SOLVED, summary=summary)

    detail = CombineDetail(node.left, node.right, cross, a.suffix_range, b.prefix_range, chosen)
    logger.debug("combine node %d [%d, %d]: best %s on %s (%s)",
                 node.id, node.l, node.r, summary.best, summary.best_range, chosen)
    return replace(state, nodes=replace_node(state.nodes, solved), active_node_id=node.id,
                   last_action=StepAction("combine", node.id, detail))


if __name__ == "__main__":
    import matplotlib.pyplot as plt

    from dnc_stepper import max_subarray as solver
    from dnc_stepper.driver import run_to_completion

    # --- change n / seed to try different inputs ---
    vals = solver.random_values(16, seed=42)
    final = run_to_completion(solver.make_initial_state(vals))
    best, (i, j) = solver.best_subarray(final)

    colors = ["tab:red" if i <= k <= j else "tab:blue" for k in range(len(vals))]
    plt.figure()
    plt.bar(range(len(vals)), vals, color=colors)
    plt.axhline(0, color="0.5", linewidth=0.8)
    plt.title(f"Maximum subarray a[{i}..{j}] = {best}")
    plt.xlabel("index")
    plt.show()
