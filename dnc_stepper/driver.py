"""
Module: driver
Description: Drive any stepper from the outside, the way a UI would.
             - next_step        : which button would be pressed next
             - iter_steps       : observe every (kind, state) transition
             - run_to_completion: final state
             - step_log         : the transitions as a pandas DataFrame

Observers only consume snapshots; nothing here feeds back into scheduling.
"""

from functools import singledispatch
from typing import Any, Callable, Dict, Iterator, Optional, Tuple
import logging

import pandas as pd

from . import closest_pair, max_subarray, quickhull
from .closest_pair import ClosestPairState
from .max_subarray import MaxSubarrayState
from .quickhull import QuickhullState
from .tree import depth

logger = logging.getLogger(__name__)

# Checked in this order; the first enabled step runs.
STEP_ORDER = ("combine", "conquer", "divide")
# step_log columns
COLUMNS = ["step", "kind", "node_id", "depth", "active_node_id", "detail"]


@singledispatch
def _solver(state: Any):
    raise TypeError(f"not a stepper state: {type(state).__name__}")


@_solver.register
def _(state: ClosestPairState):
    return closest_pair


@_solver.register
def _(state: QuickhullState):
    return quickhull


@_solver.register
def _(state: MaxSubarrayState):
    return max_subarray


def _table(state: Any) -> Dict[str, Tuple[Callable, Callable]]:
    mod = _solver(state)
    return {
        "divide": (mod.can_divide, mod.step_divide),
        "conquer": (mod.can_conquer, mod.step_conquer),
        "combine": (mod.can_combine, mod.step_combine),
    }


def next_step(state: Any) -> Optional[str]:
    """Name of the step that would run next, or None when no guard is enabled."""
    table = _table(state)
    for kind in STEP_ORDER:
        if table[kind][0](state):
            return kind
    return None


def iter_steps(state: Any, max_steps: Optional[int] = None) -> Iterator[Tuple[str, Any]]:
    """
    Yield (kind, new_state) after every step until nothing is enabled, or
    until max_steps steps have run.
    """
    table = _table(state)
    count = 0
    while max_steps is None or count < max_steps:
        kind = next_step(state)
        if kind is None:
            break
        state = table[kind][1](state)
        count += 1
        yield kind, state
    logger.debug("%s: stopped after %d steps", type(state).__name__, count)


def run_to_completion(state: Any) -> Any:
    """Press whichever button is enabled until none is; return the last state."""
    for _, state in iter_steps(state):
        pass
    return state


def step_log(state: Any, max_steps: Optional[int] = None) -> pd.DataFrame:
    """
    One row per step: step number, kind, node stepped, its depth in the
    recursion tree, active node, detail.
    """
    rows = []
    for i, (kind, s) in enumerate(iter_steps(state, max_steps), start=1):
        action = s.last_action
        node_id = action.node_id if action is not None else None
        rows.append({
            "step": i,
            "kind": kind,
            "node_id": node_id,
            "depth": depth(s.nodes, node_id) if node_id is not None else None,
            "active_node_id": s.active_node_id,
            "detail": action.detail if action is not None else None,
        })
    return pd.DataFrame(rows, columns=COLUMNS)
