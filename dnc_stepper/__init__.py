"""
Package: dnc_stepper
Description: Divide-and-conquer algorithms as pausable state machines.
             - closest_pair: median split, brute-force base case, strip combine
             - quickhull   : baseline split, pivot divide, outside-set conquer,
                             hull-edge combine over two independent chains
             - max_subarray: midpoint split, single-element base case,
                             prefix / suffix / crossing combine
Every step function maps an immutable state to a new one; can_* guards tell a
caller which of Divide / Conquer / Combine is enabled.
"""

__version__ = "1.0"
__date__    = "2026-10-19"
__project__ = "Divide-and-Conquer Stepper: closest pair, Quickhull and maximum subarray"

from .tree import Pair, Point, StepAction
from .points import points_from_xy, random_points
from .driver import iter_steps, next_step, run_to_completion, step_log

__all__ = [
    "Pair",
    "Point",
    "StepAction",
    "points_from_xy",
    "random_points",
    "iter_steps",
    "next_step",
    "run_to_completion",
    "step_log",
]
