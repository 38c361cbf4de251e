"""
Module: experiments
Description: Empirically evaluate both steppers.
             - Generate seeded random 2D point sets of growing size.
             - Drive each stepper to completion, counting steps and timing it.
             - Compare against theoretical O(n log n) growth (normalized n log n curve).
             - Produce plots: steps vs n, runtime vs theory.
"""

from typing import Callable, Dict, Iterable
import math
import time

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from . import closest_pair, quickhull
from .driver import iter_steps
from .points import random_points

SOLVERS: Dict[str, Callable] = {
    "closest_pair": closest_pair.make_initial_state,
    "quickhull": quickhull.make_initial_state,
}

DEFAULT_SIZES = (16, 32, 64, 128, 256, 512)


def measure(sizes: Iterable[int] = DEFAULT_SIZES, seed: int = 0, repeats: int = 1) -> pd.DataFrame:
    """
    One row per (solver, n, repeat) with the number of divide / conquer /
    combine steps and the wall time to reach the finished state.
    """
    rows = []
    for n in sizes:
        for r in range(repeats):
            pts = random_points(n, seed=seed + r)
            for name, make in SOLVERS.items():
                counts = {"divide": 0, "conquer": 0, "combine": 0}
                t0 = time.perf_counter()
                for kind, _ in iter_steps(make(pts)):
                    counts[kind] += 1
                elapsed = time.perf_counter() - t0
                rows.append({"solver": name, "n": n, "repeat": r, **counts,
                             "steps": sum(counts.values()), "seconds": elapsed})
    return pd.DataFrame(rows)


def with_theory(df: pd.DataFrame) -> pd.DataFrame:
    """
    Average repeats and add an n log n column scaled to match each solver's
    measured time at its largest n.
    """
    agg = df.groupby(["solver", "n"], as_index=False)[["steps", "seconds"]].mean()
    agg["nlogn"] = agg["n"] * np.log2(agg["n"])
    parts = []
    for _, g in agg.groupby("solver"):
        g = g.sort_values("n").copy()
        last = g.iloc[-1]
        scale = last["seconds"] / last["nlogn"] if last["nlogn"] > 0 else 0.0
        g["theory_seconds"] = g["nlogn"] * scale
        parts.append(g)
    return pd.concat(parts, ignore_index=True)


def expected_closest_pair_steps(n: int) -> int:
    """
    Step count of the closest-pair stepper on n >= 2 points: one divide and
    one combine per internal node, one conquer per leaf. Leaves are the
    subproblems of size <= 3 reached by halving.
    """
    def leaf_count(k: int) -> int:
        if k <= closest_pair.BASE_CASE_SIZE:
            return 1
        return leaf_count(k // 2) + leaf_count(k - k // 2)
    if n < 2:
        return 0
    m = leaf_count(n)
    return 2 * (m - 1) + m


def plot(table: pd.DataFrame):
    """Steps vs n and runtime vs the scaled n log n curve, one line per solver."""
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(11, 4))
    for name, g in table.groupby("solver"):
        ax1.plot(g["n"], g["steps"], "o-", label=name)
        ax2.plot(g["n"], g["seconds"], "o-", label=f"{name} measured")
        ax2.plot(g["n"], g["theory_seconds"], "--", label=f"{name} ~ n log n")
    ax1.set_xlabel("n")
    ax1.set_ylabel("steps")
    ax1.set_title("Steps to completion")
    ax1.legend()
    ax2.set_xlabel("n")
    ax2.set_ylabel("seconds")
    ax2.set_title("Runtime vs. normalized n log n")
    ax2.legend()
    fig.tight_layout()
    return fig


if __name__ == "__main__":
    table = with_theory(measure(DEFAULT_SIZES, seed=42, repeats=3))
    print(table.to_string(index=False))
    for n in DEFAULT_SIZES:
        print(f"n={n}: expected closest-pair steps {expected_closest_pair_steps(n)}, "
              f"log2(n)={math.log2(n):.1f}")
    plot(table)
    plt.show()
