# driver_test.py
# PyTest unit tests for dnc_stepper/driver.py, points.py, scheduler.py, tree.py and experiments.py

import pandas as pd
import pytest

from dnc_stepper import closest_pair as cp
from dnc_stepper import experiments
from dnc_stepper import quickhull as qh
from dnc_stepper.driver import iter_steps, next_step, run_to_completion, step_log
from dnc_stepper.points import points_by_id, points_from_xy, random_points
from dnc_stepper.scheduler import dfs_order, first_match, last_match
from dnc_stepper.tree import Point, depth, is_leaf, replace_node

# ---------- Driver ----------

def test_next_step_follows_the_guards():
    s = cp.make_initial_state(random_points(10, seed=1))
    assert next_step(s) == "divide"
    s = cp.step_divide(s)
    assert next_step(s) in ("divide", "conquer")
    assert next_step(run_to_completion(s)) is None


def test_run_to_completion_both_solvers():
    pts = random_points(40, seed=2)
    assert run_to_completion(cp.make_initial_state(pts)).finished
    assert run_to_completion(qh.make_initial_state(pts)).finished


def test_iter_steps_yields_every_transition():
    s = qh.make_initial_state([(0, 0), (1, 0), (1, 1), (0, 1), (0.5, 0.5)])
    steps = list(iter_steps(s))
    assert [k for k, _ in steps] == [st.last_action.kind for _, st in steps]
    assert len(steps) == 9
    assert steps[-1][1].finished


def test_iter_steps_max_steps():
    s = cp.make_initial_state(random_points(30, seed=3))
    assert len(list(iter_steps(s, max_steps=4))) == 4


@pytest.mark.parametrize("n", [2, 3, 4, 7, 25, 100])
def test_closest_pair_step_count(n):
    s = cp.make_initial_state(random_points(n, seed=n))
    assert len(list(iter_steps(s))) == experiments.expected_closest_pair_steps(n)


def test_step_log():
    s = cp.make_initial_state(random_points(12, seed=4))
    log = step_log(s)
    assert isinstance(log, pd.DataFrame)
    assert list(log.columns) == ["step", "kind", "node_id", "depth", "active_node_id", "detail"]
    assert list(log["step"]) == list(range(1, len(log) + 1))
    counts = log["kind"].value_counts()
    assert counts["conquer"] == counts["divide"] + 1
    assert counts["combine"] == counts["divide"]
    # the last combine solves the root
    assert log.iloc[-1]["kind"] == "combine" and log.iloc[-1]["node_id"] == 0
    assert log.iloc[0]["depth"] == log.iloc[-1]["depth"] == 0
    # 12 points halve down to leaves of 3: two levels below the root
    assert log["depth"].max() == 2


def test_step_log_of_finished_state_is_empty():
    log = step_log(cp.make_initial_state([(1, 1)]))
    assert log.empty


def test_driver_rejects_other_values():
    with pytest.raises(TypeError):
        next_step("not a state")


# ---------- Points ----------

def test_random_points_are_seeded_and_bounded():
    a = random_points(50, seed=5)
    b = random_points(50, seed=5)
    assert a == b
    assert [p.id for p in a] == list(range(50))
    assert all(0.06 <= p.x <= 0.94 and 0.06 <= p.y <= 0.94 for p in a)
    assert random_points(50, seed=6) != a


def test_points_from_xy():
    pts = points_from_xy([(1, 2), Point(7, 3.0, 4.0)])
    assert pts == [Point(0, 1.0, 2.0), Point(7, 3.0, 4.0)]


def test_points_by_id_rejects_duplicates():
    assert points_by_id([Point(3, 0.0, 0.0)]) == {3: Point(3, 0.0, 0.0)}
    with pytest.raises(ValueError):
        points_by_id([Point(0, 0.0, 0.0), Point(0, 1.0, 1.0)])


# ---------- Scheduler and tree helpers ----------

def small_tree():
    #        0
    #      /   \
    #     1     2
    #    / \
    #   3   4
    s = cp.make_initial_state([(x, 0) for x in range(8)])
    s = cp.step_divide(s)
    return cp.step_divide(s).nodes


def test_dfs_order_visits_left_first():
    nodes = small_tree()
    assert dfs_order(nodes) == [0, 1, 3, 4, 2]
    assert dfs_order(nodes, 1) == [1, 3, 4]
    assert dfs_order((), 0) == []


def test_first_and_last_match():
    nodes = small_tree()
    order = dfs_order(nodes)
    assert first_match(nodes, order, is_leaf) == 3
    assert last_match(nodes, order, is_leaf) == 2
    assert first_match(nodes, order, lambda n: False) is None


def test_tree_helpers():
    nodes = small_tree()
    assert depth(nodes, 0) == 0
    assert depth(nodes, 2) == 1
    assert depth(nodes, 3) == depth(nodes, 4) == 2


def test_replace_node_copies():
    nodes = small_tree()
    changed = replace_node(nodes, nodes[2])
    assert changed == nodes and changed is not nodes


# ---------- Experiments ----------

def test_measure_and_theory():
    df = experiments.measure(sizes=(8, 16), seed=1)
    assert len(df) == 2 * len(experiments.SOLVERS)
    assert (df["steps"] == df["divide"] + df["conquer"] + df["combine"]).all()
    table = experiments.with_theory(df)
    assert {"nlogn", "theory_seconds"} <= set(table.columns)
    assert sorted(table["solver"].unique()) == sorted(experiments.SOLVERS)
