# max_subarray_test.py
# PyTest unit tests for dnc_stepper/max_subarray.py

import numpy as np
import pytest

from dnc_stepper import max_subarray as ms
from dnc_stepper.driver import iter_steps, next_step, run_to_completion, step_log
from dnc_stepper.max_subarray import MSPhase

# ---------- Helpers (for tests only) ----------

def brute_force_best(values):
    """Reference maximum subarray sum over all O(n^2) ranges."""
    best = None
    for i in range(len(values)):
        total = 0
        for j in range(i, len(values)):
            total += values[j]
            if best is None or total > best:
                best = total
    return best


def range_sum(values, rng):
    i, j = rng
    return sum(values[i:j + 1])


def drive(state):
    """Press the first enabled button (combine, conquer, divide) until none is; keep every snapshot."""
    history = [state]
    while True:
        if ms.can_combine(state):
            state = ms.step_combine(state)
        elif ms.can_conquer(state):
            state = ms.step_conquer(state)
        elif ms.can_divide(state):
            state = ms.step_divide(state)
        else:
            return history
        history.append(state)


CLRS = [13, -3, -25, 20, -3, -16, -23, 18, 20, -7, 12, -5, -22, 15, -4, 7]


# ---------- Unit tests ----------

def test_textbook_example():
    final = drive(ms.make_initial_state(CLRS))[-1]
    assert final.finished
    assert ms.best_subarray(final) == (43, (7, 10))


@pytest.mark.parametrize("n,seed", [(1, 1), (2, 2), (5, 3), (16, 4), (33, 5), (100, 6)])
def test_matches_brute_force(n, seed):
    rng = np.random.default_rng(seed)
    values = [int(v) for v in rng.integers(-10, 11, size=n)]
    final = drive(ms.make_initial_state(values))[-1]
    assert final.finished

    best, best_range = ms.best_subarray(final)
    assert best == brute_force_best(values)
    assert range_sum(values, best_range) == best
    assert 0 <= best_range[0] <= best_range[1] < n


@pytest.mark.parametrize("seed", range(20))
def test_every_summary_is_consistent(seed):
    values = ms.random_values(12, seed=seed)
    final = drive(ms.make_initial_state(values))[-1]
    for node in final.nodes:
        s = node.summary
        part = values[node.l:node.r + 1]
        assert s.total == sum(part)
        assert s.best == brute_force_best(part)
        assert s.prefix_range[0] == node.l and range_sum(values, s.prefix_range) == s.prefix
        assert s.suffix_range[1] == node.r and range_sum(values, s.suffix_range) == s.suffix
        assert range_sum(values, s.best_range) == s.best


def test_all_negative_picks_largest_element():
    final = drive(ms.make_initial_state([-4, -2, -7, -3]))[-1]
    assert ms.best_subarray(final) == (-2, (1, 1))


def test_single_element_is_one_conquer():
    s = ms.make_initial_state([5])
    assert not ms.can_divide(s) and not ms.can_combine(s)
    assert ms.find_next_conquer_target(s) == 0
    final = ms.step_conquer(s)
    assert final.finished
    assert ms.best_subarray(final) == (5, (0, 0))


def test_empty_array_is_finished():
    s = ms.make_initial_state([])
    assert s.finished and s.nodes == ()
    assert not (ms.can_divide(s) or ms.can_conquer(s) or ms.can_combine(s))
    assert ms.step_divide(s) is s and ms.step_conquer(s) is s and ms.step_combine(s) is s
    assert ms.best_subarray(s) is None


def test_equal_sums_keep_the_leftmost_range():
    final = drive(ms.make_initial_state([1, -1, 1]))[-1]
    assert ms.best_subarray(final) == (1, (0, 0))


def test_divide_splits_at_midpoint():
    s = ms.step_divide(ms.make_initial_state([3, -1, 4, -1, 5]))
    root, left, right = s.nodes
    assert root.phase is MSPhase.SPLIT and root.mid == 2
    assert (left.l, left.r, right.l, right.r) == (0, 2, 3, 4)
    assert left.parent == right.parent == 0
    assert s.last_action.detail == (2, 1, 2)
    assert ms.get_node(s) is root


def test_combine_reports_the_crossing_case():
    # best of [2, -1] is 2 and of [3] is 3; crossing 2 + -1 + 3 = 4 wins
    history = drive(ms.make_initial_state([2, -1, 3]))
    combines = [s.last_action for s in history[1:] if s.last_action.kind == "combine"]
    root = combines[-1]
    assert root.node_id == 0
    assert root.detail.chosen == "cross"
    assert root.detail.cross == 4
    assert (root.detail.cross_left_range, root.detail.cross_right_range) == ((0, 1), (2, 2))
    assert ms.best_subarray(history[-1]) == (4, (0, 2))


def test_combine_waits_for_both_halves():
    s = ms.step_divide(ms.make_initial_state([1, 2, 3, 4]))
    assert not ms.can_combine(s)
    assert ms.step_combine(s) is s


@pytest.mark.parametrize("n", [1, 2, 7, 16, 31])
def test_step_counts(n):
    kinds = [s.last_action.kind for s in drive(ms.make_initial_state(ms.random_values(n, seed=n)))[1:]]
    assert kinds.count("divide") == n - 1
    assert kinds.count("conquer") == n
    assert kinds.count("combine") == n - 1


def test_summary_only_when_solved():
    for s in drive(ms.make_initial_state(ms.random_values(10, seed=7))):
        for node in s.nodes:
            assert (node.summary is not None) == (node.phase is MSPhase.SOLVED)
            if node.left is not None:
                left, right = s.nodes[node.left], s.nodes[node.right]
                assert (left.l, right.r) == (node.l, node.r) and left.r + 1 == right.l


def test_past_snapshots_never_change():
    s0 = ms.make_initial_state(CLRS)
    drive(s0)
    assert len(s0.nodes) == 1 and s0.nodes[0].phase is MSPhase.UNSPLIT


def test_reset():
    final = drive(ms.make_initial_state(CLRS))[-1]
    r = ms.reset(final)
    assert r.values == final.values
    assert len(r.nodes) == 1 and not r.finished


def test_driver_runs_max_subarray():
    s = ms.make_initial_state(CLRS)
    assert next_step(s) == "divide"
    assert run_to_completion(s) == drive(s)[-1]
    assert len(list(iter_steps(s))) == 3 * len(CLRS) - 2
    log = step_log(s)
    assert log.iloc[-1]["node_id"] == 0 and log.iloc[-1]["depth"] == 0
    # 16 elements: leaves are four levels below the root
    assert log["depth"].max() == 4


def test_parse_values():
    assert ms.parse_values(" 3, -1  4,2.5 ") == [3, -1, 4, 2.5]
    with pytest.raises(ValueError):
        ms.parse_values("7")
    with pytest.raises(ValueError):
        ms.parse_values("1, two, 3")


def test_random_values_are_seeded_and_bounded():
    a = ms.random_values(50, seed=8)
    assert a == ms.random_values(50, seed=8)
    assert len(a) == 50
    assert all(ms.RANDOM_LOW <= v <= ms.RANDOM_HIGH for v in a)
