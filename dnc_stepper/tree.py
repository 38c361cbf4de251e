"""
Module: tree
Description: Value types shared by both steppers and helpers over the node arena.

A recursion tree is stored as a tuple of nodes where node.id is also the
node's index in the tuple. Nodes refer to each other by id (parent, left,
right), never by reference, so a snapshot is just a tuple and replacing one
node produces a new tuple without touching the old one.
"""

from typing import Any, NamedTuple, Optional, Sequence, Tuple


class Point(NamedTuple):
    """An immutable input point, identified by a process-unique integer id."""
    id: int
    x: float
    y: float


class Pair(NamedTuple):
    """A compared pair of point ids and their squared distance."""
    a: int
    b: int
    d2: float


class StepAction(NamedTuple):
    """What the last step did: kind is 'divide', 'conquer' or 'combine'."""
    kind: str
    node_id: Optional[int]
    detail: Any = None


# ---------- Arena helpers ----------
def replace_node(nodes: Tuple[Any, ...], node: Any) -> Tuple[Any, ...]:
    """Return a new arena with node stored at node.id (appended if it is the next id)."""
    if node.id == len(nodes):
        return nodes + (node,)
    return nodes[:node.id] + (node,) + nodes[node.id + 1:]


def is_leaf(node: Any) -> bool:
    return node.left is None and node.right is None


def depth(nodes: Sequence[Any], node_id: int) -> int:
    """Number of edges between node_id and the root."""
    d = 0
    cur = nodes[node_id]
    while cur.parent is not None:
        d += 1
        cur = nodes[cur.parent]
    return d
