"""
Module: scheduler
Description: Deterministic "which subproblem runs next" rules over a node arena.

These functions only read the arena. Both steppers build their
find_next_*_target functions from them:
  - divide / conquer: first matching node in depth-first order (left first)
  - combine: first matching node scanning that order in reverse, which is
    bottom-up, so a parent can never be combined before its children
"""

from typing import Any, Callable, List, Optional, Sequence

Predicate = Callable[[Any], bool]


def dfs_order(nodes: Sequence[Any], root_id: int = 0) -> List[int]:
    """
    Preorder ids of the subtree rooted at root_id.
    Uses an explicit stack; the right child is pushed before the left one so
    that the left subtree is visited first.
    """
    out: List[int] = []
    if not 0 <= root_id < len(nodes):
        return out
    stack = [root_id]
    while stack:
        node = nodes[stack.pop()]
        out.append(node.id)
        if node.right is not None:
            stack.append(node.right)
        if node.left is not None:
            stack.append(node.left)
    return out


def first_match(nodes: Sequence[Any], order: Sequence[int], predicate: Predicate) -> Optional[int]:
    """First id in order whose node satisfies predicate, or None."""
    for node_id in order:
        if predicate(nodes[node_id]):
            return node_id
    return None


def last_match(nodes: Sequence[Any], order: Sequence[int], predicate: Predicate) -> Optional[int]:
    """Like first_match, but scanning order back to front (bottom-up)."""
    for node_id in reversed(order):
        if predicate(nodes[node_id]):
            return node_id
    return None
