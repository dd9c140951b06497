"""
Reachability Walker: depth-first traversal over the source graph.

One traversal routine, reused by every phase that needs "all nodes
reachable from these roots":

    - PRE order:  discovery (identifier normalization, global discovery)
    - POST order: dependency-first emission (children before parents)

The walk is iterative, keyed on node identity, and terminates on cycles.
"""

from enum import Enum
from typing import Callable, Iterable, List, Optional, Set

from .graph import Node


class WalkOrder(Enum):
    PRE = "pre"    # parent before children (discovery order)
    POST = "post"  # children before parent


ChildrenFn = Callable[[Node], Iterable[Node]]


def _slot_children(node: Node) -> List[Node]:
    return node.children()


def walk(roots: Iterable[Optional[Node]],
         on_visit: Callable[[Node], None],
         *,
         order: WalkOrder = WalkOrder.PRE,
         visited: Optional[Set[Node]] = None,
         children: Optional[ChildrenFn] = None) -> None:
    """
    Visit every node reachable from `roots` exactly once.

    Args:
        roots: Start nodes (None entries are ignored)
        on_visit: Callback invoked once per node
        order: PRE (discovery order) or POST (children first)
        visited: Optional shared visited set; nodes already in it are skipped
        children: Optional replacement for slot-based child enumeration

    In POST order a node still on the stack when it is reached again
    (a cycle) is not revisited, so the deeper node is visited first and
    its back-reference is left for the dependency sorter to diagnose.
    """
    if visited is None:
        visited = set()
    child_fn = children or _slot_children

    for root in roots:
        if root is None or root in visited:
            continue
        if order is WalkOrder.PRE:
            _walk_pre(root, on_visit, visited, child_fn)
        else:
            _walk_post(root, on_visit, visited, child_fn)


def _walk_pre(root: Node, on_visit, visited: Set[Node], child_fn: ChildrenFn) -> None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        on_visit(node)
        # reversed so the first slot is explored first
        for child in reversed(list(child_fn(node))):
            if child not in visited:
                stack.append(child)


def _walk_post(root: Node, on_visit, visited: Set[Node], child_fn: ChildrenFn) -> None:
    visited.add(root)
    stack = [(root, iter(list(child_fn(root))))]
    while stack:
        node, pending = stack[-1]
        advanced = False
        for child in pending:
            if child not in visited:
                visited.add(child)
                stack.append((child, iter(list(child_fn(child)))))
                advanced = True
                break
        if not advanced:
            stack.pop()
            on_visit(node)


def reachable_nodes(roots: Iterable[Optional[Node]]) -> List[Node]:
    """All nodes reachable from `roots`, in discovery (pre) order."""
    found: List[Node] = []
    walk(roots, found.append)
    return found
