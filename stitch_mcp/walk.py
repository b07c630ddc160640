"""Iterative traversal of JSON response trees.

Walks use an explicit stack instead of recursion, so the cost of a walk is
bounded by ``max_depth`` and by the size of the response. Containers are
recognized by capability: mappings expose their values, other non-string
sequences expose their elements, everything else is a leaf.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

_SCALAR_SEQUENCES = (str, bytes, bytearray)


def is_container(value: Any) -> bool:
    """Whether a value has enumerable children."""
    return isinstance(value, Mapping) or (
        isinstance(value, Sequence) and not isinstance(value, _SCALAR_SEQUENCES)
    )


def children(value: Any) -> list[Any] | None:
    """Return the child values of a container, or None for a leaf."""
    if isinstance(value, Mapping):
        return list(value.values())
    if is_container(value):
        return list(value)
    return None


def iter_objects(root: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[Any]:
    """Yield every mapping reachable from ``root`` in depth-first pre-order.

    Siblings are visited in field order. Callers may add keys to a yielded
    mapping before resuming the iterator; its children are read afterwards.
    A container already visited on this walk is not entered again.

    Args:
        root: Parsed JSON value.
        max_depth: Deepest nesting level visited; ``root`` is level 0.

    Yields:
        Mapping nodes of the tree.
    """
    stack: list[tuple[Any, int]] = [(root, 0)]
    seen: set[int] = set()

    while stack:
        node, depth = stack.pop()
        if not is_container(node):
            continue
        if id(node) in seen:
            continue
        if depth > max_depth:
            logger.warning("Skipping subtree nested deeper than %d levels", max_depth)
            continue
        seen.add(id(node))

        if isinstance(node, Mapping):
            yield node

        kids = children(node) or []
        stack.extend((child, depth + 1) for child in reversed(kids))


__all__ = ["DEFAULT_MAX_DEPTH", "children", "is_container", "iter_objects"]
