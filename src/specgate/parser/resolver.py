"""Dereference ``$ref`` pointers in a spec document.

Every ``{"$ref": "#/..."}`` node is replaced by a copy of the object it
points to, so that parameter schemas can be handed to the schema engine
without a resolver. Only document-internal pointers are followed.

Pointers that cannot be followed (external files or URLs, or a path that does
not exist in the document) are either left in place with a warning or
reported as :class:`~specgate.exceptions.SpecParseError`, depending on
``ignore_unresolvable``. A pointer that leads back into itself is kept
as-is at the point where the cycle closes.

Public functions:

* :func:`dereference` -- synchronous, returns a new document.
* :func:`dereference_async` -- same work on a worker thread, for use while
  an event loop is running.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any

from specgate.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def dereference(
    spec: dict[str, Any],
    ignore_unresolvable: bool = True,
) -> dict[str, Any]:
    """Return a copy of *spec* with all internal ``$ref`` pointers inlined.

    Args:
        spec: The raw spec document. It is not modified.
        ignore_unresolvable: Keep pointers that cannot be followed instead
            of raising.

    Returns:
        A new, dereferenced document.

    Raises:
        SpecParseError: If a pointer cannot be followed and
            *ignore_unresolvable* is false.
    """
    root = copy.deepcopy(spec)
    return _walk(root, root, frozenset(), ignore_unresolvable)


async def dereference_async(
    spec: dict[str, Any],
    ignore_unresolvable: bool = True,
) -> dict[str, Any]:
    """Run :func:`dereference` on a worker thread and await the result."""
    return await asyncio.to_thread(dereference, spec, ignore_unresolvable)


def _lookup(ref: str, root: dict[str, Any]) -> Any:
    """Follow a ``#/a/b/0`` JSON Pointer (RFC 6901) inside *root*.

    Raises:
        SpecParseError: If the pointer is external or any segment is absent.
    """
    if ref == "#":
        return root
    if not ref.startswith("#/"):
        raise SpecParseError(f"External $ref not supported: {ref}")

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            raise SpecParseError(f"Cannot resolve $ref '{ref}': no '{segment}' at path")
    return current


def _walk(
    node: Any,
    root: dict[str, Any],
    active: frozenset[str],
    ignore_unresolvable: bool,
) -> Any:
    # active holds the pointers currently being expanded on this branch
    if isinstance(node, list):
        return [_walk(item, root, active, ignore_unresolvable) for item in node]

    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str):
        if ref in active:
            return node
        try:
            target = _lookup(ref, root)
        except SpecParseError:
            if not ignore_unresolvable:
                raise
            logger.warning("Leaving unresolvable reference %s in place", ref)
            return node
        return _walk(copy.deepcopy(target), root, active | {ref}, ignore_unresolvable)

    return {key: _walk(value, root, active, ignore_unresolvable) for key, value in node.items()}
