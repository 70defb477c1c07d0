"""Exact path/method lookup in a spec's path table.

Matching is literal: ``/users/{id}`` is only found when the requested path
is the string ``/users/{id}``. Path templates are not expanded.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def spec_contains_path(
    paths: dict[str, Any],
    requested_url: str,
    method: str,
    log: Optional[logging.Logger] = None,
) -> bool:
    """Check whether *paths* declares *method* for *requested_url*.

    Args:
        paths: The spec's ``paths`` mapping.
        requested_url: Requested path with the query string already removed.
        method: Lower-case HTTP method.
        log: Logger to report the pair to; defaults to the module logger.

    Returns:
        ``True`` iff ``paths[requested_url][method]`` exists.
    """
    log = log or logger
    log.info("Requested method-url pair:")
    log.info("%s - %s", method, requested_url)

    path_item = paths.get(requested_url)
    return isinstance(path_item, dict) and method in path_item
