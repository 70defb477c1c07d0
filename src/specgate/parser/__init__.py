"""Spec document parser -- load, dereference, and read operations.

Typical usage::

    from specgate.parser import dereference, load_spec, validate_spec_version

    raw = load_spec("openapi.yaml")
    validate_spec_version(raw)
    spec = dereference(raw)

Sub-modules:

* :mod:`~specgate.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and version checks.
* :mod:`~specgate.parser.resolver` -- ``$ref`` dereferencing with cycle
  detection.
* :mod:`~specgate.parser.extractor` -- Builds
  :class:`~specgate.models.OperationDefinition` objects from the path table.
"""

from specgate.parser.extractor import get_operation, iter_operations
from specgate.parser.loader import load_spec, validate_spec_version
from specgate.parser.resolver import dereference, dereference_async

__all__ = [
    "load_spec",
    "validate_spec_version",
    "dereference",
    "dereference_async",
    "get_operation",
    "iter_operations",
]
