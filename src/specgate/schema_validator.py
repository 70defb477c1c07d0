"""JSON Schema validation service used by the parameter checker.

:class:`SchemaValidator` is built once and shared by every request. It holds
only immutable settings (the draft class, the format checker, the
unknown-format policy, and a registry holding the spec document), so
concurrent requests can use one instance safely.

Failures come back as :class:`~specgate.models.SchemaError` objects with an
upper-case ``code`` derived from the failing keyword (``INVALID_TYPE``,
``ENUM_MISMATCH``, ``MIN_LENGTH``, ...). When unknown formats are not
ignored, a schema that names a format the engine has no checker for yields
a single ``UNKNOWN_FORMAT`` error.

Parameter schemas taken from a dereferenced spec can still hold local
``$ref`` pointers: the point where a recursive schema loops back, and
pointers the resolver could not follow. When the validator is given the
spec as ``root``, those pointers are resolved against the whole document
through a :class:`referencing.Registry`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Optional

from jsonschema import Draft4Validator, Draft202012Validator, FormatChecker
from jsonschema.exceptions import SchemaError as InvalidSchemaError
from jsonschema.exceptions import UnknownType
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT4, DRAFT202012

from specgate.exceptions import SpecParseError
from specgate.models import SchemaError

logger = logging.getLogger(__name__)

UNKNOWN_FORMAT = "UNKNOWN_FORMAT"

ROOT_URI = "urn:specgate:spec"
"""Base URI the spec document is registered under."""

_KEYWORD_CODES = {
    "type": "INVALID_TYPE",
    "enum": "ENUM_MISMATCH",
    "format": "INVALID_FORMAT",
    "required": "OBJECT_MISSING_REQUIRED_PROPERTY",
    "additionalProperties": "OBJECT_ADDITIONAL_PROPERTIES",
}

_SPECIFICATIONS = {
    Draft4Validator: DRAFT4,
    Draft202012Validator: DRAFT202012,
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class SchemaValidator:
    """Validate decoded values against JSON Schemas.

    Args:
        ignore_unknown_formats: When false, a ``format`` with no registered
            checker is reported as ``UNKNOWN_FORMAT`` instead of passing.
        validator_cls: ``jsonschema`` validator class. Draft 4 matches
            Swagger 2.0 and OpenAPI 3.0 schema objects; pass
            ``Draft202012Validator`` for OpenAPI 3.1 documents.
        format_checker: Checker holding the known formats. Defaults to a
            fresh :class:`jsonschema.FormatChecker` with every format the
            installed ``jsonschema`` supports.
        root: The spec document that local ``#/...`` pointers in parameter
            schemas refer to.
        ignore_unresolvable_refs: When true, a schema whose ``$ref`` cannot
            be followed is treated as passing; otherwise it raises
            :class:`~specgate.exceptions.SpecParseError`.
    """

    def __init__(
        self,
        ignore_unknown_formats: bool = True,
        validator_cls: type = Draft4Validator,
        format_checker: Optional[FormatChecker] = None,
        root: Optional[dict[str, Any]] = None,
        ignore_unresolvable_refs: bool = True,
    ) -> None:
        self._ignore_unknown_formats = ignore_unknown_formats
        self._ignore_unresolvable_refs = ignore_unresolvable_refs
        self._validator_cls = validator_cls
        self._format_checker = format_checker or FormatChecker()
        self._has_root = root is not None

        registry: Registry = Registry()
        if root is not None:
            specification = _SPECIFICATIONS.get(validator_cls, DRAFT4)
            registry = registry.with_resource(ROOT_URI, specification.create_resource(root))
        self._registry = registry

    @property
    def registered_formats(self) -> list[str]:
        """Names of all formats the engine can check, sorted."""
        return sorted(self._format_checker.checkers)

    def validate(self, value: Any, schema: dict[str, Any]) -> list[SchemaError]:
        """Validate *value* against *schema*.

        Returns:
            An empty list when the value conforms, otherwise the errors
            sorted by the location of the failing value.

        Raises:
            SpecParseError: If *schema* itself is not a valid schema, or a
                ``$ref`` cannot be followed and unresolvable references are
                not ignored.
        """
        if not self._ignore_unknown_formats:
            unknown = sorted(set(_iter_formats(schema)) - set(self._format_checker.checkers))
            if unknown:
                return [
                    SchemaError(
                        code=UNKNOWN_FORMAT,
                        message=f"There is no validation function for format '{unknown[0]}'",
                    )
                ]

        if self._has_root:
            schema = _anchor_refs(schema)
        validator = self._validator_cls(
            schema, registry=self._registry, format_checker=self._format_checker
        )
        try:
            found = sorted(validator.iter_errors(value), key=lambda e: list(e.absolute_path))
        except (InvalidSchemaError, UnknownType) as exc:
            raise SpecParseError(f"Invalid parameter schema {schema!r}: {exc}") from exc
        except Unresolvable as exc:
            if not self._ignore_unresolvable_refs:
                raise SpecParseError(f"Cannot resolve reference in parameter schema: {exc}") from exc
            logger.warning("Skipping validation against unresolvable reference: %s", exc)
            return []

        return [
            SchemaError(
                code=_error_code(err.validator),
                message=err.message,
                path=list(err.absolute_path),
            )
            for err in found
        ]


def _anchor_refs(schema: Any) -> Any:
    """Copy *schema* with local ``#...`` pointers rebased onto the spec document."""
    if isinstance(schema, list):
        return [_anchor_refs(item) for item in schema]
    if not isinstance(schema, dict):
        return schema
    anchored = {key: _anchor_refs(value) for key, value in schema.items()}
    ref = schema.get("$ref")
    if isinstance(ref, str) and ref.startswith("#"):
        anchored["$ref"] = ROOT_URI + ref
    return anchored


def _error_code(keyword: Any) -> str:
    keyword = str(keyword)
    if keyword in _KEYWORD_CODES:
        return _KEYWORD_CODES[keyword]
    return _CAMEL_BOUNDARY.sub("_", keyword).upper()


def _iter_formats(schema: Any) -> Iterator[str]:
    """Yield every ``format`` value used anywhere in *schema*."""
    if isinstance(schema, dict):
        fmt = schema.get("format")
        if isinstance(fmt, str):
            yield fmt
        for value in schema.values():
            yield from _iter_formats(value)
    elif isinstance(schema, list):
        for item in schema:
            yield from _iter_formats(item)
