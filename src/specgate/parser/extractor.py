"""Build operation models from a spec's path table.

The validator itself reads the raw ``paths`` mapping; this module turns one
``paths[path][method]`` entry into an
:class:`~specgate.models.OperationDefinition` so the parameter checker can
work with typed :class:`~specgate.models.ParameterSpec` objects.

Parameter merging follows the OpenAPI rules: path-item level parameters
apply to every operation under the path, and an operation-level parameter
replaces a path-level one with the same ``name`` and ``in``.

Swagger 2.0 non-body parameters describe their type inline
(``type: integer, minimum: 1``) instead of in a ``schema`` object; for those a
schema is synthesised from the inline keywords.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from specgate.models import (
    HTTPMethod,
    OperationDefinition,
    ParameterLocation,
    ParameterSpec,
)

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)

# Inline Swagger 2.0 keywords that carry over into a JSON Schema
_INLINE_SCHEMA_KEYWORDS = (
    "type",
    "format",
    "items",
    "enum",
    "default",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
    "uniqueItems",
)


def get_operation(
    paths: dict[str, Any], path: str, method: str
) -> Optional[OperationDefinition]:
    """Return the operation declared at ``paths[path][method]``, or ``None``.

    Args:
        paths: The spec's ``paths`` mapping.
        path: Exact path key (no template matching).
        method: Lower-case HTTP method. Path-item keys that are not HTTP
            methods (``parameters``, ``x-*`` extensions) never match.
    """
    if method not in _HTTP_METHODS:
        return None
    path_item = paths.get(path)
    if not isinstance(path_item, dict):
        return None
    operation = path_item.get(method)
    if not isinstance(operation, dict):
        return None

    merged = _merge_parameters(
        path_item.get("parameters") or [],
        operation.get("parameters") or [],
    )
    return OperationDefinition(
        path=path,
        method=HTTPMethod(method),
        operation_id=operation.get("operationId"),
        parameters=_extract_parameters(merged),
    )


def iter_operations(paths: dict[str, Any]) -> Iterator[OperationDefinition]:
    """Yield every operation in *paths*, sorted by path then method."""
    for path in sorted(paths):
        path_item = paths[path]
        if not isinstance(path_item, dict):
            continue
        for method in _HTTP_METHODS:
            if method in path_item:
                operation = get_operation(paths, path, method)
                if operation is not None:
                    yield operation


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameter lists.

    Operation-level entries override path-level entries with the same
    ``(name, in)`` key. Path-level survivors come first.
    """
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params if isinstance(p, dict)}
    merged = [
        p
        for p in path_params
        if isinstance(p, dict) and (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(p for p in op_params if isinstance(p, dict))
    return merged


def _extract_parameters(params_list: list[dict[str, Any]]) -> list[ParameterSpec]:
    """Convert raw parameter objects into :class:`ParameterSpec` models.

    Parameters with an unrecognised ``in`` value are skipped. Path
    parameters are always required.
    """
    parameters: list[ParameterSpec] = []

    for param in params_list:
        if "$ref" in param:
            logger.debug("Skipping unresolved parameter reference %s", param["$ref"])
            continue

        try:
            location = ParameterLocation(param.get("in", "query"))
        except ValueError:
            logger.debug("Skipping parameter %r with unknown location %r", param.get("name"), param.get("in"))
            continue

        required = _is_required(param.get("required", False))
        if location == ParameterLocation.PATH:
            required = True

        parameters.append(
            ParameterSpec(
                name=param.get("name", ""),
                location=location,
                required=required,
                description=param.get("description"),
                schema=_parameter_schema(param),
            )
        )

    return parameters


def _is_required(value: Any) -> bool:
    # YAML authors sometimes quote booleans
    return str(value).lower() == "true"


def _parameter_schema(param: dict[str, Any]) -> dict[str, Any]:
    """Find or synthesise the JSON Schema for one parameter.

    Resolution order: an explicit ``schema`` object, then the first media
    type under ``content`` (OpenAPI 3), then inline Swagger 2.0 keywords.
    An empty schema accepts any value.
    """
    schema = param.get("schema")
    if isinstance(schema, dict):
        return schema

    content = param.get("content")
    if isinstance(content, dict):
        for media in content.values():
            if isinstance(media, dict) and isinstance(media.get("schema"), dict):
                return media["schema"]

    if param.get("type") == "file":
        return {}
    return {key: param[key] for key in _INLINE_SCHEMA_KEYWORDS if key in param}
