"""Required-parameter checks for one request.

:func:`check_request_data` walks the required parameters of the matched
operation in declaration order and sorts each failure into one of three
kinds (see :class:`~specgate.models.ErrorKind`):

* ``missing`` -- no value at the declared location. Nothing else is checked.
* ``malformed`` -- the raw transport string is not valid JSON.
* ``invalid`` -- the decoded value does not match the parameter schema.

Transport values (query string, headers, cookies, path segments, form
fields) always arrive as strings and are decoded with :func:`json.loads`
before validation, so ``"5"`` becomes ``5`` and ``"true"`` becomes ``True``.
Parameters whose schema is string-typed skip the decoding step and are
validated as the raw string. Body values arrive already decoded and are
validated as they are, strings included; only a body handed over as raw
``bytes`` (one that could not be decoded upstream) is decoded here, which
reports it as malformed.

Every required parameter is checked; a failure never stops the loop.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from specgate.models import (
    ErrorKind,
    ParameterError,
    ParameterLocation,
    ParameterSpec,
    ValidationOutcome,
)
from specgate.parser.extractor import get_operation
from specgate.schema_validator import UNKNOWN_FORMAT, SchemaValidator

logger = logging.getLogger(__name__)

RequestValues = Mapping[str, Mapping[str, Any]]
"""Raw request values keyed by location, then by parameter name."""


def check_request_data(
    paths: dict[str, Any],
    requested_url: str,
    method: str,
    request_values: RequestValues,
    schema_validator: Optional[SchemaValidator] = None,
    log: Optional[logging.Logger] = None,
) -> ValidationOutcome:
    """Check the required parameters of ``paths[requested_url][method]``.

    Args:
        paths: The spec's ``paths`` mapping (ideally dereferenced).
        requested_url: Exact path key, query string removed.
        method: Lower-case HTTP method.
        request_values: Raw values per location, e.g.
            ``{"query": {"limit": "5"}, "header": {...}}``. A location that
            is absent, a name that is absent, and a ``None`` value all count
            as missing.
        schema_validator: Validation service; a default
            :class:`~specgate.schema_validator.SchemaValidator` is used
            when omitted.
        log: Logger for diagnostics; defaults to the module logger.

    Returns:
        A fresh :class:`~specgate.models.ValidationOutcome`. It is empty
        when the operation does not exist or declares no required
        parameters.
    """
    log = log or logger
    operation = get_operation(paths, requested_url, method)
    if operation is None:
        return ValidationOutcome()

    validator = schema_validator or SchemaValidator()
    errors: list[ParameterError] = []

    for param in operation.required_parameters:
        raw = _find_value(request_values, param)
        if raw is None:
            errors.append(
                ParameterError(
                    name=param.name,
                    location=param.location,
                    kind=ErrorKind.MISSING,
                    message=f"Required {param.location.value} parameter '{param.name}' is missing",
                )
            )
            continue

        error = _check_value(param, raw, validator, log)
        if error is None:
            log.debug("Valid parameter on request: %s", param.name)
        else:
            errors.append(error)

    return ValidationOutcome(errors=errors)


def _find_value(request_values: RequestValues, param: ParameterSpec) -> Any:
    values = request_values.get(param.location.value)
    if values is None:
        return None
    return values.get(param.name)


def _check_value(
    param: ParameterSpec,
    raw: Any,
    validator: SchemaValidator,
    log: logging.Logger,
) -> Optional[ParameterError]:
    """Decode and validate one present value; return the failure, if any."""
    value = raw
    if _needs_decoding(param, raw):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as exc:
            return ParameterError(
                name=param.name,
                location=param.location,
                kind=ErrorKind.MALFORMED,
                message=f"Value {raw!r} of parameter '{param.name}' is not valid JSON: {exc.msg}",
            )
        except UnicodeDecodeError as exc:
            return ParameterError(
                name=param.name,
                location=param.location,
                kind=ErrorKind.MALFORMED,
                message=f"Value of parameter '{param.name}' is not valid text: {exc.reason}",
            )

    schema_errors = validator.validate(value, param.schema_)
    if not schema_errors:
        return None

    first = schema_errors[0]
    if first.code == UNKNOWN_FORMAT:
        log.info("UNKNOWN_FORMAT error - Registered Formats: %s", ", ".join(validator.registered_formats))

    return ParameterError(
        name=param.name,
        location=param.location,
        kind=ErrorKind.INVALID,
        message=first.message,
        code=first.code,
    )


def _needs_decoding(param: ParameterSpec, raw: Any) -> bool:
    # bytes are an undecoded body; a str in the body is an already decoded JSON string
    if isinstance(raw, (bytes, bytearray)):
        return True
    if not isinstance(raw, str) or param.location == ParameterLocation.BODY:
        return False
    return not _is_string_schema(param.schema_)


def _is_string_schema(schema: dict[str, Any]) -> bool:
    declared = schema.get("type")
    if isinstance(declared, list):
        return declared == ["string"] or sorted(declared) == ["null", "string"]
    return declared == "string"
