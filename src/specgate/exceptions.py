"""Exception hierarchy for specgate.

All exceptions inherit from :class:`SpecgateError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgate.exit_codes`.
The CLI entry point :func:`specgate.app.main` catches ``SpecgateError`` and
exits with the appropriate code, while unexpected exceptions produce a crash
log and exit with :data:`EXIT_GENERIC_FAILURE`.

Request-scoped failures are normally returned as data on a
:class:`~specgate.models.ValidationOutcome`; the
:class:`RequestValidationError` family exists for callers that prefer to
raise (see :meth:`~specgate.models.ValidationOutcome.raise_for_errors`).

Subclass hierarchy::

    SpecgateError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- SpecParseError             (exit 7)
    +-- ConfigError                (exit 1)
    +-- RequestValidationError     (exit 8)
        +-- UnmatchedRouteError
        +-- MissingParameterError
        +-- InvalidParameterError
        +-- MalformedParameterError
"""

from __future__ import annotations

from typing import Optional

from specgate.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_VALIDATION_FAILURE,
)


class SpecgateError(Exception):
    """Base exception for all specgate errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specgate.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgateError):
    """Raised for invalid CLI arguments (bad header syntax, unparsable body)."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecgateError):
    """Raised when the spec cannot be loaded, parsed, or dereferenced."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpecgateError):
    """Raised for configuration problems (invalid JSON, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class RequestValidationError(SpecgateError):
    """Base class for a request that does not conform to the spec.

    Args:
        message: Human-readable error description.
        parameter: Name of the offending parameter, when there is one.
        location: Location (``query``, ``header``, ...) of that parameter.
    """

    exit_code = EXIT_VALIDATION_FAILURE

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        location: Optional[str] = None,
    ):
        super().__init__(message)
        self.parameter = parameter
        self.location = location


class UnmatchedRouteError(RequestValidationError):
    """Raised when the requested path/method pair is not declared in the spec."""


class MissingParameterError(RequestValidationError):
    """Raised when a required parameter is absent from the request."""


class InvalidParameterError(RequestValidationError):
    """Raised when a present parameter fails its schema.

    ``code`` holds the schema error code (e.g. ``INVALID_TYPE``, ``UNKNOWN_FORMAT``).
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        location: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, parameter=parameter, location=location)
        self.code = code


class MalformedParameterError(RequestValidationError):
    """Raised when a present parameter's raw value is not valid JSON."""
