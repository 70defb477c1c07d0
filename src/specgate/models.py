"""Canonical Pydantic models shared across all specgate modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models**:
    :class:`ValidatorConfig`.

**Parser output models** -- produced from a spec's path table and consumed by
the parameter checker:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`ParameterSpec`,
    and :class:`OperationDefinition`.

**Validation result models** -- created fresh for every request:
    :class:`SchemaError`, :class:`ErrorKind`, :class:`ParameterError`,
    :class:`ValidationOutcome`, and :class:`ValidationResult`.
"""

from __future__ import annotations

import enum
from typing import Any, Collection, Optional

from pydantic import BaseModel, ConfigDict, Field

from specgate.exceptions import (
    InvalidParameterError,
    MalformedParameterError,
    MissingParameterError,
    UnmatchedRouteError,
)


# --- Config ---


class ValidatorConfig(BaseModel):
    """Behaviour switches for :class:`~specgate.middleware.RequestValidator`.

    Resolved by :func:`~specgate.config.resolve_config` from defaults, the
    project file ``./specgate.json``, and ``SPECGATE_*`` environment
    variables.
    """

    model_config = ConfigDict(extra="forbid")

    reject_invalid: bool = Field(
        default=True,
        description="Answer 400 when a present parameter is malformed or fails its schema",
    )
    reject_missing: bool = Field(
        default=False,
        description="Answer 400 when a required parameter is absent (otherwise only warn)",
    )
    ignore_unknown_formats: bool = Field(
        default=True,
        description="Treat schema formats the engine does not know as always valid",
    )
    ignore_unresolvable_refs: bool = Field(
        default=True,
        description="Leave unresolvable $ref pointers in place instead of failing",
    )
    state_key: str = Field(
        default="spec",
        description="Attribute on request.state that receives the dereferenced spec",
    )


# --- Parser Output Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised as operation keys in a path item."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where a parameter can appear, per the ``in`` field.

    ``body`` and ``formData`` only occur in Swagger 2.0 documents.
    """

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"
    BODY = "body"
    FORM_DATA = "formData"


class ParameterSpec(BaseModel):
    """A single parameter declared on an operation.

    ``schema`` is always populated: Swagger 2.0 parameters that declare
    ``type``/``format`` inline get a schema synthesised by the extractor.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")

    model_config = {"populate_by_name": True}


class OperationDefinition(BaseModel):
    """The operation declared for one (path, method) pair."""

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    parameters: list[ParameterSpec] = Field(default_factory=list)

    @property
    def required_parameters(self) -> list[ParameterSpec]:
        """Required parameters in declaration order."""
        return [p for p in self.parameters if p.required]


# --- Validation Result Models ---


class SchemaError(BaseModel):
    """One failure reported by :class:`~specgate.schema_validator.SchemaValidator`."""

    code: str
    message: str
    path: list[Any] = Field(default_factory=list)


class ErrorKind(str, enum.Enum):
    """Why a required parameter was rejected."""

    MISSING = "missing"
    MALFORMED = "malformed"
    INVALID = "invalid"


class ParameterError(BaseModel):
    """A problem with one required parameter of a request."""

    name: str
    location: ParameterLocation
    kind: ErrorKind
    message: str
    code: Optional[str] = None


class ValidationOutcome(BaseModel):
    """Per-request result of the parameter check.

    ``errors`` holds one entry per failing parameter in declaration order.
    ``missing`` and ``invalid`` are derived views over it: absent parameters
    as ``(name, location)`` pairs, and names of present parameters that were
    malformed or failed their schema.
    """

    errors: list[ParameterError] = Field(default_factory=list)

    @property
    def missing(self) -> list[tuple[str, str]]:
        return [
            (e.name, e.location.value)
            for e in self.errors
            if e.kind == ErrorKind.MISSING
        ]

    @property
    def invalid(self) -> list[str]:
        return [e.name for e in self.errors if e.kind != ErrorKind.MISSING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self, kinds: Optional[Collection[ErrorKind]] = None) -> None:
        """Raise for the first failing parameter, if any.

        Args:
            kinds: Only consider errors of these kinds, e.g. the kinds the
                active config rejects. All kinds count when omitted.

        Raises:
            MissingParameterError: The first failure is an absent parameter.
            MalformedParameterError: Its raw value is not valid JSON.
            InvalidParameterError: Its value does not match the schema.
        """
        considered = [e for e in self.errors if kinds is None or e.kind in kinds]
        if not considered:
            return
        first = considered[0]
        location = first.location.value
        if first.kind == ErrorKind.MISSING:
            raise MissingParameterError(first.message, first.name, location)
        if first.kind == ErrorKind.MALFORMED:
            raise MalformedParameterError(first.message, first.name, location)
        raise InvalidParameterError(first.message, first.name, location, code=first.code)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready summary used in 400 bodies and CLI output."""
        return {
            "missing": [{"name": n, "in": loc} for n, loc in self.missing],
            "invalid": self.invalid,
            "errors": [e.model_dump(mode="json") for e in self.errors],
        }


class ValidationResult(BaseModel):
    """What :meth:`~specgate.middleware.RequestValidator.validate` decided."""

    requested_url: str
    method: str
    matched: bool
    outcome: Optional[ValidationOutcome] = None

    def raise_for_errors(self, kinds: Optional[Collection[ErrorKind]] = None) -> None:
        """Raise for an undeclared route or the first failing parameter.

        Args:
            kinds: Passed to :meth:`ValidationOutcome.raise_for_errors`.

        Raises:
            UnmatchedRouteError: The path/method pair is not in the spec.
            RequestValidationError: See :meth:`ValidationOutcome.raise_for_errors`.
        """
        if not self.matched:
            raise UnmatchedRouteError(
                f"{self.method.upper()} {self.requested_url} is not in the specification file"
            )
        if self.outcome is not None:
            self.outcome.raise_for_errors(kinds)
