"""Validator factory and Starlette middleware.

:class:`RequestValidator` owns one dereferenced spec document and answers,
for any request, whether its path/method pair is declared and whether its
required parameters are present and well-formed. Construction only returns
once dereferencing has finished, so no request is ever validated against a
half-dereferenced spec::

    validator = await RequestValidator.create(load_spec("openapi.yaml"))
    # or, outside an event loop
    validator = RequestValidator.from_spec(load_spec("openapi.yaml"))

:class:`SpecValidationMiddleware` plugs a validator into a Starlette or
FastAPI application::

    app.add_middleware(SpecValidationMiddleware, validator=validator)

Requests to undeclared path/method pairs get ``400`` with
``{"message": "The requested path is not in the specification file"}``.
Parameter problems are logged as warnings and, depending on
:class:`~specgate.models.ValidatorConfig`, rejected with a structured
``400``. Accepted requests carry the dereferenced spec on
``request.state.spec`` (the attribute name is configurable) and the
normalised path on ``request.state.requested_url``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from jsonschema import Draft4Validator, Draft202012Validator
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from specgate.checker import RequestValues, check_request_data
from specgate.exceptions import SpecParseError
from specgate.matching import spec_contains_path
from specgate.models import (
    ErrorKind,
    OperationDefinition,
    ParameterLocation,
    ValidationResult,
    ValidatorConfig,
)
from specgate.parser.extractor import get_operation
from specgate.parser.resolver import dereference, dereference_async
from specgate.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)

UNMATCHED_ROUTE_MESSAGE = "The requested path is not in the specification file"
INVALID_PARAMETERS_MESSAGE = "The request parameters do not match the specification file"


class RequestValidator:
    """Validate requests against one settled spec document.

    Prefer :meth:`create` or :meth:`from_spec`; calling the constructor
    directly assumes *spec* is already dereferenced.

    Args:
        spec: Dereferenced spec document with a ``paths`` mapping.
        config: Behaviour switches; defaults to ``ValidatorConfig()``.
        schema_validator: Shared validation service. When omitted one is
            built from *config*, using Draft 2020-12 for OpenAPI 3.1
            documents and Draft 4 otherwise.
        log: Logger for diagnostics; defaults to this module's logger.
    """

    def __init__(
        self,
        spec: dict[str, Any],
        config: Optional[ValidatorConfig] = None,
        schema_validator: Optional[SchemaValidator] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        paths = spec.get("paths")
        if not isinstance(paths, dict):
            raise SpecParseError("Spec has no 'paths' object")

        self._spec = spec
        self._config = config or ValidatorConfig()
        self._log = log or logger
        self._schema_validator = schema_validator or _default_schema_validator(
            spec, self._config
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_spec(
        cls,
        spec_document: dict[str, Any],
        config: Optional[ValidatorConfig] = None,
        schema_validator: Optional[SchemaValidator] = None,
        log: Optional[logging.Logger] = None,
    ) -> "RequestValidator":
        """Dereference *spec_document* and build a validator around it."""
        config = config or ValidatorConfig()
        spec = dereference(spec_document, ignore_unresolvable=config.ignore_unresolvable_refs)
        validator = cls(spec, config=config, schema_validator=schema_validator, log=log)
        validator._log.info("Specification file dereferenced")
        return validator

    @classmethod
    async def create(
        cls,
        spec_document: dict[str, Any],
        config: Optional[ValidatorConfig] = None,
        schema_validator: Optional[SchemaValidator] = None,
        log: Optional[logging.Logger] = None,
    ) -> "RequestValidator":
        """Like :meth:`from_spec`, but dereferences on a worker thread."""
        config = config or ValidatorConfig()
        spec = await dereference_async(
            spec_document, ignore_unresolvable=config.ignore_unresolvable_refs
        )
        validator = cls(spec, config=config, schema_validator=schema_validator, log=log)
        validator._log.info("Specification file dereferenced")
        return validator

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def spec(self) -> dict[str, Any]:
        """The dereferenced spec document. Treat as read-only."""
        return self._spec

    @property
    def config(self) -> ValidatorConfig:
        return self._config

    def operation_for(self, url: str, method: str) -> Optional[OperationDefinition]:
        """Return the declared operation for a request, or ``None``."""
        path, method = normalize_request(url, method)
        return get_operation(self._spec["paths"], path, method)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, url: str, method: str, request_values: RequestValues) -> ValidationResult:
        """Match the request against the spec and check its parameters.

        Args:
            url: Request path, with or without a query string.
            method: HTTP method in any case.
            request_values: Raw values per location, see
                :func:`~specgate.checker.check_request_data`.

        Returns:
            A :class:`~specgate.models.ValidationResult`. ``outcome`` is
            ``None`` when the path/method pair is not declared.
        """
        requested_url, method = normalize_request(url, method)
        paths = self._spec["paths"]

        if not spec_contains_path(paths, requested_url, method, log=self._log):
            return ValidationResult(requested_url=requested_url, method=method, matched=False)

        outcome = check_request_data(
            paths,
            requested_url,
            method,
            request_values,
            schema_validator=self._schema_validator,
            log=self._log,
        )
        if outcome.missing:
            self._log.warning(
                "The following parameters were required but weren't sent in the request: %s",
                outcome.missing,
            )
        if outcome.invalid:
            self._log.warning(
                "The following parameters were not of the right type: %s",
                outcome.invalid,
            )
        return ValidationResult(
            requested_url=requested_url, method=method, matched=True, outcome=outcome
        )

    @property
    def rejected_kinds(self) -> frozenset[ErrorKind]:
        """Error kinds that make :meth:`rejection_for` answer with a 400."""
        kinds: set[ErrorKind] = set()
        if self._config.reject_invalid:
            kinds.update((ErrorKind.MALFORMED, ErrorKind.INVALID))
        if self._config.reject_missing:
            kinds.add(ErrorKind.MISSING)
        return frozenset(kinds)

    def rejection_for(self, result: ValidationResult) -> Optional[tuple[int, dict[str, Any]]]:
        """Decide whether *result* should be answered with an error response.

        Returns:
            ``(status_code, body)`` for a rejected request, or ``None`` when
            the request should be forwarded.
        """
        if not result.matched:
            return 400, {"message": UNMATCHED_ROUTE_MESSAGE}

        outcome = result.outcome
        if outcome is None or outcome.ok:
            return None

        kinds = self.rejected_kinds
        if not any(e.kind in kinds for e in outcome.errors):
            return None
        return 400, {"message": INVALID_PARAMETERS_MESSAGE, **outcome.to_dict()}


class SpecValidationMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that runs a :class:`RequestValidator` per request."""

    def __init__(self, app: ASGIApp, validator: RequestValidator) -> None:
        super().__init__(app)
        self.validator = validator

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        url = request.url.path
        request.state.requested_url = url

        request_values = await collect_request_values(
            request, self.validator.operation_for(url, request.method)
        )
        result = self.validator.validate(url, request.method, request_values)

        rejection = self.validator.rejection_for(result)
        if rejection is not None:
            status_code, body = rejection
            return JSONResponse(status_code=status_code, content=body)

        setattr(request.state, self.validator.config.state_key, self.validator.spec)
        return await call_next(request)


def normalize_request(url: str, method: str) -> tuple[str, str]:
    """Strip the query string from *url* and lower-case *method*."""
    return url.split("?", 1)[0], method.lower()


async def collect_request_values(
    request: Request, operation: Optional[OperationDefinition]
) -> dict[str, Mapping[str, Any]]:
    """Gather raw parameter values from a Starlette request, per location.

    The body is only read when *operation* declares a required ``body`` or
    ``formData`` parameter. A ``body`` parameter stands for the whole
    decoded body; a body that is not JSON is passed on as raw bytes so the
    checker reports it as malformed.
    """
    values: dict[str, Mapping[str, Any]] = {
        ParameterLocation.QUERY.value: dict(request.query_params),
        ParameterLocation.PATH.value: dict(request.path_params),
        ParameterLocation.HEADER.value: request.headers,
        ParameterLocation.COOKIE.value: dict(request.cookies),
    }
    if operation is None:
        return values

    wanted = {p.location for p in operation.required_parameters}

    if ParameterLocation.BODY in wanted:
        raw = await request.body()
        body: Any = None
        if raw:
            try:
                body = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                body = raw
        values[ParameterLocation.BODY.value] = body_parameter_values(operation, body)

    if ParameterLocation.FORM_DATA in wanted:
        # cache the raw body first so the endpoint can still read it
        await request.body()
        form = await request.form()
        values[ParameterLocation.FORM_DATA.value] = {
            key: value for key, value in form.items() if isinstance(value, str)
        }

    return values


def body_parameter_values(operation: OperationDefinition, body: Any) -> dict[str, Any]:
    """Map every ``body`` parameter of *operation* to the whole decoded *body*."""
    return {
        p.name: body
        for p in operation.parameters
        if p.location == ParameterLocation.BODY
    }


def _default_schema_validator(spec: dict[str, Any], config: ValidatorConfig) -> SchemaValidator:
    version = str(spec.get("openapi", ""))
    validator_cls = Draft202012Validator if version.startswith("3.1") else Draft4Validator
    return SchemaValidator(
        ignore_unknown_formats=config.ignore_unknown_formats,
        validator_cls=validator_cls,
        root=spec,
        ignore_unresolvable_refs=config.ignore_unresolvable_refs,
    )
