"""``specgate check`` -- validate a single request offline.

Runs the same matching and parameter checks as the middleware against a
request described on the command line, prints the outcome, and exits with
:data:`~specgate.exit_codes.EXIT_VALIDATION_FAILURE` when the request would
be rejected.

Example::

    specgate check openapi.yaml GET '/pets?limit=5' -H 'X-Request-Id: 42'
    specgate check openapi.yaml GET '/pets/{petId}' -P petId=7

Paths are matched literally, so a templated route is checked by passing the
template itself and supplying its values with ``--path-param``.
"""

from __future__ import annotations

import json
from typing import Any, Optional
from urllib.parse import parse_qsl, urlsplit

import typer
from starlette.datastructures import Headers

from specgate.exceptions import InvalidUsageError, SpecgateError
from specgate.models import ParameterLocation


def check_command(
    spec: str = typer.Argument(..., help="Spec file path, URL, or '-' for stdin."),
    method: str = typer.Argument(..., help="HTTP method, e.g. GET."),
    url: str = typer.Argument(..., help="Request path, optionally with a query string."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    cookie: list[str] = typer.Option(
        [], "--cookie", "-c", help="Cookie as 'name=value'. Repeatable."
    ),
    path_param: list[str] = typer.Option(
        [], "--path-param", "-P", help="Path parameter as 'name=value'. Repeatable."
    ),
    form: list[str] = typer.Option(
        [], "--form", "-F", help="Form field as 'name=value'. Repeatable."
    ),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="JSON request body."),
    reject_missing: Optional[bool] = typer.Option(
        None,
        "--reject-missing/--allow-missing",
        help="Fail when a required parameter is absent.",
    ),
    reject_invalid: Optional[bool] = typer.Option(
        None,
        "--reject-invalid/--allow-invalid",
        help="Fail when a parameter is malformed or breaks its schema.",
    ),
) -> None:
    """Check one request against a spec document."""
    from specgate.config import resolve_config
    from specgate.middleware import RequestValidator, body_parameter_values
    from specgate.output import debug, error, get_output, success, warning
    from specgate.parser import load_spec, validate_spec_version

    try:
        config = resolve_config(reject_missing=reject_missing, reject_invalid=reject_invalid)
        raw = load_spec(spec)
        version = validate_spec_version(raw)
        debug(f"Loaded spec version {version} from {spec}")

        validator = RequestValidator.from_spec(raw, config=config)
        values = _request_values(url, header, cookie, form, path_param)
        operation = validator.operation_for(url, method)
        if operation is not None and body is not None:
            values[ParameterLocation.BODY.value] = body_parameter_values(
                operation, _parse_body(body)
            )

        result = validator.validate(url, method, values)
        report: dict[str, Any] = {
            "method": result.method.upper(),
            "url": result.requested_url,
            "matched": result.matched,
        }
        if result.outcome is not None:
            report.update(result.outcome.to_dict())
        get_output().format_response(report)

        if validator.rejection_for(result) is not None:
            result.raise_for_errors(validator.rejected_kinds)
    except SpecgateError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if result.outcome is not None and result.outcome.missing:
        names = ", ".join(name for name, _ in result.outcome.missing)
        warning(f"Required parameters not sent: {names}")
    success("Request conforms to the specification")


def _request_values(
    url: str,
    headers: list[str],
    cookies: list[str],
    form: list[str],
    path_params: list[str],
) -> dict[str, Any]:
    return {
        ParameterLocation.PATH.value: dict(
            _split_pair(p, "=", "--path-param") for p in path_params
        ),
        ParameterLocation.QUERY.value: dict(parse_qsl(urlsplit(url).query, keep_blank_values=True)),
        ParameterLocation.HEADER.value: Headers(
            headers=dict(_split_pair(h, ":", "--header") for h in headers)
        ),
        ParameterLocation.COOKIE.value: dict(_split_pair(c, "=", "--cookie") for c in cookies),
        ParameterLocation.FORM_DATA.value: dict(_split_pair(f, "=", "--form") for f in form),
    }


def _split_pair(raw: str, sep: str, option: str) -> tuple[str, str]:
    name, found, value = raw.partition(sep)
    if not found or not name.strip():
        raise InvalidUsageError(f"Invalid {option} value {raw!r}: expected 'name{sep}value'")
    return name.strip(), value.strip()


def _parse_body(body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--body is not valid JSON: {exc}") from exc
