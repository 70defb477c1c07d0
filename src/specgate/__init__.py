"""specgate -- Validate HTTP requests against OpenAPI / Swagger specs.

This package checks every incoming request against the paths, methods, and
required parameters declared in an OpenAPI specification document before the
request reaches the application. It ships as a Starlette middleware, a
framework-agnostic validator core, and a small developer CLI.

Typical usage::

    from specgate import RequestValidator, SpecValidationMiddleware, load_spec

    validator = RequestValidator.from_spec(load_spec("openapi.yaml"))
    app.add_middleware(SpecValidationMiddleware, validator=validator)

Modules:
    middleware: Validator factory and the Starlette middleware.
    matching: Exact path/method lookup in the spec's path table.
    checker: Required-parameter presence and schema checks.
    schema_validator: Injected JSON Schema validation service.
    models: Pydantic models shared across the package.
    config: Validator configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from specgate.middleware import (  # noqa: E402
    RequestValidator,
    SpecValidationMiddleware,
)
from specgate.parser import load_spec  # noqa: E402

__all__ = [
    "RequestValidator",
    "SpecValidationMiddleware",
    "load_spec",
    "__version__",
]
