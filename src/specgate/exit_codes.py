"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgate.exceptions.SpecgateError` subclass.
CI scripts that run ``specgate check`` can inspect the exit code to tell a
rejected request apart from a broken spec without parsing stderr.

Example::

    $ specgate check openapi.yaml GET '/pets?limit=abc'
    $ echo $?
    8   # EXIT_VALIDATION_FAILURE -- the request was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI specification could not be loaded, parsed, or dereferenced."""

EXIT_VALIDATION_FAILURE = 8
"""The request did not match the specification (unknown route or bad parameters)."""
