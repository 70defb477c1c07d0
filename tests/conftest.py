"""Shared test fixtures for specgate.

Provides the fixture spec documents, ready-built validators, an isolated
config environment, and output/CLI helpers. These fixtures are discovered by
pytest automatically.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from specgate.middleware import RequestValidator
from specgate.output import OutputFormat, OutputManager, reset_output, set_output
from specgate.parser.resolver import dereference


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and package logger after every test.

    The manager caches sys.stdout/sys.stderr at creation time, and the
    CliRunner swaps those streams per invocation. The CLI callback also
    replaces the ``specgate`` logger's handlers and stops propagation,
    which would hide records from ``caplog`` in later tests.
    """
    yield
    reset_output()
    package_logger = logging.getLogger("specgate")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


# ---------------------------------------------------------------------------
# Raw spec fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw OpenAPI 3.0 petstore document (contains $ref pointers)."""
    with open(FIXTURES_DIR / "petstore_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def swagger2_raw() -> dict[str, Any]:
    """Raw Swagger 2.0 orders document."""
    with open(FIXTURES_DIR / "orders_swagger_2.0.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_paths(petstore_raw: dict[str, Any]) -> dict[str, Any]:
    """Dereferenced ``paths`` table of the petstore document."""
    return dereference(petstore_raw)["paths"]


@pytest.fixture
def petstore_validator(petstore_raw: dict[str, Any]) -> RequestValidator:
    return RequestValidator.from_spec(petstore_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty working directory with no SPECGATE_* variables set.

    Returns:
        The tmp_path root, where tests may write ``specgate.json``.
    """
    for var in [
        "SPECGATE_CONFIG",
        "SPECGATE_REJECT_INVALID",
        "SPECGATE_REJECT_MISSING",
        "SPECGATE_IGNORE_UNKNOWN_FORMATS",
        "SPECGATE_IGNORE_UNRESOLVABLE_REFS",
        "SPECGATE_STATE_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
