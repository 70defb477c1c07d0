"""Load spec documents from a URL, local file, or stdin.

Spec documents arrive as JSON or YAML. The loader detects the format from
the file extension or ``Content-Type`` header, falling back to trying JSON
and then YAML, and always returns a plain ``dict``.

The two public functions are:

* :func:`load_spec` -- Load and parse a spec from any supported source.
* :func:`validate_spec_version` -- Check that the document is Swagger 2.0 or
  OpenAPI 3.x and carries a ``paths`` table.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from specgate.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_spec(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load a spec document from URL, file path, or stdin (``-``).

    Args:
        source: An ``http(s)`` URL, a file path, or ``-`` for stdin.
        timeout: Network timeout in seconds for URL sources.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source, timeout)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return _parse_content(content)


def _load_from_url(url: str, timeout: float) -> dict[str, Any]:
    """Fetch a spec over HTTP, using ``Content-Type`` as a format hint."""
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    logger.info("Loaded specification from %s", url)
    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    logger.info("Loaded specification from %s", file_path)
    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless *hint* is ``"yaml"``; an explicit ``"json"``
    hint disables the YAML fallback.

    Raises:
        SpecParseError: If neither parser accepts the content, or the
            top-level value is not a mapping.
    """
    errors: list[str] = []

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise SpecParseError(
        "Failed to parse spec as JSON or YAML\n  " + "\n  ".join(errors)
    )


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def validate_spec_version(spec: dict[str, Any]) -> str:
    """Return the declared spec version after basic structural checks.

    Swagger ``2.0`` and OpenAPI ``3.x`` documents are accepted. Both must
    carry a ``paths`` mapping, which is all the validator reads.

    Args:
        spec: The parsed spec document.

    Returns:
        The version string, e.g. ``"2.0"`` or ``"3.0.3"``.

    Raises:
        SpecParseError: If the version is missing or unsupported, or
            ``paths`` is missing or not a mapping.
    """
    if "swagger" in spec:
        version = str(spec["swagger"])
        if version != "2.0":
            raise SpecParseError(
                f"Unsupported Swagger version: {version}. Only 2.0 is supported."
            )
    elif "openapi" in spec:
        version = str(spec["openapi"])
        if not version.startswith("3."):
            raise SpecParseError(
                f"Unsupported OpenAPI version: {version}. Only 3.x is supported."
            )
    else:
        raise SpecParseError(
            "Missing 'openapi' or 'swagger' field. Is this an API description?"
        )

    paths = spec.get("paths")
    if not isinstance(paths, dict):
        raise SpecParseError("Spec has no 'paths' object")

    return version
