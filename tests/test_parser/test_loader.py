"""Tests for specgate.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specgate.exceptions import SpecParseError
from specgate.parser.loader import (
    _load_from_file,
    _load_from_stdin,
    _load_from_url,
    _parse_content,
    load_spec,
    validate_spec_version,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_spec dispatch
# ---------------------------------------------------------------------------


class TestLoadSpec:
    """load_spec routes each source kind to the right loader."""

    def test_loads_from_file_json(self) -> None:
        result = load_spec(str(FIXTURES_DIR / "petstore_3.0.json"))
        assert result["openapi"] == "3.0.3"
        assert "/pets" in result["paths"]

    def test_loads_from_file_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "spec.yaml"
        yaml_file.write_text(
            textwrap.dedent("""\
                swagger: "2.0"
                info:
                  title: YAML Test
                  version: "1.0.0"
                paths:
                  /pets:
                    get:
                      parameters:
                        - name: limit
                          in: query
                          required: true
                          type: integer
            """),
            encoding="utf-8",
        )
        result = load_spec(str(yaml_file))
        assert result["swagger"] == "2.0"
        assert result["paths"]["/pets"]["get"]["parameters"][0]["name"] == "limit"

    def test_loads_from_stdin(self) -> None:
        spec_json = json.dumps({"openapi": "3.0.3", "paths": {}})
        with patch("specgate.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(spec_json)
            result = load_spec("-")
        assert result == {"openapi": "3.0.3", "paths": {}}

    def test_loads_from_url(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            json={"openapi": "3.0.3", "paths": {"/ping": {}}},
            request=httpx.Request("GET", "https://example.com/spec.json"),
        )
        with patch("specgate.parser.loader.httpx.get", return_value=mock_response) as get:
            result = load_spec("https://example.com/spec.json", timeout=5.0)
        assert "/ping" in result["paths"]
        assert get.call_args.kwargs["timeout"] == 5.0


# ---------------------------------------------------------------------------
# Individual loaders
# ---------------------------------------------------------------------------


class TestLoadFromFile:
    def test_file_not_found_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            _load_from_file("/nonexistent/path/to/spec.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            _load_from_file(str(empty))

    def test_invalid_json_file_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{invalid json", encoding="utf-8")
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            _load_from_file(str(bad))

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: Path) -> None:
        spec = tmp_path / "spec.txt"
        spec.write_text("openapi: '3.0.0'\npaths: {}\n", encoding="utf-8")
        assert _load_from_file(str(spec))["openapi"] == "3.0.0"


class TestLoadFromStdin:
    def test_empty_stdin_raises(self) -> None:
        with patch("specgate.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   \n")
            with pytest.raises(SpecParseError, match="No input"):
                _load_from_stdin()


class TestLoadFromUrl:
    def test_yaml_content_type(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            text="openapi: '3.0.0'\npaths: {}\n",
            headers={"content-type": "application/x-yaml"},
            request=httpx.Request("GET", "https://example.com/spec.yaml"),
        )
        with patch("specgate.parser.loader.httpx.get", return_value=mock_response):
            result = _load_from_url("https://example.com/spec.yaml", 30.0)
        assert result["openapi"] == "3.0.0"

    def test_http_error_raises(self) -> None:
        mock_response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("specgate.parser.loader.httpx.get", return_value=mock_response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                _load_from_url("https://example.com/missing.json", 30.0)

    def test_connection_error_raises(self) -> None:
        with patch(
            "specgate.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                _load_from_url("https://unreachable.example.com/spec.json", 30.0)


class TestParseContent:
    def test_parses_yaml(self) -> None:
        assert _parse_content("key: value\nnested:\n  a: 1") == {
            "key": "value",
            "nested": {"a": 1},
        }

    def test_json_hint_forces_json_only(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            _parse_content("key: value", hint="json")

    def test_invalid_content_reports_both_parsers(self) -> None:
        with pytest.raises(SpecParseError, match="JSON error") as excinfo:
            _parse_content("}{not valid at all][")
        assert "YAML error" in str(excinfo.value)

    def test_non_dict_content_raises(self) -> None:
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            _parse_content("[1, 2, 3]")

    def test_null_yaml_raises(self) -> None:
        with pytest.raises(SpecParseError, match="empty document"):
            _parse_content("---\n", hint="yaml")


# ---------------------------------------------------------------------------
# validate_spec_version
# ---------------------------------------------------------------------------


class TestValidateSpecVersion:
    def test_accepts_openapi_3_0(self) -> None:
        assert validate_spec_version({"openapi": "3.0.3", "paths": {}}) == "3.0.3"

    def test_accepts_openapi_3_1(self) -> None:
        assert validate_spec_version({"openapi": "3.1.0", "paths": {}}) == "3.1.0"

    def test_accepts_swagger_2_0(self) -> None:
        assert validate_spec_version({"swagger": "2.0", "paths": {}}) == "2.0"

    def test_rejects_swagger_1_2(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported Swagger version"):
            validate_spec_version({"swagger": "1.2", "paths": {}})

    def test_rejects_openapi_4(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported OpenAPI version"):
            validate_spec_version({"openapi": "4.0.0", "paths": {}})

    def test_rejects_missing_version(self) -> None:
        with pytest.raises(SpecParseError, match="Missing 'openapi' or 'swagger'"):
            validate_spec_version({"paths": {}})

    def test_rejects_missing_paths(self) -> None:
        with pytest.raises(SpecParseError, match="no 'paths'"):
            validate_spec_version({"openapi": "3.0.0"})
