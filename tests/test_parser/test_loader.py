"""Tests for document decoding and version validation."""

from __future__ import annotations

import pytest

from systemlink_cli.parser.loader import load_document, validate_swagger_version


class TestLoadDocument:
    def test_json(self) -> None:
        doc = load_document(b'{"swagger": "2.0", "paths": {}}')
        assert doc == {"swagger": "2.0", "paths": {}}

    def test_yaml(self) -> None:
        doc = load_document(b"swagger: '2.0'\nhost: localhost\n")
        assert doc == {"swagger": "2.0", "host": "localhost"}

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="Invalid YAML/JSON"):
            load_document(b"key: [unclosed")

    def test_not_utf8(self) -> None:
        with pytest.raises(ValueError, match="UTF-8"):
            load_document(b"\xff\xfe\x00")

    def test_empty_document(self) -> None:
        with pytest.raises(ValueError, match="empty document"):
            load_document(b"")

    def test_top_level_list(self) -> None:
        with pytest.raises(ValueError, match="got list"):
            load_document(b"[1, 2]")


class TestValidateSwaggerVersion:
    def test_swagger_2(self) -> None:
        assert validate_swagger_version({"swagger": "2.0"}) == "2.0"

    def test_missing_version_is_accepted(self) -> None:
        assert validate_swagger_version({"paths": {}}) == "2.0"

    def test_openapi_3_rejected(self) -> None:
        with pytest.raises(ValueError, match="OpenAPI 3.0.0 is not supported"):
            validate_swagger_version({"openapi": "3.0.0"})

    def test_other_swagger_version_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported Swagger version: 1.2"):
            validate_swagger_version({"swagger": "1.2"})
