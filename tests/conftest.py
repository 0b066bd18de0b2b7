"""Shared test fixtures for systemlink-cli.

Provides a small Swagger 2.0 model of a tag service, its compiled
definition, and helpers for building parameters and values. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from systemlink_cli.models import Definition, SpecDocument
from systemlink_cli.output import reset_output
from systemlink_cli.parser import SwaggerParser


TAGS_SWAGGER: dict[str, Any] = {
    "swagger": "2.0",
    "info": {"title": "Tags", "version": "1"},
    "host": "api.example.com",
    "schemes": ["https"],
    "basePath": "/nitag",
    "paths": {
        "/v1/tags/{path}": {
            "parameters": [
                {"name": "path", "in": "path", "required": True, "type": "string"},
            ],
            "get": {
                "operationId": "Tags.GetTag",
                "description": "Read a tag",
                "parameters": [
                    {"name": "take", "in": "query", "type": "integer"},
                ],
            },
            "delete": {
                "operationId": "Tags.DeleteTag",
                "summary": "Delete a tag",
            },
        },
        "/v1/tags": {
            "post": {
                "operationId": "Tags.CreateTag",
                "description": "Create a tag",
                "parameters": [
                    {
                        "name": "tag",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/Tag"},
                    },
                ],
            },
        },
        "/v1/upload": {
            "post": {
                "operationId": "Files.Upload",
                "parameters": [
                    {"name": "file", "in": "formData", "type": "file", "required": True},
                ],
            },
        },
    },
    "definitions": {
        "Tag": {
            "type": "object",
            "required": ["path", "type"],
            "properties": {
                "path": {"type": "string", "description": "Tag path"},
                "type": {"type": "string"},
                "keywords": {"type": "array", "items": {"type": "string"}},
                "properties": {"type": "object"},
            },
        },
    },
}


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches a reference to sys.stderr at creation time.
    When Typer's CliRunner redirects the stream and the test finishes, the
    cached reference becomes stale. Resetting forces a fresh manager.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``NI_*`` variables of the developer's shell out of the tests."""
    for name in (
        "NI_API_KEY",
        "NI_USERNAME",
        "NI_PASSWORD",
        "NI_VERBOSE",
        "NI_URL",
        "NI_PROFILE",
        "NI_INSECURE",
        "NI_SSH_PROXY",
        "NI_SSH_KEY",
        "NI_SSH_KNOWN_HOST",
        "SYSTEMLINK_CONFIG",
        "SYSTEMLINK_MODELS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tags_swagger() -> dict[str, Any]:
    """A fresh copy of the tag service model, safe to modify."""
    return copy.deepcopy(TAGS_SWAGGER)


def make_document(spec: dict[str, Any], name: str = "tags") -> SpecDocument:
    """Wrap a model dict into a :class:`SpecDocument` as JSON bytes."""
    return SpecDocument(name=name, content=json.dumps(spec).encode("utf-8"))


@pytest.fixture
def tags_definition(tags_swagger: dict[str, Any]) -> Definition:
    """The compiled tag service definition."""
    return SwaggerParser().parse([make_document(tags_swagger)])[0]
