"""End-to-end tests: models directory -> compiled commands -> HTTP requests.

Requests go through the real :class:`~systemlink_cli.client.NIService` with
an ``httpx.MockTransport``, so URL building, headers, body encoding, response
formatting and exit codes are exercised together.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from typer.testing import CliRunner

from conftest import TAGS_SWAGGER, make_document
from systemlink_cli import __version__
from systemlink_cli.app import create_app, load_models, main
from systemlink_cli.client import NIService
from systemlink_cli.exceptions import ConfigError
from systemlink_cli.models import ConfigFile, ProfileConfig
from systemlink_cli.parser import SwaggerParser


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class _Server:
    """MockTransport handler answering every request with one response."""

    def __init__(self, status_code: int = 200, **kwargs: Any) -> None:
        self.status_code = status_code
        self.kwargs = kwargs
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.kwargs)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _cli(server: _Server, config: ConfigFile = ConfigFile()):
    definitions = SwaggerParser().parse([make_document(TAGS_SWAGGER)])
    service = NIService(transport=httpx.MockTransport(server), retry_delay=0)
    return create_app(definitions, service, lambda: config)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:
    def test_get_with_path_and_query(self, runner: CliRunner) -> None:
        server = _Server(json={"path": "my.tag", "type": "DOUBLE"})

        result = runner.invoke(_cli(server), ["tags", "get-tag", "--path", "my.tag", "--take", "5"])

        assert result.exit_code == 0, result.output
        assert server.last.method == "GET"
        assert str(server.last.url) == "https://api.example.com/nitag/v1/tags/my.tag?take=5"
        assert result.output == '{\n\t"path": "my.tag",\n\t"type": "DOUBLE"\n}\n'

    def test_body_properties_sent_as_sorted_json(self, runner: CliRunner) -> None:
        server = _Server(status_code=201)

        result = runner.invoke(
            _cli(server),
            ["tags", "create-tag", "--type", "DOUBLE", "--path", "a.b", "--keywords", "x,y"],
        )

        assert result.exit_code == 0, result.output
        assert server.last.content == b'{"keywords":["x","y"],"path":"a.b","type":"DOUBLE"}'
        assert server.last.headers["content-type"] == "application/json"

    def test_file_upload(self, runner: CliRunner, tmp_path: Path) -> None:
        upload = tmp_path / "report.csv"
        upload.write_bytes(b"id,value\n1,2\n")
        server = _Server(text="stored")

        result = runner.invoke(_cli(server), ["tags", "upload", "--file", str(upload)])

        assert result.exit_code == 0, result.output
        assert b'filename="report.csv"' in server.last.content
        assert result.output == "stored\n"

    def test_missing_upload_file(self, runner: CliRunner, tmp_path: Path) -> None:
        server = _Server()
        result = runner.invoke(_cli(server), ["tags", "upload", "--file", str(tmp_path / "absent")])
        assert result.exit_code == 6
        assert "Error creating request" in result.output
        assert server.requests == []

    def test_api_key_from_profile(self, runner: CliRunner) -> None:
        server = _Server()
        config = ConfigFile(profiles=[ProfileConfig(name="default", api_key="k-123", url="http://localhost:9090")])

        runner.invoke(_cli(server, config), ["tags", "delete-tag", "--path", "a"])

        assert server.last.method == "DELETE"
        assert server.last.headers["x-ni-api-key"] == "k-123"
        assert str(server.last.url) == "http://localhost:9090/nitag/v1/tags/a"

    def test_basic_auth_from_environment(self, runner: CliRunner) -> None:
        server = _Server()
        runner.invoke(
            _cli(server),
            ["tags", "delete-tag", "--path", "a"],
            env={"NI_USERNAME": "admin", "NI_PASSWORD": "pw"},
        )
        assert server.last.headers["authorization"].startswith("Basic ")

    def test_verbose_dump(self, runner: CliRunner) -> None:
        server = _Server(json={"ok": True})

        result = runner.invoke(_cli(server), ["tags", "get-tag", "--path", "a", "--verbose"])

        assert result.exit_code == 0
        assert "GET /nitag/v1/tags/a HTTP/1.1" in result.output
        assert "x-request-id: " in result.output
        assert "HTTP/1.1 200 OK" in result.output


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_not_found(self, runner: CliRunner) -> None:
        server = _Server(404, json={"message": "Tag not found"})

        result = runner.invoke(_cli(server), ["tags", "get-tag", "--path", "missing"])

        assert result.exit_code == 4
        assert '"message": "Tag not found"' in result.output

    def test_server_error_retried(self, runner: CliRunner) -> None:
        server = _Server(503, text="unavailable")

        result = runner.invoke(_cli(server), ["tags", "get-tag", "--path", "a"])

        assert len(server.requests) == 3
        assert result.exit_code == 5
        assert "unavailable" in result.output

    def test_missing_arguments(self, runner: CliRunner) -> None:
        server = _Server()
        result = runner.invoke(_cli(server), ["tags", "create-tag"])
        assert result.exit_code == 2
        assert "Missing argument: --path" in result.output
        assert "Missing argument: --type" in result.output
        assert server.requests == []


# ---------------------------------------------------------------------------
# Application and entry point
# ---------------------------------------------------------------------------


class TestApplication:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(_cli(_Server()), ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"systemlink {__version__}"

    def test_root_help(self, runner: CliRunner) -> None:
        result = runner.invoke(_cli(_Server()), ["--help"])
        assert result.exit_code == 0
        assert "Command-Line Interface for NI SystemLink Services" in result.output
        assert "tags" in result.output


class TestLoadModels:
    def test_files_named_by_stem(self, tmp_path: Path) -> None:
        (tmp_path / "tags.json").write_text(json.dumps(TAGS_SWAGGER))
        (tmp_path / "alarms.json").write_text("{}")

        documents = load_models(tmp_path)

        assert [d.name for d in documents] == ["alarms", "tags"]
        assert json.loads(documents[1].content) == TAGS_SWAGGER

    def test_empty_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="No model files found. Make sure that the models folder contains json files"):
            load_models(tmp_path)

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="No model files found"):
            load_models(tmp_path / "models")


class TestMain:
    @pytest.fixture
    def models_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        path = tmp_path / "models"
        path.mkdir()
        monkeypatch.setenv("SYSTEMLINK_MODELS_DIR", str(path))
        return path

    def _run(self, monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
        monkeypatch.setattr(sys, "argv", ["systemlink", *args])
        with pytest.raises(SystemExit) as exc_info:
            main()
        return exc_info.value.code

    def test_no_models(self, models_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        assert self._run(monkeypatch, "--version") == 1
        assert "No model files found" in capsys.readouterr().err

    def test_version(self, models_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        (models_dir / "tags.json").write_text(json.dumps(TAGS_SWAGGER))
        assert self._run(monkeypatch, "--version") == 0
        assert capsys.readouterr().out.strip() == f"systemlink {__version__}"

    def test_invalid_model(self, models_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        (models_dir / "broken.json").write_text("{not json")
        assert self._run(monkeypatch, "--version") == 7
        assert "broken" in capsys.readouterr().err

    def test_crash_log(self, models_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        (models_dir / "tags.json").write_text(json.dumps(TAGS_SWAGGER))

        def explode(*args: Any) -> Callable[..., Any]:
            raise RuntimeError("boom")

        monkeypatch.setattr("systemlink_cli.app.create_app", explode)
        monkeypatch.setattr("systemlink_cli.app.get_data_dir", lambda: tmp_path / "data")

        assert self._run(monkeypatch, "--version") == 1
        assert "Unexpected error. Debug log:" in capsys.readouterr().err
        logs = list((tmp_path / "data" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
