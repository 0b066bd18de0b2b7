"""Tests for parsing SSH proxy specifications."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from systemlink_cli.ssh import SSHConfig


class TestFromProxy:
    def test_empty_means_no_tunnel(self) -> None:
        assert SSHConfig.from_proxy("") is None

    def test_host_only_uses_defaults(self) -> None:
        config = SSHConfig.from_proxy("10.0.0.5")
        assert config is not None
        assert (config.host_name, config.port, config.user_name) == ("10.0.0.5", 22, "ubuntu")

    def test_user_host_and_port(self) -> None:
        config = SSHConfig.from_proxy("admin@jump.example.com:2222", "/keys/id", "ssh-ed25519 AAAA")
        assert config is not None
        assert config.user_name == "admin"
        assert config.host_name == "jump.example.com"
        assert config.port == 2222
        assert config.key_file == "/keys/id"
        assert config.known_host == "ssh-ed25519 AAAA"

    def test_address(self) -> None:
        config = SSHConfig.from_proxy("10.0.0.5:2200")
        assert config is not None
        assert config.address == "10.0.0.5:2200"

    def test_bad_port(self) -> None:
        with pytest.raises(ValueError):
            SSHConfig.from_proxy("10.0.0.5:ssh")

    def test_missing_host(self) -> None:
        with pytest.raises(ValueError, match="missing host name"):
            SSHConfig.from_proxy("admin@:22")


class TestModel:
    def test_frozen(self) -> None:
        config = SSHConfig(host_name="h")
        with pytest.raises(ValidationError):
            config.port = 23  # type: ignore[misc]
