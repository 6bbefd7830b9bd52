"""Tests for custom.py command handlers."""

from unittest.mock import MagicMock, patch

import pytest
import yaml
from knack.util import CLIError

from mcp_bridge.config import BridgeConfig
from mcp_bridge.custom import (
    _build_provider,
    _parse_key_values,
    bridge_config_get,
    bridge_config_init,
    bridge_config_set,
    bridge_config_show,
    bridge_prompts_list,
    bridge_prompts_send,
    bridge_resources_list,
    bridge_resources_read,
    bridge_servers_connect,
    bridge_servers_disconnect,
    bridge_servers_list,
    bridge_session,
)
from mcp_bridge.errors import ConfigurationError
from mcp_bridge.mcp.hub import HubSourceProvider


@pytest.fixture
def patched_provider(provider, two_servers):
    with patch("mcp_bridge.custom._build_provider", return_value=provider):
        yield provider


@pytest.fixture
def config_dir(tmp_path):
    return str(tmp_path)


class TestHelpers:
    def test_parse_key_values(self):
        assert _parse_key_values(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
        assert _parse_key_values(None) == {}

    def test_parse_key_values_rejects_bare(self):
        with pytest.raises(CLIError, match="key=value"):
            _parse_key_values(["oops"])

    def test_build_provider_defaults_to_hub(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        config.load()
        provider = _build_provider(config)
        try:
            assert isinstance(provider, HubSourceProvider)
            assert provider.base_url == "http://localhost:37373"
        finally:
            provider.close()

    def test_build_provider_from_relative_path(self, tmp_path):
        (tmp_path / "providers").mkdir()
        (tmp_path / "providers" / "local.py").write_text(
            "from mcp_bridge.mcp.hub import HubSourceProvider\n\n"
            "class LocalHub(HubSourceProvider):\n"
            "    name = 'local'\n"
        )
        (tmp_path / "mcp-bridge.yaml").write_text(
            "provider:\n  path: providers/local.py\n  settings:\n    url: http://other:1\n"
        )
        config = BridgeConfig(str(tmp_path))
        config.load()

        provider = _build_provider(config)
        try:
            assert provider.name == "local"
            assert provider.base_url == "http://other:1"
        finally:
            provider.close()

    def test_build_provider_bad_path(self, tmp_path):
        (tmp_path / "mcp-bridge.yaml").write_text("provider:\n  path: missing.py\n")
        config = BridgeConfig(str(tmp_path))
        config.load()
        with pytest.raises(ConfigurationError, match="not found"):
            _build_provider(config)


class TestServers:
    def test_list(self, patched_provider, config_dir):
        rows = bridge_servers_list(config_dir=config_dir)
        assert [r["name"] for r in rows] == ["A", "B"]
        assert patched_provider.closed

    def test_connect(self, patched_provider, config_dir):
        result = bridge_servers_connect(config_dir=config_dir)
        assert result["tools_added"] == 3
        assert result["started"] == ["A"]
        assert result["failed"] == []
        assert "Added 3 tools from 2 servers" in result["messages"]
        assert patched_provider.closed

    def test_connect_timeout(self, patched_provider, config_dir):
        patched_provider.defer_start = True
        with pytest.raises(CLIError, match="Timed out"):
            bridge_servers_connect(["A"], wait=0.01, config_dir=config_dir)
        assert patched_provider.closed

    def test_connect_no_servers(self, provider, config_dir):
        with patch("mcp_bridge.custom._build_provider", return_value=provider):
            with pytest.raises(ConfigurationError):
                bridge_servers_connect(config_dir=config_dir)
        assert provider.closed

    def test_disconnect_without_stop(self, patched_provider, config_dir):
        result = bridge_servers_disconnect(["B"], config_dir=config_dir)
        assert result["stopped"] == []
        assert patched_provider.stop_calls == []

    def test_disconnect_stop_named(self, patched_provider, config_dir):
        result = bridge_servers_disconnect(["B"], stop=True, config_dir=config_dir)
        assert result["stopped"] == ["B"]

    def test_disconnect_stop_all_active(self, patched_provider, config_dir):
        patched_provider.set_status("A", "connecting")
        result = bridge_servers_disconnect(stop=True, config_dir=config_dir)
        assert result["stopped"] == ["A", "B"]


class TestPromptsAndResources:
    def test_prompts_list(self, patched_provider, config_dir):
        assert bridge_prompts_list(config_dir=config_dir) == [
            {"server": "B", "name": "pb", "description": "pb prompt"},
        ]

    def test_prompts_send(self, patched_provider, config_dir):
        result = bridge_prompts_send("B", "pb", ["topic=mcp"], config_dir=config_dir)
        assert result["text"] == "Run pb"
        assert patched_provider.prompt_calls == [("B", "pb", {"topic": "mcp"})]

    def test_prompts_send_requires_args(self, config_dir):
        with pytest.raises(CLIError, match="--server and --name"):
            bridge_prompts_send(server="B", config_dir=config_dir)

    def test_prompts_send_disconnected(self, patched_provider, config_dir):
        with pytest.raises(CLIError, match="could not be sent"):
            bridge_prompts_send("A", "pa", config_dir=config_dir)

    def test_resources_list(self, patched_provider, config_dir):
        rows = bridge_resources_list(config_dir=config_dir)
        assert [r["uri"] for r in rows] == ["file:///b.txt"]

    def test_resources_read(self, patched_provider, config_dir):
        entry = bridge_resources_read("B", "file:///b.txt", config_dir=config_dir)
        assert entry["key"] == "mcp://B/file:///b.txt"
        assert entry["kind"] == "mcp_resource"
        assert entry["content"] == "content of file:///b.txt"

    def test_resources_read_unknown(self, patched_provider, config_dir):
        with pytest.raises(CLIError, match="could not be read"):
            bridge_resources_read("B", "file:///nope", config_dir=config_dir)


class TestSession:
    def test_session_closes_provider(self, patched_provider, config_dir):
        with patch("mcp_bridge.session.BridgeSession.run") as run:
            bridge_session(config_dir=config_dir)
        run.assert_called_once_with(auto_connect=False)
        assert patched_provider.closed

    def test_session_auto_connect_from_config(self, patched_provider, tmp_path):
        (tmp_path / "mcp-bridge.yaml").write_text("session:\n  auto_connect: true\n")
        with patch("mcp_bridge.session.BridgeSession.run") as run:
            bridge_session(config_dir=str(tmp_path))
        run.assert_called_once_with(auto_connect=True)


class TestConfigCommands:
    def test_init(self, tmp_path):
        result = bridge_config_init(config_dir=str(tmp_path))
        assert result["status"] == "created"
        with open(tmp_path / "mcp-bridge.yaml", encoding="utf-8") as f:
            assert yaml.safe_load(f)["hub"]["timeout"] == 10

    def test_init_refuses_overwrite(self, tmp_path):
        bridge_config_init(config_dir=str(tmp_path))
        with pytest.raises(CLIError, match="already exists"):
            bridge_config_init(config_dir=str(tmp_path))

    def test_show(self, tmp_path):
        assert bridge_config_show(config_dir=str(tmp_path))["tools"]["category_prefix"] == "mcp-"

    def test_get(self, tmp_path):
        assert bridge_config_get("hub.url", config_dir=str(tmp_path))["value"] == "http://localhost:37373"

    def test_get_missing(self, tmp_path):
        with pytest.raises(CLIError, match="not found"):
            bridge_config_get("hub.nope", config_dir=str(tmp_path))

    def test_set_parses_json(self, tmp_path):
        result = bridge_config_set("hub.timeout", "30", config_dir=str(tmp_path))
        assert result["value"] == 30

    def test_set_plain_string(self, tmp_path):
        result = bridge_config_set("hub.url", "http://hub:1", config_dir=str(tmp_path))
        assert result["value"] == "http://hub:1"

    def test_set_validates(self, tmp_path):
        with pytest.raises(CLIError):
            bridge_config_set("hub.timeout", "0", config_dir=str(tmp_path))

    def test_set_requires_value(self, tmp_path):
        with pytest.raises(CLIError, match="--value"):
            bridge_config_set("hub.url", None, config_dir=str(tmp_path))
