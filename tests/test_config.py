"""Tests for mcp_bridge.config -- BridgeConfig and validation."""

import pytest
import yaml
from knack.util import CLIError

from mcp_bridge.config import DEFAULT_CONFIG, BridgeConfig


class TestDefaultConfig:
    """Verify DEFAULT_CONFIG structure."""

    def test_has_hub_section(self):
        assert DEFAULT_CONFIG["hub"]["url"] == "http://localhost:37373"
        assert DEFAULT_CONFIG["hub"]["timeout"] == 10

    def test_has_provider_section(self):
        assert DEFAULT_CONFIG["provider"]["path"] == ""
        assert DEFAULT_CONFIG["provider"]["settings"] == {}

    def test_has_tools_and_session_sections(self):
        assert DEFAULT_CONFIG["tools"]["category_prefix"] == "mcp-"
        assert DEFAULT_CONFIG["session"]["auto_connect"] is False


class TestBridgeConfig:
    """Test BridgeConfig load/save/get/set."""

    def test_missing_file_means_defaults(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        assert not config.exists()
        assert config.load() == DEFAULT_CONFIG

    def test_create_default(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        result = config.create_default({"hub": {"url": "http://hub:1"}})

        assert result["hub"]["url"] == "http://hub:1"
        assert result["hub"]["timeout"] == 10
        assert (tmp_path / "mcp-bridge.yaml").exists()

    def test_load_overlays_defaults(self, tmp_path):
        (tmp_path / "mcp-bridge.yaml").write_text("hub:\n  timeout: 30\ntools:\n  category_prefix: 'srv-'\n")
        config = BridgeConfig(str(tmp_path))
        config.load()

        assert config.get("hub.timeout") == 30
        assert config.get("hub.url") == "http://localhost:37373"
        assert config.get("tools.category_prefix") == "srv-"

    def test_load_invalid_yaml(self, tmp_path):
        (tmp_path / "mcp-bridge.yaml").write_text("hub: [unclosed\n")
        with pytest.raises(CLIError, match="Invalid YAML"):
            BridgeConfig(str(tmp_path)).load()

    def test_load_non_mapping(self, tmp_path):
        (tmp_path / "mcp-bridge.yaml").write_text("- just\n- a list\n")
        with pytest.raises(CLIError, match="mapping"):
            BridgeConfig(str(tmp_path)).load()

    def test_get_missing_returns_default(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        assert config.get("hub.nope") is None
        assert config.get("a.b.c", "fallback") == "fallback"

    def test_set_persists(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        config.set("hub.url", "https://hub.example.com")

        with open(tmp_path / "mcp-bridge.yaml", encoding="utf-8") as f:
            saved = yaml.safe_load(f)
        assert saved["hub"]["url"] == "https://hub.example.com"

    def test_set_creates_nested_sections(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        config.set("provider.settings.root", "/srv")
        assert config.get("provider.settings.root") == "/srv"

    def test_to_dict_is_a_copy(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        data = config.to_dict()
        data["hub"]["url"] = "changed"
        assert config.get("hub.url") == "http://localhost:37373"


class TestConfigValidation:
    @pytest.mark.parametrize("url", ["localhost:37373", "ftp://hub", "http://"])
    def test_invalid_hub_url(self, tmp_path, url):
        with pytest.raises(CLIError, match="Invalid hub URL"):
            BridgeConfig(str(tmp_path)).set("hub.url", url)

    @pytest.mark.parametrize("timeout", [0, -1, "soon", True])
    def test_invalid_timeout(self, tmp_path, timeout):
        with pytest.raises(CLIError, match="positive"):
            BridgeConfig(str(tmp_path)).set("hub.timeout", timeout)

    def test_valid_timeout(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        config.set("hub.timeout", 2.5)
        assert config.get("hub.timeout") == 2.5

    @pytest.mark.parametrize("prefix", ["", "   ", 5])
    def test_invalid_category_prefix(self, tmp_path, prefix):
        with pytest.raises(CLIError, match="category_prefix"):
            BridgeConfig(str(tmp_path)).set("tools.category_prefix", prefix)

    def test_provider_path_must_be_python(self, tmp_path):
        config = BridgeConfig(str(tmp_path))
        with pytest.raises(CLIError, match=".py"):
            config.set("provider.path", "provider.txt")
        config.set("provider.path", "")
        config.set("provider.path", "providers/local.py")
        assert config.get("provider.path") == "providers/local.py"
