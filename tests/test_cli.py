"""End-to-end tests through the knack command table."""

import io
import json
from unittest.mock import patch

from mcp_bridge import get_cli
from mcp_bridge.__main__ import main


def _invoke(args):
    out = io.StringIO()
    code = get_cli().invoke(args, out_file=out)
    return code, out.getvalue()


class TestCli:
    def test_config_show(self, tmp_path):
        code, out = _invoke(["config", "show", "--config-dir", str(tmp_path)])
        assert code == 0
        assert json.loads(out)["hub"]["url"] == "http://localhost:37373"

    def test_config_set_then_get(self, tmp_path):
        code, _ = _invoke(["config", "set", "--key", "hub.timeout", "--value", "15", "--config-dir", str(tmp_path)])
        assert code == 0
        code, out = _invoke(["config", "get", "--key", "hub.timeout", "--config-dir", str(tmp_path)])
        assert json.loads(out)["value"] == 15

    def test_servers_connect(self, tmp_path, provider, two_servers):
        with patch("mcp_bridge.custom._build_provider", return_value=provider):
            code, out = _invoke(["servers", "connect", "--servers", "B", "--config-dir", str(tmp_path)])
        assert code == 0
        assert json.loads(out)["servers"] == ["B"]

    def test_prompts_send_arguments(self, tmp_path, provider, two_servers):
        with patch("mcp_bridge.custom._build_provider", return_value=provider):
            code, out = _invoke([
                "prompts", "send", "-s", "B", "-n", "pb", "-a", "topic=x", "depth=2",
                "--config-dir", str(tmp_path),
            ])
        assert code == 0
        assert json.loads(out)["text"] == "Run pb"
        assert provider.prompt_calls == [("B", "pb", {"topic": "x", "depth": "2"})]

    def test_error_exit_code(self, tmp_path):
        code, _ = _invoke(["config", "get", "--key", "hub.nope", "--config-dir", str(tmp_path)])
        assert code != 0

    def test_main_entry_point(self, tmp_path):
        assert main(["config", "show", "--config-dir", str(tmp_path)]) == 0
