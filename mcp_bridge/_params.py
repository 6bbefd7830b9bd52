"""CLI parameter definitions for mcp-bridge."""

from knack.arguments import ArgumentsContext


def load_arguments(self, _):
    """Register CLI parameters for all commands."""

    # --- global: --config-dir on every command ---
    with ArgumentsContext(self, "") as c:
        c.argument(
            "config_dir",
            options_list=["--config-dir"],
            help="Directory containing mcp-bridge.yaml (default: current directory).",
        )

    # --- mcp-bridge session ---
    with ArgumentsContext(self, "session") as c:
        c.argument(
            "auto_connect",
            options_list=["--connect"],
            action="store_true",
            help="Connect every configured MCP server when the session starts.",
        )

    # --- mcp-bridge servers ---
    with ArgumentsContext(self, "servers") as c:
        c.argument(
            "servers",
            options_list=["--servers", "-s"],
            nargs="+",
            help="Space-separated MCP server names (default: all).",
        )

    with ArgumentsContext(self, "servers connect") as c:
        c.argument(
            "wait",
            type=float,
            help="Seconds to wait for servers to start.",
        )

    with ArgumentsContext(self, "servers disconnect") as c:
        c.argument(
            "stop",
            action="store_true",
            help="Also stop the MCP servers after removing their tools.",
        )

    # --- mcp-bridge prompts / resources ---
    with ArgumentsContext(self, "prompts send") as c:
        c.argument("server", options_list=["--server", "-s"], help="MCP server that owns the prompt.")
        c.argument("name", options_list=["--name", "-n"], help="Prompt name.")
        c.argument(
            "arguments",
            options_list=["--arguments", "-a"],
            nargs="+",
            help="Prompt arguments as key=value pairs.",
        )

    with ArgumentsContext(self, "resources read") as c:
        c.argument("server", options_list=["--server", "-s"], help="MCP server that owns the resource.")
        c.argument("uri", options_list=["--uri", "-u"], help="Resource URI.")

    # --- mcp-bridge config ---
    with ArgumentsContext(self, "config get") as c:
        c.argument("key", help="Dot-separated config key (e.g., hub.url).")

    with ArgumentsContext(self, "config set") as c:
        c.argument("key", help="Dot-separated config key (e.g., hub.url).")
        c.argument("value", help="Value to set.  JSON is parsed when possible.")
