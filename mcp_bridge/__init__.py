"""mcp-bridge: MCP servers as tools, prompts and resources of an AI chat."""

import os

from knack import CLI
from knack.commands import CLICommandsLoader

from mcp_bridge._help import helps  # noqa: F401

__version__ = "0.3.0"


class BridgeCommandsLoader(CLICommandsLoader):
    """Command loader for the mcp-bridge CLI."""

    def load_command_table(self, args):
        from mcp_bridge.commands import load_command_table

        load_command_table(self, args)
        return super().load_command_table(args)

    def load_arguments(self, command):
        from mcp_bridge._params import load_arguments

        load_arguments(self, command)
        super().load_arguments(command)


COMMAND_LOADER_CLS = BridgeCommandsLoader


def get_cli() -> CLI:
    """Build the knack CLI object."""
    return CLI(
        cli_name="mcp-bridge",
        config_dir=os.path.expanduser(os.path.join("~", ".mcp-bridge")),
        config_env_var_prefix="MCP_BRIDGE",
        commands_loader_cls=COMMAND_LOADER_CLS,
    )
