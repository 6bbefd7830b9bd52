"""Command table registration for mcp-bridge."""

from knack.commands import CommandGroup

_CUSTOM = "mcp_bridge.custom#{}"


def load_command_table(self, _):
    """Register all mcp-bridge commands."""

    with CommandGroup(self, "", _CUSTOM) as g:
        g.command("session", "bridge_session")

    with CommandGroup(self, "servers", _CUSTOM) as g:
        g.command("list", "bridge_servers_list")
        g.command("connect", "bridge_servers_connect")
        g.command("disconnect", "bridge_servers_disconnect")

    with CommandGroup(self, "prompts", _CUSTOM) as g:
        g.command("list", "bridge_prompts_list")
        g.command("send", "bridge_prompts_send")

    with CommandGroup(self, "resources", _CUSTOM) as g:
        g.command("list", "bridge_resources_list")
        g.command("read", "bridge_resources_read")

    with CommandGroup(self, "config", _CUSTOM) as g:
        g.command("init", "bridge_config_init")
        g.command("show", "bridge_config_show")
        g.command("get", "bridge_config_get")
        g.command("set", "bridge_config_set")
