"""Help text for mcp-bridge commands."""

from knack.help_files import helps

helps["session"] = """
type: command
short-summary: Start an interactive chat session with MCP commands.
long-summary: |
    Plain input is sent to the chat.  Slash commands manage MCP servers:
    /connect, /disconnect, /refresh, /prompts, /resources, /tools,
    /context, /status and /help.
examples:
    - name: Start a session and connect every configured server
      text: mcp-bridge session --connect
"""

helps["servers"] = """
type: group
short-summary: Inspect and manage MCP servers.
"""

helps["servers list"] = """
type: command
short-summary: List MCP servers with their status.
"""

helps["servers connect"] = """
type: command
short-summary: Start MCP servers and register their tools.
long-summary: |
    Servers that are not connected are started first.  The command waits
    for the start to finish, then reports how many tools were added and
    how many servers failed to start.
examples:
    - name: Connect two servers
      text: mcp-bridge servers connect --servers github filesystem
"""

helps["servers disconnect"] = """
type: command
short-summary: Remove the tools of MCP servers, optionally stopping them.
examples:
    - name: Stop every running server
      text: mcp-bridge servers disconnect --stop
"""

helps["prompts"] = """
type: group
short-summary: Use MCP prompts.
"""

helps["prompts list"] = """
type: command
short-summary: List prompts offered by connected MCP servers.
"""

helps["prompts send"] = """
type: command
short-summary: Render an MCP prompt and print its first message.
examples:
    - name: Render a prompt with arguments
      text: mcp-bridge prompts send --server github --name review --arguments pr=42
"""

helps["resources"] = """
type: group
short-summary: Use MCP resources.
"""

helps["resources list"] = """
type: command
short-summary: List resources offered by connected MCP servers.
"""

helps["resources read"] = """
type: command
short-summary: Read an MCP resource as a context entry.
"""

helps["config"] = """
type: group
short-summary: Manage mcp-bridge.yaml.
"""

helps["config init"] = """
type: command
short-summary: Write a default mcp-bridge.yaml.
"""

helps["config show"] = """
type: command
short-summary: Show the effective configuration.
"""

helps["config get"] = """
type: command
short-summary: Get one configuration value.
"""

helps["config set"] = """
type: command
short-summary: Set one configuration value.
examples:
    - name: Point at a hub on another port
      text: mcp-bridge config set --key hub.url --value http://localhost:4000
"""
