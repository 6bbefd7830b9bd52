"""Interactive chat session with MCP slash commands.

Plain input goes to the chat surface.  Slash commands drive the
reconciler:

    /connect [names]      register tools from MCP servers
    /disconnect [names]   remove their tools (and optionally stop them)
    /refresh              re-read prompts and resources
    /prompts              pick a prompt and send it to the chat
    /resources            pick a resource and add it to context
    /tools                list registered tools
    /context [clear | remove KEY..]  list or edit context entries
    /clear                clear the chat transcript
    /status               per-server status
    /help                 this list
"""

from __future__ import annotations

import logging
import shlex
from typing import TYPE_CHECKING

from mcp_bridge.errors import ConfigurationError
from mcp_bridge.mcp.reconciler import RegistryReconciler

if TYPE_CHECKING:
    from mcp_bridge.ui.console import Console, SessionPrompt

logger = logging.getLogger(__name__)

_QUIT_WORDS = frozenset({"quit", "exit", "/quit", "/exit"})

_HELP_ROWS = [
    ["/connect [names]", "Register tools from MCP servers (starts them if needed)"],
    ["/disconnect [names]", "Remove tools of MCP servers, optionally stop them"],
    ["/refresh", "Re-read prompts and resources from connected servers"],
    ["/prompts", "Pick an MCP prompt and send it to the chat"],
    ["/resources", "Pick an MCP resource and add it to context"],
    ["/tools", "List registered MCP tools"],
    ["/context [clear | remove KEY..]", "List, clear or remove context entries"],
    ["/clear", "Clear the chat transcript"],
    ["/status", "Show MCP server status"],
    ["quit", "End the session"],
]


class BridgeSession:
    """Read-eval loop over a :class:`RegistryReconciler`."""

    def __init__(
        self,
        reconciler: RegistryReconciler,
        console: "Console",
        prompt: "SessionPrompt | None" = None,
        prompt_text: str = "> ",
    ):
        self.reconciler = reconciler
        self._console = console
        self._prompt = prompt
        self._prompt_text = prompt_text

    def run(self, auto_connect: bool = False) -> None:
        """Run until the operator quits or closes input."""
        if self._prompt is None:
            from mcp_bridge.ui.console import SessionPrompt
            self._prompt = SessionPrompt(self._console)

        self._console.print_header("mcp-bridge session")
        if auto_connect:
            self.handle("/connect")

        while True:
            line = self._prompt.prompt(self._prompt_text, status=self.status_line)
            if line is None or not self.handle(line):
                break
        self._console.print_dim("Session ended.")

    def status_line(self) -> str:
        tools = len(self.reconciler.registry)
        context = len(self.reconciler.context)
        return f"{tools} MCP tools · {context} context entries"

    def handle(self, line: str) -> bool:
        """Process one input line.  Returns False when the session should end."""
        line = line.strip()
        if not line:
            return True
        if line.lower() in _QUIT_WORDS:
            return False
        if not line.startswith("/"):
            self.reconciler.chat.send(line, role="user")
            return True

        try:
            parts = shlex.split(line)
        except ValueError as exc:
            self._console.print_error(f"Could not parse command: {exc}")
            return True
        command, args = parts[0].lower(), parts[1:]

        handler = getattr(self, f"_cmd_{command[1:]}", None)
        if handler is None:
            self._console.print_warning(f"Unknown command: {command}. Type /help for the list.")
            return True

        try:
            handler(args)
        except ConfigurationError as exc:
            self._console.print_error(str(exc))
        return True

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def _cmd_help(self, args: list[str]) -> None:
        self._console.print_table(["Command", "Description"], _HELP_ROWS, title="Commands")

    def _cmd_connect(self, args: list[str]) -> None:
        # Returns to the prompt at once; starting servers completes on the provider's thread.
        future = self.reconciler.connect(args or None, interactive=not args, on_complete=self._connect_done)
        if not future.done():
            self._console.print_dim("Connecting in the background; tools appear when the servers are up.")

    def _connect_done(self, summary) -> None:
        logger.info("Connect finished: %s", "; ".join(summary.messages) or "nothing to do")
        if summary.sources:
            self._console.print_dim(self.status_line())

    def _cmd_disconnect(self, args: list[str]) -> None:
        self.reconciler.disconnect(args or None, interactive=True)

    def _cmd_refresh(self, args: list[str]) -> None:
        refreshed = self.reconciler.refresh_prompts_and_resources(args or None)
        self._console.print_info(
            f"Refreshed prompts and resources from {len(refreshed)} servers"
            + (f": {', '.join(refreshed)}" if refreshed else "")
        )

    def _cmd_prompts(self, args: list[str]) -> None:
        self.reconciler.select_prompt()

    def _cmd_resources(self, args: list[str]) -> None:
        self.reconciler.select_resource()

    def _cmd_tools(self, args: list[str]) -> None:
        tools = self.reconciler.registry.list_tools()
        if not tools:
            self._console.print_dim("No MCP tools registered.")
            return
        rows = [[t.category.tag, t.name, t.tool.description] for t in tools]
        self._console.print_table(["Category", "Tool", "Description"], rows, title="MCP tools")

    def _cmd_clear(self, args: list[str]) -> None:
        self.reconciler.chat.clear()
        self._console.print_dim("Chat transcript cleared.")

    def _cmd_context(self, args: list[str]) -> None:
        context = self.reconciler.context
        if args[:1] == ["clear"]:
            context.clear()
            self._console.print_dim("Context cleared.")
            return
        if args[:1] == ["remove"]:
            for key in args[1:]:
                if context.remove(key):
                    self._console.print_success(f"Removed {key} from context")
                else:
                    self._console.print_warning(f"{key} is not in context.")
            return

        entries = context.entries()
        if not entries:
            self._console.print_dim("Context is empty.")
            return
        rows = [[e.key, e.kind, str(len(e.metadata.get("content", "")))] for e in entries]
        self._console.print_table(["Key", "Kind", "Chars"], rows, title="Context")

    def _cmd_status(self, args: list[str]) -> None:
        rows = [
            [r["name"], r["status"], str(r["tools"]), str(r["prompts"]), str(r["resources"])]
            for r in self.reconciler.status()
        ]
        if not rows:
            self._console.print_dim("No MCP servers found.")
            return
        self._console.print_table(
            ["Server", "Status", "Tools", "Prompts", "Resources"], rows, title="MCP servers"
        )
