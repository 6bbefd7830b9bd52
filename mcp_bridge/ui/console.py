"""Rich-based console utilities for styled CLI output.

Provides:
- Color scheme: dim gray for background, white for content, purple/green for callouts
- Bordered prompt for the interactive session (multi-line input)
- Numbered selection menus for servers, prompts and resources
"""

from __future__ import annotations

import re
import shutil
from typing import Callable

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style as PTStyle
from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

# -------------------------------------------------------------------- #
# Color scheme
# -------------------------------------------------------------------- #

THEME = Theme({
    # Background/secondary text
    "dim": "#888888",
    "muted": "#666666",

    "content": "bright_white",

    # Callouts and highlights
    "success": "bright_green",
    "error": "bright_red",
    "warning": "bright_yellow",
    "info": "bright_cyan",
    "accent": "bright_magenta",

    "prompt.border": "#555555",
    "prompt.instruction": "bright_cyan",
    "prompt.input": "bright_white",

    # Server / capability names
    "server": "bright_magenta bold",
    "capability": "bright_cyan",
    "uri": "bright_cyan",
})

# prompt_toolkit style for the input area
PT_STYLE = PTStyle.from_dict({
    "prompt": "#888888",
    "": "#ffffff",
    # noreverse prevents the default white-on-white toolbar inversion
    "bottom-toolbar": "noreverse #888888",
})


class Console:
    """Styled console output.

    Provides:
    - Colored output with semantic styles
    - Bordered panels for chat messages
    - Tables for server status
    """

    def __init__(self, rich_console: RichConsole | None = None):
        self._console = rich_console or RichConsole(theme=THEME, highlight=False)

    # ------------------------------------------------------------------ #
    # Basic output
    # ------------------------------------------------------------------ #

    def print(self, message: str = "", style: str | None = None, **kwargs):
        """Print a message with optional styling."""
        self._console.print(message, style=style, **kwargs)

    def print_dim(self, message: str):
        """Print dimmed/secondary text."""
        self._console.print(message, style="dim")

    def print_success(self, message: str):
        """Print a success message (green)."""
        self._console.print(f"[success]✓[/success] {escape(message)}")

    def print_error(self, message: str):
        """Print an error message (red)."""
        self._console.print(f"[error]✗[/error] {escape(message)}")

    def print_warning(self, message: str):
        """Print a warning message (yellow)."""
        self._console.print(f"[warning]![/warning] {escape(message)}")

    def print_info(self, message: str):
        """Print an info message (cyan)."""
        self._console.print(f"[info]→[/info] {escape(message)}")

    # ------------------------------------------------------------------ #
    # Structured output
    # ------------------------------------------------------------------ #

    def print_header(self, title: str):
        """Print a section header."""
        self._console.print()
        self._console.print(f"[accent bold]{escape(title)}[/accent bold]")

    def panel(
        self,
        content: str,
        title: str | None = None,
        border_style: str = "prompt.border",
        padding: tuple[int, int] = (0, 1),
    ):
        """Print content in a bordered panel."""
        self._console.print(Panel(
            escape(content),
            title=escape(title) if title else None,
            border_style=border_style,
            padding=padding,
        ))

    def print_table(self, columns: list[str], rows: list[list[str]], title: str | None = None):
        """Print a simple table; every cell is rendered as plain text."""
        table = Table(title=title, header_style="accent bold", border_style="prompt.border")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(escape(str(cell)) for cell in row))
        self._console.print(table)

    # ------------------------------------------------------------------ #
    # Raw console access
    # ------------------------------------------------------------------ #

    @property
    def raw(self) -> RichConsole:
        """Access the underlying Rich console for advanced usage."""
        return self._console


# -------------------------------------------------------------------- #
# Selection menus
# -------------------------------------------------------------------- #

_SPLIT_RE = re.compile(r"[,\s]+")

ALL_CHOICE = "ALL"


def parse_selection(answer: str, options: list[str], allow_all: bool = True) -> list[str]:
    """Turn an operator answer into a list of chosen options.

    Accepts 1-based numbers, exact option names, or ``ALL`` (any case),
    separated by commas or whitespace.  Unknown tokens are ignored.
    The result keeps option order and has no duplicates.
    """
    chosen: set[str] = set()
    for token in _SPLIT_RE.split(answer.strip()):
        if not token:
            continue
        if allow_all and token.upper() == ALL_CHOICE:
            return list(options)
        if token.isdigit():
            index = int(token) - 1
            if 0 <= index < len(options):
                chosen.add(options[index])
            continue
        if token in options:
            chosen.add(token)
    return [option for option in options if option in chosen]


class SelectionPrompt:
    """Numbered menus backed by a prompt_toolkit session.

    EOF and Ctrl-C are treated as "nothing selected".
    """

    def __init__(self, console: Console | None = None, session: PromptSession | None = None):
        self._console = console or Console()
        self._session = session

    def _ask(self, text: str) -> str:
        if self._session is None:
            self._session = PromptSession(style=PT_STYLE)
        try:
            return self._session.prompt(text).strip()
        except (EOFError, KeyboardInterrupt):
            self._console.print()
            return ""

    def ask(self, text: str, default: str = "") -> str:
        """Free-text question; empty answer returns *default*."""
        return self._ask(text) or default

    def choose_many(self, title: str, options: list[str], allow_all: bool = True) -> list[str]:
        """Let the operator pick any number of *options*."""
        if not options:
            return []
        self._print_options(title, options)
        if allow_all:
            self._console.print(f"  [accent]{ALL_CHOICE}[/accent]")
        answer = self._ask("Select (numbers or names, comma-separated): ")
        return parse_selection(answer, options, allow_all=allow_all)

    def choose_one(self, title: str, options: list[str]) -> int | None:
        """Let the operator pick one option.  Returns its index or None."""
        if not options:
            return None
        self._print_options(title, options)
        answer = self._ask("Select one: ")
        picked = parse_selection(answer, options, allow_all=False)
        if not picked:
            return None
        return options.index(picked[0])

    def confirm(self, message: str, default: bool = False) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        answer = self._ask(f"{message} {hint} ").lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def _print_options(self, title: str, options: list[str]) -> None:
        self._console.print_header(title)
        for number, option in enumerate(options, start=1):
            self._console.print(f"  [info]{number}.[/info] {escape(option)}")


# -------------------------------------------------------------------- #
# Session prompt
# -------------------------------------------------------------------- #


def _create_multiline_keybindings() -> KeyBindings:
    """Create key bindings for multi-line input.

    A backslash at the end of a line, or Escape then Enter, inserts a
    newline.  Enter alone submits.
    """
    kb = KeyBindings()

    @kb.add("enter")
    def handle_enter(event):
        """Submit on Enter, unless line ends with backslash."""
        buffer = event.app.current_buffer
        text = buffer.text

        if text.rstrip().endswith("\\"):
            stripped = text.rstrip()
            chars_to_delete = len(text) - len(stripped) + 1  # +1 for the backslash
            buffer.delete_before_cursor(count=chars_to_delete)
            buffer.insert_text("\n")
        else:
            buffer.validate_and_handle()

    @kb.add("escape", "enter")
    def insert_newline_escape(event):
        """Insert a newline without submitting."""
        event.app.current_buffer.insert_text("\n")

    return kb


class SessionPrompt:
    """Bordered input prompt for the chat session.

    Shows a full-width border, an instruction line, and a bottom toolbar
    with the quit hint and a caller-supplied status line.
    """

    INSTRUCTION = "Chat, or type /help for MCP commands."
    QUIT_HINT = "Type 'quit' to exit."

    def __init__(self, console: Console | None = None, session: PromptSession | None = None):
        self._console = console or Console()
        self._rc = self._console.raw
        self._session = session

    def _get_session(self) -> PromptSession:
        if self._session is None:
            self._session = PromptSession(
                key_bindings=_create_multiline_keybindings(),
                style=PT_STYLE,
                multiline=True,
                prompt_continuation=lambda width, line_num, wrap_count: "  ",
            )
        return self._session

    def prompt(
        self,
        prompt_text: str = "> ",
        instruction: str | None = None,
        status: Callable[[], str] | None = None,
    ) -> str | None:
        """Display a bordered prompt and read one input.

        Returns None on EOF / Ctrl-C so the caller can end the session.
        """
        instruction = instruction if instruction is not None else self.INSTRUCTION
        width = self._rc.size.width or 80

        self._rc.print(f"[prompt.border]{'─' * width}[/prompt.border]", highlight=False)
        if instruction:
            self._rc.print(f"[prompt.instruction]{escape(instruction)}[/prompt.instruction]", highlight=False)

        hint = self.QUIT_HINT

        def _toolbar():
            cols = shutil.get_terminal_size().columns
            line = hint
            if status is not None:
                line = f"{status()} · {hint}"
            return [
                ("#555555", "─" * cols),
                ("", "\n"),
                ("#888888", line),
            ]

        try:
            # Output from provider threads is printed above the input line
            with patch_stdout():
                user_input = self._get_session().prompt(prompt_text, bottom_toolbar=_toolbar)
        except (EOFError, KeyboardInterrupt):
            self._rc.print()
            return None

        return user_input.strip()


# -------------------------------------------------------------------- #
# Module-level singleton
# -------------------------------------------------------------------- #

console = Console()
