"""Interactive prompt abstraction for the sign-in flow.

The sign-in state machine never touches ``sys.stdin`` directly; it talks
to a :class:`TerminalIO`. :class:`ConsoleIO` is the real implementation
(Rich console on stderr, hidden password input). Tests substitute a
scripted implementation to drive the flow deterministically.

``None`` from :meth:`TerminalIO.ask` or :meth:`TerminalIO.ask_secret`
means the input stream is exhausted.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console

from gemkey.output import _should_disable_color


class TerminalIO(ABC):
    """Bidirectional text I/O used for interactive prompts."""

    @abstractmethod
    def say(self, message: str) -> None:
        """Write a line of text to the user."""
        ...

    @abstractmethod
    def ask(self, prompt: str) -> Optional[str]:
        """Show *prompt* and read one line, or ``None`` at end of input."""
        ...

    @abstractmethod
    def ask_secret(self, prompt: str) -> Optional[str]:
        """Like :meth:`ask`, but the typed text is not echoed."""
        ...


class ConsoleIO(TerminalIO):
    """:class:`TerminalIO` on a Rich console attached to stderr.

    Prompts go to stderr so stdout stays clean for data, matching the rest
    of the CLI's output discipline.

    Args:
        no_color: Disable colour and markup in prompts.
    """

    def __init__(self, no_color: bool = False) -> None:
        self._console = Console(
            file=sys.stderr,
            stderr=True,
            no_color=no_color or _should_disable_color(),
            highlight=False,
        )

    def say(self, message: str) -> None:
        self._console.print(message, markup=False, soft_wrap=True)

    def ask(self, prompt: str) -> Optional[str]:
        try:
            return self._console.input(prompt, markup=False).strip()
        except EOFError:
            return None

    def ask_secret(self, prompt: str) -> Optional[str]:
        # Piped input (scripts, CI) cannot be hidden; read it as a plain line.
        if not sys.stdin.isatty():
            self._console.print(prompt, end="", markup=False)
            line = sys.stdin.readline()
            if not line:
                return None
            return line.rstrip("\r\n")
        try:
            return self._console.input(prompt, markup=False, password=True)
        except EOFError:
            return None
