"""Terminal prompts used for prompt variables and confirmation actions."""

from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.text import Text

from .exceptions import PromptError


class InteractionProvider:
    """
    Interface for asking the user things.

    Implementations raise PromptError when the user cancels.
    """

    def text(self, message: str, sensitive: bool = False, multi_line: bool = False) -> str:
        raise NotImplementedError

    def select(self, message: str, options: List[str]) -> str:
        raise NotImplementedError

    def confirm(self, message: str, default: bool = False) -> bool:
        raise NotImplementedError


class TerminalInteraction(InteractionProvider):
    """Interaction provider backed by rich prompts on the controlling terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def text(self, message: str, sensitive: bool = False, multi_line: bool = False) -> str:
        try:
            if multi_line and not sensitive:
                return self._multi_line(message)
            return Prompt.ask(Text(message), console=self.console, password=sensitive)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptError("prompt cancelled") from e

    def _multi_line(self, message: str) -> str:
        """Reads lines until the first empty one."""
        self.console.print(Text.assemble(message, " ", ("(finish with an empty line)", "dim")))
        lines = []
        while True:
            line = self.console.input()
            if not line:
                break
            lines.append(line)
        return "\n".join(lines)

    def select(self, message: str, options: List[str]) -> str:
        if not options:
            raise PromptError("no options to select from")

        for number, option in enumerate(options, start=1):
            self.console.print(Text.assemble("  ", (str(number), "cyan"), ") ", option))

        choices = [str(number) for number in range(1, len(options) + 1)]
        try:
            choice = Prompt.ask(Text(message), console=self.console, choices=choices)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptError("prompt cancelled") from e

        return options[int(choice) - 1]

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(Text(message), console=self.console, default=default)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptError("prompt cancelled") from e
