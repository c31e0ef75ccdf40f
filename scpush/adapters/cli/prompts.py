"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Prompt
from rich.panel import Panel

from ...core.interfaces import PromptProvider
from ...core.logging import get_stdout_console


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if password:
            return Prompt.ask(f"🔑 {message}", password=True, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)

    def panel(self, content: str, title: str = "", border_style: str = "cyan") -> None:
        """Display content in a panel"""
        self.console.print(Panel(content, title=title, border_style=border_style))
