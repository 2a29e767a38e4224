"""
Markdown rendering to the terminal.
"""

from typing import Optional

import structlog
from rich.console import Console
from rich.markdown import Markdown

from ..errors import RenderError

logger = structlog.get_logger(__name__)

CODE_THEME = 'monokai'


class MarkdownRenderer:
    """Renders markdown text, including highlighted code blocks, on a console."""

    def __init__(self, console: Optional[Console] = None, code_theme: str = CODE_THEME):
        self.console = console or Console()
        self.code_theme = code_theme

    def render(self, text: str) -> None:
        """
        Render markdown text.

        A closed output stream (the reader went away, e.g. ``| head``) ends
        rendering silently.

        Raises:
            RenderError: rendering failed for any other reason
        """
        try:
            self.console.print(Markdown(text, code_theme=self.code_theme))
        except BrokenPipeError:
            logger.debug('markdown_output_closed')
        except Exception as e:
            raise RenderError(f"Cannot render markdown to stdout: {e}") from e
