"""Preview widget: live rendering of the text against the form state."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from switchtext.engine import MacroEngine
from switchtext.errors import ExpansionError


class PreviewPane(Static):
    """Shows the fully rendered text, or the expansion error in red.

    Rendered text is shown as a plain :class:`rich.text.Text` so that
    brackets in dialogue are never read as markup.
    """

    DEFAULT_CSS = """
    PreviewPane {
        height: 1fr;
        border: round $primary-darken-1;
        padding: 1;
        overflow-y: auto;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.rendered: str = ""
        self.error: str = ""

    def show(self, engine: MacroEngine, text: str) -> None:
        """Render *text* with *engine* and display the outcome."""
        try:
            self.rendered = engine.render(text)
            self.error = ""
        except ExpansionError as exc:
            self.rendered = ""
            self.error = f"{type(exc).__name__}: {exc}"
            self.update(Text(f"⚠ {self.error}", style="bold red"))
            return

        lines = self.rendered.splitlines()
        if len(lines) > 200:
            shown = Text("\n".join(lines[:200]))
            shown.append("\n… (truncated)", style="dim")
            self.update(shown)
        else:
            self.update(Text(self.rendered))
