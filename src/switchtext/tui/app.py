"""SwitchText TUI: live preview of switchable text.

Launch with:
    switchtext dialogue.txt --ui
    switchtext dialogue.txt --ui --state state.yaml
"""

from __future__ import annotations

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.css.query import NoMatches
from textual.theme import Theme
from textual.widgets import Footer, Header, Static, TextArea

from switchtext.config import MacroConfig
from switchtext.engine import MacroEngine
from switchtext.scanner import scan_text
from switchtext.state import InMemoryStateProvider
from switchtext.tui.screens.state_form import StateForm
from switchtext.tui.widgets.preview import PreviewPane
from switchtext.tui.widgets.text_info import TextInfoPanel

SWITCHTEXT_TUI_THEME = Theme(
    name="switchtext-gold",
    primary="#FFD700",
    secondary="#FFA500",
    accent="#E6BE00",
    warning="#FFA500",
    error="#FF6B6B",
    success="#50C878",
    foreground="#F5F0E1",
    background="#1A1612",
    surface="#241E18",
    panel="#2E2720",
    dark=True,
)


class SwitchTextApp(App):
    """Edit text and game state side by side, with a rendered preview."""

    TITLE = "SwitchText Preview"

    CSS = """
    #left-panel {
        width: 40;
        border-right: solid $primary-darken-2;
    }
    #right-panel {
        width: 1fr;
    }
    #source {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=True),
        Binding("ctrl+l", "toggle_left_panel", "Toggle State", show=True),
    ]

    def __init__(
        self,
        text: str,
        provider: Optional[InMemoryStateProvider] = None,
        config: Optional[MacroConfig] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.register_theme(SWITCHTEXT_TUI_THEME)
        self.theme = "switchtext-gold"
        self._text = text
        self._config = config or MacroConfig()
        self._provider = provider if provider is not None else InMemoryStateProvider()
        self._engine = MacroEngine(self._provider, self._config)
        self._metadata = scan_text(text, self._config.escape_char)

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="main-container"):
            with Vertical(id="left-panel"):
                with ScrollableContainer(id="left-scroll"):
                    yield TextInfoPanel(self._metadata, id="text-info")
                    yield Static("[bold]State[/bold]", markup=True)
                    yield StateForm(self._metadata, self._provider, id="state-form")

            with Vertical(id="right-panel"):
                yield Static("[bold]Source[/bold]", markup=True)
                yield TextArea(self._text, id="source")
                yield Static("[bold]Preview[/bold]", markup=True)
                yield PreviewPane(id="preview-pane")

        yield Footer()

    def on_mount(self) -> None:
        self._refresh_preview()

    # ── Event handlers ────────────────────────────────────────────

    def on_input_changed(self, event) -> None:
        self._refresh_preview()

    def on_switch_changed(self, event) -> None:
        self._refresh_preview()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        self._text = event.text_area.text
        self._refresh_preview()

    # ── Actions ───────────────────────────────────────────────────

    def action_toggle_left_panel(self) -> None:
        """Show or hide the state panel (Ctrl+L)."""
        panel = self.query_one("#left-panel")
        panel.display = not panel.display

    def _refresh_preview(self) -> None:
        """Push form values into the provider and re-render."""
        try:
            form = self.query_one("#state-form", StateForm)
            preview = self.query_one("#preview-pane", PreviewPane)
        except NoMatches:
            return  # not mounted yet
        form.apply_to(self._provider)
        preview.show(self._engine, self._text)


def launch_tui(
    text: str,
    provider: Optional[InMemoryStateProvider] = None,
    config: Optional[MacroConfig] = None,
) -> None:
    """Entry point for --ui mode."""
    app = SwitchTextApp(text=text, provider=provider, config=config)
    app.run()
