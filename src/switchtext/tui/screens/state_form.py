"""State form: switches and variables the text reads, as editable widgets."""

from __future__ import annotations

import logging

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Static, Switch

from switchtext.scanner import TextMetadata
from switchtext.state import ContextKey, InMemoryStateProvider

logger = logging.getLogger(__name__)


class StateForm(Vertical):
    """One Switch per switch / self switch, one Input per variable."""

    DEFAULT_CSS = """
    StateForm {
        height: auto;
        padding: 1;
    }
    """

    def __init__(self, metadata: TextMetadata, provider: InMemoryStateProvider, **kwargs) -> None:
        super().__init__(**kwargs)
        self._metadata = metadata
        self._provider = provider
        self._switches: dict[int, Switch] = {}
        self._self_switches: dict[str, Switch] = {}
        self._variables: dict[int, Input] = {}

    def compose(self) -> ComposeResult:
        current = self._current()
        for switch_id in self._metadata.switches:
            yield Static(f"[bold]Switch {switch_id}[/bold]", classes="input-label", markup=True)
            widget = Switch(id=f"switch-{switch_id}", value=self._provider.get_flag(None, switch_id))
            self._switches[switch_id] = widget
            yield widget

        for slot in self._metadata.self_switches:
            yield Static(f"[bold]Self switch {slot}[/bold]", classes="input-label", markup=True)
            widget = Switch(id=f"self-{slot}", value=self._provider.get_flag(current, slot))
            self._self_switches[slot] = widget
            yield widget

        for var_id in self._metadata.variables:
            yield Static(f"[bold]Variable {var_id}[/bold]", classes="input-label", markup=True)
            widget = Input(
                id=f"var-{var_id}",
                value=str(self._provider.get_variable(None, var_id)),
                placeholder="0",
                type="integer",
            )
            self._variables[var_id] = widget
            yield widget

        if not (self._switches or self._self_switches or self._variables):
            yield Static("[dim italic]No switches or variables referenced.[/dim italic]", markup=True)

    def _current(self) -> ContextKey:
        return ContextKey(self._provider.current_container_id(), self._provider.current_context_id())

    def apply_to(self, provider: InMemoryStateProvider) -> None:
        """Write the current widget values into *provider*."""
        current = self._current()
        for switch_id, widget in self._switches.items():
            provider.set_flag(None, switch_id, widget.value)
        for slot, widget in self._self_switches.items():
            provider.set_flag(current, slot, widget.value)
        for var_id, widget in self._variables.items():
            try:
                value = int(widget.value or 0)
            except ValueError:
                logger.debug("Variable %s: ignoring non-integer %r", var_id, widget.value)
                continue
            provider.set_variable(None, var_id, value)
