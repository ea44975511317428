"""Text info widget: summary of what the loaded text depends on."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import Static

from switchtext.scanner import TextMetadata


class TextInfoPanel(Static):
    """Displays scanner metadata: directives, referenced state, problems."""

    DEFAULT_CSS = """
    TextInfoPanel {
        height: auto;
        padding: 1;
        border: round $primary-darken-1;
        margin-bottom: 1;
    }
    """

    def __init__(self, metadata: TextMetadata, **kwargs) -> None:
        super().__init__("", markup=True, **kwargs)
        self._metadata = metadata

    def on_mount(self) -> None:
        m = self._metadata
        lines: list[str] = []

        lines.append(f"🔀 Directives: [bold]{m.directive_count}[/bold]")
        if m.opcodes:
            counts = ", ".join(f"{k}×{v}" for k, v in sorted(m.opcodes.items()))
            lines.append(f"[dim]{counts}[/dim]")

        if m.self_references:
            lines.append(f"🔗 Cross-context: {escape(', '.join(m.self_references))}")

        if m.party_conditions:
            lines.append(f"👥 Party: {escape(', '.join(m.party_conditions))}")

        if m.grammar_codes:
            lines.append(f"✏️  Grammar: {', '.join(m.grammar_codes)}")

        if m.brace_escapes:
            lines.append(f"{{}} Brace escapes: {m.brace_escapes}")

        for problem in m.problems:
            lines.append(f"[bold red]⚠ {escape(problem)}[/bold red]")

        self.update("\n".join(lines))
