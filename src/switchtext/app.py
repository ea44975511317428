"""SwitchText: CLI entry point.

Renders text containing switchable directives against a game-state file.

Usage:
    switchtext dialogue.txt --state state.yaml               # render to stdout
    switchtext --text '\\ON[21]{evening}{day}' --switch 21=on
    switchtext dialogue.txt --state s.yaml --format json      # JSON result
    switchtext choices.txt --state s.yaml --choices           # one choice per line
    switchtext dialogue.txt --scan                            # list referenced state
    switchtext dialogue.txt --state s.yaml --ui               # live preview TUI
    cat dialogue.txt | switchtext --stdin --state s.json
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.markup import escape

from switchtext.config import MacroConfig, load_config, print_env
from switchtext.engine import MacroEngine
from switchtext.errors import ExpansionError
from switchtext.printer import CliPrinter, configure_logging
from switchtext.state import ContextKey, InMemoryStateProvider

logger = logging.getLogger(__name__)

_TRUE_WORDS = ("on", "true", "yes", "1")
_FALSE_WORDS = ("off", "false", "no", "0")


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="switchtext",
        description="Expand switchable text directives against game state.",
    )

    # Input
    parser.add_argument(
        "text_file",
        nargs="?",
        help="Path to a text file containing directives",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the text from stdin",
    )
    parser.add_argument(
        "--text",
        help="Expand this text instead of reading a file",
    )

    # State
    parser.add_argument(
        "--state",
        type=Path,
        help="Path to a YAML or JSON game-state file",
    )
    parser.add_argument(
        "--switch",
        action="append",
        metavar="ID=on|off",
        help="Set a global switch (repeatable). Example: --switch 21=on",
    )
    parser.add_argument(
        "--variable",
        action="append",
        metavar="ID=N",
        help="Set a global variable (repeatable). Example: --variable 5=3",
    )
    parser.add_argument(
        "--self-switch",
        action="append",
        metavar="SLOT=on|off",
        help="Set a self switch of the current context (repeatable). Example: --self-switch A=on",
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write output to a file instead of stdout",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        dest="format",
        help="Output format: text (default) or json",
    )

    # Mode
    parser.add_argument(
        "--no-grammar",
        action="store_true",
        help="Resolve directives only; skip the grammar post-processor",
    )
    parser.add_argument(
        "--check-empty",
        action="store_true",
        help="Print whether the text is empty after expansion",
    )
    parser.add_argument(
        "--choices",
        action="store_true",
        help="Treat each input line as a dialogue choice and drop the empty ones",
    )
    parser.add_argument(
        "--scan",
        action="store_true",
        help="Output the state referenced by the text as JSON, without evaluating it",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging and timing",
    )

    # Config
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a .yaml or .json config file",
    )
    parser.add_argument(
        "--env",
        action="store_true",
        help="Print resolved configuration, then exit",
    )

    # TUI
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch the live preview TUI (requires switchtext[ui])",
    )

    return parser


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _split_assignment(printer: CliPrinter, flag: str, item: str) -> Optional[tuple]:
    if "=" not in item:
        printer.warning(f"Ignoring malformed {flag} '{escape(item)}' (expected KEY=VALUE)")
        return None
    key, _, value = item.partition("=")
    return key.strip(), value.strip()


def _parse_flag_value(printer: CliPrinter, flag: str, item: str, value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    printer.warning(f"Ignoring malformed {flag} '{escape(item)}' (expected on/off)")
    return None


def _apply_overrides(
    printer: CliPrinter,
    args: argparse.Namespace,
    provider: InMemoryStateProvider,
) -> None:
    """Merge --switch / --variable / --self-switch flags into *provider*."""
    for item in args.switch or []:
        parsed = _split_assignment(printer, "--switch", item)
        if parsed is None:
            continue
        if not parsed[0].isdigit():
            printer.warning(f"Ignoring malformed --switch '{escape(item)}' (ID must be a number)")
            continue
        value = _parse_flag_value(printer, "--switch", item, parsed[1])
        if value is not None:
            provider.set_flag(None, int(parsed[0]), value)

    for item in args.variable or []:
        parsed = _split_assignment(printer, "--variable", item)
        if parsed is None:
            continue
        try:
            provider.set_variable(None, int(parsed[0]), int(parsed[1]))
        except ValueError:
            printer.warning(f"Ignoring malformed --variable '{escape(item)}' (expected ID=N)")

    current = ContextKey(provider.current_container_id(), provider.current_context_id())
    for item in args.self_switch or []:
        parsed = _split_assignment(printer, "--self-switch", item)
        if parsed is None:
            continue
        value = _parse_flag_value(printer, "--self-switch", item, parsed[1])
        if value is not None:
            provider.set_flag(current, parsed[0], value)


def _file_errors() -> tuple:
    """Exceptions that mean a state or config file could not be read."""
    import yaml

    return (ValueError, KeyError, TypeError, OSError, yaml.YAMLError)


def _load_state(printer: CliPrinter, args: argparse.Namespace) -> Optional[InMemoryStateProvider]:
    if args.state is None:
        provider = InMemoryStateProvider()
    elif not args.state.is_file():
        printer.error(f"State file [bright_cyan]'{args.state}'[/] not found.")
        return None
    else:
        try:
            provider = InMemoryStateProvider.from_file(args.state)
        except _file_errors() as exc:
            printer.error(f"Invalid state file [bright_cyan]'{args.state}'[/]: {escape(str(exc))}")
            return None
    _apply_overrides(printer, args, provider)
    return provider


def _read_text(args: argparse.Namespace) -> Optional[str]:
    if args.text is not None:
        return args.text
    if args.stdin:
        return sys.stdin.read()
    if args.text_file:
        return Path(args.text_file).read_text(encoding="utf-8")
    return None


def _describe_source(args: argparse.Namespace) -> str:
    if args.text is not None:
        return "--text"
    if args.stdin:
        return "stdin"
    return str(args.text_file)


def _emit(printer: CliPrinter, args: argparse.Namespace, text: str, data: Dict[str, Any]) -> None:
    """Write the primary output to --output or stdout."""
    output = json.dumps(data, indent=2, ensure_ascii=False) if args.format == "json" else text
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        printer.file_written(args.output)
    else:
        print(output)


# ------------------------------------------------------------------
# Modes
# ------------------------------------------------------------------

def run_scan(printer: CliPrinter, text: str, config: MacroConfig, args: argparse.Namespace) -> int:
    from switchtext.scanner import scan_text

    meta = scan_text(text, config.escape_char)
    data = dataclasses.asdict(meta)
    _emit(printer, args, json.dumps(data, indent=2, ensure_ascii=False), data)
    return 0


def run_choices(printer: CliPrinter, engine: MacroEngine, text: str, args: argparse.Namespace) -> int:
    lines: List[str] = text.splitlines()
    result = engine.filter_choices(lines)
    rendered = [engine.render(choice) for choice in result.choices]
    data = {
        "choices": rendered,
        "branch_indices": result.branch_indices,
        "hidden": len(lines) - len(result.choices),
    }
    _emit(printer, args, "\n".join(rendered), data)
    return 0


def run_render(printer: CliPrinter, engine: MacroEngine, text: str, args: argparse.Namespace) -> int:
    t0 = time.perf_counter()
    if args.check_empty:
        empty = engine.is_empty_after_expansion(text)
        _emit(printer, args, "true" if empty else "false", {"empty": empty})
    else:
        output = engine.render(text)
        _emit(printer, args, output, {"input": text, "output": output})
    if args.verbose:
        printer.stats({"Input": f"{len(text):,} chars"}, elapsed=time.perf_counter() - t0)
    return 0


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

def cli(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the switchtext command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    printer = CliPrinter("SwitchText", icon="🔀", verbose=args.verbose)
    configure_logging(args.verbose)

    if args.config is not None and not args.config.is_file():
        printer.error(f"Config file [bright_cyan]'{args.config}'[/] not found.")
        sys.exit(1)
    try:
        config = load_config(project_dir=Path.cwd(), config_path=args.config)
    except _file_errors() as exc:
        printer.error(f"Invalid config: {escape(str(exc))}")
        sys.exit(1)
    if args.no_grammar:
        config.grammar = False

    # --env: print environment and exit
    if args.env:
        printer.console.print(print_env(config), markup=False)
        sys.exit(0)

    if args.text_file and args.text is None and not args.stdin:
        if not Path(args.text_file).is_file():
            printer.error(f"Text file [bright_cyan]'{args.text_file}'[/] not found.")
            sys.exit(1)

    text = _read_text(args)
    if text is None:
        parser.print_help()
        sys.exit(1)

    # --scan never needs state
    if args.scan:
        sys.exit(run_scan(printer, text, config, args))

    if args.verbose:
        printer.header({
            "Source": escape(_describe_source(args)),
            "State": escape(str(args.state or "(empty)")),
            "Escape char": escape(repr(config.escape_char)),
            "Grammar": "on" if config.grammar else "off",
        })

    printer.status("Loading state…")
    provider = _load_state(printer, args)
    if provider is None:
        sys.exit(1)

    if args.ui:
        try:
            from switchtext.tui.app import launch_tui
        except ImportError:
            printer.error(
                "Textual is required for --ui mode. "
                "Install with: [bright_cyan]pip install switchtext\\[ui][/]"
            )
            sys.exit(1)
        launch_tui(text=text, provider=provider, config=config)
        sys.exit(0)

    engine = MacroEngine(provider, config)
    try:
        if args.choices:
            exit_code = run_choices(printer, engine, text, args)
        else:
            exit_code = run_render(printer, engine, text, args)
    except ExpansionError as exc:
        logger.debug("Expansion failed", exc_info=True)
        printer.error(f"{type(exc).__name__}: {escape(str(exc))}")
        exit_code = 2

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
