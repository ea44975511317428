"""Directive scanning and fixed-point expansion.

A directive looks like::

    \\ON[21]{evening}{day}

An opcode, a bracketed condition, a braced true branch and an optional
braced false branch.  Branches may not contain raw braces, so a directive
whose branch still holds an unresolved inner directive cannot match.
Each pass therefore resolves only the innermost directives, and repeated
passes work outward until nothing matches.

Literal braces are written ``\\BO`` and ``\\BC`` and decoded only after the
last pass.  The braces of ``\\UP{...}``/``\\LOW{...}`` case spans are swapped
for private-use sentinels while directives are expanded, so a branch may
hold a case span; they are restored before returning.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple

from switchtext.conditions import ConditionEvaluator, Opcode, parse_condition
from switchtext.errors import ExpansionDivergence
from switchtext.state import ContextKey

logger = logging.getLogger(__name__)

OPCODE_PATTERN = "|".join(op.value for op in Opcode)


@dataclass(frozen=True)
class Directive:
    """One matched directive, consumed within a single pass."""

    opcode: Opcode
    condition_text: str
    true_branch: str
    false_branch: str = ""
    source: str = ""

    def select(self, condition_met: bool) -> str:
        return self.true_branch if condition_met else self.false_branch


class _ExpanderPatterns(NamedTuple):
    directive: re.Pattern
    brace_open: re.Pattern
    brace_close: re.Pattern
    case_open: re.Pattern


@lru_cache(maxsize=None)
def _patterns(escape_char: str) -> _ExpanderPatterns:
    esc = re.escape(escape_char)
    return _ExpanderPatterns(
        directive=re.compile(
            esc
            + rf"(?P<opcode>{OPCODE_PATTERN})"
            + r"\[(?P<condition>[^\]]*)\]"
            + r"\{(?P<true>[^{}]*)\}"
            + r"(?:\{(?P<false>[^{}]*)\}|(?!\{))",
            re.IGNORECASE,
        ),
        brace_open=re.compile(esc + "BO", re.IGNORECASE),
        brace_close=re.compile(esc + "BC", re.IGNORECASE),
        case_open=re.compile(esc + r"(?:UP|LOW)\{", re.IGNORECASE),
    )


CASE_OPEN = "\ue000"
CASE_CLOSE = "\ue001"


def protect_case_spans(text: str, escape_char: str = "\\") -> str:
    """Replace the braces of ``\\UP{...}``/``\\LOW{...}`` spans with sentinels.

    Braces are paired by nesting depth, so a case span may itself hold a
    directive and still be closed by the right brace.
    """
    opener = _patterns(escape_char).case_open
    out: List[str] = []
    stack: List[bool] = []
    i = 0
    while i < len(text):
        m = opener.match(text, i)
        if m:
            out.append(text[i:m.end() - 1] + CASE_OPEN)
            stack.append(True)
            i = m.end()
            continue
        ch = text[i]
        if ch == "{":
            stack.append(False)
        elif ch == "}" and stack and stack.pop():
            ch = CASE_CLOSE
        out.append(ch)
        i += 1
    return "".join(out)


def restore_case_spans(text: str) -> str:
    return text.replace(CASE_OPEN, "{").replace(CASE_CLOSE, "}")


def scan_directives(text: str, escape_char: str = "\\") -> List[Tuple[Tuple[int, int], Directive]]:
    """Return every directive that can be resolved in the current pass."""
    found = []
    for m in _patterns(escape_char).directive.finditer(text):
        directive = Directive(
            opcode=Opcode.parse(m.group("opcode")),
            condition_text=m.group("condition"),
            true_branch=m.group("true"),
            false_branch=m.group("false") or "",
            source=m.group(0),
        )
        found.append((m.span(), directive))
    return found


def decode_braces(text: str, escape_char: str = "\\") -> str:
    """Turn ``\\BO``/``\\BC`` into literal braces."""
    p = _patterns(escape_char)
    text = p.brace_open.sub("{", text)
    return p.brace_close.sub("}", text)


class DirectiveExpander:
    """Resolves directives in a string to a bounded fixed point.

    ``max_passes`` caps the number of rewriting passes; ``None`` uses the
    length of the input text.  Every substitution removes at least the
    directive's own markup, so that bound is only reached by misuse.
    """

    def __init__(
        self,
        evaluator: ConditionEvaluator,
        escape_char: str = "\\",
        max_passes: Optional[int] = None,
    ) -> None:
        self.evaluator = evaluator
        self.escape_char = escape_char
        self.max_passes = max_passes

    def expand_directives(self, text: str, current: Optional[ContextKey] = None) -> str:
        """Resolve all directives; leaves brace escapes encoded."""
        if current is None:
            current = self.evaluator.current_context()
        limit = self.max_passes if self.max_passes is not None else max(len(text), 1)
        text = protect_case_spans(text, self.escape_char)

        passes = 0
        while True:
            found = scan_directives(text, self.escape_char)
            if not found:
                logger.debug("Reached fixed point after %d pass(es)", passes)
                return restore_case_spans(text)
            if passes >= limit:
                raise ExpansionDivergence(
                    f"No fixed point after {passes} expansion passes",
                    restore_case_spans(text),
                )
            text = self._rewrite(text, found, current)
            passes += 1

    def expand(self, text: str, current: Optional[ContextKey] = None) -> str:
        """Resolve all directives, then decode brace escapes."""
        return decode_braces(self.expand_directives(text, current), self.escape_char)

    def _rewrite(
        self,
        text: str,
        found: List[Tuple[Tuple[int, int], Directive]],
        current: ContextKey,
    ) -> str:
        parts: List[str] = []
        cursor = 0
        for (start, end), directive in found:
            condition = parse_condition(directive.opcode, directive.condition_text)
            met = self.evaluator.evaluate_condition(condition, current)
            logger.debug("%s -> %s", directive.source, met)
            parts.append(text[cursor:start])
            parts.append(directive.select(met))
            cursor = end
        parts.append(text[cursor:])
        return "".join(parts)
