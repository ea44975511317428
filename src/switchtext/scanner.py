"""Directive scanner: extract the state a text depends on.

Parses the text using **regex only** (no state access) to discover:
  - global switches tested by ``ON``/``OFF``
  - global variables read by ``OV``
  - self references (``A``, ``ssA@Guard``, ``sv3@Town:4``)
  - party conditions (``OPS``, ``OPC``, ``OPL``, ``OPM``)
  - grammar codes and brace escapes
  - malformed conditions, reported without raising

Every directive head is inspected, nested ones included, so the result
does not depend on which branches a given state would pick.  Used for
``switchtext --scan`` and to build the TUI state form.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List

from switchtext.conditions import (
    ActorAttrTest,
    Opcode,
    PartySizeCompare,
    SwitchTest,
    VarCompare,
    parse_condition,
)
from switchtext.errors import ExpansionError
from switchtext.expander import OPCODE_PATTERN
from switchtext.operands import LocalRef, Operand, OperandKind, SelfRef


@dataclass
class TextMetadata:
    """Structured metadata extracted from a text."""

    directive_count: int = 0
    opcodes: Dict[str, int] = field(default_factory=dict)
    switches: List[int] = field(default_factory=list)
    variables: List[int] = field(default_factory=list)
    self_switches: List[str] = field(default_factory=list)
    self_references: List[str] = field(default_factory=list)
    party_conditions: List[str] = field(default_factory=list)
    grammar_codes: List[str] = field(default_factory=list)
    brace_escapes: int = 0
    problems: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.problems


@lru_cache(maxsize=None)
def _patterns(escape_char: str):
    esc = re.escape(escape_char)
    head = re.compile(esc + rf"({OPCODE_PATTERN})\[([^\]]*)\]", re.IGNORECASE)
    # UP/LOW may run straight into the folded character ("\UPhello");
    # AN must stand alone.
    grammar = re.compile(
        esc + r"(?:(NUMWORD|ORDWORD|ORD)\[|(UP|LOW)|(AN)(?![a-z]))",
        re.IGNORECASE,
    )
    braces = re.compile(esc + "(BO|BC)", re.IGNORECASE)
    return head, grammar, braces


def _describe(operand: SelfRef) -> str:
    return operand.text or f"{operand.kind.value}:{operand.slot}"


def scan_text(text: str, escape_char: str = "\\") -> TextMetadata:
    """Scan *text* and list everything its directives would read."""
    head, grammar, braces = _patterns(escape_char)
    meta = TextMetadata()
    opcodes: Counter = Counter()

    def _note_operand(operand: Operand) -> None:
        if isinstance(operand, LocalRef):
            target = meta.switches if operand.kind is OperandKind.SWITCH else meta.variables
            if operand.id not in target:
                target.append(operand.id)
        elif isinstance(operand, SelfRef):
            if isinstance(operand.slot, str) and not operand.needs_cross_context:
                if operand.slot not in meta.self_switches:
                    meta.self_switches.append(operand.slot)
            else:
                label = _describe(operand)
                if label not in meta.self_references:
                    meta.self_references.append(label)

    for m in head.finditer(text):
        opcode, condition_text = m.group(1).upper(), m.group(2)
        meta.directive_count += 1
        opcodes[opcode] += 1
        try:
            condition = parse_condition(Opcode(opcode), condition_text)
        except ExpansionError as exc:
            meta.problems.append(str(exc))
            continue

        if isinstance(condition, SwitchTest):
            _note_operand(condition.operand)
        elif isinstance(condition, VarCompare):
            _note_operand(condition.left)
            _note_operand(condition.right)
        elif isinstance(condition, (PartySizeCompare, ActorAttrTest)):
            meta.party_conditions.append(f"{opcode}[{condition_text}]")

    codes = ["".join(groups).upper() for groups in grammar.findall(text)]
    meta.grammar_codes = list(dict.fromkeys(codes))
    meta.brace_escapes = len(braces.findall(text))
    meta.opcodes = dict(opcodes)
    meta.switches.sort()
    meta.variables.sort()
    return meta
