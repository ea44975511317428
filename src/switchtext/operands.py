"""Operands, comparison operators and the operand resolver.

Operand syntax inside a condition clause:

  ``12`` / ``s12``         global switch 12 (in ``ON``/``OFF``)
  ``A``-``D`` / ``ssA``    self switch of the current context
  ``ss12``                 numbered self switch
  ``v12``                  global variable 12 (in ``OV``)
  ``sv12``                 self variable 12
  ``-3`` / ``7``           constants (see :func:`parse_variable_operands`)

Self references may carry an address suffix: ``@context``,
``@container:context`` or ``@container:``.  Ids are digits; anything else
is a name the state provider maps to an id.
"""

from __future__ import annotations

import logging
import operator
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from switchtext.errors import (
    MalformedCondition,
    UnresolvedNamedReference,
    UnsupportedCrossContextAccess,
)
from switchtext.state import ContextKey, Slot, StateProvider

logger = logging.getLogger(__name__)

# Either an explicit numeric id or a name still to be resolved.
AddressPart = Union[int, str]


class OperandKind(str, Enum):
    SWITCH = "switch"
    VARIABLE = "variable"


@dataclass(frozen=True)
class Constant:
    value: int


@dataclass(frozen=True)
class LocalRef:
    """A global switch or variable."""

    kind: OperandKind
    id: int


@dataclass(frozen=True)
class SelfRef:
    """A slot in a (possibly remote) container/context pair."""

    kind: OperandKind
    slot: Slot
    container: Optional[AddressPart] = None
    context: Optional[AddressPart] = None
    text: str = field(default="", compare=False)

    @property
    def needs_cross_context(self) -> bool:
        """Only lettered self switches of the current context are built in."""
        return (
            self.kind is OperandKind.VARIABLE
            or not isinstance(self.slot, str)
            or self.container is not None
            or self.context is not None
        )


Operand = Union[Constant, LocalRef, SelfRef]


# ═══════════════════════════════════════════════════════════════════
# Comparison operators
# ═══════════════════════════════════════════════════════════════════

class Comparison(str, Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    def apply(self, left: int, right: int) -> bool:
        return _OPERATORS[self](int(left), int(right))


_OPERATORS: Dict[Comparison, Callable[[int, int], bool]] = {
    Comparison.EQ: operator.eq,
    Comparison.NE: operator.ne,
    Comparison.GT: operator.gt,
    Comparison.GE: operator.ge,
    Comparison.LT: operator.lt,
    Comparison.LE: operator.le,
}

_OPERATOR_ALIASES: Dict[str, Comparison] = {
    "=": Comparison.EQ,
    "==": Comparison.EQ,
    "===": Comparison.EQ,
    "!=": Comparison.NE,
    "<>": Comparison.NE,
    ">": Comparison.GT,
    ">=": Comparison.GE,
    "<": Comparison.LT,
    "<=": Comparison.LE,
}

# Longest alternatives first so "<>" and ">=" win over "<" and ">".
OPERATOR_PATTERN = r"===|==|=|!=|<>|>=|<=|>|<"


def parse_comparison(token: str) -> Comparison:
    """Map an operator token (including synonyms) to a :class:`Comparison`."""
    try:
        return _OPERATOR_ALIASES[token.strip()]
    except KeyError:
        raise MalformedCondition("Unsupported comparison operator", token) from None


# ═══════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════

_SWITCH_OPERAND = re.compile(
    r"^(?P<prefix>ss|s)?(?P<slot>[A-D]|\d+)(?:@(?P<address>.+))?$",
    re.IGNORECASE,
)
_VARIABLE_TOKEN = re.compile(
    r"^(?P<prefix>sv|v)?(?P<number>-?\d+)(?:@(?P<address>.+))?$",
    re.IGNORECASE,
)
_VARIABLE_CONDITION = re.compile(
    rf"^\s*(?P<left>[^\s=!<>]+)\s*(?P<op>{OPERATOR_PATTERN})\s*(?P<right>[^\s=!<>]+)\s*$"
)
_ADDRESS = re.compile(r"^(?:(?P<container>[^:]*):)?(?P<context>[^:]*)$")


def _address_part(token: Optional[str]) -> Optional[AddressPart]:
    if token is None:
        return None
    token = token.strip()
    if not token:
        return None
    if token.isdigit():
        return int(token)
    return token


def parse_address(address: Optional[str], fragment: str) -> Tuple[Optional[AddressPart], Optional[AddressPart]]:
    """Split an ``@`` suffix into ``(container, context)``."""
    if address is None:
        return None, None
    m = _ADDRESS.match(address.strip())
    if not m:
        raise MalformedCondition("Malformed context address", fragment)
    return _address_part(m.group("container")), _address_part(m.group("context"))


def parse_switch_operand(text: str) -> Operand:
    """Parse the operand of an ``ON``/``OFF`` condition."""
    token = text.strip()
    m = _SWITCH_OPERAND.match(token)
    if not m:
        raise MalformedCondition("Invalid switch reference", text)

    prefix = (m.group("prefix") or "").lower()
    slot = m.group("slot")
    container, context = parse_address(m.group("address"), text)

    if not slot.isdigit():
        return SelfRef(OperandKind.SWITCH, slot.upper(), container, context, text=token)
    if prefix == "ss":
        return SelfRef(OperandKind.SWITCH, int(slot), container, context, text=token)
    if m.group("address") is not None:
        raise MalformedCondition("Global switches cannot carry a context address", text)
    return LocalRef(OperandKind.SWITCH, int(slot))


def _variable_token(token: str, fragment: str) -> Tuple[str, int, Optional[str]]:
    m = _VARIABLE_TOKEN.match(token)
    if not m:
        raise MalformedCondition("Invalid variable operand", fragment)
    prefix = (m.group("prefix") or "").lower()
    if m.group("address") is not None and prefix != "sv":
        raise MalformedCondition("Only self variables can carry a context address", fragment)
    return prefix, int(m.group("number")), m.group("address")


def _variable_ref(prefix: str, number: int, address: Optional[str], token: str, fragment: str) -> Operand:
    if number < 0:
        raise MalformedCondition("Variable ids cannot be negative", fragment)
    if prefix == "sv":
        container, context = parse_address(address, fragment)
        return SelfRef(OperandKind.VARIABLE, number, container, context, text=token)
    return LocalRef(OperandKind.VARIABLE, number)


def parse_variable_operands(text: str) -> Tuple[Operand, Comparison, Operand]:
    """Parse ``<left> <op> <right>`` for an ``OV`` condition.

    A prefixed token (``v`` or ``sv``) is always a variable.  A bare
    integer on the right is a constant.  A bare integer on the left is a
    variable id, unless the right side is a variable, in which case the
    left side is the constant.
    """
    m = _VARIABLE_CONDITION.match(text)
    if not m:
        raise MalformedCondition("Expected '<left> <op> <right>'", text)

    left_prefix, left_number, left_address = _variable_token(m.group("left"), text)
    right_prefix, right_number, right_address = _variable_token(m.group("right"), text)
    op = parse_comparison(m.group("op"))

    right_is_variable = bool(right_prefix)
    left_is_variable = bool(left_prefix) or not right_is_variable

    if right_is_variable:
        right: Operand = _variable_ref(right_prefix, right_number, right_address, m.group("right"), text)
    else:
        right = Constant(right_number)

    if left_is_variable:
        left: Operand = _variable_ref(left_prefix, left_number, left_address, m.group("left"), text)
    else:
        left = Constant(left_number)

    return left, op, right


# ═══════════════════════════════════════════════════════════════════
# Resolution
# ═══════════════════════════════════════════════════════════════════

class OperandResolver:
    """Turns operands into integers by reading the state provider.

    Switches resolve to 0/1.  The current context is passed explicitly on
    every call rather than read from ambient host globals.
    """

    def __init__(self, provider: StateProvider) -> None:
        self.provider = provider

    def resolve(self, operand: Operand, current: ContextKey) -> int:
        if isinstance(operand, Constant):
            return operand.value
        if isinstance(operand, LocalRef):
            return self._read(operand.kind, None, operand.id)
        if isinstance(operand, SelfRef):
            return self._read(operand.kind, self.context_for(operand, current), operand.slot)
        raise TypeError(f"Not an operand: {operand!r}")

    def context_for(self, ref: SelfRef, current: ContextKey) -> ContextKey:
        """Work out which container/context pair a self reference points at."""
        if ref.needs_cross_context and not getattr(self.provider, "supports_cross_context", False):
            raise UnsupportedCrossContextAccess(
                "Cross-context self references are not supported by this host",
                ref.text or str(ref.slot),
            )

        if ref.container is None:
            container_id = current.container_id
        else:
            container_id = self._lookup(
                ref.container, self.provider.resolve_container_by_name, "container", ref,
            )

        if ref.context is None:
            context_id = current.context_id
        else:
            context_id = self._lookup(
                ref.context, self.provider.resolve_context_by_name, "context", ref,
            )

        return ContextKey(container_id, context_id)

    def _read(self, kind: OperandKind, context: Optional[ContextKey], slot: Slot) -> int:
        if kind is OperandKind.SWITCH:
            return int(bool(self.provider.get_flag(context, slot)))
        return int(self.provider.get_variable(context, slot))

    @staticmethod
    def _lookup(
        part: AddressPart,
        resolver: Callable[[str], Optional[int]],
        what: str,
        ref: SelfRef,
    ) -> int:
        if isinstance(part, int):
            return part
        resolved = resolver(part)
        if resolved is None:
            raise UnresolvedNamedReference(f"Unknown {what} name {part!r}", ref.text or part)
        logger.debug("Resolved %s name %r to id %s", what, part, resolved)
        return resolved
