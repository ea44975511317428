"""Condition parsing and evaluation for the seven directive opcodes."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from switchtext.errors import MalformedCondition, UnknownOpcode
from switchtext.operands import (
    OPERATOR_PATTERN,
    Comparison,
    Operand,
    OperandResolver,
    parse_comparison,
    parse_switch_operand,
    parse_variable_operands,
)
from switchtext.state import AttributeSet, ContextKey, StateProvider

logger = logging.getLogger(__name__)


class Opcode(str, Enum):
    ON = "ON"
    OFF = "OFF"
    OV = "OV"
    OPS = "OPS"
    OPC = "OPC"
    OPL = "OPL"
    OPM = "OPM"

    @classmethod
    def parse(cls, name: Union[str, "Opcode"]) -> "Opcode":
        if isinstance(name, Opcode):
            return name
        try:
            return cls(name.upper())
        except ValueError:
            raise UnknownOpcode("Unknown directive opcode", name) from None


class PartyScope(str, Enum):
    LEADER = "leader"
    ANY_MEMBER = "any_member"


class ActorAttribute(str, Enum):
    ACTOR = "actor"
    CLASS = "class"
    STATE = "state"

    @classmethod
    def from_prefix(cls, word: str, fragment: str) -> "ActorAttribute":
        """``a``, ``act``, ``Actor`` … all mean :attr:`ACTOR`."""
        lowered = word.lower()
        for attribute in cls:
            if lowered and attribute.value.startswith(lowered):
                return attribute
        raise MalformedCondition("Unknown actor attribute", fragment)


# ═══════════════════════════════════════════════════════════════════
# Condition nodes
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SwitchTest:
    operand: Operand
    negate: bool = False


@dataclass(frozen=True)
class VarCompare:
    left: Operand
    op: Comparison
    right: Operand


@dataclass(frozen=True)
class PartySizeCompare:
    op: Comparison
    n: int
    core: bool = False


@dataclass(frozen=True)
class ActorAttrTest:
    scope: PartyScope
    attribute: ActorAttribute
    op: Comparison
    n: int


Condition = Union[SwitchTest, VarCompare, PartySizeCompare, ActorAttrTest]


_PARTY_SIZE = re.compile(
    rf"^\s*(?:[A-Za-z_][A-Za-z_ ]*?)?\s*(?P<op>{OPERATOR_PATTERN})?\s*(?P<n>-?\d+)\s*$"
)
_ACTOR_ATTRIBUTE = re.compile(
    rf"^\s*(?P<attribute>[A-Za-z]+)\s*(?P<op>{OPERATOR_PATTERN})\s*(?P<n>-?\d+)\s*$"
)


def parse_condition(opcode: Union[str, Opcode], text: str) -> Condition:
    """Parse *text* according to the grammar of *opcode*."""
    op_code = Opcode.parse(opcode)
    if not text or not text.strip():
        raise MalformedCondition(f"Empty condition for {op_code.value}", text)

    if op_code in (Opcode.ON, Opcode.OFF):
        return SwitchTest(parse_switch_operand(text), negate=op_code is Opcode.OFF)

    if op_code is Opcode.OV:
        left, op, right = parse_variable_operands(text)
        return VarCompare(left, op, right)

    if op_code in (Opcode.OPS, Opcode.OPC):
        m = _PARTY_SIZE.match(text)
        if not m:
            raise MalformedCondition("Expected '[label] [op] <n>'", text)
        op = parse_comparison(m.group("op")) if m.group("op") else Comparison.EQ
        return PartySizeCompare(op, int(m.group("n")), core=op_code is Opcode.OPC)

    m = _ACTOR_ATTRIBUTE.match(text)
    if not m:
        raise MalformedCondition("Expected '<attribute> <op> <n>'", text)
    scope = PartyScope.LEADER if op_code is Opcode.OPL else PartyScope.ANY_MEMBER
    return ActorAttrTest(
        scope=scope,
        attribute=ActorAttribute.from_prefix(m.group("attribute"), text),
        op=parse_comparison(m.group("op")),
        n=int(m.group("n")),
    )


def attribute_matches(attrs: AttributeSet, attribute: ActorAttribute, op: Comparison, n: int) -> bool:
    """Test one party member; states pass if *any* active state compares true."""
    if attribute is ActorAttribute.STATE:
        return any(op.apply(state_id, n) for state_id in attrs.active_state_ids)
    if attribute is ActorAttribute.ACTOR:
        return op.apply(attrs.actor_id, n)
    return op.apply(attrs.class_id, n)


class ConditionEvaluator:
    """Evaluates parsed conditions against a state provider (read-only)."""

    def __init__(self, provider: StateProvider, resolver: Optional[OperandResolver] = None) -> None:
        self.provider = provider
        self.resolver = resolver or OperandResolver(provider)

    def evaluate(self, opcode: Union[str, Opcode], text: str, current: Optional[ContextKey] = None) -> bool:
        """Parse and evaluate one condition clause."""
        condition = parse_condition(opcode, text)
        return self.evaluate_condition(condition, current or self.current_context())

    def current_context(self) -> ContextKey:
        return ContextKey(
            self.provider.current_container_id(),
            self.provider.current_context_id(),
        )

    def evaluate_condition(self, condition: Condition, current: ContextKey) -> bool:
        if isinstance(condition, SwitchTest):
            value = bool(self.resolver.resolve(condition.operand, current))
            return not value if condition.negate else value

        if isinstance(condition, VarCompare):
            left = self.resolver.resolve(condition.left, current)
            right = self.resolver.resolve(condition.right, current)
            return condition.op.apply(left, right)

        if isinstance(condition, PartySizeCompare):
            if condition.core:
                size = self.provider.get_core_party_size()
            else:
                size = self.provider.get_party_size()
            return condition.op.apply(size, condition.n)

        if isinstance(condition, ActorAttrTest):
            if condition.scope is PartyScope.LEADER:
                leader = self.provider.get_party_leader_attributes()
                if leader is None:
                    return False
                return attribute_matches(leader, condition.attribute, condition.op, condition.n)
            return any(
                attribute_matches(member, condition.attribute, condition.op, condition.n)
                for member in self.provider.get_party_member_attribute_sets()
            )

        raise TypeError(f"Not a condition: {condition!r}")
