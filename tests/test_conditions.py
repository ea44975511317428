"""Tests for condition parsing and evaluation."""

from __future__ import annotations

import pytest

from switchtext.conditions import (
    ActorAttribute,
    ActorAttrTest,
    ConditionEvaluator,
    Opcode,
    PartyScope,
    PartySizeCompare,
    SwitchTest,
    VarCompare,
    parse_condition,
)
from switchtext.errors import MalformedCondition, UnknownOpcode
from switchtext.operands import Comparison, Constant, LocalRef, OperandKind, SelfRef
from switchtext.state import AttributeSet, ContextKey, InMemoryStateProvider


def _party_provider() -> InMemoryStateProvider:
    return InMemoryStateProvider(
        party=[
            AttributeSet(actor_id=1, class_id=4, active_state_ids=(2,)),
            AttributeSet(actor_id=3, class_id=7, active_state_ids=(5, 9)),
            AttributeSet(actor_id=6, class_id=4),
        ],
        core_party_size=2,
    )


class TestOpcode:
    def test_case_insensitive(self):
        assert Opcode.parse("on") is Opcode.ON
        assert Opcode.parse("Opm") is Opcode.OPM

    def test_passthrough(self):
        assert Opcode.parse(Opcode.OV) is Opcode.OV

    def test_unknown(self):
        with pytest.raises(UnknownOpcode):
            Opcode.parse("XYZ")

    def test_unknown_via_evaluate(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider())
        with pytest.raises(UnknownOpcode):
            evaluator.evaluate("OX", "1")


class TestParseCondition:
    def test_on(self):
        assert parse_condition("ON", "21") == SwitchTest(LocalRef(OperandKind.SWITCH, 21))

    def test_off_negates(self):
        assert parse_condition("OFF", "A") == SwitchTest(SelfRef(OperandKind.SWITCH, "A"), negate=True)

    def test_ov(self):
        assert parse_condition("OV", "v2 >= 10") == VarCompare(
            LocalRef(OperandKind.VARIABLE, 2), Comparison.GE, Constant(10),
        )

    def test_ops_default_operator(self):
        assert parse_condition("OPS", "3") == PartySizeCompare(Comparison.EQ, 3)

    def test_ops_with_label_and_operator(self):
        assert parse_condition("OPS", "size >= 2") == PartySizeCompare(Comparison.GE, 2)

    def test_opc_is_core(self):
        assert parse_condition("OPC", "<4") == PartySizeCompare(Comparison.LT, 4, core=True)

    def test_opl(self):
        assert parse_condition("OPL", "actor = 1") == ActorAttrTest(
            PartyScope.LEADER, ActorAttribute.ACTOR, Comparison.EQ, 1,
        )

    def test_opm_attribute_prefixes(self):
        assert parse_condition("OPM", "c=4").attribute is ActorAttribute.CLASS
        assert parse_condition("OPM", "St != 3").attribute is ActorAttribute.STATE
        assert parse_condition("OPM", "ACT>0").attribute is ActorAttribute.ACTOR

    def test_opm_scope(self):
        assert parse_condition("OPM", "class = 4").scope is PartyScope.ANY_MEMBER

    @pytest.mark.parametrize("opcode", ["ON", "OFF", "OV", "OPS", "OPC", "OPL", "OPM"])
    def test_empty_condition(self, opcode):
        with pytest.raises(MalformedCondition):
            parse_condition(opcode, "  ")

    @pytest.mark.parametrize(
        "opcode, text",
        [("OPL", "actor 1"), ("OPL", "level = 3"), ("OPM", "= 3"),
         ("OPS", "lots"), ("OPC", ">= many"), ("OV", "v1")],
    )
    def test_malformed(self, opcode, text):
        with pytest.raises(MalformedCondition):
            parse_condition(opcode, text)


class TestEvaluateSwitches:
    def test_global_switch(self):
        provider = InMemoryStateProvider(switches={21: True})
        evaluator = ConditionEvaluator(provider)
        assert evaluator.evaluate("ON", "21") is True
        assert evaluator.evaluate("OFF", "21") is False
        assert evaluator.evaluate("ON", "22") is False
        assert evaluator.evaluate("OFF", "22") is True

    def test_self_switch_uses_current_context(self):
        provider = InMemoryStateProvider(container_id=3, context_id=4)
        provider.set_flag(ContextKey(3, 4), "B", True)
        evaluator = ConditionEvaluator(provider)
        assert evaluator.evaluate("ON", "B") is True
        assert evaluator.evaluate("ON", "B", current=ContextKey(3, 5)) is False


class TestEvaluateVariables:
    def test_compare_to_constant(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider(variables={5: 12}))
        assert evaluator.evaluate("OV", "v5 > 10")
        assert evaluator.evaluate("OV", "5 = 12")
        assert not evaluator.evaluate("OV", "v5 < 12")

    def test_constant_on_left(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider(variables={5: 12}))
        assert evaluator.evaluate("OV", "10 < v5")

    def test_two_variables(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider(variables={1: 3, 2: 3}))
        assert evaluator.evaluate("OV", "v1 == v2")

    def test_unset_variable_is_zero(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider())
        assert evaluator.evaluate("OV", "v9 = 0")


class TestEvaluateParty:
    def test_party_size(self):
        evaluator = ConditionEvaluator(_party_provider())
        assert evaluator.evaluate("OPS", "3")
        assert evaluator.evaluate("OPS", "> 2")
        assert not evaluator.evaluate("OPS", "< 3")

    def test_core_party_size(self):
        evaluator = ConditionEvaluator(_party_provider())
        assert evaluator.evaluate("OPC", "2")
        assert not evaluator.evaluate("OPC", "3")

    def test_leader(self):
        evaluator = ConditionEvaluator(_party_provider())
        assert evaluator.evaluate("OPL", "actor = 1")
        assert not evaluator.evaluate("OPL", "actor = 3")
        assert evaluator.evaluate("OPL", "class = 4")
        assert evaluator.evaluate("OPL", "state = 2")

    def test_any_member(self):
        evaluator = ConditionEvaluator(_party_provider())
        assert evaluator.evaluate("OPM", "actor = 3")
        assert evaluator.evaluate("OPM", "class = 7")
        assert not evaluator.evaluate("OPM", "actor = 99")

    def test_state_matches_any_active_state(self):
        evaluator = ConditionEvaluator(_party_provider())
        assert evaluator.evaluate("OPM", "state = 9")
        assert evaluator.evaluate("OPM", "state > 8")
        assert not evaluator.evaluate("OPM", "state = 4")

    def test_state_not_equal_needs_one_differing_state(self):
        evaluator = ConditionEvaluator(_party_provider())
        # Leader has only state 2.
        assert not evaluator.evaluate("OPL", "state != 2")
        assert evaluator.evaluate("OPL", "state != 5")

    def test_stateless_member_never_matches_state(self):
        provider = InMemoryStateProvider(party=[AttributeSet(1, 1)])
        evaluator = ConditionEvaluator(provider)
        assert not evaluator.evaluate("OPL", "state != 0")

    def test_empty_party(self):
        evaluator = ConditionEvaluator(InMemoryStateProvider())
        assert evaluator.evaluate("OPS", "0")
        assert not evaluator.evaluate("OPL", "actor = 0")
        assert not evaluator.evaluate("OPM", "actor = 0")


class TestComparisonSymmetry:
    PAIRS = [(0, 0), (3, 7), (7, 3), (-2, -2), (-5, 4)]

    @pytest.mark.parametrize("a, b", PAIRS)
    def test_against_python_operators(self, a, b):
        evaluator = ConditionEvaluator(InMemoryStateProvider(variables={1: a}))
        assert evaluator.evaluate("OV", f"v1=={b}") is (a == b)
        assert evaluator.evaluate("OV", f"v1!={b}") is (a != b)
        assert evaluator.evaluate("OV", f"v1>{b}") is (a > b)
        assert evaluator.evaluate("OV", f"v1>={b}") is (a >= b)
        assert evaluator.evaluate("OV", f"v1<{b}") is (a < b)
        assert evaluator.evaluate("OV", f"v1<={b}") is (a <= b)
