"""Tests for directive scanning and fixed-point expansion."""

from __future__ import annotations

import pytest

from switchtext.conditions import ConditionEvaluator, Opcode
from switchtext.errors import ExpansionDivergence, MalformedCondition
from switchtext.expander import (
    DirectiveExpander,
    decode_braces,
    protect_case_spans,
    restore_case_spans,
    scan_directives,
)
from switchtext.state import InMemoryStateProvider


def _expander(max_passes=None, escape_char="\\", **state) -> DirectiveExpander:
    provider = InMemoryStateProvider(**state)
    return DirectiveExpander(
        ConditionEvaluator(provider), escape_char=escape_char, max_passes=max_passes,
    )


class TestScanDirectives:
    def test_finds_directive(self):
        found = scan_directives(r"Good \ON[21]{evening}{day}.")
        assert len(found) == 1
        span, directive = found[0]
        assert span == (5, 26)
        assert directive.opcode is Opcode.ON
        assert directive.condition_text == "21"
        assert directive.true_branch == "evening"
        assert directive.false_branch == "day"

    def test_missing_false_branch(self):
        (_, directive), = scan_directives(r"\OFF[A]{hidden} rest")
        assert directive.false_branch == ""

    def test_lowercase_opcode(self):
        (_, directive), = scan_directives(r"\ov[v1 > 0]{yes}{no}")
        assert directive.opcode is Opcode.OV

    def test_only_innermost_matches(self):
        found = scan_directives(r"\ON[1]{a \ON[2]{b}{c} d}{e}")
        assert [d.condition_text for _, d in found] == ["2"]

    def test_unknown_opcode_is_plain_text(self):
        assert scan_directives(r"\XX[1]{a}{b}") == []

    def test_custom_escape(self):
        assert len(scan_directives("#ON[1]{a}{b}", escape_char="#")) == 1
        assert scan_directives(r"\ON[1]{a}{b}", escape_char="#") == []


class TestDecodeBraces:
    def test_decode(self):
        assert decode_braces(r"\BOx\BC") == "{x}"

    def test_case_insensitive(self):
        assert decode_braces(r"\bo\bc") == "{}"


class TestExpand:
    def test_true_branch(self):
        assert _expander(switches={21: True}).expand(r"Good \ON[21]{evening}{day}.") == "Good evening."

    def test_false_branch(self):
        assert _expander().expand(r"Good \ON[21]{evening}{day}.") == "Good day."

    def test_missing_false_branch_is_empty(self):
        assert _expander().expand(r"Hi\ON[1]{ there}!") == "Hi!"

    def test_empty_branches(self):
        assert _expander(switches={1: True}).expand(r"[\ON[1]{}{x}]") == "[]"

    def test_adjacent_directives(self):
        text = r"\ON[1]{a}{b}\ON[2]{c}{d}"
        assert _expander(switches={2: True}).expand(text) == "bc"

    def test_nested_inner_first(self):
        text = r"\ON[1]{outer-\OFF[2]{inner}{alt}}{none}"
        assert _expander(switches={1: True}).expand(text) == "outer-inner"
        assert _expander(switches={1: True, 2: True}).expand(text) == "outer-alt"
        assert _expander().expand(text) == "none"

    def test_nested_in_false_branch(self):
        text = r"\ON[1]{one}{\ON[2]{two}{neither}}"
        assert _expander(switches={2: True}).expand(text) == "two"

    def test_three_levels(self):
        text = r"\ON[1]{\ON[2]{\ON[3]{deep}{x}}{y}}{z}"
        assert _expander(switches={1: True, 2: True, 3: True}).expand(text) == "deep"

    def test_brace_escapes_survive_as_literals(self):
        text = r"\ON[1]{\BOset\BC}{unset}"
        assert _expander(switches={1: True}).expand(text) == "{set}"

    def test_brace_escape_does_not_start_directive(self):
        assert _expander().expand(r"\BOON[1]{a}\BC") == "{ON[1]{a}}"

    def test_unmatched_markup_left_alone(self):
        assert _expander().expand(r"\ON[1]{open") == r"\ON[1]{open"

    def test_plain_text(self):
        assert _expander().expand("Nothing here.") == "Nothing here."

    def test_empty_string(self):
        assert _expander().expand("") == ""

    def test_malformed_condition_raises(self):
        with pytest.raises(MalformedCondition):
            _expander().expand(r"\ON[]{a}{b}")

    def test_custom_escape_char(self):
        exp = _expander(escape_char="~", switches={1: True})
        assert exp.expand("~ON[1]{a~BOb~BC}{c}") == "a{b}"


class TestDivergence:
    def test_pass_limit(self):
        text = r"\ON[1]{\ON[2]{a}{b}}{c}"
        with pytest.raises(ExpansionDivergence):
            _expander(max_passes=1).expand(text)

    def test_enough_passes(self):
        text = r"\ON[1]{\ON[2]{a}{b}}{c}"
        assert _expander(max_passes=2).expand(text) == "c"

    def test_zero_passes_only_for_plain_text(self):
        assert _expander(max_passes=0).expand("plain") == "plain"
        with pytest.raises(ExpansionDivergence):
            _expander(max_passes=0).expand(r"\ON[1]{a}")

    def test_expand_directives_keeps_escapes(self):
        exp = _expander(switches={1: True})
        assert exp.expand_directives(r"\ON[1]{\BC}") == r"\BC"


class TestCaseSpans:
    def test_span_braces_hidden_from_directives(self):
        protected = protect_case_spans(r"\ON[1]{\UP{hi}}")
        assert len(scan_directives(protected)) == 1

    def test_other_braces_untouched(self):
        assert protect_case_spans(r"\ON[1]{a}{b}") == r"\ON[1]{a}{b}"

    def test_span_closed_by_matching_brace(self):
        text = r"\UP{\ON[2]{x}{y}} tail}"
        assert restore_case_spans(protect_case_spans(text)) == text
        assert protect_case_spans(text).endswith(" tail}")

    def test_expand_through_span(self):
        expander = _expander(switches={1: True})
        assert expander.expand(r"\ON[1]{\UP{hi}}{bye}") == r"\UP{hi}"

    def test_divergence_reports_original_markup(self):
        with pytest.raises(ExpansionDivergence) as info:
            _expander(max_passes=0).expand(r"\ON[1]{\UP{hi}}")
        assert info.value.fragment == r"\ON[1]{\UP{hi}}"
