"""Tests for the regex-only text scanner."""

from __future__ import annotations

import textwrap

from switchtext.scanner import TextMetadata, scan_text

TEXT = textwrap.dedent(r"""
    Good \ON[21]{evening}{day}. \OFF[A]{Not yet.} \ON[ssB@Guard]{x}
    \OV[v5 > sv3@Town:4]{a}{b} \OPS[>= 2]{\an \NUMWORD[3]}{\ORD[1]} \BOok\BC
    \ON[3]{\ON[2]{}}
""")


class TestScanText:
    def test_counts_every_directive_head(self):
        meta = scan_text(TEXT)
        assert meta.directive_count == 7
        assert meta.opcodes == {"ON": 4, "OFF": 1, "OV": 1, "OPS": 1}

    def test_global_references_sorted(self):
        meta = scan_text(TEXT)
        assert meta.switches == [2, 3, 21]
        assert meta.variables == [5]

    def test_self_switches_and_cross_context(self):
        meta = scan_text(TEXT)
        assert meta.self_switches == ["A"]
        assert meta.self_references == ["ssB@Guard", "sv3@Town:4"]

    def test_party_conditions(self):
        assert scan_text(TEXT).party_conditions == ["OPS[>= 2]"]

    def test_grammar_codes_in_order_of_appearance(self):
        assert scan_text(TEXT).grammar_codes == ["AN", "NUMWORD", "ORD"]

    def test_brace_escapes(self):
        assert scan_text(TEXT).brace_escapes == 2

    def test_clean(self):
        assert scan_text(TEXT).is_clean

    def test_problems_reported_not_raised(self):
        meta = scan_text(r"\ON[bad]{x} \OV[v1]{y} \ON[4]{z}")
        assert len(meta.problems) == 2
        assert not meta.is_clean
        assert meta.switches == [4]

    def test_duplicates_collapsed(self):
        meta = scan_text(r"\ON[1]{a} \OFF[1]{b} \ON[A]{c} \ON[a]{d}")
        assert meta.switches == [1]
        assert meta.self_switches == ["A"]

    def test_case_codes(self):
        meta = scan_text(r"\UPhello \low{WORLD} \answer")
        assert meta.grammar_codes == ["UP", "LOW"]

    def test_custom_escape(self):
        meta = scan_text("#ON[9]{a} \\ON[8]{b}", escape_char="#")
        assert meta.switches == [9]

    def test_empty(self):
        assert scan_text("") == TextMetadata()
