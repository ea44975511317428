"""Tests for the grammar post-processor."""

from __future__ import annotations

import pytest

from switchtext.grammar import (
    apply_articles,
    apply_case,
    apply_number_words,
    apply_ordinals,
    number_to_word,
    ordinal,
    ordinal_suffix,
    post_process,
)


class TestNumberWords:
    def test_spelled_range(self):
        assert number_to_word(1) == "one"
        assert number_to_word(10) == "ten"

    def test_outside_range_is_numeral(self):
        assert number_to_word(0) == "0"
        assert number_to_word(11) == "11"
        assert number_to_word(-2) == "-2"

    def test_code(self):
        assert apply_number_words(r"\NUMWORD[3] goblins") == "three goblins"

    def test_code_case_insensitive(self):
        assert apply_number_words(r"\numword[5]") == "five"

    def test_non_integer_passes_through(self):
        assert apply_number_words(r"\NUMWORD[ many ]") == "many"

    def test_large_number_passes_through(self):
        assert apply_number_words(r"\NUMWORD[42]") == "42"


class TestOrdinals:
    @pytest.mark.parametrize(
        "n, expected",
        [(1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"),
         (13, "th"), (21, "st"), (22, "nd"), (101, "st"), (111, "th"), (112, "th")],
    )
    def test_suffix(self, n, expected):
        assert ordinal_suffix(n) == expected

    def test_ordinal(self):
        assert ordinal(21) == "21st"
        assert ordinal(112) == "112th"

    def test_spelled(self):
        assert ordinal(1, spelled=True) == "first"
        assert ordinal(10, spelled=True) == "tenth"
        assert ordinal(11, spelled=True) == "11th"

    def test_codes(self):
        assert apply_ordinals(r"the \ORD[23] floor") == "the 23rd floor"
        assert apply_ordinals(r"the \ORDWORD[2] time") == "the second time"

    def test_ordword_not_consumed_by_ord(self):
        assert apply_ordinals(r"\ORDWORD[3] and \ORD[3]") == "third and 3rd"


class TestCase:
    def test_upper_span(self):
        assert apply_case(r"\UP{shout} now") == "SHOUT now"

    def test_lower_span(self):
        assert apply_case(r"\LOW{QUIET}") == "quiet"

    def test_nested_spans(self):
        assert apply_case(r"\UP{a \LOW{B} c}") == "A B C"

    def test_single_character(self):
        assert apply_case(r"\UPhello") == "Hello"
        assert apply_case(r"\LOWWORLD") == "wORLD"

    def test_single_character_at_end(self):
        assert apply_case("end\\UP") == "end"


class TestArticles:
    def test_an(self):
        assert apply_articles(r"\an apple") == "an apple"

    def test_a(self):
        assert apply_articles(r"\an troll") == "a troll"

    def test_capitalization_follows_placeholder(self):
        assert apply_articles(r"\AN hour passed") == "An hour passed"
        assert apply_articles(r"\An troll") == "A troll"

    def test_multiple(self):
        assert apply_articles(r"\an orc and \an elf and \an dwarf") == "an orc and an elf and a dwarf"

    def test_does_not_match_longer_words(self):
        assert apply_articles(r"\answer") == r"\answer"


class TestPostProcess:
    def test_article_sees_number_word(self):
        assert post_process(r"\an \NUMWORD[8]-foot troll") == "an eight-foot troll"

    def test_case_after_number_word(self):
        assert post_process(r"\UP\NUMWORD[3] heads") == "Three heads"

    def test_article_sees_ordinal(self):
        assert post_process(r"\an \ORD[11] hour") == "an 11th hour"

    def test_idempotent(self):
        once = post_process(r"\AN \UP{ogre} has \NUMWORD[2] clubs")
        assert once == "An OGRE has two clubs"
        assert post_process(once) == once

    def test_custom_escape_char(self):
        assert post_process("~an ~NUMWORD[8]", escape_char="~") == "an eight"

    def test_plain_text_untouched(self):
        assert post_process("nothing to do") == "nothing to do"


class TestCaseOnArticle:
    def test_up_capitalizes_article(self):
        assert post_process(r"\UP\an apple") == "An apple"
        assert post_process(r"\UP\an pear") == "A pear"

    def test_low_lowercases_article(self):
        assert post_process(r"\LOW\AN egg") == "an egg"

    def test_custom_escape_char(self):
        assert post_process("~UP~an owl", "~") == "An owl"
