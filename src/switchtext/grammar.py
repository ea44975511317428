"""Grammar post-processor: runs after conditional expansion.

Codes (escape character configurable, names case-insensitive):

  ``\\NUMWORD[n]``   1-10 spelled out ("three"); anything else passes through
  ``\\ORD[n]``       numeral + ordinal suffix ("21st", "112th")
  ``\\ORDWORD[n]``   "first" … "tenth", else numeral + suffix
  ``\\UP{span}``     upper-case the span; ``\\UP`` alone folds one character
  ``\\LOW{span}``    lower-case the span; ``\\LOW`` alone folds one character
  ``\\AN``           "a"/"an" for the following word ("A"/"An" if the
                    placeholder starts upper-case)

Steps run in that order, so ``\\UP\\NUMWORD[3]`` gives "Three" and
``\\an \\NUMWORD[8]`` gives "an eight".  ``\\UP``/``\\LOW`` directly before
``\\an`` set the article's case: ``\\UP\\an apple`` gives "An apple".
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import NamedTuple

from switchtext.phonetics import indefinite_article

logger = logging.getLogger(__name__)

NUMBER_WORDS = (
    "one", "two", "three", "four", "five",
    "six", "seven", "eight", "nine", "ten",
)
ORDINAL_WORDS = (
    "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
)
_SUFFIXES = ("th", "st", "nd", "rd")

_INTEGER = re.compile(r"^\s*(-?\d+)\s*$")


class _GrammarPatterns(NamedTuple):
    number_word: re.Pattern
    ordinal_word: re.Pattern
    ordinal: re.Pattern
    case_span: re.Pattern
    case_char: re.Pattern
    case_article: re.Pattern
    article: re.Pattern


@lru_cache(maxsize=None)
def _patterns(escape_char: str) -> _GrammarPatterns:
    esc = re.escape(escape_char)
    return _GrammarPatterns(
        number_word=re.compile(esc + r"NUMWORD\[([^\]]*)\]", re.IGNORECASE),
        ordinal_word=re.compile(esc + r"ORDWORD\[([^\]]*)\]", re.IGNORECASE),
        ordinal=re.compile(esc + r"ORD\[([^\]]*)\]", re.IGNORECASE),
        case_span=re.compile(esc + r"(UP|LOW)\{([^{}]*)\}", re.IGNORECASE),
        case_char=re.compile(esc + r"(UP|LOW)(?!\{)(.?)", re.IGNORECASE | re.DOTALL),
        case_article=re.compile(esc + r"(UP|LOW)(" + esc + r")(an)(?![a-z])", re.IGNORECASE),
        article=re.compile(esc + r"(an)(?![a-z])(?=\s*(\S*))", re.IGNORECASE),
    )


# ═══════════════════════════════════════════════════════════════════
# Value helpers
# ═══════════════════════════════════════════════════════════════════

def number_to_word(n: int) -> str:
    """Spell out 1-10; return the numeral for anything else."""
    if 1 <= n <= 10:
        return NUMBER_WORDS[n - 1]
    return str(n)


def ordinal_suffix(n: int) -> str:
    v = abs(n) % 100
    if 11 <= v <= 13:
        return "th"
    last = v % 10
    return _SUFFIXES[last] if last < 4 else "th"


def ordinal(n: int, spelled: bool = False) -> str:
    """``ordinal(2) == "2nd"``; ``ordinal(2, spelled=True) == "second"``."""
    if spelled and 1 <= n <= 10:
        return ORDINAL_WORDS[n - 1]
    return f"{n}{ordinal_suffix(n)}"


# ═══════════════════════════════════════════════════════════════════
# Text transforms
# ═══════════════════════════════════════════════════════════════════

def _numeric_sub(pattern: re.Pattern, text: str, convert) -> str:
    def _replace(m: re.Match) -> str:
        arg = m.group(1)
        num = _INTEGER.match(arg)
        if not num:
            return arg.strip()
        return convert(int(num.group(1)))

    return pattern.sub(_replace, text)


def apply_number_words(text: str, escape_char: str = "\\") -> str:
    return _numeric_sub(_patterns(escape_char).number_word, text, number_to_word)


def apply_ordinals(text: str, escape_char: str = "\\") -> str:
    p = _patterns(escape_char)
    text = _numeric_sub(p.ordinal_word, text, lambda n: ordinal(n, spelled=True))
    return _numeric_sub(p.ordinal, text, ordinal)


def _fold(code: str, text: str) -> str:
    return text.upper() if code.upper() == "UP" else text.lower()


def apply_case(text: str, escape_char: str = "\\") -> str:
    """Fold case spans innermost-first, then single-character folds.

    A single-character fold aimed at an article placeholder (``\\UP\\an``)
    sets the placeholder's case instead, so the article comes out "An".
    """
    p = _patterns(escape_char)
    text = p.case_article.sub(
        lambda m: m.group(2) + _fold(m.group(1), m.group(3)), text,
    )
    for _ in range(len(text) + 1):
        new_text = p.case_span.sub(lambda m: _fold(m.group(1), m.group(2)), text)
        if new_text == text:
            break
        text = new_text
    return p.case_char.sub(lambda m: _fold(m.group(1), m.group(2)), text)


def apply_articles(text: str, escape_char: str = "\\") -> str:
    def _replace(m: re.Match) -> str:
        placeholder, word = m.group(1), m.group(2)
        return indefinite_article(word, capitalize=placeholder[0].isupper())

    return _patterns(escape_char).article.sub(_replace, text)


def post_process(text: str, escape_char: str = "\\") -> str:
    """Apply every grammar transform in order."""
    text = apply_number_words(text, escape_char)
    text = apply_ordinals(text, escape_char)
    text = apply_case(text, escape_char)
    return apply_articles(text, escape_char)
