"""Vowel-sound classifier used to choose between "a" and "an".

The rules are table-driven.  Numbers are judged by how they are read
aloud: "8" is "eight", "11" is "eleven", "110" is "one hundred ten".
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Letters whose spoken names start with a vowel sound ("ef", "aitch", "ex"…).
VOWEL_SOUND_LETTER_NAMES = frozenset("AEFHILMNORSX")

ALWAYS_VOWEL_INITIALS = frozenset("aei")

# "u" words pronounced with a leading "yoo".
YOO_PREFIXES = ("unary", "uni", "ura", "ure", "uri", "uro", "usa", "use", "usi", "usu")
# …except these, which start with a plain "uh".
YOO_EXCEPTIONS = ("unidentif",)

SILENT_H_PREFIXES = ("heir", "honest", "honor", "hour")

O_CONSONANT_WORDS = frozenset({"one"})
O_CONSONANT_PREFIXES = ("oui",)

VOWEL_LETTERS = frozenset("aeiou")

_LEADING_NOISE = re.compile(r"^[^\w]+")
_LEADING_DIGITS = re.compile(r"^\d[\d,]*")
_LEADING_LETTERS = re.compile(r"^[a-z]+")


def starts_with_vowel_sound(word: str) -> bool:
    """Return True if *word*, spoken aloud, begins with a vowel sound."""
    text = _LEADING_NOISE.sub("", word or "").strip()
    if not text:
        logger.warning("Cannot judge the vowel sound of a blank word: %r", word)
        return False

    digits = _LEADING_DIGITS.match(text)
    if digits:
        return _number_starts_with_vowel_sound(digits.group(0).replace(",", ""))

    if len(text) == 1 or text[1].isupper():
        return text[0].upper() in VOWEL_SOUND_LETTER_NAMES

    return _word_starts_with_vowel_sound(text.lower())


def _number_starts_with_vowel_sound(digits: str) -> bool:
    # "eight", "eighty", "eight hundred" …
    if digits.startswith("8"):
        return True
    # "eleven" / "eighteen" lead only when they head a thousands group
    # (11, 11 000, 18 000 000 …).  Approximation: digit grouping does not
    # know every spoken form.
    if digits.startswith(("11", "18")):
        return len(digits) % 3 == 2
    return False


def _word_starts_with_vowel_sound(lower: str) -> bool:
    initial = lower[0]

    if initial in ALWAYS_VOWEL_INITIALS:
        return True

    if initial == "o":
        head = _LEADING_LETTERS.match(lower)
        if head and head.group(0) in O_CONSONANT_WORDS:
            return False
        return not lower.startswith(O_CONSONANT_PREFIXES)

    if initial == "u":
        if lower.startswith(YOO_EXCEPTIONS):
            return True
        return not lower.startswith(YOO_PREFIXES)

    if initial == "y":
        # "yttrium" leads with a vowel; "yellow" does not.
        return len(lower) > 1 and lower[1].isalpha() and lower[1] not in VOWEL_LETTERS

    if initial == "h":
        return lower.startswith(SILENT_H_PREFIXES)

    return False


def indefinite_article(word: str, capitalize: bool = False) -> str:
    """Pick "a" or "an" for *word*."""
    article = "an" if starts_with_vowel_sound(word) else "a"
    return article.capitalize() if capitalize else article
