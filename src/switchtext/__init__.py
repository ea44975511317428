"""SwitchText: conditional text directives for game dialogue.

Expands ``\\ON[cond]{true}{false}``-style directives against a host's game
state, then applies a small English grammar pass (articles, ordinals,
number words, case folding).
"""

from .config import MacroConfig, load_config
from .engine import ChoiceFilterResult, MacroEngine, expand, render
from .errors import (
    ExpansionDivergence,
    ExpansionError,
    MalformedCondition,
    UnknownOpcode,
    UnresolvedNamedReference,
    UnsupportedCrossContextAccess,
)
from .grammar import post_process
from .phonetics import indefinite_article, starts_with_vowel_sound
from .state import AttributeSet, ContextKey, InMemoryStateProvider, StateProvider

__all__ = [
    "AttributeSet",
    "ChoiceFilterResult",
    "ContextKey",
    "ExpansionDivergence",
    "ExpansionError",
    "InMemoryStateProvider",
    "MacroConfig",
    "MacroEngine",
    "MalformedCondition",
    "StateProvider",
    "UnknownOpcode",
    "UnresolvedNamedReference",
    "UnsupportedCrossContextAccess",
    "expand",
    "indefinite_article",
    "load_config",
    "post_process",
    "render",
    "starts_with_vowel_sound",
]
