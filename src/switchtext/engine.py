"""MacroEngine: the public entry point.

Typical host usage::

    engine = MacroEngine(provider)
    text = engine.render(r"Good \\ON[21]{evening}{day}, \\an \\NUMWORD[8]-foot troll.")

``expand`` resolves directives only; ``render`` also applies the grammar
post-processor.  Errors are raised as :class:`~switchtext.errors.ExpansionError`
subclasses; the recommended host policy is to show an error marker rather
than abort the surrounding dialogue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from switchtext.conditions import ConditionEvaluator
from switchtext.config import MacroConfig
from switchtext.expander import DirectiveExpander, decode_braces
from switchtext.grammar import post_process
from switchtext.operands import OperandResolver
from switchtext.state import ContextKey, StateProvider

logger = logging.getLogger(__name__)


@dataclass
class ChoiceFilterResult:
    """Choices left after dropping the empty ones.

    ``branch_indices[i]`` is the original index of ``choices[i]``, so a
    host can map the player's pick back to the branch it wrote.
    """

    choices: List[str] = field(default_factory=list)
    branch_indices: List[int] = field(default_factory=list)
    cancel_index: int = -1
    default_index: int = 0


class MacroEngine:
    """Expands conditional directives against a read-only state provider."""

    def __init__(
        self,
        provider: StateProvider,
        config: Optional[MacroConfig] = None,
    ) -> None:
        self.provider = provider
        self.config = config or MacroConfig()
        self.resolver = OperandResolver(provider)
        self.evaluator = ConditionEvaluator(provider, self.resolver)
        self.expander = DirectiveExpander(
            self.evaluator,
            escape_char=self.config.escape_char,
            max_passes=self.config.max_passes,
        )

    def current_context(self) -> ContextKey:
        return self.evaluator.current_context()

    def expand(self, text: str, context: Optional[ContextKey] = None) -> str:
        """Resolve every directive and decode brace escapes."""
        return self.expander.expand(text, context or self.current_context())

    def render(self, text: str, context: Optional[ContextKey] = None) -> str:
        """Expand, apply grammar transforms, then decode brace escapes."""
        escape = self.config.escape_char
        text = self.expander.expand_directives(text, context or self.current_context())
        if self.config.grammar:
            text = post_process(text, escape)
        return decode_braces(text, escape)

    def is_empty_after_expansion(self, text: str, context: Optional[ContextKey] = None) -> bool:
        """True if nothing but whitespace is left after expansion."""
        return not self.expand(text, context).strip()

    def filter_choices(
        self,
        choices: Sequence[str],
        cancel_index: int = -1,
        default_index: int = 0,
        context: Optional[ContextKey] = None,
    ) -> ChoiceFilterResult:
        """Drop choices that expand to nothing and shift the indices after them.

        Choice texts are returned unexpanded; the host renders them as
        usual.  Negative cancel/default indices (host sentinels such as
        "disallow") are left untouched.
        """
        context = context or self.current_context()
        kept: List[str] = []
        branches: List[int] = []
        removed: List[int] = []
        for index, choice in enumerate(choices):
            if self.is_empty_after_expansion(choice, context):
                logger.debug("Hiding empty choice %d: %r", index, choice)
                removed.append(index)
                continue
            kept.append(choice)
            branches.append(index)
        return ChoiceFilterResult(
            choices=kept,
            branch_indices=branches,
            cancel_index=cancel_index - sum(1 for i in removed if i < cancel_index),
            default_index=default_index - sum(1 for i in removed if i < default_index),
        )


def expand(text: str, provider: StateProvider, config: Optional[MacroConfig] = None) -> str:
    """One-shot :meth:`MacroEngine.expand`."""
    return MacroEngine(provider, config).expand(text)


def render(text: str, provider: StateProvider, config: Optional[MacroConfig] = None) -> str:
    """One-shot :meth:`MacroEngine.render`."""
    return MacroEngine(provider, config).render(text)
