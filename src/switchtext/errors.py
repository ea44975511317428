"""Error taxonomy for directive expansion.

Every failure carries the offending text fragment so the caller can show
it next to an error marker.  The engine never recovers from these on its
own.
"""

from __future__ import annotations


class ExpansionError(Exception):
    """Base class for every error raised while expanding text."""

    def __init__(self, message: str, fragment: str = "") -> None:
        super().__init__(message)
        self.fragment = fragment

    def __str__(self) -> str:
        message = super().__str__()
        if self.fragment:
            return f"{message}: {self.fragment!r}"
        return message


class MalformedCondition(ExpansionError):
    """Condition text does not match the grammar of its opcode."""


class UnknownOpcode(ExpansionError):
    """Opcode outside the fixed set."""


class UnresolvedNamedReference(ExpansionError):
    """A named container or context could not be mapped to an id."""


class UnsupportedCrossContextAccess(ExpansionError):
    """The state provider cannot address self slots outside the basics."""


class ExpansionDivergence(ExpansionError):
    """Pass ceiling reached with directives still present."""
