"""State provider protocol and an in-memory reference implementation.

The engine only ever *reads* game state.  Hosts implement
:class:`StateProvider` over their own switch/variable stores; the
:class:`InMemoryStateProvider` here backs the CLI, the TUI and the tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

# A slot is a numeric id or one of the lettered self-switch slots A-D.
Slot = Union[int, str]


@dataclass(frozen=True)
class ContextKey:
    """Addressable scope of self switches and self variables (map + event)."""

    container_id: int
    context_id: Optional[int] = None


@dataclass(frozen=True)
class AttributeSet:
    """Attributes of one party member that conditions can test."""

    actor_id: int
    class_id: int
    active_state_ids: Tuple[int, ...] = ()


@runtime_checkable
class StateProvider(Protocol):
    """Read-only view of host game state used by the evaluator.

    ``context`` is ``None`` for global switches and variables, or a
    :class:`ContextKey` for self slots.  Providers that can address
    numbered self slots, self variables and remote contexts set
    ``supports_cross_context`` to ``True``.
    """

    supports_cross_context: bool

    def get_flag(self, context: Optional[ContextKey], slot: Slot) -> bool: ...

    def get_variable(self, context: Optional[ContextKey], slot: Slot) -> int: ...

    def get_party_size(self) -> int: ...

    def get_core_party_size(self) -> int: ...

    def get_party_leader_attributes(self) -> Optional[AttributeSet]: ...

    def get_party_member_attribute_sets(self) -> List[AttributeSet]: ...

    def resolve_context_by_name(self, name: str) -> Optional[int]: ...

    def resolve_container_by_name(self, name: str) -> Optional[int]: ...

    def current_container_id(self) -> int: ...

    def current_context_id(self) -> Optional[int]: ...


def _normalize_slot(slot: Any) -> Slot:
    """Lettered slots are stored upper-case, numeric ones as int."""
    if isinstance(slot, str):
        text = slot.strip()
        if text.isdigit():
            return int(text)
        return text.upper()
    return int(slot)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


@dataclass
class InMemoryStateProvider:
    """Dictionary-backed state, loadable from a YAML or JSON state file."""

    switches: Dict[int, bool] = field(default_factory=dict)
    variables: Dict[int, int] = field(default_factory=dict)
    self_switches: Dict[Tuple[int, Optional[int], Slot], bool] = field(default_factory=dict)
    self_variables: Dict[Tuple[int, Optional[int], Slot], int] = field(default_factory=dict)
    party: List[AttributeSet] = field(default_factory=list)
    core_party_size: Optional[int] = None
    container_id: int = 1
    context_id: Optional[int] = None
    container_names: Dict[str, int] = field(default_factory=dict)
    context_names: Dict[str, int] = field(default_factory=dict)
    supports_cross_context: bool = True

    # ── StateProvider ─────────────────────────────────────────────

    def get_flag(self, context: Optional[ContextKey], slot: Slot) -> bool:
        slot = _normalize_slot(slot)
        if context is None:
            return bool(self.switches.get(slot, False))
        key = (context.container_id, context.context_id, slot)
        return bool(self.self_switches.get(key, False))

    def get_variable(self, context: Optional[ContextKey], slot: Slot) -> int:
        slot = _normalize_slot(slot)
        if context is None:
            return int(self.variables.get(slot, 0))
        key = (context.container_id, context.context_id, slot)
        return int(self.self_variables.get(key, 0))

    def get_party_size(self) -> int:
        return len(self.party)

    def get_core_party_size(self) -> int:
        if self.core_party_size is None:
            return len(self.party)
        return self.core_party_size

    def get_party_leader_attributes(self) -> Optional[AttributeSet]:
        return self.party[0] if self.party else None

    def get_party_member_attribute_sets(self) -> List[AttributeSet]:
        return list(self.party)

    def resolve_context_by_name(self, name: str) -> Optional[int]:
        return self.context_names.get(name)

    def resolve_container_by_name(self, name: str) -> Optional[int]:
        return self.container_names.get(name)

    def current_container_id(self) -> int:
        return self.container_id

    def current_context_id(self) -> Optional[int]:
        return self.context_id

    # ── Mutation (host side only) ─────────────────────────────────

    def set_flag(self, context: Optional[ContextKey], slot: Slot, value: bool) -> None:
        """Set a switch.  Never called by the engine itself."""
        slot = _normalize_slot(slot)
        if context is None:
            self.switches[slot] = bool(value)
        else:
            self.self_switches[(context.container_id, context.context_id, slot)] = bool(value)

    def set_variable(self, context: Optional[ContextKey], slot: Slot, value: int) -> None:
        slot = _normalize_slot(slot)
        if context is None:
            self.variables[slot] = int(value)
        else:
            self.self_variables[(context.container_id, context.context_id, slot)] = int(value)

    # ── Loading ───────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryStateProvider":
        """Build a provider from a parsed state file.

        JSON object keys are always strings, so ids are coerced to int.
        """
        current = data.get("current") or {}

        def _self_entries(raw: Any, cast) -> Dict[Tuple[int, Optional[int], Slot], Any]:
            entries = {}
            for entry in raw or []:
                container = int(entry.get("container", current.get("container", 1)))
                context = _optional_int(entry.get("context", current.get("context")))
                slot = _normalize_slot(entry["slot"])
                entries[(container, context, slot)] = cast(entry.get("value", 0))
            return entries

        party = [
            AttributeSet(
                actor_id=int(member.get("actor", 0)),
                class_id=int(member.get("class", 0)),
                active_state_ids=tuple(int(s) for s in member.get("states", [])),
            )
            for member in data.get("party", []) or []
        ]

        return cls(
            switches={int(k): bool(v) for k, v in (data.get("switches") or {}).items()},
            variables={int(k): int(v) for k, v in (data.get("variables") or {}).items()},
            self_switches=_self_entries(data.get("self_switches"), bool),
            self_variables=_self_entries(data.get("self_variables"), int),
            party=party,
            core_party_size=_optional_int(data.get("core_party_size")),
            container_id=int(current.get("container", 1)),
            context_id=_optional_int(current.get("context")),
            container_names={str(k): int(v) for k, v in (data.get("containers") or {}).items()},
            context_names={str(k): int(v) for k, v in (data.get("contexts") or {}).items()},
            supports_cross_context=bool(data.get("cross_context", True)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryStateProvider":
        """Load state from a YAML file."""
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML state files. "
                "Install it with: pip install pyyaml"
            )
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryStateProvider":
        """Load state from a JSON file."""
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path) -> "InMemoryStateProvider":
        """Dispatch on the file suffix (``.yaml``/``.yml`` or JSON)."""
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        return cls.from_json(path)
