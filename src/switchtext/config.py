"""Tiered configuration for SwitchText.

Resolution order (later overrides earlier):
  1. Built-in defaults
  2. Global user config:  ~/.switchtext/config.json
  3. Project config:      .switchtext.config.json (searched cwd → parents)
  4. Explicit --config file (YAML or JSON)
  5. CLI flags
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

GLOBAL_DIR = Path.home() / ".switchtext"
GLOBAL_CONFIG = GLOBAL_DIR / "config.json"
PROJECT_CONFIG_NAME = ".switchtext.config.json"


@dataclass
class MacroConfig:
    """Resolved engine configuration."""

    escape_char: str = "\\"
    max_passes: Optional[int] = None
    grammar: bool = True

    # Provenance tracking (which files contributed)
    _global_path: Optional[Path] = field(default=None, repr=False)
    _project_path: Optional[Path] = field(default=None, repr=False)
    _explicit_path: Optional[Path] = field(default=None, repr=False)

    def apply(self, data: Dict[str, Any]) -> None:
        """Merge a raw config dict into this object."""
        if "escape_char" in data:
            escape = str(data["escape_char"])
            if len(escape) != 1:
                raise ValueError(f"escape_char must be a single character, got {escape!r}")
            self.escape_char = escape
        if "max_passes" in data:
            raw = data["max_passes"]
            self.max_passes = None if raw is None else int(raw)
        if "grammar" in data:
            self.grammar = bool(data["grammar"])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MacroConfig":
        config = cls()
        config.apply(data)
        return config


def _find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Walk from *start* up to the filesystem root looking for project config."""
    current = (start or Path.cwd()).resolve()
    for _ in range(50):  # safety limit
        candidate = current / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _load_json(path: Path) -> Dict[str, Any]:
    """Load a JSON file, returning {} if it cannot be read."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _read_explicit(path: Path) -> Dict[str, Any]:
    """Read an explicit config file; YAML by suffix, JSON otherwise."""
    if path.suffix in (".yaml", ".yml"):
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config files. "
                "Install it with: pip install pyyaml"
            )
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def load_config(
    project_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
    global_config: Optional[Path] = None,
) -> MacroConfig:
    """Load and merge the configuration tiers.

    Parameters
    ----------
    project_dir : Path, optional
        Starting directory for project config search (defaults to cwd).
    config_path : Path, optional
        Explicit ``--config`` file; YAML when the suffix says so, else JSON.
        Unlike the global and project tiers, errors here propagate.
    global_config : Path, optional
        Override for the global config location (tests).
    """
    config = MacroConfig()

    # 1. Global
    global_path = global_config or GLOBAL_CONFIG
    if global_path.is_file():
        config.apply(_load_json(global_path))
        config._global_path = global_path

    # 2. Project (overrides global)
    proj = _find_project_config(project_dir)
    if proj:
        config.apply(_load_json(proj))
        config._project_path = proj

    # 3. Explicit file
    if config_path is not None:
        config.apply(_read_explicit(config_path))
        config._explicit_path = config_path

    return config


def print_env(config: MacroConfig) -> str:
    """Return a formatted string describing the resolved configuration."""
    lines = []
    lines.append("SwitchText Environment")
    lines.append("=" * 50)
    lines.append("")
    lines.append(f"  Global config:   {config._global_path or '(not found)'}")
    lines.append(f"  Project config:  {config._project_path or '(not found)'}")
    lines.append(f"  Explicit config: {config._explicit_path or '(none)'}")
    lines.append("")
    lines.append(f"  Escape char:     {config.escape_char!r}")
    passes = 'text length' if config.max_passes is None else config.max_passes
    lines.append(f"  Max passes:      {passes}")
    lines.append(f"  Grammar:         {'on' if config.grammar else 'off'}")
    lines.append("")
    return "\n".join(lines)
