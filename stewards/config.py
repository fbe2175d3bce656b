from __future__ import annotations
"""
stewards.config: configuration for the governance engine

Covers:
- Veto window and action cooldown lengths (seconds)
- Compatibility switches for the two known quirks of the membership and
  proposal tables (handle squatting on veto, veto of an unknown proposal)
- Founding members admitted at genesis

Environment overrides (all optional; defaults give the classic guild rules):

  # Windows (seconds)
  STEWARDS_VETO_WINDOW_SECONDS=604800
  STEWARDS_ACTION_COOLDOWN_SECONDS=604800

  # Compatibility switches (1/0, true/false, yes/no)
  STEWARDS_RELEASE_HANDLE_ON_VETO=0
  STEWARDS_REQUIRE_EXISTING_PROPOSAL=0

You can also load from a JSON or YAML file via
`STEWARDS_CONFIG_FILE=/path/to/config.(json|yaml|yml)`. File values override
defaults; environment overrides the file. Founders can only come from a file:

  founders:
    - principal: "0x1111111111111111111111111111111111111111"
      handle: "alice"
"""


import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# One week in seconds; both the veto window and the action cooldown.
ONE_WEEK = 7 * 24 * 60 * 60


# -------------------------- Data classes --------------------------


@dataclass
class WindowConfig:
    """Time windows in seconds."""
    veto_window_seconds: int = ONE_WEEK        # provisional period, veto window, claim delay
    action_cooldown_seconds: int = ONE_WEEK    # shared sponsor/propose budget

    def validate(self) -> None:
        if self.veto_window_seconds <= 0:
            raise ValueError("veto_window_seconds must be positive.")
        if self.action_cooldown_seconds < 0:
            raise ValueError("action_cooldown_seconds must be non-negative.")


@dataclass
class CompatConfig:
    """
    Switches between the classic guild rules and the
    corrected behaviour.

    - release_handle_on_veto: when False a vetoed member's handle stays taken
      forever; when True it becomes available again.
    - require_existing_proposal: when False vetoing an unknown id is evaluated
      against the all-zero default record; when True it raises
      ProposalNotFound.
    """
    release_handle_on_veto: bool = False
    require_existing_proposal: bool = False

    def validate(self) -> None:
        for name in ("release_handle_on_veto", "require_existing_proposal"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean.")


@dataclass
class Founder:
    """A member admitted at genesis (full from the start)."""
    principal: str
    handle: str

    def validate(self) -> None:
        if not self.principal:
            raise ValueError("founder principal must be set.")
        if not self.handle:
            raise ValueError("founder handle must be set.")


@dataclass
class GuildConfig:
    """Top-level configuration container."""
    windows: WindowConfig = field(default_factory=WindowConfig)
    compat: CompatConfig = field(default_factory=CompatConfig)
    founders: List[Founder] = field(default_factory=list)

    def validate(self) -> None:
        self.windows.validate()
        self.compat.validate()
        seen = set()
        for f in self.founders:
            f.validate()
            key = f.principal.lower()
            if key in seen:
                raise ValueError(f"duplicate founder principal {f.principal!r}.")
            seen.add(key)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    s = v.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"Invalid bool for {name}: {v!r}")


def from_env(base: Optional[GuildConfig] = None, prefix: str = "STEWARDS_") -> GuildConfig:
    """
    Build a GuildConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or GuildConfig()

    new_cfg = GuildConfig(
        windows=WindowConfig(
            veto_window_seconds=_getenv_int(
                f"{prefix}VETO_WINDOW_SECONDS", cfg.windows.veto_window_seconds
            ),
            action_cooldown_seconds=_getenv_int(
                f"{prefix}ACTION_COOLDOWN_SECONDS", cfg.windows.action_cooldown_seconds
            ),
        ),
        compat=CompatConfig(
            release_handle_on_veto=_getenv_bool(
                f"{prefix}RELEASE_HANDLE_ON_VETO", cfg.compat.release_handle_on_veto
            ),
            require_existing_proposal=_getenv_bool(
                f"{prefix}REQUIRE_EXISTING_PROPOSAL", cfg.compat.require_existing_proposal
            ),
        ),
        founders=list(cfg.founders),
    )
    new_cfg.validate()
    return new_cfg


def from_dict(data: Dict[str, Any]) -> GuildConfig:
    """Build a GuildConfig from a plain mapping (file contents, snapshots)."""
    windows = data.get("windows") or {}
    compat = data.get("compat") or {}

    cfg = GuildConfig(
        windows=WindowConfig(
            veto_window_seconds=int(windows.get("veto_window_seconds", ONE_WEEK)),
            action_cooldown_seconds=int(windows.get("action_cooldown_seconds", ONE_WEEK)),
        ),
        compat=CompatConfig(
            release_handle_on_veto=compat.get("release_handle_on_veto", False),
            require_existing_proposal=compat.get("require_existing_proposal", False),
        ),
        founders=[
            Founder(principal=str(f["principal"]), handle=str(f["handle"]))
            for f in (data.get("founders") or [])
        ],
    )
    cfg.validate()
    return cfg


def from_file(path: str | os.PathLike[str]) -> GuildConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping at the top level.")
    return from_dict(data)


def load() -> GuildConfig:
    """
    Load configuration using the following precedence:
      1) File at $STEWARDS_CONFIG_FILE (JSON/YAML)
      2) Environment variables (STEWARDS_*), applied on top of defaults or file values
    """
    file_path = os.getenv("STEWARDS_CONFIG_FILE")
    base = from_file(file_path) if file_path else GuildConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[GuildConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "ONE_WEEK",
    "WindowConfig",
    "CompatConfig",
    "Founder",
    "GuildConfig",
    "from_env",
    "from_dict",
    "from_file",
    "load",
    "pretty",
]
