"""Strata operational modes.

- Lite mode: in-memory tiers, hashing embedder, nothing to download
- Standard mode: DuckDB tiers on disk, sentence-transformers embeddings
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from strata.modes.base import BaseMode, ModeConfig
from strata.modes.lite import LiteMode
from strata.modes.standard import StandardMode

if TYPE_CHECKING:
    from strata.config import StrataConfig

# Mode registry
_MODE_REGISTRY: dict[str, type[BaseMode]] = {
    "lite": LiteMode,
    "standard": StandardMode,
}


def get_mode(mode_name: str, config: StrataConfig) -> BaseMode:
    """Get mode instance by name.

    Raises:
        ValueError: If mode name is not recognized
    """
    mode_class = _MODE_REGISTRY.get(mode_name.lower())
    if not mode_class:
        valid_modes = ", ".join(_MODE_REGISTRY.keys())
        raise ValueError(f"Unknown mode: {mode_name}. Valid modes: {valid_modes}")
    return mode_class(config=config)


def list_modes() -> list[str]:
    """List all available mode names."""
    return list(_MODE_REGISTRY.keys())


__all__ = [
    "BaseMode",
    "LiteMode",
    "ModeConfig",
    "StandardMode",
    "get_mode",
    "list_modes",
]
