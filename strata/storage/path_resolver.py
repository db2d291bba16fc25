"""Storage path resolver for Strata.

Resolves where the on-disk tiers (warm and cold vector indexes) live,
following XDG Base Directory conventions for local use, a dedicated volume
inside containers, and an ephemeral location under tests.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

IS_WINDOWS: Final = sys.platform == "win32"
IS_MACOS: Final = sys.platform == "darwin"


class StoragePathResolver:
    """Resolves storage paths based on deployment environment."""

    def __init__(self, env: str | None = None) -> None:
        """Initialize path resolver.

        Args:
            env: Force specific environment ('local', 'container', 'test')
        """
        self.env = env or self._detect_environment()
        self.base_path = self._resolve_base_path()

    def _detect_environment(self) -> str:
        """Auto-detect deployment environment.

        Returns:
            Environment type: 'container', 'local' or 'test'
        """
        if env_var := os.getenv("STRATA_ENV"):
            return env_var

        if Path("/.dockerenv").exists():
            return "container"

        if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
            return "test"

        return "local"

    def _resolve_base_path(self) -> Path:
        """Resolve base storage path by environment."""
        if override := os.getenv("STRATA_DATA_PATH"):
            return Path(override)

        if self.env == "container":
            return Path("/data/strata")

        if self.env == "test":
            return Path("/tmp") / "strata" / "test"

        if self.env != "local":
            logger.warning(f"Unknown environment '{self.env}', using local paths")

        return self._get_xdg_data_path()

    def _get_xdg_data_path(self) -> Path:
        """Get XDG data directory path."""
        if IS_WINDOWS:
            local_app_data = os.getenv("LOCALAPPDATA")
            if local_app_data:
                return Path(local_app_data) / "strata"
            return Path.home() / ".strata" / "data"

        xdg_data = os.getenv("XDG_DATA_HOME")
        if xdg_data:
            return Path(xdg_data) / "strata"

        if IS_MACOS:
            return Path.home() / "Library" / "Application Support" / "strata"
        return Path.home() / ".local" / "share" / "strata"

    def get_warm_store_path(self) -> Path:
        """Get warm tier index path.

        Returns:
            Path to warm.duckdb file
        """
        if override := os.getenv("STRATA_WARM_PATH"):
            return Path(override)

        return self.base_path / "warm" / "warm.duckdb"

    def get_cold_store_path(self) -> Path:
        """Get cold tier index path.

        Returns:
            Path to cold.duckdb file
        """
        if override := os.getenv("STRATA_COLD_PATH"):
            return Path(override)

        return self.base_path / "cold" / "cold.duckdb"

    def ensure_directories(self) -> None:
        """Create the tier directories if they don't exist."""
        for directory in (
            self.get_warm_store_path().parent,
            self.get_cold_store_path().parent,
        ):
            directory.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Ensured directories exist: {self.base_path}")


def get_default_resolver() -> StoragePathResolver:
    """Get default path resolver instance."""
    return StoragePathResolver()
