"""Tests for configuration loading and storage path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from strata.config import HotConfig, ModelsConfig, StrataConfig, get_config, load_config_from_file
from strata.models.schemas import ModelTier
from strata.storage.path_resolver import StoragePathResolver


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's .env and STRATA_* variables out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("STRATA_MODE", "STRATA_WARM_PATH", "STRATA_COLD_PATH", "STRATA_DATA_PATH", "STRATA_ENV"):
        monkeypatch.delenv(name, raising=False)


class TestStrataConfig:
    """Test suite for StrataConfig."""

    def test_defaults(self) -> None:
        config = StrataConfig()

        assert config.mode == "lite"
        assert config.hot.token_budget == 100_000
        assert config.hot.token_ceiling == 80_000
        assert config.hot.keep_recent == 10
        assert config.hot.history_window == 20
        assert config.warm.top_k == 3
        assert config.cold.top_k == 2
        assert config.cold.write_attempts == 3
        assert config.context.tier_timeout_seconds == 5.0
        assert config.cache.ttl_seconds == 3600
        assert config.plugins.enabled == ["cost-tracker"]

    def test_default_models(self) -> None:
        """Test per-tier sampling settings."""
        models = ModelsConfig()

        assert models.for_tier(ModelTier.FAST).temperature == 0.7
        assert models.for_tier(ModelTier.BALANCED).max_output_tokens == 8192
        assert models.for_tier(ModelTier.DEEP).temperature == 0.3
        assert models.for_tier(ModelTier.DEEP).max_output_tokens == 32768
        assert models.summary_model == models.balanced

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test STRATA_* variables, nested with __, override defaults."""
        monkeypatch.setenv("STRATA_MODE", "standard")
        monkeypatch.setenv("STRATA_HOT__TOKEN_CEILING", "1000")
        monkeypatch.setenv("STRATA_MODELS__DEEP__NAME", "big-model")

        config = StrataConfig()

        assert config.mode == "standard"
        assert config.hot.token_ceiling == 1000
        assert config.hot.token_budget == 100_000
        assert config.models.deep.name == "big-model"

    def test_ceiling_above_budget_rejected(self) -> None:
        with pytest.raises(ValidationError, match="token_ceiling"):
            HotConfig(token_budget=1000, token_ceiling=2000)

    def test_cold_needs_at_least_two_attempts(self) -> None:
        """Test cold writes always get at least one retry."""
        with pytest.raises(ValidationError):
            StrataConfig(cold={"write_attempts": 1})

    def test_paths_resolved(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("STRATA_WARM_PATH", str(tmp_path / "w.duckdb"))

        config = StrataConfig()

        assert config.warm.path == tmp_path / "w.duckdb"
        assert config.cold.path is not None
        assert config.cold.path.name == "cold.duckdb"


class TestConfigFile:
    """Test suite for YAML config loading."""

    def test_get_config_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "strata.yaml"
        config_file.write_text(
            "mode: standard\n"
            "hot:\n"
            "  token_ceiling: 5000\n"
            "  keep_recent: 4\n"
            "models:\n"
            "  fast:\n"
            "    name: tiny\n"
            "plugins:\n"
            "  enabled: [cost-tracker, analytics]\n"
        )

        config = get_config(config_file)

        assert config.mode == "standard"
        assert config.hot.token_ceiling == 5000
        assert config.hot.keep_recent == 4
        assert config.models.fast.name == "tiny"
        assert config.plugins.enabled == ["cost-tracker", "analytics"]

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert load_config_from_file(tmp_path / "missing.yaml") == {}
        assert get_config(tmp_path / "missing.yaml").mode == "lite"

    def test_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config_from_file(config_file) == {}

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config_from_file(config_file)

    def test_no_path(self) -> None:
        assert get_config().mode == "lite"


class TestStoragePathResolver:
    """Test suite for StoragePathResolver."""

    def test_test_environment(self) -> None:
        resolver = StoragePathResolver(env="test")

        assert resolver.base_path == Path("/tmp/strata/test")
        assert resolver.get_warm_store_path() == Path("/tmp/strata/test/warm/warm.duckdb")
        assert resolver.get_cold_store_path() == Path("/tmp/strata/test/cold/cold.duckdb")

    def test_container_environment(self) -> None:
        assert StoragePathResolver(env="container").base_path == Path("/data/strata")

    def test_data_path_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("STRATA_DATA_PATH", str(tmp_path))

        assert StoragePathResolver(env="local").base_path == tmp_path

    def test_ensure_directories(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("STRATA_DATA_PATH", str(tmp_path))

        StoragePathResolver().ensure_directories()

        assert (tmp_path / "warm").is_dir()
        assert (tmp_path / "cold").is_dir()
