"""Strata configuration management with environment variable overrides.

Priority order for configuration values:
1. YAML config file passed to ``get_config``
2. Environment variables (STRATA_*, nested with ``__``, e.g. STRATA_HOT__TOKEN_CEILING)
3. StoragePathResolver for paths
4. Pydantic defaults (lowest priority)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from strata.backends.base import ModelSpec
from strata.models.schemas import ModelTier
from strata.storage.path_resolver import StoragePathResolver

logger = logging.getLogger(__name__)


class HotConfig(BaseModel):
    """Hot tier configuration.

    Attributes:
        token_budget: Nominal context budget the ceiling is carved from
        token_ceiling: Estimated-token size that triggers summarization
        keep_recent: Exchanges kept verbatim after summarization
        history_window: Exchanges included in assembled context
    """

    token_budget: int = Field(default=100_000, gt=0)
    token_ceiling: int = Field(default=80_000, gt=0)
    keep_recent: int = Field(default=10, ge=0)
    history_window: int = Field(default=20, ge=0)

    @model_validator(mode="after")
    def check_ceiling(self) -> HotConfig:
        if self.token_ceiling > self.token_budget:
            raise ValueError("hot.token_ceiling must not exceed hot.token_budget")
        return self


class WarmConfig(BaseModel):
    """Warm tier configuration.

    Attributes:
        path: DuckDB database file (standard mode)
        top_k: Entries retrieved per turn
    """

    path: Path | None = None  # Resolved by model_validator
    top_k: int = Field(default=3, ge=0)

    @model_validator(mode="after")
    def resolve_paths(self) -> WarmConfig:
        if self.path is None:
            self.path = StoragePathResolver().get_warm_store_path()
        return self


class ColdConfig(BaseModel):
    """Cold tier configuration.

    Attributes:
        path: DuckDB database file (standard mode)
        top_k: Entries retrieved per turn
        write_attempts: Attempts per archival write (first try included)
    """

    path: Path | None = None  # Resolved by model_validator
    top_k: int = Field(default=2, ge=0)
    write_attempts: int = Field(default=3, ge=2)

    @model_validator(mode="after")
    def resolve_paths(self) -> ColdConfig:
        if self.path is None:
            self.path = StoragePathResolver().get_cold_store_path()
        return self


class EmbeddingConfig(BaseModel):
    """Embedding configuration.

    Attributes:
        backend: ``sentence-transformers`` or ``hashing``; unset picks the mode default
        model: sentence-transformers model name
        dimension: Vector dimensionality shared by both semantic tiers
    """

    backend: str | None = None
    model: str = "all-mpnet-base-v2"
    dimension: int = Field(default=768, gt=0)


class ModelsConfig(BaseModel):
    """Model specs per routing tier; ``summary`` compresses the hot buffer."""

    fast: ModelSpec = Field(default_factory=lambda: ModelSpec(name="fast", temperature=0.7, max_output_tokens=8192))
    balanced: ModelSpec = Field(
        default_factory=lambda: ModelSpec(name="balanced", temperature=0.7, max_output_tokens=8192)
    )
    deep: ModelSpec = Field(default_factory=lambda: ModelSpec(name="deep", temperature=0.3, max_output_tokens=32768))
    summary: ModelSpec | None = None

    def for_tier(self, tier: ModelTier) -> ModelSpec:
        return {ModelTier.FAST: self.fast, ModelTier.BALANCED: self.balanced, ModelTier.DEEP: self.deep}[tier]

    @property
    def summary_model(self) -> ModelSpec:
        return self.summary or self.balanced


class BackendConfig(BaseModel):
    """OpenAI-compatible chat backend connection."""

    base_url: str = "http://localhost:8000"
    api_key: str | None = None
    timeout_seconds: float = Field(default=120.0, gt=0)


class ContextConfig(BaseModel):
    """Context assembly configuration."""

    tier_timeout_seconds: float = Field(default=5.0, gt=0)


class CacheConfig(BaseModel):
    """World-knowledge cache configuration."""

    enabled: bool = True
    ttl_seconds: int = Field(default=3600, gt=0)


class PluginsConfig(BaseModel):
    """Built-in plugins enabled by the application, in registration order."""

    enabled: list[str] = Field(default_factory=lambda: ["cost-tracker"])
    summarize_interval: int = Field(default=20, gt=0)


class StrataConfig(BaseSettings):
    """Main Strata configuration.

    Attributes:
        mode: Operational mode (lite, standard)
        hot: Hot tier configuration
        warm: Warm tier configuration
        cold: Cold tier configuration
        embedding: Embedding configuration
        models: Model specs per routing tier
        backend: Chat backend connection
        context: Context assembly configuration
        cache: World cache configuration
        plugins: Built-in plugin selection
        environment: Deployment environment name
        otlp_endpoint: OTLP collector endpoint (tracing disabled when unset)
    """

    mode: str = "lite"

    hot: HotConfig = Field(default_factory=HotConfig)
    warm: WarmConfig = Field(default_factory=WarmConfig)
    cold: ColdConfig = Field(default_factory=ColdConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    environment: str = "development"
    otlp_endpoint: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        env_prefix="strata_",
        extra="ignore",
    )


def load_config_from_file(config_path: str | Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    A missing file yields an empty mapping; an unreadable or malformed one
    raises so a bad deployment config is not silently ignored.
    """
    path = Path(config_path).expanduser()
    if not path.exists():
        logger.warning(f"Config file not found: {config_path}")
        return {}

    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    logger.info(f"Loaded configuration from {config_path}")
    return config


def get_config(config_path: str | Path | None = None) -> StrataConfig:
    """Get configuration instance.

    Args:
        config_path: Optional path to YAML config file. Values from the file
            are passed as explicit settings; anything the file leaves out
            still comes from STRATA_* environment variables or defaults.
    """
    if config_path:
        return StrataConfig(**load_config_from_file(config_path))
    return StrataConfig()
