"""Configuration management for civicmerge."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    ClusteringConfig,
    ConfigModel,
    EmbeddingConfig,
    LoggingConfig,
    MergeConfig,
    PostgresConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "ClusteringConfig",
    "DEFAULT_CONFIG_PATH",
    "EmbeddingConfig",
    "LoggingConfig",
    "MergeConfig",
    "PostgresConfig",
    "load_config",
    "save_config",
]
