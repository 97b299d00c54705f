"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ClusteringConfig, ConfigModel, MergeConfig

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "civicmerge" / "config.yaml"

# Environment overrides understood by the deployed merge function
ENV_SPATIAL_EPS = "MERGE_SPATIAL_EPS_METERS"
ENV_SIMILARITY = "MERGE_SIMILARITY_THRESHOLD"
ENV_MIN_SAMPLES = "MERGE_MIN_SAMPLES"
ENV_APPLY_MERGES = "APPLY_MERGES"
ENV_MERGED_BY = "MERGE_RUN_BY"


class Config:
    """Configuration manager."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[ConfigModel] = None,
    ) -> None:
        """
        Initialize config manager.

        Args:
            config_path: YAML file to load lazily
            config: Already-built config; skips loading the file
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        self.config_path = config_path
        self._config: Optional[ConfigModel] = config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config

    def get_embedding_config(self) -> Dict[str, Any]:
        """Get embedding provider configuration dict."""
        embedding_config = self.config.embedding.model_dump()

        # Handle API key from environment if specified
        if not embedding_config.get("api_key") and embedding_config.get("api_key_env"):
            api_key = os.environ.get(embedding_config["api_key_env"])
            if api_key:
                embedding_config["api_key"] = api_key

        return embedding_config

    def get_clustering_config(self) -> ClusteringConfig:
        """Get clustering thresholds with environment overrides applied."""
        values = self.config.clustering.model_dump()
        overrides = {
            "spatial_eps_meters": os.environ.get(ENV_SPATIAL_EPS),
            "similarity_threshold": os.environ.get(ENV_SIMILARITY),
            "min_samples": os.environ.get(ENV_MIN_SAMPLES),
        }
        values.update({k: v for k, v in overrides.items() if v not in (None, "")})

        try:
            return ClusteringConfig(**values)
        except ValidationError as e:
            raise ValueError(f"Invalid clustering override: {e}")

    def get_merge_config(self) -> MergeConfig:
        """Get merge settings with environment overrides applied."""
        values = self.config.merge.model_dump()

        apply_env = os.environ.get(ENV_APPLY_MERGES)
        if apply_env:
            values["apply_merges"] = apply_env.strip().lower() == "true"

        merged_by = os.environ.get(ENV_MERGED_BY)
        if merged_by:
            values["merged_by"] = merged_by

        return MergeConfig(**values)


def load_config(config_path: Path) -> ConfigModel:
    """
    Load and validate a YAML config file.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the file is not YAML or fails validation
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration in {config_path}: expected a mapping")

    try:
        return ConfigModel.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}")


# Secrets come from the environment and are never written back
SECRET_FIELDS = {"postgres": {"password"}, "embedding": {"api_key"}}


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Write a config file, leaving out inline secrets."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude=SECRET_FIELDS)
    config_path.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
