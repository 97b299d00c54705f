"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("civicmerge", description="Database name")
    user: str = Field("civicmerge", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration."""

    provider: str = Field("openai", description="Embedding provider (openai, ollama, mock)")
    model: str = Field("text-embedding-3-small", description="Embedding model name")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for the provider API")
    concurrency_limit: int = Field(5, description="Max in-flight embedding calls", ge=1, le=64)
    timeout_seconds: Optional[float] = Field(
        None, description="Abort the embedding stage after this many seconds", gt=0
    )

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate provider name."""
        v = v.lower()
        if v not in ("openai", "ollama", "mock"):
            raise ValueError(f"Unknown embedding provider: {v}")
        return v


class ClusteringConfig(BaseModel):
    """Clustering thresholds."""

    spatial_eps_meters: float = Field(500.0, description="Max neighbor distance in meters", ge=0.0)
    similarity_threshold: float = Field(0.8, description="Min neighbor cosine similarity", ge=-1.0, le=1.0)
    min_samples: int = Field(2, description="Min neighborhood size (including the point)", ge=1)


class MergeConfig(BaseModel):
    """Merge application settings."""

    apply_merges: bool = Field(False, description="Persist merges instead of only suggesting them")
    merged_by: str = Field("merge-function", description="Actor recorded on audit rows")
    include_merged: bool = Field(False, description="Also cluster records that were already merged")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level for civicmerge loggers")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
