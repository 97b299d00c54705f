"""Embedding provider interface and implementations."""

import hashlib
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI

from ..errors import ConfigurationError

log = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Embed a piece of text.

        Args:
            text: Problem text, possibly empty

        Returns:
            Embedding vector
        """
        pass

    async def aclose(self) -> None:
        """Release any network resources."""


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI implementation of the embedding provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Embedding model to use
            base_url: Custom base URL (for testing or compatible gateways)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.api_calls = 0

    async def embed(self, text: str) -> List[float]:
        # The API rejects empty input
        self.api_calls += 1
        response = await self.client.embeddings.create(
            model=self.model,
            input=text if text else " ",
        )
        return list(response.data[0].embedding)

    async def aclose(self) -> None:
        await self.client.close()


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by a local Ollama server."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.model = model
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def embed(self, text: str) -> List[float]:
        response = await self.client.post(
            "/api/embeddings",
            json={"model": self.model, "prompt": text},
        )
        response.raise_for_status()

        embedding = response.json().get("embedding")
        if not embedding:
            raise ValueError(f"Ollama returned no embedding for model {self.model}")
        return [float(x) for x in embedding]

    async def aclose(self) -> None:
        await self.client.aclose()


class MockEmbeddingProvider(EmbeddingProvider):
    """Deterministic offline provider based on hashed word counts."""

    def __init__(self, dimensions: int = 64) -> None:
        """Initialize mock provider."""
        self.dimensions = dimensions
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)

        vector = [0.0] * self.dimensions
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimensions] += 1.0

        norm = math.sqrt(sum(x * x for x in vector))
        if norm == 0:
            return vector
        return [x / norm for x in vector]


def get_embedding_provider(embedding_config: Dict[str, Any]) -> EmbeddingProvider:
    """
    Build the configured embedding provider.

    Args:
        embedding_config: Settings from ``Config.get_embedding_config``

    Raises:
        ConfigurationError: if the provider is unknown or lacks credentials
    """
    provider = (embedding_config.get("provider") or "openai").lower()
    model = embedding_config.get("model")

    if provider == "openai":
        api_key = embedding_config.get("api_key")
        if not api_key:
            raise ConfigurationError(
                "No OpenAI API key found. Set OPENAI_API_KEY or embedding.api_key."
            )
        return OpenAIEmbeddingProvider(
            api_key=api_key,
            model=model or "text-embedding-3-small",
            base_url=embedding_config.get("base_url"),
        )

    if provider == "ollama":
        return OllamaEmbeddingProvider(
            model=model or "nomic-embed-text",
            base_url=embedding_config.get("base_url"),
        )

    if provider == "mock":
        log.warning("Using mock embedding provider; clusters reflect word overlap only")
        return MockEmbeddingProvider()

    raise ConfigurationError(f"Unknown embedding provider: {provider}")
