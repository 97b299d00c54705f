"""Shared fixtures."""

import pytest

from civicmerge.db import InMemoryProblemStore

from .helpers import FakeEmbeddingProvider


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def store() -> InMemoryProblemStore:
    return InMemoryProblemStore()
