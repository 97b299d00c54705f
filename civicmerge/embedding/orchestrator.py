"""Bounded-concurrency embedding of problem records."""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..errors import EmbeddingStageError
from ..models import ProblemRecord
from .provider import EmbeddingProvider

log = logging.getLogger(__name__)


def problem_text(problem: ProblemRecord) -> str:
    """Canonical text of a problem: title and description, space separated."""
    parts = [problem.title, problem.description]
    return " ".join(part for part in parts if part)


class EmbeddingOrchestrator:
    """Embed problems through a provider with a cap on in-flight calls."""

    def __init__(self, provider: EmbeddingProvider, concurrency_limit: int = 5) -> None:
        """
        Initialize orchestrator.

        Args:
            provider: Embedding provider
            concurrency_limit: Max provider calls in flight at once
        """
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.provider = provider
        self.concurrency_limit = concurrency_limit

    async def embed_problems(self, problems: Sequence[ProblemRecord]) -> List[List[float]]:
        """
        Embed every problem.

        All or nothing: the first failed call cancels the calls still in
        flight and fails the whole batch.

        Returns:
            Vectors index-aligned with ``problems``

        Raises:
            EmbeddingStageError: if any call fails or dimensions disagree
        """
        if not problems:
            return []

        semaphore = asyncio.Semaphore(self.concurrency_limit)

        async def embed_with_semaphore(problem: ProblemRecord) -> List[float]:
            text = problem_text(problem)
            async with semaphore:
                try:
                    return await self.provider.embed(text)
                except Exception as e:
                    raise EmbeddingStageError.for_problem(problem.id, text, e) from e

        tasks = [asyncio.ensure_future(embed_with_semaphore(p)) for p in problems]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        self._check_dimensions(problems, vectors)
        log.info("Embedded %d problems", len(vectors))
        return [[float(x) for x in v] for v in vectors]

    def _check_dimensions(
        self,
        problems: Sequence[ProblemRecord],
        vectors: Sequence[Sequence[float]],
    ) -> None:
        expected = len(vectors[0])
        for problem, vector in zip(problems, vectors):
            if len(vector) != expected:
                raise EmbeddingStageError(
                    f"Embedding stage failed: problem {problem.id} has dimension "
                    f"{len(vector)}, expected {expected}",
                    problem_id=problem.id,
                )

    async def embed_with_timeout(
        self,
        problems: Sequence[ProblemRecord],
        timeout: Optional[float] = None,
    ) -> List[List[float]]:
        """Embed problems, aborting the whole stage after ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(self.embed_problems(problems), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingStageError(
                f"Embedding stage timed out after {timeout}s"
            ) from e

    def embed_problems_sync(
        self,
        problems: Sequence[ProblemRecord],
        timeout: Optional[float] = None,
    ) -> List[List[float]]:
        """Synchronous wrapper for embed_with_timeout."""
        return asyncio.run(self.embed_with_timeout(problems, timeout))
