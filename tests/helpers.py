"""Test doubles and record builders."""

import asyncio
import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from civicmerge.embedding import EmbeddingProvider
from civicmerge.models import ProblemRecord

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

# Bengaluru city centre, and a point roughly 30 m away
BLR = (12.9716, 77.5946)
BLR_NEAR = (12.9718, 77.5948)


def unit(angle_degrees: float) -> List[float]:
    """2D unit vector at the given angle; cos(angle difference) is the similarity."""
    theta = math.radians(angle_degrees)
    return [math.cos(theta), math.sin(theta)]


def make_problem(
    problem_id: str,
    location: Optional[Sequence[float]] = BLR,
    votes: int = 0,
    minutes: int = 0,
    title: str = "",
    description: Optional[str] = None,
    merged_into: Optional[str] = None,
) -> ProblemRecord:
    """Build a problem; ``minutes`` offsets created_at from a fixed base time."""
    latitude, longitude = location if location is not None else (None, None)
    return ProblemRecord(
        id=problem_id,
        title=title or f"Problem {problem_id}",
        description=description,
        latitude=latitude,
        longitude=longitude,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        votes_count=votes,
        merged_into=merged_into,
    )


class FakeEmbeddingProvider(EmbeddingProvider):
    """Returns canned vectors by text and records how it was called."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        delays: Optional[Dict[str, float]] = None,
        fail_on: Optional[str] = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.delays = delays or {}
        self.fail_on = fail_on
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0.001))
            if self.fail_on is not None and text == self.fail_on:
                raise RuntimeError("provider unavailable")
            self.completed.append(text)
            return list(self.vectors.get(text, self.default))
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


