"""Problem store interface and in-memory implementation."""

import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ProblemStoreError
from ..models import MergeAuditRecord, MergeRun, ProblemRecord


class ProblemStore(ABC):
    """Where problems come from and where merge decisions go."""

    @abstractmethod
    def fetch_problems(self, include_merged: bool = False) -> List[ProblemRecord]:
        """
        Fetch the problems to deduplicate.

        Args:
            include_merged: Also return problems that were already merged

        Raises:
            ProblemStoreError: if the store cannot be read
            ProblemValidationError: if a row fails validation
        """
        pass

    @abstractmethod
    def mark_merged(self, member_id: str, master_id: str) -> None:
        """Point ``member_id`` at ``master_id``."""
        pass

    @abstractmethod
    def record_merge(self, audit: MergeAuditRecord) -> None:
        """Append a merge audit row."""
        pass

    def start_run(self, run: MergeRun) -> None:
        """Record that a run has started."""

    def finish_run(self, run: MergeRun) -> None:
        """Record the final status of a run."""


class InMemoryProblemStore(ProblemStore):
    """Problem store backed by plain Python objects."""

    def __init__(self, problems: Optional[Iterable[Any]] = None) -> None:
        """
        Initialize in-memory store.

        Args:
            problems: ProblemRecord instances or raw row dicts
        """
        self._problems: Dict[str, ProblemRecord] = {}
        for problem in problems or []:
            if not isinstance(problem, ProblemRecord):
                problem = ProblemRecord.from_row(problem)
            self._problems[problem.id] = problem

        self.audits: List[MergeAuditRecord] = []
        self.runs: Dict[str, MergeRun] = {}

    @property
    def problems(self) -> List[ProblemRecord]:
        """All stored problems in insertion order."""
        return list(self._problems.values())

    def get(self, problem_id: str) -> ProblemRecord:
        try:
            return self._problems[problem_id]
        except KeyError:
            raise ProblemStoreError(f"Problem not found: {problem_id}")

    def fetch_problems(self, include_merged: bool = False) -> List[ProblemRecord]:
        return [
            p.model_copy()
            for p in self._problems.values()
            if include_merged or p.merged_into is None
        ]

    def mark_merged(self, member_id: str, master_id: str) -> None:
        problem = self.get(member_id)
        self._problems[member_id] = problem.model_copy(update={"merged_into": master_id})

    def record_merge(self, audit: MergeAuditRecord) -> None:
        self.audits.append(audit)

    def start_run(self, run: MergeRun) -> None:
        self.runs[run.id] = copy.deepcopy(run)

    def finish_run(self, run: MergeRun) -> None:
        self.runs[run.id] = copy.deepcopy(run)


def load_problems_file(path: Path) -> List[ProblemRecord]:
    """
    Load problems from a JSON file.

    The file holds either a list of problem objects or ``{"problems": [...]}``.
    """
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("problems", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of problems in {path}")

    return [ProblemRecord.from_row(row) for row in data]
