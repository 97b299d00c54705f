"""Exception hierarchy for civicmerge."""

from typing import Optional


class CivicMergeError(Exception):
    """Base class for all civicmerge errors."""


class ConfigurationError(CivicMergeError):
    """Raised when the configuration cannot produce a usable collaborator."""


class ProblemValidationError(CivicMergeError):
    """Raised when a problem row from the store fails validation."""

    def __init__(self, row_id: Optional[str], detail: str) -> None:
        self.row_id = row_id
        self.detail = detail
        super().__init__(f"Invalid problem record {row_id or '<no id>'}: {detail}")


class ProblemStoreError(CivicMergeError):
    """Raised when the problem store rejects a read or a write."""


class EmbeddingStageError(CivicMergeError):
    """Raised when the embedding stage fails; the whole run is aborted."""

    def __init__(
        self,
        message: str,
        problem_id: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        self.problem_id = problem_id
        self.text = text
        super().__init__(message)

    @classmethod
    def for_problem(cls, problem_id: str, text: str, cause: BaseException) -> "EmbeddingStageError":
        """Build the error for a single failed provider call."""
        preview = text if len(text) <= 80 else text[:77] + "..."
        return cls(
            f"Embedding stage failed for problem {problem_id} ({preview!r}): {cause}",
            problem_id=problem_id,
            text=text,
        )
