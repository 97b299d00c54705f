"""Data models for civicmerge."""

from .merge import MergeAuditRecord
from .problem import ProblemRecord
from .run import MergeRun

__all__ = ["MergeAuditRecord", "MergeRun", "ProblemRecord"]
