"""Merge audit model."""

from datetime import datetime

from pydantic import Field

from .base import DBModel


class MergeAuditRecord(DBModel):
    """Append-only evidence of an applied merge."""

    master_problem_id: str = Field(..., description="Surviving master problem")
    merged_problem_id: str = Field(..., description="Problem merged into the master")
    merged_by: str = Field(..., description="Actor that performed the merge")
    run_id: str = Field(..., description="Deduplication run that produced the merge")
    reason: str = Field(..., description="Why the records were merged")
    created_at: datetime = Field(..., description="When the merge was applied")
