"""Run models for tracking deduplication executions."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from .base import DBModel


class MergeRun(DBModel):
    """Deduplication run model."""

    id: str = Field(..., description="Run identifier")
    started_at: datetime = Field(..., description="When the run started")
    finished_at: Optional[datetime] = Field(None, description="When the run finished")
    status: str = Field("running", description="Run status (success, failed, running)")
    params_json: Optional[Dict[str, Any]] = Field(None, description="Parameters the run used")
    stats_json: Optional[Dict[str, Any]] = Field(None, description="Aggregate run statistics")
