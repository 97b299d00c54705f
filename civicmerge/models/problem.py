"""Problem record model."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError, field_validator

from ..errors import ProblemValidationError
from .base import DBModel


class ProblemRecord(DBModel):
    """A citizen-reported problem as seen by the deduplication engine."""

    id: str = Field(..., min_length=1, description="Problem identifier")
    title: str = Field("", description="Problem title")
    description: Optional[str] = Field(None, description="Free-text description")
    latitude: Optional[float] = Field(None, description="Latitude in degrees", ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, description="Longitude in degrees", ge=-180.0, le=180.0)
    created_at: datetime = Field(..., description="When the problem was reported")
    votes_count: int = Field(0, description="Number of citizen votes", ge=0)
    merged_into: Optional[str] = Field(None, description="Master problem this record was merged into")

    @field_validator("id", "merged_into", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Accept UUIDs and integers as identifiers."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("votes_count", mode="before")
    @classmethod
    def default_votes(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def has_location(self) -> bool:
        """Whether both coordinates are known."""
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProblemRecord":
        """
        Validate a raw store row.

        Raises:
            ProblemValidationError: if the row is missing required fields or
                carries out-of-range values
        """
        try:
            return cls.model_validate(row)
        except ValidationError as e:
            row_id = row.get("id") if isinstance(row, dict) else None
            raise ProblemValidationError(
                str(row_id) if row_id is not None else None,
                "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                ),
            ) from e
