"""Deduplication run orchestration."""

from .orchestrator import (
    DeduplicationPipeline,
    DeduplicationSettings,
    PipelineStage,
    print_report_summary,
    save_report,
)

__all__ = [
    "DeduplicationPipeline",
    "DeduplicationSettings",
    "PipelineStage",
    "print_report_summary",
    "save_report",
]
