"""Persist merge plans through a problem store."""

import logging
from typing import List

import pendulum

from ..db.store import ProblemStore
from ..models import MergeAuditRecord
from .models import MergeOutcome, MergePlan

log = logging.getLogger(__name__)


class MergeApplier:
    """Apply merge actions one at a time, isolating failures per action."""

    def __init__(self, store: ProblemStore, merged_by: str, run_id: str, reason: str) -> None:
        """
        Initialize merge applier.

        Args:
            store: Problem store to mutate
            merged_by: Actor recorded on audit rows
            run_id: Run that produced the merges
            reason: Reason recorded on audit rows
        """
        self.store = store
        self.merged_by = merged_by
        self.run_id = run_id
        self.reason = reason

    def apply(self, plan: MergePlan) -> List[MergeOutcome]:
        """
        Apply every action of a plan.

        A failed update or audit write is reported on its own action and the
        remaining actions still run.
        """
        outcomes = []
        for action in plan.actions:
            try:
                self.store.mark_merged(action.member_id, action.master_id)
            except Exception as e:
                log.warning("Failed to merge %s into %s: %s", action.member_id, action.master_id, e)
                outcomes.append(
                    MergeOutcome(
                        member_id=action.member_id,
                        master_id=action.master_id,
                        success=False,
                        error=f"merge update failed: {e}",
                    )
                )
                continue

            audit = MergeAuditRecord(
                master_problem_id=action.master_id,
                merged_problem_id=action.member_id,
                merged_by=self.merged_by,
                run_id=self.run_id,
                reason=self.reason,
                created_at=pendulum.now("UTC"),
            )
            try:
                self.store.record_merge(audit)
            except Exception as e:
                log.warning("Failed to write audit for %s: %s", action.member_id, e)
                outcomes.append(
                    MergeOutcome(
                        member_id=action.member_id,
                        master_id=action.master_id,
                        success=False,
                        error=f"audit write failed: {e}",
                    )
                )
                continue

            outcomes.append(
                MergeOutcome(
                    member_id=action.member_id,
                    master_id=action.master_id,
                    success=True,
                    audit=audit,
                )
            )

        return outcomes
