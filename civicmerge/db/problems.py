"""Postgres-backed problem store."""

import logging
from typing import Any, Dict, List

from psycopg.errors import DatabaseError

from ..errors import ProblemStoreError
from ..models import MergeAuditRecord, MergeRun, ProblemRecord
from .connection import get_connection
from .runs import RunManager
from .store import ProblemStore

log = logging.getLogger(__name__)


class PostgresProblemStore(ProblemStore):
    """Read problems from and write merges to Postgres."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        """
        Initialize Postgres store.

        Args:
            db_config: Connection settings (see ``Config.get_db_config``)
        """
        self.db_config = db_config
        self.run_manager = RunManager()

    def fetch_problems(self, include_merged: bool = False) -> List[ProblemRecord]:
        query = """
            SELECT
                id, title, description, latitude, longitude,
                votes_count, created_at, merged_into
            FROM problems
        """
        if not include_merged:
            query += " WHERE merged_into IS NULL"
        # Stable input order keeps clustering reproducible
        query += " ORDER BY created_at ASC, id ASC"

        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(query)
                    rows = cur.fetchall()
        except DatabaseError as e:
            raise ProblemStoreError(f"Failed to fetch problems: {e}") from e

        log.info("Fetched %d problems", len(rows))
        return [ProblemRecord.from_row(row) for row in rows]

    def mark_merged(self, member_id: str, master_id: str) -> None:
        with get_connection(self.db_config) as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE problems
                        SET merged_into = %s
                        WHERE id = %s
                        """,
                        (master_id, member_id),
                    )
                    if cur.rowcount == 0:
                        raise ProblemStoreError(f"Problem not found: {member_id}")
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def record_merge(self, audit: MergeAuditRecord) -> None:
        with get_connection(self.db_config) as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO problem_merges (
                            master_problem_id, merged_problem_id,
                            merged_by, run_id, reason, created_at
                        ) VALUES (%s, %s, %s, %s, %s, %s)
                        """,
                        (
                            audit.master_problem_id,
                            audit.merged_problem_id,
                            audit.merged_by,
                            audit.run_id,
                            audit.reason,
                            audit.created_at,
                        ),
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def start_run(self, run: MergeRun) -> None:
        try:
            with get_connection(self.db_config) as conn:
                self.run_manager.create_run(conn, run)
        except DatabaseError as e:
            raise ProblemStoreError(f"Failed to record start of run {run.id}: {e}") from e

    def finish_run(self, run: MergeRun) -> None:
        try:
            with get_connection(self.db_config) as conn:
                self.run_manager.update_run_status(conn, run)
        except DatabaseError as e:
            raise ProblemStoreError(f"Failed to record status of run {run.id}: {e}") from e
