"""Run management in database."""

from typing import Dict, List

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import MergeRun


class RunManager:
    """Manage deduplication runs in database."""

    def create_run(self, conn: Connection, run: MergeRun) -> str:
        """
        Create a new run record.

        Returns:
            Run ID
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO merge_runs (id, started_at, status, params_json)
                VALUES (%s, %s, %s, %s)
                RETURNING id
                """,
                (
                    run.id,
                    run.started_at,
                    run.status,
                    Jsonb(run.params_json) if run.params_json else None,
                ),
            )
            run_id = str(cur.fetchone()["id"])

        conn.commit()
        return run_id

    def update_run_status(self, conn: Connection, run: MergeRun) -> None:
        """Update run status and statistics."""
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE merge_runs
                SET
                    status = %s,
                    finished_at = %s,
                    stats_json = %s
                WHERE id = %s
                """,
                (
                    run.status,
                    run.finished_at,
                    Jsonb(run.stats_json) if run.stats_json else None,
                    run.id,
                ),
            )

        conn.commit()

    def get_recent_runs(self, conn: Connection, limit: int = 10) -> List[Dict]:
        """Get recent runs."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM merge_runs
                ORDER BY started_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            return cur.fetchall()
