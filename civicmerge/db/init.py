"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg.errors import DatabaseError

from .connection import get_connection

log = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Problems table (normally owned by the reporting application)
CREATE TABLE IF NOT EXISTS problems (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title TEXT NOT NULL DEFAULT '',
    description TEXT,
    latitude DOUBLE PRECISION CHECK (latitude >= -90 AND latitude <= 90),
    longitude DOUBLE PRECISION CHECK (longitude >= -180 AND longitude <= 180),
    votes_count INTEGER NOT NULL DEFAULT 0 CHECK (votes_count >= 0),
    merged_into UUID REFERENCES problems(id),
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Deduplication runs
CREATE TABLE IF NOT EXISTS merge_runs (
    id UUID PRIMARY KEY,
    started_at TIMESTAMPTZ NOT NULL,
    finished_at TIMESTAMPTZ,
    status TEXT NOT NULL DEFAULT 'running' CHECK (status IN ('running', 'success', 'failed')),
    params_json JSONB,
    stats_json JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Merge audit trail (append-only)
CREATE TABLE IF NOT EXISTS problem_merges (
    id SERIAL PRIMARY KEY,
    master_problem_id UUID NOT NULL REFERENCES problems(id),
    merged_problem_id UUID NOT NULL REFERENCES problems(id),
    merged_by TEXT NOT NULL,
    run_id UUID REFERENCES merge_runs(id),
    reason TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_problems_merged_into ON problems(merged_into);
CREATE INDEX IF NOT EXISTS idx_problem_merges_master ON problem_merges(master_problem_id);
CREATE INDEX IF NOT EXISTS idx_problem_merges_run_id ON problem_merges(run_id);
CREATE INDEX IF NOT EXISTS idx_merge_runs_started_at ON merge_runs(started_at);
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        log.error("Database connection failed: %s", e)
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                conn.commit()
                log.info("Database schema initialized successfully")
    except DatabaseError as e:
        log.error("Failed to initialize database schema: %s", e)
        raise
