from typing import Any

import psycopg
from psycopg.rows import dict_row

from docflow.database.connection import get_connection
from docflow.database.models import JobRecord


class JobRepository:
    """Database operations for the extraction_jobs queue."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def enqueue(self, conn: psycopg.Connection[Any], document_id: int) -> JobRecord:
        """Insert a fresh pending job for a document. Caller commits."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                INSERT INTO extraction_jobs (document_id, status, attempts)
                VALUES (%s, 'pending', 0)
                RETURNING id, document_id, status, attempts, created_at
                """,
                (document_id,),
            )
            row = cur.fetchone()
        if row is None:
            raise RuntimeError(f"Enqueue for document {document_id} returned no row")
        return JobRecord(
            id=row["id"],
            document_id=row["document_id"],
            status=row["status"],
            attempts=row["attempts"],
            created_at=row["created_at"],
        )

    def supersede_open_jobs(self, conn: psycopg.Connection[Any], document_id: int) -> int:
        """Fail pending or stuck processing jobs of a document. Caller commits.

        Returns the number of jobs closed.
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE extraction_jobs
                SET status = 'failed', error_message = 'Superseded by retry',
                    locked_at = NULL, updated_at = NOW()
                WHERE document_id = %s AND status IN ('pending', 'processing')
                """,
                (document_id,),
            )
            return cur.rowcount

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the next pending job using SELECT FOR UPDATE SKIP LOCKED.

        Jobs whose document already has an attempt in progress are skipped so
        that one document never runs two attempts at the same time.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT j.id, j.document_id, j.status, j.attempts
                FROM extraction_jobs j
                WHERE j.status = 'pending'
                  AND j.attempts < %s
                  AND NOT EXISTS (
                      SELECT 1 FROM extraction_jobs running
                      WHERE running.document_id = j.document_id
                        AND running.status = 'processing'
                  )
                ORDER BY j.created_at, j.id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts,),
            )
            row = cur.fetchone()

        if row is None:
            conn.rollback()
            return None

        conn.execute(
            """
            UPDATE extraction_jobs
            SET status = 'processing', locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        return JobRecord(
            id=row["id"],
            document_id=row["document_id"],
            status="processing",
            attempts=row["attempts"],
        )

    def mark_done(self, job_id: int) -> bool:
        """Mark a processing job as done. Returns False if it was superseded."""
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE extraction_jobs
                SET status = 'done', error_message = NULL, locked_at = NULL,
                    updated_at = NOW()
                WHERE id = %s AND status = 'processing'
                """,
                (job_id,),
            )
            conn.commit()
        return cur.rowcount > 0

    def mark_failed(self, job_id: int, error: str) -> bool:
        """Mark a processing job as permanently failed, counting the final attempt.

        Returns False if the job was superseded meanwhile.
        """
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE extraction_jobs
                SET status = 'failed', attempts = attempts + 1, error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = 'processing'
                """,
                (error, job_id),
            )
            conn.commit()
        return cur.rowcount > 0

    def increment_attempts(self, job_id: int, error: str) -> bool:
        """Increment attempt count, remember the error and return job to pending.

        A job superseded by a retry stays failed; False is returned then.
        """
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE extraction_jobs
                SET attempts = attempts + 1, status = 'pending', error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = 'processing'
                """,
                (error, job_id),
            )
            conn.commit()
        return cur.rowcount > 0

    def find_by_id(self, job_id: int) -> JobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, status, attempts,
                           error_message, locked_at, created_at, updated_at
                    FROM extraction_jobs
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return JobRecord(
            id=row["id"],
            document_id=row["document_id"],
            status=row["status"],
            attempts=row["attempts"],
            error_message=row["error_message"],
            locked_at=row["locked_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
