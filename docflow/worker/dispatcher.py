from psycopg.errors import ForeignKeyViolation

from docflow.database.connection import get_connection
from docflow.database.models import JobRecord
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.repositories.job_repository import JobRepository
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentNotFoundError


class ExtractionDispatcher:
    """Queues extraction jobs for uploaded or retried documents."""

    def __init__(self, document_repo: DocumentRepository, job_repo: JobRepository) -> None:
        self._document_repo = document_repo
        self._job_repo = job_repo

    def dispatch(self, document_id: int) -> JobRecord:
        """Queue a pending extraction job for a document.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            try:
                job = self._job_repo.enqueue(conn, document_id)
            except ForeignKeyViolation as exc:
                conn.rollback()
                raise DocumentNotFoundError(f"Document {document_id} not found") from exc
            conn.commit()
        Log.info(f"Extraction job {job.id} queued", document_id=document_id)
        return job

    def retry(self, document_id: int) -> JobRecord:
        """Reset a document to pending and queue a fresh job in one transaction.

        Works from any prior status, so a stuck or failed document always
        gets a new pending -> processing cycle. Open jobs left behind by a
        crashed worker are closed so they cannot block the new one.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            try:
                self._document_repo.reset_for_retry(conn, document_id)
            except DocumentNotFoundError:
                conn.rollback()
                raise
            superseded = self._job_repo.supersede_open_jobs(conn, document_id)
            job = self._job_repo.enqueue(conn, document_id)
            conn.commit()
        Log.info(
            f"Extraction retry queued as job {job.id}",
            document_id=document_id,
            superseded_jobs=superseded,
        )
        return job
