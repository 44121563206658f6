from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docflow.database.connection import get_connection
from docflow.documents.models import Document, DocumentCategory, DocumentStatus
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentNotFoundError

_DOCUMENT_COLUMNS = """
    id, category, status, filename, storage_path, mime_type, size_bytes,
    error_message, llm_json, created_at, updated_at
"""


def row_to_document(row: dict[str, Any]) -> Document:
    category = row["category"]
    return Document(
        id=row["id"],
        category=DocumentCategory(category) if category else None,
        status=DocumentStatus(row["status"]),
        filename=row["filename"],
        storage_path=row["storage_path"],
        mime_type=row["mime_type"],
        size_bytes=row["size_bytes"],
        error_message=row["error_message"],
        llm_json=row["llm_json"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class DocumentRepository:
    """Reads documents and applies status transitions to the documents table."""

    def find_by_id(self, document_id: int) -> Document:
        """Load the current state of a document.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return row_to_document(row)

    def mark_processing(self, document_id: int) -> None:
        """Set status to processing in its own transaction.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        self._update(
            document_id,
            "status = %s",
            (DocumentStatus.PROCESSING.value,),
        )

    def update_category(self, document_id: int, category: DocumentCategory) -> None:
        """Persist the category returned by classification.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        self._update(document_id, "category = %s", (category.value,))

    def mark_extracted(self, document_id: int, llm_json: dict[str, Any]) -> None:
        """Store the payload and mark extracted. Used when no child record is written.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        self._update(
            document_id,
            "status = %s, llm_json = %s, error_message = NULL",
            (DocumentStatus.EXTRACTED.value, Jsonb(llm_json)),
        )

    def mark_failed(
        self,
        document_id: int,
        error_message: str,
        job_id: int | None = None,
    ) -> bool:
        """Set status to failed with a message. A skipped update is logged, not raised.

        With ``job_id`` the update only applies while that job is still
        processing, so an attempt superseded by a retry leaves the document alone.

        Returns:
            True if the document was updated.
        """
        query = """
            UPDATE documents
            SET status = %s, error_message = %s, updated_at = NOW()
            WHERE id = %s
        """
        params: tuple[Any, ...] = (DocumentStatus.FAILED.value, error_message, document_id)
        if job_id is not None:
            query += """
              AND EXISTS (
                  SELECT 1 FROM extraction_jobs
                  WHERE id = %s AND document_id = documents.id AND status = 'processing'
              )
            """
            params += (job_id,)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                updated = cur.rowcount
            conn.commit()
        if updated == 0:
            Log.warning(
                "Document not marked failed: missing or its job was superseded",
                document_id=document_id,
                job_id=job_id,
            )
            return False
        return True

    def reset_for_retry(self, conn: psycopg.Connection[Any], document_id: int) -> None:
        """Return a document to pending and clear its error. Caller commits.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE documents
                SET status = %s, error_message = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (DocumentStatus.PENDING.value, document_id),
            )
            if cur.rowcount == 0:
                raise DocumentNotFoundError(f"Document {document_id} not found")

    def _update(self, document_id: int, assignments: str, params: tuple[Any, ...]) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE documents SET {assignments}, updated_at = NOW() WHERE id = %s",
                    (*params, document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()
