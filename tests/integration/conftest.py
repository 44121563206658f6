import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest
from psycopg.rows import dict_row

from docflow.config.settings import Settings
from docflow.database.connection import apply_schema, close_pool, get_connection, init_pool
from docflow.database.models import JobRecord

SeedDocument = Callable[..., int]


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docflow_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to a test database")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[int], None, None]:
    """Collect document ids; their jobs, invoices and contracts cascade on delete."""
    document_ids: list[int] = []
    yield document_ids
    if not document_ids:
        return
    with get_connection() as conn:
        conn.execute("DELETE FROM documents WHERE id = ANY(%s)", (document_ids,))
        conn.commit()


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def seed_document(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[int],
    files_root: Path,
    sample_pdf_bytes: bytes,
) -> SeedDocument:
    """Insert a documents row with a PDF on disk and return a factory for more."""

    def _seed(
        category: str | None = None,
        status: str = "pending",
        content: bytes | None = None,
    ) -> int:
        data = sample_pdf_bytes if content is None else content
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO documents
                    (category, filename, storage_path, mime_type, size_bytes, status)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (category, "upload.pdf", "pending", "application/pdf", len(data), status),
            )
            row = cur.fetchone()
            assert row is not None
            document_id = row[0]
            storage_path = f"documents/{document_id}.pdf"
            cur.execute(
                "UPDATE documents SET storage_path = %s WHERE id = %s",
                (storage_path, document_id),
            )
        db_conn.commit()
        integration_cleanup.append(document_id)

        path = files_root / storage_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return document_id

    return _seed


@pytest.fixture
def seed_job(
    db_conn: psycopg.Connection[Any],
    seed_document: SeedDocument,
) -> JobRecord:
    document_id = seed_document()
    with db_conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            INSERT INTO extraction_jobs (document_id, status, attempts)
            VALUES (%s, 'pending', 0)
            RETURNING id, document_id, status, attempts
            """,
            (document_id,),
        )
        row = cur.fetchone()
        assert row is not None
    db_conn.commit()
    return JobRecord(
        id=row["id"],
        document_id=row["document_id"],
        status="pending",
        attempts=0,
    )


@pytest.fixture
def fetch_document(db_conn: psycopg.Connection[Any]) -> Callable[[int], dict[str, Any]]:
    def _fetch(document_id: int) -> dict[str, Any]:
        with db_conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                "SELECT category, status, error_message, llm_json FROM documents WHERE id = %s",
                (document_id,),
            )
            row = cur.fetchone()
        db_conn.commit()
        assert row is not None
        return row

    return _fetch
