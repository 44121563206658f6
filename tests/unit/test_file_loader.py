from pathlib import Path

import pytest

from docflow.documents.file_loader import FileLoader, document_file_path
from docflow.documents.models import Document, DocumentStatus
from docflow.processor.exceptions import FileReadError


def _make_document(storage_path: str = "documents/7.pdf") -> Document:
    return Document(
        id=7,
        category=None,
        status=DocumentStatus.PENDING,
        storage_path=storage_path,
        mime_type="application/pdf",
        size_bytes=10,
    )


class TestDocumentFilePath:
    def test_resolves_under_files_root(self, tmp_path: Path) -> None:
        path = document_file_path(tmp_path, "documents/7.pdf")
        assert path == (tmp_path / "documents" / "7.pdf").resolve()

    def test_rejects_path_escaping_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileReadError, match="escapes files root"):
            document_file_path(tmp_path, "../../etc/passwd")


class TestFileLoader:
    def test_reads_bytes(self, tmp_path: Path) -> None:
        (tmp_path / "documents").mkdir()
        (tmp_path / "documents" / "7.pdf").write_bytes(b"%PDF-1.4 content")

        loader = FileLoader(files_root=tmp_path)

        assert loader.load(_make_document()) == b"%PDF-1.4 content"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        loader = FileLoader(files_root=tmp_path)

        with pytest.raises(FileReadError, match="File not found"):
            loader.load(_make_document())

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        (tmp_path / "empty.pdf").write_bytes(b"")
        loader = FileLoader(files_root=tmp_path)

        with pytest.raises(FileReadError, match="File is empty"):
            loader.load(_make_document("empty.pdf"))

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        (tmp_path / "documents").mkdir()
        loader = FileLoader(files_root=tmp_path)

        with pytest.raises(FileReadError):
            loader.load(_make_document("documents"))

    def test_default_files_root(self) -> None:
        assert FileLoader()._files_root == Path("/app/storage")
