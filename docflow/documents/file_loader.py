from pathlib import Path

from docflow.documents.models import Document
from docflow.processor.exceptions import FileReadError


def document_file_path(files_root: Path, storage_path: str) -> Path:
    """Resolve a stored document's relative path under files_root.

    Raises:
        FileReadError: if the path would escape files_root.
    """
    root = files_root.resolve()
    path = (root / storage_path).resolve()
    if not path.is_relative_to(root):
        raise FileReadError(f"Storage path escapes files root: {storage_path}")
    return path


class FileLoader:
    """Resolves the filesystem path for a document and reads its bytes."""

    FILES_ROOT = Path("/app/storage")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, document: Document) -> bytes:
        """Read document bytes from disk.

        Raises:
            FileReadError: if the file is missing, empty or unreadable.
        """
        path = document_file_path(self._files_root, document.storage_path)
        if not path.is_file():
            raise FileReadError(f"File not found at path: {path}")
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc
        if not data:
            raise FileReadError(f"File is empty: {path}")
        return data
