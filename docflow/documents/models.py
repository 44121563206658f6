from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentCategory(str, Enum):
    """Semantic category of a document. Closed set: handlers match on it exhaustively."""

    GENERAL = "general"
    INVOICE = "invoice"
    CONTRACT = "contract"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class DocumentStatus(str, Enum):
    """Processing status of a document."""

    PENDING = "pending"
    PROCESSING = "processing"
    EXTRACTED = "extracted"
    FAILED = "failed"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class Document:
    """Domain model for an uploaded document (row of the documents table)."""

    id: int
    category: DocumentCategory | None
    status: DocumentStatus
    storage_path: str
    mime_type: str
    size_bytes: int
    filename: str = ""
    error_message: str | None = None
    llm_json: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def needs_classification(self) -> bool:
        """Only unset or general documents are sent to the classifier."""
        return self.category is None or self.category is DocumentCategory.GENERAL
