import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from docflow.documents.models import Document, DocumentCategory


@dataclass(slots=True)
class PipelineContext:
    document_id: int
    job_id: int | None = None
    deadline: float | None = None
    document: Document | None = None
    category: DocumentCategory | None = None
    extracted: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    error_message: str = ""

    def require_document(self) -> Document:
        if self.document is None:
            raise ValueError("PipelineContext.document must be loaded first")
        return self.document

    def require_category(self) -> DocumentCategory:
        if self.category is None:
            raise ValueError("PipelineContext.category must be resolved first")
        return self.category

    def seconds_left(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
