import time
from pathlib import Path

from docflow.config.settings import Settings
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.repositories.extraction_repository import ExtractionRepository
from docflow.inference.factory import ModelClientFactory
from docflow.logging.logger import Log
from docflow.processor.exceptions import ExtractionTimeoutError
from docflow.processor.pipeline import PipelineContext, PipelineStep
from docflow.processor.steps import (
    ClassifyStep,
    ExtractStep,
    LoadDocumentStep,
    MarkFailedStep,
    MarkProcessingStep,
    PersistStep,
)


class Processor:
    """Drives one extraction attempt for a document.

    Pipeline: load -> mark processing -> classify -> extract -> persist.
    Any step error runs the failed step and is re-raised for retry bookkeeping.
    Model calls get the remaining attempt budget as their request timeout, and a
    step that fails after the budget ran out is reported as a timeout.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        failed_step: PipelineStep,
        timeout_seconds: float | None = None,
    ) -> None:
        self._steps = steps
        self._failed_step = failed_step
        self._timeout_seconds = timeout_seconds

    def process(self, document_id: int, job_id: int | None = None) -> PipelineContext:
        """Run all steps for a document; raise the first step error."""
        deadline = (
            time.monotonic() + self._timeout_seconds
            if self._timeout_seconds is not None
            else None
        )
        context = PipelineContext(document_id=document_id, job_id=job_id, deadline=deadline)
        try:
            for step in self._steps:
                self._check_deadline(context)
                context = step.run(context)
        except Exception as exc:
            failure = self._as_timeout(context, exc)
            context.error_message = str(failure) or type(failure).__name__
            self._failed_step.run(context)
            if failure is exc:
                raise
            raise failure from exc

        Log.info(
            "Document extraction completed",
            document_id=document_id,
            category=context.category.value if context.category else None,
        )
        return context

    def _check_deadline(self, context: PipelineContext) -> None:
        if self._deadline_passed(context):
            raise self._timeout_error()

    def _as_timeout(self, context: PipelineContext, exc: Exception) -> Exception:
        """A step that fails once the budget is spent counts as a timeout."""
        if isinstance(exc, ExtractionTimeoutError) or not self._deadline_passed(context):
            return exc
        return self._timeout_error()

    def _deadline_passed(self, context: PipelineContext) -> bool:
        seconds_left = context.seconds_left()
        return seconds_left is not None and seconds_left <= 0

    def _timeout_error(self) -> ExtractionTimeoutError:
        return ExtractionTimeoutError(
            f"Extraction attempt timed out after {self._timeout_seconds:g} seconds"
        )


def build_processor(
    settings: Settings,
    files_root: Path | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    doc_repo = DocumentRepository()
    extraction_repo = ExtractionRepository()
    model_client = ModelClientFactory.create(settings, files_root=files_root)
    steps: list[PipelineStep] = [
        LoadDocumentStep(doc_repo),
        MarkProcessingStep(doc_repo),
        ClassifyStep(model_client, doc_repo),
        ExtractStep(model_client),
        PersistStep(doc_repo, extraction_repo),
    ]
    return Processor(
        steps=steps,
        failed_step=MarkFailedStep(doc_repo),
        timeout_seconds=settings.job_timeout_seconds,
    )
