from dataclasses import replace
from datetime import datetime, timezone
from typing import assert_never

from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.repositories.extraction_repository import ExtractionRepository
from docflow.documents.models import DocumentCategory, DocumentStatus
from docflow.inference.model_client import ExtractionTask, ModelClient
from docflow.logging.logger import Log
from docflow.processor.pipeline import PipelineContext, PipelineStep
from docflow.validation.invoice_totals import validate_invoice_totals


class LoadDocumentStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        document = self._doc_repo.find_by_id(context.document_id)
        context.document = document
        context.category = document.category
        Log.info(
            "Starting document extraction",
            document_id=document.id,
            filename=document.filename,
            current_category=document.category.value if document.category else None,
        )
        return context


class MarkProcessingStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        self._doc_repo.mark_processing(document.id)
        context.document = replace(document, status=DocumentStatus.PROCESSING)
        Log.info("Document marked as processing", document_id=document.id)
        return context


class ClassifyStep(PipelineStep):
    """Classify unset or general documents; never reclassify invoices or contracts."""

    def __init__(self, model_client: ModelClient, doc_repo: DocumentRepository) -> None:
        self._model_client = model_client
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if not document.needs_classification:
            return context

        category = self._model_client.classify(
            document, timeout_seconds=context.seconds_left()
        )
        self._doc_repo.update_category(document.id, category)
        context.category = category
        context.document = replace(document, category=category)
        Log.info("Document classified", document_id=document.id, category=category.value)
        return context


class ExtractStep(PipelineStep):
    def __init__(self, model_client: ModelClient) -> None:
        self._model_client = model_client

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        category = context.require_category()
        match category:
            case DocumentCategory.INVOICE:
                context.extracted = self._model_client.extract(
                    document, ExtractionTask.INVOICE, timeout_seconds=context.seconds_left()
                )
                context.warnings = validate_invoice_totals(context.extracted)
                for warning in context.warnings:
                    Log.warning(warning, document_id=document.id)
            case DocumentCategory.CONTRACT:
                context.extracted = self._model_client.extract(
                    document, ExtractionTask.CONTRACT, timeout_seconds=context.seconds_left()
                )
            case DocumentCategory.GENERAL:
                context.extracted = {
                    "category": DocumentCategory.GENERAL.value,
                    "processed_at": datetime.now(timezone.utc).isoformat(),
                }
            case _:
                assert_never(category)
        return context


class PersistStep(PipelineStep):
    def __init__(
        self,
        doc_repo: DocumentRepository,
        extraction_repo: ExtractionRepository,
    ) -> None:
        self._doc_repo = doc_repo
        self._extraction_repo = extraction_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        category = context.require_category()
        match category:
            case DocumentCategory.INVOICE:
                self._extraction_repo.save_invoice_extraction(
                    document.id, context.extracted, context.warnings
                )
            case DocumentCategory.CONTRACT:
                self._extraction_repo.save_contract_extraction(document.id, context.extracted)
            case DocumentCategory.GENERAL:
                self._doc_repo.mark_extracted(document.id, context.extracted)
                Log.info("General document processed", document_id=document.id)
            case _:
                assert_never(category)
        context.document = replace(document, status=DocumentStatus.EXTRACTED)
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        self._doc_repo.mark_failed(
            context.document_id, context.error_message, job_id=context.job_id
        )
        Log.error(
            f"Document extraction failed: {context.error_message}",
            document_id=context.document_id,
            job_id=context.job_id,
        )
        return context
