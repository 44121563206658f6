"""Classification and extraction calls against a vision model."""

import base64
from enum import Enum
from pathlib import Path
from typing import Any

from docflow.documents.file_loader import FileLoader
from docflow.documents.models import Document, DocumentCategory
from docflow.inference.client_base import BaseInferenceClient
from docflow.inference.decoder import decode_model_json, is_decode_failure
from docflow.inference.exceptions import ResponseDecodeError
from docflow.inference.prompt_loader import load_prompt
from docflow.logging.logger import Log
from docflow.rendering.base import BaseRasterizer

# Unrecognized or undecodable classifier output is treated as a general document.
FALLBACK_CATEGORY = DocumentCategory.GENERAL


class ExtractionTask(str, Enum):
    """Structured extraction tasks; each maps to a bundled prompt."""

    INVOICE = "invoice"
    CONTRACT = "contract"


class ModelClient:
    """Renders a document, prompts the model, and decodes its answer."""

    def __init__(
        self,
        *,
        client: BaseInferenceClient,
        rasterizer: BaseRasterizer,
        file_loader: FileLoader,
        prompt_dir: Path | None = None,
    ) -> None:
        self._client = client
        self._rasterizer = rasterizer
        self._file_loader = file_loader
        self._classify_prompt = load_prompt("classify", prompt_dir)
        self._task_prompts = {
            task: load_prompt(task.value, prompt_dir) for task in ExtractionTask
        }

    def classify(
        self,
        document: Document,
        timeout_seconds: float | None = None,
    ) -> DocumentCategory:
        """Return the document's category, falling back to general on unusable output."""
        raw = self._send(document, self._classify_prompt, timeout_seconds)
        try:
            result = decode_model_json(raw)
        except ResponseDecodeError as exc:
            Log.warning(f"Classification output rejected: {exc}", document_id=document.id)
            return FALLBACK_CATEGORY

        value = result.get("category")
        if not isinstance(value, str) or value not in DocumentCategory.values():
            Log.warning(
                "Invalid classification response, using fallback category",
                document_id=document.id,
                category=value,
            )
            return FALLBACK_CATEGORY
        return DocumentCategory(value)

    def extract(
        self,
        document: Document,
        task: ExtractionTask,
        timeout_seconds: float | None = None,
    ) -> dict[str, Any]:
        """Return the structured fields the model extracted for a task.

        ``timeout_seconds`` bounds the backend request, see ``generate``.

        Raises:
            InferenceBackendError: on backend failure.
            ResponseDecodeError: if the output is not a JSON object.
        """
        raw = self._send(document, self._task_prompts[task], timeout_seconds)
        result = decode_model_json(raw)
        if is_decode_failure(result):
            raise ResponseDecodeError(
                f"Model returned unparseable {task.value} data: {result.get('_exception')}"
            )
        return result

    def check_connection(self) -> bool:
        return self._client.check_connection()

    def list_models(self) -> list[dict[str, Any]]:
        return self._client.list_models()

    def _send(self, document: Document, prompt: str, timeout_seconds: float | None) -> str:
        data = self._file_loader.load(document)
        png = self._rasterizer.render(data, document.mime_type)
        image = base64.b64encode(png).decode("ascii")
        Log.debug(f"Rendered document {document.id} to {len(png)} PNG bytes")
        raw = self._client.generate(
            prompt=prompt, images=[image], timeout_seconds=timeout_seconds
        )
        Log.debug(f"Model raw response for document {document.id}:\n{raw}")
        return raw
