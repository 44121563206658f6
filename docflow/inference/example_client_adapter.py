"""Offline inference client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseInferenceClient and register the provider in ModelClientFactory.
"""

import json
from typing import Any, ClassVar

from docflow.inference.client_base import BaseInferenceClient


class ExampleClientAdapter(BaseInferenceClient):
    """Adapter that answers every prompt with fixed, valid JSON.

    No network calls. The answer is chosen by which task the prompt asks for,
    so a full classify -> extract run works for local development and tests.
    """

    CLASSIFICATION: ClassVar[dict[str, object]] = {"category": "general"}
    INVOICE: ClassVar[dict[str, object]] = {
        "vendor_name": None,
        "vendor_address": None,
        "invoice_number": None,
        "invoice_date": None,
        "due_date": None,
        "currency": "USD",
        "subtotal": 0.0,
        "tax": 0.0,
        "total": 0.0,
        "lines": [],
        "confidence": 0.0,
    }
    CONTRACT: ClassVar[dict[str, object]] = {
        "party_a": None,
        "party_b": None,
        "effective_date": None,
        "expiration_date": None,
        "summary": None,
        "risk_score": None,
        "risk_notes": None,
    }

    def generate(
        self,
        *,
        prompt: str,
        images: list[str],
        timeout_seconds: float | None = None,
    ) -> str:
        _ = images, timeout_seconds
        lowered = prompt.lower()
        if "classification" in lowered:
            return json.dumps(self.CLASSIFICATION)
        if "invoice data extraction" in lowered:
            return json.dumps(self.INVOICE)
        if "contract analysis" in lowered:
            return json.dumps(self.CONTRACT)
        return json.dumps({})

    def list_models(self) -> list[dict[str, Any]]:
        return [{"name": "example"}]
