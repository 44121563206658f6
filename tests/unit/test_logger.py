import logging

import pytest

from docflow.logging.logger import Log


class TestLogFormatting:
    def test_message_without_context_is_unchanged(self) -> None:
        assert Log._format("Worker started", {}) == "Worker started"

    def test_context_is_rendered_as_pairs(self) -> None:
        result = Log._format("Document classified", {"document_id": 7, "category": "invoice"})
        assert result == "Document classified [document_id=7 category=invoice]"


class TestLogOutput:
    def test_info_includes_context(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="docflow"):
            Log.info("Invoice persisted", document_id=3, line_count=2)

        assert "Invoice persisted [document_id=3 line_count=2]" in caplog.text

    def test_warning_level(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="docflow"):
            Log.warning("Failed to parse date", value="soon")

        assert caplog.records[-1].levelname == "WARNING"

    def test_debug_suppressed_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="docflow"):
            Log.debug("Model raw response")

        assert "Model raw response" not in caplog.text
