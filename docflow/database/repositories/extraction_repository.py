"""Transactional persistence of category-specific extraction results.

Each save_* method writes the document's new status and raw model payload
together with the child record in a single transaction, so a document is
never left ``extracted`` without its invoice or contract row.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

import psycopg
from dateutil import parser as date_parser
from psycopg.types.json import Jsonb

from docflow.database.connection import get_connection
from docflow.database.models import ContractRecord, InvoiceLineRecord, InvoiceRecord
from docflow.documents.models import DocumentStatus
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentNotFoundError
from docflow.validation.numbers import to_amount, to_decimal, to_quantity

DEFAULT_CURRENCY = "USD"


class ExtractionRepository:
    """Upserts invoices (with line items) and contracts keyed by document id."""

    def save_invoice_extraction(
        self,
        document_id: int,
        fields: Mapping[str, Any],
        warnings: list[str] | None = None,
    ) -> InvoiceRecord:
        """Mark the document extracted and upsert its invoice atomically.

        Validation warnings are stored as the document's error message.

        Raises:
            DocumentNotFoundError: if the document row no longer exists.
        """
        error_message = "; ".join(warnings) if warnings else None
        with get_connection() as conn:
            with conn.transaction():
                self._mark_extracted(conn, document_id, fields, error_message)
                invoice = self.upsert_invoice(conn, document_id, fields)
        Log.info(
            "Invoice persisted",
            document_id=document_id,
            invoice_id=invoice.id,
            line_count=len(invoice.lines),
        )
        return invoice

    def save_contract_extraction(
        self,
        document_id: int,
        fields: Mapping[str, Any],
    ) -> ContractRecord:
        """Mark the document extracted and upsert its contract atomically.

        Raises:
            DocumentNotFoundError: if the document row no longer exists.
        """
        with get_connection() as conn:
            with conn.transaction():
                self._mark_extracted(conn, document_id, fields, None)
                contract = self.upsert_contract(conn, document_id, fields)
        Log.info(
            "Contract persisted",
            document_id=document_id,
            contract_id=contract.id,
            risk_score=contract.risk_score,
        )
        return contract

    def upsert_invoice(
        self,
        conn: psycopg.Connection[Any],
        document_id: int,
        fields: Mapping[str, Any],
    ) -> InvoiceRecord:
        """Insert or replace the invoice header and all of its lines. Caller commits."""
        invoice = InvoiceRecord(
            id=0,
            document_id=document_id,
            vendor_name=_text(fields.get("vendor_name")),
            vendor_address=_text(fields.get("vendor_address")),
            invoice_number=_text(fields.get("invoice_number")),
            invoice_date=parse_date(fields.get("invoice_date")),
            due_date=parse_date(fields.get("due_date")),
            subtotal=to_amount(fields.get("subtotal")),
            tax=to_amount(fields.get("tax")),
            total=to_amount(fields.get("total")),
            currency=_currency(fields.get("currency")),
        )
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO invoices
                    (document_id, vendor_name, vendor_address, invoice_number,
                     invoice_date, due_date, subtotal, tax, total, currency)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (document_id) DO UPDATE SET
                    vendor_name = EXCLUDED.vendor_name,
                    vendor_address = EXCLUDED.vendor_address,
                    invoice_number = EXCLUDED.invoice_number,
                    invoice_date = EXCLUDED.invoice_date,
                    due_date = EXCLUDED.due_date,
                    subtotal = EXCLUDED.subtotal,
                    tax = EXCLUDED.tax,
                    total = EXCLUDED.total,
                    currency = EXCLUDED.currency,
                    updated_at = NOW()
                RETURNING id
                """,
                (
                    document_id,
                    invoice.vendor_name,
                    invoice.vendor_address,
                    invoice.invoice_number,
                    invoice.invoice_date,
                    invoice.due_date,
                    invoice.subtotal,
                    invoice.tax,
                    invoice.total,
                    invoice.currency,
                ),
            )
            row = cur.fetchone()
            if row is None:
                raise RuntimeError(f"Invoice upsert for document {document_id} returned no id")
            invoice.id = row[0]

            cur.execute("DELETE FROM invoice_lines WHERE invoice_id = %s", (invoice.id,))

            for line in build_invoice_lines(fields.get("lines")):
                cur.execute(
                    """
                    INSERT INTO invoice_lines
                        (invoice_id, description, quantity, unit_price, line_total)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        invoice.id,
                        line.description,
                        line.quantity,
                        line.unit_price,
                        line.line_total,
                    ),
                )
                line_row = cur.fetchone()
                if line_row is None:
                    raise RuntimeError(f"Invoice line insert for invoice {invoice.id} returned no id")
                line.id = line_row[0]
                line.invoice_id = invoice.id
                invoice.lines.append(line)
        return invoice

    def upsert_contract(
        self,
        conn: psycopg.Connection[Any],
        document_id: int,
        fields: Mapping[str, Any],
    ) -> ContractRecord:
        """Insert or replace the contract row for a document. Caller commits."""
        contract = ContractRecord(
            id=0,
            document_id=document_id,
            party_a=_text(fields.get("party_a")),
            party_b=_text(fields.get("party_b")),
            effective_date=parse_date(fields.get("effective_date")),
            expiration_date=parse_date(fields.get("expiration_date")),
            contract_summary=_text(fields.get("summary")),
            risk_score=_risk_score(fields.get("risk_score")),
            risk_notes=_text(fields.get("risk_notes")),
        )
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO contracts
                    (document_id, party_a, party_b, effective_date, expiration_date,
                     contract_summary, risk_score, risk_notes)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (document_id) DO UPDATE SET
                    party_a = EXCLUDED.party_a,
                    party_b = EXCLUDED.party_b,
                    effective_date = EXCLUDED.effective_date,
                    expiration_date = EXCLUDED.expiration_date,
                    contract_summary = EXCLUDED.contract_summary,
                    risk_score = EXCLUDED.risk_score,
                    risk_notes = EXCLUDED.risk_notes,
                    updated_at = NOW()
                RETURNING id
                """,
                (
                    document_id,
                    contract.party_a,
                    contract.party_b,
                    contract.effective_date,
                    contract.expiration_date,
                    contract.contract_summary,
                    contract.risk_score,
                    contract.risk_notes,
                ),
            )
            row = cur.fetchone()
            if row is None:
                raise RuntimeError(f"Contract upsert for document {document_id} returned no id")
            contract.id = row[0]
        return contract

    def _mark_extracted(
        self,
        conn: psycopg.Connection[Any],
        document_id: int,
        llm_json: Mapping[str, Any],
        error_message: str | None,
    ) -> None:
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE documents
                SET status = %s, llm_json = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (
                    DocumentStatus.EXTRACTED.value,
                    Jsonb(dict(llm_json)),
                    error_message,
                    document_id,
                ),
            )
            if cur.rowcount == 0:
                raise DocumentNotFoundError(f"Document {document_id} not found")


def build_invoice_lines(raw_lines: Any) -> list[InvoiceLineRecord]:
    """Build unsaved line records, applying defaults for missing values."""
    if not isinstance(raw_lines, list):
        return []
    lines: list[InvoiceLineRecord] = []
    for raw in raw_lines:
        if not isinstance(raw, Mapping):
            continue
        quantity = to_quantity(raw.get("quantity"))
        unit_price = to_amount(raw.get("unit_price"))
        line_total = to_amount(raw.get("line_total"))
        lines.append(
            InvoiceLineRecord(
                id=0,
                invoice_id=0,
                description=_text(raw.get("description")),
                quantity=quantity if quantity is not None else Decimal("1.000"),
                unit_price=unit_price if unit_price is not None else Decimal("0.00"),
                line_total=line_total if line_total is not None else Decimal("0.00"),
            )
        )
    return lines


def parse_date(value: Any) -> date | None:
    """Parse a free-form date string. Anything unparseable becomes None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        Log.warning("Failed to parse date", value=value)
        return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _currency(value: Any) -> str:
    if isinstance(value, str):
        code = value.strip().upper()
        if len(code) == 3 and code.isalpha():
            return code
    return DEFAULT_CURRENCY


def _risk_score(value: Any) -> int | None:
    number = to_decimal(value)
    if number is None:
        return None
    score = int(number)
    return score if 0 <= score <= 100 else None
