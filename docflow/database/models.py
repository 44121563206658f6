from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass
class JobRecord:
    """Represents a row from the extraction_jobs table."""

    id: int
    document_id: int
    status: str
    attempts: int
    error_message: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class InvoiceLineRecord:
    """Represents a row from the invoice_lines table."""

    id: int
    invoice_id: int
    description: str | None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


@dataclass
class InvoiceRecord:
    """Represents a row from the invoices table, with its line items."""

    id: int
    document_id: int
    vendor_name: str | None = None
    vendor_address: str | None = None
    invoice_number: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    total: Decimal | None = None
    currency: str = "USD"
    lines: list[InvoiceLineRecord] = field(default_factory=list)


@dataclass
class ContractRecord:
    """Represents a row from the contracts table."""

    id: int
    document_id: int
    party_a: str | None = None
    party_b: str | None = None
    effective_date: date | None = None
    expiration_date: date | None = None
    contract_summary: str | None = None
    risk_score: int | None = None
    risk_notes: str | None = None
