"""Arithmetic consistency checks for extracted invoice data.

Checks are advisory: they return human-readable warnings and never raise.
Amounts are compared with exact decimal arithmetic, so a difference of
exactly the tolerance is accepted and anything above it is reported.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from docflow.validation.numbers import to_decimal

TOLERANCE = Decimal("0.02")


def validate_invoice_totals(data: Mapping[str, Any]) -> list[str]:
    """Return warnings for totals that do not add up, in check order."""
    warnings: list[str] = []

    subtotal = to_decimal(data.get("subtotal"))
    tax = to_decimal(data.get("tax"))
    total = to_decimal(data.get("total"))

    if subtotal is not None and tax is not None and total is not None:
        expected = subtotal + tax
        difference = abs(expected - total)
        if difference > TOLERANCE:
            warnings.append(
                f"Total validation warning: subtotal ({subtotal:.2f}) + tax ({tax:.2f}) "
                f"= {expected:.2f}, but total is {total:.2f} (diff: {difference:.2f})"
            )

    lines = data.get("lines")
    if isinstance(lines, list) and subtotal is not None:
        lines_total = sum_line_totals(lines)
        difference = abs(lines_total - subtotal)
        if difference > TOLERANCE:
            warnings.append(
                f"Line items total ({lines_total:.2f}) does not match subtotal "
                f"({subtotal:.2f}) (diff: {difference:.2f})"
            )

    return warnings


def sum_line_totals(lines: list[Any]) -> Decimal:
    """Sum numeric line_total values, skipping malformed lines."""
    total = Decimal("0")
    for line in lines:
        if not isinstance(line, Mapping):
            continue
        amount = to_decimal(line.get("line_total"))
        if amount is not None:
            total += amount
    return total

