from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")

# Integer digits that fit NUMERIC(15, 2) amounts and NUMERIC(12, 3) quantities.
AMOUNT_INTEGER_DIGITS = 13
QUANTITY_INTEGER_DIGITS = 9


def to_decimal(value: object, max_integer_digits: int = AMOUNT_INTEGER_DIGITS) -> Decimal | None:
    """Coerce a model-supplied value to a finite Decimal, or None if it is not numeric.

    Booleans are rejected; numeric strings such as "12.50" or " 3 " are accepted.
    Values with more than ``max_integer_digits`` integer digits count as non-numeric.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite() or number.adjusted() >= max_integer_digits:
        return None
    return number


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value: object) -> Decimal | None:
    """Round a value to cents, or None if it is not numeric or too large to store."""
    return _rounded_within(value, CENT, AMOUNT_INTEGER_DIGITS)


def to_quantity(value: object) -> Decimal | None:
    return _rounded_within(value, QUANTITY_STEP, QUANTITY_INTEGER_DIGITS)


def _rounded_within(value: object, step: Decimal, integer_digits: int) -> Decimal | None:
    number = to_decimal(value, integer_digits)
    if number is None:
        return None
    rounded = number.quantize(step, rounding=ROUND_HALF_UP)
    # 999.995 rounds up to 1000.00
    if rounded.adjusted() >= integer_digits:
        return None
    return rounded
