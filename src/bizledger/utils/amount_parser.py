"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

CURRENCY_SYMBOLS = re.compile(r"[$€£¥]")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount into a non-negative Decimal.

    Accepts plain numbers ("123.45"), a leading currency symbol ("$123.45")
    and thousands separators ("1,234.56"). Income and expense are told apart
    by transaction type, so signed amounts are rejected.

    Raises:
        ValueError: If the amount is empty, malformed, infinite or negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = CURRENCY_SYMBOLS.sub("", amount_str).replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str.strip()}'")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str.strip()}'")
    if amount < 0:
        raise ValueError(f"Amount must not be negative, got {amount}")
    return amount
