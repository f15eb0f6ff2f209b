"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from agencyledger.utils.money import to_money


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount into a Decimal with two decimals.

    Handles "1234.5", "$1,234.50" and "MXN 1,234.50". Signs are kept so the
    caller can reject non-positive amounts with a domain message.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"(?i)\b(mxn|usd|eur)\b", "", amount_str)
    cleaned = re.sub(r"[$€£\s]", "", cleaned).replace(",", "")

    try:
        return to_money(Decimal(cleaned))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
