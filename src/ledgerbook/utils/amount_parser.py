"""Amount parsing and formatting utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from ledgerbook.domain.errors import InvalidAmountError

CENT = Decimal("0.01")

_CURRENCY_PREFIX = re.compile(r"^(r\$|us\$|[$€£¥])", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def quantize_amount(amount: Decimal) -> Decimal:
    """Round an amount to cents using half-up rounding."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_localized_amount(amount_str: str) -> Decimal:
    """Parse a localized amount string into a non-negative Decimal.

    Handles various formats:
    - "1234.56", "1.234,56", "1234,5"
    - "R$ 1.234,56", "$12.00"
    - "-10,00", "(1.234,56)", "-R$ 5,00" (negatives yield their absolute value)

    When a comma is present it is the decimal mark and every dot is a
    thousands separator; otherwise the text is parsed as-is. The result is
    rounded half-up to two decimal places.

    Args:
        amount_str: Amount string

    Returns:
        Absolute Decimal amount rounded to cents

    Raises:
        InvalidAmountError: If amount string cannot be parsed or is too
            large to hold in cents
    """
    if amount_str is None:
        raise InvalidAmountError("Empty amount string")

    text = _WHITESPACE.sub("", amount_str)
    if not text:
        raise InvalidAmountError("Empty amount string")

    # Sign and currency may appear in either order ("-R$5" or "R$-5")
    for _ in range(2):
        text = _CURRENCY_PREFIX.sub("", text)
        if text.startswith("(") and text.endswith(")"):
            text = text[1:-1]
        if text.startswith("-"):
            text = text[1:]

    if "," in text:
        text = text.replace(".", "").replace(",", ".", 1)

    # Decimal accepts underscore digit grouping ("1_000")
    if "_" in text:
        raise InvalidAmountError(f"Could not parse amount '{amount_str}'")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise InvalidAmountError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise InvalidAmountError(f"Could not parse amount '{amount_str}'")

    try:
        return quantize_amount(abs(amount))
    except InvalidOperation:
        raise InvalidAmountError(f"Amount out of range: '{amount_str}'")


def format_currency_localized(amount: Decimal, symbol: str = "R$") -> str:
    """Format an amount the way pt-BR currency is written.

    Examples:
        Decimal("1234.5") -> "R$ 1.234,50"
        Decimal("-3")     -> "-R$ 3,00"
    """
    value = quantize_amount(Decimal(amount))
    sign = "-" if value < 0 else ""
    # Build with US separators first, then swap them
    us = f"{abs(value):,.2f}"
    localized = us.replace(",", "\x00").replace(".", ",").replace("\x00", ".")
    return f"{sign}{symbol} {localized}"
