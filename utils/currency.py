import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.constants import CURRENCY_SYMBOL

_STRIP_RE = re.compile(r"[^0-9+\-.]")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

CENT = Decimal("0.01")


def parse_amount(value) -> Decimal | None:
    """Parse a free-form amount such as '£12.99', '-£5' or '1,234.50'.

    Everything except digits, signs and the decimal point is discarded and a
    leading sign is preserved.  Returns None when nothing numeric remains;
    never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    cleaned = _STRIP_RE.sub("", str(value))
    if not _NUMBER_RE.match(cleaned):
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def quantize(amount: Decimal) -> Decimal:
    """Round to whole pennies, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format an amount as an unsigned currency string, e.g. '£1,234.56'."""
    return f"{symbol}{quantize(abs(amount)):,.2f}"


def format_signed(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{symbol}{quantize(abs(amount)):,.2f}"


def ensure_symbol(text: str, symbol: str = CURRENCY_SYMBOL) -> str:
    """Prefix a bare amount label with the currency symbol, e.g. '12.99' -> '£12.99'."""
    text = (text or "").strip()
    return text if text.startswith(symbol) else f"{symbol}{text}"
