from datetime import date, datetime, timedelta
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT, EXPORT_DATE_FORMAT

# ── Display date format options ───────────────────────────────────────────────

_STRFTIME_MAP = {
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD.MM.YYYY": "%d.%m.%Y",
}

# Storage formats first; DD/MM/YYYY is the only day-first form accepted.
_PARSE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d", "%d/%m/%Y")


def today() -> date:
    return date.today()


def parse_date(date_str) -> date | None:
    """Parse a stored or imported date, returning None on failure.

    Accepts date/datetime objects, 'YYYY-MM-DD' (optionally followed by an
    ISO time part such as 'T10:30:00Z'), 'YYYY/MM/DD', 'YYYY.MM.DD' and
    'DD/MM/YYYY'.
    """
    if not date_str:
        return None
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    text = str(date_str).strip()
    if "T" in text:
        text = text.split("T", 1)[0]
    for fmt in _PARSE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_day_of_month(value) -> int | None:
    """Return an integer day in [1, 31], or None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        day = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            return None
        day = int(text)
    return day if 1 <= day <= 31 else None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def format_export_date(d: date) -> str:
    return d.strftime(EXPORT_DATE_FORMAT)


def parse_export_date(text: str) -> date | None:
    try:
        return datetime.strptime(text.strip(), EXPORT_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return (first_day, last_day) for the given month."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def shift_month(year: int, month: int, n: int) -> tuple[int, int]:
    """Return the (year, month) n months away from (year, month)."""
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def project_date(year: int, month: int, day: int) -> date:
    """Build a date, falling back to the month's last day when `day` overshoots.

    Never spills into the following month: project_date(2023, 2, 31) is
    2023-02-28.
    """
    return date(year, month, clamp_day_to_month(year, month, day))


def add_months(d: date, n: int, anchor_day: int | None = None) -> date:
    """Add n months to date d, clamping to month end.

    anchor_day restores the intended day after passing through a short month,
    so Jan 31 -> Feb 28 -> Mar 31 rather than Mar 28.
    """
    year, month = shift_month(d.year, d.month, n)
    return project_date(year, month, anchor_day or d.day)


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def friendly_month(month_str: str) -> str:
    """Convert YYYY-MM to e.g. 'February 2026'."""
    d = parse_month(month_str)
    if d is None:
        return month_str
    return d.strftime("%B %Y")


def format_display_date(date_str: str, fmt_key: str = "DD/MM/YYYY") -> str:
    """Convert a YYYY-MM-DD storage string to the user-facing display format."""
    if not date_str:
        return date_str
    d = parse_date(date_str)
    if d is None:
        return date_str
    return d.strftime(_STRFTIME_MAP.get(fmt_key, "%d/%m/%Y"))
