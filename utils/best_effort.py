"""Last-resort scraping of spreadsheet files we cannot parse (e.g. Apple Numbers).

Results are tagged low-confidence and must never be mixed with rows from
the delimited parser.
"""
import re

from models.import_record import ImportRecord, SOURCE_BEST_EFFORT, CONFIDENCE_LOW
from utils.constants import (
    FREQUENCIES,
    OTHER_CATEGORY,
    BEST_EFFORT_WINDOW_BEFORE,
    BEST_EFFORT_WINDOW_AFTER,
)

_AMOUNT_RE = re.compile(r"£\d+\.\d+")


def extract_readable_text(raw: bytes | str) -> str:
    """Keep printable ASCII and '£', turn CR/LF into spaces, drop everything else."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    out = []
    for char in raw:
        code = ord(char)
        if 32 <= code <= 126 or char == "£":
            out.append(char)
        elif code in (10, 13):
            out.append(" ")
    return "".join(out)


def _keyword_pattern(words: list[str]) -> re.Pattern:
    return re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)


def extract_best_effort_records(
    text: str,
    name_hints: list[str],
    category_keywords: list[str],
    frequencies: list[str] = FREQUENCIES,
) -> list[ImportRecord]:
    """Find known merchant names and scrape an amount, frequency and category nearby.

    Only the first occurrence of each hint is considered.  A hint without a
    '£n.nn' amount in its window produces nothing.
    """
    if not text:
        return []
    frequency_re = _keyword_pattern(frequencies)
    category_re = _keyword_pattern(category_keywords) if category_keywords else None

    records: list[ImportRecord] = []
    for hint in name_hints:
        index = text.find(hint)
        if index < 0:
            continue
        window = text[
            max(0, index - BEST_EFFORT_WINDOW_BEFORE): index + BEST_EFFORT_WINDOW_AFTER
        ]
        amount = _AMOUNT_RE.search(window)
        if not amount:
            continue
        frequency = frequency_re.search(window)
        category = category_re.search(window) if category_re else None
        records.append(ImportRecord(
            company=hint,
            amount=amount.group(0),
            frequency=frequency.group(0).capitalize() if frequency else "Monthly",
            category=category.group(0) if category else OTHER_CATEGORY,
            date=None,
            source=SOURCE_BEST_EFFORT,
            confidence=CONFIDENCE_LOW,
        ))
    return records
