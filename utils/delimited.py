"""Tolerant reader for delimited text exported by spreadsheet apps.

Excel, Numbers, Google Sheets and LibreOffice disagree on line endings, byte
order marks and the field separator (European locales use ';').  This module
accepts all of them and skips the instruction rows that the import template
carries below the data.
"""
import logging

from models.import_record import ParsedTable

logger = logging.getLogger(__name__)

SEPARATORS = (",", ";")
QUOTE = '"'
_BOMS = ("\ufeff", "\u00ef\u00bb\u00bf")


class ImportFormatError(Exception):
    """A file that cannot be imported as a whole."""


class MissingHeaderError(ImportFormatError):
    def __init__(self, missing: list[str], found: list[str]):
        self.missing = missing
        self.found = found
        super().__init__(
            f"Missing required columns: {', '.join(missing)}. "
            f"Headers found: {', '.join(found) or '(none)'}."
        )


class EmptyFileError(ImportFormatError):
    def __init__(self, total_lines: int, data_lines: int):
        self.total_lines = total_lines
        self.data_lines = data_lines
        super().__init__(
            "The file appears to be empty or contains only instructions. "
            f"Found {total_lines} total lines, {data_lines} data lines."
        )


class NoRecognizableDataError(ImportFormatError):
    def __init__(self, detail: str = ""):
        message = "No recognizable direct debit data found."
        if detail:
            message = f"{message} {detail}"
        super().__init__(
            f"{message} Save the spreadsheet as CSV and upload that instead."
        )


def parse_delimited_line(line: str) -> list[str]:
    """Split one line on ',' or ';' outside quotes.

    A doubled quote inside a quoted field is one literal quote.  Surrounding
    quotes are consumed, fields trimmed and trailing empty fields dropped.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < n and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif char in SEPARATORS and not in_quotes:
            fields.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)
        i += 1
    fields.append(_clean_field("".join(current)))

    while fields and fields[-1] == "":
        fields.pop()
    return fields


def _clean_field(value: str) -> str:
    # Quote characters that delimit a field never reach here; any left are literal.
    return value.strip()


def normalize_text(text: str) -> str:
    """Unify CRLF/CR line endings to LF and drop a leading byte order mark."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for bom in _BOMS:
        if text.startswith(bom):
            text = text[len(bom):]
    return text


def is_instruction_line(
    line: str, instruction_patterns: list[str], canonical_labels: list[str]
) -> bool:
    """True for blank lines, template instructions and echoed category names."""
    trimmed = line.strip()
    for bom in _BOMS:
        trimmed = trimmed.replace(bom, "")
    trimmed = trimmed.strip().lstrip(",;").rstrip(",;").strip()
    if not trimmed:
        return True
    lowered = trimmed.lower()
    if any(lowered.startswith(p.lower()) for p in instruction_patterns):
        return True
    return trimmed in canonical_labels


def parse_table(
    text: str,
    required_headers: list[str],
    instruction_patterns: list[str],
    canonical_labels: list[str],
) -> ParsedTable:
    """Parse delimited text into rows keyed by required header name.

    Raises EmptyFileError when no data row survives filtering and
    MissingHeaderError when a required name is not a (case-insensitive)
    substring of any header cell.  Rows missing any required value are
    skipped and counted.
    """
    all_lines = normalize_text(text).split("\n")
    data_lines = [
        (number, line) for number, line in enumerate(all_lines, start=1)
        if not is_instruction_line(line, instruction_patterns, canonical_labels)
    ]
    if len(data_lines) < 2:
        raise EmptyFileError(len(all_lines), len(data_lines))

    headers = [h.strip().lower() for h in parse_delimited_line(data_lines[0][1].strip())]
    positions: dict[str, int] = {}
    missing: list[str] = []
    for name in required_headers:
        index = next((i for i, h in enumerate(headers) if name.lower() in h), None)
        if index is None:
            missing.append(name)
        else:
            positions[name] = index
    if missing:
        raise MissingHeaderError(missing, headers)

    rows: list[dict[str, str]] = []
    skipped = 0
    for number, line in data_lines[1:]:
        values = parse_delimited_line(line.strip())
        row = {
            name: values[index].strip() if index < len(values) else ""
            for name, index in positions.items()
        }
        if not all(row.values()):
            logger.debug("Skipping incomplete row %d: %r", number, line)
            skipped += 1
            continue
        row["_line"] = str(number)
        rows.append(row)

    return ParsedTable(
        headers=headers, rows=rows, skipped_rows=skipped, total_lines=len(all_lines)
    )
