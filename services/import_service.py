import logging
import os
import sqlite3
from datetime import date

from database.direct_debit_dao import DirectDebitDAO
from models.import_record import (
    BatchImportResult,
    ImportRecord,
    ImportResult,
    SOURCE_BEST_EFFORT,
    SOURCE_TABLE,
)
from models.recurring_obligation import RecurringObligation
from services.category_service import reconcile_category
from services.duplicate_detector import DuplicateReport, find_duplicates
from services.recurring_service import next_occurrence
from utils.best_effort import extract_best_effort_records, extract_readable_text
from utils.constants import (
    BEST_EFFORT_CATEGORY_KEYWORDS,
    BINARY_IMPORT_EXTENSIONS,
    DIRECT_DEBIT_CATEGORIES,
    FREQUENCIES,
    INSTRUCTION_PATTERNS,
    KNOWN_MERCHANT_HINTS,
    REQUIRED_IMPORT_HEADERS,
    SAMPLE_IMPORT_ROWS,
)
from utils.currency import parse_amount
from utils.date_helpers import format_date, parse_day_of_month, today
from utils.delimited import (
    ImportFormatError,
    NoRecognizableDataError,
    parse_table,
)

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "SpendFlow_DirectDebits_Template.csv"


def normalize_frequency(raw: str | None) -> str | None:
    """Match a typed frequency against the known ones, ignoring case; None if unknown."""
    label = (raw or "").strip().lower()
    for freq in FREQUENCIES:
        if freq.lower() == label:
            return freq
    return None


def build_import_template(categories: list[str] | None = None) -> str:
    """CSV template: header, sample rows, then the reference block the importer skips.

    categories limits the sample rows to those categories; an empty or
    missing list keeps them all.
    """
    rows = SAMPLE_IMPORT_ROWS
    if categories:
        rows = [r for r in rows if r["category"] in categories]

    lines = ["Company,Amount,Frequency,Category,Date"]
    for r in rows:
        lines.append(
            f"{r['company']},{r['amount']},{r['frequency']},{r['category']},{r['date']}"
        )
    lines += ["", "DELETE ALL ROWS BELOW BEFORE IMPORTING", "", "Available Categories:"]
    lines += DIRECT_DEBIT_CATEGORIES
    lines += ["", "Available Frequencies:"]
    lines += FREQUENCIES
    lines += [
        "",
        "Format Notes:",
        "Amount must include the £ symbol (e.g. £12.99)",
        "Date must be the DAY OF MONTH only (1-31, e.g. 15 for the 15th of every month)",
        "Frequency: Weekly, Monthly, Quarterly or Yearly",
        "Template works with Excel, Numbers, Google Sheets and LibreOffice",
    ]
    return "\n".join(lines) + "\n"


class ImportService:
    def __init__(
        self,
        dd_dao: DirectDebitDAO,
        categories: list[str] | None = None,
        name_hints: list[str] | None = None,
    ):
        self._dao = dd_dao
        self._categories = categories or DIRECT_DEBIT_CATEGORIES
        self._name_hints = name_hints or KNOWN_MERCHANT_HINTS

    # ── Parsing ──────────────────────────────────────────────────────────────

    def parse_file(
        self,
        filename: str,
        content: bytes | str,
        user_id: str,
        card_id: int,
        ref_date: date | None = None,
    ) -> ImportResult:
        """Turn an uploaded file into draft debits; failures come back in the result."""
        ext = os.path.splitext(filename or "")[1].lower()
        if ext in BINARY_IMPORT_EXTENSIONS:
            return self.parse_binary(content, user_id, card_id, ref_date)
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        return self.parse_text(content, user_id, card_id, ref_date)

    def parse_text(
        self, text: str, user_id: str, card_id: int, ref_date: date | None = None
    ) -> ImportResult:
        try:
            table = parse_table(
                text, REQUIRED_IMPORT_HEADERS, INSTRUCTION_PATTERNS, self._categories
            )
        except ImportFormatError as e:
            logger.warning("Import rejected: %s", e)
            return ImportResult(success=False, error=e)

        records = [
            ImportRecord(
                company=row["company"],
                amount=row["amount"],
                frequency=row["frequency"],
                category=row["category"],
                date=row["date"],
                line_number=int(row["_line"]),
            )
            for row in table.rows
        ]
        drafts, rejected = self._to_drafts(records, user_id, card_id, ref_date)
        skipped = table.skipped_rows + rejected
        if not drafts:
            error = NoRecognizableDataError(
                "No valid direct debits found. Check the file format and try again."
            )
            logger.warning("Import produced no rows (%d skipped)", skipped)
            return ImportResult(success=False, skipped=skipped, error=error)

        logger.info("Parsed %d direct debits (%d rows skipped)", len(drafts), skipped)
        return ImportResult(success=True, drafts=drafts, skipped=skipped, source=SOURCE_TABLE)

    def parse_binary(
        self, raw: bytes | str, user_id: str, card_id: int, ref_date: date | None = None
    ) -> ImportResult:
        """Best-effort scrape of a file format we cannot read properly."""
        text = extract_readable_text(raw)
        if not text.strip():
            error = NoRecognizableDataError("No readable text found in the file.")
            return ImportResult(success=False, source=SOURCE_BEST_EFFORT, error=error)

        records = extract_best_effort_records(
            text, self._name_hints, BEST_EFFORT_CATEGORY_KEYWORDS
        )
        drafts, rejected = self._to_drafts(records, user_id, card_id, ref_date)
        if not drafts:
            return ImportResult(
                success=False,
                source=SOURCE_BEST_EFFORT,
                error=NoRecognizableDataError(),
            )
        logger.info("Extracted %d low-confidence direct debits", len(drafts))
        return ImportResult(
            success=True, drafts=drafts, skipped=rejected, source=SOURCE_BEST_EFFORT
        )

    def to_draft(
        self,
        record: ImportRecord,
        user_id: str,
        card_id: int,
        ref_date: date | None = None,
    ) -> RecurringObligation | None:
        """Validate one record into an unsaved debit, or None when unusable.

        Table rows need a readable amount, frequency and day of month.
        Best-effort records never carry a day; they are anchored on ref_date's
        day and first fall due a month later.
        """
        name = (record.company or "").strip()
        amount = parse_amount(record.amount)
        frequency = normalize_frequency(record.frequency)
        if not name or amount is None or amount <= 0 or frequency is None:
            return None
        ref = ref_date or today()
        if record.source == SOURCE_BEST_EFFORT:
            day = ref.day
        else:
            day = parse_day_of_month(record.date)
            if day is None:
                return None
        return RecurringObligation(
            id=None,
            user_id=user_id,
            card_id=card_id,
            name=name,
            amount=amount,
            frequency=frequency,
            category=reconcile_category(record.category, self._categories),
            anchor_day=day,
            next_occurrence=format_date(next_occurrence(day, ref)),
        )

    def _to_drafts(self, records, user_id, card_id, ref_date):
        drafts = []
        rejected = 0
        for record in records:
            draft = self.to_draft(record, user_id, card_id, ref_date)
            if draft is None:
                logger.warning(
                    "Skipping unusable import row %s (%r)",
                    record.line_number or "-", record.company,
                )
                rejected += 1
                continue
            drafts.append(draft)
        return drafts, rejected

    # ── Saving ───────────────────────────────────────────────────────────────

    def check_duplicates(self, user_id: str, drafts: list[RecurringObligation]) -> DuplicateReport:
        """Compare drafts against every debit the user has, on any card."""
        return find_duplicates(drafts, self._dao.get_for_user(user_id))

    def import_non_duplicates(
        self, user_id: str, drafts: list[RecurringObligation]
    ) -> BatchImportResult:
        report = self.check_duplicates(user_id, drafts)
        if report.duplicates:
            logger.info("Skipping %d duplicate direct debits", len(report.duplicates))
        return self._save_batch(report.non_duplicates)

    def import_all(self, drafts: list[RecurringObligation]) -> BatchImportResult:
        return self._save_batch(drafts)

    def _save_batch(self, drafts: list[RecurringObligation]) -> BatchImportResult:
        result = BatchImportResult()
        for draft in drafts:
            try:
                result.created.append(self._dao.create(draft))
                result.imported += 1
            except sqlite3.Error as e:
                logger.warning("Failed to import %s: %s", draft.name, e)
                result.failed += 1
                result.failures.append(draft.name)
        logger.info("Import complete: %d imported, %d failed", result.imported, result.failed)
        return result
