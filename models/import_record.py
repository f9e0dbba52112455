from dataclasses import dataclass, field
from typing import Optional

SOURCE_TABLE = "table"
SOURCE_BEST_EFFORT = "best_effort"

CONFIDENCE_HIGH = "high"
CONFIDENCE_LOW = "low"


@dataclass
class ImportRecord:
    """One imported row before validation. Every field may be missing."""
    company: Optional[str] = None
    amount: Optional[str] = None
    frequency: Optional[str] = None
    category: Optional[str] = None
    date: Optional[str] = None      # day of month as typed, e.g. '15'
    source: str = SOURCE_TABLE
    confidence: str = CONFIDENCE_HIGH
    line_number: Optional[int] = None


@dataclass
class ParsedTable:
    headers: list[str]
    rows: list[dict[str, str]]
    skipped_rows: int = 0
    total_lines: int = 0


@dataclass
class ImportResult:
    """Outcome of turning an uploaded file into draft direct debits."""
    success: bool
    drafts: list = field(default_factory=list)          # list[RecurringObligation]
    skipped: int = 0
    source: str = SOURCE_TABLE
    error: Optional[Exception] = None

    @property
    def low_confidence(self) -> bool:
        return self.source == SOURCE_BEST_EFFORT

    @property
    def message(self) -> str:
        if self.error is not None:
            return str(self.error)
        return f"Found {len(self.drafts)} direct debits ({self.skipped} rows skipped)."


@dataclass
class BatchImportResult:
    imported: int = 0
    failed: int = 0
    failures: list[str] = field(default_factory=list)   # names that failed
    created: list = field(default_factory=list)         # list[RecurringObligation]

    @property
    def success(self) -> bool:
        return self.imported > 0 or self.failed == 0
