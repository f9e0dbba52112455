"""Duplicate detection for direct debits.

Two obligations are the same when their names match ignoring case and their
amounts are numerically equal, so '£12.99' and '12.990' collide while
'£12.99' and '£13.99' do not.  Card ownership is ignored: a debit already
set up on another card still counts.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from models.recurring_obligation import RecurringObligation
from utils.currency import parse_amount


@dataclass
class DuplicateReport:
    duplicates: list = field(default_factory=list)
    non_duplicates: list = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)


def duplicate_key(name: str, amount) -> tuple[str, Optional[Decimal]]:
    value = parse_amount(amount)
    return (name or "").strip().casefold(), value.normalize() if value is not None else None


def find_duplicates(
    candidates: Iterable[RecurringObligation],
    existing: Iterable[RecurringObligation],
) -> DuplicateReport:
    """Partition candidates into (duplicates, non_duplicates), keeping input order."""
    existing = list(existing)
    report = DuplicateReport()
    for candidate in candidates:
        key = duplicate_key(candidate.name, candidate.amount)
        if any(duplicate_key(e.name, e.amount) == key for e in existing):
            report.duplicates.append(candidate)
        else:
            report.non_duplicates.append(candidate)
    return report


def find_conflict(
    name: str,
    amount,
    existing: Iterable[RecurringObligation],
    exclude_id: int | None = None,
) -> Optional[RecurringObligation]:
    """Return the first stored obligation with the same name and amount, if any.

    exclude_id skips the record being edited.
    """
    key = duplicate_key(name, amount)
    for obligation in existing:
        if exclude_id is not None and obligation.id == exclude_id:
            continue
        if duplicate_key(obligation.name, obligation.amount) == key:
            return obligation
    return None
