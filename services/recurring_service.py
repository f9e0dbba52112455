import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Iterator

from database.card_dao import CardDAO
from database.direct_debit_dao import DirectDebitDAO
from models.recurring_obligation import RecurringObligation
from services.category_service import reconcile_category
from services.duplicate_detector import find_conflict
from utils.constants import (
    CALENDAR_MONTHS_AHEAD,
    DIRECT_DEBIT_CATEGORIES,
    FREQUENCIES,
    FREQUENCY_MONTHS,
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUSES,
    WEEKLY_INTERVAL_DAYS,
)
from utils.currency import format_currency, parse_amount
from utils.date_helpers import (
    add_days,
    add_months,
    format_date,
    parse_day_of_month,
    project_date,
    shift_month,
    today,
)

logger = logging.getLogger(__name__)


# ── Projection ───────────────────────────────────────────────────────────────

def next_occurrence(anchor_day: int, from_date: date | None = None) -> date:
    """First date strictly after from_date falling on anchor_day (month-end clamped)."""
    ref = from_date or today()
    candidate = project_date(ref.year, ref.month, anchor_day)
    if candidate <= ref:
        y, m = shift_month(ref.year, ref.month, 1)
        candidate = project_date(y, m, anchor_day)
    return candidate


def occurrences_in_range(
    obligation: RecurringObligation,
    start_horizon: date,
    months_ahead: int = CALENDAR_MONTHS_AHEAD,
) -> Iterator[date]:
    """Yield one occurrence per calendar month, starting with start_horizon's month.

    Paused and cancelled obligations yield nothing.
    """
    if not obligation.is_active:
        return
    for offset in range(months_ahead):
        y, m = shift_month(start_horizon.year, start_horizon.month, offset)
        yield project_date(y, m, obligation.anchor_day)


def advance_by_frequency(current: date, frequency: str, anchor_day: int | None = None) -> date:
    """Date of the payment after `current`.

    Month-based steps land on anchor_day (clamped), so a debit anchored on the
    31st returns to the 31st after passing through February.
    """
    if frequency == "Weekly":
        return add_days(current, WEEKLY_INTERVAL_DAYS)
    months = FREQUENCY_MONTHS.get(frequency, 1)
    return add_months(current, months, anchor_day or current.day)


class DuplicateDebitError(ValueError):
    """Raised on create/update when the same name and amount already exist.

    Retry with allow_duplicate=True to keep both.
    """
    def __init__(self, message: str, existing: RecurringObligation):
        super().__init__(message)
        self.existing = existing


@dataclass
class CalendarEvent:
    date: date
    obligation_id: int
    name: str
    amount: Decimal
    category: str
    card_id: int
    status: str     # 'completed' | 'upcoming'


class RecurringService:
    def __init__(self, dd_dao: DirectDebitDAO, card_dao: CardDAO):
        self._dao = dd_dao
        self._card_dao = card_dao

    def get_all(self, user_id: str) -> list[RecurringObligation]:
        return self._dao.get_for_user(user_id)

    def get_active(self, user_id: str) -> list[RecurringObligation]:
        return self._dao.get_active(user_id)

    def get_by_id(self, debit_id: int) -> RecurringObligation | None:
        return self._dao.get_by_id(debit_id)

    def get_for_card(self, user_id: str, card_id: int) -> list[RecurringObligation]:
        """Debits paid from the card plus those paying it down (linked_card_id)."""
        return [
            d for d in self._dao.get_for_user(user_id)
            if d.card_id == card_id or d.linked_card_id == card_id
        ]

    def create(
        self,
        user_id: str,
        card_id: int,
        name: str,
        amount,
        frequency: str,
        category: str,
        anchor_day,
        description: str = "",
        linked_card_id: int | None = None,
        allow_duplicate: bool = False,
        ref_date: date | None = None,
    ) -> RecurringObligation:
        value, day = self._validate(card_id, name, amount, frequency, anchor_day)
        if not allow_duplicate:
            self._check_conflict(user_id, name, value)
        debit = RecurringObligation(
            id=None,
            user_id=user_id,
            card_id=card_id,
            linked_card_id=linked_card_id,
            name=name.strip(),
            description=description.strip(),
            amount=value,
            frequency=frequency,
            category=reconcile_category(category, DIRECT_DEBIT_CATEGORIES),
            anchor_day=day,
            next_occurrence=format_date(next_occurrence(day, ref_date)),
        )
        created = self._dao.create(debit)
        logger.info("Created direct debit %s (%s)", created.id, created.name)
        return created

    def update(
        self,
        debit_id: int,
        name: str,
        amount,
        frequency: str,
        category: str,
        anchor_day,
        description: str = "",
        linked_card_id: int | None = None,
        allow_duplicate: bool = False,
        ref_date: date | None = None,
    ) -> RecurringObligation:
        current = self._dao.get_by_id(debit_id)
        if current is None:
            raise ValueError("Direct debit not found.")
        value, day = self._validate(current.card_id, name, amount, frequency, anchor_day)
        if not allow_duplicate:
            self._check_conflict(current.user_id, name, value, exclude_id=debit_id)
        current.name = name.strip()
        current.description = description.strip()
        current.amount = value
        current.frequency = frequency
        current.category = reconcile_category(category, DIRECT_DEBIT_CATEGORIES)
        current.linked_card_id = linked_card_id
        if day != current.anchor_day:
            current.next_occurrence = format_date(next_occurrence(day, ref_date))
        current.anchor_day = day
        return self._dao.update(current)

    def set_status(self, debit_id: int, status: str):
        if status not in STATUSES:
            raise ValueError(f"Invalid status: {status}")
        self._dao.set_status(debit_id, status)

    def toggle_pause(self, debit_id: int) -> str:
        """Pause an active debit or resume a paused one; returns the new status."""
        debit = self._dao.get_by_id(debit_id)
        if debit is None:
            raise ValueError("Direct debit not found.")
        new_status = STATUS_PAUSED if debit.is_active else STATUS_ACTIVE
        self._dao.set_status(debit_id, new_status)
        return new_status

    def delete(self, debit_id: int):
        self._dao.delete(debit_id)

    def calendar_events(
        self,
        user_id: str,
        start: date | None = None,
        months_ahead: int = CALENDAR_MONTHS_AHEAD,
    ) -> list[CalendarEvent]:
        """Expand active debits into dated events, earliest first.

        Events before `start` are marked completed, the rest upcoming.
        """
        ref = start or today()
        events = []
        for debit in self._dao.get_active(user_id):
            for d in occurrences_in_range(debit, ref, months_ahead):
                events.append(CalendarEvent(
                    date=d,
                    obligation_id=debit.id,
                    name=debit.name,
                    amount=debit.amount,
                    category=debit.category,
                    card_id=debit.card_id,
                    status="completed" if d < ref else "upcoming",
                ))
        events.sort(key=lambda e: (e.date, e.name.lower()))
        return events

    def monthly_total(self, user_id: str, card_id: int | None = None) -> Decimal:
        """Sum of active debits, regardless of frequency."""
        debits = self._dao.get_active(user_id)
        if card_id is not None:
            debits = [d for d in debits if d.card_id == card_id]
        return sum((d.amount for d in debits), Decimal("0"))

    def subscribe(
        self, user_id: str, on_data: Callable[[list[RecurringObligation]], None]
    ) -> Callable[[], None]:
        """Deliver the user's debits now and again after every change."""
        def deliver():
            on_data(self._dao.get_for_user(user_id))

        unsubscribe = self._dao.listen(deliver)
        deliver()
        return unsubscribe

    def _check_conflict(self, user_id, name, amount, exclude_id=None):
        existing = self._dao.get_for_user(user_id)
        clash = find_conflict(name, amount, existing, exclude_id=exclude_id)
        if clash is None:
            return
        card = self._card_dao.get_by_id(clash.card_id)
        where = card.name if card else "another card"
        raise DuplicateDebitError(
            f'A direct debit for "{clash.name}" with amount '
            f"{format_currency(clash.amount)} already exists on {where}.",
            clash,
        )

    def _validate(self, card_id, name, amount, frequency, anchor_day) -> tuple[Decimal, int]:
        if not (name or "").strip():
            raise ValueError("Name cannot be empty.")
        value = parse_amount(amount)
        if value is None:
            raise ValueError("Amount must be a number.")
        if value <= 0:
            raise ValueError("Amount must be positive.")
        if frequency not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        day = parse_day_of_month(anchor_day)
        if day is None:
            raise ValueError("Payment day must be between 1 and 31.")
        if self._card_dao.get_by_id(card_id) is None:
            raise ValueError("Card not found.")
        return value, day
