from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from models.recurring_obligation import RecurringObligation
from services.processing_service import ProcessingService
from services.recurring_service import RecurringService
from utils.constants import SEVERITY_ORDER, UPCOMING_PAYMENT_DAYS, UPCOMING_REMINDER_DAYS
from utils.currency import format_currency
from utils.date_helpers import parse_date, today


@dataclass
class UpcomingPayment:
    debit: RecurringObligation
    due_date: date
    days_until: int

    @property
    def amount(self) -> Decimal:
        return self.debit.amount


@dataclass
class Reminder:
    type: str       # 'upcoming_payment' | 'payment_at_risk'
    severity: str   # 'info' | 'warning' | 'error'
    title: str
    detail: str
    key: str = ""   # e.g. "debit:5"


def day_label(days_away: int) -> str:
    if days_away == 0:
        return "today"
    if days_away == 1:
        return "tomorrow"
    return f"in {days_away} days"


class ReminderService:
    def __init__(
        self,
        recurring_service: RecurringService,
        processing_service: ProcessingService,
    ):
        self._recurring = recurring_service
        self._processing = processing_service

    def upcoming(
        self,
        user_id: str,
        ref_date: date | None = None,
        days: int = UPCOMING_PAYMENT_DAYS,
    ) -> list[UpcomingPayment]:
        """Active debits due between today and `days` days ahead, soonest first."""
        ref = ref_date or today()
        result = []
        for debit in self._recurring.get_active(user_id):
            due = parse_date(debit.next_occurrence)
            if due is None:
                continue
            days_until = (due - ref).days
            if 0 <= days_until <= days:
                result.append(UpcomingPayment(debit, due, days_until))
        result.sort(key=lambda p: (p.due_date, p.debit.name.lower()))
        return result

    def get_reminders(
        self,
        user_id: str,
        ref_date: date | None = None,
        upcoming_days: int = UPCOMING_REMINDER_DAYS,
    ) -> list[Reminder]:
        ref = ref_date or today()
        reminders: list[Reminder] = []
        for outcome in self._processing.simulate(user_id, ref):
            if outcome.success:
                continue
            debit = outcome.debit
            reminders.append(Reminder(
                type="payment_at_risk",
                severity="warning",
                title=f"{debit.name} may fail today",
                detail=outcome.error,
                key=f"debit:{debit.id}",
            ))
        for payment in self.upcoming(user_id, ref, upcoming_days):
            debit = payment.debit
            reminders.append(Reminder(
                type="upcoming_payment",
                severity="info",
                title=f"{debit.name} due {day_label(payment.days_until)}",
                detail=(
                    f"Due on {payment.due_date.strftime('%d %b')} · "
                    f"{format_currency(debit.amount)} · {debit.category}"
                ),
                key=f"debit:{debit.id}",
            ))
        return sorted(reminders, key=lambda r: SEVERITY_ORDER[r.severity])
