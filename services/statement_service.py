import csv
import io
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable

from database.card_dao import CardDAO
from database.transaction_dao import TransactionDAO
from models.card import Card
from models.statement import (
    AVAILABILITY_AVAILABLE,
    AVAILABILITY_CURRENT,
    MonthlyStatement,
)
from models.transaction import Transaction
from services.category_service import CategoryService
from utils.constants import (
    CREDIT_PAYMENT_DUE_DAY,
    CREDIT_STATEMENT_DAY,
    DATE_RANGE_DAYS,
    MINIMUM_PAYMENT_FLOOR,
    MINIMUM_PAYMENT_RATE,
    OTHER_CATEGORY,
    STATEMENT_EXPORT_HEADER,
)
from utils.currency import parse_amount, quantize
from utils.date_helpers import (
    add_days,
    format_date,
    format_export_date,
    format_month,
    friendly_month,
    month_bounds,
    parse_date,
    parse_export_date,
    parse_month,
    project_date,
    shift_month,
    today,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


# ── Aggregation ──────────────────────────────────────────────────────────────

def group_by_month(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    """Bucket transactions by 'YYYY-MM'; rows whose date cannot be read are dropped."""
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        d = parse_date(tx.date)
        if d is None:
            logger.debug("Ignoring transaction %s with unreadable date %r", tx.id, tx.date)
            continue
        groups[format_month(d)].append(tx)
    for group in groups.values():
        group.sort(key=lambda t: (parse_date(t.date), t.id or 0))
    return dict(groups)


def minimum_payment(total_outflow: Decimal) -> Decimal:
    """3% of the month's spending, never less than £25."""
    floor = Decimal(MINIMUM_PAYMENT_FLOOR)
    return quantize(max(floor, total_outflow * Decimal(MINIMUM_PAYMENT_RATE)))


def aggregate(
    period_key: str,
    group: list[Transaction],
    card: Card | None = None,
    availability: str = AVAILABILITY_AVAILABLE,
) -> MonthlyStatement:
    """Totals for one month.  Each month stands alone: closing balance is its net change."""
    first = parse_month(period_key)
    if first is None:
        raise ValueError(f"Invalid period: {period_key}")
    start, end = month_bounds(first.year, first.month)

    outflow = sum((-t.amount for t in group if t.amount < 0), ZERO)
    inflow = sum((t.amount for t in group if t.amount >= 0), ZERO)
    net = inflow - outflow

    statement = MonthlyStatement(
        period_key=period_key,
        period=friendly_month(period_key),
        start_date=format_date(start),
        end_date=format_date(end),
        total_outflow=outflow,
        total_inflow=inflow,
        net_change=net,
        closing_balance=net,
        transaction_count=len(group),
        availability=availability,
        transactions=list(group),
    )
    if card is not None and card.is_credit:
        y, m = shift_month(first.year, first.month, 1)
        statement.minimum_payment = minimum_payment(outflow)
        statement.due_date = format_date(project_date(y, m, CREDIT_PAYMENT_DUE_DAY))
    return statement


def is_available(period_key: str, card_type: str, ref_date: date) -> bool:
    """Whether a month's statement is final.

    Past months always are.  The current month becomes available on the 21st
    for credit cards; a debit card's month is never final while still current.
    """
    if period_key != format_month(ref_date):
        return True
    if card_type == "credit":
        return ref_date.day > CREDIT_STATEMENT_DAY
    return False


def build_statements(
    transactions: Iterable[Transaction],
    card: Card | None,
    ref_date: date | None = None,
) -> list[MonthlyStatement]:
    """Available statements, newest first."""
    ref = ref_date or today()
    card_type = card.card_type if card else "debit"
    statements = [
        aggregate(key, group, card)
        for key, group in group_by_month(transactions).items()
        if is_available(key, card_type, ref)
    ]
    statements.sort(key=lambda s: s.period_key, reverse=True)
    return statements


def current_period(
    transactions: Iterable[Transaction],
    card: Card | None,
    ref_date: date | None = None,
) -> MonthlyStatement:
    """Running totals for the month in progress."""
    ref = ref_date or today()
    key = format_month(ref)
    group = group_by_month(transactions).get(key, [])
    return aggregate(key, group, card, availability=AVAILABILITY_CURRENT)


# ── Export ───────────────────────────────────────────────────────────────────

def export_row(tx: Transaction) -> list[str]:
    d = parse_date(tx.date)
    return [
        format_export_date(d) if d else tx.date,
        tx.description or "Transaction",
        tx.category or OTHER_CATEGORY,
        f"{quantize(abs(tx.amount)):.2f}",
        "Expense" if tx.is_expense else "Income",
    ]


def export_statement_csv(statement: MonthlyStatement) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(STATEMENT_EXPORT_HEADER)
    for tx in statement.transactions:
        writer.writerow(export_row(tx))
    return buf.getvalue()


def parse_export_row(line: str) -> tuple[date | None, str, str, Decimal | None]:
    """Read one exported row back as (date, description, category, signed amount)."""
    fields = next(csv.reader([line]))
    day, description, category, amount, kind = fields[:5]
    value = parse_amount(amount)
    if value is not None and kind == "Expense":
        value = -value
    return parse_export_date(day), description, category, value


def statement_filename(statement: MonthlyStatement, card_name: str = "") -> str:
    name = f"{statement.period.replace(' ', '_')}_Statement"
    if card_name:
        name += f"_{card_name.replace(' ', '_')}"
    return f"{name}.csv"


# ── Filtering ────────────────────────────────────────────────────────────────

def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    category: str = "All",
    date_range: str = "All",
    ref_date: date | None = None,
    custom_start: str | None = None,
    custom_end: str | None = None,
    categories: CategoryService | None = None,
) -> list[Transaction]:
    """Apply the statement screen's search box and filters; newest first."""
    matcher = categories or CategoryService()
    ref = ref_date or today()
    result = list(transactions)

    query = (search or "").strip().lower()
    if query:
        result = [
            t for t in result
            if query in (t.description or "").lower()
            or query in (t.category or "").lower()
            or query in str(t.amount)
        ]

    if category and category != "All":
        result = [t for t in result if matcher.matches_filter(t.category, category)]

    if date_range in DATE_RANGE_DAYS:
        since = add_days(ref, -DATE_RANGE_DAYS[date_range])
        result = [t for t in result if (parse_date(t.date) or date.min) >= since]
    elif date_range == "Custom":
        start, end = parse_date(custom_start), parse_date(custom_end)
        if start and end:
            result = [
                t for t in result
                if parse_date(t.date) and start <= parse_date(t.date) <= end
            ]

    result.sort(key=lambda t: (parse_date(t.date) or date.min, t.id or 0), reverse=True)
    return result


class StatementService:
    def __init__(self, tx_dao: TransactionDAO, card_dao: CardDAO):
        self._tx_dao = tx_dao
        self._card_dao = card_dao

    def _card(self, card_id: int) -> Card:
        card = self._card_dao.get_by_id(card_id)
        if card is None:
            raise ValueError("Card not found.")
        return card

    def get_statements(
        self, user_id: str, card_id: int, ref_date: date | None = None
    ) -> list[MonthlyStatement]:
        card = self._card(card_id)
        return build_statements(self._tx_dao.get_by_card(user_id, card_id), card, ref_date)

    def get_current_period(
        self, user_id: str, card_id: int, ref_date: date | None = None
    ) -> MonthlyStatement:
        card = self._card(card_id)
        return current_period(self._tx_dao.get_by_card(user_id, card_id), card, ref_date)

    def export_csv(
        self, user_id: str, card_id: int, period_key: str, ref_date: date | None = None
    ) -> str:
        for statement in self.get_statements(user_id, card_id, ref_date):
            if statement.period_key == period_key:
                return export_statement_csv(statement)
        raise ValueError(f"No statement available for {period_key}.")

    def subscribe(
        self,
        user_id: str,
        card_id: int,
        on_data: Callable[[list[MonthlyStatement]], None],
        ref_date: date | None = None,
    ) -> Callable[[], None]:
        """Rebuild the card's statements now and after every transaction change."""
        def deliver():
            on_data(self.get_statements(user_id, card_id, ref_date))

        unsubscribe = self._tx_dao.listen(deliver)
        deliver()
        return unsubscribe
