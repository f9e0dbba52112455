import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from database.card_dao import CardDAO
from database.direct_debit_dao import DirectDebitDAO
from database.transaction_dao import TransactionDAO
from models.card import Card
from models.recurring_obligation import RecurringObligation
from models.transaction import Transaction
from services.recurring_service import advance_by_frequency
from utils.currency import format_currency
from utils.date_helpers import format_date, parse_date, today

logger = logging.getLogger(__name__)

CARD_NOT_FOUND = "CARD_NOT_FOUND"
INVALID_AMOUNT = "INVALID_AMOUNT"
INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
TRANSACTION_FAILED = "TRANSACTION_FAILED"


@dataclass
class PaymentOutcome:
    debit: RecurringObligation
    success: bool
    error_type: str = ""
    error: str = ""
    available: Optional[Decimal] = None
    transaction: Optional[Transaction] = None


@dataclass
class ProcessingResult:
    processed: list[PaymentOutcome] = field(default_factory=list)
    failed: list[PaymentOutcome] = field(default_factory=list)

    @property
    def total_charged(self) -> Decimal:
        return sum((o.debit.amount for o in self.processed), Decimal("0"))


def is_due(debit: RecurringObligation, ref_date: date) -> bool:
    return debit.is_active and parse_date(debit.next_occurrence) == ref_date


class ProcessingService:
    """Charges direct debits that fall due and moves them on to their next date."""

    def __init__(self, dd_dao: DirectDebitDAO, tx_dao: TransactionDAO, card_dao: CardDAO):
        self._dd_dao = dd_dao
        self._tx_dao = tx_dao
        self._card_dao = card_dao

    def available_funds(self, card: Card) -> Decimal:
        """Debit cards spend their balance; credit cards their limit plus balance."""
        balance = self._tx_dao.get_card_balance(card.id)
        return card.credit_limit + balance if card.is_credit else balance

    def check(self, debit: RecurringObligation) -> PaymentOutcome:
        """Run the pre-payment checks without charging anything."""
        card = self._card_dao.get_by_id(debit.card_id)
        if card is None:
            return PaymentOutcome(debit, False, CARD_NOT_FOUND, "Source card not found")
        if debit.amount is None or debit.amount <= 0:
            return PaymentOutcome(debit, False, INVALID_AMOUNT, "Invalid payment amount")
        available = self.available_funds(card)
        if available < debit.amount:
            return PaymentOutcome(
                debit, False, INSUFFICIENT_FUNDS,
                f"Insufficient funds. Available: {format_currency(available)}, "
                f"Required: {format_currency(debit.amount)}",
                available=available,
            )
        return PaymentOutcome(debit, True, available=available)

    def simulate(self, user_id: str, ref_date: date | None = None) -> list[PaymentOutcome]:
        ref = ref_date or today()
        return [self.check(d) for d in self._dd_dao.get_active(user_id) if is_due(d, ref)]

    def process_due(self, user_id: str, ref_date: date | None = None) -> ProcessingResult:
        ref = ref_date or today()
        result = ProcessingResult()
        for debit in self._dd_dao.get_active(user_id):
            if not is_due(debit, ref):
                continue
            outcome = self._charge(debit, ref)
            if outcome.success:
                result.processed.append(outcome)
            else:
                logger.warning(
                    "Direct debit %s (%s) not paid: %s",
                    debit.id, debit.name, outcome.error_type,
                )
                result.failed.append(outcome)
        if result.processed or result.failed:
            logger.info(
                "Processed %d direct debits, %d failed",
                len(result.processed), len(result.failed),
            )
        return result

    def _charge(self, debit: RecurringObligation, ref: date) -> PaymentOutcome:
        """Write the charge and move the debit on as one commit."""
        outcome = self.check(debit)
        if not outcome.success:
            return outcome
        db = self._tx_dao._db
        conn = db.get_connection()
        following = advance_by_frequency(ref, debit.frequency, debit.anchor_day)
        try:
            transaction = self._tx_dao.create(
                user_id=debit.user_id,
                card_id=debit.card_id,
                amount=-debit.amount,
                date=format_date(ref),
                description=f"Direct Debit: {debit.name}",
                category=debit.category or "Other",
                direct_debit_id=debit.id,
                commit=False,
            )
            self._dd_dao.record_payment(
                debit.id, format_date(ref), format_date(following), commit=False
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.warning("Failed to record payment for %s: %s", debit.name, e)
            return PaymentOutcome(debit, False, TRANSACTION_FAILED, "Failed to record payment")
        db.notify("transactions")
        db.notify("direct_debits")
        outcome.transaction = transaction
        return outcome
