from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_obligation import RecurringObligation

TABLE = "direct_debits"


class DirectDebitDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringObligation:
        return RecurringObligation(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            frequency=row["frequency"],
            category=row["category"],
            anchor_day=row["anchor_day"],
            next_occurrence=row["next_occurrence"],
            status=row["status"],
            card_id=row["card_id"],
            linked_card_id=row["linked_card_id"],
            last_payment_date=row["last_payment_date"],
            created_at=row["created_at"],
        )

    def get_for_user(self, user_id: str) -> list[RecurringObligation]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM direct_debits WHERE user_id = ? ORDER BY name, id",
            (user_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self, user_id: str) -> list[RecurringObligation]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM direct_debits WHERE user_id = ? AND status = 'Active' "
            "ORDER BY name, id",
            (user_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, debit_id: int) -> Optional[RecurringObligation]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM direct_debits WHERE id = ?", (debit_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, debit: RecurringObligation) -> RecurringObligation:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO direct_debits
               (user_id, card_id, linked_card_id, name, description, amount,
                frequency, category, anchor_day, next_occurrence, status,
                last_payment_date)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                debit.user_id, debit.card_id, debit.linked_card_id, debit.name,
                debit.description, str(debit.amount), debit.frequency,
                debit.category, debit.anchor_day, debit.next_occurrence,
                debit.status, debit.last_payment_date,
            ),
        )
        conn.commit()
        self._db.notify(TABLE)
        return self.get_by_id(cursor.lastrowid)

    def update(self, debit: RecurringObligation) -> RecurringObligation:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE direct_debits SET
               card_id=?, linked_card_id=?, name=?, description=?, amount=?,
               frequency=?, category=?, anchor_day=?, next_occurrence=?,
               status=?, last_payment_date=?
               WHERE id=?""",
            (
                debit.card_id, debit.linked_card_id, debit.name,
                debit.description, str(debit.amount), debit.frequency,
                debit.category, debit.anchor_day, debit.next_occurrence,
                debit.status, debit.last_payment_date, debit.id,
            ),
        )
        conn.commit()
        self._db.notify(TABLE)
        return self.get_by_id(debit.id)

    def set_status(self, debit_id: int, status: str):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE direct_debits SET status = ? WHERE id = ?", (status, debit_id)
        )
        conn.commit()
        self._db.notify(TABLE)

    def record_payment(self, debit_id: int, paid_on: str, next_occurrence: str, commit: bool = True):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE direct_debits SET last_payment_date = ?, next_occurrence = ? WHERE id = ?",
            (paid_on, next_occurrence, debit_id),
        )
        if commit:
            conn.commit()
            self._db.notify(TABLE)

    def delete(self, debit_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM direct_debits WHERE id = ?", (debit_id,))
        conn.commit()
        self._db.notify(TABLE)

    def listen(self, listener):
        """Register a no-argument callback for every committed change; returns a remover."""
        return self._db.add_listener(TABLE, listener)
