from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction

TABLE = "transactions"


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            card_id=row["card_id"],
            amount=Decimal(row["amount"]),
            category=row["category"],
            description=row["description"],
            date=row["date"],
            direct_debit_id=row["direct_debit_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_for_user(self, user_id: str) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions WHERE user_id = ? ORDER BY date ASC, id ASC",
            (user_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_card(
        self, user_id: str, card_id: int, month: str | None = None
    ) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = "SELECT * FROM transactions WHERE user_id = ? AND card_id = ?"
        params: list = [user_id, card_id]
        if month:
            sql += " AND strftime('%Y-%m', date) = ?"
            params.append(month)
        sql += " ORDER BY date ASC, id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_direct_debit(self, direct_debit_id: int) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions WHERE direct_debit_id = ? ORDER BY date DESC, id DESC",
            (direct_debit_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_card_balance(self, card_id: int) -> Decimal:
        """Signed sum of all transactions on the card."""
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT amount FROM transactions WHERE card_id = ?", (card_id,)
        ).fetchall()
        return sum((Decimal(r["amount"]) for r in rows), Decimal("0"))

    def create(
        self,
        user_id: str,
        card_id: int,
        amount: Decimal,
        date: str,
        description: str = "",
        category: str = "Other",
        direct_debit_id: int | None = None,
        commit: bool = True,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (user_id, card_id, amount, category, description, date, direct_debit_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (user_id, card_id, str(amount), category, description, date, direct_debit_id),
        )
        if commit:
            conn.commit()
            self._db.notify(TABLE)
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        tx_id: int,
        amount: Decimal,
        date: str,
        description: str = "",
        category: str = "Other",
    ) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET amount=?, category=?, description=?, date=?,
                   updated_at=datetime('now')
               WHERE id=?""",
            (str(amount), category, description, date, tx_id),
        )
        conn.commit()
        self._db.notify(TABLE)
        return self.get_by_id(tx_id)

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        conn.commit()
        self._db.notify(TABLE)

    def listen(self, listener):
        """Register a no-argument callback for every committed change; returns a remover."""
        return self._db.add_listener(TABLE, listener)
