from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.card import Card


class CardDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Card:
        return Card(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            card_type=row["card_type"],
            credit_limit=Decimal(row["credit_limit"]),
            created_at=row["created_at"],
        )

    def get_for_user(self, user_id: str) -> list[Card]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM cards WHERE user_id = ? ORDER BY name", (user_id,)
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, card_id: int) -> Optional[Card]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM cards WHERE id = ?", (card_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        user_id: str,
        name: str,
        card_type: str = "debit",
        credit_limit: Decimal = Decimal("0"),
    ) -> Card:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO cards(user_id, name, card_type, credit_limit) VALUES (?, ?, ?, ?)",
            (user_id, name, card_type, str(credit_limit)),
        )
        conn.commit()
        self._db.notify("cards")
        return self.get_by_id(cursor.lastrowid)

    def delete(self, card_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
        conn.commit()
        self._db.notify("cards")
