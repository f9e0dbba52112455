from dataclasses import dataclass
from decimal import Decimal

CARD_TYPES = ("debit", "credit")

CARD_TYPE_LABELS = {
    "debit": "Debit Card",
    "credit": "Credit Card",
}


@dataclass
class Card:
    id: int
    user_id: str
    name: str
    card_type: str = "debit"            # 'debit' | 'credit'
    credit_limit: Decimal = Decimal("0")
    created_at: str = ""

    @property
    def is_credit(self) -> bool:
        return self.card_type == "credit"
