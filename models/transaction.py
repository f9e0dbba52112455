from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Transaction:
    id: int
    user_id: str
    card_id: int
    amount: Decimal         # negative = money out
    category: str
    description: str
    date: str               # 'YYYY-MM-DD'
    direct_debit_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_expense(self) -> bool:
        return self.amount < 0
