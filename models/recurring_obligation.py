from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from utils.constants import STATUS_ACTIVE


@dataclass
class RecurringObligation:
    id: Optional[int]               # None until stored
    user_id: str
    name: str
    amount: Decimal                 # always positive; charged as a negative transaction
    frequency: str                  # 'Weekly' | 'Monthly' | 'Quarterly' | 'Yearly'
    category: str
    anchor_day: int                 # 1-31, clamped to short months
    next_occurrence: str            # 'YYYY-MM-DD'
    card_id: int
    status: str = STATUS_ACTIVE     # 'Active' | 'Paused' | 'Cancelled'
    description: str = ""
    linked_card_id: Optional[int] = None
    last_payment_date: Optional[str] = None
    created_at: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE
