from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

AVAILABILITY_CURRENT = "Current"
AVAILABILITY_AVAILABLE = "Available"


@dataclass
class MonthlyStatement:
    period_key: str             # 'YYYY-MM'
    period: str                 # 'January 2024'
    start_date: str             # 'YYYY-MM-DD'
    end_date: str
    total_outflow: Decimal
    total_inflow: Decimal
    net_change: Decimal
    closing_balance: Decimal
    transaction_count: int
    availability: str = AVAILABILITY_AVAILABLE
    minimum_payment: Optional[Decimal] = None     # credit cards only
    due_date: Optional[str] = None                # credit cards only
    transactions: list = field(default_factory=list, repr=False)

    @property
    def is_available(self) -> bool:
        return self.availability == AVAILABILITY_AVAILABLE
