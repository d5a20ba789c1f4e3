from pydantic import BaseModel, Field, ConfigDict, field_serializer
from typing import Optional, List
from decimal import Decimal

from app.schemas.expense_schema import ExpenseRecord
from app.schemas.settlement_schema import SettlementRecord
from app.utils.money import present_amount

ALREADY_SETTLED_MESSAGE = "All balances are already settled!"


class Balance(BaseModel):
    """from_user_id owes to_user_id exactly amount"""
    model_config = ConfigDict(frozen=True)

    from_user_id: str
    to_user_id: str
    amount: Decimal = Field(..., gt=0)

    @field_serializer("amount", when_used="json")
    def _present_amount(self, amount: Decimal) -> Decimal:
        return present_amount(amount)


class OptimizedSettlement(BaseModel):
    """One proposed transaction of a settlement plan"""
    model_config = ConfigDict(frozen=True)

    from_user_id: str
    to_user_id: str
    amount: Decimal

    @field_serializer("amount", when_used="json")
    def _present_amount(self, amount: Decimal) -> Decimal:
        return present_amount(amount)


class SettlementSuggestion(BaseModel):
    suggestions: List[OptimizedSettlement] = []
    original_transaction_count: int = 0
    optimized_transaction_count: int = 0
    savings: int = 0
    message: Optional[str] = None

    @property
    def is_settled(self) -> bool:
        return not self.suggestions


class LedgerSnapshot(BaseModel):
    """Everything the balance ledger needs for one group, frozen for one computation"""
    model_config = ConfigDict(frozen=True)

    group_id: str
    version: int
    members: List[str]
    expenses: List[ExpenseRecord] = []
    settlements: List[SettlementRecord] = []
