from pydantic import BaseModel, Field, ConfigDict, field_serializer
from typing import List, Dict
from datetime import datetime
from decimal import Decimal

from app.schemas.ledger_schema import Balance
from app.utils.money import present_amount


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GroupCreate(GroupBase):
    members: List[str] = Field(..., min_length=1)


class GroupOut(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


class GroupMemberCreate(BaseModel):
    user_id: str = Field(..., min_length=1)


class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    user_id: str
    joined_at: datetime


class GroupWithMembers(GroupOut):
    members: List[GroupMemberOut] = []


class ExpenseDigest(BaseModel):
    description: str
    amount: Decimal
    paid_by: str
    split_between: List[str]
    category: str

    @field_serializer("amount", when_used="json")
    def _present_amount(self, amount: Decimal) -> Decimal:
        return present_amount(amount)


class GroupSummaryData(BaseModel):
    """Aggregates handed to the natural-language summary service"""
    group_name: str
    total_expenses: int
    total_amount: Decimal
    members: List[str]
    expenses: List[ExpenseDigest] = []
    balances: List[Balance] = []
    spending_by_person: Dict[str, Decimal] = {}
    spending_by_category: Dict[str, Decimal] = {}

    @field_serializer("total_amount", when_used="json")
    def _present_total(self, amount: Decimal) -> Decimal:
        return present_amount(amount)

    @field_serializer("spending_by_person", "spending_by_category", when_used="json")
    def _present_breakdown(self, breakdown: Dict[str, Decimal]) -> Dict[str, Decimal]:
        return {key: present_amount(value) for key, value in breakdown.items()}
