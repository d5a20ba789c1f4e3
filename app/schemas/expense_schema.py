from pydantic import BaseModel, Field, ConfigDict, field_serializer
from typing import Optional, List, Dict, Union, Literal, Annotated
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.utils.money import present_amount


class SplitType(str, Enum):
    equal = "equal"
    percentage = "percentage"
    exact_amounts = "exact_amounts"


class EqualSplit(BaseModel):
    """Every member of split_between owes amount / len(split_between)"""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["equal"] = "equal"


class PercentageSplit(BaseModel):
    """Member -> percentage (0-100); must sum to 100"""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["percentage"] = "percentage"
    percentages: Dict[str, Decimal]


class ExactAmountsSplit(BaseModel):
    """Member -> amount owed; must sum to the expense amount"""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["exact_amounts"] = "exact_amounts"
    amounts: Dict[str, Decimal]


SplitDetails = Annotated[
    Union[EqualSplit, PercentageSplit, ExactAmountsSplit],
    Field(discriminator="split_type"),
]


class ExpenseRecord(BaseModel):
    """Read-only snapshot of one expense, as consumed by the balance ledger"""
    model_config = ConfigDict(frozen=True)

    id: str
    group_id: str
    paid_by: str
    amount: Decimal = Field(..., ge=0)
    split_between: List[str] = Field(..., min_length=1)
    split: SplitDetails = Field(default_factory=EqualSplit)
    description: str = ""
    category: str = "uncategorized"


class ExpenseBase(BaseModel):
    paid_by: str
    amount: Decimal = Field(..., ge=Decimal("0.01"))
    description: str = Field(..., min_length=1, max_length=500)
    split_between: List[str] = Field(..., min_length=1)
    split: SplitDetails = Field(default_factory=EqualSplit)
    category: str = Field("uncategorized", max_length=50)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(ExpenseBase):
    pass


class ExpenseOut(ExpenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    created_at: Optional[datetime] = None

    @field_serializer("amount", when_used="json")
    def _present_amount(self, amount: Decimal) -> Decimal:
        return present_amount(amount)


class ExpenseCreated(BaseModel):
    expense_id: str
    status: str = "success"
