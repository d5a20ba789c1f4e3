from pydantic import BaseModel, Field, ConfigDict, field_serializer
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.utils.money import present_amount


class SettlementStatus(str, Enum):
    settled = "settled"
    pending = "pending"
    cancelled = "cancelled"


class SettlementRecord(BaseModel):
    """Read-only snapshot of a recorded settlement"""
    model_config = ConfigDict(frozen=True)

    id: str
    group_id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal = Field(..., ge=0)
    status: SettlementStatus = SettlementStatus.settled


class SettlementBase(BaseModel):
    from_user_id: str
    to_user_id: str
    amount: Decimal = Field(..., gt=0)


class SettlementCreate(SettlementBase):
    pass


class SettlementOut(SettlementBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    status: SettlementStatus
    settled_at: datetime

    @field_serializer("amount", when_used="json")
    def _present_amount(self, amount: Decimal) -> Decimal:
        return present_amount(amount)


class SettlementRecorded(BaseModel):
    settlement_id: str
    status: SettlementStatus = SettlementStatus.settled
