import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.errors import ConflictError
from app.models.expenses import Expense
from app.models.groups import Group, GroupMember
from app.models.settlements import Settlement, SettlementStatus as SettlementStatusColumn
from app.schemas.expense_schema import (
    ExpenseRecord, EqualSplit, PercentageSplit, ExactAmountsSplit, SplitType
)
from app.schemas.settlement_schema import SettlementRecord, SettlementStatus

logger = logging.getLogger(__name__)


def to_expense_record(expense: Expense) -> ExpenseRecord:
    """Map an expense row and its participants to a frozen ExpenseRecord"""
    participants = list(expense.participants)
    split_between = [participant.user_id for participant in participants]

    if expense.split_type == SplitType.percentage.value:
        split = PercentageSplit(percentages={p.user_id: p.value for p in participants})
    elif expense.split_type == SplitType.exact_amounts.value:
        split = ExactAmountsSplit(amounts={p.user_id: p.value for p in participants})
    else:
        split = EqualSplit()

    return ExpenseRecord(
        id=expense.id,
        group_id=expense.group_id,
        paid_by=expense.paid_by,
        amount=expense.amount,
        split_between=split_between,
        split=split,
        description=expense.description,
        category=expense.category,
    )


def to_settlement_record(settlement: Settlement) -> SettlementRecord:
    return SettlementRecord(
        id=settlement.id,
        group_id=settlement.group_id,
        from_user_id=settlement.from_user_id,
        to_user_id=settlement.to_user_id,
        amount=settlement.amount,
        status=SettlementStatus(settlement.status.value),
    )


class SqlAlchemyLedgerRepository:
    """Persistence interface of the ledger service, backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def get_group(self, group_id: str) -> Optional[Group]:
        logger.debug(f"Loading group {group_id}")
        return self.db.query(Group).filter(Group.id == group_id).first()

    def list_members(self, group_id: str) -> List[str]:
        rows = self.db.query(GroupMember.user_id).filter(GroupMember.group_id == group_id).all()
        return [row.user_id for row in rows]

    def list_expenses(self, group_id: str) -> List[ExpenseRecord]:
        expenses = self.db.query(Expense).filter(Expense.group_id == group_id)\
            .order_by(Expense.created_at, Expense.id).all()
        return [to_expense_record(expense) for expense in expenses]

    def list_settlements(
        self,
        group_id: str,
        status: Optional[SettlementStatus] = SettlementStatus.settled
    ) -> List[SettlementRecord]:
        query = self.db.query(Settlement).filter(Settlement.group_id == group_id)
        if status is not None:
            query = query.filter(Settlement.status == SettlementStatusColumn(status.value))
        return [to_settlement_record(settlement) for settlement in query.order_by(Settlement.settled_at).all()]

    def append_settlement(
        self,
        group_id: str,
        from_user_id: str,
        to_user_id: str,
        amount,
        expected_version: int
    ) -> Settlement:
        """
        Append a settled settlement if the group ledger is still at expected_version.

        The version bump and the insert commit together, so of two writers
        validated against the same version only the first one succeeds.

        Raises:
            ConflictError: the ledger changed since it was read
        """
        bumped = self.db.query(Group)\
            .filter(Group.id == group_id, Group.ledger_version == expected_version)\
            .update({Group.ledger_version: Group.ledger_version + 1}, synchronize_session=False)

        if bumped != 1:
            self.db.rollback()
            logger.warning(f"Ledger of group {group_id} changed since version {expected_version}")
            raise ConflictError("Group balances changed, please retry the settlement")

        settlement = Settlement(
            group_id=group_id,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            status=SettlementStatusColumn.settled
        )
        self.db.add(settlement)
        self.db.commit()
        self.db.refresh(settlement)
        return settlement
