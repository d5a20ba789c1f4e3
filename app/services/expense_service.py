import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.errors import NotFoundError, ValidationError
from app.models.expenses import Expense, ExpenseParticipant
from app.models.groups import Group
from app.schemas.expense_schema import (
    ExpenseCreate, ExpenseUpdate, ExpenseOut, PercentageSplit, ExactAmountsSplit
)
from app.services.group_service import get_group_or_404, get_group_members
from app.services.ledger_repository import to_expense_record
from app.utils.money import round_decimal
from app.utils.splits import validate_split, describe_split

logger = logging.getLogger(__name__)


def _validate_expense(db: Session, group: Group, expense_data: ExpenseCreate) -> None:
    """Membership and split-sum checks an expense must pass before it reaches the ledger"""
    members = {member.user_id for member in get_group_members(db, group.id)}

    if expense_data.paid_by not in members:
        raise ValidationError("Paid by user is not a member of this group")

    invalid_split_users = [user_id for user_id in expense_data.split_between if user_id not in members]
    if invalid_split_users:
        raise ValidationError("One or more split users are not members of this group")

    validate_split(expense_data.amount, expense_data.split_between, expense_data.split)


def _build_participants(expense_data: ExpenseCreate) -> List[ExpenseParticipant]:
    split = expense_data.split
    participants = []
    for position, user_id in enumerate(expense_data.split_between):
        value = None
        if isinstance(split, PercentageSplit):
            value = split.percentages[user_id]
        elif isinstance(split, ExactAmountsSplit):
            value = split.amounts[user_id]
        participants.append(ExpenseParticipant(user_id=user_id, position=position, value=value))
    return participants


def _bump_ledger_version(db: Session, group_id: str) -> None:
    # Incremented in SQL, not from the loaded row, so concurrent bumps are never lost
    db.query(Group).filter(Group.id == group_id)\
        .update({Group.ledger_version: Group.ledger_version + 1}, synchronize_session=False)


def to_expense_out(expense: Expense) -> ExpenseOut:
    record = to_expense_record(expense)
    return ExpenseOut(
        id=record.id,
        group_id=record.group_id,
        paid_by=record.paid_by,
        amount=record.amount,
        description=record.description,
        split_between=record.split_between,
        split=record.split,
        category=record.category,
        created_at=expense.created_at,
    )


def create_expense(db: Session, group_id: str, expense_data: ExpenseCreate) -> Expense:
    """Create a new expense with its split participants"""
    group = get_group_or_404(db, group_id)
    _validate_expense(db, group, expense_data)

    expense = Expense(
        group_id=group_id,
        paid_by=expense_data.paid_by,
        amount=round_decimal(expense_data.amount),
        description=expense_data.description,
        category=expense_data.category,
        split_type=expense_data.split.split_type,
    )
    expense.participants = _build_participants(expense_data)
    db.add(expense)
    _bump_ledger_version(db, group.id)
    db.commit()
    db.refresh(expense)

    logger.info(
        f"Expense added successfully: {expense.id} in group {group_id}, "
        f"{expense.amount} paid by {expense.paid_by}, {describe_split(expense_data.split)}"
    )
    return expense


def get_expense(db: Session, group_id: str, expense_id: str) -> Optional[Expense]:
    """Get an expense of a group by ID"""
    return db.query(Expense).filter(Expense.id == expense_id, Expense.group_id == group_id).first()


def get_group_expenses(db: Session, group_id: str) -> List[Expense]:
    """Get all expenses for a group"""
    get_group_or_404(db, group_id)
    return db.query(Expense).filter(Expense.group_id == group_id)\
        .order_by(Expense.created_at, Expense.id).all()


def update_expense(db: Session, group_id: str, expense_id: str, update_data: ExpenseUpdate) -> Expense:
    """Replace an expense's payer, amount and split"""
    group = get_group_or_404(db, group_id)

    expense = get_expense(db, group_id, expense_id)
    if not expense:
        raise NotFoundError("Expense")

    _validate_expense(db, group, update_data)

    expense.paid_by = update_data.paid_by
    expense.amount = round_decimal(update_data.amount)
    expense.description = update_data.description
    expense.category = update_data.category
    expense.split_type = update_data.split.split_type
    expense.participants = _build_participants(update_data)
    _bump_ledger_version(db, group.id)

    db.commit()
    db.refresh(expense)
    logger.info(f"Expense updated successfully: {expense.id} in group {group_id}")
    return expense


def delete_expense(db: Session, group_id: str, expense_id: str) -> None:
    """Delete an expense"""
    group = get_group_or_404(db, group_id)

    expense = get_expense(db, group_id, expense_id)
    if not expense:
        raise NotFoundError("Expense")

    db.delete(expense)
    _bump_ledger_version(db, group.id)
    db.commit()
    logger.info(f"Expense deleted successfully: {expense_id} in group {group_id}")
