import logging
from decimal import Decimal
from typing import Dict
from app.schemas.group_schema import ExpenseDigest, GroupSummaryData
from app.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


def build_summary_data(ledger: LedgerService, group_id: str, group_name: str) -> GroupSummaryData:
    """
    Aggregate a group's spending for the natural-language summary service.

    Expense totals and balances are computed from the same snapshot.
    """
    snapshot = ledger.load_snapshot(group_id)
    balances = ledger.balances_for_snapshot(snapshot)

    spending_by_person: Dict[str, Decimal] = {}
    spending_by_category: Dict[str, Decimal] = {}
    total_amount = Decimal("0")

    for expense in snapshot.expenses:
        total_amount += expense.amount
        spending_by_person[expense.paid_by] = spending_by_person.get(expense.paid_by, Decimal("0")) + expense.amount
        spending_by_category[expense.category] = spending_by_category.get(expense.category, Decimal("0")) + expense.amount

    logger.debug(f"Built summary data for group {group_id}: {len(snapshot.expenses)} expenses")

    return GroupSummaryData(
        group_name=group_name,
        total_expenses=len(snapshot.expenses),
        total_amount=total_amount,
        members=snapshot.members,
        expenses=[
            ExpenseDigest(
                description=expense.description,
                amount=expense.amount,
                paid_by=expense.paid_by,
                split_between=expense.split_between,
                category=expense.category,
            )
            for expense in snapshot.expenses
        ],
        balances=balances,
        spending_by_person=spending_by_person,
        spending_by_category=spending_by_category,
    )
