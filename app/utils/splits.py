"""
Split rules: how an expense amount is divided among its members.

validate_split() is the gate an expense passes before it is stored.
compute_shares() is what the balance ledger calls afterwards; it assumes
the expense already passed validation and never raises.
"""

from decimal import Decimal
from typing import Dict, List

from app.core.errors import ValidationError
from app.schemas.expense_schema import (
    EqualSplit, ExactAmountsSplit, ExpenseRecord, PercentageSplit, SplitDetails
)
from app.utils.money import MONEY_TOLERANCE

HUNDRED = Decimal("100")


def _require_exact_coverage(split_between: List[str], covered: Dict[str, Decimal], label: str) -> None:
    missing = [member for member in split_between if member not in covered]
    extra = [member for member in covered if member not in split_between]
    if missing:
        raise ValidationError(f"{label} missing for: {', '.join(sorted(missing))}")
    if extra:
        raise ValidationError(f"{label} given for members outside the split: {', '.join(sorted(extra))}")


def validate_split(
    amount: Decimal,
    split_between: List[str],
    split: SplitDetails,
    tolerance: Decimal = MONEY_TOLERANCE
) -> None:
    """
    Check split details against the expense amount and member list.

    Raises:
        ValidationError: duplicated members, details not covering exactly
            split_between, percentages outside 0-100 or not summing to 100,
            exact amounts not summing to the expense amount
    """
    if not split_between:
        raise ValidationError("At least one member is required")
    if len(set(split_between)) != len(split_between):
        raise ValidationError("Split members must be unique")

    if isinstance(split, PercentageSplit):
        _require_exact_coverage(split_between, split.percentages, "Percentages")
        for member, percentage in split.percentages.items():
            if percentage < 0 or percentage > HUNDRED:
                raise ValidationError(f"Percentage for {member} must be between 0 and 100")
        total_percentage = sum(split.percentages.values(), Decimal("0"))
        if abs(total_percentage - HUNDRED) > tolerance:
            raise ValidationError("Percentages must sum to 100")

    elif isinstance(split, ExactAmountsSplit):
        _require_exact_coverage(split_between, split.amounts, "Exact amounts")
        for member, share in split.amounts.items():
            if share < 0:
                raise ValidationError(f"Exact amount for {member} cannot be negative")
        total_amount = sum(split.amounts.values(), Decimal("0"))
        if abs(total_amount - amount) > tolerance:
            raise ValidationError("Exact amounts must sum to total expense amount")


def compute_shares(expense: ExpenseRecord) -> Dict[str, Decimal]:
    """
    Return member -> owed share for an accepted expense, at full precision.

    The payer's own share is included when the payer is in split_between;
    the ledger is the one that drops it.
    """
    split = expense.split
    amount = expense.amount

    if isinstance(split, PercentageSplit):
        return {
            member: amount * split.percentages.get(member, Decimal("0")) / HUNDRED
            for member in expense.split_between
        }

    if isinstance(split, ExactAmountsSplit):
        return {
            member: split.amounts.get(member, Decimal("0"))
            for member in expense.split_between
        }

    # EqualSplit
    per_person = amount / Decimal(len(expense.split_between))
    return {member: per_person for member in expense.split_between}


def describe_split(split: SplitDetails) -> str:
    if isinstance(split, EqualSplit):
        return "split equally"
    if isinstance(split, PercentageSplit):
        return "split by percentage"
    return "split by exact amounts"
