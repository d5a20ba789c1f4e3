"""
Balance Ledger Module

Turns one group's expenses and settlements into the canonical list of
pairwise debts ("who owes whom how much").

The computation works on a dense matrix net[a][b] = how much a owes b:
1. Every expense share owed by a non-payer is added to net[member][payer]
2. Every settled settlement from -> to is subtracted from net[from][to]
3. Each unordered pair is netted into at most one Balance, in the direction
   of the larger flow, rounded to 4 decimal places

The matrix lives for a single call; nothing is kept between computations.

Example Usage:
    from app.utils.balance_ledger import compute_balances

    balances = compute_balances(["A", "B", "C"], expenses, settlements)

    # Result: [Balance(from_user_id="B", to_user_id="A", amount=Decimal("100.0000")), ...]
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Set, Tuple

from app.core.errors import LedgerInvariantError
from app.schemas.expense_schema import ExpenseRecord
from app.schemas.ledger_schema import Balance
from app.schemas.settlement_schema import SettlementRecord, SettlementStatus
from app.utils.money import MONEY_TOLERANCE, round_decimal
from app.utils.splits import compute_shares

logger = logging.getLogger(__name__)

DebtMatrix = Dict[str, Dict[str, Decimal]]


def build_debt_matrix(
    members: Iterable[str],
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord]
) -> DebtMatrix:
    """
    Build the signed pairwise matrix net[a][b] for one group.

    References to users outside the member set are skipped with a warning
    rather than raised, so the aggregation stays total over its input.
    """
    member_set: Set[str] = set(members)
    net: DebtMatrix = {
        a: {b: Decimal("0") for b in member_set if b != a}
        for a in member_set
    }

    for expense in expenses:
        payer = expense.paid_by
        if payer not in member_set:
            logger.warning(f"Skipping expense {expense.id}: payer {payer} is not a group member")
            continue

        for member, share in compute_shares(expense).items():
            if member == payer:
                continue
            if member not in member_set:
                logger.warning(f"Skipping share of {member} in expense {expense.id}: not a group member")
                continue
            net[member][payer] += share

    for settlement in settlements:
        if settlement.status != SettlementStatus.settled:
            continue
        sender, receiver = settlement.from_user_id, settlement.to_user_id
        if sender == receiver:
            continue
        if sender not in member_set or receiver not in member_set:
            logger.warning(f"Skipping settlement {settlement.id}: party is not a group member")
            continue
        net[sender][receiver] -= settlement.amount

    return net


def canonicalize(net: DebtMatrix, tolerance: Decimal = MONEY_TOLERANCE) -> List[Balance]:
    """
    Net every unordered pair of the matrix into at most one Balance.

    Pairs are visited in member-id order so the output is deterministic.
    Differences within the tolerance are treated as settled.
    """
    ordered = sorted(net)
    balances: List[Balance] = []

    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            delta = net[a][b] - net[b][a]
            if delta > tolerance:
                balances.append(Balance(from_user_id=a, to_user_id=b, amount=round_decimal(delta)))
            elif delta < -tolerance:
                balances.append(Balance(from_user_id=b, to_user_id=a, amount=round_decimal(-delta)))

    return balances


def check_invariants(balances: List[Balance]) -> None:
    """
    Abort if the ledger is impossible: a pair owing in both directions,
    a self-debt, or a non-positive amount.

    Raises:
        LedgerInvariantError: always a bug in the aggregation pass
    """
    seen: Set[Tuple[str, str]] = set()
    for balance in balances:
        pair = (balance.from_user_id, balance.to_user_id)
        if balance.from_user_id == balance.to_user_id:
            raise LedgerInvariantError(f"Self-debt emitted for {balance.from_user_id}")
        if balance.amount <= 0:
            raise LedgerInvariantError(f"Non-positive balance emitted for {pair}: {balance.amount}")
        if pair in seen or (pair[1], pair[0]) in seen:
            raise LedgerInvariantError(f"Pair {pair} emitted more than once")
        seen.add(pair)


def compute_balances(
    members: Iterable[str],
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord],
    tolerance: Decimal = MONEY_TOLERANCE
) -> List[Balance]:
    """
    Compute the canonical nonzero balances of a group.

    Args:
        members: Member ids of the group
        expenses: Accepted expenses (split details already validated)
        settlements: Recorded settlements; only settled ones are netted
        tolerance: Pair differences at or below this are dropped (default: 0.01)

    Returns:
        List of Balance, at most one per unordered pair, amounts > 0
        rounded to 4 decimal places

    Example:
        >>> expense = ExpenseRecord(id="e1", group_id="g", paid_by="A",
        ...                         amount=Decimal("300"), split_between=["A", "B", "C"])
        >>> [(b.from_user_id, b.to_user_id, b.amount) for b in compute_balances(["A", "B", "C"], [expense], [])]
        [('B', 'A', Decimal('100.0000')), ('C', 'A', Decimal('100.0000'))]
    """
    net = build_debt_matrix(members, expenses, settlements)
    balances = canonicalize(net, tolerance)
    check_invariants(balances)
    return balances
