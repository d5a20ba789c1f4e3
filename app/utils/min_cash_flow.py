"""
Min-Cash-Flow Algorithm Module

This module implements the Min-Cash-Flow algorithm for minimizing the number of
settlement transactions required to clear a group's pairwise balances.

The algorithm works by:
1. Reducing the pairwise balances to one net position per member
   (incoming - outgoing)
2. Separating members into creditors (positive position) and debtors (negative position)
3. Repeatedly matching the largest remaining creditor with the largest remaining debtor
4. Falling back to the direct pairwise plan if greedy matching would need more
   transactions than the balances themselves

Ties between equal remaining positions are broken by member id ascending, so the
same balances always produce the same plan.

The greedy matching is an approximation: it is not guaranteed to find the global
minimum for every debt topology.

Time Complexity: O(n log n) using heaps
Space Complexity: O(n) for storing positions and settlement results

Example Usage:
    from app.utils.min_cash_flow import optimize

    balances = [
        Balance(from_user_id="A", to_user_id="B", amount=Decimal("50")),
        Balance(from_user_id="B", to_user_id="C", amount=Decimal("50")),
    ]
    plan = optimize(balances)

    # Result: [OptimizedSettlement(from_user_id="A", to_user_id="C", amount=Decimal("50.0000"))]
"""

import heapq
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from app.schemas.ledger_schema import Balance, OptimizedSettlement
from app.utils.money import MONEY_TOLERANCE, round_decimal

# Configure logger
logger = logging.getLogger(__name__)

# A remaining position this close to zero counts as fully settled
POSITION_TOLERANCE = Decimal("0.0001")


def validate_balance_sum(positions: Dict[str, Decimal], tolerance: Decimal = MONEY_TOLERANCE) -> None:
    """
    Validate that the sum of all net positions is approximately zero.

    Every debt has a matching credit, so positions of a consistent ledger
    always cancel out. No money is created or destroyed.

    Args:
        positions: Dictionary mapping user_id to net position
        tolerance: Maximum allowed deviation from zero (default: 0.01)

    Raises:
        ValueError: If the sum of positions exceeds the tolerance

    Example:
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-50")})  # Passes
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-49")})  # Raises ValueError
    """
    total = sum(positions.values(), Decimal("0"))
    if abs(total) > tolerance:
        raise ValueError(
            f"Balances not zero-sum: total={total}, tolerance={tolerance}. "
            f"This indicates unbalanced ledger data."
        )


def calculate_net_positions(balances: List[Balance]) -> Dict[str, Decimal]:
    """
    Reduce pairwise balances to one net position per member.

    position = sum(amount owed to the member) - sum(amount the member owes)
    - Positive position: member is a net creditor
    - Negative position: member is a net debtor

    Members whose incoming and outgoing flows cancel keep a zero position.

    Example:
        >>> calculate_net_positions([
        ...     Balance(from_user_id="A", to_user_id="B", amount=Decimal("50")),
        ...     Balance(from_user_id="B", to_user_id="C", amount=Decimal("50")),
        ... ])
        {'A': Decimal('-50'), 'B': Decimal('0'), 'C': Decimal('50')}
    """
    positions: Dict[str, Decimal] = {}
    for balance in balances:
        positions[balance.from_user_id] = positions.get(balance.from_user_id, Decimal("0")) - balance.amount
        positions[balance.to_user_id] = positions.get(balance.to_user_id, Decimal("0")) + balance.amount
    return positions


def _build_heaps(
    positions: Dict[str, Decimal],
    tolerance: Decimal
) -> Tuple[List[Tuple[Decimal, str]], List[Tuple[Decimal, str]]]:
    # heapq is a min-heap: store negated magnitudes so the largest comes first,
    # and the user id second so equal magnitudes pop in ascending id order
    creditors = [(-position, user_id) for user_id, position in positions.items() if position > tolerance]
    debtors = [(position, user_id) for user_id, position in positions.items() if position < -tolerance]
    heapq.heapify(creditors)
    heapq.heapify(debtors)
    return creditors, debtors


def min_cash_flow(
    positions: Dict[str, Decimal],
    tolerance: Decimal = POSITION_TOLERANCE,
    max_iterations: int = 1000
) -> List[OptimizedSettlement]:
    """
    Minimize the number of transactions needed to zero every net position.

    Uses a greedy algorithm that:
    1. Separates users into creditors (positive position) and debtors (negative position)
    2. Picks the largest remaining creditor and the largest remaining debtor
    3. Transfers the minimum of their amounts
    4. Puts back whichever party still has a remainder above the tolerance
    5. Continues until one side is exhausted

    Edge Cases Handled:
    - If no positions or only one user: returns []
    - If all positions are zero (within tolerance): returns []
    - If sum of positions != 0 (beyond 0.01): raises ValueError
    - If max_iterations exceeded: raises RuntimeError (prevents infinite loops)

    Args:
        positions: Dictionary mapping user_id -> net position
        tolerance: Remaining amount treated as settled (default: 0.0001)
        max_iterations: Maximum number of matching steps (default: 1000)

    Returns:
        List of OptimizedSettlement, amounts rounded to 4 decimal places

    Raises:
        ValueError: If positions don't sum to zero
        RuntimeError: If max_iterations exceeded

    Example:
        >>> positions = {"A": Decimal("80"), "B": Decimal("-10"), "C": Decimal("-70")}
        >>> [(s.from_user_id, s.to_user_id, s.amount) for s in min_cash_flow(positions)]
        [('C', 'A', Decimal('70.0000')), ('B', 'A', Decimal('10.0000'))]
    """
    if len(positions) <= 1:
        return []

    validate_balance_sum(positions)

    creditors, debtors = _build_heaps(positions, tolerance)
    settlements: List[OptimizedSettlement] = []
    iterations = 0

    while creditors and debtors:
        iterations += 1

        # Safety check: prevent infinite loops
        if iterations > max_iterations:
            raise RuntimeError(
                f"Settlement loop exceeded max_iterations ({max_iterations}). "
                f"This may indicate malformed input or rounding issues."
            )

        neg_credit, creditor_id = heapq.heappop(creditors)
        debt, debtor_id = heapq.heappop(debtors)
        credit_amount = -neg_credit
        debt_amount = -debt

        settlement_amount = min(credit_amount, debt_amount)
        settlements.append(OptimizedSettlement(
            from_user_id=debtor_id,
            to_user_id=creditor_id,
            amount=round_decimal(settlement_amount)
        ))

        credit_amount -= settlement_amount
        debt_amount -= settlement_amount

        if credit_amount > tolerance:
            heapq.heappush(creditors, (-credit_amount, creditor_id))
        if debt_amount > tolerance:
            heapq.heappush(debtors, (-debt_amount, debtor_id))

    return settlements


def pairwise_plan(balances: List[Balance]) -> List[OptimizedSettlement]:
    """
    The naive plan: settle every pairwise balance directly.

    Used as the baseline the optimized plan is compared against.
    """
    return [
        OptimizedSettlement(
            from_user_id=balance.from_user_id,
            to_user_id=balance.to_user_id,
            amount=round_decimal(balance.amount)
        )
        for balance in balances
    ]


def optimize(balances: List[Balance]) -> List[OptimizedSettlement]:
    """
    Compute the settlement plan for a group's balances.

    Applies min_cash_flow() to the net positions. Greedy matching across
    disconnected debt clusters can occasionally need more transfers than
    the balances themselves; in that case the direct pairwise plan is
    returned, so the result never exceeds len(balances).

    Args:
        balances: Canonical balances from compute_balances()

    Returns:
        List of OptimizedSettlement; empty when everything is settled

    Example:
        >>> optimize([])
        []
    """
    if not balances:
        return []

    positions = calculate_net_positions(balances)
    plan = min_cash_flow(positions)

    if len(plan) > len(balances):
        logger.info(
            f"Greedy plan needs {len(plan)} transactions for {len(balances)} balances; "
            f"using direct pairwise settlement"
        )
        return pairwise_plan(balances)

    return plan


def min_cash_flow_detailed(
    positions: Dict[str, Decimal],
    tolerance: Decimal = POSITION_TOLERANCE,
    max_iterations: int = 1000,
    log_level: str = "INFO"
) -> Tuple[List[OptimizedSettlement], List[str]]:
    """
    Minimize transactions with detailed logging of each step.

    Same algorithm as min_cash_flow(), but returns detailed logs
    showing the matching process step-by-step. Useful for debugging,
    visualization, and understanding the algorithm workflow.

    Args:
        positions: Dictionary mapping user_id -> net position
        tolerance: Remaining amount treated as settled (default: 0.0001)
        max_iterations: Maximum number of iterations (default: 1000)
        log_level: Level the workflow lines are also logged at
            ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Tuple of (settlements_list, detailed_logs_list)

    Example:
        >>> positions = {"A": Decimal("80"), "B": Decimal("-10"), "C": Decimal("-70")}
        >>> settlements, logs = min_cash_flow_detailed(positions, log_level="DEBUG")
        >>> for line in logs:
        ...     print(line)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logs: List[str] = []
    logs.append("=" * 60)
    logs.append("Min-Cash-Flow Algorithm - Detailed Workflow")
    logs.append("=" * 60)
    logs.append(f"Initial positions: {positions}")
    logs.append("")

    if len(positions) <= 1:
        logs.append("Fewer than two users. No settlements needed.")
        return [], logs

    try:
        validate_balance_sum(positions)
        logs.append("Balance validation passed (sum is zero within tolerance)")
    except ValueError as e:
        logs.append(f"Balance validation failed: {e}")
        raise

    creditors, debtors = _build_heaps(positions, tolerance)
    logs.append(f"Creditors (to receive): {sorted((uid, -amount) for amount, uid in creditors)}")
    logs.append(f"Debtors (to pay): {sorted((uid, -amount) for amount, uid in debtors)}")
    logs.append("")

    if not creditors or not debtors:
        logs.append("All positions are zero. No settlements needed.")
        return [], logs

    logs.append("Starting greedy matching...")
    logs.append("-" * 60)

    settlements: List[OptimizedSettlement] = []
    iterations = 0

    while creditors and debtors:
        iterations += 1

        if iterations > max_iterations:
            error_msg = f"Settlement loop exceeded max_iterations ({max_iterations})"
            logs.append(error_msg)
            raise RuntimeError(error_msg)

        neg_credit, creditor_id = heapq.heappop(creditors)
        debt, debtor_id = heapq.heappop(debtors)
        credit_amount = -neg_credit
        debt_amount = -debt

        logs.append(f"Step {iterations}: Matching {debtor_id} (debt: {debt_amount}) "
                    f"with {creditor_id} (credit: {credit_amount})")

        settlement_amount = min(credit_amount, debt_amount)
        settlement_amount_rounded = round_decimal(settlement_amount)
        settlements.append(OptimizedSettlement(
            from_user_id=debtor_id,
            to_user_id=creditor_id,
            amount=settlement_amount_rounded
        ))
        logs.append(f"  -> Transaction: {debtor_id} pays {creditor_id} {settlement_amount_rounded}")

        credit_amount -= settlement_amount
        debt_amount -= settlement_amount
        logs.append(f"  Remaining: {creditor_id}={credit_amount}, {debtor_id}={debt_amount}")

        if credit_amount > tolerance:
            heapq.heappush(creditors, (-credit_amount, creditor_id))
        else:
            logs.append(f"  -> {creditor_id} fully settled")
        if debt_amount > tolerance:
            heapq.heappush(debtors, (-debt_amount, debtor_id))
        else:
            logs.append(f"  -> {debtor_id} fully settled")

        logs.append("")

    logs.append("-" * 60)
    logs.append(f"Algorithm completed in {iterations} iterations")
    logs.append(f"Total settlements: {len(settlements)}")
    logs.append("=" * 60)

    for line in logs:
        logger.log(numeric_level, line)

    return settlements, logs
