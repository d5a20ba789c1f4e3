"""
Ledger Service

Binds the balance ledger and the settlement optimizer to a persisted group:
loads a snapshot of the group's records, computes balances and settlement
suggestions, and records settlements that match an outstanding balance.
"""
import logging
from decimal import Decimal
from typing import List
from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.config import get_settings
from app.core.errors import LedgerInvariantError, NotFoundError, ValidationError
from app.db.database import get_db
from app.schemas.ledger_schema import (
    ALREADY_SETTLED_MESSAGE, Balance, LedgerSnapshot, SettlementSuggestion
)
from app.services.ledger_repository import SqlAlchemyLedgerRepository
from app.utils.balance_ledger import compute_balances
from app.utils.min_cash_flow import optimize
from app.utils.money import MONEY_TOLERANCE, round_decimal, to_decimal

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Orchestrates balance and settlement operations for one persistence backend.

    The repository must provide get_group, list_members, list_expenses,
    list_settlements and append_settlement (see SqlAlchemyLedgerRepository).
    """

    def __init__(self, repository, settlement_tolerance: Decimal = MONEY_TOLERANCE):
        self.repository = repository
        self.settlement_tolerance = settlement_tolerance

    def load_snapshot(self, group_id: str) -> LedgerSnapshot:
        """Read members, expenses and settled settlements of a group in one go"""
        group = self.repository.get_group(group_id)
        if not group:
            raise NotFoundError("Group")

        return LedgerSnapshot(
            group_id=group_id,
            version=group.ledger_version,
            members=self.repository.list_members(group_id),
            expenses=self.repository.list_expenses(group_id),
            settlements=self.repository.list_settlements(group_id),
        )

    def balances_for_snapshot(self, snapshot: LedgerSnapshot) -> List[Balance]:
        try:
            return compute_balances(snapshot.members, snapshot.expenses, snapshot.settlements)
        except LedgerInvariantError:
            logger.exception(f"Balance computation for group {snapshot.group_id} violated ledger invariants")
            raise

    def get_balances(self, group_id: str) -> List[Balance]:
        """Current nonzero pairwise balances of a group"""
        snapshot = self.load_snapshot(group_id)
        balances = self.balances_for_snapshot(snapshot)
        logger.debug(f"Computed {len(balances)} balances for group {group_id}")
        return balances

    def suggest_settlement(self, group_id: str) -> SettlementSuggestion:
        """Optimized settlement plan, or the already-settled result when nothing is owed"""
        balances = self.get_balances(group_id)

        if not balances:
            return SettlementSuggestion(message=ALREADY_SETTLED_MESSAGE)

        suggestions = optimize(balances)
        logger.info(
            f"Settlement plan for group {group_id}: {len(suggestions)} transactions "
            f"instead of {len(balances)}"
        )
        return SettlementSuggestion(
            suggestions=suggestions,
            original_transaction_count=len(balances),
            optimized_transaction_count=len(suggestions),
            savings=len(balances) - len(suggestions),
        )

    def record_settlement(self, group_id: str, from_user_id: str, to_user_id: str, amount) -> str:
        """
        Record a settled payment that clears an outstanding balance.

        The balance must exist in exactly this direction and the amount must
        match it within the settlement tolerance. The write is a
        compare-and-append against the ledger version the balances were
        computed from.

        Returns:
            The new settlement id

        Raises:
            NotFoundError: the group does not exist
            ValidationError: no matching outstanding balance
            ConflictError: the ledger changed concurrently
        """
        amount = to_decimal(amount)
        snapshot = self.load_snapshot(group_id)
        balances = self.balances_for_snapshot(snapshot)

        matches = any(
            balance.from_user_id == from_user_id
            and balance.to_user_id == to_user_id
            and abs(balance.amount - amount) <= self.settlement_tolerance
            for balance in balances
        )
        if not matches:
            logger.info(
                f"Rejected settlement {from_user_id} -> {to_user_id} of {amount} in group {group_id}: "
                f"no matching outstanding balance"
            )
            raise ValidationError("No matching outstanding balance")

        settlement = self.repository.append_settlement(
            group_id,
            from_user_id,
            to_user_id,
            round_decimal(amount),
            expected_version=snapshot.version,
        )
        logger.info(f"Balance settled successfully: settlement {settlement.id} in group {group_id}")
        return settlement.id


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """FastAPI dependency: ledger service bound to the request's database session"""
    return LedgerService(
        SqlAlchemyLedgerRepository(db),
        settlement_tolerance=get_settings().settlement_tolerance,
    )
