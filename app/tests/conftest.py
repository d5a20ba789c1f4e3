"""
Pytest configuration and fixtures for split ledger tests.
"""
import os

# Must be set before app modules create the default engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from typing import Dict, List
from unittest.mock import Mock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base, get_db
from app.models import expenses, groups, settlements  # noqa: F401  register tables
from app.schemas.expense_schema import ExpenseRecord, EqualSplit
from app.schemas.ledger_schema import Balance
from app.schemas.settlement_schema import SettlementRecord, SettlementStatus
from app.utils.min_cash_flow import calculate_net_positions


@pytest.fixture
def make_expense():
    """Factory for ExpenseRecord snapshots."""
    counter = {"next": 0}

    def _make(paid_by, amount, split_between, split=None, group_id="g1", category="uncategorized"):
        counter["next"] += 1
        return ExpenseRecord(
            id=f"e{counter['next']}",
            group_id=group_id,
            paid_by=paid_by,
            amount=Decimal(str(amount)),
            split_between=list(split_between),
            split=split or EqualSplit(),
            description=f"expense {counter['next']}",
            category=category,
        )

    return _make


@pytest.fixture
def make_settlement():
    """Factory for SettlementRecord snapshots."""
    counter = {"next": 0}

    def _make(from_user_id, to_user_id, amount, status=SettlementStatus.settled, group_id="g1"):
        counter["next"] += 1
        return SettlementRecord(
            id=f"s{counter['next']}",
            group_id=group_id,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=Decimal(str(amount)),
            status=status,
        )

    return _make


@pytest.fixture
def sample_balances():
    """A chain where B only passes money through."""
    return [
        Balance(from_user_id="A", to_user_id="B", amount=Decimal("50")),
        Balance(from_user_id="B", to_user_id="C", amount=Decimal("50")),
    ]


@pytest.fixture
def assert_plan_settles():
    """
    Helper to verify a plan zeroes every net position.

    Paying `amount` from debtor to creditor raises the debtor's position
    and lowers the creditor's by the same amount.
    """
    def _check(balances: List[Balance], plan) -> None:
        positions: Dict[str, Decimal] = calculate_net_positions(balances)
        for transaction in plan:
            positions[transaction.from_user_id] = positions.get(transaction.from_user_id, Decimal("0")) + transaction.amount
            positions[transaction.to_user_id] = positions.get(transaction.to_user_id, Decimal("0")) - transaction.amount

        for user, final_position in positions.items():
            assert abs(final_position) <= Decimal("0.01"), \
                f"User {user} not settled: final position={final_position}"

    return _check


@pytest.fixture
def mock_repository():
    """Mock persistence interface for ledger service tests."""
    repository = Mock()
    repository.get_group.return_value = Mock(id="g1", ledger_version=7)
    repository.list_members.return_value = ["A", "B", "C"]
    repository.list_expenses.return_value = []
    repository.list_settlements.return_value = []
    repository.append_settlement.return_value = Mock(id="s-new")
    return repository


@pytest.fixture
def db_session():
    """SQLite in-memory session shared by every connection of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    """API client whose requests all use the test database session."""
    from app.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
