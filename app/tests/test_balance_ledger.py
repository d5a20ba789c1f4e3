"""
Unit Tests for the Balance Ledger

Tests cover:
- Equal, percentage and exact-amount splits
- Netting against settled settlements
- One direction per pair and the round trip back to zero
- Dangling member references
- Invariant checks
"""

import pytest
from decimal import Decimal
from app.core.errors import LedgerInvariantError
from app.schemas.expense_schema import PercentageSplit, ExactAmountsSplit
from app.schemas.ledger_schema import Balance
from app.schemas.settlement_schema import SettlementStatus
from app.utils.balance_ledger import (
    build_debt_matrix,
    canonicalize,
    check_invariants,
    compute_balances
)

MEMBERS = ["A", "B", "C"]


def as_tuples(balances):
    return [(b.from_user_id, b.to_user_id, b.amount) for b in balances]


@pytest.mark.unit
class TestComputeBalances:
    """Test compute_balances on small groups."""

    def test_equal_split(self, make_expense):
        expenses = [make_expense("A", 300, ["A", "B", "C"])]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("100")), ("C", "A", Decimal("100"))]

    def test_settlement_reduces_debt(self, make_expense, make_settlement):
        expenses = [make_expense("A", 300, ["A", "B", "C"])]
        settlements = [make_settlement("B", "A", 100)]
        balances = compute_balances(MEMBERS, expenses, settlements)
        assert as_tuples(balances) == [("C", "A", Decimal("100"))]

    def test_percentage_split(self, make_expense):
        split = PercentageSplit(percentages={"B": Decimal("60"), "C": Decimal("40")})
        expenses = [make_expense("A", 90, ["B", "C"], split)]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("54")), ("C", "A", Decimal("36"))]

    def test_exact_amounts_split(self, make_expense):
        split = ExactAmountsSplit(amounts={"A": Decimal("20"), "B": Decimal("30"), "C": Decimal("50")})
        expenses = [make_expense("A", 100, ["A", "B", "C"], split)]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("30")), ("C", "A", Decimal("50"))]

    def test_payer_outside_split(self, make_expense):
        expenses = [make_expense("A", 60, ["B", "C"])]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("30")), ("C", "A", Decimal("30"))]

    def test_payer_only_split_has_no_debt(self, make_expense):
        expenses = [make_expense("A", 60, ["A"])]
        assert compute_balances(MEMBERS, expenses, []) == []

    def test_opposing_flows_are_netted(self, make_expense):
        expenses = [
            make_expense("A", 100, ["A", "B"]),  # B owes A 50
            make_expense("B", 30, ["A", "B"]),   # A owes B 15
        ]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("35"))]

    def test_odd_amount_equal_split_rounds_to_four_places(self, make_expense):
        expenses = [make_expense("A", 100, ["A", "B", "C"])]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("33.3333")), ("C", "A", Decimal("33.3333"))]
        assert all(b.amount.as_tuple().exponent == -4 for b in balances)

    def test_only_settled_settlements_are_netted(self, make_expense, make_settlement):
        expenses = [make_expense("A", 300, ["A", "B", "C"])]
        settlements = [
            make_settlement("B", "A", 100, status=SettlementStatus.pending),
            make_settlement("C", "A", 100, status=SettlementStatus.cancelled),
        ]
        balances = compute_balances(MEMBERS, expenses, settlements)
        assert as_tuples(balances) == [("B", "A", Decimal("100")), ("C", "A", Decimal("100"))]

    def test_overpayment_flips_direction(self, make_expense, make_settlement):
        expenses = [make_expense("A", 100, ["A", "B"])]
        settlements = [make_settlement("B", "A", 80)]
        balances = compute_balances(MEMBERS, expenses, settlements)
        assert as_tuples(balances) == [("A", "B", Decimal("30"))]

    def test_residue_within_tolerance_is_dropped(self, make_expense, make_settlement):
        expenses = [make_expense("A", 10, ["A", "B"])]
        settlements = [make_settlement("B", "A", "4.995")]
        assert compute_balances(MEMBERS, expenses, settlements) == []

    def test_one_cent_difference_counts_as_settled(self, make_expense):
        """A pair difference must exceed 0.01 to be emitted."""
        expenses = [make_expense("A", "0.02", ["A", "B"])]
        assert compute_balances(MEMBERS, expenses, []) == []

    def test_difference_just_above_one_cent_is_emitted(self, make_expense):
        expenses = [make_expense("A", "0.03", ["A", "B"])]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("0.0150"))]

    def test_no_members(self):
        assert compute_balances([], [], []) == []

    def test_no_expenses(self):
        assert compute_balances(MEMBERS, [], []) == []


@pytest.mark.unit
class TestDanglingReferences:
    """References outside the member set are skipped, never raised."""

    def test_payer_not_a_member(self, make_expense):
        expenses = [
            make_expense("Z", 90, ["A", "B"]),
            make_expense("A", 20, ["A", "B"]),
        ]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("10"))]

    def test_split_member_not_a_member(self, make_expense):
        expenses = [make_expense("A", 90, ["A", "B", "Z"])]
        balances = compute_balances(MEMBERS, expenses, [])
        assert as_tuples(balances) == [("B", "A", Decimal("30"))]

    def test_settlement_with_unknown_party(self, make_expense, make_settlement):
        expenses = [make_expense("A", 60, ["A", "B"])]
        settlements = [make_settlement("Z", "A", 30), make_settlement("B", "B", 30)]
        balances = compute_balances(MEMBERS, expenses, settlements)
        assert as_tuples(balances) == [("B", "A", Decimal("30"))]


@pytest.mark.unit
class TestLedgerProperties:
    """Properties that must hold for any accepted input."""

    @pytest.fixture
    def busy_group(self, make_expense, make_settlement):
        members = ["A", "B", "C", "D", "E"]
        expenses = [
            make_expense("A", "120.50", ["A", "B", "C"]),
            make_expense("B", 60, ["B", "C", "D"]),
            make_expense("C", 40, ["A", "C", "D", "E"]),
            make_expense("D", "99.99", ["A", "B", "C", "D", "E"]),
            make_expense("E", 75, ["A", "B"], PercentageSplit(percentages={"A": Decimal("33.33"), "B": Decimal("66.67")})),
            make_expense("A", 50, ["D", "E"], ExactAmountsSplit(amounts={"D": Decimal("12.5"), "E": Decimal("37.5")})),
        ]
        settlements = [make_settlement("B", "A", "10.25"), make_settlement("E", "D", 5)]
        return members, expenses, settlements

    def test_single_direction_per_pair(self, busy_group):
        balances = compute_balances(*busy_group)
        pairs = {(b.from_user_id, b.to_user_id) for b in balances}
        assert len(pairs) == len(balances)
        for sender, receiver in pairs:
            assert (receiver, sender) not in pairs

    def test_amounts_positive(self, busy_group):
        balances = compute_balances(*busy_group)
        assert balances
        assert all(b.amount > 0 for b in balances)

    def test_round_trip_to_zero(self, busy_group, make_settlement):
        members, expenses, settlements = busy_group
        balances = compute_balances(members, expenses, settlements)

        paid_back = settlements + [
            make_settlement(b.from_user_id, b.to_user_id, b.amount) for b in balances
        ]
        assert compute_balances(members, expenses, paid_back) == []

    def test_deterministic_order(self, busy_group):
        members, expenses, settlements = busy_group
        first = compute_balances(members, expenses, settlements)
        second = compute_balances(list(reversed(members)), expenses, settlements)
        assert first == second

    def test_does_not_mutate_input(self, busy_group):
        members, expenses, settlements = busy_group
        before = [expense.model_dump() for expense in expenses]
        compute_balances(members, expenses, settlements)
        assert [expense.model_dump() for expense in expenses] == before


@pytest.mark.unit
class TestInvariantChecks:
    """check_invariants() rejects impossible ledgers."""

    def test_both_directions_rejected(self):
        balances = [
            Balance(from_user_id="A", to_user_id="B", amount=Decimal("5")),
            Balance(from_user_id="B", to_user_id="A", amount=Decimal("5")),
        ]
        with pytest.raises(LedgerInvariantError):
            check_invariants(balances)

    def test_non_positive_amount_rejected(self):
        balances = [Balance.model_construct(from_user_id="A", to_user_id="B", amount=Decimal("0"))]
        with pytest.raises(LedgerInvariantError):
            check_invariants(balances)

    def test_self_debt_rejected(self):
        balances = [Balance(from_user_id="A", to_user_id="A", amount=Decimal("1"))]
        with pytest.raises(LedgerInvariantError):
            check_invariants(balances)

    def test_valid_ledger_passes(self):
        check_invariants([
            Balance(from_user_id="A", to_user_id="B", amount=Decimal("5")),
            Balance(from_user_id="C", to_user_id="B", amount=Decimal("5")),
        ])


@pytest.mark.unit
def test_debt_matrix_is_dense(make_expense):
    net = build_debt_matrix(MEMBERS, [make_expense("A", 30, ["A", "B", "C"])], [])
    assert set(net) == set(MEMBERS)
    assert all(set(row) == set(MEMBERS) - {member} for member, row in net.items())
    assert net["B"]["A"] == Decimal("10")
    assert net["A"]["B"] == Decimal("0")


@pytest.mark.unit
def test_canonicalize_uses_larger_flow():
    net = {
        "A": {"B": Decimal("10")},
        "B": {"A": Decimal("25")},
    }
    assert as_tuples(canonicalize(net)) == [("B", "A", Decimal("15"))]
