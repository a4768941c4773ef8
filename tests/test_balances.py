"""Tests for the ledger builder (compute_balances)."""

import random
from decimal import Decimal

import pytest

from happyshare.ledger import (
    InvalidAmount,
    UnknownMemberReference,
    compute_balances,
    total_of,
)
from happyshare.models.ledger import Expense, ExpenseShare, Member, Settlement


def _values(balances):
    return {member_id: entry.balance for member_id, entry in balances.items()}


def _equal_expense(expense_id, payer, amount, participants):
    amount = Decimal(amount)
    share = amount / len(participants)
    return Expense(
        id=expense_id,
        description=expense_id,
        amount=amount,
        paid_by_id=payer,
        shares=[ExpenseShare(expense_id=expense_id, member_id=p, amount=share) for p in participants],
    )


class TestScenarios:

    def test_single_equal_expense(self, trio, dinner):
        """Alice pays 90 for three: +60 / -30 / -30."""
        balances = compute_balances(trio, [dinner], [])
        assert _values(balances) == {
            "alice": Decimal("60.00"),
            "bob": Decimal("-30.00"),
            "carol": Decimal("-30.00"),
        }

    def test_settlement_moves_balance(self, trio, dinner):
        """Bob pays Alice back 30: Alice +30, Bob 0, Carol -30."""
        settlement = Settlement(from_id="bob", to_id="alice", amount=Decimal("30"))
        balances = compute_balances(trio, [dinner], [settlement])
        assert _values(balances) == {
            "alice": Decimal("30.00"),
            "bob": Decimal("0.00"),
            "carol": Decimal("-30.00"),
        }


class TestBalanceShape:

    def test_idle_members_appear_with_zero(self, trio):
        """Test that members with no activity are still listed."""
        balances = compute_balances(trio, [], [])
        assert list(balances) == ["alice", "bob", "carol"]
        assert all(entry.balance == 0 for entry in balances.values())

    def test_keeps_member_order_and_objects(self, trio, dinner):
        balances = compute_balances(trio, [dinner], [])
        assert [entry.member for entry in balances.values()] == trio

    def test_result_is_read_only(self, trio, dinner):
        balances = compute_balances(trio, [dinner], [])
        with pytest.raises(TypeError):
            balances["alice"] = None

    def test_balances_are_rounded_to_cents(self, trio):
        """100 split three ways rounds to 66.67 / -33.33 / -33.33."""
        expense = _equal_expense("e1", "alice", "100", ["alice", "bob", "carol"])
        balances = compute_balances(trio, [expense], [])
        assert _values(balances) == {
            "alice": Decimal("66.67"),
            "bob": Decimal("-33.33"),
            "carol": Decimal("-33.33"),
        }
        assert all(entry.balance.as_tuple().exponent == -2 for entry in balances.values())

    def test_payer_outside_the_split(self, trio):
        """Test that the payer is credited in full even without a share."""
        expense = _equal_expense("gift", "alice", "40", ["bob", "carol"])
        balances = compute_balances(trio, [expense], [])
        assert _values(balances) == {
            "alice": Decimal("40.00"),
            "bob": Decimal("-20.00"),
            "carol": Decimal("-20.00"),
        }

    def test_rounding_happens_once(self, alice, bob):
        """
        Three 0.01 expenses split in half leave Bob owing 0.015 in total.

        Rounding once gives -0.02; rounding every share would give -0.03.
        """
        expenses = [_equal_expense(f"e{i}", "alice", "0.01", ["alice", "bob"]) for i in range(3)]
        balances = compute_balances([alice, bob], expenses, [])
        assert balances["bob"].balance == Decimal("-0.02")
        assert balances["alice"].balance == Decimal("0.02")

    def test_custom_shares_are_not_rechecked(self, alice, bob):
        """Shares that don't add up still produce balances (the gap is not filled)."""
        expense = Expense(
            id="odd",
            description="Odd split",
            amount=Decimal("50"),
            paid_by_id="alice",
            shares=[ExpenseShare(member_id="bob", amount=Decimal("20"))],
        )
        balances = compute_balances([alice, bob], [expense], [])
        assert balances["alice"].balance == Decimal("50.00")
        assert balances["bob"].balance == Decimal("-20.00")


class TestProperties:

    @pytest.fixture
    def busy_ledger(self):
        members = [Member(id=name, name=name.title()) for name in ("ann", "ben", "cat", "dan", "eve")]
        ids = [m.id for m in members]
        expenses = [
            _equal_expense("e1", "ann", "123.45", ids),
            _equal_expense("e2", "ben", "77.10", ["ben", "cat", "dan"]),
            _equal_expense("e3", "cat", "9.99", ["ann", "eve"]),
            _equal_expense("e4", "eve", "300", ids[:4]),
            _equal_expense("e5", "dan", "0.07", ["ann", "ben", "cat"]),
        ]
        settlements = [
            Settlement(id="s1", from_id="dan", to_id="ann", amount=Decimal("20")),
            Settlement(id="s2", from_id="ben", to_id="eve", amount=Decimal("15.55")),
        ]
        return members, expenses, settlements

    def test_zero_sum(self, busy_ledger):
        """Balances add up to zero, within half a cent per member."""
        members, expenses, settlements = busy_ledger
        balances = compute_balances(members, expenses, settlements)
        assert abs(total_of(balances)) <= Decimal("0.005") * len(members)

    def test_order_independent(self, busy_ledger):
        """Test that shuffled input gives identical balances."""
        members, expenses, settlements = busy_ledger
        expected = _values(compute_balances(members, expenses, settlements))

        rng = random.Random(7)
        for _ in range(5):
            shuffled_expenses = list(expenses)
            shuffled_settlements = list(settlements)
            rng.shuffle(shuffled_expenses)
            rng.shuffle(shuffled_settlements)
            result = compute_balances(members, shuffled_expenses, shuffled_settlements)
            assert _values(result) == expected


class TestErrors:

    def test_unknown_payer(self, trio):
        expense = _equal_expense("e1", "zed", "10", ["alice"])
        with pytest.raises(UnknownMemberReference) as exc_info:
            compute_balances(trio, [expense], [])
        assert exc_info.value.member_id == "zed"
        assert exc_info.value.record_type == "expense"
        assert exc_info.value.record_id == "e1"

    def test_unknown_share_member(self, trio):
        expense = _equal_expense("e1", "alice", "10", ["alice", "zed"])
        with pytest.raises(UnknownMemberReference, match="zed"):
            compute_balances(trio, [expense], [])

    def test_unknown_settlement_member(self, trio):
        settlement = Settlement(id="s1", from_id="zed", to_id="alice", amount=Decimal("5"))
        with pytest.raises(UnknownMemberReference) as exc_info:
            compute_balances(trio, [], [settlement])
        assert exc_info.value.record_type == "settlement"

    def test_non_positive_settlement(self, trio):
        """Records loaded without validation are still checked."""
        settlement = Settlement.model_construct(from_id="bob", to_id="alice", amount=Decimal("0"))
        with pytest.raises(InvalidAmount):
            compute_balances(trio, [], [settlement])

    def test_nan_expense(self, trio):
        expense = Expense.model_construct(
            id="e1",
            description="Broken",
            amount=Decimal("NaN"),
            paid_by_id="alice",
            shares=[],
        )
        with pytest.raises(InvalidAmount):
            compute_balances(trio, [expense], [])

    def test_negative_share(self, trio):
        share = ExpenseShare.model_construct(member_id="bob", amount=Decimal("-5"))
        expense = Expense.model_construct(
            id="e1",
            description="Broken",
            amount=Decimal("10"),
            paid_by_id="alice",
            shares=[share],
        )
        with pytest.raises(InvalidAmount, match="negative"):
            compute_balances(trio, [expense], [])

    def test_bad_record_anywhere_fails_everything(self, trio, dinner):
        """A bad record at the end still means no balances at all."""
        bad = Settlement.model_construct(from_id="bob", to_id="nobody", amount=Decimal("1"))
        with pytest.raises(UnknownMemberReference):
            compute_balances(trio, [dinner] * 3, [bad])
