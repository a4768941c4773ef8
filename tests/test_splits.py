"""Tests for the expense split builder."""

import pytest
from decimal import Decimal

from happyshare.ledger import (
    NoParticipantsError,
    equal_shares,
    resolve_shares,
    round2,
    share_total_mismatch,
)
from happyshare.models.ledger import ExpenseShare, SplitType


class TestEqualShares:

    def test_even_split(self):
        shares = equal_shares("e1", "90", ["alice", "bob", "carol"])
        assert [s.member_id for s in shares] == ["alice", "bob", "carol"]
        assert all(s.amount == Decimal("30") for s in shares)
        assert all(s.expense_id == "e1" for s in shares)

    def test_shares_are_not_rounded(self):
        """Test that 100 / 3 keeps its full precision."""
        shares = equal_shares(None, 100, ["a", "b", "c"])
        assert shares[0].amount == Decimal("100") / 3
        assert shares[0].amount != Decimal("33.33")
        assert round2(sum(s.amount for s in shares)) == Decimal("100.00")

    def test_duplicates_count_once(self):
        shares = equal_shares(None, 10, ["a", "a", "b"])
        assert [(s.member_id, s.amount) for s in shares] == [("a", Decimal("5")), ("b", Decimal("5"))]

    def test_no_participants(self):
        with pytest.raises(NoParticipantsError, match="At least one participant"):
            equal_shares(None, 10, [])


class TestResolveShares:

    def test_defaults_to_everyone(self, trio):
        shares = resolve_shares("e1", 90, SplitType.EQUAL, trio)
        assert [s.member_id for s in shares] == ["alice", "bob", "carol"]

    def test_participants_follow_member_order(self, trio):
        shares = resolve_shares("e1", 50, SplitType.EQUAL, trio, participant_ids=["carol", "alice"])
        assert [s.member_id for s in shares] == ["alice", "carol"]
        assert all(s.amount == Decimal("25") for s in shares)

    def test_unknown_participants_are_dropped(self, trio):
        shares = resolve_shares("e1", 40, SplitType.EQUAL, trio, participant_ids=["bob", "zed"])
        assert [(s.member_id, s.amount) for s in shares] == [("bob", Decimal("40"))]

    def test_only_unknown_participants(self, trio):
        with pytest.raises(NoParticipantsError):
            resolve_shares("e1", 40, SplitType.EQUAL, trio, participant_ids=["zed"])

    def test_empty_group(self):
        with pytest.raises(NoParticipantsError):
            resolve_shares("e1", 40, SplitType.EQUAL, [])

    def test_custom_shares_used_as_given(self, trio):
        """Test that custom shares are re-tagged but not rebalanced."""
        custom = [
            ExpenseShare(member_id="alice", amount=Decimal("70")),
            ExpenseShare(member_id="bob", amount=Decimal("10")),
        ]
        shares = resolve_shares("e9", 100, SplitType.CUSTOM, trio, custom_shares=custom)
        assert [(s.expense_id, s.member_id, s.amount) for s in shares] == [
            ("e9", "alice", Decimal("70")),
            ("e9", "bob", Decimal("10")),
        ]

    def test_custom_without_shares_falls_back_to_equal(self, trio):
        shares = resolve_shares("e1", 30, SplitType.CUSTOM, trio, custom_shares=[])
        assert [(s.member_id, s.amount) for s in shares] == [
            ("alice", Decimal("10")),
            ("bob", Decimal("10")),
            ("carol", Decimal("10")),
        ]

    def test_equal_ignores_custom_shares(self, trio):
        custom = [ExpenseShare(member_id="alice", amount=Decimal("30"))]
        shares = resolve_shares("e1", 30, SplitType.EQUAL, trio, custom_shares=custom)
        assert len(shares) == 3


class TestShareTotalMismatch:

    def test_matching(self):
        shares = equal_shares(None, 90, ["a", "b", "c"])
        assert share_total_mismatch(90, shares) == 0

    def test_short(self):
        shares = [
            ExpenseShare(member_id="a", amount=Decimal("4")),
            ExpenseShare(member_id="b", amount=Decimal("5")),
        ]
        assert share_total_mismatch("10", shares) == Decimal("1")

    def test_no_shares(self):
        assert share_total_mismatch(10, []) == Decimal("10")
