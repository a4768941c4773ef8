"""
Tests for HappyShare models

Test strategy:
1. Unit tests for individual components (models, rounding, engine, validator)
2. Flow tests against the in-memory store
3. No external services anywhere
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from happyshare.models.ledger import (
    Balance,
    Expense,
    ExpenseShare,
    Group,
    Member,
    Settlement,
    SplitType,
    SuggestedSettlement,
)
from happyshare.models.validation import ValidationIssue, ValidationResult
from happyshare.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerModels:
    """Tests for stored ledger records."""

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from member names."""
        member = Member(name="  Alice  ")
        assert member.name == "Alice"

    def test_member_gets_opaque_id(self):
        """Test that members get distinct generated ids."""
        assert Member(name="A").id != Member(name="B").id

    def test_member_is_frozen(self):
        """Test that records cannot be edited in place."""
        member = Member(id="alice", name="Alice")
        with pytest.raises(ValueError):
            member.name = "Alicia"

    def test_group_requires_name(self):
        """Test that an empty group name is rejected."""
        with pytest.raises(ValueError):
            Group(name="   ")

    def test_expense_defaults_to_equal_split(self):
        """Test Expense model creation."""
        expense = Expense(description="Taxi", amount=Decimal("12.50"), paid_by_id="bob")
        assert expense.split_type == SplitType.EQUAL
        assert expense.shares == []

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(description="Refund?", amount=Decimal("-1"), paid_by_id="bob")

    def test_expense_rejects_nan(self):
        """Test that NaN never makes it into a record."""
        with pytest.raises(ValueError):
            Expense(description="Broken", amount=Decimal("NaN"), paid_by_id="bob")

    def test_expense_share_total(self):
        """Test the unrounded share sum."""
        expense = Expense(
            description="Cake",
            amount=Decimal("10"),
            paid_by_id="alice",
            shares=[
                ExpenseShare(member_id="alice", amount=Decimal("4")),
                ExpenseShare(member_id="bob", amount=Decimal("5")),
            ],
        )
        assert expense.share_total == Decimal("9")

    def test_settlement_rejects_zero_amount(self):
        """Test that a settlement must move some money."""
        with pytest.raises(ValueError):
            Settlement(from_id="bob", to_id="alice", amount=Decimal("0"))

    def test_settlement_rejects_self_payment(self):
        """Test that payer and receiver must differ."""
        with pytest.raises(ValueError, match="Cannot settle with yourself"):
            Settlement(from_id="bob", to_id="bob", amount=Decimal("5"))


class TestDerivedModels:
    """Tests for Balance and SuggestedSettlement."""

    def test_balance_api_dict(self):
        """Test the {member, balance} shape."""
        entry = Balance(member=Member(id="alice", name="Alice"), balance=Decimal("60.00"))
        data = entry.to_api_dict()
        assert data["member"]["id"] == "alice"
        assert data["member"]["name"] == "Alice"
        assert data["balance"] == "60.00"
        assert entry.member_id == "alice"

    def test_suggestion_api_dict(self):
        """Test the {from, to, amount} shape."""
        suggestion = SuggestedSettlement(from_id="carol", to_id="alice", amount=Decimal("30.00"))
        assert suggestion.to_api_dict() == {
            "from": "carol",
            "to": "alice",
            "amount": "30.00",
        }

    def test_suggestion_describe(self):
        """Test the human-readable form."""
        suggestion = SuggestedSettlement(from_id="carol", to_id="alice", amount=Decimal("30"))
        text = suggestion.describe({"carol": "Carol", "alice": "Alice"}, "$")
        assert text == "Carol pays Alice $30.00"

    def test_suggestion_must_be_positive(self):
        with pytest.raises(ValueError):
            SuggestedSettlement(from_id="a", to_id="b", amount=Decimal("0"))


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            description="Group created",
        )
        assert event.event_type == AuditEventType.GROUP_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.expense_recorded(
            group_id="g1",
            expense_id="e1",
            description="Dinner",
            amount="90",
            split_type="equal",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_recorded"
        assert log_dict["group_id"] == "g1"
        assert log_dict["details"]["amount"] == "90"

    def test_expense_updated_event_type(self):
        """Test that updates get their own event type."""
        event = AuditEventBuilder.expense_recorded(
            group_id="g1",
            expense_id="e1",
            description="Dinner",
            amount="90",
            split_type="equal",
            updated=True,
        )
        assert event.event_type == AuditEventType.EXPENSE_UPDATED

    def test_member_removal_blocked_is_warning(self):
        """Test AuditEventBuilder.member_removal_blocked."""
        correlation_id = uuid4()
        event = AuditEventBuilder.member_removal_blocked(
            group_id="g1",
            member_id="bob",
            reason="paid for expense e1",
            correlation_id=correlation_id,
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == "bob"
        assert event.correlation_id == correlation_id

    def test_ledger_error_event(self):
        """Test that ledger errors carry the exception name."""
        event = AuditEventBuilder.ledger_error("g1", KeyError("x"))
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "KeyError"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            record_type="expense",
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert len(result.issues_of_type("missing")) == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            record_type="settlement",
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Amount seems unusually high",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_is_restricted(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
