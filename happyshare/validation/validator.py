"""
Two-Stage Validation for Ledger Records

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Amounts are numbers, finite, and in range
- This catches typos and half-filled forms

STAGE 2 - SEMANTIC VALIDATION:
- Every referenced member belongs to the group
- Nobody settles with themselves
- Custom shares add up to the expense amount
- Suspiciously large amounts

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 can assume stage 1's fields are present and numeric

IMPORTANT: Validation NEVER silently fixes issues.
It reports them. The ledger engine itself never re-checks custom split
sums, so this is the only place a mismatch is caught.
"""

from decimal import Decimal
from typing import Any, Optional, Sequence

from happyshare.config import get_settings
from happyshare.ledger.errors import InvalidAmount
from happyshare.ledger.rounding import EPSILON, ZERO, round2, to_decimal
from happyshare.models.ledger import (
    MAX_DESCRIPTION_LENGTH,
    ExpenseDraft,
    Member,
    SettlementDraft,
    SplitType,
)
from happyshare.models.validation import ValidationIssue, ValidationResult


class LedgerValidator:
    """
    Validates expense and settlement drafts before they are recorded.

    Stage 1: Schema validation (no group context needed)
    Stage 2: Semantic validation (needs the group's members)
    """

    def __init__(
        self,
        strict_custom_splits: Optional[bool] = None,
        max_amount: Optional[Decimal] = None,
    ):
        """
        Initialize validator.

        Args:
            strict_custom_splits: Treat a custom split that doesn't add up
                                  as an error. Defaults to LedgerSettings.
            max_amount: Amounts above this get a warning. Defaults to AppSettings.
        """
        settings = get_settings()
        if strict_custom_splits is None:
            strict_custom_splits = settings.ledger.strict_custom_splits
        if max_amount is None:
            max_amount = to_decimal(settings.app.max_expense_amount)

        self._strict = strict_custom_splits
        self._max_amount = max_amount

    @property
    def strict_custom_splits(self) -> bool:
        return self._strict

    # ------------------------------------------------------------------
    # Shared checks
    # ------------------------------------------------------------------

    def _check_amount(
        self,
        value: Any,
        field: str,
        issues: list[ValidationIssue],
        allow_zero: bool = False,
    ) -> Optional[Decimal]:
        """Parse an amount, appending an issue and returning None if it's unusable."""
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
            return None

        try:
            amount = to_decimal(value)
        except InvalidAmount as e:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_amount",
                message=f"'{value}' is not a valid amount ({e.reason})",
                severity="error",
                suggested_fix="Enter a number such as 12.50",
            ))
            return None

        too_small = amount < ZERO if allow_zero else amount <= ZERO
        if too_small:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_amount",
                message=(
                    "Amount cannot be negative"
                    if allow_zero
                    else "Amount must be greater than zero"
                ),
                severity="error",
            ))
            return None

        return amount

    def _check_member(
        self,
        member_id: Optional[str],
        field: str,
        known: dict[str, Member],
        issues: list[ValidationIssue],
    ) -> None:
        if member_id not in known:
            issues.append(ValidationIssue(
                field=field,
                issue_type="unknown_member",
                message=f"Member {member_id!r} is not part of this group",
                severity="error",
                suggested_fix="Pick someone from the group's member list",
            ))

    def _check_large_amount(
        self,
        amount: Decimal,
        field: str,
        issues: list[ValidationIssue],
    ) -> None:
        if amount > self._max_amount:
            issues.append(ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

    @staticmethod
    def _result(
        record_type: str,
        schema_valid: bool,
        semantic_valid: bool,
        issues: list[ValidationIssue],
    ) -> ValidationResult:
        return ValidationResult(
            record_type=record_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def _validate_expense_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1 for expenses.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Say what the money was spent on, e.g. 'Dinner'",
            ))
        elif len(draft.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
                suggested_fix="Shorten the description",
            ))

        self._check_amount(draft.amount, "amount", issues)

        if not draft.paid_by_id:
            issues.append(ValidationIssue(
                field="paid_by_id",
                issue_type="missing",
                message="Who paid is required",
                severity="error",
            ))

        if draft.split_type == SplitType.CUSTOM:
            for index, share in enumerate(draft.custom_shares):
                field = f"custom_shares[{index}]"
                if not share.member_id:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="missing",
                        message="Each share needs a member",
                        severity="error",
                    ))
                self._check_amount(share.amount, field, issues, allow_zero=True)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_expense_semantic(
        self,
        draft: ExpenseDraft,
        members: Sequence[Member],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2 for expenses.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        known = {member.id: member for member in members}
        amount = to_decimal(draft.amount)

        self._check_member(draft.paid_by_id, "paid_by_id", known, issues)
        self._check_large_amount(amount, "amount", issues)

        if draft.split_type == SplitType.CUSTOM and draft.custom_shares:
            self._validate_custom_shares(draft, amount, known, issues)
        else:
            self._validate_participants(draft, known, issues)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_custom_shares(
        self,
        draft: ExpenseDraft,
        amount: Decimal,
        known: dict[str, Member],
        issues: list[ValidationIssue],
    ) -> None:
        seen = set()
        for index, share in enumerate(draft.custom_shares):
            field = f"custom_shares[{index}]"
            self._check_member(share.member_id, field, known, issues)
            if share.member_id in seen:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="duplicate_share",
                    message=f"Member {share.member_id!r} has more than one share",
                    severity="warning",
                    suggested_fix="Combine their shares into one line",
                ))
            seen.add(share.member_id)

        share_total = sum(
            (to_decimal(share.amount) for share in draft.custom_shares),
            ZERO,
        )
        difference = amount - share_total
        if abs(difference) >= EPSILON:
            issues.append(ValidationIssue(
                field="custom_shares",
                issue_type="share_mismatch",
                message=(
                    f"Shares add up to {round2(share_total)}, "
                    f"but the expense is {round2(amount)}"
                ),
                severity="error" if self._strict else "warning",
                suggested_fix="Adjust the shares so they add up to the total",
            ))

        if draft.paid_by_id not in seen:
            issues.append(ValidationIssue(
                field="paid_by_id",
                issue_type="payer_not_sharing",
                message="The payer is not part of this split",
                severity="info",
            ))

    def _validate_participants(
        self,
        draft: ExpenseDraft,
        known: dict[str, Member],
        issues: list[ValidationIssue],
    ) -> None:
        if not draft.participant_ids:
            if not known:
                issues.append(ValidationIssue(
                    field="participant_ids",
                    issue_type="no_participants",
                    message="At least one participant is required",
                    severity="error",
                    suggested_fix="Add members to the group first",
                ))
            return

        unknown = [pid for pid in draft.participant_ids if pid not in known]
        for pid in unknown:
            issues.append(ValidationIssue(
                field="participant_ids",
                issue_type="unknown_member",
                message=f"Participant {pid!r} is not part of this group and will be skipped",
                severity="warning",
            ))

        if len(unknown) == len(draft.participant_ids):
            issues.append(ValidationIssue(
                field="participant_ids",
                issue_type="no_participants",
                message="At least one participant is required",
                severity="error",
                suggested_fix="Pick who the expense is split between",
            ))

    def validate_expense(
        self,
        draft: ExpenseDraft,
        members: Sequence[Member],
    ) -> ValidationResult:
        """
        Run full two-stage validation on an expense draft.

        Args:
            draft: The expense as entered
            members: The group's current members

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_expense_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_expense_semantic(draft, members)
            all_issues.extend(semantic_issues)

        return self._result("expense", schema_valid, semantic_valid, all_issues)

    # ------------------------------------------------------------------
    # Settlements
    # ------------------------------------------------------------------

    def validate_settlement(
        self,
        draft: SettlementDraft,
        members: Sequence[Member],
    ) -> ValidationResult:
        """Run full two-stage validation on a settlement draft."""
        issues = []

        # Stage 1
        for field in ("from_id", "to_id"):
            if not getattr(draft, field):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{'Payer' if field == 'from_id' else 'Receiver'} is required",
                    severity="error",
                ))
        amount = self._check_amount(draft.amount, "amount", issues)
        schema_valid = not any(issue.severity == "error" for issue in issues)

        # Stage 2
        semantic_valid = False
        if schema_valid:
            semantic_issues = []
            known = {member.id: member for member in members}
            self._check_member(draft.from_id, "from_id", known, semantic_issues)
            self._check_member(draft.to_id, "to_id", known, semantic_issues)

            if draft.from_id == draft.to_id:
                semantic_issues.append(ValidationIssue(
                    field="to_id",
                    issue_type="self_settlement",
                    message="Cannot settle with yourself",
                    severity="error",
                    suggested_fix="Pick a different receiver",
                ))

            self._check_large_amount(amount, "amount", semantic_issues)

            semantic_valid = not any(i.severity == "error" for i in semantic_issues)
            issues.extend(semantic_issues)

        return self._result("settlement", schema_valid, semantic_valid, issues)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show in the UI next to the form.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)


class ValidationFailedError(Exception):
    """A draft was rejected by validation. Carries the full result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"{result.record_type.capitalize()} rejected: {messages}")
