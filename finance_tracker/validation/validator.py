"""
Entry Form Validation

Checks what the entry forms are about to submit.

Only missing or impossible values are errors and block the submission.
Oddities the tracker tolerates (an unknown category id, line items that do
not add up to the total, a goal already past its target) are reported as
warnings or info so the user can decide.

IMPORTANT: Validation NEVER silently fixes issues.
"""

from decimal import Decimal
from typing import Optional

from finance_tracker.models.finance import (
    Category,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


class EntryValidator:
    """Validates transaction, goal and investment form submissions."""

    def validate_transaction(
        self,
        draft: TransactionDraft,
        categories: list[Category],
    ) -> ValidationResult:
        """
        Checks:
        - Amount present and greater than zero
        - Category selected (an unknown id is only a warning)
        - Line items sum vs. amount (advisory)
        """
        issues = []

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        elif draft.category_id not in {c.id for c in categories}:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="orphan",
                message="Category is not in the category list; it will show as 'Other'",
                severity="warning",
            ))

        if draft.items and draft.amount is not None:
            items_total = sum((item.amount for item in draft.items), Decimal("0"))
            if items_total != draft.amount:
                issues.append(ValidationIssue(
                    field="items",
                    issue_type="items_mismatch",
                    message=(
                        f"Line items add up to {items_total:,.2f} "
                        f"but the amount is {draft.amount:,.2f}"
                    ),
                    severity="warning",
                ))

        return ValidationResult(subject="transaction", issues=issues)

    def validate_goal(
        self,
        title: str,
        target_amount: Optional[Decimal],
        current_amount: Optional[Decimal] = None,
    ) -> ValidationResult:
        """Title and target are required; overshooting the target is fine."""
        issues = []

        if not title or not title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Goal name is required",
                severity="error",
            ))

        if target_amount is None or target_amount <= 0:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="missing",
                message="Target amount is required",
                severity="error",
            ))
        elif current_amount is not None and current_amount > target_amount:
            issues.append(ValidationIssue(
                field="current_amount",
                issue_type="goal_exceeded",
                message="Current amount is already above the target",
                severity="info",
            ))

        return ValidationResult(subject="goal", issues=issues)

    def validate_investment(
        self,
        asset_name: str,
        amount: Optional[Decimal],
    ) -> ValidationResult:
        """Asset name and amount are required."""
        issues = []

        if not asset_name or not asset_name.strip():
            issues.append(ValidationIssue(
                field="asset_name",
                issue_type="missing",
                message="Asset name is required",
                severity="error",
            ))

        if amount is None or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))

        return ValidationResult(subject="investment", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per issue, errors first."""
        if not result.issues:
            return "✅ All fields look good."

        order = {"error": 0, "warning": 1, "info": 2}
        icons = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}
        lines = [
            f"{icons[issue.severity]} {issue.message}"
            for issue in sorted(result.issues, key=lambda i: order[i.severity])
        ]
        return "\n".join(lines)
