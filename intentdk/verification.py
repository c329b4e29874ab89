"""Verification checklists, evaluation and reports.

IntentDK does not run tests or review code itself. A checklist records
outcomes reported by a developer or agent; ``evaluate`` snapshots those
outcomes into a pass/fail ``VerificationResult``.
"""

from __future__ import annotations

import json
from typing import List

from .classification import checklist_item_type
from .intentdk_logging import log_checklist_created, log_verification
from .models import (
    ChecklistItem,
    ChecklistItemStatus,
    Intent,
    ReportFormat,
    VerificationCheck,
    VerificationChecklist,
    VerificationResult,
    VerificationStatus,
    VerificationType,
    coerce_enum,
)


STATUS_ICONS = {
    VerificationStatus.PASSED: "✅",
    VerificationStatus.FAILED: "❌",
    VerificationStatus.IN_PROGRESS: "🔄",
    VerificationStatus.SKIPPED: "⏭️",
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _label(value) -> str:
    return value.name.replace("_", " ").title().replace(" ", "")


def _table_cell(text: str) -> str:
    return text.replace("|", "\\|")


class VerificationService:
    """Build checklists from intents and evaluate recorded outcomes."""

    def create_checklist(self, intent: Intent) -> VerificationChecklist:
        """Create a fresh checklist: verification entries first, then constraints.

        Every item starts pending.
        """
        items: List[ChecklistItem] = [
            ChecklistItem(criterion=entry, type=checklist_item_type(entry))
            for entry in intent.verification
        ]
        items.extend(
            ChecklistItem(
                criterion=f"Constraint: {constraint}",
                type=VerificationType.CODE_REVIEW,
                is_constraint=True,
            )
            for constraint in intent.constraints
        )

        checklist = VerificationChecklist(intent_id=intent.id, goal=intent.goal, items=items)
        log_checklist_created(intent.id, len(items))
        return checklist

    def evaluate(self, checklist: VerificationChecklist) -> VerificationResult:
        """Snapshot a checklist into a result.

        A check passes only when its item is marked passed; skipped and
        pending items count as not passed.
        """
        checks = [
            VerificationCheck(
                name=item.criterion,
                criterion=item.criterion,
                passed=item.status == ChecklistItemStatus.PASSED,
                message=item.notes,
                type=item.type,
            )
            for item in checklist.items
        ]

        total = len(checks)
        passed = sum(1 for check in checks if check.passed)
        all_passed = passed == total

        result = VerificationResult(
            intent_id=checklist.intent_id,
            status=VerificationStatus.PASSED if all_passed else VerificationStatus.FAILED,
            checks=checks,
            summary=(
                f"All {total} verification criteria passed."
                if all_passed
                else f"{passed}/{total} verification criteria passed."
            ),
            suggestions=[f"Address: {check.criterion}" for check in checks if not check.passed],
        )

        log_verification(checklist.intent_id, result.status.value, passed, total)
        return result

    def generate_report(self, result: VerificationResult, format: ReportFormat | str = ReportFormat.TEXT) -> str:
        """Render a result as text, markdown or JSON."""
        report_format = coerce_enum(ReportFormat, format)
        if report_format == ReportFormat.MARKDOWN:
            return self._markdown_report(result)
        if report_format == ReportFormat.JSON:
            return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        return self._text_report(result)

    # ------------------------------------------------------------------
    # Report formats
    # ------------------------------------------------------------------

    @staticmethod
    def _text_report(result: VerificationResult) -> str:
        rule = "=" * 60
        divider = "-" * 60
        lines = [
            rule,
            "VERIFICATION REPORT",
            rule,
            "",
            f"Intent ID: {result.intent_id}",
            f"Status: {_label(result.status)}",
            f"Verified At: {result.verified_at.strftime(TIMESTAMP_FORMAT)}",
            "",
            f"Summary: {result.summary}",
            "",
            divider,
            "CHECKS:",
            divider,
        ]
        for check in result.checks:
            lines.append(f"{'[PASS]' if check.passed else '[FAIL]'} {check.criterion}")
            if check.message:
                lines.append(f"       {check.message}")

        if result.suggestions:
            lines.extend(["", divider, "SUGGESTIONS:", divider])
            lines.extend(f"  - {suggestion}" for suggestion in result.suggestions)

        lines.extend(["", rule, f"Result: {result.passed_count}/{len(result.checks)} passed"])
        return "\n".join(lines) + "\n"

    @staticmethod
    def _markdown_report(result: VerificationResult) -> str:
        lines = [
            "# Verification Report",
            "",
            f"**Intent ID:** `{result.intent_id}`",
            f"**Status:** {STATUS_ICONS.get(result.status, '⏳')} {_label(result.status)}",
            f"**Verified At:** {result.verified_at.strftime(TIMESTAMP_FORMAT)}",
            "",
            "## Summary",
            result.summary,
            "",
            "## Checks",
            "",
            "| Status | Criterion | Type |",
            "|--------|-----------|------|",
        ]
        for check in result.checks:
            lines.append(f"| {'✅' if check.passed else '❌'} | {_table_cell(check.criterion)} | {_label(check.type)} |")

        if result.suggestions:
            lines.extend(["", "## Suggestions"])
            lines.extend(f"- {suggestion}" for suggestion in result.suggestions)

        lines.extend(["", "---", f"**Result:** {result.passed_count}/{len(result.checks)} passed"])
        return "\n".join(lines) + "\n"
