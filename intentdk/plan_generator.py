"""Implementation plan generation.

Turns a validated intent into an ordered list of typed plan steps, plus
derived summary, affected-file hints and risks. Generation is a pure
function of the intent and the generator options.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .classification import plan_step_action
from .intentdk_logging import log_performance, log_plan_generation
from .models import Intent, IntentValidationError, Plan, PlanStatus, PlanStep, StepAction

logger = logging.getLogger("intentdk.plan")


LARGE_SCOPE_THRESHOLD = 3

STEP_ICONS = {
    StepAction.CREATE: "➕",
    StepAction.MODIFY: "✏️",
    StepAction.DELETE: "🗑️",
    StepAction.TEST: "🧪",
    StepAction.REVIEW: "👀",
    StepAction.CONFIGURE: "⚙️",
    StepAction.DOCUMENT: "📝",
}


@dataclass(slots=True)
class PlanGeneratorOptions:
    """Options for plan generation.

    ``max_steps`` is carried for callers that want to warn on long plans;
    the generator never truncates.
    """

    include_analysis_step: bool = True
    include_review_step: bool = True
    max_steps: int = 20


class PlanGenerator:
    """Generate implementation plans from intents."""

    def __init__(self, options: PlanGeneratorOptions | None = None):
        self.options = options or PlanGeneratorOptions()

    @log_performance("plan_generation")
    def generate(self, intent: Intent) -> Plan:
        """Generate a plan for ``intent``.

        Raises:
            IntentValidationError: if the intent is invalid.
        """
        validation = intent.validate()
        if not validation.is_valid:
            raise IntentValidationError("Cannot generate plan for invalid intent", validation.errors)

        steps: List[PlanStep] = []

        def add_step(**kwargs) -> None:
            steps.append(PlanStep(step_number=len(steps) + 1, **kwargs))

        if self.options.include_analysis_step:
            add_step(
                action=StepAction.REVIEW,
                description="Analyze current implementation",
                details=f"Review the current state of: {', '.join(intent.scope)}",
                expected_outcome="Understanding of existing code structure and patterns",
            )

        for item in intent.scope:
            add_step(
                action=StepAction.MODIFY,
                target=item,
                description=f"Implement changes in {item}",
                details=self._step_details(intent, item),
                expected_outcome=f"{item} updated to achieve: {intent.goal}",
            )

        for entry in intent.verification:
            action = plan_step_action(entry)
            add_step(
                action=action,
                description=f"Create/run: {entry}" if action == StepAction.TEST else entry,
                expected_outcome=f"Verified: {entry}",
            )

        if self.options.include_review_step:
            add_step(
                action=StepAction.REVIEW,
                description="Final review and cleanup",
                details="Review all changes, ensure code quality, and verify constraints are met",
                expected_outcome="Clean, tested implementation ready for commit",
            )

        if len(steps) > self.options.max_steps:
            logger.warning(
                f"Plan for intent {intent.id} has {len(steps)} steps, "
                f"more than the advised maximum of {self.options.max_steps}"
            )

        plan = Plan(
            intent_id=intent.id,
            summary=f"Implementation plan for: {intent.goal}",
            steps=steps,
            affected_files=[f"{item}.*" for item in intent.scope],
            risks=self._risks(intent),
            dependencies=[],
            status=PlanStatus.READY,
        )

        log_plan_generation(intent.id, len(steps), plan_id=plan.id)
        return plan

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _step_details(intent: Intent, item: str) -> str:
        details = f"Modify {item} to achieve: {intent.goal}\n\n"
        if intent.constraints:
            details += "Constraints to respect:\n"
            details += "".join(f"  - {constraint}\n" for constraint in intent.constraints)
        return details

    @staticmethod
    def _risks(intent: Intent) -> List[str]:
        risks = [f"Must ensure: {constraint}" for constraint in intent.constraints]
        if len(intent.scope) > LARGE_SCOPE_THRESHOLD:
            risks.append("Large scope - consider breaking into smaller intents")
        return risks


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def _action_label(action: StepAction) -> str:
    return action.name.title()


def render_plan_text(plan: Plan, intent: Intent) -> str:
    """Render a plan as plain text for terminals and agents."""
    rule = "=" * 60
    lines = [
        rule,
        "IMPLEMENTATION PLAN",
        rule,
        "",
        f"Goal: {intent.goal}",
        f"Plan ID: {plan.id}",
        "",
        "SCOPE:",
    ]
    lines.extend(f"  - {item}" for item in intent.scope)
    lines.append("")

    if intent.constraints:
        lines.append("CONSTRAINTS:")
        lines.extend(f"  - {constraint}" for constraint in intent.constraints)
        lines.append("")

    lines.extend(["STEPS:", "-" * 60])
    for step in plan.steps:
        lines.append("")
        lines.append(f"[Step {step.step_number}] {_action_label(step.action)}: {step.description}")
        if step.target:
            lines.append(f"  Target: {step.target}")
        if step.details:
            lines.append(f"  Details: {step.details.strip()}")
        if step.expected_outcome:
            lines.append(f"  Expected: {step.expected_outcome}")

    lines.extend(["", rule, "VERIFICATION CRITERIA:"])
    lines.extend(f"  [ ] {entry}" for entry in intent.verification)
    return "\n".join(lines) + "\n"


def render_plan_markdown(plan: Plan, intent: Intent) -> str:
    """Render a plan as markdown."""
    lines = [
        "# Implementation Plan",
        "",
        f"**Goal:** {intent.goal}",
        f"**Plan ID:** `{plan.id}`",
        f"**Intent ID:** `{intent.id}`",
        "",
        "## Scope",
    ]
    lines.extend(f"- `{item}`" for item in intent.scope)
    lines.append("")

    if intent.constraints:
        lines.append("## Constraints")
        lines.extend(f"- ⚠️ {constraint}" for constraint in intent.constraints)
        lines.append("")

    if plan.risks:
        lines.append("## Risks")
        lines.extend(f"- {risk}" for risk in plan.risks)
        lines.append("")

    lines.extend(["## Implementation Steps", ""])
    for step in plan.steps:
        icon = STEP_ICONS.get(step.action, "▶️")
        lines.extend([f"### Step {step.step_number}: {step.description}", ""])
        lines.append(f"- **Action:** {icon} {_action_label(step.action)}")
        if step.target:
            lines.append(f"- **Target:** `{step.target}`")
        if step.details:
            lines.append(f"- **Details:** {step.details.strip()}")
        if step.expected_outcome:
            lines.append(f"- **Expected Outcome:** {step.expected_outcome}")
        lines.append("")

    lines.append("## Verification Checklist")
    lines.extend(f"- [ ] {entry}" for entry in intent.verification)
    return "\n".join(lines) + "\n"
