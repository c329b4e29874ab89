"""Task breakdown generation.

Turns a validated intent into dependency-linked implementation tasks with
acceptance criteria and a complexity estimate. Task ids are sequential
(``T1``, ``T2``, ...) and dependencies only ever point at earlier tasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .classification import NEW_FILE_MARKER, scope_task_type, verification_task_type
from .intentdk_logging import log_performance, log_task_generation
from .models import (
    ImplementationTask,
    Intent,
    IntentValidationError,
    TaskBreakdown,
    TaskStatus,
    TaskType,
)
from .parser import dump_yaml

logger = logging.getLogger("intentdk.tasks")


BASE_COMPLEXITY = 2
MAX_COMPLEXITY = 5
VERIFICATION_TITLE_LIMIT = 50
CONSTRAINT_TITLE_LIMIT = 40
CRITERIA_CONSTRAINT_LIMIT = 2

TYPE_ICONS = {
    TaskType.ANALYZE: "🔍",
    TaskType.DESIGN: "📐",
    TaskType.CREATE: "➕",
    TaskType.IMPLEMENT: "✏️",
    TaskType.TEST: "🧪",
    TaskType.REVIEW: "👀",
    TaskType.DOCUMENT: "📝",
    TaskType.CONFIGURE: "⚙️",
    TaskType.VERIFY: "✓",
}

STATUS_ICONS = {
    TaskStatus.PENDING: "⏳",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.COMPLETED: "✅",
    TaskStatus.BLOCKED: "🚫",
    TaskStatus.SKIPPED: "⏭️",
}


@dataclass(slots=True)
class TaskGeneratorOptions:
    """Options for task generation."""

    include_analysis_task: bool = True
    include_constraint_verification: bool = True
    include_final_review_task: bool = True


def truncate(value: str, max_length: int) -> str:
    """Shorten ``value`` to ``max_length`` characters, ending in an ellipsis."""
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class TaskGenerator:
    """Generate task breakdowns from intents."""

    def __init__(self, options: TaskGeneratorOptions | None = None):
        self.options = options or TaskGeneratorOptions()

    @log_performance("task_generation")
    def generate(self, intent: Intent) -> TaskBreakdown:
        """Generate a task breakdown for ``intent``.

        Raises:
            IntentValidationError: if the intent is invalid.
        """
        validation = intent.validate()
        if not validation.is_valid:
            raise IntentValidationError("Cannot generate tasks for invalid intent", validation.errors)

        tasks: List[ImplementationTask] = []

        def add_task(**kwargs) -> ImplementationTask:
            task = ImplementationTask(id=f"T{len(tasks) + 1}", **kwargs)
            tasks.append(task)
            return task

        analysis_id: Optional[str] = None
        if self.options.include_analysis_task:
            analysis_id = add_task(
                title="Analyze Current State",
                type=TaskType.ANALYZE,
                description=f"Review the current implementation of: {', '.join(intent.scope)}",
                acceptance_criteria=[
                    "Understand existing code structure",
                    "Identify integration points",
                    "Document any concerns or blockers",
                ],
                complexity=1,
            ).id

        for item in intent.scope:
            add_task(
                title=f"Implement changes in {item}",
                type=scope_task_type(item),
                target=item,
                description=f"Modify {item} to achieve: {intent.goal}",
                acceptance_criteria=self._scope_criteria(intent, item),
                depends_on=[analysis_id] if analysis_id else [],
                complexity=self._estimate_complexity(intent, item),
            )

        # Snapshot: later verification tasks never count as implementation work
        impl_ids = [t.id for t in tasks if t.type in (TaskType.IMPLEMENT, TaskType.CREATE)]

        for entry in intent.verification:
            add_task(
                title=truncate(entry[:1].upper() + entry[1:], VERIFICATION_TITLE_LIMIT),
                type=verification_task_type(entry),
                description=entry,
                acceptance_criteria=[
                    f"Verify: {entry}",
                    "All tests pass",
                    "No regressions",
                ],
                depends_on=list(impl_ids),
                complexity=2,
            )

        if self.options.include_constraint_verification:
            for constraint in intent.constraints:
                add_task(
                    title=f"Verify: {truncate(constraint, CONSTRAINT_TITLE_LIMIT)}",
                    type=TaskType.VERIFY,
                    description=f"Ensure constraint is met: {constraint}",
                    acceptance_criteria=[
                        f"Constraint satisfied: {constraint}",
                        "Evidence documented",
                    ],
                    depends_on=list(impl_ids),
                    complexity=1,
                )

        if self.options.include_final_review_task:
            prior_ids = [t.id for t in tasks]
            add_task(
                title="Final Review",
                type=TaskType.REVIEW,
                description="Review all changes, ensure code quality, and verify all criteria are met",
                acceptance_criteria=[
                    "All implementation tasks complete",
                    "All tests pass",
                    "All constraints verified",
                    "Code review complete",
                ],
                depends_on=prior_ids,
                complexity=1,
            )

        breakdown = TaskBreakdown(intent_id=intent.id, goal=intent.goal, tasks=tasks)
        breakdown.update_progress()

        log_task_generation(intent.id, len(tasks))
        return breakdown

    @staticmethod
    def _scope_criteria(intent: Intent, item: str) -> List[str]:
        criteria = [f"Changes to {item} complete", "Code compiles without errors"]
        criteria.extend(
            f"Respects: {constraint}"
            for constraint in intent.constraints[:CRITERIA_CONSTRAINT_LIMIT]
        )
        return criteria

    @staticmethod
    def _estimate_complexity(intent: Intent, item: str) -> int:
        complexity = BASE_COMPLEXITY + min(len(intent.constraints) // 2, 2)
        if NEW_FILE_MARKER in item:
            complexity += 1
        return min(complexity, MAX_COMPLEXITY)


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def _label(value) -> str:
    return value.name.replace("_", " ").title().replace(" ", "")


def render_tasks_yaml(breakdown: TaskBreakdown) -> str:
    """Render a breakdown as a YAML document readable by ``IntentParser.parse_tasks``."""
    header = (
        "# Task Breakdown\n"
        f"# Intent: {breakdown.intent_id}\n"
        f"# Goal: {breakdown.goal}\n\n"
    )
    return header + dump_yaml(breakdown.to_dict())


def render_tasks_markdown(breakdown: TaskBreakdown) -> str:
    """Render a breakdown as a markdown table followed by per-task details."""
    progress = breakdown.update_progress()
    lines = [
        "# Task Breakdown",
        "",
        f"**Goal:** {breakdown.goal}",
        f"**Intent ID:** `{breakdown.intent_id}`",
        f"**Progress:** {progress.completed}/{progress.total} ({progress.percentage}%)",
        "",
        "## Tasks",
        "",
        "| ID | Type | Title | Target | Status | Complexity |",
        "|----|------|-------|--------|--------|------------|",
    ]
    for task in breakdown.tasks:
        lines.append(
            f"| {task.id} | {TYPE_ICONS.get(task.type, '▶️')} {_label(task.type)} | {task.title} "
            f"| `{task.target or '-'}` | {STATUS_ICONS.get(task.status, '⏳')} | {'★' * task.complexity} |"
        )

    lines.extend(["", "## Task Details", ""])
    for task in breakdown.tasks:
        lines.extend([f"### {task.id}: {task.title}", ""])
        lines.append(
            f"**Type:** {_label(task.type)} | **Status:** {_label(task.status)} "
            f"| **Complexity:** {task.complexity}/5"
        )
        if task.target:
            lines.append(f"**Target:** `{task.target}`")
        lines.extend(["", task.description, ""])
        if task.acceptance_criteria:
            lines.append("**Acceptance Criteria:**")
            lines.extend(f"- [ ] {criterion}" for criterion in task.acceptance_criteria)
            lines.append("")
        if task.depends_on:
            lines.extend([f"**Depends on:** {', '.join(task.depends_on)}", ""])

    return "\n".join(lines) + "\n"


def render_tasks_checklist(breakdown: TaskBreakdown) -> str:
    """Render a breakdown as a compact markdown checklist."""
    progress = breakdown.update_progress()
    lines = [
        f"## Tasks: {breakdown.goal}",
        "",
        f"Progress: {progress.completed}/{progress.total}",
        "",
    ]
    for task in breakdown.tasks:
        checkbox = "[x]" if task.status == TaskStatus.COMPLETED else "[ ]"
        target = f" ({task.target})" if task.target else ""
        lines.append(f"- {checkbox} **{task.id}**: {task.title}{target}")
    return "\n".join(lines) + "\n"
