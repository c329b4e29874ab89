"""Unit tests for task generation and task rendering."""

import pytest
import yaml

from intentdk.models import Intent, IntentValidationError, TaskStatus, TaskType
from intentdk.parser import IntentParser
from intentdk.task_generator import (
    TaskGenerator,
    TaskGeneratorOptions,
    render_tasks_checklist,
    render_tasks_markdown,
    render_tasks_yaml,
    truncate,
)


@pytest.fixture
def intent():
    return Intent(
        goal="Add audit trail",
        scope=["AuditService (new)", "OrderController", "config/settings.yaml", "README.md", "OrderTests"],
        constraints=["No breaking changes", "Keep p99 latency under 50ms", "Store events for 90 days"],
        verification=["Integration test for order audit", "Security review of stored events"],
    )


class TestScopeTasks:
    """Test cases for per-scope-item tasks."""

    def test_types_follow_scope_keywords(self, intent):
        """Test create/implement/configure/document/test classification."""
        tasks = TaskGenerator().generate(intent).tasks

        assert [t.type for t in tasks[1:6]] == [
            TaskType.CREATE,
            TaskType.IMPLEMENT,
            TaskType.CONFIGURE,
            TaskType.DOCUMENT,
            TaskType.TEST,
        ]

    def test_new_keyword_with_trailing_space(self):
        """Test that 'new ' also signals a create task."""
        tasks = TaskGenerator().generate(Intent(goal="g", scope=["New PaymentService"])).tasks

        assert tasks[1].type == TaskType.CREATE

    def test_only_new_marker_raises_complexity(self):
        """Test that a 'new ' prefix creates without the (new) complexity bump."""
        intent = Intent(goal="g", scope=["New PaymentService", "Ledger (new)", "Ledger (NEW)"])

        tasks = TaskGenerator().generate(intent).tasks

        assert [t.type for t in tasks[1:4]] == [TaskType.CREATE] * 3
        assert [t.complexity for t in tasks[1:4]] == [2, 3, 2]

    def test_scope_task_fields(self, intent):
        """Test title, description, target and criteria."""
        task = TaskGenerator().generate(intent).tasks[2]

        assert task.id == "T3"
        assert task.title == "Implement changes in OrderController"
        assert task.description == "Modify OrderController to achieve: Add audit trail"
        assert task.target == "OrderController"
        assert task.depends_on == ["T1"]
        assert task.acceptance_criteria == [
            "Changes to OrderController complete",
            "Code compiles without errors",
            "Respects: No breaking changes",
            "Respects: Keep p99 latency under 50ms",
        ]

    def test_complexity(self, intent):
        """Test complexity grows with constraints and new targets."""
        tasks = TaskGenerator().generate(intent).tasks

        assert tasks[1].complexity == 4  # 2 + 1 for three constraints + 1 new
        assert tasks[2].complexity == 3

    def test_complexity_is_capped(self):
        """Test that complexity never exceeds five."""
        intent = Intent(goal="g", scope=["X (new)"], constraints=[f"c{i}" for i in range(10)])

        assert TaskGenerator().generate(intent).tasks[1].complexity == 5

    def test_no_analysis_task_means_no_dependency(self):
        """Test that scope tasks are free when analysis is disabled."""
        options = TaskGeneratorOptions(include_analysis_task=False)
        tasks = TaskGenerator(options).generate(Intent(goal="g", scope=["A"])).tasks

        assert tasks[0].id == "T1"
        assert tasks[0].depends_on == []


class TestVerificationAndConstraintTasks:
    """Test cases for verification, constraint and final review tasks."""

    def test_verification_tasks_depend_on_implementation_only(self, intent):
        """Test that verification tasks depend on implement/create tasks."""
        tasks = TaskGenerator().generate(intent).tasks
        verification = tasks[6]

        assert verification.type == TaskType.TEST
        assert verification.depends_on == ["T2", "T3"]
        assert verification.complexity == 2
        assert verification.acceptance_criteria == [
            "Verify: Integration test for order audit",
            "All tests pass",
            "No regressions",
        ]
        assert tasks[7].type == TaskType.REVIEW

    def test_verification_title_is_capitalised_and_truncated(self):
        """Test title capitalisation and truncation to 50 characters."""
        entry = "make sure the nightly export finishes before the morning batch starts"
        tasks = TaskGenerator().generate(Intent(goal="g", scope=["A"], verification=[entry])).tasks

        title = tasks[2].title
        assert len(title) == 50
        assert title.startswith("Make sure")
        assert title.endswith("...")
        assert tasks[2].type == TaskType.VERIFY

    def test_constraint_tasks(self, intent):
        """Test one verify task per constraint."""
        tasks = TaskGenerator().generate(intent).tasks
        constraint_tasks = tasks[8:11]

        assert [t.type for t in constraint_tasks] == [TaskType.VERIFY] * 3
        assert constraint_tasks[0].title == "Verify: No breaking changes"
        assert constraint_tasks[0].description == "Ensure constraint is met: No breaking changes"
        assert all(t.depends_on == ["T2", "T3"] for t in constraint_tasks)
        assert all(t.complexity == 1 for t in constraint_tasks)

    def test_final_review_depends_on_everything(self, intent):
        """Test that the final review depends on every earlier task."""
        tasks = TaskGenerator().generate(intent).tasks
        final = tasks[-1]

        assert final.title == "Final Review"
        assert final.type == TaskType.REVIEW
        assert final.depends_on == [t.id for t in tasks[:-1]]

    def test_options_disable_extras(self, intent):
        """Test disabling constraint and final review tasks."""
        options = TaskGeneratorOptions(include_constraint_verification=False, include_final_review_task=False)
        tasks = TaskGenerator(options).generate(intent).tasks

        assert len(tasks) == 1 + 5 + 2
        assert tasks[-1].type == TaskType.REVIEW
        assert tasks[-1].title.startswith("Security review")

    def test_invalid_intent_raises(self):
        """Test that invalid intents raise."""
        with pytest.raises(IntentValidationError, match="Cannot generate tasks for invalid intent"):
            TaskGenerator().generate(Intent(goal="g"))

    def test_progress_starts_at_zero(self, intent):
        """Test initial progress accounting."""
        breakdown = TaskGenerator().generate(intent)

        assert breakdown.progress.total == len(breakdown.tasks)
        assert breakdown.progress.pending == len(breakdown.tasks)
        assert breakdown.progress.percentage == 0
        assert breakdown.goal == intent.goal


class TestTruncate:
    """Test cases for truncate."""

    def test_short_values_unchanged(self):
        assert truncate("short", 10) == "short"

    def test_long_values_end_with_ellipsis(self):
        assert truncate("a" * 45, 40) == "a" * 37 + "..."


class TestTaskRendering:
    """Test cases for task renderers."""

    def test_yaml_parses_back(self, intent):
        """Test that rendered YAML can be read back with statuses kept."""
        breakdown = TaskGenerator().generate(intent)
        breakdown.set_task_status("T1", TaskStatus.COMPLETED)

        text = render_tasks_yaml(breakdown)
        restored = IntentParser().parse_tasks(text)

        assert text.startswith("# Task Breakdown\n")
        assert yaml.safe_load(text)["progress"]["completed"] == 1
        assert [t.id for t in restored.tasks] == [t.id for t in breakdown.tasks]
        assert restored.tasks[0].status == TaskStatus.COMPLETED
        assert restored.tasks[1].depends_on == ["T1"]

    def test_markdown(self, intent):
        """Test the markdown table and details."""
        md = render_tasks_markdown(TaskGenerator().generate(intent))

        assert "| ID | Type | Title | Target | Status | Complexity |" in md
        assert "| T2 | ➕ Create | Implement changes in AuditService (new) | `AuditService (new)` | ⏳ | ★★★★ |" in md
        assert "### T1: Analyze Current State" in md
        assert "**Depends on:** T1" in md

    def test_checklist(self, intent):
        """Test the compact checklist view."""
        breakdown = TaskGenerator().generate(intent)
        breakdown.set_task_status("T1", TaskStatus.COMPLETED)

        text = render_tasks_checklist(breakdown)

        assert text.startswith("## Tasks: Add audit trail\n")
        assert f"Progress: 1/{len(breakdown.tasks)}" in text
        assert "- [x] **T1**: Analyze Current State" in text
        assert "- [ ] **T3**: Implement changes in OrderController (OrderController)" in text
