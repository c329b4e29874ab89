"""
Contract tests for plan, task and verification generation.

These checks hold for every valid intent and generator configuration,
and pin down the reference scenarios the MCP tools depend on.
"""

import pytest

from intentdk.models import (
    ChecklistItemStatus,
    Intent,
    IntentStatus,
    IntentValidationError,
    StepAction,
    TaskStatus,
    TaskType,
    VerificationStatus,
)
from intentdk.plan_generator import PlanGenerator, PlanGeneratorOptions
from intentdk.task_generator import TaskGenerator, TaskGeneratorOptions
from intentdk.verification import VerificationService
from intentdk.workflow import IntentProcessor, IntentWorkflow


INTENTS = [
    Intent(goal="Add logging", scope=["AuthService"]),
    Intent(
        goal="Add logging",
        scope=["AuthService", "Logger"],
        verification=["Unit test for login logs"],
    ),
    Intent(
        goal="Introduce billing",
        scope=["BillingService (new)", "config/billing.yaml", "docs/billing.md", "BillingTests"],
        constraints=["No downtime", "PCI compliant"],
        verification=["Integration test for invoices", "Peer review", "Security scan", "Build passes"],
    ),
]

PLAN_OPTIONS = [
    PlanGeneratorOptions(),
    PlanGeneratorOptions(include_analysis_step=False),
    PlanGeneratorOptions(include_analysis_step=False, include_review_step=False),
]

TASK_OPTIONS = [
    TaskGeneratorOptions(),
    TaskGeneratorOptions(include_analysis_task=False),
    TaskGeneratorOptions(include_constraint_verification=False, include_final_review_task=False),
]


@pytest.mark.parametrize("intent", INTENTS)
@pytest.mark.parametrize("options", PLAN_OPTIONS)
class TestPlanContract:
    """Contract for generated plans."""

    def test_deterministic(self, intent, options):
        """Test that repeated generation yields the same structure."""
        generator = PlanGenerator(options)
        first, second = generator.generate(intent), generator.generate(intent)

        assert [(s.step_number, s.action, s.description, s.target) for s in first.steps] == [
            (s.step_number, s.action, s.description, s.target) for s in second.steps
        ]

    def test_steps_are_contiguous(self, intent, options):
        """Test that step numbers run 1..N."""
        plan = PlanGenerator(options).generate(intent)

        assert [s.step_number for s in plan.steps] == list(range(1, len(plan.steps) + 1))

    def test_one_modify_step_per_scope_item(self, intent, options):
        """Test scope coverage."""
        plan = PlanGenerator(options).generate(intent)

        assert [s.target for s in plan.steps if s.action == StepAction.MODIFY] == intent.scope


@pytest.mark.parametrize("intent", INTENTS)
@pytest.mark.parametrize("options", TASK_OPTIONS)
class TestTaskContract:
    """Contract for generated task breakdowns."""

    def test_deterministic(self, intent, options):
        """Test that repeated generation yields the same tasks."""
        generator = TaskGenerator(options)
        first, second = generator.generate(intent), generator.generate(intent)

        assert [(t.id, t.type, t.depends_on) for t in first.tasks] == [
            (t.id, t.type, t.depends_on) for t in second.tasks
        ]

    def test_task_ids(self, intent, options):
        """Test T1..Tn numbering."""
        breakdown = TaskGenerator(options).generate(intent)

        assert [t.id for t in breakdown.tasks] == [f"T{i}" for i in range(1, len(breakdown.tasks) + 1)]

    def test_dependencies_point_backwards(self, intent, options):
        """Test that every dependency names an earlier task."""
        breakdown = TaskGenerator(options).generate(intent)

        seen = set()
        for task in breakdown.tasks:
            assert set(task.depends_on) <= seen
            seen.add(task.id)

    def test_progress_accounting(self, intent, options):
        """Test progress totals and the floored percentage."""
        breakdown = TaskGenerator(options).generate(intent)
        for task in breakdown.tasks[::3]:
            breakdown.set_task_status(task.id, TaskStatus.COMPLETED)
        if len(breakdown.tasks) > 1:
            breakdown.set_task_status(breakdown.tasks[1].id, TaskStatus.IN_PROGRESS)

        p = breakdown.progress
        assert p.completed + p.in_progress + p.pending + p.blocked == p.total == len(breakdown.tasks)
        assert p.percentage == p.completed * 100 // p.total


@pytest.mark.parametrize("intent", INTENTS)
class TestChecklistContract:
    """Contract for checklists and their evaluation."""

    def test_composition(self, intent):
        """Test verification items first, then prefixed constraints."""
        checklist = VerificationService().create_checklist(intent)
        count = len(intent.verification)

        assert len(checklist.items) == count + len(intent.constraints)
        assert [i.criterion for i in checklist.items[:count]] == intent.verification
        assert all(i.criterion.startswith("Constraint: ") for i in checklist.items[count:])

    def test_all_passed_passes(self, intent):
        """Test that a fully passed checklist passes."""
        service = VerificationService()
        checklist = service.create_checklist(intent)
        for item in checklist.items:
            item.mark(ChecklistItemStatus.PASSED)

        result = service.evaluate(checklist)

        assert result.status == VerificationStatus.PASSED
        assert result.suggestions == []

    @pytest.mark.parametrize("last", [ChecklistItemStatus.FAILED, ChecklistItemStatus.SKIPPED, None])
    def test_anything_short_of_passed_fails(self, intent, last):
        """Test that one failed, skipped or pending item fails evaluation."""
        service = VerificationService()
        checklist = service.create_checklist(intent)
        if not checklist.items:
            pytest.skip("intent has no verification criteria")
        for item in checklist.items[:-1]:
            item.mark(ChecklistItemStatus.PASSED)
        if last is not None:
            checklist.items[-1].mark(last)

        result = service.evaluate(checklist)

        assert result.status == VerificationStatus.FAILED
        assert len(result.suggestions) == result.failed_count == 1


class TestScenarios:
    """Reference scenarios."""

    def test_logging_breakdown(self):
        """Analysis, two implement tasks, one test task and the final review."""
        tasks = TaskGenerator().generate(INTENTS[1]).tasks

        assert [(t.id, t.type, t.target, t.depends_on) for t in tasks] == [
            ("T1", TaskType.ANALYZE, None, []),
            ("T2", TaskType.IMPLEMENT, "AuthService", ["T1"]),
            ("T3", TaskType.IMPLEMENT, "Logger", ["T1"]),
            ("T4", TaskType.TEST, None, ["T2", "T3"]),
            ("T5", TaskType.REVIEW, None, ["T1", "T2", "T3", "T4"]),
        ]

    def test_three_services_plan(self):
        """Three modify steps between analysis and review."""
        plan = PlanGenerator().generate(Intent(goal="Rename API", scope=["ServiceA", "ServiceB", "ServiceC"]))

        assert [s.step_number for s in plan.steps] == [1, 2, 3, 4, 5]
        assert [s.action for s in plan.steps] == [
            StepAction.REVIEW,
            StepAction.MODIFY,
            StepAction.MODIFY,
            StepAction.MODIFY,
            StepAction.REVIEW,
        ]

    def test_missing_goal_is_fatal(self):
        """Invalid intents produce no plan or tasks."""
        intent = Intent(goal="", scope=["A"])

        validation = intent.validate()
        assert not validation.is_valid
        assert any("Goal" in error for error in validation.errors)
        with pytest.raises(IntentValidationError):
            PlanGenerator().generate(intent)
        with pytest.raises(IntentValidationError):
            TaskGenerator().generate(intent)

    def test_new_scope_item_is_create_task(self):
        """A '(new)' scope item becomes a create task."""
        tasks = TaskGenerator().generate(Intent(goal="g", scope=["NewService (new)"])).tasks

        assert tasks[1].type == TaskType.CREATE

    def test_partial_verification_fails(self):
        """One failed criterion fails the workflow."""
        workflow = (
            IntentWorkflow("Ship it", processor=IntentProcessor("."))
            .with_scope("App")
            .with_verification("Test 1", "Test 2")
            .mark_passed("Test 1")
            .mark_failed("Test 2")
            .verify()
        )

        assert workflow.verification_result.status == VerificationStatus.FAILED
        assert workflow.verification_result.suggestions == ["Address: Test 2"]
        assert workflow.intent.status == IntentStatus.FAILED
