"""Workflow orchestration for IntentDK.

``IntentWorkflow`` is a stateful session that carries one intent through
planning, task breakdown and verification with a fluent interface::

    result = (
        IntentWorkflow("Add logging")
        .with_scope("AuthService", "Logger")
        .with_verification("Unit test for login logs")
        .create_plan()
        .mark_passed("unit test")
        .verify()
        .verification_result
    )

``IntentProcessor`` bundles the parser, generators, verification service
and file workspace behind a single object for callers such as the MCP
server.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .intentdk_logging import log_operation, log_workflow_step
from .models import (
    ChecklistItemStatus,
    Intent,
    IntentPriority,
    IntentStatus,
    Plan,
    ReportFormat,
    TaskBreakdown,
    VerificationChecklist,
    VerificationResult,
    VerificationStatus,
    coerce_enum,
)
from .parser import IntentParser, ParseResult
from .plan_generator import (
    PlanGenerator,
    PlanGeneratorOptions,
    render_plan_markdown,
    render_plan_text,
)
from .task_generator import (
    TaskGenerator,
    TaskGeneratorOptions,
    render_tasks_checklist,
    render_tasks_markdown,
    render_tasks_yaml,
)
from .templates import TemplateType, get_template
from .verification import VerificationService
from .workspace import IntentFileInfo, IntentWorkspace

logger = logging.getLogger("intentdk.workflow")


class IntentProcessor:
    """Single entry point to parsing, generation, verification and files."""

    def __init__(
        self,
        root: Path | str | None = None,
        plan_options: Optional[PlanGeneratorOptions] = None,
        task_options: Optional[TaskGeneratorOptions] = None,
    ):
        self.parser = IntentParser()
        self.plan_generator = PlanGenerator(plan_options)
        self.task_generator = TaskGenerator(task_options)
        self.verification = VerificationService()
        self.workspace = IntentWorkspace(root if root is not None else Path.cwd(), parser=self.parser)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: str) -> ParseResult[Intent]:
        return self.parser.parse_and_validate(text)

    def extract_intent(self, text: str) -> ParseResult[Intent]:
        return self.parser.extract_from_text(text)

    def to_yaml(self, document: Intent | Plan | TaskBreakdown) -> str:
        return self.parser.to_yaml(document)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def create_plan(self, intent: Intent) -> Plan:
        return self.plan_generator.generate(intent)

    def create_plan_text(self, intent: Intent) -> str:
        return render_plan_text(self.create_plan(intent), intent)

    def create_plan_markdown(self, intent: Intent) -> str:
        return render_plan_markdown(self.create_plan(intent), intent)

    def create_tasks(self, intent: Intent) -> TaskBreakdown:
        return self.task_generator.generate(intent)

    def create_tasks_markdown(self, intent: Intent) -> str:
        return render_tasks_markdown(self.create_tasks(intent))

    def create_tasks_checklist(self, intent: Intent) -> str:
        return render_tasks_checklist(self.create_tasks(intent))

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def create_checklist(self, intent: Intent) -> VerificationChecklist:
        return self.verification.create_checklist(intent)

    def verify(self, checklist: VerificationChecklist) -> VerificationResult:
        return self.verification.evaluate(checklist)

    def generate_report(
        self,
        result: VerificationResult,
        format: ReportFormat | str = ReportFormat.MARKDOWN,
    ) -> str:
        return self.verification.generate_report(result, format)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def create_intent_file(
        self,
        name: Optional[str] = None,
        template: TemplateType | str = TemplateType.BASIC,
        hint: Optional[str] = None,
    ) -> Path:
        return self.workspace.create_intent_file(name, template, hint)

    def read_intent_file(self, path: Path | str) -> ParseResult[Intent]:
        return self.workspace.read_intent(path)

    def find_intent_file(self, name: Optional[str] = None) -> Optional[Path]:
        return self.workspace.find_intent_file(name)

    def get_all_intents(self) -> List[IntentFileInfo]:
        return self.workspace.get_all_intents()

    def create_plan_file(self, intent_path: Path | str, intent: Intent) -> Path:
        """Generate a plan for ``intent`` and store it next to the intent file."""
        plan = self.create_plan(intent)
        return self.workspace.create_plan_file(intent_path, self.to_yaml(plan))

    def create_tasks_file(self, intent_path: Path | str, intent: Intent) -> Path:
        """Generate tasks for ``intent`` and store them next to the intent file."""
        breakdown = self.create_tasks(intent)
        return self.workspace.create_tasks_file(intent_path, render_tasks_yaml(breakdown))

    def read_plan_file(self, intent_path: Path | str) -> Optional[Plan]:
        return self.workspace.read_plan(intent_path)

    def read_tasks_file(self, intent_path: Path | str) -> Optional[TaskBreakdown]:
        return self.workspace.read_tasks(intent_path)

    @staticmethod
    def get_template(template: TemplateType | str = TemplateType.BASIC, hint: Optional[str] = None) -> str:
        return get_template(template, hint)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def workflow(self, intent: Intent) -> "IntentWorkflow":
        """Start a session on ``intent`` that shares this processor."""
        return IntentWorkflow.from_intent(intent, processor=self)


class IntentWorkflow:
    """Fluent session carrying one intent from planning to verification.

    Builder methods mutate the session and return it, so chained calls
    observe accumulated state. Generated artefacts are created on first
    use by the view methods and cached until regenerated.
    """

    def __init__(self, goal: str = "", processor: Optional[IntentProcessor] = None):
        self._processor = processor or IntentProcessor()
        self.intent = Intent(goal=goal)
        self.plan: Optional[Plan] = None
        self.tasks: Optional[TaskBreakdown] = None
        self.checklist: Optional[VerificationChecklist] = None
        self.verification_result: Optional[VerificationResult] = None

    @classmethod
    def from_intent(cls, intent: Intent, processor: Optional[IntentProcessor] = None) -> "IntentWorkflow":
        """Start a session on an existing intent; the intent is shared, not copied."""
        workflow = cls(processor=processor)
        workflow.intent = intent
        return workflow

    @classmethod
    def from_yaml(cls, text: str, processor: Optional[IntentProcessor] = None) -> "IntentWorkflow":
        """Start a session from intent YAML.

        Raises:
            IntentParseError: if the text is not a readable intent document.
            IntentValidationError: if the intent parses but is invalid.
        """
        processor = processor or IntentProcessor()
        intent = processor.parser.parse(text)
        intent.require_valid()
        return cls.from_intent(intent, processor=processor)

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def with_scope(self, *items: str) -> "IntentWorkflow":
        self.intent.scope.extend(items)
        return self

    def with_constraints(self, *constraints: str) -> "IntentWorkflow":
        self.intent.constraints.extend(constraints)
        return self

    def with_verification(self, *criteria: str) -> "IntentWorkflow":
        self.intent.verification.extend(criteria)
        return self

    def with_tags(self, *tags: str) -> "IntentWorkflow":
        self.intent.tags.extend(tags)
        return self

    def with_priority(self, priority: IntentPriority | str) -> "IntentWorkflow":
        self.intent.priority = coerce_enum(IntentPriority, priority)
        return self

    def with_context(self, context: str) -> "IntentWorkflow":
        self.intent.context = context
        return self

    def validate(self) -> "IntentWorkflow":
        """Raise ``IntentValidationError`` if the intent is invalid."""
        self.intent.require_valid()
        return self

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def create_plan(self) -> "IntentWorkflow":
        """Generate the plan and mark the intent planned."""
        self.validate()
        with log_operation("create_plan", intent_id=self.intent.id):
            self.plan = self._processor.create_plan(self.intent)
        self.intent.status = IntentStatus.PLANNED
        log_workflow_step("plan_created", intent_id=self.intent.id, step_count=len(self.plan.steps))
        return self

    def create_tasks(self) -> "IntentWorkflow":
        """Generate the task breakdown; the intent status is left unchanged."""
        self.validate()
        with log_operation("create_tasks", intent_id=self.intent.id):
            self.tasks = self._processor.create_tasks(self.intent)
        log_workflow_step("tasks_created", intent_id=self.intent.id, task_count=len(self.tasks.tasks))
        return self

    def create_checklist(self) -> "IntentWorkflow":
        """Build a fresh checklist, discarding any recorded outcomes."""
        self.checklist = self._processor.create_checklist(self.intent)
        return self

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def mark_passed(self, criterion_contains: str, notes: Optional[str] = None) -> "IntentWorkflow":
        return self._mark(criterion_contains, ChecklistItemStatus.PASSED, notes)

    def mark_failed(self, criterion_contains: str, notes: Optional[str] = None) -> "IntentWorkflow":
        return self._mark(criterion_contains, ChecklistItemStatus.FAILED, notes)

    def mark_skipped(self, criterion_contains: str, notes: Optional[str] = None) -> "IntentWorkflow":
        return self._mark(criterion_contains, ChecklistItemStatus.SKIPPED, notes)

    def _mark(self, criterion_contains: str, status: ChecklistItemStatus, notes: Optional[str]) -> "IntentWorkflow":
        # Only the first matching item is updated; a short needle can hit an
        # earlier criterion than intended.
        item = self._ensure_checklist().find_item(criterion_contains)
        if item is None:
            logger.debug(f"No checklist item matches '{criterion_contains}' for intent {self.intent.id}")
            return self
        item.mark(status, notes)
        return self

    def verify(self) -> "IntentWorkflow":
        """Evaluate the checklist and mark the intent completed or failed."""
        result = self._processor.verify(self._ensure_checklist())
        if self.plan is not None:
            result.plan_id = self.plan.id
        self.verification_result = result
        self.intent.status = (
            IntentStatus.COMPLETED
            if result.status == VerificationStatus.PASSED
            else IntentStatus.FAILED
        )
        log_workflow_step("verified", intent_id=self.intent.id, status=result.status.value)
        return self

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_plan_text(self) -> str:
        return render_plan_text(self._ensure_plan(), self.intent)

    def get_plan_markdown(self) -> str:
        return render_plan_markdown(self._ensure_plan(), self.intent)

    def get_tasks_yaml(self) -> str:
        return render_tasks_yaml(self._ensure_tasks())

    def get_tasks_markdown(self) -> str:
        return render_tasks_markdown(self._ensure_tasks())

    def get_tasks_checklist(self) -> str:
        return render_tasks_checklist(self._ensure_tasks())

    def get_verification_report(self, format: ReportFormat | str = ReportFormat.MARKDOWN) -> str:
        return self._processor.generate_report(self._ensure_result(), format)

    def to_yaml(self) -> str:
        return self._processor.to_yaml(self.intent)

    def _ensure_plan(self) -> Plan:
        if self.plan is None:
            self.create_plan()
        return self.plan

    def _ensure_tasks(self) -> TaskBreakdown:
        if self.tasks is None:
            self.create_tasks()
        return self.tasks

    def _ensure_checklist(self) -> VerificationChecklist:
        if self.checklist is None:
            self.create_checklist()
        return self.checklist

    def _ensure_result(self) -> VerificationResult:
        if self.verification_result is None:
            self.verify()
        return self.verification_result


__all__ = ["IntentProcessor", "IntentWorkflow"]
