"""Data models for IntentDK.

This module contains the core data structures used throughout IntentDK:
intents, implementation plans, task breakdowns, verification checklists
and verification results.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar


E = TypeVar("E", bound=Enum)


def short_id() -> str:
    """Return an 8-character opaque identifier."""
    return uuid.uuid4().hex[:8]


def utcnow() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def coerce_enum(enum_cls: Type[E], value: Any) -> E:
    """Convert a loosely formatted value into a member of ``enum_cls``.

    Accepts enum members, values (``"in_progress"``), and names in any case
    or separator style (``"InProgress"``, ``"in-progress"``).
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")

    wanted = value.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    for member in enum_cls:
        if wanted in (member.value.replace("_", ""), member.name.lower().replace("_", "")):
            return member
    raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    """Read an optional list of strings.

    Null entries (commented-out template placeholders) are dropped; strings
    are kept exactly as written.
    """
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TypeError(f"'{key}' must be a list, got {type(raw).__name__}")
    items: List[str] = []
    for entry in raw:
        if entry is None:
            continue
        if isinstance(entry, (dict, list)):
            raise TypeError(f"'{key}' entries must be scalar values")
        items.append(entry if isinstance(entry, str) else str(entry))
    return items


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise TypeError(f"'{key}' must be a scalar value")
    return str(value)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class IntentValidationError(ValueError):
    """Raised when an operation requires a valid intent and the intent is invalid."""

    def __init__(self, message: str, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"{message}: {', '.join(self.errors)}")


# ----------------------------------------------------------------------
# Intent
# ----------------------------------------------------------------------


class IntentPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IntentStatus(str, Enum):
    """Lifecycle of an intent.

    Only ``PLANNED``, ``COMPLETED`` and ``FAILED`` are driven by the
    workflow; the remaining states are set directly by external tools.
    """

    PENDING = "pending"
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    IMPLEMENTED = "implemented"
    VERIFYING = "verifying"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class ValidationResult:
    """Outcome of validating an intent."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def failure(cls, *errors: str) -> "ValidationResult":
        return cls(is_valid=False, errors=list(errors))


@dataclass(slots=True)
class Intent:
    """A structured description of a desired code change."""

    goal: str = ""
    scope: List[str] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    verification: List[str] = field(default_factory=list)
    context: Optional[str] = None
    priority: IntentPriority = IntentPriority.MEDIUM
    tags: List[str] = field(default_factory=list)
    id: str = field(default_factory=short_id)
    status: IntentStatus = IntentStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)

    def validate(self) -> ValidationResult:
        """Validate that the intent has all required fields."""
        errors: List[str] = []

        if not self.goal or not self.goal.strip():
            errors.append("Goal is required and cannot be empty.")
        if not self.scope:
            errors.append("At least one scope item is required.")

        return ValidationResult(is_valid=not errors, errors=errors)

    def require_valid(self, message: str = "Intent validation failed") -> None:
        """Raise ``IntentValidationError`` listing every violated rule."""
        result = self.validate()
        if not result.is_valid:
            raise IntentValidationError(message, result.errors)

    def to_dict(self, include_state: bool = False) -> Dict[str, Any]:
        """Convert to dictionary representation.

        Lifecycle fields (status, timestamps) are only included when
        ``include_state`` is set; they are not part of the document.
        """
        data: Dict[str, Any] = {
            "id": self.id,
            "goal": self.goal,
            "scope": list(self.scope),
            "constraints": list(self.constraints),
            "verification": list(self.verification),
        }
        if self.context is not None:
            data["context"] = self.context
        data["priority"] = self.priority.value
        data["tags"] = list(self.tags)
        if include_state:
            data["status"] = self.status.value
            data["created_at"] = _isoformat(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Intent":
        """Create from dictionary representation."""
        goal = data.get("goal")
        kwargs: Dict[str, Any] = {
            "goal": "" if goal is None else str(goal),
            "scope": _string_list(data, "scope"),
            "constraints": _string_list(data, "constraints"),
            "verification": _string_list(data, "verification"),
            "context": _optional_text(data, "context"),
            "tags": _string_list(data, "tags"),
        }
        if data.get("priority") is not None:
            kwargs["priority"] = coerce_enum(IntentPriority, data["priority"])
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        if data.get("status") is not None:
            kwargs["status"] = coerce_enum(IntentStatus, data["status"])
        return cls(**kwargs)


# ----------------------------------------------------------------------
# Plan
# ----------------------------------------------------------------------


class PlanStatus(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    EXECUTING = "executing"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class StepAction(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    TEST = "test"
    REVIEW = "review"
    CONFIGURE = "configure"
    DOCUMENT = "document"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class PlanStep:
    """A single numbered step in an implementation plan."""

    step_number: int
    action: StepAction
    description: str
    target: Optional[str] = None
    details: Optional[str] = None
    expected_outcome: Optional[str] = None
    status: StepStatus = StepStatus.PENDING
    error_message: Optional[str] = None

    def to_dict(self, include_state: bool = False) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "step": self.step_number,
            "description": self.description,
            "action": self.action.value,
        }
        for key in ("target", "details", "expected_outcome"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if include_state:
            data["status"] = self.status.value
            if self.error_message:
                data["error_message"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanStep":
        """Create from dictionary representation."""
        return cls(
            step_number=int(data["step"]),
            action=coerce_enum(StepAction, data.get("action", "modify")),
            description=str(data.get("description") or ""),
            target=_optional_text(data, "target"),
            details=_optional_text(data, "details"),
            expected_outcome=_optional_text(data, "expected_outcome"),
            status=coerce_enum(StepStatus, data.get("status", "pending")),
            error_message=_optional_text(data, "error_message"),
        )


@dataclass(slots=True)
class Plan:
    """Ordered execution blueprint derived from one intent."""

    intent_id: str
    summary: str = ""
    steps: List[PlanStep] = field(default_factory=list)
    affected_files: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    id: str = field(default_factory=short_id)
    status: PlanStatus = PlanStatus.DRAFT
    created_at: datetime = field(default_factory=utcnow)

    def get_next_step(self) -> Optional[PlanStep]:
        """Get the first step that has not been started."""
        return next((s for s in self.steps if s.status == StepStatus.PENDING), None)

    def get_progress_percentage(self) -> float:
        """Get the share of completed steps as a percentage."""
        if not self.steps:
            return 0.0
        completed = sum(1 for s in self.steps if s.status == StepStatus.COMPLETED)
        return completed / len(self.steps) * 100

    def mark_step(
        self,
        step_number: int,
        status: StepStatus | str,
        error_message: Optional[str] = None,
    ) -> Optional[PlanStep]:
        """Record progress on a single step; returns ``None`` for unknown steps."""
        for step in self.steps:
            if step.step_number == step_number:
                step.status = coerce_enum(StepStatus, status)
                step.error_message = error_message
                return step
        return None

    def to_dict(self, include_state: bool = False) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "id": self.id,
            "intent_id": self.intent_id,
            "summary": self.summary,
            "steps": [step.to_dict(include_state) for step in self.steps],
            "affected_files": list(self.affected_files),
            "risks": list(self.risks),
            "dependencies": list(self.dependencies),
        }
        if include_state:
            data["status"] = self.status.value
            data["created_at"] = _isoformat(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plan":
        """Create from dictionary representation."""
        raw_steps = data.get("steps") or []
        if not isinstance(raw_steps, list):
            raise TypeError("'steps' must be a list")
        kwargs: Dict[str, Any] = {
            "intent_id": str(data.get("intent_id") or ""),
            "summary": str(data.get("summary") or ""),
            "steps": [PlanStep.from_dict(step) for step in raw_steps],
            "affected_files": _string_list(data, "affected_files"),
            "risks": _string_list(data, "risks"),
            "dependencies": _string_list(data, "dependencies"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        if data.get("status") is not None:
            kwargs["status"] = coerce_enum(PlanStatus, data["status"])
        return cls(**kwargs)


# ----------------------------------------------------------------------
# Task breakdown
# ----------------------------------------------------------------------


class TaskType(str, Enum):
    ANALYZE = "analyze"
    DESIGN = "design"
    CREATE = "create"
    IMPLEMENT = "implement"
    TEST = "test"
    REVIEW = "review"
    DOCUMENT = "document"
    CONFIGURE = "configure"
    VERIFY = "verify"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    SKIPPED = "skipped"


@dataclass(slots=True)
class TaskProgress:
    """Derived progress summary for a task breakdown."""

    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    blocked: int = 0
    total: int = 0
    percentage: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "completed": self.completed,
            "in_progress": self.in_progress,
            "pending": self.pending,
            "blocked": self.blocked,
            "total": self.total,
            "percentage": self.percentage,
        }


@dataclass(slots=True)
class ImplementationTask:
    """A single task in a dependency-aware breakdown."""

    id: str
    title: str
    type: TaskType = TaskType.IMPLEMENT
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    target: Optional[str] = None
    acceptance_criteria: List[str] = field(default_factory=list)
    depends_on: List[str] = field(default_factory=list)
    complexity: int = 1
    notes: Optional[str] = None

    @property
    def is_blocked(self) -> bool:
        return self.status == TaskStatus.BLOCKED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "status": self.status.value,
        }
        if self.target is not None:
            data["target"] = self.target
        data["acceptance_criteria"] = list(self.acceptance_criteria)
        data["depends_on"] = list(self.depends_on)
        data["complexity"] = self.complexity
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImplementationTask":
        """Create from dictionary representation."""
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            type=coerce_enum(TaskType, data.get("type", "implement")),
            description=str(data.get("description") or ""),
            status=coerce_enum(TaskStatus, data.get("status", "pending")),
            target=_optional_text(data, "target"),
            acceptance_criteria=_string_list(data, "acceptance_criteria"),
            depends_on=_string_list(data, "depends_on"),
            complexity=int(data.get("complexity", 1)),
            notes=_optional_text(data, "notes"),
        )


@dataclass(slots=True)
class TaskBreakdown:
    """Dependency-aware blueprint derived from one intent."""

    intent_id: str
    goal: str
    tasks: List[ImplementationTask] = field(default_factory=list)
    progress: TaskProgress = field(default_factory=TaskProgress)
    created_at: datetime = field(default_factory=utcnow)

    def update_progress(self) -> TaskProgress:
        """Recompute progress from a full scan of task statuses."""
        total = len(self.tasks)
        completed = sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)
        self.progress = TaskProgress(
            completed=completed,
            in_progress=sum(1 for t in self.tasks if t.status == TaskStatus.IN_PROGRESS),
            pending=sum(1 for t in self.tasks if t.status == TaskStatus.PENDING),
            blocked=sum(1 for t in self.tasks if t.status == TaskStatus.BLOCKED),
            total=total,
            percentage=(completed * 100) // total if total else 0,
        )
        return self.progress

    def get_task(self, task_id: str) -> Optional[ImplementationTask]:
        lookup = task_id.upper()
        return next((t for t in self.tasks if t.id.upper() == lookup), None)

    def set_task_status(self, task_id: str, status: TaskStatus | str) -> Optional[ImplementationTask]:
        """Update one task's status and recompute progress.

        Returns ``None`` when ``task_id`` is not part of this breakdown.
        """
        task = self.get_task(task_id)
        if task is None:
            return None
        task.status = coerce_enum(TaskStatus, status)
        self.update_progress()
        return task

    def get_next_task(self) -> Optional[ImplementationTask]:
        """Get the first pending task that is not blocked."""
        return next(
            (t for t in self.tasks if t.status == TaskStatus.PENDING and not t.is_blocked),
            None,
        )

    def get_ready_tasks(self) -> List[ImplementationTask]:
        """Get pending tasks whose dependencies are all completed."""
        completed_ids = {t.id for t in self.tasks if t.status == TaskStatus.COMPLETED}
        return [
            t for t in self.tasks
            if t.status == TaskStatus.PENDING and all(d in completed_ids for d in t.depends_on)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "intent_id": self.intent_id,
            "goal": self.goal,
            "tasks": [task.to_dict() for task in self.tasks],
            "progress": self.update_progress().to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskBreakdown":
        """Create from dictionary representation.

        Stored progress figures are ignored and recomputed from the tasks.
        """
        raw_tasks = data.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise TypeError("'tasks' must be a list")
        breakdown = cls(
            intent_id=str(data.get("intent_id") or ""),
            goal=str(data.get("goal") or ""),
            tasks=[ImplementationTask.from_dict(task) for task in raw_tasks],
        )
        breakdown.update_progress()
        return breakdown


# ----------------------------------------------------------------------
# Verification
# ----------------------------------------------------------------------


class VerificationType(str, Enum):
    MANUAL = "manual"
    UNIT_TEST = "unit_test"
    INTEGRATION_TEST = "integration_test"
    CODE_REVIEW = "code_review"
    LINTER = "linter"
    BUILD = "build"
    SECURITY = "security"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ChecklistItemStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ReportFormat(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


@dataclass(slots=True)
class ChecklistItem:
    """One criterion being tracked for verification."""

    criterion: str
    type: VerificationType = VerificationType.MANUAL
    status: ChecklistItemStatus = ChecklistItemStatus.PENDING
    notes: Optional[str] = None
    is_constraint: bool = False
    completed_at: Optional[datetime] = None
    id: str = field(default_factory=short_id)

    def mark(self, status: ChecklistItemStatus, notes: Optional[str] = None) -> None:
        """Record an externally determined outcome."""
        self.status = status
        self.notes = notes
        self.completed_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "criterion": self.criterion,
            "type": self.type.value,
            "status": self.status.value,
            "notes": self.notes,
            "is_constraint": self.is_constraint,
            "completed_at": _isoformat(self.completed_at),
        }


@dataclass(slots=True)
class VerificationChecklist:
    """Mutable verification state built from an intent."""

    intent_id: str
    goal: str
    items: List[ChecklistItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_complete(self) -> bool:
        """True when every item is passed or skipped."""
        return all(
            item.status in (ChecklistItemStatus.PASSED, ChecklistItemStatus.SKIPPED)
            for item in self.items
        )

    @property
    def completion_percentage(self) -> float:
        if not self.items:
            return 0.0
        done = sum(1 for item in self.items if item.status != ChecklistItemStatus.PENDING)
        return done / len(self.items) * 100

    def find_item(self, criterion_contains: str) -> Optional[ChecklistItem]:
        """Return the first item whose criterion contains the text, ignoring case."""
        needle = criterion_contains.lower()
        return next((item for item in self.items if needle in item.criterion.lower()), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_id": self.intent_id,
            "goal": self.goal,
            "items": [item.to_dict() for item in self.items],
            "is_complete": self.is_complete,
            "completion_percentage": self.completion_percentage,
            "created_at": _isoformat(self.created_at),
        }


@dataclass(slots=True)
class VerificationCheck:
    """Pass/fail snapshot of one checklist item."""

    name: str
    criterion: str
    passed: bool
    type: VerificationType = VerificationType.MANUAL
    message: Optional[str] = None
    evidence: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "criterion": self.criterion,
            "passed": self.passed,
            "message": self.message,
            "evidence": self.evidence,
            "type": self.type.value,
        }


@dataclass(slots=True)
class VerificationResult:
    """Outcome of evaluating a verification checklist."""

    intent_id: str
    status: VerificationStatus = VerificationStatus.PENDING
    checks: List[VerificationCheck] = field(default_factory=list)
    summary: str = ""
    suggestions: List[str] = field(default_factory=list)
    plan_id: Optional[str] = None
    verified_at: datetime = field(default_factory=utcnow)

    @property
    def all_checks_passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def passed_count(self) -> int:
        return sum(1 for check in self.checks if check.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for check in self.checks if not check.passed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_id": self.intent_id,
            "plan_id": self.plan_id,
            "status": self.status.value,
            "checks": [check.to_dict() for check in self.checks],
            "summary": self.summary,
            "verified_at": _isoformat(self.verified_at),
            "suggestions": list(self.suggestions),
            "all_checks_passed": self.all_checks_passed,
            "passed_count": self.passed_count,
            "failed_count": self.failed_count,
        }
