"""IntentDK library exports."""

from .models import (
    ChecklistItem,
    ChecklistItemStatus,
    ImplementationTask,
    Intent,
    IntentPriority,
    IntentStatus,
    IntentValidationError,
    Plan,
    PlanStatus,
    PlanStep,
    ReportFormat,
    StepAction,
    StepStatus,
    TaskBreakdown,
    TaskProgress,
    TaskStatus,
    TaskType,
    ValidationResult,
    VerificationCheck,
    VerificationChecklist,
    VerificationResult,
    VerificationStatus,
    VerificationType,
)
from .parser import IntentParseError, IntentParser, ParseResult
from .plan_generator import PlanGenerator, PlanGeneratorOptions
from .task_generator import TaskGenerator, TaskGeneratorOptions
from .templates import TemplateType, get_template
from .verification import VerificationService
from .workflow import IntentProcessor, IntentWorkflow
from .workspace import IntentFileInfo, IntentWorkspace

__all__ = [
    "ChecklistItem",
    "ChecklistItemStatus",
    "ImplementationTask",
    "Intent",
    "IntentFileInfo",
    "IntentParseError",
    "IntentParser",
    "IntentPriority",
    "IntentProcessor",
    "IntentStatus",
    "IntentValidationError",
    "IntentWorkflow",
    "IntentWorkspace",
    "ParseResult",
    "Plan",
    "PlanGenerator",
    "PlanGeneratorOptions",
    "PlanStatus",
    "PlanStep",
    "ReportFormat",
    "StepAction",
    "StepStatus",
    "TaskBreakdown",
    "TaskGenerator",
    "TaskGeneratorOptions",
    "TaskProgress",
    "TaskStatus",
    "TaskType",
    "TemplateType",
    "ValidationResult",
    "VerificationCheck",
    "VerificationChecklist",
    "VerificationResult",
    "VerificationService",
    "VerificationStatus",
    "VerificationType",
    "get_template",
]
