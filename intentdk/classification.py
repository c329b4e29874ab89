"""Keyword classification rules shared by the generators and verification.

Each table is an ordered list of ``(keywords, tag)`` pairs. Rules are tried
top to bottom and the first rule with any keyword contained in the
lower-cased text wins; the table's default applies when nothing matches.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple, TypeVar

from .models import StepAction, TaskType, VerificationType


T = TypeVar("T")

Rule = Tuple[Tuple[str, ...], T]


# Only the explicit marker raises task complexity; "new " just selects CREATE.
NEW_FILE_MARKER = "(new)"
NEW_TARGET_MARKERS = (NEW_FILE_MARKER, "new ")

PLAN_STEP_RULES: Sequence[Rule] = (
    (("test",), StepAction.TEST),
    (("review",), StepAction.REVIEW),
    (("document",), StepAction.DOCUMENT),
)

SCOPE_TASK_RULES: Sequence[Rule] = (
    (NEW_TARGET_MARKERS, TaskType.CREATE),
    (("test",), TaskType.TEST),
    (("config", "setting"), TaskType.CONFIGURE),
    (("doc", "readme"), TaskType.DOCUMENT),
)

VERIFICATION_TASK_RULES: Sequence[Rule] = (
    (("test",), TaskType.TEST),
    (("review",), TaskType.REVIEW),
    (("document",), TaskType.DOCUMENT),
)

# "unit test" and "integration test" must be tried before the bare "test".
CHECKLIST_RULES: Sequence[Rule] = (
    (("unit test",), VerificationType.UNIT_TEST),
    (("integration test",), VerificationType.INTEGRATION_TEST),
    (("test",), VerificationType.UNIT_TEST),
    (("review", "check"), VerificationType.CODE_REVIEW),
    (("lint",), VerificationType.LINTER),
    (("build", "compile"), VerificationType.BUILD),
    (("security", "vulnerability"), VerificationType.SECURITY),
)


def classify(text: str, rules: Iterable[Rule], default: T) -> T:
    """Return the tag of the first rule matching ``text``."""
    lower = text.lower()
    for keywords, tag in rules:
        if any(keyword in lower for keyword in keywords):
            return tag
    return default


def plan_step_action(verification: str) -> StepAction:
    return classify(verification, PLAN_STEP_RULES, StepAction.TEST)


def scope_task_type(scope_item: str) -> TaskType:
    return classify(scope_item, SCOPE_TASK_RULES, TaskType.IMPLEMENT)


def verification_task_type(verification: str) -> TaskType:
    return classify(verification, VERIFICATION_TASK_RULES, TaskType.VERIFY)


def checklist_item_type(verification: str) -> VerificationType:
    return classify(verification, CHECKLIST_RULES, VerificationType.MANUAL)
