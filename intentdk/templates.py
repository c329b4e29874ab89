"""Starter templates for new intent files."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

import yaml


DEFAULT_FILE_NAME = "intent.yaml"


class TemplateType(str, Enum):
    BASIC = "basic"
    FEATURE = "feature"
    BUGFIX = "bugfix"
    REFACTOR = "refactor"
    SECURITY = "security"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "TemplateType":
        """Resolve a template name or alias; unknown names fall back to basic."""
        if not name:
            return cls.BASIC
        key = name.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            return cls.BASIC


_ALIASES: Dict[str, TemplateType] = {
    "bug": TemplateType.BUGFIX,
    "fix": TemplateType.BUGFIX,
    "sec": TemplateType.SECURITY,
}


_BASIC = """\
# Intent-Driven Development
# Edit this file to define your development intent, then generate:
#   plan     - ordered implementation plan
#   tasks    - dependency-aware task breakdown
#   verify   - record and evaluate verification results

goal: {goal}

scope:
  - # File, class, or module to modify
  - # Add more scope items as needed

constraints:
  - # Requirements that MUST be respected
  - # Security, performance, or compatibility constraints

verification:
  - # How to verify success (tests, checks)
  - # Add verification criteria

# Optional fields (uncomment to use):
# context: Background information or why this is needed
# priority: medium  # low | medium | high | critical
# tags:
#   - feature
"""

_FEATURE = """\
# Intent: Add New Feature

goal: {goal}

scope:
  - # Controller or API endpoint
  - # Service layer
  - # Repository or data access
  - # Tests

constraints:
  - Must be backward compatible
  - Follow existing code patterns
  - Include error handling

verification:
  - Unit tests pass
  - Integration test passes
  - API documentation updated

context: |
  Describe the feature requirements and acceptance criteria here.
  Include any relevant business logic or user stories.

priority: medium

tags:
  - feature
"""

_BUGFIX = """\
# Intent: Bug Fix

goal: {goal}

scope:
  - # File(s) where the bug exists
  - # Related test files

constraints:
  - Must not introduce regressions
  - Preserve existing behavior for other cases
  - Add test to prevent recurrence

verification:
  - Bug no longer reproducible
  - Regression test added
  - Existing tests still pass

context: |
  Describe the bug:
  - Steps to reproduce:
  - Expected behavior:
  - Actual behavior:
  - Root cause (if known):

priority: high

tags:
  - bugfix
"""

_REFACTOR = """\
# Intent: Refactoring

goal: {goal}

scope:
  - # Files to refactor
  - # New files to create (if any)
  - # Test files to update

constraints:
  - No changes to external API/interface
  - All existing tests must pass
  - No behavior changes

verification:
  - All tests pass
  - Code coverage maintained or improved
  - No new linter warnings

context: |
  Describe the refactoring goals:
  - Current issues:
  - Desired improvements:
  - Design patterns to apply:

priority: low

tags:
  - refactor
  - tech-debt
"""

_SECURITY = """\
# Intent: Security Enhancement

goal: {goal}

scope:
  - # Security-sensitive files
  - # Configuration files
  - # Test files

constraints:
  - Must not break existing authentication/authorization
  - Follow OWASP guidelines
  - Log security events appropriately
  - No sensitive data in logs

verification:
  - Security tests pass
  - Penetration test scenarios covered
  - No security warnings from static analysis

context: |
  Security requirements:
  - Threat model:
  - Attack vectors to address:
  - Compliance requirements:

priority: critical

tags:
  - security
"""

# (template body, goal format, goal used without a hint)
_TEMPLATES = {
    TemplateType.BASIC: (_BASIC, "{hint}", "Describe what you want to achieve"),
    TemplateType.FEATURE: (_FEATURE, "Implement {hint}", "new feature"),
    TemplateType.BUGFIX: (_BUGFIX, "Fix {hint}", "the reported issue"),
    TemplateType.REFACTOR: (_REFACTOR, "Refactor to {hint}", "improve code quality"),
    TemplateType.SECURITY: (_SECURITY, "{hint}", "enhance security"),
}


def _yaml_scalar(text: str) -> str:
    """Render ``text`` as a single-line YAML scalar, quoting only when needed."""
    dumped = yaml.safe_dump(" ".join(text.split()), allow_unicode=True, width=float("inf"))
    return dumped.splitlines()[0]


def get_template(template: TemplateType | str = TemplateType.BASIC, hint: Optional[str] = None) -> str:
    """Return starter YAML for ``template`` with the goal filled in from ``hint``."""
    if not isinstance(template, TemplateType):
        template = TemplateType.from_name(template)

    body, goal_format, default_hint = _TEMPLATES[template]
    hint = hint.strip() if hint and hint.strip() else default_hint
    return body.format(goal=_yaml_scalar(goal_format.format(hint=hint)))
