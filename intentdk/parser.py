"""YAML parsing and serialisation for intents, plans and task breakdowns."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

from .models import Intent, Plan, TaskBreakdown


T = TypeVar("T")

INTENT_COMMAND = "/intent"

_FENCE_PATTERNS = (
    re.compile(r"```ya?ml\s*\n([\s\S]*?)```"),
    re.compile(r"```\s*\n([\s\S]*?)```"),
)


class IntentParseError(ValueError):
    """Raised when text cannot be turned into a document.

    ``kind`` is ``"empty_input"`` for blank text and ``"invalid_document"``
    for malformed YAML or a document of the wrong shape.
    """

    EMPTY_INPUT = "empty_input"
    INVALID_DOCUMENT = "invalid_document"

    def __init__(self, message: str, kind: str = INVALID_DOCUMENT):
        super().__init__(message)
        self.kind = kind


@dataclass(slots=True)
class ParseResult(Generic[T]):
    """Outcome of parsing and validating a document.

    ``error_kind`` is one of the ``IntentParseError`` kinds, or
    ``"validation"`` when the document parsed but failed validation.
    """

    is_success: bool
    value: Optional[T] = None
    errors: List[str] = field(default_factory=list)
    error_kind: Optional[str] = None

    VALIDATION = "validation"

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(is_success=True, value=value)

    @classmethod
    def failure(cls, errors: List[str], error_kind: str) -> "ParseResult[T]":
        return cls(is_success=False, errors=list(errors), error_kind=error_kind)


def dump_yaml(data: Dict[str, Any]) -> str:
    """Serialise a mapping as block-style YAML, preserving key order."""
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)


class IntentParser:
    """Parse intent, plan and task documents from YAML text."""

    def parse(self, text: str) -> Intent:
        """Parse YAML text into an ``Intent`` without validating it."""
        return self._load(text, Intent.from_dict, "Intent")

    def parse_and_validate(self, text: str) -> ParseResult[Intent]:
        """Parse YAML text and validate the resulting intent."""
        try:
            intent = self.parse(text)
        except IntentParseError as e:
            return ParseResult.failure([str(e)], e.kind)

        validation = intent.validate()
        if not validation.is_valid:
            return ParseResult.failure(validation.errors, ParseResult.VALIDATION)
        return ParseResult.success(intent)

    def extract_from_text(self, text: str) -> ParseResult[Intent]:
        """Find an intent embedded in free text and parse it.

        Looks for a ```yaml fence, then a bare ``` fence, then a leading
        ``/intent`` command; otherwise the whole text is treated as YAML.
        """
        if not text or not text.strip():
            return ParseResult.failure(["Text cannot be empty."], IntentParseError.EMPTY_INPUT)

        content = self._from_code_fence(text)
        if content is None:
            content = self._from_intent_command(text)
        if content is None:
            content = text

        return self.parse_and_validate(content)

    def parse_plan(self, text: str) -> Plan:
        """Parse a plan document, such as an edited ``.plan.yaml`` file."""
        return self._load(text, Plan.from_dict, "Plan")

    def parse_tasks(self, text: str) -> TaskBreakdown:
        """Parse a task breakdown document; progress is recomputed from tasks."""
        return self._load(text, TaskBreakdown.from_dict, "TaskBreakdown")

    def to_yaml(self, document: Union[Intent, Plan, TaskBreakdown]) -> str:
        """Serialise a document to YAML.

        Intent and plan lifecycle fields are left out; task status is kept.
        """
        if isinstance(document, TaskBreakdown):
            return dump_yaml(document.to_dict())
        return dump_yaml(document.to_dict(include_state=False))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load(text: str, build: Callable[[Dict[str, Any]], T], name: str) -> T:
        if text is None or not text.strip():
            raise IntentParseError("YAML content cannot be empty.", IntentParseError.EMPTY_INPUT)

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise IntentParseError(f"Invalid YAML format: {e}") from e

        if not isinstance(data, dict):
            raise IntentParseError(f"Failed to parse YAML into {name}: expected a mapping")

        try:
            return build(data)
        except (KeyError, TypeError, ValueError) as e:
            raise IntentParseError(f"Failed to parse YAML into {name}: {e}") from e

    @staticmethod
    def _from_code_fence(text: str) -> Optional[str]:
        for pattern in _FENCE_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
        return None

    @staticmethod
    def _from_intent_command(text: str) -> Optional[str]:
        trimmed = text.strip()
        if trimmed.lower().startswith(INTENT_COMMAND):
            content = trimmed[len(INTENT_COMMAND):].lstrip()
            if content:
                return content
        return None
