"""Unit tests for the YAML parser and serializer."""

import pytest
import yaml

from intentdk.models import Intent, IntentPriority, IntentStatus, Plan, PlanStatus, StepAction
from intentdk.parser import IntentParseError, IntentParser, ParseResult
from intentdk.plan_generator import PlanGenerator
from intentdk.task_generator import TaskGenerator
from intentdk.templates import TemplateType, get_template


VALID_YAML = """
goal: Add logging to authentication
scope:
  - AuthService
  - Logger (new)
constraints:
  - No breaking changes
verification:
  - Unit test for login logs
context: |
  Support asked for better traces.
priority: high
tags:
  - observability
"""


@pytest.fixture
def parser():
    return IntentParser()


class TestParse:
    """Test cases for IntentParser.parse."""

    def test_parse_valid(self, parser):
        """Test parsing a complete intent."""
        intent = parser.parse(VALID_YAML)

        assert intent.goal == "Add logging to authentication"
        assert intent.scope == ["AuthService", "Logger (new)"]
        assert intent.constraints == ["No breaking changes"]
        assert intent.context.startswith("Support asked")
        assert intent.priority == IntentPriority.HIGH
        assert intent.tags == ["observability"]
        assert intent.status == IntentStatus.PENDING

    @pytest.mark.parametrize("text", ["", "   \n  "])
    def test_empty_input(self, parser, text):
        """Test that blank input is an empty_input error."""
        with pytest.raises(IntentParseError) as exc_info:
            parser.parse(text)

        assert exc_info.value.kind == IntentParseError.EMPTY_INPUT

    @pytest.mark.parametrize("text", [
        "goal: [unclosed",
        "- just\n- a list\n",
        "goal: x\nscope: AuthService\n",
        "goal: x\nscope: [A]\npriority: urgent\n",
    ])
    def test_invalid_document(self, parser, text):
        """Test malformed YAML and wrongly shaped documents."""
        with pytest.raises(IntentParseError) as exc_info:
            parser.parse(text)

        assert exc_info.value.kind == IntentParseError.INVALID_DOCUMENT

    def test_unknown_fields_are_ignored(self, parser):
        """Test that extra keys do not break parsing."""
        intent = parser.parse("goal: x\nscope: [A]\nowner: someone\n")

        assert intent.scope == ["A"]

    def test_template_placeholders_are_dropped(self, parser):
        """Test that comment-only list entries parse as nothing."""
        intent = parser.parse(get_template(TemplateType.BASIC, "Add caching"))

        assert intent.goal == "Add caching"
        assert intent.scope == []
        assert intent.constraints == []


class TestParseAndValidate:
    """Test cases for IntentParser.parse_and_validate."""

    def test_success(self, parser):
        """Test a valid document."""
        result = parser.parse_and_validate(VALID_YAML)

        assert result.is_success
        assert result.value.goal == "Add logging to authentication"
        assert result.error_kind is None

    def test_validation_failure_is_distinct(self, parser):
        """Test that parsed-but-invalid documents report validation errors."""
        result = parser.parse_and_validate("goal: ''\nscope: []\n")

        assert not result.is_success
        assert result.error_kind == ParseResult.VALIDATION
        assert "Goal is required and cannot be empty." in result.errors

    def test_parse_failure_is_distinct(self, parser):
        """Test that unreadable documents report the parse error kind."""
        result = parser.parse_and_validate("goal: [unclosed")

        assert not result.is_success
        assert result.error_kind == IntentParseError.INVALID_DOCUMENT
        assert result.errors[0].startswith("Invalid YAML format")


class TestExtractFromText:
    """Test cases for IntentParser.extract_from_text."""

    def test_yaml_fence(self, parser):
        """Test extraction from a ```yaml fence."""
        text = f"Please do this:\n```yaml\n{VALID_YAML}\n```\nThanks"

        result = parser.extract_from_text(text)

        assert result.is_success
        assert result.value.scope[0] == "AuthService"

    def test_bare_fence(self, parser):
        """Test extraction from an unlabelled fence."""
        result = parser.extract_from_text("```\ngoal: x\nscope: [A]\n```")

        assert result.is_success
        assert result.value.goal == "x"

    def test_intent_command(self, parser):
        """Test extraction after a /intent prefix."""
        result = parser.extract_from_text("/intent goal: Fix bug\nscope:\n  - Parser\n")

        assert result.is_success
        assert result.value.goal == "Fix bug"

    def test_whole_text(self, parser):
        """Test that plain YAML is parsed as is."""
        assert parser.extract_from_text(VALID_YAML).is_success

    def test_empty_text(self, parser):
        """Test that empty text fails without parsing."""
        result = parser.extract_from_text("  ")

        assert not result.is_success
        assert result.errors == ["Text cannot be empty."]
        assert result.error_kind == IntentParseError.EMPTY_INPUT


class TestSerialization:
    """Test cases for to_yaml, parse_plan and parse_tasks."""

    def test_intent_to_yaml_omits_lifecycle(self, parser):
        """Test that intent YAML carries document fields only."""
        intent = parser.parse(VALID_YAML)
        intent.status = IntentStatus.COMPLETED

        data = yaml.safe_load(parser.to_yaml(intent))

        assert data["id"] == intent.id
        assert data["scope"] == ["AuthService", "Logger (new)"]
        assert "status" not in data
        assert "created_at" not in data

    def test_intent_yaml_reads_back(self, parser):
        """Test that serialised intents parse to the same document."""
        intent = parser.parse(VALID_YAML)

        restored = parser.parse(parser.to_yaml(intent))

        assert restored.to_dict() == intent.to_dict()

    def test_padded_values_read_back_unchanged(self, parser):
        """Test that leading and trailing spaces survive YAML serialisation."""
        intent = Intent(goal="  padded goal ", scope=["  ", "Api "])

        restored = parser.parse(parser.to_yaml(intent))

        assert restored.goal == "  padded goal "
        assert restored.scope == ["  ", "Api "]

    def test_plan_reads_back(self, parser):
        """Test that a generated plan parses back."""
        intent = parser.parse(VALID_YAML)
        plan = PlanGenerator().generate(intent)

        restored = parser.parse_plan(parser.to_yaml(plan))

        assert isinstance(restored, Plan)
        assert restored.id == plan.id
        assert restored.status == PlanStatus.DRAFT
        assert [s.action for s in restored.steps] == [s.action for s in plan.steps]
        assert restored.steps[1].details == plan.steps[1].details
        assert restored.steps[3].action == StepAction.TEST

    def test_tasks_read_back(self, parser):
        """Test that a generated breakdown parses back."""
        breakdown = TaskGenerator().generate(parser.parse(VALID_YAML))

        restored = parser.parse_tasks(parser.to_yaml(breakdown))

        assert [t.to_dict() for t in restored.tasks] == [t.to_dict() for t in breakdown.tasks]

    def test_parse_plan_rejects_missing_step_number(self, parser):
        """Test that malformed plans are invalid documents."""
        with pytest.raises(IntentParseError) as exc_info:
            parser.parse_plan("intent_id: x\nsteps:\n  - description: no number\n")

        assert exc_info.value.kind == IntentParseError.INVALID_DOCUMENT
