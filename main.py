"""MCP server exposing IntentDK planning and verification tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from mcp.server.fastmcp import FastMCP

from intentdk import (
    Intent,
    IntentProcessor,
    IntentWorkflow,
    ReportFormat,
    TemplateType,
)
from intentdk.intentdk_logging import log_error_with_context, setup_logging
from intentdk.parser import IntentParseError
from intentdk.plan_generator import render_plan_markdown, render_plan_text
from intentdk.task_generator import render_tasks_checklist, render_tasks_markdown, render_tasks_yaml

mcp = FastMCP("intentdk")


PROJECT_ROOT_ENV = "INTENTDK_PROJECT_ROOT"
LOG_LEVEL_ENV = "INTENTDK_LOG_LEVEL"
LOG_FILE_ENV = "INTENTDK_LOG_FILE"


def _intent_dir_name() -> str:
    return os.getenv("INTENTDK_INTENT_DIR") or ".intent"


def _candidate_bases() -> List[Path]:
    cwd = Path.cwd().resolve()
    bases: List[Path] = [cwd]
    bases.extend(cwd.parents)
    return bases


def _locate_workspace_root() -> Optional[Path]:
    marker = _intent_dir_name()
    for base in _candidate_bases():
        if (base / marker).is_dir():
            return base
    return None


def _resolve_root(root: Optional[str], *, allow_cwd: bool = False) -> Path:
    if root:
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided root '{root}' does not exist.")
        return resolved

    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {PROJECT_ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    detected_root = _locate_workspace_root()
    if detected_root:
        return detected_root

    if allow_cwd:
        return Path.cwd().resolve()

    raise ValueError(
        "Unable to determine project root automatically. Provide the 'root' argument when calling the tool "
        f"or set the {PROJECT_ROOT_ENV} environment variable."
    )


def _processor(root: Optional[str], *, allow_cwd: bool = False) -> IntentProcessor:
    return IntentProcessor(_resolve_root(root, allow_cwd=allow_cwd))


def _load_intent(
    processor: IntentProcessor, name: Optional[str]
) -> Union[Tuple[Path, Intent], Dict[str, Any]]:
    """Find and parse an intent file, or return an error payload for the tool."""
    path = processor.find_intent_file(name)
    if path is None:
        target = f"'{name}'" if name else "any intent"
        return {
            "error": "No intent file found",
            "suggestion": f"Call new_intent first to create {target} under {processor.workspace.intent_dir}",
            "next_suggested_step": "new_intent",
        }

    parsed = processor.read_intent_file(path)
    if not parsed.is_success:
        return {
            "error": "Intent file is not valid",
            "intent_path": str(path),
            "error_kind": parsed.error_kind,
            "errors": parsed.errors,
            "suggestion": f"Edit {path.name} so it has a goal and at least one scope item",
            "next_suggested_step": "new_intent",
        }
    return path, parsed.value


@mcp.tool()
def init_project(root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 1: Create the `.intent/` directory that stores intent, plan and task files.
    Uses the current working directory when no root is given or detected."""

    processor = _processor(root, allow_cwd=True)
    intent_dir = processor.workspace.initialize()
    return {
        "root": str(processor.workspace.root),
        "intent_dir": str(intent_dir),
        "next_suggested_step": "new_intent",
        "workflow_tip": "Next: Create an intent file with new_intent, then fill in goal, scope and verification",
    }


@mcp.tool()
def new_intent(
    name: Optional[str] = None,
    template: str = "basic",
    hint: Optional[str] = None,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2: Create a new intent file from a template (basic, feature, bugfix, refactor, security).
    The hint fills in the goal. Edit the file before generating a plan."""

    processor = _processor(root, allow_cwd=True)
    template_type = TemplateType.from_name(template)
    path = processor.create_intent_file(name, template_type, hint)
    return {
        "intent_path": str(path),
        "template": template_type.value,
        "content": path.read_text(encoding="utf-8"),
        "next_suggested_step": "generate_plan",
        "workflow_tip": "Next: Edit the intent file, then call generate_plan or generate_tasks",
    }


@mcp.tool()
def list_intents(root: Optional[str] = None) -> Dict[str, Any]:
    """Enumerate intent files in the workspace, newest first, with plan/tasks availability."""

    processor = _processor(root)
    return {"intents": [info.to_dict() for info in processor.get_all_intents()]}


@mcp.resource("intentdk://intents")
def resource_intents() -> str:
    """Resource view exposing intent files for discovery."""

    try:
        processor = _processor(None)
    except ValueError:
        return f"No project root detected. Launch tools with a 'root' argument or set {PROJECT_ROOT_ENV}."

    intents = processor.get_all_intents()
    if not intents:
        return "No intent files have been created yet."

    lines = ["IntentDK Intents"]
    for info in intents:
        lines.append("")
        goal = info.intent.goal if info.intent else "(invalid intent)"
        lines.append(f"- {info.file_name}: {goal}")
        if info.has_plan:
            lines.append("  Plan: available")
        if info.has_tasks:
            lines.append("  Tasks: available")

    return "\n".join(lines)


@mcp.tool()
def get_template(template: str = "basic", hint: Optional[str] = None) -> Dict[str, str]:
    """Return starter YAML for an intent template without writing any file."""

    template_type = TemplateType.from_name(template)
    return {
        "template": template_type.value,
        "content": IntentProcessor.get_template(template_type, hint),
    }


@mcp.tool()
def generate_plan(
    name: Optional[str] = None,
    format: str = "markdown",
    root: Optional[str] = None,
    save: bool = True,
) -> Dict[str, Any]:
    """STEP 3: Generate an ordered implementation plan from an intent file.
    A name must match an existing intent file; without one, the most recently modified intent is used.
    Format is 'markdown' or 'text'; the plan is saved as YAML next to the intent when save is true."""

    processor = _processor(root)
    loaded = _load_intent(processor, name)
    if isinstance(loaded, dict):
        return loaded
    path, intent = loaded

    plan = processor.create_plan(intent)
    render = render_plan_text if format.lower() == "text" else render_plan_markdown
    content = render(plan, intent)

    response: Dict[str, Any] = {
        "intent_path": str(path),
        "plan": plan.to_dict(),
        "content": content,
        "next_suggested_step": "generate_tasks",
        "workflow_tip": "Next: Break the intent into dependency-ordered tasks with generate_tasks",
    }
    if save:
        plan_path = processor.workspace.create_plan_file(path, processor.to_yaml(plan))
        response["plan_path"] = str(plan_path)
    return response


@mcp.tool()
def generate_tasks(
    name: Optional[str] = None,
    format: str = "markdown",
    root: Optional[str] = None,
    save: bool = True,
) -> Dict[str, Any]:
    """STEP 4: Break an intent into dependency-linked tasks with acceptance criteria.
    Format is 'markdown', 'yaml' or 'checklist'; tasks are saved as YAML next to the intent when save is true."""

    processor = _processor(root)
    loaded = _load_intent(processor, name)
    if isinstance(loaded, dict):
        return loaded
    path, intent = loaded

    breakdown = processor.create_tasks(intent)
    renderers = {
        "yaml": render_tasks_yaml,
        "checklist": render_tasks_checklist,
    }
    content = renderers.get(format.lower(), render_tasks_markdown)(breakdown)

    response: Dict[str, Any] = {
        "intent_path": str(path),
        "tasks": breakdown.to_dict(),
        "content": content,
        "ready_tasks": [task.id for task in breakdown.get_ready_tasks()],
        "next_suggested_step": "get_checklist",
        "workflow_tip": "Next: Implement the tasks, then review the verification checklist with get_checklist",
    }
    if save:
        tasks_path = processor.workspace.create_tasks_file(path, render_tasks_yaml(breakdown))
        response["tasks_path"] = str(tasks_path)
    return response


@mcp.tool()
def get_checklist(name: Optional[str] = None, root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 5: List the verification criteria and constraints to confirm for an intent."""

    processor = _processor(root)
    loaded = _load_intent(processor, name)
    if isinstance(loaded, dict):
        return loaded
    path, intent = loaded

    checklist = processor.create_checklist(intent)
    return {
        "intent_path": str(path),
        "checklist": checklist.to_dict(),
        "next_suggested_step": "verify_intent",
        "workflow_tip": "Next: Report each criterion as passed, failed or skipped with verify_intent",
    }


@mcp.tool()
def verify_intent(
    name: Optional[str] = None,
    passed: Optional[List[str]] = None,
    failed: Optional[List[str]] = None,
    skipped: Optional[List[str]] = None,
    format: str = "markdown",
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 6 (FINAL): Record verification outcomes and evaluate them.
    Each entry in passed/failed/skipped is matched case-insensitively against checklist criteria;
    the first matching item is updated. The intent passes only when every item is passed."""

    processor = _processor(root)
    loaded = _load_intent(processor, name)
    if isinstance(loaded, dict):
        return loaded
    path, intent = loaded

    try:
        report_format = ReportFormat(format.lower())
    except ValueError:
        return {
            "error": f"Unknown report format '{format}'",
            "suggestion": "Use one of: text, markdown, json",
            "next_suggested_step": "verify_intent",
        }

    workflow: IntentWorkflow = processor.workflow(intent).create_checklist()
    for criterion in passed or []:
        workflow.mark_passed(criterion)
    for criterion in failed or []:
        workflow.mark_failed(criterion)
    for criterion in skipped or []:
        workflow.mark_skipped(criterion)

    try:
        plan = processor.read_plan_file(path)
    except IntentParseError as e:
        log_error_with_context(e, {"operation": "verify_intent", "intent_path": str(path)})
        plan = None
    workflow.plan = plan

    result = workflow.verify().verification_result
    response: Dict[str, Any] = {
        "intent_path": str(path),
        "result": result.to_dict(),
        "intent_status": intent.status.value,
        "report": workflow.get_verification_report(report_format),
    }
    if result.suggestions:
        response["next_suggested_step"] = "verify_intent"
        response["workflow_tip"] = "Address the failing criteria, then call verify_intent again"
    return response


@mcp.tool()
def get_workflow_guide() -> Dict[str, Any]:
    """Get guidance on the recommended IntentDK workflow."""
    return {
        "workflow_overview": "Intent-driven development workflow in recommended order",
        "steps": [
            {
                "step": 1,
                "tool": "init_project",
                "description": "Create the intent directory in the project root",
                "purpose": "Give intent, plan and task files a home",
            },
            {
                "step": 2,
                "tool": "new_intent",
                "description": "Create an intent file from a template and edit it",
                "purpose": "Describe goal, scope, constraints and verification criteria",
            },
            {
                "step": 3,
                "tool": "generate_plan",
                "description": "Expand the intent into an ordered implementation plan",
                "purpose": "Get analysis, per-target changes, verification and review steps",
            },
            {
                "step": 4,
                "tool": "generate_tasks",
                "description": "Break the intent into dependency-linked tasks",
                "purpose": "Know which tasks are ready and what each must satisfy",
            },
            {
                "step": 5,
                "tool": "get_checklist",
                "description": "Review the verification checklist",
                "purpose": "See every criterion and constraint that must be confirmed",
            },
            {
                "step": 6,
                "tool": "verify_intent",
                "description": "Record pass/fail outcomes and evaluate them",
                "purpose": "Produce a verification report and final intent status",
            },
        ],
        "tips": [
            "Every intent needs a goal and at least one scope item",
            "Mark scope items that do not exist yet with '(new)'",
            "Use distinctive wording in verification criteria; outcomes match the first criterion containing the text",
            "Skipped criteria do not count as passed",
        ],
    }


if __name__ == "__main__":
    log_file = os.getenv(LOG_FILE_ENV)
    setup_logging(os.getenv(LOG_LEVEL_ENV, "INFO").upper(), Path(log_file) if log_file else None)
    mcp.run(transport="stdio")
