"""Intent file workspace.

Intent documents live as YAML files in a project, by default under a
``.intent/`` directory. Generated plans and task breakdowns are written
next to their intent file with matching base names::

    .intent/add-logging.intent.yaml
    .intent/add-logging.plan.yaml
    .intent/add-logging.tasks.yaml
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .intentdk_logging import (
    log_error_with_context,
    log_intent_created,
    log_operation,
    log_performance,
    observability_hooks,
)
from .models import Intent, Plan, TaskBreakdown
from .parser import IntentParser, ParseResult
from .templates import DEFAULT_FILE_NAME, TemplateType, get_template

logger = logging.getLogger("intentdk.workspace")


INTENT_EXTENSION = ".intent.yaml"
PLAN_EXTENSION = ".plan.yaml"
TASKS_EXTENSION = ".tasks.yaml"

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(slots=True)
class IntentFileInfo:
    """Summary of one intent file found in a workspace."""

    path: Path
    file_name: str
    intent: Optional[Intent]
    has_plan: bool
    has_tasks: bool
    last_modified: datetime
    errors: List[str]

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "file_name": self.file_name,
            "goal": self.intent.goal if self.intent else None,
            "intent_id": self.intent.id if self.intent else None,
            "valid": self.intent is not None,
            "errors": list(self.errors),
            "has_plan": self.has_plan,
            "has_tasks": self.has_tasks,
            "last_modified": self.last_modified.isoformat(),
        }


class IntentWorkspace:
    """Manage intent, plan and task files within a project."""

    INTENT_DIR_ENV = "INTENTDK_INTENT_DIR"
    DEFAULT_INTENT_DIR = ".intent"

    def __init__(self, root: Path | str, parser: Optional[IntentParser] = None):
        self.root = Path(root).resolve()
        self.intent_dir = self.root / (os.getenv(self.INTENT_DIR_ENV) or self.DEFAULT_INTENT_DIR)
        self.parser = parser or IntentParser()

    def initialize(self) -> Path:
        """Create the intent directory if it does not exist yet."""
        try:
            self.intent_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log_error_with_context(e, {"operation": "workspace_init", "root": str(self.root)})
            raise RuntimeError(f"Could not initialize intent directory at {self.intent_dir}: {e}") from e

        logger.info(f"Intent workspace initialized at {self.intent_dir}")
        observability_hooks.log_workflow_event("workspace_initialized", root=str(self.root))
        return self.intent_dir

    # ------------------------------------------------------------------
    # Intent files
    # ------------------------------------------------------------------

    @log_performance("create_intent_file")
    def create_intent_file(
        self,
        name: Optional[str] = None,
        template: TemplateType | str = TemplateType.BASIC,
        hint: Optional[str] = None,
        directory: Path | str | None = None,
    ) -> Path:
        """Write a new intent file from a template and return its path.

        Files go to the intent directory unless ``directory`` is given.
        An existing file with the same name is overwritten.
        """
        target_dir = Path(directory) if directory is not None else self.intent_dir
        path = target_dir / self.file_name_for(name)
        content = get_template(template, hint)

        with log_operation("write_intent_file", path=str(path)):
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        template_type = template if isinstance(template, TemplateType) else TemplateType.from_name(template)
        log_intent_created(str(path), template=template_type.value)
        return path

    @staticmethod
    def file_name_for(name: Optional[str]) -> str:
        """Sanitised file name for ``name``, or a timestamped default."""
        if name:
            return f"{_INVALID_FILENAME_CHARS.sub('_', name)}{INTENT_EXTENSION}"
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        return f"intent-{timestamp}{INTENT_EXTENSION}"

    def read_intent(self, path: Path | str) -> ParseResult[Intent]:
        """Read, parse and validate an intent file."""
        path = Path(path)
        if not path.is_file():
            return ParseResult.failure([f"Intent file not found: {path}"], "not_found")
        return self.parser.parse_and_validate(path.read_text(encoding="utf-8"))

    @staticmethod
    def find_latest_intent_file(directory: Path | str) -> Optional[Path]:
        """Most recently modified ``*.intent.yaml`` file in ``directory``."""
        directory = Path(directory)
        if not directory.is_dir():
            return None
        candidates = [p for p in directory.glob(f"*{INTENT_EXTENSION}") if p.is_file()]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)

    def find_intent_file(self, name: Optional[str] = None) -> Optional[Path]:
        """Locate an intent file.

        With a ``name``, only ``{name}.intent.yaml`` in the intent directory
        or the project root matches; ``None`` when neither exists. Without
        one, the newest intent file in the intent directory, then the
        project root, then ``intent.yaml`` in the project root.
        """
        if name:
            for search_dir in (self.intent_dir, self.root):
                named = search_dir / f"{name}{INTENT_EXTENSION}"
                if named.is_file():
                    return named
            return None

        for search_dir in (self.intent_dir, self.root):
            latest = self.find_latest_intent_file(search_dir)
            if latest is not None:
                return latest

        root_intent = self.root / DEFAULT_FILE_NAME
        if root_intent.is_file():
            return root_intent
        return None

    def get_all_intents(self) -> List[IntentFileInfo]:
        """Describe every intent file in the workspace, newest first."""
        results: List[IntentFileInfo] = []
        seen = set()
        for search_dir in (self.intent_dir, self.root):
            if not search_dir.is_dir():
                continue
            for path in search_dir.glob(f"*{INTENT_EXTENSION}"):
                if not path.is_file() or path in seen:
                    continue
                seen.add(path)
                parsed = self.read_intent(path)
                results.append(IntentFileInfo(
                    path=path,
                    file_name=path.name,
                    intent=parsed.value if parsed.is_success else None,
                    has_plan=self.associated_file_path(path, PLAN_EXTENSION).is_file(),
                    has_tasks=self.associated_file_path(path, TASKS_EXTENSION).is_file(),
                    last_modified=datetime.fromtimestamp(path.stat().st_mtime),
                    errors=parsed.errors,
                ))

        results.sort(key=lambda info: info.last_modified, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Plan and task files
    # ------------------------------------------------------------------

    @staticmethod
    def associated_file_path(intent_path: Path | str, extension: str) -> Path:
        """Path of the plan or tasks file that belongs to an intent file."""
        intent_path = Path(intent_path)
        base_name = intent_path.name.replace(INTENT_EXTENSION, "").replace(".yaml", "")
        return intent_path.parent / f"{base_name}{extension}"

    def create_plan_file(self, intent_path: Path | str, content: str) -> Path:
        return self._write_associated(intent_path, PLAN_EXTENSION, content)

    def create_tasks_file(self, intent_path: Path | str, content: str) -> Path:
        return self._write_associated(intent_path, TASKS_EXTENSION, content)

    def read_plan(self, intent_path: Path | str) -> Optional[Plan]:
        """Parse the plan file next to ``intent_path``; ``None`` if there is none.

        Raises:
            IntentParseError: if the plan file is malformed.
        """
        path = self.associated_file_path(intent_path, PLAN_EXTENSION)
        if not path.is_file():
            return None
        return self.parser.parse_plan(path.read_text(encoding="utf-8"))

    def read_tasks(self, intent_path: Path | str) -> Optional[TaskBreakdown]:
        """Parse the tasks file next to ``intent_path``; ``None`` if there is none.

        Raises:
            IntentParseError: if the tasks file is malformed.
        """
        path = self.associated_file_path(intent_path, TASKS_EXTENSION)
        if not path.is_file():
            return None
        return self.parser.parse_tasks(path.read_text(encoding="utf-8"))

    def _write_associated(self, intent_path: Path | str, extension: str, content: str) -> Path:
        path = self.associated_file_path(intent_path, extension)
        with log_operation("write_artifact", path=str(path)):
            path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {path}")
        return path


__all__ = [
    "INTENT_EXTENSION",
    "PLAN_EXTENSION",
    "TASKS_EXTENSION",
    "IntentFileInfo",
    "IntentWorkspace",
]
