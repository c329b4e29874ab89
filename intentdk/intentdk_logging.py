"""Logging, timing and event hooks for IntentDK.

All loggers live under the ``intentdk`` namespace. Structured fields travel
as ``extra={"extra_fields": {...}}`` and become top-level keys in the JSON
log file written by ``setup_logging``.
"""

from __future__ import annotations

import json
import time
import logging as std_logging
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union


CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _fields(**fields) -> Dict[str, Dict[str, Any]]:
    return {"extra_fields": fields}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Configure the ``intentdk`` logger tree.

    Console output goes to stderr, which keeps the MCP stdio transport
    clean. When ``log_file`` is given, every record down to DEBUG is also
    written there as one JSON object per line.
    """
    root = std_logging.getLogger("intentdk")
    root.setLevel(log_level)
    root.handlers.clear()

    console = std_logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(std_logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    root.addHandler(console)

    if log_file:
        json_file = std_logging.FileHandler(log_file, encoding="utf-8")
        json_file.setLevel(std_logging.DEBUG)
        json_file.setFormatter(JsonFormatter())
        root.addHandler(json_file)

    root.info("IntentDK logging initialized")


class JsonFormatter(std_logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: std_logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(getattr(record, "extra_fields", {}))
        return json.dumps(entry, default=str)


# ----------------------------------------------------------------------
# Timing
# ----------------------------------------------------------------------


class PerformanceMonitor:
    """In-memory timing samples per metric name.

    Only the most recent ``max_samples`` samples are kept for each name, so
    a long-running server does not grow without bound.
    """

    def __init__(self, max_samples: int = 100):
        self.max_samples = max_samples
        self.metrics: Dict[str, List[Dict[str, Any]]] = {}
        self.logger = std_logging.getLogger("intentdk.performance")

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        sample = {"timestamp": _now(), "name": name, "value": value, "tags": tags or {}}
        samples = self.metrics.setdefault(name, [])
        samples.append(sample)
        del samples[:-self.max_samples]
        self.logger.debug(f"Metric recorded: {name}={value}", extra=_fields(**sample))

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        if name:
            return {name: list(self.metrics.get(name, []))}
        return {key: list(samples) for key, samples in self.metrics.items()}


performance_monitor = PerformanceMonitor()


@contextmanager
def _timed(operation: str, logger: std_logging.Logger, **extra_fields) -> Iterator[None]:
    """Time a block, log start and outcome, and sample ``{operation}_duration``."""
    start = time.perf_counter()
    logger.debug(f"Starting operation: {operation}", extra=_fields(operation=operation, status="started", **extra_fields))
    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start
        performance_monitor.record_metric(
            f"{operation}_duration", duration, {"status": "error", "error_type": type(e).__name__}
        )
        logger.error(
            f"Failed operation: {operation} after {duration:.3f}s - {e}",
            extra=_fields(
                operation=operation,
                status="failed",
                duration=duration,
                error_type=type(e).__name__,
                error_message=str(e),
                **extra_fields,
            ),
        )
        raise

    duration = time.perf_counter() - start
    performance_monitor.record_metric(f"{operation}_duration", duration, {"status": "success"})
    logger.debug(
        f"Completed operation: {operation} in {duration:.3f}s",
        extra=_fields(operation=operation, status="completed", duration=duration, **extra_fields),
    )


def log_performance(operation_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator timing every call of the wrapped function."""
    logger = std_logging.getLogger("intentdk.performance")

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with _timed(operation_name, logger):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def log_operation(operation_name: str, **extra_fields):
    """Context manager timing a block; ``extra_fields`` are attached to each record."""
    return _timed(operation_name, std_logging.getLogger("intentdk.operations"), **extra_fields)


# ----------------------------------------------------------------------
# Workflow events
# ----------------------------------------------------------------------


class ObservabilityHooks:
    """Named workflow events, logged and fanned out to registered callbacks."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger("intentdk.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Call every hook for ``event_type``; a failing hook is logged and skipped."""
        for hook in list(self.hooks.get(event_type, ())):
            try:
                hook(**data)
            except Exception as e:
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_workflow_event(self, event_type: str, intent_id: Optional[str] = None, **data) -> None:
        payload = {"timestamp": _now(), "intent_id": intent_id, **data}
        self.logger.info(f"Workflow event: {event_type}", extra=_fields(event_type=event_type, **payload))
        self.trigger_hooks(event_type, **payload)


observability_hooks = ObservabilityHooks()


def log_workflow_step(step_name: str, intent_id: Optional[str] = None, **extra_fields):
    """Emit ``workflow_step_<name>`` for a session transition."""
    observability_hooks.log_workflow_event(
        f"workflow_step_{step_name.lower()}",
        intent_id=intent_id,
        step_name=step_name,
        **extra_fields
    )


def log_artifact_event(event_type: str, artifact_type: str, intent_id: Optional[str] = None, **extra_fields):
    """Emit ``artifact_<event>`` for an intent, plan, tasks or checklist."""
    observability_hooks.log_workflow_event(
        f"artifact_{event_type.lower()}",
        intent_id=intent_id,
        artifact_type=artifact_type,
        **extra_fields
    )


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields):
    std_logging.getLogger("intentdk.errors").error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra=_fields(
            timestamp=_now(),
            error_type=type(error).__name__,
            error_message=str(error),
            context=context,
            **extra_fields,
        ),
    )


def log_intent_created(path: str, intent_id: Optional[str] = None, **extra_fields):
    """Intent files written from a template carry no id until they are parsed."""
    log_artifact_event("created", "intent", intent_id, path=path, **extra_fields)


def log_plan_generation(intent_id: str, step_count: int, **extra_fields):
    log_artifact_event("generated", "plan", intent_id, step_count=step_count, **extra_fields)


def log_task_generation(intent_id: str, task_count: int, **extra_fields):
    log_artifact_event("generated", "tasks", intent_id, task_count=task_count, **extra_fields)


def log_checklist_created(intent_id: str, item_count: int, **extra_fields):
    log_artifact_event("generated", "checklist", intent_id, item_count=item_count, **extra_fields)


def log_verification(intent_id: str, status: str, passed: int, total: int, **extra_fields):
    log_artifact_event("verified", "intent", intent_id, status=status, passed=passed, total=total, **extra_fields)
