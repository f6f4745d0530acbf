"""
In-process event bus for background functions.

Functions register against an event name with ``create_function``. Sending an
event records one queued ``JobRun`` per registered function and hands each run
to a thread pool (or runs it inline when ``settings.jobs_run_inline`` is set).
"""
from __future__ import annotations

import importlib
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_session_local
from app.domain.jobs import runs

logger = logging.getLogger(__name__)

FUNCTION_MODULES = ("app.domain.jobs.functions",)


class UnknownEventError(Exception):
    """Raised when an event has no registered functions."""

    def __init__(self, event_name: str):
        self.event_name = event_name
        super().__init__(f"No functions registered for event '{event_name}'")


@dataclass
class JobContext:
    """What a running function sees: the event payload plus a step recorder."""
    event: str
    data: Dict[str, Any]
    run_id: str
    steps: List[Dict[str, Any]] = field(default_factory=list)

    def step(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one named unit of work and record its output and duration."""
        started = time.time()
        logger.info(f"[{self.run_id}] step '{name}' started")
        output = fn(*args, **kwargs)
        elapsed = round(time.time() - started, 3)
        recorded = output.to_dict() if hasattr(output, "to_dict") else output
        self.steps.append({"name": name, "output": recorded, "duration_seconds": elapsed})
        logger.info(f"[{self.run_id}] step '{name}' finished in {elapsed}s")
        return output


@dataclass(frozen=True)
class RegisteredFunction:
    id: str
    event: str
    handler: Callable[[JobContext], Any]


_registry: Dict[str, List[RegisteredFunction]] = {}
_registry_lock = threading.Lock()
_executor: Optional[ThreadPoolExecutor] = None
_functions_loaded = False


def create_function(id: str, event: str) -> Callable[[Callable[[JobContext], Any]], Callable[[JobContext], Any]]:
    """Decorator registering ``handler`` to run whenever ``event`` is sent."""

    def decorator(handler: Callable[[JobContext], Any]) -> Callable[[JobContext], Any]:
        with _registry_lock:
            functions = _registry.setdefault(event, [])
            functions[:] = [fn for fn in functions if fn.id != id]
            functions.append(RegisteredFunction(id=id, event=event, handler=handler))
        return handler

    return decorator


def registered_functions(event: str) -> List[RegisteredFunction]:
    _load_functions()
    with _registry_lock:
        return list(_registry.get(event, []))


def _load_functions() -> None:
    global _functions_loaded
    if _functions_loaded:
        return
    for module in FUNCTION_MODULES:
        importlib.import_module(module)
    _functions_loaded = True


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _registry_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=settings.jobs_max_workers,
                thread_name_prefix="job-runner",
            )
        return _executor


def shutdown(wait: bool = True) -> None:
    """Stop the worker pool (application shutdown)."""
    global _executor
    with _registry_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


def _execute_run(run_id: str, function: RegisteredFunction) -> None:
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        run = runs.get_job_run(db, run_id)
        if run is None:
            logger.error(f"Job run {run_id} vanished before it could start")
            return

        runs.mark_running(db, run)
        ctx = JobContext(event=run.event_name, data=dict(run.payload or {}), run_id=run.id)
        try:
            result = function.handler(ctx)
        except Exception as e:
            logger.error(f"Job run {run_id} ({function.id}) failed: {e}", exc_info=True)
            runs.complete_job_run(db, run, success=False, error_message=str(e))
            return

        runs.complete_job_run(db, run, success=True, result=result)
    finally:
        db.close()


def send_event(
    db: Session,
    name: str,
    data: Optional[Dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> List[runs.JobRun]:
    """
    Trigger every function registered for ``name``.

    Returns:
        The queued JobRun records (one per function)

    Raises:
        UnknownEventError: when nothing listens to the event
    """
    functions = registered_functions(name)
    if not functions:
        raise UnknownEventError(name)

    queued: List[runs.JobRun] = []
    for function in functions:
        run = runs.create_job_run(
            db,
            event_name=name,
            function_id=function.id,
            payload=data,
            user_id=user_id,
        )
        queued.append(run)
        logger.info(f"Queued job run {run.id} for function '{function.id}' on event '{name}'")

    for run in queued:
        function = next(fn for fn in functions if fn.id == run.function_id)
        if settings.jobs_run_inline:
            _execute_run(run.id, function)
        else:
            future: Future = _get_executor().submit(_execute_run, run.id, function)
            future.add_done_callback(_log_unhandled)

    if settings.jobs_run_inline:
        for run in queued:
            db.refresh(run)
    return queued


def _log_unhandled(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error(f"Job runner crashed: {exc}", exc_info=exc)
