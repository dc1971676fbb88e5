"""
Follow-Through Tracer

Step-by-step execution tracing for the write, report and migration
pipelines. Enabled with FOLLOW_THROUGH=true; every helper is a no-op
otherwise.
"""
import inspect
import functools
import logging
from typing import Any, Callable
from datetime import datetime

from .config import settings

# Dedicated logger so traces can be routed apart from application logs
tracer = logging.getLogger("timeledger.followthrough")


def _preview(data: Any, max_len: int = 60) -> str:
    """Short single-line preview of a value."""
    if data is None:
        return "<None>"
    text = str(data).replace("\n", " ")
    if len(text) > max_len:
        return f"{text[:max_len]}..."
    return text


def _emit(marker: str, step: str, module: str, detail: str = "") -> None:
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{timestamp}] {marker} [{module}] {step}"
    if detail:
        line = f"{line}: {detail}"
    tracer.info(line)


def trace_input(module: str, input_name: str, value: Any):
    """Log a value entering a module."""
    if settings.follow_through:
        _emit("->", f"INPUT {input_name}", module, _preview(value))


def trace_step(module: str, description: str):
    """Log a processing step."""
    if settings.follow_through:
        _emit("*", "STEP", module, description)


def trace_result(module: str, function: str, success: bool, result_preview: Any = None):
    """Log how a call ended."""
    if not settings.follow_through:
        return
    detail = f"{function}() {'OK' if success else 'FAILED'}"
    if result_preview is not None:
        detail += f" => {_preview(result_preview)}"
    _emit("<-", "RESULT", module, detail)


def trace_output(module: str, output_name: str, value: Any):
    """Log a value leaving a module."""
    if settings.follow_through:
        _emit("<-", f"OUTPUT {output_name}", module, _preview(value))


def trace_section(title: str):
    """Log a divider for a major pipeline stage."""
    if not settings.follow_through:
        return
    bar = "-" * 40
    tracer.info(bar)
    tracer.info(f"  {title.upper()}")
    tracer.info(bar)


def traced(module: str):
    """
    Decorator tracing entry and exit of a coroutine.

    Usage:
        @traced("engine.migrator")
        async def reconcile(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError("traced() only wraps coroutine functions")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.follow_through:
                return await func(*args, **kwargs)

            _emit(">", "CALL", module, f"{func.__name__}()")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                trace_result(module, func.__name__, False, str(e))
                raise
            trace_result(module, func.__name__, True, result)
            return result

        return wrapper

    return decorator


def setup_follow_through_logging():
    """Attach a plain console handler to the trace logger."""
    if not settings.follow_through:
        return
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(message)s"))

    tracer.addHandler(handler)
    tracer.setLevel(logging.INFO)
    tracer.propagate = False

    tracer.info("=" * 50)
    tracer.info("  FOLLOW-THROUGH MODE ENABLED")
    tracer.info("=" * 50)
