"""Loguru configuration with timing helpers.

Provides:
- Console logging with colored output
- Optional structured JSONL log file
- Component-bound loggers
- A context manager that logs START/END with precise durations
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "configure_loguru",
    "get_logger",
    "timing_context",
]


def configure_loguru(
    *,
    level: str = "INFO",
    log_dir: Path | None = None,
    rotation: str = "100 MB",
    retention: str = "10 days",
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_dir
        Directory for the JSONL log file; no file sink when None
    rotation
        Log rotation policy (e.g., "100 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days", "1 week")
    enable_console
        Enable console output on stderr

    Example
    -------
    >>> configure_loguru(level="DEBUG", log_dir=Path("logs"))
    """
    # Remove default handler
    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
            filter=_ensure_component,
        )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "bizmetrics.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=True,
            backtrace=True,
            diagnose=False,
        )

    logger.bind(component="bizmetrics").debug(
        "Loguru configured", log_dir=str(log_dir) if log_dir else None, level=level
    )


def _ensure_component(record: dict[str, Any]) -> bool:
    record["extra"].setdefault("component", "bizmetrics")
    return True


def get_logger(component: str = "bizmetrics") -> Any:
    """Get logger instance bound to a component.

    Parameters
    ----------
    component
        Component name (records, rollups, storage, dashboard, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "bizmetrics",
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Context manager timing an operation.

    Yields a dict that the caller may update; its extra keys are logged
    with the END entry.

    Example
    -------
    >>> with timing_context("dashboard_load", component="dashboard") as ctx:
    ...     rows = store.fetch("sales")
    ...     ctx["rows"] = len(rows)
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = dict(metadata)
    bound = logger.bind(component=component, timing=True, operation=operation)

    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ns = time.perf_counter_ns() - start_ns
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ns / 1_000_000,
            **context,
        )
