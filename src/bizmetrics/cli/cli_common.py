#!/usr/bin/env python3
"""Common CLI utilities: JSON output, stable exit codes, and service wiring."""

from __future__ import annotations

import functools
import json
import traceback
import uuid
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any

import click

from ..config.settings import ConfigError, load_settings
from ..core.time import localize, parse_timestamp
from ..observability.loguru_config import configure_loguru, get_logger
from ..services.dashboard import DashboardService
from ..storage.store import InMemoryRecordStore, RecordStore, StorageError
from ..storage.supabase import SupabaseRecordStore

logger = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    USAGE_ERROR = 2  # Unknown period, source or malformed option value
    STORAGE_ERROR = 5  # Record store or fixture file unavailable
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


class CLIContext:
    """Context for CLI execution with JSON output and a trace ID."""

    def __init__(
        self,
        json_output: bool = False,
        verbose: bool = False,
        fixtures: Path | None = None,
        now: str | None = None,
        trace_id: str | None = None,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            verbose: Verbose output (DEBUG logs, tracebacks)
            fixtures: YAML fixture file used instead of the hosted backend
            now: Reference instant (ISO-8601) instead of the current time
            trace_id: Trace ID for correlation
        """
        self.json_output = json_output
        self.verbose = verbose
        self.fixtures = fixtures
        self.now_option = now
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"

    def output(
        self,
        data: Any,
        status: str = "success",
        error: str | None = None,
        meta: dict[str, Any] | None = None,
        text: str | None = None,
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error")
            error: Error message if status is error
            meta: Additional metadata
            text: Pre-rendered human-readable output
        """
        if self.json_output:
            # JSON mode: print only JSON, no logs
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
        elif status == "error":
            click.echo(f"Error: {error}", err=True)
        elif text is not None:
            click.echo(text)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        else:
            click.echo(data)

    def reference_time(self, service: DashboardService) -> datetime:
        """Instant dashboards are computed at.

        A naive ``--now`` is read as wall-clock time in the service timezone.

        Raises:
            ValueError: If ``--now`` is not ISO-8601
        """
        if not self.now_option:
            return service.now()
        now = parse_timestamp(self.now_option)
        if now.tzinfo is None:
            now = localize(now, service.tz)
        return now

    @contextmanager
    def open_service(self) -> Generator[DashboardService, None, None]:
        """Load settings, configure logging and yield a dashboard service.

        The record store is closed when the block exits.

        Raises:
            ConfigError: If settings are invalid or the backend is not configured
            StorageError: If the fixture file cannot be loaded
        """
        settings = load_settings()
        configure_loguru(
            level="DEBUG" if self.verbose else settings.log_level,
            log_dir=settings.log_dir,
            enable_console=not self.json_output,
        )

        store: RecordStore
        if self.fixtures is not None:
            store = InMemoryRecordStore.from_yaml(self.fixtures)
            logger.debug("Using fixture store", path=str(self.fixtures))
        else:
            url, key = settings.require_storage()
            store = SupabaseRecordStore(url, key, timeout=settings.request_timeout)

        try:
            yield DashboardService.from_settings(settings, store)
        finally:
            store.close()


def cli_command(func: Callable[..., int]) -> Callable[..., int]:
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --verbose: Verbose output
    - --fixtures: YAML fixture file instead of the hosted backend
    - --now: Reference instant
    - --trace-id: Trace ID for correlation
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @click.option(
        "--fixtures",
        type=click.Path(path_type=Path, dir_okay=False),
        help="Read collections from a YAML fixture file",
    )
    @click.option("--now", "now", type=str, help="Reference instant (ISO-8601, default: current time)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @functools.wraps(func)
    def wrapper(
        json_output: bool,
        verbose: bool,
        fixtures: Path | None,
        now: str | None,
        trace_id: str | None,
        *args: Any,
        **kwargs: Any,
    ) -> int:
        ctx = CLIContext(
            json_output=json_output,
            verbose=verbose,
            fixtures=fixtures,
            now=now,
            trace_id=trace_id,
        )

        # Inject context as first argument
        return func(ctx, *args, **kwargs)

    return wrapper


def exit_code_for(exc: Exception) -> ExitCode:
    """Map an exception to its stable exit code."""
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG_ERROR
    if isinstance(exc, StorageError):
        return ExitCode.STORAGE_ERROR
    if isinstance(exc, ValueError):
        return ExitCode.USAGE_ERROR
    return ExitCode.UNKNOWN_ERROR


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str) -> int:
    """Report an error and return the matching exit code."""
    exit_code = exit_code_for(exc)
    logger.debug("Command failed", command=cmd, error_type=type(exc).__name__, exit_code=int(exit_code))

    ctx.output(None, status="error", error=str(exc), meta={"exit_code": int(exit_code), "command": cmd})

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        click.echo(traceback.format_exc(), err=True)

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext,
    data: Any,
    cmd: str,
    meta: dict[str, Any] | None = None,
    text: str | None = None,
) -> int:
    """Output a result and return the success code."""
    ctx.output(data, status="success", meta={"command": cmd, **(meta or {})}, text=text)
    return int(ExitCode.SUCCESS)
