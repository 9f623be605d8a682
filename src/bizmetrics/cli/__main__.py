#!/usr/bin/env python3
"""Main CLI module for bizmetrics."""

import sys

import click

from .dashboard_commands import (
    chart_command,
    dashboard_command,
    metrics_command,
    overview_command,
    status_command,
    top_command,
)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  bizmetrics overview                      # Headline numbers
  bizmetrics metrics sales --period week   # This week vs last week
  bizmetrics metrics invoices -p year      # Paid invoices this year
  bizmetrics chart --months 12             # Monthly revenue
  bizmetrics top technicians -n 3          # Best technicians by revenue
  bizmetrics status services               # Services per status
  bizmetrics dashboard --json              # Everything, as JSON

  # Offline, against a fixture file and a fixed instant
  bizmetrics metrics --fixtures data.yaml --now 2024-06-15T14:00:00
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="bizmetrics - period-bucketed business dashboard metrics",
    epilog=EPILOG,
)
def cli() -> None:
    """Root CLI command."""


cli.add_command(metrics_command, "metrics")
cli.add_command(overview_command, "overview")
cli.add_command(chart_command, "chart")
cli.add_command(top_command, "top")
cli.add_command(status_command, "status")
cli.add_command(dashboard_command, "dashboard")


def main(args: list[str] | None = None) -> int:
    """Main CLI entry point."""

    try:
        normalized_args = list(args) if args is not None else None
        result = cli.main(args=normalized_args, standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - executable module
    sys.exit(main())
