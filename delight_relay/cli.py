"""
External Delights - Command Line

Usage:
    delights serve                # intake app on HOST:PORT
    delights serve-recorder       # recorder app on HOST:RECORDER_PORT
    delights test-slack           # post a test message to SLACK_WEBHOOK_URL
    delights show-config [--json] # print effective configuration (redacted)

Exit Codes:
    0 - Success
    1 - Slack test message was not delivered
"""

from __future__ import annotations

import asyncio
import json

import click

from .core.config import configure_logging, describe_settings, get_settings
from .services.slack_service import SlackService


@click.group()
def cli() -> None:
    """External Delights intake relay."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default: PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the intake service."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "delight_relay.main:create_app",
        factory=True,
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command("serve-recorder")
@click.option("--host", default=None, help="Bind address (default: HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default: RECORDER_PORT)")
def serve_recorder(host: str | None, port: int | None) -> None:
    """Run the reference recorder (sheet append + Slack)."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "delight_relay.main:create_recorder_app",
        factory=True,
        host=host or settings.HOST,
        port=port or settings.RECORDER_PORT,
        log_level=settings.log_level.lower(),
    )


@cli.command("test-slack")
def test_slack() -> None:
    """Send a test notification to verify the Slack integration."""
    settings = get_settings()

    async def _send():
        async with SlackService(settings.slack_webhook_url, settings.SLACK_BUDGET_NOTE) as slack:
            return await slack.send_test()

    result = asyncio.run(_send())
    if result.delivered:
        click.echo(click.style("Test notification sent to Slack", fg="green"))
        return

    click.echo(click.style(f"ERROR: {result.error}", fg="red"), err=True)
    raise SystemExit(1)


@cli.command("show-config")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def show_config(output_json: bool) -> None:
    """Print the effective configuration with secrets masked."""
    effective = describe_settings(get_settings())
    if output_json:
        click.echo(json.dumps(effective, indent=2))
        return

    width = max(len(key) for key in effective)
    for key, value in effective.items():
        shown = "(not set)" if value is None else value
        click.echo(f"  {key.ljust(width)}  {shown}")


if __name__ == "__main__":
    cli()
