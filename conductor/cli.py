#!/usr/bin/env python3
"""
Conductor CLI - HTTP and WebSocket Probe Tool

Usage:
    conductor probe <url> [OPTIONS]
    conductor validate <config.yaml>
    conductor info
    conductor --version
"""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .assertions import Expect
from .config import Config, load_config
from .engine import CompactPrinter, DebugPrinter, FollowMode, RedirectPolicy
from .reporting import (
    AssertionLog,
    CollectingReporter,
    DefaultAssertionHandler,
    RecordingHandler,
)

app = typer.Typer(
    name="conductor",
    help="🎼 Conductor - fluent HTTP and WebSocket assertions",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"🎼 Conductor v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level",
        help="Python logging level for conductor internals"
    ),
):
    """
    🎼 Conductor - fluent HTTP and WebSocket assertions

    Probe endpoints from the command line and validate config files.
    """
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


def parse_header(raw: str) -> tuple[str, str]:
    """Split a 'Name: value' header argument."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Header must look like 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


async def probe_async(
    config: Config,
    url: str,
    method: str,
    headers: list[tuple[str, str]],
    data: str | None,
    expect_status: int | None,
) -> AssertionLog:
    """Send one request through the engine and return the recorded log."""
    async with Expect(config) as e:
        builder = e.request(method.upper(), url)
        for name, value in headers:
            builder.with_header(name, value)
        if data is not None:
            builder.with_text(data)

        resp = await builder.expect()
        if expect_status is not None:
            resp.status(expect_status)

    return config.handler.finish()


@app.command()
def probe(
    url: str = typer.Argument(..., help="Absolute URL, or a path joined onto the config base_url"),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method"),
    header: List[str] = typer.Option(
        [], "--header", "-H",
        help="Extra header as 'Name: value' (repeatable)"
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body as text"),
    expect_status: Optional[int] = typer.Option(
        None, "--expect-status", "-s",
        help="Fail unless the final status matches"
    ),
    max_redirects: Optional[int] = typer.Option(
        None, "--max-redirects",
        help="Maximum redirect hops (default from config, else 10)"
    ),
    follow: Optional[FollowMode] = typer.Option(
        None, "--follow",
        help="Which redirects to follow"
    ),
    printer: str = typer.Option(
        "compact", "--printer", "-p",
        help="Traffic printer: compact, debug or none"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="YAML config file",
        exists=True,
        readable=True,
    ),
    report: Optional[Path] = typer.Option(
        None, "--report", "-r",
        help="Save the assertion log as JSON to this path"
    ),
):
    """
    Send one request and check the response.

    Redirects are followed hop by hop according to the redirect policy;
    every hop is printed.
    """
    config = Config()
    if config_file is not None:
        loaded, validation = load_config(config_file)
        if not validation.is_valid:
            console.print(f"\n[red]❌ Invalid config:[/red]")
            console.print(str(validation))
            raise typer.Exit(code=1)
        config = loaded

    policy = config.redirect_policy or RedirectPolicy()
    if max_redirects is not None:
        policy = replace(policy, max_redirects=max_redirects)
    if follow is not None:
        policy = replace(policy, follow=follow)
    config.redirect_policy = policy

    if printer == "compact":
        config.printers = [CompactPrinter()]
    elif printer == "debug":
        config.printers = [DebugPrinter()]
    elif printer == "none":
        config.printers = []
    else:
        raise typer.BadParameter(f"Unknown printer {printer!r}; use compact, debug or none")

    reporter = CollectingReporter()
    config.reporters = [reporter]
    config.handler = RecordingHandler(DefaultAssertionHandler(reporters=[reporter]))

    headers = [parse_header(h) for h in header]
    log = asyncio.run(probe_async(config, url, method, headers, data, expect_status))

    for message in reporter.messages:
        console.print(message, style="red", highlight=False, markup=False)

    console.print("\n" + log.summary(), markup=False, highlight=False)

    if report is not None:
        config.handler.save_json(report)
        console.print(f"\n📁 Report saved: {report}")

    raise typer.Exit(code=1 if reporter.reported else 0)


@app.command()
def validate(
    config_file: Path = typer.Argument(
        ...,
        help="Path to the config YAML file",
        exists=True,
        readable=True,
    ),
):
    """
    Validate a config YAML file.

    Check the schema and report any errors without sending requests.
    """
    console.print(f"\n📄 Validating: {config_file}")

    config, validation = load_config(config_file)

    if not validation.is_valid:
        console.print(f"\n[red]❌ Validation failed:[/red]")
        console.print(str(validation))
        raise typer.Exit(code=1)

    console.print(f"\n[green]✅ Valid config[/green]")

    policy = config.redirect_policy
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("base_url", config.base_url or "-")
    table.add_row("test_name", config.test_name or "-")
    table.add_row("timeout_ms", str(config.timeout_ms))
    table.add_row("auth", config.auth.type.value if config.auth else "-")
    table.add_row("headers", ", ".join(config.headers) or "-")
    table.add_row("redirects.follow", policy.follow.value)
    table.add_row("redirects.max_redirects", "unbounded" if policy.max_redirects is None else str(policy.max_redirects))
    table.add_row("redirects.downgrade_post", str(policy.downgrade_post))
    table.add_row("redirects.drop_headers", ", ".join(sorted(policy.drop_headers)) or "-")
    table.add_row("websocket.read_timeout_ms", str(config.ws_read_timeout_ms or "-"))
    table.add_row("websocket.write_timeout_ms", str(config.ws_write_timeout_ms or "-"))
    table.add_row("printers", ", ".join(type(p).__name__ for p in config.printers) or "-")
    table.add_row("reporters", ", ".join(type(r).__name__ for r in config.reporters) or "-")

    console.print()
    console.print(table)
    raise typer.Exit(code=0)


@app.command()
def info():
    """
    Show information about Conductor.
    """
    console.print(f"""
🎼 [bold]Conductor[/bold] v{__version__}

Fluent HTTP and WebSocket assertions for async tests

[bold]Features:[/bold]
  • Chained assertions with sticky, bubbling failure state
  • Bounded, policy-driven redirect following
  • WebSocket sessions with read/write deadlines
  • Pluggable printers, formatters and reporters
  • Authentication support (Bearer, API Key, Basic)
  • JSON assertion logs

[bold]Quick Start:[/bold]
  conductor probe https://example.com --expect-status 200
  conductor validate conductor.yaml
""")


if __name__ == "__main__":
    app()
