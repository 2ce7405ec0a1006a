"""CLI entry point for the POWR end-to-end suite."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

import click
import pytest
from rich.console import Console
from rich.table import Table

from src.auth.global_setup import run_global_setup
from src.errors import AuthenticationError
from src.models.config import LogLevel, SuiteConfig
from src.utils.log_setup import setup_logging

console = Console()
logger = logging.getLogger(__name__)

E2E_DIR = Path(__file__).resolve().parent.parent / "e2e"
DEFAULT_JUNIT_PATH = "test-results/junit.xml"
UI_SLOW_MO_MS = 250


def _load_config(log_level: Optional[str]) -> SuiteConfig:
    config = SuiteConfig.from_env()
    if log_level:
        config = config.model_copy(update={"log_level": LogLevel(log_level)})
    return config


def build_pytest_args(
    project: str,
    headed: bool,
    slow_mo: int,
    junit: str,
    keyword: Optional[str],
    extra: tuple[str, ...],
) -> list[str]:
    """Translate run options into a pytest invocation over the e2e suite."""
    args = [
        str(E2E_DIR),
        "-p", "no:cacheprovider",
        f"--e2e-browser={project}",
        f"--junitxml={junit}",
        "-m", "live",
    ]
    if headed:
        args.append("--e2e-headed")
    if slow_mo:
        args.append(f"--e2e-slow-mo={slow_mo}")
    if keyword:
        args += ["-k", keyword]
    args += list(extra)
    return args


@click.group()
@click.option(
    "--log-level", "-l",
    type=click.Choice([level.value for level in LogLevel]),
    default=None,
    help="Override LOG_LEVEL from the environment",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """POWR pricing & Form Builder end-to-end suite"""
    config = _load_config(log_level)
    setup_logging(config.log_level, console=console)
    ctx.obj = config


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option("--project", "-p", type=click.Choice(["chromium", "firefox", "webkit"]), default="chromium",
              help="Browser project to run")
@click.option("--headed", is_flag=True, help="Show the browser while tests run")
@click.option("--ui", is_flag=True, help="Interactive mode: headed, slowed down, Playwright inspector")
@click.option("--debug", is_flag=True, help="Debug mode: open the Playwright inspector (PWDEBUG=1)")
@click.option("--junit", default=DEFAULT_JUNIT_PATH, help="Where to write the JUnit XML report")
@click.option("--keyword", "-k", default=None, help="Only run tests matching this expression")
@click.argument("pytest_args", nargs=-1, type=click.UNPROCESSED)
def run(project: str, headed: bool, ui: bool, debug: bool, junit: str,
        keyword: Optional[str], pytest_args: tuple[str, ...]) -> None:
    """Run the e2e suite (global setup runs first, one worker)."""
    if debug or ui:
        os.environ["PWDEBUG"] = "1"
        headed = True
    slow_mo = UI_SLOW_MO_MS if ui else 0

    args = build_pytest_args(project, headed, slow_mo, junit, keyword, pytest_args)
    logger.info("Running: pytest %s", " ".join(args))
    sys.exit(int(pytest.main(args)))


@cli.command()
@click.pass_obj
def setup(config: SuiteConfig) -> None:
    """Run global setup only: verify the stored session or log in fresh."""
    try:
        result = asyncio.run(run_global_setup(config))
    except AuthenticationError as e:
        console.print(f"[red]Authentication failed:[/red] {e}")
        sys.exit(1)

    how = "reused stored session" if result.reused_session else "fresh login"
    console.print(f"[green]Session ready[/green] ({how}) -> [blue]{config.auth_file}[/blue]")


@cli.command("check-env")
@click.pass_obj
def check_env(config: SuiteConfig) -> None:
    """Show the configuration the suite would run with."""
    table = Table(title="Suite Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Base URL", config.base_url)
    table.add_row("USER_EMAIL", config.credentials.masked_email())
    table.add_row("USER_PASSWORD", "set" if config.credentials.password else "[red]missing[/red]")
    table.add_row("Log level", config.log_level.value)
    table.add_row("Screenshot mode", config.screenshot_mode.value)
    table.add_row("Global setup headless", str(config.global_setup_headless))
    table.add_row("CAPTCHA wait", f"{config.captcha_wait_timeout_ms}ms")
    table.add_row("Debug mode", str(config.debug_mode))
    table.add_row("Auth file", f"{config.auth_file} ({'present' if config.auth_file.exists() else 'absent'})")
    console.print(table)

    if not config.has_credentials:
        console.print("[red]USER_EMAIL and USER_PASSWORD must be set (e.g. in .env)[/red]")
        sys.exit(1)


def summarize_junit(path: Path) -> dict:
    """Collect totals and per-test outcomes from a JUnit XML report."""
    root = ET.parse(path).getroot()
    suites = [root] if root.tag == "testsuite" else list(root.iter("testsuite"))
    summary = {"total": 0, "passed": 0, "failed": 0, "skipped": 0, "errors": 0, "cases": []}
    for suite in suites:
        for case in suite.iter("testcase"):
            outcome = "passed"
            if case.find("failure") is not None:
                outcome = "failed"
            elif case.find("error") is not None:
                outcome = "errors"
            elif case.find("skipped") is not None:
                outcome = "skipped"
            summary["total"] += 1
            summary[outcome] += 1
            summary["cases"].append({
                "name": f"{case.get('classname', '')}::{case.get('name', '')}",
                "outcome": outcome,
                "time": float(case.get("time") or 0.0),
            })
    return summary


@cli.command()
@click.option("--junit", default=DEFAULT_JUNIT_PATH, help="JUnit XML report to display")
def report(junit: str) -> None:
    """Show the results of the last run."""
    path = Path(junit)
    if not path.exists():
        console.print(f"[yellow]No report found at {path}. Run 'powr-e2e run' first.[/yellow]")
        sys.exit(1)

    summary = summarize_junit(path)
    styles = {"passed": "green", "failed": "red", "errors": "red", "skipped": "yellow"}

    table = Table(title="Results Summary")
    table.add_column("Test", style="bold")
    table.add_column("Outcome")
    table.add_column("Duration")
    for case in summary["cases"]:
        style = styles[case["outcome"]]
        table.add_row(case["name"], f"[{style}]{case['outcome']}[/{style}]", f"{case['time']:.1f}s")
    console.print(table)
    console.print(
        f"Total {summary['total']}: [green]{summary['passed']} passed[/green], "
        f"[red]{summary['failed']} failed[/red], [red]{summary['errors']} errors[/red], "
        f"[yellow]{summary['skipped']} skipped[/yellow]"
    )


if __name__ == "__main__":
    cli()
