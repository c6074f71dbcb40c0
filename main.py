#!/usr/bin/env python3
"""
Market Digest - Main Entry Point

Builds and emails a personalized market news digest for every subscriber.

Usage:
    # Run (or resume) today's digest
    python main.py run

    # Render everything but keep emails in memory
    python main.py run --dry-run

    # Start the daily scheduler
    python main.py schedule

    # Inspect aggregation and search
    python main.py news --symbols AAPL,MSFT
    python main.py search tesla

    # Send a welcome email
    python main.py welcome --email new@example.com --name Ada
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import ConfigurationError, Settings, get_settings
from data.finnhub_client import FinnhubClient
from data.stores import JsonUserStore
from delivery.dispatcher import Dispatcher
from delivery.transport import EmailTransport, RecordingTransport, SmtpTransport
from news.aggregator import NewsAggregator
from synthesis.digest_summarizer import DigestSummarizer
from utils.logging import setup_logging, get_logger
from workflow.checkpoint import CheckpointStore
from workflow.models import DigestRunReport
from workflow.orchestrator import DigestOrchestrator, default_run_id
from workflow.welcome import NewUserEvent, WelcomeWorkflow


console = Console()
logger = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Personalized market news digest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-essential output")

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run or resume one digest run")
    run.add_argument("--run-id", type=str, help="Run identifier (default: digest-YYYYMMDD)")
    run.add_argument("--fresh", action="store_true", help="Discard checkpoints for this run id first")
    run.add_argument("--dry-run", action="store_true", help="Do not send email, keep it in memory")

    schedule = sub.add_parser("schedule", help="Run the digest daily at the configured hour")
    schedule.add_argument("--dry-run", action="store_true", help="Do not send email, keep it in memory")

    news = sub.add_parser("news", help="Print the articles a watchlist would get")
    news.add_argument("--symbols", "-s", type=str, default="", help="Comma-separated symbols (empty = general news)")

    search = sub.add_parser("search", help="Search symbols")
    search.add_argument("query", nargs="?", default="", help="Search text (empty = popular symbols)")

    welcome = sub.add_parser("welcome", help="Send a welcome email")
    welcome.add_argument("--email", required=True)
    welcome.add_argument("--name", required=True)
    welcome.add_argument("--country", default="")
    welcome.add_argument("--investment-goals", default="")
    welcome.add_argument("--risk-tolerance", default="")
    welcome.add_argument("--preferred-industry", default="")
    welcome.add_argument("--dry-run", action="store_true", help="Do not send email, keep it in memory")

    return parser.parse_args(argv)


def build_transport(settings: Settings, dry_run: bool) -> EmailTransport:
    return RecordingTransport() if dry_run else SmtpTransport(settings)


def build_orchestrator(settings: Settings, client: FinnhubClient, dry_run: bool) -> DigestOrchestrator:
    """Wire the digest workflow from settings."""
    store = JsonUserStore(settings.store_path)
    return DigestOrchestrator(
        subscribers=store,
        watchlists=store,
        aggregator=NewsAggregator(client, settings),
        summarizer=DigestSummarizer(settings),
        dispatcher=Dispatcher(build_transport(settings, dry_run), settings.digest_concurrency),
        checkpoints=CheckpointStore(settings.checkpoint_dir),
        settings=settings,
    )


def display_report(report: DigestRunReport) -> None:
    """Display a summary table of the run."""
    style = "green" if report.success else "red"
    table = Table(title=f"Digest run {report.run_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Status", f"[{style}]{report.status.value}[/{style}]")
    table.add_row("Users processed", str(report.users_processed))
    table.add_row("Emails sent", str(report.emails_sent))
    table.add_row("Emails failed", str(report.emails_failed))
    table.add_row("Degraded users", str(report.degraded_users))
    if report.resumed_steps:
        table.add_row("Resumed steps", ", ".join(report.resumed_steps))
    console.print(table)
    console.print(f"[dim]{report.message}[/dim]")


async def run_digest(args: argparse.Namespace, settings: Settings) -> int:
    async with FinnhubClient(settings=settings) as client:
        orchestrator = build_orchestrator(settings, client, args.dry_run)
        run_id = args.run_id or default_run_id()
        if args.fresh:
            orchestrator.checkpoints.clear(run_id)

        start_time = datetime.now()
        report = await orchestrator.run(run_id=run_id)
        duration = (datetime.now() - start_time).total_seconds()

    display_report(report)
    console.print(f"Execution time: {duration:.1f}s")
    return 0 if report.success else 1


async def run_schedule(args: argparse.Namespace, settings: Settings) -> int:
    from workflow.scheduler import DigestScheduler

    async with FinnhubClient(settings=settings) as client:
        scheduler = DigestScheduler(build_orchestrator(settings, client, args.dry_run), settings)
        console.print(Panel(
            f"[bold blue]Market Digest scheduler[/bold blue]\n\n"
            f"Daily at {settings.digest_cron_hour:02d}:{settings.digest_cron_minute:02d} {settings.digest_timezone}",
            expand=False,
        ))
        await scheduler.serve_forever()
    return 0


async def run_news(args: argparse.Namespace, settings: Settings) -> int:
    symbols = [s for s in args.symbols.split(",") if s.strip()]
    async with FinnhubClient(settings=settings) as client:
        result = await NewsAggregator(client, settings).aggregate(symbols)

    table = Table(title="General news" if not symbols else f"News for {', '.join(symbols).upper()}")
    table.add_column("Published", style="dim", width=16)
    table.add_column("Symbol", style="cyan", width=6)
    table.add_column("Source", width=14)
    table.add_column("Headline")
    for article in result.articles:
        table.add_row(
            article.published_at.strftime("%Y-%m-%d %H:%M"),
            article.symbol or "",
            article.source,
            article.headline,
        )
    console.print(table)
    if result.degraded:
        console.print("[yellow]Provider unavailable; result is degraded.[/yellow]")
    return 0


async def run_search(args: argparse.Namespace, settings: Settings) -> int:
    async with FinnhubClient(settings=settings) as client:
        results = await NewsAggregator(client, settings).search_symbols(args.query)

    table = Table(title=f'Search "{args.query}"' if args.query else "Popular symbols")
    table.add_column("Symbol", style="cyan", width=8)
    table.add_column("Name")
    table.add_column("Exchange", width=12)
    table.add_column("Type", width=14)
    for row in results:
        table.add_row(row.symbol, row.name, row.exchange, row.type)
    console.print(table)
    return 0


async def run_welcome(args: argparse.Namespace, settings: Settings) -> int:
    workflow = WelcomeWorkflow(
        summarizer=DigestSummarizer(settings),
        dispatcher=Dispatcher(build_transport(settings, args.dry_run)),
        checkpoints=CheckpointStore(settings.checkpoint_dir),
    )
    result = await workflow.run(NewUserEvent(
        email=args.email,
        name=args.name,
        country=args.country,
        investment_goals=args.investment_goals,
        risk_tolerance=args.risk_tolerance,
        preferred_industry=args.preferred_industry,
    ))
    if result.sent:
        console.print(f"[green]Welcome email sent to {result.email}[/green]")
        return 0
    console.print(f"[red]Welcome email to {result.email} failed: {result.error}[/red]")
    return 1


COMMANDS = {
    "run": run_digest,
    "schedule": run_schedule,
    "news": run_news,
    "search": run_search,
    "welcome": run_welcome,
}


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    settings = get_settings()

    try:
        return await COMMANDS[args.command](args, settings)

    except ConfigurationError as e:
        console.print(f"\n[red]Configuration error: {e}[/red]")
        return 2

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130

    except Exception as e:
        console.print(f"\n[red]Error: {e}[/red]")
        logger.exception("Command failed")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.verbose else ("WARNING" if args.quiet else "INFO")
    setup_logging(level=log_level)

    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
