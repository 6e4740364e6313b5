#!/usr/bin/env python3
"""
Bulk archive check - extract domains from text and look them up in the Wayback Machine.

Usage:
    # Check domains listed (or mentioned) in a text file
    uv run python -m workflows.check_archives --input pasted.txt

    # Pipe anything in; results go to archive-check-<ms>.csv
    cat emails.txt | uv run python -m workflows.check_archives

    # Try the built-in samples with custom pacing
    uv run python -m workflows.check_archives --samples --concurrency 5 --batch-delay-ms 0

    # Skip CDX history, retry failures once more at the end
    uv run python -m workflows.check_archives --input list.txt --no-enrich --retry-errors

Ctrl-C stops scheduling new lookups; finished results are still exported.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from lib.domains.extractor import SAMPLE_INPUT
from lib.wayback.models import format_timestamp
from services.archive_check.config import ScanConfig, env_flag
from services.archive_check.export import export_filename
from services.archive_check.logging import capture_scan_logs
from services.archive_check.models import RunStats, ScanRecord, ScanState
from services.archive_check.service import Service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check domains against the Wayback Machine")

    # Input / output
    parser.add_argument("--input", type=str, help="Text file to extract domains from (default: stdin)")
    parser.add_argument("--samples", action="store_true", help="Use the built-in sample input")
    parser.add_argument("--output", type=str, help="CSV output path (default: archive-check-<ms>.csv)")
    parser.add_argument("--embedded", action="store_true", help="Also find domains buried inside longer text")

    # Scan options (unset values fall back to ARCHIVE_CHECK_* env vars, then defaults)
    parser.add_argument("--batch-size", type=int, help="Domains per batch (default: 25)")
    parser.add_argument("--concurrency", type=int, help="Concurrent lookups per batch (default: 10)")
    parser.add_argument("--attempts", type=int, help="Lookup attempts per domain (default: 2)")
    parser.add_argument("--retry-delay-ms", type=int, help="Delay between attempts (default: 2500)")
    parser.add_argument("--batch-delay-ms", type=int, help="Delay between batches (default: 1000)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--no-enrich", action="store_true", help="Skip CDX first/last/year history")
    parser.add_argument("--retry-errors", action="store_true", help="Re-run failed domains once after the scan")

    # Logging
    parser.add_argument("--log-dir", type=str, default=env_flag("LOG_DIR"), help="Save a compressed run log here")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    return parser


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Merge CLI flags over env/default configuration."""
    return ScanConfig.from_env(
        batch_size=args.batch_size,
        concurrency=args.concurrency,
        inter_batch_delay_ms=args.batch_delay_ms,
        request_timeout=args.timeout,
        enrich_on_archived=False if args.no_enrich else None,
        retry={"max_attempts": args.attempts, "backoff_ms": args.retry_delay_ms},
    )


def read_input(args: argparse.Namespace) -> str:
    if args.samples:
        return "\n".join(SAMPLE_INPUT)
    if args.input:
        return Path(args.input).read_text(encoding="utf-8", errors="ignore")
    if sys.stdin.isatty():
        logger.info("Paste text, then Ctrl-D:")
    return sys.stdin.read()


def log_progress(record: ScanRecord, stats: RunStats) -> None:
    logger.debug(f"[{stats.done_count}/{stats.total_count}] {record.domain}: {record.display_status}")


def log_summary(state: ScanState) -> None:
    logger.info("")
    logger.info("=" * 60)
    logger.info("ARCHIVE CHECK RESULTS")
    logger.info("=" * 60)

    for record in state.snapshot():
        line = f"  {record.domain:<40} {record.display_status:<10} {format_timestamp(record.closest_snapshot_timestamp)}"
        if record.years_span:
            line += f"  ({record.first_year}-{record.last_year}, {record.years_span})"
        if record.error_detail:
            line += f"  {record.error_detail}"
        logger.info(line)

    stats = state.stats
    archived = sum(1 for r in state.snapshot() if r.archived)
    logger.info("")
    logger.info(f"Total: {stats.total_count}")
    logger.info(f"Archived: {archived}")
    logger.info(f"Errors: {stats.error_count}")
    logger.info(f"Average lookup: {stats.average_latency_ms:.0f}ms")
    if state.cancelled:
        logger.warning(f"Cancelled - {stats.total_count - stats.done_count} domains not checked")


async def run(args: argparse.Namespace, config: ScanConfig) -> Optional[Path]:
    service = Service(config)

    text = read_input(args)
    domains = service.extract(text, scan_embedded=args.embedded)
    if not domains:
        logger.error("No valid domains found in input")
        return None

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, service.request_cancel)
    except NotImplementedError:
        # Windows event loops don't support signal handlers
        pass

    state = await service.check_domains(
        domains,
        on_progress=log_progress,
        retry_errors=args.retry_errors,
    )

    log_summary(state)
    output = Path(args.output) if args.output else Path(export_filename())
    return service.export(state, output)


def main():
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if args.debug else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )

    if args.input and args.samples:
        parser.error("Use either --input or --samples, not both")

    try:
        config = build_config(args)
    except ValidationError as e:
        parser.error(f"Invalid scan options: {e}")

    with capture_scan_logs("archive_check", local_backup_dir=args.log_dir):
        output = asyncio.run(run(args, config))

    if output is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
