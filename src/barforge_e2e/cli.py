"""Command line interface for the Barforge end-to-end harness."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .core.config import SUPPORTED_BROWSERS, HarnessConfig, load_configuration
from .core.report import CrawlReport
from .crawl.crawler import crawl_site
from .server.dev_server import DevServer, DevServerError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_SERVER = 2


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Barforge end-to-end harness")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl = subparsers.add_parser("crawl", help="Crawl the site and report broken routes")
    crawl.add_argument("-u", "--base-url", help="Site to crawl (defaults to PLAYWRIGHT_BASE_URL)")
    crawl.add_argument("--report-dir", default="crawl-report", help="Directory for report attachments")
    crawl.add_argument(
        "--browser",
        action="append",
        choices=SUPPORTED_BROWSERS,
        help="Browser engine to crawl with; repeat for several (default: chromium)",
    )
    crawl.add_argument("--max-routes", type=positive_int, help="Maximum number of routes to visit")
    crawl.add_argument("--concurrency", type=positive_int, help="Probes per batch")
    crawl.add_argument("--headed", action="store_true", help="Show the browser window")
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> HarnessConfig:
    config = load_configuration(args.base_url)
    config.policy = config.policy.with_overrides(
        max_routes=args.max_routes,
        concurrency=args.concurrency,
    )
    if args.headed:
        config.debug = True
    return config


async def crawl_with_retries(config: HarnessConfig, browser: str) -> CrawlReport:
    """Run the crawl, repeating a failing run up to ``config.retries`` times."""

    attempts = config.retries + 1
    report = await crawl_site(config, browser)
    for attempt in range(2, attempts + 1):
        if report.passed:
            break
        logger.warning("%s crawl failed; retry %d of %d", browser, attempt - 1, config.retries)
        report = await crawl_site(config, browser)
    return report


async def crawl_browsers(config: HarnessConfig, browsers: Sequence[str]) -> Dict[str, CrawlReport]:
    workers = config.workers or len(browsers)
    limiter = asyncio.Semaphore(workers)

    async def run_one(browser: str) -> CrawlReport:
        async with limiter:
            return await crawl_with_retries(config, browser)

    reports = await asyncio.gather(*(run_one(browser) for browser in browsers))
    return dict(zip(browsers, reports))


def print_report(report: CrawlReport, written: List[Path]) -> None:
    print(f"\n=== Crawl ({report.browser}) ===")
    print(report.summary_text())
    if report.failures:
        print(report.failures_text())
    for path in written:
        print(f"[+] Attachment written to {path}")


def run_crawl(args: argparse.Namespace) -> int:
    config = build_config(args)
    browsers = list(dict.fromkeys(args.browser or ["chromium"]))
    report_root = Path(args.report_dir).resolve()

    server: Optional[DevServer] = None
    if config.start_server:
        server = DevServer.from_config(config)
        try:
            server.start()
        except DevServerError as exc:
            print(f"[!] {exc}", file=sys.stderr)
            return EXIT_SERVER

    try:
        reports = asyncio.run(crawl_browsers(config, browsers))
    finally:
        if server is not None:
            server.stop()

    exit_code = EXIT_OK
    for browser, report in reports.items():
        directory = report_root / browser
        written = report.write_attachments(directory)
        report.save(directory / "crawl-report.json")
        print_report(report, written)
        if not report.passed:
            exit_code = EXIT_FAILURES

    return exit_code


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    configure_logging(args.verbose)

    if args.command == "crawl":
        return run_crawl(args)
    return EXIT_OK


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
