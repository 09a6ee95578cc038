"""Command-line interface for the scraper."""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

from wooscrape.config import DEFAULT_CONCURRENCY, MAX_CONCURRENCY, OUTPUT_DIR
from wooscrape.errors import DiscoveryError, PoolStartupError, WriteError
from wooscrape.logging_config import setup_logging
from wooscrape.progress import LoggingProgress
from wooscrape.shutdown import ShutdownHandler
from wooscrape.url_validation import URLValidationError, validate_site_url
from wooscrape.workflows import scrape_site

__all__ = ["main", "run", "parse_args", "validate_args", "prompt_for_options", "RunOptions"]

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


@dataclass
class RunOptions:
    site_url: str
    limit: Optional[int] = None  # None = no limit
    concurrency: int = DEFAULT_CONCURRENCY


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wooscrape",
        description="Scrape a WooCommerce site's products into an importable CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape every product found in the sitemap
  wooscrape https://example.com

  # First 100 products with 5 concurrent workers
  wooscrape https://example.com --limit 100 --concurrency 5

  # No arguments: prompts for the site URL, limit and concurrency
  wooscrape
        """,
    )

    parser.add_argument(
        "site_url",
        nargs="?",
        help="Target WooCommerce website URL",
    )
    # Numbers are validated by validate_args so bad values fall back to prompts
    parser.add_argument(
        "--limit",
        metavar="N",
        help="Maximum number of products to scrape (default: all)",
    )
    parser.add_argument(
        "--concurrency",
        metavar="N",
        help=f"Number of concurrent workers (default: {DEFAULT_CONCURRENCY}, max: {MAX_CONCURRENCY})",
    )
    parser.add_argument(
        "--output-dir",
        default=OUTPUT_DIR,
        help=f"Directory for the CSV export (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show per-URL progress and debug output",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Don't write the JSONL log file",
    )

    return parser.parse_args(argv)


def _parse_int(value: Optional[str], flag: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{flag} must be a number") from None


def validate_args(args: argparse.Namespace) -> RunOptions:
    """Turn parsed arguments into run options.

    Raises:
        URLValidationError: If the site URL is missing or invalid
        ValueError: If --limit or --concurrency is not a valid number
    """
    site_url = validate_site_url(args.site_url)

    limit = _parse_int(args.limit, "--limit")
    if limit is not None and limit < 0:
        raise ValueError("--limit must not be negative")

    concurrency = _parse_int(args.concurrency, "--concurrency")
    if concurrency is not None and concurrency < 1:
        raise ValueError("--concurrency must be greater than 0")

    return RunOptions(
        site_url=site_url,
        limit=limit or None,
        concurrency=concurrency or DEFAULT_CONCURRENCY,
    )


def _ask(
    input_fn: Callable[[str], str],
    message: str,
    convert: Callable[[str], object],
    default: Optional[str] = None,
):
    suffix = f" [{default}]" if default is not None else ""
    while True:
        answer = input_fn(f"{message}{suffix}: ").strip()
        if not answer and default is not None:
            answer = default
        try:
            return convert(answer)
        except (ValueError, URLValidationError) as e:
            print(f"  {e}")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError("Must be greater than 0")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise ValueError("Must not be negative")
    return number


def prompt_for_options(input_fn: Callable[[str], str] = input) -> RunOptions:
    """Ask for the run options interactively."""
    site_url = _ask(input_fn, "WooCommerce site URL (e.g. https://example.com)", validate_site_url)
    limit = _ask(input_fn, "Maximum number of products (0 for no limit)", _non_negative_int, "0")
    concurrency = _ask(
        input_fn, "Number of concurrent workers", _positive_int, str(DEFAULT_CONCURRENCY)
    )
    return RunOptions(site_url=site_url, limit=limit or None, concurrency=concurrency)


def resolve_options(args: argparse.Namespace, input_fn: Callable[[str], str] = input) -> RunOptions:
    """Use the command line when it is valid, otherwise prompt."""
    if args.site_url:
        try:
            return validate_args(args)
        except (ValueError, URLValidationError) as e:
            print(f"Invalid command line arguments: {e}")
            print("Switching to interactive mode...\n")
    return prompt_for_options(input_fn)


def main(argv: Optional[List[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    """Main entry point for CLI. Returns the process exit code."""
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
    )

    try:
        options = resolve_options(args, input_fn)
    except (EOFError, KeyboardInterrupt):
        print("\nAborted.")
        return EXIT_ERROR

    progress = LoggingProgress()
    with ShutdownHandler() as handler:
        try:
            summary = scrape_site(
                options.site_url,
                limit=options.limit,
                concurrency=options.concurrency,
                output_dir=args.output_dir,
                progress=progress,
                stop_event=handler.event,
                on_pool_created=lambda pool: handler.register_cleanup(pool.release_resources),
            )
        except URLValidationError as e:
            progress.fail(f"Invalid URL: {e}")
            return EXIT_ERROR
        except DiscoveryError as e:
            progress.fail(str(e))
            return EXIT_ERROR
        except PoolStartupError as e:
            progress.fail(str(e))
            return EXIT_ERROR
        except WriteError as e:
            progress.fail(str(e))
            return EXIT_ERROR

    stats = summary.stats
    progress.succeed(
        f"Scraped {len(summary.products)} products! Check {summary.output_path}"
    )
    print(f"\n{'=' * 50}")
    print(f"Site:          {summary.site_url}")
    print(f"URLs found:    {summary.urls_found}")
    print(f"Processed:     {stats.processed}")
    print(f"Failed:        {stats.failed}")
    print(f"Success rate:  {stats.success_rate:.2%}")
    print(f"Duration:      {stats.elapsed_seconds:.2f}s")
    print(f"Rows written:  {summary.rows_written}")
    print(f"Output:        {summary.output_path}")
    print(f"{'=' * 50}")

    return EXIT_INTERRUPTED if summary.interrupted else EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
