"""
docs-fetch - Fetch skill reference documentation into local Markdown

This command reads a reference inventory (a JSON file mapping labels to
documentation URLs), downloads every source and stores it as Markdown with
provenance frontmatter in a ``reference/`` directory next to the inventory.

Markdown sources (URLs whose path ends in ``.md``) are saved as-is. HTML pages
go through main-content extraction and Markdown conversion first.

Usage:
    # Fetch everything, removing reference files for labels no longer listed
    docs-fetch skills/my-skill/reference-inventory.json

    # Keep existing reference files (skip orphan cleanup)
    docs-fetch skills/my-skill/reference-inventory.json --dirty

    # Sequential fetching with a longer timeout
    docs-fetch reference-inventory.json --workers 1 --timeout 60

Inventory format:
    {
      "sources": {
        "Intro": "https://example.com/docs/intro.md",
        "API Guide": {"url": "https://example.com/api", "lastFetched": "..."}
      }
    }

    After a run every label that was written is stored in object form with an
    updated "lastFetched". Other keys in the file are preserved.

Environment Setup:
    Defaults can be set in the environment or a .env file:
       DOCS_FETCH_TIMEOUT          per-request timeout in seconds (default 20)
       DOCS_FETCH_WORKERS          parallel fetches (default 4)
       DOCS_FETCH_USER_AGENT       User-Agent header
       DOCS_FETCH_MIN_TEXT_LENGTH  minimum extracted text for HTML pages (default 80)

Exit Codes:
    0: Every source was written
    1: One or more sources failed (the others are still written)
    2: Fatal error (unreadable inventory, cleanup impossible, inventory not
       saved, bad configuration or arguments)

Requirements:
    - requests: HTTP client for fetching sources
    - chardet: Character encoding detection
    - beautifulsoup4: HTML parsing and content scoring
    - readability-lxml: Fallback article isolation
    - trafilatura: Page title metadata
    - markdownify: HTML to Markdown conversion
    - rich: Terminal output and logging
    - python-dotenv: Environment variable management
"""
import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import load_settings
from .errors import CleanupError, InventoryReadError, InventoryWriteError
from .pipeline import RunReport, SourceResult, run_pipeline

EXIT_OK = 0
EXIT_SOURCE_FAILURES = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="docs-fetch",
        description="Fetch documentation from skill sources into reference Markdown files.",
    )
    ap.add_argument("inventory", help="Path to reference-inventory.json file")
    ap.add_argument("--dirty", action="store_true", help="Keep existing reference files (skip cleanup)")
    ap.add_argument("--reference-dir", help="Output directory (default: reference/ next to the inventory)")
    ap.add_argument("--workers", type=int, help="Number of sources fetched in parallel")
    ap.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    ap.add_argument("--env-file", help="Load settings from this .env file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every state transition")
    return ap


def configure_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
    )
    # Third-party chatter stays out of the run log
    for name in ("urllib3", "chardet", "trafilatura", "readability"):
        logging.getLogger(name).setLevel(logging.WARNING)


def display_summary(report: RunReport, console: Console) -> None:
    """Print a per-label table and an overall result panel."""
    table = Table(title="docs-fetch results")
    table.add_column("Label", style="cyan")
    table.add_column("Status")
    table.add_column("Output / Error", overflow="fold")

    for result in report.results:
        table.add_row(escape(result.label), _status_cell(result), escape(_detail_cell(result)))
    console.print(table)

    if report.removed:
        console.print(f"[yellow]Removed {len(report.removed)} orphaned file(s)[/]")

    if report.ok:
        console.print(
            Panel(
                f"[bold green]Done![/] {len(report.succeeded)} source(s) written",
                border_style="green",
            )
        )
    else:
        failed = escape(", ".join(r.label for r in report.failed))
        console.print(
            Panel(
                f"[bold red]{len(report.failed)} source(s) failed:[/] {failed}\n"
                f"{len(report.succeeded)} source(s) written",
                border_style="red",
            )
        )


def _status_cell(result: SourceResult) -> str:
    if result.ok:
        return "[green]written[/]"
    return f"[red]failed ({result.failed_in.value})[/]"


def _detail_cell(result: SourceResult) -> str:
    if result.ok:
        return str(result.output_path)
    return result.error or ""


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    err_console = Console(stderr=True)
    configure_logging(args.verbose, err_console)

    try:
        settings = load_settings(args.env_file).with_overrides(
            workers=args.workers, timeout=args.timeout
        )
    except ValueError as e:
        err_console.print(f"[bold red]Configuration error:[/] {escape(str(e))}")
        return EXIT_FATAL

    try:
        report = run_pipeline(
            args.inventory,
            dirty=args.dirty,
            settings=settings,
            reference_dir=args.reference_dir,
        )
    except (InventoryReadError, CleanupError, InventoryWriteError) as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        return EXIT_FATAL

    display_summary(report, console)
    return EXIT_OK if report.ok else EXIT_SOURCE_FAILURES


if __name__ == "__main__":
    sys.exit(main())
