"""Pipeline orchestration: inventory -> cleanup -> per-source fetch/convert/write -> save.

Each source moves through::

    PENDING -> FETCHING -> CLASSIFYING -> [EXTRACTING -> CONVERTING] -> FINALIZING -> WRITTEN

or ends in FAILED from whichever state raised. Sources run on a bounded thread
pool and never touch shared state: every task returns a ``SourceResult``, and the
inventory timestamps are merged from those results once the pool has drained.
"""

import concurrent.futures
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from . import classify, cleaner, convert, extract, fetcher, frontmatter, writer
from .config import Settings
from .errors import SourceError, WriteError
from .inventory import SourceRecord, load_inventory, save_inventory

logger = logging.getLogger(__name__)

REFERENCE_DIRNAME = "reference"


class SourceState(enum.Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    EXTRACTING = "extracting"
    CONVERTING = "converting"
    FINALIZING = "finalizing"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class SourceEntry:
    """Working state for one source while it is being processed."""

    label: str
    url: str
    output_path: Path
    state: SourceState = SourceState.PENDING
    is_markdown: bool = False
    raw: fetcher.RawContent | None = None
    extracted: extract.MainContent | None = None
    markdown_body: str | None = None
    frontmatter: str | None = None

    def advance(self, state: SourceState) -> None:
        logger.debug("%s: %s -> %s", self.label, self.state.value, state.value)
        self.state = state


@dataclass(frozen=True)
class SourceResult:
    label: str
    url: str
    state: SourceState
    output_path: Path | None = None
    fetched_at: str | None = None
    error: str | None = None
    failed_in: SourceState | None = None

    @property
    def ok(self) -> bool:
        return self.state is SourceState.WRITTEN


@dataclass
class RunReport:
    started_at: datetime
    results: list[SourceResult] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SourceResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[SourceResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def _failure(entry: SourceEntry, error: Exception) -> SourceResult:
    logger.error("%s (%s) failed while %s: %s", entry.label, entry.url, entry.state.value, error)
    return SourceResult(
        label=entry.label,
        url=entry.url,
        state=SourceState.FAILED,
        error=str(error),
        failed_in=entry.state,
    )


def process_source(entry: SourceEntry, settings: Settings) -> SourceResult:
    """Run one source to WRITTEN or FAILED. Only SourceError is treated as per-source."""
    try:
        entry.advance(SourceState.FETCHING)
        entry.raw = fetcher.fetch(entry.url, timeout=settings.timeout, user_agent=settings.user_agent)
        fetched_at = frontmatter.utc_now()

        entry.advance(SourceState.CLASSIFYING)
        entry.is_markdown = classify.classify(entry.url).is_markdown

        if entry.is_markdown:
            entry.markdown_body = entry.raw.text
        else:
            entry.advance(SourceState.EXTRACTING)
            entry.extracted = extract.extract(entry.raw.text, min_text_length=settings.min_text_length)
            entry.advance(SourceState.CONVERTING)
            entry.markdown_body = convert.to_markdown(entry.extracted.html, title=entry.extracted.title)

        entry.advance(SourceState.FINALIZING)
        entry.frontmatter = frontmatter.generate(entry.url, fetched_at)
        writer.write(entry.output_path, entry.frontmatter + "\n" + entry.markdown_body)
    except SourceError as e:
        return _failure(entry, e)

    entry.advance(SourceState.WRITTEN)
    logger.info("%s: saved %s", entry.label, entry.output_path.name)
    return SourceResult(
        label=entry.label,
        url=entry.url,
        state=SourceState.WRITTEN,
        output_path=entry.output_path,
        fetched_at=frontmatter.format_timestamp(fetched_at),
    )


def _plan(records: list[SourceRecord], reference_dir: Path) -> tuple[list[SourceEntry], dict[str, SourceResult]]:
    """Build entries; labels without a usable, unique output path fail up front."""
    entries: list[SourceEntry] = []
    rejected: dict[str, SourceResult] = {}
    claimed: dict[Path, str] = {}
    for record in records:
        try:
            path = writer.reference_path(reference_dir, record.label)
            if path in claimed:
                raise WriteError(path, f"output path already used by label {claimed[path]!r}")
        except WriteError as e:
            rejected[record.label] = _failure(SourceEntry(record.label, record.url, reference_dir), e)
            continue
        claimed[path] = record.label
        entries.append(SourceEntry(label=record.label, url=record.url, output_path=path))
    return entries, rejected


def run_pipeline(
    inventory_path: str | Path,
    dirty: bool = False,
    settings: Settings | None = None,
    reference_dir: str | Path | None = None,
    on_result: Callable[[SourceResult], None] | None = None,
) -> RunReport:
    """Fetch every inventory source into the reference directory.

    Raises InventoryReadError or CleanupError before anything is fetched, and
    InventoryWriteError if the updated timestamps cannot be saved; per-source
    failures are reported in the returned RunReport instead.
    """
    settings = settings or Settings()
    report = RunReport(started_at=frontmatter.utc_now())
    inventory_path = Path(inventory_path).resolve()
    inventory = load_inventory(inventory_path)
    records = inventory.records()

    reference_dir = Path(reference_dir) if reference_dir else inventory_path.parent / REFERENCE_DIRNAME
    report.removed = cleaner.clean(reference_dir, inventory.labels(), dirty=dirty)
    if report.removed:
        logger.info("Removed %d orphaned reference file(s)", len(report.removed))

    logger.info("Found %d source(s)", len(records))
    entries, rejected = _plan(records, reference_dir)
    results: dict[str, SourceResult] = dict(rejected)
    if on_result:
        for result in rejected.values():
            on_result(result)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, settings.workers)) as executor:
        futures = [executor.submit(process_source, entry, settings) for entry in entries]
        for fut in concurrent.futures.as_completed(futures):
            result = fut.result()
            results[result.label] = result
            if on_result:
                on_result(result)

    report.results = [results[record.label] for record in records]

    written = report.succeeded
    for result in written:
        inventory.mark_fetched(result.label, result.fetched_at)
    if written:
        inventory.document["lastFetched"] = frontmatter.format_timestamp(frontmatter.utc_now())
        save_inventory(inventory_path, inventory)
    return report
