"""Fetch documentation sources listed in a reference inventory into Markdown files."""

from .errors import (
    CleanupError,
    DocsFetchError,
    ExtractionError,
    FetchError,
    FrontmatterError,
    InventoryReadError,
    InventoryWriteError,
    SourceError,
    WriteError,
)
from .pipeline import RunReport, SourceResult, SourceState, run_pipeline

__version__ = "0.1.0"
