"""Exception types raised by the docs-fetch pipeline.

Fatal errors (``InventoryReadError``, ``CleanupError``) abort a run before any
source is fetched; ``InventoryWriteError`` is fatal too, raised after the
sources when the timestamps cannot be saved. ``SourceError`` subclasses are
recorded against a single label and never stop the remaining sources.
"""


class DocsFetchError(Exception):
    """Base class for every error raised by docs-fetch."""


class InventoryReadError(DocsFetchError):
    """The inventory file is missing, unreadable or malformed."""


class CleanupError(DocsFetchError):
    """The reference directory cannot be cleaned safely."""


class InventoryWriteError(DocsFetchError):
    """The updated inventory could not be saved after the run."""


class SourceError(DocsFetchError):
    """An error scoped to one inventory source."""


class FetchError(SourceError):
    def __init__(self, url: str, cause: BaseException | str):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")


class ExtractionError(SourceError):
    """No main content region could be identified in an HTML page."""


class FrontmatterError(SourceError):
    """The fetch timestamp is not a valid date."""


class WriteError(SourceError):
    def __init__(self, path, cause: BaseException | str):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")
