"""Removal of reference files whose label left the inventory."""

import logging
import os
from pathlib import Path

from .errors import CleanupError
from .writer import EXTENSION, slugify

logger = logging.getLogger(__name__)


def clean(reference_dir: str | Path, current_labels, dirty: bool = False) -> list[Path]:
    """Delete orphaned files directly inside ``reference_dir``; return what was removed.

    A file is kept only if its name is ``<slug>.md`` for a current label.
    Subdirectories are never entered, and dotfiles such as ``.gitkeep`` are
    left alone except for ``.*.tmp`` files abandoned by an interrupted write.
    """
    if dirty:
        return []
    reference_dir = Path(reference_dir)
    if not reference_dir.exists():
        return []
    if not reference_dir.is_dir():
        raise CleanupError(f"Reference path {reference_dir} exists but is not a directory")
    if not os.access(reference_dir, os.W_OK | os.X_OK):
        raise CleanupError(f"Reference directory {reference_dir} is not writable")

    keep = {f"{slugify(label)}{EXTENSION}" for label in current_labels}
    removed = []
    try:
        for path in sorted(reference_dir.iterdir()):
            if path.name in keep:
                continue
            if path.name.startswith(".") and not path.name.endswith(".tmp"):
                continue
            if path.is_symlink() or path.is_file():
                path.unlink()
                removed.append(path)
                logger.debug("Removed orphan %s", path)
    except OSError as e:
        raise CleanupError(f"Cannot clean {reference_dir}: {e}") from e
    return removed
