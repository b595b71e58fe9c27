"""Load and persist the reference inventory (reference-inventory.json).

The inventory is kept as the raw JSON document so that keys the pipeline does
not own survive a load/save cycle untouched. ``Inventory`` only offers a typed
view over ``sources`` and the ``lastFetched`` timestamps.

Each entry under ``sources`` is either a bare URL string::

    "Intro": "https://example.com/docs/intro.md"

or an object, which is the form a label takes once it has been fetched::

    "Intro": {"url": "https://example.com/docs/intro.md",
              "lastFetched": "2026-10-18T12:00:00.000Z"}
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import InventoryReadError, InventoryWriteError
from .writer import match_mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRecord:
    label: str
    url: str
    last_fetched: str | None = None


class Inventory:
    def __init__(self, document: dict[str, Any]):
        self.document = document

    @property
    def sources(self) -> dict[str, Any]:
        return self.document["sources"]

    def records(self) -> list[SourceRecord]:
        """Typed rows, in file order."""
        rows = []
        for label, entry in self.sources.items():
            if isinstance(entry, str):
                rows.append(SourceRecord(label, entry))
            else:
                rows.append(SourceRecord(label, entry["url"], entry.get("lastFetched")))
        return rows

    def labels(self) -> set[str]:
        return set(self.sources)

    def mark_fetched(self, label: str, when: str) -> None:
        """Record a successful fetch, upgrading a bare URL entry to object form."""
        entry = self.sources[label]
        if isinstance(entry, str):
            self.sources[label] = {"url": entry, "lastFetched": when}
        else:
            entry["lastFetched"] = when


def _validate(document: Any, path: Path) -> None:
    if not isinstance(document, dict):
        raise InventoryReadError(f"Invalid inventory {path}: top level must be an object")
    sources = document.get("sources")
    if not isinstance(sources, dict):
        raise InventoryReadError(f"Invalid inventory {path}: 'sources' must be an object")
    for label, entry in sources.items():
        if isinstance(entry, str) and entry.strip():
            continue
        if isinstance(entry, dict) and isinstance(entry.get("url"), str) and entry["url"].strip():
            continue
        raise InventoryReadError(
            f"Invalid inventory {path}: source {label!r} must be a URL or an object with a 'url'"
        )


def load_inventory(path: str | Path) -> Inventory:
    path = Path(path)
    if not path.is_file():
        raise InventoryReadError(f"Inventory not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise InventoryReadError(f"Inventory {path} is not valid JSON: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InventoryReadError(f"Cannot read inventory {path}: {e}") from e
    _validate(document, path)
    logger.debug("Loaded %d source(s) from %s", len(document["sources"]), path)
    return Inventory(document)


def save_inventory(path: str | Path, inventory: Inventory) -> None:
    """Write the inventory atomically (temp file in the same directory + rename).

    The file keeps its permissions. Any filesystem failure is raised as
    InventoryWriteError and leaves the previous file in place.
    """
    path = Path(path)
    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(inventory.document, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        match_mode(temp_path, path)
        os.replace(temp_path, path)
    except OSError as e:
        _discard(temp_path)
        raise InventoryWriteError(f"Cannot save inventory {path}: {e}") from e
    except BaseException:
        _discard(temp_path)
        raise
    logger.debug("Saved inventory to %s", path)


def _discard(temp_path: str | None) -> None:
    if temp_path and os.path.exists(temp_path):
        os.unlink(temp_path)
