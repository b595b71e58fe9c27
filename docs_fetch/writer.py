"""Reference file naming and persistence."""

import os
import re
import stat
import tempfile
from pathlib import Path

from .errors import WriteError

EXTENSION = ".md"


def _read_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Read once at import: os.umask is process-wide and writes run on worker threads
UMASK = _read_umask()


def match_mode(temp_path, target) -> None:
    """Give a mkstemp file (always 0600) the mode the target has, or would get if created."""
    try:
        mode = stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        mode = 0o666 & ~UMASK
    os.chmod(temp_path, mode)


def slugify(label: str) -> str:
    """Lowercase, runs of anything but [a-z0-9] become '-', no leading/trailing '-'."""
    return re.sub(r"[^a-z0-9]+", "-", label.lower()).strip("-")


def reference_path(reference_dir: str | Path, label: str) -> Path:
    slug = slugify(label)
    if not slug:
        raise WriteError(Path(reference_dir) / EXTENSION, f"label {label!r} yields an empty filename")
    return Path(reference_dir) / f"{slug}{EXTENSION}"


def write(output_path: str | Path, content: str) -> None:
    """Create or overwrite a reference file atomically, keeping an existing file's mode."""
    output_path = Path(output_path)
    temp_path = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        match_mode(temp_path, output_path)
        os.replace(temp_path, output_path)
    except OSError as e:
        if temp_path and os.path.exists(temp_path):
            os.unlink(temp_path)
        raise WriteError(output_path, e) from e
