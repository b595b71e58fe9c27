"""YAML provenance frontmatter for reference files."""

import re
from datetime import datetime, timezone

from .errors import FrontmatterError

_PLAIN_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://\S*$")


def utc_now() -> datetime:
    """Current UTC time, truncated to the millisecond precision written to disk."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(fetched_at) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix. Naive datetimes are taken as UTC."""
    if isinstance(fetched_at, str):
        try:
            fetched_at = datetime.fromisoformat(fetched_at.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise FrontmatterError(f"Invalid timestamp {fetched_at!r}") from e
    if not isinstance(fetched_at, datetime):
        raise FrontmatterError(f"Timestamp must be a datetime, got {type(fetched_at).__name__}")
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    try:
        fetched_at = fetched_at.astimezone(timezone.utc)
    except (OverflowError, ValueError) as e:
        raise FrontmatterError(f"Invalid timestamp {fetched_at!r}") from e
    return fetched_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def yaml_scalar(value: str) -> str:
    """Plain scalar for ordinary URLs, double-quoted otherwise."""
    if _PLAIN_URL.match(value) and not value.endswith(":"):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def generate(source_url: str, fetched_at) -> str:
    return f"---\nsource: {yaml_scalar(source_url)}\nfetched: {format_timestamp(fetched_at)}\n---\n"
