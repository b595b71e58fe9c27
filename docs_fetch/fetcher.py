"""HTTP retrieval of inventory sources."""

import logging
from dataclasses import dataclass

import chardet
import requests

from .config import DEFAULT_USER_AGENT
from .errors import FetchError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "text/markdown;q=0.9,text/plain;q=0.8,*/*;q=0.7"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class RawContent:
    url: str
    text: str
    content_type: str | None
    encoding: str


def decode_body(content: bytes, content_type: str | None, declared: str | None) -> tuple[str, str]:
    """Decode a response body, trusting only an explicitly declared charset."""
    # requests reports ISO-8859-1 for any text/* response without a charset
    encoding = declared if content_type and "charset=" in content_type.lower() else None
    if not encoding:
        guess = chardet.detect(content)
        encoding = guess.get("encoding") or "utf-8"
    try:
        return content.decode(encoding, errors="replace"), encoding
    except LookupError:
        return content.decode("utf-8", errors="replace"), "utf-8"


def fetch(url: str, timeout: float = 20.0, user_agent: str = DEFAULT_USER_AGENT) -> RawContent:
    """GET a source once, following redirects. Raises FetchError on any failure."""
    headers = dict(BROWSER_HEADERS, **{"User-Agent": user_agent})
    try:
        resp = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(url, e) from e
    # Unfollowed 3xx (304, 300 without Location) carry no document
    if not 200 <= resp.status_code < 300:
        raise FetchError(url, f"HTTP {resp.status_code} {resp.reason}")

    content_type = resp.headers.get("Content-Type")
    text, encoding = decode_body(resp.content, content_type, resp.encoding)
    logger.debug("Fetched %s (%d bytes, %s, %s)", url, len(resp.content), content_type, encoding)
    return RawContent(url=url, text=text, content_type=content_type, encoding=encoding)
