from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class Classification:
    is_markdown: bool


def classify(url: str) -> Classification:
    """Markdown if the URL path ends in .md, HTML otherwise. Query and fragment are ignored."""
    path = urlparse(url).path
    return Classification(is_markdown=path.lower().endswith(".md"))
