"""HTML fragment to Markdown conversion."""

import logging
import re

from bs4 import BeautifulSoup
from markdownify import markdownify as html_to_md

logger = logging.getLogger(__name__)

LANGUAGE_CLASS = re.compile(r"^(?:language|lang|highlight)-([\w+#.-]+)$")


def code_language(pre) -> str | None:
    """Language hint for a <pre> block, from its <code> child, itself, or a wrapper div."""
    code = pre.find("code")
    wrappers = [code, pre, pre.parent]
    if pre.parent is not None:
        wrappers.append(pre.parent.parent)
    for el in wrappers:
        if el is None or not hasattr(el, "get"):
            continue
        for cls in el.get("class") or []:
            match = LANGUAGE_CLASS.match(cls)
            if match:
                return match.group(1)
    return None


def clean_markdown(md: str) -> str:
    """Light cleanup for nicer Markdown."""
    # Collapse excessive blank lines
    md = re.sub(r"\n{3,}", "\n\n", md)
    # Trim trailing spaces
    md = "\n".join(line.rstrip() for line in md.splitlines())
    return md.strip() + "\n"


def to_markdown(html_fragment: str, title: str | None = None) -> str:
    """Convert extracted HTML to Markdown.

    Never raises: if markdownify chokes on the fragment, a warning is logged and
    the fragment's plain text is returned instead.
    """
    try:
        md = html_to_md(
            html_fragment,
            heading_style="ATX",
            bullets="-",
            code_language_callback=code_language,
            strip=["script", "style", "noscript"],
        )
    except Exception as e:
        logger.warning("Markdown conversion failed (%s), keeping plain text", e)
        md = BeautifulSoup(html_fragment, "html.parser").get_text("\n")

    md = clean_markdown(md)
    if title and not re.search(r"^# ", md, re.MULTILINE):
        md = f"# {title}\n\n{md}"
    return md
