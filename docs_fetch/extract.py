"""Main-content extraction for HTML documentation pages.

The page is parsed with BeautifulSoup, stripped of navigation and other
boilerplate, then scored readability-style: every paragraph-like node adds
points to its parent (in full) and grandparent (at half weight), and the best
container wins after a link-density penalty. When the scored container holds
too little text, readability-lxml gets a second try before giving up.

Everything here is a pure function of the input HTML: no sub-resources are
fetched and no JavaScript runs.
"""

import logging
import re
from dataclasses import dataclass

import trafilatura
from bs4 import BeautifulSoup, Tag
from readability.readability import Document, Unparseable

from .errors import ExtractionError

logger = logging.getLogger(__name__)

STRIP_TAGS = [
    "script", "style", "noscript", "nav", "footer", "aside",
    "form", "iframe", "svg", "button", "template",
]
PARAGRAPH_TAGS = ["p", "pre", "td", "blockquote", "li"]
STRUCTURAL_TAGS = {"html", "head", "body", "main", "article"}

BOILERPLATE = re.compile(
    r"\b(ads?|advert\w*|banner|breadcrumbs?|cookie\w*|comments?|menu|navbar|popup|"
    r"promo\w*|related|share|sidebar|social|sponsor\w*|subscribe|toc)\b",
    re.IGNORECASE,
)
CONTENT = re.compile(
    r"\b(article|body|content|docs?|entry|main|markdown|post|prose|text)\b",
    re.IGNORECASE,
)

TAG_SCORES = {
    "article": 10, "main": 10, "div": 5, "section": 3,
    "pre": 3, "td": 3, "blockquote": 3,
    "ol": -3, "ul": -3, "dl": -3, "dd": -3, "dt": -3, "li": -3, "form": -3,
    "h1": -5, "h2": -5, "h3": -5, "h4": -5, "h5": -5, "h6": -5, "th": -5,
}

MIN_PARAGRAPH_LENGTH = 25
# A boilerplate-named element is only dropped when it is mostly links or short;
# longer prose under such a name (e.g. "layout has-sidebar") is a page wrapper.
BOILERPLATE_MAX_TEXT = 200
BOILERPLATE_LINK_DENSITY = 0.5


@dataclass(frozen=True)
class MainContent:
    html: str
    title: str | None
    method: str


def _class_and_id(el: Tag) -> str:
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return " ".join(classes + [el.get("id") or ""]).strip()


def _text_length(el: Tag) -> int:
    return len(el.get_text(" ", strip=True))


def strip_boilerplate(soup: BeautifulSoup) -> None:
    """Remove navigation, scripts, ads and similar regions in place."""
    for el in soup.find_all(STRIP_TAGS):
        if not el.decomposed:
            el.decompose()
    # Page banners go; headers inside the article (title blocks) stay.
    for el in soup.find_all("header"):
        if not el.decomposed and el.find_parent(["article", "main"]) is None:
            el.decompose()
    for el in soup.find_all(True):
        if el.decomposed or el.name in STRUCTURAL_TAGS:
            continue
        attrs = _class_and_id(el)
        if not attrs or not BOILERPLATE.search(attrs) or CONTENT.search(attrs):
            continue
        if _text_length(el) < BOILERPLATE_MAX_TEXT or link_density(el) >= BOILERPLATE_LINK_DENSITY:
            el.decompose()


def class_weight(el: Tag) -> int:
    attrs = _class_and_id(el)
    if not attrs:
        return 0
    weight = 0
    if BOILERPLATE.search(attrs):
        weight -= 25
    if CONTENT.search(attrs):
        weight += 25
    return weight


def link_density(el: Tag) -> float:
    total = _text_length(el)
    if not total:
        return 1.0
    links = sum(_text_length(a) for a in el.find_all("a"))
    return min(links / total, 1.0)


def score_candidates(soup: BeautifulSoup) -> list[tuple[Tag, float]]:
    """Score container elements, best first. Ties keep document order."""
    candidates: dict[int, list] = {}

    def bump(el, points: float) -> None:
        if not isinstance(el, Tag) or el is soup or el.name in ("html", "head"):
            return
        entry = candidates.get(id(el))
        if entry is None:
            entry = candidates[id(el)] = [el, TAG_SCORES.get(el.name, 0) + class_weight(el)]
        entry[1] += points

    for node in soup.find_all(PARAGRAPH_TAGS):
        text = node.get_text(" ", strip=True)
        if len(text) < MIN_PARAGRAPH_LENGTH:
            continue
        points = 1 + text.count(",") + min(len(text) / 100, 3)
        bump(node.parent, points)
        if node.parent is not None:
            bump(node.parent.parent, points / 2)

    scored = [(el, score * (1 - link_density(el))) for el, score in candidates.values()]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def pick_main_container(scored: list[tuple[Tag, float]]) -> Tag | None:
    """Best candidate, widened to its parent when strong siblings share the content."""
    if not scored:
        return None
    top, top_score = scored[0]
    parent = top.parent
    if parent is None or not isinstance(parent, Tag) or parent.name in ("[document]", "html"):
        return top
    threshold = max(10.0, top_score * 0.2)
    for el, score in scored[1:]:
        if el.parent is parent and score >= threshold:
            return parent
    return top


def readability_to_html(html: str) -> str | None:
    """Use readability-lxml to isolate article HTML."""
    try:
        return Document(html).summary(html_partial=True)
    except Unparseable as e:
        logger.debug("readability could not parse document: %s", e)
        return None


def extract_title(html: str, soup: BeautifulSoup) -> str | None:
    metadata = trafilatura.extract_metadata(html)
    title = getattr(metadata, "title", None) if metadata is not None else None
    if title and title.strip():
        return title.strip()
    if soup.title is not None:
        return soup.title.get_text(strip=True) or None
    return None


def extract(html: str, min_text_length: int = 80) -> MainContent:
    """Isolate the main readable content of an HTML page.

    Raises ExtractionError when neither the scoring pass nor readability finds
    at least ``min_text_length`` characters of content.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(html, soup)
    strip_boilerplate(soup)

    container = pick_main_container(score_candidates(soup))
    if container is not None and _text_length(container) >= min_text_length:
        return MainContent(html=str(container), title=title, method="score")

    logger.debug("scoring found no confident container, trying readability")
    readable = readability_to_html(html)
    if readable:
        length = _text_length(BeautifulSoup(readable, "html.parser"))
        if length >= min_text_length:
            return MainContent(html=readable, title=title, method="readability")

    raise ExtractionError(
        f"No main content region found (need at least {min_text_length} characters of text)"
    )
