"""Content extraction: turns raw HTML into an :class:`ExtractedDocument`.

The page is parsed once with BeautifulSoup and never mutated.  Noise
(scripts, navigation, ads, ...) is handled by computing the set of excluded
subtrees up front and skipping them while walking the tree, so text, links,
images and headings are all collected from the same filtered view.

Main-content selection runs in two passes:

1. A fixed list of high-confidence selectors (``main article``,
   ``.entry-content``, ...).  The first match with enough text wins.
2. A readability-style scoring pass over ``div``/``section``/``article``
   elements using :data:`~trustscrape.scraper.rules.SCORING_RULES`.

When neither pass finds a candidate the ``<body>`` is used, so extraction
never fails outright.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional
from urllib.parse import urldefrag, urljoin, urlsplit

import structlog
from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from trustscrape.config import settings
from trustscrape.scraper.markdown import render_markdown
from trustscrape.scraper.models import ExtractedDocument
from trustscrape.scraper.rules import SCORING_RULES, CandidateStats, ScoringRule, score_candidate

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Tuning constants
# ---------------------------------------------------------------------------

MAIN_CONTENT_SELECTORS: tuple[str, ...] = (
    "article[role=main]",
    "main article",
    "article.content",
    ".entry-content",
    ".post-content",
    "#content",
    "main",
    "[role=main]",
    "article",
)

MIN_CANDIDATE_CHARS = 200
MIN_CANDIDATE_PARAGRAPHS = 2
MAX_LINKS = 30
MAX_IMAGES = 20

CANDIDATE_TAGS = ("div", "section", "article")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BLOCK_TAGS = frozenset({"p", *HEADING_TAGS})

_RAW_EXCLUDED_TAGS = frozenset({"script", "style", "template"})
_MAIN_EXCLUDED_TAGS = frozenset(
    {"script", "style", "template", "noscript", "iframe", "svg", "nav", "footer", "aside"}
)
# Whole class/id tokens that mark page chrome rather than content.
_NOISE_TOKENS = frozenset(
    {
        "ad", "ads", "advert", "advertisement", "comment", "comments", "sidebar",
        "widget", "popup", "modal", "cookie", "cookie-banner", "social",
    }
)
_NEVER_EXCLUDED = frozenset({"html", "body"})

_WS_RE = re.compile(r"\s+")
_AUTHOR_CLASS_RE = re.compile(r"author", re.IGNORECASE)
_DATE_CLASS_RE = re.compile(r"date|publish", re.IGNORECASE)
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WS_RE.sub(" ", text or "").strip()


# ---------------------------------------------------------------------------
# Filtered tree view
# ---------------------------------------------------------------------------

def _class_id_tokens(tag: Tag) -> list[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    tokens = [c.lower() for c in classes]
    tag_id = tag.get("id")
    if isinstance(tag_id, str) and tag_id:
        tokens.append(tag_id.lower())
    return tokens


def _class_id(tag: Tag) -> str:
    return " ".join(_class_id_tokens(tag))


def _is_noise(tag: Tag, only_main_content: bool) -> bool:
    if tag.name in _NEVER_EXCLUDED:
        return False
    if not only_main_content:
        return tag.name in _RAW_EXCLUDED_TAGS
    if tag.name in _MAIN_EXCLUDED_TAGS:
        return True
    return any(token in _NOISE_TOKENS for token in _class_id_tokens(tag))


class _FilteredView:
    """A read-only view of a parsed page with noise subtrees hidden."""

    def __init__(self, soup: BeautifulSoup, only_main_content: bool) -> None:
        self.soup = soup
        self.only_main_content = only_main_content
        self._hidden: set[int] = set()
        for tag in soup.find_all(True):
            if id(tag) in self._hidden:
                continue
            if _is_noise(tag, only_main_content):
                self._hidden.add(id(tag))
                self._hidden.update(id(child) for child in tag.find_all(True))

    def is_hidden(self, tag: Tag) -> bool:
        return id(tag) in self._hidden

    def visible(self, tags: Iterable[Tag]) -> list[Tag]:
        return [tag for tag in tags if not self.is_hidden(tag)]

    def strings(self, root: Tag, skip: Optional[Tag] = None) -> Iterable[str]:
        """Yield the visible text nodes under *root* in document order."""
        stack: list = [root]
        while stack:
            node = stack.pop()
            if isinstance(node, Tag):
                if node is not root and (self.is_hidden(node) or node is skip):
                    continue
                stack.extend(reversed(node.contents))
            elif isinstance(node, NavigableString) and not isinstance(node, _SKIPPED_STRINGS):
                yield str(node)

    def text(self, root: Tag, skip: Optional[Tag] = None) -> str:
        return normalize_whitespace(" ".join(self.strings(root, skip)))


# ---------------------------------------------------------------------------
# Main content location
# ---------------------------------------------------------------------------

def _depth(tag: Tag) -> int:
    return sum(1 for parent in tag.parents if not isinstance(parent, BeautifulSoup))


def candidate_stats(view: _FilteredView, tag: Tag) -> CandidateStats:
    """Measure *tag* for the scoring rules, ignoring hidden subtrees."""
    text_length = len(view.text(tag))
    anchor_length = sum(len(view.text(a)) for a in view.visible(tag.find_all("a")))
    blocks = view.visible(tag.find_all(list(BLOCK_TAGS)))
    return CandidateStats(
        tag=tag.name,
        class_id=_class_id(tag),
        depth=_depth(tag),
        text_length=text_length,
        anchor_text_length=anchor_length,
        paragraph_count=sum(1 for b in blocks if b.name == "p"),
        block_count=len(blocks),
    )


def _select_by_selectors(view: _FilteredView) -> Optional[Tag]:
    for selector in MAIN_CONTENT_SELECTORS:
        for match in view.visible(view.soup.select(selector)):
            if len(view.text(match)) > MIN_CANDIDATE_CHARS:
                return match
    return None


def _select_by_score(view: _FilteredView, rules: tuple[ScoringRule, ...]) -> Optional[Tag]:
    best: Optional[Tag] = None
    best_score = float("-inf")
    for tag in view.visible(view.soup.find_all(list(CANDIDATE_TAGS))):
        stats = candidate_stats(view, tag)
        if stats.text_length < MIN_CANDIDATE_CHARS or stats.paragraph_count < MIN_CANDIDATE_PARAGRAPHS:
            continue
        score = score_candidate(stats, rules)
        # Strict comparison keeps the first candidate on ties.
        if score > best_score:
            best, best_score = tag, score
    return best


def locate_main_content(
    view: _FilteredView, rules: tuple[ScoringRule, ...] = SCORING_RULES
) -> Tag:
    """Return the element holding the page's main content (``<body>`` fallback)."""
    root: Tag = view.soup.body or view.soup
    if not view.only_main_content:
        return root
    return _select_by_selectors(view) or _select_by_score(view, rules) or root


# ---------------------------------------------------------------------------
# Metadata helpers
# ---------------------------------------------------------------------------

def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> str:
    tag = soup.find("meta", attrs={attr: re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)})
    if tag is None:
        return ""
    content = tag.get("content")
    return normalize_whitespace(content) if isinstance(content, str) else ""


def _first_text(tags: Iterable[Tag]) -> str:
    for tag in tags:
        text = normalize_whitespace(tag.get_text(" "))
        if text:
            return text
    return ""


def _first_of(*getters: Callable[[], str]) -> str:
    for getter in getters:
        value = getter()
        if value:
            return value
    return ""


def _extract_title(soup: BeautifulSoup) -> str:
    return _first_of(
        lambda: _meta_content(soup, "property", "og:title"),
        lambda: _first_text(soup.find_all("h1", limit=1)),
        lambda: _first_text(soup.find_all("title", limit=1)),
    )


def _extract_description(soup: BeautifulSoup) -> str:
    return _first_of(
        lambda: _meta_content(soup, "property", "og:description"),
        lambda: _meta_content(soup, "name", "description"),
    )


def _extract_author(soup: BeautifulSoup) -> Optional[str]:
    author = _first_of(
        lambda: _meta_content(soup, "name", "author"),
        lambda: _first_text(soup.find_all(attrs={"rel": "author"})),
        lambda: _first_text(soup.find_all(class_=_AUTHOR_CLASS_RE)),
    )
    return author or None


def _extract_publish_date(soup: BeautifulSoup) -> Optional[str]:
    def _time_datetime() -> str:
        tag = soup.find("time", attrs={"datetime": True})
        return normalize_whitespace(tag["datetime"]) if tag is not None else ""

    date = _first_of(
        lambda: _meta_content(soup, "property", "article:published_time"),
        _time_datetime,
        lambda: _first_text(soup.find_all(class_=_DATE_CLASS_RE)),
    )
    return date or None


def _extract_language(soup: BeautifulSoup) -> Optional[str]:
    html_tag = soup.find("html")
    lang = html_tag.get("lang") if html_tag is not None else None
    if isinstance(lang, str) and lang.strip():
        return lang.strip()
    return _meta_content(soup, "http-equiv", "content-language") or None


# ---------------------------------------------------------------------------
# Links and images
# ---------------------------------------------------------------------------

def _absolute_url(href: str, base_url: Optional[str]) -> Optional[str]:
    href = (href or "").strip()
    if not href or href.startswith("#"):
        return None
    resolved = urljoin(base_url, href) if base_url else href
    resolved, _fragment = urldefrag(resolved)
    try:
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return None
    return resolved


def _collect_links(view: _FilteredView, base_url: Optional[str]) -> dict[str, str]:
    """Map absolute URL to display text; last-seen text wins, capped."""
    links: dict[str, str] = {}
    for anchor in view.visible(view.soup.find_all("a", href=True)):
        url = _absolute_url(anchor["href"], base_url)
        if url is None:
            continue
        if url in links or len(links) < MAX_LINKS:
            links[url] = view.text(anchor)
    return links


def _collect_images(view: _FilteredView, content: Tag, base_url: Optional[str]) -> dict[str, str]:
    images: dict[str, str] = {}
    for img in view.visible(content.find_all("img", src=True)):
        url = _absolute_url(img["src"], base_url)
        if url is None:
            continue
        if url in images or len(images) < MAX_IMAGES:
            alt = img.get("alt")
            images[url] = normalize_whitespace(alt) if isinstance(alt, str) else ""
    return images


def _title_heading(view: _FilteredView, content: Tag, title: str) -> Optional[Tag]:
    if not title:
        return None
    for heading in view.visible(content.find_all(list(HEADING_TAGS))):
        if view.text(heading) == title:
            return heading
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(
    html: str,
    only_main_content: bool = True,
    base_url: Optional[str] = None,
    *,
    max_chars: Optional[int] = None,
) -> ExtractedDocument:
    """Extract readable content and metadata from *html*.

    Pure and deterministic: the same input always yields the same document.
    Malformed or empty HTML produces a document with empty fields.

    Args:
        html: Raw HTML (may be partial, e.g. a truncated fetch).
        only_main_content: Locate and keep only the main article content.
            When ``False`` the whole ``<body>`` is kept (minus scripts/styles).
        base_url: URL the page was fetched from; relative links and images
            are resolved against it and dropped when it is missing.
        max_chars: Cap on the body text in the rendered markdown.
    """
    try:
        soup = BeautifulSoup(html or "", "html.parser")
    except Exception as exc:  # noqa: BLE001
        logger.warning("extract.parse_failed", error=str(exc))
        return ExtractedDocument()

    view = _FilteredView(soup, only_main_content)
    content = locate_main_content(view)

    title = _extract_title(soup)
    description = _extract_description(soup)
    author = _extract_author(soup)
    publish_date = _extract_publish_date(soup)

    # The title is rendered as the markdown heading, so keep it out of the body.
    skip = _title_heading(view, content, title) if only_main_content else None
    main_text = view.text(content, skip=skip)

    headings = tuple(
        text
        for text in (view.text(h) for h in view.visible(content.find_all(list(HEADING_TAGS))))
        if text
    )
    links = _collect_links(view, base_url)
    images = _collect_images(view, content, base_url)

    markdown = render_markdown(
        title=title,
        description=description,
        author=author,
        publish_date=publish_date,
        headings=headings,
        body=main_text,
        links=links,
        max_chars=max_chars if max_chars is not None else settings.markdown_max_chars,
    )

    document = ExtractedDocument(
        title=title,
        description=description,
        main_text=main_text,
        markdown=markdown,
        headings=headings,
        links=tuple(links),
        images=tuple((alt, url) for url, alt in images.items()),
        author=author,
        publish_date=publish_date,
        word_count=len(main_text.split()),
        language=_extract_language(soup),
    )
    logger.debug(
        "extract.done",
        content_tag=content.name,
        word_count=document.word_count,
        links=len(document.links),
        headings=len(document.headings),
    )
    return document
