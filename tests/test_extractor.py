"""Tests for content extraction, scoring rules and markdown rendering.

All tests run against inline HTML fixtures; no network access is needed.
"""

from __future__ import annotations

import pytest

from trustscrape.scraper.extractor import MAX_IMAGES, MAX_LINKS, extract
from trustscrape.scraper.markdown import render_markdown
from trustscrape.scraper.models import ExtractedDocument
from trustscrape.scraper.rules import (
    NEGATIVE_HINT_RE,
    POSITIVE_HINT_RE,
    CandidateStats,
    ScoringRule,
    score_candidate,
)


def _words(word: str, count: int) -> str:
    return " ".join([word] * count)


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_ARTICLE_TEXT = _words("alpha", 60)

_NOISY_ARTICLE_HTML = f"""\
<html><body>
  <nav>Menu</nav>
  <article><h1>T</h1><p>{_ARTICLE_TEXT}</p></article>
  <footer>F</footer>
</body></html>
"""

_GOLDEN_HTML = f"""\
<html><head><title>Ignored</title>
<meta property="og:title" content="Golden Title">
<meta name="description" content="A short summary.">
<meta name="author" content="Jane Doe">
<meta property="article:published_time" content="2026-02-01">
</head><body>
<article><h2>Section One</h2><p>{_words("alpha", 50)}</p><a href="https://example.org/a">Ref A</a></article>
</body></html>
"""


# ---------------------------------------------------------------------------
# Main content location
# ---------------------------------------------------------------------------

class TestMainContent:
    def test_article_wins_over_nav_and_footer(self) -> None:
        doc = extract(_NOISY_ARTICLE_HTML)

        assert doc.title == "T"
        assert doc.main_text == _ARTICLE_TEXT
        assert "Menu" not in doc.main_text
        assert "F" not in doc.main_text
        assert doc.word_count == 60

    def test_short_page_falls_back_to_body(self) -> None:
        html = "<html><body><nav>Menu</nav><div><p>Short text.</p></div></body></html>"

        doc = extract(html)

        assert doc.main_text == "Short text."
        assert doc.word_count == 2

    def test_high_confidence_selector_order(self) -> None:
        html = f"""\
<html><body>
  <div class="post-content"><p>{_words("bravo", 50)}</p></div>
  <main><article><p>{_words("alpha", 50)}</p></article></main>
</body></html>
"""
        doc = extract(html)

        assert doc.main_text == _words("alpha", 50)

    def test_qualifying_article_beats_higher_scoring_div(self) -> None:
        paragraph = _words("bravo", 30)
        html = f"""\
<html><body>
  <div class="content">
    <h2>Overview</h2><p>{paragraph}</p><p>{paragraph}</p><p>{paragraph}</p>
  </div>
  <article><p>{_words("alpha", 50)}</p></article>
</body></html>
"""
        doc = extract(html)

        assert doc.main_text == _words("alpha", 50)
        assert "bravo" not in doc.main_text
        assert doc.headings == ()

    def test_selector_match_needs_enough_text(self) -> None:
        html = f"""\
<html><body>
  <main><p>Too short to count.</p></main>
  <div class="entry-content"><p>{_words("alpha", 50)}</p></div>
</body></html>
"""
        doc = extract(html)

        assert doc.main_text == _words("alpha", 50)

    def test_scoring_pass_prefers_content_hints(self) -> None:
        paragraph_a = _words("charlie", 30)
        paragraph_b = _words("delta", 30)
        html = f"""\
<html><body>
  <div class="sidebar-widget"><p>{paragraph_a}</p><p>{paragraph_a}</p><p>{paragraph_a}</p></div>
  <div class="story-body"><p>{paragraph_b}</p><p>{paragraph_b}</p><p>{paragraph_b}</p></div>
</body></html>
"""
        doc = extract(html)

        assert "delta" in doc.main_text
        assert "charlie" not in doc.main_text

    def test_scoring_ties_keep_document_order(self) -> None:
        first = _words("first", 30)
        other = _words("other", 30)
        html = f"""\
<html><body>
  <div class="one"><p>{first}</p><p>{first}</p></div>
  <div class="two"><p>{other}</p><p>{other}</p></div>
</body></html>
"""
        doc = extract(html)

        assert "first" in doc.main_text
        assert "other" not in doc.main_text

    def test_scoring_requires_two_paragraphs(self) -> None:
        html = f"""\
<html><body>
  <div class="story"><p>{_words("alpha", 60)}</p></div>
  <span>tail</span>
</body></html>
"""
        doc = extract(html)

        # No candidate qualifies, so the whole body is kept.
        assert doc.main_text.endswith("tail")

    def test_noise_is_excluded_in_main_mode(self) -> None:
        html = f"""\
<html><body><article>
  <p>{_ARTICLE_TEXT}</p>
  <div class="ad">Buy now</div>
  <aside>Related stories</aside>
  <script>var tracking = 1;</script>
  <!-- editor note -->
  <div id="comments">First!</div>
</article></body></html>
"""
        doc = extract(html)

        assert doc.main_text == _ARTICLE_TEXT
        for noise in ("Buy now", "Related", "tracking", "editor note", "First!"):
            assert noise not in doc.main_text

    def test_class_tokens_only_match_whole_words(self) -> None:
        html = f'<html><body><article class="headline-story"><p>{_ARTICLE_TEXT}</p></article></body></html>'

        doc = extract(html)

        assert doc.main_text == _ARTICLE_TEXT

    def test_raw_mode_keeps_whole_body(self) -> None:
        html = _NOISY_ARTICLE_HTML.replace("<footer>", "<script>var x = 1;</script><footer>")

        doc = extract(html, only_main_content=False)

        assert doc.main_text.startswith("Menu T alpha")
        assert doc.main_text.endswith("F")
        assert "var x" not in doc.main_text


# ---------------------------------------------------------------------------
# Robustness
# ---------------------------------------------------------------------------

class TestRobustness:
    def test_empty_html_yields_empty_document(self) -> None:
        doc = extract("")

        assert doc.title == ""
        assert doc.main_text == ""
        assert doc.word_count == 0
        assert doc.links == ()
        assert doc.markdown == "---\n\n---\n\n---"

    def test_malformed_html_does_not_raise(self) -> None:
        doc = extract("<html><body><div><p>Unclosed <b>tags")

        assert doc.main_text == "Unclosed tags"

    def test_extraction_is_deterministic(self) -> None:
        assert extract(_GOLDEN_HTML) == extract(_GOLDEN_HTML)

    @pytest.mark.parametrize("html", [_NOISY_ARTICLE_HTML, _GOLDEN_HTML, "<p>a  b\n c</p>"])
    def test_word_count_matches_main_text(self, html: str) -> None:
        doc = extract(html)

        assert doc.word_count == len(doc.main_text.split())

    def test_returns_extracted_document(self) -> None:
        assert isinstance(extract("<p>hi</p>"), ExtractedDocument)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class TestMetadata:
    def test_og_title_beats_h1_and_title(self) -> None:
        html = (
            '<html><head><title>Doc</title><meta property="og:title" content="OG"></head>'
            "<body><h1>Heading</h1></body></html>"
        )
        assert extract(html).title == "OG"

    def test_h1_beats_title_tag(self) -> None:
        html = "<html><head><title>Doc</title></head><body><h1>Heading</h1></body></html>"
        assert extract(html).title == "Heading"

    def test_title_tag_fallback(self) -> None:
        html = "<html><head><title> Doc  Title </title></head><body><p>x</p></body></html>"
        assert extract(html).title == "Doc Title"

    def test_description_priority(self) -> None:
        html = (
            '<head><meta name="description" content="Plain">'
            '<meta property="og:description" content="Social"></head>'
        )
        assert extract(html).description == "Social"
        assert extract('<head><meta name="description" content="Plain"></head>').description == "Plain"

    def test_author_sources(self) -> None:
        assert extract('<head><meta name="author" content="Meta Author"></head>').author == "Meta Author"
        assert extract('<body><a rel="author" href="/me">Rel Author</a></body>').author == "Rel Author"
        assert extract('<body><span class="byline-author">Class Author</span></body>').author == "Class Author"
        assert extract("<body><p>nobody</p></body>").author is None

    def test_publish_date_sources(self) -> None:
        meta = '<head><meta property="article:published_time" content="2026-01-02T10:00:00Z"></head>'
        assert extract(meta).publish_date == "2026-01-02T10:00:00Z"
        assert extract('<body><time datetime="2026-01-05">Jan 5</time></body>').publish_date == "2026-01-05"
        assert extract('<body><span class="publish-date">Jan 7</span></body>').publish_date == "Jan 7"
        assert extract("<body><p>undated</p></body>").publish_date is None

    def test_language(self) -> None:
        assert extract('<html lang="ar"><body><p>x</p></body></html>').language == "ar"
        html = '<head><meta http-equiv="Content-Language" content="fr"></head>'
        assert extract(html).language == "fr"
        assert extract("<p>x</p>").language is None

    def test_headings_in_document_order(self) -> None:
        html = f"""\
<article><h2>One</h2><p>{_ARTICLE_TEXT}</p><h3>Two</h3><h2> </h2><h4>Three</h4></article>
"""
        assert extract(html).headings == ("One", "Two", "Three")


# ---------------------------------------------------------------------------
# Links and images
# ---------------------------------------------------------------------------

class TestLinksAndImages:
    def test_links_are_capped(self) -> None:
        anchors = "".join(f'<a href="https://example.com/p{i}">Link {i}</a>' for i in range(MAX_LINKS + 10))
        doc = extract(f"<html><body>{anchors}</body></html>")

        assert len(doc.links) == MAX_LINKS
        assert doc.links[0] == "https://example.com/p0"

    def test_links_resolve_and_deduplicate(self) -> None:
        html = """\
<html><body>
  <a href="/about">About</a>
  <a href="https://example.com/about#team">About us</a>
  <a href="#top">Top</a>
  <a href="mailto:desk@example.com">Mail</a>
  <a href="javascript:void(0)">JS</a>
  <a href="tel:+123">Call</a>
</body></html>
"""
        doc = extract(html, base_url="https://example.com/news/story")

        assert doc.links == ("https://example.com/about",)
        assert "- [About us](https://example.com/about)" in doc.markdown

    def test_relative_links_dropped_without_base_url(self) -> None:
        doc = extract('<body><a href="/about">About</a><a href="https://x.org/">X</a></body>')

        assert doc.links == ("https://x.org/",)

    def test_links_inside_noise_are_skipped(self) -> None:
        html = (
            '<body><nav><a href="https://example.com/menu">Menu</a></nav>'
            '<p><a href="https://example.com/story">Story</a></p></body>'
        )
        assert extract(html).links == ("https://example.com/story",)
        assert len(extract(html, only_main_content=False).links) == 2

    def test_images_are_capped_and_resolved(self) -> None:
        images = "".join(f'<img src="/img/{i}.png" alt="Figure {i}">' for i in range(MAX_IMAGES + 5))
        html = f"<html><body><article><p>{_ARTICLE_TEXT}</p>{images}</article></body></html>"

        doc = extract(html, base_url="https://example.com/")

        assert len(doc.images) == MAX_IMAGES
        assert doc.images[0] == ("Figure 0", "https://example.com/img/0.png")

    def test_duplicate_images_collapse(self) -> None:
        html = '<body><img src="https://x.org/a.png"><img src="https://x.org/a.png" alt="A"></body>'

        assert extract(html).images == (("A", "https://x.org/a.png"),)


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

class TestMarkdown:
    def test_golden_document(self) -> None:
        doc = extract(_GOLDEN_HTML)
        body = "Section One " + _words("alpha", 50) + " Ref A"

        assert doc.main_text == body
        assert doc.markdown == (
            "# Golden Title\n\n"
            "*A short summary.*\n\n"
            "> By Jane Doe | Published 2026-02-01\n\n"
            "---\n\n"
            "## Contents\n- Section One\n\n"
            "---\n\n"
            f"{body}\n\n"
            "---\n\n"
            "## Links\n- [Ref A](https://example.org/a)"
        )

    def test_body_is_truncated(self) -> None:
        doc = extract(_GOLDEN_HTML, max_chars=20)

        assert f"---\n\n{doc.main_text[:20]}\n\n---" in doc.markdown
        assert doc.main_text not in doc.markdown

    def test_contents_lists_first_ten_headings(self) -> None:
        headings = [f"H{i}" for i in range(12)]
        markdown = render_markdown(
            title="", description="", author=None, publish_date=None,
            headings=headings, body="", links={}, max_chars=100,
        )
        assert "- H9" in markdown
        assert "- H10" not in markdown

    def test_contents_omitted_for_long_outlines(self) -> None:
        markdown = render_markdown(
            title="", description="", author=None, publish_date=None,
            headings=[f"H{i}" for i in range(16)], body="", links={}, max_chars=100,
        )
        assert "## Contents" not in markdown

    def test_links_shown_are_capped(self) -> None:
        links = {f"https://example.com/{i}": f"Link {i}" for i in range(MAX_LINKS)}
        markdown = render_markdown(
            title="", description="", author=None, publish_date=None,
            headings=[], body="", links=links, max_chars=100,
        )
        assert markdown.count("\n- [Link ") == 15

    def test_link_without_text_uses_url(self) -> None:
        markdown = render_markdown(
            title="", description="", author=None, publish_date=None,
            headings=[], body="", links={"https://x.org/": ""}, max_chars=100,
        )
        assert markdown.endswith("- [https://x.org/](https://x.org/)")

    def test_byline_with_date_only(self) -> None:
        markdown = render_markdown(
            title="T", description="", author=None, publish_date="2026-03-01",
            headings=[], body="b", links={}, max_chars=100,
        )
        assert markdown == "# T\n\n> Published 2026-03-01\n\n---\n\n---\n\nb\n\n---"


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

class TestScoringRules:
    def test_article_with_hints(self) -> None:
        stats = CandidateStats(
            tag="article", class_id="post-body", depth=3, text_length=1000,
            anchor_text_length=100, paragraph_count=4, block_count=5,
        )
        # structural 25 + blocks 25 + hint 15 - depth 6 + link density 10
        assert score_candidate(stats) == 69

    def test_link_farm_gets_no_density_bonus(self) -> None:
        stats = CandidateStats(
            tag="div", class_id="", depth=2, text_length=500,
            anchor_text_length=400, paragraph_count=2, block_count=2,
        )
        assert score_candidate(stats) == 6

    def test_chrome_and_negative_hints(self) -> None:
        stats = CandidateStats(
            tag="aside", class_id="related-links", depth=1, text_length=50,
            anchor_text_length=0, paragraph_count=0, block_count=0,
        )
        assert score_candidate(stats) == -30 - 20 - 2

    @pytest.mark.parametrize("class_id", ["ad", "ads", "ad-slot", "top ads", "sidebar", "share-bar"])
    def test_negative_hints(self, class_id: str) -> None:
        assert NEGATIVE_HINT_RE.search(class_id)

    @pytest.mark.parametrize("class_id", ["header", "headline", "shadow", "reading"])
    def test_ad_is_not_a_substring_match(self, class_id: str) -> None:
        assert not NEGATIVE_HINT_RE.search(class_id)

    def test_positive_hint(self) -> None:
        assert POSITIVE_HINT_RE.search("entry-content")
        assert not POSITIVE_HINT_RE.search("nav-links")

    def test_non_link_ratio_of_empty_candidate(self) -> None:
        stats = CandidateStats("div", "", 0, 0, 0, 0, 0)
        assert stats.non_link_ratio == 0.0

    def test_custom_rule_table(self) -> None:
        stats = CandidateStats("div", "", 4, 300, 0, 2, 2)
        rules = (ScoringRule("flat", lambda s: True, 3), ScoringRule("per_p", lambda s: s.paragraph_count, 1, per_match=True))
        assert score_candidate(stats, rules) == 5
