"""Markdown assembly for extracted documents.

The block order is fixed so that golden-output tests stay stable::

    # Title
    *Description*
    > By Author | Published Date
    ---
    ## Contents          (only when the page has 1-15 headings)
    ---
    body text           (truncated)
    ---
    ## Links            (only when links exist)

The three rules are always emitted, even around empty sections.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

RULE = "---"
MAX_CONTENTS_HEADINGS = 15
CONTENTS_SHOWN = 10
LINKS_SHOWN = 15


def _byline(author: Optional[str], publish_date: Optional[str]) -> str:
    parts = []
    if author:
        parts.append(f"By {author}")
    if publish_date:
        parts.append(f"Published {publish_date}")
    return "> " + " | ".join(parts) if parts else ""


def render_markdown(
    *,
    title: str,
    description: str,
    author: Optional[str],
    publish_date: Optional[str],
    headings: Sequence[str],
    body: str,
    links: Mapping[str, str],
    max_chars: int,
) -> str:
    """Render the document blocks, joined by blank lines.

    Args:
        links: Ordered mapping of URL to display text.
        max_chars: Cap on the body text; longer bodies are cut, not summarised.
    """
    blocks: list[str] = []

    if title:
        blocks.append(f"# {title}")
    if description:
        blocks.append(f"*{description}*")
    byline = _byline(author, publish_date)
    if byline:
        blocks.append(byline)

    blocks.append(RULE)
    if 1 <= len(headings) <= MAX_CONTENTS_HEADINGS:
        contents = "\n".join(f"- {heading}" for heading in headings[:CONTENTS_SHOWN])
        blocks.append(f"## Contents\n{contents}")
    blocks.append(RULE)

    if body:
        blocks.append(body[:max_chars])

    blocks.append(RULE)
    if links:
        items = "\n".join(
            f"- [{text or url}]({url})" for url, text in list(links.items())[:LINKS_SHOWN]
        )
        blocks.append(f"## Links\n{items}")

    return "\n\n".join(blocks)
