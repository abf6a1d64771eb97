"""Declarative scoring rules for locating the main content of a page.

Each :class:`ScoringRule` pairs a predicate with a weight.  A rule with
``per_match=True`` returns a count and contributes ``weight * count``; other
rules contribute ``weight`` when their predicate is truthy.  Rules are pure
functions of a :class:`CandidateStats` snapshot, so they can be tuned and
tested without a DOM.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence, Union

POSITIVE_HINT_RE = re.compile(r"content|article|body|main|post|text|story|entry", re.IGNORECASE)
NEGATIVE_HINT_RE = re.compile(
    r"sidebar|widget|comment|(?:^|[\s_-])ads?(?:$|[\s_-])|social|share|related|popup|modal|banner",
    re.IGNORECASE,
)

STRUCTURAL_TAGS = frozenset({"article", "main", "section"})
CHROME_TAGS = frozenset({"nav", "footer", "aside", "header", "menu"})


@dataclass(frozen=True)
class CandidateStats:
    """Everything the rules need to know about one candidate element."""

    tag: str
    class_id: str
    depth: int
    text_length: int
    anchor_text_length: int
    paragraph_count: int
    block_count: int

    @property
    def non_link_ratio(self) -> float:
        if self.text_length <= 0:
            return 0.0
        return (self.text_length - self.anchor_text_length) / self.text_length


@dataclass(frozen=True)
class ScoringRule:
    name: str
    predicate: Callable[[CandidateStats], Union[bool, int]]
    weight: float
    per_match: bool = False

    def apply(self, stats: CandidateStats) -> float:
        outcome = self.predicate(stats)
        if self.per_match:
            return self.weight * int(outcome)
        return self.weight if outcome else 0.0


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule("structural_tag", lambda s: s.tag in STRUCTURAL_TAGS, 25),
    ScoringRule("text_blocks", lambda s: s.block_count, 5, per_match=True),
    ScoringRule("positive_hint", lambda s: bool(POSITIVE_HINT_RE.search(s.class_id)), 15),
    ScoringRule("chrome_tag", lambda s: s.tag in CHROME_TAGS, -30),
    ScoringRule("negative_hint", lambda s: bool(NEGATIVE_HINT_RE.search(s.class_id)), -20),
    ScoringRule("nesting_depth", lambda s: s.depth, -2, per_match=True),
    ScoringRule(
        "low_link_density",
        lambda s: s.text_length > 100 and s.non_link_ratio > 0.5,
        10,
    ),
)


def score_candidate(stats: CandidateStats, rules: Sequence[ScoringRule] = SCORING_RULES) -> float:
    """Sum every rule's contribution for *stats*."""
    return sum(rule.apply(stats) for rule in rules)
