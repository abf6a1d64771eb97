"""Lexical patterns for boilerplate and AI-filler detection.

These are crude signals, used as soft penalties only: short or quoted text
can trigger them.
"""

from __future__ import annotations

import re
from typing import Iterable


def compile_patterns(phrases: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    """Compile plain phrases or regex sources into case-insensitive patterns."""
    return tuple(re.compile(phrase, re.IGNORECASE) for phrase in phrases)


GENERICNESS_PATTERNS = compile_patterns(
    (
        r"in conclusion",
        r"it is worth noting",
        r"as mentioned earlier",
        r"let['’]s dive in",
        r"without further ado",
        r"this article discusses",
        r"in this article",
        r"according to sources",
    )
)

AI_GENERATED_PATTERNS = compile_patterns(
    (
        r"\bin conclusion\b",
        r"\bas we can see\b",
        r"\bit is important to note that\b",
        r"\bthis article will explore\b",
        r"\blorem ipsum\b",
        r"\bclick here to learn more\b",
    )
)
