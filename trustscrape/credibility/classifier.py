"""Source credibility classification.

:class:`CredibilityClassifier` judges a *source URL* against the tiers of a
:class:`~trustscrape.credibility.registry.DomainRegistry`, and optionally
scores extracted text for boilerplate/AI-filler phrasing.  Every method is a
pure function of its arguments and the injected configuration, so a single
instance can be shared across concurrent tasks.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple
from urllib.parse import urlsplit

import structlog

from trustscrape.config import settings
from trustscrape.credibility.patterns import AI_GENERATED_PATTERNS, GENERICNESS_PATTERNS
from trustscrape.credibility.registry import DomainRegistry, domain_matches

logger = structlog.get_logger(__name__)

WARN_INVALID_URL = "Invalid URL format"
WARN_NO_SSL = "No SSL certificate"
WARN_NOT_WHITELISTED = "Domain not in whitelist"
WARN_GENERIC = "Generic content detected"
WARN_AI_PHRASING = "AI-generated phrasing detected"

# More AI-phrasing matches than this adds a warning.
AI_PATTERN_WARNING_THRESHOLD = 2


class CredibilityTier(str, Enum):
    OFFICIAL = "official"
    PREMIUM = "premium"
    VERIFIED = "verified"
    WHITELISTED = "whitelisted"
    UNCLASSIFIED = "unclassified"

    @property
    def badge(self) -> str:
        """Display label for the tier."""
        return _BADGES[self]


_BADGES = {
    CredibilityTier.OFFICIAL: "Official",
    CredibilityTier.PREMIUM: "Premium",
    CredibilityTier.VERIFIED: "Verified",
    CredibilityTier.WHITELISTED: "Whitelisted",
    CredibilityTier.UNCLASSIFIED: "Unverified",
}

TIER_SCORES = {
    CredibilityTier.OFFICIAL: 1.0,
    CredibilityTier.PREMIUM: 0.95,
    CredibilityTier.VERIFIED: 0.9,
    CredibilityTier.WHITELISTED: 0.75,
    CredibilityTier.UNCLASSIFIED: 0.3,
}


@dataclass(frozen=True)
class CredibilityVerdict:
    """How far a source can be trusted.

    Attributes:
        domain: Hostname without a leading ``www.``.
        tier: First matching tier, in priority order.
        score: Trust score in ``[0, 1]``; ``1.0`` for official sources.
        has_ssl: ``True`` when the URL uses ``https``.
        is_whitelisted: ``True`` for any tier above ``UNCLASSIFIED``.
        warnings: Human-readable findings, in the order they were made.
        genericness_score: Share of filler patterns found in the text.
        is_valid: ``score`` reaches the classifier's acceptance threshold.
        ai_pattern_matches: Sources of the AI-phrasing patterns found.
    """

    domain: str
    tier: CredibilityTier
    score: float
    has_ssl: bool
    is_whitelisted: bool
    warnings: Tuple[str, ...] = ()
    genericness_score: float = 0.0
    is_valid: bool = False
    ai_pattern_matches: Tuple[str, ...] = ()

    @property
    def badge(self) -> str:
        return self.tier.badge

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "tier": self.tier.value,
            "badge": self.badge,
            "score": self.score,
            "has_ssl": self.has_ssl,
            "is_whitelisted": self.is_whitelisted,
            "is_valid": self.is_valid,
            "warnings": list(self.warnings),
            "genericness_score": self.genericness_score,
            "ai_pattern_matches": list(self.ai_pattern_matches),
        }


class CredibilityClassifier:
    """Classifies source URLs and scores text for generic filler.

    Args:
        registry: Domain tiers; defaults to :meth:`DomainRegistry.default`.
        min_valid_score: Scores at or above this are accepted by callers.
        genericness_threshold: Genericness at or above this earns a warning.
        genericness_patterns: Replacement filler patterns.
    """

    def __init__(
        self,
        registry: Optional[DomainRegistry] = None,
        *,
        min_valid_score: Optional[float] = None,
        genericness_threshold: Optional[float] = None,
        genericness_patterns: Optional[Sequence[re.Pattern[str]]] = None,
    ) -> None:
        self.registry = registry or DomainRegistry.default()
        self.min_valid_score = (
            min_valid_score if min_valid_score is not None else settings.min_valid_score
        )
        self.genericness_threshold = (
            genericness_threshold
            if genericness_threshold is not None
            else settings.genericness_threshold
        )
        self.genericness_patterns = tuple(
            genericness_patterns if genericness_patterns is not None else GENERICNESS_PATTERNS
        )

    # ------------------------------------------------------------------
    # Contract A: URL credibility
    # ------------------------------------------------------------------

    def resolve_tier(self, domain: str) -> CredibilityTier:
        """First-match-wins tier lookup for a bare domain."""
        registry = self.registry
        if domain_matches(domain, registry.official):
            return CredibilityTier.OFFICIAL
        if domain_matches(domain, registry.premium):
            return CredibilityTier.PREMIUM
        if domain_matches(domain, registry.verified):
            return CredibilityTier.VERIFIED
        if domain_matches(domain, registry.whitelist):
            return CredibilityTier.WHITELISTED
        return CredibilityTier.UNCLASSIFIED

    def validate_url(self, url: str) -> CredibilityVerdict:
        """Classify the source behind *url*.  Never raises."""
        try:
            parts = urlsplit((url or "").strip())
            hostname = (parts.hostname or "").lower()
            scheme = parts.scheme.lower()
        except ValueError:
            hostname, scheme = "", ""

        if scheme not in ("http", "https") or not hostname:
            return CredibilityVerdict(
                domain="",
                tier=CredibilityTier.UNCLASSIFIED,
                score=0.0,
                has_ssl=False,
                is_whitelisted=False,
                warnings=(WARN_INVALID_URL,),
                is_valid=False,
            )

        domain = hostname[4:] if hostname.startswith("www.") else hostname
        has_ssl = scheme == "https"
        warnings: list[str] = []
        if not has_ssl:
            warnings.append(WARN_NO_SSL)

        tier = self.resolve_tier(domain)
        if tier is CredibilityTier.UNCLASSIFIED:
            warnings.append(WARN_NOT_WHITELISTED)

        score = TIER_SCORES[tier]
        return CredibilityVerdict(
            domain=domain,
            tier=tier,
            score=score,
            has_ssl=has_ssl,
            is_whitelisted=tier is not CredibilityTier.UNCLASSIFIED,
            warnings=tuple(warnings),
            is_valid=score >= self.min_valid_score,
        )

    # ------------------------------------------------------------------
    # Contract B: text genericness
    # ------------------------------------------------------------------

    def score_genericness(self, text: str) -> float:
        """Share of filler patterns that occur anywhere in *text*, in ``[0, 1]``."""
        if not self.genericness_patterns or not text:
            return 0.0
        hits = sum(1 for pattern in self.genericness_patterns if pattern.search(text))
        return hits / len(self.genericness_patterns)

    def is_generic(self, text: str) -> bool:
        return self.score_genericness(text) >= self.genericness_threshold

    @staticmethod
    def find_ai_patterns(text: str) -> Tuple[str, ...]:
        """Return the sources of the AI-phrasing patterns found in *text*."""
        if not text:
            return ()
        return tuple(pattern.pattern for pattern in AI_GENERATED_PATTERNS if pattern.search(text))

    def assess(self, url: str, text: str) -> CredibilityVerdict:
        """:meth:`validate_url` refined with text signals.

        Text signals only add warnings; tier and score are unchanged.
        """
        verdict = self.validate_url(url)
        genericness = self.score_genericness(text)
        ai_matches = self.find_ai_patterns(text)

        warnings = list(verdict.warnings)
        if genericness >= self.genericness_threshold:
            warnings.append(WARN_GENERIC)
        if len(ai_matches) > AI_PATTERN_WARNING_THRESHOLD:
            warnings.append(WARN_AI_PHRASING)

        if len(warnings) > len(verdict.warnings):
            logger.info(
                "credibility.text_flags",
                domain=verdict.domain,
                genericness=genericness,
                ai_matches=len(ai_matches),
            )

        return dataclasses.replace(
            verdict,
            warnings=tuple(warnings),
            genericness_score=genericness,
            ai_pattern_matches=ai_matches,
        )
