"""Domain tiers used by the credibility classifier.

A :class:`DomainRegistry` is an immutable value built once at start-up and
injected into :class:`~trustscrape.credibility.classifier.CredibilityClassifier`.
Tests can construct their own registry instead of patching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

# Regulators and exchanges.
OFFICIAL_DOMAINS: tuple[str, ...] = (
    "cma.gov.sa",
    "cma.org.sa",
    "tadawul.com.sa",
    "saudiexchange.sa",
    "sec.gov",
    "mof.gov.sa",
)

# Top-tier financial press.
PREMIUM_DOMAINS: tuple[str, ...] = (
    "ft.com",
    "bloomberg.com",
    "wsj.com",
    "economist.com",
    "reuters.com",
)

# Major wire services and regional news outlets.
VERIFIED_DOMAINS: tuple[str, ...] = (
    "cnbc.com",
    "bbc.com",
    "bbc.co.uk",
    "aljazeera.com",
    "arabnews.com",
    "argaam.com",
    "zawya.com",
    "gulfnews.com",
    "khaleejtimes.com",
    "thenationalnews.com",
)

# Trusted beyond the three tiers; the registry adds the tiers on top.
EXTRA_WHITELIST_DOMAINS: tuple[str, ...] = (
    "theconversation.com",
    "arabiangazette.com",
    "marketscreener.com",
    "arizton.com",
    "agbionline.com",
    "marketwatch.com",
    "finance.yahoo.com",
    "yahoo.com",
    "tradingview.com",
    "investing.com",
    "seekingalpha.com",
    "forbes.com",
    "fortune.com",
    "businessinsider.com",
)


def _normalise(domains: Iterable[str]) -> FrozenSet[str]:
    cleaned = set()
    for domain in domains:
        domain = domain.strip().lower()
        if domain.startswith("www."):
            domain = domain[4:]
        if domain:
            cleaned.add(domain)
    return frozenset(cleaned)


def domain_matches(domain: str, entries: Iterable[str]) -> bool:
    """``True`` when *domain* equals an entry or is a subdomain of one."""
    return any(domain == entry or domain.endswith("." + entry) for entry in entries)


@dataclass(frozen=True)
class DomainRegistry:
    """Credibility tiers plus the broader whitelist.

    The whitelist is always a superset of the three tiers.
    """

    official: FrozenSet[str] = field(default_factory=frozenset)
    premium: FrozenSet[str] = field(default_factory=frozenset)
    verified: FrozenSet[str] = field(default_factory=frozenset)
    whitelist: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        official = _normalise(self.official)
        premium = _normalise(self.premium)
        verified = _normalise(self.verified)
        object.__setattr__(self, "official", official)
        object.__setattr__(self, "premium", premium)
        object.__setattr__(self, "verified", verified)
        object.__setattr__(
            self, "whitelist", _normalise(self.whitelist) | official | premium | verified
        )

    @classmethod
    def default(cls) -> "DomainRegistry":
        return cls(
            official=frozenset(OFFICIAL_DOMAINS),
            premium=frozenset(PREMIUM_DOMAINS),
            verified=frozenset(VERIFIED_DOMAINS),
            whitelist=frozenset(EXTRA_WHITELIST_DOMAINS),
        )
