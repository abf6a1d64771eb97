"""Credibility package: domain tiers and boilerplate/AI-filler scoring."""

from trustscrape.credibility.classifier import (
    CredibilityClassifier,
    CredibilityTier,
    CredibilityVerdict,
)
from trustscrape.credibility.registry import DomainRegistry

__all__ = ["CredibilityClassifier", "CredibilityTier", "CredibilityVerdict", "DomainRegistry"]
