"""Brand verification and impersonation layer."""

from __future__ import annotations

from paysavvy.analyzers.base import BaseAnalyzer, ScanContext
from paysavvy.brands import BrandIndex
from paysavvy.models import BrandMatchResult, BrandRecord, LayerResult, MatchType
from paysavvy.similarity import (
    SUBSTITUTION_CONFIDENCE,
    has_character_substitution,
    impersonation_confidence,
    is_impersonation_similarity,
    similarity,
)
from paysavvy.urls import normalize_domain

EXACT_SCORE = -5
SUBDOMAIN_SCORE = -3
KNOWN_SCAM_SCORE = 6
IMPERSONATION_SCORE = 5


class BrandMatchAnalyzer(BaseAnalyzer):
    """Resolve a hostname against the brand registry.

    Checks run in priority order and the first hit decides the result:
    exact verified domain, subdomain of a verified domain, listed scam
    mimic, look-alike impersonation, no match.
    """

    name = "Brand Check"
    key = "brand_check"

    def match(self, domain: str, index: BrandIndex) -> BrandMatchResult:
        """Classify a domain against the registry.

        Args:
            domain: Hostname to check; ``www.`` and case are normalized.
            index: The brand index to query.

        Returns:
            A BrandMatchResult for the first matching rule.
        """
        domain = normalize_domain(domain)

        brand = index.lookup_exact(domain)
        if brand is not None:
            return BrandMatchResult(
                score=EXACT_SCORE,
                brand=brand,
                flags=[f"Verified {brand.region} financial institution: {brand.name}"],
                match_type=MatchType.EXACT,
                confidence=0.95,
            )

        brand = index.lookup_subdomain_of(domain)
        if brand is not None:
            return BrandMatchResult(
                score=SUBDOMAIN_SCORE,
                brand=brand,
                flags=[f"Subdomain of verified brand: {brand.name}"],
                match_type=MatchType.SUBDOMAIN,
                confidence=0.85,
            )

        scam = index.lookup_scam_mimic(domain)
        if scam is not None:
            return BrandMatchResult(
                score=KNOWN_SCAM_SCORE,
                brand=index.brand_named(scam.target_brand),
                flags=[f"Known scam domain imitating {scam.target_brand}"],
                match_type=MatchType.KNOWN_SCAM,
                confidence=0.9,
                target_brand=scam.target_brand,
            )

        impersonation = self._detect_impersonation(domain, index)
        if impersonation is not None:
            return impersonation

        return BrandMatchResult()

    def _detect_impersonation(self, domain: str, index: BrandIndex) -> BrandMatchResult | None:
        """Find the verified domain this one most plausibly imitates.

        The closest similarity inside (0.7, 1.0) wins, earliest index entry on
        ties. Character substitution is only consulted when no similarity
        match exists.
        """
        best: tuple[float, str, BrandRecord] | None = None
        substitution: tuple[str, BrandRecord] | None = None

        for verified_domain, brand in index.verified_items():
            score = similarity(domain, verified_domain)
            if is_impersonation_similarity(score):
                if best is None or score > best[0]:
                    best = (score, verified_domain, brand)
            elif substitution is None and has_character_substitution(domain, verified_domain):
                substitution = (verified_domain, brand)

        if best is not None:
            score, verified_domain, brand = best
            return BrandMatchResult(
                score=IMPERSONATION_SCORE,
                brand=brand,
                flags=[
                    f"Possible brand impersonation: {brand.name} "
                    f"({domain} resembles {verified_domain}, similarity {score:.2f})"
                ],
                match_type=MatchType.IMPERSONATION,
                confidence=impersonation_confidence(score),
                similarity=score,
                target_brand=brand.name,
            )

        if substitution is not None:
            verified_domain, brand = substitution
            return BrandMatchResult(
                score=IMPERSONATION_SCORE,
                brand=brand,
                flags=[
                    f"Possible brand impersonation: {brand.name} "
                    f"({domain} substitutes look-alike characters in {verified_domain})"
                ],
                match_type=MatchType.IMPERSONATION,
                confidence=SUBSTITUTION_CONFIDENCE,
                target_brand=brand.name,
            )

        return None

    def run(self, context: ScanContext) -> LayerResult:
        result = self.match(context.parsed.domain, context.index)
        context.details[self.key] = result
        return LayerResult(score=result.score, flags=list(result.flags))
