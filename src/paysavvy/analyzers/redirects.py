"""Redirect chain shape analysis.

The chain is supplied by the caller; this module never follows redirects
itself.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from paysavvy.analyzers.base import BaseAnalyzer, ScanContext
from paysavvy.analyzers.heuristics import DEFAULT_URL_SHORTENERS
from paysavvy.brands import BrandIndex
from paysavvy.config import get_list
from paysavvy.models import (
    LayerResult,
    RedirectAnalysisResult,
    RedirectHop,
    RiskLevel,
    ShortenerHit,
)
from paysavvy.urls import URLParseError, extract, parse_url, registrable_domain

DEFAULT_RISKY_TLDS = ("tk", "ml", "ga", "cf", "gq")

MAX_HOPS = 2
MAX_DOMAIN_CHANGES = 2
# 302s beyond this hop index suggest a deliberately long bounce chain.
LATE_REDIRECT_INDEX = 3

MULTIPLE_REDIRECTS_WEIGHT = 2
SHORTENER_WEIGHT = 2
DOMAIN_CHURN_WEIGHT = 2
PROTOCOL_DOWNGRADE_WEIGHT = 3
PATTERN_WEIGHT = 1
VERIFIED_DESTINATION_WEIGHT = -1


def coerce_chain(chain: Iterable[Any] | None) -> list[RedirectHop]:
    """Normalize caller-supplied hops into RedirectHop records.

    Accepts plain URL strings, ``{"url": ..., "status": ...}`` mappings and
    RedirectHop instances. Anything else is kept as an (invalid) hop so it
    is flagged during analysis.
    """
    hops: list[RedirectHop] = []
    for entry in chain or []:
        if isinstance(entry, RedirectHop):
            hops.append(entry)
        elif isinstance(entry, str):
            hops.append(RedirectHop(url=entry))
        elif isinstance(entry, Mapping):
            status = entry.get("status", entry.get("httpStatus"))
            try:
                status = int(status) if status is not None else None
            except (TypeError, ValueError):
                status = None
            hops.append(RedirectHop(url=str(entry.get("url") or ""), status=status))
        else:
            hops.append(RedirectHop(url=repr(entry)))
    return hops


class RedirectChainAnalyzer(BaseAnalyzer):
    """Score the shape of an already-resolved redirect chain."""

    name = "Redirect Chain Analysis"
    key = "redirects"

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__(config)
        self.shorteners = tuple(get_list(self.config, "url_shorteners") or DEFAULT_URL_SHORTENERS)
        self.risky_tlds = frozenset(get_list(self.config, "redirect_risky_tlds") or DEFAULT_RISKY_TLDS)

    def analyze(
        self,
        chain: Iterable[Any] | None,
        index: BrandIndex | None = None,
    ) -> RedirectAnalysisResult:
        """Analyze a redirect chain.

        Args:
            chain: Ordered hops (strings, mappings or RedirectHop).
            index: Optional brand index; a chain ending on a verified
                domain earns a small reduction.

        Returns:
            RedirectAnalysisResult. An empty chain is safe with score 0.
        """
        hops = coerce_chain(chain)
        result = RedirectAnalysisResult()
        if not hops:
            return result

        previous_domain = ""
        seen_https = False
        seen_http = False
        late_redirect = False
        final_domain = ""

        for position, hop in enumerate(hops):
            try:
                parsed = parse_url(hop.url)
            except URLParseError:
                result.suspicious_patterns.append(f"Invalid URL in chain: {hop.url}")
                final_domain = ""
                continue

            hostname = parsed.hostname
            final_domain = parsed.domain

            for shortener in self.shorteners:
                if parsed.domain == shortener or parsed.domain.endswith("." + shortener):
                    result.shortener_hits.append(
                        ShortenerHit(domain=hostname, position=position, url=hop.url)
                    )
                    break

            domain = registrable_domain(hostname)
            if previous_domain and previous_domain != domain:
                result.domain_change_count += 1
            previous_domain = domain

            if parsed.scheme == "https":
                seen_https = True
            elif parsed.scheme == "http":
                seen_http = True

            tld = (extract(hostname).suffix or hostname).rsplit(".", 1)[-1]
            if tld in self.risky_tlds:
                result.suspicious_patterns.append(f"Suspicious TLD in chain: {hostname}")

            if hop.status == 302 and position > LATE_REDIRECT_INDEX:
                late_redirect = True

        if late_redirect:
            result.suspicious_patterns.append("Excessive redirects detected")

        score = PATTERN_WEIGHT * len(result.suspicious_patterns)
        flags: list[str] = []

        if len(hops) > MAX_HOPS:
            score += MULTIPLE_REDIRECTS_WEIGHT
            flags.append(f"Multiple redirects detected ({len(hops)})")

        if result.shortener_hits:
            score += SHORTENER_WEIGHT
            names = ", ".join(dict.fromkeys(hit.domain for hit in result.shortener_hits))
            flags.append(f"URL shortener in redirect chain: {names}")

        if result.domain_change_count > MAX_DOMAIN_CHANGES:
            score += DOMAIN_CHURN_WEIGHT
            flags.append(f"Redirect chain changes domain {result.domain_change_count} times")

        if seen_https and seen_http:
            result.protocol_downgrade = True
            score += PROTOCOL_DOWNGRADE_WEIGHT
            flags.append("Protocol downgrade detected (HTTPS to HTTP)")

        flags.extend(result.suspicious_patterns)

        if index is not None and final_domain and (
            index.lookup_exact(final_domain) or index.lookup_subdomain_of(final_domain)
        ):
            score += VERIFIED_DESTINATION_WEIGHT
            flags.append("Redirect ends at verified destination")

        result.score = score
        result.flags = flags
        result.risk_level = RiskLevel.from_score(score)
        return result

    def run(self, context: ScanContext) -> LayerResult:
        result = self.analyze(context.redirect_chain, context.index)
        context.details[self.key] = result
        return LayerResult(score=result.score, flags=list(result.flags))
