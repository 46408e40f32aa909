"""Weighted heuristic rules over the raw URL string."""

from __future__ import annotations

import re
from ipaddress import ip_address
from typing import Any, Callable
from urllib.parse import urlparse

from paysavvy.analyzers.base import BaseAnalyzer, ScanContext
from paysavvy.config import get_list
from paysavvy.models import AnalysisResult, HeuristicFlag, HeuristicRule, LayerResult
from paysavvy.urls import extract, normalize_domain

DEFAULT_SUSPICIOUS_TLDS = (
    "tk", "ml", "ga", "cf", "gq", "pw", "top", "xyz", "click",
    "download", "bid", "win", "ru", "info", "biz",
)

DEFAULT_URL_SHORTENERS = (
    "bit.ly", "tinyurl.com", "t.co", "goo.gl", "ow.ly", "is.gd",
    "buff.ly", "short.link", "rebrand.ly", "cutt.ly", "tiny.cc",
)

URGENCY_KEYWORDS = (
    "urgent", "immediately", "expire", "suspend", "blocked", "limited",
    "verify", "update", "confirm", "claim", "winner", "prize",
)

PAYMENT_KEYWORDS = ("payment", "transfer", "banking", "refund", "bayar", "wallet")

# Government agencies whose names are common lures in Malaysian scams.
AGENCY_LURES = ("lhdn", "kwsp", "pdrm", "banknegara")

# Look-alike spellings of bank names; the genuine spelling is excluded.
_TYPOSQUAT_PATTERNS: dict[str, str] = {
    "maybank": r"(?:m|rn)[a4@]yb[a4@]nk",
    "cimb": r"c[i1!l]mb",
    "public": r"publ[i1!l]c",
    "hongleong": r"h[o0]n[g9]le[o0]n[g9]",
    "ambank": r"[a4@](?:m|rn)b[a4@]nk",
    "uob": r"u[o0]b",
    "paypal": r"p[a4@]yp[a4@][l1i]",
}
_TYPOSQUAT_RE = re.compile("|".join(f"(?:{p})" for p in _TYPOSQUAT_PATTERNS.values()))

_SUSPICIOUS_PREFIX_RE = re.compile(r"(secure-|login-|verify-|update-|payment-|bank-)")

MAX_HYPHENS = 3
MAX_SUBDOMAIN_LEVELS = 2
MAX_URL_LENGTH = 100
_STANDARD_PORTS = {80, 443}

Predicate = Callable[[str], "list[str] | None"]


def _hostname(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def _keyword_predicate(keywords: tuple[str, ...], template: str) -> Predicate:
    def predicate(url: str) -> list[str] | None:
        url_lower = url.lower()
        hits = [template.format(kw) for kw in keywords if kw in url_lower]
        return hits or None
    return predicate


def _suspicious_tld_predicate(tlds: frozenset[str]) -> Predicate:
    def predicate(url: str) -> list[str] | None:
        hostname = _hostname(url)
        suffix = extract(hostname).suffix or hostname
        tld = suffix.rsplit(".", 1)[-1]
        if tld in tlds:
            return [f"High-risk TLD detected: .{tld}"]
        return None
    return predicate


def _shortener_predicate(shorteners: frozenset[str]) -> Predicate:
    def predicate(url: str) -> list[str] | None:
        domain = normalize_domain(_hostname(url))
        for shortener in shorteners:
            if domain == shortener or domain.endswith("." + shortener):
                return [f"URL shortener detected: {shortener}"]
        return None
    return predicate


def _typosquatting(url: str) -> list[str] | None:
    genuine = set(_TYPOSQUAT_PATTERNS)
    lookalikes = sorted({
        m.group(0) for m in _TYPOSQUAT_RE.finditer(url.lower()) if m.group(0) not in genuine
    })
    if lookalikes:
        return [f"Bank name spelled with look-alike characters: {', '.join(lookalikes)}"]
    return None


def _ip_host(url: str) -> list[str] | None:
    hostname = _hostname(url)
    try:
        ip_address(hostname)
    except ValueError:
        return None
    return [f"IP address instead of domain name: {hostname}"]


def _suspicious_prefix(url: str) -> list[str] | None:
    prefixes = sorted(set(_SUSPICIOUS_PREFIX_RE.findall(url.lower())))
    if prefixes:
        return [f"Suspicious subdomain pattern: {', '.join(prefixes)}"]
    return None


def _many_hyphens(url: str) -> list[str] | None:
    count = _hostname(url).count("-")
    if count > MAX_HYPHENS:
        return [f"Multiple hyphens in domain ({count})"]
    return None


def _homograph(url: str) -> list[str] | None:
    hostname = _hostname(url)
    try:
        hostname.encode("ascii")
    except UnicodeEncodeError:
        return ["Hostname contains non-Latin characters (possible homograph attack)"]
    if any(label.startswith("xn--") for label in hostname.split(".")):
        return ["Hostname uses punycode (possible homograph attack)"]
    return None


def _subdomain_depth(url: str) -> list[str] | None:
    subdomain = extract(_hostname(url)).subdomain
    levels = len(subdomain.split(".")) if subdomain else 0
    if levels > MAX_SUBDOMAIN_LEVELS:
        return [f"Excessive subdomain depth ({levels} levels)"]
    return None


def _non_standard_port(url: str) -> list[str] | None:
    port = urlparse(url).port
    if port is not None and port not in _STANDARD_PORTS:
        return [f"Non-standard port: {port}"]
    return None


def _long_url(url: str) -> list[str] | None:
    if len(url) > MAX_URL_LENGTH:
        return [f"Extremely long URL ({len(url)} characters)"]
    return None


def build_rules(
    suspicious_tlds: tuple[str, ...] | list[str] = DEFAULT_SUSPICIOUS_TLDS,
    url_shorteners: tuple[str, ...] | list[str] = DEFAULT_URL_SHORTENERS,
) -> tuple[HeuristicRule, ...]:
    """Build the full heuristic rule list.

    Structural rules (TLD, typosquatting, IP host) outweigh single keyword
    hits. Keyword rules raise one flag per matched keyword.
    """
    return (
        HeuristicRule("Suspicious TLD", "Uses suspicious top-level domain", 3,
                      _suspicious_tld_predicate(frozenset(suspicious_tlds))),
        HeuristicRule("Bank Typosquatting", "Mimics bank names with character substitution", 4,
                      _typosquatting),
        HeuristicRule("IP Address", "Uses IP address instead of domain name", 3, _ip_host),
        HeuristicRule("URL Shortener", "Uses URL shortening service", 2,
                      _shortener_predicate(frozenset(url_shorteners))),
        HeuristicRule("Suspicious Subdomain", "Uses suspicious subdomain pattern", 2,
                      _suspicious_prefix),
        HeuristicRule("Urgency Words", "Uses urgency tactics", 2,
                      _keyword_predicate(URGENCY_KEYWORDS, "Scam keyword detected: {}")),
        HeuristicRule("Payment Keywords", "Contains payment-related keywords", 1,
                      _keyword_predicate(PAYMENT_KEYWORDS, "Payment keyword detected: {}")),
        HeuristicRule("Agency Lure", "References a government agency often impersonated", 2,
                      _keyword_predicate(AGENCY_LURES, "Malaysian scam pattern: {}")),
        HeuristicRule("Hyphenated Domain", "Uses many hyphens in the domain", 1, _many_hyphens),
        HeuristicRule("Homograph Attack", "Contains characters that imitate Latin letters", 2,
                      _homograph),
        HeuristicRule("Multiple Subdomains", "Uses excessive subdomain depth", 1,
                      _subdomain_depth),
        HeuristicRule("Suspicious Port", "Uses non-standard port number", 2,
                      _non_standard_port),
        HeuristicRule("Long URL", "URL is unusually long", 1, _long_url),
    )


DEFAULT_RULES = build_rules()


def _error_result(reason: object) -> AnalysisResult:
    return AnalysisResult(
        score=0,
        flags=[HeuristicFlag("Analysis Error", f"Could not analyze URL: {reason}", 0)],
    )


class HeuristicAnalyzer(BaseAnalyzer):
    """Score a raw URL against the weighted heuristic rules.

    Rules are independent: every rule that matches adds its flags and
    weight, so evaluation order never changes the outcome.
    """

    name = "Heuristic Analysis"
    key = "heuristics"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        rules: tuple[HeuristicRule, ...] | None = None,
    ) -> None:
        super().__init__(config)
        if rules is not None:
            self.rules = rules
        elif config:
            self.rules = build_rules(
                get_list(config, "suspicious_tlds") or DEFAULT_SUSPICIOUS_TLDS,
                get_list(config, "url_shorteners") or DEFAULT_URL_SHORTENERS,
            )
        else:
            self.rules = DEFAULT_RULES

    def evaluate(self, url: str) -> AnalysisResult:
        """Evaluate every rule against the URL.

        Args:
            url: The raw URL string.

        Returns:
            AnalysisResult with the summed weight and one flag per hit. A URL
            that cannot be parsed yields a zero score and an Analysis Error flag.
        """
        if not isinstance(url, str):
            return _error_result(f"expected a string, got {type(url).__name__}")

        result = AnalysisResult()
        try:
            for rule in self.rules:
                for description in rule.predicate(url) or []:
                    result.flags.append(HeuristicFlag(rule.name, description, rule.weight))
                    result.score += rule.weight
        except (ValueError, TypeError, AttributeError) as exc:
            return _error_result(exc)
        return result

    def run(self, context: ScanContext) -> LayerResult:
        result = self.evaluate(context.url)
        context.details[self.key] = result
        return LayerResult(
            score=result.score,
            flags=[flag.description for flag in result.flags],
        )
