"""Data models for PaySavvy risk assessments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class TrustLevel(Enum):
    """Final classification for a scanned URL."""

    SAFE = "Safe"
    SUSPICIOUS = "Suspicious"
    DANGEROUS = "Dangerous"
    UNKNOWN = "Unknown"
    ERROR = "Error"


class RiskLevel(Enum):
    """Per-layer risk bucket used by the heuristic and redirect layers."""

    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"

    @classmethod
    def from_score(cls, score: int) -> RiskLevel:
        """Bucket a layer score: 5+ is dangerous, 3+ suspicious."""
        if score >= 5:
            return cls.DANGEROUS
        if score >= 3:
            return cls.SUSPICIOUS
        return cls.SAFE


class MatchType(Enum):
    """How a hostname related to the brand registry."""

    EXACT = "exact"
    SUBDOMAIN = "subdomain"
    KNOWN_SCAM = "known_scam"
    IMPERSONATION = "impersonation"
    NONE = "none"


# ---------------------------------------------------------------------------
# Brand registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BrandRecord:
    """A verified financial institution or payment service."""

    name: str
    region: str
    domains: tuple[str, ...]
    scam_mimics: tuple[str, ...] = ()
    country_code: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "region": self.region,
            "domains": list(self.domains),
            "scam_mimics": list(self.scam_mimics),
            "country_code": self.country_code,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ScamMimicRecord:
    """A known scam domain and the brand it imitates."""

    domain: str
    target_brand: str
    region: str
    legitimate_domains: tuple[str, ...]


# ---------------------------------------------------------------------------
# Heuristics layer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HeuristicRule:
    """A named, weighted predicate over a raw URL string.

    The predicate returns None when the rule does not fire, otherwise a
    list of match descriptions (one flag is raised per entry).
    """

    name: str
    description: str
    weight: int
    predicate: Callable[[str], list[str] | None] = field(compare=False)


@dataclass(frozen=True)
class HeuristicFlag:
    """A single triggered heuristic rule."""

    name: str
    description: str
    weight: int


@dataclass
class AnalysisResult:
    """Output of the heuristic rule set."""

    score: int = 0
    flags: list[HeuristicFlag] = field(default_factory=list)

    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel.from_score(self.score)


# ---------------------------------------------------------------------------
# Brand check layer
# ---------------------------------------------------------------------------

@dataclass
class BrandMatchResult:
    """Output of the brand check layer.

    ``brand`` is the verified brand for exact/subdomain matches and the
    imitated brand for known_scam/impersonation matches (when it can be
    resolved from the registry).
    """

    score: int = 0
    brand: BrandRecord | None = None
    flags: list[str] = field(default_factory=list)
    match_type: MatchType = MatchType.NONE
    confidence: float = 0.6
    similarity: float | None = None
    target_brand: str = ""

    @property
    def is_verified(self) -> bool:
        return self.match_type in (MatchType.EXACT, MatchType.SUBDOMAIN)


# ---------------------------------------------------------------------------
# Redirect layer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RedirectHop:
    """One resolved hop of a redirect chain."""

    url: str
    status: int | None = None


@dataclass(frozen=True)
class ShortenerHit:
    """A redirect hop served by a known URL shortener."""

    domain: str
    position: int
    url: str


@dataclass
class RedirectAnalysisResult:
    """Output of the redirect chain analyzer."""

    score: int = 0
    suspicious_patterns: list[str] = field(default_factory=list)
    shortener_hits: list[ShortenerHit] = field(default_factory=list)
    domain_change_count: int = 0
    protocol_downgrade: bool = False
    risk_level: RiskLevel = RiskLevel.SAFE
    flags: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# AI verdict layer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AIVerdict:
    """Structured verdict from an external LLM classifier."""

    risk: str
    reason: str = ""
    impersonated_brand: str = ""
    confidence: float | None = None


# ---------------------------------------------------------------------------
# Final assessment
# ---------------------------------------------------------------------------

@dataclass
class LayerResult:
    """Score and flags retained for one evaluation layer."""

    score: int = 0
    flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "flags": list(self.flags)}


LAYER_NAMES = ("heuristics", "brand_check", "redirects", "ai_analysis")


@dataclass
class RiskAssessment:
    """Final aggregated risk assessment for one URL."""

    url: str
    trust_level: TrustLevel
    score: int
    confidence: float
    reasons: list[str]
    layers: dict[str, LayerResult]
    timestamp: str
    brand: BrandRecord | None = None
    impersonated_brand: str = ""
    recommendation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dict."""
        return {
            "url": self.url,
            "trust_level": self.trust_level.value,
            "score": self.score,
            "confidence": self.confidence,
            "brand": self.brand.to_dict() if self.brand else None,
            "impersonated_brand": self.impersonated_brand or None,
            "reasons": list(self.reasons),
            "recommendation": self.recommendation,
            "layers": {name: layer.to_dict() for name, layer in self.layers.items()},
            "timestamp": self.timestamp,
        }
