"""Trust-level classification and confidence for PaySavvy assessments.

The four layer scores are summed into one integer. Classification then
applies a verified-brand override before the plain score thresholds, so a
genuine bank domain that trips a few low-weight heuristics still reads as
Safe as long as the combined score stays at or below zero.
"""

from __future__ import annotations

from paysavvy.models import AIVerdict, TrustLevel

DEFAULT_CONFIDENCE = 0.7
VERIFIED_BRAND_CONFIDENCE = 0.95
MULTI_SIGNAL_CONFIDENCE = 0.85
MULTI_SIGNAL_MIN_FLAGS = 3
ERROR_CONFIDENCE = 0.1

DANGEROUS_MIN = 7
SUSPICIOUS_MIN = 3
SAFE_MAX = -3


def calculate_confidence(
    verified_brand: bool,
    ai_verdict: AIVerdict | None,
    flag_count: int,
) -> float:
    """Pick the assessment confidence.

    Exactly one raise applies, in priority order: verified brand, the AI
    verdict's own confidence, then three or more flags across all layers.

    Args:
        verified_brand: Whether the brand layer matched a verified domain.
        ai_verdict: The AI verdict, if one was supplied.
        flag_count: Number of reasons collected across all layers.

    Returns:
        Confidence in [0, 1].
    """
    if verified_brand:
        return VERIFIED_BRAND_CONFIDENCE
    if ai_verdict is not None and ai_verdict.confidence is not None:
        return max(0.0, min(1.0, ai_verdict.confidence))
    if flag_count >= MULTI_SIGNAL_MIN_FLAGS:
        return MULTI_SIGNAL_CONFIDENCE
    return DEFAULT_CONFIDENCE


def classify(score: int, verified_brand: bool) -> TrustLevel:
    """Map a combined score to a trust level; the first matching rule wins.

    Args:
        score: Sum of all layer scores.
        verified_brand: Whether the brand layer matched a verified domain.

    Returns:
        The TrustLevel.
    """
    if verified_brand and score <= 0:
        return TrustLevel.SAFE
    if score >= DANGEROUS_MIN:
        return TrustLevel.DANGEROUS
    if score >= SUSPICIOUS_MIN:
        return TrustLevel.SUSPICIOUS
    if score <= SAFE_MAX:
        return TrustLevel.SAFE
    return TrustLevel.UNKNOWN
