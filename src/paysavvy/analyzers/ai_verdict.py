"""Integration of an external AI classifier's verdict.

The classifier call itself lives outside PaySavvy. This module builds the
prompt sent to it and maps the structured verdict it returns onto a score
contribution.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from typing import Any, Iterable, Mapping

from paysavvy.analyzers.base import BaseAnalyzer, ScanContext
from paysavvy.brands import BrandIndex
from paysavvy.models import AIVerdict, AnalysisResult, LayerResult, RedirectAnalysisResult

logger = logging.getLogger(__name__)

RISK_SCORES: dict[str, int] = {
    "dangerous": 4,
    "suspicious": 2,
    "safe": -1,
}
IMPERSONATION_BONUS = 2

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

_RESPONSE_FORMAT = """{
  "riskLevel": "safe|suspicious|dangerous",
  "confidence": 0.0-1.0,
  "explanation": "short explanation for the user",
  "impersonatedBrand": "brand name or empty string"
}"""


def build_ai_prompt(
    url: str,
    index: BrandIndex,
    heuristics: AnalysisResult | None = None,
    redirects: RedirectAnalysisResult | None = None,
    redirect_chain: Iterable[str] = (),
    region: str = "Malaysia",
    sample_size: int = 20,
) -> str:
    """Build the classifier prompt for one URL.

    The reply format matches what ``parse_ai_response`` reads back.

    Args:
        url: The URL under review.
        index: Brand index; a sample of verified domains is listed as context.
        heuristics: Heuristic result whose flags are included, if available.
        redirects: Redirect analysis whose risk level is included, if available.
        redirect_chain: Hop URLs in order, if the link was resolved.
        region: The user's region.
        sample_size: Maximum number of verified domains to list.

    Returns:
        The prompt text.
    """
    lines = [
        f"Analyze this URL for payment or banking scam indicators targeting users in {region}:",
        "",
        f"URL: {url}",
        "",
        "Context:",
        f"- User Region: {region}",
    ]

    verified = index.verified_domains_sample(sample_size)
    if verified:
        lines.append(f"- Known legitimate domains: {', '.join(verified)}")

    hops = list(redirect_chain)
    if len(hops) > 1:
        lines.append(f"- Redirect Chain: {' -> '.join(hops)}")
    if redirects is not None and (hops or redirects.flags):
        lines.append(f"- Redirect Analysis: {redirects.risk_level.value} risk")

    if heuristics is not None and heuristics.flags:
        lines.append("- Detected flags:")
        lines.extend(f"  - {flag.description}" for flag in heuristics.flags)

    lines += ["", "Respond in JSON format only:", _RESPONSE_FORMAT]
    return "\n".join(lines)


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_confidence(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    return max(0.0, min(1.0, confidence))


def coerce_verdict(value: AIVerdict | Mapping[str, Any] | None) -> AIVerdict | None:
    """Turn a verdict mapping into an AIVerdict; unknown keys are ignored.

    Accepts both the camelCase keys emitted by the classifier prompt
    (``riskLevel``, ``impersonatedBrand``) and snake_case equivalents.
    Returns None when there is no risk label at all.
    """
    if value is None:
        return None
    if isinstance(value, AIVerdict):
        return replace(value, confidence=_as_confidence(value.confidence))
    if not isinstance(value, Mapping):
        logger.warning("Ignoring AI verdict of unexpected type %s", type(value).__name__)
        return None

    risk = _first(value, "risk", "riskLevel", "risk_level")
    if risk is None:
        return None
    return AIVerdict(
        risk=str(risk),
        reason=str(_first(value, "reason", "explanation") or ""),
        impersonated_brand=str(
            _first(value, "impersonatedBrand", "impersonated_brand") or ""
        ),
        confidence=_as_confidence(value.get("confidence")),
    )


def parse_ai_response(text: str) -> AIVerdict | None:
    """Parse a raw classifier reply (JSON, optionally in a code fence).

    Args:
        text: The model's message content.

    Returns:
        The parsed AIVerdict, or None if the reply is not a usable verdict.
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("AI response is not valid JSON: %s", exc)
        return None
    return coerce_verdict(data)


class AIVerdictAnalyzer(BaseAnalyzer):
    """Map an AI verdict onto a score; a missing verdict contributes nothing."""

    name = "AI Analysis"
    key = "ai_analysis"

    def integrate(self, verdict: AIVerdict | Mapping[str, Any] | None) -> LayerResult:
        verdict = coerce_verdict(verdict)
        if verdict is None or not verdict.risk:
            return LayerResult()

        label = verdict.risk.strip().lower()
        score = RISK_SCORES.get(label, 0)
        flags: list[str] = []

        if label == "dangerous":
            flags.append(f"AI flagged as dangerous: {verdict.reason or 'High risk detected'}")
        elif label == "suspicious":
            flags.append(f"AI suggests caution: {verdict.reason or 'Potential risk'}")
        elif label == "safe":
            flags.append("AI assessment: Safe")
        else:
            flags.append("AI analysis: Inconclusive")

        if verdict.impersonated_brand:
            score += IMPERSONATION_BONUS
            flags.append(f"AI detected brand impersonation: {verdict.impersonated_brand}")

        return LayerResult(score=score, flags=flags)

    def run(self, context: ScanContext) -> LayerResult:
        context.details[self.key] = context.ai_verdict
        return self.integrate(context.ai_verdict)
