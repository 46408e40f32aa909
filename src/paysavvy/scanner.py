"""Layered risk scorer: the single entry point for assessing a URL."""

from __future__ import annotations

import concurrent.futures
import hashlib
import json
import logging
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Union

from paysavvy.analyzers import ALL_ANALYZERS
from paysavvy.analyzers.ai_verdict import coerce_verdict
from paysavvy.analyzers.base import BaseAnalyzer, ScanContext
from paysavvy.analyzers.redirects import coerce_chain
from paysavvy.brands import BrandIndex, build_index
from paysavvy.models import (
    AIVerdict,
    BrandMatchResult,
    LayerResult,
    RiskAssessment,
    TrustLevel,
)
from paysavvy.scoring import ERROR_CONFIDENCE, calculate_confidence, classify
from paysavvy.urls import URLParseError, parse_url

logger = logging.getLogger(__name__)

BrandSource = Union[BrandIndex, Mapping[str, Any]]

# ---------------------------------------------------------------------------
# Brand index cache
# ---------------------------------------------------------------------------
# Indexes are immutable once built, so one instance per distinct dataset can
# be shared by every scan (and every thread).

_INDEX_CACHE_SIZE = 8
_index_cache: OrderedDict[str, BrandIndex] = OrderedDict()
_index_cache_lock = threading.Lock()


def _dataset_fingerprint(dataset: Mapping[str, Any]) -> str:
    payload = json.dumps(dataset, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def get_index(brand_source: BrandSource | None) -> BrandIndex:
    """Return a BrandIndex for a dataset, building it at most once.

    Args:
        brand_source: A prebuilt BrandIndex (returned as-is) or a raw
            dataset mapping. None yields an empty index.

    Returns:
        The BrandIndex.
    """
    if isinstance(brand_source, BrandIndex):
        return brand_source

    dataset = brand_source or {}
    try:
        key = _dataset_fingerprint(dataset)
    except (TypeError, ValueError) as exc:
        logger.debug("Brand dataset is not fingerprintable, building uncached: %s", exc)
        return build_index(dataset)

    with _index_cache_lock:
        index = _index_cache.get(key)
        if index is not None:
            _index_cache.move_to_end(key)
            logger.debug("Brand index cache hit (%s)", key[:12])
            return index

    index = build_index(dataset)

    with _index_cache_lock:
        _index_cache[key] = index
        while len(_index_cache) > _INDEX_CACHE_SIZE:
            _index_cache.popitem(last=False)
    return index


def clear_index_cache() -> None:
    """Drop every cached index; the next scan rebuilds from its dataset."""
    with _index_cache_lock:
        _index_cache.clear()


# ---------------------------------------------------------------------------
# Assessment
# ---------------------------------------------------------------------------

def _run_analyzer(analyzer: BaseAnalyzer, context: ScanContext) -> LayerResult:
    """Run a single layer, absorbing any fault as a zero-score flagged result.

    Args:
        analyzer: The layer to run.
        context: The per-scan context.

    Returns:
        The layer's LayerResult.
    """
    try:
        return analyzer.run(context)
    except Exception as exc:
        logger.warning("%s failed for %s: %s", analyzer.name, context.url, exc)
        return LayerResult(score=0, flags=[f"{analyzer.name} unavailable: {exc}"])


def _build_recommendation(trust_level: TrustLevel) -> str:
    """Generate advice for the end user based on the trust level.

    Args:
        trust_level: The final TrustLevel.

    Returns:
        A recommendation string.
    """
    recommendations = {
        TrustLevel.SAFE: "This link matches a verified institution. Stay vigilant anyway.",
        TrustLevel.SUSPICIOUS: (
            "This link has suspicious elements. Verify the sender through "
            "official channels before entering any details."
        ),
        TrustLevel.DANGEROUS: (
            "This link shows multiple dangerous characteristics. Do not open it "
            "or enter personal or banking information."
        ),
        TrustLevel.UNKNOWN: (
            "No obvious red flags detected. Always verify payment requests independently."
        ),
    }
    return recommendations.get(trust_level, "Unable to analyze this link.")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def assess_risk(
    url: str,
    brand_dataset: BrandSource | None,
    redirect_chain: Iterable[Any] | None = (),
    ai_verdict: AIVerdict | Mapping[str, Any] | None = None,
    config: dict[str, Any] | None = None,
) -> RiskAssessment:
    """Assess a URL through the heuristic, brand, redirect and AI layers.

    The only fatal path is a URL that cannot be parsed, which produces an
    Error assessment. Every layer is otherwise isolated: a fault inside one
    is logged and reported as a flag without aborting the others.

    Args:
        url: The URL to assess.
        brand_dataset: Raw brand dataset mapping or a prebuilt BrandIndex.
        redirect_chain: Already-resolved redirect hops, if any.
        ai_verdict: Verdict from an external AI classifier, if any.
        config: Optional loaded configuration (TLD and shortener lists).

    Returns:
        A RiskAssessment.
    """
    try:
        parsed = parse_url(url)
    except URLParseError as exc:
        return RiskAssessment(
            url=url if isinstance(url, str) else repr(url),
            trust_level=TrustLevel.ERROR,
            score=0,
            confidence=ERROR_CONFIDENCE,
            reasons=[f"URL parsing failed: {exc}"],
            layers={},
            timestamp=_timestamp(),
            recommendation=_build_recommendation(TrustLevel.ERROR),
        )

    verdict = coerce_verdict(ai_verdict)
    context = ScanContext(
        url=url,
        parsed=parsed,
        index=get_index(brand_dataset),
        redirect_chain=coerce_chain(redirect_chain),
        ai_verdict=verdict,
    )

    layers: dict[str, LayerResult] = {}
    for analyzer_cls in ALL_ANALYZERS:
        analyzer = analyzer_cls(config)
        layers[analyzer.key] = _run_analyzer(analyzer, context)

    score = sum(layer.score for layer in layers.values())
    reasons = [flag for layer in layers.values() for flag in layer.flags if flag]

    brand_match = context.details.get("brand_check")
    verified = isinstance(brand_match, BrandMatchResult) and brand_match.is_verified
    impersonated = ""
    if isinstance(brand_match, BrandMatchResult) and not verified:
        impersonated = brand_match.target_brand
    if not impersonated and verdict is not None:
        impersonated = verdict.impersonated_brand

    trust_level = classify(score, verified)
    return RiskAssessment(
        url=url,
        trust_level=trust_level,
        score=score,
        confidence=calculate_confidence(verified, verdict, len(reasons)),
        reasons=reasons,
        layers=layers,
        timestamp=_timestamp(),
        brand=brand_match.brand if verified else None,
        impersonated_brand=impersonated,
        recommendation=_build_recommendation(trust_level),
    )


def assess_many(
    urls: Iterable[str],
    brand_dataset: BrandSource | None,
    max_workers: int = 8,
    config: dict[str, Any] | None = None,
) -> list[RiskAssessment]:
    """Assess a batch of URLs concurrently.

    Scans are independent and share only the read-only brand index.

    Args:
        urls: URLs to assess.
        brand_dataset: Raw brand dataset mapping or a prebuilt BrandIndex.
        max_workers: Thread pool size.
        config: Optional loaded configuration.

    Returns:
        One RiskAssessment per URL, in input order.
    """
    url_list = list(urls)
    if not url_list:
        return []

    index = get_index(brand_dataset)
    workers = max(1, min(max_workers, len(url_list)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda u: assess_risk(u, index, config=config), url_list))
