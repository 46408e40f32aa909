"""Tests for AI verdict integration."""

import pytest

from paysavvy.analyzers.ai_verdict import (
    AIVerdictAnalyzer,
    build_ai_prompt,
    coerce_verdict,
    parse_ai_response,
)
from paysavvy.analyzers.heuristics import HeuristicAnalyzer
from paysavvy.analyzers.redirects import RedirectChainAnalyzer
from paysavvy.models import AIVerdict


@pytest.fixture
def analyzer():
    return AIVerdictAnalyzer()


def test_missing_verdict_contributes_nothing(analyzer):
    result = analyzer.integrate(None)
    assert result.score == 0
    assert result.flags == []


@pytest.mark.parametrize(
    "risk,score",
    [("Dangerous", 4), ("suspicious", 2), ("SAFE", -1), ("maybe", 0), ("Unknown", 0)],
)
def test_risk_label_mapping(analyzer, risk, score):
    assert analyzer.integrate({"risk": risk}).score == score


def test_inconclusive_label_is_flagged(analyzer):
    assert analyzer.integrate({"risk": "maybe"}).flags == ["AI analysis: Inconclusive"]


def test_reason_is_carried_into_flag(analyzer):
    result = analyzer.integrate({"risk": "Dangerous", "reason": "fake login page"})
    assert result.flags == ["AI flagged as dangerous: fake login page"]


def test_impersonated_brand_adds_bonus(analyzer):
    result = analyzer.integrate(AIVerdict(risk="Suspicious", impersonated_brand="Maybank"))
    assert result.score == 4
    assert "AI detected brand impersonation: Maybank" in result.flags


def test_coerce_ignores_unknown_fields_and_clamps_confidence():
    verdict = coerce_verdict({
        "riskLevel": "Dangerous",
        "impersonatedBrand": "CIMB",
        "confidence": 1.5,
        "scamType": "phishing",
    })
    assert verdict == AIVerdict(risk="Dangerous", impersonated_brand="CIMB", confidence=1.0)


def test_coerce_without_risk_label():
    assert coerce_verdict({"reason": "no label"}) is None
    assert coerce_verdict("Dangerous") is None


def test_parse_fenced_ai_response():
    text = '```json\n{"risk": "Suspicious", "reason": "urgent tone", "confidence": 0.6}\n```'
    verdict = parse_ai_response(text)
    assert verdict.risk == "Suspicious"
    assert verdict.reason == "urgent tone"
    assert verdict.confidence == pytest.approx(0.6)


def test_parse_invalid_ai_response():
    assert parse_ai_response("I think this link is fine.") is None
    assert parse_ai_response("") is None


def test_typed_verdict_confidence_is_clamped():
    verdict = coerce_verdict(AIVerdict(risk="Suspicious", confidence=5.0))
    assert verdict.confidence == 1.0
    assert verdict.risk == "Suspicious"


def test_prompt_carries_context(index):
    url = "http://mayb4nk-verify.tk/"
    chain = ["https://bit.ly/x", url]
    prompt = build_ai_prompt(
        url,
        index,
        heuristics=HeuristicAnalyzer().evaluate(url),
        redirects=RedirectChainAnalyzer().analyze(chain, index),
        redirect_chain=chain,
    )
    assert f"URL: {url}" in prompt
    assert "maybank2u.com.my" in prompt
    assert "High-risk TLD detected: .tk" in prompt
    assert "- Redirect Chain: https://bit.ly/x -> http://mayb4nk-verify.tk/" in prompt
    assert "- Redirect Analysis: dangerous risk" in prompt
    assert '"riskLevel"' in prompt and '"impersonatedBrand"' in prompt


def test_prompt_limits_domain_sample(index):
    prompt = build_ai_prompt("https://example.com/", index, sample_size=1)
    assert "- Known legitimate domains: maybank2u.com.my\n" in prompt
    assert "Redirect" not in prompt
    assert "Detected flags" not in prompt


def test_reply_in_prompted_format_parses():
    reply = '{"riskLevel": "dangerous", "confidence": 0.9, "explanation": "fake bank", "impersonatedBrand": "Maybank"}'
    verdict = parse_ai_response(reply)
    assert verdict == AIVerdict(
        risk="dangerous", reason="fake bank", impersonated_brand="Maybank", confidence=0.9,
    )
