"""Tests for trust-level classification and confidence."""

import pytest

from paysavvy.models import AIVerdict, TrustLevel
from paysavvy.scoring import calculate_confidence, classify


@pytest.mark.parametrize(
    "score,verified,expected",
    [
        (7, False, TrustLevel.DANGEROUS),
        (12, False, TrustLevel.DANGEROUS),
        (6, False, TrustLevel.SUSPICIOUS),
        (3, False, TrustLevel.SUSPICIOUS),
        (2, False, TrustLevel.UNKNOWN),
        (0, False, TrustLevel.UNKNOWN),
        (-2, False, TrustLevel.UNKNOWN),
        (-3, False, TrustLevel.SAFE),
        (0, True, TrustLevel.SAFE),
        (-5, True, TrustLevel.SAFE),
        (1, True, TrustLevel.UNKNOWN),
        (7, True, TrustLevel.DANGEROUS),
    ],
)
def test_classify(score, verified, expected):
    assert classify(score, verified) is expected


def test_verified_brand_confidence_wins():
    verdict = AIVerdict(risk="Dangerous", confidence=0.4)
    assert calculate_confidence(True, verdict, 5) == 0.95


def test_ai_confidence_beats_flag_count():
    verdict = AIVerdict(risk="Suspicious", confidence=0.6)
    assert calculate_confidence(False, verdict, 5) == pytest.approx(0.6)


def test_ai_verdict_without_confidence_falls_through():
    verdict = AIVerdict(risk="Suspicious")
    assert calculate_confidence(False, verdict, 3) == 0.85
    assert calculate_confidence(False, verdict, 2) == 0.7


def test_default_confidence():
    assert calculate_confidence(False, None, 0) == 0.7


@pytest.mark.parametrize("raw,expected", [(5.0, 1.0), (-0.3, 0.0), (0.42, 0.42)])
def test_ai_confidence_is_clamped(raw, expected):
    verdict = AIVerdict(risk="Suspicious", confidence=raw)
    assert calculate_confidence(False, verdict, 0) == pytest.approx(expected)
