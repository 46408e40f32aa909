"""Tests for the heuristic rule set."""

import random

import pytest

from paysavvy.analyzers.heuristics import DEFAULT_RULES, HeuristicAnalyzer
from paysavvy.models import RiskLevel


@pytest.fixture
def analyzer():
    return HeuristicAnalyzer()


def _names(result):
    return {flag.name for flag in result.flags}


def test_scam_url_triggers_multiple_rules(analyzer):
    result = analyzer.evaluate("http://mayb4nk-verify.tk/secure-login")
    assert _names(result) == {
        "Suspicious TLD",
        "Bank Typosquatting",
        "Urgency Words",
        "Suspicious Subdomain",
    }
    assert result.score == 11
    assert result.risk_level is RiskLevel.DANGEROUS


def test_genuine_bank_url_is_clean(analyzer):
    result = analyzer.evaluate("https://maybank2u.com.my/login")
    assert result.score == 0
    assert result.flags == []
    assert result.risk_level is RiskLevel.SAFE


def test_genuine_bank_name_is_not_typosquatting(analyzer):
    assert "Bank Typosquatting" not in _names(analyzer.evaluate("https://www.cimb.com.my/"))
    assert "Bank Typosquatting" in _names(analyzer.evaluate("https://c1mb-online.com/"))
    assert "Bank Typosquatting" in _names(analyzer.evaluate("https://rnaybank.com/"))


def test_ip_address_host(analyzer):
    result = analyzer.evaluate("http://192.168.10.5/bayar")
    assert _names(result) == {"IP Address", "Payment Keywords"}
    assert result.score == 4


def test_url_shortener(analyzer):
    result = analyzer.evaluate("https://bit.ly/3xYz")
    assert _names(result) == {"URL Shortener"}
    assert result.score == 2


def test_keywords_are_cumulative(analyzer):
    result = analyzer.evaluate("https://example.com/urgent/verify/claim")
    assert [f.name for f in result.flags] == ["Urgency Words"] * 3
    assert result.score == 6


def test_agency_lure(analyzer):
    result = analyzer.evaluate("https://lhdn-refund.com/")
    assert "Agency Lure" in _names(result)
    assert "Payment Keywords" in _names(result)


def test_structural_rules(analyzer):
    assert "Suspicious Port" in _names(analyzer.evaluate("https://example.com:8443/"))
    assert "Suspicious Port" not in _names(analyzer.evaluate("https://example.com:443/"))
    assert "Hyphenated Domain" in _names(analyzer.evaluate("https://a-b-c-d-e.com/"))
    assert "Multiple Subdomains" in _names(analyzer.evaluate("https://a.b.c.example.com/"))
    assert "Homograph Attack" in _names(analyzer.evaluate("https://раypal.com/"))
    assert "Homograph Attack" in _names(analyzer.evaluate("https://xn--pypal-4ve.com/"))
    assert "Long URL" in _names(analyzer.evaluate("https://example.com/" + "a" * 100))


def test_structural_rules_outweigh_keywords():
    weights = {rule.name: rule.weight for rule in DEFAULT_RULES}
    keyword_max = max(weights["Urgency Words"], weights["Payment Keywords"])
    for structural in ("Suspicious TLD", "Bank Typosquatting", "IP Address"):
        assert weights[structural] > keyword_max
    assert weights["Bank Typosquatting"] == max(weights.values())


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_rule_order_does_not_change_outcome(seed):
    url = "http://mayb4nk-secure-verify-update-now.tk:8080/urgent/payment?claim=prize"
    baseline = HeuristicAnalyzer().evaluate(url)

    shuffled = list(DEFAULT_RULES)
    random.Random(seed).shuffle(shuffled)
    result = HeuristicAnalyzer(rules=tuple(shuffled)).evaluate(url)

    assert result.score == baseline.score
    assert sorted(result.flags, key=repr) == sorted(baseline.flags, key=repr)


def test_malformed_url_degrades_to_analysis_error(analyzer):
    result = analyzer.evaluate("http://[::1")
    assert result.score == 0
    assert [f.name for f in result.flags] == ["Analysis Error"]
    assert result.flags[0].weight == 0


@pytest.mark.parametrize("url", [None, 42, b"https://maybank2u.com.my/"])
def test_non_string_url_degrades_to_analysis_error(analyzer, url):
    result = analyzer.evaluate(url)
    assert result.score == 0
    assert [f.name for f in result.flags] == ["Analysis Error"]


def test_config_overrides_tld_list():
    analyzer = HeuristicAnalyzer({"suspicious_tlds": [".shop"], "url_shorteners": ["lnk.to"]})
    assert "Suspicious TLD" in _names(analyzer.evaluate("https://deals.shop/"))
    assert "Suspicious TLD" not in _names(analyzer.evaluate("https://deals.tk/"))
    assert "URL Shortener" in _names(analyzer.evaluate("https://lnk.to/abc"))
