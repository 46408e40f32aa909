"""Tests for the command-line entry point."""

import json

import pytest

from paysavvy.cli import main

MAYBANK_URL = "https://www.maybank2u.com.my/"


def test_json_output_single_url(capsys):
    assert main(["--json", MAYBANK_URL]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["trust_level"] == "Safe"
    assert data["brand"]["name"] == "Maybank"


def test_json_output_many_urls(capsys):
    assert main(["--json", MAYBANK_URL, "https://example.tk/"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [d["trust_level"] for d in data] == ["Safe", "Suspicious"]


def test_redirect_and_ai_verdict(capsys):
    code = main([
        "--json",
        "--redirect", "https://bit.ly/x",
        "--redirect", "http://promo.tk/",
        "--ai-verdict", '{"risk": "Dangerous", "confidence": 0.9}',
        "https://bit.ly/x",
    ])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["layers"]["ai_analysis"]["score"] == 4
    assert data["layers"]["redirects"]["score"] > 0
    assert data["confidence"] == pytest.approx(0.9)


def test_redirect_with_many_urls_is_rejected():
    assert main(["--redirect", "https://bit.ly/x", "https://a.com/", "https://b.com/"]) == 2


def test_missing_config_file(tmp_path):
    assert main(["-c", str(tmp_path / "absent.yaml"), MAYBANK_URL]) == 1


def test_missing_brand_dataset(tmp_path):
    assert main(["--brands", str(tmp_path / "absent.yaml"), MAYBANK_URL]) == 1


def test_history_is_recorded(tmp_path, capsys):
    path = tmp_path / "scans.json"
    assert main(["--json", "--history", str(path), MAYBANK_URL]) == 0
    entries = json.loads(path.read_text(encoding="utf-8"))
    assert entries[0]["url"] == MAYBANK_URL
    assert entries[0]["domain"] == "maybank2u.com.my"


def test_rich_output(capsys):
    assert main(["--no-color", "-v", "http://mayb4nk-verify.tk/secure-login"]) == 0
    out = capsys.readouterr().out
    assert "Dangerous" in out
    assert "PaySavvy Link Check" in out


def test_ai_prompt_output(capsys):
    assert main(["--ai-prompt", "--redirect", "https://bit.ly/x", "--redirect", MAYBANK_URL, "https://bit.ly/x"]) == 0
    out = capsys.readouterr().out
    assert "URL: https://bit.ly/x" in out
    assert "Redirect Chain: https://bit.ly/x -> https://www.maybank2u.com.my/" in out
    assert "Known legitimate domains:" in out


def test_ai_prompt_with_many_urls_is_rejected():
    assert main(["--ai-prompt", "https://a.com/", "https://b.com/"]) == 2
