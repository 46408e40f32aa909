"""Shared fixtures for PaySavvy tests."""

from __future__ import annotations

import copy

import pytest

from paysavvy.brands import build_index
from paysavvy.scanner import clear_index_cache

DATASET = {
    "metadata": {"version": "test", "lastUpdated": "2024-01-01"},
    "malaysia": {
        "Maybank": {
            "domains": ["maybank2u.com.my", "www.Maybank.com.my"],
            "commonScamMimics": ["maybank2u-my.com", "WWW.may-bank.com"],
            "countryCode": "MY",
            "logo": "https://example.org/maybank.png",
            "established": 1960,
        },
        "CIMB": {
            "domains": ["cimbclicks.com.my"],
            "commonScamMimics": ["cimb-clicks.com"],
            "countryCode": "MY",
        },
    },
    "international": {
        "PayPal": {
            "domains": ["paypal.com"],
            "commonScamMimics": ["paypal-verify.com"],
            "countryCode": "US",
        },
    },
}


@pytest.fixture
def dataset():
    return copy.deepcopy(DATASET)


@pytest.fixture
def index(dataset):
    return build_index(dataset)


@pytest.fixture(autouse=True)
def _fresh_index_cache():
    clear_index_cache()
    yield
    clear_index_cache()
