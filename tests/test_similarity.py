"""Tests for the string similarity engine."""

import itertools

import pytest

from paysavvy.similarity import (
    edit_distance,
    has_character_substitution,
    impersonation_confidence,
    is_impersonation_similarity,
    similarity,
)

DOMAINS = ["maybank2u.com.my", "mayb4nk2u.com.my", "paypal.com", "paypa1.com", "cimb.com", "", "a"]


@pytest.mark.parametrize("value", DOMAINS)
def test_similarity_identity(value):
    assert similarity(value, value) == 1.0
    assert edit_distance(value, value) == 0


@pytest.mark.parametrize("a,b", list(itertools.combinations(DOMAINS, 2)))
def test_similarity_and_distance_are_symmetric(a, b):
    assert similarity(a, b) == similarity(b, a)
    assert edit_distance(a, b) == edit_distance(b, a)


@pytest.mark.parametrize("a,b,c", list(itertools.permutations(DOMAINS[:5], 3)))
def test_edit_distance_triangle_inequality(a, b, c):
    assert edit_distance(a, c) <= edit_distance(a, b) + edit_distance(b, c)


def test_edit_distance_known_values():
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("", "abc") == 3
    assert edit_distance("paypal.com", "paypa1.com") == 1


def test_similarity_formula():
    assert similarity("paypa1.com", "paypal.com") == pytest.approx(0.9)
    assert similarity("abcd", "wxyz") == 0.0
    assert 0.0 <= similarity("short", "a much longer domain") <= 1.0


def test_character_substitution_transforms_legitimate_only():
    assert has_character_substitution("google.com", "g00gle.com")
    assert has_character_substitution("moon.com", "rnoon.com")
    assert has_character_substitution("secure.com", "$3cure.com")
    # One-directional: a look-alike candidate against a clean legitimate
    # domain does not match.
    assert not has_character_substitution("g00gle.com", "google.com")
    assert not has_character_substitution("paypa1.com", "paypal.com")


def test_impersonation_window_is_open_interval():
    assert not is_impersonation_similarity(1.0)
    assert not is_impersonation_similarity(0.7)
    assert is_impersonation_similarity(0.71)
    assert is_impersonation_similarity(0.99)


def test_impersonation_confidence_is_capped():
    assert impersonation_confidence(0.75) == pytest.approx(0.85)
    assert impersonation_confidence(0.95) == 0.9


def test_digit_one_resolves_to_i():
    assert has_character_substitution("mayibank.com", "may1bank.com")
    assert not has_character_substitution("maylbank.com", "may1bank.com")
