"""Domain similarity and look-alike substitution checks."""

from __future__ import annotations

from Levenshtein import distance as levenshtein_distance

# Similarity strictly above this (and below 1.0) counts as impersonation.
IMPERSONATION_THRESHOLD = 0.7
IMPERSONATION_CONFIDENCE_CAP = 0.9
SUBSTITUTION_CONFIDENCE = 0.8

# Look-alike -> plain character, applied in order to the legitimate domain.
# "1" always resolves to "i"; domains are lowercase, so no uppercase entries.
CHARACTER_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("@", "a"),
    ("4", "a"),
    ("3", "e"),
    ("1", "i"),
    ("!", "i"),
    ("0", "o"),
    ("$", "s"),
    ("5", "s"),
    ("rn", "m"),
    ("vv", "w"),
)


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit-cost insert, delete and substitute."""
    return levenshtein_distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return ``(maxLen - editDistance) / maxLen`` in [0, 1].

    Identical strings (including two empty strings) score 1.0.
    """
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    return (longest - edit_distance(a, b)) / longest


def has_character_substitution(candidate: str, legitimate: str) -> bool:
    """Check whether ``candidate`` equals ``legitimate`` with look-alikes resolved.

    Only the legitimate string is transformed; the candidate is compared
    as-is.
    """
    transformed = legitimate
    for lookalike, plain in CHARACTER_SUBSTITUTIONS:
        transformed = transformed.replace(lookalike, plain)
    return transformed == candidate


def is_impersonation_similarity(score: float) -> bool:
    """True for similarity in the open interval (0.7, 1.0)."""
    return IMPERSONATION_THRESHOLD < score < 1.0


def impersonation_confidence(score: float) -> float:
    return min(IMPERSONATION_CONFIDENCE_CAP, score + 0.1)
