"""Scan history stores.

The scorer itself is stateless; callers that want a history inject one of
these stores and record each assessment after scoring.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from paysavvy.models import RiskAssessment
from paysavvy.urls import URLParseError, parse_url

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=30)


def _entry_from_assessment(assessment: RiskAssessment) -> dict[str, Any]:
    entry = assessment.to_dict()
    try:
        entry["domain"] = parse_url(assessment.url).domain
    except URLParseError:
        entry["domain"] = ""
    return entry


def _summarize(entries: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate trust-level counts and the most flagged domains."""
    levels = Counter(e.get("trust_level", "Unknown") for e in entries)
    risky = Counter(
        e["domain"]
        for e in entries
        if e.get("domain") and e.get("trust_level") in ("Suspicious", "Dangerous")
    )
    return {
        "total_scans": len(entries),
        "by_trust_level": dict(levels),
        "top_risky_domains": risky.most_common(10),
    }


class ScanHistory(ABC):
    """Repository interface for persisted assessments."""

    @abstractmethod
    def record(self, assessment: RiskAssessment) -> None:
        """Store one assessment."""
        ...

    @abstractmethod
    def entries(self) -> list[dict[str, Any]]:
        """Return all stored entries, oldest first."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    def recent(self, limit: int = 20) -> list[dict[str, Any]]:
        """Return up to ``limit`` entries, newest first."""
        return list(reversed(self.entries()))[:limit]

    def statistics(self) -> dict[str, Any]:
        return _summarize(self.entries())


class InMemoryScanHistory(ScanHistory):
    """Process-local history, bounded to ``max_entries``."""

    def __init__(self, max_entries: int = 500) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def record(self, assessment: RiskAssessment) -> None:
        with self._lock:
            self._entries.append(_entry_from_assessment(assessment))
            del self._entries[:-self._max_entries]

    def entries(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class JsonFileScanHistory(ScanHistory):
    """History persisted to a JSON file.

    Entries older than ``ttl`` are pruned on load and on save. Writes go to a
    temporary file in the same directory and are renamed into place.
    """

    def __init__(self, path: str | Path, ttl: timedelta = DEFAULT_TTL) -> None:
        self.path = Path(path)
        self.ttl = ttl
        self._lock = threading.Lock()
        self._entries = self._prune_expired(self._load())

    def _load(self) -> list[dict[str, Any]]:
        """Read entries from disk, skipping corrupt ones.

        A missing file is an empty history; an unreadable one is logged and
        treated as empty.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to load scan history %s: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring scan history %s: expected a list", self.path)
            return []

        entries = []
        for entry in data:
            if isinstance(entry, dict) and "url" in entry and "trust_level" in entry:
                entries.append(entry)
            else:
                logger.warning("Skipping corrupt history entry: %r", entry)
        logger.info("Loaded %d history entr(ies) from %s", len(entries), self.path)
        return entries

    def _prune_expired(self, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        now = datetime.now(timezone.utc)
        pruned = []
        for entry in entries:
            try:
                scanned = datetime.fromisoformat(entry.get("timestamp", ""))
            except (TypeError, ValueError):
                pruned.append(entry)  # Keep entries with unparseable timestamps
                continue
            if scanned.tzinfo is None:
                scanned = scanned.replace(tzinfo=timezone.utc)
            if now - scanned < self.ttl:
                pruned.append(entry)
        return pruned

    def _save(self) -> None:
        self._entries = self._prune_expired(self._entries)
        payload = json.dumps(self._entries, default=str, ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), suffix=".tmp", prefix="scan_history_",
        )
        closed = False
        try:
            os.write(fd, payload.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, str(self.path))
        except OSError:
            if not closed:
                os.close(fd)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def record(self, assessment: RiskAssessment) -> None:
        with self._lock:
            self._entries.append(_entry_from_assessment(assessment))
            self._save()

    def entries(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._save()
